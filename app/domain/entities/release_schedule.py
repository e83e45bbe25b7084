from __future__ import annotations

from dataclasses import dataclass, field, replace


@dataclass(frozen=True)
class ReleaseSchedule:
    total_amount: int
    start_time: int
    end_time: int
    min_tick: int
    max_tick: int
    is_release_token_first: bool

    @property
    def wide_tick(self) -> int:
        return self.max_tick

    @property
    def narrow_tick(self) -> int:
        return self.min_tick

    @property
    def release_currency(self) -> int:
        return 0 if self.is_release_token_first else 1

    @property
    def counter_currency(self) -> int:
        return 1 - self.release_currency


@dataclass
class ReleaseProgress:
    owner: str
    epoch_size: int
    current_floor_tick: int
    amount_released: int = 0
    reconciled_epochs: set[int] = field(default_factory=set)
    reconciliation_disabled: bool = False


@dataclass
class ReleaseScheduleState:
    pool_id: str
    schedule: ReleaseSchedule
    progress: ReleaseProgress

    def copy(self) -> "ReleaseScheduleState":
        progress = replace(self.progress, reconciled_epochs=set(self.progress.reconciled_epochs))
        return ReleaseScheduleState(pool_id=self.pool_id, schedule=self.schedule, progress=progress)
