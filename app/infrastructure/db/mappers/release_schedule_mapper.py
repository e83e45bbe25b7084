from __future__ import annotations

from typing import Any, Iterable, Mapping

from app.domain.entities.release_schedule import (
    ReleaseProgress,
    ReleaseSchedule,
    ReleaseScheduleState,
)


def _as_int(value: Any) -> int:
    if isinstance(value, int):
        return value
    return int(str(value))


def map_row_to_release_schedule_state(
    row: Mapping[str, Any],
    epochs: Iterable[Any],
) -> ReleaseScheduleState:
    return ReleaseScheduleState(
        pool_id=row["pool_id"],
        schedule=ReleaseSchedule(
            total_amount=_as_int(row["total_amount"]),
            start_time=_as_int(row["start_time"]),
            end_time=_as_int(row["end_time"]),
            min_tick=_as_int(row["min_tick"]),
            max_tick=_as_int(row["max_tick"]),
            is_release_token_first=bool(row["is_release_token_first"]),
        ),
        progress=ReleaseProgress(
            owner=row["owner"],
            epoch_size=_as_int(row["epoch_size"]),
            current_floor_tick=_as_int(row["current_floor_tick"]),
            amount_released=_as_int(row["amount_released"]),
            reconciled_epochs={_as_int(epoch) for epoch in epochs},
            reconciliation_disabled=bool(row["reconciliation_disabled"]),
        ),
    )


def map_release_schedule_state_to_params(state: ReleaseScheduleState) -> dict[str, Any]:
    schedule = state.schedule
    progress = state.progress
    return {
        "pool_id": state.pool_id,
        "total_amount": str(schedule.total_amount),
        "start_time": schedule.start_time,
        "end_time": schedule.end_time,
        "min_tick": schedule.min_tick,
        "max_tick": schedule.max_tick,
        "is_release_token_first": schedule.is_release_token_first,
        "owner": progress.owner,
        "epoch_size": progress.epoch_size,
        "amount_released": str(progress.amount_released),
        "current_floor_tick": progress.current_floor_tick,
        "reconciliation_disabled": progress.reconciliation_disabled,
    }
