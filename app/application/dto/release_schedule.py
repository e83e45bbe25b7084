from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum


class SyncOutcome(str, Enum):
    IDLE = "idle"
    EXTEND = "extend"
    SELL_THEN_EXTEND = "sell_then_extend"


@dataclass(frozen=True)
class InitializeReleaseScheduleInput:
    pool_id: str
    sender: str
    total_amount: int
    start_time: int
    end_time: int
    min_tick: int
    max_tick: int
    is_release_token_first: bool
    epoch_size: int


@dataclass(frozen=True)
class ReleaseScheduleOutput:
    pool_id: str
    total_amount: int
    start_time: int
    end_time: int
    min_tick: int
    max_tick: int
    is_release_token_first: bool
    owner: str
    epoch_size: int
    amount_released: int
    current_floor_tick: int
    current_floor_price: Decimal
    reconciliation_disabled: bool
    reconciled_epochs: list[int]


@dataclass(frozen=True)
class SyncOutput:
    pool_id: str
    outcome: SyncOutcome
    epoch: int | None
    delta: int
    amount_sold: int
    position_replaced: bool
    amount_released: int
    current_floor_tick: int


@dataclass(frozen=True)
class BeforeSwapOutput:
    pool_id: str
    reconciled: bool
    skipped_reason: str | None


@dataclass(frozen=True)
class FinalizeOutput:
    pool_id: str
    owner: str
    liquidity_withdrawn: int
    amount0_to_owner: int
    amount1_to_owner: int
    amount_released: int


@dataclass(frozen=True)
class TransferOwnershipOutput:
    pool_id: str
    previous_owner: str
    owner: str
