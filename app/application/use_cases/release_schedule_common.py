from __future__ import annotations

import time

from app.application.dto.release_schedule import ReleaseScheduleOutput
from app.application.ports.release_schedule_store_port import ReleaseScheduleStorePort
from app.domain.entities.release_schedule import ReleaseScheduleState
from app.domain.exceptions import ReleaseScheduleNotFoundError, UnauthorizedError
from app.domain.services.univ3_math import tick_to_price


def unix_now() -> int:
    return int(time.time())


def load_state(store_port: ReleaseScheduleStorePort, pool_id: str) -> ReleaseScheduleState:
    state = store_port.get(pool_id=pool_id)
    if state is None:
        raise ReleaseScheduleNotFoundError(f"Release schedule not found for pool {pool_id}.")
    return state


def require_owner(state: ReleaseScheduleState, caller: str) -> None:
    if not caller or caller.lower() != state.progress.owner.lower():
        raise UnauthorizedError("Caller is not the pool owner.")


def to_output(state: ReleaseScheduleState) -> ReleaseScheduleOutput:
    schedule = state.schedule
    progress = state.progress
    return ReleaseScheduleOutput(
        pool_id=state.pool_id,
        total_amount=schedule.total_amount,
        start_time=schedule.start_time,
        end_time=schedule.end_time,
        min_tick=schedule.min_tick,
        max_tick=schedule.max_tick,
        is_release_token_first=schedule.is_release_token_first,
        owner=progress.owner,
        epoch_size=progress.epoch_size,
        amount_released=progress.amount_released,
        current_floor_tick=progress.current_floor_tick,
        # Preco bruto do token liberado em unidades do outro token (sem ajuste de decimais).
        current_floor_price=tick_to_price(progress.current_floor_tick, 0, 0),
        reconciliation_disabled=progress.reconciliation_disabled,
        reconciled_epochs=sorted(progress.reconciled_epochs),
    )
