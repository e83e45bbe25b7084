from __future__ import annotations

import logging
from typing import Callable

from app.application.dto.release_schedule import InitializeReleaseScheduleInput, ReleaseScheduleOutput
from app.application.ports.amm_host_port import AmmHostPort
from app.application.ports.release_schedule_store_port import ReleaseScheduleStorePort
from app.application.use_cases.release_schedule_common import to_output, unix_now
from app.domain.entities.release_schedule import (
    ReleaseProgress,
    ReleaseSchedule,
    ReleaseScheduleState,
)
from app.domain.exceptions import (
    AlreadyInitializedError,
    InvalidEpochSizeError,
    InvalidTickRangeError,
    InvalidTimeRangeError,
)
from app.domain.services.pair_orientation import to_pool_tick


logger = logging.getLogger(__name__)


class InitializeReleaseScheduleUseCase:
    """Registra o cronograma de uma pool recem-criada e puxa `total_amount` para a custodia."""

    def __init__(
        self,
        *,
        store_port: ReleaseScheduleStorePort,
        host_port: AmmHostPort,
        custody_address: str,
        clock: Callable[[], int] = unix_now,
    ):
        self._store_port = store_port
        self._host_port = host_port
        self._custody_address = custody_address
        self._clock = clock

    def execute(self, command: InitializeReleaseScheduleInput) -> ReleaseScheduleOutput:
        if self._store_port.get(pool_id=command.pool_id) is not None:
            raise AlreadyInitializedError(f"Pool {command.pool_id} already has a release schedule.")
        if command.epoch_size <= 0:
            raise InvalidEpochSizeError("epoch_size must be positive.")

        now = self._clock()
        if command.start_time > command.end_time:
            raise InvalidTimeRangeError("start_time must not be after end_time.")
        if command.end_time < now:
            raise InvalidTimeRangeError("end_time is already in the past.")

        if command.min_tick > command.max_tick:
            raise InvalidTickRangeError("min_tick must not be above max_tick.")
        usable_min, usable_max = self._host_port.get_usable_tick_bounds(pool_id=command.pool_id)
        for tick in (command.min_tick, command.max_tick):
            pool_tick = to_pool_tick(tick, is_release_token_first=command.is_release_token_first)
            if pool_tick < usable_min or pool_tick > usable_max:
                raise InvalidTickRangeError(
                    f"tick {tick} is outside the usable range [{usable_min}, {usable_max}]."
                )

        schedule = ReleaseSchedule(
            total_amount=command.total_amount,
            start_time=command.start_time,
            end_time=command.end_time,
            min_tick=command.min_tick,
            max_tick=command.max_tick,
            is_release_token_first=command.is_release_token_first,
        )
        state = ReleaseScheduleState(
            pool_id=command.pool_id,
            schedule=schedule,
            progress=ReleaseProgress(
                owner=command.sender,
                epoch_size=command.epoch_size,
                current_floor_tick=schedule.wide_tick,
            ),
        )

        if schedule.total_amount > 0:
            self._host_port.transfer(
                pool_id=command.pool_id,
                currency=schedule.release_currency,
                sender=command.sender,
                recipient=self._custody_address,
                amount=schedule.total_amount,
            )
        self._store_port.create(state=state)
        logger.info(
            "initialize_release_schedule: pool=%s owner=%s total=%s start=%s end=%s ticks=[%s, %s] release_first=%s epoch_size=%s",
            command.pool_id,
            command.sender,
            schedule.total_amount,
            schedule.start_time,
            schedule.end_time,
            schedule.min_tick,
            schedule.max_tick,
            schedule.is_release_token_first,
            command.epoch_size,
        )
        return to_output(state)
