from __future__ import annotations

import logging
from typing import Callable

from app.application.dto.release_schedule import BeforeSwapOutput, SyncOutcome
from app.application.ports.release_schedule_store_port import ReleaseScheduleStorePort
from app.application.services.swap_guard import SwapGuard
from app.application.use_cases.release_schedule_common import unix_now
from app.application.use_cases.sync_release_schedule import SyncReleaseScheduleUseCase


logger = logging.getLogger(__name__)


class HandleBeforeSwapUseCase:
    """Notificacao pre-swap do host: reconcilia antes de cada trade, sem bloquear o trade."""

    def __init__(
        self,
        *,
        store_port: ReleaseScheduleStorePort,
        swap_guard: SwapGuard,
        sync_use_case: SyncReleaseScheduleUseCase,
        clock: Callable[[], int] = unix_now,
    ):
        self._store_port = store_port
        self._swap_guard = swap_guard
        self._sync_use_case = sync_use_case
        self._clock = clock

    def execute(self, *, pool_id: str) -> BeforeSwapOutput:
        if self._swap_guard.is_active(pool_id):
            logger.debug("handle_before_swap: reentrant_swap pool=%s", pool_id)
            return BeforeSwapOutput(pool_id=pool_id, reconciled=False, skipped_reason="reentrant")

        state = self._store_port.get(pool_id=pool_id)
        if state is None:
            return BeforeSwapOutput(pool_id=pool_id, reconciled=False, skipped_reason="not_managed")

        now = self._clock()
        if now < state.schedule.start_time:
            return BeforeSwapOutput(pool_id=pool_id, reconciled=False, skipped_reason="before_start")

        output = self._sync_use_case.execute(pool_id=pool_id, now=now)
        if output.outcome is SyncOutcome.IDLE:
            return BeforeSwapOutput(pool_id=pool_id, reconciled=False, skipped_reason="not_due")
        return BeforeSwapOutput(pool_id=pool_id, reconciled=True, skipped_reason=None)
