from __future__ import annotations

import logging
from typing import Callable

from app.application.dto.release_schedule import FinalizeOutput
from app.application.ports.amm_host_port import AmmHostPort
from app.application.ports.release_schedule_store_port import ReleaseScheduleStorePort
from app.application.services.host_callbacks import HostCallbackAdapter
from app.application.use_cases.release_schedule_common import load_state, require_owner, unix_now
from app.application.use_cases.sync_release_schedule import SyncReleaseScheduleUseCase
from app.domain.entities.host_callback import ModifyPositionRequest
from app.domain.entities.release_schedule import ReleaseScheduleState
from app.domain.exceptions import AmmHostError, BeforeEndTimeError, ReconciliationDisabledError
from app.domain.services.epoch_clock import epoch_floor
from app.domain.services.pair_orientation import release_range_to_pool


logger = logging.getLogger(__name__)


class FinalizeReleaseScheduleUseCase:
    """Encerra o cronograma: ultima reconciliacao, saque total para o owner e desliga `sync`.

    O flag e ligado antes do saque para que nenhuma reconciliacao reabra a posicao no meio;
    se o host falhar, o flag volta e o owner pode repetir a chamada.
    """

    def __init__(
        self,
        *,
        store_port: ReleaseScheduleStorePort,
        host_port: AmmHostPort,
        sync_use_case: SyncReleaseScheduleUseCase,
        custody_address: str,
        clock: Callable[[], int] = unix_now,
    ):
        self._store_port = store_port
        self._host_port = host_port
        self._sync_use_case = sync_use_case
        self._callbacks = HostCallbackAdapter(host_port=host_port, custody_address=custody_address)
        self._clock = clock

    def execute(self, *, pool_id: str, caller: str) -> FinalizeOutput:
        state = load_state(self._store_port, pool_id)
        require_owner(state, caller)
        if state.progress.reconciliation_disabled:
            raise ReconciliationDisabledError(f"Release schedule for pool {pool_id} is already finalized.")

        now = self._clock()
        if epoch_floor(now, state.progress.epoch_size) < state.schedule.end_time:
            raise BeforeEndTimeError(
                f"Release window for pool {pool_id} closes at {state.schedule.end_time}."
            )

        self._sync_use_case.reconcile(state, now=now)
        if not self._store_port.set_reconciliation_disabled(pool_id=pool_id, disabled=True):
            raise ReconciliationDisabledError(f"Release schedule for pool {pool_id} is already finalized.")

        # Outra reconciliacao pode ter movido o floor desde a leitura inicial.
        working = load_state(self._store_port, pool_id)
        try:
            liquidity, to_owner = self._withdraw_to_owner(working)
        except AmmHostError:
            self._store_port.set_reconciliation_disabled(pool_id=pool_id, disabled=False)
            logger.warning("finalize_release_schedule: host_failed pool=%s reconciliation_reenabled", pool_id)
            raise

        logger.info(
            "finalize_release_schedule: finalized pool=%s owner=%s liquidity=%s amount0=%s amount1=%s released=%s",
            pool_id,
            working.progress.owner,
            liquidity,
            to_owner[0],
            to_owner[1],
            working.progress.amount_released,
        )
        return FinalizeOutput(
            pool_id=pool_id,
            owner=working.progress.owner,
            liquidity_withdrawn=liquidity,
            amount0_to_owner=to_owner[0],
            amount1_to_owner=to_owner[1],
            amount_released=working.progress.amount_released,
        )

    def _withdraw_to_owner(self, state: ReleaseScheduleState) -> tuple[int, list[int]]:
        schedule = state.schedule
        owner = state.progress.owner
        tick_lower, tick_upper = release_range_to_pool(
            state.progress.current_floor_tick,
            schedule.wide_tick,
            is_release_token_first=schedule.is_release_token_first,
        )
        liquidity = self._host_port.get_position_liquidity(
            pool_id=state.pool_id,
            owner=self._callbacks.custody_address,
            tick_lower=tick_lower,
            tick_upper=tick_upper,
        )
        to_owner = [0, 0]
        if liquidity > 0:
            delta = self._callbacks.apply(
                pool_id=state.pool_id,
                request=ModifyPositionRequest(
                    tick_lower=tick_lower,
                    tick_upper=tick_upper,
                    liquidity_delta=-liquidity,
                ),
                recipient=owner,
            )
            to_owner[0] += max(0, delta.amount0)
            to_owner[1] += max(0, delta.amount1)

        # Proventos de venda e sobras de arredondamento ficam na custodia.
        for currency in (schedule.release_currency, schedule.counter_currency):
            balance = self._callbacks.custody_balance(pool_id=state.pool_id, currency=currency)
            if balance > 0:
                self._host_port.transfer(
                    pool_id=state.pool_id,
                    currency=currency,
                    sender=self._callbacks.custody_address,
                    recipient=owner,
                    amount=balance,
                )
                to_owner[currency] += balance
        return liquidity, to_owner
