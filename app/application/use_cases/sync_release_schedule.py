from __future__ import annotations

import logging
from typing import Callable

from app.application.dto.release_schedule import SyncOutcome, SyncOutput
from app.application.ports.amm_host_port import AmmHostPort
from app.application.ports.release_schedule_store_port import ReleaseScheduleStorePort
from app.application.services.host_callbacks import HostCallbackAdapter
from app.application.services.swap_guard import SwapGuard
from app.application.use_cases.release_schedule_common import load_state, unix_now
from app.domain.entities.host_callback import ModifyPositionRequest, SwapRequest
from app.domain.entities.release_schedule import ReleaseScheduleState
from app.domain.services.epoch_clock import epoch_floor, mark_reconciled, should_reconcile
from app.domain.services.liquidity import release_liquidity_for_amount
from app.domain.services.pair_orientation import (
    release_range_to_pool,
    sells_zero_for_one,
    to_pool_tick,
    to_release_tick,
)
from app.domain.services.release_curve import target_floor_tick, target_released_amount
from app.domain.services.univ3_math import clamp_sqrt_price_limit, get_sqrt_ratio_at_tick


logger = logging.getLogger(__name__)


class SyncReleaseScheduleUseCase:
    """Reconcilia a posicao da pool com a curva alvo, no maximo uma vez por epoca.

    A epoca e o novo `amount_released` sao gravados antes de qualquer chamada ao host;
    quem perde a disputa pela epoca sai como IDLE. Caminho EXTEND: o preco ja esta
    abaixo do novo floor; a posicao e fechada e reaberta em [floor, wide]. Caminho
    SELL_THEN_EXTEND: vende ate `delta` tokens com limite de preco no novo floor e
    deposita o que sobrar.

    O deposito sempre usa o saldo livre da custodia (tudo que ja foi liberado e nao
    esta na posicao), entao uma epoca que falhou no meio e completada pela seguinte.
    """

    def __init__(
        self,
        *,
        store_port: ReleaseScheduleStorePort,
        host_port: AmmHostPort,
        swap_guard: SwapGuard,
        custody_address: str,
        clock: Callable[[], int] = unix_now,
    ):
        self._store_port = store_port
        self._host_port = host_port
        self._swap_guard = swap_guard
        self._callbacks = HostCallbackAdapter(host_port=host_port, custody_address=custody_address)
        self._clock = clock

    def execute(self, *, pool_id: str, now: int | None = None) -> SyncOutput:
        state = load_state(self._store_port, pool_id)
        timestamp = self._clock() if now is None else now
        return self.reconcile(state, now=timestamp)

    def reconcile(self, state: ReleaseScheduleState, *, now: int) -> SyncOutput:
        """Reconcilia `state` e atualiza o objeto em memoria conforme o que foi gravado."""
        schedule = state.schedule
        progress = state.progress
        if not should_reconcile(progress, now):
            return self._idle_output(state)

        # O relogio pode recuar entre epocas; progresso e floor so andam para frente.
        target_amount = max(target_released_amount(schedule, now), progress.amount_released)
        target_floor = min(target_floor_tick(schedule, now), progress.current_floor_tick)
        delta = target_amount - progress.amount_released

        epoch = epoch_floor(now, progress.epoch_size)
        if not self._store_port.claim_epoch(
            pool_id=state.pool_id,
            epoch=epoch,
            amount_released=target_amount,
        ):
            logger.info(
                "sync_release_schedule: epoch_not_claimed pool=%s epoch=%s",
                state.pool_id,
                epoch,
            )
            return self._idle_output(state)
        progress.amount_released = target_amount
        mark_reconciled(progress, now)

        current_tick = to_release_tick(
            self._host_port.get_current_tick(pool_id=state.pool_id),
            is_release_token_first=schedule.is_release_token_first,
        )

        amount_sold = 0
        position_replaced = False
        if current_tick < target_floor:
            outcome = SyncOutcome.EXTEND
            self.replace_position(state, target_floor=target_floor)
            position_replaced = True
        else:
            outcome = SyncOutcome.SELL_THEN_EXTEND
            amount_sold = self._sell_down_to_floor(state, amount=delta, target_floor=target_floor)
            if self.free_release_balance(state) > 0:
                self.replace_position(state, target_floor=target_floor)
                position_replaced = True

        logger.info(
            "sync_release_schedule: reconciled pool=%s epoch=%s outcome=%s delta=%s sold=%s floor=%s released=%s current_tick=%s",
            state.pool_id,
            epoch,
            outcome.value,
            delta,
            amount_sold,
            progress.current_floor_tick,
            progress.amount_released,
            current_tick,
        )
        return SyncOutput(
            pool_id=state.pool_id,
            outcome=outcome,
            epoch=epoch,
            delta=delta,
            amount_sold=amount_sold,
            position_replaced=position_replaced,
            amount_released=progress.amount_released,
            current_floor_tick=progress.current_floor_tick,
        )

    def replace_position(self, state: ReleaseScheduleState, *, target_floor: int) -> int:
        """Fecha a posicao atual e reabre em [target_floor, wide] com todo o saldo livre.

        O floor e gravado entre o saque e o deposito: se o deposito falhar, a proxima
        epoca encontra a faixa nova vazia e deposita o saldo livre inteiro.
        Retorna a liquidez depositada.
        """
        schedule = state.schedule
        progress = state.progress
        custody = self._callbacks.custody_address

        tick_lower, tick_upper = release_range_to_pool(
            progress.current_floor_tick,
            schedule.wide_tick,
            is_release_token_first=schedule.is_release_token_first,
        )
        existing = self._host_port.get_position_liquidity(
            pool_id=state.pool_id,
            owner=custody,
            tick_lower=tick_lower,
            tick_upper=tick_upper,
        )
        if existing > 0:
            self._callbacks.apply(
                pool_id=state.pool_id,
                request=ModifyPositionRequest(
                    tick_lower=tick_lower,
                    tick_upper=tick_upper,
                    liquidity_delta=-existing,
                ),
            )

        if target_floor != progress.current_floor_tick:
            self._store_port.save_floor(pool_id=state.pool_id, current_floor_tick=target_floor)
            progress.current_floor_tick = target_floor

        new_lower, new_upper = release_range_to_pool(
            target_floor,
            schedule.wide_tick,
            is_release_token_first=schedule.is_release_token_first,
        )
        amount = self.free_release_balance(state)
        liquidity = release_liquidity_for_amount(
            amount=amount,
            tick_lower=new_lower,
            tick_upper=new_upper,
            is_release_token_first=schedule.is_release_token_first,
        )
        if liquidity > 0:
            self._callbacks.apply(
                pool_id=state.pool_id,
                request=ModifyPositionRequest(
                    tick_lower=new_lower,
                    tick_upper=new_upper,
                    liquidity_delta=liquidity,
                ),
            )
        elif amount > 0:
            logger.warning(
                "sync_release_schedule: empty_range_deposit_skipped pool=%s floor=%s amount=%s",
                state.pool_id,
                target_floor,
                amount,
            )
        return liquidity

    def free_release_balance(self, state: ReleaseScheduleState) -> int:
        """Token liberado que esta na custodia: saldo menos a reserva ainda nao liberada."""
        schedule = state.schedule
        balance = self._callbacks.custody_balance(
            pool_id=state.pool_id,
            currency=schedule.release_currency,
        )
        reserved = schedule.total_amount - state.progress.amount_released
        return max(0, balance - reserved)

    def _sell_down_to_floor(self, state: ReleaseScheduleState, *, amount: int, target_floor: int) -> int:
        if amount <= 0:
            return 0
        schedule = state.schedule
        currency = schedule.release_currency
        request = SwapRequest(
            zero_for_one=sells_zero_for_one(is_release_token_first=schedule.is_release_token_first),
            amount_in=amount,
            sqrt_price_limit_x96=clamp_sqrt_price_limit(
                get_sqrt_ratio_at_tick(
                    to_pool_tick(target_floor, is_release_token_first=schedule.is_release_token_first)
                )
            ),
        )

        balance_before = self._callbacks.custody_balance(pool_id=state.pool_id, currency=currency)
        with self._swap_guard.hold(state.pool_id):
            self._callbacks.apply(pool_id=state.pool_id, request=request)
        balance_after = self._callbacks.custody_balance(pool_id=state.pool_id, currency=currency)
        return max(0, balance_before - balance_after)

    def _idle_output(self, state: ReleaseScheduleState) -> SyncOutput:
        return SyncOutput(
            pool_id=state.pool_id,
            outcome=SyncOutcome.IDLE,
            epoch=None,
            delta=0,
            amount_sold=0,
            position_replaced=False,
            amount_released=state.progress.amount_released,
            current_floor_tick=state.progress.current_floor_tick,
        )
