from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from threading import Barrier

import pytest

from app.application.dto.release_schedule import SyncOutcome
from app.application.services.swap_guard import SwapGuard
from app.application.use_cases.handle_before_swap import HandleBeforeSwapUseCase
from app.application.use_cases.sync_release_schedule import SyncReleaseScheduleUseCase
from app.domain.entities.host_callback import ModifyPositionRequest, SwapRequest
from app.domain.exceptions import (
    AmmHostError,
    BeforeStartTimeError,
    ReleaseScheduleNotFoundError,
)
from app.domain.services.liquidity import release_liquidity_for_amount
from app.domain.services.release_curve import target_floor_tick, target_released_amount
from app.domain.services.univ3_math import get_sqrt_ratio_at_tick
from release_engine_fakes import (
    CUSTODY,
    POOL_ID,
    FakeAmmHost,
    InMemoryReleaseScheduleStore,
    fund_custody,
    make_state,
)

DELTA_AT_50000 = 462962962962962962962


class BarrierStore(InMemoryReleaseScheduleStore):
    """Segura cada leitura ate que todas as threads tenham lido o mesmo estado."""

    def __init__(self, *states, parties: int):
        super().__init__(*states)
        self.barrier = Barrier(parties, timeout=5)

    def get(self, *, pool_id: str):
        state = super().get(pool_id=pool_id)
        self.barrier.wait()
        return state


def _build(*, state=None, host=None, guard=None, store=None):
    state = state or make_state()
    host = host or FakeAmmHost(current_tick=0)
    fund_custody(host, state)
    store = store or InMemoryReleaseScheduleStore(state)
    guard = guard or SwapGuard()
    use_case = SyncReleaseScheduleUseCase(
        store_port=store,
        host_port=host,
        swap_guard=guard,
        custody_address=CUSTODY,
    )
    return use_case, store, host, guard


def _deposits(host: FakeAmmHost) -> list[ModifyPositionRequest]:
    return [
        request
        for request in host.requests
        if isinstance(request, ModifyPositionRequest) and request.liquidity_delta > 0
    ]


class TestExtendPath:
    def test_first_reconciliation_deposits_released_amount_at_new_floor(self):
        use_case, store, host, _ = _build()

        output = use_case.execute(pool_id=POOL_ID, now=50_000)

        assert output.outcome is SyncOutcome.EXTEND
        assert output.delta == DELTA_AT_50000
        assert output.amount_released == DELTA_AT_50000
        assert output.current_floor_tick == 7686
        assert output.epoch == 46_800
        assert output.position_replaced is True

        assert host.liquidity_of(7686, 10000) == release_liquidity_for_amount(
            amount=DELTA_AT_50000,
            tick_lower=7686,
            tick_upper=10000,
            is_release_token_first=True,
        )
        assert list(host.open_positions()) == [(CUSTODY, 7686, 10000)]
        assert 0 <= DELTA_AT_50000 - host.release_amount_in(7686, 10000) <= 2

        saved = store.states[POOL_ID].progress
        assert saved.amount_released == DELTA_AT_50000
        assert saved.current_floor_tick == 7686
        assert saved.reconciled_epochs == {46_800}

    def test_second_call_in_same_epoch_is_a_no_op(self):
        use_case, store, host, _ = _build()
        use_case.execute(pool_id=POOL_ID, now=50_000)
        state_after_first = store.states[POOL_ID].copy()
        requests_after_first = list(host.requests)
        writes_after_first = store.write_calls

        output = use_case.execute(pool_id=POOL_ID, now=50_300)

        assert output.outcome is SyncOutcome.IDLE
        assert store.states[POOL_ID] == state_after_first
        assert host.requests == requests_after_first
        assert store.write_calls == writes_after_first

    def test_next_epoch_closes_old_range_and_reopens_wider(self):
        use_case, store, host, _ = _build()
        use_case.execute(pool_id=POOL_ID, now=50_000)

        output = use_case.execute(pool_id=POOL_ID, now=60_000)

        # 50000 * 5000 / 86400 = 2893.5 -> 2893
        assert output.current_floor_tick == 7107
        assert output.amount_released == 578703703703703703703
        assert host.liquidity_of(7686, 10000) == 0
        assert list(host.open_positions()) == [(CUSTODY, 7107, 10000)]
        assert 0 <= output.amount_released - host.release_amount_in(7107, 10000) <= 2
        assert store.states[POOL_ID].progress.reconciled_epochs == {46_800, 57_600}

    def test_mirrored_pair_uses_negated_range(self):
        state = make_state(is_release_token_first=False)
        use_case, _, host, _ = _build(state=state, host=FakeAmmHost(current_tick=0))

        output = use_case.execute(pool_id=POOL_ID, now=50_000)

        assert output.outcome is SyncOutcome.EXTEND
        assert output.current_floor_tick == 7686
        assert list(host.open_positions()) == [(CUSTODY, -10000, -7686)]
        deposited = host.release_amount_in(-10000, -7686, is_release_token_first=False)
        assert 0 <= DELTA_AT_50000 - deposited <= 2


class TestSellThenExtendPath:
    def test_partial_sale_deposits_remainder(self):
        sold = 100 * 10**18
        host = FakeAmmHost(current_tick=9000, sell_capacity=sold)
        host.tick_after_swap = 7000
        use_case, store, host, guard = _build(host=host)

        output = use_case.execute(pool_id=POOL_ID, now=50_000)

        assert output.outcome is SyncOutcome.SELL_THEN_EXTEND
        assert output.amount_sold == sold
        assert output.position_replaced is True
        assert output.current_floor_tick == 7686
        assert host.swaps() == [
            SwapRequest(
                zero_for_one=True,
                amount_in=DELTA_AT_50000,
                sqrt_price_limit_x96=get_sqrt_ratio_at_tick(7686),
            )
        ]
        assert host.liquidity_of(7686, 10000) == release_liquidity_for_amount(
            amount=DELTA_AT_50000 - sold,
            tick_lower=7686,
            tick_upper=10000,
            is_release_token_first=True,
        )
        assert host.balance_of(pool_id=POOL_ID, currency=1, account=CUSTODY) == sold // 2
        assert guard.is_active(POOL_ID) is False
        assert store.states[POOL_ID].progress.amount_released == DELTA_AT_50000

    def test_fully_absorbed_sale_leaves_position_untouched(self):
        host = FakeAmmHost(current_tick=9000, sell_capacity=10**30)
        use_case, store, host, _ = _build(host=host)

        output = use_case.execute(pool_id=POOL_ID, now=50_000)

        assert output.outcome is SyncOutcome.SELL_THEN_EXTEND
        assert output.amount_sold == DELTA_AT_50000
        assert output.position_replaced is False
        assert output.current_floor_tick == 10000
        assert host.open_positions() == {}
        assert store.states[POOL_ID].progress.amount_released == DELTA_AT_50000

    def test_mirrored_pair_sells_one_for_zero_with_mirrored_limit(self):
        state = make_state(is_release_token_first=False)
        host = FakeAmmHost(current_tick=-9000, sell_capacity=10**30)
        use_case, _, host, _ = _build(state=state, host=host)

        use_case.execute(pool_id=POOL_ID, now=50_000)

        swap = host.swaps()[0]
        assert swap.zero_for_one is False
        assert swap.sqrt_price_limit_x96 == get_sqrt_ratio_at_tick(-7686)

    def test_nested_before_swap_notification_is_short_circuited(self):
        host = FakeAmmHost(current_tick=9000, sell_capacity=10**30)
        use_case, store, host, guard = _build(host=host)
        before_swap = HandleBeforeSwapUseCase(
            store_port=store,
            swap_guard=guard,
            sync_use_case=use_case,
            clock=lambda: 50_000,
        )
        nested_results = []
        host.on_before_swap = lambda: nested_results.append(before_swap.execute(pool_id=POOL_ID))

        use_case.execute(pool_id=POOL_ID, now=50_000)

        assert len(host.swaps()) == 1
        assert [result.skipped_reason for result in nested_results] == ["reentrant"]
        assert guard.is_active(POOL_ID) is False


class TestFailureRecovery:
    def test_failed_swap_releases_guard_and_is_not_retried_in_same_epoch(self):
        host = FakeAmmHost(current_tick=9000, sell_capacity=10**30)
        host.fail_next_swap = True
        use_case, store, host, guard = _build(host=host)

        with pytest.raises(AmmHostError):
            use_case.execute(pool_id=POOL_ID, now=50_000)

        assert guard.is_active(POOL_ID) is False
        progress = store.states[POOL_ID].progress
        assert progress.amount_released == DELTA_AT_50000
        assert progress.reconciled_epochs == {46_800}
        assert use_case.execute(pool_id=POOL_ID, now=50_100).outcome is SyncOutcome.IDLE
        assert len(host.swaps()) == 1

    def test_next_epoch_deposits_tokens_left_behind_by_failed_swap(self):
        host = FakeAmmHost(current_tick=9000, sell_capacity=10**30)
        host.fail_next_swap = True
        use_case, _, host, _ = _build(host=host)
        with pytest.raises(AmmHostError):
            use_case.execute(pool_id=POOL_ID, now=50_000)
        host.current_tick = 0

        output = use_case.execute(pool_id=POOL_ID, now=60_000)

        assert output.outcome is SyncOutcome.EXTEND
        assert 0 <= 578703703703703703703 - host.release_amount_in(7107, 10000) <= 2

    def test_failed_redeposit_is_completed_by_next_epoch(self):
        state = make_state()
        use_case, store, host, _ = _build(state=state)
        use_case.execute(pool_id=POOL_ID, now=50_000)
        host.fail_next_deposit = True

        with pytest.raises(AmmHostError):
            use_case.execute(pool_id=POOL_ID, now=60_000)

        progress = store.states[POOL_ID].progress
        assert progress.amount_released == 578703703703703703703
        assert progress.current_floor_tick == 7107
        assert host.open_positions() == {}
        assert use_case.execute(pool_id=POOL_ID, now=60_000).outcome is SyncOutcome.IDLE

        output = use_case.execute(pool_id=POOL_ID, now=64_800)

        floor = target_floor_tick(state.schedule, 64_800)
        released = target_released_amount(state.schedule, 64_800)
        assert output.current_floor_tick == floor
        assert output.amount_released == released
        assert list(host.open_positions()) == [(CUSTODY, floor, 10000)]
        assert 0 <= released - host.release_amount_in(floor, 10000) <= 2

    def test_failure_after_sale_does_not_sell_again(self):
        host = FakeAmmHost(current_tick=9000, sell_capacity=100 * 10**18)
        host.tick_after_swap = 7000
        host.fail_next_deposit = True
        use_case, _, host, _ = _build(host=host)

        with pytest.raises(AmmHostError):
            use_case.execute(pool_id=POOL_ID, now=50_000)
        use_case.execute(pool_id=POOL_ID, now=50_000)

        assert len(host.swaps()) == 1


class TestConcurrency:
    def test_overlapping_calls_reconcile_the_epoch_once(self):
        state = make_state()
        store = BarrierStore(state, parties=2)
        use_case, store, host, _ = _build(state=state, store=store)

        with ThreadPoolExecutor(max_workers=2) as pool:
            futures = [pool.submit(use_case.execute, pool_id=POOL_ID, now=50_000) for _ in range(2)]
            outcomes = sorted(future.result().outcome.value for future in futures)

        assert outcomes == ["extend", "idle"]
        assert len(_deposits(host)) == 1
        assert 0 <= DELTA_AT_50000 - host.release_amount_in(7686, 10000) <= 2
        assert store.states[POOL_ID].progress.amount_released == DELTA_AT_50000


class TestNoOpAndFailures:
    def test_disabled_schedule_never_reconciles(self):
        state = make_state()
        state.progress.reconciliation_disabled = True
        use_case, store, host, _ = _build(state=state)

        output = use_case.execute(pool_id=POOL_ID, now=50_000)

        assert output.outcome is SyncOutcome.IDLE
        assert host.requests == []
        assert store.write_calls == 0

    def test_before_start_raises_and_changes_nothing(self):
        use_case, store, host, _ = _build()

        with pytest.raises(BeforeStartTimeError):
            use_case.execute(pool_id=POOL_ID, now=9_999)

        assert host.requests == []
        assert store.states[POOL_ID].progress.reconciled_epochs == set()

    def test_unknown_pool_raises_not_found(self):
        use_case, _, _, _ = _build()
        with pytest.raises(ReleaseScheduleNotFoundError):
            use_case.execute(pool_id="0xother", now=50_000)

    def test_uses_clock_when_timestamp_is_omitted(self):
        state = make_state()
        host = FakeAmmHost(current_tick=0)
        fund_custody(host, state)
        store = InMemoryReleaseScheduleStore(state)
        use_case = SyncReleaseScheduleUseCase(
            store_port=store,
            host_port=host,
            swap_guard=SwapGuard(),
            custody_address=CUSTODY,
            clock=lambda: 50_000,
        )

        output = use_case.execute(pool_id=POOL_ID)

        assert output.amount_released == DELTA_AT_50000
