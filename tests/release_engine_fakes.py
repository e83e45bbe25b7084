from __future__ import annotations

from collections import defaultdict
from threading import Lock
from typing import Callable

from app.domain.entities.host_callback import (
    BalanceDelta,
    HostCallbackRequest,
    ModifyPositionRequest,
    SwapRequest,
)
from app.domain.entities.release_schedule import (
    ReleaseProgress,
    ReleaseSchedule,
    ReleaseScheduleState,
)
from app.domain.exceptions import AmmHostError
from app.domain.services.univ3_math import (
    get_amount0_for_liquidity,
    get_amount1_for_liquidity,
    get_sqrt_ratio_at_tick,
)

CUSTODY = "release-engine"
OWNER = "0xowner"
POOL_ID = "0xpool"


class InMemoryReleaseScheduleStore:
    def __init__(self, *states: ReleaseScheduleState):
        self.states: dict[str, ReleaseScheduleState] = {state.pool_id: state.copy() for state in states}
        self.write_calls = 0
        self._lock = Lock()

    def get(self, *, pool_id: str) -> ReleaseScheduleState | None:
        with self._lock:
            state = self.states.get(pool_id)
            return state.copy() if state is not None else None

    def create(self, *, state: ReleaseScheduleState) -> None:
        with self._lock:
            self.states[state.pool_id] = state.copy()

    def claim_epoch(self, *, pool_id: str, epoch: int, amount_released: int) -> bool:
        with self._lock:
            progress = self.states[pool_id].progress
            if progress.reconciliation_disabled or epoch in progress.reconciled_epochs:
                return False
            progress.reconciled_epochs.add(epoch)
            progress.amount_released = amount_released
            self.write_calls += 1
            return True

    def save_floor(self, *, pool_id: str, current_floor_tick: int) -> None:
        with self._lock:
            self.states[pool_id].progress.current_floor_tick = current_floor_tick
            self.write_calls += 1

    def save_owner(self, *, pool_id: str, owner: str) -> None:
        with self._lock:
            self.states[pool_id].progress.owner = owner
            self.write_calls += 1

    def set_reconciliation_disabled(self, *, pool_id: str, disabled: bool) -> bool:
        with self._lock:
            progress = self.states[pool_id].progress
            if progress.reconciliation_disabled == disabled:
                return False
            progress.reconciliation_disabled = disabled
            self.write_calls += 1
            return True


class FakeAmmHost:
    """Host minimo: guarda posicoes e saldos, e simula vendas com capacidade configuravel."""

    def __init__(
        self,
        *,
        current_tick: int = 0,
        usable_bounds: tuple[int, int] = (-887272, 887272),
        sell_capacity: int = 0,
    ):
        self.current_tick = current_tick
        self.usable_bounds = usable_bounds
        self.sell_capacity = sell_capacity
        self.positions: dict[tuple[str, int, int], int] = defaultdict(int)
        self.balances: dict[tuple[int, str], int] = defaultdict(int)
        self.requests: list[HostCallbackRequest] = []
        self.on_before_swap: Callable[[], None] | None = None
        self.fail_next_swap = False
        self.fail_next_deposit = False
        self.fail_next_transfer = False
        self.tick_after_swap: int | None = None

    def get_current_tick(self, *, pool_id: str) -> int:
        return self.current_tick

    def get_usable_tick_bounds(self, *, pool_id: str) -> tuple[int, int]:
        return self.usable_bounds

    def get_position_liquidity(self, *, pool_id: str, owner: str, tick_lower: int, tick_upper: int) -> int:
        return self.positions.get((owner, tick_lower, tick_upper), 0)

    def execute(self, *, pool_id: str, request: HostCallbackRequest) -> BalanceDelta:
        self.requests.append(request)
        if isinstance(request, ModifyPositionRequest):
            return self._modify_position(request)
        if isinstance(request, SwapRequest):
            return self._swap(request)
        raise AmmHostError("unknown request")

    def settle(self, *, pool_id: str, currency: int, payer: str, amount: int) -> None:
        self._debit(currency, payer, amount)

    def take(self, *, pool_id: str, currency: int, recipient: str, amount: int) -> None:
        self.balances[(currency, recipient)] += amount

    def balance_of(self, *, pool_id: str, currency: int, account: str) -> int:
        return self.balances.get((currency, account), 0)

    def transfer(self, *, pool_id: str, currency: int, sender: str, recipient: str, amount: int) -> None:
        if self.fail_next_transfer:
            self.fail_next_transfer = False
            raise AmmHostError("transfer reverted")
        self._debit(currency, sender, amount)
        self.balances[(currency, recipient)] += amount

    def liquidity_of(self, tick_lower: int, tick_upper: int, owner: str = CUSTODY) -> int:
        return self.positions.get((owner, tick_lower, tick_upper), 0)

    def open_positions(self) -> dict[tuple[str, int, int], int]:
        return {key: value for key, value in self.positions.items() if value > 0}

    def swaps(self) -> list[SwapRequest]:
        return [request for request in self.requests if isinstance(request, SwapRequest)]

    def release_amount_in(self, tick_lower: int, tick_upper: int, *, is_release_token_first: bool = True) -> int:
        """Quanto do token liberado a posicao devolveria se fosse sacada agora."""
        liquidity = self.liquidity_of(tick_lower, tick_upper)
        sqrt_lower = get_sqrt_ratio_at_tick(tick_lower)
        sqrt_upper = get_sqrt_ratio_at_tick(tick_upper)
        if is_release_token_first:
            return get_amount0_for_liquidity(sqrt_lower, sqrt_upper, liquidity)
        return get_amount1_for_liquidity(sqrt_lower, sqrt_upper, liquidity)

    def _modify_position(self, request: ModifyPositionRequest) -> BalanceDelta:
        if request.liquidity_delta > 0 and self.fail_next_deposit:
            self.fail_next_deposit = False
            raise AmmHostError("deposit reverted")
        key = (CUSTODY, request.tick_lower, request.tick_upper)
        new_liquidity = self.positions[key] + request.liquidity_delta
        if new_liquidity < 0:
            raise AmmHostError("liquidity underflow")
        self.positions[key] = new_liquidity

        liquidity = abs(request.liquidity_delta)
        sqrt_lower = get_sqrt_ratio_at_tick(request.tick_lower)
        sqrt_upper = get_sqrt_ratio_at_tick(request.tick_upper)
        amount0 = amount1 = 0
        if self.current_tick < request.tick_lower:
            amount0 = get_amount0_for_liquidity(sqrt_lower, sqrt_upper, liquidity)
        elif self.current_tick >= request.tick_upper:
            amount1 = get_amount1_for_liquidity(sqrt_lower, sqrt_upper, liquidity)
        else:
            sqrt_current = get_sqrt_ratio_at_tick(self.current_tick)
            amount0 = get_amount0_for_liquidity(sqrt_current, sqrt_upper, liquidity)
            amount1 = get_amount1_for_liquidity(sqrt_lower, sqrt_current, liquidity)
        sign = 1 if request.liquidity_delta < 0 else -1
        return BalanceDelta(amount0=sign * amount0, amount1=sign * amount1)

    def _swap(self, request: SwapRequest) -> BalanceDelta:
        if self.on_before_swap is not None:
            self.on_before_swap()
        if self.fail_next_swap:
            self.fail_next_swap = False
            raise AmmHostError("swap reverted")
        consumed = min(request.amount_in, self.sell_capacity)
        self.sell_capacity -= consumed
        if self.tick_after_swap is not None:
            self.current_tick = self.tick_after_swap
        proceeds = consumed // 2
        if request.zero_for_one:
            return BalanceDelta(amount0=-consumed, amount1=proceeds)
        return BalanceDelta(amount0=proceeds, amount1=-consumed)

    def _debit(self, currency: int, account: str, amount: int) -> None:
        if self.balances[(currency, account)] < amount:
            raise AmmHostError(f"insufficient balance for {account}")
        self.balances[(currency, account)] -= amount


def make_state(
    *,
    total_amount: int = 1000 * 10**18,
    start_time: int = 10_000,
    end_time: int = 96_400,
    min_tick: int = 5_000,
    max_tick: int = 10_000,
    is_release_token_first: bool = True,
    epoch_size: int = 3_600,
    owner: str = OWNER,
    pool_id: str = POOL_ID,
) -> ReleaseScheduleState:
    return ReleaseScheduleState(
        pool_id=pool_id,
        schedule=ReleaseSchedule(
            total_amount=total_amount,
            start_time=start_time,
            end_time=end_time,
            min_tick=min_tick,
            max_tick=max_tick,
            is_release_token_first=is_release_token_first,
        ),
        progress=ReleaseProgress(
            owner=owner,
            epoch_size=epoch_size,
            current_floor_tick=max_tick,
        ),
    )


def fund_custody(host: FakeAmmHost, state: ReleaseScheduleState) -> None:
    host.balances[(state.schedule.release_currency, CUSTODY)] += state.schedule.total_amount
