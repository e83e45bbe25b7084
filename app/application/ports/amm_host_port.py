from __future__ import annotations

from typing import Protocol

from app.domain.entities.host_callback import BalanceDelta, HostCallbackRequest


class AmmHostPort(Protocol):
    def get_current_tick(self, *, pool_id: str) -> int:
        ...

    def get_usable_tick_bounds(self, *, pool_id: str) -> tuple[int, int]:
        ...

    def get_position_liquidity(
        self,
        *,
        pool_id: str,
        owner: str,
        tick_lower: int,
        tick_upper: int,
    ) -> int:
        ...

    def execute(self, *, pool_id: str, request: HostCallbackRequest) -> BalanceDelta:
        ...

    def settle(self, *, pool_id: str, currency: int, payer: str, amount: int) -> None:
        ...

    def take(self, *, pool_id: str, currency: int, recipient: str, amount: int) -> None:
        ...

    def balance_of(self, *, pool_id: str, currency: int, account: str) -> int:
        ...

    def transfer(
        self,
        *,
        pool_id: str,
        currency: int,
        sender: str,
        recipient: str,
        amount: int,
    ) -> None:
        ...
