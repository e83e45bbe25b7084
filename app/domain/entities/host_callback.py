from __future__ import annotations

from dataclasses import dataclass
from typing import Union


@dataclass(frozen=True)
class ModifyPositionRequest:
    tick_lower: int
    tick_upper: int
    liquidity_delta: int


@dataclass(frozen=True)
class SwapRequest:
    zero_for_one: bool
    amount_in: int
    sqrt_price_limit_x96: int


HostCallbackRequest = Union[ModifyPositionRequest, SwapRequest]


@dataclass(frozen=True)
class BalanceDelta:
    """Saldo liquido por moeda do ponto de vista deste sistema.

    Positivo: o host deve ao sistema. Negativo: o sistema deve ao host.
    """

    amount0: int
    amount1: int

    def for_currency(self, currency: int) -> int:
        return self.amount0 if currency == 0 else self.amount1
