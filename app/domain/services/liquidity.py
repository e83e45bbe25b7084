from __future__ import annotations

from app.domain.services.univ3_math import (
    get_liquidity_for_amount0,
    get_liquidity_for_amount1,
    get_sqrt_ratio_at_tick,
)


def release_liquidity_for_amount(
    *,
    amount: int,
    tick_lower: int,
    tick_upper: int,
    is_release_token_first: bool,
) -> int:
    """Liquidez de uma posicao so com token liberado em [tick_lower, tick_upper] (ticks da pool).

    currency0 fica acima do preco atual, currency1 abaixo; por isso a formula depende do lado.
    """
    if amount <= 0 or tick_lower >= tick_upper:
        return 0
    sqrt_lower = get_sqrt_ratio_at_tick(tick_lower)
    sqrt_upper = get_sqrt_ratio_at_tick(tick_upper)
    if is_release_token_first:
        return get_liquidity_for_amount0(sqrt_lower, sqrt_upper, amount)
    return get_liquidity_for_amount1(sqrt_lower, sqrt_upper, amount)
