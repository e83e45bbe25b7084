from __future__ import annotations


def to_pool_tick(release_tick: int, *, is_release_token_first: bool) -> int:
    return release_tick if is_release_token_first else -release_tick


def to_release_tick(pool_tick: int, *, is_release_token_first: bool) -> int:
    return pool_tick if is_release_token_first else -pool_tick


def release_range_to_pool(
    floor_tick: int,
    wide_tick: int,
    *,
    is_release_token_first: bool,
) -> tuple[int, int]:
    if floor_tick > wide_tick:
        raise ValueError("floor_tick must not be above wide_tick.")
    if is_release_token_first:
        return floor_tick, wide_tick
    return -wide_tick, -floor_tick


def sells_zero_for_one(*, is_release_token_first: bool) -> bool:
    return is_release_token_first
