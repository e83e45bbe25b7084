from __future__ import annotations

from app.domain.entities.release_schedule import ReleaseSchedule
from app.domain.exceptions import BeforeStartTimeError


def target_floor_tick(schedule: ReleaseSchedule, timestamp: int) -> int:
    """Floor da faixa no instante `timestamp`, em ticks relativos ao token liberado.

    Interpola linearmente de `wide_tick` (inicio) ate `narrow_tick` (fim).
    Multiplica antes de dividir; a divisao trunca em direcao ao tick inicial.
    """
    _ensure_started(schedule, timestamp)
    if timestamp >= schedule.end_time:
        return schedule.narrow_tick

    elapsed = timestamp - schedule.start_time
    total = schedule.end_time - schedule.start_time
    numerator = elapsed * (schedule.wide_tick - schedule.narrow_tick)
    return schedule.wide_tick - numerator // total


def target_released_amount(schedule: ReleaseSchedule, timestamp: int) -> int:
    _ensure_started(schedule, timestamp)
    if timestamp >= schedule.end_time:
        return schedule.total_amount

    elapsed = timestamp - schedule.start_time
    total = schedule.end_time - schedule.start_time
    return (elapsed * schedule.total_amount) // total


def _ensure_started(schedule: ReleaseSchedule, timestamp: int) -> None:
    if timestamp < schedule.start_time:
        raise BeforeStartTimeError(
            f"timestamp {timestamp} is before start_time {schedule.start_time}."
        )
