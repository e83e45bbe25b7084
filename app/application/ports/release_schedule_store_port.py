from __future__ import annotations

from typing import Protocol

from app.domain.entities.release_schedule import ReleaseScheduleState


class ReleaseScheduleStorePort(Protocol):
    def get(self, *, pool_id: str) -> ReleaseScheduleState | None:
        ...

    def create(self, *, state: ReleaseScheduleState) -> None:
        ...

    def claim_epoch(self, *, pool_id: str, epoch: int, amount_released: int) -> bool:
        """Registra a epoca e o novo `amount_released` numa unica transacao.

        Retorna False se a epoca ja foi registrada ou se a reconciliacao esta desligada.
        """
        ...

    def save_floor(self, *, pool_id: str, current_floor_tick: int) -> None:
        ...

    def save_owner(self, *, pool_id: str, owner: str) -> None:
        ...

    def set_reconciliation_disabled(self, *, pool_id: str, disabled: bool) -> bool:
        """Troca o flag apenas se ele ainda tiver o valor oposto. Retorna se trocou."""
        ...
