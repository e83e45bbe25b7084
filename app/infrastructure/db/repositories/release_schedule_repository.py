from __future__ import annotations

import logging

from sqlalchemy import text
from sqlalchemy.exc import IntegrityError

from app.application.ports.release_schedule_store_port import ReleaseScheduleStorePort
from app.domain.entities.release_schedule import ReleaseScheduleState
from app.domain.exceptions import AlreadyInitializedError, ReleaseScheduleNotFoundError
from app.infrastructure.db.mappers.release_schedule_mapper import (
    map_release_schedule_state_to_params,
    map_row_to_release_schedule_state,
)


logger = logging.getLogger(__name__)


class SqlReleaseScheduleRepository(ReleaseScheduleStorePort):
    def __init__(self, engine):
        self._engine = engine

    def get(self, *, pool_id: str) -> ReleaseScheduleState | None:
        schedule_sql = """
            SELECT
                pool_id,
                total_amount,
                start_time,
                end_time,
                min_tick,
                max_tick,
                is_release_token_first,
                owner,
                epoch_size,
                amount_released,
                current_floor_tick,
                reconciliation_disabled
            FROM release_schedules
            WHERE pool_id = :pool_id
            LIMIT 1
        """
        epochs_sql = """
            SELECT epoch
            FROM release_reconciled_epochs
            WHERE pool_id = :pool_id
            ORDER BY epoch
        """
        with self._engine.connect() as conn:
            row = conn.execute(text(schedule_sql), {"pool_id": pool_id}).mappings().first()
            if row is None:
                return None
            epochs = conn.execute(text(epochs_sql), {"pool_id": pool_id}).scalars().all()
        return map_row_to_release_schedule_state(row, epochs)

    def create(self, *, state: ReleaseScheduleState) -> None:
        sql = """
            INSERT INTO release_schedules (
                pool_id, total_amount, start_time, end_time, min_tick, max_tick,
                is_release_token_first, owner, epoch_size, amount_released,
                current_floor_tick, reconciliation_disabled
            ) VALUES (
                :pool_id, :total_amount, :start_time, :end_time, :min_tick, :max_tick,
                :is_release_token_first, :owner, :epoch_size, :amount_released,
                :current_floor_tick, :reconciliation_disabled
            )
        """
        epochs_sql = """
            INSERT INTO release_reconciled_epochs (pool_id, epoch)
            VALUES (:pool_id, :epoch)
        """
        try:
            with self._engine.begin() as conn:
                conn.execute(text(sql), map_release_schedule_state_to_params(state))
                if state.progress.reconciled_epochs:
                    conn.execute(
                        text(epochs_sql),
                        [
                            {"pool_id": state.pool_id, "epoch": epoch}
                            for epoch in sorted(state.progress.reconciled_epochs)
                        ],
                    )
        except IntegrityError as exc:
            raise AlreadyInitializedError(
                f"Pool {state.pool_id} already has a release schedule."
            ) from exc
        logger.debug("release_schedule_repo: create pool=%s", state.pool_id)

    def claim_epoch(self, *, pool_id: str, epoch: int, amount_released: int) -> bool:
        # O UPDATE vem antes do INSERT para que o lock da linha serialize reconciliacoes da mesma pool.
        update_sql = """
            UPDATE release_schedules
            SET amount_released = :amount_released,
                updated_at = CURRENT_TIMESTAMP
            WHERE pool_id = :pool_id
              AND reconciliation_disabled = false
        """
        insert_sql = """
            INSERT INTO release_reconciled_epochs (pool_id, epoch)
            VALUES (:pool_id, :epoch)
            ON CONFLICT (pool_id, epoch) DO NOTHING
        """
        with self._engine.connect() as conn:
            with conn.begin() as trans:
                updated = conn.execute(
                    text(update_sql),
                    {"pool_id": pool_id, "amount_released": str(amount_released)},
                )
                if updated.rowcount == 0:
                    trans.rollback()
                    logger.info("release_schedule_repo: claim_rejected pool=%s epoch=%s reason=disabled", pool_id, epoch)
                    return False
                inserted = conn.execute(text(insert_sql), {"pool_id": pool_id, "epoch": epoch})
                if inserted.rowcount == 0:
                    trans.rollback()
                    logger.info("release_schedule_repo: claim_rejected pool=%s epoch=%s reason=claimed", pool_id, epoch)
                    return False
        logger.debug(
            "release_schedule_repo: claim pool=%s epoch=%s released=%s",
            pool_id,
            epoch,
            amount_released,
        )
        return True

    def save_floor(self, *, pool_id: str, current_floor_tick: int) -> None:
        sql = """
            UPDATE release_schedules
            SET current_floor_tick = :current_floor_tick,
                updated_at = CURRENT_TIMESTAMP
            WHERE pool_id = :pool_id
        """
        self._update(sql, {"pool_id": pool_id, "current_floor_tick": current_floor_tick})
        logger.debug("release_schedule_repo: save_floor pool=%s floor=%s", pool_id, current_floor_tick)

    def save_owner(self, *, pool_id: str, owner: str) -> None:
        sql = """
            UPDATE release_schedules
            SET owner = :owner,
                updated_at = CURRENT_TIMESTAMP
            WHERE pool_id = :pool_id
        """
        self._update(sql, {"pool_id": pool_id, "owner": owner})
        logger.debug("release_schedule_repo: save_owner pool=%s owner=%s", pool_id, owner)

    def set_reconciliation_disabled(self, *, pool_id: str, disabled: bool) -> bool:
        sql = """
            UPDATE release_schedules
            SET reconciliation_disabled = :disabled,
                updated_at = CURRENT_TIMESTAMP
            WHERE pool_id = :pool_id
              AND reconciliation_disabled = :previous
        """
        with self._engine.begin() as conn:
            result = conn.execute(
                text(sql),
                {"pool_id": pool_id, "disabled": disabled, "previous": not disabled},
            )
        changed = result.rowcount == 1
        logger.debug(
            "release_schedule_repo: set_disabled pool=%s disabled=%s changed=%s",
            pool_id,
            disabled,
            changed,
        )
        return changed

    def _update(self, sql: str, params: dict) -> None:
        with self._engine.begin() as conn:
            result = conn.execute(text(sql), params)
            if result.rowcount == 0:
                raise ReleaseScheduleNotFoundError(f"Release schedule not found for pool {params['pool_id']}.")
