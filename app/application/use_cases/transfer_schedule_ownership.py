from __future__ import annotations

import logging

from app.application.dto.release_schedule import TransferOwnershipOutput
from app.application.ports.release_schedule_store_port import ReleaseScheduleStorePort
from app.application.use_cases.release_schedule_common import load_state, require_owner


logger = logging.getLogger(__name__)


class TransferScheduleOwnershipUseCase:
    def __init__(self, *, store_port: ReleaseScheduleStorePort):
        self._store_port = store_port

    def execute(self, *, pool_id: str, caller: str, new_owner: str) -> TransferOwnershipOutput:
        state = load_state(self._store_port, pool_id)
        require_owner(state, caller)
        previous_owner = state.progress.owner
        self._store_port.save_owner(pool_id=pool_id, owner=new_owner)
        logger.info(
            "transfer_schedule_ownership: pool=%s previous_owner=%s owner=%s",
            pool_id,
            previous_owner,
            new_owner,
        )
        return TransferOwnershipOutput(pool_id=pool_id, previous_owner=previous_owner, owner=new_owner)
