from __future__ import annotations

from app.application.dto.release_schedule import ReleaseScheduleOutput
from app.application.ports.release_schedule_store_port import ReleaseScheduleStorePort
from app.application.use_cases.release_schedule_common import load_state, to_output


class GetReleaseScheduleUseCase:
    def __init__(self, *, store_port: ReleaseScheduleStorePort):
        self._store_port = store_port

    def execute(self, *, pool_id: str) -> ReleaseScheduleOutput:
        return to_output(load_state(self._store_port, pool_id))
