from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException

from app.api.deps import (
    get_handle_before_swap_use_case,
    get_initialize_release_schedule_use_case,
    require_amm_host,
)
from app.api.routers.release_schedule import to_release_schedule_response
from app.api.schemas.release_schedule import (
    BeforeSwapRequest,
    BeforeSwapResponse,
    InitializeReleaseScheduleRequest,
    ReleaseScheduleResponse,
)
from app.application.dto.release_schedule import InitializeReleaseScheduleInput
from app.application.use_cases.handle_before_swap import HandleBeforeSwapUseCase
from app.application.use_cases.initialize_release_schedule import InitializeReleaseScheduleUseCase
from app.domain.exceptions import (
    AlreadyInitializedError,
    AmmHostError,
    InvalidEpochSizeError,
    InvalidTickRangeError,
    InvalidTimeRangeError,
)

router = APIRouter()


@router.post("/v1/hooks/after-initialize", response_model=ReleaseScheduleResponse)
def after_initialize(
    req: InitializeReleaseScheduleRequest,
    use_case: InitializeReleaseScheduleUseCase = Depends(get_initialize_release_schedule_use_case),
    _host: str = Depends(require_amm_host),
):
    try:
        result = use_case.execute(
            InitializeReleaseScheduleInput(
                pool_id=req.pool_id,
                sender=req.sender,
                total_amount=req.total_amount,
                start_time=req.start_time,
                end_time=req.end_time,
                min_tick=req.min_tick,
                max_tick=req.max_tick,
                is_release_token_first=req.is_release_token_first,
                epoch_size=req.epoch_size,
            )
        )
    except (InvalidTimeRangeError, InvalidTickRangeError, InvalidEpochSizeError) as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except AlreadyInitializedError as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from exc
    except AmmHostError as exc:
        raise HTTPException(status_code=502, detail=str(exc)) from exc

    return to_release_schedule_response(result)


@router.post("/v1/hooks/before-swap", response_model=BeforeSwapResponse)
def before_swap(
    req: BeforeSwapRequest,
    use_case: HandleBeforeSwapUseCase = Depends(get_handle_before_swap_use_case),
    _host: str = Depends(require_amm_host),
):
    try:
        result = use_case.execute(pool_id=req.pool_id)
    except AmmHostError as exc:
        raise HTTPException(status_code=502, detail=str(exc)) from exc

    return BeforeSwapResponse(
        pool_id=result.pool_id,
        reconciled=result.reconciled,
        skipped_reason=result.skipped_reason,
    )
