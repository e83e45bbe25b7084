from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException

from app.api.deps import (
    get_caller_address,
    get_finalize_release_schedule_use_case,
    get_release_schedule_use_case,
    get_sync_release_schedule_use_case,
    get_transfer_schedule_ownership_use_case,
)
from app.api.schemas.release_schedule import (
    FinalizeResponse,
    ReleaseScheduleResponse,
    SyncResponse,
    TransferOwnershipRequest,
    TransferOwnershipResponse,
)
from app.application.dto.release_schedule import ReleaseScheduleOutput
from app.application.use_cases.finalize_release_schedule import FinalizeReleaseScheduleUseCase
from app.application.use_cases.get_release_schedule import GetReleaseScheduleUseCase
from app.application.use_cases.sync_release_schedule import SyncReleaseScheduleUseCase
from app.application.use_cases.transfer_schedule_ownership import TransferScheduleOwnershipUseCase
from app.domain.exceptions import (
    AmmHostError,
    BeforeEndTimeError,
    BeforeStartTimeError,
    ReconciliationDisabledError,
    ReleaseScheduleNotFoundError,
    UnauthorizedError,
)

router = APIRouter()


def to_release_schedule_response(result: ReleaseScheduleOutput) -> ReleaseScheduleResponse:
    return ReleaseScheduleResponse(
        pool_id=result.pool_id,
        total_amount=str(result.total_amount),
        start_time=result.start_time,
        end_time=result.end_time,
        min_tick=result.min_tick,
        max_tick=result.max_tick,
        is_release_token_first=result.is_release_token_first,
        owner=result.owner,
        epoch_size=result.epoch_size,
        amount_released=str(result.amount_released),
        current_floor_tick=result.current_floor_tick,
        current_floor_price=result.current_floor_price,
        reconciliation_disabled=result.reconciliation_disabled,
        reconciled_epochs=result.reconciled_epochs,
    )


@router.get("/v1/pools/{pool_id}/release-schedule", response_model=ReleaseScheduleResponse)
def get_release_schedule(
    pool_id: str,
    use_case: GetReleaseScheduleUseCase = Depends(get_release_schedule_use_case),
):
    try:
        result = use_case.execute(pool_id=pool_id)
    except ReleaseScheduleNotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc

    return to_release_schedule_response(result)


@router.post("/v1/pools/{pool_id}/sync", response_model=SyncResponse)
def sync_release_schedule(
    pool_id: str,
    use_case: SyncReleaseScheduleUseCase = Depends(get_sync_release_schedule_use_case),
):
    try:
        result = use_case.execute(pool_id=pool_id)
    except ReleaseScheduleNotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    except BeforeStartTimeError as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from exc
    except AmmHostError as exc:
        raise HTTPException(status_code=502, detail=str(exc)) from exc

    return SyncResponse(
        pool_id=result.pool_id,
        outcome=result.outcome.value,
        epoch=result.epoch,
        delta=str(result.delta),
        amount_sold=str(result.amount_sold),
        position_replaced=result.position_replaced,
        amount_released=str(result.amount_released),
        current_floor_tick=result.current_floor_tick,
    )


@router.post("/v1/pools/{pool_id}/finalize", response_model=FinalizeResponse)
def finalize_release_schedule(
    pool_id: str,
    caller: str = Depends(get_caller_address),
    use_case: FinalizeReleaseScheduleUseCase = Depends(get_finalize_release_schedule_use_case),
):
    try:
        result = use_case.execute(pool_id=pool_id, caller=caller)
    except ReleaseScheduleNotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    except UnauthorizedError as exc:
        raise HTTPException(status_code=403, detail=str(exc)) from exc
    except (BeforeEndTimeError, ReconciliationDisabledError) as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from exc
    except AmmHostError as exc:
        raise HTTPException(status_code=502, detail=str(exc)) from exc

    return FinalizeResponse(
        pool_id=result.pool_id,
        owner=result.owner,
        liquidity_withdrawn=str(result.liquidity_withdrawn),
        amount0_to_owner=str(result.amount0_to_owner),
        amount1_to_owner=str(result.amount1_to_owner),
        amount_released=str(result.amount_released),
    )


@router.post("/v1/pools/{pool_id}/ownership", response_model=TransferOwnershipResponse)
def transfer_ownership(
    pool_id: str,
    req: TransferOwnershipRequest,
    caller: str = Depends(get_caller_address),
    use_case: TransferScheduleOwnershipUseCase = Depends(get_transfer_schedule_ownership_use_case),
):
    try:
        result = use_case.execute(pool_id=pool_id, caller=caller, new_owner=req.new_owner)
    except ReleaseScheduleNotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    except UnauthorizedError as exc:
        raise HTTPException(status_code=403, detail=str(exc)) from exc

    return TransferOwnershipResponse(
        pool_id=result.pool_id,
        previous_owner=result.previous_owner,
        owner=result.owner,
    )
