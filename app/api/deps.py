from __future__ import annotations

from functools import lru_cache

from fastapi import Depends, Header, HTTPException

from app.application.dto.auth import ACCESS_TOKEN, HOST_TOKEN
from app.application.ports.token_port import TokenPort
from app.application.services.swap_guard import SwapGuard
from app.application.use_cases.finalize_release_schedule import FinalizeReleaseScheduleUseCase
from app.application.use_cases.get_release_schedule import GetReleaseScheduleUseCase
from app.application.use_cases.handle_before_swap import HandleBeforeSwapUseCase
from app.application.use_cases.initialize_release_schedule import InitializeReleaseScheduleUseCase
from app.application.use_cases.sync_release_schedule import SyncReleaseScheduleUseCase
from app.application.use_cases.transfer_schedule_ownership import TransferScheduleOwnershipUseCase
from app.infrastructure.clients.amm_host_client import AmmHostClient, AmmHostClientSettings
from app.infrastructure.db.engine import get_engine
from app.infrastructure.db.repositories.release_schedule_repository import (
    SqlReleaseScheduleRepository,
)
from app.infrastructure.security.token_service import JwtTokenService
from app.shared.config import get_settings


def _get_db_engine():
    settings = get_settings()
    if not settings.postgres_dsn:
        raise HTTPException(status_code=500, detail="POSTGRES_DSN is required.")
    return get_engine(settings.postgres_dsn)


@lru_cache(maxsize=1)
def _get_swap_guard() -> SwapGuard:
    return SwapGuard()


@lru_cache(maxsize=1)
def _get_amm_host_client() -> AmmHostClient:
    settings = get_settings()
    return AmmHostClient(
        AmmHostClientSettings(
            base_url=settings.amm_host_base_url,
            timeout_seconds=settings.amm_host_timeout_seconds,
            max_retries=settings.amm_host_max_retries,
        )
    )


def _get_release_schedule_repository() -> SqlReleaseScheduleRepository:
    return SqlReleaseScheduleRepository(_get_db_engine())


def get_sync_release_schedule_use_case() -> SyncReleaseScheduleUseCase:
    settings = get_settings()
    return SyncReleaseScheduleUseCase(
        store_port=_get_release_schedule_repository(),
        host_port=_get_amm_host_client(),
        swap_guard=_get_swap_guard(),
        custody_address=settings.custody_address,
    )


def get_initialize_release_schedule_use_case() -> InitializeReleaseScheduleUseCase:
    settings = get_settings()
    return InitializeReleaseScheduleUseCase(
        store_port=_get_release_schedule_repository(),
        host_port=_get_amm_host_client(),
        custody_address=settings.custody_address,
    )


def get_handle_before_swap_use_case() -> HandleBeforeSwapUseCase:
    return HandleBeforeSwapUseCase(
        store_port=_get_release_schedule_repository(),
        swap_guard=_get_swap_guard(),
        sync_use_case=get_sync_release_schedule_use_case(),
    )


def get_finalize_release_schedule_use_case() -> FinalizeReleaseScheduleUseCase:
    settings = get_settings()
    return FinalizeReleaseScheduleUseCase(
        store_port=_get_release_schedule_repository(),
        host_port=_get_amm_host_client(),
        sync_use_case=get_sync_release_schedule_use_case(),
        custody_address=settings.custody_address,
    )


def get_transfer_schedule_ownership_use_case() -> TransferScheduleOwnershipUseCase:
    return TransferScheduleOwnershipUseCase(store_port=_get_release_schedule_repository())


def get_release_schedule_use_case() -> GetReleaseScheduleUseCase:
    return GetReleaseScheduleUseCase(store_port=_get_release_schedule_repository())


def get_token_service() -> JwtTokenService:
    settings = get_settings()
    if not settings.jwt_secret:
        raise HTTPException(status_code=500, detail="JWT_SECRET is required.")
    return JwtTokenService(
        jwt_secret=settings.jwt_secret,
        access_ttl_minutes=settings.jwt_access_ttl_minutes,
    )


def _bearer_token(authorization: str) -> str:
    if not authorization.startswith("Bearer "):
        raise HTTPException(status_code=401, detail="Invalid authorization header.")
    token = authorization.replace("Bearer ", "", 1).strip()
    if not token:
        raise HTTPException(status_code=401, detail="Missing access token.")
    return token


def get_caller_address(
    authorization: str = Header(...),
    token_service: TokenPort = Depends(get_token_service),
) -> str:
    """Endereco do chamador, tirado do `sub` de um token de acesso assinado."""
    try:
        payload = token_service.decode_token(
            token=_bearer_token(authorization),
            token_type=ACCESS_TOKEN,
        )
    except ValueError as exc:
        raise HTTPException(status_code=401, detail=str(exc)) from exc
    return payload.subject


def require_amm_host(
    authorization: str = Header(...),
    token_service: TokenPort = Depends(get_token_service),
) -> str:
    try:
        payload = token_service.decode_token(
            token=_bearer_token(authorization),
            token_type=HOST_TOKEN,
        )
    except ValueError as exc:
        raise HTTPException(status_code=401, detail=str(exc)) from exc
    return payload.subject
