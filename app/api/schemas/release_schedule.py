from __future__ import annotations

from decimal import Decimal

from pydantic import BaseModel, Field


class InitializeReleaseScheduleRequest(BaseModel):
    pool_id: str = Field(..., min_length=1, description="Identificador da pool no host AMM.")
    sender: str = Field(..., min_length=1, description="Endereco que cria a pool; vira owner e paga total_amount.")
    total_amount: int = Field(..., ge=0, description="Total do token liberado, em unidades minimas.")
    start_time: int = Field(..., ge=0, description="Inicio da janela (unix seconds).")
    end_time: int = Field(..., ge=0, description="Fim da janela (unix seconds).")
    min_tick: int = Field(..., description="Boundary estreito (final), relativo ao token liberado.")
    max_tick: int = Field(..., description="Boundary largo (inicial), relativo ao token liberado.")
    is_release_token_first: bool = Field(..., description="True quando o token liberado e currency0.")
    epoch_size: int = Field(..., gt=0, description="Granularidade da reconciliacao em segundos.")


class BeforeSwapRequest(BaseModel):
    pool_id: str = Field(..., min_length=1)


class TransferOwnershipRequest(BaseModel):
    new_owner: str = Field(..., min_length=1)


class ReleaseScheduleResponse(BaseModel):
    pool_id: str
    total_amount: str
    start_time: int
    end_time: int
    min_tick: int
    max_tick: int
    is_release_token_first: bool
    owner: str
    epoch_size: int
    amount_released: str
    current_floor_tick: int
    current_floor_price: Decimal
    reconciliation_disabled: bool
    reconciled_epochs: list[int]


class SyncResponse(BaseModel):
    pool_id: str
    outcome: str
    epoch: int | None
    delta: str
    amount_sold: str
    position_replaced: bool
    amount_released: str
    current_floor_tick: int


class BeforeSwapResponse(BaseModel):
    pool_id: str
    reconciled: bool
    skipped_reason: str | None


class FinalizeResponse(BaseModel):
    pool_id: str
    owner: str
    liquidity_withdrawn: str
    amount0_to_owner: str
    amount1_to_owner: str
    amount_released: str


class TransferOwnershipResponse(BaseModel):
    pool_id: str
    previous_owner: str
    owner: str
