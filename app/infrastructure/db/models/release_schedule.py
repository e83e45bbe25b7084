from __future__ import annotations

from datetime import datetime

from sqlalchemy import BigInteger, Boolean, DateTime, ForeignKey, Integer, Text, text
from sqlalchemy.orm import Mapped, mapped_column

from app.infrastructure.db.engine import Base


class ReleaseScheduleModel(Base):
    __tablename__ = "release_schedules"

    pool_id: Mapped[str] = mapped_column(Text, primary_key=True)
    # Quantidades em unidades minimas excedem 64 bits; guardadas como texto decimal.
    total_amount: Mapped[str] = mapped_column(Text, nullable=False)
    start_time: Mapped[int] = mapped_column(BigInteger, nullable=False)
    end_time: Mapped[int] = mapped_column(BigInteger, nullable=False)
    min_tick: Mapped[int] = mapped_column(Integer, nullable=False)
    max_tick: Mapped[int] = mapped_column(Integer, nullable=False)
    is_release_token_first: Mapped[bool] = mapped_column(Boolean, nullable=False)
    owner: Mapped[str] = mapped_column(Text, nullable=False)
    epoch_size: Mapped[int] = mapped_column(BigInteger, nullable=False)
    amount_released: Mapped[str] = mapped_column(Text, nullable=False, server_default=text("'0'"))
    current_floor_tick: Mapped[int] = mapped_column(Integer, nullable=False)
    reconciliation_disabled: Mapped[bool] = mapped_column(Boolean, nullable=False, server_default=text("false"))
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, server_default=text("CURRENT_TIMESTAMP"))
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, server_default=text("CURRENT_TIMESTAMP"))


class ReleaseReconciledEpochModel(Base):
    __tablename__ = "release_reconciled_epochs"

    pool_id: Mapped[str] = mapped_column(Text, ForeignKey("release_schedules.pool_id"), primary_key=True)
    epoch: Mapped[int] = mapped_column(BigInteger, primary_key=True)
    reconciled_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, server_default=text("CURRENT_TIMESTAMP"))
