"""SQLAlchemy ORM models for wg_wager.

Used for type reference only — persistence.py uses raw text() SQL.
Alembic migrations are the authoritative DDL source.
"""

from datetime import datetime

from sqlalchemy import BigInteger, Boolean, DateTime, Float, ForeignKey, String, func
from sqlalchemy.orm import Mapped, mapped_column

from src.wg_common.database import Base


class BettingPeriodORM(Base):
    __tablename__ = "betting_periods"

    quarter: Mapped[str] = mapped_column(String(7), primary_key=True)
    starts_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    ends_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    betting_closes_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    status: Mapped[str] = mapped_column(String(20), nullable=False)
    resolved_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )


class BetORM(Base):
    __tablename__ = "bets"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    user_id: Mapped[str] = mapped_column(String(64), nullable=False)
    period_id: Mapped[str] = mapped_column(
        String(7), ForeignKey("betting_periods.quarter"), nullable=False
    )
    target_type: Mapped[str] = mapped_column(String(10), nullable=False)
    target_id: Mapped[str] = mapped_column(String(64), nullable=False)
    direction: Mapped[str] = mapped_column(String(5), nullable=False)
    target_percentage: Mapped[float] = mapped_column(Float, nullable=False)
    stake_tokens: Mapped[int] = mapped_column(BigInteger, nullable=False)
    house_fee_tokens: Mapped[int] = mapped_column(BigInteger, nullable=False)
    net_stake_tokens: Mapped[int] = mapped_column(BigInteger, nullable=False)
    status: Mapped[str] = mapped_column(String(10), nullable=False)
    actual_percentage: Mapped[float | None] = mapped_column(Float)
    winnings: Mapped[int | None] = mapped_column(BigInteger)
    resolved_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )


class MrrSnapshotORM(Base):
    """Written by the MRR capture job; read-only here."""

    __tablename__ = "mrr_snapshots"

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True, autoincrement=True)
    target_type: Mapped[str] = mapped_column(String(10), nullable=False)
    target_id: Mapped[str] = mapped_column(String(64), nullable=False)
    quarter: Mapped[str] = mapped_column(String(7), nullable=False)
    is_start_snapshot: Mapped[bool] = mapped_column(Boolean, nullable=False)
    mrr_cents: Mapped[int] = mapped_column(BigInteger, nullable=False)
    snapshot_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)


class BettingTargetORM(Base):
    """Directory projection maintained by the profile service; read-only here."""

    __tablename__ = "betting_targets"

    target_type: Mapped[str] = mapped_column(String(10), primary_key=True)
    target_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    owner_user_id: Mapped[str | None] = mapped_column(String(64))
    betting_enabled: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    billing_connected: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
