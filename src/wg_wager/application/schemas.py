"""Pydantic schemas and cursor utilities for the wager API."""

import base64
import json
from datetime import datetime

from pydantic import BaseModel, Field

from src.wg_calendar.quarters import QuarterWindow, quarter_display_name
from src.wg_common.enums import Direction, TargetType
from src.wg_common.tokens import format_percentage, format_tokens
from src.wg_wager.domain.models import (
    BettingTarget,
    MarketPool,
    MrrSnapshot,
    Position,
    TargetStats,
)

# ---------------------------------------------------------------------------
# Cursor utilities
# ---------------------------------------------------------------------------


def cursor_encode(last_id: str) -> str:
    """Encode the last position id of a page into an opaque Base64 cursor."""
    return base64.b64encode(json.dumps({"id": last_id}).encode()).decode()


def cursor_decode(cursor: str | None) -> str | None:
    """Decode a cursor back to the last seen position id. Returns None on error."""
    if cursor is None:
        return None
    try:
        payload = json.loads(base64.b64decode(cursor.encode()).decode())
        return str(payload["id"])
    except Exception:
        return None


def target_cursor_encode(target: BettingTarget) -> str:
    """Targets page on their (type, id) key rather than a single id."""
    payload = {"type": target.target_type, "id": target.target_id}
    return base64.b64encode(json.dumps(payload).encode()).decode()


def target_cursor_decode(cursor: str | None) -> tuple[str, str] | None:
    if cursor is None:
        return None
    try:
        payload = json.loads(base64.b64decode(cursor.encode()).decode())
        return str(payload["type"]), str(payload["id"])
    except Exception:
        return None


# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------


class PlaceWagerRequest(BaseModel):
    quarter: str = Field(..., pattern=r"^\d{4}-Q[1-4]$", examples=["2026-Q1"])
    target_type: TargetType
    target_id: str = Field(..., min_length=1, max_length=64)
    direction: Direction
    target_percentage: float = Field(..., allow_inf_nan=False)
    stake_tokens: int = Field(..., gt=0)


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------


class PeriodOut(BaseModel):
    quarter: str
    display_name: str
    starts_at: datetime
    ends_at: datetime
    betting_closes_at: datetime
    status: str
    is_current: bool

    @classmethod
    def from_window(cls, window: QuarterWindow, status: str, is_current: bool) -> "PeriodOut":
        return cls(
            quarter=window.quarter,
            display_name=quarter_display_name(window.quarter),
            starts_at=window.starts_at,
            ends_at=window.ends_at,
            betting_closes_at=window.betting_closes_at,
            status=status,
            is_current=is_current,
        )


class PositionOut(BaseModel):
    id: str
    quarter: str
    target_type: str
    target_id: str
    direction: str
    target_percentage: float
    target_percentage_display: str
    stake_tokens: int
    house_fee_tokens: int
    net_stake_tokens: int
    status: str
    actual_percentage: float | None
    winnings: int | None
    resolved_at: datetime | None
    created_at: datetime | None

    @classmethod
    def from_domain(cls, p: Position) -> "PositionOut":
        return cls(
            id=p.id,
            quarter=p.period_id,
            target_type=p.target_type,
            target_id=p.target_id,
            direction=p.direction,
            target_percentage=p.target_percentage,
            target_percentage_display=format_percentage(p.target_percentage),
            stake_tokens=p.stake_tokens,
            house_fee_tokens=p.house_fee_tokens,
            net_stake_tokens=p.net_stake_tokens,
            status=p.status,
            actual_percentage=p.actual_percentage,
            winnings=p.winnings,
            resolved_at=p.resolved_at,
            created_at=p.created_at,
        )


class PlaceWagerResponse(BaseModel):
    position: PositionOut
    new_balance: int
    new_balance_display: str
    message: str


class PositionListResponse(BaseModel):
    items: list[PositionOut]
    next_cursor: str | None
    has_more: bool


class MarketPoolResponse(BaseModel):
    quarter: str
    target_type: str
    target_id: str
    long_positions: int
    long_net_stake: int
    short_positions: int
    short_net_stake: int
    total_net_stake: int
    total_net_stake_display: str

    @classmethod
    def from_domain(cls, pool: MarketPool) -> "MarketPoolResponse":
        return cls(
            quarter=pool.key.quarter,
            target_type=pool.key.target_type.value,
            target_id=pool.key.target_id,
            long_positions=pool.long_positions,
            long_net_stake=pool.long_net_stake,
            short_positions=pool.short_positions,
            short_net_stake=pool.short_net_stake,
            total_net_stake=pool.total_net_stake,
            total_net_stake_display=format_tokens(pool.total_net_stake),
        )


class TargetOut(BaseModel):
    target_type: str
    target_id: str
    billing_connected: bool

    @classmethod
    def from_domain(cls, t: BettingTarget) -> "TargetOut":
        return cls(
            target_type=t.target_type,
            target_id=t.target_id,
            billing_connected=t.billing_connected,
        )


class TargetListResponse(BaseModel):
    items: list[TargetOut]
    next_cursor: str | None
    has_more: bool


class SnapshotOut(BaseModel):
    quarter: str
    is_start: bool
    mrr_cents: int
    snapshot_at: datetime

    @classmethod
    def from_domain(cls, s: MrrSnapshot) -> "SnapshotOut":
        return cls(
            quarter=s.quarter,
            is_start=s.is_start_snapshot,
            mrr_cents=s.mrr_cents,
            snapshot_at=s.snapshot_at,
        )


class TargetStatsOut(BaseModel):
    total_wagers: int
    total_net_staked: int
    total_net_staked_display: str
    active_wagers: int

    @classmethod
    def from_domain(cls, stats: TargetStats) -> "TargetStatsOut":
        return cls(
            total_wagers=stats.total_wagers,
            total_net_staked=stats.total_net_staked,
            total_net_staked_display=format_tokens(stats.total_net_staked),
            active_wagers=stats.active_wagers,
        )


class TargetDetailResponse(BaseModel):
    target: TargetOut
    betting_enabled: bool
    is_owner: bool
    latest_mrr: SnapshotOut | None   # owner only
    periods: list[PeriodOut]
    stats: TargetStatsOut
    my_wagers: list[PositionOut]
    mrr_history: list[SnapshotOut]
