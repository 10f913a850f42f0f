"""Domain models for wg_wager — pure dataclasses, no business logic."""

from dataclasses import dataclass
from datetime import datetime

from src.wg_common.enums import TargetType


@dataclass
class BettingPeriod:
    """Cached row for one quarter. Boundaries are derived from the id, never edited."""

    quarter: str
    starts_at: datetime
    ends_at: datetime
    betting_closes_at: datetime
    status: str                      # QuarterStatus value
    resolved_at: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


@dataclass(frozen=True)
class MarketKey:
    """One market = every position sharing a quarter and a target."""

    quarter: str
    target_type: TargetType
    target_id: str

    @property
    def reference(self) -> str:
        return f"{self.quarter}/{self.target_type.value}/{self.target_id}"


@dataclass
class Position:
    id: str
    user_id: str
    period_id: str                   # quarter id, FK to betting_periods
    target_type: str                 # TargetType value
    target_id: str
    direction: str                   # Direction value
    target_percentage: float
    stake_tokens: int                # gross, debited at placement
    house_fee_tokens: int
    net_stake_tokens: int            # stake - fee; pooled and at risk
    status: str                      # BetStatus value
    actual_percentage: float | None = None
    winnings: int | None = None
    resolved_at: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def market_key(self) -> MarketKey:
        return MarketKey(self.period_id, TargetType(self.target_type), self.target_id)


@dataclass(frozen=True)
class MrrSnapshot:
    target_type: str
    target_id: str
    quarter: str
    is_start_snapshot: bool
    mrr_cents: int
    snapshot_at: datetime


@dataclass
class BettingTarget:
    """Directory projection of a company or founder that can be wagered on."""

    target_type: str
    target_id: str
    owner_user_id: str | None        # company owner; the user itself for USER targets
    betting_enabled: bool
    billing_connected: bool

    def owned_by(self, user_id: str) -> bool:
        if self.target_type == TargetType.COMPANY:
            return self.owner_user_id == user_id
        return self.target_id == user_id


@dataclass
class MarketPool:
    key: MarketKey
    long_positions: int
    long_net_stake: int
    short_positions: int
    short_net_stake: int

    @property
    def total_net_stake(self) -> int:
        return self.long_net_stake + self.short_net_stake


@dataclass
class TargetStats:
    """All-time wager totals on one target, across quarters."""

    total_wagers: int
    total_net_staked: int
    active_wagers: int               # still PENDING
