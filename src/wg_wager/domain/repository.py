"""Repository Protocols — dependency inversion for testability.

Unit tests inject fakes that conform to these Protocols.
Infrastructure layer provides the real SQL implementations.
"""

from datetime import datetime
from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.wg_calendar.quarters import QuarterWindow
from src.wg_wager.domain.models import (
    BettingPeriod,
    BettingTarget,
    MarketKey,
    MarketPool,
    MrrSnapshot,
    Position,
    TargetStats,
)


class QuarterDirectoryProtocol(Protocol):
    async def ensure_quarter(
        self, db: AsyncSession, window: QuarterWindow, status: str
    ) -> BettingPeriod: ...

    async def get_quarter(self, db: AsyncSession, quarter: str) -> BettingPeriod | None: ...

    async def mark_resolved(
        self, db: AsyncSession, quarter: str, resolved_at: datetime
    ) -> bool: ...

    async def list_due_quarters(self, db: AsyncSession, now: datetime) -> list[str]: ...


class PositionRepositoryProtocol(Protocol):
    async def create(self, db: AsyncSession, position: Position) -> Position: ...

    async def list_pending_markets(self, db: AsyncSession, quarter: str) -> list[MarketKey]: ...

    async def lock_pending_positions(
        self, db: AsyncSession, key: MarketKey
    ) -> list[Position]: ...

    async def transition(
        self,
        db: AsyncSession,
        position_id: str,
        status: str,
        actual_percentage: float | None,
        winnings: int | None,
        resolved_at: datetime,
    ) -> bool: ...

    async def list_by_user(
        self,
        db: AsyncSession,
        user_id: str,
        status: str | None,
        cursor_id: str | None,
        limit: int,
    ) -> list[Position]: ...

    async def get_market_pool(self, db: AsyncSession, key: MarketKey) -> MarketPool: ...

    async def get_target_stats(
        self, db: AsyncSession, target_type: str, target_id: str
    ) -> TargetStats: ...

    async def list_by_user_target(
        self, db: AsyncSession, user_id: str, target_type: str, target_id: str, limit: int
    ) -> list[Position]: ...


class SnapshotStoreProtocol(Protocol):
    async def get_snapshot(
        self,
        db: AsyncSession,
        target_type: str,
        target_id: str,
        quarter: str,
        is_start: bool,
    ) -> MrrSnapshot | None: ...

    async def list_history(
        self, db: AsyncSession, target_type: str, target_id: str, limit: int
    ) -> list[MrrSnapshot]: ...


class TargetDirectoryProtocol(Protocol):
    async def get_target(
        self, db: AsyncSession, target_type: str, target_id: str
    ) -> BettingTarget | None: ...

    async def list_bettable(
        self,
        db: AsyncSession,
        viewer_id: str,
        target_type: str | None,
        after: tuple[str, str] | None,
        limit: int,
    ) -> list[BettingTarget]: ...
