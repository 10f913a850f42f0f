"""QuarterRepository and PositionRepository — concrete SQL implementations.

All queries use raw text() SQL (no ORM).
asyncpg NULL parameter pattern: CAST(:param AS TYPE) IS NULL required for None values.

Position state changes are compare-and-swap writes guarded by
status = 'PENDING': a row that has already reached a terminal state is
never written again.
"""

from datetime import datetime

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.wg_calendar.quarters import QuarterWindow
from src.wg_common.enums import Direction, TargetType
from src.wg_wager.domain.models import (
    BettingPeriod,
    MarketKey,
    MarketPool,
    Position,
    TargetStats,
)

# ---------------------------------------------------------------------------
# SQL: betting_periods
# ---------------------------------------------------------------------------

_PERIOD_COLUMNS = """
    quarter, starts_at, ends_at, betting_closes_at, status,
    resolved_at, created_at, updated_at
"""

_ENSURE_PERIOD_SQL = text(f"""
    INSERT INTO betting_periods (quarter, starts_at, ends_at, betting_closes_at, status)
    VALUES (:quarter, :starts_at, :ends_at, :betting_closes_at, :status)
    ON CONFLICT (quarter) DO UPDATE
        SET updated_at = betting_periods.updated_at
    RETURNING {_PERIOD_COLUMNS}
""")

_GET_PERIOD_SQL = text(f"""
    SELECT {_PERIOD_COLUMNS}
    FROM betting_periods
    WHERE quarter = :quarter
""")

_MARK_RESOLVED_SQL = text("""
    UPDATE betting_periods
    SET status = 'RESOLVED',
        resolved_at = :resolved_at,
        updated_at = NOW()
    WHERE quarter = :quarter AND status <> 'RESOLVED'
    RETURNING quarter
""")

_LIST_DUE_SQL = text("""
    SELECT quarter
    FROM betting_periods
    WHERE status <> 'RESOLVED' AND ends_at < :now
    ORDER BY starts_at
""")

# ---------------------------------------------------------------------------
# SQL: bets
# ---------------------------------------------------------------------------

_BET_COLUMNS = """
    id, user_id, period_id, target_type, target_id, direction,
    target_percentage, stake_tokens, house_fee_tokens, net_stake_tokens,
    status, actual_percentage, winnings, resolved_at, created_at, updated_at
"""

_INSERT_BET_SQL = text(f"""
    INSERT INTO bets
        (id, user_id, period_id, target_type, target_id, direction,
         target_percentage, stake_tokens, house_fee_tokens, net_stake_tokens, status)
    VALUES
        (:id, :user_id, :period_id, :target_type, :target_id, :direction,
         :target_percentage, :stake_tokens, :house_fee_tokens, :net_stake_tokens, :status)
    RETURNING {_BET_COLUMNS}
""")

_PENDING_MARKETS_SQL = text("""
    SELECT DISTINCT target_type, target_id
    FROM bets
    WHERE period_id = :quarter AND status = 'PENDING'
    ORDER BY target_type, target_id
""")

_LOCK_PENDING_SQL = text(f"""
    SELECT {_BET_COLUMNS}
    FROM bets
    WHERE period_id = :quarter
      AND target_type = :target_type
      AND target_id = :target_id
      AND status = 'PENDING'
    ORDER BY id
    FOR UPDATE
""")

_TRANSITION_SQL = text("""
    UPDATE bets
    SET status = :status,
        actual_percentage = :actual_percentage,
        winnings = :winnings,
        resolved_at = :resolved_at,
        updated_at = NOW()
    WHERE id = :id AND status = 'PENDING'
    RETURNING id
""")

_LIST_BY_USER_SQL = text(f"""
    SELECT {_BET_COLUMNS}
    FROM bets
    WHERE user_id = :user_id
      AND (CAST(:status AS TEXT) IS NULL OR status = CAST(:status AS TEXT))
      AND (CAST(:cursor_id AS TEXT) IS NULL OR id < CAST(:cursor_id AS TEXT))
    ORDER BY id DESC
    LIMIT :limit
""")

_MARKET_POOL_SQL = text("""
    SELECT direction,
           COUNT(*) AS positions,
           COALESCE(SUM(net_stake_tokens), 0) AS net_stake
    FROM bets
    WHERE period_id = :quarter
      AND target_type = :target_type
      AND target_id = :target_id
      AND status NOT IN ('CANCELLED', 'VOID')
    GROUP BY direction
""")

_TARGET_STATS_SQL = text("""
    SELECT COUNT(*) AS total_wagers,
           COALESCE(SUM(net_stake_tokens), 0) AS total_net_staked,
           COUNT(*) FILTER (WHERE status = 'PENDING') AS active_wagers
    FROM bets
    WHERE target_type = :target_type
      AND target_id = :target_id
      AND status NOT IN ('CANCELLED', 'VOID')
""")

_LIST_BY_USER_TARGET_SQL = text(f"""
    SELECT {_BET_COLUMNS}
    FROM bets
    WHERE user_id = :user_id
      AND target_type = :target_type
      AND target_id = :target_id
    ORDER BY id DESC
    LIMIT :limit
""")

# ---------------------------------------------------------------------------
# Row mappers
# ---------------------------------------------------------------------------


def _row_to_period(row: object) -> BettingPeriod:
    return BettingPeriod(
        quarter=row.quarter,  # type: ignore[attr-defined]
        starts_at=row.starts_at,  # type: ignore[attr-defined]
        ends_at=row.ends_at,  # type: ignore[attr-defined]
        betting_closes_at=row.betting_closes_at,  # type: ignore[attr-defined]
        status=row.status,  # type: ignore[attr-defined]
        resolved_at=row.resolved_at,  # type: ignore[attr-defined]
        created_at=row.created_at,  # type: ignore[attr-defined]
        updated_at=row.updated_at,  # type: ignore[attr-defined]
    )


def _row_to_position(row: object) -> Position:
    return Position(
        id=row.id,  # type: ignore[attr-defined]
        user_id=row.user_id,  # type: ignore[attr-defined]
        period_id=row.period_id,  # type: ignore[attr-defined]
        target_type=row.target_type,  # type: ignore[attr-defined]
        target_id=row.target_id,  # type: ignore[attr-defined]
        direction=row.direction,  # type: ignore[attr-defined]
        target_percentage=row.target_percentage,  # type: ignore[attr-defined]
        stake_tokens=row.stake_tokens,  # type: ignore[attr-defined]
        house_fee_tokens=row.house_fee_tokens,  # type: ignore[attr-defined]
        net_stake_tokens=row.net_stake_tokens,  # type: ignore[attr-defined]
        status=row.status,  # type: ignore[attr-defined]
        actual_percentage=row.actual_percentage,  # type: ignore[attr-defined]
        winnings=row.winnings,  # type: ignore[attr-defined]
        resolved_at=row.resolved_at,  # type: ignore[attr-defined]
        created_at=row.created_at,  # type: ignore[attr-defined]
        updated_at=row.updated_at,  # type: ignore[attr-defined]
    )


# ---------------------------------------------------------------------------
# Repositories
# ---------------------------------------------------------------------------


class QuarterRepository:
    """Quarter directory: get-or-create period rows and the single RESOLVED flip."""

    async def ensure_quarter(
        self, db: AsyncSession, window: QuarterWindow, status: str
    ) -> BettingPeriod:
        row = (
            await db.execute(
                _ENSURE_PERIOD_SQL,
                {
                    "quarter": window.quarter,
                    "starts_at": window.starts_at,
                    "ends_at": window.ends_at,
                    "betting_closes_at": window.betting_closes_at,
                    "status": status,
                },
            )
        ).fetchone()
        return _row_to_period(row)

    async def get_quarter(self, db: AsyncSession, quarter: str) -> BettingPeriod | None:
        row = (await db.execute(_GET_PERIOD_SQL, {"quarter": quarter})).fetchone()
        return _row_to_period(row) if row else None

    async def mark_resolved(
        self, db: AsyncSession, quarter: str, resolved_at: datetime
    ) -> bool:
        """Flip to RESOLVED. False when the row was already RESOLVED (or absent)."""
        row = (
            await db.execute(
                _MARK_RESOLVED_SQL, {"quarter": quarter, "resolved_at": resolved_at}
            )
        ).fetchone()
        return row is not None

    async def list_due_quarters(self, db: AsyncSession, now: datetime) -> list[str]:
        rows = (await db.execute(_LIST_DUE_SQL, {"now": now})).fetchall()
        return [row.quarter for row in rows]


class PositionRepository:
    async def create(self, db: AsyncSession, position: Position) -> Position:
        row = (
            await db.execute(
                _INSERT_BET_SQL,
                {
                    "id": position.id,
                    "user_id": position.user_id,
                    "period_id": position.period_id,
                    "target_type": position.target_type,
                    "target_id": position.target_id,
                    "direction": position.direction,
                    "target_percentage": position.target_percentage,
                    "stake_tokens": position.stake_tokens,
                    "house_fee_tokens": position.house_fee_tokens,
                    "net_stake_tokens": position.net_stake_tokens,
                    "status": position.status,
                },
            )
        ).fetchone()
        return _row_to_position(row)

    async def list_pending_markets(self, db: AsyncSession, quarter: str) -> list[MarketKey]:
        rows = (await db.execute(_PENDING_MARKETS_SQL, {"quarter": quarter})).fetchall()
        return [MarketKey(quarter, TargetType(row.target_type), row.target_id) for row in rows]

    async def lock_pending_positions(
        self, db: AsyncSession, key: MarketKey
    ) -> list[Position]:
        """Row-lock the market's PENDING positions for the caller's transaction.

        A concurrent run blocks here, then re-evaluates status = 'PENDING'
        and sees nothing left to settle.
        """
        rows = (
            await db.execute(
                _LOCK_PENDING_SQL,
                {
                    "quarter": key.quarter,
                    "target_type": key.target_type.value,
                    "target_id": key.target_id,
                },
            )
        ).fetchall()
        return [_row_to_position(row) for row in rows]

    async def transition(
        self,
        db: AsyncSession,
        position_id: str,
        status: str,
        actual_percentage: float | None,
        winnings: int | None,
        resolved_at: datetime,
    ) -> bool:
        """CAS PENDING -> terminal. Returns False if the row was not PENDING."""
        row = (
            await db.execute(
                _TRANSITION_SQL,
                {
                    "id": position_id,
                    "status": status,
                    "actual_percentage": actual_percentage,
                    "winnings": winnings,
                    "resolved_at": resolved_at,
                },
            )
        ).fetchone()
        return row is not None

    async def list_by_user(
        self,
        db: AsyncSession,
        user_id: str,
        status: str | None,
        cursor_id: str | None,
        limit: int,
    ) -> list[Position]:
        rows = (
            await db.execute(
                _LIST_BY_USER_SQL,
                {
                    "user_id": user_id,
                    "status": status,
                    "cursor_id": cursor_id,
                    "limit": limit,
                },
            )
        ).fetchall()
        return [_row_to_position(row) for row in rows]

    async def get_market_pool(self, db: AsyncSession, key: MarketKey) -> MarketPool:
        rows = (
            await db.execute(
                _MARKET_POOL_SQL,
                {
                    "quarter": key.quarter,
                    "target_type": key.target_type.value,
                    "target_id": key.target_id,
                },
            )
        ).fetchall()
        pool = MarketPool(
            key=key, long_positions=0, long_net_stake=0, short_positions=0, short_net_stake=0
        )
        for row in rows:
            if row.direction == Direction.LONG:
                pool.long_positions = int(row.positions)
                pool.long_net_stake = int(row.net_stake)
            else:
                pool.short_positions = int(row.positions)
                pool.short_net_stake = int(row.net_stake)
        return pool

    async def get_target_stats(
        self, db: AsyncSession, target_type: str, target_id: str
    ) -> TargetStats:
        row = (
            await db.execute(
                _TARGET_STATS_SQL, {"target_type": target_type, "target_id": target_id}
            )
        ).fetchone()
        return TargetStats(
            total_wagers=int(row.total_wagers),
            total_net_staked=int(row.total_net_staked),
            active_wagers=int(row.active_wagers),
        )

    async def list_by_user_target(
        self, db: AsyncSession, user_id: str, target_type: str, target_id: str, limit: int
    ) -> list[Position]:
        rows = (
            await db.execute(
                _LIST_BY_USER_TARGET_SQL,
                {
                    "user_id": user_id,
                    "target_type": target_type,
                    "target_id": target_id,
                    "limit": limit,
                },
            )
        ).fetchall()
        return [_row_to_position(row) for row in rows]
