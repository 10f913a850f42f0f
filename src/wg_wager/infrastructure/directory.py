"""Read-only adapters over data owned by other services.

mrr_snapshots is written by the MRR capture job; betting_targets is the
profile service's projection of bettable companies and founders.
"""

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.wg_wager.domain.models import BettingTarget, MrrSnapshot

_SNAPSHOT_COLUMNS = "target_type, target_id, quarter, is_start_snapshot, mrr_cents, snapshot_at"
_TARGET_COLUMNS = "target_type, target_id, owner_user_id, betting_enabled, billing_connected"

_GET_SNAPSHOT_SQL = text(f"""
    SELECT {_SNAPSHOT_COLUMNS}
    FROM mrr_snapshots
    WHERE target_type = :target_type
      AND target_id = :target_id
      AND quarter = :quarter
      AND is_start_snapshot = :is_start
""")

_SNAPSHOT_HISTORY_SQL = text(f"""
    SELECT {_SNAPSHOT_COLUMNS}
    FROM mrr_snapshots
    WHERE target_type = :target_type AND target_id = :target_id
    ORDER BY snapshot_at DESC
    LIMIT :limit
""")

_GET_TARGET_SQL = text(f"""
    SELECT {_TARGET_COLUMNS}
    FROM betting_targets
    WHERE target_type = :target_type AND target_id = :target_id
""")

# Same rules as check_target_eligible, so every listed target accepts the viewer's wager.
_LIST_BETTABLE_SQL = text(f"""
    SELECT {_TARGET_COLUMNS}
    FROM betting_targets
    WHERE betting_enabled
      AND (
            (target_type = 'COMPANY' AND billing_connected
                AND owner_user_id IS DISTINCT FROM :viewer_id)
         OR (target_type = 'USER' AND target_id <> :viewer_id)
      )
      AND (CAST(:target_type AS TEXT) IS NULL OR target_type = CAST(:target_type AS TEXT))
      AND (
            CAST(:after_type AS TEXT) IS NULL
         OR (target_type, target_id) > (CAST(:after_type AS TEXT), CAST(:after_id AS TEXT))
      )
    ORDER BY target_type, target_id
    LIMIT :limit
""")


def _row_to_snapshot(row: object) -> MrrSnapshot:
    return MrrSnapshot(
        target_type=row.target_type,  # type: ignore[attr-defined]
        target_id=row.target_id,  # type: ignore[attr-defined]
        quarter=row.quarter,  # type: ignore[attr-defined]
        is_start_snapshot=row.is_start_snapshot,  # type: ignore[attr-defined]
        mrr_cents=row.mrr_cents,  # type: ignore[attr-defined]
        snapshot_at=row.snapshot_at,  # type: ignore[attr-defined]
    )


def _row_to_target(row: object) -> BettingTarget:
    return BettingTarget(
        target_type=row.target_type,  # type: ignore[attr-defined]
        target_id=row.target_id,  # type: ignore[attr-defined]
        owner_user_id=row.owner_user_id,  # type: ignore[attr-defined]
        betting_enabled=row.betting_enabled,  # type: ignore[attr-defined]
        billing_connected=row.billing_connected,  # type: ignore[attr-defined]
    )


class SnapshotRepository:
    async def get_snapshot(
        self,
        db: AsyncSession,
        target_type: str,
        target_id: str,
        quarter: str,
        is_start: bool,
    ) -> MrrSnapshot | None:
        row = (
            await db.execute(
                _GET_SNAPSHOT_SQL,
                {
                    "target_type": target_type,
                    "target_id": target_id,
                    "quarter": quarter,
                    "is_start": is_start,
                },
            )
        ).fetchone()
        return _row_to_snapshot(row) if row else None

    async def list_history(
        self, db: AsyncSession, target_type: str, target_id: str, limit: int
    ) -> list[MrrSnapshot]:
        """Most recent snapshots first; 8 rows cover the last four quarters."""
        rows = (
            await db.execute(
                _SNAPSHOT_HISTORY_SQL,
                {"target_type": target_type, "target_id": target_id, "limit": limit},
            )
        ).fetchall()
        return [_row_to_snapshot(row) for row in rows]


class TargetRepository:
    async def get_target(
        self, db: AsyncSession, target_type: str, target_id: str
    ) -> BettingTarget | None:
        row = (
            await db.execute(
                _GET_TARGET_SQL, {"target_type": target_type, "target_id": target_id}
            )
        ).fetchone()
        return _row_to_target(row) if row else None

    async def list_bettable(
        self,
        db: AsyncSession,
        viewer_id: str,
        target_type: str | None,
        after: tuple[str, str] | None,
        limit: int,
    ) -> list[BettingTarget]:
        """Keyset page of targets the viewer may wager on, ordered by (type, id)."""
        after_type, after_id = after if after else (None, None)
        rows = (
            await db.execute(
                _LIST_BETTABLE_SQL,
                {
                    "viewer_id": viewer_id,
                    "target_type": target_type,
                    "after_type": after_type,
                    "after_id": after_id,
                    "limit": limit,
                },
            )
        ).fetchall()
        return [_row_to_target(row) for row in rows]
