"""WagerApplicationService — wager placement and read models.

place_wager is the admission path: every rule runs before the first write,
then the stake debit, fee entries and the PENDING position commit as one
transaction. Read methods run without an explicit transaction.
"""

import logging
from datetime import datetime

from sqlalchemy.ext.asyncio import AsyncSession

from src.wg_calendar.quarters import (
    available_quarters,
    current_quarter,
    parse_quarter,
    quarter_status,
)
from src.wg_common.datetime_utils import resolve_now
from src.wg_common.enums import BetStatus, LedgerEntryType, TargetType
from src.wg_common.errors import QuarterNotFoundError, TargetNotFoundError
from src.wg_common.id_generator import generate_id
from src.wg_common.tokens import calculate_house_fee, format_tokens
from src.wg_ledger.domain.repository import StakeLedgerProtocol
from src.wg_ledger.infrastructure.persistence import TokenLedger
from src.wg_risk.rules.betting_window import check_betting_open
from src.wg_risk.rules.stake_limit import check_stake_limit
from src.wg_risk.rules.target_eligibility import check_target_eligible
from src.wg_risk.rules.target_range import check_target_percentage
from src.wg_wager.application.schemas import (
    MarketPoolResponse,
    PeriodOut,
    PlaceWagerRequest,
    PlaceWagerResponse,
    PositionListResponse,
    PositionOut,
    SnapshotOut,
    TargetDetailResponse,
    TargetListResponse,
    TargetOut,
    TargetStatsOut,
    cursor_decode,
    cursor_encode,
    target_cursor_decode,
    target_cursor_encode,
)
from src.wg_wager.domain.models import MarketKey, Position
from src.wg_wager.domain.repository import (
    PositionRepositoryProtocol,
    QuarterDirectoryProtocol,
    SnapshotStoreProtocol,
    TargetDirectoryProtocol,
)
from src.wg_wager.infrastructure.directory import SnapshotRepository, TargetRepository
from src.wg_wager.infrastructure.persistence import PositionRepository, QuarterRepository

logger = logging.getLogger(__name__)

MY_WAGERS_ON_TARGET_LIMIT = 10
MRR_HISTORY_LIMIT = 8


class WagerApplicationService:
    def __init__(
        self,
        quarters: QuarterDirectoryProtocol | None = None,
        positions: PositionRepositoryProtocol | None = None,
        targets: TargetDirectoryProtocol | None = None,
        ledger: StakeLedgerProtocol | None = None,
        snapshots: SnapshotStoreProtocol | None = None,
    ) -> None:
        self._quarters: QuarterDirectoryProtocol = quarters or QuarterRepository()
        self._positions: PositionRepositoryProtocol = positions or PositionRepository()
        self._targets: TargetDirectoryProtocol = targets or TargetRepository()
        self._ledger: StakeLedgerProtocol = ledger or TokenLedger()
        self._snapshots: SnapshotStoreProtocol = snapshots or SnapshotRepository()

    async def list_periods(
        self, db: AsyncSession, now: datetime | None = None
    ) -> list[PeriodOut]:
        now = resolve_now(now)
        current = current_quarter(now)
        periods: list[PeriodOut] = []
        try:
            for window in available_quarters(now):
                period = await self._quarters.ensure_quarter(
                    db, window, quarter_status(window, now).value
                )
                status = quarter_status(window, now, period.status)
                periods.append(
                    PeriodOut.from_window(window, status.value, window.quarter == current)
                )
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        return periods

    async def place_wager(
        self,
        db: AsyncSession,
        user_id: str,
        req: PlaceWagerRequest,
        now: datetime | None = None,
    ) -> PlaceWagerResponse:
        now = resolve_now(now)

        # Stateless rules first: nothing touched yet
        check_stake_limit(req.stake_tokens)
        check_target_percentage(req.target_percentage)
        window = parse_quarter(req.quarter)
        check_betting_open(window, None, now)

        fee = calculate_house_fee(req.stake_tokens)
        net = req.stake_tokens - fee
        position_id = generate_id("bet_")
        target_label = req.target_type.value.lower()

        try:
            period = await self._quarters.ensure_quarter(
                db, window, quarter_status(window, now).value
            )
            check_betting_open(window, period.status, now)
            target = await self._targets.get_target(db, req.target_type.value, req.target_id)
            check_target_eligible(target, req.target_type.value, req.target_id, user_id)

            debit = await self._ledger.debit(
                db,
                user_id,
                req.stake_tokens,
                LedgerEntryType.BET_PLACED.value,
                position_id,
                f"Bet {req.stake_tokens} tokens on {target_label} MRR growth",
                {
                    "quarter": req.quarter,
                    "target_type": req.target_type.value,
                    "target_id": req.target_id,
                    "direction": req.direction.value,
                    "target_percentage": req.target_percentage,
                    "house_fee": fee,
                },
            )
            # Fee is part of the stake already debited; zero-amount entry for transparency
            await self._ledger.record(
                db,
                user_id,
                LedgerEntryType.BET_HOUSE_FEE.value,
                position_id,
                f"House fee: {fee} tokens",
                {"house_fee": fee},
            )
            await self._ledger.credit_house(
                db,
                fee,
                LedgerEntryType.HOUSE_FEE_REVENUE.value,
                position_id,
                "Fee from bet placement",
                {"user_id": user_id},
            )
            position = await self._positions.create(
                db,
                Position(
                    id=position_id,
                    user_id=user_id,
                    period_id=window.quarter,
                    target_type=req.target_type.value,
                    target_id=req.target_id,
                    direction=req.direction.value,
                    target_percentage=req.target_percentage,
                    stake_tokens=req.stake_tokens,
                    house_fee_tokens=fee,
                    net_stake_tokens=net,
                    status=BetStatus.PENDING.value,
                ),
            )
            await db.commit()
        except Exception:
            await db.rollback()
            raise

        logger.info(
            "Wager placed: %s user=%s %s %s/%s @ %.2f%% stake=%d net=%d",
            position.id,
            user_id,
            req.direction.value,
            req.target_type.value,
            req.target_id,
            req.target_percentage,
            req.stake_tokens,
            net,
        )
        return PlaceWagerResponse(
            position=PositionOut.from_domain(position),
            new_balance=debit.balance_after,
            new_balance_display=format_tokens(debit.balance_after),
            message=(
                f"Successfully placed {req.direction.value} bet on "
                f"{req.target_percentage}% growth"
            ),
        )

    async def list_my_wagers(
        self,
        db: AsyncSession,
        user_id: str,
        status: BetStatus | None,
        cursor: str | None,
        limit: int,
    ) -> PositionListResponse:
        cursor_id = cursor_decode(cursor)
        # Fetch limit+1 to detect has_more without a COUNT(*) query
        positions = await self._positions.list_by_user(
            db, user_id, status.value if status else None, cursor_id, limit + 1
        )
        has_more = len(positions) > limit
        page = positions[:limit]
        next_cursor = cursor_encode(page[-1].id) if has_more and page else None
        return PositionListResponse(
            items=[PositionOut.from_domain(p) for p in page],
            next_cursor=next_cursor,
            has_more=has_more,
        )

    async def get_market_pool(
        self, db: AsyncSession, quarter: str, target_type: TargetType, target_id: str
    ) -> MarketPoolResponse:
        window = parse_quarter(quarter)
        if await self._quarters.get_quarter(db, window.quarter) is None:
            raise QuarterNotFoundError(window.quarter)
        pool = await self._positions.get_market_pool(
            db, MarketKey(window.quarter, target_type, target_id)
        )
        return MarketPoolResponse.from_domain(pool)

    async def list_bettable_targets(
        self,
        db: AsyncSession,
        user_id: str,
        target_type: TargetType | None,
        cursor: str | None,
        limit: int,
    ) -> TargetListResponse:
        targets = await self._targets.list_bettable(
            db,
            user_id,
            target_type.value if target_type else None,
            target_cursor_decode(cursor),
            limit + 1,
        )
        has_more = len(targets) > limit
        page = targets[:limit]
        return TargetListResponse(
            items=[TargetOut.from_domain(t) for t in page],
            next_cursor=target_cursor_encode(page[-1]) if has_more and page else None,
            has_more=has_more,
        )

    async def get_target_detail(
        self,
        db: AsyncSession,
        user_id: str,
        target_type: TargetType,
        target_id: str,
        now: datetime | None = None,
    ) -> TargetDetailResponse:
        """Target card: open periods, all-time stats, the caller's wagers, MRR history.

        Read-only: period rows are looked up, never created, here.
        """
        now = resolve_now(now)
        target = await self._targets.get_target(db, target_type.value, target_id)
        if target is None:
            raise TargetNotFoundError(target_type.value, target_id)

        current = current_quarter(now)
        periods: list[PeriodOut] = []
        for window in available_quarters(now):
            stored = await self._quarters.get_quarter(db, window.quarter)
            status = quarter_status(window, now, stored.status if stored else None)
            periods.append(PeriodOut.from_window(window, status.value, window.quarter == current))

        stats = await self._positions.get_target_stats(db, target_type.value, target_id)
        mine = await self._positions.list_by_user_target(
            db, user_id, target_type.value, target_id, MY_WAGERS_ON_TARGET_LIMIT
        )
        history = await self._snapshots.list_history(
            db, target_type.value, target_id, MRR_HISTORY_LIMIT
        )
        is_owner = target.owned_by(user_id)
        return TargetDetailResponse(
            target=TargetOut.from_domain(target),
            betting_enabled=target.betting_enabled,
            is_owner=is_owner,
            latest_mrr=SnapshotOut.from_domain(history[0]) if is_owner and history else None,
            periods=periods,
            stats=TargetStatsOut.from_domain(stats),
            my_wagers=[PositionOut.from_domain(p) for p in mine],
            mrr_history=[SnapshotOut.from_domain(s) for s in history],
        )
