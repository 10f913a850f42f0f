"""Settlement orchestrator — the quarterly batch driver.

Per invocation:
  1. Validate the quarter id and that the quarter has ended (no writes yet).
  2. Get-or-create the period row; a RESOLVED period is a logged no-op.
  3. Group PENDING positions into markets (quarter, target_type, target_id).
  4. Settle markets concurrently on a bounded worker pool. Each market runs
     in its own session and transaction: positions are locked FOR UPDATE,
     every status write is a CAS on PENDING, and the state change plus its
     ledger entry commit together with the rest of the market.
  5. Flip the period to RESOLVED only when every market succeeded, so a
     failed market is retried by the next run.

A market failure is logged and reported in the summary; it never aborts
sibling markets. settle_due likewise reports a quarter that fails outright
and moves on to the next one.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from config.settings import settings
from src.wg_calendar.quarters import has_ended, parse_quarter, previous_quarter, quarter_status
from src.wg_common.datetime_utils import resolve_now
from src.wg_common.enums import BetStatus, LedgerEntryType, QuarterStatus
from src.wg_common.errors import (
    AppError,
    ConcurrentSettlementError,
    InternalError,
    QuarterNotEndedError,
)
from src.wg_ledger.domain.repository import StakeLedgerProtocol
from src.wg_ledger.infrastructure.persistence import TokenLedger
from src.wg_settlement.application.schemas import MarketFailure, SettlementSummary
from src.wg_settlement.domain.distributor import distribute
from src.wg_settlement.domain.invariants import verify_distribution
from src.wg_settlement.domain.resolver import MarketOutcome, Resolution, resolve_market
from src.wg_wager.domain.models import MarketKey, Position
from src.wg_wager.domain.repository import (
    PositionRepositoryProtocol,
    QuarterDirectoryProtocol,
    SnapshotStoreProtocol,
)
from src.wg_wager.infrastructure.directory import SnapshotRepository
from src.wg_wager.infrastructure.persistence import PositionRepository, QuarterRepository

logger = logging.getLogger(__name__)

# Decides whether a whole market is void (e.g. the target opted out of betting).
VoidPolicy = Callable[[AsyncSession, MarketKey], Awaitable[bool]]

_REFUND_DESCRIPTIONS = {
    MarketOutcome.CANCELLED: "Refund for cancelled bet - missing MRR data",
    MarketOutcome.VOID: "Refund for void bet - target opted out",
}


@dataclass
class MarketResult:
    key: MarketKey
    outcome: MarketOutcome | None = None
    actual_percentage: float | None = None
    won: int = 0
    lost: int = 0
    refunded: int = 0
    tokens_distributed: int = 0
    house_residual: int = 0
    failure: MarketFailure | None = None


class SettlementService:
    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession] | Callable[[], Any] | None = None,
        quarters: QuarterDirectoryProtocol | None = None,
        positions: PositionRepositoryProtocol | None = None,
        snapshots: SnapshotStoreProtocol | None = None,
        ledger: StakeLedgerProtocol | None = None,
        void_policy: VoidPolicy | None = None,
        max_concurrency: int | None = None,
    ) -> None:
        if session_factory is None:
            from src.wg_common.database import async_session_factory

            session_factory = async_session_factory
        self._session_factory = session_factory
        self._quarters: QuarterDirectoryProtocol = quarters or QuarterRepository()
        self._positions: PositionRepositoryProtocol = positions or PositionRepository()
        self._snapshots: SnapshotStoreProtocol = snapshots or SnapshotRepository()
        self._ledger: StakeLedgerProtocol = ledger or TokenLedger()
        self._void_policy = void_policy
        self._max_concurrency = max(1, max_concurrency or settings.SETTLEMENT_MAX_CONCURRENCY)

    # ------------------------------------------------------------------
    # Entry points
    # ------------------------------------------------------------------

    async def settle(
        self, quarter: str | None = None, now: datetime | None = None
    ) -> SettlementSummary:
        now = resolve_now(now)
        quarter_id = quarter or previous_quarter(now)
        window = parse_quarter(quarter_id)
        if not has_ended(window, now):
            raise QuarterNotEndedError(quarter_id)

        async with self._session_factory() as db:
            async with db.begin():
                period = await self._quarters.ensure_quarter(
                    db, window, quarter_status(window, now).value
                )
                if period.status == QuarterStatus.RESOLVED:
                    logger.info("Quarter %s is already resolved; nothing to do", quarter_id)
                    return SettlementSummary(quarter=quarter_id, already_resolved=True)
                markets = await self._positions.list_pending_markets(db, quarter_id)

        logger.info("Settling quarter %s: %d markets", quarter_id, len(markets))
        semaphore = asyncio.Semaphore(self._max_concurrency)

        async def run(key: MarketKey) -> MarketResult:
            async with semaphore:
                return await self._settle_market_isolated(key, now)

        results = await asyncio.gather(*(run(key) for key in markets))
        summary = _summarize(quarter_id, results)

        if summary.errors:
            logger.warning(
                "Quarter %s left open: %d of %d markets failed and stay PENDING",
                quarter_id,
                len(summary.errors),
                len(markets),
            )
            return summary

        async with self._session_factory() as db:
            async with db.begin():
                summary.quarter_resolved = await self._quarters.mark_resolved(
                    db, quarter_id, now
                )
        logger.info(
            "Quarter %s resolved: resolved=%d won=%d lost=%d cancelled=%d distributed=%d",
            quarter_id,
            summary.total_resolved,
            summary.won,
            summary.lost,
            summary.cancelled,
            summary.tokens_distributed,
        )
        return summary

    async def settle_due(self, now: datetime | None = None) -> list[SettlementSummary]:
        """Settle every ended quarter that is not yet RESOLVED, oldest first."""
        now = resolve_now(now)
        async with self._session_factory() as db:
            async with db.begin():
                due = await self._quarters.list_due_quarters(db, now)
        if not due:
            logger.info("No quarters due for settlement")
        summaries: list[SettlementSummary] = []
        for quarter_id in due:
            try:
                summaries.append(await self.settle(quarter_id, now))
            except Exception as e:
                # the quarter stays unresolved and is picked up by the next run
                logger.exception("Quarter %s could not be settled", quarter_id)
                error = _as_app_error(e)
                summaries.append(
                    SettlementSummary(
                        quarter=quarter_id,
                        errors=[MarketFailure(code=error.code, message=error.message)],
                    )
                )
        return summaries

    # ------------------------------------------------------------------
    # Per-market work
    # ------------------------------------------------------------------

    async def _settle_market_isolated(self, key: MarketKey, now: datetime) -> MarketResult:
        try:
            return await self._settle_market(key, now)
        except Exception as e:
            logger.exception("Market %s failed", key.reference)
            error = _as_app_error(e)
        failure = MarketFailure(
            target_type=key.target_type.value,
            target_id=key.target_id,
            code=error.code,
            message=error.message,
        )
        return MarketResult(key=key, failure=failure)

    async def _settle_market(self, key: MarketKey, now: datetime) -> MarketResult:
        async with self._session_factory() as db:
            async with db.begin():
                positions = await self._positions.lock_pending_positions(db, key)
                if not positions:
                    # settled by a concurrent run between listing and locking
                    return MarketResult(key=key)

                voided = await self._void_policy(db, key) if self._void_policy else False
                start = end = None
                if not voided:
                    start = await self._snapshots.get_snapshot(
                        db, key.target_type.value, key.target_id, key.quarter, True
                    )
                    end = await self._snapshots.get_snapshot(
                        db, key.target_type.value, key.target_id, key.quarter, False
                    )
                resolution = resolve_market(positions, start, end, voided=voided)

                if resolution.outcome is MarketOutcome.SETTLED:
                    result = await self._apply_payouts(db, key, resolution, now)
                else:
                    result = await self._apply_refunds(db, key, resolution, now)

        logger.info(
            "Market %s: %s actual=%s won=%d lost=%d refunded=%d paid=%d residual=%d",
            key.reference,
            result.outcome.value if result.outcome else "-",
            f"{result.actual_percentage:.2f}%" if result.actual_percentage is not None else "n/a",
            result.won,
            result.lost,
            result.refunded,
            result.tokens_distributed,
            result.house_residual,
        )
        return result

    async def _apply_payouts(
        self, db: AsyncSession, key: MarketKey, resolution: Resolution, now: datetime
    ) -> MarketResult:
        actual = resolution.actual_percentage
        distribution = distribute(resolution.winners, resolution.losers)
        # fail closed: nothing is written for this market if this raises
        verify_distribution(distribution, resolution.winners, resolution.losers)

        result = MarketResult(key=key, outcome=MarketOutcome.SETTLED, actual_percentage=actual)
        payouts = {p.position_id: p for p in distribution.payouts}

        for position in sorted(resolution.winners + resolution.losers, key=_account_order):
            payout = payouts.get(position.id)
            if payout is not None:
                await self._transition(db, position, BetStatus.WON, actual, payout.winnings, now)
                await self._ledger.credit(
                    db,
                    position.user_id,
                    payout.winnings,
                    LedgerEntryType.BET_WON.value,
                    position.id,
                    f"Won bet on {position.target_type.lower()} MRR growth",
                    _metadata(position, actual),
                    earned=max(0, payout.profit),
                )
                result.won += 1
                result.tokens_distributed += payout.winnings
                continue

            await self._transition(db, position, BetStatus.LOST, actual, 0, now)
            await self._ledger.record(
                db,
                position.user_id,
                LedgerEntryType.BET_LOST.value,
                position.id,
                f"Lost bet on {position.target_type.lower()} MRR growth",
                _metadata(position, actual),
            )
            result.lost += 1

        # floor residue, or the whole pool when nobody won; HOUSE row is always locked last
        residual = distribution.house_residual
        if residual > 0:
            await self._ledger.credit_house(
                db,
                residual,
                LedgerEntryType.HOUSE_RESIDUAL.value,
                key.reference,
                "Undistributed pool remainder",
                {"quarter": key.quarter, "winners": len(resolution.winners)},
            )
        result.house_residual = residual
        return result

    async def _apply_refunds(
        self, db: AsyncSession, key: MarketKey, resolution: Resolution, now: datetime
    ) -> MarketResult:
        status = BetStatus.VOID if resolution.outcome is MarketOutcome.VOID else BetStatus.CANCELLED
        result = MarketResult(key=key, outcome=resolution.outcome)
        for position in sorted(resolution.refunded, key=_account_order):
            await self._transition(db, position, status, None, None, now)
            await self._ledger.credit(
                db,
                position.user_id,
                position.net_stake_tokens,
                LedgerEntryType.BET_REFUND.value,
                position.id,
                _REFUND_DESCRIPTIONS[resolution.outcome],
                {"quarter": key.quarter, "reason": resolution.outcome.value},
            )
            result.refunded += 1
            result.tokens_distributed += position.net_stake_tokens
        return result

    async def _transition(
        self,
        db: AsyncSession,
        position: Position,
        status: BetStatus,
        actual_percentage: float | None,
        winnings: int | None,
        now: datetime,
    ) -> None:
        moved = await self._positions.transition(
            db, position.id, status.value, actual_percentage, winnings, now
        )
        if not moved:
            raise ConcurrentSettlementError(position.id)


def _account_order(position: Position) -> tuple[str, str]:
    """Order in which a market updates token_accounts rows: by user, HOUSE after all bettors."""
    return position.user_id, position.id


def _as_app_error(exc: Exception) -> AppError:
    if isinstance(exc, AppError):
        return exc
    return InternalError(f"{type(exc).__name__}: {exc}")


def _metadata(position: Position, actual_percentage: float | None) -> dict[str, Any]:
    return {
        "quarter": position.period_id,
        "actual_percentage": actual_percentage,
        "target_percentage": position.target_percentage,
        "direction": position.direction,
    }


def _summarize(quarter: str, results: list[MarketResult]) -> SettlementSummary:
    summary = SettlementSummary(quarter=quarter, markets=len(results))
    for r in results:
        if r.failure is not None:
            summary.errors.append(r.failure)
            continue
        summary.won += r.won
        summary.lost += r.lost
        if r.outcome is MarketOutcome.VOID:
            summary.voided += r.refunded
        else:
            summary.cancelled += r.refunded
        summary.tokens_distributed += r.tokens_distributed
        summary.house_residual += r.house_residual
    summary.total_resolved = summary.won + summary.lost + summary.cancelled + summary.voided
    return summary
