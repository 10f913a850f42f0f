"""Unit tests for WagerApplicationService using mock repositories."""

from datetime import UTC, datetime
from typing import Any
from unittest.mock import AsyncMock

import pytest
from factories import make_position

from src.wg_calendar.quarters import parse_quarter
from src.wg_common.enums import BetStatus, Direction, TargetType
from src.wg_common.errors import (
    BettingClosedError,
    InsufficientTokenBalanceError,
    QuarterNotFoundError,
    SelfWagerError,
    StakeOutOfRangeError,
    TargetNotFoundError,
)
from src.wg_ledger.domain.models import LedgerEntry
from src.wg_wager.application.schemas import (
    PlaceWagerRequest,
    cursor_decode,
    cursor_encode,
    target_cursor_decode,
    target_cursor_encode,
)
from src.wg_wager.application.service import WagerApplicationService
from src.wg_wager.domain.models import (
    BettingPeriod,
    BettingTarget,
    MarketKey,
    MarketPool,
    MrrSnapshot,
    TargetStats,
)

FEB_15 = datetime(2026, 2, 15, tzinfo=UTC)


def _period(quarter: str = "2026-Q2", status: str = "OPEN") -> BettingPeriod:
    w = parse_quarter(quarter)
    return BettingPeriod(
        quarter=quarter,
        starts_at=w.starts_at,
        ends_at=w.ends_at,
        betting_closes_at=w.betting_closes_at,
        status=status,
    )


def _request(**kwargs: Any) -> PlaceWagerRequest:
    data = {
        "quarter": "2026-Q2",
        "target_type": "COMPANY",
        "target_id": "acme",
        "direction": "LONG",
        "target_percentage": 20.0,
        "stake_tokens": 100,
    }
    data.update(kwargs)
    return PlaceWagerRequest(**data)


def _service(
    period: BettingPeriod | None = None,
    target: BettingTarget | None = None,
    debit_error: Exception | None = None,
) -> tuple[WagerApplicationService, dict[str, AsyncMock]]:
    quarters = AsyncMock()
    quarters.ensure_quarter.return_value = period or _period()
    targets = AsyncMock()
    targets.get_target.return_value = target
    positions = AsyncMock()
    positions.create.side_effect = lambda db, p: p
    snapshots = AsyncMock()
    ledger = AsyncMock()
    if debit_error is not None:
        ledger.debit.side_effect = debit_error
    else:
        ledger.debit.return_value = LedgerEntry(
            id=1, user_id="bettor", entry_type="BET_PLACED", amount=-100, balance_after=900
        )
    svc = WagerApplicationService(
        quarters=quarters,
        positions=positions,
        targets=targets,
        ledger=ledger,
        snapshots=snapshots,
    )
    return svc, {
        "quarters": quarters,
        "targets": targets,
        "positions": positions,
        "ledger": ledger,
        "snapshots": snapshots,
    }


ACME = BettingTarget("COMPANY", "acme", "founder-1", True, True)


class TestPlaceWager:
    async def test_happy_path(self) -> None:
        svc, mocks = _service(target=ACME)
        db = AsyncMock()

        result = await svc.place_wager(db, "bettor", _request(), now=FEB_15)

        assert result.position.status == "PENDING"
        assert result.position.stake_tokens == 100
        assert result.position.house_fee_tokens == 5
        assert result.position.net_stake_tokens == 95
        assert result.position.target_percentage_display == "+20.0%"
        assert result.position.id.startswith("bet_")
        assert result.new_balance == 900
        assert result.new_balance_display == "900"
        db.commit.assert_awaited_once()

    async def test_ledger_writes(self) -> None:
        svc, mocks = _service(target=ACME)
        result = await svc.place_wager(AsyncMock(), "bettor", _request(), now=FEB_15)

        debit = mocks["ledger"].debit.call_args.args
        assert debit[1:5] == ("bettor", 100, "BET_PLACED", result.position.id)
        fee_audit = mocks["ledger"].record.call_args.args
        assert fee_audit[1:4] == ("bettor", "BET_HOUSE_FEE", result.position.id)
        house = mocks["ledger"].credit_house.call_args.args
        assert house[1:4] == (5, "HOUSE_FEE_REVENUE", result.position.id)

    async def test_stake_checked_before_any_io(self) -> None:
        svc, mocks = _service(target=ACME)
        db = AsyncMock()
        with pytest.raises(StakeOutOfRangeError):
            await svc.place_wager(db, "bettor", _request(stake_tokens=5), now=FEB_15)
        mocks["quarters"].ensure_quarter.assert_not_awaited()
        db.commit.assert_not_awaited()

    async def test_started_quarter_rejected(self) -> None:
        svc, mocks = _service(target=ACME)
        with pytest.raises(BettingClosedError):
            await svc.place_wager(AsyncMock(), "bettor", _request(quarter="2026-Q1"), now=FEB_15)
        mocks["ledger"].debit.assert_not_awaited()

    async def test_stored_resolved_period_rejected(self) -> None:
        svc, mocks = _service(period=_period(status="RESOLVED"), target=ACME)
        db = AsyncMock()
        with pytest.raises(BettingClosedError):
            await svc.place_wager(db, "bettor", _request(), now=FEB_15)
        db.rollback.assert_awaited_once()

    async def test_unknown_target(self) -> None:
        svc, _ = _service(target=None)
        with pytest.raises(TargetNotFoundError):
            await svc.place_wager(AsyncMock(), "bettor", _request(), now=FEB_15)

    async def test_owner_cannot_bet(self) -> None:
        svc, mocks = _service(target=ACME)
        with pytest.raises(SelfWagerError):
            await svc.place_wager(AsyncMock(), "founder-1", _request(), now=FEB_15)
        mocks["positions"].create.assert_not_awaited()

    async def test_insufficient_balance_rolls_back(self) -> None:
        svc, mocks = _service(target=ACME, debit_error=InsufficientTokenBalanceError(100, 3))
        db = AsyncMock()
        with pytest.raises(InsufficientTokenBalanceError):
            await svc.place_wager(db, "bettor", _request(), now=FEB_15)
        db.rollback.assert_awaited_once()
        db.commit.assert_not_awaited()
        mocks["positions"].create.assert_not_awaited()


class TestListPeriods:
    async def test_current_and_next(self) -> None:
        svc, mocks = _service()
        mocks["quarters"].ensure_quarter.side_effect = [
            _period("2026-Q1", "CLOSED"),
            _period("2026-Q2", "OPEN"),
        ]
        periods = await svc.list_periods(AsyncMock(), now=FEB_15)

        assert [(p.quarter, p.status, p.is_current) for p in periods] == [
            ("2026-Q1", "CLOSED", True),
            ("2026-Q2", "OPEN", False),
        ]
        assert periods[1].display_name == "Q2 2026 (Apr - Jun)"
        stored_status = mocks["quarters"].ensure_quarter.call_args_list[1].args[2]
        assert stored_status == "OPEN"


class TestListMyWagers:
    async def test_has_more_and_cursor(self) -> None:
        svc, mocks = _service()
        rows = [make_position(user_id="bettor") for _ in range(3)]
        mocks["positions"].list_by_user.return_value = rows

        page = await svc.list_my_wagers(AsyncMock(), "bettor", None, None, 2)

        assert len(page.items) == 2
        assert page.has_more is True
        assert cursor_decode(page.next_cursor) == rows[1].id
        assert mocks["positions"].list_by_user.call_args.args[1:] == ("bettor", None, None, 3)

    async def test_last_page(self) -> None:
        svc, mocks = _service()
        mocks["positions"].list_by_user.return_value = [make_position()]
        cursor = cursor_encode("bet_0000000000000000009")

        page = await svc.list_my_wagers(AsyncMock(), "bettor", BetStatus.WON, cursor, 20)

        assert page.has_more is False
        assert page.next_cursor is None
        args = mocks["positions"].list_by_user.call_args.args
        assert args[2:4] == ("WON", "bet_0000000000000000009")

    def test_bad_cursor_decodes_to_none(self) -> None:
        assert cursor_decode("not-base64!!") is None
        assert cursor_decode(None) is None


class TestMarketPool:
    async def test_pool_view(self) -> None:
        svc, mocks = _service()
        key = MarketKey("2026-Q2", TargetType.COMPANY, "acme")
        mocks["positions"].get_market_pool.return_value = MarketPool(key, 2, 9500, 1, 3000)

        pool = await svc.get_market_pool(AsyncMock(), "2026-Q2", TargetType.COMPANY, "acme")

        assert pool.long_net_stake == 9500
        assert pool.total_net_stake == 12500
        assert pool.total_net_stake_display == "12,500"
        assert mocks["positions"].get_market_pool.call_args.args[1] == key

    async def test_unknown_quarter(self) -> None:
        svc, mocks = _service()
        mocks["quarters"].get_quarter.return_value = None
        with pytest.raises(QuarterNotFoundError):
            await svc.get_market_pool(AsyncMock(), "2031-Q1", TargetType.USER, "u-1")
        mocks["positions"].get_market_pool.assert_not_awaited()


class TestBettableTargets:
    async def test_pages_on_type_and_id(self) -> None:
        svc, mocks = _service()
        rows = [
            BettingTarget("COMPANY", "acme", "founder-1", True, True),
            BettingTarget("COMPANY", "globex", "founder-2", True, True),
            BettingTarget("USER", "u-7", None, True, False),
        ]
        mocks["targets"].list_bettable.return_value = rows

        page = await svc.list_bettable_targets(AsyncMock(), "bettor", None, None, 2)

        assert [t.target_id for t in page.items] == ["acme", "globex"]
        assert page.has_more is True
        assert target_cursor_decode(page.next_cursor) == ("COMPANY", "globex")
        assert mocks["targets"].list_bettable.call_args.args[1:] == ("bettor", None, None, 3)

    async def test_type_filter_and_cursor_forwarded(self) -> None:
        svc, mocks = _service()
        mocks["targets"].list_bettable.return_value = []
        cursor = target_cursor_encode(ACME)

        page = await svc.list_bettable_targets(
            AsyncMock(), "bettor", TargetType.COMPANY, cursor, 20
        )

        assert page.items == []
        assert page.next_cursor is None
        args = mocks["targets"].list_bettable.call_args.args
        assert args[2:4] == ("COMPANY", ("COMPANY", "acme"))

    def test_bad_target_cursor_decodes_to_none(self) -> None:
        assert target_cursor_decode("bm9wZQ==") is None
        assert target_cursor_decode(None) is None


def _snapshot(quarter: str, is_start: bool, mrr_cents: int) -> MrrSnapshot:
    return MrrSnapshot("COMPANY", "acme", quarter, is_start, mrr_cents, FEB_15)


class TestTargetDetail:
    async def test_bettor_view(self) -> None:
        svc, mocks = _service(target=ACME)
        mocks["quarters"].get_quarter.return_value = None
        mocks["positions"].get_target_stats.return_value = TargetStats(4, 380, 3)
        mocks["positions"].list_by_user_target.return_value = [
            make_position(user_id="bettor", target_id="acme")
        ]
        mocks["snapshots"].list_history.return_value = [
            _snapshot("2026-Q1", True, 500_000),
            _snapshot("2025-Q4", False, 480_000),
        ]

        detail = await svc.get_target_detail(
            AsyncMock(), "bettor", TargetType.COMPANY, "acme", now=FEB_15
        )

        assert detail.is_owner is False
        assert detail.latest_mrr is None
        assert [(p.quarter, p.status) for p in detail.periods] == [
            ("2026-Q1", "CLOSED"),
            ("2026-Q2", "OPEN"),
        ]
        assert detail.stats.total_net_staked == 380
        assert detail.stats.active_wagers == 3
        assert len(detail.my_wagers) == 1
        assert [s.mrr_cents for s in detail.mrr_history] == [500_000, 480_000]
        args = mocks["positions"].list_by_user_target.call_args.args
        assert args[1:4] == ("bettor", "COMPANY", "acme")
        mocks["quarters"].ensure_quarter.assert_not_awaited()

    async def test_owner_sees_latest_mrr(self) -> None:
        svc, mocks = _service(target=ACME)
        mocks["quarters"].get_quarter.return_value = None
        mocks["positions"].get_target_stats.return_value = TargetStats(0, 0, 0)
        mocks["positions"].list_by_user_target.return_value = []
        mocks["snapshots"].list_history.return_value = [_snapshot("2026-Q1", True, 500_000)]

        detail = await svc.get_target_detail(
            AsyncMock(), "founder-1", TargetType.COMPANY, "acme", now=FEB_15
        )

        assert detail.is_owner is True
        assert detail.latest_mrr is not None
        assert detail.latest_mrr.mrr_cents == 500_000

    async def test_resolved_quarter_reported(self) -> None:
        svc, mocks = _service(target=ACME)
        mocks["quarters"].get_quarter.side_effect = [_period("2026-Q1", "RESOLVED"), None]
        mocks["positions"].get_target_stats.return_value = TargetStats(0, 0, 0)
        mocks["positions"].list_by_user_target.return_value = []
        mocks["snapshots"].list_history.return_value = []

        detail = await svc.get_target_detail(
            AsyncMock(), "bettor", TargetType.COMPANY, "acme", now=FEB_15
        )

        assert detail.periods[0].status == "RESOLVED"
        assert detail.mrr_history == []

    async def test_unknown_target(self) -> None:
        svc, mocks = _service(target=None)
        with pytest.raises(TargetNotFoundError):
            await svc.get_target_detail(AsyncMock(), "bettor", TargetType.USER, "ghost")
        mocks["positions"].get_target_stats.assert_not_awaited()


def test_request_rejects_bad_enum() -> None:
    with pytest.raises(ValueError):
        _request(direction="SIDEWAYS")
    assert _request().direction is Direction.LONG
