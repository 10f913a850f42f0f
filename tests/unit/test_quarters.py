"""Tests for wg_calendar.quarters — all functions take an explicit now."""

from datetime import UTC, datetime, timedelta

import pytest

from src.wg_calendar.quarters import (
    available_quarters,
    current_quarter,
    has_ended,
    is_betting_open,
    next_quarter,
    parse_quarter,
    previous_quarter,
    quarter_display_name,
    quarter_status,
)
from src.wg_common.enums import QuarterStatus
from src.wg_common.errors import InvalidQuarterFormatError

FEB_15 = datetime(2026, 2, 15, 12, 0, tzinfo=UTC)


class TestQuarterOf:
    def test_current_quarter(self) -> None:
        assert current_quarter(FEB_15) == "2026-Q1"

    def test_month_boundaries(self) -> None:
        assert current_quarter(datetime(2026, 3, 31, 23, 59, tzinfo=UTC)) == "2026-Q1"
        assert current_quarter(datetime(2026, 4, 1, tzinfo=UTC)) == "2026-Q2"
        assert current_quarter(datetime(2026, 12, 31, tzinfo=UTC)) == "2026-Q4"

    def test_next_quarter_rolls_year(self) -> None:
        assert next_quarter(FEB_15) == "2026-Q2"
        assert next_quarter(datetime(2026, 11, 1, tzinfo=UTC)) == "2027-Q1"

    def test_previous_quarter_rolls_year(self) -> None:
        assert previous_quarter(FEB_15) == "2025-Q4"
        assert previous_quarter(datetime(2026, 8, 1, tzinfo=UTC)) == "2026-Q2"

    def test_naive_datetime_treated_as_utc(self) -> None:
        assert current_quarter(datetime(2026, 7, 1)) == "2026-Q3"


class TestParseQuarter:
    def test_window_bounds(self) -> None:
        w = parse_quarter("2026-Q1")
        assert w.starts_at == datetime(2026, 1, 1, tzinfo=UTC)
        assert w.ends_at == datetime(2026, 4, 1, tzinfo=UTC) - timedelta(microseconds=1)
        assert w.betting_closes_at == w.starts_at

    def test_q4_ends_at_year_end(self) -> None:
        w = parse_quarter("2025-Q4")
        assert w.ends_at == datetime(2025, 12, 31, 23, 59, 59, 999999, tzinfo=UTC)

    @pytest.mark.parametrize("bad", ["2026-Q5", "2026-Q0", "2026Q1", "26-Q1", "", "2026-q1"])
    def test_invalid_format_raises(self, bad: str) -> None:
        with pytest.raises(InvalidQuarterFormatError) as exc_info:
            parse_quarter(bad)
        assert exc_info.value.code == 3001


class TestWindowPredicates:
    def test_betting_open_strictly_before_start(self) -> None:
        w = parse_quarter("2026-Q2")
        assert is_betting_open(w, w.starts_at - timedelta(microseconds=1))
        assert not is_betting_open(w, w.starts_at)

    def test_has_ended_strictly_after_end(self) -> None:
        w = parse_quarter("2026-Q1")
        assert not has_ended(w, w.ends_at)
        assert has_ended(w, datetime(2026, 4, 1, tzinfo=UTC))


class TestQuarterStatus:
    def test_next_quarter_is_open(self) -> None:
        assert quarter_status(parse_quarter("2026-Q2"), FEB_15) == QuarterStatus.OPEN

    def test_started_quarter_is_closed(self) -> None:
        assert quarter_status(parse_quarter("2026-Q1"), FEB_15) == QuarterStatus.CLOSED

    def test_far_future_is_upcoming(self) -> None:
        assert quarter_status(parse_quarter("2026-Q3"), FEB_15) == QuarterStatus.UPCOMING

    def test_stored_resolved_wins(self) -> None:
        w = parse_quarter("2025-Q4")
        assert quarter_status(w, FEB_15, "RESOLVED") == QuarterStatus.RESOLVED


class TestListing:
    def test_available_quarters_current_then_next(self) -> None:
        assert [w.quarter for w in available_quarters(FEB_15)] == ["2026-Q1", "2026-Q2"]

    def test_display_name(self) -> None:
        assert quarter_display_name("2026-Q1") == "Q1 2026 (Jan - Mar)"
        assert quarter_display_name("2025-Q4") == "Q4 2025 (Oct - Dec)"

    def test_display_name_passthrough_for_garbage(self) -> None:
        assert quarter_display_name("soon") == "soon"
