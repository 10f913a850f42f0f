"""Quarter calendar — pure functions mapping instants to quarter windows.

Every function takes ``now`` explicitly; nothing here reads the wall clock.
All windows are UTC. A quarter is exactly three calendar months:

  starts_at          first instant of the first month
  ends_at            last microsecond of the third month
  betting_closes_at  == starts_at (no new positions once the quarter begins)
"""

import re
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

from src.wg_common.datetime_utils import as_utc
from src.wg_common.enums import QuarterStatus
from src.wg_common.errors import InvalidQuarterFormatError

QUARTER_PATTERN = re.compile(r"^(\d{4})-Q([1-4])$")

_QUARTER_MONTHS = {
    1: "Jan - Mar",
    2: "Apr - Jun",
    3: "Jul - Sep",
    4: "Oct - Dec",
}


@dataclass(frozen=True)
class QuarterWindow:
    quarter: str
    starts_at: datetime
    ends_at: datetime
    betting_closes_at: datetime


def _format(year: int, quarter: int) -> str:
    return f"{year}-Q{quarter}"


def _quarter_of(now: datetime) -> tuple[int, int]:
    now = as_utc(now)
    return now.year, (now.month - 1) // 3 + 1


def current_quarter(now: datetime) -> str:
    year, quarter = _quarter_of(now)
    return _format(year, quarter)


def next_quarter(now: datetime) -> str:
    year, quarter = _quarter_of(now)
    if quarter == 4:
        return _format(year + 1, 1)
    return _format(year, quarter + 1)


def previous_quarter(now: datetime) -> str:
    """The most recently completed quarter (the settlement default)."""
    year, quarter = _quarter_of(now)
    if quarter == 1:
        return _format(year - 1, 4)
    return _format(year, quarter - 1)


def parse_quarter(quarter_id: str) -> QuarterWindow:
    """Parse ``YYYY-Qn`` into its window. Raises InvalidQuarterFormatError."""
    match = QUARTER_PATTERN.match(quarter_id or "")
    if match is None:
        raise InvalidQuarterFormatError(quarter_id)

    year = int(match.group(1))
    quarter = int(match.group(2))
    start_month = (quarter - 1) * 3 + 1

    starts_at = datetime(year, start_month, 1, tzinfo=timezone.utc)
    if quarter == 4:
        next_start = datetime(year + 1, 1, 1, tzinfo=timezone.utc)
    else:
        next_start = datetime(year, start_month + 3, 1, tzinfo=timezone.utc)
    ends_at = next_start - timedelta(microseconds=1)

    return QuarterWindow(
        quarter=quarter_id,
        starts_at=starts_at,
        ends_at=ends_at,
        betting_closes_at=starts_at,
    )


def is_betting_open(window: QuarterWindow, now: datetime) -> bool:
    return as_utc(now) < window.betting_closes_at


def has_ended(window: QuarterWindow, now: datetime) -> bool:
    return as_utc(now) > window.ends_at


def available_quarters(now: datetime) -> list[QuarterWindow]:
    """Current and next quarter, in that order."""
    return [parse_quarter(current_quarter(now)), parse_quarter(next_quarter(now))]


def quarter_status(
    window: QuarterWindow, now: datetime, stored_status: str | None = None
) -> QuarterStatus:
    """Effective lifecycle status. Only RESOLVED is ever stored as a transition;
    OPEN -> CLOSED is derived from ``now``.
    """
    if stored_status == QuarterStatus.RESOLVED:
        return QuarterStatus.RESOLVED
    if not is_betting_open(window, now):
        return QuarterStatus.CLOSED
    if window.quarter == next_quarter(now):
        return QuarterStatus.OPEN
    return QuarterStatus.UPCOMING


def quarter_display_name(quarter_id: str) -> str:
    """'2026-Q1' -> 'Q1 2026 (Jan - Mar)'. Unparseable ids are returned unchanged."""
    match = QUARTER_PATTERN.match(quarter_id)
    if match is None:
        return quarter_id
    year, quarter = match.group(1), int(match.group(2))
    return f"Q{quarter} {year} ({_QUARTER_MONTHS[quarter]})"
