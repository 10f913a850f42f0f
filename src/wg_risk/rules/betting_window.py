from datetime import datetime

from src.wg_calendar.quarters import QuarterWindow, quarter_status
from src.wg_common.enums import QuarterStatus
from src.wg_common.errors import BettingClosedError


def check_betting_open(window: QuarterWindow, stored_status: str | None, now: datetime) -> None:
    """Positions are admitted only while the quarter is OPEN.

    OPEN means the upcoming quarter, strictly before it starts. Quarters
    further out are UPCOMING and not yet bettable.
    """
    if quarter_status(window, now, stored_status) != QuarterStatus.OPEN:
        raise BettingClosedError(window.quarter)
