"""Outcome resolution — realized MRR growth and won/lost classification.

Pure functions over already-loaded positions and snapshots; no I/O.
"""

from dataclasses import dataclass, field
from enum import Enum

from src.wg_common.enums import Direction
from src.wg_wager.domain.models import MrrSnapshot, Position

# Growth from a zero base is undefined; any revenue at all is capped here.
GROWTH_CAP_PERCENTAGE = 1000.0


class MarketOutcome(str, Enum):
    SETTLED = "SETTLED"      # winners/losers computed
    CANCELLED = "CANCELLED"  # snapshot data missing, net stakes refunded
    VOID = "VOID"            # target opted out, net stakes refunded


@dataclass
class Resolution:
    outcome: MarketOutcome
    actual_percentage: float | None = None
    winners: list[Position] = field(default_factory=list)
    losers: list[Position] = field(default_factory=list)
    refunded: list[Position] = field(default_factory=list)


def calculate_growth(start_mrr_cents: int, end_mrr_cents: int) -> float:
    """Percentage growth, unrounded. 0 -> >0 is capped at GROWTH_CAP_PERCENTAGE."""
    if start_mrr_cents == 0:
        return GROWTH_CAP_PERCENTAGE if end_mrr_cents > 0 else 0.0
    # plain IEEE division, not rounded: 100 -> 129 yields 28.999999999999996, below a 29 target
    return (end_mrr_cents - start_mrr_cents) / start_mrr_cents * 100


def is_position_won(direction: str, target_percentage: float, actual_percentage: float) -> bool:
    """LONG wins on >= (ties go to LONG); SHORT only wins strictly below the target."""
    if direction == Direction.LONG:
        return actual_percentage >= target_percentage
    return actual_percentage < target_percentage


def resolve_market(
    positions: list[Position],
    start: MrrSnapshot | None,
    end: MrrSnapshot | None,
    voided: bool = False,
) -> Resolution:
    if voided:
        return Resolution(outcome=MarketOutcome.VOID, refunded=list(positions))
    if start is None or end is None:
        return Resolution(outcome=MarketOutcome.CANCELLED, refunded=list(positions))

    actual = calculate_growth(start.mrr_cents, end.mrr_cents)
    resolution = Resolution(outcome=MarketOutcome.SETTLED, actual_percentage=actual)
    for position in positions:
        if is_position_won(position.direction, position.target_percentage, actual):
            resolution.winners.append(position)
        else:
            resolution.losers.append(position)
    return resolution
