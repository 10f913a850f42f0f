"""Distribution invariant verification, run before any settlement write."""

import logging

from src.wg_common.errors import PayoutInvariantError
from src.wg_settlement.domain.distributor import Distribution
from src.wg_wager.domain.models import Position

logger = logging.getLogger(__name__)


def verify_distribution(
    distribution: Distribution, winners: list[Position], losers: list[Position]
) -> None:
    """Raise PayoutInvariantError if the distribution would corrupt the ledger.

    INV-1: exactly one payout per winner, none for losers
    INV-2: every payout >= the winner's own net stake (never negative)
    INV-3: total paid <= winner stakes + loser pool (nothing fabricated)
    INV-4: truncation residue <= len(winners) - 1 when anybody won
    """
    winner_ids = {w.id for w in winners}
    loser_ids = {loser.id for loser in losers}
    paid_ids = [p.position_id for p in distribution.payouts]

    if len(paid_ids) != len(set(paid_ids)) or set(paid_ids) != winner_ids:
        raise PayoutInvariantError("INV-1 payouts do not match the winner set")
    if winner_ids & loser_ids:
        raise PayoutInvariantError("INV-1 a position is both winner and loser")

    for payout in distribution.payouts:
        if payout.net_stake_tokens < 0 or payout.winnings < payout.net_stake_tokens:
            raise PayoutInvariantError(
                f"INV-2 position {payout.position_id} winnings={payout.winnings} "
                f"< net_stake={payout.net_stake_tokens}"
            )

    ceiling = distribution.total_winner_stake + distribution.total_pool
    if distribution.total_paid > ceiling:
        raise PayoutInvariantError(
            f"INV-3 total_paid={distribution.total_paid} > stakes+pool={ceiling}"
        )

    if winners and distribution.house_residual > len(winners) - 1:
        raise PayoutInvariantError(
            f"INV-4 residual={distribution.house_residual} exceeds {len(winners) - 1}"
        )

    logger.debug(
        "Distribution OK: winners=%d, pool=%d, paid=%d, residual=%d",
        len(winners),
        distribution.total_pool,
        distribution.total_paid,
        distribution.house_residual,
    )
