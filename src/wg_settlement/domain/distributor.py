"""Pari-mutuel payout distribution.

Every winner gets their own net stake back plus a floor-truncated share of
the losers' pooled net stakes, proportional to their net stake:

    winnings = net + floor(total_pool * net / total_winner_stake)

Integer floor on the exact product keeps the aggregate at or below the pool.
Whatever the truncation leaves over (at most len(winners) - 1 tokens), and
the whole pool when nobody won, goes to the house.
"""

from dataclasses import dataclass, field

from src.wg_wager.domain.models import Position


@dataclass(frozen=True)
class Payout:
    position_id: str
    user_id: str
    net_stake_tokens: int
    winnings: int

    @property
    def profit(self) -> int:
        return self.winnings - self.net_stake_tokens


@dataclass
class Distribution:
    payouts: list[Payout] = field(default_factory=list)
    total_winner_stake: int = 0
    total_pool: int = 0

    @property
    def total_paid(self) -> int:
        return sum(p.winnings for p in self.payouts)

    @property
    def house_residual(self) -> int:
        return self.total_winner_stake + self.total_pool - self.total_paid


def distribute(winners: list[Position], losers: list[Position]) -> Distribution:
    total_winner_stake = sum(w.net_stake_tokens for w in winners)
    total_pool = sum(loser.net_stake_tokens for loser in losers)

    payouts: list[Payout] = []
    for w in winners:
        share = 0
        if total_winner_stake > 0 and total_pool > 0:
            share = total_pool * w.net_stake_tokens // total_winner_stake
        payouts.append(
            Payout(
                position_id=w.id,
                user_id=w.user_id,
                net_stake_tokens=w.net_stake_tokens,
                winnings=w.net_stake_tokens + share,
            )
        )

    return Distribution(
        payouts=payouts,
        total_winner_stake=total_winner_stake,
        total_pool=total_pool,
    )
