"""Tests for wg_settlement.domain.distributor — pari-mutuel payouts."""

from factories import make_position

from src.wg_settlement.domain.distributor import distribute


def _paid(distribution) -> dict[str, int]:  # type: ignore[no-untyped-def]
    return {p.position_id: p.winnings for p in distribution.payouts}


class TestScenarios:
    def test_single_winner_takes_pool(self) -> None:
        # A LONG 10% net 95, B SHORT 10% net 95, actual 20%
        a = make_position(direction="LONG", net_stake=95)
        b = make_position(direction="SHORT", net_stake=95)
        d = distribute([a], [b])
        assert _paid(d) == {a.id: 190}
        assert d.payouts[0].profit == 95
        assert d.house_residual == 0

    def test_proportional_split(self) -> None:
        w1 = make_position(net_stake=60)
        w2 = make_position(net_stake=40)
        loser = make_position(direction="SHORT", net_stake=50)
        d = distribute([w1, w2], [loser])
        assert _paid(d) == {w1.id: 90, w2.id: 60}
        assert d.total_paid == 150
        assert d.house_residual == 0

    def test_zero_base_growth_winner(self) -> None:
        # growth capped at 1000%; LONG 500% net 500 wins against SHORT net 500
        long_ = make_position(target_percentage=500, net_stake=500)
        short = make_position(direction="SHORT", target_percentage=500, net_stake=500)
        assert _paid(distribute([long_], [short])) == {long_.id: 1000}


class TestEdgeCases:
    def test_no_losers_break_even(self) -> None:
        w1 = make_position(net_stake=95)
        w2 = make_position(net_stake=47)
        d = distribute([w1, w2], [])
        assert _paid(d) == {w1.id: 95, w2.id: 47}
        assert all(p.profit == 0 for p in d.payouts)
        assert d.house_residual == 0

    def test_no_winners_house_absorbs_pool(self) -> None:
        losers = [make_position(net_stake=95), make_position(net_stake=190)]
        d = distribute([], losers)
        assert d.payouts == []
        assert d.total_pool == 285
        assert d.house_residual == 285

    def test_floor_residue_kept_by_house(self) -> None:
        # pool 10 split three ways: 3 + 3 + 3, one token left over
        winners = [make_position(net_stake=1) for _ in range(3)]
        d = distribute(winners, [make_position(net_stake=10)])
        assert sorted(_paid(d).values()) == [4, 4, 4]
        assert d.house_residual == 1

    def test_conservation(self) -> None:
        winners = [make_position(net_stake=n) for n in (9, 95, 332, 1_000, 7)]
        losers = [make_position(net_stake=n) for n in (18, 950, 13)]
        d = distribute(winners, losers)
        total = sum(w.net_stake_tokens for w in winners) + sum(
            loser.net_stake_tokens for loser in losers
        )
        assert d.total_paid + d.house_residual == total
        assert d.total_paid <= total
        assert 0 <= d.house_residual <= len(winners) - 1

    def test_empty_market(self) -> None:
        d = distribute([], [])
        assert d.payouts == []
        assert d.house_residual == 0
