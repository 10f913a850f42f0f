"""Integer token arithmetic and display helpers.

All stakes, fees and payouts are int tokens. No float, no Decimal.
"""

from config.settings import settings


def calculate_house_fee(stake_tokens: int, fee_bps: int | None = None) -> int:
    """House fee with ceiling division (the house never rounds in the bettor's favour).

    fee = ceil(stake * fee_bps / 10000) -> (a + b - 1) // b
    """
    bps = settings.HOUSE_FEE_BPS if fee_bps is None else fee_bps
    if stake_tokens == 0 or bps == 0:
        return 0
    return (stake_tokens * bps + 9999) // 10000


def calculate_net_stake(stake_tokens: int, fee_bps: int | None = None) -> int:
    """Stake minus house fee: the amount pooled and at risk."""
    return stake_tokens - calculate_house_fee(stake_tokens, fee_bps)


def format_tokens(tokens: int) -> str:
    """12500 -> '12,500'."""
    return f"{tokens:,}"


def format_percentage(value: float) -> str:
    """20 -> '+20.0%', -5.25 -> '-5.2%'."""
    sign = "+" if value >= 0 else ""
    return f"{sign}{value:.1f}%"
