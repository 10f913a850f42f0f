from config.settings import settings
from src.wg_common.errors import StakeOutOfRangeError


def check_stake_limit(stake_tokens: int) -> None:
    """Raise StakeOutOfRangeError if stake is not in [MIN_STAKE_TOKENS, MAX_STAKE_TOKENS]."""
    low, high = settings.MIN_STAKE_TOKENS, settings.MAX_STAKE_TOKENS
    if not (low <= stake_tokens <= high):
        raise StakeOutOfRangeError(stake_tokens, low, high)
