import math

from config.settings import settings
from src.wg_common.errors import TargetPercentageOutOfRangeError


def check_target_percentage(target_percentage: float) -> None:
    """-100% (revenue to zero) up to the 1000% growth cap used at resolution."""
    low, high = settings.MIN_TARGET_PERCENTAGE, settings.MAX_TARGET_PERCENTAGE
    if math.isnan(target_percentage) or not (low <= target_percentage <= high):
        raise TargetPercentageOutOfRangeError(target_percentage, low, high)
