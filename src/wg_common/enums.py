"""Global enums — must match DB CHECK constraints exactly."""

from enum import Enum


class QuarterStatus(str, Enum):
    UPCOMING = "UPCOMING"
    OPEN = "OPEN"
    CLOSED = "CLOSED"
    RESOLVED = "RESOLVED"


class TargetType(str, Enum):
    COMPANY = "COMPANY"
    USER = "USER"


class Direction(str, Enum):
    LONG = "LONG"    # growth >= target
    SHORT = "SHORT"  # growth < target


class BetStatus(str, Enum):
    PENDING = "PENDING"
    WON = "WON"
    LOST = "LOST"
    CANCELLED = "CANCELLED"
    VOID = "VOID"


class LedgerEntryType(str, Enum):
    # Placement (user side + house side)
    BET_PLACED = "BET_PLACED"
    BET_HOUSE_FEE = "BET_HOUSE_FEE"
    HOUSE_FEE_REVENUE = "HOUSE_FEE_REVENUE"
    # Settlement
    BET_WON = "BET_WON"
    BET_LOST = "BET_LOST"
    BET_REFUND = "BET_REFUND"
    HOUSE_RESIDUAL = "HOUSE_RESIDUAL"
