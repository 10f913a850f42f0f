"""Unified error codes and custom exceptions.

Error code ranges:
  1xxx: Auth
  2xxx: Token account
  3xxx: Quarter / betting period
  4xxx: Wager admission
  5xxx: Settlement
  9xxx: System
"""


class AppError(Exception):
    """Base application error."""

    def __init__(
        self,
        code: int,
        message: str,
        http_status: int = 500,
    ) -> None:
        self.code = code
        self.message = message
        self.http_status = http_status
        super().__init__(message)


# --- 1xxx: Auth ---

class InvalidCredentialsError(AppError):
    def __init__(self) -> None:
        super().__init__(1001, "Invalid or expired token", 401)


class AdminRequiredError(AppError):
    def __init__(self) -> None:
        super().__init__(1002, "Admin privileges required", 403)


# --- 2xxx: Token account ---

class InsufficientTokenBalanceError(AppError):
    def __init__(self, required: int, available: int) -> None:
        super().__init__(
            2001,
            f"Insufficient token balance: required {required}, available {available}",
            422,
        )


class TokenAccountNotFoundError(AppError):
    def __init__(self, user_id: str) -> None:
        super().__init__(2002, f"Token account not found for user {user_id}", 404)


# --- 3xxx: Quarter ---

class InvalidQuarterFormatError(AppError):
    def __init__(self, quarter: str) -> None:
        super().__init__(3001, f"Invalid quarter format: {quarter!r} (expected YYYY-Qn)", 400)


class QuarterNotFoundError(AppError):
    def __init__(self, quarter: str) -> None:
        super().__init__(3002, f"Betting period not found: {quarter}", 404)


class BettingClosedError(AppError):
    def __init__(self, quarter: str) -> None:
        super().__init__(3003, f"Betting is closed for quarter {quarter}", 422)


class QuarterNotEndedError(AppError):
    def __init__(self, quarter: str) -> None:
        super().__init__(3004, f"Quarter {quarter} has not ended yet", 422)


# --- 4xxx: Wager ---

class StakeOutOfRangeError(AppError):
    def __init__(self, stake: int, minimum: int, maximum: int) -> None:
        super().__init__(
            4001, f"Stake {stake} must be in [{minimum}, {maximum}] tokens", 400
        )


class TargetPercentageOutOfRangeError(AppError):
    def __init__(self, percentage: float, minimum: float, maximum: float) -> None:
        super().__init__(
            4002, f"Target percentage {percentage} must be in [{minimum}, {maximum}]", 400
        )


class TargetNotFoundError(AppError):
    def __init__(self, target_type: str, target_id: str) -> None:
        super().__init__(4003, f"Target not found: {target_type} {target_id}", 404)


class TargetNotBettableError(AppError):
    def __init__(self, detail: str) -> None:
        super().__init__(4004, f"Target is not bettable: {detail}", 422)


class SelfWagerError(AppError):
    def __init__(self) -> None:
        super().__init__(4005, "You cannot wager on yourself or your own company", 422)


# --- 5xxx: Settlement ---

class PayoutInvariantError(AppError):
    """A computed distribution would fabricate or destroy tokens. Never commit it."""

    def __init__(self, detail: str) -> None:
        super().__init__(5001, f"Payout invariant violated: {detail}", 500)


class ConcurrentSettlementError(AppError):
    def __init__(self, position_id: str) -> None:
        super().__init__(
            5002, f"Position {position_id} is no longer PENDING (settled concurrently)", 409
        )


# --- 9xxx: System ---

class RateLimitError(AppError):
    def __init__(self) -> None:
        super().__init__(9001, "Rate limit exceeded", 429)


class InternalError(AppError):
    def __init__(self, detail: str = "Internal server error") -> None:
        super().__init__(9002, detail, 500)
