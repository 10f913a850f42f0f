"""Pydantic schemas for settlement reports."""

from pydantic import BaseModel, Field


class MarketFailure(BaseModel):
    """One market that could not be settled; its positions stay PENDING.

    target_type and target_id are null when the whole quarter failed before
    any market ran.
    """

    target_type: str | None = None
    target_id: str | None = None
    code: int
    message: str


class SettlementSummary(BaseModel):
    quarter: str
    already_resolved: bool = False
    quarter_resolved: bool = False
    markets: int = 0
    total_resolved: int = 0
    won: int = 0
    lost: int = 0
    cancelled: int = 0
    voided: int = 0
    tokens_distributed: int = 0
    house_residual: int = 0
    errors: list[MarketFailure] = Field(default_factory=list)


class SettleRequest(BaseModel):
    quarter: str | None = Field(
        None,
        pattern=r"^\d{4}-Q[1-4]$",
        description="Quarter to settle; defaults to the most recently completed one",
    )
