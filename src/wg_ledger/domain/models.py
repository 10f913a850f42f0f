"""Domain models for wg_ledger — pure dataclasses, no SQLAlchemy dependency."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

HOUSE_ACCOUNT_ID = "HOUSE"
POSITION_REFERENCE = "POSITION"


@dataclass
class TokenAccount:
    user_id: str
    balance: int            # tokens
    lifetime_earned: int    # tokens won above returned stakes
    version: int
    created_at: datetime | None = None
    updated_at: datetime | None = None


@dataclass
class LedgerEntry:
    id: int                          # BIGSERIAL, doubles as the transaction id
    user_id: str
    entry_type: str                  # LedgerEntryType value
    amount: int                      # tokens, positive=credit negative=debit, 0=audit only
    balance_after: int
    reference_type: str | None = None
    reference_id: str | None = None
    description: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)
    created_at: datetime | None = None
