"""Stake ledger Protocol — the boundary to the token wallet.

Every mutation is idempotent per (user_id, entry_type, reference_id): a retried
call returns the entry already written and moves no tokens.
All methods run inside the caller's transaction.
"""

from typing import Any, Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.wg_ledger.domain.models import LedgerEntry, TokenAccount


class StakeLedgerProtocol(Protocol):
    async def get_account(self, db: AsyncSession, user_id: str) -> TokenAccount | None: ...

    async def debit(
        self,
        db: AsyncSession,
        user_id: str,
        amount: int,
        entry_type: str,
        reference_id: str,
        description: str,
        metadata: dict[str, Any] | None = None,
    ) -> LedgerEntry: ...

    async def credit(
        self,
        db: AsyncSession,
        user_id: str,
        amount: int,
        entry_type: str,
        reference_id: str,
        description: str,
        metadata: dict[str, Any] | None = None,
        earned: int = 0,
    ) -> LedgerEntry: ...

    async def record(
        self,
        db: AsyncSession,
        user_id: str,
        entry_type: str,
        reference_id: str,
        description: str,
        metadata: dict[str, Any] | None = None,
    ) -> LedgerEntry: ...

    async def credit_house(
        self,
        db: AsyncSession,
        amount: int,
        entry_type: str,
        reference_id: str,
        description: str,
        metadata: dict[str, Any] | None = None,
    ) -> LedgerEntry: ...
