"""TokenLedger — concrete implementation of StakeLedgerProtocol.

Balance mutations use atomic PostgreSQL UPDATE ... RETURNING. A debit that
returns 0 rows means the balance could not cover the amount.

Idempotency: before moving tokens, look up an existing entry for
(user_id, entry_type, reference_id). The partial unique index
uq_token_ledger_idempotency backs this up, so a racing duplicate fails
its transaction instead of double-crediting.

Transaction ownership: The CALLER starts and commits the transaction.
"""

import json
import logging
from typing import Any

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.wg_common.errors import InsufficientTokenBalanceError, TokenAccountNotFoundError
from src.wg_ledger.domain.models import (
    HOUSE_ACCOUNT_ID,
    POSITION_REFERENCE,
    LedgerEntry,
    TokenAccount,
)

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# SQL
# ---------------------------------------------------------------------------

_GET_ACCOUNT_SQL = text("""
    SELECT user_id, balance, lifetime_earned, version, created_at, updated_at
    FROM token_accounts
    WHERE user_id = :user_id
""")

_DEBIT_SQL = text("""
    UPDATE token_accounts
    SET balance = balance - :amount,
        version = version + 1,
        updated_at = NOW()
    WHERE user_id = :user_id AND balance >= :amount
    RETURNING balance
""")

_CREDIT_SQL = text("""
    UPDATE token_accounts
    SET balance = balance + :amount,
        lifetime_earned = lifetime_earned + :earned,
        version = version + 1,
        updated_at = NOW()
    WHERE user_id = :user_id
    RETURNING balance
""")

_FIND_ENTRY_SQL = text("""
    SELECT id, user_id, entry_type, amount, balance_after,
           reference_type, reference_id, description, metadata, created_at
    FROM token_ledger_entries
    WHERE user_id = :user_id
      AND entry_type = :entry_type
      AND reference_id = :reference_id
""")

_INSERT_ENTRY_SQL = text("""
    INSERT INTO token_ledger_entries
        (user_id, entry_type, amount, balance_after,
         reference_type, reference_id, description, metadata)
    VALUES
        (:user_id, :entry_type, :amount, :balance_after,
         :reference_type, :reference_id, :description, CAST(:metadata AS JSONB))
    RETURNING id, user_id, entry_type, amount, balance_after,
              reference_type, reference_id, description, metadata, created_at
""")


def _row_to_account(row: object) -> TokenAccount:
    return TokenAccount(
        user_id=row.user_id,  # type: ignore[attr-defined]
        balance=row.balance,  # type: ignore[attr-defined]
        lifetime_earned=row.lifetime_earned,  # type: ignore[attr-defined]
        version=row.version,  # type: ignore[attr-defined]
        created_at=row.created_at,  # type: ignore[attr-defined]
        updated_at=row.updated_at,  # type: ignore[attr-defined]
    )


def _row_to_entry(row: object) -> LedgerEntry:
    metadata = row.metadata  # type: ignore[attr-defined]
    if isinstance(metadata, str):
        metadata = json.loads(metadata)
    return LedgerEntry(
        id=row.id,  # type: ignore[attr-defined]
        user_id=row.user_id,  # type: ignore[attr-defined]
        entry_type=row.entry_type,  # type: ignore[attr-defined]
        amount=row.amount,  # type: ignore[attr-defined]
        balance_after=row.balance_after,  # type: ignore[attr-defined]
        reference_type=row.reference_type,  # type: ignore[attr-defined]
        reference_id=row.reference_id,  # type: ignore[attr-defined]
        description=row.description,  # type: ignore[attr-defined]
        metadata=dict(metadata or {}),
        created_at=row.created_at,  # type: ignore[attr-defined]
    )


class TokenLedger:
    """Concrete stake ledger — all operations atomic at the SQL level."""

    async def get_account(self, db: AsyncSession, user_id: str) -> TokenAccount | None:
        row = (await db.execute(_GET_ACCOUNT_SQL, {"user_id": user_id})).fetchone()
        return _row_to_account(row) if row else None

    async def debit(
        self,
        db: AsyncSession,
        user_id: str,
        amount: int,
        entry_type: str,
        reference_id: str,
        description: str,
        metadata: dict[str, Any] | None = None,
    ) -> LedgerEntry:
        existing = await self._find_entry(db, user_id, entry_type, reference_id)
        if existing is not None:
            logger.info("Ledger idempotency hit: %s %s %s", user_id, entry_type, reference_id)
            return existing

        row = (
            await db.execute(_DEBIT_SQL, {"user_id": user_id, "amount": amount})
        ).fetchone()
        if row is None:
            account = await self.get_account(db, user_id)
            if account is None:
                raise TokenAccountNotFoundError(user_id)
            raise InsufficientTokenBalanceError(required=amount, available=account.balance)

        return await self._insert_entry(
            db, user_id, entry_type, -amount, row.balance, reference_id, description, metadata
        )

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
    ) -> LedgerEntry:
        existing = await self._find_entry(db, user_id, entry_type, reference_id)
        if existing is not None:
            logger.info("Ledger idempotency hit: %s %s %s", user_id, entry_type, reference_id)
            return existing

        row = (
            await db.execute(
                _CREDIT_SQL, {"user_id": user_id, "amount": amount, "earned": earned}
            )
        ).fetchone()
        if row is None:
            raise TokenAccountNotFoundError(user_id)

        return await self._insert_entry(
            db, user_id, entry_type, amount, row.balance, reference_id, description, metadata
        )

    async def record(
        self,
        db: AsyncSession,
        user_id: str,
        entry_type: str,
        reference_id: str,
        description: str,
        metadata: dict[str, Any] | None = None,
    ) -> LedgerEntry:
        """Append a zero-amount audit entry; no balance change."""
        existing = await self._find_entry(db, user_id, entry_type, reference_id)
        if existing is not None:
            return existing

        account = await self.get_account(db, user_id)
        if account is None:
            raise TokenAccountNotFoundError(user_id)
        return await self._insert_entry(
            db, user_id, entry_type, 0, account.balance, reference_id, description, metadata
        )

    async def credit_house(
        self,
        db: AsyncSession,
        amount: int,
        entry_type: str,
        reference_id: str,
        description: str,
        metadata: dict[str, Any] | None = None,
    ) -> LedgerEntry:
        return await self.credit(
            db, HOUSE_ACCOUNT_ID, amount, entry_type, reference_id, description, metadata
        )

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    async def _find_entry(
        self, db: AsyncSession, user_id: str, entry_type: str, reference_id: str
    ) -> LedgerEntry | None:
        row = (
            await db.execute(
                _FIND_ENTRY_SQL,
                {"user_id": user_id, "entry_type": entry_type, "reference_id": reference_id},
            )
        ).fetchone()
        return _row_to_entry(row) if row else None

    async def _insert_entry(
        self,
        db: AsyncSession,
        user_id: str,
        entry_type: str,
        amount: int,
        balance_after: int,
        reference_id: str,
        description: str,
        metadata: dict[str, Any] | None,
    ) -> LedgerEntry:
        row = (
            await db.execute(
                _INSERT_ENTRY_SQL,
                {
                    "user_id": user_id,
                    "entry_type": entry_type,
                    "amount": amount,
                    "balance_after": balance_after,
                    "reference_type": POSITION_REFERENCE,
                    "reference_id": reference_id,
                    "description": description,
                    "metadata": json.dumps(metadata or {}),
                },
            )
        ).fetchone()
        return _row_to_entry(row)
