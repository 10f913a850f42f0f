"""002: create token ledger entries

Revision ID: 002
Revises: 001
Create Date: 2026-01-12
"""
from typing import Sequence, Union
from alembic import op

revision: str = "002"
down_revision: Union[str, None] = "001"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE token_ledger_entries (
            id              BIGSERIAL       PRIMARY KEY,
            user_id         VARCHAR(64)     NOT NULL REFERENCES token_accounts (user_id),
            entry_type      VARCHAR(30)     NOT NULL,
            amount          BIGINT          NOT NULL,
            balance_after   BIGINT          NOT NULL,
            reference_type  VARCHAR(30),
            reference_id    VARCHAR(128),
            description     VARCHAR(500),
            metadata        JSONB           NOT NULL DEFAULT '{}'::jsonb,
            created_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_token_ledger_entry_type CHECK (
                entry_type IN (
                    'BET_PLACED', 'BET_HOUSE_FEE', 'HOUSE_FEE_REVENUE',
                    'BET_WON', 'BET_LOST', 'BET_REFUND', 'HOUSE_RESIDUAL'
                )
            ),
            CONSTRAINT ck_token_ledger_balance_gte_0 CHECK (balance_after >= 0)
        );
    """)
    op.execute("""
        CREATE INDEX idx_token_ledger_user_time
        ON token_ledger_entries (user_id, created_at DESC);
    """)
    # At most one entry of each type per (account, position): retried
    # settlement writes collide here instead of moving tokens twice
    op.execute("""
        CREATE UNIQUE INDEX uq_token_ledger_idempotency
        ON token_ledger_entries (user_id, entry_type, reference_id)
        WHERE reference_id IS NOT NULL;
    """)
    op.execute("COMMENT ON TABLE token_ledger_entries IS 'Token ledger - Append-Only, never updated or deleted';")


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS token_ledger_entries CASCADE;")
