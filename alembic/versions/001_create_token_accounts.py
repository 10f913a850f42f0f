"""001: create token accounts

Revision ID: 001
Revises: 
Create Date: 2026-01-12
"""
from typing import Sequence, Union
from alembic import op

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE OR REPLACE FUNCTION fn_update_timestamp()
        RETURNS TRIGGER AS $$
        BEGIN
            NEW.updated_at = NOW();
            RETURN NEW;
        END;
        $$ LANGUAGE plpgsql;
    """)
    op.execute("""
        CREATE TABLE token_accounts (
            user_id             VARCHAR(64) PRIMARY KEY,
            balance             BIGINT      NOT NULL DEFAULT 0,
            lifetime_earned     BIGINT      NOT NULL DEFAULT 0,
            version             BIGINT      NOT NULL DEFAULT 0,
            created_at          TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            updated_at          TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_token_accounts_balance_gte_0  CHECK (balance >= 0),
            CONSTRAINT ck_token_accounts_earned_gte_0   CHECK (lifetime_earned >= 0)
        );
    """)
    op.execute("""
        CREATE TRIGGER trg_token_accounts_updated_at
            BEFORE UPDATE ON token_accounts
            FOR EACH ROW EXECUTE FUNCTION fn_update_timestamp();
    """)
    # House account: receives placement fees and settlement residue
    op.execute("""
        INSERT INTO token_accounts (user_id, balance, lifetime_earned, version)
        VALUES ('HOUSE', 0, 0, 0);
    """)
    op.execute("COMMENT ON TABLE token_accounts IS 'Token wallets; balances are whole tokens';")


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS token_accounts CASCADE;")
    op.execute("DROP FUNCTION IF EXISTS fn_update_timestamp();")
