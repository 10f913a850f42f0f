"""003: create betting periods

Revision ID: 003
Revises: 002
Create Date: 2026-01-12
"""
from typing import Sequence, Union
from alembic import op

revision: str = "003"
down_revision: Union[str, None] = "002"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE betting_periods (
            quarter             VARCHAR(7)  PRIMARY KEY,
            starts_at           TIMESTAMPTZ NOT NULL,
            ends_at             TIMESTAMPTZ NOT NULL,
            betting_closes_at   TIMESTAMPTZ NOT NULL,
            status              VARCHAR(20) NOT NULL DEFAULT 'UPCOMING',
            resolved_at         TIMESTAMPTZ,
            created_at          TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            updated_at          TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_betting_periods_quarter CHECK (quarter ~ '^[0-9]{4}-Q[1-4]$'),
            CONSTRAINT ck_betting_periods_status CHECK (
                status IN ('UPCOMING', 'OPEN', 'CLOSED', 'RESOLVED')
            ),
            CONSTRAINT ck_betting_periods_window CHECK (
                starts_at < ends_at AND betting_closes_at <= starts_at
            )
        );
    """)
    op.execute("""
        CREATE INDEX idx_betting_periods_due
        ON betting_periods (ends_at)
        WHERE status <> 'RESOLVED';
    """)
    op.execute("""
        CREATE TRIGGER trg_betting_periods_updated_at
            BEFORE UPDATE ON betting_periods
            FOR EACH ROW EXECUTE FUNCTION fn_update_timestamp();
    """)


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS betting_periods CASCADE;")
