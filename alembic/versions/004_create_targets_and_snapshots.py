"""004: create betting targets and mrr snapshots

Revision ID: 004
Revises: 003
Create Date: 2026-01-12
"""
from typing import Sequence, Union
from alembic import op

revision: str = "004"
down_revision: Union[str, None] = "003"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # Both tables are fed by other services (profiles, billing capture);
    # this service only reads them.
    op.execute("""
        CREATE TABLE betting_targets (
            target_type         VARCHAR(10) NOT NULL,
            target_id           VARCHAR(64) NOT NULL,
            owner_user_id       VARCHAR(64),
            betting_enabled     BOOLEAN     NOT NULL DEFAULT FALSE,
            billing_connected   BOOLEAN     NOT NULL DEFAULT FALSE,
            created_at          TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            updated_at          TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            PRIMARY KEY (target_type, target_id),
            CONSTRAINT ck_betting_targets_type CHECK (target_type IN ('COMPANY', 'USER'))
        );
    """)
    op.execute("""
        CREATE TRIGGER trg_betting_targets_updated_at
            BEFORE UPDATE ON betting_targets
            FOR EACH ROW EXECUTE FUNCTION fn_update_timestamp();
    """)
    op.execute("""
        CREATE TABLE mrr_snapshots (
            id                  BIGSERIAL   PRIMARY KEY,
            target_type         VARCHAR(10) NOT NULL,
            target_id           VARCHAR(64) NOT NULL,
            quarter             VARCHAR(7)  NOT NULL,
            is_start_snapshot   BOOLEAN     NOT NULL,
            mrr_cents           BIGINT      NOT NULL,
            snapshot_at         TIMESTAMPTZ NOT NULL,
            created_at          TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            CONSTRAINT uq_mrr_snapshots_boundary
                UNIQUE (target_type, target_id, quarter, is_start_snapshot),
            CONSTRAINT ck_mrr_snapshots_type CHECK (target_type IN ('COMPANY', 'USER')),
            CONSTRAINT ck_mrr_snapshots_mrr_gte_0 CHECK (mrr_cents >= 0)
        );
    """)
    op.execute("COMMENT ON TABLE mrr_snapshots IS 'MRR at quarter start/end, in cents';")


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS mrr_snapshots CASCADE;")
    op.execute("DROP TABLE IF EXISTS betting_targets CASCADE;")
