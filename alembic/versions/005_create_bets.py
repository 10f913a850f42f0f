"""005: create bets

Revision ID: 005
Revises: 004
Create Date: 2026-01-12
"""
from typing import Sequence, Union
from alembic import op

revision: str = "005"
down_revision: Union[str, None] = "004"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE bets (
            id                  VARCHAR(64)      PRIMARY KEY,
            user_id             VARCHAR(64)      NOT NULL,
            period_id           VARCHAR(7)       NOT NULL REFERENCES betting_periods (quarter),
            target_type         VARCHAR(10)      NOT NULL,
            target_id           VARCHAR(64)      NOT NULL,
            direction           VARCHAR(5)       NOT NULL,
            target_percentage   DOUBLE PRECISION NOT NULL,
            stake_tokens        BIGINT           NOT NULL,
            house_fee_tokens    BIGINT           NOT NULL,
            net_stake_tokens    BIGINT           NOT NULL,
            status              VARCHAR(10)      NOT NULL DEFAULT 'PENDING',
            actual_percentage   DOUBLE PRECISION,
            winnings            BIGINT,
            resolved_at         TIMESTAMPTZ,
            created_at          TIMESTAMPTZ      NOT NULL DEFAULT NOW(),
            updated_at          TIMESTAMPTZ      NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_bets_target_type CHECK (target_type IN ('COMPANY', 'USER')),
            CONSTRAINT ck_bets_direction CHECK (direction IN ('LONG', 'SHORT')),
            CONSTRAINT ck_bets_status CHECK (
                status IN ('PENDING', 'WON', 'LOST', 'CANCELLED', 'VOID')
            ),
            CONSTRAINT ck_bets_stake_split CHECK (
                house_fee_tokens >= 0 AND net_stake_tokens > 0
                AND stake_tokens = house_fee_tokens + net_stake_tokens
            ),
            CONSTRAINT ck_bets_winnings_gte_0 CHECK (winnings IS NULL OR winnings >= 0),
            CONSTRAINT ck_bets_resolved CHECK (
                (status = 'PENDING') = (resolved_at IS NULL)
            )
        );
    """)
    op.execute("""
        CREATE INDEX idx_bets_market_pending
        ON bets (period_id, target_type, target_id)
        WHERE status = 'PENDING';
    """)
    op.execute("CREATE INDEX idx_bets_market ON bets (period_id, target_type, target_id);")
    op.execute("CREATE INDEX idx_bets_user ON bets (user_id, id DESC);")
    op.execute("""
        CREATE TRIGGER trg_bets_updated_at
            BEFORE UPDATE ON bets
            FOR EACH ROW EXECUTE FUNCTION fn_update_timestamp();
    """)
    op.execute("COMMENT ON TABLE bets IS 'Positions on quarterly MRR growth; stakes in tokens';")


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS bets CASCADE;")
