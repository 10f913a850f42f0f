"""006: index bets by target

Revision ID: 006
Revises: 005
Create Date: 2026-10-18
"""
from typing import Sequence, Union
from alembic import op

revision: str = "006"
down_revision: Union[str, None] = "005"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # target detail stats span every quarter, so idx_bets_market cannot serve them
    op.execute("CREATE INDEX idx_bets_target ON bets (target_type, target_id);")


def downgrade() -> None:
    op.execute("DROP INDEX IF EXISTS idx_bets_target;")
