"""create_roster_snapshots

Revision ID: d2e4f6a8b0c1
Revises:
Create Date: 2026-10-18 09:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = 'd2e4f6a8b0c1'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        'roster_snapshots',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('snapshot_date', sa.Date(), nullable=False),
        sa.Column('team_id', sa.Integer(), nullable=False),
        sa.Column('scoring_period_id', sa.Integer(), nullable=False),
        sa.Column('content_hash', sa.String(length=64), nullable=False),
        sa.Column('entries', sa.JSON(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('snapshot_date', 'team_id', name='uq_roster_snapshot_day_team'),
    )
    with op.batch_alter_table('roster_snapshots', schema=None) as batch_op:
        batch_op.create_index('ix_roster_snapshots_snapshot_date', ['snapshot_date'], unique=False)
        batch_op.create_index('ix_roster_snapshots_team_id', ['team_id'], unique=False)


def downgrade() -> None:
    """Downgrade schema."""
    with op.batch_alter_table('roster_snapshots', schema=None) as batch_op:
        batch_op.drop_index('ix_roster_snapshots_team_id')
        batch_op.drop_index('ix_roster_snapshots_snapshot_date')
    op.drop_table('roster_snapshots')
