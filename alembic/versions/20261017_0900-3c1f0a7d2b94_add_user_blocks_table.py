"""add_user_blocks_table

Revision ID: 3c1f0a7d2b94
Revises:
Create Date: 2026-10-17 09:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '3c1f0a7d2b94'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """
    Add user_blocks table holding one directed block edge per ordered pair.

    - Unique (blocker_id, blocked_id) keeps concurrent blocks from duplicating an edge
    - Check constraint rejects self-blocks at the database level
    - Composite indexes serve the per-direction lookups and counts
    """
    op.create_table('user_blocks',
        sa.Column('id', sa.String(length=255), nullable=False),
        sa.Column('blocker_id', sa.String(length=255), nullable=False),
        sa.Column('blocked_id', sa.String(length=255), nullable=False),
        sa.Column('reason', sa.String(length=500), nullable=True),
        sa.Column('is_active', sa.Boolean(), server_default=sa.true(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.CheckConstraint('blocker_id <> blocked_id', name='ck_user_blocks_not_self'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('blocker_id', 'blocked_id', name='uq_user_blocks_pair')
    )
    op.create_index('idx_user_blocks_blocker', 'user_blocks', ['blocker_id', 'is_active'], unique=False)
    op.create_index('idx_user_blocks_blocked', 'user_blocks', ['blocked_id', 'is_active'], unique=False)


def downgrade() -> None:
    """Remove user_blocks table."""
    op.drop_index('idx_user_blocks_blocked', table_name='user_blocks')
    op.drop_index('idx_user_blocks_blocker', table_name='user_blocks')
    op.drop_table('user_blocks')
