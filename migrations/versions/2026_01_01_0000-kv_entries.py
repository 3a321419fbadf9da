"""Key-value entries table

Revision ID: 001_kv_entries
Revises:
Create Date: 2026-01-01 00:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy import inspect

# revision identifiers, used by Alembic.
revision: str = '001_kv_entries'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """
    Create kv_entries, shared by the rate limiter (rate_limit:*) and the
    document cache (cache:*).
    """
    bind = op.get_bind()
    if 'kv_entries' in inspect(bind).get_table_names():
        return

    op.create_table(
        'kv_entries',
        sa.Column('key', sa.String(length=255), nullable=False),
        sa.Column('value', sa.Text(), nullable=False),
        sa.Column('expires_at', sa.Float(), nullable=True),
        sa.PrimaryKeyConstraint('key')
    )
    op.create_index('ix_kv_entries_expires_at', 'kv_entries', ['expires_at'])


def downgrade() -> None:
    op.drop_index('ix_kv_entries_expires_at', table_name='kv_entries')
    op.drop_table('kv_entries')
