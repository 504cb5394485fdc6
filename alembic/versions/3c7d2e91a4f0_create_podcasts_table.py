"""create_podcasts_table

Revision ID: 3c7d2e91a4f0
Revises:
Create Date: 2026-10-18 10:12:05.418233

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '3c7d2e91a4f0'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        'podcasts',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('user_id', sa.String(length=36), nullable=False),
        sa.Column('title', sa.String(), nullable=True),
        sa.Column('file_name', sa.String(), nullable=False),
        sa.Column('file_size', sa.BigInteger(), nullable=False),
        sa.Column('file_url', sa.String(), nullable=False),
        sa.Column('storage_key', sa.String(), nullable=False),
        sa.Column('content_type', sa.String(), nullable=True),
        sa.Column('status', sa.String(), nullable=False, server_default='uploaded'),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.CheckConstraint('file_size > 0', name='ck_podcasts_file_size_positive'),
    )
    op.create_index(op.f('ix_podcasts_user_id'), 'podcasts', ['user_id'], unique=False)


def downgrade() -> None:
    op.drop_index(op.f('ix_podcasts_user_id'), table_name='podcasts')
    op.drop_table('podcasts')
