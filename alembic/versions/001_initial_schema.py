"""initial schema - create webhook_records

Revision ID: 001
Revises:
Create Date: 2026-10-19 09:00:00.000000

"""
from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision: str = '001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


json_type = sa.JSON().with_variant(postgresql.JSONB(), 'postgresql')


def upgrade() -> None:
    # Create webhook_records table (status as constrained VARCHAR)
    op.create_table(
        'webhook_records',
        sa.Column('id', sa.BigInteger().with_variant(sa.Integer(), 'sqlite'), primary_key=True, autoincrement=True),
        sa.Column('url', sa.Text(), nullable=False),
        sa.Column('body', json_type, nullable=False),
        sa.Column('status', sa.String(16), nullable=False, server_default='Pending'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('response_status_code', sa.Integer(), nullable=True),
        sa.Column('response', json_type, nullable=True),
        sa.Column('attempt', sa.Integer(), nullable=True),
        sa.Column('start_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('repeated_from', sa.BigInteger().with_variant(sa.Integer(), 'sqlite'), sa.ForeignKey('webhook_records.id'), nullable=True),
        sa.CheckConstraint("status IN ('Pending', 'Success', 'Error')", name='webhook_status'),
    )
    op.create_index('ix_webhook_records_status', 'webhook_records', ['status'])
    op.create_index('ix_webhook_records_start_at', 'webhook_records', ['start_at'])
    op.create_index('ix_webhook_records_repeated_from', 'webhook_records', ['repeated_from'])


def downgrade() -> None:
    op.drop_index('ix_webhook_records_repeated_from', table_name='webhook_records')
    op.drop_index('ix_webhook_records_start_at', table_name='webhook_records')
    op.drop_index('ix_webhook_records_status', table_name='webhook_records')
    op.drop_table('webhook_records')
