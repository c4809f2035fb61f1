"""Create maintenance_requests table

Revision ID: 20260301_000003
Revises: 20260301_000002
Create Date: 2026-03-01

Repair jobs reported against rooms. Rooms with requests can't be deleted.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '20260301_000003'
down_revision: Union[str, None] = '20260301_000002'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

CATEGORIES = ('electrical', 'plumbing', 'air-conditioning', 'furniture', 'cleaning', 'security', 'other')
PRIORITIES = ('low', 'medium', 'high', 'urgent')
STATUSES = ('pending', 'in-progress', 'completed', 'cancelled')


def upgrade() -> None:
    """Create the maintenance_requests table."""
    op.create_table(
        'maintenance_requests',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('room_id', sa.Integer(), nullable=False),
        sa.Column('tenant_id', sa.Integer(), nullable=True),
        sa.Column('created_by', sa.Integer(), nullable=False),
        sa.Column('category', sa.Enum(*CATEGORIES, name='maintenance_category'), nullable=False),
        sa.Column('title', sa.String(length=200), nullable=False),
        sa.Column('description', sa.Text(), nullable=False),
        sa.Column('priority', sa.Enum(*PRIORITIES, name='maintenance_priority'), nullable=False),
        sa.Column('status', sa.Enum(*STATUSES, name='maintenance_status'), nullable=False),
        sa.Column('reported_at', sa.DateTime(), nullable=False),
        sa.Column('scheduled_date', sa.Date(), nullable=True),
        sa.Column('completed_at', sa.DateTime(), nullable=True),
        sa.Column('cost', sa.Numeric(precision=12, scale=2), nullable=True),
        sa.Column('assigned_to', sa.String(length=200), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('images', sa.JSON(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(
            ['room_id'],
            ['rooms.id'],
            name='fk_maintenance_requests_room_id'
        ),
        sa.ForeignKeyConstraint(
            ['tenant_id'],
            ['users.id'],
            name='fk_maintenance_requests_tenant_id'
        ),
        sa.ForeignKeyConstraint(
            ['created_by'],
            ['users.id'],
            name='fk_maintenance_requests_created_by'
        ),
    )
    op.create_index('ix_maintenance_requests_room_id', 'maintenance_requests', ['room_id'])
    op.create_index('ix_maintenance_requests_tenant_id', 'maintenance_requests', ['tenant_id'])
    op.create_index('ix_maintenance_requests_priority', 'maintenance_requests', ['priority'])
    op.create_index('ix_maintenance_requests_status', 'maintenance_requests', ['status'])
    op.create_index('ix_maintenance_requests_reported_at', 'maintenance_requests', ['reported_at'])


def downgrade() -> None:
    """Drop the maintenance_requests table."""
    op.drop_index('ix_maintenance_requests_reported_at', table_name='maintenance_requests')
    op.drop_index('ix_maintenance_requests_status', table_name='maintenance_requests')
    op.drop_index('ix_maintenance_requests_priority', table_name='maintenance_requests')
    op.drop_index('ix_maintenance_requests_tenant_id', table_name='maintenance_requests')
    op.drop_index('ix_maintenance_requests_room_id', table_name='maintenance_requests')
    op.drop_table('maintenance_requests')
