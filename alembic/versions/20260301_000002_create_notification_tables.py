"""Create notifications and notification_templates tables

Revision ID: 20260301_000002
Revises: 20260301_000001
Create Date: 2026-03-01

Per-user inbox plus one editable template per notification type.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '20260301_000002'
down_revision: Union[str, None] = '20260301_000001'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

NOTIFICATION_TYPES = ('payment_reminder', 'payment_verified', 'payment_rejected', 'bill_generated', 'overdue')


def upgrade() -> None:
    """Create the notifications and notification_templates tables."""
    op.create_table(
        'notifications',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('type', sa.Enum(*NOTIFICATION_TYPES, name='notification_type'), nullable=False),
        sa.Column('title', sa.String(length=255), nullable=False),
        sa.Column('message', sa.Text(), nullable=False),
        sa.Column('bill_id', sa.Integer(), nullable=True),
        sa.Column('read', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('read_at', sa.DateTime(), nullable=True),
        sa.Column('sent_at', sa.DateTime(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(
            ['user_id'],
            ['users.id'],
            name='fk_notifications_user_id',
            ondelete='CASCADE'
        ),
        sa.ForeignKeyConstraint(
            ['bill_id'],
            ['bills.id'],
            name='fk_notifications_bill_id',
            ondelete='SET NULL'
        ),
    )
    op.create_index('ix_notifications_user_id', 'notifications', ['user_id'])
    op.create_index('ix_notifications_type', 'notifications', ['type'])
    op.create_index('ix_notifications_sent_at', 'notifications', ['sent_at'])
    op.create_index('ix_notifications_created_at', 'notifications', ['created_at'])
    op.create_index('ix_notifications_user_id_read', 'notifications', ['user_id', 'read'])

    op.create_table(
        'notification_templates',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('type', sa.Enum(*NOTIFICATION_TYPES, name='notification_template_type'), nullable=False),
        sa.Column('name', sa.String(length=200), nullable=False),
        sa.Column('subject', sa.String(length=255), nullable=False),
        sa.Column('email_body', sa.Text(), nullable=False),
        sa.Column('in_app_title', sa.String(length=255), nullable=False),
        sa.Column('in_app_message', sa.Text(), nullable=False),
        sa.Column('variables', sa.JSON(), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('version', sa.Integer(), nullable=False, server_default='1'),
        sa.Column('last_modified_by', sa.Integer(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('type', name='uq_notification_templates_type'),
        sa.ForeignKeyConstraint(
            ['last_modified_by'],
            ['users.id'],
            name='fk_notification_templates_last_modified_by'
        ),
    )


def downgrade() -> None:
    """Drop the notification tables."""
    op.drop_table('notification_templates')
    op.drop_index('ix_notifications_user_id_read', table_name='notifications')
    op.drop_table('notifications')
