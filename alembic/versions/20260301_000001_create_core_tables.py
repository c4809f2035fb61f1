"""Create users, rooms, bills and payments tables

Revision ID: 20260301_000001
Revises: None
Create Date: 2026-03-01

Core billing schema. The (room_id, month, year) unique constraint on bills
keeps monthly generation idempotent.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '20260301_000001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create the users, rooms, bills and payments tables."""
    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('password', sa.String(length=255), nullable=False),
        sa.Column('name', sa.String(length=200), nullable=False),
        sa.Column('phone', sa.String(length=50), nullable=True),
        sa.Column('role', sa.Enum('admin', 'tenant', name='user_role'), nullable=False),
        sa.Column('room_id', sa.Integer(), nullable=True),
        sa.Column('notification_preferences', sa.JSON(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_users_email', 'users', ['email'], unique=True)
    op.create_index('ix_users_role', 'users', ['role'])
    op.create_index('ix_users_room_id', 'users', ['room_id'])

    op.create_table(
        'rooms',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('room_number', sa.String(length=50), nullable=False),
        sa.Column('floor', sa.Integer(), nullable=True),
        sa.Column('rent_price', sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column('water_price', sa.Numeric(precision=10, scale=2), nullable=False),
        sa.Column('electricity_price', sa.Numeric(precision=10, scale=2), nullable=False),
        sa.Column('is_occupied', sa.Boolean(), nullable=False),
        sa.Column('tenant_id', sa.Integer(), nullable=True),
        sa.Column('move_in_date', sa.Date(), nullable=True),
        sa.Column('move_out_date', sa.Date(), nullable=True),
        sa.Column('rent_due_day', sa.Integer(), nullable=True),
        sa.Column('deposit_amount', sa.Numeric(precision=12, scale=2), nullable=True),
        sa.Column('assignment_notes', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(
            ['tenant_id'],
            ['users.id'],
            name='fk_rooms_tenant_id',
            ondelete='SET NULL'
        ),
    )
    op.create_index('ix_rooms_room_number', 'rooms', ['room_number'], unique=True)
    op.create_index('ix_rooms_is_occupied', 'rooms', ['is_occupied'])

    op.create_table(
        'bills',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('room_id', sa.Integer(), nullable=False),
        sa.Column('tenant_id', sa.Integer(), nullable=False),
        sa.Column('month', sa.Integer(), nullable=False),
        sa.Column('year', sa.Integer(), nullable=False),
        sa.Column('rent_amount', sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column('water_units', sa.Numeric(precision=10, scale=2), nullable=False),
        sa.Column('water_amount', sa.Numeric(precision=10, scale=2), nullable=False),
        sa.Column('electricity_units', sa.Numeric(precision=10, scale=2), nullable=False),
        sa.Column('electricity_amount', sa.Numeric(precision=10, scale=2), nullable=False),
        sa.Column('total_amount', sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column('due_date', sa.Date(), nullable=False),
        sa.Column(
            'status',
            sa.Enum('pending', 'paid', 'overdue', 'verified', name='bill_status'),
            nullable=False,
            server_default='pending'
        ),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('room_id', 'month', 'year', name='uq_bills_room_month_year'),
        sa.ForeignKeyConstraint(
            ['room_id'],
            ['rooms.id'],
            name='fk_bills_room_id',
            ondelete='NO ACTION'
        ),
        sa.ForeignKeyConstraint(
            ['tenant_id'],
            ['users.id'],
            name='fk_bills_tenant_id',
            ondelete='NO ACTION'
        ),
    )
    op.create_index('ix_bills_room_id', 'bills', ['room_id'])
    op.create_index('ix_bills_tenant_id', 'bills', ['tenant_id'])
    op.create_index('ix_bills_due_date', 'bills', ['due_date'])
    op.create_index('ix_bills_status', 'bills', ['status'])

    op.create_table(
        'payments',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('bill_id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('slip_image_url', sa.String(length=500), nullable=False),
        sa.Column('slip_content_type', sa.String(length=50), nullable=True),
        sa.Column('slip_size', sa.Integer(), nullable=True),
        sa.Column('ocr_amount', sa.Numeric(precision=12, scale=2), nullable=True),
        sa.Column('ocr_fee', sa.Numeric(precision=10, scale=2), nullable=True),
        sa.Column('ocr_date', sa.String(length=20), nullable=True),
        sa.Column('ocr_time', sa.String(length=20), nullable=True),
        sa.Column('ocr_from_account', sa.String(length=50), nullable=True),
        sa.Column('ocr_to_account', sa.String(length=50), nullable=True),
        sa.Column('ocr_reference', sa.String(length=100), nullable=True),
        sa.Column('ocr_transaction_no', sa.String(length=100), nullable=True),
        sa.Column('qr_merchant_id', sa.String(length=100), nullable=True),
        sa.Column('qr_amount', sa.Numeric(precision=12, scale=2), nullable=True),
        sa.Column('qr_ref1', sa.String(length=100), nullable=True),
        sa.Column('qr_ref2', sa.String(length=100), nullable=True),
        sa.Column(
            'status',
            sa.Enum('pending', 'verified', 'rejected', name='payment_status'),
            nullable=False,
            server_default='pending'
        ),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('verified_by', sa.Integer(), nullable=True),
        sa.Column('verified_at', sa.DateTime(), nullable=True),
        sa.Column('rejection_reason', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(
            ['bill_id'],
            ['bills.id'],
            name='fk_payments_bill_id',
            ondelete='CASCADE'
        ),
        sa.ForeignKeyConstraint(
            ['user_id'],
            ['users.id'],
            name='fk_payments_user_id',
            ondelete='NO ACTION'
        ),
        sa.ForeignKeyConstraint(
            ['verified_by'],
            ['users.id'],
            name='fk_payments_verified_by'
        ),
    )
    op.create_index('ix_payments_bill_id', 'payments', ['bill_id'])
    op.create_index('ix_payments_user_id', 'payments', ['user_id'])
    op.create_index('ix_payments_status', 'payments', ['status'])
    op.create_index('ix_payments_created_at', 'payments', ['created_at'])


def downgrade() -> None:
    """Drop the core tables."""
    op.drop_table('payments')
    op.drop_table('bills')
    op.drop_table('rooms')
    op.drop_table('users')
