"""Initial schema: catalogue, customers, orders, feedback, staff and sessions

Revision ID: a1c3e5f7b9d2
Revises:
Create Date: 2026-10-19

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy import inspect


# revision identifiers, used by Alembic.
revision: str = 'a1c3e5f7b9d2'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

TEA_TYPES = ('BlackTea', 'GreenTea', 'WhiteTea', 'HerbalTea', 'OolongTea', 'FlavoredTea', 'Other')
ORDER_STATUSES = ('Pending', 'Processing', 'Completed', 'Cancelled')
USER_ROLES = ('Admin', 'Manager', 'Staff')


def _has_table(table_name):
    """Check if a table exists (init_db may already have created it)."""
    bind = op.get_bind()
    insp = inspect(bind)
    return table_name in insp.get_table_names()


def _flags_and_timestamps():
    return [
        sa.Column('is_active', sa.Boolean(), nullable=True),
        sa.Column('is_deleted', sa.Boolean(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
    ]


def upgrade() -> None:
    if not _has_table('users'):
        op.create_table(
            'users',
            sa.Column('id', sa.Integer(), primary_key=True),
            sa.Column('email', sa.String(), nullable=False),
            sa.Column('password_hash', sa.String(), nullable=False),
            sa.Column('name', sa.String(), nullable=False),
            sa.Column('role', sa.Enum(*USER_ROLES, name='userrole'), nullable=False),
            sa.Column('is_active', sa.Boolean(), nullable=True),
            sa.Column('created_at', sa.DateTime(), server_default=sa.func.now(), nullable=True),
            sa.Column('last_login', sa.DateTime(), nullable=True),
        )
        op.create_index('ix_users_email', 'users', ['email'], unique=True)

    if not _has_table('user_sessions'):
        op.create_table(
            'user_sessions',
            sa.Column('id', sa.Integer(), primary_key=True),
            sa.Column('principal_type', sa.String(16), nullable=False),
            sa.Column('principal_id', sa.Integer(), nullable=False),
            sa.Column('token', sa.String(64), nullable=False),
            sa.Column('expires_at', sa.DateTime(), nullable=False),
            sa.Column('created_at', sa.DateTime(), server_default=sa.func.now(), nullable=True),
        )
        op.create_index('ix_user_sessions_token', 'user_sessions', ['token'], unique=True)
        op.create_index('ix_user_sessions_principal_id', 'user_sessions', ['principal_id'])

    if not _has_table('products'):
        op.create_table(
            'products',
            sa.Column('id', sa.Integer(), primary_key=True),
            sa.Column('name', sa.String(), nullable=False),
            sa.Column('tea_type', sa.Enum(*TEA_TYPES, name='teatype'), nullable=False),
            sa.Column('description', sa.Text(), nullable=True),
            sa.Column('image_url', sa.String(), nullable=True),
            sa.Column('price', sa.Float(), nullable=False),
            sa.Column('quantity_in_stock', sa.Integer(), nullable=False),
            sa.Column('reorder_level', sa.Integer(), nullable=False),
            sa.Column('unit', sa.String(), nullable=False),
            *_flags_and_timestamps(),
            sa.CheckConstraint('quantity_in_stock >= 0', name='ck_products_stock_non_negative'),
            sa.CheckConstraint('reorder_level >= 0', name='ck_products_reorder_non_negative'),
        )
        op.create_index('ix_products_name', 'products', ['name'])
        op.create_index('ix_products_tea_type', 'products', ['tea_type'])

    if not _has_table('customers'):
        op.create_table(
            'customers',
            sa.Column('id', sa.Integer(), primary_key=True),
            sa.Column('name', sa.String(), nullable=False),
            sa.Column('phone', sa.String(), nullable=True),
            sa.Column('email', sa.String(), nullable=True),
            sa.Column('address', sa.Text(), nullable=True),
            sa.Column('city', sa.String(), nullable=True),
            sa.Column('postal_code', sa.String(), nullable=True),
            sa.Column('customer_type', sa.String(), nullable=True),
            sa.Column('notes', sa.Text(), nullable=True),
            sa.Column('password_hash', sa.String(), nullable=True),
            sa.Column('last_login', sa.DateTime(), nullable=True),
            *_flags_and_timestamps(),
        )
        op.create_index('ix_customers_name', 'customers', ['name'])
        op.create_index('ix_customers_email', 'customers', ['email'], unique=True)

    if not _has_table('stock_adjustments'):
        op.create_table(
            'stock_adjustments',
            sa.Column('id', sa.Integer(), primary_key=True),
            sa.Column('product_id', sa.Integer(), sa.ForeignKey('products.id'), nullable=False),
            sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id'), nullable=True),
            sa.Column('adjustment_type', sa.String(), nullable=False),
            sa.Column('amount', sa.Integer(), nullable=False),
            sa.Column('reason', sa.String(), nullable=False),
            sa.Column('previous_stock', sa.Integer(), nullable=False),
            sa.Column('new_stock', sa.Integer(), nullable=False),
            sa.Column('created_at', sa.DateTime(), nullable=True),
        )
        op.create_index('ix_stock_adjustments_product_id', 'stock_adjustments', ['product_id'])
        op.create_index('ix_stock_adjustments_created_at', 'stock_adjustments', ['created_at'])

    if not _has_table('orders'):
        op.create_table(
            'orders',
            sa.Column('id', sa.Integer(), primary_key=True),
            sa.Column('order_number', sa.String(), nullable=False),
            sa.Column('customer_id', sa.Integer(), sa.ForeignKey('customers.id'), nullable=True),
            sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id'), nullable=True),
            sa.Column('status', sa.Enum(*ORDER_STATUSES, name='orderstatus'), nullable=False),
            sa.Column('total_amount', sa.Float(), nullable=False),
            sa.Column('notes', sa.Text(), nullable=True),
            *_flags_and_timestamps(),
        )
        op.create_index('ix_orders_order_number', 'orders', ['order_number'], unique=True)
        op.create_index('ix_orders_customer_id', 'orders', ['customer_id'])
        op.create_index('ix_orders_status', 'orders', ['status'])
        op.create_index('ix_orders_created_at', 'orders', ['created_at'])

    if not _has_table('order_items'):
        op.create_table(
            'order_items',
            sa.Column('id', sa.Integer(), primary_key=True),
            sa.Column('order_id', sa.Integer(), sa.ForeignKey('orders.id'), nullable=False),
            sa.Column('product_id', sa.Integer(), sa.ForeignKey('products.id'), nullable=False),
            sa.Column('quantity', sa.Integer(), nullable=False),
            sa.Column('price', sa.Float(), nullable=False),
            sa.Column('created_at', sa.DateTime(), nullable=True),
            sa.Column('updated_at', sa.DateTime(), nullable=True),
            sa.CheckConstraint('quantity > 0', name='ck_order_items_quantity_positive'),
        )
        op.create_index('ix_order_items_order_id', 'order_items', ['order_id'])
        op.create_index('ix_order_items_product_id', 'order_items', ['product_id'])

    if not _has_table('feedback'):
        op.create_table(
            'feedback',
            sa.Column('id', sa.Integer(), primary_key=True),
            sa.Column('customer_id', sa.Integer(), sa.ForeignKey('customers.id'), nullable=False),
            sa.Column('product_id', sa.Integer(), sa.ForeignKey('products.id'), nullable=True),
            sa.Column('rating', sa.Integer(), nullable=False),
            sa.Column('comment', sa.Text(), nullable=True),
            *_flags_and_timestamps(),
            sa.CheckConstraint('rating >= 1 AND rating <= 5', name='ck_feedback_rating_range'),
        )
        op.create_index('ix_feedback_customer_id', 'feedback', ['customer_id'])
        op.create_index('ix_feedback_product_id', 'feedback', ['product_id'])


def downgrade() -> None:
    for table in ('feedback', 'order_items', 'orders', 'stock_adjustments', 'customers', 'products', 'user_sessions', 'users'):
        if _has_table(table):
            op.drop_table(table)
