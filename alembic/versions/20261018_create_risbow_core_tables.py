"""Create RISBOW order, return and refund tables

Revision ID: 20261018_risbow_core
Revises:
Create Date: 2026-10-18

Tables:
- users, vendors, products
- orders, order_status_history, order_packing_proofs
- return_requests, return_items, return_timeline, replacement_orders, return_qc_checklists
- refunds, audit_logs, notifications
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import UUID, JSONB


# revision identifiers, used by Alembic.
revision: str = '20261018_risbow_core'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _id():
    return sa.Column('id', UUID(as_uuid=True), primary_key=True, server_default=sa.text('gen_random_uuid()'))


def _timestamp(name: str):
    return sa.Column(name, sa.DateTime(timezone=True), server_default=sa.text('NOW()'), nullable=False)


def upgrade() -> None:
    """Create RISBOW core tables."""

    # ==================== users ====================
    op.create_table(
        'users',
        _id(),
        sa.Column('name', sa.String(200), nullable=True),
        sa.Column('email', sa.String(255), unique=True, nullable=True),
        sa.Column('mobile', sa.String(20), unique=True, nullable=False),
        sa.Column('role', sa.String(50), server_default='CUSTOMER', nullable=False),
        sa.Column('is_active', sa.Boolean, server_default='true', nullable=False),
        _timestamp('created_at'),
        _timestamp('updated_at'),
    )
    op.create_index('ix_users_mobile', 'users', ['mobile'])

    # ==================== vendors ====================
    op.create_table(
        'vendors',
        _id(),
        sa.Column('name', sa.String(200), nullable=False),
        sa.Column('store_name', sa.String(200), nullable=True),
        sa.Column('mobile', sa.String(20), nullable=False),
        sa.Column('is_active', sa.Boolean, server_default='true', nullable=False),
        _timestamp('created_at'),
        _timestamp('updated_at'),
    )
    op.create_index('ix_vendors_mobile', 'vendors', ['mobile'])

    # ==================== products ====================
    op.create_table(
        'products',
        _id(),
        sa.Column('vendor_id', UUID(as_uuid=True), sa.ForeignKey('vendors.id', ondelete='SET NULL'), nullable=True),
        sa.Column('name', sa.String(300), nullable=False),
        sa.Column('sku', sa.String(100), unique=True, nullable=True),
        sa.Column('price', sa.Numeric(12, 2), server_default='0', nullable=False),
        sa.Column('stock', sa.Integer, server_default='0', nullable=False),
        sa.Column('variants', JSONB, nullable=True),
        sa.Column('is_active', sa.Boolean, server_default='true', nullable=False),
        _timestamp('created_at'),
        _timestamp('updated_at'),
    )
    op.create_index('ix_products_vendor_id', 'products', ['vendor_id'])

    # ==================== orders ====================
    op.create_table(
        'orders',
        _id(),
        sa.Column('order_number', sa.String(50), unique=True, nullable=False),
        sa.Column('user_id', UUID(as_uuid=True), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('status', sa.String(50), server_default='CREATED', nullable=False),
        sa.Column('payment_mode', sa.String(20), server_default='ONLINE', nullable=False),
        sa.Column('payment_provider', sa.String(50), nullable=True),
        sa.Column('total_amount', sa.Numeric(12, 2), server_default='0', nullable=False),
        sa.Column('items_snapshot', JSONB, server_default='[]', nullable=False),
        sa.Column('address_id', UUID(as_uuid=True), nullable=True),
        sa.Column('room_id', UUID(as_uuid=True), nullable=True),
        sa.Column('cancellation_reason', sa.Text, nullable=True),
        sa.Column('is_replacement', sa.Boolean, server_default='false', nullable=False),
        _timestamp('created_at'),
        _timestamp('updated_at'),
    )
    op.create_index('ix_orders_order_number', 'orders', ['order_number'])
    op.create_index('ix_orders_user_id', 'orders', ['user_id'])
    op.create_index('ix_orders_status', 'orders', ['status'])

    op.create_table(
        'order_status_history',
        _id(),
        sa.Column('order_id', UUID(as_uuid=True), sa.ForeignKey('orders.id', ondelete='CASCADE'), nullable=False),
        sa.Column('from_status', sa.String(50), nullable=True),
        sa.Column('to_status', sa.String(50), nullable=False),
        sa.Column('changed_by', UUID(as_uuid=True), nullable=True),
        sa.Column('actor_role', sa.String(50), nullable=True),
        sa.Column('notes', sa.Text, nullable=True),
        sa.Column('is_override', sa.Boolean, server_default='false', nullable=False),
        _timestamp('created_at'),
    )
    op.create_index('ix_order_status_history_order_id', 'order_status_history', ['order_id'])

    op.create_table(
        'order_packing_proofs',
        _id(),
        sa.Column('order_id', UUID(as_uuid=True), sa.ForeignKey('orders.id'), unique=True, nullable=False),
        sa.Column('vendor_id', UUID(as_uuid=True), nullable=True),
        sa.Column('uploaded_by_user_id', UUID(as_uuid=True), nullable=True),
        sa.Column('video_path', sa.String(500), nullable=False),
        sa.Column('video_mime', sa.String(100), nullable=False),
        sa.Column('video_size_bytes', sa.BigInteger, nullable=False),
        _timestamp('created_at'),
        _timestamp('updated_at'),
    )

    # ==================== returns ====================
    op.create_table(
        'return_requests',
        _id(),
        sa.Column('return_number', sa.String(50), unique=True, nullable=False),
        sa.Column('user_id', UUID(as_uuid=True), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('order_id', UUID(as_uuid=True), sa.ForeignKey('orders.id'), nullable=False),
        sa.Column('vendor_id', UUID(as_uuid=True), sa.ForeignKey('vendors.id', ondelete='SET NULL'), nullable=True),
        sa.Column('reason', sa.String(50), nullable=False),
        sa.Column('description', sa.Text, nullable=True),
        sa.Column('evidence_images', JSONB, nullable=True),
        sa.Column('evidence_video', sa.String(500), nullable=True),
        sa.Column('pickup_address', JSONB, nullable=True),
        sa.Column('status', sa.String(50), server_default='PENDING_APPROVAL', nullable=False),
        sa.Column('rejection_reason', sa.Text, nullable=True),
        sa.Column('replacement_tracking_id', sa.String(100), nullable=True),
        sa.Column('stock_restored_at', sa.DateTime(timezone=True), nullable=True),
        _timestamp('requested_at'),
        sa.Column('approved_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('rejected_at', sa.DateTime(timezone=True), nullable=True),
        _timestamp('updated_at'),
    )
    op.create_index('ix_return_requests_return_number', 'return_requests', ['return_number'])
    op.create_index('ix_return_requests_user_id', 'return_requests', ['user_id'])
    op.create_index('ix_return_requests_order_id', 'return_requests', ['order_id'])
    op.create_index('ix_return_requests_vendor_id', 'return_requests', ['vendor_id'])
    op.create_index('ix_return_requests_status', 'return_requests', ['status'])

    op.create_table(
        'return_items',
        _id(),
        sa.Column('return_id', UUID(as_uuid=True), sa.ForeignKey('return_requests.id', ondelete='CASCADE'), nullable=False),
        sa.Column('product_id', UUID(as_uuid=True), sa.ForeignKey('products.id'), nullable=False),
        sa.Column('variant_id', sa.String(100), nullable=True),
        sa.Column('quantity', sa.Integer, nullable=False),
        sa.Column('condition', sa.String(100), nullable=True),
        sa.Column('reason', sa.String(50), nullable=True),
    )
    op.create_index('ix_return_items_return_id', 'return_items', ['return_id'])

    op.create_table(
        'return_timeline',
        _id(),
        sa.Column('return_id', UUID(as_uuid=True), sa.ForeignKey('return_requests.id', ondelete='CASCADE'), nullable=False),
        sa.Column('status', sa.String(50), nullable=False),
        sa.Column('action', sa.String(100), nullable=False),
        sa.Column('performed_by', sa.String(20), nullable=False),
        sa.Column('actor_id', UUID(as_uuid=True), nullable=True),
        sa.Column('notes', sa.Text, nullable=True),
        _timestamp('timestamp'),
    )
    op.create_index('ix_return_timeline_return_id', 'return_timeline', ['return_id'])

    op.create_table(
        'replacement_orders',
        _id(),
        sa.Column('original_order_id', UUID(as_uuid=True), sa.ForeignKey('orders.id'), nullable=False),
        sa.Column('return_id', UUID(as_uuid=True), sa.ForeignKey('return_requests.id'), unique=True, nullable=False),
        sa.Column('new_order_id', UUID(as_uuid=True), sa.ForeignKey('orders.id'), nullable=False),
        _timestamp('created_at'),
    )
    op.create_index('ix_replacement_orders_original_order_id', 'replacement_orders', ['original_order_id'])

    op.create_table(
        'return_qc_checklists',
        _id(),
        sa.Column('order_id', UUID(as_uuid=True), sa.ForeignKey('orders.id'), unique=True, nullable=False),
        sa.Column('vendor_id', UUID(as_uuid=True), nullable=True),
        sa.Column('inspector_id', UUID(as_uuid=True), nullable=True),
        sa.Column('schema_version', sa.String(30), nullable=False),
        sa.Column('is_brand_box_intact', sa.Boolean, server_default='true', nullable=False),
        sa.Column('is_product_intact', sa.Boolean, server_default='true', nullable=False),
        sa.Column('is_original_packaging', sa.Boolean, server_default='true', nullable=False),
        sa.Column('is_unused', sa.Boolean, server_default='true', nullable=False),
        sa.Column('all_accessories_present', sa.Boolean, server_default='true', nullable=False),
        sa.Column('has_physical_damage', sa.Boolean, server_default='false', nullable=False),
        sa.Column('imei_match', sa.Boolean, nullable=True),
        sa.Column('missing_accessories', JSONB, nullable=True),
        sa.Column('images', JSONB, nullable=True),
        sa.Column('notes', sa.Text, nullable=True),
        sa.Column('status', sa.String(20), nullable=False),
        _timestamp('created_at'),
        _timestamp('updated_at'),
    )

    # ==================== refunds ====================
    op.create_table(
        'refunds',
        _id(),
        sa.Column('refund_number', sa.String(50), unique=True, nullable=False),
        sa.Column('order_id', UUID(as_uuid=True), sa.ForeignKey('orders.id'), nullable=False),
        sa.Column('user_id', UUID(as_uuid=True), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('return_request_id', UUID(as_uuid=True), sa.ForeignKey('return_requests.id'), nullable=True),
        sa.Column('status', sa.String(50), server_default='PENDING', nullable=False),
        sa.Column('method', sa.String(50), server_default='ORIGINAL_PAYMENT', nullable=False),
        sa.Column('amount', sa.Numeric(12, 2), nullable=False),
        sa.Column('reason', sa.Text, nullable=True),
        sa.Column('admin_notes', sa.Text, nullable=True),
        sa.Column('transaction_id', sa.String(100), nullable=True),
        sa.Column('processed_by', UUID(as_uuid=True), nullable=True),
        sa.Column('processed_at', sa.DateTime(timezone=True), nullable=True),
        _timestamp('created_at'),
        _timestamp('updated_at'),
    )
    op.create_index('ix_refunds_refund_number', 'refunds', ['refund_number'])
    op.create_index('ix_refunds_order_id', 'refunds', ['order_id'])
    op.create_index('ix_refunds_user_id', 'refunds', ['user_id'])
    op.create_index('ix_refunds_status', 'refunds', ['status'])

    # ==================== audit & notifications ====================
    op.create_table(
        'audit_logs',
        _id(),
        sa.Column('actor_id', UUID(as_uuid=True), nullable=True),
        sa.Column('action', sa.String(100), nullable=False),
        sa.Column('entity_type', sa.String(50), nullable=False),
        sa.Column('entity_id', sa.String(100), nullable=True),
        sa.Column('details', JSONB, nullable=True),
        sa.Column('ip_address', sa.String(50), nullable=True),
        sa.Column('user_agent', sa.String(500), nullable=True),
        _timestamp('created_at'),
    )
    op.create_index('ix_audit_logs_actor_id', 'audit_logs', ['actor_id'])
    op.create_index('ix_audit_logs_action', 'audit_logs', ['action'])
    op.create_index('ix_audit_logs_entity_type', 'audit_logs', ['entity_type'])
    op.create_index('ix_audit_logs_entity_id', 'audit_logs', ['entity_id'])

    op.create_table(
        'notifications',
        _id(),
        sa.Column('user_id', UUID(as_uuid=True), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('title', sa.String(200), nullable=False),
        sa.Column('body', sa.Text, nullable=False),
        sa.Column('type', sa.String(30), server_default='SYSTEM', nullable=False),
        sa.Column('audience', sa.String(30), server_default='CUSTOMER', nullable=False),
        sa.Column('is_read', sa.Boolean, server_default='false', nullable=False),
        _timestamp('created_at'),
    )
    op.create_index('ix_notifications_user_id', 'notifications', ['user_id'])


def downgrade() -> None:
    """Drop RISBOW core tables."""
    for table in (
        'notifications',
        'audit_logs',
        'refunds',
        'return_qc_checklists',
        'replacement_orders',
        'return_timeline',
        'return_items',
        'return_requests',
        'order_packing_proofs',
        'order_status_history',
        'orders',
        'products',
        'vendors',
        'users',
    ):
        op.drop_table(table)
