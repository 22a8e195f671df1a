"""initial_delivery_ledgers

Revision ID: 0a1b2c3d4e5f
Revises:
Create Date: 2026-10-19 09:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '0a1b2c3d4e5f'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

MONEY = sa.Numeric(precision=20, scale=2)


def upgrade() -> None:
    """Create order, return, cash register, stock, customer, cost and audit tables."""
    # ── Products & stock ledger ──────────────────────────────────────────
    op.create_table(
        'products',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('description', sa.Text(), nullable=False),
        sa.Column('cost_price', MONEY, nullable=False),
        sa.Column('selling_price', MONEY, nullable=False),
        sa.Column('stock', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('version', sa.Integer(), nullable=False),
        sa.CheckConstraint('cost_price >= 0', name='ck_product_cost_price_non_negative'),
        sa.CheckConstraint('selling_price >= 0', name='ck_product_selling_price_non_negative'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_products_name', 'products', ['name'])

    op.create_table(
        'stock_movements',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('product_id', sa.Uuid(), nullable=False),
        sa.Column(
            'movement_type',
            sa.Enum('INCREASE', 'DECREASE', name='movementtype'),
            nullable=False,
        ),
        sa.Column('quantity', sa.Integer(), nullable=False),
        sa.Column('reason', sa.Text(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.CheckConstraint('quantity > 0', name='ck_stock_movement_qty_positive'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_stock_movements_product', 'stock_movements', ['product_id'])
    op.create_index('ix_stock_movements_created_at', 'stock_movements', ['created_at'])

    # ── Customers & customer ledger ──────────────────────────────────────
    op.create_table(
        'customers',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=True),
        sa.Column('phone', sa.String(length=50), nullable=True),
        sa.Column('address', sa.Text(), nullable=True),
        sa.Column('balance', MONEY, nullable=False, server_default='0'),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('version', sa.Integer(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_customers_name', 'customers', ['name'])
    op.create_index('ix_customers_phone', 'customers', ['phone'])

    op.create_table(
        'customer_transactions',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('customer_id', sa.Uuid(), nullable=False),
        sa.Column(
            'transaction_type',
            sa.Enum('CREDIT', 'DEBIT', name='transactiontype'),
            nullable=False,
        ),
        sa.Column('amount', MONEY, nullable=False),
        sa.Column('description', sa.Text(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.CheckConstraint('amount > 0', name='ck_customer_txn_amount_positive'),
        sa.ForeignKeyConstraint(['customer_id'], ['customers.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_customer_txn_customer', 'customer_transactions', ['customer_id'])
    op.create_index('ix_customer_txn_created_at', 'customer_transactions', ['created_at'])

    # ── Orders ───────────────────────────────────────────────────────────
    op.create_table(
        'orders',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('customer_id', sa.Uuid(), nullable=True),
        sa.Column('customer_name', sa.String(length=255), nullable=False),
        sa.Column('customer_address', sa.Text(), nullable=False),
        sa.Column('customer_phone', sa.String(length=50), nullable=True),
        sa.Column('driver_id', sa.String(length=64), nullable=True),
        sa.Column(
            'status',
            sa.Enum('PENDING', 'ASSIGNED', 'IN_PROGRESS', 'COMPLETED', name='orderstatus'),
            nullable=False,
        ),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('total_amount', MONEY, nullable=False),
        sa.Column('net_amount', MONEY, nullable=False),
        sa.Column('created_on', sa.Date(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('version', sa.Integer(), nullable=False),
        sa.CheckConstraint('total_amount >= 0', name='ck_order_total_non_negative'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_orders_status', 'orders', ['status'])
    op.create_index('ix_orders_driver', 'orders', ['driver_id'])
    op.create_index('ix_orders_customer', 'orders', ['customer_id'])
    op.create_index('ix_orders_created_on', 'orders', ['created_on'])

    op.create_table(
        'order_lines',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('order_id', sa.Uuid(), nullable=False),
        sa.Column('position', sa.Integer(), nullable=False),
        sa.Column('product_id', sa.Uuid(), nullable=False),
        sa.Column('product_name', sa.String(length=255), nullable=True),
        sa.Column('quantity', sa.Integer(), nullable=False),
        sa.Column('unit_price', MONEY, nullable=False),
        sa.CheckConstraint('quantity > 0', name='ck_order_line_qty_positive'),
        sa.CheckConstraint('unit_price >= 0', name='ck_order_line_price_non_negative'),
        sa.ForeignKeyConstraint(['order_id'], ['orders.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_order_lines_order', 'order_lines', ['order_id'])
    op.create_index('ix_order_lines_product', 'order_lines', ['product_id'])

    op.create_table(
        'order_trip_costs',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('order_id', sa.Uuid(), nullable=False),
        sa.Column('position', sa.Integer(), nullable=False),
        sa.Column('amount', MONEY, nullable=False),
        sa.Column('description', sa.Text(), nullable=False),
        sa.CheckConstraint('amount > 0', name='ck_trip_cost_amount_positive'),
        sa.ForeignKeyConstraint(['order_id'], ['orders.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_trip_costs_order', 'order_trip_costs', ['order_id'])

    op.create_table(
        'order_payments',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('order_id', sa.Uuid(), nullable=False),
        sa.Column(
            'payment_type',
            sa.Enum('CASH', 'PIX', name='paymenttype'),
            nullable=False,
        ),
        sa.Column('amount', MONEY, nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.CheckConstraint('amount > 0', name='ck_order_payment_amount_positive'),
        sa.ForeignKeyConstraint(['order_id'], ['orders.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_order_payments_order', 'order_payments', ['order_id'])
    op.create_index('ix_order_payments_type', 'order_payments', ['payment_type'])

    # ── Returns ──────────────────────────────────────────────────────────
    op.create_table(
        'order_returns',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('order_id', sa.Uuid(), nullable=False),
        sa.Column('reason', sa.Text(), nullable=False),
        sa.Column(
            'status',
            sa.Enum('PENDING', 'APPROVED', 'REJECTED', 'COMPLETED', name='returnstatus'),
            nullable=False,
        ),
        sa.Column('refund_amount', MONEY, nullable=False, server_default='0'),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('version', sa.Integer(), nullable=False),
        sa.CheckConstraint('refund_amount >= 0', name='ck_return_refund_non_negative'),
        sa.ForeignKeyConstraint(['order_id'], ['orders.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('order_id'),
    )
    op.create_index('ix_order_returns_status', 'order_returns', ['status'])

    op.create_table(
        'order_return_items',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('return_id', sa.Uuid(), nullable=False),
        sa.Column('product_id', sa.Uuid(), nullable=False),
        sa.Column('product_name', sa.String(length=255), nullable=True),
        sa.Column('quantity', sa.Integer(), nullable=False),
        sa.Column('unit_price', MONEY, nullable=False),
        sa.CheckConstraint('quantity > 0', name='ck_return_item_qty_positive'),
        sa.ForeignKeyConstraint(['return_id'], ['order_returns.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_return_items_return', 'order_return_items', ['return_id'])

    # ── Cash register ────────────────────────────────────────────────────
    op.create_table(
        'cash_register_days',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('business_date', sa.Date(), nullable=False),
        sa.Column(
            'status',
            sa.Enum('OPEN', 'CLOSED', name='registerstatus'),
            nullable=False,
        ),
        sa.Column('opening_balance', MONEY, nullable=False, server_default='0'),
        sa.Column('closing_balance', MONEY, nullable=True),
        sa.Column('total_cash', MONEY, nullable=False, server_default='0'),
        sa.Column('total_pix', MONEY, nullable=False, server_default='0'),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('opened_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('closed_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('version', sa.Integer(), nullable=False),
        sa.CheckConstraint('opening_balance >= 0', name='ck_register_opening_non_negative'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('business_date'),
    )
    op.create_index('ix_register_days_status', 'cash_register_days', ['status'])

    op.create_table(
        'cash_movements',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('register_id', sa.Uuid(), nullable=False),
        sa.Column(
            'kind',
            sa.Enum('DEPOSIT', 'WITHDRAWAL', name='movementkind'),
            nullable=False,
        ),
        sa.Column('amount', MONEY, nullable=False),
        sa.Column('reason', sa.Text(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.CheckConstraint('amount > 0', name='ck_cash_movement_amount_positive'),
        sa.ForeignKeyConstraint(['register_id'], ['cash_register_days.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_cash_movements_register', 'cash_movements', ['register_id'])

    # ── Costs ────────────────────────────────────────────────────────────
    op.create_table(
        'costs',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('cost_date', sa.Date(), nullable=False),
        sa.Column('description', sa.Text(), nullable=False),
        sa.Column('amount', MONEY, nullable=False),
        sa.Column(
            'category',
            sa.Enum('DIESEL', 'ALIMENTACAO', 'CONTAS', 'PNEU', 'OUTROS', name='costcategory'),
            nullable=False,
        ),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.CheckConstraint('amount > 0', name='ck_cost_amount_positive'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_costs_cost_date', 'costs', ['cost_date'])
    op.create_index('ix_costs_category', 'costs', ['category'])

    # ── Audit ────────────────────────────────────────────────────────────
    op.create_table(
        'audit_logs',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('table_name', sa.String(length=100), nullable=False),
        sa.Column('record_id', sa.String(length=255), nullable=False),
        sa.Column('action', sa.String(length=50), nullable=False),
        sa.Column('actor', sa.String(length=64), nullable=True),
        sa.Column('new_values', sa.JSON(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_audit_table_record', 'audit_logs', ['table_name', 'record_id'])
    op.create_index('ix_audit_created_at', 'audit_logs', ['created_at'])
    op.create_index('ix_audit_action', 'audit_logs', ['action'])


def downgrade() -> None:
    """Drop every table created above, children first."""
    op.drop_table('audit_logs')
    op.drop_table('costs')
    op.drop_table('cash_movements')
    op.drop_table('cash_register_days')
    op.drop_table('order_return_items')
    op.drop_table('order_returns')
    op.drop_table('order_payments')
    op.drop_table('order_trip_costs')
    op.drop_table('order_lines')
    op.drop_table('orders')
    op.drop_table('customer_transactions')
    op.drop_table('customers')
    op.drop_table('stock_movements')
    op.drop_table('products')
    if op.get_bind().dialect.name == "postgresql":
        for enum_name in (
            'costcategory', 'movementkind', 'registerstatus', 'returnstatus',
            'paymenttype', 'orderstatus', 'transactiontype', 'movementtype',
        ):
            op.execute(f"DROP TYPE IF EXISTS {enum_name}")
