"""initial schema

Revision ID: 0001_initial_schema
Revises:
Create Date: 2026-10-17 09:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision: str = '0001_initial_schema'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _id():
    return sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True, server_default=sa.text('gen_random_uuid()'))


def _org(ondelete='CASCADE', nullable=False):
    return sa.Column(
        'organization_id', postgresql.UUID(as_uuid=True),
        sa.ForeignKey('organizations.id', ondelete=ondelete), nullable=nullable,
    )


def _created(nullable=True):
    return sa.Column('created_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('now()'), nullable=nullable)


def _updated():
    return sa.Column('updated_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('now()'), nullable=True)


def _money(name, nullable=False, default=None):
    if default is None:
        return sa.Column(name, sa.Numeric(12, 2), nullable=nullable)
    return sa.Column(name, sa.Numeric(12, 2), nullable=nullable, server_default=sa.text(default))


def _flag(name, default):
    return sa.Column(name, sa.Boolean(), nullable=False, server_default=sa.text(default))


def _fk(name, target, ondelete=None, nullable=True):
    return sa.Column(
        name, postgresql.UUID(as_uuid=True), sa.ForeignKey(target, ondelete=ondelete), nullable=nullable,
    )


def upgrade() -> None:
    """Upgrade schema."""
    op.execute('CREATE EXTENSION IF NOT EXISTS pgcrypto')

    # identity and tenancy
    op.create_table(
        'users',
        _id(),
        sa.Column('email', sa.String(), nullable=False),
        sa.Column('display_name', sa.String(), nullable=True),
        _flag('is_superadmin', 'false'),
        sa.Column('auth_provider', sa.String(), nullable=True),
        _created(),
        _updated(),
    )
    op.create_index(op.f('ix_users_email'), 'users', ['email'], unique=True)

    op.create_table(
        'organizations',
        _id(),
        sa.Column('name', sa.String(), nullable=False, unique=True),
        sa.Column('slug', sa.String(), nullable=True, unique=True),
        sa.Column('cnpj', sa.String(), nullable=True),
        sa.Column('city', sa.String(), nullable=True),
        _flag('is_active', 'true'),
        _fk('created_by', 'users.id'),
        _created(),
        _updated(),
    )

    op.create_table(
        'organization_memberships',
        sa.Column('organization_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('organizations.id', ondelete='CASCADE'), primary_key=True),
        sa.Column('user_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('users.id'), primary_key=True),
        sa.Column('role', sa.String(), nullable=False),
        _flag('can_read', 'true'),
        _flag('can_write', 'false'),
        _created(),
        sa.CheckConstraint("role in ('owner','admin','editor','viewer')", name='ck_org_memberships_role'),
    )
    op.create_index('idx_org_memberships_user_id', 'organization_memberships', ['user_id'], unique=False)

    op.create_table(
        'audit_logs',
        _id(),
        _org(ondelete='SET NULL', nullable=True),
        _fk('actor_user_id', 'users.id'),
        sa.Column('action_type', sa.Text(), nullable=False),
        sa.Column('target_type', sa.Text(), nullable=True),
        sa.Column('target_id', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('status', sa.Text(), nullable=False),
        sa.Column('reason', sa.Text(), nullable=True),
        sa.Column('metadata', postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        _created(nullable=False),
    )
    op.create_index(op.f('ix_audit_logs_organization_id_created_at'), 'audit_logs', ['organization_id', 'created_at'], unique=False)
    op.create_index(op.f('ix_audit_logs_actor_user_id_created_at'), 'audit_logs', ['actor_user_id', 'created_at'], unique=False)
    op.create_index(op.f('ix_audit_logs_action_type'), 'audit_logs', ['action_type'], unique=False)

    op.create_table(
        'notifications',
        _id(),
        _fk('user_id', 'users.id', ondelete='CASCADE', nullable=False),
        _org(nullable=True),
        sa.Column('event_type', sa.String(length=50), nullable=False),
        sa.Column('title', sa.String(length=200), nullable=False),
        sa.Column('message', sa.Text(), nullable=False),
        sa.Column('action_url', sa.String(length=500), nullable=True),
        sa.Column('metadata', postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        _flag('is_read', 'false'),
        sa.Column('read_at', sa.TIMESTAMP(timezone=True), nullable=True),
        _created(nullable=False),
    )
    op.create_index('idx_notifications_user_id_created_at', 'notifications', ['user_id', 'created_at'], unique=False)
    op.create_index('idx_notifications_user_id_is_read', 'notifications', ['user_id', 'is_read'], unique=False)
    op.create_index('idx_notifications_event_type', 'notifications', ['event_type'], unique=False)

    # customers and catalog
    op.create_table(
        'customers',
        _id(),
        _org(),
        _fk('user_id', 'users.id'),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('email', sa.String(), nullable=True),
        sa.Column('phone', sa.String(), nullable=True),
        sa.Column('cpf_cnpj', sa.String(), nullable=True),
        sa.Column('city', sa.String(), nullable=True),
        sa.Column('address', sa.Text(), nullable=True),
        sa.Column('customer_type', sa.String(), nullable=False, server_default='NORMAL'),
        _money('credit_limit', default='0'),
        _money('available_credit', default='0'),
        sa.Column('payment_terms', sa.Integer(), nullable=False, server_default=sa.text('0')),
        _flag('manually_unblocked', 'false'),
        _flag('is_active', 'true'),
        sa.Column('points_balance', sa.Integer(), nullable=False, server_default=sa.text('0')),
        sa.Column('total_points_earned', sa.Integer(), nullable=False, server_default=sa.text('0')),
        sa.Column('total_points_redeemed', sa.Integer(), nullable=False, server_default=sa.text('0')),
        sa.Column('points_multiplier', sa.Float(), nullable=False, server_default=sa.text('1.0')),
        _fk('referred_by_id', 'customers.id'),
        _flag('reminders_enabled', 'false'),
        sa.Column('reminder_interval_days', sa.Integer(), nullable=True),
        sa.Column('reminder_message', sa.Text(), nullable=True),
        sa.Column('last_reminder_sent', sa.TIMESTAMP(timezone=True), nullable=True),
        sa.Column('total_reminders_sent', sa.Integer(), nullable=False, server_default=sa.text('0')),
        _created(),
        _updated(),
        sa.CheckConstraint("customer_type in ('NORMAL','CONSUMIDOR_FINAL')", name='ck_customers_customer_type'),
    )
    op.create_index('ix_customers_organization_id_name', 'customers', ['organization_id', 'name'], unique=False)
    op.create_index('ix_customers_user_id', 'customers', ['user_id'], unique=False)

    op.create_table(
        'products',
        _id(),
        _org(),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('code', sa.String(), nullable=True),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('unit', sa.String(), nullable=False, server_default='UN'),
        _money('price_wholesale'),
        _money('price_retail'),
        _flag('is_on_promotion', 'false'),
        _money('promotional_price', nullable=True),
        sa.Column('bulk_discount_min_qty', sa.Integer(), nullable=True),
        _money('bulk_discount_price', nullable=True),
        sa.Column('current_stock', sa.Integer(), nullable=False, server_default=sa.text('0')),
        _flag('is_active', 'true'),
        _created(),
        _updated(),
    )
    op.create_index('ix_products_organization_id_name', 'products', ['organization_id', 'name'], unique=False)

    op.create_table(
        'customer_products',
        _id(),
        _fk('customer_id', 'customers.id', ondelete='CASCADE', nullable=False),
        _fk('product_id', 'products.id', ondelete='CASCADE', nullable=False),
        _money('custom_price'),
        _flag('is_visible', 'true'),
        _created(),
        sa.UniqueConstraint('customer_id', 'product_id', name='uq_customer_products_customer_product'),
    )

    # coupons
    op.create_table(
        'coupons',
        _id(),
        _org(),
        sa.Column('code', sa.String(), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('discount_type', sa.String(), nullable=False),
        sa.Column('discount_value', sa.Float(), nullable=False),
        _money('min_order_value', nullable=True),
        _money('max_discount', nullable=True),
        sa.Column('valid_from', sa.Date(), nullable=True),
        sa.Column('valid_until', sa.Date(), nullable=True),
        sa.Column('usage_limit', sa.Integer(), nullable=True),
        sa.Column('usage_count', sa.Integer(), nullable=False, server_default=sa.text('0')),
        _flag('is_one_time_per_customer', 'false'),
        _flag('is_active', 'true'),
        _fk('created_by', 'users.id'),
        _created(),
        _updated(),
        sa.UniqueConstraint('organization_id', 'code', name='uq_coupons_organization_id_code'),
    )

    # orders
    op.create_table(
        'orders',
        _id(),
        _org(),
        sa.Column('order_number', sa.String(), nullable=False, unique=True),
        _fk('customer_id', 'customers.id'),
        sa.Column('casual_customer_name', sa.String(), nullable=True),
        sa.Column('order_type', sa.String(), nullable=False, server_default='WHOLESALE'),
        sa.Column('status', sa.String(), nullable=False, server_default='PENDING'),
        sa.Column('payment_status', sa.String(), nullable=False, server_default='UNPAID'),
        sa.Column('payment_method', sa.String(), nullable=False),
        sa.Column('delivery_type', sa.String(), nullable=False, server_default='pickup'),
        sa.Column('delivery_date', sa.Date(), nullable=True),
        _money('subtotal', default='0'),
        sa.Column('discount_percent', sa.Float(), nullable=False, server_default=sa.text('0')),
        _money('discount', default='0'),
        _money('delivery_fee', default='0'),
        _money('card_fee', default='0'),
        _fk('coupon_id', 'coupons.id', ondelete='SET NULL'),
        sa.Column('coupon_code', sa.String(), nullable=True),
        _money('coupon_discount', default='0'),
        _money('total', default='0'),
        sa.Column('points_earned', sa.Integer(), nullable=False, server_default=sa.text('0')),
        sa.Column('notes', sa.Text(), nullable=True),
        _fk('created_by', 'users.id'),
        sa.Column('delivered_at', sa.TIMESTAMP(timezone=True), nullable=True),
        _created(nullable=False),
        _updated(),
        sa.CheckConstraint(
            "status in ('PENDING','CONFIRMED','PROCESSING','READY','SHIPPED','DELIVERED','CANCELLED')",
            name='ck_orders_status',
        ),
    )
    op.create_index('ix_orders_organization_id_created_at', 'orders', ['organization_id', 'created_at'], unique=False)
    op.create_index('ix_orders_customer_id_status', 'orders', ['customer_id', 'status'], unique=False)

    op.create_table(
        'order_items',
        _id(),
        _fk('order_id', 'orders.id', ondelete='CASCADE', nullable=False),
        _fk('product_id', 'products.id', nullable=False),
        sa.Column('quantity', sa.Integer(), nullable=False),
        _money('unit_price'),
        _money('total'),
    )

    op.create_table(
        'coupon_usages',
        _id(),
        _fk('coupon_id', 'coupons.id', ondelete='CASCADE', nullable=False),
        _fk('customer_id', 'customers.id', ondelete='CASCADE', nullable=False),
        _fk('order_id', 'orders.id', ondelete='SET NULL'),
        _money('discount'),
        sa.Column('used_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('now()'), nullable=False),
    )
    op.create_index(
        'ix_coupon_usages_coupon_id_customer_id', 'coupon_usages', ['coupon_id', 'customer_id'], unique=False,
    )

    # finance
    op.create_table(
        'bank_accounts',
        _id(),
        _org(),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('bank_name', sa.String(), nullable=True),
        sa.Column('agency', sa.String(), nullable=True),
        sa.Column('account_number', sa.String(), nullable=True),
        _money('balance', default='0'),
        _flag('is_active', 'true'),
        _created(),
        _updated(),
    )

    op.create_table(
        'transactions',
        _id(),
        _org(),
        _fk('bank_account_id', 'bank_accounts.id', nullable=False),
        sa.Column('type', sa.String(), nullable=False),
        _money('amount'),
        sa.Column('description', sa.Text(), nullable=False),
        sa.Column('category', sa.String(), nullable=True),
        sa.Column('reference_type', sa.String(), nullable=True),
        sa.Column('reference_id', postgresql.UUID(as_uuid=True), nullable=True),
        _money('balance_after'),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('date', sa.TIMESTAMP(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('created_by', sa.String(), nullable=True),
        _created(nullable=False),
        sa.CheckConstraint("type in ('INCOME','EXPENSE','TRANSFER')", name='ck_transactions_type'),
    )
    op.create_index('ix_transactions_bank_account_id_date', 'transactions', ['bank_account_id', 'date'], unique=False)
    op.create_index('ix_transactions_reference', 'transactions', ['reference_type', 'reference_id'], unique=False)

    op.create_table(
        'boletos',
        _id(),
        _org(),
        sa.Column('boleto_number', sa.String(), nullable=False, unique=True),
        _fk('customer_id', 'customers.id', nullable=False),
        _fk('order_id', 'orders.id'),
        _money('amount'),
        sa.Column('due_date', sa.Date(), nullable=False),
        sa.Column('status', sa.String(), nullable=False, server_default='PENDING'),
        _flag('is_installment', 'false'),
        sa.Column('installment_number', sa.Integer(), nullable=True),
        sa.Column('total_installments', sa.Integer(), nullable=True),
        sa.Column('paid_date', sa.TIMESTAMP(timezone=True), nullable=True),
        sa.Column('paid_by', sa.String(), nullable=True),
        _money('paid_amount', nullable=True),
        _money('interest', nullable=True),
        _money('fine', nullable=True),
        _fk('bank_account_id', 'bank_accounts.id'),
        sa.Column('notes', sa.Text(), nullable=True),
        _created(nullable=False),
        _updated(),
        sa.CheckConstraint("status in ('PENDING','OVERDUE','PAID','CANCELLED')", name='ck_boletos_status'),
    )
    op.create_index('ix_boletos_organization_id_due_date', 'boletos', ['organization_id', 'due_date'], unique=False)
    op.create_index('ix_boletos_customer_id_status', 'boletos', ['customer_id', 'status'], unique=False)

    op.create_table(
        'receivables',
        _id(),
        _org(),
        _fk('customer_id', 'customers.id'),
        _fk('order_id', 'orders.id'),
        _fk('boleto_id', 'boletos.id'),
        _fk('parent_id', 'receivables.id'),
        sa.Column('description', sa.Text(), nullable=False),
        _money('amount'),
        sa.Column('due_date', sa.Date(), nullable=False),
        sa.Column('payment_date', sa.TIMESTAMP(timezone=True), nullable=True),
        sa.Column('status', sa.String(), nullable=False, server_default='PENDING'),
        sa.Column('payment_method', sa.String(), nullable=True),
        _flag('is_installment', 'false'),
        sa.Column('installment_number', sa.Integer(), nullable=True),
        sa.Column('total_installments', sa.Integer(), nullable=True),
        _money('fee_amount', nullable=True),
        _money('net_amount', nullable=True),
        _money('interest', nullable=True),
        _money('fine', nullable=True),
        _fk('bank_account_id', 'bank_accounts.id'),
        sa.Column('paid_by', sa.String(), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        _created(nullable=False),
        _updated(),
        sa.CheckConstraint("status in ('PENDING','OVERDUE','PAID','CANCELLED')", name='ck_receivables_status'),
    )
    op.create_index('ix_receivables_organization_id_due_date', 'receivables', ['organization_id', 'due_date'], unique=False)
    op.create_index('ix_receivables_order_id', 'receivables', ['order_id'], unique=False)
    op.create_index('ix_receivables_boleto_id', 'receivables', ['boleto_id'], unique=False)

    op.create_table(
        'card_transactions',
        _id(),
        _org(),
        _fk('order_id', 'orders.id'),
        _fk('customer_id', 'customers.id'),
        _fk('receivable_id', 'receivables.id'),
        sa.Column('card_type', sa.String(), nullable=False),
        _money('gross_amount'),
        sa.Column('fee_percentage', sa.Float(), nullable=False),
        _money('fee_amount'),
        _money('net_amount'),
        sa.Column('transaction_date', sa.TIMESTAMP(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('expected_date', sa.Date(), nullable=False),
        sa.Column('received_date', sa.TIMESTAMP(timezone=True), nullable=True),
        sa.Column('status', sa.String(), nullable=False, server_default='PENDING'),
        _fk('bank_account_id', 'bank_accounts.id'),
        _created(nullable=False),
    )
    op.create_index('ix_card_transactions_organization_id_status', 'card_transactions', ['organization_id', 'status'], unique=False)

    op.create_table(
        'expense_categories',
        _id(),
        _org(),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('expense_type', sa.String(), nullable=False, server_default='OPERATIONAL'),
        sa.Column('color', sa.String(), nullable=True),
        _flag('is_active', 'true'),
        _created(),
    )
    op.create_index('ix_expense_categories_organization_id_name', 'expense_categories', ['organization_id', 'name'], unique=True)

    op.create_table(
        'expenses',
        _id(),
        _org(),
        sa.Column('description', sa.Text(), nullable=False),
        _money('amount'),
        _money('fee_amount', nullable=True),
        _fk('category_id', 'expense_categories.id'),
        sa.Column('expense_type', sa.String(), nullable=False, server_default='OTHER'),
        sa.Column('due_date', sa.Date(), nullable=False),
        sa.Column('competence_date', sa.Date(), nullable=True),
        sa.Column('payment_date', sa.TIMESTAMP(timezone=True), nullable=True),
        sa.Column('status', sa.String(), nullable=False, server_default='PENDING'),
        _fk('bank_account_id', 'bank_accounts.id'),
        sa.Column('paid_by', sa.String(), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        _created(nullable=False),
        _updated(),
        sa.CheckConstraint("status in ('PENDING','PAID','CANCELLED')", name='ck_expenses_status'),
        sa.CheckConstraint(
            "expense_type in ('OPERATIONAL','PRODUCTS','RAW_MATERIALS','OTHER')",
            name='ck_expenses_expense_type',
        ),
    )
    op.create_index('ix_expenses_organization_id_due_date', 'expenses', ['organization_id', 'due_date'], unique=False)

    # hr
    op.create_table(
        'employees',
        _id(),
        _org(),
        _fk('user_id', 'users.id'),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('cpf', sa.String(), nullable=True),
        sa.Column('position', sa.String(), nullable=True),
        sa.Column('phone', sa.String(), nullable=True),
        sa.Column('email', sa.String(), nullable=True),
        _money('salary', nullable=True),
        sa.Column('admission_date', sa.Date(), nullable=True),
        _flag('is_active', 'true'),
        _created(),
        _updated(),
    )

    op.create_table(
        'employee_payments',
        _id(),
        _org(),
        _fk('employee_id', 'employees.id', ondelete='CASCADE', nullable=False),
        sa.Column('month', sa.Integer(), nullable=False),
        sa.Column('year', sa.Integer(), nullable=False),
        _money('salary_gross_amount', default='0'),
        _money('advance_gross_amount', default='0'),
        _money('food_voucher_gross_amount', default='0'),
        _money('bonus_gross_amount', default='0'),
        _money('extra_earnings_amount', default='0'),
        _money('total_gross_amount', default='0'),
        _money('salary_amount', default='0'),
        _money('advance_amount', default='0'),
        _money('food_voucher_amount', default='0'),
        _money('bonus_amount', default='0'),
        _money('total_amount', default='0'),
        _money('inss_discount', default='0'),
        _money('irpf_discount', default='0'),
        _money('other_discounts', default='0'),
        _money('total_discounts', default='0'),
        sa.Column('salary_due_date', sa.Date(), nullable=True),
        sa.Column('bonus_due_date', sa.Date(), nullable=True),
        sa.Column('food_voucher_due_date', sa.Date(), nullable=True),
        sa.Column('advance_due_date', sa.Date(), nullable=True),
        sa.Column('earnings_items', postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        _fk('salary_expense_id', 'expenses.id', ondelete='SET NULL'),
        _fk('bonus_expense_id', 'expenses.id', ondelete='SET NULL'),
        _fk('food_voucher_expense_id', 'expenses.id', ondelete='SET NULL'),
        _fk('advance_expense_id', 'expenses.id', ondelete='SET NULL'),
        _flag('salary_paid', 'false'),
        _flag('bonus_paid', 'false'),
        _flag('food_voucher_paid', 'false'),
        _flag('advance_paid', 'false'),
        _flag('is_paid', 'false'),
        sa.Column('paid_at', sa.TIMESTAMP(timezone=True), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        _created(nullable=False),
    )
    op.create_index('ix_employee_payments_employee_id_period', 'employee_payments', ['employee_id', 'year', 'month'], unique=False)

    op.create_table(
        'payment_acknowledgments',
        _id(),
        _fk('payment_id', 'employee_payments.id', ondelete='CASCADE', nullable=False),
        _fk('employee_id', 'employees.id', ondelete='CASCADE', nullable=False),
        _fk('acknowledged_by', 'users.id'),
        sa.Column('ip_address', sa.String(), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('acknowledged_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.UniqueConstraint('payment_id', 'employee_id', name='uq_payment_acknowledgments_payment_employee'),
    )

    # loyalty
    op.create_table(
        'point_transactions',
        _id(),
        _org(),
        _fk('customer_id', 'customers.id', ondelete='CASCADE', nullable=False),
        _fk('order_id', 'orders.id', ondelete='SET NULL'),
        sa.Column('type', sa.String(), nullable=False),
        sa.Column('points', sa.Integer(), nullable=False),
        sa.Column('multiplier_applied', sa.Float(), nullable=False, server_default=sa.text('1.0')),
        sa.Column('description', sa.Text(), nullable=False),
        _created(nullable=False),
    )
    op.create_index('ix_point_transactions_customer_id_created_at', 'point_transactions', ['customer_id', 'created_at'], unique=False)

    op.create_table(
        'prizes',
        _id(),
        _org(),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('points_cost', sa.Integer(), nullable=False),
        sa.Column('stock_quantity', sa.Integer(), nullable=True),
        _flag('is_active', 'true'),
        _created(),
    )

    op.create_table(
        'redemptions',
        _id(),
        _org(),
        _fk('customer_id', 'customers.id', ondelete='CASCADE', nullable=False),
        _fk('prize_id', 'prizes.id', nullable=False),
        sa.Column('points_used', sa.Integer(), nullable=False),
        sa.Column('status', sa.String(), nullable=False, server_default='PENDING'),
        sa.Column('processed_at', sa.TIMESTAMP(timezone=True), nullable=True),
        sa.Column('processed_by', sa.String(), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('rejection_reason', sa.Text(), nullable=True),
        _created(nullable=False),
    )

    op.create_table(
        'referral_configs',
        _id(),
        sa.Column('organization_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('organizations.id', ondelete='CASCADE'), nullable=False, unique=True),
        sa.Column('bonus_points_per_referral', sa.Integer(), nullable=False, server_default=sa.text('100')),
        sa.Column('bonus_for_referred', sa.Integer(), nullable=False, server_default=sa.text('0')),
        _flag('require_first_order', 'true'),
        _updated(),
    )

    op.create_table(
        'referrals',
        _id(),
        _org(),
        _fk('referrer_id', 'customers.id', ondelete='CASCADE', nullable=False),
        sa.Column('referred_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('customers.id', ondelete='CASCADE'), nullable=False, unique=True),
        sa.Column('status', sa.String(), nullable=False, server_default='PENDING'),
        sa.Column('bonus_points', sa.Integer(), nullable=False, server_default=sa.text('0')),
        sa.Column('completed_at', sa.TIMESTAMP(timezone=True), nullable=True),
        _created(nullable=False),
    )

    # investments
    op.create_table(
        'investment_companies',
        _id(),
        _org(),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('ticker', sa.String(), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('total_shares', sa.BigInteger(), nullable=False),
        sa.Column('current_price', sa.Float(), nullable=False),
        sa.Column('valuation', sa.Float(), nullable=False, server_default=sa.text('0')),
        _created(),
        sa.UniqueConstraint('organization_id', 'ticker', name='uq_investment_companies_org_ticker'),
    )

    op.create_table(
        'investor_profiles',
        _id(),
        _org(),
        sa.Column('customer_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('customers.id', ondelete='CASCADE'), nullable=False, unique=True),
        _money('balance', default='0'),
        _created(),
    )

    op.create_table(
        'investor_portfolios',
        _id(),
        _fk('investor_id', 'investor_profiles.id', ondelete='CASCADE', nullable=False),
        _fk('company_id', 'investment_companies.id', ondelete='CASCADE', nullable=False),
        sa.Column('shares', sa.BigInteger(), nullable=False, server_default=sa.text('0')),
        sa.Column('avg_price', sa.Float(), nullable=False, server_default=sa.text('0')),
        sa.UniqueConstraint('investor_id', 'company_id', name='uq_investor_portfolios_investor_company'),
    )

    op.create_table(
        'investor_gifted_shares',
        _id(),
        _fk('investor_id', 'investor_profiles.id', ondelete='CASCADE', nullable=False),
        _fk('company_id', 'investment_companies.id', ondelete='CASCADE', nullable=False),
        sa.Column('shares', sa.BigInteger(), nullable=False),
        sa.Column('vesting_date', sa.TIMESTAMP(timezone=True), nullable=False),
        sa.Column('reason', sa.Text(), nullable=True),
        _created(),
    )

    op.create_table(
        'share_transactions',
        _id(),
        _fk('investor_id', 'investor_profiles.id', ondelete='CASCADE', nullable=False),
        _fk('company_id', 'investment_companies.id', ondelete='CASCADE', nullable=False),
        sa.Column('type', sa.String(), nullable=False),
        sa.Column('shares', sa.BigInteger(), nullable=False),
        sa.Column('price', sa.Float(), nullable=False),
        _money('total_value'),
        _created(nullable=False),
    )

    op.create_table(
        'share_price_history',
        _id(),
        _fk('company_id', 'investment_companies.id', ondelete='CASCADE', nullable=False),
        sa.Column('price', sa.Float(), nullable=False),
        _created(nullable=False),
    )
    op.create_index('ix_share_price_history_company_id_created_at', 'share_price_history', ['company_id', 'created_at'], unique=False)

    op.create_table(
        'investor_deposits',
        _id(),
        _fk('investor_id', 'investor_profiles.id', ondelete='CASCADE', nullable=False),
        _money('amount'),
        sa.Column('status', sa.String(), nullable=False, server_default='PENDING'),
        sa.Column('processed_at', sa.TIMESTAMP(timezone=True), nullable=True),
        _created(nullable=False),
    )

    op.create_table(
        'investor_withdrawals',
        _id(),
        _fk('investor_id', 'investor_profiles.id', ondelete='CASCADE', nullable=False),
        _money('amount'),
        sa.Column('pix_key', sa.String(), nullable=False),
        sa.Column('pix_key_type', sa.String(), nullable=False),
        sa.Column('status', sa.String(), nullable=False, server_default='PENDING'),
        sa.Column('processed_at', sa.TIMESTAMP(timezone=True), nullable=True),
        _created(nullable=False),
    )

    # fiscal
    op.create_table(
        'fiscal_invoices',
        _id(),
        _org(),
        _fk('order_id', 'orders.id', ondelete='SET NULL'),
        sa.Column('invoice_type', sa.String(), nullable=False),
        sa.Column('status', sa.String(), nullable=False, server_default='PROCESSING'),
        sa.Column('customer_name', sa.String(), nullable=False),
        sa.Column('customer_cpf_cnpj', sa.String(), nullable=True),
        sa.Column('customer_email', sa.String(), nullable=True),
        sa.Column('customer_phone', sa.String(), nullable=True),
        sa.Column('customer_address', sa.String(), nullable=True),
        sa.Column('customer_number', sa.String(), nullable=True),
        sa.Column('customer_district', sa.String(), nullable=True),
        sa.Column('customer_city', sa.String(), nullable=True),
        sa.Column('customer_state', sa.String(), nullable=True),
        sa.Column('customer_zip_code', sa.String(), nullable=True),
        _money('total_value'),
        _money('discount', default='0'),
        sa.Column('payment_method', sa.String(), nullable=True),
        sa.Column('gateway_id', sa.String(), nullable=True),
        sa.Column('invoice_number', sa.String(), nullable=True),
        sa.Column('series', sa.String(), nullable=True),
        sa.Column('access_key', sa.String(), nullable=True),
        sa.Column('protocol', sa.String(), nullable=True),
        sa.Column('authorization_date', sa.TIMESTAMP(timezone=True), nullable=True),
        sa.Column('xml_url', sa.Text(), nullable=True),
        sa.Column('pdf_url', sa.Text(), nullable=True),
        sa.Column('error_message', sa.Text(), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        _created(nullable=False),
        _updated(),
    )
    op.create_index('ix_fiscal_invoices_organization_id_created_at', 'fiscal_invoices', ['organization_id', 'created_at'], unique=False)
    op.create_index('ix_fiscal_invoices_order_id', 'fiscal_invoices', ['order_id'], unique=False)

    op.create_table(
        'fiscal_invoice_items',
        _id(),
        _fk('invoice_id', 'fiscal_invoices.id', ondelete='CASCADE', nullable=False),
        sa.Column('product_name', sa.String(), nullable=False),
        sa.Column('product_code', sa.String(), nullable=True),
        sa.Column('ncm', sa.String(), nullable=False, server_default='1602.50.00'),
        sa.Column('cfop', sa.String(), nullable=False, server_default='5102'),
        sa.Column('quantity', sa.Integer(), nullable=False),
        _money('unit_value'),
        _money('total_value'),
    )


def downgrade() -> None:
    """Downgrade schema."""
    for table in (
        'fiscal_invoice_items',
        'fiscal_invoices',
        'investor_withdrawals',
        'investor_deposits',
        'share_price_history',
        'share_transactions',
        'investor_gifted_shares',
        'investor_portfolios',
        'investor_profiles',
        'investment_companies',
        'referrals',
        'referral_configs',
        'redemptions',
        'prizes',
        'point_transactions',
        'payment_acknowledgments',
        'employee_payments',
        'employees',
        'expenses',
        'expense_categories',
        'card_transactions',
        'receivables',
        'boletos',
        'transactions',
        'bank_accounts',
        'coupon_usages',
        'order_items',
        'orders',
        'coupons',
        'customer_products',
        'products',
        'customers',
        'notifications',
        'audit_logs',
        'organization_memberships',
        'organizations',
        'users',
    ):
        op.drop_table(table)
