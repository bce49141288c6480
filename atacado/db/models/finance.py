import uuid
from sqlalchemy import Column, String, Text, DateTime, Date, Boolean, Integer, Float, ForeignKey, Index, CheckConstraint
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
from .base import Base, now_utc, MONEY


class BankAccount(Base):
    __tablename__ = 'bank_accounts'
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    organization_id = Column(UUID(as_uuid=True), ForeignKey('organizations.id', ondelete='CASCADE'), nullable=False)
    name = Column(String, nullable=False)
    bank_name = Column(String, nullable=True)
    agency = Column(String, nullable=True)
    account_number = Column(String, nullable=True)
    balance = Column(MONEY, nullable=False, default=0)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), default=now_utc)
    updated_at = Column(DateTime(timezone=True), default=now_utc, onupdate=now_utc)


class Transaction(Base):
    """Bank ledger line. ``balance_after`` is the account balance right after it."""
    __tablename__ = 'transactions'
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    organization_id = Column(UUID(as_uuid=True), ForeignKey('organizations.id', ondelete='CASCADE'), nullable=False)
    bank_account_id = Column(UUID(as_uuid=True), ForeignKey('bank_accounts.id'), nullable=False)
    type = Column(String, nullable=False)  # INCOME|EXPENSE|TRANSFER
    amount = Column(MONEY, nullable=False)
    description = Column(Text, nullable=False)
    category = Column(String, nullable=True)
    reference_type = Column(String, nullable=True)
    reference_id = Column(UUID(as_uuid=True), nullable=True)
    balance_after = Column(MONEY, nullable=False)
    notes = Column(Text, nullable=True)
    date = Column(DateTime(timezone=True), default=now_utc, nullable=False)
    created_by = Column(String, nullable=True)
    created_at = Column(DateTime(timezone=True), default=now_utc, nullable=False)

    bank_account = relationship("BankAccount")

    __table_args__ = (
        Index('ix_transactions_bank_account_id_date', 'bank_account_id', 'date'),
        Index('ix_transactions_reference', 'reference_type', 'reference_id'),
        CheckConstraint("type in ('INCOME','EXPENSE','TRANSFER')", name='ck_transactions_type'),
    )


class Boleto(Base):
    __tablename__ = 'boletos'
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    organization_id = Column(UUID(as_uuid=True), ForeignKey('organizations.id', ondelete='CASCADE'), nullable=False)
    boleto_number = Column(String, nullable=False, unique=True)
    customer_id = Column(UUID(as_uuid=True), ForeignKey('customers.id'), nullable=False)
    order_id = Column(UUID(as_uuid=True), ForeignKey('orders.id'), nullable=True)
    amount = Column(MONEY, nullable=False)
    due_date = Column(Date, nullable=False)
    status = Column(String, nullable=False, default='PENDING')  # PENDING|OVERDUE|PAID|CANCELLED
    is_installment = Column(Boolean, nullable=False, default=False)
    installment_number = Column(Integer, nullable=True)
    total_installments = Column(Integer, nullable=True)
    paid_date = Column(DateTime(timezone=True), nullable=True)
    paid_by = Column(String, nullable=True)
    paid_amount = Column(MONEY, nullable=True)
    interest = Column(MONEY, nullable=True)
    fine = Column(MONEY, nullable=True)
    bank_account_id = Column(UUID(as_uuid=True), ForeignKey('bank_accounts.id'), nullable=True)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), default=now_utc, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=now_utc, onupdate=now_utc)

    customer = relationship("Customer")
    order = relationship("Order")

    __table_args__ = (
        Index('ix_boletos_organization_id_due_date', 'organization_id', 'due_date'),
        Index('ix_boletos_customer_id_status', 'customer_id', 'status'),
        CheckConstraint("status in ('PENDING','OVERDUE','PAID','CANCELLED')", name='ck_boletos_status'),
    )


class Receivable(Base):
    __tablename__ = 'receivables'
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    organization_id = Column(UUID(as_uuid=True), ForeignKey('organizations.id', ondelete='CASCADE'), nullable=False)
    customer_id = Column(UUID(as_uuid=True), ForeignKey('customers.id'), nullable=True)
    order_id = Column(UUID(as_uuid=True), ForeignKey('orders.id'), nullable=True)
    boleto_id = Column(UUID(as_uuid=True), ForeignKey('boletos.id'), nullable=True)
    # Set on the PAID split created by a partial payment
    parent_id = Column(UUID(as_uuid=True), ForeignKey('receivables.id'), nullable=True)
    description = Column(Text, nullable=False)
    amount = Column(MONEY, nullable=False)
    due_date = Column(Date, nullable=False)
    payment_date = Column(DateTime(timezone=True), nullable=True)
    status = Column(String, nullable=False, default='PENDING')  # PENDING|OVERDUE|PAID|CANCELLED
    payment_method = Column(String, nullable=True)
    is_installment = Column(Boolean, nullable=False, default=False)
    installment_number = Column(Integer, nullable=True)
    total_installments = Column(Integer, nullable=True)
    fee_amount = Column(MONEY, nullable=True)
    net_amount = Column(MONEY, nullable=True)
    interest = Column(MONEY, nullable=True)
    fine = Column(MONEY, nullable=True)
    bank_account_id = Column(UUID(as_uuid=True), ForeignKey('bank_accounts.id'), nullable=True)
    paid_by = Column(String, nullable=True)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), default=now_utc, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=now_utc, onupdate=now_utc)

    customer = relationship("Customer")
    boleto = relationship("Boleto")

    __table_args__ = (
        Index('ix_receivables_organization_id_due_date', 'organization_id', 'due_date'),
        Index('ix_receivables_order_id', 'order_id'),
        Index('ix_receivables_boleto_id', 'boleto_id'),
        CheckConstraint("status in ('PENDING','OVERDUE','PAID','CANCELLED')", name='ck_receivables_status'),
    )


class CardTransaction(Base):
    """Card sale awaiting settlement by the acquirer."""
    __tablename__ = 'card_transactions'
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    organization_id = Column(UUID(as_uuid=True), ForeignKey('organizations.id', ondelete='CASCADE'), nullable=False)
    order_id = Column(UUID(as_uuid=True), ForeignKey('orders.id'), nullable=True)
    customer_id = Column(UUID(as_uuid=True), ForeignKey('customers.id'), nullable=True)
    receivable_id = Column(UUID(as_uuid=True), ForeignKey('receivables.id'), nullable=True)
    card_type = Column(String, nullable=False)  # DEBIT|CREDIT
    gross_amount = Column(MONEY, nullable=False)
    fee_percentage = Column(Float, nullable=False)
    fee_amount = Column(MONEY, nullable=False)
    net_amount = Column(MONEY, nullable=False)
    transaction_date = Column(DateTime(timezone=True), default=now_utc, nullable=False)
    expected_date = Column(Date, nullable=False)
    received_date = Column(DateTime(timezone=True), nullable=True)
    status = Column(String, nullable=False, default='PENDING')  # PENDING|RECEIVED|CANCELLED
    bank_account_id = Column(UUID(as_uuid=True), ForeignKey('bank_accounts.id'), nullable=True)
    created_at = Column(DateTime(timezone=True), default=now_utc, nullable=False)

    __table_args__ = (
        Index('ix_card_transactions_organization_id_status', 'organization_id', 'status'),
    )


class ExpenseCategory(Base):
    __tablename__ = 'expense_categories'
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    organization_id = Column(UUID(as_uuid=True), ForeignKey('organizations.id', ondelete='CASCADE'), nullable=False)
    name = Column(String, nullable=False)
    expense_type = Column(String, nullable=False, default='OPERATIONAL')
    color = Column(String, nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), default=now_utc)

    __table_args__ = (
        Index('ix_expense_categories_organization_id_name', 'organization_id', 'name', unique=True),
    )


class Expense(Base):
    __tablename__ = 'expenses'
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    organization_id = Column(UUID(as_uuid=True), ForeignKey('organizations.id', ondelete='CASCADE'), nullable=False)
    description = Column(Text, nullable=False)
    amount = Column(MONEY, nullable=False)
    fee_amount = Column(MONEY, nullable=True)
    category_id = Column(UUID(as_uuid=True), ForeignKey('expense_categories.id'), nullable=True)
    expense_type = Column(String, nullable=False, default='OTHER')  # OPERATIONAL|PRODUCTS|RAW_MATERIALS|OTHER
    due_date = Column(Date, nullable=False)
    competence_date = Column(Date, nullable=True)
    payment_date = Column(DateTime(timezone=True), nullable=True)
    status = Column(String, nullable=False, default='PENDING')  # PENDING|PAID|CANCELLED
    bank_account_id = Column(UUID(as_uuid=True), ForeignKey('bank_accounts.id'), nullable=True)
    paid_by = Column(String, nullable=True)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), default=now_utc, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=now_utc, onupdate=now_utc)

    category = relationship("ExpenseCategory")

    __table_args__ = (
        Index('ix_expenses_organization_id_due_date', 'organization_id', 'due_date'),
        CheckConstraint("status in ('PENDING','PAID','CANCELLED')", name='ck_expenses_status'),
        CheckConstraint(
            "expense_type in ('OPERATIONAL','PRODUCTS','RAW_MATERIALS','OTHER')",
            name='ck_expenses_expense_type',
        ),
    )
