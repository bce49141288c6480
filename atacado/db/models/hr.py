import uuid
from sqlalchemy import Column, String, Text, DateTime, Date, Boolean, Integer, ForeignKey, Index, UniqueConstraint
from sqlalchemy.dialects.postgresql import UUID, JSONB
from sqlalchemy.orm import relationship
from .base import Base, now_utc, MONEY


class Employee(Base):
    __tablename__ = 'employees'
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    organization_id = Column(UUID(as_uuid=True), ForeignKey('organizations.id', ondelete='CASCADE'), nullable=False)
    user_id = Column(UUID(as_uuid=True), ForeignKey('users.id'), nullable=True)
    name = Column(String, nullable=False)
    cpf = Column(String, nullable=True)
    position = Column(String, nullable=True)
    phone = Column(String, nullable=True)
    email = Column(String, nullable=True)
    salary = Column(MONEY, nullable=True)
    admission_date = Column(Date, nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), default=now_utc)
    updated_at = Column(DateTime(timezone=True), default=now_utc, onupdate=now_utc)


class EmployeePayment(Base):
    __tablename__ = 'employee_payments'
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    organization_id = Column(UUID(as_uuid=True), ForeignKey('organizations.id', ondelete='CASCADE'), nullable=False)
    employee_id = Column(UUID(as_uuid=True), ForeignKey('employees.id', ondelete='CASCADE'), nullable=False)
    month = Column(Integer, nullable=False)
    year = Column(Integer, nullable=False)
    # Gross
    salary_gross_amount = Column(MONEY, nullable=False, default=0)
    advance_gross_amount = Column(MONEY, nullable=False, default=0)
    food_voucher_gross_amount = Column(MONEY, nullable=False, default=0)
    bonus_gross_amount = Column(MONEY, nullable=False, default=0)
    extra_earnings_amount = Column(MONEY, nullable=False, default=0)
    total_gross_amount = Column(MONEY, nullable=False, default=0)
    # Net
    salary_amount = Column(MONEY, nullable=False, default=0)
    advance_amount = Column(MONEY, nullable=False, default=0)
    food_voucher_amount = Column(MONEY, nullable=False, default=0)
    bonus_amount = Column(MONEY, nullable=False, default=0)
    total_amount = Column(MONEY, nullable=False, default=0)
    # Discounts
    inss_discount = Column(MONEY, nullable=False, default=0)
    irpf_discount = Column(MONEY, nullable=False, default=0)
    other_discounts = Column(MONEY, nullable=False, default=0)
    total_discounts = Column(MONEY, nullable=False, default=0)
    # Due dates
    salary_due_date = Column(Date, nullable=True)
    bonus_due_date = Column(Date, nullable=True)
    food_voucher_due_date = Column(Date, nullable=True)
    advance_due_date = Column(Date, nullable=True)
    earnings_items = Column(JSONB, nullable=True)
    # Payable expenses generated per component
    salary_expense_id = Column(UUID(as_uuid=True), ForeignKey('expenses.id', ondelete='SET NULL'), nullable=True)
    bonus_expense_id = Column(UUID(as_uuid=True), ForeignKey('expenses.id', ondelete='SET NULL'), nullable=True)
    food_voucher_expense_id = Column(UUID(as_uuid=True), ForeignKey('expenses.id', ondelete='SET NULL'), nullable=True)
    advance_expense_id = Column(UUID(as_uuid=True), ForeignKey('expenses.id', ondelete='SET NULL'), nullable=True)
    salary_paid = Column(Boolean, nullable=False, default=False)
    bonus_paid = Column(Boolean, nullable=False, default=False)
    food_voucher_paid = Column(Boolean, nullable=False, default=False)
    advance_paid = Column(Boolean, nullable=False, default=False)
    is_paid = Column(Boolean, nullable=False, default=False)
    paid_at = Column(DateTime(timezone=True), nullable=True)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), default=now_utc, nullable=False)

    employee = relationship("Employee")
    acknowledgments = relationship("PaymentAcknowledgment", back_populates="payment", cascade="all, delete-orphan")

    __table_args__ = (
        Index('ix_employee_payments_employee_id_period', 'employee_id', 'year', 'month'),
    )

    @property
    def acknowledged_at(self):
        times = [ack.acknowledged_at for ack in self.acknowledgments]
        return min(times) if times else None


class PaymentAcknowledgment(Base):
    __tablename__ = 'payment_acknowledgments'
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    payment_id = Column(UUID(as_uuid=True), ForeignKey('employee_payments.id', ondelete='CASCADE'), nullable=False)
    employee_id = Column(UUID(as_uuid=True), ForeignKey('employees.id', ondelete='CASCADE'), nullable=False)
    acknowledged_by = Column(UUID(as_uuid=True), ForeignKey('users.id'), nullable=True)
    ip_address = Column(String, nullable=True)
    notes = Column(Text, nullable=True)
    acknowledged_at = Column(DateTime(timezone=True), default=now_utc, nullable=False)

    payment = relationship("EmployeePayment", back_populates="acknowledgments")

    __table_args__ = (
        UniqueConstraint('payment_id', 'employee_id', name='uq_payment_acknowledgments_payment_employee'),
    )
