import uuid
from sqlalchemy import Column, String, Text, DateTime, Boolean, Integer, Float, ForeignKey, Index, CheckConstraint
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
from .base import Base, now_utc, MONEY


class Customer(Base):
    __tablename__ = 'customers'
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    organization_id = Column(UUID(as_uuid=True), ForeignKey('organizations.id', ondelete='CASCADE'), nullable=False)
    # Portal login for the customer, if any
    user_id = Column(UUID(as_uuid=True), ForeignKey('users.id'), nullable=True)
    name = Column(String, nullable=False)
    email = Column(String, nullable=True)
    phone = Column(String, nullable=True)
    cpf_cnpj = Column(String, nullable=True)
    city = Column(String, nullable=True)
    address = Column(Text, nullable=True)
    customer_type = Column(String, nullable=False, default='NORMAL')  # NORMAL|CONSUMIDOR_FINAL
    credit_limit = Column(MONEY, nullable=False, default=0)
    available_credit = Column(MONEY, nullable=False, default=0)
    payment_terms = Column(Integer, nullable=False, default=0)
    manually_unblocked = Column(Boolean, nullable=False, default=False)
    is_active = Column(Boolean, nullable=False, default=True)
    # Loyalty
    points_balance = Column(Integer, nullable=False, default=0)
    total_points_earned = Column(Integer, nullable=False, default=0)
    total_points_redeemed = Column(Integer, nullable=False, default=0)
    points_multiplier = Column(Float, nullable=False, default=1.0)
    referred_by_id = Column(UUID(as_uuid=True), ForeignKey('customers.id'), nullable=True)
    # WhatsApp reorder reminders
    reminders_enabled = Column(Boolean, nullable=False, default=False)
    reminder_interval_days = Column(Integer, nullable=True)
    reminder_message = Column(Text, nullable=True)
    last_reminder_sent = Column(DateTime(timezone=True), nullable=True)
    total_reminders_sent = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), default=now_utc)
    updated_at = Column(DateTime(timezone=True), default=now_utc, onupdate=now_utc)

    custom_prices = relationship("CustomerProduct", back_populates="customer", cascade="all, delete-orphan")

    __table_args__ = (
        Index('ix_customers_organization_id_name', 'organization_id', 'name'),
        Index('ix_customers_user_id', 'user_id'),
        CheckConstraint("customer_type in ('NORMAL','CONSUMIDOR_FINAL')", name='ck_customers_customer_type'),
    )
