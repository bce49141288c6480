import uuid
from sqlalchemy import Column, String, Text, DateTime, Date, Boolean, Integer, Float, ForeignKey, Index, UniqueConstraint
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
from .base import Base, now_utc, MONEY


class Coupon(Base):
    __tablename__ = 'coupons'
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    organization_id = Column(UUID(as_uuid=True), ForeignKey('organizations.id', ondelete='CASCADE'), nullable=False)
    code = Column(String, nullable=False)  # stored upper case
    description = Column(Text, nullable=True)
    discount_type = Column(String, nullable=False)  # PERCENTAGE|FIXED
    discount_value = Column(Float, nullable=False)
    min_order_value = Column(MONEY, nullable=True)
    max_discount = Column(MONEY, nullable=True)
    # Inclusive Brasília calendar days
    valid_from = Column(Date, nullable=True)
    valid_until = Column(Date, nullable=True)
    usage_limit = Column(Integer, nullable=True)  # None means unlimited
    usage_count = Column(Integer, nullable=False, default=0)
    is_one_time_per_customer = Column(Boolean, nullable=False, default=False)
    is_active = Column(Boolean, nullable=False, default=True)
    created_by = Column(UUID(as_uuid=True), ForeignKey('users.id'), nullable=True)
    created_at = Column(DateTime(timezone=True), default=now_utc)
    updated_at = Column(DateTime(timezone=True), default=now_utc, onupdate=now_utc)

    usages = relationship("CouponUsage", back_populates="coupon", cascade="all, delete-orphan")

    __table_args__ = (
        UniqueConstraint('organization_id', 'code', name='uq_coupons_organization_id_code'),
    )


class CouponUsage(Base):
    __tablename__ = 'coupon_usages'
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    coupon_id = Column(UUID(as_uuid=True), ForeignKey('coupons.id', ondelete='CASCADE'), nullable=False)
    customer_id = Column(UUID(as_uuid=True), ForeignKey('customers.id', ondelete='CASCADE'), nullable=False)
    order_id = Column(UUID(as_uuid=True), ForeignKey('orders.id', ondelete='SET NULL'), nullable=True)
    discount = Column(MONEY, nullable=False)
    used_at = Column(DateTime(timezone=True), default=now_utc, nullable=False)

    coupon = relationship("Coupon", back_populates="usages")

    __table_args__ = (
        Index('ix_coupon_usages_coupon_id_customer_id', 'coupon_id', 'customer_id'),
    )
