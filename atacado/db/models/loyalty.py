import uuid
from sqlalchemy import Column, String, Text, DateTime, Boolean, Integer, Float, ForeignKey, Index
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
from .base import Base, now_utc


class PointTransaction(Base):
    __tablename__ = 'point_transactions'
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    organization_id = Column(UUID(as_uuid=True), ForeignKey('organizations.id', ondelete='CASCADE'), nullable=False)
    customer_id = Column(UUID(as_uuid=True), ForeignKey('customers.id', ondelete='CASCADE'), nullable=False)
    order_id = Column(UUID(as_uuid=True), ForeignKey('orders.id', ondelete='SET NULL'), nullable=True)
    # EARNED|REDEEMED|BONUS|REFERRAL_BONUS|MANUAL_ADJUSTMENT
    type = Column(String, nullable=False)
    points = Column(Integer, nullable=False)
    multiplier_applied = Column(Float, nullable=False, default=1.0)
    description = Column(Text, nullable=False)
    created_at = Column(DateTime(timezone=True), default=now_utc, nullable=False)

    __table_args__ = (
        Index('ix_point_transactions_customer_id_created_at', 'customer_id', 'created_at'),
    )


class Prize(Base):
    __tablename__ = 'prizes'
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    organization_id = Column(UUID(as_uuid=True), ForeignKey('organizations.id', ondelete='CASCADE'), nullable=False)
    name = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    points_cost = Column(Integer, nullable=False)
    stock_quantity = Column(Integer, nullable=True)  # None means unlimited
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), default=now_utc)


class Redemption(Base):
    __tablename__ = 'redemptions'
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    organization_id = Column(UUID(as_uuid=True), ForeignKey('organizations.id', ondelete='CASCADE'), nullable=False)
    customer_id = Column(UUID(as_uuid=True), ForeignKey('customers.id', ondelete='CASCADE'), nullable=False)
    prize_id = Column(UUID(as_uuid=True), ForeignKey('prizes.id'), nullable=False)
    points_used = Column(Integer, nullable=False)
    status = Column(String, nullable=False, default='PENDING')  # PENDING|APPROVED|REJECTED|DELIVERED|CANCELLED
    processed_at = Column(DateTime(timezone=True), nullable=True)
    processed_by = Column(String, nullable=True)
    notes = Column(Text, nullable=True)
    rejection_reason = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), default=now_utc, nullable=False)

    prize = relationship("Prize")
    customer = relationship("Customer")


class ReferralConfig(Base):
    __tablename__ = 'referral_configs'
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    organization_id = Column(UUID(as_uuid=True), ForeignKey('organizations.id', ondelete='CASCADE'), nullable=False, unique=True)
    bonus_points_per_referral = Column(Integer, nullable=False, default=100)
    bonus_for_referred = Column(Integer, nullable=False, default=0)
    require_first_order = Column(Boolean, nullable=False, default=True)
    updated_at = Column(DateTime(timezone=True), default=now_utc, onupdate=now_utc)


class Referral(Base):
    __tablename__ = 'referrals'
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    organization_id = Column(UUID(as_uuid=True), ForeignKey('organizations.id', ondelete='CASCADE'), nullable=False)
    referrer_id = Column(UUID(as_uuid=True), ForeignKey('customers.id', ondelete='CASCADE'), nullable=False)
    referred_id = Column(UUID(as_uuid=True), ForeignKey('customers.id', ondelete='CASCADE'), nullable=False, unique=True)
    status = Column(String, nullable=False, default='PENDING')  # PENDING|COMPLETED
    bonus_points = Column(Integer, nullable=False, default=0)
    completed_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), default=now_utc, nullable=False)
