import uuid
from sqlalchemy import Column, String, Text, DateTime, Date, Integer, Float, ForeignKey, Index, CheckConstraint
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
from .base import Base, now_utc, MONEY


ORDER_STATUSES = ('PENDING', 'CONFIRMED', 'PROCESSING', 'READY', 'SHIPPED', 'DELIVERED', 'CANCELLED')


class Order(Base):
    __tablename__ = 'orders'
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    organization_id = Column(UUID(as_uuid=True), ForeignKey('organizations.id', ondelete='CASCADE'), nullable=False)
    order_number = Column(String, nullable=False, unique=True)
    customer_id = Column(UUID(as_uuid=True), ForeignKey('customers.id'), nullable=True)
    casual_customer_name = Column(String, nullable=True)
    order_type = Column(String, nullable=False, default='WHOLESALE')  # WHOLESALE|RETAIL
    status = Column(String, nullable=False, default='PENDING')
    payment_status = Column(String, nullable=False, default='UNPAID')  # UNPAID|PARTIAL|PAID
    payment_method = Column(String, nullable=False)
    delivery_type = Column(String, nullable=False, default='pickup')
    delivery_date = Column(Date, nullable=True)
    subtotal = Column(MONEY, nullable=False, default=0)
    discount_percent = Column(Float, nullable=False, default=0)
    discount = Column(MONEY, nullable=False, default=0)
    delivery_fee = Column(MONEY, nullable=False, default=0)
    card_fee = Column(MONEY, nullable=False, default=0)
    coupon_id = Column(UUID(as_uuid=True), ForeignKey('coupons.id', ondelete='SET NULL'), nullable=True)
    coupon_code = Column(String, nullable=True)
    coupon_discount = Column(MONEY, nullable=False, default=0)
    total = Column(MONEY, nullable=False, default=0)
    points_earned = Column(Integer, nullable=False, default=0)
    notes = Column(Text, nullable=True)
    created_by = Column(UUID(as_uuid=True), ForeignKey('users.id'), nullable=True)
    delivered_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), default=now_utc, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=now_utc, onupdate=now_utc)

    items = relationship("OrderItem", back_populates="order", cascade="all, delete-orphan")
    customer = relationship("Customer")

    __table_args__ = (
        Index('ix_orders_organization_id_created_at', 'organization_id', 'created_at'),
        Index('ix_orders_customer_id_status', 'customer_id', 'status'),
        CheckConstraint(
            "status in ('PENDING','CONFIRMED','PROCESSING','READY','SHIPPED','DELIVERED','CANCELLED')",
            name='ck_orders_status',
        ),
    )


class OrderItem(Base):
    __tablename__ = 'order_items'
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    order_id = Column(UUID(as_uuid=True), ForeignKey('orders.id', ondelete='CASCADE'), nullable=False)
    product_id = Column(UUID(as_uuid=True), ForeignKey('products.id'), nullable=False)
    quantity = Column(Integer, nullable=False)
    unit_price = Column(MONEY, nullable=False)
    total = Column(MONEY, nullable=False)

    order = relationship("Order", back_populates="items")
    product = relationship("Product")
