import uuid
from sqlalchemy import Column, String, Text, DateTime, Boolean, Integer, ForeignKey, Index, UniqueConstraint
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
from .base import Base, now_utc, MONEY


class Product(Base):
    __tablename__ = 'products'
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    organization_id = Column(UUID(as_uuid=True), ForeignKey('organizations.id', ondelete='CASCADE'), nullable=False)
    name = Column(String, nullable=False)
    code = Column(String, nullable=True)
    description = Column(Text, nullable=True)
    unit = Column(String, nullable=False, default='UN')
    price_wholesale = Column(MONEY, nullable=False)
    price_retail = Column(MONEY, nullable=False)
    is_on_promotion = Column(Boolean, nullable=False, default=False)
    promotional_price = Column(MONEY, nullable=True)
    bulk_discount_min_qty = Column(Integer, nullable=True)
    bulk_discount_price = Column(MONEY, nullable=True)
    current_stock = Column(Integer, nullable=False, default=0)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), default=now_utc)
    updated_at = Column(DateTime(timezone=True), default=now_utc, onupdate=now_utc)

    __table_args__ = (
        Index('ix_products_organization_id_name', 'organization_id', 'name'),
    )


class CustomerProduct(Base):
    """Customer specific price for a product."""
    __tablename__ = 'customer_products'
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    customer_id = Column(UUID(as_uuid=True), ForeignKey('customers.id', ondelete='CASCADE'), nullable=False)
    product_id = Column(UUID(as_uuid=True), ForeignKey('products.id', ondelete='CASCADE'), nullable=False)
    custom_price = Column(MONEY, nullable=False)
    is_visible = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), default=now_utc)

    customer = relationship("Customer", back_populates="custom_prices")
    product = relationship("Product")

    __table_args__ = (
        UniqueConstraint('customer_id', 'product_id', name='uq_customer_products_customer_product'),
    )
