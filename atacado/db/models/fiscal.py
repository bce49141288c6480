import uuid
from sqlalchemy import Column, String, Text, DateTime, Integer, ForeignKey, Index
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
from .base import Base, now_utc, MONEY


class FiscalInvoice(Base):
    __tablename__ = 'fiscal_invoices'
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    organization_id = Column(UUID(as_uuid=True), ForeignKey('organizations.id', ondelete='CASCADE'), nullable=False)
    order_id = Column(UUID(as_uuid=True), ForeignKey('orders.id', ondelete='SET NULL'), nullable=True)
    invoice_type = Column(String, nullable=False)  # NFE|NFCE
    status = Column(String, nullable=False, default='PROCESSING')  # PROCESSING|AUTHORIZED|ERROR|CANCELLED
    customer_name = Column(String, nullable=False)
    customer_cpf_cnpj = Column(String, nullable=True)
    customer_email = Column(String, nullable=True)
    customer_phone = Column(String, nullable=True)
    customer_address = Column(String, nullable=True)
    customer_number = Column(String, nullable=True)
    customer_district = Column(String, nullable=True)
    customer_city = Column(String, nullable=True)
    customer_state = Column(String, nullable=True)
    customer_zip_code = Column(String, nullable=True)
    total_value = Column(MONEY, nullable=False)
    discount = Column(MONEY, nullable=False, default=0)
    payment_method = Column(String, nullable=True)
    gateway_id = Column(String, nullable=True)
    invoice_number = Column(String, nullable=True)
    series = Column(String, nullable=True)
    access_key = Column(String, nullable=True)
    protocol = Column(String, nullable=True)
    authorization_date = Column(DateTime(timezone=True), nullable=True)
    xml_url = Column(Text, nullable=True)
    pdf_url = Column(Text, nullable=True)
    error_message = Column(Text, nullable=True)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), default=now_utc, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=now_utc, onupdate=now_utc)

    items = relationship("FiscalInvoiceItem", back_populates="invoice", cascade="all, delete-orphan")

    __table_args__ = (
        Index('ix_fiscal_invoices_organization_id_created_at', 'organization_id', 'created_at'),
        Index('ix_fiscal_invoices_order_id', 'order_id'),
    )


class FiscalInvoiceItem(Base):
    __tablename__ = 'fiscal_invoice_items'
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    invoice_id = Column(UUID(as_uuid=True), ForeignKey('fiscal_invoices.id', ondelete='CASCADE'), nullable=False)
    product_name = Column(String, nullable=False)
    product_code = Column(String, nullable=True)
    ncm = Column(String, nullable=False, default='1602.50.00')
    cfop = Column(String, nullable=False, default='5102')
    quantity = Column(Integer, nullable=False)
    unit_value = Column(MONEY, nullable=False)
    total_value = Column(MONEY, nullable=False)

    invoice = relationship("FiscalInvoice", back_populates="items")
