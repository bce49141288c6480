import uuid
from datetime import date, datetime
from decimal import Decimal
from typing import List, Literal, Optional
from pydantic import BaseModel, ConfigDict, Field


class InvoiceItemInput(BaseModel):
    product_name: str = Field(min_length=1)
    product_code: Optional[str] = None
    ncm: Optional[str] = None
    cfop: Optional[str] = None
    quantity: int = Field(gt=0)
    unit_value: Decimal = Field(gt=0)


class InvoiceCreate(BaseModel):
    invoice_type: Optional[Literal['NFE', 'NFCE']] = None
    order_id: Optional[uuid.UUID] = None
    customer_name: Optional[str] = None
    customer_cpf_cnpj: Optional[str] = None
    customer_email: Optional[str] = None
    customer_phone: Optional[str] = None
    customer_address: Optional[str] = None
    customer_number: Optional[str] = None
    customer_district: Optional[str] = None
    customer_city: Optional[str] = None
    customer_state: Optional[str] = None
    customer_zip_code: Optional[str] = None
    discount: Decimal = Decimal('0')
    payment_method: Optional[str] = None
    notes: Optional[str] = None
    items: List[InvoiceItemInput] = Field(default_factory=list)


class InvoiceCancel(BaseModel):
    reason: str = Field(min_length=15)


class InvoiceItem(BaseModel):
    id: uuid.UUID
    product_name: str
    product_code: Optional[str] = None
    ncm: str
    cfop: str
    quantity: int
    unit_value: float
    total_value: float
    model_config = ConfigDict(from_attributes=True)


class Invoice(BaseModel):
    id: uuid.UUID
    order_id: Optional[uuid.UUID] = None
    invoice_type: str
    status: str
    customer_name: str
    customer_cpf_cnpj: Optional[str] = None
    total_value: float
    discount: float
    payment_method: Optional[str] = None
    gateway_id: Optional[str] = None
    invoice_number: Optional[str] = None
    series: Optional[str] = None
    access_key: Optional[str] = None
    protocol: Optional[str] = None
    authorization_date: Optional[datetime] = None
    xml_url: Optional[str] = None
    pdf_url: Optional[str] = None
    error_message: Optional[str] = None
    created_at: datetime
    items: List[InvoiceItem] = Field(default_factory=list)
    model_config = ConfigDict(from_attributes=True)


class InvoiceDocument(BaseModel):
    invoice_id: uuid.UUID
    kind: str  # xml|pdf
    content: Optional[str] = None
    url: Optional[str] = None


class DailyReportOrder(BaseModel):
    order_id: uuid.UUID
    order_number: str
    customer_name: str
    cpf_cnpj: Optional[str] = None
    payment_method: str
    total: float


class DailyReportProduct(BaseModel):
    product_id: uuid.UUID
    product_name: str
    product_code: Optional[str] = None
    quantity: int
    total_value: float


class DailyReport(BaseModel):
    date: date
    retail_orders: List[DailyReportOrder]
    registered_orders: List[DailyReportOrder]
    retail_total: float
    registered_total: float
    total: float
    retail_products: List[DailyReportProduct]
