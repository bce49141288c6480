import uuid
from datetime import date, datetime
from decimal import Decimal
from typing import List, Literal, Optional
from pydantic import BaseModel, ConfigDict, Field

OrderType = Literal['WHOLESALE', 'RETAIL']
PaymentMethod = Literal['CASH', 'PIX', 'CREDIT_CARD', 'DEBIT', 'BOLETO', 'CREDIT']
DeliveryType = Literal['pickup', 'delivery_gurupi', 'delivery_outside']
OrderStatus = Literal['PENDING', 'CONFIRMED', 'PROCESSING', 'READY', 'SHIPPED', 'DELIVERED', 'CANCELLED']


class OrderItemCreate(BaseModel):
    product_id: uuid.UUID
    quantity: int = Field(gt=0)
    # Price the client showed the user; re-checked server side
    expected_unit_price: Optional[Decimal] = None


class OrderCreate(BaseModel):
    customer_id: Optional[uuid.UUID] = None
    casual_customer_name: Optional[str] = None
    order_type: OrderType = 'WHOLESALE'
    payment_method: Optional[PaymentMethod] = None
    delivery_type: DeliveryType = 'pickup'
    delivery_date: Optional[date] = None
    discount_percent: float = Field(default=0, ge=0, le=100)
    coupon_code: Optional[str] = None
    # "Nx-d1-d2-..." e.g. "3x-30-60-90"
    boleto_installments: Optional[str] = None
    is_paid: bool = False
    bank_account_id: Optional[uuid.UUID] = None
    notes: Optional[str] = None
    items: List[OrderItemCreate] = Field(default_factory=list)


class OrderStatusUpdate(BaseModel):
    status: OrderStatus


class OrderItem(BaseModel):
    id: uuid.UUID
    product_id: uuid.UUID
    quantity: int
    unit_price: float
    total: float
    model_config = ConfigDict(from_attributes=True)


class Order(BaseModel):
    id: uuid.UUID
    organization_id: uuid.UUID
    order_number: str
    customer_id: Optional[uuid.UUID] = None
    casual_customer_name: Optional[str] = None
    order_type: str
    status: str
    payment_status: str
    payment_method: str
    delivery_type: str
    delivery_date: Optional[date] = None
    subtotal: float
    discount_percent: float
    discount: float
    delivery_fee: float
    card_fee: float
    coupon_code: Optional[str] = None
    coupon_discount: float = 0
    total: float
    points_earned: int
    notes: Optional[str] = None
    delivered_at: Optional[datetime] = None
    created_at: datetime
    items: List[OrderItem] = Field(default_factory=list)
    model_config = ConfigDict(from_attributes=True)


class PaginatedOrders(BaseModel):
    items: List[Order]
    total: int
    skip: int
    limit: int
