import uuid
from datetime import datetime
from decimal import Decimal
from typing import List, Optional, Literal
from pydantic import BaseModel, ConfigDict, Field

CustomerType = Literal['NORMAL', 'CONSUMIDOR_FINAL']


class CustomerBase(BaseModel):
    name: str = Field(min_length=1)
    email: Optional[str] = None
    phone: Optional[str] = None
    cpf_cnpj: Optional[str] = None
    city: Optional[str] = None
    address: Optional[str] = None
    customer_type: CustomerType = 'NORMAL'
    payment_terms: int = Field(default=0, ge=0)
    points_multiplier: float = Field(default=1.0, gt=0)


class CustomerCreate(CustomerBase):
    credit_limit: Decimal = Field(default=Decimal('0'), ge=0)
    user_id: Optional[uuid.UUID] = None
    referred_by_id: Optional[uuid.UUID] = None


class CustomerUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1)
    email: Optional[str] = None
    phone: Optional[str] = None
    cpf_cnpj: Optional[str] = None
    city: Optional[str] = None
    address: Optional[str] = None
    customer_type: Optional[CustomerType] = None
    payment_terms: Optional[int] = Field(default=None, ge=0)
    points_multiplier: Optional[float] = Field(default=None, gt=0)
    credit_limit: Optional[Decimal] = Field(default=None, ge=0)
    user_id: Optional[uuid.UUID] = None
    is_active: Optional[bool] = None


class Customer(CustomerBase):
    id: uuid.UUID
    organization_id: uuid.UUID
    user_id: Optional[uuid.UUID] = None
    credit_limit: float
    available_credit: float
    manually_unblocked: bool
    is_active: bool
    points_balance: int
    total_points_earned: int
    total_points_redeemed: int
    referred_by_id: Optional[uuid.UUID] = None
    reminders_enabled: bool
    reminder_interval_days: Optional[int] = None
    reminder_message: Optional[str] = None
    last_reminder_sent: Optional[datetime] = None
    total_reminders_sent: int
    created_at: Optional[datetime] = None
    model_config = ConfigDict(from_attributes=True)


class CustomerCredit(BaseModel):
    customer_id: uuid.UUID
    credit_limit: float
    available_credit: float
    used_credit: float
    open_boletos: float
    open_receivables: float
    overdue_count: int
    overdue_amount: float
    manually_unblocked: bool
    blocked: bool


class ReminderSettings(BaseModel):
    enabled: bool
    custom_interval_days: Optional[int] = Field(default=None, gt=0)
    custom_message: Optional[str] = None


class CreditAuditRequest(BaseModel):
    auto_fix: bool = False


class CreditAuditEntry(BaseModel):
    customer_id: uuid.UUID
    customer_name: str
    credit_limit: float
    current_available: float
    expected_available: float
    difference: float
    fixed: bool


class CreditAuditResult(BaseModel):
    checked: int
    inconsistent: int
    fixed: int
    entries: List[CreditAuditEntry]


class CustomerPriceSet(BaseModel):
    custom_price: Decimal = Field(gt=0)
    is_visible: bool = True


class CustomerPrice(BaseModel):
    id: uuid.UUID
    customer_id: uuid.UUID
    product_id: uuid.UUID
    custom_price: float
    is_visible: bool
    model_config = ConfigDict(from_attributes=True)


class PointsAdjust(BaseModel):
    points: int
    description: str = Field(min_length=1)


class PointTransaction(BaseModel):
    id: uuid.UUID
    customer_id: uuid.UUID
    order_id: Optional[uuid.UUID] = None
    type: str
    points: int
    multiplier_applied: float
    description: str
    created_at: datetime
    model_config = ConfigDict(from_attributes=True)


class CustomerPoints(BaseModel):
    customer_id: uuid.UUID
    points_balance: int
    total_points_earned: int
    total_points_redeemed: int
    points_multiplier: float
    transactions: List[PointTransaction]
