import uuid
from datetime import date, datetime
from decimal import Decimal
from typing import Literal, Optional
from pydantic import BaseModel, ConfigDict, Field

DiscountType = Literal['PERCENTAGE', 'FIXED']


class CouponBase(BaseModel):
    description: Optional[str] = None
    discount_type: DiscountType
    discount_value: float = Field(gt=0)
    valid_from: Optional[date] = None
    valid_until: Optional[date] = None
    usage_limit: Optional[int] = Field(default=None, gt=0)
    is_one_time_per_customer: bool = False
    is_active: bool = True


class CouponCreate(CouponBase):
    code: str = Field(min_length=1)
    min_order_value: Optional[Decimal] = Field(default=None, ge=0)
    max_discount: Optional[Decimal] = Field(default=None, gt=0)


class CouponUpdate(BaseModel):
    description: Optional[str] = None
    discount_value: Optional[float] = Field(default=None, gt=0)
    min_order_value: Optional[Decimal] = Field(default=None, ge=0)
    max_discount: Optional[Decimal] = Field(default=None, gt=0)
    valid_from: Optional[date] = None
    valid_until: Optional[date] = None
    usage_limit: Optional[int] = Field(default=None, gt=0)
    is_one_time_per_customer: Optional[bool] = None
    is_active: Optional[bool] = None


class Coupon(CouponBase):
    id: uuid.UUID
    organization_id: uuid.UUID
    code: str
    min_order_value: Optional[float] = None
    max_discount: Optional[float] = None
    usage_count: int
    created_at: Optional[datetime] = None
    model_config = ConfigDict(from_attributes=True)


class CouponValidate(BaseModel):
    code: str = Field(min_length=1)
    customer_id: Optional[uuid.UUID] = None
    order_total: Decimal = Field(ge=0)


class CouponValidation(BaseModel):
    valid: bool
    coupon_id: uuid.UUID
    code: str
    discount_type: str
    discount_value: float
    discount_amount: float
