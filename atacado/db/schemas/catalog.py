import uuid
from datetime import datetime
from decimal import Decimal
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field


class ProductBase(BaseModel):
    name: str = Field(min_length=1)
    code: Optional[str] = None
    description: Optional[str] = None
    unit: str = 'UN'
    is_on_promotion: bool = False
    bulk_discount_min_qty: Optional[int] = Field(default=None, gt=0)
    current_stock: int = 0


class ProductCreate(ProductBase):
    price_wholesale: Decimal = Field(ge=0)
    price_retail: Decimal = Field(ge=0)
    promotional_price: Optional[Decimal] = Field(default=None, ge=0)
    bulk_discount_price: Optional[Decimal] = Field(default=None, ge=0)


class ProductUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1)
    code: Optional[str] = None
    description: Optional[str] = None
    unit: Optional[str] = None
    price_wholesale: Optional[Decimal] = Field(default=None, ge=0)
    price_retail: Optional[Decimal] = Field(default=None, ge=0)
    is_on_promotion: Optional[bool] = None
    promotional_price: Optional[Decimal] = Field(default=None, ge=0)
    bulk_discount_min_qty: Optional[int] = Field(default=None, gt=0)
    bulk_discount_price: Optional[Decimal] = Field(default=None, ge=0)
    current_stock: Optional[int] = None
    is_active: Optional[bool] = None


class Product(ProductBase):
    id: uuid.UUID
    organization_id: uuid.UUID
    price_wholesale: float
    price_retail: float
    promotional_price: Optional[float] = None
    bulk_discount_price: Optional[float] = None
    is_active: bool
    created_at: Optional[datetime] = None
    model_config = ConfigDict(from_attributes=True)
