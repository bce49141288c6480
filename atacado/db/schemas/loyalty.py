import uuid
from datetime import datetime
from typing import Literal, Optional
from pydantic import BaseModel, ConfigDict, Field


class PrizeBase(BaseModel):
    name: str = Field(min_length=1)
    description: Optional[str] = None
    points_cost: int = Field(gt=0)
    stock_quantity: Optional[int] = Field(default=None, ge=0)


class PrizeCreate(PrizeBase):
    pass


class PrizeUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1)
    description: Optional[str] = None
    points_cost: Optional[int] = Field(default=None, gt=0)
    stock_quantity: Optional[int] = Field(default=None, ge=0)
    is_active: Optional[bool] = None


class Prize(PrizeBase):
    id: uuid.UUID
    is_active: bool
    model_config = ConfigDict(from_attributes=True)


class RedemptionCreate(BaseModel):
    prize_id: uuid.UUID
    # Staff redeem on behalf of a customer; portal users redeem for themselves
    customer_id: Optional[uuid.UUID] = None
    notes: Optional[str] = None


class RedemptionAction(BaseModel):
    action: str
    notes: Optional[str] = None
    rejection_reason: Optional[str] = None


class Redemption(BaseModel):
    id: uuid.UUID
    customer_id: uuid.UUID
    prize_id: uuid.UUID
    points_used: int
    status: str
    processed_at: Optional[datetime] = None
    processed_by: Optional[str] = None
    notes: Optional[str] = None
    rejection_reason: Optional[str] = None
    created_at: datetime
    model_config = ConfigDict(from_attributes=True)


class ReferralCreate(BaseModel):
    referrer_id: uuid.UUID
    referred_id: uuid.UUID


class Referral(BaseModel):
    id: uuid.UUID
    referrer_id: uuid.UUID
    referred_id: uuid.UUID
    status: Literal['PENDING', 'COMPLETED']
    bonus_points: int
    completed_at: Optional[datetime] = None
    created_at: datetime
    model_config = ConfigDict(from_attributes=True)


class ReferralConfigUpdate(BaseModel):
    bonus_points_per_referral: Optional[int] = Field(default=None, ge=0)
    bonus_for_referred: Optional[int] = Field(default=None, ge=0)
    require_first_order: Optional[bool] = None


class ReferralConfig(BaseModel):
    bonus_points_per_referral: int
    bonus_for_referred: int
    require_first_order: bool
    model_config = ConfigDict(from_attributes=True)
