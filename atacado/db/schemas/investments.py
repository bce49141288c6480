import uuid
from datetime import datetime
from decimal import Decimal
from typing import List, Literal, Optional
from pydantic import BaseModel, ConfigDict, Field


class CompanyCreate(BaseModel):
    name: str = Field(min_length=1)
    ticker: str = Field(min_length=1, max_length=10)
    description: Optional[str] = None
    total_shares: int = Field(gt=0)
    current_price: float = Field(gt=0)


class Company(BaseModel):
    id: uuid.UUID
    name: str
    ticker: str
    description: Optional[str] = None
    total_shares: int
    current_price: float
    valuation: float
    model_config = ConfigDict(from_attributes=True)


class InvestorProfile(BaseModel):
    id: uuid.UUID
    customer_id: uuid.UUID
    balance: float
    model_config = ConfigDict(from_attributes=True)


class DepositCreate(BaseModel):
    amount: Decimal = Field(gt=0)
    customer_id: Optional[uuid.UUID] = None


class Deposit(BaseModel):
    id: uuid.UUID
    investor_id: uuid.UUID
    amount: float
    status: str
    processed_at: Optional[datetime] = None
    created_at: datetime
    model_config = ConfigDict(from_attributes=True)


class WithdrawalCreate(BaseModel):
    amount: Decimal = Decimal('0')
    pix_key: Optional[str] = None
    pix_key_type: str = 'CPF'
    customer_id: Optional[uuid.UUID] = None


class Withdrawal(BaseModel):
    id: uuid.UUID
    investor_id: uuid.UUID
    amount: float
    pix_key: str
    pix_key_type: str
    status: str
    processed_at: Optional[datetime] = None
    created_at: datetime
    model_config = ConfigDict(from_attributes=True)


class ReviewAction(BaseModel):
    action: Literal['approve', 'reject']


class TradeRequest(BaseModel):
    company_id: uuid.UUID
    type: Literal['BUY', 'SELL']
    shares: int = Field(gt=0)
    customer_id: Optional[uuid.UUID] = None


class TradeResult(BaseModel):
    transaction_id: uuid.UUID
    type: str
    shares: int
    price: float
    total_value: float
    new_price: float
    balance: float


class GiftSharesRequest(BaseModel):
    customer_id: uuid.UUID
    company_id: uuid.UUID
    shares: int = Field(gt=0)
    vesting_date: datetime
    reason: Optional[str] = None


class GiftedShares(BaseModel):
    id: uuid.UUID
    investor_id: uuid.UUID
    company_id: uuid.UUID
    shares: int
    vesting_date: datetime
    reason: Optional[str] = None
    model_config = ConfigDict(from_attributes=True)


class PortfolioPosition(BaseModel):
    company_id: uuid.UUID
    ticker: str
    name: str
    shares: int
    gifted_shares: int
    vested_shares: int
    unvested_shares: int
    avg_price: float
    current_price: float
    current_value: float
    invested_value: float
    profit: float


class Portfolio(BaseModel):
    investor_id: uuid.UUID
    balance: float
    positions: List[PortfolioPosition]
    total_value: float
    total_profit: float
