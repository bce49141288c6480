import uuid
from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional
from pydantic import BaseModel, ConfigDict, Field


class EmployeeBase(BaseModel):
    name: str = Field(min_length=1)
    cpf: Optional[str] = None
    position: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    admission_date: Optional[date] = None
    user_id: Optional[uuid.UUID] = None


class EmployeeCreate(EmployeeBase):
    salary: Optional[Decimal] = Field(default=None, ge=0)


class EmployeeUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1)
    cpf: Optional[str] = None
    position: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    salary: Optional[Decimal] = Field(default=None, ge=0)
    admission_date: Optional[date] = None
    user_id: Optional[uuid.UUID] = None
    is_active: Optional[bool] = None


class Employee(EmployeeBase):
    id: uuid.UUID
    organization_id: uuid.UUID
    salary: Optional[float] = None
    is_active: bool
    model_config = ConfigDict(from_attributes=True)


class EarningsItem(BaseModel):
    description: str
    amount: Decimal = Field(ge=0)


class EmployeePaymentInput(BaseModel):
    employee_id: uuid.UUID
    month: int = Field(ge=1, le=12)
    year: int = Field(ge=2000)
    salary_gross_amount: Decimal = Field(default=Decimal('0'), ge=0)
    advance_gross_amount: Decimal = Field(default=Decimal('0'), ge=0)
    food_voucher_gross_amount: Decimal = Field(default=Decimal('0'), ge=0)
    bonus_gross_amount: Decimal = Field(default=Decimal('0'), ge=0)
    earnings_items: List[EarningsItem] = Field(default_factory=list)
    inss_discount: Decimal = Field(default=Decimal('0'), ge=0)
    irpf_discount: Decimal = Field(default=Decimal('0'), ge=0)
    other_discounts: Decimal = Field(default=Decimal('0'), ge=0)
    notes: Optional[str] = None


class EmployeePaymentBatch(BaseModel):
    payments: List[EmployeePaymentInput] = Field(min_length=1)
    generate_expenses: bool = True


class EmployeePayment(BaseModel):
    id: uuid.UUID
    employee_id: uuid.UUID
    month: int
    year: int
    salary_gross_amount: float
    advance_gross_amount: float
    food_voucher_gross_amount: float
    bonus_gross_amount: float
    extra_earnings_amount: float
    total_gross_amount: float
    salary_amount: float
    advance_amount: float
    food_voucher_amount: float
    bonus_amount: float
    total_amount: float
    inss_discount: float
    irpf_discount: float
    other_discounts: float
    total_discounts: float
    salary_due_date: Optional[date] = None
    bonus_due_date: Optional[date] = None
    food_voucher_due_date: Optional[date] = None
    advance_due_date: Optional[date] = None
    salary_expense_id: Optional[uuid.UUID] = None
    bonus_expense_id: Optional[uuid.UUID] = None
    food_voucher_expense_id: Optional[uuid.UUID] = None
    advance_expense_id: Optional[uuid.UUID] = None
    is_paid: bool
    paid_at: Optional[datetime] = None
    acknowledged_at: Optional[datetime] = None
    notes: Optional[str] = None
    model_config = ConfigDict(from_attributes=True)


class EmployeePaymentBatchResult(BaseModel):
    payments: List[EmployeePayment]
    expense_ids: List[uuid.UUID]


class AcknowledgeRequest(BaseModel):
    notes: Optional[str] = None


class PaymentAcknowledgment(BaseModel):
    id: uuid.UUID
    payment_id: uuid.UUID
    employee_id: uuid.UUID
    acknowledged_by: Optional[uuid.UUID] = None
    ip_address: Optional[str] = None
    notes: Optional[str] = None
    acknowledged_at: datetime
    model_config = ConfigDict(from_attributes=True)


class UnacknowledgedEntry(BaseModel):
    employee_id: uuid.UUID
    employee_name: str
    payment_id: uuid.UUID
    total_amount: float
