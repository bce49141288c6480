import uuid
from datetime import date, datetime
from decimal import Decimal
from typing import List, Literal, Optional
from pydantic import BaseModel, ConfigDict, Field

ExpenseType = Literal['OPERATIONAL', 'PRODUCTS', 'RAW_MATERIALS', 'OTHER']


# Bank accounts

class BankAccountBase(BaseModel):
    name: str = Field(min_length=1)
    bank_name: Optional[str] = None
    agency: Optional[str] = None
    account_number: Optional[str] = None


class BankAccountCreate(BankAccountBase):
    # Opening balance, only accepted at creation
    balance: Decimal = Decimal('0')


class BankAccountUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1)
    bank_name: Optional[str] = None
    agency: Optional[str] = None
    account_number: Optional[str] = None
    is_active: Optional[bool] = None


class BankAccount(BankAccountBase):
    id: uuid.UUID
    organization_id: uuid.UUID
    balance: float
    is_active: bool
    created_at: Optional[datetime] = None
    model_config = ConfigDict(from_attributes=True)


class TransferRequest(BaseModel):
    from_account_id: Optional[uuid.UUID] = None
    to_account_id: Optional[uuid.UUID] = None
    amount: Decimal = Decimal('0')
    description: Optional[str] = None


class TransferResult(BaseModel):
    from_balance: float
    to_balance: float
    transaction_ids: List[uuid.UUID]


class TransactionCreate(BaseModel):
    bank_account_id: uuid.UUID
    type: Literal['INCOME', 'EXPENSE']
    amount: Decimal = Field(gt=0)
    description: str = Field(min_length=1)
    category: Optional[str] = None
    notes: Optional[str] = None
    date: Optional[datetime] = None


class Transaction(BaseModel):
    id: uuid.UUID
    bank_account_id: uuid.UUID
    type: str
    amount: float
    description: str
    category: Optional[str] = None
    reference_type: Optional[str] = None
    reference_id: Optional[uuid.UUID] = None
    balance_after: float
    notes: Optional[str] = None
    date: datetime
    created_by: Optional[str] = None
    model_config = ConfigDict(from_attributes=True)


# Boletos

class BoletoCreate(BaseModel):
    customer_id: Optional[uuid.UUID] = None
    order_id: Optional[uuid.UUID] = None
    amount: Optional[Decimal] = None
    due_date: Optional[date] = None
    notes: Optional[str] = None


class BoletoAction(BaseModel):
    action: str
    bank_account_id: Optional[uuid.UUID] = None
    interest: Decimal = Decimal('0')
    fine: Decimal = Decimal('0')
    paid_date: Optional[datetime] = None
    notes: Optional[str] = None


class Boleto(BaseModel):
    id: uuid.UUID
    organization_id: uuid.UUID
    boleto_number: str
    customer_id: uuid.UUID
    order_id: Optional[uuid.UUID] = None
    amount: float
    due_date: date
    status: str
    is_installment: bool
    installment_number: Optional[int] = None
    total_installments: Optional[int] = None
    paid_date: Optional[datetime] = None
    paid_by: Optional[str] = None
    paid_amount: Optional[float] = None
    interest: Optional[float] = None
    fine: Optional[float] = None
    bank_account_id: Optional[uuid.UUID] = None
    notes: Optional[str] = None
    created_at: datetime
    model_config = ConfigDict(from_attributes=True)


# Receivables

class ReceivableCreate(BaseModel):
    customer_id: Optional[uuid.UUID] = None
    order_id: Optional[uuid.UUID] = None
    description: str = Field(min_length=1)
    amount: Decimal = Decimal('0')
    due_date: date
    status: Literal['PENDING', 'PAID'] = 'PENDING'
    payment_method: Optional[str] = None
    notes: Optional[str] = None


class ReceivePayment(BaseModel):
    payment_amount: Decimal = Field(gt=0)
    bank_account_id: Optional[uuid.UUID] = None
    payment_method: str = 'PIX'
    interest: Decimal = Decimal('0')
    fine: Decimal = Decimal('0')
    fee_amount: Decimal = Decimal('0')
    payment_date: Optional[datetime] = None
    notes: Optional[str] = None


class Receivable(BaseModel):
    id: uuid.UUID
    organization_id: uuid.UUID
    customer_id: Optional[uuid.UUID] = None
    order_id: Optional[uuid.UUID] = None
    boleto_id: Optional[uuid.UUID] = None
    parent_id: Optional[uuid.UUID] = None
    description: str
    amount: float
    due_date: date
    payment_date: Optional[datetime] = None
    status: str
    payment_method: Optional[str] = None
    is_installment: bool = False
    installment_number: Optional[int] = None
    total_installments: Optional[int] = None
    fee_amount: Optional[float] = None
    net_amount: Optional[float] = None
    interest: Optional[float] = None
    fine: Optional[float] = None
    bank_account_id: Optional[uuid.UUID] = None
    paid_by: Optional[str] = None
    notes: Optional[str] = None
    model_config = ConfigDict(from_attributes=True)


class ReceivableRow(BaseModel):
    """Row of the merged receivables listing (receivables plus boletos)."""
    id: uuid.UUID
    is_boleto: bool
    customer_id: Optional[uuid.UUID] = None
    customer_name: Optional[str] = None
    order_id: Optional[uuid.UUID] = None
    description: str
    amount: float
    due_date: date
    status: str
    payment_method: Optional[str] = None
    payment_date: Optional[datetime] = None
    boleto_number: Optional[str] = None


class ReceiveResult(BaseModel):
    id: uuid.UUID
    status: str
    partial: bool
    paid_amount: float
    remaining: float
    net_amount: float
    child_receivable_id: Optional[uuid.UUID] = None
    card_transaction_id: Optional[uuid.UUID] = None
    transaction_id: Optional[uuid.UUID] = None


# Card transactions

class CardTransaction(BaseModel):
    id: uuid.UUID
    order_id: Optional[uuid.UUID] = None
    customer_id: Optional[uuid.UUID] = None
    receivable_id: Optional[uuid.UUID] = None
    card_type: str
    gross_amount: float
    fee_percentage: float
    fee_amount: float
    net_amount: float
    transaction_date: datetime
    expected_date: date
    received_date: Optional[datetime] = None
    status: str
    bank_account_id: Optional[uuid.UUID] = None
    model_config = ConfigDict(from_attributes=True)


class CardSummaryBucket(BaseModel):
    count: int
    gross: float
    fee: float
    net: float


class CardSummary(BaseModel):
    pending: CardSummaryBucket
    received: CardSummaryBucket


class ConfirmBatch(BaseModel):
    ids: List[uuid.UUID] = Field(min_length=1)
    bank_account_id: uuid.UUID
    received_date: Optional[datetime] = None


class ConfirmBatchResult(BaseModel):
    confirmed: int
    skipped: int
    total_net: float
    total_fee: float


# Expenses

class ExpenseCategoryCreate(BaseModel):
    name: str = Field(min_length=1)
    expense_type: ExpenseType = 'OPERATIONAL'
    color: Optional[str] = None


class ExpenseCategoryUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1)
    expense_type: Optional[ExpenseType] = None
    color: Optional[str] = None
    is_active: Optional[bool] = None


class ExpenseCategory(BaseModel):
    id: uuid.UUID
    name: str
    expense_type: str
    color: Optional[str] = None
    is_active: bool
    model_config = ConfigDict(from_attributes=True)


class ExpenseCreate(BaseModel):
    description: str = Field(min_length=1)
    amount: Decimal = Field(gt=0)
    fee_amount: Optional[Decimal] = Field(default=None, ge=0)
    category_id: Optional[uuid.UUID] = None
    expense_type: ExpenseType = 'OTHER'
    due_date: date
    competence_date: Optional[date] = None
    notes: Optional[str] = None


class ExpenseUpdate(BaseModel):
    description: Optional[str] = Field(default=None, min_length=1)
    amount: Optional[Decimal] = Field(default=None, gt=0)
    fee_amount: Optional[Decimal] = Field(default=None, ge=0)
    category_id: Optional[uuid.UUID] = None
    expense_type: Optional[ExpenseType] = None
    due_date: Optional[date] = None
    competence_date: Optional[date] = None
    status: Optional[Literal['PENDING', 'CANCELLED']] = None
    notes: Optional[str] = None


class ExpensePay(BaseModel):
    bank_account_id: Optional[uuid.UUID] = None
    payment_date: Optional[datetime] = None


class Expense(BaseModel):
    id: uuid.UUID
    organization_id: uuid.UUID
    description: str
    amount: float
    fee_amount: Optional[float] = None
    category_id: Optional[uuid.UUID] = None
    expense_type: str
    due_date: date
    competence_date: Optional[date] = None
    payment_date: Optional[datetime] = None
    status: str
    bank_account_id: Optional[uuid.UUID] = None
    paid_by: Optional[str] = None
    notes: Optional[str] = None
    model_config = ConfigDict(from_attributes=True)
