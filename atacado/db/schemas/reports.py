from datetime import date
from typing import Dict, List, Optional
from pydantic import BaseModel


class DreRevenue(BaseModel):
    order_count: int
    gross_revenue: float
    discounts: float
    total_revenue: float
    net_revenue: float
    card_fees: float
    received_amount: float
    receivable_fees: float


class DreExpenseGroup(BaseModel):
    name: str
    total: float
    count: int


class DreExpenses(BaseModel):
    total_expenses: float
    expense_fees: float
    by_category: List[DreExpenseGroup]
    by_type: Dict[str, float]


class DreResult(BaseModel):
    gross_profit: float
    operating_income: float
    financial_result: float
    net_income: float
    gross_margin: float
    operating_margin: float
    net_margin: float


class DreReport(BaseModel):
    start_date: date
    end_date: date
    revenue: DreRevenue
    expenses: DreExpenses
    result: DreResult


class CashFlowDay(BaseModel):
    day: date
    inflow: float
    outflow: float
    balance: float


class CashFlowReport(BaseModel):
    start_date: date
    end_date: date
    opening_balance: float
    expected_inflow: float
    expected_outflow: float
    projected_balance: float
    lowest_balance: float
    overdue_receivables: float
    days: List[CashFlowDay]


class FinancialAlert(BaseModel):
    alert_type: str
    severity: str  # CRITICAL|HIGH|MEDIUM|LOW
    title: str
    message: str
    trigger_value: float
    threshold_value: Optional[float] = None
    count: Optional[int] = None
