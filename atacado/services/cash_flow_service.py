"""
Cash flow projection and financial alerts over the ledger.

The projection starts from the sum of active bank balances and walks day
by day through what is expected to come in (open receivables, open
boletos, pending card settlements) and go out (pending expenses).
Expenses already past due are treated as leaving today; overdue
receivables and boletos are reported apart and never projected as
income.
"""
from __future__ import annotations

import logging
import uuid
from collections import defaultdict
from datetime import date, timedelta
from decimal import Decimal
from typing import Dict, List, Optional

from sqlalchemy.orm import Session

from atacado.db import models, schemas
from atacado.db.repositories import banking as banking_repo
from atacado.services.errors import BusinessRuleError
from atacado.utils.clock import brasilia_today
from atacado.utils.money import ZERO, money_sum, to_money

logger = logging.getLogger(__name__)

OPEN_STATUSES = ('PENDING', 'OVERDUE')
LOW_BALANCE_THRESHOLD = Decimal('1000.00')
CRITICAL_BALANCE_THRESHOLD = Decimal('500.00')
DUE_SOON_DAYS = 7
MAX_HORIZON_DAYS = 365
SEVERITY_ORDER = {'CRITICAL': 0, 'HIGH': 1, 'MEDIUM': 2, 'LOW': 3}


def _open_receivables(db: Session, organization_id: uuid.UUID) -> List[models.Receivable]:
    # Boleto-backed rows are projected through their boleto
    return (
        db.query(models.Receivable)
        .filter(
            models.Receivable.organization_id == organization_id,
            models.Receivable.status.in_(OPEN_STATUSES),
            models.Receivable.boleto_id.is_(None),
        )
        .all()
    )


def _open_boletos(db: Session, organization_id: uuid.UUID) -> List[models.Boleto]:
    return (
        db.query(models.Boleto)
        .filter(models.Boleto.organization_id == organization_id, models.Boleto.status.in_(OPEN_STATUSES))
        .all()
    )


def _pending_card_transactions(db: Session, organization_id: uuid.UUID) -> List[models.CardTransaction]:
    return (
        db.query(models.CardTransaction)
        .filter(models.CardTransaction.organization_id == organization_id, models.CardTransaction.status == 'PENDING')
        .all()
    )


def _pending_expenses(db: Session, organization_id: uuid.UUID) -> List[models.Expense]:
    return (
        db.query(models.Expense)
        .filter(models.Expense.organization_id == organization_id, models.Expense.status == 'PENDING')
        .all()
    )


def _overdue_receivable_amounts(db: Session, organization_id: uuid.UUID, today: date) -> List[Decimal]:
    amounts = [r.amount for r in _open_receivables(db, organization_id) if r.due_date < today]
    amounts += [b.amount for b in _open_boletos(db, organization_id) if b.due_date < today]
    return amounts


def cash_flow(
    db: Session,
    organization_id: uuid.UUID,
    days: int = 30,
    today: Optional[date] = None,
) -> schemas.CashFlowReport:
    if days < 1 or days > MAX_HORIZON_DAYS:
        raise BusinessRuleError(f"days must be between 1 and {MAX_HORIZON_DAYS}")
    today = today or brasilia_today()
    end = today + timedelta(days=days)

    opening = money_sum(a.balance for a in banking_repo.list_bank_accounts(db, organization_id, is_active=True))
    inflows: Dict[date, Decimal] = defaultdict(lambda: ZERO)
    outflows: Dict[date, Decimal] = defaultdict(lambda: ZERO)

    cards = _pending_card_transactions(db, organization_id)
    settled_by_card = {c.receivable_id for c in cards if c.receivable_id is not None}
    for card_tx in cards:
        inflows[max(card_tx.expected_date, today)] += to_money(card_tx.net_amount)
    for receivable in _open_receivables(db, organization_id):
        if receivable.id not in settled_by_card and receivable.due_date >= today:
            inflows[receivable.due_date] += to_money(receivable.amount)
    for boleto in _open_boletos(db, organization_id):
        if boleto.due_date >= today:
            inflows[boleto.due_date] += to_money(boleto.amount)
    for expense in _pending_expenses(db, organization_id):
        outflows[max(expense.due_date, today)] += to_money(expense.amount)

    balance = opening
    lowest = opening
    entries: List[schemas.CashFlowDay] = []
    for day in sorted(d for d in set(inflows) | set(outflows) if d <= end):
        balance = to_money(balance + inflows[day] - outflows[day])
        lowest = min(lowest, balance)
        entries.append(schemas.CashFlowDay(
            day=day,
            inflow=float(to_money(inflows[day])),
            outflow=float(to_money(outflows[day])),
            balance=float(balance),
        ))

    total_in = money_sum(v for d, v in inflows.items() if d <= end)
    total_out = money_sum(v for d, v in outflows.items() if d <= end)
    return schemas.CashFlowReport(
        start_date=today,
        end_date=end,
        opening_balance=float(opening),
        expected_inflow=float(total_in),
        expected_outflow=float(total_out),
        projected_balance=float(balance),
        lowest_balance=float(lowest),
        overdue_receivables=float(money_sum(_overdue_receivable_amounts(db, organization_id, today))),
        days=entries,
    )


def financial_alerts(
    db: Session,
    organization_id: uuid.UUID,
    today: Optional[date] = None,
) -> List[schemas.FinancialAlert]:
    """Current alerts, most severe first. Nothing is persisted."""
    today = today or brasilia_today()
    alerts: List[schemas.FinancialAlert] = []

    for account in banking_repo.list_bank_accounts(db, organization_id, is_active=True):
        balance = to_money(account.balance)
        if balance < LOW_BALANCE_THRESHOLD:
            alerts.append(schemas.FinancialAlert(
                alert_type='LOW_BALANCE',
                severity='CRITICAL' if balance < CRITICAL_BALANCE_THRESHOLD else 'HIGH',
                title="Saldo Baixo",
                message=f"Conta {account.name} com saldo baixo: R$ {balance:.2f}",
                trigger_value=float(balance),
                threshold_value=float(LOW_BALANCE_THRESHOLD),
            ))

    expenses = _pending_expenses(db, organization_id)
    overdue_expenses = [e for e in expenses if e.due_date < today]
    if overdue_expenses:
        total = money_sum(e.amount for e in overdue_expenses)
        alerts.append(schemas.FinancialAlert(
            alert_type='OVERDUE_PAYMENT',
            severity='HIGH',
            title="Pagamentos Atrasados",
            message=f"{len(overdue_expenses)} pagamento(s) atrasado(s). Total: R$ {total:.2f}",
            trigger_value=float(total),
            count=len(overdue_expenses),
        ))
    due_soon = [e for e in expenses if today <= e.due_date <= today + timedelta(days=DUE_SOON_DAYS)]
    if due_soon:
        total = money_sum(e.amount for e in due_soon)
        alerts.append(schemas.FinancialAlert(
            alert_type='UPCOMING_PAYMENT',
            severity='MEDIUM',
            title="Pagamentos Próximos",
            message=f"{len(due_soon)} pagamento(s) vencendo em até {DUE_SOON_DAYS} dias. Total: R$ {total:.2f}",
            trigger_value=float(total),
            count=len(due_soon),
        ))

    overdue_in = _overdue_receivable_amounts(db, organization_id, today)
    if overdue_in:
        total = money_sum(overdue_in)
        alerts.append(schemas.FinancialAlert(
            alert_type='OVERDUE_RECEIVABLE',
            severity='HIGH',
            title="Recebimentos Atrasados",
            message=f"{len(overdue_in)} recebimento(s) em atraso. Total: R$ {total:.2f}",
            trigger_value=float(total),
            count=len(overdue_in),
        ))

    projection = cash_flow(db, organization_id, days=30, today=today)
    if projection.lowest_balance < 0:
        alerts.append(schemas.FinancialAlert(
            alert_type='NEGATIVE_PROJECTION',
            severity='CRITICAL',
            title="Fluxo de Caixa Negativo",
            message=f"O saldo projetado chega a R$ {projection.lowest_balance:.2f} nos próximos 30 dias",
            trigger_value=projection.lowest_balance,
            threshold_value=0.0,
        ))

    alerts.sort(key=lambda alert: SEVERITY_ORDER[alert.severity])
    if alerts:
        logger.info("financial_alerts organization_id=%s count=%d", organization_id, len(alerts))
    return alerts
