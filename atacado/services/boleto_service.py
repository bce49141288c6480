"""
Boleto lifecycle: creation, payment, cancellation, reversal and reminders.

Every path that moves a boleto in or out of the open states
(PENDING/OVERDUE) moves the customer's available credit with it.
"""
from __future__ import annotations

import logging
import uuid
from datetime import datetime, UTC
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from atacado import audit
from atacado.db import models, schemas
from atacado.db.repositories import banking as banking_repo
from atacado.db.repositories import boletos as boleto_repo
from atacado.db.repositories import customers as customer_repo
from atacado.services import customer_credit
from atacado.services import whatsapp_messages
from atacado.services.errors import BusinessRuleError, NotFoundError
from atacado.utils.clock import brasilia_today
from atacado.utils.money import ZERO, to_money

logger = logging.getLogger(__name__)

BOLETO_ACTIONS = ('pay', 'cancel', 'revert')


def list_boletos(
    db: Session,
    organization_id: uuid.UUID,
    *,
    customer_id: Optional[uuid.UUID] = None,
    order_id: Optional[uuid.UUID] = None,
    status: Optional[str] = None,
) -> List[models.Boleto]:
    """Synchronize OVERDUE/PENDING against Brasília today, then list."""
    if boleto_repo.sync_statuses(db, organization_id, brasilia_today()):
        db.commit()
    return boleto_repo.list_boletos(db, organization_id, customer_id=customer_id, order_id=order_id, status=status)


def get_boleto_or_404(db: Session, organization_id: uuid.UUID, boleto_id: uuid.UUID) -> models.Boleto:
    boleto = boleto_repo.get_boleto(db, organization_id, boleto_id)
    if boleto is None:
        raise NotFoundError("Boleto not found")
    return boleto


def create_boleto(
    db: Session,
    organization_id: uuid.UUID,
    payload: schemas.BoletoCreate,
    *,
    actor_user_id: Optional[uuid.UUID] = None,
) -> models.Boleto:
    if not payload.customer_id or payload.amount is None or payload.due_date is None:
        raise BusinessRuleError("Missing required fields")
    amount = to_money(payload.amount)
    if amount <= ZERO:
        raise BusinessRuleError("Boleto amount must be greater than zero")
    customer = customer_repo.get_customer(db, organization_id, payload.customer_id)
    if customer is None:
        raise NotFoundError("Customer not found")
    if to_money(customer.available_credit) < amount:
        raise BusinessRuleError(
            "Insufficient credit limit",
            detail={
                "message": "Insufficient credit limit",
                "available_credit": float(to_money(customer.available_credit)),
                "requested": float(amount),
            },
        )
    try:
        boleto = models.Boleto(
            organization_id=organization_id,
            boleto_number=customer_credit.document_number(db, 'BOL', models.Boleto.boleto_number),
            customer_id=customer.id,
            order_id=payload.order_id,
            amount=amount,
            due_date=payload.due_date,
            status='PENDING',
            notes=payload.notes,
        )
        db.add(boleto)
        customer_credit.consume_credit(customer, amount)
        db.commit()
    except Exception:
        db.rollback()
        raise
    db.refresh(boleto)
    audit.log_safely(
        db,
        action=audit.AuditAction.BOLETO_CREATE,
        target_type="boleto",
        target_id=boleto.id,
        actor_user_id=actor_user_id,
        organization_id=organization_id,
        metadata={"boleto_number": boleto.boleto_number, "amount": float(amount)},
    )
    return boleto


def _pay(db: Session, boleto: models.Boleto, action: schemas.BoletoAction, actor_email: Optional[str]) -> Dict[str, Any]:
    if not action.bank_account_id:
        raise BusinessRuleError("bank_account_id is required")
    account = banking_repo.get_bank_account(db, boleto.organization_id, action.bank_account_id)
    if account is None:
        raise NotFoundError("Bank account not found")
    if boleto.status not in boleto_repo.OPEN_STATUSES:
        raise BusinessRuleError(f"Cannot pay a boleto with status {boleto.status}")

    amount = to_money(boleto.amount)
    interest = to_money(action.interest)
    fine = to_money(action.fine)
    total = to_money(amount + interest + fine)
    paid_at = action.paid_date or datetime.now(UTC)

    boleto.status = 'PAID'
    boleto.paid_date = paid_at
    boleto.paid_by = actor_email
    boleto.paid_amount = total
    boleto.interest = interest
    boleto.fine = fine
    boleto.bank_account_id = account.id
    if action.notes:
        boleto.notes = action.notes

    customer = db.get(models.Customer, boleto.customer_id)
    if customer is not None:
        customer_credit.restore_credit(customer, amount)

    notes = None
    if interest > ZERO or fine > ZERO:
        notes = f"Valor original: R$ {amount:.2f} | Juros: R$ {interest:.2f} | Multa: R$ {fine:.2f}"
    banking_repo.record_movement(
        db, account,
        type='INCOME',
        amount=total,
        description=f"Pagamento Boleto {boleto.boleto_number}"
                    + (f" - {customer.name}" if customer is not None else ''),
        category='VENDA',
        reference_type='BOLETO',
        reference_id=boleto.id,
        notes=notes,
        date=paid_at,
        created_by=actor_email,
    )

    linked = boleto_repo.get_linked_receivable(db, boleto.id)
    if linked is not None and linked.status != 'PAID':
        linked.status = 'PAID'
        linked.payment_date = paid_at
        linked.bank_account_id = account.id
        linked.interest = interest
        linked.fine = fine
        linked.net_amount = total
        linked.paid_by = actor_email
    return {'total': float(total), 'bank_account_id': str(account.id)}


def _cancel(db: Session, boleto: models.Boleto) -> Dict[str, Any]:
    if boleto.status not in boleto_repo.OPEN_STATUSES:
        raise BusinessRuleError(f"Cannot cancel a boleto with status {boleto.status}")
    boleto.status = 'CANCELLED'
    customer = db.get(models.Customer, boleto.customer_id)
    if customer is not None:
        customer_credit.restore_credit(customer, boleto.amount)
    linked = boleto_repo.get_linked_receivable(db, boleto.id)
    if linked is not None and linked.status in ('PENDING', 'OVERDUE'):
        linked.status = 'CANCELLED'
    return {'restored_credit': float(to_money(boleto.amount))}


def _revert(db: Session, boleto: models.Boleto) -> Dict[str, Any]:
    if boleto.status != 'PAID':
        raise BusinessRuleError("Only paid boletos can be reverted")
    linked = boleto_repo.get_linked_receivable(db, boleto.id)
    partials = []
    if linked is not None:
        partials = (
            db.query(models.Receivable)
            .filter(models.Receivable.parent_id == linked.id, models.Receivable.status == 'PAID')
            .all()
        )

    # Paid here or through the linked receivable (in full or in parts)
    references = [('BOLETO', boleto.id)]
    if linked is not None:
        references.append(('RECEIVABLE', linked.id))
    references += [('RECEIVABLE', child.id) for child in partials]

    removed = ZERO
    for reference_type, reference_id in references:
        tx = banking_repo.find_reference_transaction(db, reference_type, reference_id, 'INCOME')
        if tx is None:
            continue
        account = db.get(models.BankAccount, tx.bank_account_id)
        if account is not None:
            account.balance = to_money(account.balance) - to_money(tx.amount)
        removed += to_money(tx.amount)
        db.delete(tx)

    boleto.status = 'OVERDUE' if boleto.due_date < brasilia_today() else 'PENDING'
    boleto.paid_date = None
    boleto.paid_by = None
    boleto.paid_amount = None
    boleto.interest = None
    boleto.fine = None
    boleto.bank_account_id = None

    customer = db.get(models.Customer, boleto.customer_id)
    if customer is not None:
        customer_credit.consume_credit(customer, boleto.amount)

    for child in partials:
        child.status = 'CANCELLED'
        child.notes = f"{child.notes}\nEstornado com o boleto {boleto.boleto_number}" if child.notes \
            else f"Estornado com o boleto {boleto.boleto_number}"
    if linked is not None:
        linked.amount = to_money(boleto.amount)
        linked.status = boleto.status
        linked.payment_date = None
        linked.bank_account_id = None
        linked.net_amount = None
        linked.interest = None
        linked.fine = None
        linked.paid_by = None
    return {'removed_transaction_amount': float(removed)}


_ACTION_AUDIT = {
    'pay': audit.AuditAction.BOLETO_PAY,
    'cancel': audit.AuditAction.BOLETO_CANCEL,
    'revert': audit.AuditAction.BOLETO_REVERT,
}


def apply_action(
    db: Session,
    organization_id: uuid.UUID,
    boleto_id: uuid.UUID,
    action: schemas.BoletoAction,
    *,
    actor_user_id: Optional[uuid.UUID] = None,
    actor_email: Optional[str] = None,
) -> models.Boleto:
    """Run ``pay``, ``cancel`` or ``revert`` in one transaction."""
    if action.action not in BOLETO_ACTIONS:
        raise BusinessRuleError("Invalid action")
    boleto = get_boleto_or_404(db, organization_id, boleto_id)
    previous = boleto.status
    try:
        if action.action == 'pay':
            metadata = _pay(db, boleto, action, actor_email)
        elif action.action == 'cancel':
            metadata = _cancel(db, boleto)
        else:
            metadata = _revert(db, boleto)
        db.commit()
    except Exception:
        db.rollback()
        raise
    db.refresh(boleto)
    logger.info("boleto_%s number=%s from=%s to=%s", action.action, boleto.boleto_number, previous, boleto.status)
    audit.log_safely(
        db,
        action=_ACTION_AUDIT[action.action],
        target_type="boleto",
        target_id=boleto.id,
        actor_user_id=actor_user_id,
        organization_id=organization_id,
        metadata={"from": previous, "to": boleto.status, **metadata},
    )
    return boleto


def delete_boleto(
    db: Session,
    organization_id: uuid.UUID,
    boleto_id: uuid.UUID,
    *,
    actor_user_id: Optional[uuid.UUID] = None,
) -> None:
    boleto = get_boleto_or_404(db, organization_id, boleto_id)
    number = boleto.boleto_number
    was_open = boleto.status in boleto_repo.OPEN_STATUSES
    try:
        if was_open:
            customer = db.get(models.Customer, boleto.customer_id)
            if customer is not None:
                customer_credit.restore_credit(customer, boleto.amount)
        for receivable in db.query(models.Receivable).filter(models.Receivable.boleto_id == boleto.id).all():
            db.delete(receivable)
        db.delete(boleto)
        db.commit()
    except Exception:
        db.rollback()
        raise
    audit.log_safely(
        db,
        action=audit.AuditAction.BOLETO_DELETE,
        target_type="boleto",
        target_id=boleto_id,
        actor_user_id=actor_user_id,
        organization_id=organization_id,
        metadata={"boleto_number": number, "restored_credit": was_open},
    )


def reminder_text(boleto: models.Boleto, today=None) -> str:
    customer = boleto.customer
    name = customer.name if customer is not None else 'Cliente'
    today = today or brasilia_today()
    if boleto.status == 'OVERDUE' or boleto.due_date < today:
        return whatsapp_messages.overdue_boleto_message(
            name, boleto.boleto_number, boleto.amount, boleto.due_date,
            days_overdue=(today - boleto.due_date).days,
        )
    return whatsapp_messages.boleto_reminder_message(name, boleto.boleto_number, boleto.amount, boleto.due_date)


def send_reminder(db: Session, organization_id: uuid.UUID, boleto_id: uuid.UUID, client=None) -> Dict[str, Any]:
    boleto = get_boleto_or_404(db, organization_id, boleto_id)
    if boleto.status not in boleto_repo.OPEN_STATUSES:
        raise BusinessRuleError("Only open boletos can be reminded")
    customer = boleto.customer
    result = whatsapp_messages.send_message(customer.phone if customer else None, reminder_text(boleto), client)
    logger.info("boleto_reminder number=%s success=%s", boleto.boleto_number, result.get('success'))
    return result
