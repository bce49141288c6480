"""
Accounts receivable: listing, manual entries, payment receipt and card
settlement.
"""
from __future__ import annotations

import logging
import uuid
from datetime import date, datetime, timedelta, UTC
from decimal import Decimal
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from atacado import audit
from atacado.db import models, schemas
from atacado.db.repositories import banking as banking_repo
from atacado.db.repositories import boletos as boleto_repo
from atacado.db.repositories import customers as customer_repo
from atacado.db.repositories import expenses as expense_repo
from atacado.db.repositories import receivables as receivable_repo
from atacado.services import customer_credit
from atacado.services.errors import BusinessRuleError, NotFoundError
from atacado.utils.clock import as_utc, brasilia_today, to_brasilia
from atacado.utils.money import ZERO, money_sum, percent_of, to_money

logger = logging.getLogger(__name__)

CARD_FEE_PERCENT = {'DEBIT': Decimal('0.9'), 'CREDIT': Decimal('3.24')}
CARD_SETTLEMENT_DAYS = {'DEBIT': 1, 'CREDIT': 30}
CARD_PAYMENT_METHODS = ('CREDIT_CARD', 'DEBIT', 'CARD')
CARD_FEE_CATEGORY = 'Taxa de Cartão'
PARTIAL_TOLERANCE = Decimal('0.01')
BOLETO_BALANCE_DAYS = 7


def card_type_for(payment_method: str) -> str:
    return 'CREDIT' if payment_method == 'CREDIT_CARD' else 'DEBIT'


def stage_card_transaction(
    db: Session,
    *,
    organization_id: uuid.UUID,
    card_type: str,
    gross_amount: Decimal,
    order_id: Optional[uuid.UUID] = None,
    customer_id: Optional[uuid.UUID] = None,
    receivable_id: Optional[uuid.UUID] = None,
    sale_date: Optional[datetime] = None,
) -> models.CardTransaction:
    """Stage a PENDING card sale with the acquirer fee and expected settlement date."""
    gross = to_money(gross_amount)
    fee_percentage = CARD_FEE_PERCENT[card_type]
    fee = percent_of(gross, fee_percentage)
    sale_date = sale_date or datetime.now(UTC)
    expected = to_brasilia(sale_date).date() + timedelta(days=CARD_SETTLEMENT_DAYS[card_type])
    card_tx = models.CardTransaction(
        organization_id=organization_id,
        order_id=order_id,
        customer_id=customer_id,
        receivable_id=receivable_id,
        card_type=card_type,
        gross_amount=gross,
        fee_percentage=float(fee_percentage),
        fee_amount=fee,
        net_amount=to_money(gross - fee),
        transaction_date=sale_date,
        expected_date=expected,
        status='PENDING',
    )
    db.add(card_tx)
    return card_tx


# Listing

def list_receivables(
    db: Session,
    organization_id: uuid.UUID,
    *,
    status: Optional[str] = None,
    payment_method: Optional[str] = None,
    customer_id: Optional[uuid.UUID] = None,
    start: Optional[date] = None,
    end: Optional[date] = None,
) -> List[Dict[str, Any]]:
    """Receivables not backed by a boleto, merged with the boletos themselves."""
    today = brasilia_today()
    changed = receivable_repo.mark_overdue(db, organization_id, today)
    changed += boleto_repo.sync_statuses(db, organization_id, today)
    if changed:
        db.commit()

    rows: List[Dict[str, Any]] = []
    receivables = receivable_repo.list_receivables(
        db, organization_id,
        status=status, payment_method=payment_method, customer_id=customer_id,
        start=start, end=end, exclude_boleto_linked=True,
    )
    for r in receivables:
        rows.append({
            'id': r.id,
            'is_boleto': False,
            'customer_id': r.customer_id,
            'customer_name': r.customer.name if r.customer else None,
            'order_id': r.order_id,
            'description': r.description,
            'amount': float(to_money(r.amount)),
            'due_date': r.due_date,
            'status': r.status,
            'payment_method': r.payment_method,
            'payment_date': r.payment_date,
            'boleto_number': None,
        })

    if payment_method in (None, 'BOLETO'):
        boletos = boleto_repo.list_boletos(db, organization_id, customer_id=customer_id, status=status)
        for b in boletos:
            if start and b.due_date < start:
                continue
            if end and b.due_date > end:
                continue
            rows.append({
                'id': b.id,
                'is_boleto': True,
                'customer_id': b.customer_id,
                'customer_name': b.customer.name if b.customer else None,
                'order_id': b.order_id,
                'description': f"Boleto {b.boleto_number}",
                'amount': float(to_money(b.amount)),
                'due_date': b.due_date,
                'status': b.status,
                'payment_method': 'BOLETO',
                'payment_date': b.paid_date,
                'boleto_number': b.boleto_number,
            })
    rows.sort(key=lambda row: row['due_date'])
    return rows


def create_receivable(
    db: Session,
    organization_id: uuid.UUID,
    payload: schemas.ReceivableCreate,
    *,
    actor_user_id: Optional[uuid.UUID] = None,
) -> models.Receivable:
    customer_credit.validate_receivable_data(payload.amount, payload.customer_id, payload.due_date)
    customer = customer_repo.get_customer(db, organization_id, payload.customer_id)
    if customer is None:
        raise NotFoundError("Customer not found")
    amount = to_money(payload.amount)
    try:
        receivable = models.Receivable(
            organization_id=organization_id,
            customer_id=customer.id,
            order_id=payload.order_id,
            description=payload.description,
            amount=amount,
            due_date=payload.due_date,
            status=payload.status,
            payment_method=payload.payment_method,
            payment_date=datetime.now(UTC) if payload.status == 'PAID' else None,
            notes=payload.notes,
        )
        db.add(receivable)
        if payload.status != 'PAID':
            customer_credit.consume_credit(customer, amount)
        db.commit()
    except Exception:
        db.rollback()
        raise
    db.refresh(receivable)
    audit.log_safely(
        db,
        action=audit.AuditAction.RECEIVABLE_CREATE,
        target_type="receivable",
        target_id=receivable.id,
        actor_user_id=actor_user_id,
        organization_id=organization_id,
        metadata={"amount": float(amount), "customer_id": str(customer.id)},
    )
    return receivable


# Receipt

def _charges_note(interest: Decimal, fine: Decimal) -> str:
    if interest > ZERO or fine > ZERO:
        return f" (Juros: R$ {interest:.2f} | Multa: R$ {fine:.2f})"
    return ''


def _resolve_bank_account(db: Session, organization_id: uuid.UUID, bank_account_id: Optional[uuid.UUID]):
    if bank_account_id is None:
        return None
    account = banking_repo.get_bank_account(db, organization_id, bank_account_id)
    if account is None:
        raise NotFoundError("Bank account not found")
    return account


def _mark_order_paid_when_settled(db: Session, order_id: Optional[uuid.UUID]) -> None:
    if order_id is None:
        return
    db.flush()
    rows = receivable_repo.list_for_order(db, order_id)
    live = [r for r in rows if r.status != 'CANCELLED']
    order = db.get(models.Order, order_id)
    if order is None or not live:
        return
    if all(r.status == 'PAID' for r in live):
        order.payment_status = 'PAID'
    elif any(r.status == 'PAID' for r in live):
        order.payment_status = 'PARTIAL'


def receive(
    db: Session,
    organization_id: uuid.UUID,
    receivable_id: uuid.UUID,
    payment: schemas.ReceivePayment,
    *,
    actor_user_id: Optional[uuid.UUID] = None,
    actor_email: Optional[str] = None,
) -> Dict[str, Any]:
    """Receive a full or partial payment for a receivable (or a boleto id)."""
    receivable = receivable_repo.get_receivable(db, organization_id, receivable_id)
    if receivable is None:
        boleto = boleto_repo.get_boleto(db, organization_id, receivable_id)
        if boleto is None:
            raise NotFoundError("Receivable not found")
        return _receive_boleto(db, organization_id, boleto, payment, actor_user_id=actor_user_id, actor_email=actor_email)
    if receivable.status == 'PAID':
        raise BusinessRuleError("Receivable already paid")
    if receivable.status == 'CANCELLED':
        raise BusinessRuleError("Receivable is cancelled")

    account = _resolve_bank_account(db, organization_id, payment.bank_account_id)
    amount = to_money(receivable.amount)
    paid = to_money(payment.payment_amount)
    interest = to_money(payment.interest)
    fine = to_money(payment.fine)
    fee = to_money(payment.fee_amount)
    net = to_money(paid - fee)
    total_with_charges = to_money(amount + interest + fine)
    remaining = to_money(total_with_charges - paid)
    partial = remaining > PARTIAL_TOLERANCE
    paid_at = payment.payment_date or datetime.now(UTC)
    method = payment.payment_method or receivable.payment_method or 'PIX'
    is_card = method in CARD_PAYMENT_METHODS
    customer = db.get(models.Customer, receivable.customer_id) if receivable.customer_id else None

    child = None
    card_tx = None
    ledger_tx = None
    try:
        if partial:
            child = models.Receivable(
                organization_id=organization_id,
                customer_id=receivable.customer_id,
                order_id=receivable.order_id,
                parent_id=receivable.id,
                description=f"{receivable.description} - Pagamento Parcial",
                amount=paid,
                due_date=receivable.due_date,
                payment_date=paid_at,
                status='PAID',
                payment_method=method,
                bank_account_id=account.id if account else None,
                fee_amount=fee,
                net_amount=net,
                interest=interest,
                fine=fine,
                is_installment=receivable.is_installment,
                installment_number=receivable.installment_number,
                total_installments=receivable.total_installments,
                paid_by=actor_email,
                notes=f"Pagamento parcial de R$ {paid:.2f}{_charges_note(interest, fine)}"
                      + (f". {payment.notes}" if payment.notes else ''),
            )
            db.add(child)
            db.flush()
            receivable.amount = remaining
            receivable.status = 'PENDING'
            stamp = to_brasilia(datetime.now(UTC)).strftime('%d/%m/%Y')
            receivable.notes = f"{receivable.notes}\n[{stamp}] Saldo após pagamento parcial" if receivable.notes \
                else f"[{stamp}] Saldo após pagamento parcial"
            # Only the principal released by this payment; the balance keeps the charges
            if customer is not None and receivable.boleto_id is None:
                customer_credit.restore_credit(customer, min(amount, max(ZERO, amount - remaining)))
        else:
            receivable.status = 'PAID'
            receivable.payment_date = paid_at
            receivable.payment_method = method
            receivable.bank_account_id = account.id if account else None
            receivable.fee_amount = fee
            receivable.net_amount = net
            receivable.interest = interest
            receivable.fine = fine
            receivable.paid_by = actor_email
            if payment.notes:
                receivable.notes = f"{payment.notes}{_charges_note(interest, fine)}"
            boleto_was_paid = False
            released = amount
            if receivable.boleto_id:
                boleto = db.get(models.Boleto, receivable.boleto_id)
                if boleto is not None:
                    boleto_was_paid = boleto.status == 'PAID'
                    # Partial payments on a boleto-backed row restore nothing until the boleto is settled
                    released = to_money(boleto.amount)
                    if not boleto_was_paid:
                        boleto.status = 'PAID'
                        boleto.paid_date = paid_at
                        boleto.paid_amount = paid
                        boleto.paid_by = actor_email
            if customer is not None and not boleto_was_paid:
                customer_credit.restore_credit(customer, released)
            _mark_order_paid_when_settled(db, receivable.order_id)

        reference_id = child.id if child is not None else receivable.id
        if is_card:
            pending = None
            if receivable.order_id:
                pending = (
                    db.query(models.CardTransaction)
                    .filter(models.CardTransaction.order_id == receivable.order_id,
                            models.CardTransaction.status == 'PENDING')
                    .first()
                )
            if pending is None:
                card_tx = stage_card_transaction(
                    db,
                    organization_id=organization_id,
                    order_id=receivable.order_id,
                    customer_id=receivable.customer_id,
                    receivable_id=reference_id,
                    card_type=card_type_for(method),
                    gross_amount=paid,
                    sale_date=paid_at,
                )
            else:
                card_tx = pending
        elif account is not None:
            description = (
                f"Recebimento parcial: {receivable.description} (R$ {paid:.2f} de R$ {total_with_charges:.2f})"
                if partial else f"Recebimento: {receivable.description}"
            )
            notes = []
            if fee > ZERO:
                notes.append(f"Taxa: R$ {fee:.2f}")
            if partial:
                notes.append(f"Saldo restante: R$ {remaining:.2f}")
            ledger_tx = banking_repo.record_movement(
                db, account,
                type='INCOME',
                amount=net,
                description=description,
                category='VENDA',
                reference_type='RECEIVABLE',
                reference_id=reference_id,
                notes=' | '.join(notes) or None,
                date=paid_at,
                created_by=actor_email,
            )
        db.commit()
    except Exception:
        db.rollback()
        raise
    logger.info("receivable_received id=%s paid=%s partial=%s", receivable.id, paid, partial)
    audit.log_safely(
        db,
        action=audit.AuditAction.RECEIVABLE_RECEIVE,
        target_type="receivable",
        target_id=receivable.id,
        actor_user_id=actor_user_id,
        organization_id=organization_id,
        metadata={"paid": float(paid), "partial": partial, "remaining": float(remaining if partial else ZERO)},
    )
    return {
        'id': receivable.id,
        'status': 'PARTIAL' if partial else 'PAID',
        'partial': partial,
        'paid_amount': float(paid),
        'remaining': float(remaining) if partial else 0.0,
        'net_amount': float(net),
        'child_receivable_id': child.id if child is not None else None,
        'card_transaction_id': card_tx.id if card_tx is not None else None,
        'transaction_id': ledger_tx.id if ledger_tx is not None else None,
    }


def _receive_boleto(
    db: Session,
    organization_id: uuid.UUID,
    boleto: models.Boleto,
    payment: schemas.ReceivePayment,
    *,
    actor_user_id: Optional[uuid.UUID],
    actor_email: Optional[str],
) -> Dict[str, Any]:
    if boleto.status == 'PAID':
        raise BusinessRuleError("Boleto already paid")
    if boleto.status == 'CANCELLED':
        raise BusinessRuleError("Boleto is cancelled")
    account = _resolve_bank_account(db, organization_id, payment.bank_account_id)
    amount = to_money(boleto.amount)
    paid = to_money(payment.payment_amount)
    interest = to_money(payment.interest)
    fine = to_money(payment.fine)
    fee = to_money(payment.fee_amount)
    net = to_money(paid - fee)
    remaining = to_money(amount + interest + fine - paid)
    partial = remaining > PARTIAL_TOLERANCE
    paid_at = payment.payment_date or datetime.now(UTC)
    customer = db.get(models.Customer, boleto.customer_id)

    balance = None
    ledger_tx = None
    try:
        if partial:
            balance = models.Receivable(
                organization_id=organization_id,
                customer_id=boleto.customer_id,
                order_id=boleto.order_id,
                description=f"Saldo Boleto {boleto.boleto_number} - {customer.name if customer else 'Cliente'}",
                amount=remaining,
                due_date=brasilia_today() + timedelta(days=BOLETO_BALANCE_DAYS),
                status='PENDING',
                notes=f"Saldo restante do boleto {boleto.boleto_number} "
                      f"(Total: R$ {amount:.2f}, Pago: R$ {paid:.2f})",
            )
            db.add(balance)
        boleto.status = 'PAID'
        boleto.paid_date = paid_at
        boleto.paid_amount = paid
        boleto.interest = interest
        boleto.fine = fine
        boleto.paid_by = actor_email
        boleto.bank_account_id = account.id if account else None
        if partial:
            boleto.notes = f"Pagamento parcial de R$ {paid:.2f} (saldo restante: R$ {remaining:.2f})."
        linked = boleto_repo.get_linked_receivable(db, boleto.id)
        if linked is not None and linked.status != 'PAID':
            linked.status = 'PAID'
            linked.payment_date = paid_at
            linked.net_amount = net
        if customer is not None:
            released = min(amount, max(ZERO, amount - remaining)) if partial else amount
            customer_credit.restore_credit(customer, released)
        if account is not None:
            description = (
                f"Recebimento parcial Boleto {boleto.boleto_number} (R$ {paid:.2f} de R$ {amount:.2f})"
                if partial else f"Recebimento Boleto {boleto.boleto_number}"
            )
            ledger_tx = banking_repo.record_movement(
                db, account,
                type='INCOME',
                amount=net,
                description=description,
                category='VENDA',
                reference_type='BOLETO',
                reference_id=boleto.id,
                notes=f"Saldo restante: R$ {remaining:.2f}" if partial else payment.notes,
                date=paid_at,
                created_by=actor_email,
            )
        db.commit()
    except Exception:
        db.rollback()
        raise
    audit.log_safely(
        db,
        action=audit.AuditAction.BOLETO_PAY,
        target_type="boleto",
        target_id=boleto.id,
        actor_user_id=actor_user_id,
        organization_id=organization_id,
        metadata={"paid": float(paid), "partial": partial, "via": "receivables"},
    )
    return {
        'id': boleto.id,
        'status': 'PARTIAL' if partial else 'PAID',
        'partial': partial,
        'paid_amount': float(paid),
        'remaining': float(remaining) if partial else 0.0,
        'net_amount': float(net),
        'child_receivable_id': balance.id if balance is not None else None,
        'card_transaction_id': None,
        'transaction_id': ledger_tx.id if ledger_tx is not None else None,
    }


# Card transactions

def card_summary(db: Session, organization_id: uuid.UUID) -> Dict[str, Dict[str, Any]]:
    rows = receivable_repo.list_card_transactions(db, organization_id)

    def bucket(status: str) -> Dict[str, Any]:
        selected = [row for row in rows if row.status == status]
        return {
            'count': len(selected),
            'gross': float(money_sum(row.gross_amount for row in selected)),
            'fee': float(money_sum(row.fee_amount for row in selected)),
            'net': float(money_sum(row.net_amount for row in selected)),
        }

    return {'pending': bucket('PENDING'), 'received': bucket('RECEIVED')}


def _card_fee_category(db: Session, organization_id: uuid.UUID) -> models.ExpenseCategory:
    category = expense_repo.get_category_by_name(db, organization_id, CARD_FEE_CATEGORY)
    if category is None:
        category = expense_repo.create_category(
            db, organization_id,
            schemas.ExpenseCategoryCreate(name=CARD_FEE_CATEGORY, expense_type='OPERATIONAL'),
            commit=False,
        )
    return category


def confirm_batch(
    db: Session,
    organization_id: uuid.UUID,
    payload: schemas.ConfirmBatch,
    *,
    actor_user_id: Optional[uuid.UUID] = None,
    actor_email: Optional[str] = None,
) -> Dict[str, Any]:
    """Settle card sales into ``bank_account_id``; already received rows are skipped."""
    account = _resolve_bank_account(db, organization_id, payload.bank_account_id)
    received_at = payload.received_date or datetime.now(UTC)
    received_day = to_brasilia(as_utc(received_at)).date()
    confirmed = 0
    skipped = 0
    total_net = ZERO
    total_fee = ZERO
    try:
        for card_tx_id in payload.ids:
            card_tx = receivable_repo.get_card_transaction(db, organization_id, card_tx_id)
            if card_tx is None:
                raise NotFoundError(f"Card transaction {card_tx_id} not found")
            if card_tx.status != 'PENDING':
                skipped += 1
                continue
            label = 'Débito' if card_tx.card_type == 'DEBIT' else 'Crédito'
            order = db.get(models.Order, card_tx.order_id) if card_tx.order_id else None
            order_label = order.order_number if order else str(card_tx.id)[:8]
            card_tx.status = 'RECEIVED'
            card_tx.received_date = received_at
            card_tx.bank_account_id = account.id

            receivable = None
            if card_tx.order_id:
                receivable = (
                    db.query(models.Receivable)
                    .filter(models.Receivable.order_id == card_tx.order_id)
                    .order_by(models.Receivable.created_at.desc())
                    .first()
                )
            if receivable is not None:
                was_open = receivable.status in receivable_repo.OPEN_STATUSES
                receivable.status = 'PAID'
                receivable.payment_date = received_at
                receivable.fee_amount = card_tx.fee_amount
                receivable.net_amount = card_tx.net_amount
                receivable.bank_account_id = account.id
                receivable.paid_by = actor_email
                if was_open and receivable.customer_id and receivable.boleto_id is None:
                    customer = db.get(models.Customer, receivable.customer_id)
                    if customer is not None:
                        customer_credit.restore_credit(customer, receivable.amount)
            else:
                receivable = models.Receivable(
                    organization_id=organization_id,
                    customer_id=card_tx.customer_id,
                    order_id=card_tx.order_id,
                    description=f"Recebimento {label} - Pedido {order_label}",
                    amount=card_tx.gross_amount,
                    due_date=card_tx.expected_date,
                    payment_date=received_at,
                    status='PAID',
                    payment_method='CREDIT_CARD' if card_tx.card_type == 'CREDIT' else 'DEBIT',
                    fee_amount=card_tx.fee_amount,
                    net_amount=card_tx.net_amount,
                    bank_account_id=account.id,
                    paid_by=actor_email,
                )
                db.add(receivable)
                db.flush()
            card_tx.receivable_id = receivable.id
            _mark_order_paid_when_settled(db, card_tx.order_id)

            banking_repo.record_movement(
                db, account,
                type='INCOME',
                amount=card_tx.net_amount,
                description=f"Recebimento {label} - Pedido {order_label}",
                category='CARD_PAYMENT',
                reference_type='CARD_TRANSACTION',
                reference_id=card_tx.id,
                date=received_at,
                created_by=actor_email,
            )
            fee = to_money(card_tx.fee_amount)
            if fee > ZERO:
                category = _card_fee_category(db, organization_id)
                db.add(models.Expense(
                    organization_id=organization_id,
                    description=f"Taxa {label} ({card_tx.fee_percentage}%) - Pedido {order_label}",
                    amount=fee,
                    category_id=category.id,
                    expense_type='OPERATIONAL',
                    due_date=received_day,
                    competence_date=received_day,
                    payment_date=received_at,
                    status='PAID',
                    bank_account_id=account.id,
                    paid_by='Sistema',
                ))
            confirmed += 1
            total_net += to_money(card_tx.net_amount)
            total_fee += fee
        db.commit()
    except Exception:
        db.rollback()
        raise
    audit.log_safely(
        db,
        action=audit.AuditAction.CARD_BATCH_CONFIRM,
        target_type="bank_account",
        target_id=account.id,
        actor_user_id=actor_user_id,
        organization_id=organization_id,
        metadata={"confirmed": confirmed, "skipped": skipped, "total_net": float(total_net)},
    )
    return {
        'confirmed': confirmed,
        'skipped': skipped,
        'total_net': float(to_money(total_net)),
        'total_fee': float(to_money(total_fee)),
    }
