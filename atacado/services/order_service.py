"""
Order creation and lifecycle.

``create_order`` prices the items, applies fees, checks the customer's
overdue/credit situation and stages every financial row (boletos,
receivables, card transactions, bank income) before a single commit.
"""
from __future__ import annotations

import logging
import re
import uuid
from datetime import date, datetime, timedelta, UTC
from decimal import Decimal
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy.orm import Session

from atacado import audit
from atacado.db import models, schemas
from atacado.db.repositories import banking as banking_repo
from atacado.db.repositories import boletos as boleto_repo
from atacado.db.repositories import catalog as catalog_repo
from atacado.db.repositories import customers as customer_repo
from atacado.db.repositories import orders as order_repo
from atacado.db.repositories import receivables as receivable_repo
from atacado.services import (
    business_rules,
    coupon_service,
    customer_credit,
    loyalty_service,
    pricing,
    whatsapp_messages,
)
from atacado.services.errors import BusinessRuleError, ConflictError, NotFoundError
from atacado.services.receivable_service import stage_card_transaction
from atacado.utils.clock import brasilia_today
from atacado.utils.feature_flags import loyalty_feature_enabled
from atacado.utils.money import ZERO, percent_of, to_money

logger = logging.getLogger(__name__)

CREDIT_METHODS = ('BOLETO', 'CREDIT')
CARD_METHODS = ('CREDIT_CARD', 'DEBIT')
IMMEDIATE_METHODS = ('CASH', 'PIX')
WHOLESALE_CARD_FEES = {'CREDIT_CARD': Decimal('3.5'), 'DEBIT': Decimal('1')}
BOLETO_MIN_AMOUNT = Decimal('5.00')
DEFAULT_BOLETO_TERMS = 7
PRICE_TOLERANCE = Decimal('0.01')

_INSTALLMENTS_RE = re.compile(r'^(\d+)x-(\d+(?:-\d+)*)$')


def parse_installments(value: Optional[str]) -> Optional[List[int]]:
    """``"3x-30-60-90"`` -> ``[30, 60, 90]``. None when absent or malformed."""
    if not value:
        return None
    match = _INSTALLMENTS_RE.match(value.strip())
    if not match:
        return None
    count = int(match.group(1))
    days = [int(d) for d in match.group(2).split('-')]
    if count <= 0 or len(days) != count:
        return None
    return days


def split_amount(total: Decimal, parts: int) -> List[Decimal]:
    """Split into ``parts`` cent-rounded amounts; the last one absorbs the remainder."""
    share = to_money(total / parts)
    amounts = [share] * (parts - 1)
    amounts.append(to_money(total - share * (parts - 1)))
    return amounts


def _cpf_cnpj_digits(value: Optional[str]) -> str:
    return re.sub(r'\D', '', value or '')


def _price_items(
    db: Session,
    organization_id: uuid.UUID,
    payload: schemas.OrderCreate,
    customer: Optional[models.Customer],
) -> Tuple[List[Dict[str, Any]], Decimal]:
    products = catalog_repo.get_products(db, organization_id, [item.product_id for item in payload.items])
    custom_prices: Dict[uuid.UUID, Decimal] = {}
    if customer is not None:
        for row in customer_repo.list_custom_prices(db, customer.id):
            custom_prices[row.product_id] = to_money(row.custom_price)

    lines: List[Dict[str, Any]] = []
    subtotal = ZERO
    for item in payload.items:
        product = products.get(item.product_id)
        if product is None:
            raise NotFoundError(f"Product {item.product_id} not found")
        if not product.is_active:
            raise BusinessRuleError(f"Product {product.name} is not available")
        unit_price, _ = pricing.resolve_unit_price(
            product, item.quantity, payload.order_type, payload.payment_method, custom_prices.get(product.id),
        )
        if item.expected_unit_price is not None:
            expected = to_money(item.expected_unit_price)
            if abs(unit_price - expected) > PRICE_TOLERANCE:
                raise ConflictError(
                    f"Price mismatch for {product.name}",
                    detail={
                        "code": "PRICE_MISMATCH",
                        "message": f"Price mismatch for {product.name}",
                        "product_id": str(product.id),
                        "product_name": product.name,
                        "expected_price": float(expected),
                        "current_price": float(unit_price),
                    },
                )
        line_total = to_money(unit_price * item.quantity)
        subtotal += line_total
        lines.append({'product': product, 'quantity': item.quantity, 'unit_price': unit_price, 'total': line_total})
    return lines, to_money(subtotal)


def _check_overdue_block(db: Session, customer: models.Customer) -> None:
    blocked, count, amount = customer_credit.is_blocked(db, customer)
    if blocked:
        message = (
            f"Customer has {count} overdue payment(s) totalling {amount:.2f}. "
            "Settle them before placing new orders."
        )
        raise BusinessRuleError(
            message,
            detail={"message": message, "overdue_count": count, "overdue_amount": float(amount)},
        )


def _boleto_plan(payload: schemas.OrderCreate, customer: models.Customer, total: Decimal) -> List[Tuple[Decimal, date]]:
    base_date = payload.delivery_date or brasilia_today()
    days = parse_installments(payload.boleto_installments)
    if days:
        amounts = split_amount(total, len(days))
        return [(amount, base_date + timedelta(days=d)) for amount, d in zip(amounts, days)]
    terms = customer.payment_terms or DEFAULT_BOLETO_TERMS
    return [(total, base_date + timedelta(days=terms))]


def _boleto_number(db: Session, order_number: str, installment: int, total_installments: int) -> str:
    number = f"BOL{order_number[3:]}"
    if total_installments > 1:
        number = f"{number}-{installment}"
    if db.query(models.Boleto.id).filter(models.Boleto.boleto_number == number).first() is None:
        return number
    suffix = f"-{installment}" if total_installments > 1 else ''
    return customer_credit.document_number(db, 'BOL', models.Boleto.boleto_number, suffix)


def create_order(
    db: Session,
    organization_id: uuid.UUID,
    payload: schemas.OrderCreate,
    *,
    actor_user_id: Optional[uuid.UUID] = None,
    actor_email: Optional[str] = None,
) -> models.Order:
    """Validate, price and persist an order with its financial rows."""
    if not payload.items:
        raise BusinessRuleError("No items in order")
    if not payload.payment_method:
        raise BusinessRuleError("Payment method is required")
    if not payload.customer_id and not (payload.casual_customer_name or '').strip():
        raise BusinessRuleError("Customer or casual customer name is required")

    customer = None
    if payload.customer_id:
        customer = customer_repo.get_customer(db, organization_id, payload.customer_id)
        if customer is None:
            raise NotFoundError("Customer not found")
        if not customer.is_active:
            raise BusinessRuleError("Customer is inactive")
    is_final_consumer = customer is not None and customer.customer_type == 'CONSUMIDOR_FINAL'
    method = payload.payment_method

    if is_final_consumer and method in CREDIT_METHODS:
        raise BusinessRuleError("Final consumers must pay at the time of purchase")

    lines, subtotal = _price_items(db, organization_id, payload, customer)
    discount = percent_of(subtotal, payload.discount_percent) if payload.discount_percent else ZERO
    net = to_money(subtotal - discount)
    coupon = None
    coupon_discount = ZERO
    if payload.coupon_code:
        coupon, coupon_discount = coupon_service.check_coupon(
            db, organization_id, payload.coupon_code, net, customer_id=customer.id if customer else None,
        )
        net = to_money(net - coupon_discount)
    card_fee = ZERO
    if payload.order_type == 'WHOLESALE' and method in WHOLESALE_CARD_FEES:
        card_fee = percent_of(net, WHOLESALE_CARD_FEES[method])
    package_count = sum(line['quantity'] for line in lines)
    delivery_fee = business_rules.delivery_fee_for(payload.delivery_type, net, package_count)
    total = to_money(net + card_fee + delivery_fee)

    if customer is not None and payload.order_type == 'WHOLESALE' and not is_final_consumer:
        _check_overdue_block(db, customer)

    if method in CREDIT_METHODS and customer is None:
        raise BusinessRuleError("A registered customer is required for boleto or credit payments")

    bank_account = None
    if payload.bank_account_id:
        bank_account = banking_repo.get_bank_account(db, organization_id, payload.bank_account_id)
        if bank_account is None:
            raise NotFoundError("Bank account not found")
    paid_now = method in IMMEDIATE_METHODS and payload.is_paid and bank_account is not None
    # Counter sales to final consumers are settled on the spot
    settled = paid_now or is_final_consumer

    # Every unsettled sale to a registered customer is bought on credit
    if customer is not None and not settled:
        available = to_money(customer.available_credit)
        if available < total:
            raise BusinessRuleError(
                "Insufficient credit limit",
                detail={
                    "message": "Insufficient credit limit",
                    "available_credit": float(available),
                    "required": float(total),
                },
            )

    boleto_plan: List[Tuple[Decimal, date]] = []
    if method == 'BOLETO':
        digits = _cpf_cnpj_digits(customer.cpf_cnpj)
        if len(digits) not in (11, 14):
            raise BusinessRuleError("Boleto requires a valid CPF (11 digits) or CNPJ (14 digits)")
        boleto_plan = _boleto_plan(payload, customer, total)
        for amount, _ in boleto_plan:
            if amount < BOLETO_MIN_AMOUNT:
                raise BusinessRuleError(f"Minimum boleto amount is {BOLETO_MIN_AMOUNT:.2f}")

    try:
        order = models.Order(
            organization_id=organization_id,
            order_number=customer_credit.document_number(db, 'ESP', models.Order.order_number),
            customer_id=customer.id if customer else None,
            casual_customer_name=payload.casual_customer_name,
            order_type=payload.order_type,
            status='DELIVERED' if is_final_consumer else 'PENDING',
            payment_status='PAID' if settled else 'UNPAID',
            payment_method=method,
            delivery_type=payload.delivery_type,
            delivery_date=payload.delivery_date,
            subtotal=subtotal,
            discount_percent=payload.discount_percent or 0,
            discount=discount,
            delivery_fee=delivery_fee,
            card_fee=card_fee,
            coupon_id=coupon.id if coupon else None,
            coupon_code=coupon.code if coupon else None,
            coupon_discount=coupon_discount,
            total=total,
            points_earned=0,
            notes=payload.notes,
            created_by=actor_user_id,
            delivered_at=datetime.now(UTC) if is_final_consumer else None,
        )
        db.add(order)
        db.flush()
        for line in lines:
            product = line['product']
            order.items.append(models.OrderItem(
                product_id=product.id,
                quantity=line['quantity'],
                unit_price=line['unit_price'],
                total=line['total'],
            ))
            product.current_stock = (product.current_stock or 0) - line['quantity']
        if coupon is not None:
            coupon_service.stage_usage(db, coupon, order, coupon_discount)

        customer_label = customer.name if customer else payload.casual_customer_name
        if method == 'BOLETO':
            count = len(boleto_plan)
            for index, (amount, due_date) in enumerate(boleto_plan, start=1):
                description = f"Pedido #{order.order_number}"
                if count > 1:
                    description += f" - Parcela {index}/{count}"
                customer_credit.create_boleto_with_receivable(
                    db,
                    organization_id=organization_id,
                    customer_id=customer.id,
                    order_id=order.id,
                    amount=amount,
                    due_date=due_date,
                    boleto_number=_boleto_number(db, order.order_number, index, count),
                    description=description,
                    installment_number=index if count > 1 else None,
                    total_installments=count if count > 1 else None,
                )
                db.flush()
            customer_credit.consume_credit(customer, total)
        else:
            base_date = payload.delivery_date or brasilia_today()
            terms = customer.payment_terms if customer else 0
            receivable = models.Receivable(
                organization_id=organization_id,
                customer_id=customer.id if customer else None,
                order_id=order.id,
                description=f"Pedido #{order.order_number} - {method}",
                amount=total,
                due_date=base_date + timedelta(days=terms or 0),
                status='PAID' if settled else 'PENDING',
                payment_method=method,
                payment_date=datetime.now(UTC) if settled else None,
                net_amount=total if settled else None,
                bank_account_id=bank_account.id if paid_now else None,
                paid_by=actor_email if paid_now else None,
            )
            db.add(receivable)
            db.flush()
            if paid_now:
                banking_repo.record_movement(
                    db, bank_account,
                    type='INCOME',
                    amount=total,
                    description=f"Recebimento {method} - Pedido #{order.order_number} - Cliente: {customer_label}",
                    category='VENDA',
                    reference_type='RECEIVABLE',
                    reference_id=receivable.id,
                    created_by=actor_email,
                )
            elif customer is not None and not settled:
                customer_credit.consume_credit(customer, total)
            if method in CARD_METHODS:
                stage_card_transaction(
                    db,
                    organization_id=organization_id,
                    order_id=order.id,
                    customer_id=customer.id if customer else None,
                    receivable_id=receivable.id,
                    card_type='CREDIT' if method == 'CREDIT_CARD' else 'DEBIT',
                    gross_amount=total,
                )

        if is_final_consumer and loyalty_feature_enabled():
            loyalty_service.stage_order_points(db, order, customer)
            loyalty_service.stage_referral_completion(db, customer, order.id)
        db.commit()
    except Exception:
        db.rollback()
        raise
    db.refresh(order)
    logger.info(
        "order_created order_number=%s organization_id=%s total=%s method=%s",
        order.order_number, organization_id, order.total, method,
    )
    audit.log_safely(
        db,
        action=audit.AuditAction.ORDER_CREATE,
        target_type="order",
        target_id=order.id,
        actor_user_id=actor_user_id,
        organization_id=organization_id,
        metadata={"order_number": order.order_number, "total": float(order.total), "payment_method": method},
    )
    return order


def get_order_or_404(db: Session, organization_id: uuid.UUID, order_id: uuid.UUID) -> models.Order:
    order = order_repo.get_order(db, organization_id, order_id)
    if order is None:
        raise NotFoundError("Order not found")
    return order


def update_status(
    db: Session,
    organization_id: uuid.UUID,
    order_id: uuid.UUID,
    status: str,
    *,
    actor_user_id: Optional[uuid.UUID] = None,
    actor_email: Optional[str] = None,
) -> models.Order:
    """Move an order to ``status``. DELIVERED awards points and completes referrals."""
    if status == 'CANCELLED':
        return cancel_order(db, organization_id, order_id, actor_user_id=actor_user_id)
    order = get_order_or_404(db, organization_id, order_id)
    if order.status == 'CANCELLED':
        raise BusinessRuleError("Cancelled orders cannot change status")
    previous = order.status
    if previous == status:
        return order
    customer = db.get(models.Customer, order.customer_id) if order.customer_id else None
    try:
        order.status = status
        if status == 'DELIVERED':
            order.delivered_at = datetime.now(UTC)
            if customer is not None and loyalty_feature_enabled():
                loyalty_service.stage_order_points(db, order, customer)
                loyalty_service.stage_referral_completion(db, customer, order.id)
        db.commit()
    except Exception:
        db.rollback()
        raise
    db.refresh(order)
    audit.log_safely(
        db,
        action=audit.AuditAction.ORDER_STATUS_CHANGE,
        target_type="order",
        target_id=order.id,
        actor_user_id=actor_user_id,
        organization_id=organization_id,
        metadata={"from": previous, "to": status, "points_earned": order.points_earned},
    )
    try:
        whatsapp_messages.notify_order_status(order, customer)
    except Exception:
        logger.exception("order_status_whatsapp_failed order=%s", order.order_number)
    return order


def cancel_order(
    db: Session,
    organization_id: uuid.UUID,
    order_id: uuid.UUID,
    *,
    actor_user_id: Optional[uuid.UUID] = None,
) -> models.Order:
    """Cancel the order, restore stock and release open boletos/receivables."""
    order = get_order_or_404(db, organization_id, order_id)
    if order.status == 'CANCELLED':
        raise BusinessRuleError("Order is already cancelled")
    customer = db.get(models.Customer, order.customer_id) if order.customer_id else None
    released = ZERO
    try:
        for item in order.items:
            product = db.get(models.Product, item.product_id)
            if product is not None:
                product.current_stock = (product.current_stock or 0) + item.quantity
        for boleto in boleto_repo.list_boletos_for_order(db, order.id):
            if boleto.status in boleto_repo.OPEN_STATUSES:
                boleto.status = 'CANCELLED'
                released += to_money(boleto.amount)
        for receivable in receivable_repo.list_for_order(db, order.id):
            if receivable.status not in receivable_repo.OPEN_STATUSES:
                continue
            receivable.status = 'CANCELLED'
            if receivable.boleto_id is None:
                released += to_money(receivable.amount)
        if customer is not None and released > ZERO:
            customer_credit.restore_credit(customer, released)
        for card_tx in db.query(models.CardTransaction).filter(
            models.CardTransaction.order_id == order.id, models.CardTransaction.status == 'PENDING'
        ):
            card_tx.status = 'CANCELLED'
        order.status = 'CANCELLED'
        db.commit()
    except Exception:
        db.rollback()
        raise
    db.refresh(order)
    audit.log_safely(
        db,
        action=audit.AuditAction.ORDER_CANCEL,
        target_type="order",
        target_id=order.id,
        actor_user_id=actor_user_id,
        organization_id=organization_id,
        metadata={"order_number": order.order_number, "released_credit": float(released)},
    )
    return order
