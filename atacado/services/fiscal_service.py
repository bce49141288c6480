"""NF-e / NFC-e emission and the daily invoicing report."""
from __future__ import annotations

import logging
import uuid
from datetime import date, datetime, timedelta
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session, selectinload

from atacado import audit
from atacado.db import models, schemas
from atacado.services.errors import BusinessRuleError, NotFoundError
from atacado.services.plugnotas import (
    DEFAULT_CFOP,
    DEFAULT_NCM,
    PlugNotasClient,
    PlugNotasError,
    build_invoice_payload,
    get_plugnotas_client,
)
from atacado.utils.clock import brasilia_midnight_utc, brasilia_today
from atacado.utils.money import money_sum, to_money

logger = logging.getLogger(__name__)


def list_invoices(
    db: Session,
    organization_id: uuid.UUID,
    *,
    start: Optional[date] = None,
    end: Optional[date] = None,
    status: Optional[str] = None,
    invoice_type: Optional[str] = None,
) -> List[models.FiscalInvoice]:
    query = (
        db.query(models.FiscalInvoice)
        .options(selectinload(models.FiscalInvoice.items))
        .filter(models.FiscalInvoice.organization_id == organization_id)
    )
    if start:
        query = query.filter(models.FiscalInvoice.created_at >= brasilia_midnight_utc(start))
    if end:
        query = query.filter(models.FiscalInvoice.created_at < brasilia_midnight_utc(end + timedelta(days=1)))
    if status:
        query = query.filter(models.FiscalInvoice.status == status)
    if invoice_type:
        query = query.filter(models.FiscalInvoice.invoice_type == invoice_type)
    return query.order_by(models.FiscalInvoice.created_at.desc()).all()


def _parse_gateway_date(value: Optional[str]) -> Optional[datetime]:
    if not value:
        return None
    try:
        return datetime.fromisoformat(value.replace('Z', '+00:00'))
    except ValueError:
        logger.warning("plugnotas_bad_date value=%s", value)
        return None


def emit_invoice(
    db: Session,
    organization_id: uuid.UUID,
    payload: schemas.InvoiceCreate,
    *,
    actor_user_id: Optional[uuid.UUID] = None,
    client: Optional[PlugNotasClient] = None,
) -> models.FiscalInvoice:
    """Store the invoice as PROCESSING, send it to PlugNotas and record the outcome."""
    if not payload.invoice_type or not payload.customer_name or not payload.items:
        raise BusinessRuleError("Invoice type, customer name and items are required")
    if payload.order_id is not None:
        order = (
            db.query(models.Order)
            .filter(models.Order.organization_id == organization_id, models.Order.id == payload.order_id)
            .first()
        )
        if order is None:
            raise NotFoundError("Order not found")

    items = []
    for item in payload.items:
        unit = to_money(item.unit_value)
        items.append(models.FiscalInvoiceItem(
            product_name=item.product_name,
            product_code=item.product_code,
            ncm=item.ncm or DEFAULT_NCM,
            cfop=item.cfop or DEFAULT_CFOP,
            quantity=item.quantity,
            unit_value=unit,
            total_value=to_money(unit * item.quantity),
        ))
    discount = to_money(payload.discount)
    total = to_money(money_sum(i.total_value for i in items) - discount)
    invoice = models.FiscalInvoice(
        organization_id=organization_id,
        order_id=payload.order_id,
        invoice_type=payload.invoice_type,
        status='PROCESSING',
        customer_name=payload.customer_name,
        customer_cpf_cnpj=payload.customer_cpf_cnpj,
        customer_email=payload.customer_email,
        customer_phone=payload.customer_phone,
        customer_address=payload.customer_address,
        customer_number=payload.customer_number,
        customer_district=payload.customer_district,
        customer_city=payload.customer_city,
        customer_state=payload.customer_state,
        customer_zip_code=payload.customer_zip_code,
        total_value=total,
        discount=discount,
        payment_method=payload.payment_method,
        notes=payload.notes,
        items=items,
    )
    try:
        db.add(invoice)
        db.commit()
    except Exception:
        db.rollback()
        raise
    db.refresh(invoice)

    document = build_invoice_payload(
        invoice_type=invoice.invoice_type,
        integration_id=str(invoice.id),
        customer={
            'name': invoice.customer_name,
            'cpf_cnpj': invoice.customer_cpf_cnpj,
            'email': invoice.customer_email,
            'phone': invoice.customer_phone,
            'address': invoice.customer_address,
            'number': invoice.customer_number,
            'district': invoice.customer_district,
            'city': invoice.customer_city,
            'state': invoice.customer_state,
            'zip_code': invoice.customer_zip_code,
        },
        items=[
            {
                'code': i.product_code,
                'description': i.product_name,
                'quantity': i.quantity,
                'unit_value': i.unit_value,
                'ncm': i.ncm,
                'cfop': i.cfop,
            }
            for i in invoice.items
        ],
        total=total,
        payment_method=invoice.payment_method,
        notes=invoice.notes,
    )
    client = client or get_plugnotas_client()
    try:
        if invoice.invoice_type == 'NFCE':
            response = client.emit_nfce(document)
        else:
            response = client.emit_nfe(document)
    except PlugNotasError as e:
        invoice.status = 'ERROR'
        invoice.error_message = e.message
        db.commit()
        logger.warning("invoice_emit_failed invoice_id=%s error=%s", invoice.id, e.message)
        raise BusinessRuleError(
            "Failed to emit invoice",
            detail={"message": "Failed to emit invoice", "error": e.message, "invoice_id": str(invoice.id)},
            status_code=502,
        ) from e

    invoice.gateway_id = response.get('id')
    invoice.status = 'AUTHORIZED' if response.get('status') == 'autorizado' else 'PROCESSING'
    invoice.invoice_number = response.get('numero')
    invoice.series = response.get('serie')
    invoice.access_key = response.get('chaveAcesso')
    invoice.protocol = response.get('protocolo')
    invoice.authorization_date = _parse_gateway_date(response.get('dataEmissao'))
    invoice.xml_url = response.get('xml')
    invoice.pdf_url = response.get('danfe')
    db.commit()
    db.refresh(invoice)
    audit.log_safely(
        db,
        action=audit.AuditAction.INVOICE_EMIT,
        target_type="fiscal_invoice",
        target_id=invoice.id,
        actor_user_id=actor_user_id,
        organization_id=organization_id,
        metadata={"type": invoice.invoice_type, "status": invoice.status, "total": float(total)},
    )
    return invoice


def cancel_invoice(
    db: Session,
    organization_id: uuid.UUID,
    invoice_id: uuid.UUID,
    reason: str,
    *,
    actor_user_id: Optional[uuid.UUID] = None,
    client: Optional[PlugNotasClient] = None,
) -> models.FiscalInvoice:
    invoice = (
        db.query(models.FiscalInvoice)
        .filter(models.FiscalInvoice.organization_id == organization_id, models.FiscalInvoice.id == invoice_id)
        .first()
    )
    if invoice is None:
        raise NotFoundError("Invoice not found")
    if invoice.status == 'CANCELLED':
        raise BusinessRuleError("Invoice already cancelled")
    if invoice.status != 'AUTHORIZED' or not invoice.gateway_id:
        raise BusinessRuleError("Only authorized invoices can be cancelled")
    client = client or get_plugnotas_client()
    try:
        client.cancel_invoice(invoice.gateway_id, reason)
    except PlugNotasError as e:
        raise BusinessRuleError(
            "Failed to cancel invoice",
            detail={"message": "Failed to cancel invoice", "error": e.message},
            status_code=502,
        ) from e
    invoice.status = 'CANCELLED'
    invoice.notes = f"{invoice.notes}\nCancelamento: {reason}" if invoice.notes else f"Cancelamento: {reason}"
    db.commit()
    db.refresh(invoice)
    audit.log_safely(
        db,
        action=audit.AuditAction.INVOICE_CANCEL,
        target_type="fiscal_invoice",
        target_id=invoice.id,
        actor_user_id=actor_user_id,
        organization_id=organization_id,
        metadata={"reason": reason},
    )
    return invoice


DOCUMENT_KINDS = ('xml', 'pdf')


def download_document(
    db: Session,
    organization_id: uuid.UUID,
    invoice_id: uuid.UUID,
    kind: str,
    *,
    client: Optional[PlugNotasClient] = None,
) -> Dict[str, Any]:
    """Fetch the XML or DANFE PDF of an emitted invoice from the gateway."""
    if kind not in DOCUMENT_KINDS:
        raise BusinessRuleError(f"Unknown document kind: {kind}")
    invoice = (
        db.query(models.FiscalInvoice)
        .filter(models.FiscalInvoice.organization_id == organization_id, models.FiscalInvoice.id == invoice_id)
        .first()
    )
    if invoice is None:
        raise NotFoundError("Invoice not found")
    if not invoice.gateway_id or invoice.status not in ('AUTHORIZED', 'CANCELLED'):
        raise BusinessRuleError("Invoice has no document at the gateway")
    client = client or get_plugnotas_client()
    try:
        if kind == 'xml':
            content = client.download_xml(invoice.gateway_id)
        else:
            content = client.download_pdf(invoice.gateway_id)
    except PlugNotasError as e:
        raise BusinessRuleError(
            "Failed to download invoice document",
            detail={"message": "Failed to download invoice document", "error": e.message},
            status_code=502,
        ) from e
    stored_url = invoice.xml_url if kind == 'xml' else invoice.pdf_url
    return {'invoice_id': invoice.id, 'kind': kind, 'content': content, 'url': stored_url}


def _order_row(order: models.Order) -> Dict[str, Any]:
    customer = order.customer
    return {
        'order_id': order.id,
        'order_number': order.order_number,
        'customer_name': customer.name if customer else (order.casual_customer_name or 'Consumidor Final'),
        'cpf_cnpj': customer.cpf_cnpj if customer else None,
        'payment_method': order.payment_method,
        'total': float(to_money(order.total)),
    }


def daily_report(db: Session, organization_id: uuid.UUID, day: Optional[date] = None) -> Dict[str, Any]:
    """Orders of ``day`` still without an invoice, split into retail and registered buyers."""
    day = day or brasilia_today()
    start = brasilia_midnight_utc(day)
    end = brasilia_midnight_utc(day + timedelta(days=1))
    invoiced = (
        db.query(models.FiscalInvoice.order_id)
        .filter(models.FiscalInvoice.organization_id == organization_id, models.FiscalInvoice.order_id.isnot(None))
    )
    orders = (
        db.query(models.Order)
        .options(selectinload(models.Order.items).selectinload(models.OrderItem.product),
                 selectinload(models.Order.customer))
        .filter(
            models.Order.organization_id == organization_id,
            models.Order.created_at >= start,
            models.Order.created_at < end,
            models.Order.status != 'CANCELLED',
            models.Order.id.notin_(invoiced),
        )
        .order_by(models.Order.created_at)
        .all()
    )
    retail, registered = [], []
    for order in orders:
        has_document = order.customer is not None and bool(order.customer.cpf_cnpj)
        if order.order_type == 'RETAIL' or not has_document:
            retail.append(order)
        else:
            registered.append(order)

    products: Dict[uuid.UUID, Dict[str, Any]] = {}
    for order in retail:
        for item in order.items:
            entry = products.setdefault(item.product_id, {
                'product_id': item.product_id,
                'product_name': item.product.name if item.product else '',
                'product_code': item.product.code if item.product else None,
                'quantity': 0,
                'total_value': to_money(0),
            })
            entry['quantity'] += item.quantity
            entry['total_value'] = to_money(entry['total_value'] + to_money(item.total))

    retail_total = money_sum(o.total for o in retail)
    registered_total = money_sum(o.total for o in registered)
    return {
        'date': day,
        'retail_orders': [_order_row(o) for o in retail],
        'registered_orders': [_order_row(o) for o in registered],
        'retail_total': float(retail_total),
        'registered_total': float(registered_total),
        'total': float(to_money(retail_total + registered_total)),
        'retail_products': [
            {**entry, 'total_value': float(entry['total_value'])}
            for entry in sorted(products.values(), key=lambda e: e['product_name'])
        ],
    }

