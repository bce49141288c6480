"""
WhatsApp reminder runs shared by the cron scripts and the on-demand endpoint.

Two kinds of reminders:
  - boleto reminders: PENDING boletos due today and OVERDUE boletos that
    fell due within the last week;
  - smart reorder reminders: customers whose time since the last delivered
    order reached 90% of their usual reorder interval.
"""
from __future__ import annotations

import logging
import uuid
from datetime import date, datetime, timedelta, UTC
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session, selectinload

from atacado.db import models
from atacado.db.repositories import boletos as boleto_repo
from atacado.db.repositories import orders as order_repo
from atacado.services import whatsapp_messages
from atacado.services.boleto_service import reminder_text
from atacado.services.errors import BusinessRuleError
from atacado.services.evolution_api import EvolutionClient
from atacado.utils.clock import as_utc, brasilia_midnight_utc, brasilia_today, to_brasilia

logger = logging.getLogger(__name__)

OVERDUE_LOOKBACK_DAYS = 7
SMART_HISTORY_SIZE = 10
SMART_DUE_RATIO = 0.9
ONLY_CHOICES = ('boletos', 'smart')


def sweep_overdue_boletos(db: Session, today: Optional[date] = None, dry_run: bool = False,
                          organization_id: Optional[uuid.UUID] = None) -> Dict[str, Any]:
    """PENDING boletos due before Brasília today become OVERDUE."""
    today = today or brasilia_today()
    query = (
        db.query(models.Boleto)
        .options(selectinload(models.Boleto.customer))
        .filter(models.Boleto.status == 'PENDING', models.Boleto.due_date < today)
    )
    if organization_id is not None:
        query = query.filter(models.Boleto.organization_id == organization_id)
    boletos = query.order_by(models.Boleto.due_date).all()
    details = []
    updated = 0
    failed = 0
    for boleto in boletos:
        details.append({
            'boleto_number': boleto.boleto_number,
            'customer': boleto.customer.name if boleto.customer else None,
            'days_overdue': (today - boleto.due_date).days,
        })
        if dry_run:
            continue
        boleto.status = 'OVERDUE'
        linked = boleto_repo.get_linked_receivable(db, boleto.id)
        if linked is not None and linked.status == 'PENDING':
            linked.status = 'OVERDUE'
        updated += 1
    if not dry_run and updated:
        try:
            db.commit()
        except Exception:
            db.rollback()
            logger.exception("overdue_sweep_commit_failed total=%d", updated)
            failed, updated = updated, 0
    logger.info("overdue_sweep total=%d updated=%d failed=%d dry_run=%s", len(boletos), updated, failed, dry_run)
    return {
        'success': failed == 0,
        'updated': updated,
        'failed': failed,
        'total': len(boletos),
        'details': details,
        'run_at': brasilia_midnight_utc(today).isoformat(),
    }


def boletos_to_remind(db: Session, today: date, organization_id: Optional[uuid.UUID] = None) -> List[models.Boleto]:
    query = (
        db.query(models.Boleto)
        .options(selectinload(models.Boleto.customer))
        .filter(
            ((models.Boleto.status == 'PENDING') & (models.Boleto.due_date == today))
            | ((models.Boleto.status == 'OVERDUE')
               & (models.Boleto.due_date >= today - timedelta(days=OVERDUE_LOOKBACK_DAYS))
               & (models.Boleto.due_date < today))
        )
    )
    if organization_id is not None:
        query = query.filter(models.Boleto.organization_id == organization_id)
    return [b for b in query.order_by(models.Boleto.due_date).all() if b.customer is not None and b.customer.phone]


def send_boleto_reminders(db: Session, today: Optional[date] = None, dry_run: bool = False,
                          client: Optional[EvolutionClient] = None,
                          organization_id: Optional[uuid.UUID] = None) -> Dict[str, Any]:
    today = today or brasilia_today()
    sent = failed = 0
    details = []
    for boleto in boletos_to_remind(db, today, organization_id):
        text = reminder_text(boleto, today)
        entry = {'boleto_number': boleto.boleto_number, 'customer': boleto.customer.name, 'status': boleto.status}
        if dry_run:
            entry['message'] = text
            details.append(entry)
            continue
        result = whatsapp_messages.send_message(boleto.customer.phone, text, client)
        entry['success'] = bool(result.get('success'))
        if result.get('success'):
            sent += 1
        else:
            failed += 1
            entry['error'] = result.get('error')
        details.append(entry)
    return {'sent': sent, 'failed': failed, 'total': len(details), 'details': details}


def average_interval(order_dates: List[datetime]) -> Optional[float]:
    """Mean of the positive day gaps between consecutive orders in any order."""
    days = sorted(to_brasilia(d).date() for d in order_dates)
    gaps = [(later - earlier).days for earlier, later in zip(days, days[1:])]
    gaps = [gap for gap in gaps if gap > 0]
    if not gaps:
        return None
    return sum(gaps) / len(gaps)


def smart_reminder_candidate(db: Session, customer: models.Customer, now: datetime) -> Optional[Dict[str, Any]]:
    """Reminder data when the customer is due, otherwise None."""
    orders = order_repo.list_delivered_orders(db, customer.id, limit=SMART_HISTORY_SIZE)
    if not orders:
        return None
    interval = customer.reminder_interval_days or average_interval([o.created_at for o in orders])
    if not interval:
        return None
    last_order_at = max(as_utc(o.created_at) for o in orders)
    days_since = (to_brasilia(now).date() - to_brasilia(last_order_at).date()).days
    if days_since < SMART_DUE_RATIO * interval:
        return None
    if customer.last_reminder_sent is not None and as_utc(customer.last_reminder_sent) >= last_order_at:
        return None
    return {
        'customer_id': customer.id,
        'customer': customer.name,
        'days_since': days_since,
        'interval': float(interval),
        'frequency': whatsapp_messages.frequency_for(interval),
    }


def smart_reminder_text(customer: models.Customer, candidate: Dict[str, Any]) -> str:
    """Custom text first, then the plain reorder nudge for a configured rhythm, else the rhythm summary."""
    if customer.reminder_message:
        return whatsapp_messages.smart_reminder_message(
            customer.name, candidate['days_since'], candidate['interval'], customer.reminder_message,
        )
    if customer.reminder_interval_days:
        return whatsapp_messages.order_reminder_message(customer.name, candidate['days_since'])
    return whatsapp_messages.smart_reminder_message(customer.name, candidate['days_since'], candidate['interval'])


def send_smart_reminders(db: Session, dry_run: bool = False, client: Optional[EvolutionClient] = None,
                         organization_id: Optional[uuid.UUID] = None, now: Optional[datetime] = None) -> Dict[str, Any]:
    now = now or datetime.now(UTC)
    query = db.query(models.Customer).filter(
        models.Customer.reminders_enabled.is_(True),
        models.Customer.is_active.is_(True),
        models.Customer.phone.isnot(None),
    )
    if organization_id is not None:
        query = query.filter(models.Customer.organization_id == organization_id)
    sent = failed = 0
    details = []
    for customer in query.all():
        candidate = smart_reminder_candidate(db, customer, now)
        if candidate is None:
            continue
        text = smart_reminder_text(customer, candidate)
        if dry_run:
            details.append({**candidate, 'message': text})
            continue
        result = whatsapp_messages.send_message(customer.phone, text, client)
        candidate['success'] = bool(result.get('success'))
        if result.get('success'):
            customer.last_reminder_sent = now
            customer.total_reminders_sent = (customer.total_reminders_sent or 0) + 1
            db.commit()
            sent += 1
        else:
            failed += 1
            candidate['error'] = result.get('error')
        details.append(candidate)
    return {'sent': sent, 'failed': failed, 'total': len(details), 'details': details}


def run_reminders(db: Session, only: Optional[str] = None, dry_run: bool = False,
                  client: Optional[EvolutionClient] = None,
                  organization_id: Optional[uuid.UUID] = None) -> Dict[str, Any]:
    if only is not None and only not in ONLY_CHOICES:
        raise BusinessRuleError(f"only must be one of {', '.join(ONLY_CHOICES)}")
    result: Dict[str, Any] = {'dry_run': dry_run}
    if only in (None, 'boletos'):
        result['boletos'] = send_boleto_reminders(db, dry_run=dry_run, client=client, organization_id=organization_id)
    if only in (None, 'smart'):
        result['smart'] = send_smart_reminders(db, dry_run=dry_run, client=client, organization_id=organization_id)
    return result
