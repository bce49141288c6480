"""
WhatsApp message templates and best-effort notifications.

Messages are Jinja2 text templates under ``atacado/templates/whatsapp``
(override with ``WHATSAPP_TEMPLATE_DIR``).
"""

import os
import logging
from datetime import date
from decimal import Decimal
from pathlib import Path
from typing import Any, Dict, Optional

from jinja2 import Environment, FileSystemLoader

from atacado.services.evolution_api import EvolutionClient, get_evolution_client
from atacado.utils.feature_flags import whatsapp_feature_enabled
from atacado.utils.money import to_money

logger = logging.getLogger(__name__)

TEMPLATE_BOLETO_REMINDER = 'boleto_reminder'
TEMPLATE_OVERDUE_BOLETO = 'overdue_boleto'
TEMPLATE_ORDER_REMINDER = 'order_reminder'
TEMPLATE_ORDER_STATUS = 'order_status_update'
TEMPLATE_SMART_REMINDER = 'smart_reminder'

ORDER_STATUS_MESSAGES = {
    'PROCESSING': 'seu pedido está sendo preparado',
    'READY': 'seu pedido está pronto para retirada/entrega',
    'SHIPPED': 'seu pedido saiu para entrega',
    'DELIVERED': 'seu pedido foi entregue',
}

_DEFAULT_TEMPLATE_DIR = Path(__file__).resolve().parent.parent / 'templates' / 'whatsapp'
_template_env: Optional[Environment] = None


def _environment() -> Environment:
    global _template_env
    if _template_env is None:
        template_dir = Path(os.getenv('WHATSAPP_TEMPLATE_DIR') or _DEFAULT_TEMPLATE_DIR)
        if not template_dir.exists():
            logger.warning("WhatsApp template directory not found: %s", template_dir)
            template_dir = _DEFAULT_TEMPLATE_DIR
        _template_env = Environment(loader=FileSystemLoader(str(template_dir)), keep_trailing_newline=False)
    return _template_env


def render(template_name: str, **context: Any) -> str:
    return _environment().get_template(f"{template_name}.txt").render(**context).strip()


def format_brl(amount: Any) -> str:
    """1234.5 -> 'R$ 1.234,50'."""
    value = to_money(amount)
    formatted = f"{value:,.2f}".replace(',', '_').replace('.', ',').replace('_', '.')
    return f"R$ {formatted}"


def format_date_br(value: date) -> str:
    return value.strftime('%d/%m/%Y')


def frequency_for(interval_days: float) -> str:
    """Reorder frequency band for an average interval between orders."""
    if interval_days <= 2:
        return 'diario'
    if interval_days <= 9:
        return 'semanal'
    if interval_days <= 18:
        return 'quinzenal'
    if interval_days <= 35:
        return 'mensal'
    return 'inativo'


def boleto_reminder_message(customer_name: str, boleto_number: str, amount: Decimal, due_date: date) -> str:
    return render(
        TEMPLATE_BOLETO_REMINDER,
        customer_name=customer_name,
        boleto_number=boleto_number,
        amount=format_brl(amount),
        due_date=format_date_br(due_date),
    )


def overdue_boleto_message(customer_name: str, boleto_number: str, amount: Decimal, due_date: date,
                           days_overdue: Optional[int] = None) -> str:
    return render(
        TEMPLATE_OVERDUE_BOLETO,
        customer_name=customer_name,
        boleto_number=boleto_number,
        amount=format_brl(amount),
        due_date=format_date_br(due_date),
        days_overdue=days_overdue,
    )


def order_reminder_message(customer_name: str, days_since: Optional[int] = None) -> str:
    return render(TEMPLATE_ORDER_REMINDER, customer_name=customer_name, days_since=days_since)


def order_status_message(customer_name: str, order_number: str, status: str) -> str:
    status_message = ORDER_STATUS_MESSAGES.get(status, f"o status foi atualizado para: {status}")
    return render(TEMPLATE_ORDER_STATUS, customer_name=customer_name, order_number=order_number,
                  status_message=status_message)


def smart_reminder_message(customer_name: str, days: int, interval: float,
                           custom_message: Optional[str] = None) -> str:
    if custom_message:
        return custom_message.replace('{nome}', customer_name).replace('{dias}', str(days))
    return render(
        TEMPLATE_SMART_REMINDER,
        customer_name=customer_name,
        days=days,
        interval=round(interval),
        frequency=frequency_for(interval),
    )


def send_message(phone: Optional[str], text: str, client: Optional[EvolutionClient] = None) -> Dict[str, Any]:
    """Send through Evolution unless WhatsApp is disabled or there is no phone."""
    if not whatsapp_feature_enabled():
        return {'success': False, 'error': 'WhatsApp desabilitado'}
    if not phone:
        return {'success': False, 'error': 'Cliente sem telefone'}
    client = client or get_evolution_client()
    return client.send_text(phone, text)


def notify_order_status(order, customer, client: Optional[EvolutionClient] = None) -> Optional[Dict[str, Any]]:
    """Best-effort status message; None when the status has no customer message."""
    if customer is None or order.status not in ORDER_STATUS_MESSAGES:
        return None
    result = send_message(customer.phone, order_status_message(customer.name, order.order_number, order.status), client)
    if not result.get('success'):
        logger.info("order_status_whatsapp_skipped order=%s error=%s", order.order_number, result.get('error'))
    return result
