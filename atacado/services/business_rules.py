"""
Business hours, delivery windows and fees.

Pure functions over a Brasília-local datetime (see ``atacado.utils.clock``).
Weekdays follow Python's ``date.weekday()``: Monday is 0, Sunday is 6.

Opening hours:
    Monday-Friday  08:00-12:00 and 14:00-18:00
    Saturday       08:00-12:00
    Sunday         closed
"""
from __future__ import annotations

from datetime import date, datetime, timedelta
from decimal import Decimal
from typing import Any, Dict, List, Optional

from atacado.utils.clock import now_brasilia

DELIVERY_GURUPI = 'delivery_gurupi'
DELIVERY_OUTSIDE = 'delivery_outside'
PICKUP = 'pickup'
DELIVERY_TYPES = (DELIVERY_GURUPI, DELIVERY_OUTSIDE, PICKUP)

SATURDAY = 5
SUNDAY = 6
FRIDAY = 4

MORNING_START = 8 * 60
MORNING_END = 12 * 60
AFTERNOON_START = 14 * 60
AFTERNOON_END = 18 * 60
GURUPI_CUTOFF_HOUR = 15
PICKUP_CUTOFF_HOUR = 18

GURUPI_FREE_DELIVERY_MIN = Decimal('100.00')
GURUPI_DELIVERY_FEE = Decimal('10.00')
OUTSIDE_FREE_PACKAGES = 50
OUTSIDE_DELIVERY_FEE = Decimal('50.00')
MAX_DAYS_AHEAD = 30

# MM-DD
FIXED_HOLIDAYS = frozenset({
    '01-01',  # Ano Novo
    '04-21',  # Tiradentes
    '05-01',  # Dia do Trabalho
    '09-07',  # Independência
    '10-12',  # Nossa Senhora Aparecida
    '11-02',  # Finados
    '11-15',  # Proclamação da República
    '12-25',  # Natal
})

BUSINESS_HOURS_TEXT = 'Segunda a sexta das 8h às 12h e das 14h às 18h. Sábado das 8h às 12h.'

_WEEKDAY_NAMES = ('segunda-feira', 'terça-feira', 'quarta-feira', 'quinta-feira', 'sexta-feira', 'sábado', 'domingo')


class UnknownDeliveryType(ValueError):
    pass


def _minutes(at: datetime) -> int:
    return at.hour * 60 + at.minute


def _as_date(value: date | datetime) -> date:
    return value.date() if isinstance(value, datetime) else value


def check_business_hours(at: Optional[datetime] = None) -> Dict[str, Any]:
    """Return ``{is_open, message, next_opening}`` for ``at``."""
    at = at or now_brasilia()
    weekday = at.weekday()
    current = _minutes(at)

    if is_sunday(at):
        return {'is_open': False, 'message': 'Loja fechada aos domingos', 'next_opening': 'Segunda-feira às 08:00'}

    if is_saturday(at):
        if MORNING_START <= current < MORNING_END:
            return {'is_open': True, 'message': None, 'next_opening': None}
        if current < MORNING_START:
            return {'is_open': False, 'message': 'Loja ainda não abriu', 'next_opening': 'Hoje às 08:00'}
        return {
            'is_open': False,
            'message': 'Aos sábados funcionamos apenas das 08:00 às 12:00',
            'next_opening': 'Segunda-feira às 08:00',
        }

    if MORNING_START <= current < MORNING_END or AFTERNOON_START <= current < AFTERNOON_END:
        return {'is_open': True, 'message': None, 'next_opening': None}
    if current < MORNING_START:
        return {'is_open': False, 'message': 'Loja ainda não abriu', 'next_opening': 'Hoje às 08:00'}
    if current < AFTERNOON_START:
        return {'is_open': False, 'message': 'Intervalo de almoço (12:00 às 14:00)', 'next_opening': 'Hoje às 14:00'}
    next_day = 'Sábado' if weekday == FRIDAY else 'Amanhã'
    return {
        'is_open': False,
        'message': 'Loja fechada (expediente encerrado)',
        'next_opening': f'{next_day} às 08:00',
    }


def check_gurupi_delivery(at: Optional[datetime] = None) -> Dict[str, Any]:
    """Delivery window for orders inside Gurupi placed at ``at``."""
    at = at or now_brasilia()
    if is_saturday(at):
        message = 'Não realizamos entregas aos sábados. Seu pedido será entregue na próxima segunda-feira.'
        return {'can_deliver': False, 'delivery_fee': 0.0, 'estimated_delivery': 'Segunda-feira',
                'message': message, 'warnings': [message]}
    if is_sunday(at):
        message = 'Loja fechada aos domingos. Pedidos serão processados na segunda-feira.'
        return {'can_deliver': False, 'delivery_fee': 0.0, 'estimated_delivery': 'Segunda-feira',
                'message': message, 'warnings': [message]}

    if at.hour < GURUPI_CUTOFF_HOUR:
        return {
            'can_deliver': True,
            'delivery_fee': 0.0,
            'estimated_delivery': 'Hoje entre 16:00 e 18:00',
            'message': 'Entrega prevista para hoje entre 16:00 e 18:00',
            'warnings': [],
        }

    next_delivery = 'Segunda-feira' if at.weekday() == FRIDAY else 'Amanhã'
    return {
        'can_deliver': True,
        'delivery_fee': 0.0,
        'estimated_delivery': next_delivery,
        'message': f'Pedidos após as 15h são entregues no próximo dia útil ({next_delivery})',
        'warnings': [f'Pedidos após as 15h são entregues somente no próximo dia útil ({next_delivery}).'],
    }


def calculate_gurupi_delivery_fee(total: Decimal | float) -> Decimal:
    return Decimal('0.00') if Decimal(str(total)) >= GURUPI_FREE_DELIVERY_MIN else GURUPI_DELIVERY_FEE


def calculate_outside_delivery_fee(package_count: int) -> Decimal:
    return Decimal('0.00') if package_count > OUTSIDE_FREE_PACKAGES else OUTSIDE_DELIVERY_FEE


def get_outside_delivery_info(package_count: int) -> Dict[str, Any]:
    fee = calculate_outside_delivery_fee(package_count)
    free = fee == 0
    fee_text = 'grátis' if free else f'R$ {fee:.2f}'.replace('.', ',')
    return {
        'can_deliver': True,
        'delivery_fee': float(fee),
        'free': free,
        'estimated_delivery': 'Conforme transportadora',
        'message': f'Entrega via transportadora. Frete: {fee_text}',
        'warnings': [
            'Pedidos fora de Gurupi são enviados via transportadora e devem ser feitos com 1 dia de antecedência.',
            'Frete grátis para pedidos acima de 50 pacotes' if free else 'Frete fixo de R$ 50,00 até 50 pacotes',
        ],
    }


def validate_pickup_time(at: Optional[datetime] = None) -> Dict[str, Any]:
    """Pickup is accepted any time but only happens during business hours."""
    hours = check_business_hours(at)
    if hours['is_open']:
        return {'can_pickup': True, 'store_open': True,
                'warnings': [f'Retirada na loja durante nosso horário de funcionamento: {BUSINESS_HOURS_TEXT}']}
    return {'can_pickup': False, 'store_open': False,
            'warnings': [f'A loja estará fechada neste horário. Retire seu pedido dentro do horário de funcionamento: {BUSINESS_HOURS_TEXT}']}


def get_order_rules_summary(
    delivery_type: str,
    total_value: Decimal | float = 0,
    package_count: int = 1,
    at: Optional[datetime] = None,
) -> Dict[str, Any]:
    """Combine hours, delivery/pickup info and fees for an order being placed.

    Rules only warn; ``can_proceed`` is always True.

    Raises:
        UnknownDeliveryType: for anything outside ``DELIVERY_TYPES``
    """
    if delivery_type not in DELIVERY_TYPES:
        raise UnknownDeliveryType(f"Unknown delivery type: {delivery_type}")
    at = at or now_brasilia()
    hours = check_business_hours(at)
    warnings: List[str] = []
    total_fee = Decimal('0.00')
    delivery_info = None
    pickup_info = None

    if not hours['is_open']:
        warnings.append(
            f'Nosso horário de funcionamento: {BUSINESS_HOURS_TEXT} '
            'Seu pedido será processado no próximo horário útil.'
        )

    if delivery_type == DELIVERY_GURUPI:
        delivery_info = check_gurupi_delivery(at)
        total_fee = calculate_gurupi_delivery_fee(total_value)
        delivery_info['delivery_fee'] = float(total_fee)
        warnings.extend(delivery_info['warnings'])
    elif delivery_type == DELIVERY_OUTSIDE:
        delivery_info = get_outside_delivery_info(package_count)
        total_fee = Decimal(str(delivery_info['delivery_fee']))
        warnings.extend(delivery_info['warnings'])
    else:
        pickup_info = validate_pickup_time(at)
        warnings.extend(pickup_info['warnings'])

    return {
        'business_hours': hours,
        'delivery_info': delivery_info,
        'pickup_info': pickup_info,
        'warnings': warnings,
        'can_proceed': True,
        'total_fee': float(total_fee),
    }


def delivery_fee_for(delivery_type: str, total_value: Decimal, package_count: int) -> Decimal:
    if delivery_type == DELIVERY_GURUPI:
        return calculate_gurupi_delivery_fee(total_value)
    if delivery_type == DELIVERY_OUTSIDE:
        return calculate_outside_delivery_fee(package_count)
    return Decimal('0.00')


# Calendar

def is_sunday(d: date | datetime) -> bool:
    return d.weekday() == SUNDAY


def is_saturday(d: date | datetime) -> bool:
    return d.weekday() == SATURDAY


def is_weekday(d: date | datetime) -> bool:
    return d.weekday() < SATURDAY


def is_holiday(d: date | datetime) -> bool:
    return d.strftime('%m-%d') in FIXED_HOLIDAYS


def can_deliver_on_date(d: date | datetime, today: Optional[date | datetime] = None) -> bool:
    d = _as_date(d)
    today = _as_date(today or now_brasilia())
    if d < today:
        return False
    return not is_sunday(d) and not is_holiday(d)


def get_min_delivery_date(at: Optional[datetime] = None) -> date:
    at = at or now_brasilia()
    candidate = at.date()
    if at.hour >= GURUPI_CUTOFF_HOUR:
        candidate += timedelta(days=1)
    while not can_deliver_on_date(candidate, at.date()):
        candidate += timedelta(days=1)
    return candidate


def get_min_pickup_date(at: Optional[datetime] = None) -> date:
    at = at or now_brasilia()
    candidate = at.date()
    if at.hour >= PICKUP_CUTOFF_HOUR:
        candidate += timedelta(days=1)
    while is_sunday(candidate):
        candidate += timedelta(days=1)
    return candidate


def get_max_date(at: Optional[datetime] = None) -> date:
    at = at or now_brasilia()
    return at.date() + timedelta(days=MAX_DAYS_AHEAD)


def get_delivery_warnings(selected: Optional[date], at: Optional[datetime] = None) -> List[str]:
    at = at or now_brasilia()
    warnings: List[str] = []
    if at.hour >= GURUPI_CUTOFF_HOUR:
        day_name = _WEEKDAY_NAMES[get_min_delivery_date(at).weekday()]
        warnings.append(f'Pedidos para entrega após as 15h serão entregues apenas no próximo dia útil ({day_name}).')
    if at.hour >= PICKUP_CUTOFF_HOUR:
        warnings.append('A loja está fechada. Seu pedido será processado no próximo dia útil.')
    if selected is not None and not can_deliver_on_date(selected, at):
        warnings.append('Não realizamos entregas na data escolhida (domingo, feriado ou data passada).')
    warnings.append('Horário de entrega: 16h às 18h (horário fixo).')
    return warnings


def get_pickup_warnings(selected: Optional[date], at: Optional[datetime] = None) -> List[str]:
    at = at or now_brasilia()
    warnings: List[str] = []
    if at.hour >= PICKUP_CUTOFF_HOUR:
        warnings.append('A loja está fechada. Você pode retirar seu pedido no próximo dia útil.')
    if selected is not None and is_sunday(selected):
        warnings.append('A loja não abre aos domingos.')
    if 12 <= at.hour < 14:
        warnings.append('A loja faz uma pausa para almoço das 12h às 14h. Retiradas nesse horário não estarão disponíveis.')
    else:
        warnings.append(f'Horário de funcionamento: {BUSINESS_HOURS_TEXT}')
    return warnings


def get_date_constraints(delivery_type: str, at: Optional[datetime] = None) -> Dict[str, Any]:
    """Min/max selectable dates plus warnings for the checkout date picker."""
    if delivery_type not in DELIVERY_TYPES:
        raise UnknownDeliveryType(f"Unknown delivery type: {delivery_type}")
    at = at or now_brasilia()
    if delivery_type == PICKUP:
        min_date = get_min_pickup_date(at)
        warnings = get_pickup_warnings(None, at)
    else:
        min_date = get_min_delivery_date(at)
        warnings = get_delivery_warnings(None, at)
    return {
        'delivery_type': delivery_type,
        'min_date': min_date.isoformat(),
        'max_date': get_max_date(at).isoformat(),
        'warnings': warnings,
    }
