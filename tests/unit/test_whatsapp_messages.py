from datetime import date
from decimal import Decimal

import pytest

from atacado.services import whatsapp_messages as wm
from atacado.services.evolution_api import EvolutionClient


@pytest.mark.parametrize("amount,text", [
    (Decimal("1234.5"), "R$ 1.234,50"),
    (0, "R$ 0,00"),
    ("1000000", "R$ 1.000.000,00"),
])
def test_format_brl(amount, text):
    assert wm.format_brl(amount) == text


@pytest.mark.parametrize("interval,band", [
    (1, "diario"), (2, "diario"), (7, "semanal"), (9, "semanal"),
    (15, "quinzenal"), (30, "mensal"), (35, "mensal"), (36, "inativo"),
])
def test_frequency_for(interval, band):
    assert wm.frequency_for(interval) == band


def test_boleto_reminder_message():
    text = wm.boleto_reminder_message("Maria", "BOL12345678", Decimal("150.00"), date(2024, 6, 10))
    assert text.startswith("*Lembrete de Pagamento*")
    assert "Olá Maria!" in text
    assert "*R$ 150,00*" in text
    assert "*10/06/2024*" in text


def test_overdue_message_pluralizes_days():
    one = wm.overdue_boleto_message("João", "BOL1", Decimal("10"), date(2024, 6, 1), days_overdue=1)
    many = wm.overdue_boleto_message("João", "BOL1", Decimal("10"), date(2024, 6, 1), days_overdue=5)
    assert "há 1 dia." in one
    assert "há 5 dias." in many


def test_order_status_message_unknown_status_falls_back():
    text = wm.order_status_message("Ana", "ESP00000001", "CONFIRMED")
    assert "*Atualização do Pedido #ESP00000001*" in text
    assert "o status foi atualizado para: CONFIRMED" in text


def test_smart_reminder_custom_message_placeholders():
    text = wm.smart_reminder_message("Ana", 12, 7.0, custom_message="Oi {nome}, já são {dias} dias!")
    assert text == "Oi Ana, já são 12 dias!"


def test_smart_reminder_weekly_template():
    text = wm.smart_reminder_message("Ana", 8, 7.0)
    assert "pedido *semanal*" in text
    assert "Faz 8 dias" in text


def test_send_message_disabled_by_flag(monkeypatch):
    monkeypatch.setenv("FEATURE_WHATSAPP_ENABLED", "false")
    from atacado.utils.feature_flags import refresh_feature_flag_cache
    refresh_feature_flag_cache()
    assert wm.send_message("63999990000", "oi") == {"success": False, "error": "WhatsApp desabilitado"}


def test_send_message_without_phone():
    assert wm.send_message(None, "oi") == {"success": False, "error": "Cliente sem telefone"}


def test_send_message_uses_given_client(fake_http, fake_response):
    http = fake_http({
        ("GET", "/instance/connectionState/atacado"): fake_response(200, {"instance": {"state": "open"}}),
        ("POST", "/message/sendText/atacado"): fake_response(201, {"key": {"id": "MSG1"}}),
    })
    result = wm.send_message("(63) 99999-0000", "oi", EvolutionClient(session=http))
    assert result == {"success": True, "message_id": "MSG1"}
    assert http.calls[-1]["json"] == {"number": "5563999990000", "text": "oi"}


def test_notify_order_status_skips_statuses_without_message():
    class _Order:
        status = "CONFIRMED"
        order_number = "ESP1"

    class _Customer:
        name = "Ana"
        phone = "63999990000"

    assert wm.notify_order_status(_Order(), _Customer()) is None
