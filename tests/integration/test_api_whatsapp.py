from datetime import datetime, timedelta, UTC
from decimal import Decimal

import pytest

from atacado.db import models
from atacado.services import evolution_api, reminder_service
from atacado.utils.clock import brasilia_today
from atacado.utils.feature_flags import refresh_feature_flag_cache


@pytest.fixture
def connected(monkeypatch, fake_http, fake_response):
    http = fake_http({
        ("GET", "/instance/fetchInstances"): fake_response(200, [{"name": "atacado"}]),
        ("GET", "/instance/connectionState/atacado"): fake_response(
            200, {"instance": {"state": "open", "owner": "5563999990000"}}
        ),
        ("POST", "/message/sendText/atacado"): fake_response(201, {"key": {"id": "MSG-1"}}),
    })
    monkeypatch.setattr(evolution_api, "_evolution_client", evolution_api.EvolutionClient(session=http))
    return http


def test_status_when_api_is_down(client, shop):
    _, _, headers = shop
    body = client.get("/whatsapp/status", headers=headers).json()
    assert body["api_reachable"] is False
    assert body["connected"] is False


def test_status_when_connected(client, shop, connected):
    _, _, headers = shop
    body = client.get("/whatsapp/status", headers=headers).json()
    assert body["connected"] is True
    assert body["state"] == "open"
    assert body["phone"] == "5563999990000"


def test_send_message(client, shop, connected):
    _, _, headers = shop
    response = client.post("/whatsapp/send", json={"number": "(63) 99999-0000", "message": "Bom dia!"},
                           headers=headers)
    assert response.status_code == 200
    assert response.json()["success"] is True
    sent = connected.calls[-1]
    assert sent["json"]["text"] == "Bom dia!"
    assert sent["json"]["number"].startswith("55")


def test_send_fails_with_bad_gateway_when_disconnected(client, shop):
    _, _, headers = shop
    response = client.post("/whatsapp/send", json={"number": "63999990000", "message": "Oi"}, headers=headers)
    assert response.status_code == 502


def test_editor_cannot_send(client, shop, user_factory, membership_factory, auth_headers):
    org, _, _ = shop
    editor = user_factory("editor@atacado.test")
    membership_factory(org, editor, role="editor")
    response = client.post("/whatsapp/send", json={"number": "63999990000", "message": "Oi"},
                           headers=auth_headers(editor, org))
    assert response.status_code == 403


def test_whatsapp_unavailable_when_disabled(client, shop, monkeypatch):
    _, _, headers = shop
    monkeypatch.setenv("FEATURE_WHATSAPP_ENABLED", "false")
    refresh_feature_flag_cache()
    assert client.get("/whatsapp/status", headers=headers).status_code == 503


def test_reminder_run_dry_run_lists_due_boletos(client, db, shop, customer_factory):
    org, _, headers = shop
    customer = customer_factory(org)
    db.add(models.Boleto(
        organization_id=org.id, boleto_number="BOL00000123", customer_id=customer.id,
        amount=Decimal("75.00"), due_date=brasilia_today(), status="PENDING",
    ))
    db.commit()

    result = client.post("/whatsapp/reminders/run", json={"dry_run": True, "only": "boletos"}, headers=headers).json()
    assert result["dry_run"] is True
    assert "smart" not in result
    assert result["boletos"]["total"] == 1
    assert "BOL00000123" in result["boletos"]["details"][0]["message"]

    assert client.post("/whatsapp/reminders/run", json={"only": "everything"}, headers=headers).status_code == 400


def test_reminder_run_sends_when_connected(client, db, shop, customer_factory, connected):
    org, _, headers = shop
    customer = customer_factory(org)
    db.add(models.Boleto(
        organization_id=org.id, boleto_number="BOL00000124", customer_id=customer.id,
        amount=Decimal("75.00"), due_date=brasilia_today() - timedelta(days=2), status="OVERDUE",
    ))
    db.commit()
    result = client.post("/whatsapp/reminders/run", json={"only": "boletos"}, headers=headers).json()
    assert result["boletos"]["sent"] == 1
    assert result["boletos"]["details"][0]["success"] is True


# Jobs

def test_sweep_marks_past_due_boletos_overdue(db, shop, customer_factory):
    org, _, _ = shop
    customer = customer_factory(org)
    today = brasilia_today()
    for number, days in (("BOL00000201", 3), ("BOL00000202", 1)):
        db.add(models.Boleto(
            organization_id=org.id, boleto_number=number, customer_id=customer.id,
            amount=Decimal("50.00"), due_date=today - timedelta(days=days), status="PENDING",
        ))
    db.add(models.Boleto(
        organization_id=org.id, boleto_number="BOL00000203", customer_id=customer.id,
        amount=Decimal("50.00"), due_date=today, status="PENDING",
    ))
    db.commit()

    preview = reminder_service.sweep_overdue_boletos(db, dry_run=True)
    assert preview["total"] == 2
    assert preview["updated"] == 0
    assert db.query(models.Boleto).filter_by(status="OVERDUE").count() == 0

    result = reminder_service.sweep_overdue_boletos(db)
    assert result["success"] is True
    assert result["updated"] == 2
    assert [d["days_overdue"] for d in result["details"]] == [3, 1]
    assert db.query(models.Boleto).filter_by(status="OVERDUE").count() == 2


def test_smart_reminder_targets_customers_past_their_rhythm(db, shop, customer_factory):
    org, _, _ = shop
    now = datetime.now(UTC)
    regular = customer_factory(org, name="Mercearia Central", reminders_enabled=True)
    recent = customer_factory(org, name="Padaria Nova", reminders_enabled=True)
    for index, (customer, days_ago) in enumerate([(regular, 24), (regular, 17), (regular, 10), (recent, 1)]):
        db.add(models.Order(
            organization_id=org.id, order_number=f"ESP0000{index:04d}", customer_id=customer.id,
            payment_method="CASH", status="DELIVERED", created_at=now - timedelta(days=days_ago),
        ))
    db.commit()

    result = reminder_service.send_smart_reminders(db, dry_run=True, now=now)
    assert result["total"] == 1
    detail = result["details"][0]
    assert detail["customer"] == "Mercearia Central"
    assert detail["interval"] == 7.0
    assert detail["days_since"] == 10


def test_configured_rhythm_gets_the_reorder_nudge(db, shop, customer_factory):
    org, _, _ = shop
    now = datetime.now(UTC)
    weekly = customer_factory(org, name="Empório Sul", reminders_enabled=True, reminder_interval_days=7)
    custom = customer_factory(org, name="Bar do Zé", reminders_enabled=True, reminder_interval_days=7,
                              reminder_message="Oi {nome}, já são {dias} dias!")
    for index, customer in enumerate([weekly, custom]):
        db.add(models.Order(
            organization_id=org.id, order_number=f"ESP0001{index:04d}", customer_id=customer.id,
            payment_method="CASH", status="DELIVERED", created_at=now - timedelta(days=8),
        ))
    db.commit()

    result = reminder_service.send_smart_reminders(db, dry_run=True, now=now)
    messages = {d["customer"]: d["message"] for d in result["details"]}
    assert "Já faz 8 dias desde seu último pedido!" in messages["Empório Sul"]
    assert "Que tal fazer um novo pedido hoje?" in messages["Empório Sul"]
    assert messages["Bar do Zé"] == "Oi Bar do Zé, já são 8 dias!"
