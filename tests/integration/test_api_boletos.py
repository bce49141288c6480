import uuid
from datetime import timedelta
from decimal import Decimal

from atacado.db import models
from atacado.utils.clock import brasilia_today
from atacado.utils.feature_flags import refresh_feature_flag_cache


def _create_boleto(client, headers, customer, amount="150.00", days=10):
    response = client.post("/boletos/", json={
        "customer_id": str(customer.id),
        "amount": amount,
        "due_date": (brasilia_today() + timedelta(days=days)).isoformat(),
    }, headers=headers)
    assert response.status_code == 201
    return response.json()


def test_manual_boleto_consumes_credit(client, db, shop, customer_factory):
    org, _, headers = shop
    customer = customer_factory(org)
    boleto = _create_boleto(client, headers, customer)
    assert boleto["status"] == "PENDING"
    assert boleto["boleto_number"].startswith("BOL")
    db.refresh(customer)
    assert customer.available_credit == Decimal("850.00")

    too_much = client.post("/boletos/", json={
        "customer_id": str(customer.id), "amount": "5000.00", "due_date": brasilia_today().isoformat(),
    }, headers=headers)
    assert too_much.status_code == 400
    assert too_much.json()["detail"]["requested"] == 5000.0


def test_pay_requires_bank_account_and_records_income(client, db, shop, customer_factory, bank_account_factory):
    org, _, headers = shop
    customer = customer_factory(org)
    account = bank_account_factory(org)
    boleto = _create_boleto(client, headers, customer)

    missing = client.put(f"/boletos/{boleto['id']}", json={"action": "pay"}, headers=headers)
    assert missing.status_code == 400

    paid = client.put(f"/boletos/{boleto['id']}", json={
        "action": "pay", "bank_account_id": str(account.id), "interest": "3.00", "fine": "2.00",
    }, headers=headers).json()
    assert paid["status"] == "PAID"
    assert paid["paid_amount"] == 155.0
    assert paid["paid_by"] == "owner@atacado.test"

    db.refresh(account)
    db.refresh(customer)
    assert account.balance == Decimal("155.00")
    assert customer.available_credit == Decimal("1000.00")
    movement = db.query(models.Transaction).one()
    assert movement.reference_type == "BOLETO"
    assert "Juros: R$ 3.00" in movement.notes

    again = client.put(f"/boletos/{boleto['id']}", json={"action": "pay", "bank_account_id": str(account.id)},
                       headers=headers)
    assert again.status_code == 400


def test_revert_needs_manage_and_undoes_payment(client, db, shop, customer_factory, bank_account_factory,
                                                user_factory, membership_factory, auth_headers):
    org, _, headers = shop
    editor = user_factory("editor@atacado.test")
    membership_factory(org, editor, role="editor")
    customer = customer_factory(org)
    account = bank_account_factory(org)
    boleto = _create_boleto(client, headers, customer)
    client.put(f"/boletos/{boleto['id']}", json={"action": "pay", "bank_account_id": str(account.id)}, headers=headers)

    assert client.put(f"/boletos/{boleto['id']}", json={"action": "revert"},
                      headers=auth_headers(editor, org)).status_code == 403

    reverted = client.put(f"/boletos/{boleto['id']}", json={"action": "revert"}, headers=headers).json()
    assert reverted["status"] == "PENDING"
    assert reverted["paid_amount"] is None
    db.refresh(account)
    db.refresh(customer)
    assert account.balance == Decimal("0.00")
    assert customer.available_credit == Decimal("850.00")
    assert db.query(models.Transaction).count() == 0


def test_revert_undoes_payment_taken_through_the_linked_receivable(client, db, shop, customer_factory,
                                                                   bank_account_factory):
    org, _, headers = shop
    customer = customer_factory(org, available_credit=Decimal("910.00"))
    account = bank_account_factory(org)
    boleto = models.Boleto(
        organization_id=org.id, boleto_number="BOL00000091", customer_id=customer.id,
        amount=Decimal("90.00"), due_date=brasilia_today() + timedelta(days=5), status="PENDING",
    )
    db.add(boleto)
    db.flush()
    linked = models.Receivable(
        organization_id=org.id, customer_id=customer.id, boleto_id=boleto.id, description="Boleto BOL00000091",
        amount=Decimal("90.00"), due_date=boleto.due_date, status="PENDING", payment_method="BOLETO",
    )
    db.add(linked)
    db.commit()

    first = client.post(f"/receivables/{linked.id}/receive", json={
        "payment_amount": "40.00", "bank_account_id": str(account.id),
    }, headers=headers).json()
    assert first["status"] == "PARTIAL"
    client.post(f"/receivables/{linked.id}/receive", json={
        "payment_amount": "50.00", "bank_account_id": str(account.id),
    }, headers=headers)
    db.refresh(boleto)
    db.refresh(account)
    db.refresh(customer)
    assert boleto.status == "PAID"
    assert account.balance == Decimal("90.00")
    assert customer.available_credit == Decimal("1000.00")

    reverted = client.put(f"/boletos/{boleto.id}", json={"action": "revert"}, headers=headers)
    assert reverted.status_code == 200
    assert reverted.json()["status"] == "PENDING"
    db.refresh(account)
    db.refresh(customer)
    db.refresh(linked)
    assert account.balance == Decimal("0.00")
    assert db.query(models.Transaction).count() == 0
    assert customer.available_credit == Decimal("910.00")
    assert linked.status == "PENDING"
    assert linked.amount == Decimal("90.00")
    partial = db.get(models.Receivable, uuid.UUID(first["child_receivable_id"]))
    assert partial.status == "CANCELLED"


def test_cancel_restores_credit(client, db, shop, customer_factory):
    org, _, headers = shop
    customer = customer_factory(org)
    boleto = _create_boleto(client, headers, customer)
    cancelled = client.put(f"/boletos/{boleto['id']}", json={"action": "cancel"}, headers=headers).json()
    assert cancelled["status"] == "CANCELLED"
    db.refresh(customer)
    assert customer.available_credit == Decimal("1000.00")
    assert client.put(f"/boletos/{boleto['id']}", json={"action": "bogus"}, headers=headers).status_code == 400


def test_delete_open_boleto_restores_credit(client, db, shop, customer_factory):
    org, _, headers = shop
    customer = customer_factory(org)
    boleto = _create_boleto(client, headers, customer)
    assert client.delete(f"/boletos/{boleto['id']}", headers=headers).status_code == 204
    assert client.get(f"/boletos/{boleto['id']}", headers=headers).status_code == 404
    db.refresh(customer)
    assert customer.available_credit == Decimal("1000.00")


def test_listing_marks_past_due_boletos_overdue(client, db, shop, customer_factory):
    org, _, headers = shop
    customer = customer_factory(org)
    db.add(models.Boleto(
        organization_id=org.id, boleto_number="BOL00000042", customer_id=customer.id,
        amount=Decimal("40.00"), due_date=brasilia_today() - timedelta(days=1), status="PENDING",
    ))
    db.commit()
    rows = client.get("/boletos/", headers=headers).json()
    assert [row["status"] for row in rows] == ["OVERDUE"]


def test_remind_is_unavailable_when_whatsapp_disabled(client, shop, customer_factory, monkeypatch):
    org, _, headers = shop
    customer = customer_factory(org)
    boleto = _create_boleto(client, headers, customer)

    result = client.post(f"/boletos/{boleto['id']}/remind", headers=headers)
    assert result.status_code == 200
    assert result.json()["success"] is False

    monkeypatch.setenv("FEATURE_WHATSAPP_ENABLED", "false")
    refresh_feature_flag_cache()
    assert client.post(f"/boletos/{boleto['id']}/remind", headers=headers).status_code == 503
