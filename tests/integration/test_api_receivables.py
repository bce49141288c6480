import uuid
from datetime import timedelta
from decimal import Decimal

from atacado.db import models
from atacado.utils.clock import brasilia_today


def _receivable(client, headers, customer, amount="300.00"):
    response = client.post("/receivables/", json={
        "customer_id": str(customer.id),
        "description": "Venda fiado",
        "amount": amount,
        "due_date": (brasilia_today() + timedelta(days=15)).isoformat(),
    }, headers=headers)
    assert response.status_code == 201
    return response.json()


def test_partial_receipt_splits_off_a_paid_child(client, db, shop, customer_factory, bank_account_factory):
    org, _, headers = shop
    customer = customer_factory(org)
    account = bank_account_factory(org)
    receivable = _receivable(client, headers, customer)
    db.refresh(customer)
    assert customer.available_credit == Decimal("700.00")

    result = client.post(f"/receivables/{receivable['id']}/receive", json={
        "payment_amount": "100.00", "bank_account_id": str(account.id),
    }, headers=headers).json()
    assert result["status"] == "PARTIAL"
    assert result["remaining"] == 200.0

    child = db.get(models.Receivable, uuid.UUID(result["child_receivable_id"]))
    assert child.status == "PAID"
    assert child.amount == Decimal("100.00")
    assert str(child.parent_id) == receivable["id"]

    parent = db.get(models.Receivable, child.parent_id)
    db.refresh(parent)
    assert parent.amount == Decimal("200.00")
    assert parent.status == "PENDING"

    db.refresh(customer)
    db.refresh(account)
    assert customer.available_credit == Decimal("800.00")
    assert account.balance == Decimal("100.00")

    final = client.post(f"/receivables/{receivable['id']}/receive", json={
        "payment_amount": "200.00", "bank_account_id": str(account.id),
    }, headers=headers).json()
    assert final["status"] == "PAID"
    db.refresh(customer)
    assert customer.available_credit == Decimal("1000.00")

    assert client.post(f"/receivables/{receivable['id']}/receive", json={"payment_amount": "1.00"},
                       headers=headers).status_code == 400


def test_partial_receipt_with_interest_keeps_credit_consistent(client, db, shop, customer_factory,
                                                               bank_account_factory):
    org, _, headers = shop
    customer = customer_factory(org)
    account = bank_account_factory(org)
    first = _receivable(client, headers, customer, amount="100.00")
    _receivable(client, headers, customer, amount="100.00")

    partial = client.post(f"/receivables/{first['id']}/receive", json={
        "payment_amount": "60.00", "interest": "10.00", "bank_account_id": str(account.id),
    }, headers=headers).json()
    assert partial["remaining"] == 50.0
    db.refresh(customer)
    assert customer.available_credit == Decimal("850.00")

    client.post(f"/receivables/{first['id']}/receive", json={
        "payment_amount": "50.00", "bank_account_id": str(account.id),
    }, headers=headers)
    db.refresh(customer)
    assert customer.available_credit == Decimal("900.00")

    report = client.post("/customers/credit-audit", json={}, headers=headers).json()
    assert report["inconsistent"] == 0


def test_listing_merges_boletos(client, db, shop, customer_factory):
    org, _, headers = shop
    customer = customer_factory(org)
    _receivable(client, headers, customer)
    db.add(models.Boleto(
        organization_id=org.id, boleto_number="BOL00000077", customer_id=customer.id,
        amount=Decimal("90.00"), due_date=brasilia_today() + timedelta(days=3), status="PENDING",
    ))
    db.commit()

    rows = client.get("/receivables/", headers=headers).json()
    assert [row["is_boleto"] for row in rows] == [True, False]
    assert rows[0]["boleto_number"] == "BOL00000077"


def test_receiving_a_boleto_id_settles_the_boleto(client, db, shop, customer_factory, bank_account_factory):
    org, _, headers = shop
    customer = customer_factory(org, available_credit=Decimal("910.00"))
    account = bank_account_factory(org)
    boleto = models.Boleto(
        organization_id=org.id, boleto_number="BOL00000078", customer_id=customer.id,
        amount=Decimal("90.00"), due_date=brasilia_today() + timedelta(days=3), status="PENDING",
    )
    db.add(boleto)
    db.commit()

    result = client.post(f"/receivables/{boleto.id}/receive", json={
        "payment_amount": "60.00", "bank_account_id": str(account.id),
    }, headers=headers).json()
    assert result["status"] == "PARTIAL"
    db.refresh(boleto)
    assert boleto.status == "PAID"
    balance = db.get(models.Receivable, uuid.UUID(result["child_receivable_id"]))
    assert balance.amount == Decimal("30.00")
    assert balance.due_date == brasilia_today() + timedelta(days=7)


def test_partial_boleto_receipt_with_fine_restores_only_principal(client, db, shop, customer_factory,
                                                                 bank_account_factory):
    org, _, headers = shop
    customer = customer_factory(org, available_credit=Decimal("910.00"))
    account = bank_account_factory(org)
    boleto = models.Boleto(
        organization_id=org.id, boleto_number="BOL00000079", customer_id=customer.id,
        amount=Decimal("90.00"), due_date=brasilia_today() - timedelta(days=3), status="OVERDUE",
    )
    db.add(boleto)
    db.commit()

    result = client.post(f"/receivables/{boleto.id}/receive", json={
        "payment_amount": "60.00", "fine": "20.00", "bank_account_id": str(account.id),
    }, headers=headers).json()
    assert result["remaining"] == 50.0
    db.refresh(customer)
    assert customer.available_credit == Decimal("950.00")

    report = client.post("/customers/credit-audit", json={}, headers=headers).json()
    assert report["inconsistent"] == 0


def test_card_summary_and_batch_confirmation(client, db, shop, customer_factory, product_factory, bank_account_factory):
    org, _, headers = shop
    customer = customer_factory(org)
    product = product_factory(org)
    account = bank_account_factory(org)
    order = client.post("/orders/", json={
        "customer_id": str(customer.id), "payment_method": "CREDIT_CARD",
        "items": [{"product_id": str(product.id), "quantity": 10}],
    }, headers=headers).json()

    summary = client.get("/card-transactions/summary", headers=headers).json()
    assert summary["pending"] == {"count": 1, "gross": 207.0, "fee": 6.71, "net": 200.29}

    card_tx = db.query(models.CardTransaction).one()
    result = client.post("/card-transactions/confirm-batch", json={
        "ids": [str(card_tx.id)], "bank_account_id": str(account.id),
    }, headers=headers).json()
    assert result == {"confirmed": 1, "skipped": 0, "total_net": 200.29, "total_fee": 6.71}

    db.refresh(account)
    db.refresh(customer)
    assert account.balance == Decimal("200.29")
    assert customer.available_credit == Decimal("1000.00")
    fee = db.query(models.Expense).one()
    assert fee.amount == Decimal("6.71")
    assert fee.category.name == "Taxa de Cartão"
    assert fee.status == "PAID"
    assert client.get(f"/orders/{order['id']}", headers=headers).json()["payment_status"] == "PAID"

    repeat = client.post("/card-transactions/confirm-batch", json={
        "ids": [str(card_tx.id)], "bank_account_id": str(account.id),
    }, headers=headers).json()
    assert repeat["confirmed"] == 0
    assert repeat["skipped"] == 1
