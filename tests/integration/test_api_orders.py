from datetime import timedelta
from decimal import Decimal

from atacado.db import models
from atacado.utils.clock import brasilia_today


def _order(product, quantity=10, **fields):
    payload = {"items": [{"product_id": str(product.id), "quantity": quantity}], "payment_method": "CASH"}
    payload.update(fields)
    return payload


def test_boleto_installments_split_total_and_consume_credit(client, db, shop, customer_factory, product_factory):
    org, _, headers = shop
    customer = customer_factory(org)
    product = product_factory(org)
    delivery = brasilia_today() + timedelta(days=2)

    response = client.post("/orders/", json=_order(
        product, customer_id=str(customer.id), payment_method="BOLETO",
        boleto_installments="3x-30-60-90", delivery_date=delivery.isoformat(),
    ), headers=headers)
    assert response.status_code == 201
    order = response.json()
    assert order["order_number"].startswith("ESP")
    assert order["total"] == 200.0
    assert order["status"] == "PENDING"
    assert order["payment_status"] == "UNPAID"

    boletos = db.query(models.Boleto).order_by(models.Boleto.installment_number).all()
    assert [b.amount for b in boletos] == [Decimal("66.67"), Decimal("66.67"), Decimal("66.66")]
    assert [b.due_date for b in boletos] == [delivery + timedelta(days=d) for d in (30, 60, 90)]
    assert boletos[0].boleto_number == f"BOL{order['order_number'][3:]}-1"
    assert all(b.is_installment and b.total_installments == 3 for b in boletos)

    receivables = db.query(models.Receivable).all()
    assert len(receivables) == 3
    assert {r.boleto_id for r in receivables} == {b.id for b in boletos}

    db.refresh(customer)
    db.refresh(product)
    assert customer.available_credit == Decimal("800.00")
    assert product.current_stock == 90


def test_insufficient_credit_is_refused(client, shop, customer_factory, product_factory):
    org, _, headers = shop
    customer = customer_factory(org, credit_limit="100.00")
    product = product_factory(org)
    response = client.post("/orders/", json=_order(product, customer_id=str(customer.id), payment_method="CREDIT"),
                           headers=headers)
    assert response.status_code == 400
    assert response.json()["detail"]["available_credit"] == 100.0
    assert response.json()["detail"]["required"] == 200.0


def test_unpaid_card_sale_cannot_exceed_credit(client, db, shop, customer_factory, product_factory,
                                               bank_account_factory):
    org, _, headers = shop
    customer = customer_factory(org, credit_limit="100.00")
    product = product_factory(org)
    account = bank_account_factory(org)

    response = client.post("/orders/", json=_order(
        product, quantity=25, customer_id=str(customer.id), payment_method="CREDIT_CARD",
    ), headers=headers)
    assert response.status_code == 400
    assert response.json()["detail"]["available_credit"] == 100.0
    assert response.json()["detail"]["required"] == 517.5
    db.refresh(customer)
    assert customer.available_credit == Decimal("100.00")
    assert db.query(models.Order).count() == 0

    paid = client.post("/orders/", json=_order(
        product, quantity=25, customer_id=str(customer.id), is_paid=True, bank_account_id=str(account.id),
    ), headers=headers)
    assert paid.status_code == 201
    db.refresh(customer)
    assert customer.available_credit == Decimal("100.00")


def test_overdue_customer_is_blocked_until_unblocked(client, db, shop, customer_factory, product_factory):
    org, _, headers = shop
    customer = customer_factory(org)
    product = product_factory(org)
    db.add(models.Boleto(
        organization_id=org.id, boleto_number="BOL00000099", customer_id=customer.id,
        amount=Decimal("80.00"), due_date=brasilia_today() - timedelta(days=5), status="OVERDUE",
    ))
    db.commit()

    blocked = client.post("/orders/", json=_order(product, customer_id=str(customer.id)), headers=headers)
    assert blocked.status_code == 400
    assert blocked.json()["detail"]["overdue_count"] == 1
    assert blocked.json()["detail"]["overdue_amount"] == 80.0

    customer.manually_unblocked = True
    db.commit()
    assert client.post("/orders/", json=_order(product, customer_id=str(customer.id)), headers=headers).status_code == 201


def test_final_consumer_sale_is_delivered_paid_and_earns_points(client, db, shop, customer_factory, product_factory):
    org, _, headers = shop
    customer = customer_factory(org, name="Maria Balcão", customer_type="CONSUMIDOR_FINAL")
    product = product_factory(org)

    refused = client.post("/orders/", json=_order(product, customer_id=str(customer.id), payment_method="BOLETO"),
                          headers=headers)
    assert refused.status_code == 400

    order = client.post("/orders/", json=_order(
        product, quantity=4, customer_id=str(customer.id), order_type="RETAIL", payment_method="PIX",
    ), headers=headers).json()
    assert order["status"] == "DELIVERED"
    assert order["payment_status"] == "PAID"
    assert order["total"] == 100.0
    assert order["points_earned"] == 100

    db.refresh(customer)
    assert customer.points_balance == 100
    assert customer.available_credit == Decimal("1000.00")
    receivable = db.query(models.Receivable).one()
    assert receivable.status == "PAID"


def test_paid_cash_order_credits_the_bank_account(client, db, shop, customer_factory, product_factory, bank_account_factory):
    org, _, headers = shop
    customer = customer_factory(org)
    product = product_factory(org)
    account = bank_account_factory(org, balance="50.00")

    order = client.post("/orders/", json=_order(
        product, customer_id=str(customer.id), is_paid=True, bank_account_id=str(account.id),
    ), headers=headers).json()
    assert order["payment_status"] == "PAID"

    db.refresh(account)
    db.refresh(customer)
    assert account.balance == Decimal("250.00")
    assert customer.available_credit == Decimal("1000.00")
    movement = db.query(models.Transaction).one()
    assert movement.type == "INCOME"
    assert movement.amount == Decimal("200.00")
    assert db.query(models.Receivable).one().status == "PAID"


def test_wholesale_card_fee_and_card_transaction(client, db, shop, customer_factory, product_factory):
    org, _, headers = shop
    customer = customer_factory(org)
    product = product_factory(org)

    order = client.post("/orders/", json=_order(product, customer_id=str(customer.id), payment_method="CREDIT_CARD"),
                        headers=headers).json()
    assert order["card_fee"] == 7.0
    assert order["total"] == 207.0

    card_tx = db.query(models.CardTransaction).one()
    assert card_tx.card_type == "CREDIT"
    assert card_tx.gross_amount == Decimal("207.00")
    assert card_tx.fee_amount == Decimal("6.71")
    assert card_tx.net_amount == Decimal("200.29")
    assert card_tx.expected_date == brasilia_today() + timedelta(days=30)
    assert card_tx.status == "PENDING"


def test_price_mismatch_returns_conflict(client, shop, customer_factory, product_factory):
    org, _, headers = shop
    customer = customer_factory(org)
    product = product_factory(org)
    payload = _order(product, customer_id=str(customer.id))
    payload["items"][0]["expected_unit_price"] = "18.00"

    response = client.post("/orders/", json=payload, headers=headers)
    assert response.status_code == 409
    detail = response.json()["detail"]
    assert detail["code"] == "PRICE_MISMATCH"
    assert detail["expected_price"] == 18.0
    assert detail["current_price"] == 20.0


def test_delivery_fees(client, shop, product_factory):
    org, _, headers = shop
    product = product_factory(org)

    gurupi = client.post("/orders/", json=_order(
        product, quantity=2, casual_customer_name="Cliente Avulso", delivery_type="delivery_gurupi",
    ), headers=headers).json()
    assert gurupi["delivery_fee"] == 10.0
    assert gurupi["total"] == 50.0

    outside = client.post("/orders/", json=_order(
        product, quantity=10, casual_customer_name="Cliente Avulso", delivery_type="delivery_outside",
    ), headers=headers).json()
    assert outside["delivery_fee"] == 50.0
    assert outside["total"] == 250.0


def test_order_requires_items_and_payment_method(client, shop, product_factory):
    org, _, headers = shop
    product = product_factory(org)
    assert client.post("/orders/", json={"casual_customer_name": "X", "payment_method": "CASH"},
                       headers=headers).status_code == 400
    no_method = _order(product, casual_customer_name="X")
    no_method.pop("payment_method")
    assert client.post("/orders/", json=no_method, headers=headers).status_code == 400


def test_delivered_status_awards_points(client, db, shop, customer_factory, product_factory):
    org, _, headers = shop
    customer = customer_factory(org)
    product = product_factory(org)
    order = client.post("/orders/", json=_order(product, customer_id=str(customer.id)), headers=headers).json()

    delivered = client.patch(f"/orders/{order['id']}/status", json={"status": "DELIVERED"}, headers=headers).json()
    assert delivered["status"] == "DELIVERED"
    assert delivered["points_earned"] == 200
    db.refresh(customer)
    assert customer.points_balance == 200
    assert db.query(models.PointTransaction).filter_by(type="EARNED").count() == 1


def test_cancel_restores_stock_and_credit(client, db, shop, customer_factory, product_factory):
    org, _, headers = shop
    customer = customer_factory(org)
    product = product_factory(org)
    order = client.post("/orders/", json=_order(product, customer_id=str(customer.id), payment_method="BOLETO"),
                        headers=headers).json()

    cancelled = client.post(f"/orders/{order['id']}/cancel", headers=headers)
    assert cancelled.json()["status"] == "CANCELLED"
    db.refresh(customer)
    db.refresh(product)
    assert customer.available_credit == Decimal("1000.00")
    assert product.current_stock == 100
    assert {b.status for b in db.query(models.Boleto).all()} == {"CANCELLED"}
    assert {r.status for r in db.query(models.Receivable).all()} == {"CANCELLED"}

    again = client.post(f"/orders/{order['id']}/cancel", headers=headers)
    assert again.status_code == 400


def test_portal_customer_places_own_unpaid_order(client, db, shop, customer_factory, product_factory,
                                                 bank_account_factory, user_factory, auth_headers):
    org, _, headers = shop
    portal_user = user_factory("compras@mercearia.test")
    mine = customer_factory(org, user_id=portal_user.id)
    other = customer_factory(org, name="Outro Cliente")
    product = product_factory(org)
    account = bank_account_factory(org)
    portal = auth_headers(portal_user, org)

    order = client.post("/orders/", json=_order(
        product, customer_id=str(other.id), is_paid=True, bank_account_id=str(account.id),
    ), headers=portal).json()
    assert order["customer_id"] == str(mine.id)
    assert order["payment_status"] == "UNPAID"

    client.post("/orders/", json=_order(product, customer_id=str(other.id)), headers=headers)
    listed = client.get("/orders/", headers=portal).json()
    assert listed["total"] == 1
    assert client.patch(f"/orders/{order['id']}/status", json={"status": "CONFIRMED"}, headers=portal).status_code == 403


def test_viewer_cannot_create_orders(client, shop, product_factory, user_factory, membership_factory, auth_headers):
    org, _, _ = shop
    viewer = user_factory("viewer@atacado.test")
    membership_factory(org, viewer, role="viewer")
    product = product_factory(org)
    response = client.post("/orders/", json=_order(product, casual_customer_name="X"), headers=auth_headers(viewer, org))
    assert response.status_code == 403
