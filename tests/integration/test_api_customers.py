from datetime import timedelta
from decimal import Decimal

from atacado.db import models
from atacado.utils.clock import brasilia_today


def test_create_customer_starts_with_full_credit(client, shop):
    org, _, headers = shop
    response = client.post("/customers/", json={"name": "Padaria Boa Massa", "credit_limit": "500.00",
                                                "cpf_cnpj": "12345678000199"}, headers=headers)
    assert response.status_code == 201
    body = response.json()
    assert body["credit_limit"] == 500.0
    assert body["available_credit"] == 500.0
    assert body["organization_id"] == str(org.id)


def test_limit_change_moves_available_by_delta(client, db, shop, customer_factory):
    org, _, headers = shop
    customer = customer_factory(org, credit_limit=Decimal("1000.00"), available_credit=Decimal("400.00"))
    response = client.put(f"/customers/{customer.id}", json={"credit_limit": "1500.00"}, headers=headers)
    assert response.json()["available_credit"] == 900.0
    logs = db.query(models.AuditLog).filter_by(action_type="customer_credit_change").all()
    assert len(logs) == 1


def test_search_and_deactivate(client, shop, customer_factory):
    org, _, headers = shop
    customer_factory(org, name="Mercearia Central")
    other = customer_factory(org, name="Lanchonete Sabor")
    assert [c["name"] for c in client.get("/customers/?search=lanch", headers=headers).json()] == ["Lanchonete Sabor"]
    assert client.delete(f"/customers/{other.id}", headers=headers).json()["is_active"] is False
    assert [c["name"] for c in client.get("/customers/", headers=headers).json()] == ["Mercearia Central"]


def test_credit_summary_and_manual_unblock(client, db, shop, customer_factory):
    org, _, headers = shop
    customer = customer_factory(org, available_credit=Decimal("850.00"))
    db.add(models.Boleto(
        organization_id=org.id, boleto_number="BOL00000001", customer_id=customer.id,
        amount=Decimal("150.00"), due_date=brasilia_today() - timedelta(days=3), status="OVERDUE",
    ))
    db.commit()

    credit = client.get(f"/customers/{customer.id}/credit", headers=headers).json()
    assert credit["used_credit"] == 150.0
    assert credit["open_boletos"] == 150.0
    assert credit["overdue_count"] == 1
    assert credit["blocked"] is True

    unblocked = client.post(f"/customers/{customer.id}/unblock", headers=headers).json()
    assert unblocked["manually_unblocked"] is True
    assert unblocked["blocked"] is False


def test_editor_cannot_unblock(client, shop, customer_factory, user_factory, membership_factory, auth_headers):
    org, _, _ = shop
    editor = user_factory("editor@atacado.test")
    membership_factory(org, editor, role="editor")
    customer = customer_factory(org)
    assert client.post(f"/customers/{customer.id}/unblock", headers=auth_headers(editor, org)).status_code == 403


def test_credit_audit_fixes_drift(client, db, shop, customer_factory):
    org, _, headers = shop
    customer = customer_factory(org, credit_limit=Decimal("1000.00"), available_credit=Decimal("700.00"))
    report = client.post("/customers/credit-audit", json={"auto_fix": False}, headers=headers).json()
    assert report["inconsistent"] == 1
    assert report["entries"][0]["difference"] == -300.0

    fixed = client.post("/customers/credit-audit", json={"auto_fix": True}, headers=headers).json()
    assert fixed["fixed"] == 1
    db.refresh(customer)
    assert customer.available_credit == Decimal("1000.00")


def test_custom_prices_and_visibility(client, shop, customer_factory, product_factory, user_factory, auth_headers):
    org, _, headers = shop
    portal_user = user_factory("cliente@mercearia.test")
    customer = customer_factory(org, user_id=portal_user.id)
    visible = product_factory(org, name="Biscoito")
    hidden = product_factory(org, name="Rosca")
    client.put(f"/customers/{customer.id}/prices/{visible.id}", json={"custom_price": "18.50"}, headers=headers)
    client.put(f"/customers/{customer.id}/prices/{hidden.id}", json={"custom_price": "9.90", "is_visible": False},
               headers=headers)

    assert len(client.get(f"/customers/{customer.id}/prices", headers=headers).json()) == 2
    portal = client.get(f"/customers/{customer.id}/prices", headers=auth_headers(portal_user, org)).json()
    assert [(p["product_id"], p["custom_price"]) for p in portal] == [(str(visible.id), 18.5)]

    assert client.delete(f"/customers/{customer.id}/prices/{hidden.id}", headers=headers).status_code == 204
    assert client.delete(f"/customers/{customer.id}/prices/{hidden.id}", headers=headers).status_code == 404


def test_portal_customer_sees_only_itself(client, shop, customer_factory, user_factory, auth_headers):
    org, _, _ = shop
    portal_user = user_factory("cliente@mercearia.test")
    own = customer_factory(org, user_id=portal_user.id)
    other = customer_factory(org, name="Outro Cliente")
    headers = auth_headers(portal_user)  # single org resolved from the customer link
    assert client.get(f"/customers/{own.id}", headers=headers).status_code == 200
    assert client.get(f"/customers/{other.id}", headers=headers).status_code == 404
    assert client.get("/customers/", headers=headers).status_code == 403


def test_outsider_is_forbidden(client, shop, user_factory, auth_headers):
    org, _, _ = shop
    outsider = user_factory("curioso@example.com")
    assert client.get("/customers/", headers=auth_headers(outsider, org)).status_code == 403


def test_reminder_settings(client, shop, customer_factory):
    org, _, headers = shop
    customer = customer_factory(org)
    body = client.put(f"/customers/{customer.id}/reminders",
                      json={"enabled": True, "custom_interval_days": 7, "custom_message": "Oi {nome}!"},
                      headers=headers).json()
    assert (body["reminders_enabled"], body["reminder_interval_days"], body["reminder_message"]) == (True, 7, "Oi {nome}!")


def test_products_crud(client, shop):
    org, _, headers = shop
    created = client.post("/products/", json={"name": "Pão de Queijo 1kg", "price_wholesale": "20.00",
                                                "price_retail": "25.00", "current_stock": 10}, headers=headers)
    assert created.status_code == 201
    product_id = created.json()["id"]
    updated = client.put(f"/products/{product_id}", json={"is_on_promotion": True, "promotional_price": "17.90"},
                         headers=headers).json()
    assert updated["promotional_price"] == 17.9
    assert client.delete(f"/products/{product_id}", headers=headers).json()["is_active"] is False
    assert client.get("/products/", headers=headers).json() == []
    assert len(client.get("/products/?is_active=false", headers=headers).json()) == 1
