from datetime import timedelta
from decimal import Decimal

from atacado.db import models
from atacado.utils.clock import brasilia_today


def _coupon(client, headers, **fields):
    payload = {"code": "promo10", "discount_type": "PERCENTAGE", "discount_value": 10}
    payload.update(fields)
    response = client.post("/coupons/", json=payload, headers=headers)
    assert response.status_code == 201
    return response.json()


def _order(product, quantity=10, **fields):
    payload = {"items": [{"product_id": str(product.id), "quantity": quantity}], "payment_method": "CASH"}
    payload.update(fields)
    return payload


def test_create_normalizes_code_and_rejects_duplicates(client, shop):
    _, _, headers = shop
    coupon = _coupon(client, headers)
    assert coupon["code"] == "PROMO10"
    assert coupon["usage_count"] == 0

    duplicate = client.post("/coupons/", json={"code": " Promo10 ", "discount_type": "FIXED", "discount_value": 5},
                            headers=headers)
    assert duplicate.status_code == 409
    assert [c["code"] for c in client.get("/coupons/", headers=headers).json()] == ["PROMO10"]


def test_validate_previews_the_discount(client, shop):
    _, _, headers = shop
    _coupon(client, headers, max_discount="15.00")
    _coupon(client, headers, code="MENOS5", discount_type="FIXED", discount_value=5)

    capped = client.post("/coupons/validate", json={"code": "promo10", "order_total": "200.00"}, headers=headers).json()
    assert capped["valid"] is True
    assert capped["discount_amount"] == 15.0

    fixed = client.post("/coupons/validate", json={"code": "MENOS5", "order_total": "3.00"}, headers=headers).json()
    assert fixed["discount_amount"] == 3.0

    missing = client.post("/coupons/validate", json={"code": "NADA", "order_total": "10.00"}, headers=headers)
    assert missing.status_code == 404


def test_validate_refuses_expired_exhausted_and_small_orders(client, shop):
    _, _, headers = shop
    today = brasilia_today()
    _coupon(client, headers, code="VELHO", valid_until=(today - timedelta(days=1)).isoformat())
    _coupon(client, headers, code="FUTURO", valid_from=(today + timedelta(days=1)).isoformat())
    _coupon(client, headers, code="MINIMO", min_order_value="100.00")
    inactive = _coupon(client, headers, code="PARADO")
    client.delete(f"/coupons/{inactive['id']}", headers=headers)

    def check(code, total="50.00"):
        return client.post("/coupons/validate", json={"code": code, "order_total": total}, headers=headers)

    assert check("VELHO").json()["detail"] == "Coupon has expired"
    assert check("FUTURO").json()["detail"] == "Coupon is not valid yet"
    assert check("PARADO").json()["detail"] == "Coupon is inactive"
    small = check("MINIMO")
    assert small.status_code == 400
    assert small.json()["detail"]["min_order_value"] == 100.0
    assert check("MINIMO", total="100.00").status_code == 200


def test_order_applies_coupon_and_records_usage(client, db, shop, customer_factory, product_factory):
    org, _, headers = shop
    customer = customer_factory(org)
    product = product_factory(org)
    coupon = _coupon(client, headers, is_one_time_per_customer=True, usage_limit=5)

    order = client.post("/orders/", json=_order(product, customer_id=str(customer.id), coupon_code="promo10"),
                        headers=headers).json()
    assert order["subtotal"] == 200.0
    assert order["coupon_code"] == "PROMO10"
    assert order["coupon_discount"] == 20.0
    assert order["total"] == 180.0

    usage = db.query(models.CouponUsage).one()
    assert str(usage.order_id) == order["id"]
    assert usage.customer_id == customer.id
    assert usage.discount == Decimal("20.00")
    assert client.get(f"/coupons/{coupon['id']}", headers=headers).json()["usage_count"] == 1

    again = client.post("/orders/", json=_order(product, customer_id=str(customer.id), coupon_code="PROMO10"),
                        headers=headers)
    assert again.status_code == 400
    assert again.json()["detail"] == "Coupon already used by this customer"
    db.refresh(product)
    assert product.current_stock == 90


def test_usage_limit_counts_casual_sales(client, db, shop, product_factory):
    org, _, headers = shop
    product = product_factory(org)
    _coupon(client, headers, code="UNICO", discount_type="FIXED", discount_value=10, usage_limit=1)

    first = client.post("/orders/", json=_order(product, quantity=2, casual_customer_name="Avulso", coupon_code="UNICO"),
                        headers=headers).json()
    assert first["total"] == 30.0
    assert db.query(models.CouponUsage).count() == 0

    second = client.post("/orders/", json=_order(product, quantity=2, casual_customer_name="Avulso", coupon_code="UNICO"),
                         headers=headers)
    assert second.status_code == 400
    assert second.json()["detail"] == "Coupon usage limit reached"


def test_viewer_cannot_create_coupons(client, shop, user_factory, membership_factory, auth_headers):
    org, _, _ = shop
    viewer = user_factory("viewer@atacado.test")
    membership_factory(org, viewer, role="viewer")
    response = client.post("/coupons/", json={"code": "X", "discount_type": "FIXED", "discount_value": 1},
                           headers=auth_headers(viewer, org))
    assert response.status_code == 403
