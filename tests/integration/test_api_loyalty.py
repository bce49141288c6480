import uuid

from atacado.db import models
from atacado.utils.feature_flags import refresh_feature_flag_cache


def test_manual_adjustment_rules(client, db, shop, customer_factory, user_factory, membership_factory, auth_headers):
    org, _, headers = shop
    customer = customer_factory(org)

    adjusted = client.post(f"/customers/{customer.id}/points/adjust",
                           json={"points": 500, "description": "Campanha de inauguração"}, headers=headers)
    assert adjusted.status_code == 200
    assert adjusted.json()["points_balance"] == 500

    assert client.post(f"/customers/{customer.id}/points/adjust",
                       json={"points": -600, "description": "Estorno"}, headers=headers).status_code == 400
    assert client.post(f"/customers/{customer.id}/points/adjust",
                       json={"points": 0, "description": "Nada"}, headers=headers).status_code == 400

    editor = user_factory("editor@atacado.test")
    membership_factory(org, editor, role="editor")
    assert client.post(f"/customers/{customer.id}/points/adjust", json={"points": 10, "description": "x"},
                       headers=auth_headers(editor, org)).status_code == 403

    points = client.get(f"/customers/{customer.id}/points", headers=headers).json()
    assert points["points_balance"] == 500
    assert points["total_points_earned"] == 0
    assert [t["type"] for t in points["transactions"]] == ["MANUAL_ADJUSTMENT"]
    assert db.query(models.AuditLog).filter_by(action_type="points_adjust").count() == 1


def test_portal_redemption_lifecycle(client, db, shop, customer_factory, user_factory, auth_headers):
    org, owner, headers = shop
    portal_user = user_factory("cliente@mercearia.test")
    customer = customer_factory(org, user_id=portal_user.id, points_balance=500)
    portal = auth_headers(portal_user, org)
    prize = client.post("/prizes/", json={"name": "Camiseta", "points_cost": 300, "stock_quantity": 2},
                        headers=headers).json()

    redemption = client.post("/redemptions/", json={"prize_id": prize["id"]}, headers=portal)
    assert redemption.status_code == 201
    redemption = redemption.json()
    assert redemption["customer_id"] == str(customer.id)
    assert redemption["status"] == "PENDING"
    assert db.query(models.Notification).filter_by(user_id=owner.id).count() == 1

    broke = client.post("/redemptions/", json={"prize_id": prize["id"]}, headers=portal)
    assert broke.status_code == 400
    assert broke.json()["detail"]["points_balance"] == 200

    approved = client.put(f"/redemptions/{redemption['id']}", json={"action": "approve"}, headers=headers).json()
    assert approved["status"] == "APPROVED"
    assert approved["processed_by"] == "owner@atacado.test"
    assert db.get(models.Prize, uuid.UUID(prize["id"])).stock_quantity == 1

    delivered = client.put(f"/redemptions/{redemption['id']}", json={"action": "deliver"}, headers=headers).json()
    assert delivered["status"] == "DELIVERED"
    assert client.put(f"/redemptions/{redemption['id']}", json={"action": "cancel"}, headers=headers).status_code == 400
    assert db.query(models.Notification).filter_by(user_id=portal_user.id).count() == 2

    assert client.put(f"/redemptions/{redemption['id']}", json={"action": "approve"}, headers=portal).status_code == 403


def test_rejection_returns_points(client, db, shop, customer_factory):
    org, _, headers = shop
    customer = customer_factory(org, points_balance=300)
    prize = client.post("/prizes/", json={"name": "Caneca", "points_cost": 300}, headers=headers).json()
    redemption = client.post("/redemptions/", json={"prize_id": prize["id"], "customer_id": str(customer.id)},
                             headers=headers).json()
    db.refresh(customer)
    assert customer.points_balance == 0
    assert customer.total_points_redeemed == 300

    rejected = client.put(f"/redemptions/{redemption['id']}", json={
        "action": "reject", "rejection_reason": "Fora de estoque",
    }, headers=headers).json()
    assert rejected["status"] == "REJECTED"
    assert rejected["rejection_reason"] == "Fora de estoque"
    db.refresh(customer)
    assert customer.points_balance == 300
    assert customer.total_points_redeemed == 0


def test_referral_completes_on_first_delivered_order(client, db, shop, customer_factory, product_factory):
    org, _, headers = shop
    referrer = customer_factory(org, name="Mercearia Central")
    referred = customer_factory(org, name="Padaria Nova")
    product = product_factory(org)

    assert client.post("/referrals/", json={"referrer_id": str(referrer.id), "referred_id": str(referrer.id)},
                       headers=headers).status_code == 400
    referral = client.post("/referrals/", json={"referrer_id": str(referrer.id), "referred_id": str(referred.id)},
                           headers=headers).json()
    assert referral["status"] == "PENDING"
    assert client.post("/referrals/", json={"referrer_id": str(referrer.id), "referred_id": str(referred.id)},
                       headers=headers).status_code == 400

    order = client.post("/orders/", json={
        "customer_id": str(referred.id), "payment_method": "CASH",
        "items": [{"product_id": str(product.id), "quantity": 1}],
    }, headers=headers).json()
    client.patch(f"/orders/{order['id']}/status", json={"status": "DELIVERED"}, headers=headers)

    listed = client.get("/referrals/", headers=headers).json()
    assert listed[0]["status"] == "COMPLETED"
    assert listed[0]["bonus_points"] == 100
    db.refresh(referrer)
    db.refresh(referred)
    assert referrer.points_balance == 100
    assert referred.points_balance == 20


def test_referral_config_without_first_order(client, db, shop, customer_factory):
    org, _, headers = shop
    assert client.get("/referrals/config", headers=headers).json() == {
        "bonus_points_per_referral": 100, "bonus_for_referred": 0, "require_first_order": True,
    }
    updated = client.put("/referrals/config", json={"require_first_order": False, "bonus_for_referred": 25},
                         headers=headers).json()
    assert updated["require_first_order"] is False

    referrer = customer_factory(org, name="Mercearia Central")
    referred = customer_factory(org, name="Lanchonete Sabor")
    referral = client.post("/referrals/", json={"referrer_id": str(referrer.id), "referred_id": str(referred.id)},
                           headers=headers).json()
    assert referral["status"] == "COMPLETED"
    db.refresh(referred)
    assert referred.points_balance == 25
    assert referred.referred_by_id == referrer.id


def test_loyalty_routes_unavailable_when_disabled(client, shop, monkeypatch):
    _, _, headers = shop
    monkeypatch.setenv("FEATURE_LOYALTY_ENABLED", "false")
    refresh_feature_flag_cache()
    assert client.get("/prizes/", headers=headers).status_code == 503
    assert client.get("/referrals/config", headers=headers).status_code == 503
