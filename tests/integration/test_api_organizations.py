import uuid

from atacado.db import models


def test_create_organization_makes_caller_owner(client, db, user_factory, auth_headers):
    user = user_factory("founder@atacado.test")
    response = client.post("/organizations/", json={"name": "Atacado Norte", "city": "Gurupi"},
                           headers=auth_headers(user))
    assert response.status_code == 201
    org_id = uuid.UUID(response.json()["id"])
    membership = db.query(models.OrganizationMembership).filter_by(organization_id=org_id, user_id=user.id).one()
    assert membership.role == "owner"

    duplicate = client.post("/organizations/", json={"name": "Atacado Norte"}, headers=auth_headers(user))
    assert duplicate.status_code == 409


def test_list_only_own_organizations(client, shop, organization_factory):
    org, _, headers = shop
    organization_factory("Outra Loja")
    names = [o["name"] for o in client.get("/organizations/", headers=headers).json()]
    assert names == [org.name]


def test_member_lifecycle(client, db, shop):
    org, owner, headers = shop
    added = client.post(f"/organizations/{org.id}/members", json={"email": "Caixa@Atacado.test", "role": "editor"},
                        headers=headers)
    assert added.status_code == 201
    member = added.json()
    assert member["email"] == "caixa@atacado.test"
    assert member["can_write"] is True

    again = client.post(f"/organizations/{org.id}/members", json={"email": "caixa@atacado.test"}, headers=headers)
    assert again.status_code == 409

    updated = client.put(f"/organizations/{org.id}/members/{member['user_id']}", json={"role": "viewer"},
                         headers=headers)
    assert updated.json()["role"] == "viewer"
    assert updated.json()["can_write"] is False

    notes = db.query(models.Notification).filter_by(user_id=uuid.UUID(member["user_id"])).count()
    assert notes == 2

    removed = client.delete(f"/organizations/{org.id}/members/{member['user_id']}", headers=headers)
    assert removed.status_code == 204


def test_last_owner_cannot_be_demoted_or_removed(client, shop):
    org, owner, headers = shop
    assert client.put(f"/organizations/{org.id}/members/{owner.id}", json={"role": "admin"},
                      headers=headers).status_code == 400
    assert client.delete(f"/organizations/{org.id}/members/{owner.id}", headers=headers).status_code == 400


def test_viewer_cannot_manage_members(client, shop, user_factory, membership_factory, auth_headers):
    org, _, _ = shop
    viewer = user_factory("viewer@atacado.test")
    membership_factory(org, viewer, role="viewer")
    response = client.post(f"/organizations/{org.id}/members", json={"email": "x@atacado.test"},
                           headers=auth_headers(viewer, org))
    assert response.status_code == 403


def test_delete_refused_while_customers_exist(client, shop, customer_factory):
    org, _, headers = shop
    customer_factory(org)
    assert client.delete(f"/organizations/{org.id}", headers=headers).status_code == 409


def test_delete_empty_organization(client, db, shop):
    org, _, headers = shop
    assert client.delete(f"/organizations/{org.id}", headers=headers).status_code == 204
    db.expire_all()
    assert db.get(models.Organization, org.id) is None


def test_audit_log_records_member_add(client, shop):
    org, _, headers = shop
    client.post(f"/organizations/{org.id}/members", json={"email": "novo@atacado.test"}, headers=headers)
    logs = client.get(f"/organizations/{org.id}/audit-logs", headers=headers).json()
    assert "member_add" in [log["action_type"] for log in logs]


def test_notifications_flow(client, shop, user_factory, auth_headers):
    org, _, headers = shop
    client.post(f"/organizations/{org.id}/members", json={"email": "entregador@atacado.test"}, headers=headers)
    member_headers = {"X-Auth-Request-Email": "entregador@atacado.test"}
    listing = client.get("/notifications/", headers=member_headers).json()
    assert listing["unread_count"] == 1
    note_id = listing["notifications"][0]["id"]
    assert client.post(f"/notifications/{note_id}/read", headers=member_headers).status_code == 204
    assert client.get("/notifications/unread-count", headers=member_headers).json() == {"unread_count": 0}


def test_audit_log_filters_by_target(client, shop, customer_factory):
    org, _, headers = shop
    customer = customer_factory(org)
    client.post(f"/organizations/{org.id}/members", json={"email": "novo@atacado.test"}, headers=headers)
    boleto = client.post("/boletos/", json={
        "customer_id": str(customer.id), "amount": "120.00", "due_date": "2030-01-10",
    }, headers=headers).json()

    logs = client.get(f"/organizations/{org.id}/audit-logs?target_type=boleto", headers=headers).json()
    assert [(log["action_type"], log["target_id"]) for log in logs] == [("boleto_create", boleto["id"])]
    assert client.get(f"/organizations/{org.id}/audit-logs?since=2999-01-01T00:00:00Z", headers=headers).json() == []
