import uuid

from atacado.api.permissions import (
    can_manage_org,
    can_read_org,
    can_write_org,
    customer_link,
    get_org_membership,
    is_org_owner,
)

ORG = uuid.uuid4()
OTHER = uuid.uuid4()


def _ctx(role=None, can_read=True, can_write=False, superadmin=False, customer_id=None):
    memberships = []
    if role:
        memberships.append({"organization_id": str(ORG), "role": role, "can_read": can_read, "can_write": can_write})
    customers = []
    if customer_id:
        customers.append({"organization_id": str(ORG), "customer_id": str(customer_id)})
    return {
        "is_superadmin": superadmin,
        "memberships": memberships,
        "memberships_by_org": {m["organization_id"]: m for m in memberships},
        "customers": customers,
        "customers_by_org": {c["organization_id"]: c for c in customers},
    }


def test_viewer_reads_only():
    ctx = _ctx("viewer")
    assert can_read_org(ORG, ctx)
    assert not can_write_org(ORG, ctx)
    assert not can_manage_org(ORG, ctx)


def test_editor_writes_but_does_not_manage():
    ctx = _ctx("editor")
    assert can_write_org(ORG, ctx)
    assert not can_manage_org(ORG, ctx)


def test_explicit_can_write_on_viewer():
    assert can_write_org(ORG, _ctx("viewer", can_write=True))


def test_admin_manages_and_owner_flag():
    assert can_manage_org(ORG, _ctx("admin"))
    assert not is_org_owner(ORG, _ctx("admin"))
    assert is_org_owner(ORG, _ctx("owner"))


def test_other_org_denied():
    ctx = _ctx("owner")
    assert get_org_membership(OTHER, ctx) is None
    assert not can_read_org(OTHER, ctx)


def test_superadmin_passes_everything():
    ctx = _ctx(superadmin=True)
    assert can_read_org(OTHER, ctx) and can_write_org(OTHER, ctx) and can_manage_org(OTHER, ctx)


def test_customer_link_is_not_staff():
    customer_id = uuid.uuid4()
    ctx = _ctx(customer_id=customer_id)
    assert customer_link(ORG, ctx)["customer_id"] == str(customer_id)
    assert not can_read_org(ORG, ctx)


def test_missing_context():
    assert not can_read_org(ORG, None)
    assert customer_link(None, _ctx("owner")) is None
