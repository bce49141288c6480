from datetime import date
from decimal import Decimal

from atacado.db import models


def _employee(client, headers, **fields):
    payload = {"name": "Joana Souza", "position": "Estoquista", "salary": "2000.00"}
    payload.update(fields)
    response = client.post("/employees/", json=payload, headers=headers)
    assert response.status_code == 201
    return response.json()


def test_employee_crud(client, shop, user_factory, membership_factory, auth_headers):
    org, _, headers = shop
    employee = _employee(client, headers)
    assert employee["salary"] == 2000.0
    assert employee["is_active"] is True

    updated = client.put(f"/employees/{employee['id']}", json={"position": "Conferente"}, headers=headers).json()
    assert updated["position"] == "Conferente"

    editor = user_factory("editor@atacado.test")
    membership_factory(org, editor, role="editor")
    editor_headers = auth_headers(editor, org)
    assert client.post("/employees/", json={"name": "Pedro"}, headers=editor_headers).status_code == 403
    assert client.get("/employees/", headers=editor_headers).status_code == 200

    client.delete(f"/employees/{employee['id']}", headers=headers)
    assert client.get("/employees/?is_active=true", headers=headers).json() == []
    assert client.get(f"/employees/{employee['id']}", headers=headers).json()["is_active"] is False


def test_payment_batch_generates_payables(client, db, shop):
    _, _, headers = shop
    employee = _employee(client, headers)
    result = client.post("/employee-payments/", json={"payments": [{
        "employee_id": employee["id"], "month": 3, "year": 2026,
        "salary_gross_amount": "2000.00", "food_voucher_gross_amount": "400.00",
        "inss_discount": "240.00",
        "earnings_items": [{"description": "Hora extra", "amount": "100.00"}],
    }]}, headers=headers)
    assert result.status_code == 201
    body = result.json()
    payment = body["payments"][0]
    assert payment["total_gross_amount"] == 2500.0
    assert payment["salary_amount"] == 1800.0
    assert payment["food_voucher_amount"] == 360.0
    assert payment["total_amount"] == 2260.0
    assert payment["salary_due_date"] == "2026-03-05"
    assert payment["advance_due_date"] is None
    assert len(body["expense_ids"]) == 2

    expenses = {e.description: e for e in db.query(models.Expense).all()}
    salary = expenses["Salário - Joana Souza (3/2026)"]
    assert salary.amount == Decimal("1900.00")
    assert salary.due_date == date(2026, 3, 5)
    assert salary.status == "PENDING"
    assert salary.category.name == "Salario/Funcionarios/Beneficios"
    assert expenses["Vale Alimentação - Joana Souza (3/2026)"].amount == Decimal("360.00")
    assert db.query(models.AuditLog).filter_by(action_type="payroll_create").count() == 1


def test_payment_batch_rejects_unknown_employee(client, db, shop):
    _, _, headers = shop
    missing = "00000000-0000-0000-0000-000000000001"
    response = client.post("/employee-payments/", json={"payments": [{
        "employee_id": missing, "month": 3, "year": 2026, "salary_gross_amount": "100.00",
    }]}, headers=headers)
    assert response.status_code == 400
    assert response.json()["detail"]["employee_ids"] == [missing]
    assert db.query(models.EmployeePayment).count() == 0


def test_acknowledgment_rules(client, shop, user_factory, membership_factory, auth_headers):
    org, _, headers = shop
    worker = user_factory("joana@atacado.test")
    colleague = user_factory("pedro@atacado.test")
    membership_factory(org, worker, role="viewer")
    membership_factory(org, colleague, role="viewer")
    employee = _employee(client, headers, user_id=str(worker.id))
    batch = client.post("/employee-payments/", json={"generate_expenses": False, "payments": [{
        "employee_id": employee["id"], "month": 4, "year": 2026, "salary_gross_amount": "1500.00",
    }]}, headers=headers).json()
    assert batch["expense_ids"] == []
    payment_id = batch["payments"][0]["id"]

    pending = client.get("/employee-payments/unacknowledged?month=4&year=2026", headers=headers).json()
    assert [row["employee_name"] for row in pending] == ["Joana Souza"]

    other = client.post(f"/employee-payments/{payment_id}/acknowledge", json={}, headers=auth_headers(colleague, org))
    assert other.status_code == 403

    ack = client.post(f"/employee-payments/{payment_id}/acknowledge", json={"notes": "Recebido"},
                      headers={**auth_headers(worker, org), "X-Forwarded-For": "10.0.0.7, 10.0.0.1"})
    assert ack.status_code == 201
    assert ack.json()["ip_address"] == "10.0.0.7"
    assert ack.json()["acknowledged_by"] == str(worker.id)

    again = client.post(f"/employee-payments/{payment_id}/acknowledge", json={}, headers=headers)
    assert again.status_code == 409
    assert client.get("/employee-payments/unacknowledged?month=4&year=2026", headers=headers).json() == []


def test_paying_every_payable_settles_the_payment(client, shop, bank_account_factory):
    org, _, headers = shop
    account = bank_account_factory(org, balance="5000.00")
    employee = _employee(client, headers)
    batch = client.post("/employee-payments/", json={"payments": [{
        "employee_id": employee["id"], "month": 5, "year": 2026,
        "salary_gross_amount": "1500.00", "bonus_gross_amount": "200.00",
    }]}, headers=headers).json()
    salary_id, bonus_id = batch["expense_ids"]

    client.post(f"/expenses/{salary_id}/pay", json={"bank_account_id": str(account.id)}, headers=headers)
    assert client.get("/employee-payments/?is_paid=true", headers=headers).json() == []

    client.post(f"/expenses/{bonus_id}/pay", json={"bank_account_id": str(account.id)}, headers=headers)
    paid = client.get("/employee-payments/?is_paid=true", headers=headers).json()
    assert [p["id"] for p in paid] == [batch["payments"][0]["id"]]
    assert paid[0]["paid_at"] is not None
