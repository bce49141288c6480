from datetime import timedelta
from decimal import Decimal

from atacado.db import models
from atacado.utils.clock import brasilia_today


def test_transfer_moves_balance_with_two_ledger_lines(client, db, shop, bank_account_factory):
    org, _, headers = shop
    main = bank_account_factory(org, balance="500.00")
    cash = bank_account_factory(org, name="Caixa")

    result = client.post("/bank-accounts/transfer", json={
        "from_account_id": str(main.id), "to_account_id": str(cash.id), "amount": "120.00",
    }, headers=headers).json()
    assert result["from_balance"] == 380.0
    assert result["to_balance"] == 120.0

    lines = db.query(models.Transaction).filter_by(type="TRANSFER").all()
    assert sorted(line.amount for line in lines) == [Decimal("-120.00"), Decimal("120.00")]


def test_transfer_rejections(client, shop, bank_account_factory):
    org, _, headers = shop
    main = bank_account_factory(org, balance="50.00")
    cash = bank_account_factory(org, name="Caixa")

    same = client.post("/bank-accounts/transfer", json={
        "from_account_id": str(main.id), "to_account_id": str(main.id), "amount": "10.00",
    }, headers=headers)
    assert same.status_code == 400

    zero = client.post("/bank-accounts/transfer", json={
        "from_account_id": str(main.id), "to_account_id": str(cash.id), "amount": "0",
    }, headers=headers)
    assert zero.status_code == 400

    short = client.post("/bank-accounts/transfer", json={
        "from_account_id": str(main.id), "to_account_id": str(cash.id), "amount": "80.00",
    }, headers=headers)
    assert short.status_code == 400
    assert short.json()["detail"]["balance"] == 50.0


def test_manual_transactions_and_listing(client, db, shop, bank_account_factory):
    org, _, headers = shop
    account = bank_account_factory(org, balance="100.00")

    income = client.post("/transactions/", json={
        "bank_account_id": str(account.id), "type": "INCOME", "amount": "40.00", "description": "Venda balcão",
    }, headers=headers)
    assert income.status_code == 201
    client.post("/transactions/", json={
        "bank_account_id": str(account.id), "type": "EXPENSE", "amount": "15.00", "description": "Gás",
    }, headers=headers)

    db.refresh(account)
    assert account.balance == Decimal("125.00")
    listed = client.get(f"/transactions/?bank_account_id={account.id}", headers=headers).json()
    assert {row["description"] for row in listed} == {"Venda balcão", "Gás"}
    assert client.get("/transactions/?type=EXPENSE", headers=headers).json()[0]["amount"] == 15.0


def test_only_managers_open_bank_accounts(client, shop, user_factory, membership_factory, auth_headers):
    org, _, headers = shop
    editor = user_factory("editor@atacado.test")
    membership_factory(org, editor, role="editor")
    payload = {"name": "Caixa", "balance": "10.00"}
    assert client.post("/bank-accounts/", json=payload, headers=auth_headers(editor, org)).status_code == 403

    created = client.post("/bank-accounts/", json=payload, headers=headers).json()
    assert created["balance"] == 10.0
    deactivated = client.delete(f"/bank-accounts/{created['id']}", headers=headers).json()
    assert deactivated["is_active"] is False


def test_category_seed_is_idempotent(client, shop):
    _, _, headers = shop
    first = client.post("/expense-categories/seed", headers=headers).json()
    assert "Taxa de Cartão" in {c["name"] for c in first}
    assert client.post("/expense-categories/seed", headers=headers).json() == []
    duplicate = client.post("/expense-categories/", json={"name": "Aluguel"}, headers=headers)
    assert duplicate.status_code == 409


def test_pay_expense_debits_amount_plus_fee(client, db, shop, bank_account_factory):
    org, _, headers = shop
    account = bank_account_factory(org, balance="1000.00")
    category = client.post("/expense-categories/", json={"name": "Aluguel"}, headers=headers).json()
    expense = client.post("/expenses/", json={
        "description": "Aluguel galpão", "amount": "800.00", "fee_amount": "2.50",
        "category_id": category["id"], "due_date": brasilia_today().isoformat(),
    }, headers=headers).json()
    assert expense["status"] == "PENDING"
    assert expense["competence_date"] == brasilia_today().isoformat()

    assert client.post(f"/expenses/{expense['id']}/pay", json={}, headers=headers).status_code == 400
    paid = client.post(f"/expenses/{expense['id']}/pay", json={"bank_account_id": str(account.id)},
                       headers=headers).json()
    assert paid["status"] == "PAID"

    db.refresh(account)
    assert account.balance == Decimal("197.50")
    movement = db.query(models.Transaction).one()
    assert movement.type == "EXPENSE"
    assert movement.amount == Decimal("802.50")
    assert movement.category == "Aluguel"

    assert client.put(f"/expenses/{expense['id']}", json={"amount": "1.00"}, headers=headers).status_code == 400
    assert client.delete(f"/expenses/{expense['id']}", headers=headers).status_code == 400


def test_dre_report(client, shop, customer_factory, product_factory):
    org, _, headers = shop
    consumer = customer_factory(org, name="Balcão", customer_type="CONSUMIDOR_FINAL")
    product = product_factory(org)
    client.post("/orders/", json={
        "customer_id": str(consumer.id), "order_type": "RETAIL", "payment_method": "PIX",
        "items": [{"product_id": str(product.id), "quantity": 4}],
    }, headers=headers)
    client.post("/expense-categories/seed", headers=headers)
    cheese = next(c for c in client.get("/expense-categories/", headers=headers).json() if c["name"] == "Queijo")
    client.post("/expenses/", json={
        "description": "Queijo minas", "amount": "30.00", "category_id": cheese["id"],
        "due_date": brasilia_today().isoformat(),
    }, headers=headers)

    today = brasilia_today().isoformat()
    report = client.get(f"/reports/dre?start_date={today}&end_date={today}", headers=headers).json()
    assert report["revenue"]["order_count"] == 1
    assert report["revenue"]["net_revenue"] == 100.0
    assert report["revenue"]["received_amount"] == 100.0
    assert report["expenses"]["by_type"] == {"RAW_MATERIALS": 30.0}
    assert report["result"]["gross_profit"] == 70.0
    assert report["result"]["net_income"] == 70.0
    assert report["result"]["net_margin"] == 70.0

    assert client.get("/reports/dre", headers=headers).status_code == 400


def _pending_expense(db, org, amount, due_in_days):
    db.add(models.Expense(
        organization_id=org.id, description=f"Despesa {amount}", amount=Decimal(amount),
        due_date=brasilia_today() + timedelta(days=due_in_days), status="PENDING",
    ))


def _open_boleto(db, org, customer, number, amount, due_in_days):
    db.add(models.Boleto(
        organization_id=org.id, boleto_number=number, customer_id=customer.id, amount=Decimal(amount),
        due_date=brasilia_today() + timedelta(days=due_in_days),
        status="OVERDUE" if due_in_days < 0 else "PENDING",
    ))


def test_cash_flow_projects_balance_day_by_day(client, db, shop, customer_factory, product_factory,
                                               bank_account_factory):
    org, _, headers = shop
    customer = customer_factory(org)
    product = product_factory(org)
    bank_account_factory(org, balance="1200.00")
    today = brasilia_today()

    client.post("/orders/", json={
        "customer_id": str(customer.id), "payment_method": "CREDIT_CARD",
        "items": [{"product_id": str(product.id), "quantity": 10}],
    }, headers=headers)
    db.add(models.Receivable(
        organization_id=org.id, customer_id=customer.id, description="Venda fiado",
        amount=Decimal("300.00"), due_date=today + timedelta(days=5), status="PENDING",
    ))
    _open_boleto(db, org, customer, "BOL00000201", "90.00", 10)
    _open_boleto(db, org, customer, "BOL00000202", "50.00", -2)
    _pending_expense(db, org, "800.00", 3)
    _pending_expense(db, org, "100.00", -1)
    db.commit()

    report = client.get("/reports/cash-flow?days=30", headers=headers).json()
    assert report["opening_balance"] == 1200.0
    assert report["expected_inflow"] == 590.29
    assert report["expected_outflow"] == 900.0
    assert report["projected_balance"] == 890.29
    assert report["lowest_balance"] == 300.0
    assert report["overdue_receivables"] == 50.0
    assert [(d["day"], d["balance"]) for d in report["days"]] == [
        (today.isoformat(), 1100.0),
        ((today + timedelta(days=3)).isoformat(), 300.0),
        ((today + timedelta(days=5)).isoformat(), 600.0),
        ((today + timedelta(days=10)).isoformat(), 690.0),
        ((today + timedelta(days=30)).isoformat(), 890.29),
    ]

    short = client.get("/reports/cash-flow?days=7", headers=headers).json()
    assert short["projected_balance"] == 600.0
    assert client.get("/reports/cash-flow?days=0", headers=headers).status_code == 400


def test_financial_alerts_most_severe_first(client, db, shop, customer_factory, bank_account_factory):
    org, _, headers = shop
    customer = customer_factory(org)
    bank_account_factory(org, name="Caixa", balance="400.00")
    bank_account_factory(org, name="Reserva", balance="5000.00")
    _open_boleto(db, org, customer, "BOL00000203", "50.00", -2)
    _pending_expense(db, org, "800.00", 3)
    _pending_expense(db, org, "100.00", -1)
    db.commit()

    alerts = client.get("/reports/alerts", headers=headers).json()
    assert [a["alert_type"] for a in alerts] == [
        "LOW_BALANCE", "OVERDUE_PAYMENT", "OVERDUE_RECEIVABLE", "UPCOMING_PAYMENT",
    ]
    low = alerts[0]
    assert low["severity"] == "CRITICAL"
    assert "Caixa" in low["message"]
    assert alerts[1]["trigger_value"] == 100.0
    assert alerts[2]["count"] == 1
    assert alerts[3]["severity"] == "MEDIUM"


def test_negative_projection_raises_a_critical_alert(client, db, shop, bank_account_factory):
    org, _, headers = shop
    bank_account_factory(org, balance="1500.00")
    _pending_expense(db, org, "2000.00", 20)
    db.commit()

    alerts = client.get("/reports/alerts", headers=headers).json()
    assert [a["alert_type"] for a in alerts] == ["NEGATIVE_PROJECTION"]
    assert alerts[0]["trigger_value"] == -500.0
