import uuid

import pytest

from atacado.db import models
from atacado.services import plugnotas
from atacado.utils.feature_flags import refresh_feature_flag_cache

_AUTHORIZED = {
    "id": "pn-123",
    "status": "autorizado",
    "numero": "1001",
    "serie": "1",
    "chaveAcesso": "1724" + "0" * 40,
    "protocolo": "317240000000001",
    "dataEmissao": "2026-10-17T13:00:00Z",
    "xml": "https://files.test/1001.xml",
    "danfe": "https://files.test/1001.pdf",
}


@pytest.fixture
def gateway(monkeypatch, fake_http, fake_response):
    http = fake_http({
        ("POST", "/nfe"): fake_response(200, _AUTHORIZED),
        ("POST", "/nfce"): fake_response(400, {"message": "Rejeição: CPF inválido"}),
        ("POST", "/cancelamento"): fake_response(200, {"status": "cancelado"}),
        ("GET", "/xml"): fake_response(200, {"xml": "<nfeProc versao=\"4.00\"><NFe/></nfeProc>"}),
        ("GET", "/pdf"): fake_response(200, {"pdf": "JVBERi0xLjQK"}),
    })
    monkeypatch.setattr(plugnotas, "_plugnotas_client", plugnotas.PlugNotasClient(api_key="test", session=http))
    return http


def _invoice(**fields):
    payload = {
        "invoice_type": "NFE",
        "customer_name": "Mercearia Central",
        "customer_cpf_cnpj": "12.345.678/0001-99",
        "payment_method": "PIX",
        "items": [{"product_name": "Pão de Queijo 1kg", "quantity": 3, "unit_value": "20.00"}],
    }
    payload.update(fields)
    return payload


def test_emit_authorized_invoice(client, shop, gateway):
    _, _, headers = shop
    response = client.post("/invoices/", json=_invoice(discount="5.00"), headers=headers)
    assert response.status_code == 201
    invoice = response.json()
    assert invoice["status"] == "AUTHORIZED"
    assert invoice["gateway_id"] == "pn-123"
    assert invoice["invoice_number"] == "1001"
    assert invoice["total_value"] == 55.0
    assert invoice["items"][0]["ncm"] == plugnotas.DEFAULT_NCM

    sent = gateway.calls[0]
    assert sent["url"].endswith("/nfe")
    assert sent["headers"]["x-api-key"] == "test"
    assert sent["json"]["idIntegracao"] == invoice["id"]


def test_gateway_rejection_keeps_error_row(client, db, shop, gateway):
    _, _, headers = shop
    response = client.post("/invoices/", json=_invoice(invoice_type="NFCE"), headers=headers)
    assert response.status_code == 502
    detail = response.json()["detail"]
    assert detail["error"] == "Rejeição: CPF inválido"

    stored = db.query(models.FiscalInvoice).one()
    assert stored.status == "ERROR"
    assert stored.error_message == "Rejeição: CPF inválido"


def test_missing_fields_are_rejected(client, shop, gateway):
    _, _, headers = shop
    assert client.post("/invoices/", json=_invoice(items=[]), headers=headers).status_code == 400
    assert gateway.calls == []


def test_cancel_requires_reason_and_authorized_status(client, shop, gateway):
    _, _, headers = shop
    invoice = client.post("/invoices/", json=_invoice(), headers=headers).json()

    short = client.post(f"/invoices/{invoice['id']}/cancel", json={"reason": "erro"}, headers=headers)
    assert short.status_code == 422

    reason = "Pedido cancelado pelo cliente"
    cancelled = client.post(f"/invoices/{invoice['id']}/cancel", json={"reason": reason}, headers=headers).json()
    assert cancelled["status"] == "CANCELLED"
    assert gateway.calls[-1]["json"] == {"motivo": reason}

    again = client.post(f"/invoices/{invoice['id']}/cancel", json={"reason": reason}, headers=headers)
    assert again.status_code == 400


def test_download_xml_and_danfe(client, shop, gateway, fake_response):
    _, _, headers = shop
    invoice = client.post("/invoices/", json=_invoice(), headers=headers).json()

    xml = client.get(f"/invoices/{invoice['id']}/xml", headers=headers).json()
    assert xml["kind"] == "xml"
    assert xml["content"].startswith("<nfeProc")
    assert xml["url"] == "https://files.test/1001.xml"
    assert gateway.calls[-1]["url"].endswith("/nfe/pn-123/xml")

    pdf = client.get(f"/invoices/{invoice['id']}/pdf", headers=headers).json()
    assert pdf["content"] == "JVBERi0xLjQK"
    assert pdf["url"] == "https://files.test/1001.pdf"

    gateway.routes[("GET", "/pdf")] = fake_response(500, {"message": "Documento indisponível"})
    failed = client.get(f"/invoices/{invoice['id']}/pdf", headers=headers)
    assert failed.status_code == 502
    assert failed.json()["detail"]["error"] == "Documento indisponível"


def test_rejected_invoice_has_no_documents(client, db, shop, gateway):
    _, _, headers = shop
    client.post("/invoices/", json=_invoice(invoice_type="NFCE"), headers=headers)
    stored = db.query(models.FiscalInvoice).one()
    calls = len(gateway.calls)

    assert client.get(f"/invoices/{stored.id}/xml", headers=headers).status_code == 400
    assert len(gateway.calls) == calls
    assert client.get(f"/invoices/{uuid.uuid4()}/xml", headers=headers).status_code == 404


def test_daily_report_splits_retail_and_registered(client, shop, customer_factory, product_factory, gateway):
    org, _, headers = shop
    customer = customer_factory(org)
    product = product_factory(org, code="PQ1")
    wholesale = client.post("/orders/", json={
        "customer_id": str(customer.id), "payment_method": "CASH",
        "items": [{"product_id": str(product.id), "quantity": 5}],
    }, headers=headers).json()
    client.post("/orders/", json={
        "casual_customer_name": "Cliente Avulso", "order_type": "RETAIL", "payment_method": "PIX",
        "items": [{"product_id": str(product.id), "quantity": 2}],
    }, headers=headers)

    report = client.get("/invoices/daily-report", headers=headers).json()
    assert [o["order_number"] for o in report["registered_orders"]] == [wholesale["order_number"]]
    assert [o["customer_name"] for o in report["retail_orders"]] == ["Cliente Avulso"]
    assert report["retail_total"] == 50.0
    assert report["registered_total"] == 100.0
    assert report["retail_products"][0]["product_code"] == "PQ1"

    client.post("/invoices/", json=_invoice(order_id=wholesale["id"]), headers=headers)
    report = client.get("/invoices/daily-report", headers=headers).json()
    assert report["registered_orders"] == []


def test_invoices_unavailable_when_disabled(client, shop, monkeypatch):
    _, _, headers = shop
    monkeypatch.setenv("FEATURE_FISCAL_ENABLED", "false")
    refresh_feature_flag_cache()
    assert client.get("/invoices/", headers=headers).status_code == 503
