from decimal import Decimal

import pytest

from atacado.services.plugnotas import (
    DEFAULT_CFOP,
    DEFAULT_NCM,
    CompanyConfig,
    PlugNotasClient,
    PlugNotasError,
    build_invoice_payload,
    payment_form,
)


@pytest.mark.parametrize("method,code", [
    ("PIX", "99"), ("CREDIT_CARD", "03"), ("DEBIT", "03"), ("CASH", "01"), ("BOLETO", "99"), (None, "99"),
])
def test_payment_form(method, code):
    assert payment_form(method) == code


@pytest.fixture
def company(monkeypatch):
    monkeypatch.setenv("COMPANY_CNPJ", "12345678000199")
    monkeypatch.setenv("COMPANY_NAME", "Atacado Gurupi LTDA")
    monkeypatch.setenv("COMPANY_CEP", "77400-000")
    return CompanyConfig()


def _payload(company, **overrides):
    kwargs = dict(
        invoice_type="NFE",
        integration_id="INV-1",
        customer={"name": "Mercearia", "cpf_cnpj": "12.345.678/0001-99", "address": "Rua 1", "city": "Gurupi"},
        items=[{"description": "Pão de Queijo", "quantity": 2, "unit_value": Decimal("20.00")}],
        total=Decimal("40.00"),
        payment_method="PIX",
        company=company,
    )
    kwargs.update(overrides)
    return build_invoice_payload(**kwargs)


def test_payload_recipient_and_items(company):
    payload = _payload(company)
    assert payload["idIntegracao"] == "INV-1"
    assert payload["presencial"] is False
    assert payload["destinatario"]["cpfCnpj"] == "12345678000199"
    assert payload["destinatario"]["endereco"]["cidade"] == "Gurupi"
    item = payload["itens"][0]
    assert (item["ncm"], item["cfop"], item["valor"], item["quantidade"]) == (DEFAULT_NCM, DEFAULT_CFOP, 20.0, 2)
    assert payload["pagamentos"] == [{"forma": "99", "valor": 40.0}]
    assert payload["emitente"]["endereco"]["cep"] == "77400000"


def test_nfce_is_presencial_and_anonymous_recipient(company):
    payload = _payload(company, invoice_type="NFCE", customer={"name": "Consumidor"}, payment_method="CASH",
                       notes="Venda balcão")
    assert payload["presencial"] is True
    assert payload["destinatario"] == {"nome": "Consumidor"}
    assert payload["pagamentos"][0]["forma"] == "01"
    assert payload["informacoesAdicionais"] == {"informacoesComplementares": "Venda balcão"}


def test_client_posts_to_nfe_endpoint(fake_http, fake_response):
    http = fake_http({("POST", "/nfe"): fake_response(200, {"documents": [{"id": "abc"}]})})
    client = PlugNotasClient("https://plugnotas.test/", "key", http)
    assert client.emit_nfe({"x": 1}) == {"documents": [{"id": "abc"}]}
    call = http.calls[0]
    assert call["url"] == "https://plugnotas.test/nfe"
    assert call["headers"]["x-api-key"] == "key"


def test_client_raises_with_gateway_message(fake_http, fake_response):
    http = fake_http({("POST", "/nfce"): fake_response(422, {"error": {"message": "CNPJ inválido"}})})
    with pytest.raises(PlugNotasError) as exc:
        PlugNotasClient("https://plugnotas.test", "key", http).emit_nfce({})
    assert exc.value.message == "CNPJ inválido"
    assert exc.value.status_code == 422


def test_client_error_without_json_body(fake_http, fake_response):
    http = fake_http({("GET", "/nfe/abc"): fake_response(500, None, text="boom")})
    with pytest.raises(PlugNotasError, match="Erro na requisição: 500"):
        PlugNotasClient("https://plugnotas.test", "key", http).get_invoice("abc")
