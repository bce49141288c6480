import pytest
import requests

from atacado.services.evolution_api import EvolutionClient, EvolutionConfig, format_whatsapp_number


@pytest.fixture
def config(monkeypatch):
    monkeypatch.setenv("EVOLUTION_API_URL", "http://evolution.local/")
    monkeypatch.setenv("EVOLUTION_INSTANCE_NAME", "loja")
    monkeypatch.setenv("EVOLUTION_API_KEY", "secret")
    return EvolutionConfig()


@pytest.mark.parametrize("raw,expected", [
    ("(63) 99999-7942", "5563999997942"),
    ("5563999997942", "5563999997942"),
    ("63 3312-0000", "556333120000"),
])
def test_format_whatsapp_number(raw, expected):
    assert format_whatsapp_number(raw) == expected


def test_config_strips_trailing_slash(config):
    assert config.api_url == "http://evolution.local"
    assert config.is_configured() is True


def test_connection_state_top_level_and_nested(config, fake_http, fake_response):
    top = fake_http({("GET", "/instance/connectionState/loja"): fake_response(200, {"state": "open"})})
    nested = fake_http({
        ("GET", "/instance/connectionState/loja"): fake_response(200, {"instance": {"state": "connecting", "owner": "5563"}}),
    })
    assert EvolutionClient(config, top).get_connection_state()["connected"] is True
    state = EvolutionClient(config, nested).get_connection_state()
    assert state == {"success": True, "state": "connecting", "connected": False, "phone": "5563"}


def test_api_key_header_sent(config, fake_http, fake_response):
    http = fake_http({("GET", "/instance/fetchInstances"): fake_response(200, [])})
    assert EvolutionClient(config, http).fetch_instances() == {"success": True, "instances": []}
    assert http.calls[0]["headers"]["apikey"] == "secret"


def test_send_text_requires_connection(config, fake_http, fake_response):
    http = fake_http({("GET", "/instance/connectionState/loja"): fake_response(200, {"state": "close"})})
    result = EvolutionClient(config, http).send_text("63999990000", "oi")
    assert result == {"success": False, "error": "WhatsApp não está conectado"}
    assert all(call["method"] == "GET" for call in http.calls)


def test_send_text_invalid_number_message(config, fake_http, fake_response):
    http = fake_http({
        ("GET", "/instance/connectionState/loja"): fake_response(200, {"state": "open"}),
        ("POST", "/message/sendText/loja"): fake_response(400, {"message": ["Invalid number"]}),
    })
    result = EvolutionClient(config, http).send_text("123", "oi")
    assert result == {"success": False, "error": "Número de telefone inválido: 123"}


def test_unreachable_api(config):
    class _Down:
        def get(self, *args, **kwargs):
            raise requests.ConnectionError("refused")

    result = EvolutionClient(config, _Down()).fetch_instances()
    assert result == {"success": False, "error": "Evolution API não está acessível"}


def test_create_instance_falls_back_to_connect_when_it_exists(config, fake_http, fake_response):
    http = fake_http({
        ("GET", "/instance/connectionState/loja"): fake_response(404, {"message": "not found"}),
        ("POST", "/instance/create"): fake_response(409, {"message": "Instance already in use"}),
        ("GET", "/instance/connect/loja"): fake_response(200, {"base64": "data:image/png;base64,AAA"}),
    })
    result = EvolutionClient(config, http).create_instance()
    assert result == {"success": True, "qrcode": "data:image/png;base64,AAA"}


def test_create_instance_short_circuits_when_connected(config, fake_http, fake_response):
    http = fake_http({("GET", "/instance/connectionState/loja"): fake_response(200, {"state": "open"})})
    assert EvolutionClient(config, http).create_instance() == {"success": True, "already_connected": True}


def test_disconnect_deletes_even_if_logout_fails(config, fake_http, fake_response):
    http = fake_http({("DELETE", "/instance/delete/loja"): fake_response(200, {})})
    assert EvolutionClient(config, http).disconnect() == {"success": True}
    assert [c["url"].rsplit("/", 2)[-2] for c in http.calls] == ["logout", "delete"]
