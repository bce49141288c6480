import pytest

from atacado.utils.feature_flags import (
    FeatureFlagKey,
    get_feature_flags,
    is_feature_enabled,
    refresh_feature_flag_cache,
)

_ENV_FLAG_MAPPING = {
    "FEATURE_WHATSAPP_ENABLED": "whatsapp_enabled",
    "FEATURE_FISCAL_ENABLED": "fiscal_enabled",
    "FEATURE_INVESTMENTS_ENABLED": "investments_enabled",
    "FEATURE_LOYALTY_ENABLED": "loyalty_enabled",
}


@pytest.fixture(autouse=True)
def reset_flags(monkeypatch):
    """Clear env + cached values for each test to avoid cross-contamination."""
    for env_name in _ENV_FLAG_MAPPING:
        monkeypatch.delenv(env_name, raising=False)
    refresh_feature_flag_cache()
    yield
    refresh_feature_flag_cache()


def test_get_feature_flags_defaults_true():
    assert get_feature_flags() == {
        "whatsapp_enabled": True,
        "fiscal_enabled": True,
        "investments_enabled": True,
        "loyalty_enabled": True,
    }


@pytest.mark.parametrize("env_name,flag_key", list(_ENV_FLAG_MAPPING.items()))
def test_individual_flag_disabled_via_env(monkeypatch, env_name: str, flag_key: FeatureFlagKey):
    monkeypatch.setenv(env_name, "false")
    refresh_feature_flag_cache()

    flags = get_feature_flags()
    assert flags[flag_key] is False
    assert is_feature_enabled(flag_key) is False


def test_values_are_cached_until_refresh(monkeypatch):
    assert is_feature_enabled("fiscal_enabled") is True
    monkeypatch.setenv("FEATURE_FISCAL_ENABLED", "0")
    assert is_feature_enabled("fiscal_enabled") is True
    refresh_feature_flag_cache()
    assert is_feature_enabled("fiscal_enabled") is False


def test_unrecognised_value_keeps_default(monkeypatch):
    monkeypatch.setenv("FEATURE_LOYALTY_ENABLED", "maybe")
    refresh_feature_flag_cache()
    assert is_feature_enabled("loyalty_enabled") is True
