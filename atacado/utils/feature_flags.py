"""Feature flag helpers for the optional integrations."""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Dict, Literal, TypedDict, cast


FeatureFlagKey = Literal[
    "whatsapp_enabled",
    "fiscal_enabled",
    "investments_enabled",
    "loyalty_enabled",
]


class FeatureFlagValues(TypedDict):
    whatsapp_enabled: bool
    fiscal_enabled: bool
    investments_enabled: bool
    loyalty_enabled: bool


@dataclass(frozen=True)
class FeatureFlagDefinition:
    env_var: str
    default: bool


_FEATURE_FLAG_DEFINITIONS: Dict[FeatureFlagKey, FeatureFlagDefinition] = {
    "whatsapp_enabled": FeatureFlagDefinition("FEATURE_WHATSAPP_ENABLED", True),
    "fiscal_enabled": FeatureFlagDefinition("FEATURE_FISCAL_ENABLED", True),
    "investments_enabled": FeatureFlagDefinition("FEATURE_INVESTMENTS_ENABLED", True),
    "loyalty_enabled": FeatureFlagDefinition("FEATURE_LOYALTY_ENABLED", True),
}


def _normalize_bool(value: str | None, default: bool = True) -> bool:
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in {"", "0", "false", "no", "off"}:
        return False
    if normalized in {"1", "true", "yes", "on"}:
        return True
    return default


@lru_cache(maxsize=None)
def get_feature_flags() -> FeatureFlagValues:
    """Return the cached feature flag state sourced from the environment."""
    values: Dict[FeatureFlagKey, bool] = {}
    for key, definition in _FEATURE_FLAG_DEFINITIONS.items():
        values[key] = _normalize_bool(os.getenv(definition.env_var), default=definition.default)
    return cast(FeatureFlagValues, values)


def is_feature_enabled(flag: FeatureFlagKey) -> bool:
    return get_feature_flags()[flag]


def whatsapp_feature_enabled() -> bool:
    """Toggle outbound WhatsApp messages and the /whatsapp surface."""
    return is_feature_enabled("whatsapp_enabled")


def fiscal_feature_enabled() -> bool:
    """Toggle NF-e/NFC-e emission."""
    return is_feature_enabled("fiscal_enabled")


def investments_feature_enabled() -> bool:
    return is_feature_enabled("investments_enabled")


def loyalty_feature_enabled() -> bool:
    return is_feature_enabled("loyalty_enabled")


def refresh_feature_flag_cache() -> None:
    """Invalidate cached feature flag values (useful for tests)."""
    get_feature_flags.cache_clear()
