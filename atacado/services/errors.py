"""Domain exceptions raised by the services and translated by the routes."""
from typing import Any, Optional


class BusinessRuleError(ValueError):
    """A request that breaks a business rule (HTTP 400 unless overridden)."""

    status_code = 400

    def __init__(self, message: str, *, detail: Optional[Any] = None, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.detail = detail if detail is not None else message
        if status_code is not None:
            self.status_code = status_code


class ConflictError(BusinessRuleError):
    status_code = 409


class NotFoundError(LookupError):
    """Row missing or not visible in the caller's organization."""

    def __init__(self, message: str = "Not found"):
        super().__init__(message)
        self.message = message
