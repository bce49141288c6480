"""
Audit logging helpers and enums.

Persists normalized audit records for organization changes and every
financial state change.
"""
from __future__ import annotations

import logging
import uuid
from enum import Enum
from typing import Any, Optional, Dict
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from atacado.db import schemas
from atacado.db.repositories import audits as audit_repo

logger = logging.getLogger(__name__)


class AuditAction(str, Enum):
    # Organization
    ORGANIZATION_CREATE = "organization_create"
    ORGANIZATION_UPDATE = "organization_update"
    ORGANIZATION_DELETE = "organization_delete"
    # Membership
    MEMBER_ADD = "member_add"
    MEMBER_REMOVE = "member_remove"
    MEMBER_ROLE_CHANGE = "member_role_change"
    # Customers
    CUSTOMER_CREDIT_CHANGE = "customer_credit_change"
    CUSTOMER_UNBLOCK = "customer_unblock"
    CREDIT_AUDIT_FIX = "credit_audit_fix"
    # Orders
    ORDER_CREATE = "order_create"
    ORDER_STATUS_CHANGE = "order_status_change"
    ORDER_CANCEL = "order_cancel"
    # Boletos
    BOLETO_CREATE = "boleto_create"
    BOLETO_PAY = "boleto_pay"
    BOLETO_CANCEL = "boleto_cancel"
    BOLETO_REVERT = "boleto_revert"
    BOLETO_DELETE = "boleto_delete"
    BOLETO_OVERDUE_SWEEP = "boleto_overdue_sweep"
    # Receivables / cards / bank
    RECEIVABLE_CREATE = "receivable_create"
    RECEIVABLE_RECEIVE = "receivable_receive"
    CARD_BATCH_CONFIRM = "card_batch_confirm"
    BANK_TRANSFER = "bank_transfer"
    MANUAL_TRANSACTION = "manual_transaction"
    # Expenses / payroll
    EXPENSE_PAY = "expense_pay"
    PAYROLL_CREATE = "payroll_create"
    PAYROLL_ACKNOWLEDGE = "payroll_acknowledge"
    # Loyalty
    POINTS_ADJUST = "points_adjust"
    REDEMPTION_CREATE = "redemption_create"
    REDEMPTION_APPROVE = "redemption_approve"
    REDEMPTION_REJECT = "redemption_reject"
    REDEMPTION_DELIVER = "redemption_deliver"
    REDEMPTION_CANCEL = "redemption_cancel"
    REFERRAL_CREATE = "referral_create"
    # Investments
    DEPOSIT_REVIEW = "deposit_review"
    WITHDRAWAL_REVIEW = "withdrawal_review"
    # Fiscal
    INVOICE_EMIT = "invoice_emit"
    INVOICE_CANCEL = "invoice_cancel"
    # Coupons
    COUPON_CREATE = "coupon_create"
    COUPON_UPDATE = "coupon_update"


class AuditStatus(str, Enum):
    SUCCESS = "success"
    FAILURE = "failure"


def log(
    db: Session,
    *,
    action: AuditAction | str,
    status: AuditStatus | str = AuditStatus.SUCCESS,
    target_type: str,
    target_id: Optional[uuid.UUID] = None,
    actor_user_id: Optional[uuid.UUID] = None,
    organization_id: Optional[uuid.UUID] = None,
    metadata: Optional[Dict[str, Any]] = None,
):
    """Central audit logging helper.

    ``actor_user_id`` is None for scheduled jobs.
    """
    # Persist plain string values, not Enum reprs
    action_value = action.value if isinstance(action, AuditAction) else str(action)
    status_value = status.value if isinstance(status, AuditStatus) else str(status)
    audit_log = schemas.AuditLogCreate(
        action_type=action_value,
        status=status_value,
        target_type=target_type,
        target_id=target_id,
        metadata=metadata or {},
    )
    return audit_repo.create_audit_log(
        db,
        audit_log=audit_log,
        actor_user_id=actor_user_id,
        organization_id=organization_id,
    )


def log_safely(db: Session, **kwargs) -> None:
    """Best-effort variant for routes: a failed audit never fails the request."""
    try:
        log(db, **kwargs)
    except SQLAlchemyError:
        db.rollback()
        logger.warning("audit_log_failed action=%s target=%s", kwargs.get("action"), kwargs.get("target_id"), exc_info=True)


__all__ = ["AuditAction", "AuditStatus", "log", "log_safely"]
