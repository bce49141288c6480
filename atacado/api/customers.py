"""
Customer API endpoints.

Customer CRUD, credit limit accounting, manual unblock, WhatsApp reminder
settings and per-customer product prices.
"""
from typing import List, Optional
import uuid

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from atacado import audit
from atacado.api.deps import (
    OrgAccess,
    get_manage_access,
    get_org_access,
    get_staff_access,
    get_write_access,
    translate_service_errors,
)
from atacado.db import models, schemas
from atacado.db.database import get_db
from atacado.db.repositories import catalog as catalog_repo
from atacado.db.repositories import customers as customer_repo
from atacado.services import customer_credit, loyalty_service

router = APIRouter(prefix="/customers", tags=["customers"])


def _customer_or_404(db: Session, access: OrgAccess, customer_id: uuid.UUID) -> models.Customer:
    access.ensure_customer_visible(customer_id)
    customer = customer_repo.get_customer(db, access.organization_id, customer_id)
    if customer is None:
        raise HTTPException(status_code=404, detail="Customer not found")
    return customer


@router.post("/", response_model=schemas.Customer, status_code=status.HTTP_201_CREATED)
def create_customer(
    payload: schemas.CustomerCreate,
    db: Session = Depends(get_db),
    access: OrgAccess = Depends(get_write_access),
):
    referred_by_id = payload.referred_by_id
    customer = customer_repo.create_customer(
        db, access.organization_id, payload.model_copy(update={"referred_by_id": None})
    )
    if referred_by_id is not None:
        with translate_service_errors():
            loyalty_service.create_referral(db, access.organization_id, referred_by_id, customer.id)
        db.refresh(customer)
    return customer


@router.get("/", response_model=List[schemas.Customer])
def list_customers(
    search: Optional[str] = None,
    is_active: Optional[bool] = True,
    skip: int = 0,
    limit: int = 100,
    db: Session = Depends(get_db),
    access: OrgAccess = Depends(get_staff_access),
):
    return customer_repo.list_customers(
        db, access.organization_id, search=search, is_active=is_active, skip=skip, limit=min(limit, 500)
    )


@router.post("/credit-audit", response_model=schemas.CreditAuditResult)
def credit_audit(
    payload: schemas.CreditAuditRequest,
    db: Session = Depends(get_db),
    access: OrgAccess = Depends(get_manage_access),
):
    """Recompute expected available credit for every customer with a limit."""
    result = customer_credit.run_credit_audit(db, access.organization_id, auto_fix=payload.auto_fix)
    if result["fixed"]:
        audit.log_safely(
            db,
            action=audit.AuditAction.CREDIT_AUDIT_FIX,
            target_type="organization",
            target_id=access.organization_id,
            actor_user_id=access.user.id,
            organization_id=access.organization_id,
            metadata={"fixed": result["fixed"], "customers": [str(e["customer_id"]) for e in result["entries"]]},
        )
    return result


@router.get("/{customer_id}", response_model=schemas.Customer)
def get_customer(
    customer_id: uuid.UUID,
    db: Session = Depends(get_db),
    access: OrgAccess = Depends(get_org_access),
):
    return _customer_or_404(db, access, customer_id)


@router.put("/{customer_id}", response_model=schemas.Customer)
def update_customer(
    customer_id: uuid.UUID,
    payload: schemas.CustomerUpdate,
    db: Session = Depends(get_db),
    access: OrgAccess = Depends(get_write_access),
):
    customer = _customer_or_404(db, access, customer_id)
    old_limit = float(customer.credit_limit or 0)
    old_available = float(customer.available_credit or 0)
    customer = customer_repo.update_customer(db, customer, payload)
    if float(customer.credit_limit or 0) != old_limit:
        audit.log_safely(
            db,
            action=audit.AuditAction.CUSTOMER_CREDIT_CHANGE,
            target_type="customer",
            target_id=customer.id,
            actor_user_id=access.user.id,
            organization_id=access.organization_id,
            metadata={
                "old_limit": old_limit,
                "new_limit": float(customer.credit_limit),
                "old_available": old_available,
                "new_available": float(customer.available_credit),
            },
        )
    return customer


@router.delete("/{customer_id}", response_model=schemas.Customer)
def deactivate_customer(
    customer_id: uuid.UUID,
    db: Session = Depends(get_db),
    access: OrgAccess = Depends(get_write_access),
):
    customer = _customer_or_404(db, access, customer_id)
    return customer_repo.deactivate_customer(db, customer)


@router.get("/{customer_id}/credit", response_model=schemas.CustomerCredit)
def get_credit(
    customer_id: uuid.UUID,
    db: Session = Depends(get_db),
    access: OrgAccess = Depends(get_org_access),
):
    customer = _customer_or_404(db, access, customer_id)
    return customer_credit.credit_summary(db, customer)


@router.post("/{customer_id}/unblock", response_model=schemas.CustomerCredit)
def toggle_unblock(
    customer_id: uuid.UUID,
    db: Session = Depends(get_db),
    access: OrgAccess = Depends(get_manage_access),
):
    """Toggle ``manually_unblocked`` so a customer with overdue debt can keep ordering."""
    customer = _customer_or_404(db, access, customer_id)
    customer.manually_unblocked = not customer.manually_unblocked
    db.commit()
    db.refresh(customer)
    audit.log_safely(
        db,
        action=audit.AuditAction.CUSTOMER_UNBLOCK,
        target_type="customer",
        target_id=customer.id,
        actor_user_id=access.user.id,
        organization_id=access.organization_id,
        metadata={"manually_unblocked": customer.manually_unblocked},
    )
    return customer_credit.credit_summary(db, customer)


@router.put("/{customer_id}/reminders", response_model=schemas.Customer)
def update_reminders(
    customer_id: uuid.UUID,
    payload: schemas.ReminderSettings,
    db: Session = Depends(get_db),
    access: OrgAccess = Depends(get_write_access),
):
    customer = _customer_or_404(db, access, customer_id)
    customer.reminders_enabled = payload.enabled
    customer.reminder_interval_days = payload.custom_interval_days
    customer.reminder_message = payload.custom_message or None
    db.commit()
    db.refresh(customer)
    return customer


@router.get("/{customer_id}/prices", response_model=List[schemas.CustomerPrice])
def list_prices(
    customer_id: uuid.UUID,
    db: Session = Depends(get_db),
    access: OrgAccess = Depends(get_org_access),
):
    _customer_or_404(db, access, customer_id)
    prices = customer_repo.list_custom_prices(db, customer_id)
    if access.is_customer:
        prices = [p for p in prices if p.is_visible]
    return prices


@router.put("/{customer_id}/prices/{product_id}", response_model=schemas.CustomerPrice)
def set_price(
    customer_id: uuid.UUID,
    product_id: uuid.UUID,
    payload: schemas.CustomerPriceSet,
    db: Session = Depends(get_db),
    access: OrgAccess = Depends(get_write_access),
):
    _customer_or_404(db, access, customer_id)
    if catalog_repo.get_product(db, access.organization_id, product_id) is None:
        raise HTTPException(status_code=404, detail="Product not found")
    return customer_repo.set_custom_price(db, customer_id, product_id, payload)


@router.delete("/{customer_id}/prices/{product_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_price(
    customer_id: uuid.UUID,
    product_id: uuid.UUID,
    db: Session = Depends(get_db),
    access: OrgAccess = Depends(get_write_access),
):
    _customer_or_404(db, access, customer_id)
    row = customer_repo.get_custom_price(db, customer_id, product_id)
    if row is None:
        raise HTTPException(status_code=404, detail="Custom price not found")
    db.delete(row)
    db.commit()
