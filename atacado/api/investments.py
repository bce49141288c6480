"""
Investment simulation endpoints.

Customers trade with their own investor profile; staff act on behalf of
a customer by passing ``customer_id`` and review deposits and
withdrawals.
"""
from typing import List, Optional
import uuid

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from atacado.api.deps import (
    OrgAccess,
    get_org_access,
    get_staff_access,
    get_write_access,
    require_feature,
    translate_service_errors,
)
from atacado.db import schemas
from atacado.db.database import get_db
from atacado.services import investment_service, notification_service

router = APIRouter(
    prefix="/investments",
    tags=["investments"],
    dependencies=[Depends(require_feature("investments_enabled"))],
)


def _investor(access: OrgAccess, customer_id: Optional[uuid.UUID]) -> uuid.UUID:
    """Customer whose investor data is read: staff name one, customers read their own."""
    target = access.customer_filter(customer_id)
    if target is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="customer_id is required")
    return target


@router.get("/companies", response_model=List[schemas.Company])
def list_companies(
    db: Session = Depends(get_db),
    access: OrgAccess = Depends(get_org_access),
):
    return investment_service.list_companies(db, access.organization_id)


@router.post("/companies", response_model=schemas.Company, status_code=status.HTTP_201_CREATED)
def create_company(
    payload: schemas.CompanyCreate,
    db: Session = Depends(get_db),
    access: OrgAccess = Depends(get_write_access),
):
    with translate_service_errors():
        return investment_service.create_company(db, access.organization_id, payload)


@router.get("/companies/{company_id}", response_model=schemas.Company)
def get_company(
    company_id: uuid.UUID,
    db: Session = Depends(get_db),
    access: OrgAccess = Depends(get_org_access),
):
    with translate_service_errors():
        return investment_service.get_company_or_404(db, access.organization_id, company_id)


@router.get("/profile", response_model=schemas.InvestorProfile)
def get_profile(
    customer_id: Optional[uuid.UUID] = None,
    db: Session = Depends(get_db),
    access: OrgAccess = Depends(get_org_access),
):
    target = _investor(access, customer_id)
    with translate_service_errors():
        profile = investment_service.get_profile(db, access.organization_id, target)
    db.commit()
    return profile


@router.get("/deposits", response_model=List[schemas.Deposit])
def list_deposits(
    customer_id: Optional[uuid.UUID] = None,
    status_filter: Optional[str] = Query(default=None, alias="status"),
    db: Session = Depends(get_db),
    access: OrgAccess = Depends(get_org_access),
):
    return investment_service.list_deposits(
        db, access.organization_id, customer_id=access.customer_filter(customer_id), status=status_filter
    )


@router.post("/deposits", response_model=schemas.Deposit, status_code=status.HTTP_201_CREATED)
def request_deposit(
    payload: schemas.DepositCreate,
    db: Session = Depends(get_db),
    access: OrgAccess = Depends(get_org_access),
):
    customer_id = access.acting_customer(payload.customer_id)
    with translate_service_errors():
        deposit = investment_service.request_deposit(db, access.organization_id, customer_id, payload.amount)
    notification_service.notify_managers_safely(
        db,
        access.organization_id,
        notification_service.EVENT_DEPOSIT_REQUESTED,
        "Novo depósito",
        f"Depósito de R$ {float(deposit.amount):.2f} aguardando aprovação.",
        metadata={"deposit_id": str(deposit.id)},
    )
    return deposit


@router.put("/deposits/{deposit_id}", response_model=schemas.Deposit)
def review_deposit(
    deposit_id: uuid.UUID,
    payload: schemas.ReviewAction,
    db: Session = Depends(get_db),
    access: OrgAccess = Depends(get_write_access),
):
    with translate_service_errors():
        return investment_service.review_deposit(
            db, access.organization_id, deposit_id, payload.action, actor_user_id=access.user.id
        )


@router.get("/withdrawals", response_model=List[schemas.Withdrawal])
def list_withdrawals(
    customer_id: Optional[uuid.UUID] = None,
    status_filter: Optional[str] = Query(default=None, alias="status"),
    db: Session = Depends(get_db),
    access: OrgAccess = Depends(get_org_access),
):
    return investment_service.list_withdrawals(
        db, access.organization_id, customer_id=access.customer_filter(customer_id), status=status_filter
    )


@router.post("/withdrawals", response_model=schemas.Withdrawal, status_code=status.HTTP_201_CREATED)
def request_withdrawal(
    payload: schemas.WithdrawalCreate,
    db: Session = Depends(get_db),
    access: OrgAccess = Depends(get_org_access),
):
    """Debit the investor balance now; a rejected withdrawal is refunded."""
    customer_id = access.acting_customer(payload.customer_id)
    with translate_service_errors():
        withdrawal = investment_service.request_withdrawal(db, access.organization_id, customer_id, payload)
    notification_service.notify_managers_safely(
        db,
        access.organization_id,
        notification_service.EVENT_WITHDRAWAL_REQUESTED,
        "Novo saque",
        f"Saque de R$ {float(withdrawal.amount):.2f} aguardando aprovação.",
        metadata={"withdrawal_id": str(withdrawal.id)},
    )
    return withdrawal


@router.put("/withdrawals/{withdrawal_id}", response_model=schemas.Withdrawal)
def review_withdrawal(
    withdrawal_id: uuid.UUID,
    payload: schemas.ReviewAction,
    db: Session = Depends(get_db),
    access: OrgAccess = Depends(get_write_access),
):
    with translate_service_errors():
        return investment_service.review_withdrawal(
            db, access.organization_id, withdrawal_id, payload.action, actor_user_id=access.user.id
        )


@router.post("/trade", response_model=schemas.TradeResult)
def trade(
    payload: schemas.TradeRequest,
    db: Session = Depends(get_db),
    access: OrgAccess = Depends(get_org_access),
):
    customer_id = access.acting_customer(payload.customer_id)
    with translate_service_errors():
        return investment_service.trade(db, access.organization_id, customer_id, payload)


@router.post("/gift", response_model=schemas.GiftedShares, status_code=status.HTTP_201_CREATED)
def gift_shares(
    payload: schemas.GiftSharesRequest,
    db: Session = Depends(get_db),
    access: OrgAccess = Depends(get_write_access),
):
    with translate_service_errors():
        return investment_service.gift_shares(db, access.organization_id, payload)


@router.get("/portfolio", response_model=schemas.Portfolio)
def portfolio(
    customer_id: Optional[uuid.UUID] = None,
    db: Session = Depends(get_db),
    access: OrgAccess = Depends(get_org_access),
):
    target = _investor(access, customer_id)
    with translate_service_errors():
        return investment_service.portfolio(db, access.organization_id, target)
