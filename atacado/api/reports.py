"""Financial report endpoints."""
from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from atacado.api.deps import OrgAccess, get_staff_access, translate_service_errors
from atacado.db import schemas
from atacado.db.database import get_db
from atacado.services import cash_flow_service, report_service

router = APIRouter(prefix="/reports", tags=["reports"])


@router.get("/dre", response_model=schemas.DreReport)
def dre_report(
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    db: Session = Depends(get_db),
    access: OrgAccess = Depends(get_staff_access),
):
    """Income statement for the inclusive range ``start_date``..``end_date``."""
    with translate_service_errors():
        return report_service.dre(db, access.organization_id, start_date, end_date)


@router.get("/cash-flow", response_model=schemas.CashFlowReport)
def cash_flow_report(
    days: int = 30,
    db: Session = Depends(get_db),
    access: OrgAccess = Depends(get_staff_access),
):
    """Projected bank balance for the next ``days`` days."""
    with translate_service_errors():
        return cash_flow_service.cash_flow(db, access.organization_id, days=days)


@router.get("/alerts", response_model=List[schemas.FinancialAlert])
def financial_alerts(
    db: Session = Depends(get_db),
    access: OrgAccess = Depends(get_staff_access),
):
    return cash_flow_service.financial_alerts(db, access.organization_id)
