"""
Fiscal invoice endpoints (NF-e and NFC-e through PlugNotas).
"""
from datetime import date
from typing import List, Optional
import uuid

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from atacado.api.deps import (
    OrgAccess,
    get_manage_access,
    get_staff_access,
    get_write_access,
    require_feature,
    translate_service_errors,
)
from atacado.db import schemas
from atacado.db.database import get_db
from atacado.services import fiscal_service

router = APIRouter(
    prefix="/invoices",
    tags=["invoices"],
    dependencies=[Depends(require_feature("fiscal_enabled"))],
)


@router.get("/", response_model=List[schemas.Invoice])
def list_invoices(
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    status_filter: Optional[str] = Query(default=None, alias="status"),
    invoice_type: Optional[str] = Query(default=None, alias="type"),
    db: Session = Depends(get_db),
    access: OrgAccess = Depends(get_staff_access),
):
    return fiscal_service.list_invoices(
        db, access.organization_id, start=start_date, end=end_date, status=status_filter, invoice_type=invoice_type
    )


@router.post("/", response_model=schemas.Invoice, status_code=status.HTTP_201_CREATED)
def emit_invoice(
    payload: schemas.InvoiceCreate,
    db: Session = Depends(get_db),
    access: OrgAccess = Depends(get_write_access),
):
    """Emit through the gateway; a gateway failure answers 502 and keeps the ERROR row."""
    with translate_service_errors():
        return fiscal_service.emit_invoice(db, access.organization_id, payload, actor_user_id=access.user.id)


@router.get("/daily-report", response_model=schemas.DailyReport)
def daily_report(
    day: Optional[date] = Query(default=None, alias="date"),
    db: Session = Depends(get_db),
    access: OrgAccess = Depends(get_staff_access),
):
    return fiscal_service.daily_report(db, access.organization_id, day)


@router.post("/{invoice_id}/cancel", response_model=schemas.Invoice)
def cancel_invoice(
    invoice_id: uuid.UUID,
    payload: schemas.InvoiceCancel,
    db: Session = Depends(get_db),
    access: OrgAccess = Depends(get_manage_access),
):
    with translate_service_errors():
        return fiscal_service.cancel_invoice(
            db, access.organization_id, invoice_id, payload.reason, actor_user_id=access.user.id
        )


@router.get("/{invoice_id}/xml", response_model=schemas.InvoiceDocument)
def download_xml(
    invoice_id: uuid.UUID,
    db: Session = Depends(get_db),
    access: OrgAccess = Depends(get_staff_access),
):
    with translate_service_errors():
        return fiscal_service.download_document(db, access.organization_id, invoice_id, 'xml')


@router.get("/{invoice_id}/pdf", response_model=schemas.InvoiceDocument)
def download_pdf(
    invoice_id: uuid.UUID,
    db: Session = Depends(get_db),
    access: OrgAccess = Depends(get_staff_access),
):
    """DANFE of the invoice."""
    with translate_service_errors():
        return fiscal_service.download_document(db, access.organization_id, invoice_id, 'pdf')
