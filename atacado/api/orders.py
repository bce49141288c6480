"""
Order endpoints.

Staff create orders for any customer; a portal customer may only place
and read its own orders.
"""
from typing import Optional
import uuid

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from atacado.api.deps import OrgAccess, get_org_access, get_write_access, translate_service_errors
from atacado.db import schemas
from atacado.db.database import get_db
from atacado.db.repositories import orders as order_repo
from atacado.services import order_service

router = APIRouter(prefix="/orders", tags=["orders"])


@router.post("/", response_model=schemas.Order, status_code=status.HTTP_201_CREATED)
def create_order(
    payload: schemas.OrderCreate,
    db: Session = Depends(get_db),
    access: OrgAccess = Depends(get_org_access),
):
    if access.is_customer:
        # Self-service orders are never settled at creation
        payload = payload.model_copy(update={
            "customer_id": access.customer_id,
            "casual_customer_name": None,
            "is_paid": False,
            "bank_account_id": None,
        })
    else:
        access.require_write()
    with translate_service_errors():
        return order_service.create_order(
            db,
            access.organization_id,
            payload,
            actor_user_id=access.user.id,
            actor_email=access.actor_email,
        )


@router.get("/", response_model=schemas.PaginatedOrders)
def list_orders(
    status_filter: Optional[str] = Query(default=None, alias="status"),
    customer_id: Optional[uuid.UUID] = None,
    skip: int = 0,
    limit: int = 50,
    db: Session = Depends(get_db),
    access: OrgAccess = Depends(get_org_access),
):
    limit = min(max(limit, 1), 200)
    rows, total = order_repo.list_orders(
        db,
        access.organization_id,
        status=status_filter,
        customer_id=access.customer_filter(customer_id),
        skip=skip,
        limit=limit,
    )
    return {"items": rows, "total": total, "skip": skip, "limit": limit}


@router.get("/{order_id}", response_model=schemas.Order)
def get_order(
    order_id: uuid.UUID,
    db: Session = Depends(get_db),
    access: OrgAccess = Depends(get_org_access),
):
    with translate_service_errors():
        order = order_service.get_order_or_404(db, access.organization_id, order_id)
    access.ensure_customer_visible(order.customer_id)
    return order


@router.patch("/{order_id}/status", response_model=schemas.Order)
def update_order_status(
    order_id: uuid.UUID,
    payload: schemas.OrderStatusUpdate,
    db: Session = Depends(get_db),
    access: OrgAccess = Depends(get_write_access),
):
    with translate_service_errors():
        return order_service.update_status(
            db,
            access.organization_id,
            order_id,
            payload.status,
            actor_user_id=access.user.id,
            actor_email=access.actor_email,
        )


@router.post("/{order_id}/cancel", response_model=schemas.Order)
def cancel_order(
    order_id: uuid.UUID,
    db: Session = Depends(get_db),
    access: OrgAccess = Depends(get_write_access),
):
    with translate_service_errors():
        return order_service.cancel_order(db, access.organization_id, order_id, actor_user_id=access.user.id)
