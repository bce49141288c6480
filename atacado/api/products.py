"""Product catalog endpoints."""
from typing import List, Optional
import uuid

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from atacado.api.deps import OrgAccess, get_org_access, get_write_access
from atacado.db import schemas
from atacado.db.database import get_db
from atacado.db.repositories import catalog as catalog_repo

router = APIRouter(prefix="/products", tags=["products"])


@router.get("/", response_model=List[schemas.Product])
def list_products(
    search: Optional[str] = None,
    is_active: Optional[bool] = True,
    db: Session = Depends(get_db),
    access: OrgAccess = Depends(get_org_access),
):
    # Customers only ever browse active products
    if access.is_customer:
        is_active = True
    return catalog_repo.list_products(db, access.organization_id, is_active=is_active, search=search)


@router.post("/", response_model=schemas.Product, status_code=status.HTTP_201_CREATED)
def create_product(
    payload: schemas.ProductCreate,
    db: Session = Depends(get_db),
    access: OrgAccess = Depends(get_write_access),
):
    return catalog_repo.create_product(db, access.organization_id, payload)


@router.get("/{product_id}", response_model=schemas.Product)
def get_product(
    product_id: uuid.UUID,
    db: Session = Depends(get_db),
    access: OrgAccess = Depends(get_org_access),
):
    product = catalog_repo.get_product(db, access.organization_id, product_id)
    if product is None or (access.is_customer and not product.is_active):
        raise HTTPException(status_code=404, detail="Product not found")
    return product


@router.put("/{product_id}", response_model=schemas.Product)
def update_product(
    product_id: uuid.UUID,
    payload: schemas.ProductUpdate,
    db: Session = Depends(get_db),
    access: OrgAccess = Depends(get_write_access),
):
    product = catalog_repo.get_product(db, access.organization_id, product_id)
    if product is None:
        raise HTTPException(status_code=404, detail="Product not found")
    return catalog_repo.update_product(db, product, payload)


@router.delete("/{product_id}", response_model=schemas.Product)
def deactivate_product(
    product_id: uuid.UUID,
    db: Session = Depends(get_db),
    access: OrgAccess = Depends(get_write_access),
):
    product = catalog_repo.get_product(db, access.organization_id, product_id)
    if product is None:
        raise HTTPException(status_code=404, detail="Product not found")
    return catalog_repo.update_product(db, product, schemas.ProductUpdate(is_active=False))
