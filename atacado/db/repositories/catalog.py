"""Product repository functions."""
from __future__ import annotations

import uuid
from typing import Iterable, Optional
from sqlalchemy.orm import Session

from atacado.db import schemas, models
from atacado.utils.money import to_money

_MONEY_FIELDS = ("price_wholesale", "price_retail", "promotional_price", "bulk_discount_price")


def get_product(db: Session, organization_id: uuid.UUID, product_id: uuid.UUID):
    return (
        db.query(models.Product)
        .filter(models.Product.organization_id == organization_id, models.Product.id == product_id)
        .first()
    )


def get_products(db: Session, organization_id: uuid.UUID, product_ids: Iterable[uuid.UUID]):
    ids = list(product_ids)
    if not ids:
        return {}
    rows = (
        db.query(models.Product)
        .filter(models.Product.organization_id == organization_id, models.Product.id.in_(ids))
        .all()
    )
    return {row.id: row for row in rows}


def list_products(db: Session, organization_id: uuid.UUID, is_active: Optional[bool] = True, search: Optional[str] = None):
    query = db.query(models.Product).filter(models.Product.organization_id == organization_id)
    if is_active is not None:
        query = query.filter(models.Product.is_active.is_(is_active))
    if search:
        query = query.filter(models.Product.name.ilike(f"%{search.strip()}%"))
    return query.order_by(models.Product.name).all()


def create_product(db: Session, organization_id: uuid.UUID, product: schemas.ProductCreate):
    data = product.model_dump()
    for field in _MONEY_FIELDS:
        if data.get(field) is not None:
            data[field] = to_money(data[field])
    db_product = models.Product(organization_id=organization_id, **data)
    db.add(db_product)
    db.commit()
    db.refresh(db_product)
    return db_product


def update_product(db: Session, db_product: models.Product, product: schemas.ProductUpdate):
    for key, value in product.model_dump(exclude_unset=True).items():
        if key in _MONEY_FIELDS and value is not None:
            value = to_money(value)
        setattr(db_product, key, value)
    db.commit()
    db.refresh(db_product)
    return db_product
