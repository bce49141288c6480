"""
Customer repository functions.
"""
from __future__ import annotations

import uuid
from typing import Optional
from sqlalchemy import or_
from sqlalchemy.orm import Session

from atacado.db import schemas, models
from atacado.utils.money import to_money


def get_customer(db: Session, organization_id: uuid.UUID, customer_id: uuid.UUID):
    return (
        db.query(models.Customer)
        .filter(models.Customer.organization_id == organization_id, models.Customer.id == customer_id)
        .first()
    )


def get_customer_for_user(db: Session, organization_id: uuid.UUID, user_id: uuid.UUID):
    return (
        db.query(models.Customer)
        .filter(models.Customer.organization_id == organization_id, models.Customer.user_id == user_id)
        .first()
    )


def list_customers(
    db: Session,
    organization_id: uuid.UUID,
    search: Optional[str] = None,
    is_active: Optional[bool] = None,
    skip: int = 0,
    limit: int = 100,
):
    query = db.query(models.Customer).filter(models.Customer.organization_id == organization_id)
    if search:
        pattern = f"%{search.strip()}%"
        query = query.filter(or_(
            models.Customer.name.ilike(pattern),
            models.Customer.phone.ilike(pattern),
            models.Customer.cpf_cnpj.ilike(pattern),
        ))
    if is_active is not None:
        query = query.filter(models.Customer.is_active.is_(is_active))
    return query.order_by(models.Customer.name).offset(skip).limit(limit).all()


def create_customer(db: Session, organization_id: uuid.UUID, customer: schemas.CustomerCreate):
    data = customer.model_dump()
    credit_limit = to_money(data.pop("credit_limit"))
    db_customer = models.Customer(
        organization_id=organization_id,
        credit_limit=credit_limit,
        available_credit=credit_limit,
        **data,
    )
    db.add(db_customer)
    db.commit()
    db.refresh(db_customer)
    return db_customer


def update_customer(db: Session, db_customer: models.Customer, customer: schemas.CustomerUpdate):
    update_data = customer.model_dump(exclude_unset=True)
    new_limit = update_data.pop("credit_limit", None)
    if new_limit is not None:
        # Available credit follows the limit by the same delta
        delta = to_money(new_limit) - to_money(db_customer.credit_limit)
        db_customer.credit_limit = to_money(new_limit)
        db_customer.available_credit = to_money(db_customer.available_credit) + delta
    for key, value in update_data.items():
        setattr(db_customer, key, value)
    db.commit()
    db.refresh(db_customer)
    return db_customer


def deactivate_customer(db: Session, db_customer: models.Customer):
    db_customer.is_active = False
    db.commit()
    db.refresh(db_customer)
    return db_customer


def list_custom_prices(db: Session, customer_id: uuid.UUID):
    return (
        db.query(models.CustomerProduct)
        .filter(models.CustomerProduct.customer_id == customer_id)
        .all()
    )


def get_custom_price(db: Session, customer_id: uuid.UUID, product_id: uuid.UUID):
    return (
        db.query(models.CustomerProduct)
        .filter(models.CustomerProduct.customer_id == customer_id, models.CustomerProduct.product_id == product_id)
        .first()
    )


def set_custom_price(db: Session, customer_id: uuid.UUID, product_id: uuid.UUID, price: schemas.CustomerPriceSet):
    row = get_custom_price(db, customer_id, product_id)
    if row is None:
        row = models.CustomerProduct(customer_id=customer_id, product_id=product_id)
        db.add(row)
    row.custom_price = to_money(price.custom_price)
    row.is_visible = price.is_visible
    db.commit()
    db.refresh(row)
    return row


def list_point_transactions(db: Session, customer_id: uuid.UUID, limit: int = 50):
    return (
        db.query(models.PointTransaction)
        .filter(models.PointTransaction.customer_id == customer_id)
        .order_by(models.PointTransaction.created_at.desc())
        .limit(limit)
        .all()
    )
