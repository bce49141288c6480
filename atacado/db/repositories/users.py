"""User lookups."""
from __future__ import annotations

import uuid
from sqlalchemy.orm import Session

from atacado.db import models


def get_user(db: Session, user_id: uuid.UUID):
    return db.query(models.User).filter(models.User.id == user_id).first()


def get_user_by_email(db: Session, email: str):
    return db.query(models.User).filter(models.User.email == email.strip().lower()).first()


def create_user(db: Session, email: str, display_name: str | None = None):
    email = email.strip().lower()
    user = models.User(email=email, display_name=display_name or email.split("@")[0])
    db.add(user)
    db.commit()
    db.refresh(user)
    return user
