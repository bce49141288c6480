"""
Users API endpoints.

Currently exposes self-profile update for display name.
"""
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from atacado.api.deps import get_current_user_context
from atacado.db import schemas
from atacado.db.database import get_db

router = APIRouter(prefix="/users", tags=["users"])


@router.get("/me", response_model=schemas.User)
def read_me(user_context=Depends(get_current_user_context)):
    user, _ctx = user_context
    return user


@router.patch("/me", response_model=schemas.User)
def update_me(
    payload: dict,
    db: Session = Depends(get_db),
    user_context=Depends(get_current_user_context),
):
    user, _ctx = user_context
    display_name = payload.get("display_name")
    if display_name is not None:
        s = str(display_name).strip()
        if len(s) == 0 or len(s) > 80:
            raise HTTPException(status_code=422, detail="display_name must be 1..80 characters")
        user.display_name = s
        db.commit()
        db.refresh(user)
    return user
