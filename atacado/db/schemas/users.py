import uuid
from datetime import datetime
from pydantic import BaseModel, ConfigDict


class UserBase(BaseModel):
    email: str
    display_name: str | None = None


class User(UserBase):
    id: uuid.UUID
    is_superadmin: bool = False
    created_at: datetime | None = None
    model_config = ConfigDict(from_attributes=True)
