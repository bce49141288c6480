import uuid
from datetime import datetime
from pydantic import BaseModel, ConfigDict, Field

from atacado.utils.role_permissions import RoleEnum


class OrganizationBase(BaseModel):
    name: str = Field(min_length=1)
    slug: str | None = None
    cnpj: str | None = None
    city: str | None = None


class OrganizationCreate(OrganizationBase):
    pass


class OrganizationUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1)
    slug: str | None = None
    cnpj: str | None = None
    city: str | None = None
    is_active: bool | None = None


class Organization(OrganizationBase):
    id: uuid.UUID
    is_active: bool
    created_by: uuid.UUID | None = None
    created_at: datetime
    updated_at: datetime
    model_config = ConfigDict(from_attributes=True)


class OrganizationMemberCreate(BaseModel):
    email: str
    role: RoleEnum = RoleEnum.viewer
    can_read: bool | None = None
    can_write: bool | None = None


class OrganizationMemberUpdate(BaseModel):
    role: RoleEnum | None = None
    can_read: bool | None = None
    can_write: bool | None = None


class OrganizationMember(BaseModel):
    organization_id: uuid.UUID
    user_id: uuid.UUID
    email: str | None = None
    display_name: str | None = None
    role: str
    can_read: bool
    can_write: bool
    created_at: datetime | None = None
