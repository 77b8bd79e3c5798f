from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationInfo,
    field_validator,
)

from app.schemas.common import reject_null


class RoleBase(BaseModel):
    name: str = Field(min_length=1, max_length=80)
    description: str | None = None
    is_active: bool = True


class RoleCreate(RoleBase):
    permission_keys: list[str] = Field(default_factory=list)


class RoleUpdate(BaseModel):
    name: str | None = Field(default=None, max_length=80)
    description: str | None = None
    is_active: bool | None = None

    @field_validator("name", "is_active")
    @classmethod
    def reject_null_fields(cls, value, info: ValidationInfo):
        return reject_null(value, info.field_name)


class RoleRead(RoleBase):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    permission_keys: list[str] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime


class PermissionBase(BaseModel):
    key: str = Field(min_length=1, max_length=120)
    description: str | None = None
    is_active: bool = True


class PermissionCreate(PermissionBase):
    pass


class PermissionRead(PermissionBase):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    created_at: datetime
    updated_at: datetime


class RolePermissionGrant(BaseModel):
    permission_key: str = Field(min_length=1, max_length=120)


class PersonRoleCreate(BaseModel):
    role_id: UUID


class PersonRoleRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    person_id: UUID
    role_id: UUID
    assigned_at: datetime
