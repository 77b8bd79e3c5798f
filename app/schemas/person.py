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


# ---------------------------------------------------------------------------
# OrganizationUnit
# ---------------------------------------------------------------------------


class OrganizationUnitBase(BaseModel):
    code: str = Field(min_length=1, max_length=50)
    name: str = Field(min_length=1, max_length=255)
    description: str | None = None
    parent_id: UUID | None = None
    level: int = Field(default=0, ge=0)
    head_id: UUID | None = None
    is_active: bool = True


class OrganizationUnitCreate(OrganizationUnitBase):
    pass


class OrganizationUnitUpdate(BaseModel):
    code: str | None = Field(default=None, max_length=50)
    name: str | None = Field(default=None, max_length=255)
    description: str | None = None
    parent_id: UUID | None = None
    level: int | None = Field(default=None, ge=0)
    head_id: UUID | None = None
    is_active: bool | None = None

    @field_validator("code", "name", "level", "is_active")
    @classmethod
    def reject_null_fields(cls, value, info: ValidationInfo):
        return reject_null(value, info.field_name)


class OrganizationUnitRead(OrganizationUnitBase):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    created_at: datetime
    updated_at: datetime


# ---------------------------------------------------------------------------
# Person
# ---------------------------------------------------------------------------


class PersonBase(BaseModel):
    first_name: str = Field(min_length=1, max_length=120)
    last_name: str = Field(min_length=1, max_length=120)
    email: str = Field(min_length=3, max_length=255)
    position: str | None = Field(default=None, max_length=255)
    nip: str | None = Field(default=None, max_length=50)
    organization_unit_id: UUID | None = None
    is_active: bool = True


class PersonCreate(PersonBase):
    pass


class PersonUpdate(BaseModel):
    first_name: str | None = Field(default=None, max_length=120)
    last_name: str | None = Field(default=None, max_length=120)
    email: str | None = Field(default=None, max_length=255)
    position: str | None = Field(default=None, max_length=255)
    nip: str | None = Field(default=None, max_length=50)
    organization_unit_id: UUID | None = None
    is_active: bool | None = None

    @field_validator("first_name", "last_name", "email", "is_active")
    @classmethod
    def reject_null_fields(cls, value, info: ValidationInfo):
        return reject_null(value, info.field_name)


class PersonRead(PersonBase):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    display_name: str
    created_at: datetime
    updated_at: datetime
