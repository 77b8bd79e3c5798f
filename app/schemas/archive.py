from __future__ import annotations

from datetime import date, datetime
from typing import Any
from uuid import UUID

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationInfo,
    field_validator,
)

from app.models.correspondence import (
    ArchiveClassification,
    ArchiveType,
    RetentionStatus,
)
from app.schemas.common import reject_null


class ArchiveBase(BaseModel):
    document_number: str | None = Field(default=None, max_length=255)
    title: str = Field(min_length=1, max_length=500)
    description: str | None = None
    category: str | None = Field(default=None, max_length=120)
    document_date: date | None = None
    document_type: str | None = Field(default=None, max_length=120)
    file_path: str | None = Field(default=None, max_length=1024)
    file_type: str | None = Field(default=None, max_length=120)
    file_size: int | None = Field(default=None, ge=0)
    sender: str | None = Field(default=None, max_length=255)
    recipient: str | None = Field(default=None, max_length=500)
    classification: str = "internal"
    retention_period: int | None = Field(default=None, ge=1, le=100)
    tags: list[str] | None = None
    metadata_: dict[str, Any] | None = Field(default=None, alias="metadata_")


class ArchiveCreate(ArchiveBase):
    pass


class ArchiveUpdate(BaseModel):
    document_number: str | None = Field(default=None, max_length=255)
    title: str | None = Field(default=None, max_length=500)
    description: str | None = None
    category: str | None = Field(default=None, max_length=120)
    document_date: date | None = None
    document_type: str | None = Field(default=None, max_length=120)
    classification: str | None = None
    retention_period: int | None = Field(default=None, ge=1, le=100)
    tags: list[str] | None = None
    metadata_: dict[str, Any] | None = Field(default=None, alias="metadata_")

    @field_validator("title", "classification")
    @classmethod
    def reject_null_fields(cls, value, info: ValidationInfo):
        return reject_null(value, info.field_name)


class ArchiveRead(ArchiveBase):
    model_config = ConfigDict(from_attributes=True, populate_by_name=True)

    id: UUID
    type: ArchiveType
    classification: ArchiveClassification
    incoming_letter_id: UUID | None = None
    outgoing_letter_id: UUID | None = None
    letter_id: UUID | None = None
    retention_until: date | None = None
    retention_status: RetentionStatus
    archived_by: UUID
    created_at: datetime
    updated_at: datetime


class ArchiveLetterRequest(BaseModel):
    category: str | None = Field(default=None, max_length=120)
    classification: str = "internal"
    retention_period: int = Field(default=5, ge=1, le=100)
    file_path: str | None = Field(default=None, max_length=1024)
    description: str | None = None


class ArchiveIncomingRequest(BaseModel):
    category: str | None = Field(default=None, max_length=120)
    retention_period: int = Field(default=5, ge=1, le=100)


class ArchiveFileInfo(BaseModel):
    file_path: str | None = None
    exists: bool
    file_size: str | None = None
    download_url: str | None = None


class ArchiveStats(BaseModel):
    total: int
    by_type: dict[str, int]
    by_classification: dict[str, int]
    expiring_soon: int
    expired: int
