from __future__ import annotations

from datetime import date, datetime
from uuid import UUID

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationInfo,
    field_validator,
)

from app.models.correspondence import (
    IncomingLetterClassification,
    IncomingLetterStatus,
)
from app.schemas.common import reject_null


class DispositionProgress(BaseModel):
    total: int
    pending: int
    completed: int
    percentage: float


class IncomingLetterBase(BaseModel):
    original_number: str = Field(min_length=1, max_length=255)
    original_date: date
    received_date: date
    sender: str = Field(min_length=1, max_length=255)
    subject: str = Field(min_length=1, max_length=500)
    category: str | None = Field(default=None, max_length=120)
    classification: str = "biasa"
    attachment_count: int = Field(default=0, ge=0)
    attachment_description: str | None = None
    file_path: str | None = Field(default=None, max_length=1024)
    organization_unit_id: UUID | None = None
    notes: str | None = None


class IncomingLetterCreate(IncomingLetterBase):
    pass


class IncomingLetterUpdate(BaseModel):
    original_number: str | None = Field(default=None, max_length=255)
    original_date: date | None = None
    received_date: date | None = None
    sender: str | None = Field(default=None, max_length=255)
    subject: str | None = Field(default=None, max_length=500)
    category: str | None = Field(default=None, max_length=120)
    classification: str | None = None
    attachment_count: int | None = Field(default=None, ge=0)
    attachment_description: str | None = None
    file_path: str | None = Field(default=None, max_length=1024)
    notes: str | None = None

    @field_validator(
        "original_number",
        "original_date",
        "received_date",
        "sender",
        "subject",
        "classification",
        "attachment_count",
    )
    @classmethod
    def reject_null_fields(cls, value, info: ValidationInfo):
        return reject_null(value, info.field_name)


class IncomingLetterRead(IncomingLetterBase):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    incoming_number: str
    classification: IncomingLetterClassification
    status: IncomingLetterStatus
    registered_by: UUID
    is_active: bool
    disposition_progress: DispositionProgress
    created_at: datetime
    updated_at: datetime


class FileURLResponse(BaseModel):
    download_url: str


class UploadURLRequest(BaseModel):
    file_name: str = Field(min_length=1, max_length=255)
    mime_type: str = Field(default="application/pdf", max_length=120)


class UploadURLResponse(BaseModel):
    storage_key: str
    upload_url: str
