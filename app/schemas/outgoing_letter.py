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

from app.models.correspondence import LetterStatus, RevisionType, SignatoryStatus
from app.schemas.common import reject_null


class ApprovalProgress(BaseModel):
    total: int
    approved: int
    rejected: int
    pending: int
    percentage: float


# ---------------------------------------------------------------------------
# Signatories
# ---------------------------------------------------------------------------


class SignatoryAssignment(BaseModel):
    user_id: UUID
    slot_id: str = Field(min_length=1, max_length=100)
    sign_order: int = Field(default=0, ge=0)


class SignatoryRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    letter_id: UUID
    user_id: UUID
    slot_id: str
    sign_order: int
    status: SignatoryStatus
    signed_at: datetime | None = None
    rejection_reason: str | None = None
    certificate_id: str | None = None
    document_hash: str | None = None


# ---------------------------------------------------------------------------
# OutgoingLetter
# ---------------------------------------------------------------------------


class OutgoingLetterBase(BaseModel):
    template_id: UUID
    incoming_letter_id: UUID | None = None
    subject: str = Field(min_length=1, max_length=500)
    letter_date: date
    variable_values: dict[str, Any] = Field(default_factory=dict)
    attachments: list[dict[str, Any]] | None = None
    notes: str | None = None


class OutgoingLetterCreate(OutgoingLetterBase):
    signatories: list[SignatoryAssignment] = Field(min_length=1)
    submit: bool = True


class OutgoingLetterUpdate(BaseModel):
    subject: str | None = Field(default=None, max_length=500)
    letter_date: date | None = None
    variable_values: dict[str, Any] | None = None
    attachments: list[dict[str, Any]] | None = None
    notes: str | None = None
    signatories: list[SignatoryAssignment] | None = None

    @field_validator("subject", "letter_date")
    @classmethod
    def reject_null_fields(cls, value, info: ValidationInfo):
        return reject_null(value, info.field_name)


class OutgoingLetterRead(OutgoingLetterBase):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    letter_number: str | None = None
    rendered_html: str | None = None
    status: LetterStatus
    current_version: int
    revision_requested: bool
    revision_request_notes: str | None = None
    revision_requested_by: UUID | None = None
    created_by: UUID
    updated_by: UUID | None = None
    signatories: list[SignatoryRead] = Field(default_factory=list)
    approval_progress: ApprovalProgress
    created_at: datetime
    updated_at: datetime


# ---------------------------------------------------------------------------
# Sign-off actions
# ---------------------------------------------------------------------------


class SignRequest(BaseModel):
    signature_image: str | None = None


class RejectRequest(BaseModel):
    rejection_reason: str = Field(min_length=1, max_length=1000)


class RevisionRequest(BaseModel):
    revision_notes: str = Field(min_length=1, max_length=2000)


class RevisionSubmit(BaseModel):
    variable_values: dict[str, Any]
    revision_notes: str | None = None


class RevisionRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    letter_id: UUID
    version: int
    type: RevisionType
    variable_values: dict[str, Any] | None = None
    revision_notes: str | None = None
    requested_changes: str | None = None
    created_by: UUID
    created_at: datetime


class PendingSignatureRead(BaseModel):
    signatory_id: UUID
    letter_id: UUID
    letter_number: str | None = None
    subject: str
    status: LetterStatus
    sign_order: int
