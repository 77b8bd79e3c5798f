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

from app.models.correspondence import CertificateStatus, LetterStatus, SignatoryStatus
from app.schemas.common import reject_null


# ---------------------------------------------------------------------------
# Letter
# ---------------------------------------------------------------------------


class LetterBase(BaseModel):
    template_id: UUID
    incoming_letter_id: UUID | None = None
    subject: str = Field(min_length=1, max_length=500)
    letter_date: date
    recipient: str | None = Field(default=None, max_length=500)
    data: dict[str, Any] = Field(default_factory=dict)
    notes: str | None = None


class LetterCreate(LetterBase):
    pass


class LetterUpdate(BaseModel):
    subject: str | None = Field(default=None, max_length=500)
    letter_date: date | None = None
    recipient: str | None = Field(default=None, max_length=500)
    data: dict[str, Any] | None = None
    notes: str | None = None

    @field_validator("subject", "letter_date")
    @classmethod
    def reject_null_fields(cls, value, info: ValidationInfo):
        return reject_null(value, info.field_name)


class ApprovalRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    letter_id: UUID
    user_id: UUID
    signature_index: int
    position_name: str | None = None
    status: SignatoryStatus
    notes: str | None = None
    signed_at: datetime | None = None
    signature_data: dict[str, Any] | None = None


class LetterRead(LetterBase):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    letter_number: str | None = None
    rendered_html: str | None = None
    status: LetterStatus
    created_by: UUID
    approved_by: UUID | None = None
    approved_at: datetime | None = None
    rejected_by: UUID | None = None
    rejected_at: datetime | None = None
    rejection_reason: str | None = None
    approvals: list[ApprovalRead] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime


class ApproveRequest(BaseModel):
    notes: str | None = None


class ApprovalRejectRequest(BaseModel):
    rejection_reason: str = Field(min_length=1, max_length=1000)


class RevokeRequest(BaseModel):
    reason: str = Field(min_length=1, max_length=1000)


# ---------------------------------------------------------------------------
# Certificate
# ---------------------------------------------------------------------------


class CertificateRead(BaseModel):
    model_config = ConfigDict(from_attributes=True, populate_by_name=True)

    id: UUID
    certificate_id: str
    letter_id: UUID
    approval_id: UUID | None = None
    document_hash: str
    signed_by: UUID
    signer_name: str
    signer_position: str | None = None
    signer_nip: str | None = None
    signed_at: datetime
    metadata_: dict[str, Any] | None = Field(default=None, alias="metadata_")
    status: CertificateStatus
    revoked_reason: str | None = None
    revoked_at: datetime | None = None


class CertificateVerification(BaseModel):
    valid: bool
    message: str
    hash_valid: bool = False
    is_revoked: bool = False
    certificate: CertificateRead | None = None
