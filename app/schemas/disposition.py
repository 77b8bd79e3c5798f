from __future__ import annotations

from datetime import date, datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from app.models.correspondence import (
    DispositionPriority,
    DispositionStatus,
    FollowUpType,
)


# ---------------------------------------------------------------------------
# Disposition
# ---------------------------------------------------------------------------


class DispositionBase(BaseModel):
    incoming_letter_id: UUID
    parent_disposition_id: UUID | None = None
    to_user_id: UUID
    instruction: str = Field(min_length=1)
    notes: str | None = None
    priority: str = "normal"
    deadline: date | None = None


class DispositionCreate(DispositionBase):
    pass


class DispositionRead(DispositionBase):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    from_user_id: UUID
    priority: DispositionPriority
    status: DispositionStatus
    read_at: datetime | None = None
    completed_at: datetime | None = None
    is_overdue: bool
    created_at: datetime
    updated_at: datetime


class DispositionTreeNode(DispositionRead):
    children: list[DispositionTreeNode] = Field(default_factory=list)


DispositionTreeNode.model_rebuild()


# ---------------------------------------------------------------------------
# Follow-ups
# ---------------------------------------------------------------------------


class FollowUpCreate(BaseModel):
    follow_up_date: date
    follow_up_type: str
    description: str = Field(min_length=1)
    file_path: str | None = Field(default=None, max_length=1024)
    outgoing_letter_id: UUID | None = None


class FollowUpRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    disposition_id: UUID
    follow_up_date: date
    follow_up_type: FollowUpType
    description: str
    file_path: str | None = None
    outgoing_letter_id: UUID | None = None
    created_by: UUID
    created_at: datetime
