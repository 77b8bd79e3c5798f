from __future__ import annotations

from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationInfo,
    field_validator,
)

from app.models.correspondence import CounterReset
from app.schemas.common import reject_null


# ---------------------------------------------------------------------------
# DocumentTemplate
# ---------------------------------------------------------------------------


class DocumentTemplateBase(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    code: str = Field(min_length=1, max_length=50)
    category: str | None = Field(default=None, max_length=120)
    template_type: str = Field(default="letter", max_length=50)
    description: str | None = None
    organization_unit_id: UUID | None = None
    numbering_group_id: UUID | None = None
    numbering_config_id: UUID | None = None
    numbering_format: str | None = Field(default=None, max_length=255)
    page_settings: dict[str, Any] | None = None
    header_settings: dict[str, Any] | None = None
    content_blocks: list[dict[str, Any]] | None = None
    footer_settings: dict[str, Any] | None = None
    signature_settings: dict[str, Any] | None = None
    variables: list[dict[str, Any]] | None = None
    is_active: bool = True


class DocumentTemplateCreate(DocumentTemplateBase):
    pass


class DocumentTemplateUpdate(BaseModel):
    name: str | None = Field(default=None, max_length=255)
    code: str | None = Field(default=None, max_length=50)
    category: str | None = Field(default=None, max_length=120)
    template_type: str | None = Field(default=None, max_length=50)
    description: str | None = None
    numbering_group_id: UUID | None = None
    numbering_config_id: UUID | None = None
    numbering_format: str | None = Field(default=None, max_length=255)
    page_settings: dict[str, Any] | None = None
    header_settings: dict[str, Any] | None = None
    content_blocks: list[dict[str, Any]] | None = None
    footer_settings: dict[str, Any] | None = None
    signature_settings: dict[str, Any] | None = None
    variables: list[dict[str, Any]] | None = None
    is_active: bool | None = None

    @field_validator("name", "code", "template_type", "is_active")
    @classmethod
    def reject_null_fields(cls, value, info: ValidationInfo):
        return reject_null(value, info.field_name)


class DocumentTemplateRead(DocumentTemplateBase):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    created_by: UUID | None = None
    created_at: datetime
    updated_at: datetime


class DocumentTemplateDuplicate(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    code: str = Field(min_length=1, max_length=50)


class TemplateLayout(BaseModel):
    paper: dict[str, float]
    content: dict[str, float]
    variable_keys: list[str]
    signature_slots: list[dict[str, Any]]


class TemplateRenderRequest(BaseModel):
    variable_values: dict[str, Any] = Field(default_factory=dict)


class TemplateRenderResponse(BaseModel):
    rendered_html: str
    missing_variables: list[str]


# ---------------------------------------------------------------------------
# LetterTemplate
# ---------------------------------------------------------------------------


class LetterTemplateBase(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    code: str = Field(min_length=1, max_length=50)
    category: str | None = Field(default=None, max_length=120)
    description: str | None = None
    organization_unit_id: UUID | None = None
    content: list[dict[str, Any]] | None = None
    variables: list[dict[str, Any]] | None = None
    signatures: list[dict[str, Any]] | None = None
    numbering_format: str | None = Field(default=None, max_length=255)
    is_active: bool = True


class LetterTemplateCreate(LetterTemplateBase):
    pass


class LetterTemplateUpdate(BaseModel):
    name: str | None = Field(default=None, max_length=255)
    code: str | None = Field(default=None, max_length=50)
    category: str | None = Field(default=None, max_length=120)
    description: str | None = None
    content: list[dict[str, Any]] | None = None
    variables: list[dict[str, Any]] | None = None
    signatures: list[dict[str, Any]] | None = None
    numbering_format: str | None = Field(default=None, max_length=255)
    is_active: bool | None = None

    @field_validator("name", "code", "is_active")
    @classmethod
    def reject_null_fields(cls, value, info: ValidationInfo):
        return reject_null(value, info.field_name)


class LetterTemplateRead(LetterTemplateBase):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    created_by: UUID | None = None
    created_at: datetime
    updated_at: datetime


# ---------------------------------------------------------------------------
# LetterNumberingConfig
# ---------------------------------------------------------------------------


class NumberingConfigBase(BaseModel):
    code: str = Field(min_length=1, max_length=50)
    name: str = Field(min_length=1, max_length=255)
    format: str = Field(min_length=1, max_length=255)
    counter_reset: str = "yearly"
    padding: int = Field(default=3, ge=1, le=10)
    is_active: bool = True


class NumberingConfigCreate(NumberingConfigBase):
    pass


class NumberingConfigUpdate(BaseModel):
    name: str | None = Field(default=None, max_length=255)
    format: str | None = Field(default=None, max_length=255)
    counter_reset: str | None = None
    padding: int | None = Field(default=None, ge=1, le=10)
    is_active: bool | None = None

    @field_validator("name", "format", "counter_reset", "padding", "is_active")
    @classmethod
    def reject_null_fields(cls, value, info: ValidationInfo):
        return reject_null(value, info.field_name)


class NumberingConfigRead(NumberingConfigBase):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    counter_reset: CounterReset
    last_number: int
    year: int | None = None
    month: int | None = None
    created_at: datetime
    updated_at: datetime


class NumberPreview(BaseModel):
    letter_number: str
