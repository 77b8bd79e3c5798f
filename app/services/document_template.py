"""Letter templates.

``DocumentTemplate`` drives outgoing letters: page, header, content block,
footer and signature slot settings stored as JSON. ``LetterTemplate`` is the
simpler content/signature list used by legacy letters. Rendering substitutes
``{{key}}`` tokens into the blocks and produces an HTML fragment.
"""

from __future__ import annotations

import html
import logging
import re
from typing import Any

from fastapi import HTTPException
from sqlalchemy import select
from sqlalchemy.orm import Session

from app.models.correspondence import (
    DocumentTemplate,
    LetterNumberingConfig,
    LetterTemplate,
)
from app.schemas.document_template import (
    DocumentTemplateCreate,
    DocumentTemplateDuplicate,
    DocumentTemplateUpdate,
    LetterTemplateCreate,
    LetterTemplateUpdate,
)
from app.services.cache import cache
from app.services.common import apply_ordering, apply_pagination, coerce_uuid
from app.services.response import ListResponseMixin

logger = logging.getLogger(__name__)

VARIABLE_PATTERN = re.compile(r"\{\{(\w+)\}\}")

PAPER_SIZES = {
    "A4": {"width": 210, "height": 297},
    "Letter": {"width": 216, "height": 279},
    "Legal": {"width": 216, "height": 356},
    "F4": {"width": 215, "height": 330},
}

DEFAULT_MARGINS = {"top": 20, "bottom": 20, "left": 25, "right": 20}


def default_page_settings() -> dict:
    return {
        "paper_size": "A4",
        "orientation": "portrait",
        "margins": dict(DEFAULT_MARGINS),
        "default_font": {
            "family": "Times New Roman",
            "size": 12,
            "line_height": 1.5,
        },
    }


def default_signature_settings() -> dict:
    return {"margin_top": 20, "layout": "2-column", "column_gap": 10, "slots": []}


# ---------------------------------------------------------------------------
# Layout helpers
# ---------------------------------------------------------------------------


def paper_dimensions(page_settings: dict | None) -> dict:
    page_settings = page_settings or {}
    size = PAPER_SIZES.get(page_settings.get("paper_size") or "A4", PAPER_SIZES["A4"])
    if page_settings.get("orientation") == "landscape":
        return {"width": size["height"], "height": size["width"]}
    return dict(size)


def content_dimensions(page_settings: dict | None) -> dict:
    paper = paper_dimensions(page_settings)
    margins = (page_settings or {}).get("margins") or {}
    return {
        "width": paper["width"]
        - margins.get("left", DEFAULT_MARGINS["left"])
        - margins.get("right", DEFAULT_MARGINS["right"]),
        "height": paper["height"]
        - margins.get("top", DEFAULT_MARGINS["top"])
        - margins.get("bottom", DEFAULT_MARGINS["bottom"]),
    }


def signature_slots(template: DocumentTemplate) -> list[dict]:
    return list((template.signature_settings or {}).get("slots") or [])


def variable_keys(template: DocumentTemplate) -> list[str]:
    """Unique ``{{key}}`` names in content blocks and signature placeholders."""
    keys: list[str] = []
    texts = [block.get("content") or "" for block in template.content_blocks or []]
    for slot in signature_slots(template):
        texts.append(slot.get("name_placeholder") or "")
        texts.append(slot.get("nip_placeholder") or "")
    for text in texts:
        for key in VARIABLE_PATTERN.findall(str(text)):
            if key not in keys:
                keys.append(key)
    return keys


def substitute(text: str, values: dict[str, Any]) -> str:
    def _replace(match: re.Match) -> str:
        key = match.group(1)
        if key not in values or values[key] is None:
            return match.group(0)
        return html.escape(str(values[key]))

    return VARIABLE_PATTERN.sub(_replace, text)


def render_blocks(blocks: list[dict] | None, values: dict[str, Any] | None) -> str:
    values = values or {}
    parts = []
    for block in blocks or []:
        content = substitute(str(block.get("content") or ""), values)
        block_type = html.escape(str(block.get("type") or "text"))
        align = block.get("align")
        style = f' style="text-align: {html.escape(str(align))}"' if align else ""
        parts.append(f'<div class="block block-{block_type}"{style}>{content}</div>')
    return "\n".join(parts)


def render_template(template: DocumentTemplate, values: dict[str, Any] | None) -> str:
    values = values or {}
    parts = []
    header = template.header_settings or {}
    if header.get("enabled", True) and header.get("text_lines"):
        lines = "".join(
            f"<div>{html.escape(str(line.get('text') or ''))}</div>"
            for line in header["text_lines"]
        )
        parts.append(f'<header class="letter-header">{lines}</header>')
    parts.append(render_blocks(template.content_blocks, values))
    slots = signature_slots(template)
    if slots:
        cells = []
        for slot in slots:
            label = html.escape(str(slot.get("label") or ""))
            name = substitute(str(slot.get("name_placeholder") or ""), values)
            nip = substitute(str(slot.get("nip_placeholder") or ""), values)
            cells.append(
                f'<div class="signature-slot" data-slot="{html.escape(str(slot.get("id", "")))}">'
                f"<div>{label}</div><div>{name}</div><div>{nip}</div></div>"
            )
        parts.append(f'<section class="signatures">{"".join(cells)}</section>')
    footer = template.footer_settings or {}
    if footer.get("enabled") and footer.get("text"):
        parts.append(
            f'<footer class="letter-footer">{html.escape(str(footer["text"]))}</footer>'
        )
    return "\n".join(parts)


def missing_variables(keys: list[str], values: dict[str, Any] | None) -> list[str]:
    values = values or {}
    return [key for key in keys if values.get(key) in (None, "")]


# ---------------------------------------------------------------------------
# DocumentTemplates
# ---------------------------------------------------------------------------


class DocumentTemplates(ListResponseMixin):
    @staticmethod
    def _ensure_unique_code(db: Session, organization_unit_id, code: str, exclude_id=None):
        stmt = select(DocumentTemplate).where(
            DocumentTemplate.code == code,
            DocumentTemplate.organization_unit_id == organization_unit_id,
        )
        if exclude_id is not None:
            stmt = stmt.where(DocumentTemplate.id != exclude_id)
        if db.scalars(stmt).first():
            raise HTTPException(
                status_code=409,
                detail="Template code already exists in this organization unit",
            )

    @staticmethod
    def _validate_links(db: Session, data: dict) -> None:
        if data.get("numbering_group_id") is not None:
            if not db.get(DocumentTemplate, coerce_uuid(data["numbering_group_id"])):
                raise HTTPException(
                    status_code=404, detail="Numbering group template not found"
                )
        if data.get("numbering_config_id") is not None:
            if not db.get(LetterNumberingConfig, coerce_uuid(data["numbering_config_id"])):
                raise HTTPException(status_code=404, detail="Numbering config not found")

    @staticmethod
    def create(db: Session, payload: DocumentTemplateCreate, auth: dict) -> DocumentTemplate:
        data = payload.model_dump()
        if data.get("organization_unit_id") is None and auth.get("organization_unit_id"):
            data["organization_unit_id"] = coerce_uuid(auth["organization_unit_id"])
        DocumentTemplates._ensure_unique_code(
            db, data.get("organization_unit_id"), data["code"]
        )
        DocumentTemplates._validate_links(db, data)
        data["page_settings"] = data.get("page_settings") or default_page_settings()
        data["signature_settings"] = (
            data.get("signature_settings") or default_signature_settings()
        )
        data["created_by"] = coerce_uuid(auth["person_id"])
        template = DocumentTemplate(**data)
        db.add(template)
        db.commit()
        db.refresh(template)
        cache.forget_by_prefix(cache.PREFIX_TEMPLATES)
        logger.info("Created document template %s (%s)", template.id, template.code)
        return template

    @staticmethod
    def get(db: Session, template_id: str) -> DocumentTemplate:
        template = db.get(DocumentTemplate, coerce_uuid(template_id))
        if not template:
            raise HTTPException(status_code=404, detail="Template not found")
        return template

    @staticmethod
    def list(
        db: Session,
        organization_unit_id: str | None,
        category: str | None,
        template_type: str | None,
        is_active: bool | None,
        search: str | None,
        order_by: str,
        order_dir: str,
        limit: int,
        offset: int,
    ) -> list[DocumentTemplate]:
        query = db.query(DocumentTemplate)
        if organization_unit_id is not None:
            query = query.filter(
                DocumentTemplate.organization_unit_id
                == coerce_uuid(organization_unit_id)
            )
        if category:
            query = query.filter(DocumentTemplate.category == category)
        if template_type:
            query = query.filter(DocumentTemplate.template_type == template_type)
        if is_active is not None:
            query = query.filter(DocumentTemplate.is_active == is_active)
        if search:
            like = f"%{search}%"
            query = query.filter(
                DocumentTemplate.name.ilike(like) | DocumentTemplate.code.ilike(like)
            )
        query = apply_ordering(
            query,
            order_by,
            order_dir,
            {
                "name": DocumentTemplate.name,
                "code": DocumentTemplate.code,
                "created_at": DocumentTemplate.created_at,
            },
        )
        return apply_pagination(query, limit, offset).all()

    @staticmethod
    def update(
        db: Session, template_id: str, payload: DocumentTemplateUpdate
    ) -> DocumentTemplate:
        template = DocumentTemplates.get(db, template_id)
        data = payload.model_dump(exclude_unset=True)
        if data.get("code") and data["code"] != template.code:
            DocumentTemplates._ensure_unique_code(
                db, template.organization_unit_id, data["code"], exclude_id=template.id
            )
        if data.get("numbering_group_id") is not None:
            if coerce_uuid(data["numbering_group_id"]) == template.id:
                data["numbering_group_id"] = None
        DocumentTemplates._validate_links(db, data)
        for key, value in data.items():
            setattr(template, key, value)
        db.commit()
        db.refresh(template)
        cache.forget_by_prefix(cache.PREFIX_TEMPLATES)
        logger.info("Updated document template %s", template.id)
        return template

    @staticmethod
    def delete(db: Session, template_id: str) -> None:
        template = DocumentTemplates.get(db, template_id)
        if template.letters:
            raise HTTPException(
                status_code=400,
                detail="Template is used by letters; deactivate it instead",
            )
        db.delete(template)
        db.commit()
        cache.forget_by_prefix(cache.PREFIX_TEMPLATES)
        logger.info("Deleted document template %s", template_id)

    @staticmethod
    def toggle_active(db: Session, template_id: str) -> DocumentTemplate:
        template = DocumentTemplates.get(db, template_id)
        template.is_active = not template.is_active
        db.commit()
        db.refresh(template)
        cache.forget_by_prefix(cache.PREFIX_TEMPLATES)
        logger.info(
            "Document template %s is_active=%s", template.id, template.is_active
        )
        return template

    @staticmethod
    def duplicate(
        db: Session, template_id: str, payload: DocumentTemplateDuplicate, auth: dict
    ) -> DocumentTemplate:
        source = DocumentTemplates.get(db, template_id)
        DocumentTemplates._ensure_unique_code(
            db, source.organization_unit_id, payload.code
        )
        copy = DocumentTemplate(
            name=payload.name,
            code=payload.code,
            category=source.category,
            template_type=source.template_type,
            description=source.description,
            organization_unit_id=source.organization_unit_id,
            numbering_config_id=source.numbering_config_id,
            numbering_format=source.numbering_format,
            page_settings=source.page_settings,
            header_settings=source.header_settings,
            content_blocks=source.content_blocks,
            footer_settings=source.footer_settings,
            signature_settings=source.signature_settings,
            variables=source.variables,
            created_by=coerce_uuid(auth["person_id"]),
            is_active=False,
        )
        db.add(copy)
        db.commit()
        db.refresh(copy)
        cache.forget_by_prefix(cache.PREFIX_TEMPLATES)
        logger.info("Duplicated document template %s as %s", source.id, copy.id)
        return copy

    @staticmethod
    def layout(db: Session, template_id: str) -> dict:
        template = DocumentTemplates.get(db, template_id)
        key = cache.build_key(
            cache.PREFIX_TEMPLATES, "layout", template.id, template.updated_at.isoformat()
        )
        return cache.remember(
            key,
            lambda: {
                "paper": paper_dimensions(template.page_settings),
                "content": content_dimensions(template.page_settings),
                "variable_keys": variable_keys(template),
                "signature_slots": signature_slots(template),
            },
        )

    @staticmethod
    def render(db: Session, template_id: str, values: dict[str, Any]) -> dict:
        template = DocumentTemplates.get(db, template_id)
        return {
            "rendered_html": render_template(template, values),
            "missing_variables": missing_variables(variable_keys(template), values),
        }


# ---------------------------------------------------------------------------
# LetterTemplates
# ---------------------------------------------------------------------------


class LetterTemplates(ListResponseMixin):
    @staticmethod
    def create(db: Session, payload: LetterTemplateCreate, auth: dict) -> LetterTemplate:
        data = payload.model_dump()
        if data.get("organization_unit_id") is None and auth.get("organization_unit_id"):
            data["organization_unit_id"] = coerce_uuid(auth["organization_unit_id"])
        data["created_by"] = coerce_uuid(auth["person_id"])
        template = LetterTemplate(**data)
        db.add(template)
        db.commit()
        db.refresh(template)
        cache.forget_by_prefix(cache.PREFIX_TEMPLATES)
        logger.info("Created letter template %s (%s)", template.id, template.code)
        return template

    @staticmethod
    def get(db: Session, template_id: str) -> LetterTemplate:
        template = db.get(LetterTemplate, coerce_uuid(template_id))
        if not template:
            raise HTTPException(status_code=404, detail="Letter template not found")
        return template

    @staticmethod
    def list(
        db: Session,
        organization_unit_id: str | None,
        category: str | None,
        is_active: bool | None,
        order_by: str,
        order_dir: str,
        limit: int,
        offset: int,
    ) -> list[LetterTemplate]:
        query = db.query(LetterTemplate)
        if organization_unit_id is not None:
            query = query.filter(
                LetterTemplate.organization_unit_id == coerce_uuid(organization_unit_id)
            )
        if category:
            query = query.filter(LetterTemplate.category == category)
        if is_active is None:
            query = query.filter(LetterTemplate.is_active.is_(True))
        else:
            query = query.filter(LetterTemplate.is_active == is_active)
        query = apply_ordering(
            query,
            order_by,
            order_dir,
            {"name": LetterTemplate.name, "created_at": LetterTemplate.created_at},
        )
        return apply_pagination(query, limit, offset).all()

    @staticmethod
    def update(
        db: Session, template_id: str, payload: LetterTemplateUpdate
    ) -> LetterTemplate:
        template = LetterTemplates.get(db, template_id)
        for key, value in payload.model_dump(exclude_unset=True).items():
            setattr(template, key, value)
        db.commit()
        db.refresh(template)
        cache.forget_by_prefix(cache.PREFIX_TEMPLATES)
        logger.info("Updated letter template %s", template.id)
        return template

    @staticmethod
    def delete(db: Session, template_id: str) -> None:
        template = LetterTemplates.get(db, template_id)
        template.is_active = False
        db.commit()
        cache.forget_by_prefix(cache.PREFIX_TEMPLATES)
        logger.info("Deactivated letter template %s", template_id)


document_templates = DocumentTemplates()
letter_templates = LetterTemplates()
