"""Letter number generation.

Three number families exist:

* outgoing letters: ``{no}/{kode}/{unit}/{bulan}/{tahun}`` counted per
  numbering group per year, or a ``LetterNumberingConfig`` counter row when
  the template points at one;
* incoming letters: ``SM/001/ORG/JAN/2025`` counted per org unit per month;
* legacy letters: ``{{seq}}/{{code}}/{{month}}/{{year}}`` counted per template
  per month, or the counter row whose code matches the template code.

Sequences are derived from existing rows, so two concurrent requests in the
same period can receive the same number.
"""

from __future__ import annotations

import logging
import re
from datetime import datetime, timezone

from fastapi import HTTPException
from sqlalchemy import func, or_, select
from sqlalchemy.orm import Session

from app.config import settings
from app.models.correspondence import (
    CounterReset,
    DocumentTemplate,
    IncomingLetter,
    Letter,
    LetterNumberingConfig,
    LetterTemplate,
    OutgoingLetter,
)
from app.models.person import OrganizationUnit
from app.schemas.document_template import NumberingConfigCreate, NumberingConfigUpdate
from app.services.common import (
    apply_ordering,
    apply_pagination,
    coerce_uuid,
    month_bounds,
    validate_enum,
    year_bounds,
)
from app.services.response import ListResponseMixin

logger = logging.getLogger(__name__)

ROMAN_MONTHS = ["I", "II", "III", "IV", "V", "VI", "VII", "VIII", "IX", "X", "XI", "XII"]
MONTH_ABBREVIATIONS = [
    "JAN", "FEB", "MAR", "APR", "MAY", "JUN",
    "JUL", "AUG", "SEP", "OCT", "NOV", "DEC",
]

DEFAULT_OUTGOING_FORMAT = "{no}/{kode}/{unit}/{bulan}/{tahun}"
DEFAULT_LETTER_FORMAT = "{{seq}}/{{code}}/{{month}}/{{year}}"
INCOMING_PREFIX = "SM"


def roman_month(month: int) -> str:
    if not 1 <= month <= 12:
        raise ValueError(f"Invalid month: {month}")
    return ROMAN_MONTHS[month - 1]


def _now(now: datetime | None) -> datetime:
    return now or datetime.now(timezone.utc)


def _replace_tokens(template: str, replacements: dict[str, str]) -> str:
    result = template
    for token, value in replacements.items():
        result = result.replace(token, value)
    return result


def format_outgoing_number(
    fmt: str | None, sequence: int, code: str, unit: str, now: datetime
) -> str:
    padded = str(sequence).zfill(3)
    month = roman_month(now.month)
    year = str(now.year)
    return _replace_tokens(
        fmt or DEFAULT_OUTGOING_FORMAT,
        {
            "{no}": padded,
            "{kode}": code,
            "{unit}": unit,
            "{bulan}": month,
            "{tahun}": year,
            "{NO}": padded,
            "{CODE}": code,
            "{UNIT}": unit,
            "{MONTH}": month,
            "{YEAR}": year,
        },
    )


def format_letter_number(
    fmt: str | None, sequence: int, code: str, unit: str, now: datetime
) -> str:
    padded = str(sequence).zfill(3)
    number = _replace_tokens(
        fmt or DEFAULT_LETTER_FORMAT,
        {
            "{{seq}}": padded,
            "{{sequence}}": padded,
            "{{code}}": code,
            "{{unit}}": unit,
            "{{month}}": roman_month(now.month),
            "{{month_num}}": f"{now.month:02d}",
            "{{year}}": str(now.year),
            "{{year_short}}": f"{now.year % 100:02d}",
            "{{day}}": f"{now.day:02d}",
            "{{date}}": now.strftime("%Y%m%d"),
        },
    )
    number = re.sub(r"/+", "/", number)
    return number.strip("/")


def format_incoming_number(sequence: int, org_code: str | None, now: datetime) -> str:
    code = org_code or settings.default_org_code
    return (
        f"{INCOMING_PREFIX}/{sequence:03d}/{code}/"
        f"{MONTH_ABBREVIATIONS[now.month - 1]}/{now.year}"
    )


# ---------------------------------------------------------------------------
# NumberingConfigs: dedicated counter rows
# ---------------------------------------------------------------------------


class NumberingConfigs(ListResponseMixin):
    @staticmethod
    def create(db: Session, payload: NumberingConfigCreate) -> LetterNumberingConfig:
        data = payload.model_dump()
        data["counter_reset"] = validate_enum(
            CounterReset, data["counter_reset"], "counter_reset"
        )
        existing = db.scalars(
            select(LetterNumberingConfig).where(
                LetterNumberingConfig.code == data["code"]
            )
        ).first()
        if existing:
            raise HTTPException(
                status_code=409, detail="Numbering config code already exists"
            )
        config = LetterNumberingConfig(**data)
        db.add(config)
        db.commit()
        db.refresh(config)
        logger.info("Created numbering config %s (%s)", config.id, config.code)
        return config

    @staticmethod
    def get(db: Session, config_id: str) -> LetterNumberingConfig:
        config = db.get(LetterNumberingConfig, coerce_uuid(config_id))
        if not config:
            raise HTTPException(status_code=404, detail="Numbering config not found")
        return config

    @staticmethod
    def list(
        db: Session,
        is_active: bool | None,
        order_by: str,
        order_dir: str,
        limit: int,
        offset: int,
    ) -> list[LetterNumberingConfig]:
        query = db.query(LetterNumberingConfig)
        if is_active is not None:
            query = query.filter(LetterNumberingConfig.is_active == is_active)
        query = apply_ordering(
            query,
            order_by,
            order_dir,
            {
                "code": LetterNumberingConfig.code,
                "created_at": LetterNumberingConfig.created_at,
            },
        )
        return apply_pagination(query, limit, offset).all()

    @staticmethod
    def update(
        db: Session, config_id: str, payload: NumberingConfigUpdate
    ) -> LetterNumberingConfig:
        config = NumberingConfigs.get(db, config_id)
        data = payload.model_dump(exclude_unset=True)
        if "counter_reset" in data:
            data["counter_reset"] = validate_enum(
                CounterReset, data["counter_reset"], "counter_reset"
            )
        for key, value in data.items():
            setattr(config, key, value)
        db.commit()
        db.refresh(config)
        logger.info("Updated numbering config %s", config.id)
        return config

    @staticmethod
    def delete(db: Session, config_id: str) -> None:
        config = NumberingConfigs.get(db, config_id)
        config.is_active = False
        db.commit()
        logger.info("Deactivated numbering config %s", config_id)

    @staticmethod
    def _needs_reset(config: LetterNumberingConfig, now: datetime) -> bool:
        if config.counter_reset == CounterReset.yearly:
            return config.year != now.year
        return config.year != now.year or config.month != now.month

    @staticmethod
    def peek_number(config: LetterNumberingConfig, now: datetime | None = None) -> int:
        now = _now(now)
        if NumberingConfigs._needs_reset(config, now):
            return 1
        return (config.last_number or 0) + 1

    @staticmethod
    def next_number(config: LetterNumberingConfig, now: datetime | None = None) -> int:
        """Consume the next counter value; the caller commits."""
        now = _now(now)
        number = NumberingConfigs.peek_number(config, now)
        config.last_number = number
        config.year = now.year
        config.month = now.month
        return number

    @staticmethod
    def format_number(
        config: LetterNumberingConfig,
        number: int,
        replacements: dict[str, str] | None = None,
        now: datetime | None = None,
    ) -> str:
        now = _now(now)
        formatted = config.format.replace("XXX", str(number).zfill(config.padding))
        for key, value in (replacements or {}).items():
            formatted = formatted.replace("{{" + key + "}}", value)
        formatted = formatted.replace("{{month}}", roman_month(now.month))
        return formatted.replace("{{year}}", str(now.year))

    @staticmethod
    def preview(
        db: Session, config_id: str, replacements: dict[str, str] | None = None
    ) -> str:
        config = NumberingConfigs.get(db, config_id)
        return NumberingConfigs.format_number(
            config, NumberingConfigs.peek_number(config), replacements
        )


# ---------------------------------------------------------------------------
# LetterNumbers: sequence derivation per letter family
# ---------------------------------------------------------------------------


class LetterNumbers:
    @staticmethod
    def next_incoming_number(
        db: Session,
        organization_unit_id,
        now: datetime | None = None,
    ) -> str:
        now = _now(now)
        start, end = month_bounds(now)
        stmt = select(func.count(IncomingLetter.id)).where(
            IncomingLetter.created_at >= start,
            IncomingLetter.created_at < end,
        )
        org_code = None
        if organization_unit_id is not None:
            stmt = stmt.where(
                IncomingLetter.organization_unit_id == coerce_uuid(organization_unit_id)
            )
            unit = db.get(OrganizationUnit, coerce_uuid(organization_unit_id))
            org_code = unit.code if unit else None
        else:
            stmt = stmt.where(IncomingLetter.organization_unit_id.is_(None))
        sequence = (db.scalar(stmt) or 0) + 1
        return format_incoming_number(sequence, org_code, now)

    @staticmethod
    def group_template_ids(db: Session, template: DocumentTemplate) -> list:
        group_id = template.numbering_group_key
        return list(
            db.scalars(
                select(DocumentTemplate.id).where(
                    or_(
                        DocumentTemplate.numbering_group_id == group_id,
                        DocumentTemplate.id == group_id,
                    )
                )
            )
        )

    @staticmethod
    def next_outgoing_number(
        db: Session,
        template: DocumentTemplate,
        unit_code: str | None,
        now: datetime | None = None,
    ) -> str:
        now = _now(now)
        code = template.code or settings.default_letter_code
        unit = unit_code or settings.default_org_code
        config = template.numbering_config
        if config is not None and config.is_active:
            number = NumberingConfigs.next_number(config, now)
            return NumberingConfigs.format_number(
                config, number, {"code": code, "kode": code, "unit": unit}, now
            )

        start, end = year_bounds(now)
        template_ids = LetterNumbers.group_template_ids(db, template)
        count = db.scalar(
            select(func.count(OutgoingLetter.id)).where(
                OutgoingLetter.template_id.in_(template_ids),
                OutgoingLetter.letter_number.is_not(None),
                OutgoingLetter.created_at >= start,
                OutgoingLetter.created_at < end,
            )
        )
        return format_outgoing_number(
            template.numbering_format, (count or 0) + 1, code, unit, now
        )

    @staticmethod
    def next_letter_number(
        db: Session,
        template: LetterTemplate,
        data: dict | None = None,
        now: datetime | None = None,
    ) -> str:
        now = _now(now)
        data = data or {}
        unit = str(data.get("unit_code") or data.get("unit") or "")
        config = db.scalars(
            select(LetterNumberingConfig).where(
                LetterNumberingConfig.code == template.code,
                LetterNumberingConfig.is_active.is_(True),
            )
        ).first()
        if config is not None:
            number = NumberingConfigs.next_number(config, now)
            return NumberingConfigs.format_number(
                config, number, {"code": template.code, "unit": unit}, now
            )

        start, end = month_bounds(now)
        count = db.scalar(
            select(func.count(Letter.id)).where(
                Letter.template_id == template.id,
                Letter.letter_number.is_not(None),
                Letter.created_at >= start,
                Letter.created_at < end,
            )
        )
        return format_letter_number(
            template.numbering_format, (count or 0) + 1, template.code, unit, now
        )


numbering_configs = NumberingConfigs()
letter_numbers = LetterNumbers()
