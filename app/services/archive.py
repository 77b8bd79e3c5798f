from __future__ import annotations

import logging
import os
from datetime import date, timedelta

from fastapi import HTTPException
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.models.correspondence import (
    Archive,
    ArchiveClassification,
    ArchiveType,
    IncomingLetterClassification,
    IncomingLetterStatus,
    LetterStatus,
    RetentionStatus,
)
from app.schemas.archive import (
    ArchiveCreate,
    ArchiveIncomingRequest,
    ArchiveLetterRequest,
    ArchiveUpdate,
)
from app.services.auth_dependencies import ensure_permission
from app.services.cache import cache
from app.services.common import (
    apply_ordering,
    apply_pagination,
    coerce_uuid,
    validate_enum,
)
from app.services.incoming_letter import incoming_letters
from app.services.letter import letters
from app.services.outgoing_letter import outgoing_letters
from app.services.response import ListResponseMixin
from app.services.storage import storage

logger = logging.getLogger(__name__)

EXPIRING_WINDOW_DAYS = 30

INCOMING_CLASSIFICATION_MAP = {
    IncomingLetterClassification.biasa: ArchiveClassification.public,
    IncomingLetterClassification.penting: ArchiveClassification.internal,
    IncomingLetterClassification.segera: ArchiveClassification.internal,
    IncomingLetterClassification.rahasia: ArchiveClassification.confidential,
}

FILE_SIZE_UNITS = ["B", "KB", "MB", "GB", "TB"]


def add_years(start: date, years: int) -> date:
    try:
        return start.replace(year=start.year + years)
    except ValueError:
        # Feb 29 in a non-leap target year
        return start.replace(year=start.year + years, day=28)


def retention_until(start: date, period: int | None) -> date | None:
    if not period:
        return None
    return add_years(start, period)


def human_file_size(size: int | None) -> str | None:
    if size is None:
        return None
    value = float(size)
    for unit in FILE_SIZE_UNITS:
        if value < 1024 or unit == FILE_SIZE_UNITS[-1]:
            return f"{value:.2f} {unit}"
        value /= 1024
    return None


def _file_type(file_path: str | None) -> str | None:
    if not file_path:
        return None
    extension = os.path.splitext(file_path)[1].lstrip(".").lower()
    return extension or None


def _commit_archive(db: Session, archive: Archive) -> Archive:
    try:
        db.add(archive)
        db.commit()
    except IntegrityError:
        db.rollback()
        raise HTTPException(status_code=409, detail="Document is already archived")
    db.refresh(archive)
    cache.clear_archive_cache()
    return archive


class Archives(ListResponseMixin):
    @staticmethod
    def create(db: Session, payload: ArchiveCreate, auth: dict) -> Archive:
        ensure_permission(auth, "archive.manage")
        data = payload.model_dump()
        data["classification"] = validate_enum(
            ArchiveClassification, data["classification"], "classification"
        )
        data["type"] = ArchiveType.document
        data["retention_until"] = retention_until(
            date.today(), data.get("retention_period")
        )
        data["retention_status"] = RetentionStatus.active
        data["archived_by"] = coerce_uuid(auth["person_id"])
        if not data.get("file_type"):
            data["file_type"] = _file_type(data.get("file_path"))
        archive = _commit_archive(db, Archive(**data))
        logger.info("Created archive %s", archive.id)
        return archive

    @staticmethod
    def get(db: Session, archive_id: str) -> Archive:
        archive = db.get(Archive, coerce_uuid(archive_id))
        if not archive:
            raise HTTPException(status_code=404, detail="Archive not found")
        return archive

    @staticmethod
    def list(
        db: Session,
        archive_type: str | None,
        category: str | None,
        classification: str | None,
        search: str | None,
        order_by: str,
        order_dir: str,
        limit: int,
        offset: int,
    ) -> list[Archive]:
        query = db.query(Archive)
        if archive_type is not None:
            query = query.filter(
                Archive.type == validate_enum(ArchiveType, archive_type, "type")
            )
        if category:
            query = query.filter(Archive.category == category)
        if classification is not None:
            query = query.filter(
                Archive.classification
                == validate_enum(ArchiveClassification, classification, "classification")
            )
        if search:
            like = f"%{search}%"
            query = query.filter(
                Archive.title.ilike(like)
                | Archive.document_number.ilike(like)
                | Archive.description.ilike(like)
            )
        query = apply_ordering(
            query,
            order_by,
            order_dir,
            {
                "created_at": Archive.created_at,
                "document_date": Archive.document_date,
                "retention_until": Archive.retention_until,
                "title": Archive.title,
            },
        )
        return apply_pagination(query, limit, offset).all()

    @staticmethod
    def update(db: Session, archive_id: str, payload: ArchiveUpdate, auth: dict) -> Archive:
        ensure_permission(auth, "archive.manage")
        archive = Archives.get(db, archive_id)
        data = payload.model_dump(exclude_unset=True)
        if "classification" in data:
            data["classification"] = validate_enum(
                ArchiveClassification, data["classification"], "classification"
            )
        if "retention_period" in data and data["retention_period"] != archive.retention_period:
            until = retention_until(archive.created_at.date(), data["retention_period"])
            archive.retention_until = until
            archive.retention_status = (
                RetentionStatus.expired
                if until is not None and until < date.today()
                else RetentionStatus.active
            )
        for key, value in data.items():
            setattr(archive, key, value)
        db.commit()
        db.refresh(archive)
        cache.clear_archive_cache()
        logger.info("Updated archive %s", archive.id)
        return archive

    @staticmethod
    def delete(db: Session, archive_id: str, auth: dict) -> None:
        ensure_permission(auth, "archive.manage")
        archive = Archives.get(db, archive_id)
        if archive.incoming_letter is not None:
            archive.incoming_letter.status = IncomingLetterStatus.completed
        db.delete(archive)
        db.commit()
        cache.clear_archive_cache()
        logger.info("Deleted archive %s", archive_id)

    # -----------------------------------------------------------------------
    # Archiving letters
    # -----------------------------------------------------------------------

    @staticmethod
    def archive_incoming_letter(
        db: Session, letter_id: str, payload: ArchiveIncomingRequest, auth: dict
    ) -> Archive:
        ensure_permission(auth, "archive.manage")
        letter = incoming_letters.get(db, letter_id)
        if letter.archive is not None:
            raise HTTPException(
                status_code=409, detail="Incoming letter is already archived"
            )
        if letter.status != IncomingLetterStatus.completed:
            raise HTTPException(
                status_code=400,
                detail="Only completed incoming letters can be archived",
            )
        if not letter.file_path:
            raise HTTPException(
                status_code=400, detail="Incoming letter has no file to archive"
            )
        archive = Archive(
            type=ArchiveType.incoming_letter,
            incoming_letter_id=letter.id,
            document_number=letter.incoming_number,
            title=letter.subject,
            description=(
                f"Incoming letter from {letter.sender}, "
                f"number {letter.original_number}"
            ),
            category=payload.category or letter.category,
            document_date=letter.received_date,
            document_type=letter.category,
            file_path=letter.file_path,
            file_type=_file_type(letter.file_path),
            file_size=storage.object_size(letter.file_path),
            sender=letter.sender,
            classification=INCOMING_CLASSIFICATION_MAP.get(
                letter.classification, ArchiveClassification.internal
            ),
            retention_period=payload.retention_period,
            retention_until=retention_until(date.today(), payload.retention_period),
            retention_status=RetentionStatus.active,
            archived_by=coerce_uuid(auth["person_id"]),
        )
        letter.status = IncomingLetterStatus.archived
        archive = _commit_archive(db, archive)
        logger.info("Archived incoming letter %s as %s", letter.id, archive.id)
        return archive

    @staticmethod
    def archive_outgoing_letter(
        db: Session, letter_id: str, payload: ArchiveLetterRequest, auth: dict
    ) -> Archive:
        ensure_permission(auth, "archive.manage")
        letter = outgoing_letters.get(db, letter_id)
        if letter.archive is not None:
            raise HTTPException(
                status_code=409, detail="Outgoing letter is already archived"
            )
        if letter.status != LetterStatus.signed:
            raise HTTPException(
                status_code=400, detail="Only fully signed letters can be archived"
            )
        archive = Archive(
            type=ArchiveType.outgoing_letter,
            outgoing_letter_id=letter.id,
            document_number=letter.letter_number,
            title=letter.subject,
            description=payload.description
            or f"Outgoing letter from template {letter.template.name}",
            category=payload.category,
            document_date=letter.letter_date,
            document_type="Outgoing letter",
            file_path=payload.file_path,
            file_type=_file_type(payload.file_path),
            file_size=storage.object_size(payload.file_path),
            classification=validate_enum(
                ArchiveClassification, payload.classification, "classification"
            ),
            retention_period=payload.retention_period,
            retention_until=retention_until(date.today(), payload.retention_period),
            retention_status=RetentionStatus.active,
            archived_by=coerce_uuid(auth["person_id"]),
        )
        archive = _commit_archive(db, archive)
        logger.info("Archived outgoing letter %s as %s", letter.id, archive.id)
        return archive

    @staticmethod
    def archive_letter(
        db: Session, letter_id: str, payload: ArchiveLetterRequest, auth: dict
    ) -> Archive:
        ensure_permission(auth, "archive.manage")
        letter = letters.get(db, letter_id)
        if letter.archive is not None:
            raise HTTPException(status_code=409, detail="Letter is already archived")
        if letter.status != LetterStatus.signed:
            raise HTTPException(
                status_code=400, detail="Only fully approved letters can be archived"
            )
        archive = Archive(
            type=ArchiveType.letter,
            letter_id=letter.id,
            document_number=letter.letter_number,
            title=letter.subject,
            description=payload.description
            or f"Letter from template {letter.template.name}",
            category=payload.category,
            document_date=letter.letter_date,
            document_type="Letter",
            file_path=payload.file_path,
            file_type=_file_type(payload.file_path),
            file_size=storage.object_size(payload.file_path),
            recipient=letter.recipient,
            classification=validate_enum(
                ArchiveClassification, payload.classification, "classification"
            ),
            retention_period=payload.retention_period,
            retention_until=retention_until(date.today(), payload.retention_period),
            retention_status=RetentionStatus.active,
            archived_by=coerce_uuid(auth["person_id"]),
        )
        archive = _commit_archive(db, archive)
        logger.info("Archived letter %s as %s", letter.id, archive.id)
        return archive

    # -----------------------------------------------------------------------
    # Retention and reporting
    # -----------------------------------------------------------------------

    @staticmethod
    def expiring(
        db: Session, days: int, limit: int, offset: int
    ) -> list[Archive]:
        today = date.today()
        query = (
            db.query(Archive)
            .filter(
                Archive.retention_until.is_not(None),
                Archive.retention_until >= today,
                Archive.retention_until <= today + timedelta(days=days),
            )
            .order_by(Archive.retention_until.asc())
        )
        return apply_pagination(query, limit, offset).all()

    @staticmethod
    def stats(db: Session) -> dict:
        return cache.remember(
            cache.build_key(cache.PREFIX_ARCHIVES, "stats", date.today().isoformat()),
            lambda: Archives._compute_stats(db),
        )

    @staticmethod
    def _compute_stats(db: Session) -> dict:
        today = date.today()
        by_type = {
            row[0].value: row[1]
            for row in db.execute(
                select(Archive.type, func.count(Archive.id)).group_by(Archive.type)
            )
        }
        by_classification = {
            row[0].value: row[1]
            for row in db.execute(
                select(Archive.classification, func.count(Archive.id)).group_by(
                    Archive.classification
                )
            )
        }
        expiring_soon = db.scalar(
            select(func.count(Archive.id)).where(
                Archive.retention_until.is_not(None),
                Archive.retention_until >= today,
                Archive.retention_until <= today + timedelta(days=EXPIRING_WINDOW_DAYS),
            )
        )
        expired = db.scalar(
            select(func.count(Archive.id)).where(
                (Archive.retention_status == RetentionStatus.expired)
                | (Archive.retention_until < today)
            )
        )
        return {
            "total": sum(by_type.values()),
            "by_type": by_type,
            "by_classification": by_classification,
            "expiring_soon": expiring_soon or 0,
            "expired": expired or 0,
        }

    @staticmethod
    def file_info(db: Session, archive_id: str) -> dict:
        archive = Archives.get(db, archive_id)
        exists = storage.object_exists(archive.file_path)
        return {
            "file_path": archive.file_path,
            "exists": exists,
            "file_size": human_file_size(archive.file_size),
            "download_url": (
                storage.generate_download_url(archive.file_path) if exists else None
            ),
        }

    @staticmethod
    def mark_expired(db: Session, today: date | None = None) -> int:
        """Flip active archives past their retention date to expired."""
        today = today or date.today()
        expired = (
            db.query(Archive)
            .filter(
                Archive.retention_status == RetentionStatus.active,
                Archive.retention_until.is_not(None),
                Archive.retention_until < today,
            )
            .all()
        )
        for archive in expired:
            archive.retention_status = RetentionStatus.expired
        db.commit()
        if expired:
            cache.clear_archive_cache()
            logger.info("Marked %d archives as expired", len(expired))
        return len(expired)


archives = Archives()
