from __future__ import annotations

import logging

from fastapi import HTTPException
from sqlalchemy.orm import Session

from app.models.correspondence import (
    DispositionStatus,
    IncomingLetter,
    IncomingLetterClassification,
    IncomingLetterStatus,
)
from app.models.person import OrganizationUnit
from app.schemas.incoming_letter import IncomingLetterCreate, IncomingLetterUpdate
from app.services.common import (
    apply_ordering,
    apply_pagination,
    coerce_uuid,
    validate_enum,
)
from app.services.numbering import letter_numbers
from app.services.response import ListResponseMixin
from app.services.storage import storage

logger = logging.getLogger(__name__)


def refresh_status_from_dispositions(letter: IncomingLetter) -> IncomingLetterStatus:
    """Recompute the letter status from its dispositions; the caller commits."""
    if letter.status == IncomingLetterStatus.archived:
        return letter.status
    statuses = [d.status for d in letter.dispositions]
    if not statuses:
        letter.status = IncomingLetterStatus.new
    elif all(s == DispositionStatus.completed for s in statuses):
        letter.status = IncomingLetterStatus.completed
    elif all(s == DispositionStatus.pending for s in statuses):
        letter.status = IncomingLetterStatus.disposed
    else:
        letter.status = IncomingLetterStatus.in_progress
    return letter.status


class IncomingLetters(ListResponseMixin):
    @staticmethod
    def create(db: Session, payload: IncomingLetterCreate, auth: dict) -> IncomingLetter:
        data = payload.model_dump()
        data["classification"] = validate_enum(
            IncomingLetterClassification, data["classification"], "classification"
        )
        org_id = data.get("organization_unit_id") or auth.get("organization_unit_id")
        if org_id is not None:
            if not db.get(OrganizationUnit, coerce_uuid(org_id)):
                raise HTTPException(
                    status_code=404, detail="Organization unit not found"
                )
            org_id = coerce_uuid(org_id)
        data["organization_unit_id"] = org_id
        data["incoming_number"] = letter_numbers.next_incoming_number(db, org_id)
        data["registered_by"] = coerce_uuid(auth["person_id"])
        data["status"] = IncomingLetterStatus.new

        letter = IncomingLetter(**data)
        db.add(letter)
        db.commit()
        db.refresh(letter)
        logger.info(
            "Registered incoming letter %s as %s", letter.id, letter.incoming_number
        )
        return letter

    @staticmethod
    def get(db: Session, letter_id: str) -> IncomingLetter:
        letter = db.get(IncomingLetter, coerce_uuid(letter_id))
        if not letter or not letter.is_active:
            raise HTTPException(status_code=404, detail="Incoming letter not found")
        return letter

    @staticmethod
    def list(
        db: Session,
        status: str | None,
        classification: str | None,
        organization_unit_id: str | None,
        search: str | None,
        order_by: str,
        order_dir: str,
        limit: int,
        offset: int,
    ) -> list[IncomingLetter]:
        query = db.query(IncomingLetter).filter(IncomingLetter.is_active.is_(True))
        if status is not None:
            query = query.filter(
                IncomingLetter.status
                == validate_enum(IncomingLetterStatus, status, "status")
            )
        if classification is not None:
            query = query.filter(
                IncomingLetter.classification
                == validate_enum(
                    IncomingLetterClassification, classification, "classification"
                )
            )
        if organization_unit_id is not None:
            query = query.filter(
                IncomingLetter.organization_unit_id == coerce_uuid(organization_unit_id)
            )
        if search:
            like = f"%{search}%"
            query = query.filter(
                IncomingLetter.subject.ilike(like)
                | IncomingLetter.sender.ilike(like)
                | IncomingLetter.incoming_number.ilike(like)
                | IncomingLetter.original_number.ilike(like)
            )
        query = apply_ordering(
            query,
            order_by,
            order_dir,
            {
                "created_at": IncomingLetter.created_at,
                "received_date": IncomingLetter.received_date,
                "incoming_number": IncomingLetter.incoming_number,
            },
        )
        return apply_pagination(query, limit, offset).all()

    @staticmethod
    def update(
        db: Session, letter_id: str, payload: IncomingLetterUpdate
    ) -> IncomingLetter:
        letter = IncomingLetters.get(db, letter_id)
        if letter.status != IncomingLetterStatus.new:
            raise HTTPException(
                status_code=400,
                detail="Only new incoming letters can be edited",
            )
        data = payload.model_dump(exclude_unset=True)
        if "classification" in data:
            data["classification"] = validate_enum(
                IncomingLetterClassification, data["classification"], "classification"
            )
        for key, value in data.items():
            setattr(letter, key, value)
        db.commit()
        db.refresh(letter)
        logger.info("Updated incoming letter %s", letter.id)
        return letter

    @staticmethod
    def delete(db: Session, letter_id: str) -> None:
        letter = IncomingLetters.get(db, letter_id)
        if letter.status != IncomingLetterStatus.new:
            raise HTTPException(
                status_code=400,
                detail="Only new incoming letters can be deleted",
            )
        if letter.dispositions:
            raise HTTPException(
                status_code=400,
                detail="Incoming letter has dispositions and cannot be deleted",
            )
        letter.is_active = False
        db.commit()
        logger.info("Soft-deleted incoming letter %s", letter_id)

    @staticmethod
    def download_url(db: Session, letter_id: str) -> str:
        letter = IncomingLetters.get(db, letter_id)
        if not letter.file_path:
            raise HTTPException(status_code=404, detail="Incoming letter has no file")
        if not storage.is_configured():
            raise HTTPException(status_code=503, detail="File storage is not configured")
        return storage.generate_download_url(letter.file_path)

    @staticmethod
    def upload_url(file_name: str, mime_type: str, auth: dict) -> dict:
        if not storage.is_configured():
            raise HTTPException(status_code=503, detail="File storage is not configured")
        storage_key = storage.generate_storage_key(
            "incoming-letters", auth["person_id"], file_name
        )
        return {
            "storage_key": storage_key,
            "upload_url": storage.generate_upload_url(storage_key, mime_type),
        }


incoming_letters = IncomingLetters()
