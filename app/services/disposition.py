from __future__ import annotations

import logging
from datetime import date, datetime, timezone

from fastapi import HTTPException
from sqlalchemy import or_
from sqlalchemy.orm import Session

from app.models.correspondence import (
    Disposition,
    DispositionFollowUp,
    DispositionPriority,
    DispositionStatus,
    FollowUpType,
    IncomingLetterStatus,
    OutgoingLetter,
)
from app.models.person import Person
from app.schemas.disposition import DispositionCreate, FollowUpCreate
from app.services.auth_dependencies import ensure_permission, is_admin
from app.services.common import (
    apply_ordering,
    apply_pagination,
    coerce_uuid,
    validate_enum,
)
from app.services.incoming_letter import (
    incoming_letters,
    refresh_status_from_dispositions,
)
from app.services.response import ListResponseMixin

logger = logging.getLogger(__name__)


def _actor_id(auth: dict):
    return coerce_uuid(auth["person_id"])


def can_access(disposition: Disposition, auth: dict) -> bool:
    if is_admin(auth):
        return True
    actor = _actor_id(auth)
    node = disposition
    while node is not None:
        if actor in (node.from_user_id, node.to_user_id):
            return True
        node = node.parent
    return False


def _ensure_recipient(disposition: Disposition, auth: dict) -> None:
    if disposition.to_user_id != _actor_id(auth):
        raise HTTPException(
            status_code=403,
            detail="Only the recipient can update this disposition",
        )


class Dispositions(ListResponseMixin):
    @staticmethod
    def create(db: Session, payload: DispositionCreate, auth: dict) -> Disposition:
        actor = _actor_id(auth)
        letter = incoming_letters.get(db, payload.incoming_letter_id)
        if letter.status == IncomingLetterStatus.archived:
            raise HTTPException(
                status_code=400,
                detail="Archived incoming letters cannot be disposed",
            )

        parent = None
        if payload.parent_disposition_id is not None:
            ensure_permission(auth, "disposition.create_child")
            parent = Dispositions.get(db, payload.parent_disposition_id)
            if parent.incoming_letter_id != letter.id:
                raise HTTPException(
                    status_code=400,
                    detail="Parent disposition belongs to another incoming letter",
                )
            if parent.to_user_id != actor:
                raise HTTPException(
                    status_code=403,
                    detail="Only the recipient can forward this disposition",
                )
        else:
            ensure_permission(auth, "disposition.create")

        recipient = db.get(Person, coerce_uuid(payload.to_user_id))
        if not recipient or not recipient.is_active:
            raise HTTPException(status_code=404, detail="Recipient not found")
        if recipient.id == actor:
            raise HTTPException(
                status_code=400, detail="Cannot address a disposition to yourself"
            )
        if payload.deadline is not None and payload.deadline < date.today():
            raise HTTPException(
                status_code=400, detail="Deadline cannot be in the past"
            )

        disposition = Disposition(
            incoming_letter=letter,
            parent=parent,
            from_user_id=actor,
            to_user_id=recipient.id,
            instruction=payload.instruction,
            notes=payload.notes,
            priority=validate_enum(DispositionPriority, payload.priority, "priority"),
            deadline=payload.deadline,
            status=DispositionStatus.pending,
        )
        db.add(disposition)
        refresh_status_from_dispositions(letter)
        db.commit()
        db.refresh(disposition)
        logger.info(
            "Created disposition %s for incoming letter %s", disposition.id, letter.id
        )
        return disposition

    @staticmethod
    def get(db: Session, disposition_id: str) -> Disposition:
        disposition = db.get(Disposition, coerce_uuid(disposition_id))
        if not disposition:
            raise HTTPException(status_code=404, detail="Disposition not found")
        return disposition

    @staticmethod
    def view(db: Session, disposition_id: str, auth: dict) -> Disposition:
        disposition = Dispositions.get(db, disposition_id)
        if not can_access(disposition, auth):
            raise HTTPException(
                status_code=403, detail="No access to this disposition"
            )
        if (
            disposition.to_user_id == _actor_id(auth)
            and disposition.status == DispositionStatus.pending
        ):
            disposition.status = DispositionStatus.read
            disposition.read_at = datetime.now(timezone.utc)
            refresh_status_from_dispositions(disposition.incoming_letter)
            db.commit()
            db.refresh(disposition)
            logger.info("Disposition %s marked read", disposition.id)
        return disposition

    @staticmethod
    def list(
        db: Session,
        incoming_letter_id: str | None,
        to_user_id: str | None,
        from_user_id: str | None,
        status: str | None,
        priority: str | None,
        overdue: bool | None,
        order_by: str,
        order_dir: str,
        limit: int,
        offset: int,
        auth: dict | None = None,
    ) -> list[Disposition]:
        query = db.query(Disposition)
        if auth is not None and not is_admin(auth):
            actor = _actor_id(auth)
            query = query.filter(
                or_(Disposition.from_user_id == actor, Disposition.to_user_id == actor)
            )
        if incoming_letter_id is not None:
            query = query.filter(
                Disposition.incoming_letter_id == coerce_uuid(incoming_letter_id)
            )
        if to_user_id is not None:
            query = query.filter(Disposition.to_user_id == coerce_uuid(to_user_id))
        if from_user_id is not None:
            query = query.filter(Disposition.from_user_id == coerce_uuid(from_user_id))
        if status is not None:
            query = query.filter(
                Disposition.status == validate_enum(DispositionStatus, status, "status")
            )
        if priority is not None:
            query = query.filter(
                Disposition.priority
                == validate_enum(DispositionPriority, priority, "priority")
            )
        if overdue:
            query = query.filter(
                Disposition.deadline.is_not(None),
                Disposition.deadline < date.today(),
                Disposition.status != DispositionStatus.completed,
            )
        query = apply_ordering(
            query,
            order_by,
            order_dir,
            {
                "created_at": Disposition.created_at,
                "deadline": Disposition.deadline,
                "priority": Disposition.priority,
            },
        )
        return apply_pagination(query, limit, offset).all()

    @staticmethod
    def tree(db: Session, disposition_id: str, auth: dict) -> Disposition:
        disposition = Dispositions.get(db, disposition_id)
        if not can_access(disposition, auth):
            raise HTTPException(
                status_code=403, detail="No access to this disposition"
            )
        return disposition

    @staticmethod
    def mark_in_progress(db: Session, disposition_id: str, auth: dict) -> Disposition:
        ensure_permission(auth, "disposition.update_status")
        disposition = Dispositions.get(db, disposition_id)
        _ensure_recipient(disposition, auth)
        if disposition.status not in (DispositionStatus.pending, DispositionStatus.read):
            raise HTTPException(
                status_code=400,
                detail=f"Disposition is already {disposition.status.value}",
            )
        if disposition.read_at is None:
            disposition.read_at = datetime.now(timezone.utc)
        disposition.status = DispositionStatus.in_progress
        refresh_status_from_dispositions(disposition.incoming_letter)
        db.commit()
        db.refresh(disposition)
        logger.info("Disposition %s marked in progress", disposition.id)
        return disposition

    @staticmethod
    def mark_completed(db: Session, disposition_id: str, auth: dict) -> Disposition:
        ensure_permission(auth, "disposition.update_status")
        disposition = Dispositions.get(db, disposition_id)
        _ensure_recipient(disposition, auth)
        if disposition.status == DispositionStatus.completed:
            raise HTTPException(
                status_code=400, detail="Disposition is already completed"
            )
        if not disposition.follow_ups:
            raise HTTPException(
                status_code=400,
                detail="Add at least one follow-up before completing the disposition",
            )
        disposition.status = DispositionStatus.completed
        disposition.completed_at = datetime.now(timezone.utc)
        refresh_status_from_dispositions(disposition.incoming_letter)
        db.commit()
        db.refresh(disposition)
        logger.info("Disposition %s marked completed", disposition.id)
        return disposition

    @staticmethod
    def add_follow_up(
        db: Session, disposition_id: str, payload: FollowUpCreate, auth: dict
    ) -> DispositionFollowUp:
        ensure_permission(auth, "disposition.add_follow_up")
        disposition = Dispositions.get(db, disposition_id)
        _ensure_recipient(disposition, auth)
        follow_up_type = validate_enum(
            FollowUpType, payload.follow_up_type, "follow_up_type"
        )
        if payload.outgoing_letter_id is not None:
            if not db.get(OutgoingLetter, coerce_uuid(payload.outgoing_letter_id)):
                raise HTTPException(status_code=404, detail="Outgoing letter not found")

        follow_up = DispositionFollowUp(
            disposition=disposition,
            follow_up_date=payload.follow_up_date,
            follow_up_type=follow_up_type,
            description=payload.description,
            file_path=payload.file_path,
            outgoing_letter_id=payload.outgoing_letter_id,
            created_by=_actor_id(auth),
        )
        db.add(follow_up)
        if disposition.status in (DispositionStatus.pending, DispositionStatus.read):
            disposition.status = DispositionStatus.in_progress
            if disposition.read_at is None:
                disposition.read_at = datetime.now(timezone.utc)
            refresh_status_from_dispositions(disposition.incoming_letter)
        db.commit()
        db.refresh(follow_up)
        logger.info(
            "Added follow-up %s to disposition %s", follow_up.id, disposition.id
        )
        return follow_up

    @staticmethod
    def list_follow_ups(
        db: Session, disposition_id: str, auth: dict
    ) -> list[DispositionFollowUp]:
        disposition = Dispositions.get(db, disposition_id)
        if not can_access(disposition, auth):
            raise HTTPException(
                status_code=403, detail="No access to this disposition"
            )
        return list(disposition.follow_ups)

    @staticmethod
    def delete(db: Session, disposition_id: str, auth: dict) -> None:
        ensure_permission(auth, "disposition.delete")
        disposition = Dispositions.get(db, disposition_id)
        if disposition.from_user_id != _actor_id(auth):
            raise HTTPException(
                status_code=403,
                detail="Only the creator can cancel this disposition",
            )
        if disposition.status != DispositionStatus.pending:
            raise HTTPException(
                status_code=400,
                detail="Only pending dispositions can be cancelled",
            )
        if disposition.children:
            raise HTTPException(
                status_code=400,
                detail="Disposition has child dispositions and cannot be cancelled",
            )
        letter = disposition.incoming_letter
        db.delete(disposition)
        db.flush()
        db.refresh(letter)
        refresh_status_from_dispositions(letter)
        db.commit()
        logger.info("Cancelled disposition %s", disposition_id)


dispositions = Dispositions()
