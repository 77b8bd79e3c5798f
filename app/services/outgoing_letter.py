from __future__ import annotations

import hashlib
import json
import logging
from datetime import datetime, timezone

from fastapi import HTTPException
from sqlalchemy import select
from sqlalchemy.orm import Session

from app.models.correspondence import (
    IncomingLetter,
    LetterRevision,
    LetterSignatory,
    LetterStatus,
    OutgoingLetter,
    RevisionType,
    SignatoryStatus,
)
from app.models.person import OrganizationUnit, Person
from app.schemas.outgoing_letter import (
    OutgoingLetterCreate,
    OutgoingLetterUpdate,
    RevisionSubmit,
    SignatoryAssignment,
)
from app.services.auth_dependencies import is_admin
from app.services.certificate import forget_letter_verification
from app.services.common import (
    apply_ordering,
    apply_pagination,
    coerce_uuid,
    validate_enum,
)
from app.services.document_template import document_templates, render_template
from app.services.letter_workflow import (
    SIGNABLE_STATUSES,
    can_sign,
    has_signatory_activity,
    refresh_outgoing_status,
)
from app.services.numbering import letter_numbers
from app.services.response import ListResponseMixin

logger = logging.getLogger(__name__)


def _actor_id(auth: dict):
    return coerce_uuid(auth["person_id"])


def signing_certificate_id(letter_id, user_id, signed_at: datetime) -> str:
    digest = hashlib.md5(
        f"{letter_id}{user_id}{signed_at.timestamp()}".encode("utf-8")
    ).hexdigest()
    return "LTR-" + digest.upper()[:12]


def signing_document_hash(letter_id, user_id, slot_id: str, signed_at: datetime) -> str:
    payload = {
        "letter_id": str(letter_id),
        "user_id": str(user_id),
        "slot_id": slot_id,
        "signed_at": signed_at.isoformat(),
    }
    return hashlib.sha256(
        json.dumps(payload, sort_keys=True).encode("utf-8")
    ).hexdigest()


def can_access(letter: OutgoingLetter, auth: dict) -> bool:
    if is_admin(auth):
        return True
    actor = _actor_id(auth)
    if letter.created_by == actor:
        return True
    if any(s.user_id == actor for s in letter.signatories):
        return True
    unit_id = auth.get("organization_unit_id")
    return (
        unit_id is not None
        and letter.template.organization_unit_id is not None
        and letter.template.organization_unit_id == coerce_uuid(unit_id)
    )


def _render(letter: OutgoingLetter) -> str:
    values = dict(letter.variable_values or {})
    values.setdefault("nomor_surat", letter.letter_number)
    values.setdefault("letter_number", letter.letter_number)
    values.setdefault("perihal", letter.subject)
    values.setdefault("subject", letter.subject)
    values.setdefault("tanggal_surat", letter.letter_date.isoformat())
    return render_template(letter.template, values)


def _build_signatories(
    db: Session, assignments: list[SignatoryAssignment]
) -> list[LetterSignatory]:
    seen: set[str] = set()
    rows = []
    for assignment in assignments:
        if assignment.slot_id in seen:
            raise HTTPException(
                status_code=400,
                detail=f"Duplicate signatory slot: {assignment.slot_id}",
            )
        seen.add(assignment.slot_id)
        person = db.get(Person, coerce_uuid(assignment.user_id))
        if not person or not person.is_active:
            raise HTTPException(status_code=404, detail="Signatory not found")
        rows.append(
            LetterSignatory(
                user_id=person.id,
                slot_id=assignment.slot_id,
                sign_order=assignment.sign_order,
                status=SignatoryStatus.pending,
            )
        )
    return rows


def _reset_signatory(signatory: LetterSignatory) -> None:
    signatory.status = SignatoryStatus.pending
    signatory.signed_at = None
    signatory.signature_image = None
    signatory.rejection_reason = None
    signatory.certificate_id = None
    signatory.document_hash = None


class OutgoingLetters(ListResponseMixin):
    @staticmethod
    def create(db: Session, payload: OutgoingLetterCreate, auth: dict) -> OutgoingLetter:
        actor = _actor_id(auth)
        template = document_templates.get(db, payload.template_id)
        if not template.is_active:
            raise HTTPException(status_code=400, detail="Template is not active")
        if (
            not is_admin(auth)
            and template.organization_unit_id is not None
            and str(template.organization_unit_id) != auth.get("organization_unit_id")
        ):
            raise HTTPException(
                status_code=403,
                detail="Template belongs to another organization unit",
            )
        if payload.incoming_letter_id is not None:
            if not db.get(IncomingLetter, coerce_uuid(payload.incoming_letter_id)):
                raise HTTPException(status_code=404, detail="Incoming letter not found")
        signatories = _build_signatories(db, payload.signatories)

        unit_code = None
        unit_id = auth.get("organization_unit_id")
        if unit_id is not None:
            unit = db.get(OrganizationUnit, coerce_uuid(unit_id))
            unit_code = unit.code if unit else None

        letter = OutgoingLetter(
            template=template,
            incoming_letter_id=payload.incoming_letter_id,
            letter_number=letter_numbers.next_outgoing_number(db, template, unit_code),
            subject=payload.subject,
            letter_date=payload.letter_date,
            variable_values=payload.variable_values,
            attachments=payload.attachments,
            notes=payload.notes,
            status=LetterStatus.pending if payload.submit else LetterStatus.draft,
            current_version=1,
            revision_requested=False,
            created_by=actor,
        )
        letter.rendered_html = _render(letter)
        letter.signatories = signatories
        letter.revisions.append(
            LetterRevision(
                version=1,
                type=RevisionType.initial,
                variable_values=letter.variable_values,
                rendered_html=letter.rendered_html,
                created_by=actor,
            )
        )
        db.add(letter)
        db.commit()
        db.refresh(letter)
        logger.info(
            "Created outgoing letter %s numbered %s", letter.id, letter.letter_number
        )
        return letter

    @staticmethod
    def get(db: Session, letter_id: str) -> OutgoingLetter:
        letter = db.get(OutgoingLetter, coerce_uuid(letter_id))
        if not letter:
            raise HTTPException(status_code=404, detail="Outgoing letter not found")
        return letter

    @staticmethod
    def view(db: Session, letter_id: str, auth: dict) -> OutgoingLetter:
        letter = OutgoingLetters.get(db, letter_id)
        if not can_access(letter, auth):
            raise HTTPException(status_code=403, detail="No access to this letter")
        return letter

    @staticmethod
    def list(
        db: Session,
        status: str | None,
        template_id: str | None,
        created_by: str | None,
        search: str | None,
        order_by: str,
        order_dir: str,
        limit: int,
        offset: int,
    ) -> list[OutgoingLetter]:
        query = db.query(OutgoingLetter)
        if status is not None:
            query = query.filter(
                OutgoingLetter.status == validate_enum(LetterStatus, status, "status")
            )
        if template_id is not None:
            query = query.filter(OutgoingLetter.template_id == coerce_uuid(template_id))
        if created_by is not None:
            query = query.filter(OutgoingLetter.created_by == coerce_uuid(created_by))
        if search:
            like = f"%{search}%"
            query = query.filter(
                OutgoingLetter.subject.ilike(like)
                | OutgoingLetter.letter_number.ilike(like)
            )
        query = apply_ordering(
            query,
            order_by,
            order_dir,
            {
                "created_at": OutgoingLetter.created_at,
                "letter_date": OutgoingLetter.letter_date,
                "letter_number": OutgoingLetter.letter_number,
            },
        )
        return apply_pagination(query, limit, offset).all()

    @staticmethod
    def pending_approvals(db: Session, auth: dict) -> list[dict]:
        rows = db.scalars(
            select(LetterSignatory)
            .join(OutgoingLetter, LetterSignatory.letter_id == OutgoingLetter.id)
            .where(
                LetterSignatory.user_id == _actor_id(auth),
                LetterSignatory.status == SignatoryStatus.pending,
                OutgoingLetter.status.in_(SIGNABLE_STATUSES),
            )
            .order_by(OutgoingLetter.created_at)
        )
        return [
            {
                "signatory_id": signatory.id,
                "letter_id": signatory.letter_id,
                "letter_number": signatory.letter.letter_number,
                "subject": signatory.letter.subject,
                "status": signatory.letter.status,
                "sign_order": signatory.sign_order,
            }
            for signatory in rows
            if can_sign(signatory)
        ]

    @staticmethod
    def update(
        db: Session, letter_id: str, payload: OutgoingLetterUpdate, auth: dict
    ) -> OutgoingLetter:
        letter = OutgoingLetters.get(db, letter_id)
        if letter.created_by != _actor_id(auth) and not is_admin(auth):
            raise HTTPException(
                status_code=403, detail="Only the creator can edit this letter"
            )
        if letter.status not in (
            LetterStatus.draft,
            LetterStatus.pending,
        ) or has_signatory_activity(letter):
            raise HTTPException(
                status_code=400,
                detail="Letter can no longer be edited once signing has started",
            )
        data = payload.model_dump(exclude_unset=True, exclude={"signatories"})
        for key, value in data.items():
            setattr(letter, key, value)
        if payload.signatories is not None:
            if not payload.signatories:
                raise HTTPException(
                    status_code=400, detail="At least one signatory is required"
                )
            rows = _build_signatories(db, payload.signatories)
            letter.signatories.clear()
            db.flush()
            letter.signatories.extend(rows)
        letter.rendered_html = _render(letter)
        letter.updated_by = _actor_id(auth)
        refresh_outgoing_status(letter)
        db.commit()
        db.refresh(letter)
        forget_letter_verification(letter.id)
        logger.info("Updated outgoing letter %s", letter.id)
        return letter

    @staticmethod
    def delete(db: Session, letter_id: str, auth: dict) -> None:
        letter = OutgoingLetters.get(db, letter_id)
        if letter.created_by != _actor_id(auth) and not is_admin(auth):
            raise HTTPException(
                status_code=403, detail="Only the creator can delete this letter"
            )
        if has_signatory_activity(letter):
            raise HTTPException(
                status_code=400,
                detail="Letter cannot be deleted once a signatory has acted",
            )
        if letter.archive is not None:
            raise HTTPException(
                status_code=400, detail="Archived letters cannot be deleted"
            )
        db.delete(letter)
        db.commit()
        forget_letter_verification(letter_id)
        logger.info("Deleted outgoing letter %s", letter_id)

    @staticmethod
    def submit(db: Session, letter_id: str, auth: dict) -> OutgoingLetter:
        letter = OutgoingLetters.get(db, letter_id)
        if letter.created_by != _actor_id(auth) and not is_admin(auth):
            raise HTTPException(
                status_code=403, detail="Only the creator can submit this letter"
            )
        if letter.status != LetterStatus.draft:
            raise HTTPException(status_code=400, detail="Only drafts can be submitted")
        letter.status = LetterStatus.pending
        refresh_outgoing_status(letter)
        db.commit()
        db.refresh(letter)
        logger.info("Submitted outgoing letter %s for signing", letter.id)
        return letter

    @staticmethod
    def _own_signatory(letter: OutgoingLetter, auth: dict) -> LetterSignatory:
        actor = _actor_id(auth)
        for signatory in letter.signatories:
            if signatory.user_id == actor:
                return signatory
        raise HTTPException(
            status_code=403, detail="You are not a signatory of this letter"
        )

    @staticmethod
    def sign(
        db: Session, letter_id: str, signature_image: str | None, auth: dict
    ) -> OutgoingLetter:
        letter = OutgoingLetters.get(db, letter_id)
        signatory = OutgoingLetters._own_signatory(letter, auth)
        if signatory.status != SignatoryStatus.pending:
            raise HTTPException(
                status_code=400, detail="You have already acted on this letter"
            )
        if letter.status not in SIGNABLE_STATUSES or letter.revision_requested:
            raise HTTPException(
                status_code=400, detail="Letter is not awaiting signatures"
            )
        if not can_sign(signatory):
            raise HTTPException(
                status_code=400, detail="Earlier signatories have not signed yet"
            )
        now = datetime.now(timezone.utc)
        signatory.status = SignatoryStatus.approved
        signatory.signed_at = now
        signatory.signature_image = signature_image
        signatory.certificate_id = signing_certificate_id(
            letter.id, signatory.user_id, now
        )
        signatory.document_hash = signing_document_hash(
            letter.id, signatory.user_id, signatory.slot_id, now
        )
        refresh_outgoing_status(letter)
        db.commit()
        db.refresh(letter)
        forget_letter_verification(letter.id)
        logger.info(
            "Outgoing letter %s signed by %s, status %s",
            letter.id,
            signatory.user_id,
            letter.status.value,
        )
        return letter

    @staticmethod
    def reject(db: Session, letter_id: str, reason: str, auth: dict) -> OutgoingLetter:
        letter = OutgoingLetters.get(db, letter_id)
        signatory = OutgoingLetters._own_signatory(letter, auth)
        if signatory.status != SignatoryStatus.pending:
            raise HTTPException(
                status_code=400, detail="You have already acted on this letter"
            )
        if letter.status not in SIGNABLE_STATUSES or letter.revision_requested:
            raise HTTPException(
                status_code=400, detail="Letter is not awaiting signatures"
            )
        signatory.status = SignatoryStatus.rejected
        signatory.rejection_reason = reason
        refresh_outgoing_status(letter)
        db.commit()
        db.refresh(letter)
        forget_letter_verification(letter.id)
        logger.info("Outgoing letter %s rejected by %s", letter.id, signatory.user_id)
        return letter

    @staticmethod
    def request_revision(
        db: Session, letter_id: str, notes: str, auth: dict
    ) -> OutgoingLetter:
        letter = OutgoingLetters.get(db, letter_id)
        actor = _actor_id(auth)
        if letter.status not in SIGNABLE_STATUSES or letter.revision_requested:
            raise HTTPException(
                status_code=400,
                detail="Revisions can only be requested while signing is in progress",
            )
        is_pending_signatory = any(
            s.user_id == actor and s.status == SignatoryStatus.pending
            for s in letter.signatories
        )
        if letter.created_by != actor and not is_pending_signatory:
            raise HTTPException(
                status_code=403,
                detail="Only the creator or a pending signatory can request a revision",
            )
        letter.revision_requested = True
        letter.revision_request_notes = notes
        letter.revision_requested_by = actor
        letter.revisions.append(
            LetterRevision(
                version=letter.current_version,
                type=RevisionType.revision_request,
                variable_values=letter.variable_values,
                rendered_html=letter.rendered_html,
                requested_changes=notes,
                created_by=actor,
            )
        )
        for signatory in letter.signatories:
            _reset_signatory(signatory)
        refresh_outgoing_status(letter)
        db.commit()
        db.refresh(letter)
        forget_letter_verification(letter.id)
        logger.info("Revision requested on outgoing letter %s", letter.id)
        return letter

    @staticmethod
    def submit_revision(
        db: Session, letter_id: str, payload: RevisionSubmit, auth: dict
    ) -> OutgoingLetter:
        letter = OutgoingLetters.get(db, letter_id)
        actor = _actor_id(auth)
        if letter.created_by != actor:
            raise HTTPException(
                status_code=403, detail="Only the creator can submit a revision"
            )
        if not letter.revision_requested:
            raise HTTPException(
                status_code=400, detail="No revision has been requested"
            )
        letter.variable_values = payload.variable_values
        letter.rendered_html = _render(letter)
        letter.current_version += 1
        letter.revisions.append(
            LetterRevision(
                version=letter.current_version,
                type=RevisionType.revision_submitted,
                variable_values=letter.variable_values,
                rendered_html=letter.rendered_html,
                revision_notes=payload.revision_notes,
                created_by=actor,
            )
        )
        letter.revision_requested = False
        letter.revision_request_notes = None
        letter.revision_requested_by = None
        letter.updated_by = actor
        refresh_outgoing_status(letter)
        db.commit()
        db.refresh(letter)
        forget_letter_verification(letter.id)
        logger.info(
            "Revision %d submitted for outgoing letter %s",
            letter.current_version,
            letter.id,
        )
        return letter

    @staticmethod
    def revisions(db: Session, letter_id: str, auth: dict) -> list[LetterRevision]:
        letter = OutgoingLetters.view(db, letter_id, auth)
        return list(letter.revisions)


outgoing_letters = OutgoingLetters()
