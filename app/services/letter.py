from __future__ import annotations

import hashlib
import logging
from datetime import datetime, timezone

from fastapi import HTTPException
from sqlalchemy import select
from sqlalchemy.orm import Session

from app.models.correspondence import (
    CertificateStatus,
    IncomingLetter,
    Letter,
    LetterApproval,
    LetterStatus,
    SignatoryStatus,
)
from app.models.person import Person
from app.schemas.letter import LetterCreate, LetterUpdate
from app.services.auth_dependencies import is_admin
from app.services.certificate import certificates
from app.services.common import (
    apply_ordering,
    apply_pagination,
    coerce_uuid,
    validate_enum,
)
from app.services.document_template import letter_templates, render_blocks
from app.services.letter_workflow import SIGNABLE_STATUSES, refresh_letter_status
from app.services.numbering import letter_numbers
from app.services.response import ListResponseMixin

logger = logging.getLogger(__name__)


def _actor_id(auth: dict):
    return coerce_uuid(auth["person_id"])


def approval_signature_hash(approval: LetterApproval, letter: Letter) -> str:
    raw = f"{approval.id}|{approval.user_id}|{letter.letter_number}"
    return hashlib.sha256(raw.encode("utf-8")).hexdigest()


def _render(letter: Letter) -> str:
    values = dict(letter.data or {})
    values.setdefault("letter_number", letter.letter_number)
    values.setdefault("subject", letter.subject)
    values.setdefault("recipient", letter.recipient)
    values.setdefault("letter_date", letter.letter_date.isoformat())
    return render_blocks(letter.template.content, values)


def _ensure_creator(letter: Letter, auth: dict, action: str) -> None:
    if letter.created_by != _actor_id(auth) and not is_admin(auth):
        raise HTTPException(
            status_code=403, detail=f"Only the creator can {action} this letter"
        )


class Letters(ListResponseMixin):
    @staticmethod
    def create(db: Session, payload: LetterCreate, auth: dict) -> Letter:
        template = letter_templates.get(db, payload.template_id)
        if not template.is_active:
            raise HTTPException(status_code=400, detail="Template is not active")
        if payload.incoming_letter_id is not None:
            if not db.get(IncomingLetter, coerce_uuid(payload.incoming_letter_id)):
                raise HTTPException(status_code=404, detail="Incoming letter not found")
        letter = Letter(
            template=template,
            incoming_letter_id=payload.incoming_letter_id,
            letter_number=letter_numbers.next_letter_number(db, template, payload.data),
            subject=payload.subject,
            letter_date=payload.letter_date,
            recipient=payload.recipient,
            data=payload.data,
            notes=payload.notes,
            status=LetterStatus.draft,
            created_by=_actor_id(auth),
        )
        letter.rendered_html = _render(letter)
        db.add(letter)
        db.commit()
        db.refresh(letter)
        logger.info("Created letter %s numbered %s", letter.id, letter.letter_number)
        return letter

    @staticmethod
    def get(db: Session, letter_id: str) -> Letter:
        letter = db.get(Letter, coerce_uuid(letter_id))
        if not letter:
            raise HTTPException(status_code=404, detail="Letter not found")
        return letter

    @staticmethod
    def view(db: Session, letter_id: str, auth: dict) -> Letter:
        letter = Letters.get(db, letter_id)
        actor = _actor_id(auth)
        if not (
            is_admin(auth)
            or letter.created_by == actor
            or any(a.user_id == actor for a in letter.approvals)
        ):
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
    ) -> list[Letter]:
        query = db.query(Letter)
        if status is not None:
            query = query.filter(
                Letter.status == validate_enum(LetterStatus, status, "status")
            )
        if template_id is not None:
            query = query.filter(Letter.template_id == coerce_uuid(template_id))
        if created_by is not None:
            query = query.filter(Letter.created_by == coerce_uuid(created_by))
        if search:
            like = f"%{search}%"
            query = query.filter(
                Letter.subject.ilike(like)
                | Letter.letter_number.ilike(like)
                | Letter.recipient.ilike(like)
            )
        query = apply_ordering(
            query,
            order_by,
            order_dir,
            {
                "created_at": Letter.created_at,
                "letter_date": Letter.letter_date,
                "letter_number": Letter.letter_number,
            },
        )
        return apply_pagination(query, limit, offset).all()

    @staticmethod
    def update(db: Session, letter_id: str, payload: LetterUpdate, auth: dict) -> Letter:
        letter = Letters.get(db, letter_id)
        _ensure_creator(letter, auth, "edit")
        if letter.status != LetterStatus.draft:
            raise HTTPException(status_code=400, detail="Only drafts can be edited")
        for key, value in payload.model_dump(exclude_unset=True).items():
            setattr(letter, key, value)
        letter.rendered_html = _render(letter)
        db.commit()
        db.refresh(letter)
        logger.info("Updated letter %s", letter.id)
        return letter

    @staticmethod
    def delete(db: Session, letter_id: str, auth: dict) -> None:
        letter = Letters.get(db, letter_id)
        _ensure_creator(letter, auth, "delete")
        if letter.status != LetterStatus.draft:
            raise HTTPException(status_code=400, detail="Only drafts can be deleted")
        db.delete(letter)
        db.commit()
        logger.info("Deleted letter %s", letter_id)

    # -----------------------------------------------------------------------
    # Approval workflow
    # -----------------------------------------------------------------------

    @staticmethod
    def submit_for_approval(db: Session, letter_id: str, auth: dict) -> Letter:
        letter = Letters.get(db, letter_id)
        if letter.created_by != _actor_id(auth):
            raise HTTPException(
                status_code=403, detail="Only the creator can submit this letter"
            )
        if letter.status != LetterStatus.draft:
            raise HTTPException(status_code=400, detail="Only drafts can be submitted")
        for index, slot in enumerate(letter.template.signatures or []):
            if not slot.get("user_id"):
                continue
            signer = db.get(Person, coerce_uuid(slot["user_id"]))
            if not signer or not signer.is_active:
                raise HTTPException(
                    status_code=400,
                    detail=f"Signature slot {index} has no active user",
                )
            letter.approvals.append(
                LetterApproval(
                    user_id=signer.id,
                    signature_index=index,
                    position_name=slot.get("position") or slot.get("label"),
                    order=slot.get("order", index),
                    status=SignatoryStatus.pending,
                )
            )
        if not letter.approvals:
            raise HTTPException(
                status_code=400, detail="Template has no assigned signature slots"
            )
        letter.status = LetterStatus.pending
        refresh_letter_status(letter)
        db.commit()
        db.refresh(letter)
        logger.info(
            "Submitted letter %s with %d approvals", letter.id, len(letter.approvals)
        )
        return letter

    @staticmethod
    def cancel_approval(db: Session, letter_id: str, auth: dict) -> Letter:
        letter = Letters.get(db, letter_id)
        if letter.created_by != _actor_id(auth):
            raise HTTPException(
                status_code=403, detail="Only the creator can cancel the approval"
            )
        if letter.status not in SIGNABLE_STATUSES:
            raise HTTPException(
                status_code=400, detail="Letter is not awaiting approval"
            )
        if any(a.status == SignatoryStatus.approved for a in letter.approvals):
            raise HTTPException(
                status_code=400,
                detail="Approval cannot be cancelled after someone has approved",
            )
        # certificates outlive the approvals they were issued for
        cleared = {approval.id for approval in letter.approvals}
        for certificate in letter.certificates:
            if certificate.approval_id in cleared:
                certificate.approval_id = None
        db.flush()
        letter.approvals.clear()
        letter.status = LetterStatus.draft
        db.commit()
        db.refresh(letter)
        logger.info("Cancelled approval for letter %s", letter.id)
        return letter

    @staticmethod
    def _own_approval(
        letter: Letter, auth: dict, status: SignatoryStatus
    ) -> LetterApproval:
        actor = _actor_id(auth)
        for approval in letter.approvals:
            if approval.user_id == actor and approval.status == status:
                return approval
        raise HTTPException(
            status_code=403,
            detail=f"You have no {status.value} approval on this letter",
        )

    @staticmethod
    def approve(
        db: Session, letter_id: str, notes: str | None, auth: dict
    ) -> Letter:
        letter = Letters.get(db, letter_id)
        if letter.status not in SIGNABLE_STATUSES:
            raise HTTPException(
                status_code=400, detail="Letter is not awaiting approval"
            )
        approval = Letters._own_approval(letter, auth, SignatoryStatus.pending)
        signer = db.get(Person, approval.user_id)
        now = datetime.now(timezone.utc)
        approval.status = SignatoryStatus.approved
        approval.notes = notes
        approval.signed_at = now
        certificate = certificates.issue(db, letter, approval, signer, now)
        approval.signature_data = {
            "hash": approval_signature_hash(approval, letter),
            "certificate_id": certificate.certificate_id,
            "signed_at": now.isoformat(),
        }
        if refresh_letter_status(letter) == LetterStatus.signed:
            letter.approved_by = signer.id
            letter.approved_at = now
        db.commit()
        db.refresh(letter)
        logger.info(
            "Letter %s approved by %s, status %s",
            letter.id,
            signer.id,
            letter.status.value,
        )
        return letter

    @staticmethod
    def reject(db: Session, letter_id: str, reason: str, auth: dict) -> Letter:
        letter = Letters.get(db, letter_id)
        if letter.status not in SIGNABLE_STATUSES:
            raise HTTPException(
                status_code=400, detail="Letter is not awaiting approval"
            )
        approval = Letters._own_approval(letter, auth, SignatoryStatus.pending)
        now = datetime.now(timezone.utc)
        approval.status = SignatoryStatus.rejected
        approval.notes = reason
        letter.rejected_by = approval.user_id
        letter.rejected_at = now
        letter.rejection_reason = reason
        refresh_letter_status(letter)
        db.commit()
        db.refresh(letter)
        logger.info("Letter %s rejected by %s", letter.id, approval.user_id)
        return letter

    @staticmethod
    def revoke_approval(db: Session, letter_id: str, reason: str, auth: dict) -> Letter:
        letter = Letters.get(db, letter_id)
        if letter.status != LetterStatus.partial:
            raise HTTPException(
                status_code=400,
                detail="Approvals can only be revoked while the letter is partially approved",
            )
        approval = Letters._own_approval(letter, auth, SignatoryStatus.approved)
        for certificate in letter.certificates:
            if (
                certificate.approval_id == approval.id
                and certificate.status == CertificateStatus.valid
            ):
                certificates.mark_revoked(certificate, reason, approval.user_id)
        approval.status = SignatoryStatus.pending
        approval.signed_at = None
        approval.signature_data = None
        approval.notes = reason
        refresh_letter_status(letter)
        db.commit()
        db.refresh(letter)
        logger.info("Approval %s on letter %s revoked", approval.id, letter.id)
        return letter

    @staticmethod
    def pending_approvals(db: Session, auth: dict) -> list[LetterApproval]:
        return list(
            db.scalars(
                select(LetterApproval)
                .join(Letter, LetterApproval.letter_id == Letter.id)
                .where(
                    LetterApproval.user_id == _actor_id(auth),
                    LetterApproval.status == SignatoryStatus.pending,
                    Letter.status.in_(SIGNABLE_STATUSES),
                )
                .order_by(Letter.created_at)
            )
        )


letters = Letters()
