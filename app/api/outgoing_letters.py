from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from app.api.deps import require_user_auth
from app.db import SessionLocal
from app.schemas.common import ListResponse
from app.schemas.outgoing_letter import (
    OutgoingLetterCreate,
    OutgoingLetterRead,
    OutgoingLetterUpdate,
    PendingSignatureRead,
    RejectRequest,
    RevisionRead,
    RevisionRequest,
    RevisionSubmit,
    SignRequest,
)
from app.services import outgoing_letter as outgoing_service

router = APIRouter(prefix="/outgoing-letters", tags=["outgoing-letters"])


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


# ------------------------------------------------------------------
# Outgoing letter CRUD
# ------------------------------------------------------------------


@router.post("", response_model=OutgoingLetterRead, status_code=status.HTTP_201_CREATED)
def create_outgoing_letter(
    payload: OutgoingLetterCreate,
    db: Session = Depends(get_db),
    auth: dict = Depends(require_user_auth),
):
    return outgoing_service.outgoing_letters.create(db, payload, auth)


@router.get("/pending-approvals", response_model=list[PendingSignatureRead])
def list_pending_approvals(
    db: Session = Depends(get_db), auth: dict = Depends(require_user_auth)
):
    return outgoing_service.outgoing_letters.pending_approvals(db, auth)


@router.get("/{letter_id}", response_model=OutgoingLetterRead)
def get_outgoing_letter(
    letter_id: str,
    db: Session = Depends(get_db),
    auth: dict = Depends(require_user_auth),
):
    return outgoing_service.outgoing_letters.view(db, letter_id, auth)


@router.get("", response_model=ListResponse[OutgoingLetterRead])
def list_outgoing_letters(
    status_filter: str | None = Query(default=None, alias="status"),
    template_id: str | None = None,
    created_by: str | None = None,
    search: str | None = None,
    order_by: str = Query(default="created_at"),
    order_dir: str = Query(default="desc", pattern="^(asc|desc)$"),
    limit: int = Query(default=50, ge=1, le=200),
    offset: int = Query(default=0, ge=0),
    db: Session = Depends(get_db),
):
    return outgoing_service.outgoing_letters.list_response(
        db,
        status_filter,
        template_id,
        created_by,
        search,
        order_by,
        order_dir,
        limit,
        offset,
    )


@router.patch("/{letter_id}", response_model=OutgoingLetterRead)
def update_outgoing_letter(
    letter_id: str,
    payload: OutgoingLetterUpdate,
    db: Session = Depends(get_db),
    auth: dict = Depends(require_user_auth),
):
    return outgoing_service.outgoing_letters.update(db, letter_id, payload, auth)


@router.delete("/{letter_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_outgoing_letter(
    letter_id: str,
    db: Session = Depends(get_db),
    auth: dict = Depends(require_user_auth),
):
    outgoing_service.outgoing_letters.delete(db, letter_id, auth)


# ------------------------------------------------------------------
# Sign-off
# ------------------------------------------------------------------


@router.post("/{letter_id}/submit", response_model=OutgoingLetterRead)
def submit_outgoing_letter(
    letter_id: str,
    db: Session = Depends(get_db),
    auth: dict = Depends(require_user_auth),
):
    return outgoing_service.outgoing_letters.submit(db, letter_id, auth)


@router.post("/{letter_id}/sign", response_model=OutgoingLetterRead)
def sign_outgoing_letter(
    letter_id: str,
    payload: SignRequest,
    db: Session = Depends(get_db),
    auth: dict = Depends(require_user_auth),
):
    return outgoing_service.outgoing_letters.sign(
        db, letter_id, payload.signature_image, auth
    )


@router.post("/{letter_id}/reject", response_model=OutgoingLetterRead)
def reject_outgoing_letter(
    letter_id: str,
    payload: RejectRequest,
    db: Session = Depends(get_db),
    auth: dict = Depends(require_user_auth),
):
    return outgoing_service.outgoing_letters.reject(
        db, letter_id, payload.rejection_reason, auth
    )


@router.post("/{letter_id}/request-revision", response_model=OutgoingLetterRead)
def request_outgoing_revision(
    letter_id: str,
    payload: RevisionRequest,
    db: Session = Depends(get_db),
    auth: dict = Depends(require_user_auth),
):
    return outgoing_service.outgoing_letters.request_revision(
        db, letter_id, payload.revision_notes, auth
    )


@router.post("/{letter_id}/submit-revision", response_model=OutgoingLetterRead)
def submit_outgoing_revision(
    letter_id: str,
    payload: RevisionSubmit,
    db: Session = Depends(get_db),
    auth: dict = Depends(require_user_auth),
):
    return outgoing_service.outgoing_letters.submit_revision(
        db, letter_id, payload, auth
    )


@router.get("/{letter_id}/revisions", response_model=list[RevisionRead])
def list_outgoing_revisions(
    letter_id: str,
    db: Session = Depends(get_db),
    auth: dict = Depends(require_user_auth),
):
    return outgoing_service.outgoing_letters.revisions(db, letter_id, auth)
