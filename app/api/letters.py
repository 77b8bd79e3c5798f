from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from app.api.deps import require_user_auth
from app.db import SessionLocal
from app.schemas.common import ListResponse
from app.schemas.letter import (
    ApprovalRead,
    ApprovalRejectRequest,
    ApproveRequest,
    CertificateRead,
    LetterCreate,
    LetterRead,
    LetterUpdate,
    RevokeRequest,
)
from app.services import certificate as certificate_service
from app.services import letter as letter_service

router = APIRouter(prefix="/letters", tags=["letters"])


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@router.post("", response_model=LetterRead, status_code=status.HTTP_201_CREATED)
def create_letter(
    payload: LetterCreate,
    db: Session = Depends(get_db),
    auth: dict = Depends(require_user_auth),
):
    return letter_service.letters.create(db, payload, auth)


@router.get("/pending-approvals", response_model=list[ApprovalRead])
def list_pending_approvals(
    db: Session = Depends(get_db), auth: dict = Depends(require_user_auth)
):
    return letter_service.letters.pending_approvals(db, auth)


@router.get("/{letter_id}", response_model=LetterRead)
def get_letter(
    letter_id: str,
    db: Session = Depends(get_db),
    auth: dict = Depends(require_user_auth),
):
    return letter_service.letters.view(db, letter_id, auth)


@router.get("", response_model=ListResponse[LetterRead])
def list_letters(
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
    return letter_service.letters.list_response(
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


@router.patch("/{letter_id}", response_model=LetterRead)
def update_letter(
    letter_id: str,
    payload: LetterUpdate,
    db: Session = Depends(get_db),
    auth: dict = Depends(require_user_auth),
):
    return letter_service.letters.update(db, letter_id, payload, auth)


@router.delete("/{letter_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_letter(
    letter_id: str,
    db: Session = Depends(get_db),
    auth: dict = Depends(require_user_auth),
):
    letter_service.letters.delete(db, letter_id, auth)


# ------------------------------------------------------------------
# Approvals
# ------------------------------------------------------------------


@router.post("/{letter_id}/submit", response_model=LetterRead)
def submit_letter(
    letter_id: str,
    db: Session = Depends(get_db),
    auth: dict = Depends(require_user_auth),
):
    return letter_service.letters.submit_for_approval(db, letter_id, auth)


@router.post("/{letter_id}/cancel-approval", response_model=LetterRead)
def cancel_letter_approval(
    letter_id: str,
    db: Session = Depends(get_db),
    auth: dict = Depends(require_user_auth),
):
    return letter_service.letters.cancel_approval(db, letter_id, auth)


@router.post("/{letter_id}/approve", response_model=LetterRead)
def approve_letter(
    letter_id: str,
    payload: ApproveRequest,
    db: Session = Depends(get_db),
    auth: dict = Depends(require_user_auth),
):
    return letter_service.letters.approve(db, letter_id, payload.notes, auth)


@router.post("/{letter_id}/reject", response_model=LetterRead)
def reject_letter(
    letter_id: str,
    payload: ApprovalRejectRequest,
    db: Session = Depends(get_db),
    auth: dict = Depends(require_user_auth),
):
    return letter_service.letters.reject(db, letter_id, payload.rejection_reason, auth)


@router.post("/{letter_id}/revoke-approval", response_model=LetterRead)
def revoke_letter_approval(
    letter_id: str,
    payload: RevokeRequest,
    db: Session = Depends(get_db),
    auth: dict = Depends(require_user_auth),
):
    return letter_service.letters.revoke_approval(db, letter_id, payload.reason, auth)


@router.get("/{letter_id}/certificates", response_model=list[CertificateRead])
def list_letter_certificates(
    letter_id: str,
    db: Session = Depends(get_db),
    auth: dict = Depends(require_user_auth),
):
    letter = letter_service.letters.view(db, letter_id, auth)
    return certificate_service.certificates.list_for_letter(db, str(letter.id))
