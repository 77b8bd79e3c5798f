from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from app.api.deps import require_user_auth
from app.db import SessionLocal
from app.schemas.common import ListResponse
from app.schemas.incoming_letter import (
    FileURLResponse,
    IncomingLetterCreate,
    IncomingLetterRead,
    IncomingLetterUpdate,
    UploadURLRequest,
    UploadURLResponse,
)
from app.services import incoming_letter as incoming_service

router = APIRouter(prefix="/incoming-letters", tags=["incoming-letters"])


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@router.post("", response_model=IncomingLetterRead, status_code=status.HTTP_201_CREATED)
def create_incoming_letter(
    payload: IncomingLetterCreate,
    db: Session = Depends(get_db),
    auth: dict = Depends(require_user_auth),
):
    return incoming_service.incoming_letters.create(db, payload, auth)


@router.post("/upload-url", response_model=UploadURLResponse)
def get_upload_url(
    payload: UploadURLRequest, auth: dict = Depends(require_user_auth)
):
    return incoming_service.incoming_letters.upload_url(
        payload.file_name, payload.mime_type, auth
    )


@router.get("/{letter_id}", response_model=IncomingLetterRead)
def get_incoming_letter(letter_id: str, db: Session = Depends(get_db)):
    return incoming_service.incoming_letters.get(db, letter_id)


@router.get("", response_model=ListResponse[IncomingLetterRead])
def list_incoming_letters(
    status_filter: str | None = Query(default=None, alias="status"),
    classification: str | None = None,
    organization_unit_id: str | None = None,
    search: str | None = None,
    order_by: str = Query(default="created_at"),
    order_dir: str = Query(default="desc", pattern="^(asc|desc)$"),
    limit: int = Query(default=50, ge=1, le=200),
    offset: int = Query(default=0, ge=0),
    db: Session = Depends(get_db),
):
    return incoming_service.incoming_letters.list_response(
        db,
        status_filter,
        classification,
        organization_unit_id,
        search,
        order_by,
        order_dir,
        limit,
        offset,
    )


@router.patch("/{letter_id}", response_model=IncomingLetterRead)
def update_incoming_letter(
    letter_id: str, payload: IncomingLetterUpdate, db: Session = Depends(get_db)
):
    return incoming_service.incoming_letters.update(db, letter_id, payload)


@router.delete("/{letter_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_incoming_letter(letter_id: str, db: Session = Depends(get_db)):
    incoming_service.incoming_letters.delete(db, letter_id)


@router.get("/{letter_id}/download-url", response_model=FileURLResponse)
def get_download_url(letter_id: str, db: Session = Depends(get_db)):
    return {
        "download_url": incoming_service.incoming_letters.download_url(db, letter_id)
    }
