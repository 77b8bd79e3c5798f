from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from app.api.deps import require_user_auth
from app.db import SessionLocal
from app.schemas.archive import (
    ArchiveCreate,
    ArchiveFileInfo,
    ArchiveIncomingRequest,
    ArchiveLetterRequest,
    ArchiveRead,
    ArchiveStats,
    ArchiveUpdate,
)
from app.schemas.common import ListResponse
from app.services import archive as archive_service

router = APIRouter(prefix="/archives", tags=["archives"])


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@router.post("", response_model=ArchiveRead, status_code=status.HTTP_201_CREATED)
def create_archive(
    payload: ArchiveCreate,
    db: Session = Depends(get_db),
    auth: dict = Depends(require_user_auth),
):
    return archive_service.archives.create(db, payload, auth)


@router.get("/expiring", response_model=list[ArchiveRead])
def list_expiring_archives(
    days: int = Query(default=30, ge=1, le=3650),
    limit: int = Query(default=50, ge=1, le=200),
    offset: int = Query(default=0, ge=0),
    db: Session = Depends(get_db),
):
    return archive_service.archives.expiring(db, days, limit, offset)


@router.get("/stats", response_model=ArchiveStats)
def get_archive_stats(db: Session = Depends(get_db)):
    return archive_service.archives.stats(db)


@router.get("/{archive_id}", response_model=ArchiveRead)
def get_archive(archive_id: str, db: Session = Depends(get_db)):
    return archive_service.archives.get(db, archive_id)


@router.get("", response_model=ListResponse[ArchiveRead])
def list_archives(
    archive_type: str | None = Query(default=None, alias="type"),
    category: str | None = None,
    classification: str | None = None,
    search: str | None = None,
    order_by: str = Query(default="created_at"),
    order_dir: str = Query(default="desc", pattern="^(asc|desc)$"),
    limit: int = Query(default=50, ge=1, le=200),
    offset: int = Query(default=0, ge=0),
    db: Session = Depends(get_db),
):
    return archive_service.archives.list_response(
        db,
        archive_type,
        category,
        classification,
        search,
        order_by,
        order_dir,
        limit,
        offset,
    )


@router.patch("/{archive_id}", response_model=ArchiveRead)
def update_archive(
    archive_id: str,
    payload: ArchiveUpdate,
    db: Session = Depends(get_db),
    auth: dict = Depends(require_user_auth),
):
    return archive_service.archives.update(db, archive_id, payload, auth)


@router.delete("/{archive_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_archive(
    archive_id: str,
    db: Session = Depends(get_db),
    auth: dict = Depends(require_user_auth),
):
    archive_service.archives.delete(db, archive_id, auth)


@router.get("/{archive_id}/file-info", response_model=ArchiveFileInfo)
def get_archive_file_info(archive_id: str, db: Session = Depends(get_db)):
    return archive_service.archives.file_info(db, archive_id)


# ------------------------------------------------------------------
# Archiving letters
# ------------------------------------------------------------------


@router.post(
    "/incoming-letters/{letter_id}",
    response_model=ArchiveRead,
    status_code=status.HTTP_201_CREATED,
)
def archive_incoming_letter(
    letter_id: str,
    payload: ArchiveIncomingRequest,
    db: Session = Depends(get_db),
    auth: dict = Depends(require_user_auth),
):
    return archive_service.archives.archive_incoming_letter(
        db, letter_id, payload, auth
    )


@router.post(
    "/outgoing-letters/{letter_id}",
    response_model=ArchiveRead,
    status_code=status.HTTP_201_CREATED,
)
def archive_outgoing_letter(
    letter_id: str,
    payload: ArchiveLetterRequest,
    db: Session = Depends(get_db),
    auth: dict = Depends(require_user_auth),
):
    return archive_service.archives.archive_outgoing_letter(
        db, letter_id, payload, auth
    )


@router.post(
    "/letters/{letter_id}",
    response_model=ArchiveRead,
    status_code=status.HTTP_201_CREATED,
)
def archive_letter(
    letter_id: str,
    payload: ArchiveLetterRequest,
    db: Session = Depends(get_db),
    auth: dict = Depends(require_user_auth),
):
    return archive_service.archives.archive_letter(db, letter_id, payload, auth)
