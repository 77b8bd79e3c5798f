from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from app.api.deps import require_user_auth
from app.db import SessionLocal
from app.schemas.common import ListResponse
from app.schemas.disposition import (
    DispositionCreate,
    DispositionRead,
    DispositionTreeNode,
    FollowUpCreate,
    FollowUpRead,
)
from app.services import disposition as disposition_service

router = APIRouter(prefix="/dispositions", tags=["dispositions"])


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@router.post("", response_model=DispositionRead, status_code=status.HTTP_201_CREATED)
def create_disposition(
    payload: DispositionCreate,
    db: Session = Depends(get_db),
    auth: dict = Depends(require_user_auth),
):
    return disposition_service.dispositions.create(db, payload, auth)


@router.get("/{disposition_id}", response_model=DispositionRead)
def get_disposition(
    disposition_id: str,
    db: Session = Depends(get_db),
    auth: dict = Depends(require_user_auth),
):
    return disposition_service.dispositions.view(db, disposition_id, auth)


@router.get("", response_model=ListResponse[DispositionRead])
def list_dispositions(
    incoming_letter_id: str | None = None,
    to_user_id: str | None = None,
    from_user_id: str | None = None,
    status_filter: str | None = Query(default=None, alias="status"),
    priority: str | None = None,
    overdue: bool | None = None,
    order_by: str = Query(default="created_at"),
    order_dir: str = Query(default="desc", pattern="^(asc|desc)$"),
    limit: int = Query(default=50, ge=1, le=200),
    offset: int = Query(default=0, ge=0),
    db: Session = Depends(get_db),
    auth: dict = Depends(require_user_auth),
):
    return disposition_service.dispositions.list_response(
        db,
        incoming_letter_id,
        to_user_id,
        from_user_id,
        status_filter,
        priority,
        overdue,
        order_by,
        order_dir,
        limit,
        offset,
        auth=auth,
    )


@router.get("/{disposition_id}/tree", response_model=DispositionTreeNode)
def get_disposition_tree(
    disposition_id: str,
    db: Session = Depends(get_db),
    auth: dict = Depends(require_user_auth),
):
    return disposition_service.dispositions.tree(db, disposition_id, auth)


@router.post("/{disposition_id}/in-progress", response_model=DispositionRead)
def mark_disposition_in_progress(
    disposition_id: str,
    db: Session = Depends(get_db),
    auth: dict = Depends(require_user_auth),
):
    return disposition_service.dispositions.mark_in_progress(db, disposition_id, auth)


@router.post("/{disposition_id}/complete", response_model=DispositionRead)
def mark_disposition_completed(
    disposition_id: str,
    db: Session = Depends(get_db),
    auth: dict = Depends(require_user_auth),
):
    return disposition_service.dispositions.mark_completed(db, disposition_id, auth)


@router.delete("/{disposition_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_disposition(
    disposition_id: str,
    db: Session = Depends(get_db),
    auth: dict = Depends(require_user_auth),
):
    disposition_service.dispositions.delete(db, disposition_id, auth)


# ------------------------------------------------------------------
# Follow-ups
# ------------------------------------------------------------------


@router.post(
    "/{disposition_id}/follow-ups",
    response_model=FollowUpRead,
    status_code=status.HTTP_201_CREATED,
)
def add_follow_up(
    disposition_id: str,
    payload: FollowUpCreate,
    db: Session = Depends(get_db),
    auth: dict = Depends(require_user_auth),
):
    return disposition_service.dispositions.add_follow_up(
        db, disposition_id, payload, auth
    )


@router.get("/{disposition_id}/follow-ups", response_model=list[FollowUpRead])
def list_follow_ups(
    disposition_id: str,
    db: Session = Depends(get_db),
    auth: dict = Depends(require_user_auth),
):
    return disposition_service.dispositions.list_follow_ups(db, disposition_id, auth)
