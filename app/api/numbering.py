from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from app.api.deps import require_role
from app.db import SessionLocal
from app.schemas.common import ListResponse
from app.schemas.document_template import (
    NumberingConfigCreate,
    NumberingConfigRead,
    NumberingConfigUpdate,
    NumberPreview,
)
from app.services import numbering as numbering_service

router = APIRouter(prefix="/numbering-configs", tags=["numbering"])
require_admin = require_role("admin")


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@router.post(
    "",
    response_model=NumberingConfigRead,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_admin)],
)
def create_numbering_config(
    payload: NumberingConfigCreate, db: Session = Depends(get_db)
):
    return numbering_service.numbering_configs.create(db, payload)


@router.get("/{config_id}", response_model=NumberingConfigRead)
def get_numbering_config(config_id: str, db: Session = Depends(get_db)):
    return numbering_service.numbering_configs.get(db, config_id)


@router.get("", response_model=ListResponse[NumberingConfigRead])
def list_numbering_configs(
    is_active: bool | None = None,
    order_by: str = Query(default="code"),
    order_dir: str = Query(default="asc", pattern="^(asc|desc)$"),
    limit: int = Query(default=50, ge=1, le=200),
    offset: int = Query(default=0, ge=0),
    db: Session = Depends(get_db),
):
    return numbering_service.numbering_configs.list_response(
        db, is_active, order_by, order_dir, limit, offset
    )


@router.patch(
    "/{config_id}",
    response_model=NumberingConfigRead,
    dependencies=[Depends(require_admin)],
)
def update_numbering_config(
    config_id: str, payload: NumberingConfigUpdate, db: Session = Depends(get_db)
):
    return numbering_service.numbering_configs.update(db, config_id, payload)


@router.delete(
    "/{config_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    dependencies=[Depends(require_admin)],
)
def delete_numbering_config(config_id: str, db: Session = Depends(get_db)):
    numbering_service.numbering_configs.delete(db, config_id)


@router.get("/{config_id}/preview", response_model=NumberPreview)
def preview_number(
    config_id: str,
    code: str | None = None,
    unit: str | None = None,
    db: Session = Depends(get_db),
):
    replacements = {}
    if code:
        replacements["code"] = code
    if unit:
        replacements["unit"] = unit
    return {
        "letter_number": numbering_service.numbering_configs.preview(
            db, config_id, replacements
        )
    }
