from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from app.api.deps import require_role
from app.db import SessionLocal
from app.schemas.common import ListResponse
from app.schemas.document_template import (
    DocumentTemplateCreate,
    DocumentTemplateDuplicate,
    DocumentTemplateRead,
    DocumentTemplateUpdate,
    LetterTemplateCreate,
    LetterTemplateRead,
    LetterTemplateUpdate,
    TemplateLayout,
    TemplateRenderRequest,
    TemplateRenderResponse,
)
from app.services import document_template as template_service

router = APIRouter(tags=["templates"])
require_admin = require_role("admin")


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


# ------------------------------------------------------------------
# Document templates
# ------------------------------------------------------------------


@router.post(
    "/document-templates",
    response_model=DocumentTemplateRead,
    status_code=status.HTTP_201_CREATED,
)
def create_document_template(
    payload: DocumentTemplateCreate,
    db: Session = Depends(get_db),
    auth: dict = Depends(require_admin),
):
    return template_service.document_templates.create(db, payload, auth)


@router.get("/document-templates/{template_id}", response_model=DocumentTemplateRead)
def get_document_template(template_id: str, db: Session = Depends(get_db)):
    return template_service.document_templates.get(db, template_id)


@router.get(
    "/document-templates", response_model=ListResponse[DocumentTemplateRead]
)
def list_document_templates(
    organization_unit_id: str | None = None,
    category: str | None = None,
    template_type: str | None = None,
    is_active: bool | None = None,
    search: str | None = None,
    order_by: str = Query(default="name"),
    order_dir: str = Query(default="asc", pattern="^(asc|desc)$"),
    limit: int = Query(default=50, ge=1, le=200),
    offset: int = Query(default=0, ge=0),
    db: Session = Depends(get_db),
):
    return template_service.document_templates.list_response(
        db,
        organization_unit_id,
        category,
        template_type,
        is_active,
        search,
        order_by,
        order_dir,
        limit,
        offset,
    )


@router.patch(
    "/document-templates/{template_id}",
    response_model=DocumentTemplateRead,
    dependencies=[Depends(require_admin)],
)
def update_document_template(
    template_id: str, payload: DocumentTemplateUpdate, db: Session = Depends(get_db)
):
    return template_service.document_templates.update(db, template_id, payload)


@router.delete(
    "/document-templates/{template_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    dependencies=[Depends(require_admin)],
)
def delete_document_template(template_id: str, db: Session = Depends(get_db)):
    template_service.document_templates.delete(db, template_id)


@router.post(
    "/document-templates/{template_id}/toggle-active",
    response_model=DocumentTemplateRead,
    dependencies=[Depends(require_admin)],
)
def toggle_document_template(template_id: str, db: Session = Depends(get_db)):
    return template_service.document_templates.toggle_active(db, template_id)


@router.post(
    "/document-templates/{template_id}/duplicate",
    response_model=DocumentTemplateRead,
    status_code=status.HTTP_201_CREATED,
)
def duplicate_document_template(
    template_id: str,
    payload: DocumentTemplateDuplicate,
    db: Session = Depends(get_db),
    auth: dict = Depends(require_admin),
):
    return template_service.document_templates.duplicate(db, template_id, payload, auth)


@router.get(
    "/document-templates/{template_id}/layout", response_model=TemplateLayout
)
def get_document_template_layout(template_id: str, db: Session = Depends(get_db)):
    return template_service.document_templates.layout(db, template_id)


@router.post(
    "/document-templates/{template_id}/render",
    response_model=TemplateRenderResponse,
)
def render_document_template(
    template_id: str, payload: TemplateRenderRequest, db: Session = Depends(get_db)
):
    return template_service.document_templates.render(
        db, template_id, payload.variable_values
    )


# ------------------------------------------------------------------
# Letter templates
# ------------------------------------------------------------------


@router.post(
    "/letter-templates",
    response_model=LetterTemplateRead,
    status_code=status.HTTP_201_CREATED,
)
def create_letter_template(
    payload: LetterTemplateCreate,
    db: Session = Depends(get_db),
    auth: dict = Depends(require_admin),
):
    return template_service.letter_templates.create(db, payload, auth)


@router.get("/letter-templates/{template_id}", response_model=LetterTemplateRead)
def get_letter_template(template_id: str, db: Session = Depends(get_db)):
    return template_service.letter_templates.get(db, template_id)


@router.get("/letter-templates", response_model=ListResponse[LetterTemplateRead])
def list_letter_templates(
    organization_unit_id: str | None = None,
    category: str | None = None,
    is_active: bool | None = None,
    order_by: str = Query(default="name"),
    order_dir: str = Query(default="asc", pattern="^(asc|desc)$"),
    limit: int = Query(default=50, ge=1, le=200),
    offset: int = Query(default=0, ge=0),
    db: Session = Depends(get_db),
):
    return template_service.letter_templates.list_response(
        db, organization_unit_id, category, is_active, order_by, order_dir, limit, offset
    )


@router.patch(
    "/letter-templates/{template_id}",
    response_model=LetterTemplateRead,
    dependencies=[Depends(require_admin)],
)
def update_letter_template(
    template_id: str, payload: LetterTemplateUpdate, db: Session = Depends(get_db)
):
    return template_service.letter_templates.update(db, template_id, payload)


@router.delete(
    "/letter-templates/{template_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    dependencies=[Depends(require_admin)],
)
def delete_letter_template(template_id: str, db: Session = Depends(get_db)):
    template_service.letter_templates.delete(db, template_id)
