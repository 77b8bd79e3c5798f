from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from app.api.deps import require_role
from app.db import SessionLocal
from app.schemas.common import ListResponse
from app.schemas.person import (
    OrganizationUnitCreate,
    OrganizationUnitRead,
    OrganizationUnitUpdate,
    PersonCreate,
    PersonRead,
    PersonUpdate,
)
from app.services import person as person_service

router = APIRouter(tags=["organization"])
require_admin = require_role("admin")


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


# ------------------------------------------------------------------
# Organization units
# ------------------------------------------------------------------


@router.post(
    "/organization-units",
    response_model=OrganizationUnitRead,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_admin)],
)
def create_organization_unit(
    payload: OrganizationUnitCreate, db: Session = Depends(get_db)
):
    return person_service.organization_units.create(db, payload)


@router.get("/organization-units/{unit_id}", response_model=OrganizationUnitRead)
def get_organization_unit(unit_id: str, db: Session = Depends(get_db)):
    return person_service.organization_units.get(db, unit_id)


@router.get("/organization-units", response_model=ListResponse[OrganizationUnitRead])
def list_organization_units(
    parent_id: str | None = None,
    is_active: bool | None = None,
    order_by: str = Query(default="code"),
    order_dir: str = Query(default="asc", pattern="^(asc|desc)$"),
    limit: int = Query(default=50, ge=1, le=200),
    offset: int = Query(default=0, ge=0),
    db: Session = Depends(get_db),
):
    return person_service.organization_units.list_response(
        db, parent_id, is_active, order_by, order_dir, limit, offset
    )


@router.patch(
    "/organization-units/{unit_id}",
    response_model=OrganizationUnitRead,
    dependencies=[Depends(require_admin)],
)
def update_organization_unit(
    unit_id: str, payload: OrganizationUnitUpdate, db: Session = Depends(get_db)
):
    return person_service.organization_units.update(db, unit_id, payload)


@router.delete(
    "/organization-units/{unit_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    dependencies=[Depends(require_admin)],
)
def delete_organization_unit(unit_id: str, db: Session = Depends(get_db)):
    person_service.organization_units.delete(db, unit_id)


# ------------------------------------------------------------------
# People
# ------------------------------------------------------------------


@router.post(
    "/people",
    response_model=PersonRead,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_admin)],
)
def create_person(payload: PersonCreate, db: Session = Depends(get_db)):
    return person_service.people.create(db, payload)


@router.get("/people/{person_id}", response_model=PersonRead)
def get_person(person_id: str, db: Session = Depends(get_db)):
    return person_service.people.get(db, person_id)


@router.get("/people", response_model=ListResponse[PersonRead])
def list_people(
    organization_unit_id: str | None = None,
    search: str | None = None,
    is_active: bool | None = None,
    order_by: str = Query(default="last_name"),
    order_dir: str = Query(default="asc", pattern="^(asc|desc)$"),
    limit: int = Query(default=50, ge=1, le=200),
    offset: int = Query(default=0, ge=0),
    db: Session = Depends(get_db),
):
    return person_service.people.list_response(
        db, organization_unit_id, search, is_active, order_by, order_dir, limit, offset
    )


@router.patch(
    "/people/{person_id}",
    response_model=PersonRead,
    dependencies=[Depends(require_admin)],
)
def update_person(person_id: str, payload: PersonUpdate, db: Session = Depends(get_db)):
    return person_service.people.update(db, person_id, payload)
