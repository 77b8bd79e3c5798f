from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from app.api.deps import require_role
from app.db import SessionLocal
from app.schemas.common import ListResponse
from app.schemas.rbac import (
    PermissionCreate,
    PermissionRead,
    PersonRoleCreate,
    PersonRoleRead,
    RoleCreate,
    RolePermissionGrant,
    RoleRead,
    RoleUpdate,
)
from app.services import rbac as rbac_service

router = APIRouter(
    prefix="/rbac", tags=["rbac"], dependencies=[Depends(require_role("admin"))]
)


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


# ------------------------------------------------------------------
# Roles
# ------------------------------------------------------------------


@router.post("/roles", response_model=RoleRead, status_code=status.HTTP_201_CREATED)
def create_role(payload: RoleCreate, db: Session = Depends(get_db)):
    return rbac_service.roles.create(db, payload)


@router.get("/roles/{role_id}", response_model=RoleRead)
def get_role(role_id: str, db: Session = Depends(get_db)):
    return rbac_service.roles.get(db, role_id)


@router.get("/roles", response_model=ListResponse[RoleRead])
def list_roles(
    is_active: bool | None = None,
    order_by: str = Query(default="name"),
    order_dir: str = Query(default="asc", pattern="^(asc|desc)$"),
    limit: int = Query(default=50, ge=1, le=200),
    offset: int = Query(default=0, ge=0),
    db: Session = Depends(get_db),
):
    return rbac_service.roles.list_response(
        db, is_active, order_by, order_dir, limit, offset
    )


@router.patch("/roles/{role_id}", response_model=RoleRead)
def update_role(role_id: str, payload: RoleUpdate, db: Session = Depends(get_db)):
    return rbac_service.roles.update(db, role_id, payload)


@router.delete("/roles/{role_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_role(role_id: str, db: Session = Depends(get_db)):
    rbac_service.roles.delete(db, role_id)


@router.post("/roles/{role_id}/permissions", response_model=RoleRead)
def grant_role_permission(
    role_id: str, payload: RolePermissionGrant, db: Session = Depends(get_db)
):
    return rbac_service.roles.grant_permission(db, role_id, payload.permission_key)


@router.delete("/roles/{role_id}/permissions/{permission_key}", response_model=RoleRead)
def revoke_role_permission(
    role_id: str, permission_key: str, db: Session = Depends(get_db)
):
    return rbac_service.roles.revoke_permission(db, role_id, permission_key)


# ------------------------------------------------------------------
# Permissions
# ------------------------------------------------------------------


@router.post(
    "/permissions", response_model=PermissionRead, status_code=status.HTTP_201_CREATED
)
def create_permission(payload: PermissionCreate, db: Session = Depends(get_db)):
    return rbac_service.permissions.create(db, payload)


@router.get("/permissions", response_model=ListResponse[PermissionRead])
def list_permissions(
    order_by: str = Query(default="key"),
    order_dir: str = Query(default="asc", pattern="^(asc|desc)$"),
    limit: int = Query(default=50, ge=1, le=200),
    offset: int = Query(default=0, ge=0),
    db: Session = Depends(get_db),
):
    return rbac_service.permissions.list_response(
        db, order_by, order_dir, limit, offset
    )


# ------------------------------------------------------------------
# Person roles
# ------------------------------------------------------------------


@router.post(
    "/people/{person_id}/roles",
    response_model=PersonRoleRead,
    status_code=status.HTTP_201_CREATED,
)
def assign_person_role(
    person_id: str, payload: PersonRoleCreate, db: Session = Depends(get_db)
):
    return rbac_service.person_roles.assign(db, person_id, str(payload.role_id))


@router.delete(
    "/people/{person_id}/roles/{role_id}", status_code=status.HTTP_204_NO_CONTENT
)
def remove_person_role(person_id: str, role_id: str, db: Session = Depends(get_db)):
    rbac_service.person_roles.remove(db, person_id, role_id)
