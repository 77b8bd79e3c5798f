from __future__ import annotations

import logging

from fastapi import HTTPException
from sqlalchemy import select
from sqlalchemy.orm import Session

from app.models.person import Person
from app.models.rbac import Permission, PersonRole, Role, RolePermission
from app.schemas.rbac import PermissionCreate, RoleCreate, RoleUpdate
from app.services.common import apply_ordering, apply_pagination, coerce_uuid
from app.services.response import ListResponseMixin

logger = logging.getLogger(__name__)

WORKFLOW_PERMISSIONS = {
    "disposition.create": "Create dispositions for incoming letters",
    "disposition.create_child": "Forward a received disposition",
    "disposition.update_status": "Mark dispositions in progress or completed",
    "disposition.add_follow_up": "Record follow-ups on dispositions",
    "disposition.delete": "Cancel pending dispositions",
    "archive.manage": "Create, edit and remove archives",
    "certificate.revoke": "Revoke letter certificates",
}


def _get_or_create_permission(db: Session, key: str) -> Permission:
    permission = db.scalars(select(Permission).where(Permission.key == key)).first()
    if permission is None:
        permission = Permission(key=key, description=WORKFLOW_PERMISSIONS.get(key))
        db.add(permission)
        db.flush()
    return permission


# ---------------------------------------------------------------------------
# Roles
# ---------------------------------------------------------------------------


class Roles(ListResponseMixin):
    @staticmethod
    def create(db: Session, payload: RoleCreate) -> Role:
        if db.scalars(select(Role).where(Role.name == payload.name)).first():
            raise HTTPException(status_code=409, detail="Role already exists")
        data = payload.model_dump(exclude={"permission_keys"})
        role = Role(**data)
        db.add(role)
        db.flush()
        for key in payload.permission_keys:
            permission = _get_or_create_permission(db, key)
            db.add(RolePermission(role_id=role.id, permission_id=permission.id))
        db.commit()
        db.refresh(role)
        logger.info("Created role %s", role.name)
        return role

    @staticmethod
    def get(db: Session, role_id: str) -> Role:
        role = db.get(Role, coerce_uuid(role_id))
        if not role:
            raise HTTPException(status_code=404, detail="Role not found")
        return role

    @staticmethod
    def list(
        db: Session,
        is_active: bool | None,
        order_by: str,
        order_dir: str,
        limit: int,
        offset: int,
    ) -> list[Role]:
        query = db.query(Role)
        if is_active is not None:
            query = query.filter(Role.is_active == is_active)
        query = apply_ordering(
            query,
            order_by,
            order_dir,
            {"name": Role.name, "created_at": Role.created_at},
        )
        return apply_pagination(query, limit, offset).all()

    @staticmethod
    def update(db: Session, role_id: str, payload: RoleUpdate) -> Role:
        role = Roles.get(db, role_id)
        for key, value in payload.model_dump(exclude_unset=True).items():
            setattr(role, key, value)
        db.commit()
        db.refresh(role)
        logger.info("Updated role %s", role.id)
        return role

    @staticmethod
    def delete(db: Session, role_id: str) -> None:
        role = Roles.get(db, role_id)
        role.is_active = False
        db.commit()
        logger.info("Deactivated role %s", role_id)

    @staticmethod
    def grant_permission(db: Session, role_id: str, permission_key: str) -> Role:
        role = Roles.get(db, role_id)
        permission = _get_or_create_permission(db, permission_key)
        if permission.key not in role.permission_keys:
            db.add(RolePermission(role_id=role.id, permission_id=permission.id))
        db.commit()
        db.refresh(role)
        logger.info("Granted %s to role %s", permission_key, role.name)
        return role

    @staticmethod
    def revoke_permission(db: Session, role_id: str, permission_key: str) -> Role:
        role = Roles.get(db, role_id)
        for link in list(role.permissions):
            if link.permission.key == permission_key:
                db.delete(link)
        db.commit()
        db.refresh(role)
        logger.info("Revoked %s from role %s", permission_key, role.name)
        return role


# ---------------------------------------------------------------------------
# Permissions
# ---------------------------------------------------------------------------


class Permissions(ListResponseMixin):
    @staticmethod
    def create(db: Session, payload: PermissionCreate) -> Permission:
        if db.scalars(select(Permission).where(Permission.key == payload.key)).first():
            raise HTTPException(status_code=409, detail="Permission already exists")
        permission = Permission(**payload.model_dump())
        db.add(permission)
        db.commit()
        db.refresh(permission)
        logger.info("Created permission %s", permission.key)
        return permission

    @staticmethod
    def list(
        db: Session,
        order_by: str,
        order_dir: str,
        limit: int,
        offset: int,
    ) -> list[Permission]:
        query = apply_ordering(
            db.query(Permission),
            order_by,
            order_dir,
            {"key": Permission.key, "created_at": Permission.created_at},
        )
        return apply_pagination(query, limit, offset).all()

    @staticmethod
    def seed_defaults(db: Session) -> int:
        created = 0
        for key in WORKFLOW_PERMISSIONS:
            if not db.scalars(select(Permission).where(Permission.key == key)).first():
                _get_or_create_permission(db, key)
                created += 1
        if not db.scalars(select(Role).where(Role.name == "admin")).first():
            db.add(Role(name="admin", description="Full access"))
            created += 1
        db.commit()
        if created:
            logger.info("Seeded %d default RBAC rows", created)
        return created


# ---------------------------------------------------------------------------
# PersonRoles
# ---------------------------------------------------------------------------


class PersonRoles:
    @staticmethod
    def assign(db: Session, person_id: str, role_id: str) -> PersonRole:
        person = db.get(Person, coerce_uuid(person_id))
        if not person:
            raise HTTPException(status_code=404, detail="Person not found")
        role = Roles.get(db, role_id)
        existing = db.scalars(
            select(PersonRole).where(
                PersonRole.person_id == person.id, PersonRole.role_id == role.id
            )
        ).first()
        if existing:
            return existing
        link = PersonRole(person_id=person.id, role_id=role.id)
        db.add(link)
        db.commit()
        db.refresh(link)
        logger.info("Assigned role %s to person %s", role.name, person.id)
        return link

    @staticmethod
    def remove(db: Session, person_id: str, role_id: str) -> None:
        link = db.scalars(
            select(PersonRole).where(
                PersonRole.person_id == coerce_uuid(person_id),
                PersonRole.role_id == coerce_uuid(role_id),
            )
        ).first()
        if not link:
            raise HTTPException(status_code=404, detail="Role assignment not found")
        db.delete(link)
        db.commit()
        logger.info("Removed role %s from person %s", role_id, person_id)


roles = Roles()
permissions = Permissions()
person_roles = PersonRoles()
