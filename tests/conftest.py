import os
import tempfile
import uuid

_db_dir = tempfile.mkdtemp(prefix="correspondence-tests-")
os.environ["DATABASE_URL"] = f"sqlite:///{os.path.join(_db_dir, 'test.db')}"

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import select  # noqa: E402

import app.models  # noqa: E402,F401
from app.db import Base, SessionLocal  # noqa: E402
from app.main import app  # noqa: E402
from app.models.person import OrganizationUnit, Person  # noqa: E402
from app.models.rbac import Permission, PersonRole, Role, RolePermission  # noqa: E402
from app.services.auth_dependencies import (  # noqa: E402
    build_auth_context,
    create_access_token,
)
from app.services.rbac import permissions  # noqa: E402

Base.metadata.create_all(bind=SessionLocal.kw["bind"])


@pytest.fixture()
def db_session():
    session = SessionLocal()
    permissions.seed_defaults(session)
    try:
        yield session
    finally:
        session.rollback()
        session.close()


def _make_person(db_session, *, first_name="Test", last_name="User", **kwargs):
    person = Person(
        first_name=first_name,
        last_name=last_name,
        email=f"{uuid.uuid4().hex[:10]}@example.com",
        **kwargs,
    )
    db_session.add(person)
    db_session.commit()
    db_session.refresh(person)
    return person


def _grant_role(db_session, person, role_name, permission_keys=()):
    role = db_session.scalars(select(Role).where(Role.name == role_name)).first()
    if role is None:
        role = Role(name=role_name)
        db_session.add(role)
        db_session.flush()
    for key in permission_keys:
        permission = db_session.scalars(
            select(Permission).where(Permission.key == key)
        ).first()
        already = db_session.scalars(
            select(RolePermission).where(
                RolePermission.role_id == role.id,
                RolePermission.permission_id == permission.id,
            )
        ).first()
        if already is None:
            db_session.add(RolePermission(role_id=role.id, permission_id=permission.id))
    db_session.add(PersonRole(person_id=person.id, role_id=role.id))
    db_session.commit()
    db_session.refresh(person)
    return role


@pytest.fixture()
def org_unit(db_session):
    unit = OrganizationUnit(code=f"U{uuid.uuid4().hex[:6].upper()}", name="Secretariat")
    db_session.add(unit)
    db_session.commit()
    db_session.refresh(unit)
    return unit


@pytest.fixture()
def person(db_session, org_unit):
    admin = _make_person(
        db_session,
        first_name="Ada",
        last_name="Admin",
        position="Head of Office",
        nip="198001012005011001",
        organization_unit_id=org_unit.id,
    )
    _grant_role(db_session, admin, "admin")
    return admin


@pytest.fixture()
def staff(db_session, org_unit):
    return _make_person(
        db_session,
        first_name="Sam",
        last_name="Staff",
        position="Clerk",
        organization_unit_id=org_unit.id,
    )


@pytest.fixture()
def make_person(db_session):
    def _factory(**kwargs):
        return _make_person(db_session, **kwargs)

    return _factory


@pytest.fixture()
def grant_role(db_session):
    def _grant(person, role_name, permission_keys=()):
        return _grant_role(db_session, person, role_name, permission_keys)

    return _grant


@pytest.fixture()
def auth_for():
    def _auth(person):
        return build_auth_context(person)

    return _auth


@pytest.fixture()
def headers_for():
    def _headers(person):
        return {"Authorization": f"Bearer {create_access_token(str(person.id))}"}

    return _headers


@pytest.fixture()
def auth_headers(person, headers_for):
    return headers_for(person)


@pytest.fixture()
def client():
    with TestClient(app) as test_client:
        yield test_client
