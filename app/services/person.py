from __future__ import annotations

import logging

from fastapi import HTTPException
from sqlalchemy import select
from sqlalchemy.orm import Session

from app.models.person import OrganizationUnit, Person
from app.schemas.person import (
    OrganizationUnitCreate,
    OrganizationUnitUpdate,
    PersonCreate,
    PersonUpdate,
)
from app.services.common import apply_ordering, apply_pagination, coerce_uuid
from app.services.response import ListResponseMixin

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# OrganizationUnits
# ---------------------------------------------------------------------------


class OrganizationUnits(ListResponseMixin):
    @staticmethod
    def create(db: Session, payload: OrganizationUnitCreate) -> OrganizationUnit:
        if db.scalars(
            select(OrganizationUnit).where(OrganizationUnit.code == payload.code)
        ).first():
            raise HTTPException(
                status_code=409, detail="Organization unit code already exists"
            )
        if payload.parent_id is not None:
            if not db.get(OrganizationUnit, coerce_uuid(payload.parent_id)):
                raise HTTPException(
                    status_code=404, detail="Parent organization unit not found"
                )
        unit = OrganizationUnit(**payload.model_dump())
        db.add(unit)
        db.commit()
        db.refresh(unit)
        logger.info("Created organization unit %s (%s)", unit.id, unit.code)
        return unit

    @staticmethod
    def get(db: Session, unit_id: str) -> OrganizationUnit:
        unit = db.get(OrganizationUnit, coerce_uuid(unit_id))
        if not unit:
            raise HTTPException(status_code=404, detail="Organization unit not found")
        return unit

    @staticmethod
    def list(
        db: Session,
        parent_id: str | None,
        is_active: bool | None,
        order_by: str,
        order_dir: str,
        limit: int,
        offset: int,
    ) -> list[OrganizationUnit]:
        query = db.query(OrganizationUnit)
        if parent_id is not None:
            query = query.filter(OrganizationUnit.parent_id == coerce_uuid(parent_id))
        if is_active is None:
            query = query.filter(OrganizationUnit.is_active.is_(True))
        else:
            query = query.filter(OrganizationUnit.is_active == is_active)
        query = apply_ordering(
            query,
            order_by,
            order_dir,
            {
                "code": OrganizationUnit.code,
                "name": OrganizationUnit.name,
                "created_at": OrganizationUnit.created_at,
            },
        )
        return apply_pagination(query, limit, offset).all()

    @staticmethod
    def update(
        db: Session, unit_id: str, payload: OrganizationUnitUpdate
    ) -> OrganizationUnit:
        unit = OrganizationUnits.get(db, unit_id)
        data = payload.model_dump(exclude_unset=True)
        parent_id = data.get("parent_id")
        if parent_id is not None and coerce_uuid(parent_id) == unit.id:
            raise HTTPException(
                status_code=400, detail="Organization unit cannot be its own parent"
            )
        for key, value in data.items():
            setattr(unit, key, value)
        db.commit()
        db.refresh(unit)
        logger.info("Updated organization unit %s", unit.id)
        return unit

    @staticmethod
    def delete(db: Session, unit_id: str) -> None:
        unit = OrganizationUnits.get(db, unit_id)
        unit.is_active = False
        db.commit()
        logger.info("Soft-deleted organization unit %s", unit_id)


# ---------------------------------------------------------------------------
# People
# ---------------------------------------------------------------------------


class People(ListResponseMixin):
    @staticmethod
    def create(db: Session, payload: PersonCreate) -> Person:
        if db.scalars(select(Person).where(Person.email == payload.email)).first():
            raise HTTPException(status_code=409, detail="Email already registered")
        if payload.organization_unit_id is not None:
            OrganizationUnits.get(db, payload.organization_unit_id)
        person = Person(**payload.model_dump())
        db.add(person)
        db.commit()
        db.refresh(person)
        logger.info("Created person %s", person.id)
        return person

    @staticmethod
    def get(db: Session, person_id: str) -> Person:
        person = db.get(Person, coerce_uuid(person_id))
        if not person:
            raise HTTPException(status_code=404, detail="Person not found")
        return person

    @staticmethod
    def list(
        db: Session,
        organization_unit_id: str | None,
        search: str | None,
        is_active: bool | None,
        order_by: str,
        order_dir: str,
        limit: int,
        offset: int,
    ) -> list[Person]:
        query = db.query(Person)
        if organization_unit_id is not None:
            query = query.filter(
                Person.organization_unit_id == coerce_uuid(organization_unit_id)
            )
        if search:
            like = f"%{search}%"
            query = query.filter(
                Person.first_name.ilike(like)
                | Person.last_name.ilike(like)
                | Person.email.ilike(like)
            )
        if is_active is None:
            query = query.filter(Person.is_active.is_(True))
        else:
            query = query.filter(Person.is_active == is_active)
        query = apply_ordering(
            query,
            order_by,
            order_dir,
            {
                "last_name": Person.last_name,
                "email": Person.email,
                "created_at": Person.created_at,
            },
        )
        return apply_pagination(query, limit, offset).all()

    @staticmethod
    def update(db: Session, person_id: str, payload: PersonUpdate) -> Person:
        person = People.get(db, person_id)
        data = payload.model_dump(exclude_unset=True)
        if data.get("organization_unit_id") is not None:
            OrganizationUnits.get(db, data["organization_unit_id"])
        for key, value in data.items():
            setattr(person, key, value)
        db.commit()
        db.refresh(person)
        logger.info("Updated person %s", person.id)
        return person


organization_units = OrganizationUnits()
people = People()
