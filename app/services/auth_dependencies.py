import logging
from datetime import datetime, timedelta, timezone

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt

from app.config import settings
from app.db import SessionLocal
from app.models.person import Person
from app.services.common import coerce_uuid

logger = logging.getLogger(__name__)

ADMIN_ROLE = "admin"

bearer_scheme = HTTPBearer(auto_error=False)


def create_access_token(person_id: str, expires_delta: timedelta | None = None) -> str:
    expire = datetime.now(timezone.utc) + (
        expires_delta or timedelta(minutes=settings.access_token_expire_minutes)
    )
    payload = {"sub": str(person_id), "exp": expire, "type": "access"}
    return jwt.encode(payload, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def _decode_token(token: str) -> dict:
    try:
        return jwt.decode(
            token, settings.jwt_secret_key, algorithms=[settings.jwt_algorithm]
        )
    except JWTError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )


def build_auth_context(person: Person) -> dict:
    roles: set[str] = set()
    permissions: set[str] = set()
    for link in person.roles:
        role = link.role
        if not role.is_active:
            continue
        roles.add(role.name)
        for grant in role.permissions:
            if grant.permission.is_active:
                permissions.add(grant.permission.key)
    return {
        "person_id": str(person.id),
        "organization_unit_id": (
            str(person.organization_unit_id) if person.organization_unit_id else None
        ),
        "roles": sorted(roles),
        "permissions": sorted(permissions),
    }


def require_user_auth(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
) -> dict:
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    payload = _decode_token(credentials.credentials)
    if payload.get("type") != "access" or not payload.get("sub"):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )
    db = SessionLocal()
    try:
        person = db.get(Person, coerce_uuid(payload["sub"]))
        if not person or not person.is_active:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Inactive or unknown user",
            )
        return build_auth_context(person)
    finally:
        db.close()


def is_admin(auth: dict) -> bool:
    return ADMIN_ROLE in auth.get("roles", [])


def has_permission(auth: dict, key: str) -> bool:
    return is_admin(auth) or key in auth.get("permissions", [])


def ensure_permission(auth: dict, key: str) -> None:
    if not has_permission(auth, key):
        logger.info("Permission %s denied for person %s", key, auth.get("person_id"))
        raise HTTPException(status_code=403, detail=f"Missing permission: {key}")


def require_role(role_name: str):
    def _dependency(auth: dict = Depends(require_user_auth)) -> dict:
        if role_name not in auth.get("roles", []) and not is_admin(auth):
            raise HTTPException(status_code=403, detail="Forbidden")
        return auth

    return _dependency
