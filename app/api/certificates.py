from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.api.deps import require_user_auth
from app.db import SessionLocal
from app.schemas.letter import CertificateRead, RevokeRequest
from app.services import certificate as certificate_service

router = APIRouter(prefix="/certificates", tags=["certificates"])


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@router.get("/{certificate_id}", response_model=CertificateRead)
def get_certificate(certificate_id: str, db: Session = Depends(get_db)):
    return certificate_service.certificates.get(db, certificate_id)


@router.post("/{certificate_id}/revoke", response_model=CertificateRead)
def revoke_certificate(
    certificate_id: str,
    payload: RevokeRequest,
    db: Session = Depends(get_db),
    auth: dict = Depends(require_user_auth),
):
    return certificate_service.certificates.revoke(
        db, certificate_id, payload.reason, auth
    )
