from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from starlette.responses import Response

from app.db import SessionLocal
from app.schemas.letter import CertificateVerification
from app.services import certificate as certificate_service

router = APIRouter(prefix="/verify", tags=["verification"])


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@router.get("/letters/{letter_id}")
def verify_letter(letter_id: str, db: Session = Depends(get_db)):
    return certificate_service.letter_verification.verify(db, letter_id)


@router.get("/letters/{letter_id}/qr")
def letter_qr_code(letter_id: str, db: Session = Depends(get_db)):
    png = certificate_service.letter_verification.letter_qr(db, letter_id)
    return Response(content=png, media_type="image/png")


@router.get("/certificates/{certificate_id}", response_model=CertificateVerification)
def verify_certificate(certificate_id: str, db: Session = Depends(get_db)):
    return certificate_service.certificates.verify(db, certificate_id)


@router.get("/certificates/{certificate_id}/qr")
def certificate_qr_code(certificate_id: str, db: Session = Depends(get_db)):
    png = certificate_service.certificates.certificate_qr(db, certificate_id)
    return Response(content=png, media_type="image/png")
