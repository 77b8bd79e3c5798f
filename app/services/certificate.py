"""Signing certificates and public verification.

The stored hash is a lookup token over the letter content at signing time.
Verification recomputes it; a mismatch means the letter changed after it
was signed. Nothing here is a cryptographic signature.
"""

import hashlib
import io
import json
import logging
from datetime import datetime, timezone

import qrcode
from fastapi import HTTPException
from qrcode.constants import ERROR_CORRECT_M
from sqlalchemy import func, select
from sqlalchemy.orm import Session

from app.config import settings
from app.models.correspondence import (
    CertificateStatus,
    Letter,
    LetterApproval,
    LetterCertificate,
    LetterStatus,
    OutgoingLetter,
)
from app.models.person import Person
from app.services.auth_dependencies import has_permission
from app.services.cache import cache
from app.services.common import coerce_uuid, year_bounds

logger = logging.getLogger(__name__)


def letter_document_hash(letter: Letter) -> str:
    created_at = (
        letter.created_at.replace(tzinfo=None).isoformat() if letter.created_at else None
    )
    payload = {
        "letter_id": str(letter.id),
        "letter_number": letter.letter_number,
        "subject": letter.subject,
        "content": letter.rendered_html,
        "created_at": created_at,
    }
    return hashlib.sha256(
        json.dumps(payload, sort_keys=True).encode("utf-8")
    ).hexdigest()


def verification_url(path: str) -> str:
    return f"{settings.public_base_url.rstrip('/')}/verify/{path.lstrip('/')}"


def qr_png(data: str, box_size: int = 8, border: int = 2) -> bytes:
    qr = qrcode.QRCode(
        version=1,
        error_correction=ERROR_CORRECT_M,
        box_size=box_size,
        border=border,
    )
    qr.add_data(data)
    qr.make(fit=True)
    img = qr.make_image(fill_color="black", back_color="white")
    buffer = io.BytesIO()
    img.save(buffer, format="PNG")
    return buffer.getvalue()


def letter_verification_key(letter_id) -> str:
    return cache.build_key(cache.PREFIX_VERIFICATION, "outgoing", letter_id)


def forget_letter_verification(letter_id) -> None:
    cache.forget(letter_verification_key(letter_id))


def next_certificate_id(db: Session, now: datetime | None = None) -> str:
    now = now or datetime.now(timezone.utc)
    start, end = year_bounds(now)
    issued = db.scalar(
        select(func.count(LetterCertificate.id)).where(
            LetterCertificate.created_at >= start,
            LetterCertificate.created_at < end,
        )
    )
    return f"CERT-{now.year}-{(issued or 0) + 1:05d}"


class Certificates:
    @staticmethod
    def issue(
        db: Session,
        letter: Letter,
        approval: LetterApproval,
        signer: Person,
        now: datetime | None = None,
    ) -> LetterCertificate:
        """Create a certificate for an approval; the caller commits."""
        now = now or datetime.now(timezone.utc)
        certificate = LetterCertificate(
            certificate_id=next_certificate_id(db, now),
            letter_id=letter.id,
            approval_id=approval.id,
            document_hash=letter_document_hash(letter),
            signed_by=signer.id,
            signer_name=signer.display_name,
            signer_position=approval.position_name or signer.position,
            signer_nip=signer.nip,
            signed_at=now,
            metadata_={
                "letter_number": letter.letter_number,
                "signature_index": approval.signature_index,
            },
            status=CertificateStatus.valid,
        )
        db.add(certificate)
        db.flush()
        logger.info(
            "Issued certificate %s for letter %s", certificate.certificate_id, letter.id
        )
        return certificate

    @staticmethod
    def get(db: Session, certificate_id: str) -> LetterCertificate:
        certificate = db.scalars(
            select(LetterCertificate).where(
                LetterCertificate.certificate_id == certificate_id
            )
        ).first()
        if not certificate:
            raise HTTPException(status_code=404, detail="Certificate not found")
        return certificate

    @staticmethod
    def list_for_letter(db: Session, letter_id: str) -> list[LetterCertificate]:
        return list(
            db.scalars(
                select(LetterCertificate)
                .where(LetterCertificate.letter_id == coerce_uuid(letter_id))
                .order_by(LetterCertificate.created_at)
            )
        )

    @staticmethod
    def verify(db: Session, certificate_id: str) -> dict:
        certificate = db.scalars(
            select(LetterCertificate).where(
                LetterCertificate.certificate_id == certificate_id
            )
        ).first()
        if not certificate:
            return {
                "valid": False,
                "message": "Certificate not found",
                "hash_valid": False,
                "is_revoked": False,
                "certificate": None,
            }
        hash_valid = certificate.document_hash == letter_document_hash(
            certificate.letter
        )
        is_revoked = certificate.status == CertificateStatus.revoked
        if is_revoked:
            message = "Certificate has been revoked"
        elif not hash_valid:
            message = "Document has been modified after signing"
        else:
            message = "Certificate is valid"
        return {
            "valid": hash_valid and not is_revoked,
            "message": message,
            "hash_valid": hash_valid,
            "is_revoked": is_revoked,
            "certificate": certificate,
        }

    @staticmethod
    def mark_revoked(
        certificate: LetterCertificate, reason: str, revoked_by
    ) -> LetterCertificate:
        if certificate.status == CertificateStatus.revoked:
            raise HTTPException(status_code=400, detail="Certificate already revoked")
        certificate.status = CertificateStatus.revoked
        certificate.revoked_reason = reason
        certificate.revoked_by = coerce_uuid(revoked_by)
        certificate.revoked_at = datetime.now(timezone.utc)
        return certificate

    @staticmethod
    def revoke(
        db: Session, certificate_id: str, reason: str, auth: dict
    ) -> LetterCertificate:
        certificate = Certificates.get(db, certificate_id)
        actor = coerce_uuid(auth["person_id"])
        if certificate.signed_by != actor and not has_permission(
            auth, "certificate.revoke"
        ):
            raise HTTPException(
                status_code=403, detail="Missing permission: certificate.revoke"
            )
        Certificates.mark_revoked(certificate, reason, actor)
        db.commit()
        db.refresh(certificate)
        logger.info("Revoked certificate %s", certificate.certificate_id)
        return certificate

    @staticmethod
    def certificate_qr(db: Session, certificate_id: str) -> bytes:
        certificate = Certificates.get(db, certificate_id)
        return qr_png(verification_url(f"certificates/{certificate.certificate_id}"))


# ---------------------------------------------------------------------------
# Outgoing letter verification
# ---------------------------------------------------------------------------


class LetterVerification:
    @staticmethod
    def _build(letter: OutgoingLetter) -> dict:
        return {
            "letter_id": str(letter.id),
            "letter_number": letter.letter_number,
            "subject": letter.subject,
            "letter_date": letter.letter_date.isoformat(),
            "status": letter.status.value,
            "is_valid": letter.status == LetterStatus.signed,
            "brand_name": settings.brand_name,
            "verification_url": verification_url(f"letters/{letter.id}"),
            "signatories": [
                {
                    "name": signatory.user.display_name,
                    "position": signatory.user.position,
                    "slot_id": signatory.slot_id,
                    "sign_order": signatory.sign_order,
                    "status": signatory.status.value,
                    "signed_at": (
                        signatory.signed_at.isoformat() if signatory.signed_at else None
                    ),
                    "certificate_id": signatory.certificate_id,
                    "document_hash": signatory.document_hash,
                }
                for signatory in letter.signatories
            ],
        }

    @staticmethod
    def verify(db: Session, letter_id: str) -> dict:
        letter_uuid = coerce_uuid(letter_id)
        key = letter_verification_key(letter_uuid)
        cached = cache.get(key)
        if cached is not None:
            return cached
        letter = db.get(OutgoingLetter, letter_uuid)
        if not letter:
            raise HTTPException(status_code=404, detail="Letter not found")
        payload = LetterVerification._build(letter)
        cache.set(key, payload)
        return payload

    @staticmethod
    def letter_qr(db: Session, letter_id: str) -> bytes:
        letter = db.get(OutgoingLetter, coerce_uuid(letter_id))
        if not letter:
            raise HTTPException(status_code=404, detail="Letter not found")
        return qr_png(verification_url(f"letters/{letter.id}"))


certificates = Certificates()
letter_verification = LetterVerification()
