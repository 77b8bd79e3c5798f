import uuid
from datetime import date, timedelta
from unittest.mock import patch

import pytest
from fastapi import HTTPException

from app.models.correspondence import (
    ArchiveClassification,
    ArchiveType,
    IncomingLetter,
    IncomingLetterClassification,
    IncomingLetterStatus,
    LetterStatus,
    OutgoingLetter,
    RetentionStatus,
)
from app.schemas.archive import (
    ArchiveCreate,
    ArchiveIncomingRequest,
    ArchiveLetterRequest,
    ArchiveUpdate,
)
from app.schemas.document_template import DocumentTemplateCreate
from app.services.archive import add_years, archives, human_file_size
from app.services.document_template import document_templates


def _archive(db_session, auth, **kwargs):
    values = {"title": f"Board minutes {uuid.uuid4().hex[:6]}", "file_path": "a/b/minutes.PDF"}
    values.update(kwargs)
    return archives.create(db_session, ArchiveCreate(**values), auth)


def _incoming(db_session, person, **kwargs):
    values = {
        "incoming_number": f"SM/{uuid.uuid4().hex[:4]}/ORG/JAN/2025",
        "original_number": "77/EXT/2025",
        "original_date": date(2025, 1, 5),
        "received_date": date(2025, 1, 6),
        "sender": "City Council",
        "subject": "Hearing schedule",
        "classification": IncomingLetterClassification.rahasia,
        "status": IncomingLetterStatus.completed,
        "file_path": "incoming/hearing.pdf",
        "registered_by": person.id,
    }
    values.update(kwargs)
    letter = IncomingLetter(**values)
    db_session.add(letter)
    db_session.commit()
    db_session.refresh(letter)
    return letter


def _outgoing(db_session, person, auth, status=LetterStatus.signed):
    template = document_templates.create(
        db_session,
        DocumentTemplateCreate(name="Reply", code=f"R{uuid.uuid4().hex[:6]}"),
        auth,
    )
    letter = OutgoingLetter(
        template_id=template.id,
        letter_number="009/R/X/2025",
        subject="Reply to the council",
        letter_date=date(2025, 2, 1),
        status=status,
        created_by=person.id,
    )
    db_session.add(letter)
    db_session.commit()
    db_session.refresh(letter)
    return letter


class TestArchiveHelpers:
    def test_add_years_handles_leap_day(self):
        assert add_years(date(2024, 2, 29), 1) == date(2025, 2, 28)
        assert add_years(date(2024, 2, 29), 4) == date(2028, 2, 29)

    def test_human_file_size(self):
        assert human_file_size(None) is None
        assert human_file_size(512) == "512.00 B"
        assert human_file_size(1536) == "1.50 KB"
        assert human_file_size(5 * 1024 * 1024) == "5.00 MB"


class TestArchives:
    def test_create_requires_permission(self, db_session, staff, auth_for):
        with pytest.raises(HTTPException) as exc:
            _archive(db_session, auth_for(staff))
        assert exc.value.status_code == 403

    def test_create_derives_retention_and_file_type(self, db_session, person, auth_for):
        archive = _archive(db_session, auth_for(person), retention_period=10)
        assert archive.type == ArchiveType.document
        assert archive.file_type == "pdf"
        assert archive.retention_until == add_years(date.today(), 10)
        assert archive.retention_status == RetentionStatus.active
        assert archive.archived_by == person.id

    def test_create_rejects_unknown_classification(self, db_session, person, auth_for):
        with pytest.raises(HTTPException) as exc:
            _archive(db_session, auth_for(person), classification="top")
        assert exc.value.status_code == 400

    def test_update_recomputes_retention(self, db_session, person, auth_for):
        archive = _archive(db_session, auth_for(person), retention_period=10)
        archive = archives.update(
            db_session,
            str(archive.id),
            ArchiveUpdate(retention_period=2, classification="secret"),
            auth_for(person),
        )
        assert archive.retention_period == 2
        assert archive.retention_until == add_years(archive.created_at.date(), 2)
        assert archive.classification == ArchiveClassification.secret

    def test_list_filters(self, db_session, person, auth_for):
        marker = uuid.uuid4().hex[:8]
        archive = _archive(db_session, auth_for(person), title=f"Deed {marker}")
        items = archives.list(
            db_session, "document", None, "internal", marker, "created_at", "desc", 50, 0
        )
        assert [a.id for a in items] == [archive.id]

    def test_expiring_window(self, db_session, person, auth_for):
        soon = _archive(db_session, auth_for(person), retention_period=1)
        soon.retention_until = date.today() + timedelta(days=10)
        later = _archive(db_session, auth_for(person), retention_period=1)
        later.retention_until = date.today() + timedelta(days=90)
        db_session.commit()
        ids = [a.id for a in archives.expiring(db_session, 30, 200, 0)]
        assert soon.id in ids
        assert later.id not in ids

    def test_mark_expired(self, db_session, person, auth_for):
        archive = _archive(db_session, auth_for(person), retention_period=1)
        archive.retention_until = date.today() - timedelta(days=1)
        db_session.commit()
        assert archives.mark_expired(db_session) >= 1
        db_session.refresh(archive)
        assert archive.retention_status == RetentionStatus.expired
        assert archives.mark_expired(db_session) == 0

    def test_stats(self, db_session, person, auth_for):
        _archive(db_session, auth_for(person))
        stats = archives.stats(db_session)
        assert stats["total"] >= 1
        assert stats["by_type"]["document"] >= 1
        assert set(stats) == {
            "total",
            "by_type",
            "by_classification",
            "expiring_soon",
            "expired",
        }

    def test_file_info(self, db_session, person, auth_for):
        archive = _archive(db_session, auth_for(person), file_size=2048)
        with patch("app.services.archive.storage") as mock_storage:
            mock_storage.object_exists.return_value = True
            mock_storage.generate_download_url.return_value = "https://files/minutes"
            info = archives.file_info(db_session, str(archive.id))
        assert info["exists"] is True
        assert info["file_size"] == "2.00 KB"
        assert info["download_url"] == "https://files/minutes"

    def test_file_info_without_storage(self, db_session, person, auth_for):
        archive = _archive(db_session, auth_for(person))
        info = archives.file_info(db_session, str(archive.id))
        assert info["exists"] is False
        assert info["download_url"] is None


class TestArchivingLetters:
    def test_archive_incoming_letter(self, db_session, person, auth_for):
        letter = _incoming(db_session, person)
        archive = archives.archive_incoming_letter(
            db_session,
            str(letter.id),
            ArchiveIncomingRequest(retention_period=3),
            auth_for(person),
        )
        db_session.refresh(letter)
        assert letter.status == IncomingLetterStatus.archived
        assert archive.type == ArchiveType.incoming_letter
        assert archive.classification == ArchiveClassification.confidential
        assert archive.document_number == letter.incoming_number
        assert archive.sender == "City Council"

        with pytest.raises(HTTPException) as exc:
            archives.archive_incoming_letter(
                db_session, str(letter.id), ArchiveIncomingRequest(), auth_for(person)
            )
        assert exc.value.status_code == 409

    def test_incoming_must_be_completed(self, db_session, person, auth_for):
        letter = _incoming(db_session, person, status=IncomingLetterStatus.in_progress)
        with pytest.raises(HTTPException) as exc:
            archives.archive_incoming_letter(
                db_session, str(letter.id), ArchiveIncomingRequest(), auth_for(person)
            )
        assert exc.value.detail == "Only completed incoming letters can be archived"

    def test_incoming_needs_file(self, db_session, person, auth_for):
        letter = _incoming(db_session, person, file_path=None)
        with pytest.raises(HTTPException) as exc:
            archives.archive_incoming_letter(
                db_session, str(letter.id), ArchiveIncomingRequest(), auth_for(person)
            )
        assert exc.value.detail == "Incoming letter has no file to archive"

    def test_deleting_incoming_archive_restores_letter(
        self, db_session, person, auth_for
    ):
        letter = _incoming(db_session, person)
        archive = archives.archive_incoming_letter(
            db_session, str(letter.id), ArchiveIncomingRequest(), auth_for(person)
        )
        archives.delete(db_session, str(archive.id), auth_for(person))
        db_session.refresh(letter)
        assert letter.status == IncomingLetterStatus.completed
        with pytest.raises(HTTPException) as exc:
            archives.get(db_session, str(archive.id))
        assert exc.value.status_code == 404

    def test_archive_signed_outgoing_letter(self, db_session, person, auth_for):
        letter = _outgoing(db_session, person, auth_for(person))
        archive = archives.archive_outgoing_letter(
            db_session,
            str(letter.id),
            ArchiveLetterRequest(file_path="out/reply.docx", classification="public"),
            auth_for(person),
        )
        assert archive.type == ArchiveType.outgoing_letter
        assert archive.file_type == "docx"
        assert archive.description == "Outgoing letter from template Reply"
        with pytest.raises(HTTPException) as exc:
            archives.archive_outgoing_letter(
                db_session, str(letter.id), ArchiveLetterRequest(), auth_for(person)
            )
        assert exc.value.status_code == 409

    def test_unsigned_outgoing_letter_rejected(self, db_session, person, auth_for):
        letter = _outgoing(db_session, person, auth_for(person), LetterStatus.partial)
        with pytest.raises(HTTPException) as exc:
            archives.archive_outgoing_letter(
                db_session, str(letter.id), ArchiveLetterRequest(), auth_for(person)
            )
        assert exc.value.status_code == 400
