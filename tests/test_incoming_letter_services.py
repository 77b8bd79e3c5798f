import uuid
from datetime import date
from unittest.mock import patch

import pytest
from fastapi import HTTPException
from pydantic import ValidationError

from app.models.correspondence import (
    Disposition,
    DispositionStatus,
    IncomingLetterClassification,
    IncomingLetterStatus,
)
from app.schemas.incoming_letter import IncomingLetterCreate, IncomingLetterUpdate
from app.services.incoming_letter import (
    incoming_letters,
    refresh_status_from_dispositions,
)


def _payload(**kwargs):
    values = {
        "original_number": "005/DINAS/2025",
        "original_date": date(2025, 3, 1),
        "received_date": date(2025, 3, 3),
        "sender": "Regional Education Office",
        "subject": "Coordination meeting invitation",
    }
    values.update(kwargs)
    return IncomingLetterCreate(**values)


class TestIncomingLetters:
    def test_create_numbers_letter_for_callers_unit(
        self, db_session, person, org_unit, auth_for
    ):
        letter = incoming_letters.create(db_session, _payload(), auth_for(person))
        assert letter.status == IncomingLetterStatus.new
        assert letter.organization_unit_id == org_unit.id
        assert letter.incoming_number.startswith(f"SM/001/{org_unit.code}/")
        assert letter.registered_by == person.id
        assert letter.classification == IncomingLetterClassification.biasa

    def test_create_rejects_unknown_classification(self, db_session, person, auth_for):
        with pytest.raises(HTTPException) as exc:
            incoming_letters.create(
                db_session, _payload(classification="urgent"), auth_for(person)
            )
        assert exc.value.status_code == 400

    def test_create_rejects_unknown_org_unit(self, db_session, person, auth_for):
        with pytest.raises(HTTPException) as exc:
            incoming_letters.create(
                db_session,
                _payload(organization_unit_id=uuid.uuid4()),
                auth_for(person),
            )
        assert exc.value.status_code == 404

    def test_update_only_while_new(self, db_session, person, auth_for):
        letter = incoming_letters.create(db_session, _payload(), auth_for(person))
        updated = incoming_letters.update(
            db_session, str(letter.id), IncomingLetterUpdate(subject="Rescheduled")
        )
        assert updated.subject == "Rescheduled"

        letter.status = IncomingLetterStatus.disposed
        db_session.commit()
        with pytest.raises(HTTPException) as exc:
            incoming_letters.update(
                db_session, str(letter.id), IncomingLetterUpdate(subject="Again")
            )
        assert exc.value.status_code == 400
        assert exc.value.detail == "Only new incoming letters can be edited"

    @pytest.mark.parametrize("field", ["sender", "received_date", "classification"])
    def test_update_schema_rejects_null_required_field(self, field):
        with pytest.raises(ValidationError) as exc:
            IncomingLetterUpdate(**{field: None})
        assert exc.value.errors()[0]["loc"] == (field,)

    def test_update_schema_allows_clearing_optional_field(self):
        payload = IncomingLetterUpdate(notes=None, category=None)
        assert payload.model_dump(exclude_unset=True) == {
            "notes": None,
            "category": None,
        }

    def test_delete_is_soft(self, db_session, person, auth_for):
        letter = incoming_letters.create(db_session, _payload(), auth_for(person))
        incoming_letters.delete(db_session, str(letter.id))
        db_session.refresh(letter)
        assert letter.is_active is False
        with pytest.raises(HTTPException) as exc:
            incoming_letters.get(db_session, str(letter.id))
        assert exc.value.status_code == 404

    def test_list_filters_by_status_and_search(self, db_session, person, auth_for):
        marker = uuid.uuid4().hex[:8]
        incoming_letters.create(
            db_session, _payload(subject=f"Budget {marker}"), auth_for(person)
        )
        items = incoming_letters.list(
            db_session, "new", None, None, marker, "created_at", "desc", 50, 0
        )
        assert len(items) == 1
        assert items[0].subject == f"Budget {marker}"

    def test_list_rejects_unknown_status(self, db_session):
        with pytest.raises(HTTPException) as exc:
            incoming_letters.list(
                db_session, "lost", None, None, None, "created_at", "desc", 50, 0
            )
        assert exc.value.status_code == 400

    def test_download_url_requires_file(self, db_session, person, auth_for):
        letter = incoming_letters.create(db_session, _payload(), auth_for(person))
        with pytest.raises(HTTPException) as exc:
            incoming_letters.download_url(db_session, str(letter.id))
        assert exc.value.status_code == 404

    def test_download_url_requires_storage(self, db_session, person, auth_for):
        letter = incoming_letters.create(
            db_session, _payload(file_path="incoming/scan.pdf"), auth_for(person)
        )
        with pytest.raises(HTTPException) as exc:
            incoming_letters.download_url(db_session, str(letter.id))
        assert exc.value.status_code == 503

    def test_download_url_presigns(self, db_session, person, auth_for):
        letter = incoming_letters.create(
            db_session, _payload(file_path="incoming/scan.pdf"), auth_for(person)
        )
        with patch("app.services.incoming_letter.storage") as mock_storage:
            mock_storage.is_configured.return_value = True
            mock_storage.generate_download_url.return_value = "https://files/scan.pdf"
            url = incoming_letters.download_url(db_session, str(letter.id))
        assert url == "https://files/scan.pdf"
        mock_storage.generate_download_url.assert_called_once_with("incoming/scan.pdf")


class TestStatusFromDispositions:
    def _letter_with(self, db_session, person, staff, auth_for, statuses):
        letter = incoming_letters.create(db_session, _payload(), auth_for(person))
        for status in statuses:
            db_session.add(
                Disposition(
                    incoming_letter_id=letter.id,
                    from_user_id=person.id,
                    to_user_id=staff.id,
                    instruction="Please handle",
                    status=status,
                )
            )
        db_session.commit()
        db_session.refresh(letter)
        return letter

    def test_all_pending_is_disposed(self, db_session, person, staff, auth_for):
        letter = self._letter_with(
            db_session, person, staff, auth_for, [DispositionStatus.pending]
        )
        assert refresh_status_from_dispositions(letter) == IncomingLetterStatus.disposed

    def test_mixed_is_in_progress(self, db_session, person, staff, auth_for):
        letter = self._letter_with(
            db_session,
            person,
            staff,
            auth_for,
            [DispositionStatus.completed, DispositionStatus.read],
        )
        assert (
            refresh_status_from_dispositions(letter) == IncomingLetterStatus.in_progress
        )

    def test_all_completed_is_completed(self, db_session, person, staff, auth_for):
        letter = self._letter_with(
            db_session, person, staff, auth_for, [DispositionStatus.completed] * 2
        )
        assert refresh_status_from_dispositions(letter) == IncomingLetterStatus.completed

    def test_archived_is_sticky(self, db_session, person, staff, auth_for):
        letter = self._letter_with(
            db_session, person, staff, auth_for, [DispositionStatus.pending]
        )
        letter.status = IncomingLetterStatus.archived
        assert refresh_status_from_dispositions(letter) == IncomingLetterStatus.archived
