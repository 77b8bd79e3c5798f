import uuid
from datetime import date, timedelta

import pytest
from fastapi import HTTPException

from app.models.correspondence import DispositionStatus, IncomingLetterStatus
from app.schemas.disposition import DispositionCreate, FollowUpCreate
from app.schemas.incoming_letter import IncomingLetterCreate
from app.services.disposition import dispositions
from app.services.incoming_letter import incoming_letters

HANDLER_PERMISSIONS = (
    "disposition.create_child",
    "disposition.update_status",
    "disposition.add_follow_up",
    "disposition.delete",
)


@pytest.fixture()
def handler(staff, grant_role):
    grant_role(staff, "letter_handler", HANDLER_PERMISSIONS)
    return staff


def _incoming(db_session, auth):
    return incoming_letters.create(
        db_session,
        IncomingLetterCreate(
            original_number="12/UND/2025",
            original_date=date.today(),
            received_date=date.today(),
            sender="Provincial Secretariat",
            subject="Data request",
        ),
        auth,
    )


def _follow_up(**kwargs):
    values = {
        "follow_up_date": date.today(),
        "follow_up_type": "telepon",
        "description": "Called the sender to confirm the data format",
    }
    values.update(kwargs)
    return FollowUpCreate(**values)


class TestDispositions:
    def _create(self, db_session, person, handler, auth_for, **kwargs):
        letter = _incoming(db_session, auth_for(person))
        payload = DispositionCreate(
            incoming_letter_id=letter.id,
            to_user_id=handler.id,
            instruction="Prepare the requested data",
            **kwargs,
        )
        return letter, dispositions.create(db_session, payload, auth_for(person))

    def test_create_marks_letter_disposed(
        self, db_session, person, handler, auth_for
    ):
        letter, disposition = self._create(db_session, person, handler, auth_for)
        db_session.refresh(letter)
        assert disposition.status == DispositionStatus.pending
        assert disposition.from_user_id == person.id
        assert letter.status == IncomingLetterStatus.disposed

    def test_create_requires_permission(self, db_session, person, handler, auth_for):
        letter = _incoming(db_session, auth_for(person))
        with pytest.raises(HTTPException) as exc:
            dispositions.create(
                db_session,
                DispositionCreate(
                    incoming_letter_id=letter.id,
                    to_user_id=person.id,
                    instruction="Review",
                ),
                auth_for(handler),
            )
        assert exc.value.status_code == 403
        assert exc.value.detail == "Missing permission: disposition.create"

    def test_cannot_address_self(self, db_session, person, auth_for):
        letter = _incoming(db_session, auth_for(person))
        with pytest.raises(HTTPException) as exc:
            dispositions.create(
                db_session,
                DispositionCreate(
                    incoming_letter_id=letter.id,
                    to_user_id=person.id,
                    instruction="Review",
                ),
                auth_for(person),
            )
        assert exc.value.status_code == 400

    def test_deadline_in_past_rejected(self, db_session, person, handler, auth_for):
        with pytest.raises(HTTPException) as exc:
            self._create(
                db_session,
                person,
                handler,
                auth_for,
                deadline=date.today() - timedelta(days=1),
            )
        assert exc.value.detail == "Deadline cannot be in the past"

    def test_unknown_recipient(self, db_session, person, auth_for):
        letter = _incoming(db_session, auth_for(person))
        with pytest.raises(HTTPException) as exc:
            dispositions.create(
                db_session,
                DispositionCreate(
                    incoming_letter_id=letter.id,
                    to_user_id=uuid.uuid4(),
                    instruction="Review",
                ),
                auth_for(person),
            )
        assert exc.value.status_code == 404

    def test_recipient_view_marks_read(self, db_session, person, handler, auth_for):
        letter, disposition = self._create(db_session, person, handler, auth_for)
        viewed = dispositions.view(db_session, str(disposition.id), auth_for(handler))
        assert viewed.status == DispositionStatus.read
        assert viewed.read_at is not None
        db_session.refresh(letter)
        assert letter.status == IncomingLetterStatus.in_progress

    def test_sender_view_keeps_pending(self, db_session, person, handler, auth_for):
        _, disposition = self._create(db_session, person, handler, auth_for)
        viewed = dispositions.view(db_session, str(disposition.id), auth_for(person))
        assert viewed.status == DispositionStatus.pending

    def test_outsider_cannot_view(
        self, db_session, person, handler, auth_for, make_person
    ):
        _, disposition = self._create(db_session, person, handler, auth_for)
        outsider = make_person(first_name="Out", last_name="Sider")
        with pytest.raises(HTTPException) as exc:
            dispositions.view(db_session, str(disposition.id), auth_for(outsider))
        assert exc.value.status_code == 403

    def test_forward_builds_tree(
        self, db_session, person, handler, auth_for, make_person
    ):
        letter, root = self._create(db_session, person, handler, auth_for)
        colleague = make_person(first_name="Col", last_name="League")
        child = dispositions.create(
            db_session,
            DispositionCreate(
                incoming_letter_id=letter.id,
                parent_disposition_id=root.id,
                to_user_id=colleague.id,
                instruction="Draft the reply",
            ),
            auth_for(handler),
        )
        assert child.parent_disposition_id == root.id
        tree = dispositions.tree(db_session, str(root.id), auth_for(person))
        assert [c.id for c in tree.children] == [child.id]
        assert dispositions.view(db_session, str(child.id), auth_for(handler)).id == child.id

    def test_only_recipient_can_forward(self, db_session, person, handler, auth_for):
        letter, root = self._create(db_session, person, handler, auth_for)
        with pytest.raises(HTTPException) as exc:
            dispositions.create(
                db_session,
                DispositionCreate(
                    incoming_letter_id=letter.id,
                    parent_disposition_id=root.id,
                    to_user_id=handler.id,
                    instruction="Again",
                ),
                auth_for(person),
            )
        assert exc.value.status_code == 403

    def test_complete_requires_follow_up(self, db_session, person, handler, auth_for):
        letter, disposition = self._create(db_session, person, handler, auth_for)
        with pytest.raises(HTTPException) as exc:
            dispositions.mark_completed(
                db_session, str(disposition.id), auth_for(handler)
            )
        assert exc.value.status_code == 400

        follow_up = dispositions.add_follow_up(
            db_session, str(disposition.id), _follow_up(), auth_for(handler)
        )
        assert follow_up.created_by == handler.id
        db_session.refresh(disposition)
        assert disposition.status == DispositionStatus.in_progress

        completed = dispositions.mark_completed(
            db_session, str(disposition.id), auth_for(handler)
        )
        assert completed.status == DispositionStatus.completed
        assert completed.completed_at is not None
        db_session.refresh(letter)
        assert letter.status == IncomingLetterStatus.completed

    def test_only_recipient_updates_status(self, db_session, person, handler, auth_for):
        _, disposition = self._create(db_session, person, handler, auth_for)
        with pytest.raises(HTTPException) as exc:
            dispositions.mark_in_progress(
                db_session, str(disposition.id), auth_for(person)
            )
        assert exc.value.status_code == 403

    def test_follow_up_rejects_unknown_type(self, db_session, person, handler, auth_for):
        _, disposition = self._create(db_session, person, handler, auth_for)
        with pytest.raises(HTTPException) as exc:
            dispositions.add_follow_up(
                db_session,
                str(disposition.id),
                _follow_up(follow_up_type="email"),
                auth_for(handler),
            )
        assert exc.value.status_code == 400

    def test_cancel_pending_restores_letter(self, db_session, person, handler, auth_for):
        letter, disposition = self._create(db_session, person, handler, auth_for)
        dispositions.delete(db_session, str(disposition.id), auth_for(person))
        db_session.refresh(letter)
        assert letter.status == IncomingLetterStatus.new

    def test_cancel_requires_creator(self, db_session, person, handler, auth_for):
        _, disposition = self._create(db_session, person, handler, auth_for)
        with pytest.raises(HTTPException) as exc:
            dispositions.delete(db_session, str(disposition.id), auth_for(handler))
        assert exc.value.status_code == 403

    def test_cancel_only_pending(self, db_session, person, handler, auth_for):
        _, disposition = self._create(db_session, person, handler, auth_for)
        dispositions.mark_in_progress(db_session, str(disposition.id), auth_for(handler))
        with pytest.raises(HTTPException) as exc:
            dispositions.delete(db_session, str(disposition.id), auth_for(person))
        assert exc.value.detail == "Only pending dispositions can be cancelled"

    def test_list_overdue(self, db_session, person, handler, auth_for):
        letter, disposition = self._create(
            db_session, person, handler, auth_for, deadline=date.today()
        )
        disposition.deadline = date.today() - timedelta(days=2)
        db_session.commit()
        items = dispositions.list(
            db_session, str(letter.id), None, None, None, None, True,
            "created_at", "desc", 50, 0,
        )
        assert [d.id for d in items] == [disposition.id]
        assert items[0].is_overdue is True

    def test_cancel_blocked_with_children(
        self, db_session, person, handler, auth_for, make_person
    ):
        letter, root = self._create(db_session, person, handler, auth_for)
        colleague = make_person(first_name="Sub", last_name="Ordinate")
        dispositions.create(
            db_session,
            DispositionCreate(
                incoming_letter_id=letter.id,
                parent_disposition_id=root.id,
                to_user_id=colleague.id,
                instruction="Collect the figures",
            ),
            auth_for(handler),
        )
        with pytest.raises(HTTPException) as exc:
            dispositions.delete(db_session, str(root.id), auth_for(person))
        assert exc.value.status_code == 400
        assert (
            exc.value.detail
            == "Disposition has child dispositions and cannot be cancelled"
        )
        db_session.refresh(root)
        assert root.status == DispositionStatus.pending

    def test_completed_disposition_reports_full_progress(
        self, db_session, person, handler, auth_for
    ):
        letter, disposition = self._create(db_session, person, handler, auth_for)
        dispositions.add_follow_up(
            db_session, str(disposition.id), _follow_up(), auth_for(handler)
        )
        dispositions.mark_completed(db_session, str(disposition.id), auth_for(handler))
        db_session.refresh(letter)
        assert letter.status == IncomingLetterStatus.completed
        assert letter.disposition_progress == {
            "total": 1,
            "pending": 0,
            "completed": 1,
            "percentage": 100,
        }

    def test_list_is_scoped_to_participants(
        self, db_session, person, handler, auth_for, make_person
    ):
        letter, disposition = self._create(db_session, person, handler, auth_for)
        outsider = make_person(first_name="Not", last_name="Involved")

        def visible(auth):
            items = dispositions.list(
                db_session, str(letter.id), None, None, None, None, None,
                "created_at", "desc", 50, 0, auth=auth,
            )
            return [d.id for d in items]

        assert visible(auth_for(outsider)) == []
        assert visible(auth_for(handler)) == [disposition.id]
        assert visible(auth_for(person)) == [disposition.id]
