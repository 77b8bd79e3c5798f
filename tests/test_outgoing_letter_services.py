import uuid
from datetime import date

import pytest
from fastapi import HTTPException

from app.models.correspondence import LetterStatus, RevisionType, SignatoryStatus
from app.models.person import OrganizationUnit
from app.schemas.document_template import DocumentTemplateCreate
from app.schemas.outgoing_letter import (
    OutgoingLetterCreate,
    OutgoingLetterUpdate,
    RevisionSubmit,
    SignatoryAssignment,
)
from app.services.document_template import document_templates
from app.services.outgoing_letter import outgoing_letters


@pytest.fixture()
def template(db_session, person, auth_for):
    return document_templates.create(
        db_session,
        DocumentTemplateCreate(
            name="Official Letter",
            code="UND",
            content_blocks=[
                {"type": "text", "content": "Number: {{nomor_surat}}"},
                {"type": "text", "content": "To: {{recipient}}"},
            ],
            signature_settings={
                "slots": [{"id": "head"}, {"id": "secretary"}],
            },
        ),
        auth_for(person),
    )


def _create_letter(db_session, template, creator, signers, auth_for, **kwargs):
    values = {
        "template_id": template.id,
        "subject": "Invitation to the annual meeting",
        "letter_date": date.today(),
        "variable_values": {"recipient": "Finance & Budget Office"},
        "signatories": [
            SignatoryAssignment(user_id=signer.id, slot_id=f"slot-{order}", sign_order=order)
            for order, signer in enumerate(signers, start=1)
        ],
    }
    values.update(kwargs)
    return outgoing_letters.create(
        db_session, OutgoingLetterCreate(**values), auth_for(creator)
    )


class TestOutgoingLetterCreate:
    def test_create_numbers_and_renders(
        self, db_session, template, person, staff, org_unit, auth_for
    ):
        letter = _create_letter(db_session, template, person, [person, staff], auth_for)
        assert letter.status == LetterStatus.pending
        assert letter.letter_number.startswith(f"001/UND/{org_unit.code}/")
        assert f"Number: {letter.letter_number}" in letter.rendered_html
        assert "Finance &amp; Budget Office" in letter.rendered_html
        assert [s.sign_order for s in letter.signatories] == [1, 2]
        assert [r.type for r in letter.revisions] == [RevisionType.initial]

    def test_numbers_increment_within_template(
        self, db_session, template, person, auth_for
    ):
        first = _create_letter(db_session, template, person, [person], auth_for)
        second = _create_letter(db_session, template, person, [person], auth_for)
        assert first.letter_number.startswith("001/")
        assert second.letter_number.startswith("002/")

    def test_unit_segment_uses_creator_unit(
        self, db_session, person, org_unit, auth_for
    ):
        other = OrganizationUnit(code=f"T{uuid.uuid4().hex[:6].upper()}", name="Treasury")
        db_session.add(other)
        db_session.commit()
        foreign = document_templates.create(
            db_session,
            DocumentTemplateCreate(
                name="Treasury Letter", code="TRS", organization_unit_id=other.id
            ),
            auth_for(person),
        )
        letter = _create_letter(db_session, foreign, person, [person], auth_for)
        assert letter.letter_number.split("/")[2] == org_unit.code

    def test_unit_segment_defaults_without_creator_unit(
        self, db_session, make_person, auth_for
    ):
        creator = make_person()
        loose = document_templates.create(
            db_session,
            DocumentTemplateCreate(name="Loose", code=f"L{uuid.uuid4().hex[:6]}"),
            auth_for(creator),
        )
        letter = _create_letter(db_session, loose, creator, [creator], auth_for)
        assert letter.letter_number.split("/")[2] == "ORG"

    def test_create_as_draft(self, db_session, template, person, auth_for):
        letter = _create_letter(
            db_session, template, person, [person], auth_for, submit=False
        )
        assert letter.status == LetterStatus.draft

    def test_duplicate_slot_rejected(self, db_session, template, person, staff, auth_for):
        with pytest.raises(HTTPException) as exc:
            _create_letter(
                db_session,
                template,
                person,
                [],
                auth_for,
                signatories=[
                    SignatoryAssignment(user_id=person.id, slot_id="head"),
                    SignatoryAssignment(user_id=staff.id, slot_id="head"),
                ],
            )
        assert exc.value.detail == "Duplicate signatory slot: head"

    def test_unknown_signatory(self, db_session, template, person, auth_for):
        with pytest.raises(HTTPException) as exc:
            _create_letter(
                db_session,
                template,
                person,
                [],
                auth_for,
                signatories=[SignatoryAssignment(user_id=uuid.uuid4(), slot_id="head")],
            )
        assert exc.value.status_code == 404

    def test_inactive_template_rejected(self, db_session, template, person, auth_for):
        document_templates.toggle_active(db_session, str(template.id))
        with pytest.raises(HTTPException) as exc:
            _create_letter(db_session, template, person, [person], auth_for)
        assert exc.value.detail == "Template is not active"


class TestOutgoingLetterSigning:
    def test_sequential_signing(self, db_session, template, person, staff, auth_for):
        letter = _create_letter(db_session, template, person, [person, staff], auth_for)

        with pytest.raises(HTTPException) as exc:
            outgoing_letters.sign(db_session, str(letter.id), None, auth_for(staff))
        assert exc.value.detail == "Earlier signatories have not signed yet"

        letter = outgoing_letters.sign(
            db_session, str(letter.id), "data:image/png;base64,AAA", auth_for(person)
        )
        assert letter.status == LetterStatus.partial
        first = letter.signatories[0]
        assert first.status == SignatoryStatus.approved
        assert first.certificate_id.startswith("LTR-")
        assert len(first.certificate_id) == 16
        assert len(first.document_hash) == 64

        letter = outgoing_letters.sign(db_session, str(letter.id), None, auth_for(staff))
        assert letter.status == LetterStatus.signed
        assert letter.approval_progress["percentage"] == 100

    def test_cannot_sign_twice(self, db_session, template, person, staff, auth_for):
        letter = _create_letter(db_session, template, person, [person, staff], auth_for)
        outgoing_letters.sign(db_session, str(letter.id), None, auth_for(person))
        with pytest.raises(HTTPException) as exc:
            outgoing_letters.sign(db_session, str(letter.id), None, auth_for(person))
        assert exc.value.detail == "You have already acted on this letter"

    def test_non_signatory_cannot_sign(
        self, db_session, template, person, staff, auth_for
    ):
        letter = _create_letter(db_session, template, person, [person], auth_for)
        with pytest.raises(HTTPException) as exc:
            outgoing_letters.sign(db_session, str(letter.id), None, auth_for(staff))
        assert exc.value.status_code == 403

    def test_draft_cannot_be_signed_until_submitted(
        self, db_session, template, person, auth_for
    ):
        letter = _create_letter(
            db_session, template, person, [person], auth_for, submit=False
        )
        with pytest.raises(HTTPException) as exc:
            outgoing_letters.sign(db_session, str(letter.id), None, auth_for(person))
        assert exc.value.detail == "Letter is not awaiting signatures"

        letter = outgoing_letters.submit(db_session, str(letter.id), auth_for(person))
        assert letter.status == LetterStatus.pending
        letter = outgoing_letters.sign(db_session, str(letter.id), None, auth_for(person))
        assert letter.status == LetterStatus.signed

    def test_rejection(self, db_session, template, person, staff, auth_for):
        letter = _create_letter(db_session, template, person, [staff], auth_for)
        letter = outgoing_letters.reject(
            db_session, str(letter.id), "Wrong recipient", auth_for(staff)
        )
        assert letter.status == LetterStatus.rejected
        assert letter.signatories[0].rejection_reason == "Wrong recipient"

    def test_pending_approvals_follow_sign_order(
        self, db_session, template, person, staff, auth_for
    ):
        letter = _create_letter(db_session, template, person, [person, staff], auth_for)
        waiting = outgoing_letters.pending_approvals(db_session, auth_for(staff))
        assert letter.id not in [row["letter_id"] for row in waiting]

        outgoing_letters.sign(db_session, str(letter.id), None, auth_for(person))
        waiting = outgoing_letters.pending_approvals(db_session, auth_for(staff))
        assert letter.id in [row["letter_id"] for row in waiting]


class TestOutgoingLetterRevisions:
    def test_revision_cycle_resets_signatures(
        self, db_session, template, person, staff, auth_for
    ):
        letter = _create_letter(db_session, template, person, [person, staff], auth_for)
        outgoing_letters.sign(db_session, str(letter.id), None, auth_for(person))

        letter = outgoing_letters.request_revision(
            db_session, str(letter.id), "Fix the meeting date", auth_for(staff)
        )
        assert letter.status == LetterStatus.revision
        assert letter.revision_requested_by == staff.id
        assert all(s.status == SignatoryStatus.pending for s in letter.signatories)
        assert all(s.certificate_id is None for s in letter.signatories)

        with pytest.raises(HTTPException) as exc:
            outgoing_letters.sign(db_session, str(letter.id), None, auth_for(person))
        assert exc.value.status_code == 400

        letter = outgoing_letters.submit_revision(
            db_session,
            str(letter.id),
            RevisionSubmit(
                variable_values={"recipient": "Planning Office"},
                revision_notes="Date corrected",
            ),
            auth_for(person),
        )
        assert letter.status == LetterStatus.pending
        assert letter.current_version == 2
        assert "Planning Office" in letter.rendered_html
        history = outgoing_letters.revisions(db_session, str(letter.id), auth_for(person))
        assert [r.type for r in history] == [
            RevisionType.initial,
            RevisionType.revision_request,
            RevisionType.revision_submitted,
        ]

    def test_only_creator_submits_revision(
        self, db_session, template, person, staff, auth_for
    ):
        letter = _create_letter(db_session, template, person, [staff], auth_for)
        outgoing_letters.request_revision(
            db_session, str(letter.id), "Shorten it", auth_for(person)
        )
        with pytest.raises(HTTPException) as exc:
            outgoing_letters.submit_revision(
                db_session,
                str(letter.id),
                RevisionSubmit(variable_values={}),
                auth_for(staff),
            )
        assert exc.value.status_code == 403

    def test_submit_revision_requires_request(
        self, db_session, template, person, auth_for
    ):
        letter = _create_letter(db_session, template, person, [person], auth_for)
        with pytest.raises(HTTPException) as exc:
            outgoing_letters.submit_revision(
                db_session,
                str(letter.id),
                RevisionSubmit(variable_values={}),
                auth_for(person),
            )
        assert exc.value.detail == "No revision has been requested"


class TestOutgoingLetterEditing:
    def test_update_before_signing(self, db_session, template, person, staff, auth_for):
        letter = _create_letter(db_session, template, person, [person], auth_for)
        letter = outgoing_letters.update(
            db_session,
            str(letter.id),
            OutgoingLetterUpdate(
                subject="Rescheduled meeting",
                signatories=[SignatoryAssignment(user_id=staff.id, slot_id="head")],
            ),
            auth_for(person),
        )
        assert letter.subject == "Rescheduled meeting"
        assert [s.user_id for s in letter.signatories] == [staff.id]

    def test_update_blocked_after_signing(
        self, db_session, template, person, staff, auth_for
    ):
        letter = _create_letter(db_session, template, person, [person, staff], auth_for)
        outgoing_letters.sign(db_session, str(letter.id), None, auth_for(person))
        with pytest.raises(HTTPException) as exc:
            outgoing_letters.update(
                db_session,
                str(letter.id),
                OutgoingLetterUpdate(subject="Too late"),
                auth_for(person),
            )
        assert exc.value.status_code == 400

    def test_delete_blocked_after_signing(
        self, db_session, template, person, staff, auth_for
    ):
        letter = _create_letter(db_session, template, person, [person, staff], auth_for)
        outgoing_letters.sign(db_session, str(letter.id), None, auth_for(person))
        with pytest.raises(HTTPException) as exc:
            outgoing_letters.delete(db_session, str(letter.id), auth_for(person))
        assert exc.value.status_code == 400

    def test_delete_untouched_letter(self, db_session, template, person, auth_for):
        letter = _create_letter(db_session, template, person, [person], auth_for)
        outgoing_letters.delete(db_session, str(letter.id), auth_for(person))
        with pytest.raises(HTTPException) as exc:
            outgoing_letters.get(db_session, str(letter.id))
        assert exc.value.status_code == 404

    def test_outsider_cannot_view(self, db_session, template, person, auth_for, make_person):
        letter = _create_letter(db_session, template, person, [person], auth_for)
        outsider = make_person(first_name="Out", last_name="Sider")
        with pytest.raises(HTTPException) as exc:
            outgoing_letters.view(db_session, str(letter.id), auth_for(outsider))
        assert exc.value.status_code == 403

    def test_same_unit_staff_can_view(self, db_session, template, person, staff, auth_for):
        letter = _create_letter(db_session, template, person, [person], auth_for)
        assert outgoing_letters.view(db_session, str(letter.id), auth_for(staff)).id == letter.id
