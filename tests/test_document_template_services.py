import uuid
from datetime import date

import pytest
from fastapi import HTTPException

from app.models.correspondence import OutgoingLetter
from app.schemas.document_template import (
    DocumentTemplateCreate,
    DocumentTemplateDuplicate,
    DocumentTemplateUpdate,
    LetterTemplateCreate,
)
from app.services.document_template import (
    content_dimensions,
    document_templates,
    letter_templates,
    paper_dimensions,
    substitute,
)


def _create_template(db_session, auth, **kwargs):
    values = {
        "name": "Official Letter",
        "code": f"T{uuid.uuid4().hex[:6].upper()}",
        "content_blocks": [
            {"type": "text", "content": "Dear {{recipient}},"},
            {"type": "text", "content": "Regarding {{perihal}} for {{recipient}}."},
        ],
        "signature_settings": {
            "slots": [
                {"id": "head", "label": "Head", "name_placeholder": "{{head_name}}"},
            ]
        },
    }
    values.update(kwargs)
    return document_templates.create(db_session, DocumentTemplateCreate(**values), auth)


class TestLayoutHelpers:
    def test_default_paper_is_a4_portrait(self):
        assert paper_dimensions(None) == {"width": 210, "height": 297}

    def test_landscape_swaps_dimensions(self):
        dims = paper_dimensions({"paper_size": "F4", "orientation": "landscape"})
        assert dims == {"width": 330, "height": 215}

    def test_content_area_subtracts_margins(self):
        dims = content_dimensions(
            {"paper_size": "A4", "margins": {"left": 30, "right": 20, "top": 10}}
        )
        assert dims == {"width": 160, "height": 267}

    def test_substitute_escapes_and_keeps_unknown(self):
        text = substitute("To {{name}} re {{topic}}", {"name": "A & B"})
        assert text == "To A &amp; B re {{topic}}"


class TestDocumentTemplates:
    def test_create_defaults_to_callers_unit(self, db_session, person, org_unit, auth_for):
        template = _create_template(db_session, auth_for(person))
        assert template.organization_unit_id == org_unit.id
        assert template.created_by == person.id
        assert template.page_settings["paper_size"] == "A4"

    def test_duplicate_code_in_unit_conflicts(self, db_session, person, auth_for):
        template = _create_template(db_session, auth_for(person))
        with pytest.raises(HTTPException) as exc:
            _create_template(db_session, auth_for(person), code=template.code)
        assert exc.value.status_code == 409

    def test_unknown_numbering_config(self, db_session, person, auth_for):
        with pytest.raises(HTTPException) as exc:
            _create_template(
                db_session, auth_for(person), numbering_config_id=uuid.uuid4()
            )
        assert exc.value.detail == "Numbering config not found"

    def test_layout_lists_variables_once(self, db_session, person, auth_for):
        template = _create_template(db_session, auth_for(person))
        layout = document_templates.layout(db_session, str(template.id))
        assert layout["variable_keys"] == ["recipient", "perihal", "head_name"]
        assert layout["paper"] == {"width": 210, "height": 297}
        assert layout["content"] == {"width": 165, "height": 257}
        assert layout["signature_slots"][0]["id"] == "head"

    def test_render_reports_missing_variables(self, db_session, person, auth_for):
        template = _create_template(db_session, auth_for(person))
        result = document_templates.render(
            db_session, str(template.id), {"recipient": "Finance Office"}
        )
        assert "Dear Finance Office," in result["rendered_html"]
        assert result["missing_variables"] == ["perihal", "head_name"]

    def test_update_ignores_self_group(self, db_session, person, auth_for):
        template = _create_template(db_session, auth_for(person))
        updated = document_templates.update(
            db_session,
            str(template.id),
            DocumentTemplateUpdate(numbering_group_id=template.id, name="Renamed"),
        )
        assert updated.numbering_group_id is None
        assert updated.name == "Renamed"

    def test_duplicate_creates_inactive_copy(self, db_session, person, auth_for):
        template = _create_template(db_session, auth_for(person))
        copy = document_templates.duplicate(
            db_session,
            str(template.id),
            DocumentTemplateDuplicate(name="Copy", code=f"C{uuid.uuid4().hex[:6]}"),
            auth_for(person),
        )
        assert copy.is_active is False
        assert copy.content_blocks == template.content_blocks

    def test_toggle_active(self, db_session, person, auth_for):
        template = _create_template(db_session, auth_for(person))
        assert document_templates.toggle_active(db_session, str(template.id)).is_active is False

    def test_delete_blocked_by_letters(self, db_session, person, auth_for):
        template = _create_template(db_session, auth_for(person))
        db_session.add(
            OutgoingLetter(
                template_id=template.id,
                subject="Existing",
                letter_date=date.today(),
                created_by=person.id,
            )
        )
        db_session.commit()
        with pytest.raises(HTTPException) as exc:
            document_templates.delete(db_session, str(template.id))
        assert exc.value.status_code == 400

    def test_delete_unused(self, db_session, person, auth_for):
        template = _create_template(db_session, auth_for(person))
        document_templates.delete(db_session, str(template.id))
        with pytest.raises(HTTPException) as exc:
            document_templates.get(db_session, str(template.id))
        assert exc.value.status_code == 404


class TestLetterTemplates:
    def test_delete_deactivates_and_hides_from_default_list(
        self, db_session, person, org_unit, auth_for
    ):
        template = letter_templates.create(
            db_session,
            LetterTemplateCreate(name="Memo", code=f"M{uuid.uuid4().hex[:6]}"),
            auth_for(person),
        )
        letter_templates.delete(db_session, str(template.id))
        items = letter_templates.list(
            db_session, str(org_unit.id), None, None, "created_at", "desc", 50, 0
        )
        assert template.id not in [t.id for t in items]
        items = letter_templates.list(
            db_session, str(org_unit.id), None, False, "created_at", "desc", 50, 0
        )
        assert template.id in [t.id for t in items]
