"""initial correspondence schema

Revision ID: 3f1c9a7d2b10
Revises:
Create Date: 2026-10-19 09:12:40.211734

"""

from alembic import op
import sqlalchemy as sa

revision = "3f1c9a7d2b10"
down_revision = None
branch_labels = None
depends_on = None


def _timestamps(updated: bool = True) -> list[sa.Column]:
    columns = [sa.Column("created_at", sa.DateTime(timezone=True), nullable=True)]
    if updated:
        columns.append(sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True))
    return columns


def upgrade() -> None:
    # Organization + RBAC
    op.create_table(
        "organization_units",
        sa.Column("id", sa.UUID(), nullable=False),
        sa.Column("code", sa.String(length=50), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("parent_id", sa.UUID(), nullable=True),
        sa.Column("level", sa.Integer(), nullable=True),
        sa.Column("head_id", sa.UUID(), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(["parent_id"], ["organization_units.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("code"),
    )

    op.create_table(
        "people",
        sa.Column("id", sa.UUID(), nullable=False),
        sa.Column("first_name", sa.String(length=120), nullable=False),
        sa.Column("last_name", sa.String(length=120), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("position", sa.String(length=255), nullable=True),
        sa.Column("nip", sa.String(length=50), nullable=True),
        sa.Column("organization_unit_id", sa.UUID(), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(["organization_unit_id"], ["organization_units.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("email"),
    )
    op.create_index(
        "ix_people_organization_unit_id", "people", ["organization_unit_id"]
    )

    op.create_table(
        "roles",
        sa.Column("id", sa.UUID(), nullable=False),
        sa.Column("name", sa.String(length=80), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("name"),
    )

    op.create_table(
        "permissions",
        sa.Column("id", sa.UUID(), nullable=False),
        sa.Column("key", sa.String(length=120), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("key"),
    )

    op.create_table(
        "role_permissions",
        sa.Column("id", sa.UUID(), nullable=False),
        sa.Column("role_id", sa.UUID(), nullable=False),
        sa.Column("permission_id", sa.UUID(), nullable=False),
        sa.ForeignKeyConstraint(["role_id"], ["roles.id"]),
        sa.ForeignKeyConstraint(["permission_id"], ["permissions.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("role_id", "permission_id", name="uq_role_permissions"),
    )

    op.create_table(
        "person_roles",
        sa.Column("id", sa.UUID(), nullable=False),
        sa.Column("person_id", sa.UUID(), nullable=False),
        sa.Column("role_id", sa.UUID(), nullable=False),
        sa.Column("assigned_at", sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(["person_id"], ["people.id"]),
        sa.ForeignKeyConstraint(["role_id"], ["roles.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("person_id", "role_id", name="uq_person_roles"),
    )

    # Numbering + templates
    op.create_table(
        "letter_numbering_configs",
        sa.Column("id", sa.UUID(), nullable=False),
        sa.Column("code", sa.String(length=50), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("format", sa.String(length=255), nullable=False),
        sa.Column(
            "counter_reset",
            sa.Enum("yearly", "monthly", name="counterreset"),
            nullable=True,
        ),
        sa.Column("last_number", sa.Integer(), nullable=True),
        sa.Column("year", sa.Integer(), nullable=True),
        sa.Column("month", sa.Integer(), nullable=True),
        sa.Column("padding", sa.Integer(), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("code"),
    )

    op.create_table(
        "document_templates",
        sa.Column("id", sa.UUID(), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("code", sa.String(length=50), nullable=False),
        sa.Column("category", sa.String(length=120), nullable=True),
        sa.Column("template_type", sa.String(length=50), nullable=True),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("organization_unit_id", sa.UUID(), nullable=True),
        sa.Column("numbering_group_id", sa.UUID(), nullable=True),
        sa.Column("numbering_config_id", sa.UUID(), nullable=True),
        sa.Column("numbering_format", sa.String(length=255), nullable=True),
        sa.Column("page_settings", sa.JSON(), nullable=True),
        sa.Column("header_settings", sa.JSON(), nullable=True),
        sa.Column("content_blocks", sa.JSON(), nullable=True),
        sa.Column("footer_settings", sa.JSON(), nullable=True),
        sa.Column("signature_settings", sa.JSON(), nullable=True),
        sa.Column("variables", sa.JSON(), nullable=True),
        sa.Column("created_by", sa.UUID(), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(["organization_unit_id"], ["organization_units.id"]),
        sa.ForeignKeyConstraint(["numbering_group_id"], ["document_templates.id"]),
        sa.ForeignKeyConstraint(
            ["numbering_config_id"], ["letter_numbering_configs.id"]
        ),
        sa.ForeignKeyConstraint(["created_by"], ["people.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint(
            "organization_unit_id", "code", name="uq_document_templates_org_code"
        ),
    )
    op.create_index(
        "ix_document_templates_numbering_group_id",
        "document_templates",
        ["numbering_group_id"],
    )

    op.create_table(
        "letter_templates",
        sa.Column("id", sa.UUID(), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("code", sa.String(length=50), nullable=False),
        sa.Column("category", sa.String(length=120), nullable=True),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("organization_unit_id", sa.UUID(), nullable=True),
        sa.Column("content", sa.JSON(), nullable=True),
        sa.Column("variables", sa.JSON(), nullable=True),
        sa.Column("signatures", sa.JSON(), nullable=True),
        sa.Column("numbering_format", sa.String(length=255), nullable=True),
        sa.Column("created_by", sa.UUID(), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(["organization_unit_id"], ["organization_units.id"]),
        sa.ForeignKeyConstraint(["created_by"], ["people.id"]),
        sa.PrimaryKeyConstraint("id"),
    )

    # Incoming letters + dispositions
    op.create_table(
        "incoming_letters",
        sa.Column("id", sa.UUID(), nullable=False),
        sa.Column("incoming_number", sa.String(length=100), nullable=False),
        sa.Column("original_number", sa.String(length=255), nullable=False),
        sa.Column("original_date", sa.Date(), nullable=False),
        sa.Column("received_date", sa.Date(), nullable=False),
        sa.Column("sender", sa.String(length=255), nullable=False),
        sa.Column("subject", sa.String(length=500), nullable=False),
        sa.Column("category", sa.String(length=120), nullable=True),
        sa.Column(
            "classification",
            sa.Enum(
                "biasa",
                "penting",
                "segera",
                "rahasia",
                name="incomingletterclassification",
            ),
            nullable=True,
        ),
        sa.Column("attachment_count", sa.Integer(), nullable=True),
        sa.Column("attachment_description", sa.Text(), nullable=True),
        sa.Column("file_path", sa.String(length=1024), nullable=True),
        sa.Column("organization_unit_id", sa.UUID(), nullable=True),
        sa.Column("registered_by", sa.UUID(), nullable=False),
        sa.Column(
            "status",
            sa.Enum(
                "new",
                "disposed",
                "in_progress",
                "completed",
                "archived",
                name="incomingletterstatus",
            ),
            nullable=True,
        ),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(["organization_unit_id"], ["organization_units.id"]),
        sa.ForeignKeyConstraint(["registered_by"], ["people.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "ix_incoming_letters_incoming_number", "incoming_letters", ["incoming_number"]
    )
    op.create_index("ix_incoming_letters_status", "incoming_letters", ["status"])
    op.create_index(
        "ix_incoming_letters_organization_unit_id",
        "incoming_letters",
        ["organization_unit_id"],
    )

    op.create_table(
        "dispositions",
        sa.Column("id", sa.UUID(), nullable=False),
        sa.Column("incoming_letter_id", sa.UUID(), nullable=False),
        sa.Column("parent_disposition_id", sa.UUID(), nullable=True),
        sa.Column("from_user_id", sa.UUID(), nullable=False),
        sa.Column("to_user_id", sa.UUID(), nullable=False),
        sa.Column("instruction", sa.Text(), nullable=False),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column(
            "priority",
            sa.Enum("normal", "high", "urgent", name="dispositionpriority"),
            nullable=True,
        ),
        sa.Column("deadline", sa.Date(), nullable=True),
        sa.Column(
            "status",
            sa.Enum(
                "pending", "read", "in_progress", "completed", name="dispositionstatus"
            ),
            nullable=True,
        ),
        sa.Column("read_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(["incoming_letter_id"], ["incoming_letters.id"]),
        sa.ForeignKeyConstraint(["parent_disposition_id"], ["dispositions.id"]),
        sa.ForeignKeyConstraint(["from_user_id"], ["people.id"]),
        sa.ForeignKeyConstraint(["to_user_id"], ["people.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "ix_dispositions_incoming_letter_id", "dispositions", ["incoming_letter_id"]
    )
    op.create_index(
        "ix_dispositions_parent_disposition_id",
        "dispositions",
        ["parent_disposition_id"],
    )
    op.create_index("ix_dispositions_to_user_id", "dispositions", ["to_user_id"])
    op.create_index("ix_dispositions_status", "dispositions", ["status"])

    # Outgoing letters; status enums are shared with the letters tables
    sa.Enum(
        "draft",
        "pending",
        "partial",
        "signed",
        "rejected",
        "revision",
        name="letterstatus",
    ).create(op.get_bind(), checkfirst=True)
    sa.Enum("pending", "approved", "rejected", name="signatorystatus").create(
        op.get_bind(), checkfirst=True
    )
    letter_status = sa.Enum(
        "draft",
        "pending",
        "partial",
        "signed",
        "rejected",
        "revision",
        name="letterstatus",
        create_type=False,
    )
    signatory_status = sa.Enum(
        "pending", "approved", "rejected", name="signatorystatus", create_type=False
    )

    op.create_table(
        "outgoing_letters",
        sa.Column("id", sa.UUID(), nullable=False),
        sa.Column("template_id", sa.UUID(), nullable=False),
        sa.Column("incoming_letter_id", sa.UUID(), nullable=True),
        sa.Column("letter_number", sa.String(length=255), nullable=True),
        sa.Column("subject", sa.String(length=500), nullable=False),
        sa.Column("letter_date", sa.Date(), nullable=False),
        sa.Column("variable_values", sa.JSON(), nullable=True),
        sa.Column("rendered_html", sa.Text(), nullable=True),
        sa.Column("attachments", sa.JSON(), nullable=True),
        sa.Column("status", letter_status, nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("current_version", sa.Integer(), nullable=True),
        sa.Column("revision_requested", sa.Boolean(), nullable=True),
        sa.Column("revision_request_notes", sa.Text(), nullable=True),
        sa.Column("revision_requested_by", sa.UUID(), nullable=True),
        sa.Column("created_by", sa.UUID(), nullable=False),
        sa.Column("updated_by", sa.UUID(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(["template_id"], ["document_templates.id"]),
        sa.ForeignKeyConstraint(["incoming_letter_id"], ["incoming_letters.id"]),
        sa.ForeignKeyConstraint(["revision_requested_by"], ["people.id"]),
        sa.ForeignKeyConstraint(["created_by"], ["people.id"]),
        sa.ForeignKeyConstraint(["updated_by"], ["people.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "ix_outgoing_letters_template_id", "outgoing_letters", ["template_id"]
    )
    op.create_index("ix_outgoing_letters_status", "outgoing_letters", ["status"])
    op.create_index(
        "ix_outgoing_letters_created_by", "outgoing_letters", ["created_by"]
    )

    op.create_table(
        "disposition_follow_ups",
        sa.Column("id", sa.UUID(), nullable=False),
        sa.Column("disposition_id", sa.UUID(), nullable=False),
        sa.Column("follow_up_date", sa.Date(), nullable=False),
        sa.Column(
            "follow_up_type",
            sa.Enum(
                "surat_balasan",
                "rapat",
                "kunjungan",
                "telepon",
                "tidak_perlu",
                "lainnya",
                name="followuptype",
            ),
            nullable=False,
        ),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("file_path", sa.String(length=1024), nullable=True),
        sa.Column("outgoing_letter_id", sa.UUID(), nullable=True),
        sa.Column("created_by", sa.UUID(), nullable=False),
        *_timestamps(updated=False),
        sa.ForeignKeyConstraint(["disposition_id"], ["dispositions.id"]),
        sa.ForeignKeyConstraint(["outgoing_letter_id"], ["outgoing_letters.id"]),
        sa.ForeignKeyConstraint(["created_by"], ["people.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "ix_disposition_follow_ups_disposition_id",
        "disposition_follow_ups",
        ["disposition_id"],
    )

    op.create_table(
        "letter_signatories",
        sa.Column("id", sa.UUID(), nullable=False),
        sa.Column("letter_id", sa.UUID(), nullable=False),
        sa.Column("user_id", sa.UUID(), nullable=False),
        sa.Column("slot_id", sa.String(length=100), nullable=False),
        sa.Column("sign_order", sa.Integer(), nullable=True),
        sa.Column("status", signatory_status, nullable=True),
        sa.Column("signed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("signature_image", sa.Text(), nullable=True),
        sa.Column("rejection_reason", sa.Text(), nullable=True),
        sa.Column("certificate_id", sa.String(length=50), nullable=True),
        sa.Column("document_hash", sa.String(length=64), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(["letter_id"], ["outgoing_letters.id"]),
        sa.ForeignKeyConstraint(["user_id"], ["people.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("letter_id", "slot_id", name="uq_letter_signatories_slot"),
    )
    op.create_index(
        "ix_letter_signatories_user_id", "letter_signatories", ["user_id"]
    )

    op.create_table(
        "letter_revisions",
        sa.Column("id", sa.UUID(), nullable=False),
        sa.Column("letter_id", sa.UUID(), nullable=False),
        sa.Column("version", sa.Integer(), nullable=False),
        sa.Column(
            "type",
            sa.Enum(
                "initial",
                "revision_request",
                "revision_submitted",
                name="revisiontype",
            ),
            nullable=False,
        ),
        sa.Column("variable_values", sa.JSON(), nullable=True),
        sa.Column("rendered_html", sa.Text(), nullable=True),
        sa.Column("revision_notes", sa.Text(), nullable=True),
        sa.Column("requested_changes", sa.Text(), nullable=True),
        sa.Column("created_by", sa.UUID(), nullable=False),
        *_timestamps(updated=False),
        sa.ForeignKeyConstraint(["letter_id"], ["outgoing_letters.id"]),
        sa.ForeignKeyConstraint(["created_by"], ["people.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_letter_revisions_letter_id", "letter_revisions", ["letter_id"])

    # Letters with parallel approvals
    op.create_table(
        "letters",
        sa.Column("id", sa.UUID(), nullable=False),
        sa.Column("template_id", sa.UUID(), nullable=False),
        sa.Column("incoming_letter_id", sa.UUID(), nullable=True),
        sa.Column("letter_number", sa.String(length=255), nullable=True),
        sa.Column("subject", sa.String(length=500), nullable=False),
        sa.Column("letter_date", sa.Date(), nullable=False),
        sa.Column("recipient", sa.String(length=500), nullable=True),
        sa.Column("data", sa.JSON(), nullable=True),
        sa.Column("rendered_html", sa.Text(), nullable=True),
        sa.Column("status", letter_status, nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("created_by", sa.UUID(), nullable=False),
        sa.Column("approved_by", sa.UUID(), nullable=True),
        sa.Column("approved_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("rejected_by", sa.UUID(), nullable=True),
        sa.Column("rejected_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("rejection_reason", sa.Text(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(["template_id"], ["letter_templates.id"]),
        sa.ForeignKeyConstraint(["incoming_letter_id"], ["incoming_letters.id"]),
        sa.ForeignKeyConstraint(["created_by"], ["people.id"]),
        sa.ForeignKeyConstraint(["approved_by"], ["people.id"]),
        sa.ForeignKeyConstraint(["rejected_by"], ["people.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_letters_template_id", "letters", ["template_id"])
    op.create_index("ix_letters_status", "letters", ["status"])

    op.create_table(
        "letter_approvals",
        sa.Column("id", sa.UUID(), nullable=False),
        sa.Column("letter_id", sa.UUID(), nullable=False),
        sa.Column("user_id", sa.UUID(), nullable=False),
        sa.Column("signature_index", sa.Integer(), nullable=False),
        sa.Column("position_name", sa.String(length=255), nullable=True),
        sa.Column("status", signatory_status, nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("signed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("signature_data", sa.JSON(), nullable=True),
        sa.Column("order", sa.Integer(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(["letter_id"], ["letters.id"]),
        sa.ForeignKeyConstraint(["user_id"], ["people.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint(
            "letter_id", "signature_index", name="uq_letter_approvals_index"
        ),
    )
    op.create_index("ix_letter_approvals_user_id", "letter_approvals", ["user_id"])

    op.create_table(
        "letter_certificates",
        sa.Column("id", sa.UUID(), nullable=False),
        sa.Column("certificate_id", sa.String(length=50), nullable=False),
        sa.Column("letter_id", sa.UUID(), nullable=False),
        sa.Column("approval_id", sa.UUID(), nullable=True),
        sa.Column("document_hash", sa.String(length=64), nullable=False),
        sa.Column("signed_by", sa.UUID(), nullable=False),
        sa.Column("signer_name", sa.String(length=255), nullable=False),
        sa.Column("signer_position", sa.String(length=255), nullable=True),
        sa.Column("signer_nip", sa.String(length=50), nullable=True),
        sa.Column("signed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("metadata", sa.JSON(), nullable=True),
        sa.Column(
            "status",
            sa.Enum("valid", "revoked", name="certificatestatus"),
            nullable=True,
        ),
        sa.Column("revoked_reason", sa.Text(), nullable=True),
        sa.Column("revoked_by", sa.UUID(), nullable=True),
        sa.Column("revoked_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(updated=False),
        sa.ForeignKeyConstraint(["letter_id"], ["letters.id"]),
        sa.ForeignKeyConstraint(
            ["approval_id"], ["letter_approvals.id"], ondelete="SET NULL"
        ),
        sa.ForeignKeyConstraint(["signed_by"], ["people.id"]),
        sa.ForeignKeyConstraint(["revoked_by"], ["people.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("certificate_id"),
    )
    op.create_index(
        "ix_letter_certificates_letter_id", "letter_certificates", ["letter_id"]
    )

    # Archives
    op.create_table(
        "archives",
        sa.Column("id", sa.UUID(), nullable=False),
        sa.Column(
            "type",
            sa.Enum(
                "document",
                "letter",
                "incoming_letter",
                "outgoing_letter",
                name="archivetype",
            ),
            nullable=True,
        ),
        sa.Column("incoming_letter_id", sa.UUID(), nullable=True),
        sa.Column("outgoing_letter_id", sa.UUID(), nullable=True),
        sa.Column("letter_id", sa.UUID(), nullable=True),
        sa.Column("document_number", sa.String(length=255), nullable=True),
        sa.Column("title", sa.String(length=500), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("category", sa.String(length=120), nullable=True),
        sa.Column("document_date", sa.Date(), nullable=True),
        sa.Column("document_type", sa.String(length=120), nullable=True),
        sa.Column("file_path", sa.String(length=1024), nullable=True),
        sa.Column("file_type", sa.String(length=120), nullable=True),
        sa.Column("file_size", sa.BigInteger(), nullable=True),
        sa.Column("sender", sa.String(length=255), nullable=True),
        sa.Column("recipient", sa.String(length=500), nullable=True),
        sa.Column(
            "classification",
            sa.Enum(
                "public",
                "internal",
                "confidential",
                "secret",
                name="archiveclassification",
            ),
            nullable=True,
        ),
        sa.Column("retention_period", sa.Integer(), nullable=True),
        sa.Column("retention_until", sa.Date(), nullable=True),
        sa.Column(
            "retention_status",
            sa.Enum("active", "expired", name="retentionstatus"),
            nullable=True,
        ),
        sa.Column("tags", sa.JSON(), nullable=True),
        sa.Column("metadata", sa.JSON(), nullable=True),
        sa.Column("archived_by", sa.UUID(), nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(["incoming_letter_id"], ["incoming_letters.id"]),
        sa.ForeignKeyConstraint(["outgoing_letter_id"], ["outgoing_letters.id"]),
        sa.ForeignKeyConstraint(["letter_id"], ["letters.id"]),
        sa.ForeignKeyConstraint(["archived_by"], ["people.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("incoming_letter_id", name="uq_archives_incoming_letter_id"),
        sa.UniqueConstraint("outgoing_letter_id", name="uq_archives_outgoing_letter_id"),
        sa.UniqueConstraint("letter_id", name="uq_archives_letter_id"),
    )
    op.create_index("ix_archives_type", "archives", ["type"])
    op.create_index("ix_archives_retention_until", "archives", ["retention_until"])


def downgrade() -> None:
    for table in (
        "archives",
        "letter_certificates",
        "letter_approvals",
        "letters",
        "letter_revisions",
        "letter_signatories",
        "disposition_follow_ups",
        "outgoing_letters",
        "dispositions",
        "incoming_letters",
        "letter_templates",
        "document_templates",
        "letter_numbering_configs",
        "person_roles",
        "role_permissions",
        "permissions",
        "roles",
        "people",
        "organization_units",
    ):
        op.drop_table(table)

    bind = op.get_bind()
    for enum_name in (
        "retentionstatus",
        "archiveclassification",
        "archivetype",
        "certificatestatus",
        "revisiontype",
        "followuptype",
        "signatorystatus",
        "letterstatus",
        "dispositionstatus",
        "dispositionpriority",
        "incomingletterstatus",
        "incomingletterclassification",
        "counterreset",
    ):
        sa.Enum(name=enum_name).drop(bind, checkfirst=True)
