import enum
import uuid
from datetime import date, datetime, timezone

from sqlalchemy import (
    BigInteger,
    Boolean,
    Date,
    DateTime,
    Enum,
    ForeignKey,
    Index,
    Integer,
    JSON,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db import Base


# ---------------------------------------------------------------------------
# Enums: Incoming letters and dispositions
# ---------------------------------------------------------------------------


class IncomingLetterClassification(enum.Enum):
    biasa = "biasa"
    penting = "penting"
    segera = "segera"
    rahasia = "rahasia"


class IncomingLetterStatus(enum.Enum):
    new = "new"
    disposed = "disposed"
    in_progress = "in_progress"
    completed = "completed"
    archived = "archived"


class DispositionPriority(enum.Enum):
    normal = "normal"
    high = "high"
    urgent = "urgent"


class DispositionStatus(enum.Enum):
    pending = "pending"
    read = "read"
    in_progress = "in_progress"
    completed = "completed"


class FollowUpType(enum.Enum):
    surat_balasan = "surat_balasan"
    rapat = "rapat"
    kunjungan = "kunjungan"
    telepon = "telepon"
    tidak_perlu = "tidak_perlu"
    lainnya = "lainnya"


# ---------------------------------------------------------------------------
# Enums: Letters and sign-off
# ---------------------------------------------------------------------------


class LetterStatus(enum.Enum):
    draft = "draft"
    pending = "pending"
    partial = "partial"
    signed = "signed"
    rejected = "rejected"
    revision = "revision"


class SignatoryStatus(enum.Enum):
    pending = "pending"
    approved = "approved"
    rejected = "rejected"


class RevisionType(enum.Enum):
    initial = "initial"
    revision_request = "revision_request"
    revision_submitted = "revision_submitted"


class CounterReset(enum.Enum):
    yearly = "yearly"
    monthly = "monthly"


class CertificateStatus(enum.Enum):
    valid = "valid"
    revoked = "revoked"


# ---------------------------------------------------------------------------
# Enums: Archives
# ---------------------------------------------------------------------------


class ArchiveType(enum.Enum):
    document = "document"
    letter = "letter"
    incoming_letter = "incoming_letter"
    outgoing_letter = "outgoing_letter"


class ArchiveClassification(enum.Enum):
    public = "public"
    internal = "internal"
    confidential = "confidential"
    secret = "secret"


class RetentionStatus(enum.Enum):
    active = "active"
    expired = "expired"


# ---------------------------------------------------------------------------
# Incoming Letters
# ---------------------------------------------------------------------------


class IncomingLetter(Base):
    __tablename__ = "incoming_letters"
    __table_args__ = (
        Index("ix_incoming_letters_incoming_number", "incoming_number"),
        Index("ix_incoming_letters_status", "status"),
        Index("ix_incoming_letters_organization_unit_id", "organization_unit_id"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    incoming_number: Mapped[str] = mapped_column(String(100), nullable=False)
    original_number: Mapped[str] = mapped_column(String(255), nullable=False)
    original_date: Mapped[date] = mapped_column(Date, nullable=False)
    received_date: Mapped[date] = mapped_column(Date, nullable=False)
    sender: Mapped[str] = mapped_column(String(255), nullable=False)
    subject: Mapped[str] = mapped_column(String(500), nullable=False)
    category: Mapped[str | None] = mapped_column(String(120))
    classification: Mapped[IncomingLetterClassification] = mapped_column(
        Enum(IncomingLetterClassification),
        default=IncomingLetterClassification.biasa,
    )
    attachment_count: Mapped[int] = mapped_column(Integer, default=0)
    attachment_description: Mapped[str | None] = mapped_column(Text)
    file_path: Mapped[str | None] = mapped_column(String(1024))
    organization_unit_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True), ForeignKey("organization_units.id")
    )
    registered_by: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("people.id"), nullable=False
    )
    status: Mapped[IncomingLetterStatus] = mapped_column(
        Enum(IncomingLetterStatus), default=IncomingLetterStatus.new
    )
    notes: Mapped[str | None] = mapped_column(Text)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc)
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    organization_unit = relationship("OrganizationUnit")
    registrar = relationship("Person", foreign_keys=[registered_by])
    dispositions = relationship(
        "Disposition",
        back_populates="incoming_letter",
        order_by="Disposition.created_at",
    )
    archive = relationship("Archive", back_populates="incoming_letter", uselist=False)

    @property
    def disposition_progress(self) -> dict:
        total = len(self.dispositions)
        completed = sum(
            1 for d in self.dispositions if d.status == DispositionStatus.completed
        )
        pending = sum(
            1 for d in self.dispositions if d.status == DispositionStatus.pending
        )
        percentage = round(completed / total * 100, 2) if total else 0
        return {
            "total": total,
            "pending": pending,
            "completed": completed,
            "percentage": percentage,
        }


# ---------------------------------------------------------------------------
# Dispositions: parent/child tree per incoming letter
# ---------------------------------------------------------------------------


class Disposition(Base):
    __tablename__ = "dispositions"
    __table_args__ = (
        Index("ix_dispositions_incoming_letter_id", "incoming_letter_id"),
        Index("ix_dispositions_parent_disposition_id", "parent_disposition_id"),
        Index("ix_dispositions_to_user_id", "to_user_id"),
        Index("ix_dispositions_status", "status"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    incoming_letter_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("incoming_letters.id"), nullable=False
    )
    parent_disposition_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True), ForeignKey("dispositions.id")
    )
    from_user_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("people.id"), nullable=False
    )
    to_user_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("people.id"), nullable=False
    )
    instruction: Mapped[str] = mapped_column(Text, nullable=False)
    notes: Mapped[str | None] = mapped_column(Text)
    priority: Mapped[DispositionPriority] = mapped_column(
        Enum(DispositionPriority), default=DispositionPriority.normal
    )
    deadline: Mapped[date | None] = mapped_column(Date)
    status: Mapped[DispositionStatus] = mapped_column(
        Enum(DispositionStatus), default=DispositionStatus.pending
    )
    read_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    completed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc)
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    incoming_letter = relationship("IncomingLetter", back_populates="dispositions")
    parent = relationship(
        "Disposition", remote_side="Disposition.id", back_populates="children"
    )
    children = relationship(
        "Disposition", back_populates="parent", order_by="Disposition.created_at"
    )
    from_user = relationship("Person", foreign_keys=[from_user_id])
    to_user = relationship("Person", foreign_keys=[to_user_id])
    follow_ups = relationship(
        "DispositionFollowUp",
        back_populates="disposition",
        cascade="all, delete-orphan",
        order_by="DispositionFollowUp.created_at",
    )

    @property
    def is_overdue(self) -> bool:
        if self.deadline is None or self.status == DispositionStatus.completed:
            return False
        return self.deadline < date.today()


class DispositionFollowUp(Base):
    __tablename__ = "disposition_follow_ups"
    __table_args__ = (
        Index("ix_disposition_follow_ups_disposition_id", "disposition_id"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    disposition_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("dispositions.id"), nullable=False
    )
    follow_up_date: Mapped[date] = mapped_column(Date, nullable=False)
    follow_up_type: Mapped[FollowUpType] = mapped_column(
        Enum(FollowUpType), nullable=False
    )
    description: Mapped[str] = mapped_column(Text, nullable=False)
    file_path: Mapped[str | None] = mapped_column(String(1024))
    outgoing_letter_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True), ForeignKey("outgoing_letters.id")
    )
    created_by: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("people.id"), nullable=False
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc)
    )

    disposition = relationship("Disposition", back_populates="follow_ups")
    creator = relationship("Person", foreign_keys=[created_by])


# ---------------------------------------------------------------------------
# Templates and numbering
# ---------------------------------------------------------------------------


class LetterNumberingConfig(Base):
    __tablename__ = "letter_numbering_configs"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    code: Mapped[str] = mapped_column(String(50), nullable=False, unique=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    format: Mapped[str] = mapped_column(String(255), nullable=False)
    counter_reset: Mapped[CounterReset] = mapped_column(
        Enum(CounterReset), default=CounterReset.yearly
    )
    last_number: Mapped[int] = mapped_column(Integer, default=0)
    year: Mapped[int | None] = mapped_column(Integer)
    month: Mapped[int | None] = mapped_column(Integer)
    padding: Mapped[int] = mapped_column(Integer, default=3)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc)
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )


class DocumentTemplate(Base):
    __tablename__ = "document_templates"
    __table_args__ = (
        UniqueConstraint(
            "organization_unit_id", "code", name="uq_document_templates_org_code"
        ),
        Index("ix_document_templates_numbering_group_id", "numbering_group_id"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    code: Mapped[str] = mapped_column(String(50), nullable=False)
    category: Mapped[str | None] = mapped_column(String(120))
    template_type: Mapped[str] = mapped_column(String(50), default="letter")
    description: Mapped[str | None] = mapped_column(Text)
    organization_unit_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True), ForeignKey("organization_units.id")
    )
    numbering_group_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True), ForeignKey("document_templates.id")
    )
    numbering_config_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True), ForeignKey("letter_numbering_configs.id")
    )
    numbering_format: Mapped[str | None] = mapped_column(String(255))
    page_settings: Mapped[dict | None] = mapped_column(JSON)
    header_settings: Mapped[dict | None] = mapped_column(JSON)
    content_blocks: Mapped[list | None] = mapped_column(JSON)
    footer_settings: Mapped[dict | None] = mapped_column(JSON)
    signature_settings: Mapped[dict | None] = mapped_column(JSON)
    variables: Mapped[list | None] = mapped_column(JSON)
    created_by: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True), ForeignKey("people.id")
    )
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc)
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    organization_unit = relationship("OrganizationUnit")
    numbering_config = relationship("LetterNumberingConfig")
    numbering_group = relationship(
        "DocumentTemplate", remote_side="DocumentTemplate.id"
    )
    letters = relationship("OutgoingLetter", back_populates="template")

    @property
    def numbering_group_key(self) -> uuid.UUID:
        return self.numbering_group_id or self.id


class LetterTemplate(Base):
    __tablename__ = "letter_templates"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    code: Mapped[str] = mapped_column(String(50), nullable=False)
    category: Mapped[str | None] = mapped_column(String(120))
    description: Mapped[str | None] = mapped_column(Text)
    organization_unit_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True), ForeignKey("organization_units.id")
    )
    content: Mapped[list | None] = mapped_column(JSON)
    variables: Mapped[list | None] = mapped_column(JSON)
    signatures: Mapped[list | None] = mapped_column(JSON)
    numbering_format: Mapped[str | None] = mapped_column(String(255))
    created_by: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True), ForeignKey("people.id")
    )
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc)
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    letters = relationship("Letter", back_populates="template")


# ---------------------------------------------------------------------------
# Outgoing Letters: ordered signatories
# ---------------------------------------------------------------------------


class OutgoingLetter(Base):
    __tablename__ = "outgoing_letters"
    __table_args__ = (
        Index("ix_outgoing_letters_template_id", "template_id"),
        Index("ix_outgoing_letters_status", "status"),
        Index("ix_outgoing_letters_created_by", "created_by"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    template_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("document_templates.id"), nullable=False
    )
    incoming_letter_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True), ForeignKey("incoming_letters.id")
    )
    letter_number: Mapped[str | None] = mapped_column(String(255))
    subject: Mapped[str] = mapped_column(String(500), nullable=False)
    letter_date: Mapped[date] = mapped_column(Date, nullable=False)
    variable_values: Mapped[dict | None] = mapped_column(JSON)
    rendered_html: Mapped[str | None] = mapped_column(Text)
    attachments: Mapped[list | None] = mapped_column(JSON)
    status: Mapped[LetterStatus] = mapped_column(
        Enum(LetterStatus), default=LetterStatus.pending
    )
    notes: Mapped[str | None] = mapped_column(Text)
    current_version: Mapped[int] = mapped_column(Integer, default=1)
    revision_requested: Mapped[bool] = mapped_column(Boolean, default=False)
    revision_request_notes: Mapped[str | None] = mapped_column(Text)
    revision_requested_by: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True), ForeignKey("people.id")
    )
    created_by: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("people.id"), nullable=False
    )
    updated_by: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True), ForeignKey("people.id")
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc)
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    template = relationship("DocumentTemplate", back_populates="letters")
    incoming_letter = relationship("IncomingLetter")
    creator = relationship("Person", foreign_keys=[created_by])
    signatories = relationship(
        "LetterSignatory",
        back_populates="letter",
        cascade="all, delete-orphan",
        order_by="LetterSignatory.sign_order",
    )
    revisions = relationship(
        "LetterRevision",
        back_populates="letter",
        cascade="all, delete-orphan",
        order_by="LetterRevision.created_at",
    )
    archive = relationship("Archive", back_populates="outgoing_letter", uselist=False)

    @property
    def approval_progress(self) -> dict:
        total = len(self.signatories)
        approved = sum(
            1 for s in self.signatories if s.status == SignatoryStatus.approved
        )
        rejected = sum(
            1 for s in self.signatories if s.status == SignatoryStatus.rejected
        )
        percentage = round(approved / total * 100, 2) if total else 0
        return {
            "total": total,
            "approved": approved,
            "rejected": rejected,
            "pending": total - approved - rejected,
            "percentage": percentage,
        }


class LetterSignatory(Base):
    __tablename__ = "letter_signatories"
    __table_args__ = (
        UniqueConstraint("letter_id", "slot_id", name="uq_letter_signatories_slot"),
        Index("ix_letter_signatories_user_id", "user_id"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    letter_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("outgoing_letters.id"), nullable=False
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("people.id"), nullable=False
    )
    slot_id: Mapped[str] = mapped_column(String(100), nullable=False)
    sign_order: Mapped[int] = mapped_column(Integer, default=0)
    status: Mapped[SignatoryStatus] = mapped_column(
        Enum(SignatoryStatus), default=SignatoryStatus.pending
    )
    signed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    signature_image: Mapped[str | None] = mapped_column(Text)
    rejection_reason: Mapped[str | None] = mapped_column(Text)
    certificate_id: Mapped[str | None] = mapped_column(String(50))
    document_hash: Mapped[str | None] = mapped_column(String(64))

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc)
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    letter = relationship("OutgoingLetter", back_populates="signatories")
    user = relationship("Person", foreign_keys=[user_id])


class LetterRevision(Base):
    __tablename__ = "letter_revisions"
    __table_args__ = (Index("ix_letter_revisions_letter_id", "letter_id"),)

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    letter_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("outgoing_letters.id"), nullable=False
    )
    version: Mapped[int] = mapped_column(Integer, nullable=False)
    type: Mapped[RevisionType] = mapped_column(Enum(RevisionType), nullable=False)
    variable_values: Mapped[dict | None] = mapped_column(JSON)
    rendered_html: Mapped[str | None] = mapped_column(Text)
    revision_notes: Mapped[str | None] = mapped_column(Text)
    requested_changes: Mapped[str | None] = mapped_column(Text)
    created_by: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("people.id"), nullable=False
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc)
    )

    letter = relationship("OutgoingLetter", back_populates="revisions")


# ---------------------------------------------------------------------------
# Letters: parallel approvals with certificates
# ---------------------------------------------------------------------------


class Letter(Base):
    __tablename__ = "letters"
    __table_args__ = (
        Index("ix_letters_template_id", "template_id"),
        Index("ix_letters_status", "status"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    template_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("letter_templates.id"), nullable=False
    )
    incoming_letter_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True), ForeignKey("incoming_letters.id")
    )
    letter_number: Mapped[str | None] = mapped_column(String(255))
    subject: Mapped[str] = mapped_column(String(500), nullable=False)
    letter_date: Mapped[date] = mapped_column(Date, nullable=False)
    recipient: Mapped[str | None] = mapped_column(String(500))
    data: Mapped[dict | None] = mapped_column(JSON)
    rendered_html: Mapped[str | None] = mapped_column(Text)
    status: Mapped[LetterStatus] = mapped_column(
        Enum(LetterStatus), default=LetterStatus.draft
    )
    notes: Mapped[str | None] = mapped_column(Text)
    created_by: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("people.id"), nullable=False
    )
    approved_by: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True), ForeignKey("people.id")
    )
    approved_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    rejected_by: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True), ForeignKey("people.id")
    )
    rejected_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    rejection_reason: Mapped[str | None] = mapped_column(Text)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc)
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    template = relationship("LetterTemplate", back_populates="letters")
    creator = relationship("Person", foreign_keys=[created_by])
    approvals = relationship(
        "LetterApproval",
        back_populates="letter",
        cascade="all, delete-orphan",
        order_by="LetterApproval.signature_index",
    )
    certificates = relationship(
        "LetterCertificate",
        back_populates="letter",
        cascade="all, delete-orphan",
    )
    archive = relationship("Archive", back_populates="letter", uselist=False)


class LetterApproval(Base):
    __tablename__ = "letter_approvals"
    __table_args__ = (
        UniqueConstraint(
            "letter_id", "signature_index", name="uq_letter_approvals_index"
        ),
        Index("ix_letter_approvals_user_id", "user_id"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    letter_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("letters.id"), nullable=False
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("people.id"), nullable=False
    )
    signature_index: Mapped[int] = mapped_column(Integer, nullable=False)
    position_name: Mapped[str | None] = mapped_column(String(255))
    status: Mapped[SignatoryStatus] = mapped_column(
        Enum(SignatoryStatus), default=SignatoryStatus.pending
    )
    notes: Mapped[str | None] = mapped_column(Text)
    signed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    signature_data: Mapped[dict | None] = mapped_column(JSON)
    order: Mapped[int] = mapped_column(Integer, default=0)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc)
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    letter = relationship("Letter", back_populates="approvals")
    user = relationship("Person", foreign_keys=[user_id])


class LetterCertificate(Base):
    __tablename__ = "letter_certificates"
    __table_args__ = (Index("ix_letter_certificates_letter_id", "letter_id"),)

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    certificate_id: Mapped[str] = mapped_column(
        String(50), nullable=False, unique=True
    )
    letter_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("letters.id"), nullable=False
    )
    approval_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True), ForeignKey("letter_approvals.id", ondelete="SET NULL")
    )
    document_hash: Mapped[str] = mapped_column(String(64), nullable=False)
    signed_by: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("people.id"), nullable=False
    )
    signer_name: Mapped[str] = mapped_column(String(255), nullable=False)
    signer_position: Mapped[str | None] = mapped_column(String(255))
    signer_nip: Mapped[str | None] = mapped_column(String(50))
    signed_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc)
    )
    metadata_: Mapped[dict | None] = mapped_column("metadata", JSON)
    status: Mapped[CertificateStatus] = mapped_column(
        Enum(CertificateStatus), default=CertificateStatus.valid
    )
    revoked_reason: Mapped[str | None] = mapped_column(Text)
    revoked_by: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True), ForeignKey("people.id")
    )
    revoked_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc)
    )

    letter = relationship("Letter", back_populates="certificates")
    signer = relationship("Person", foreign_keys=[signed_by])


# ---------------------------------------------------------------------------
# Archives: retention tracking
# ---------------------------------------------------------------------------


class Archive(Base):
    __tablename__ = "archives"
    __table_args__ = (
        UniqueConstraint("incoming_letter_id", name="uq_archives_incoming_letter_id"),
        UniqueConstraint("outgoing_letter_id", name="uq_archives_outgoing_letter_id"),
        UniqueConstraint("letter_id", name="uq_archives_letter_id"),
        Index("ix_archives_type", "type"),
        Index("ix_archives_retention_until", "retention_until"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    type: Mapped[ArchiveType] = mapped_column(
        Enum(ArchiveType), default=ArchiveType.document
    )
    incoming_letter_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True), ForeignKey("incoming_letters.id")
    )
    outgoing_letter_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True), ForeignKey("outgoing_letters.id")
    )
    letter_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True), ForeignKey("letters.id")
    )
    document_number: Mapped[str | None] = mapped_column(String(255))
    title: Mapped[str] = mapped_column(String(500), nullable=False)
    description: Mapped[str | None] = mapped_column(Text)
    category: Mapped[str | None] = mapped_column(String(120))
    document_date: Mapped[date | None] = mapped_column(Date)
    document_type: Mapped[str | None] = mapped_column(String(120))
    file_path: Mapped[str | None] = mapped_column(String(1024))
    file_type: Mapped[str | None] = mapped_column(String(120))
    file_size: Mapped[int | None] = mapped_column(BigInteger)
    sender: Mapped[str | None] = mapped_column(String(255))
    recipient: Mapped[str | None] = mapped_column(String(500))
    classification: Mapped[ArchiveClassification] = mapped_column(
        Enum(ArchiveClassification), default=ArchiveClassification.internal
    )
    retention_period: Mapped[int | None] = mapped_column(Integer)
    retention_until: Mapped[date | None] = mapped_column(Date)
    retention_status: Mapped[RetentionStatus] = mapped_column(
        Enum(RetentionStatus), default=RetentionStatus.active
    )
    tags: Mapped[list | None] = mapped_column(JSON)
    metadata_: Mapped[dict | None] = mapped_column("metadata", JSON)
    archived_by: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("people.id"), nullable=False
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc)
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    incoming_letter = relationship("IncomingLetter", back_populates="archive")
    outgoing_letter = relationship("OutgoingLetter", back_populates="archive")
    letter = relationship("Letter", back_populates="archive")
    archiver = relationship("Person", foreign_keys=[archived_by])
