from app.models.person import OrganizationUnit, Person  # noqa: F401
from app.models.rbac import Permission, PersonRole, Role, RolePermission  # noqa: F401
from app.models.correspondence import (  # noqa: F401
    Archive,
    ArchiveClassification,
    ArchiveType,
    CertificateStatus,
    CounterReset,
    Disposition,
    DispositionFollowUp,
    DispositionPriority,
    DispositionStatus,
    DocumentTemplate,
    FollowUpType,
    IncomingLetter,
    IncomingLetterClassification,
    IncomingLetterStatus,
    Letter,
    LetterApproval,
    LetterCertificate,
    LetterNumberingConfig,
    LetterRevision,
    LetterSignatory,
    LetterStatus,
    LetterTemplate,
    OutgoingLetter,
    RetentionStatus,
    RevisionType,
    SignatoryStatus,
)
