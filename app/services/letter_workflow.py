"""Aggregate sign-off status for letters.

Both outgoing letters (ordered signatories) and legacy letters (parallel
approvals) derive their status here and nowhere else.
"""

from collections.abc import Iterable

from app.models.correspondence import (
    Letter,
    LetterSignatory,
    LetterStatus,
    OutgoingLetter,
    SignatoryStatus,
)

SIGNABLE_STATUSES = {LetterStatus.pending, LetterStatus.partial}


def compute_letter_status(
    statuses: Iterable[SignatoryStatus], revision_requested: bool = False
) -> LetterStatus:
    if revision_requested:
        return LetterStatus.revision
    statuses = list(statuses)
    if any(s == SignatoryStatus.rejected for s in statuses):
        return LetterStatus.rejected
    if not statuses:
        return LetterStatus.pending
    if all(s == SignatoryStatus.approved for s in statuses):
        return LetterStatus.signed
    if any(s == SignatoryStatus.approved for s in statuses):
        return LetterStatus.partial
    return LetterStatus.pending


def refresh_outgoing_status(letter: OutgoingLetter) -> LetterStatus:
    if letter.status == LetterStatus.draft:
        return letter.status
    letter.status = compute_letter_status(
        (s.status for s in letter.signatories), letter.revision_requested
    )
    return letter.status


def can_sign(signatory: LetterSignatory) -> bool:
    letter = signatory.letter
    if letter.status not in SIGNABLE_STATUSES or letter.revision_requested:
        return False
    if signatory.status != SignatoryStatus.pending:
        return False
    return not any(
        other.sign_order < signatory.sign_order
        and other.status == SignatoryStatus.pending
        for other in letter.signatories
        if other.id != signatory.id
    )


def has_signatory_activity(letter: OutgoingLetter) -> bool:
    return any(s.status != SignatoryStatus.pending for s in letter.signatories)


def refresh_letter_status(letter: Letter) -> LetterStatus:
    if letter.status == LetterStatus.draft:
        return letter.status
    letter.status = compute_letter_status(a.status for a in letter.approvals)
    return letter.status
