"""MailStatus state machine for the physical mail lifecycle.

State flow:
    RECEIVED → SCANNED → PROCESSED | FORWARDED | SHREDDED
    PROCESSED → FORWARDED | SHREDDED

PROCESSED is a soft terminal: tagging, archiving and notes still apply.
FORWARDED and SHREDDED are hard terminals: the item has physically left
the mailroom, so no further action request may be raised against it.
"""

from enum import Enum
from typing import Dict, List


class MailStatus(str, Enum):
    """Physical status of a mail item."""
    RECEIVED = "RECEIVED"      # Logged by an operator, envelope photographed
    SCANNED = "SCANNED"        # Contents opened and scanned
    PROCESSED = "PROCESSED"    # Scan reviewed
    FORWARDED = "FORWARDED"    # Shipped to the owner (terminal)
    SHREDDED = "SHREDDED"      # Destroyed (terminal)


ARCHIVED_DISPLAY_STATUS = "archived"

ALLOWED_TRANSITIONS: Dict[MailStatus, List[MailStatus]] = {
    MailStatus.RECEIVED: [MailStatus.SCANNED],
    MailStatus.SCANNED: [
        MailStatus.PROCESSED,
        MailStatus.FORWARDED,
        MailStatus.SHREDDED,
    ],
    MailStatus.PROCESSED: [MailStatus.FORWARDED, MailStatus.SHREDDED],
    MailStatus.FORWARDED: [],  # Terminal state
    MailStatus.SHREDDED: [],  # Terminal state
}

TERMINAL_STATUSES = frozenset({MailStatus.FORWARDED, MailStatus.SHREDDED})


class MailTransitionError(Exception):
    """Raised when an invalid mail status transition is attempted."""
    pass


def can_transition(current_status: MailStatus, new_status: MailStatus) -> bool:
    """Check if a mail status transition is allowed without raising.

    Example:
        >>> can_transition(MailStatus.RECEIVED, MailStatus.SCANNED)
        True
        >>> can_transition(MailStatus.SHREDDED, MailStatus.SCANNED)
        False
    """
    return new_status in ALLOWED_TRANSITIONS.get(current_status, [])


def validate_transition(current_status: MailStatus, new_status: MailStatus) -> None:
    """Validate that a mail status transition is allowed.

    Raises:
        MailTransitionError: If transition is not allowed
    """
    allowed = get_allowed_transitions(current_status)
    if new_status not in allowed:
        raise MailTransitionError(
            f"Invalid transition: {current_status.value} -> {new_status.value}. "
            f"Allowed transitions from {current_status.value}: "
            f"{[s.value for s in allowed]}"
        )


def get_allowed_transitions(status: MailStatus) -> List[MailStatus]:
    return ALLOWED_TRANSITIONS.get(status, [])


def is_terminal(status: MailStatus) -> bool:
    return status in TERMINAL_STATUSES


def display_status(status: MailStatus, is_archived: bool) -> str:
    """Status shown to owners.

    Archival is a visibility flag layered over the physical status, so an
    archived item always displays as "archived" whatever its status is.
    """
    if is_archived:
        return ARCHIVED_DISPLAY_STATUS
    return status.value.lower()
