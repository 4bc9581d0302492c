"""ActionRequest enums, status transitions and the approval gate.

Request flow:
    PENDING → IN_PROGRESS → COMPLETED
    REQUIRES_APPROVAL → PENDING   (once the owner's KYC is approved)

FORWARD and SHRED move the physical item out of the owner's control, so they
are held in REQUIRES_APPROVAL until the owner's KYC is APPROVED. SCAN is the
core service and is never gated. Priority only orders the operator queue.
"""

from enum import Enum
from typing import Dict, List, Optional

from auth.roles import KycStatus
from .mail_status import TERMINAL_STATUSES, MailStatus, can_transition as can_transition_mail


class ActionType(str, Enum):
    SCAN = "SCAN"
    FORWARD = "FORWARD"
    SHRED = "SHRED"


class ActionStatus(str, Enum):
    PENDING = "PENDING"
    IN_PROGRESS = "IN_PROGRESS"
    REQUIRES_APPROVAL = "REQUIRES_APPROVAL"
    COMPLETED = "COMPLETED"


class ActionPriority(str, Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"


# Queue sort weight, highest first
PRIORITY_RANK: Dict[ActionPriority, int] = {
    ActionPriority.HIGH: 0,
    ActionPriority.MEDIUM: 1,
    ActionPriority.LOW: 2,
}

ALLOWED_TRANSITIONS: Dict[ActionStatus, List[ActionStatus]] = {
    ActionStatus.PENDING: [ActionStatus.IN_PROGRESS, ActionStatus.REQUIRES_APPROVAL],
    ActionStatus.REQUIRES_APPROVAL: [ActionStatus.PENDING],
    ActionStatus.IN_PROGRESS: [ActionStatus.COMPLETED],
    ActionStatus.COMPLETED: [],  # Terminal state
}

OPEN_STATUSES = frozenset({
    ActionStatus.PENDING,
    ActionStatus.IN_PROGRESS,
    ActionStatus.REQUIRES_APPROVAL,
})

KYC_GATED_ACTIONS = frozenset({ActionType.FORWARD, ActionType.SHRED})

# Mail status the item ends up in once the action is fulfilled
RESULTING_MAIL_STATUS: Dict[ActionType, MailStatus] = {
    ActionType.SCAN: MailStatus.SCANNED,
    ActionType.FORWARD: MailStatus.FORWARDED,
    ActionType.SHRED: MailStatus.SHREDDED,
}

# Actions whose fulfillment ends the item's lifecycle; at most one may be open per item
FINAL_ACTIONS = frozenset(
    action for action, status in RESULTING_MAIL_STATUS.items() if status in TERMINAL_STATUSES
)


class ActionTransitionError(Exception):
    """Raised when an invalid request status transition is attempted."""
    pass


def apply_transition(current_status: ActionStatus, new_status: ActionStatus) -> bool:
    """Validate a request status transition.

    Re-applying a transition that has already happened is a no-op so retried
    operator calls are harmless.

    Returns:
        True if the status must change, False if it already equals new_status

    Raises:
        ActionTransitionError: If the transition is not allowed
    """
    if current_status == new_status:
        return False
    allowed = ALLOWED_TRANSITIONS.get(current_status, [])
    if new_status not in allowed:
        raise ActionTransitionError(
            f"Invalid request transition: {current_status.value} -> {new_status.value}"
        )
    return True


def can_execute(action_type: ActionType, owner_kyc_status: Optional[KycStatus]) -> bool:
    """Approval gate: may this request be executed for its owner right now?

    Example:
        >>> can_execute(ActionType.SCAN, KycStatus.PENDING)
        True
        >>> can_execute(ActionType.SHRED, KycStatus.PENDING)
        False
    """
    if action_type not in KYC_GATED_ACTIONS:
        return True
    return owner_kyc_status == KycStatus.APPROVED


def can_request(action_type: ActionType, mail_status: MailStatus) -> bool:
    """Whether an action may be requested for an item in the given status.

    A request is accepted only when fulfilling it would be a legal lifecycle
    transition: SCAN for RECEIVED items, FORWARD and SHRED for SCANNED or
    PROCESSED items. Terminal items accept nothing.
    """
    return can_transition_mail(mail_status, RESULTING_MAIL_STATUS[action_type])
