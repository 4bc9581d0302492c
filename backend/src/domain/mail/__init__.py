"""Mail domain module - mail item lifecycle and action request approval gate"""

from .mail_status import (
    MailStatus,
    ALLOWED_TRANSITIONS,
    TERMINAL_STATUSES,
    MailTransitionError,
    can_transition,
    validate_transition,
    is_terminal,
    display_status,
)
from .action_requests import (
    ActionType,
    ActionStatus,
    ActionPriority,
    ActionTransitionError,
    FINAL_ACTIONS,
    OPEN_STATUSES,
    PRIORITY_RANK,
    RESULTING_MAIL_STATUS,
    apply_transition,
    can_execute,
    can_request,
)

__all__ = [
    "MailStatus",
    "ALLOWED_TRANSITIONS",
    "TERMINAL_STATUSES",
    "MailTransitionError",
    "can_transition",
    "validate_transition",
    "is_terminal",
    "display_status",
    "ActionType",
    "ActionStatus",
    "ActionPriority",
    "ActionTransitionError",
    "FINAL_ACTIONS",
    "OPEN_STATUSES",
    "PRIORITY_RANK",
    "RESULTING_MAIL_STATUS",
    "apply_transition",
    "can_execute",
    "can_request",
]
