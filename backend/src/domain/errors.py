"""Domain error hierarchy for the mailroom core.

Every failure a service can raise carries an ErrorKind so the API layer can
render a typed error body instead of a generic 500.

Kinds:
- VALIDATION: malformed or missing input, or a transition the lifecycle forbids
- CONFLICT: uniqueness or structural invariant violation
- NOT_FOUND: absent entity, or one outside the caller's scope
- UNAUTHORIZED: role/plan/KYC gate failure outside the route policy
- UPSTREAM: storage or payment gateway call failed
"""

from enum import Enum
from typing import Any, Dict, Optional


class ErrorKind(str, Enum):
    """Error categories exposed to API callers."""
    VALIDATION = "VALIDATION"
    CONFLICT = "CONFLICT"
    NOT_FOUND = "NOT_FOUND"
    UNAUTHORIZED = "UNAUTHORIZED"
    UPSTREAM = "UPSTREAM"


class MailroomError(Exception):
    """Base class for all domain errors."""

    kind: ErrorKind = ErrorKind.VALIDATION

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        body = {"error": self.kind.value, "message": self.message}
        if self.details:
            body["details"] = self.details
        return body


class ValidationFailed(MailroomError):
    kind = ErrorKind.VALIDATION


class ConflictError(MailroomError):
    kind = ErrorKind.CONFLICT


class NotFoundError(MailroomError):
    """Raised for absent entities and for entities owned by someone else.

    Both cases use the same message so callers cannot probe for existence.
    """
    kind = ErrorKind.NOT_FOUND

    def __init__(self, entity: str):
        super().__init__(f"{entity} not found")
        self.entity = entity


class UnauthorizedError(MailroomError):
    kind = ErrorKind.UNAUTHORIZED


class UpstreamError(MailroomError):
    kind = ErrorKind.UPSTREAM
