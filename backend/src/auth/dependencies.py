"""FastAPI dependencies for authentication and route-level access control.

This module provides dependency injection functions for:
- Extracting and validating the auth provider's bearer token
- Resolving the Principal behind it from the profile table
- Enforcing the access policy for the surface an endpoint belongs to

Usage:
    @router.get("/mail-items")
    def list_items(principal: Principal = Depends(require_access("/app/inbox"))):
        ...
"""

import logging
from typing import Callable, Optional
from uuid import UUID

import jwt
from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session

from database import get_db
from domain.access.policy import Decision, DecisionKind, resolve_rule, decide_for_rule
from domain.identity import Principal
from audit.service import log_access_decision
from observability.metrics import access_decisions_total
from .jwt import decode_token
from .principal import resolve_principal

logger = logging.getLogger(__name__)

# auto_error=False: signed-out callers are a policy decision, not a 403
security = HTTPBearer(auto_error=False)


class AccessDenied(Exception):
    """Raised when the access policy does not ALLOW a request.

    Rendered by the application exception handler as a 303 redirect to the
    decision target, or as a plain 404 for DENY_NOT_FOUND.
    """

    def __init__(self, decision: Decision, route: str):
        super().__init__(f"{decision.kind.value} for {route}")
        self.decision = decision
        self.route = route


def get_authenticated_profile_id(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> Optional[UUID]:
    """Validate the bearer token and return its subject, or None when absent.

    Raises:
        HTTPException 401: If a token is present but invalid or expired
    """
    if credentials is None:
        return None

    try:
        payload = decode_token(credentials.credentials)
        subject = payload.get("sub")
        if not subject:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Invalid token: missing subject claim",
                headers={"WWW-Authenticate": "Bearer"},
            )
        return UUID(subject)
    except jwt.ExpiredSignatureError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token has expired",
            headers={"WWW-Authenticate": "Bearer"},
        )
    except jwt.InvalidTokenError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=f"Invalid token: {str(e)}",
            headers={"WWW-Authenticate": "Bearer"},
        )
    except ValueError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=f"Invalid token claims: {str(e)}",
            headers={"WWW-Authenticate": "Bearer"},
        )


class AuthSession:
    """Outcome of authenticating a request."""

    def __init__(self, profile_id: Optional[UUID], principal: Optional[Principal]):
        self.profile_id = profile_id
        self.principal = principal

    @property
    def orphaned(self) -> bool:
        """Authenticated, but no profile row backs the session."""
        return self.profile_id is not None and self.principal is None


def get_session(
    profile_id: Optional[UUID] = Depends(get_authenticated_profile_id),
    db: Session = Depends(get_db),
) -> AuthSession:
    principal = resolve_principal(db, profile_id) if profile_id else None
    return AuthSession(profile_id, principal)


def _client_ip(request: Request) -> Optional[str]:
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else None


def enforce_access(
    db: Session,
    session: AuthSession,
    route: str,
    request: Optional[Request] = None,
) -> Decision:
    """Run the access policy for a route and record the outcome.

    Orphaned sessions (valid token, missing profile) are denied outright.
    Decisions on staff/admin surfaces are appended to the audit log.
    """
    matched_prefix, rule = resolve_rule(route)

    if session.orphaned and rule.requires_auth:
        decision = Decision(DecisionKind.DENY_NOT_FOUND)
    else:
        decision = decide_for_rule(session.principal, rule)

    access_decisions_total.labels(route=matched_prefix, decision=decision.kind.value).inc()

    if rule.is_gated:
        log_access_decision(
            db,
            actor_id=session.principal.id if session.principal else None,
            route=route,
            decision=decision,
            ip_address=_client_ip(request) if request else None,
            user_agent=request.headers.get("User-Agent") if request else None,
            session_subject=session.profile_id if session.orphaned else None,
        )
        db.commit()

    return decision


def require_access(route: str) -> Callable:
    """Create a dependency that guards an endpoint with the access policy.

    Args:
        route: The product surface the endpoint serves (e.g. "/app/inbox")

    Returns:
        Callable: FastAPI dependency returning the allowed Principal

    Raises:
        AccessDenied: If the policy redirects or hides the route

    Example:
        @router.get("/operator/queue")
        def queue(principal: Principal = Depends(require_access("/operator"))):
            ...
    """

    def access_dependency(
        request: Request,
        session: AuthSession = Depends(get_session),
        db: Session = Depends(get_db),
    ) -> Principal:
        decision = enforce_access(db, session, route, request)
        if not decision.allowed:
            raise AccessDenied(decision, route)
        return session.principal

    return access_dependency
