"""Access decision endpoint.

The web front end asks here before rendering a page; the answer comes from
the same policy engine that guards every API router.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Request
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from auth.dependencies import AuthSession, enforce_access, get_session
from database import get_db
from domain.access.policy import DecisionKind, resolve_rule


router = APIRouter(prefix="/access", tags=["access"])


class DecideRequest(BaseModel):
    route: str = Field(..., min_length=1, max_length=500, examples=["/app/inbox"])


class DecideResponse(BaseModel):
    route: str
    matched_prefix: str
    decision: DecisionKind
    target: Optional[str] = None


@router.post("/decide", response_model=DecideResponse, summary="Decide access to a UI route")
def decide_access(
    body: DecideRequest,
    request: Request,
    session: AuthSession = Depends(get_session),
    db: Session = Depends(get_db),
) -> DecideResponse:
    """Return ALLOW, REDIRECT (with target) or DENY_NOT_FOUND for the caller."""
    matched_prefix, _ = resolve_rule(body.route)
    decision = enforce_access(db, session, body.route, request)
    return DecideResponse(
        route=body.route,
        matched_prefix=matched_prefix,
        decision=decision.kind,
        target=decision.target,
    )
