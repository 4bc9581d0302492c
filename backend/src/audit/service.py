"""Audit logging service for security and operational events.

Every entry is immutable. All security-relevant events and every mutation
of mail, locker and billing state must be logged through this service.

Audit Events:
- ACCESS_ALLOWED, ACCESS_DENIED (staff/admin surfaces only)
- MAIL_ITEM_RECEIVED, MAIL_ITEM_UPDATED, MAIL_ITEM_PROCESSED
- ACTION_REQUESTED, ACTION_HELD, ACTION_RELEASED, ACTION_CONFIRMED, ACTION_FULFILLED
- LOCATION_CREATED, CLUSTER_CREATED, CLUSTER_DELETED, MAILBOX_CREATED, MAILBOX_DELETED
- SUBSCRIPTION_ACTIVATED, SUBSCRIPTION_CANCELLED
- REFERRAL_CODE_GENERATED, REFERRAL_CASHBACK_RECORDED, REFERRAL_CASHBACK_PAID
"""

from typing import Any, Dict, Optional, Union
from uuid import UUID

from sqlalchemy.orm import Session

from domain.access.policy import Decision
from models.audit_log import AuditLog


def log_audit_event(
    db: Session,
    action: str,
    actor_id: Optional[UUID] = None,
    entity_type: Optional[str] = None,
    entity_id: Optional[Union[UUID, str]] = None,
    metadata: Optional[Dict[str, Any]] = None,
    ip_address: Optional[str] = None,
    user_agent: Optional[str] = None,
) -> AuditLog:
    """Create an audit log entry.

    The entry is flushed, not committed; it becomes durable together with
    the caller's transaction.

    Args:
        db: Database session
        action: Event action (e.g., "ACTION_FULFILLED", "ACCESS_DENIED")
        actor_id: Profile that performed the action (None for anonymous/system events)
        entity_type: Type of entity affected (e.g., "mail_item", "route")
        entity_id: ID of affected entity, or the route path for access decisions
        metadata: Additional context as JSON
        ip_address: Client IP address (IPv4 or IPv6)
        user_agent: Client User-Agent header

    Returns:
        AuditLog: The created audit log entry

    Example:
        log_audit_event(
            db=db,
            action="ACTION_FULFILLED",
            actor_id=operator.id,
            entity_type="action_request",
            entity_id=request.id,
            metadata={"action_type": "SCAN"},
        )
    """
    audit_entry = AuditLog(
        actor_id=actor_id,
        action=action,
        entity_type=entity_type,
        entity_id=str(entity_id) if entity_id is not None else None,
        metadata_json=metadata,
        ip_address=ip_address,
        user_agent=user_agent,
    )

    db.add(audit_entry)
    db.flush()

    return audit_entry


def log_access_decision(
    db: Session,
    actor_id: Optional[UUID],
    route: str,
    decision: Decision,
    ip_address: Optional[str] = None,
    user_agent: Optional[str] = None,
    session_subject: Optional[UUID] = None,
) -> AuditLog:
    """Record an access policy decision for a back-office route.

    session_subject is the token subject of a session with no profile row;
    actor_id only ever names an existing profile.
    """
    metadata = decision.to_dict()
    if session_subject is not None:
        metadata["session_subject"] = str(session_subject)
    return log_audit_event(
        db=db,
        action="ACCESS_ALLOWED" if decision.allowed else "ACCESS_DENIED",
        actor_id=actor_id,
        entity_type="route",
        entity_id=route,
        metadata=metadata,
        ip_address=ip_address,
        user_agent=user_agent,
    )
