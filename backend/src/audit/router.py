"""Activity log endpoints for back-office staff.

Read-only. Audit logs are immutable and cannot be created, updated, or
deleted through the API.
"""

from datetime import datetime
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from auth.dependencies import require_access
from database import get_db
from domain.identity import Principal
from models.audit_log import AuditLog
from .schemas import AuditLogListResponse


router = APIRouter(prefix="/audit", tags=["Audit Logs"])


@router.get(
    "",
    response_model=AuditLogListResponse,
    summary="Query activity log (staff only)",
)
def query_audit_logs(
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_access("/admin/activity")),
    action: Optional[str] = Query(None, description="Filter by action type (e.g., ACCESS_DENIED)"),
    entity_type: Optional[str] = Query(None, description="Filter by entity type (e.g., mail_item)"),
    actor_id: Optional[UUID] = Query(None, description="Filter by acting profile id"),
    start_date: Optional[datetime] = Query(None, description="Minimum created_at timestamp (ISO 8601)"),
    end_date: Optional[datetime] = Query(None, description="Maximum created_at timestamp (ISO 8601)"),
    page: int = Query(1, ge=1, description="Page number (1-indexed)"),
    per_page: int = Query(50, ge=1, le=100, description="Entries per page (max 100)"),
) -> AuditLogListResponse:
    """Query the activity log, newest first."""
    query = db.query(AuditLog)

    if action:
        query = query.filter(AuditLog.action == action)
    if entity_type:
        query = query.filter(AuditLog.entity_type == entity_type)
    if actor_id:
        query = query.filter(AuditLog.actor_id == actor_id)
    if start_date:
        query = query.filter(AuditLog.created_at >= start_date)
    if end_date:
        query = query.filter(AuditLog.created_at <= end_date)

    total = query.count()

    offset = (page - 1) * per_page
    entries = (
        query.order_by(AuditLog.created_at.desc(), AuditLog.id)
        .offset(offset)
        .limit(per_page)
        .all()
    )

    return AuditLogListResponse(
        entries=entries,
        total=total,
        page=page,
        per_page=per_page,
    )
