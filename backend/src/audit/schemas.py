"""Pydantic schemas for audit log endpoints.

Audit logs are read-only (no create/update/delete operations).
"""

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class AuditLogResponse(BaseModel):
    """Audit log entry as returned by the activity endpoint."""
    model_config = ConfigDict(from_attributes=True, populate_by_name=True)

    id: UUID = Field(..., description="Audit log entry unique identifier")
    actor_id: Optional[UUID] = Field(None, description="Profile that performed the action (None for anonymous)")
    action: str = Field(..., description="Event action (ACCESS_DENIED, ACTION_FULFILLED, etc.)")
    entity_type: Optional[str] = Field(None, description="Type of entity affected (mail_item, route, etc.)")
    entity_id: Optional[str] = Field(None, description="ID of affected entity or route path")
    metadata: Optional[dict] = Field(None, validation_alias="metadata_json", description="Additional context as JSON")
    ip_address: Optional[str] = Field(None, description="Client IP address")
    user_agent: Optional[str] = Field(None, description="Client User-Agent header")
    created_at: datetime = Field(..., description="Event timestamp")


class AuditLogListResponse(BaseModel):
    """Audit log page with pagination metadata."""
    entries: list[AuditLogResponse] = Field(..., description="List of audit log entries")
    total: int = Field(..., description="Total number of entries matching filters")
    page: int = Field(..., description="Current page number")
    per_page: int = Field(..., description="Entries per page")
