"""Pydantic schemas for mail item endpoints."""

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, model_validator

from auth.roles import KycStatus
from domain.mail import ActionPriority, ActionStatus, ActionType


class MailItemResponse(BaseModel):
    """Mail item as shown to its owner or an operator."""
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    profile_id: Optional[UUID] = None
    business_account_id: Optional[UUID] = None
    sender: str
    subject: Optional[str] = None
    received_at: datetime
    status: str = Field(..., description="Lifecycle status (RECEIVED, SCANNED, ...)")
    display_status: str = Field(..., description="'archived' when archived, else the lowercased status")
    is_archived: bool
    tags: List[str] = Field(default_factory=list)
    category: Optional[str] = None
    notes: Optional[str] = None
    forward_address: Optional[str] = None
    envelope_scan_url: Optional[str] = Field(None, description="Signed URL, null when unavailable")
    full_scan_url: Optional[str] = Field(None, description="Signed URL, null until scanned or when unavailable")


class MailItemListResponse(BaseModel):
    items: List[MailItemResponse]
    total: int = Field(..., description="Items matching the filters")
    total_pages: int
    page: int
    page_size: int


class MailItemUpdate(BaseModel):
    """Owner edits. Only fields present in the body are applied."""
    is_archived: Optional[bool] = None
    tags: Optional[List[str]] = Field(None, max_length=50)
    notes: Optional[str] = Field(None, max_length=5000)


class TagListResponse(BaseModel):
    tags: List[str]


class ActionRequestCreate(BaseModel):
    action_type: ActionType
    priority: ActionPriority = ActionPriority.MEDIUM
    forward_address: Optional[str] = Field(None, max_length=1000)
    notes: Optional[str] = Field(None, max_length=2000)


class ActionRequestResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    mail_item_id: UUID
    requested_by: UUID
    action_type: ActionType
    status: ActionStatus
    priority: ActionPriority
    forward_address: Optional[str] = None
    notes: Optional[str] = None
    confirmed_at: Optional[datetime] = None
    requested_at: datetime
    completed_at: Optional[datetime] = None


class MailItemReceive(BaseModel):
    """Operator log-in of a physical item for exactly one owner."""
    profile_id: Optional[UUID] = None
    business_account_id: Optional[UUID] = None
    sender: str = Field(..., min_length=1, max_length=500)
    subject: Optional[str] = Field(None, max_length=1000)
    envelope_scan_ref: Optional[str] = Field(None, max_length=1024)
    category: Optional[str] = Field(None, max_length=100)
    received_at: Optional[datetime] = None


class FulfillActionRequest(BaseModel):
    scan_ref: Optional[str] = Field(None, max_length=1024, description="Storage key of the full scan (SCAN)")
    forward_address: Optional[str] = Field(None, max_length=1000, description="Destination (FORWARD)")


class FulfillActionResponse(BaseModel):
    status: ActionStatus = Field(..., description="COMPLETED, or REQUIRES_APPROVAL when held by verification")
    reason: Optional[str] = None
    request: ActionRequestResponse
    mail_item: MailItemResponse


class OperatorQueueResponse(BaseModel):
    open_requests: List[ActionRequestResponse]
    awaiting_approval: List[ActionRequestResponse]


class VerificationReview(BaseModel):
    """Operator decision on a KYC (profile) or KYB (business account) review."""
    profile_id: Optional[UUID] = None
    business_account_id: Optional[UUID] = None
    status: KycStatus

    @model_validator(mode="after")
    def exactly_one_subject(self):
        if (self.profile_id is None) == (self.business_account_id is None):
            raise ValueError("Provide exactly one of profile_id or business_account_id")
        return self


class VerificationReviewResponse(BaseModel):
    status: KycStatus
    released_requests: int
