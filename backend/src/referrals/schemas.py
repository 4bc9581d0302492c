"""Pydantic schemas for referral endpoints."""

from datetime import datetime
from decimal import Decimal
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class ReferralCodeResponse(BaseModel):
    code: str
    share_link: str


class ReferralStatsResponse(BaseModel):
    total_referrals: int
    active_referrals: int
    total_earnings: Decimal
    pending_earnings: Decimal


class ReferredAccountResponse(BaseModel):
    id: UUID
    referred_id: UUID
    status: str
    subscription_plan: Optional[str] = None
    has_active_subscription: bool
    created_at: datetime


class ReferralTransactionResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    referral_id: UUID
    amount: Decimal
    status: str
    description: Optional[str] = None
    invoice_ref: Optional[str] = None
    created_at: datetime
    paid_at: Optional[datetime] = None


class ReferralOverviewResponse(BaseModel):
    code: Optional[str] = Field(None, description="Null until the code is generated")
    share_link: Optional[str] = None
    stats: ReferralStatsResponse
    referrals: List[ReferredAccountResponse]
    transactions: List[ReferralTransactionResponse]


class AttachReferrerRequest(BaseModel):
    code: str = Field(..., min_length=1, max_length=20)


class AttachReferrerResponse(BaseModel):
    attached: bool


class CashbackCreate(BaseModel):
    amount: Decimal = Field(..., gt=0)
    description: Optional[str] = Field(None, max_length=500)
