"""Pydantic schemas for billing endpoints."""

from datetime import datetime
from decimal import Decimal
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict

from auth.roles import PlanType
from domain.billing import BillingCycle, SubscriptionStatus


class CheckoutRequest(BaseModel):
    plan_type: PlanType
    billing_cycle: BillingCycle = BillingCycle.MONTHLY


class ActivateRequest(BaseModel):
    location_id: Optional[UUID] = None


class SubscriptionResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    profile_id: UUID
    mailbox_id: Optional[UUID] = None
    plan_type: PlanType
    billing_cycle: BillingCycle
    status: SubscriptionStatus
    amount: Optional[Decimal] = None
    invoice_url: Optional[str] = None
    started_at: Optional[datetime] = None
    next_billing_date: Optional[datetime] = None
