"""Pydantic schemas for authentication endpoints"""

from typing import Optional
from uuid import UUID

from pydantic import BaseModel, EmailStr, Field

from .roles import KycStatus, PlanType, UserRole


class MeResponse(BaseModel):
    """The resolved principal behind the caller's token.

    Attributes:
        id: Profile id (token subject)
        email: Profile email
        role: Resolved role
        plan_type: Current plan tier
        kyc_status: Identity verification status
        business_account_id: Business the profile belongs to, if any
        home_route: Where the UI should land this principal
    """
    id: UUID
    email: EmailStr
    role: UserRole
    plan_type: PlanType
    kyc_status: KycStatus
    business_account_id: Optional[UUID] = None
    home_route: str = Field(..., examples=["/app"])
