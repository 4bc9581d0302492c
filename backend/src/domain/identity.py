"""Resolved principal passed explicitly to every core operation."""

from dataclasses import dataclass
from typing import Optional
from uuid import UUID

from auth.roles import KycStatus, PlanType, UserRole, is_paid, is_staff


@dataclass(frozen=True)
class Principal:
    """Who is calling, with the attributes access decisions depend on.

    Built from the caller's profile row; never from token claims alone, since
    role, plan and KYC status change independently of the session.
    """
    id: UUID
    email: str
    role: UserRole
    plan_type: PlanType
    kyc_status: KycStatus
    business_account_id: Optional[UUID] = None

    @property
    def is_staff(self) -> bool:
        return is_staff(self.role)

    @property
    def is_system_admin(self) -> bool:
        return self.role == UserRole.SYSTEM_ADMIN

    @property
    def has_paid_plan(self) -> bool:
        return is_paid(self.plan_type)
