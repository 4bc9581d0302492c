"""Identity & role resolver.

Turns an authenticated profile id into a Principal by reading the profile
row. There is no fallback role: a session without a profile row resolves to
None and every caller treats that as a denial.
"""

import logging
from typing import Optional
from uuid import UUID

from sqlalchemy.orm import Session

from auth.roles import KycStatus, PlanType, UserRole
from domain.identity import Principal
from models.profile import Profile

logger = logging.getLogger(__name__)


def principal_from_profile(profile: Profile) -> Principal:
    return Principal(
        id=profile.id,
        email=profile.email,
        role=UserRole(profile.role),
        plan_type=PlanType(profile.plan_type),
        kyc_status=KycStatus(profile.kyc_status),
        business_account_id=profile.business_account_id,
    )


def resolve_principal(db: Session, profile_id: UUID) -> Optional[Principal]:
    """Load the principal for an authenticated profile id.

    Returns:
        Principal, or None when no profile row exists (fail closed)
    """
    profile = db.get(Profile, profile_id)
    if profile is None:
        logger.warning("Authenticated session without profile", extra={"user_id": profile_id})
        return None
    return principal_from_profile(profile)
