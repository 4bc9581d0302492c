"""Roles, plan tiers and KYC status for mailroom principals.

Role Hierarchy:
- SYSTEM_ADMIN: Full back-office access, settings, packages, IP allowlist, billing config
- OPERATOR: Mail handling, lockers, user management, activity logs
- BUSINESS_MEMBER: Business inbox of their business account
- END_USER: Personal inbox

Permission Matrix:
┌──────────────────────────┬──────────────┬──────────┬─────────────────┬──────────┐
│ Surface                  │ SYSTEM_ADMIN │ OPERATOR │ BUSINESS_MEMBER │ END_USER │
├──────────────────────────┼──────────────┼──────────┼─────────────────┼──────────┤
│ Settings / Packages / IP │      ✓       │          │                 │          │
│ Users / Activity logs    │      ✓       │    ✓     │                 │          │
│ Mail queue / Lockers     │      ✓       │    ✓     │                 │          │
│ Business inbox           │              │          │        ✓        │          │
│ Personal inbox           │              │          │                 │    ✓     │
└──────────────────────────┴──────────────┴──────────┴─────────────────┴──────────┘
"""

from enum import Enum


class UserRole(str, Enum):
    """Principal roles.

    Values are stored as TEXT in the database and must match exactly.
    """
    END_USER = "END_USER"
    BUSINESS_MEMBER = "BUSINESS_MEMBER"
    OPERATOR = "OPERATOR"
    SYSTEM_ADMIN = "SYSTEM_ADMIN"


class PlanType(str, Enum):
    FREE = "FREE"
    BASIC = "BASIC"
    PREMIUM = "PREMIUM"
    BUSINESS = "BUSINESS"


class KycStatus(str, Enum):
    """Identity verification status (KYC for people, KYB for businesses)."""
    NOT_STARTED = "NOT_STARTED"
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


STAFF_ROLES = frozenset({UserRole.OPERATOR, UserRole.SYSTEM_ADMIN})

PAID_PLANS = frozenset({PlanType.BASIC, PlanType.PREMIUM, PlanType.BUSINESS})


def is_staff(role: UserRole) -> bool:
    """Operators and system admins share the back-office surface.

    Examples:
        >>> is_staff(UserRole.OPERATOR)
        True
        >>> is_staff(UserRole.END_USER)
        False
    """
    return role in STAFF_ROLES


def is_paid(plan_type: PlanType) -> bool:
    return plan_type in PAID_PLANS
