"""Access policy engine.

One decision function consulted at every route boundary:

    decide(principal, route) -> ALLOW | REDIRECT(target) | DENY_NOT_FOUND

Rules, first match wins:
1. Route needs a session and there is no principal → REDIRECT /login
2. Staff route and role is not OPERATOR/SYSTEM_ADMIN → REDIRECT /app
3. Admin-only route and role is OPERATOR → REDIRECT /admin/users
4. Paid route and plan is FREE → DENY_NOT_FOUND
5. KYC route and KYC is PENDING/REJECTED → REDIRECT /app/kyc
6. ALLOW

Paid-only routes answer 404 to free users rather than redirecting them, so
the existence of paid URLs is not disclosed.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional, Tuple

from auth.roles import KycStatus, UserRole
from domain.identity import Principal

LOGIN_ROUTE = "/login"
USER_HOME_ROUTE = "/app"
OPERATOR_HOME_ROUTE = "/admin/users"
KYC_ROUTE = "/app/kyc"

KYC_BLOCKING_STATUSES = frozenset({KycStatus.PENDING, KycStatus.REJECTED})


class DecisionKind(str, Enum):
    ALLOW = "ALLOW"
    REDIRECT = "REDIRECT"
    DENY_NOT_FOUND = "DENY_NOT_FOUND"


@dataclass(frozen=True)
class Decision:
    kind: DecisionKind
    target: Optional[str] = None

    @property
    def allowed(self) -> bool:
        return self.kind == DecisionKind.ALLOW

    def to_dict(self) -> Dict[str, Optional[str]]:
        return {"decision": self.kind.value, "target": self.target}


ALLOW = Decision(DecisionKind.ALLOW)
DENY_NOT_FOUND = Decision(DecisionKind.DENY_NOT_FOUND)


def redirect(target: str) -> Decision:
    return Decision(DecisionKind.REDIRECT, target)


@dataclass(frozen=True)
class RouteRule:
    """Requirements attached to a route prefix."""
    requires_auth: bool = True
    staff_only: bool = False
    admin_only: bool = False
    requires_paid_plan: bool = False
    requires_kyc: bool = False

    @property
    def is_gated(self) -> bool:
        """Decisions on staff surfaces go to the audit trail."""
        return self.staff_only or self.admin_only


PUBLIC = RouteRule(requires_auth=False)
AUTHENTICATED = RouteRule()
STAFF = RouteRule(staff_only=True)
ADMIN = RouteRule(staff_only=True, admin_only=True)
PAID = RouteRule(requires_paid_plan=True)
PAID_KYC = RouteRule(requires_paid_plan=True, requires_kyc=True)

# Longest matching prefix wins
ROUTE_RULES: Dict[str, RouteRule] = {
    "/": PUBLIC,
    "/login": PUBLIC,
    "/signup": PUBLIC,
    "/terms": PUBLIC,
    "/app": AUTHENTICATED,
    "/app/kyc": AUTHENTICATED,
    "/app/pricing": AUTHENTICATED,
    "/app/billing": AUTHENTICATED,
    "/app/referrals": AUTHENTICATED,
    "/app/settings": AUTHENTICATED,
    "/app/inbox": PAID_KYC,
    "/app/archived": PAID_KYC,
    "/app/tags": PAID_KYC,
    "/app/mailboxes": PAID_KYC,
    "/business": PAID_KYC,
    "/business/kyb": PAID,
    "/operator": STAFF,
    "/admin": STAFF,
    "/admin/users": STAFF,
    "/admin/activity": STAFF,
    "/admin/settings": ADMIN,
    "/admin/packages": ADMIN,
    "/admin/ip-whitelist": ADMIN,
    "/admin/billing": ADMIN,
}


def _normalize(route: str) -> str:
    path = "/" + route.split("?", 1)[0].strip("/")
    return path


def resolve_rule(route: str, rules: Optional[Dict[str, RouteRule]] = None) -> Tuple[str, RouteRule]:
    """Find the rule for a route by longest path-prefix match.

    Prefixes match whole path segments: "/admin" covers "/admin/users" but
    not "/administrator". Unknown routes fall back to the "/" rule.
    """
    rules = rules if rules is not None else ROUTE_RULES
    path = _normalize(route)
    best_prefix = "/"
    for prefix in rules:
        if prefix == "/":
            continue
        if path == prefix or path.startswith(prefix + "/"):
            if len(prefix) > len(best_prefix):
                best_prefix = prefix
    return best_prefix, rules.get(best_prefix, PUBLIC)


def decide_for_rule(principal: Optional[Principal], rule: RouteRule) -> Decision:
    """Apply the precedence rules to an already-resolved route rule."""
    if not rule.requires_auth:
        return ALLOW

    if principal is None:
        return redirect(LOGIN_ROUTE)

    if rule.staff_only and principal.role not in (UserRole.OPERATOR, UserRole.SYSTEM_ADMIN):
        return redirect(USER_HOME_ROUTE)

    if rule.admin_only and principal.role == UserRole.OPERATOR:
        return redirect(OPERATOR_HOME_ROUTE)

    if rule.requires_paid_plan and not principal.has_paid_plan:
        return DENY_NOT_FOUND

    if rule.requires_kyc and principal.kyc_status in KYC_BLOCKING_STATUSES:
        return redirect(KYC_ROUTE)

    return ALLOW


def decide(principal: Optional[Principal], route: str) -> Decision:
    """Decide access for a principal (None when signed out) to a route.

    Example:
        >>> decide(None, "/app/inbox")
        Decision(kind=<DecisionKind.REDIRECT: 'REDIRECT'>, target='/login')
    """
    _, rule = resolve_rule(route)
    return decide_for_rule(principal, rule)
