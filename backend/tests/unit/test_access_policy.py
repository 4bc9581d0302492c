"""Unit tests for the access policy engine

Covers rule precedence, longest-prefix resolution and the not-found
answer paid routes give to free users.
"""

from uuid import uuid4

import pytest

from auth.roles import KycStatus, PlanType, UserRole
from domain.access.policy import (
    DecisionKind,
    KYC_ROUTE,
    LOGIN_ROUTE,
    OPERATOR_HOME_ROUTE,
    USER_HOME_ROUTE,
    decide,
    resolve_rule,
)
from domain.identity import Principal


def make_principal(
    role=UserRole.END_USER,
    plan=PlanType.BASIC,
    kyc=KycStatus.APPROVED,
) -> Principal:
    return Principal(
        id=uuid4(),
        email="someone@example.com",
        role=role,
        plan_type=plan,
        kyc_status=kyc,
    )


class TestRouteResolution:

    def test_longest_prefix_wins(self):
        prefix, rule = resolve_rule("/admin/settings/general")
        assert prefix == "/admin/settings"
        assert rule.admin_only is True

    def test_prefix_matches_whole_segments(self):
        prefix, _ = resolve_rule("/administrator")
        assert prefix == "/"

    def test_query_string_and_trailing_slash_ignored(self):
        assert resolve_rule("/app/inbox/?page=2")[0] == "/app/inbox"

    def test_unknown_route_is_public(self):
        assert decide(None, "/pricing-page").kind == DecisionKind.ALLOW


class TestDecisionPrecedence:

    def test_signed_out_redirects_to_login(self):
        decision = decide(None, "/app/inbox")
        assert decision.kind == DecisionKind.REDIRECT
        assert decision.target == LOGIN_ROUTE

    def test_public_routes_allow_anyone(self):
        for route in ("/", "/login", "/signup", "/terms"):
            assert decide(None, route).allowed

    def test_end_user_on_staff_route_goes_home(self):
        decision = decide(make_principal(), "/operator")
        assert decision.target == USER_HOME_ROUTE

    def test_operator_on_admin_only_route(self):
        decision = decide(make_principal(role=UserRole.OPERATOR), "/admin/settings")
        assert decision.kind == DecisionKind.REDIRECT
        assert decision.target == OPERATOR_HOME_ROUTE

    def test_operator_allowed_on_staff_routes(self):
        operator = make_principal(role=UserRole.OPERATOR, plan=PlanType.FREE)
        assert decide(operator, "/admin/users").allowed
        assert decide(operator, "/operator/queue").allowed

    def test_admin_allowed_everywhere_staff(self):
        admin = make_principal(role=UserRole.SYSTEM_ADMIN)
        for route in ("/admin/settings", "/admin/billing", "/operator", "/admin/activity"):
            assert decide(admin, route).allowed

    def test_free_plan_gets_not_found_on_paid_routes(self):
        decision = decide(make_principal(plan=PlanType.FREE), "/app/inbox")
        assert decision.kind == DecisionKind.DENY_NOT_FOUND
        assert decision.target is None

    def test_plan_check_precedes_kyc_check(self):
        principal = make_principal(plan=PlanType.FREE, kyc=KycStatus.PENDING)
        assert decide(principal, "/app/inbox").kind == DecisionKind.DENY_NOT_FOUND

    @pytest.mark.parametrize("kyc", [KycStatus.PENDING, KycStatus.REJECTED])
    def test_blocking_kyc_redirects_to_kyc_page(self, kyc):
        decision = decide(make_principal(kyc=kyc), "/app/inbox")
        assert decision.target == KYC_ROUTE

    def test_not_started_kyc_is_not_blocking(self):
        assert decide(make_principal(kyc=KycStatus.NOT_STARTED), "/app/inbox").allowed

    def test_kyc_page_itself_is_reachable_while_pending(self):
        assert decide(make_principal(kyc=KycStatus.PENDING), "/app/kyc").allowed

    def test_free_user_can_reach_billing_to_upgrade(self):
        assert decide(make_principal(plan=PlanType.FREE), "/app/billing").allowed

    def test_business_kyb_page_skips_kyc_gate(self):
        member = make_principal(role=UserRole.BUSINESS_MEMBER, kyc=KycStatus.PENDING)
        assert decide(member, "/business/kyb").allowed
        assert decide(member, "/business").target == KYC_ROUTE
