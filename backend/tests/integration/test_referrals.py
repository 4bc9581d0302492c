"""Integration tests for referral codes, attribution and cashback

Tests cover:
- Idempotent code generation and collision handling
- Attaching a referrer at signup
- Deferred Referral creation
- Stats recomputed from the ledger
"""

from decimal import Decimal
from uuid import uuid4

import pytest
from sqlalchemy.orm import Session

from domain.errors import NotFoundError, UnauthorizedError, ValidationFailed
from domain.referrals import derive_base_code
from models import AuditLog, Referral, Subscription
from referrals.service import ReferralService


pytestmark = pytest.mark.integration


@pytest.fixture
def referrals(db_session: Session) -> ReferralService:
    return ReferralService(db_session, "https://mailroom.test/")


class TestCodes:

    def test_generation_is_idempotent(self, referrals, paid_user, db_session):
        first = referrals.generate_referral_code(paid_user.id)
        second = referrals.generate_referral_code(paid_user.id)

        assert first == second == derive_base_code(str(paid_user.id))
        assert db_session.query(AuditLog).filter(
            AuditLog.action == "REFERRAL_CODE_GENERATED"
        ).count() == 1

    def test_collision_gets_suffix(self, referrals, paid_user, free_user, db_session):
        free_user.referral_code = derive_base_code(str(paid_user.id))
        db_session.commit()

        code = referrals.generate_referral_code(paid_user.id)

        assert code != free_user.referral_code
        assert len(code) == 8

    def test_unknown_profile(self, referrals):
        with pytest.raises(NotFoundError):
            referrals.generate_referral_code(uuid4())


class TestAttribution:

    def test_attach_and_defer(self, referrals, paid_user, free_user, db_session):
        code = referrals.generate_referral_code(paid_user.id)

        assert referrals.attach_referrer(free_user.id, code.lower()) is True
        db_session.refresh(free_user)
        assert free_user.referred_by == paid_user.id
        assert db_session.query(Referral).count() == 0

    def test_attach_rejects_bad_codes(self, referrals, paid_user, free_user):
        code = referrals.generate_referral_code(paid_user.id)

        assert referrals.attach_referrer(free_user.id, "NOPE0000") is False
        assert referrals.attach_referrer(paid_user.id, code) is False

    def test_attach_only_once(self, referrals, paid_user, free_user, admin_user):
        first = referrals.generate_referral_code(paid_user.id)
        second = referrals.generate_referral_code(admin_user.id)

        assert referrals.attach_referrer(free_user.id, first) is True
        assert referrals.attach_referrer(free_user.id, second) is False

    def test_record_created_once(self, referrals, paid_user, free_user, db_session):
        referrals.attach_referrer(free_user.id, referrals.generate_referral_code(paid_user.id))

        referral = referrals.create_referral_record(free_user.id)
        assert referral is not None
        assert referral.status == "pending"
        assert referral.referral_code == paid_user.referral_code
        db_session.commit()

        assert referrals.create_referral_record(free_user.id) is None

    def test_no_referrer_no_record(self, referrals, free_user):
        assert referrals.create_referral_record(free_user.id) is None

    def test_activation_marks_referral_active(self, referrals, paid_user, free_user, db_session):
        referrals.attach_referrer(free_user.id, referrals.generate_referral_code(paid_user.id))

        referral = referrals.on_subscription_activated(free_user.id, "PREMIUM")
        db_session.commit()

        assert referral.status == "active"
        assert referral.subscription_plan == "PREMIUM"


class TestLedger:

    @pytest.fixture
    def referral(self, referrals, paid_user, free_user, db_session) -> Referral:
        referrals.attach_referrer(free_user.id, referrals.generate_referral_code(paid_user.id))
        referral = referrals.on_subscription_activated(free_user.id, "BASIC")
        db_session.add(Subscription(profile_id=free_user.id, plan_type="BASIC", status="ACTIVE"))
        db_session.commit()
        return referral

    def test_stats_from_ledger(self, referrals, referral, admin_user, paid_user, principal_of):
        admin = principal_of(admin_user)
        paid_txn = referrals.record_cashback(admin, referral.id, Decimal("100.00"), "First month")
        referrals.record_cashback(admin, referral.id, Decimal("50.00"))
        referrals.mark_transaction_paid(admin, paid_txn.id)

        overview = referrals.get_referral_overview(principal_of(paid_user))

        assert overview.code == paid_user.referral_code
        assert overview.share_link == f"https://mailroom.test/signup?ref={overview.code}"
        assert overview.stats.total_referrals == 1
        assert overview.stats.active_referrals == 1
        assert overview.stats.total_earnings == Decimal("100.00")
        assert overview.stats.pending_earnings == Decimal("50.00")
        assert len(overview.transactions) == 2

    def test_mark_paid_is_idempotent(self, referrals, referral, admin_user, principal_of):
        admin = principal_of(admin_user)
        txn = referrals.record_cashback(admin, referral.id, Decimal("10"))
        paid_at = referrals.mark_transaction_paid(admin, txn.id).paid_at

        assert referrals.mark_transaction_paid(admin, txn.id).paid_at == paid_at

    def test_non_positive_cashback_rejected(self, referrals, referral, admin_user, principal_of):
        with pytest.raises(ValidationFailed):
            referrals.record_cashback(principal_of(admin_user), referral.id, Decimal("0"))

    def test_operators_cannot_pay_out(self, referrals, referral, admin_user, operator_user, principal_of):
        txn = referrals.record_cashback(principal_of(admin_user), referral.id, Decimal("25"))

        with pytest.raises(UnauthorizedError):
            referrals.record_cashback(principal_of(operator_user), referral.id, Decimal("25"))
        with pytest.raises(UnauthorizedError):
            referrals.mark_transaction_paid(principal_of(operator_user), txn.id)

    def test_overview_without_code(self, referrals, free_user, principal_of):
        overview = referrals.get_referral_overview(principal_of(free_user))
        assert overview.code is None
        assert overview.share_link is None
        assert overview.stats.total_referrals == 0


class TestReferralApi:

    def test_free_user_can_generate_code(self, client, free_user, auth_headers):
        headers = auth_headers(free_user)
        first = client.post("/api/v1/referrals/code", headers=headers)
        second = client.post("/api/v1/referrals/code", headers=headers)

        assert first.status_code == 200
        assert first.json()["code"] == second.json()["code"]
        assert first.json()["share_link"].endswith(f"/signup?ref={first.json()['code']}")

    def test_cashback_is_admin_only(self, client, operator_user, auth_headers):
        response = client.post(
            f"/api/v1/referrals/{uuid4()}/cashback",
            json={"amount": "10.00"},
            headers=auth_headers(operator_user),
        )
        assert response.status_code == 303
        assert response.headers["location"] == "/admin/users"

    def test_signed_out_redirected_to_login(self, client):
        response = client.get("/api/v1/referrals")
        assert response.status_code == 303
        assert response.headers["location"] == "/login"
