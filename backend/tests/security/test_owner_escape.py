"""Security tests for owner isolation

Every mail item belongs to exactly one profile or one business account.
Nothing a caller sends can widen that scope.

Tests cover:
- Reading, editing and acting on another profile's mail
- Business members reading another business's mail
- Personal and business inboxes staying separate
"""

import pytest
from sqlalchemy.orm import Session

from models import BusinessAccount, MailItem, Profile


pytestmark = pytest.mark.security

API = "/api/v1"


@pytest.fixture
def other_user(db_session: Session) -> Profile:
    profile = Profile(email="other@example.com", role="END_USER", plan_type="PREMIUM", kyc_status="APPROVED")
    db_session.add(profile)
    db_session.commit()
    db_session.refresh(profile)
    return profile


@pytest.fixture
def other_business_member(db_session: Session) -> Profile:
    account = BusinessAccount(business_name="Rival Imports", kyb_status="APPROVED")
    db_session.add(account)
    db_session.flush()
    member = Profile(
        email="rival@example.com",
        role="BUSINESS_MEMBER",
        plan_type="BUSINESS",
        kyc_status="APPROVED",
        business_account_id=account.id,
    )
    db_session.add(member)
    db_session.commit()
    db_session.refresh(member)
    return member


def _mail_for(db_session: Session, profile_id=None, business_account_id=None, sender="Bank of Example") -> MailItem:
    item = MailItem(
        profile_id=profile_id,
        business_account_id=business_account_id,
        sender=sender,
        subject="Statement",
        status="SCANNED",
    )
    db_session.add(item)
    db_session.commit()
    db_session.refresh(item)
    return item


class TestPersonalMail:

    def test_list_never_shows_other_profiles(self, client, db_session, paid_user, other_user, auth_headers):
        _mail_for(db_session, profile_id=paid_user.id, sender="Mine")
        _mail_for(db_session, profile_id=other_user.id, sender="Theirs")

        response = client.get(f"{API}/mail-items", headers=auth_headers(paid_user))
        assert [item["sender"] for item in response.json()["items"]] == ["Mine"]

    def test_read_other_profiles_item(self, client, db_session, paid_user, other_user, auth_headers):
        item = _mail_for(db_session, profile_id=other_user.id)
        response = client.get(f"{API}/mail-items/{item.id}", headers=auth_headers(paid_user))
        assert response.status_code == 404

    def test_patch_other_profiles_item(self, client, db_session, paid_user, other_user, auth_headers):
        item = _mail_for(db_session, profile_id=other_user.id)
        response = client.patch(
            f"{API}/mail-items/{item.id}",
            json={"is_archived": True},
            headers=auth_headers(paid_user),
        )
        assert response.status_code == 404

        db_session.refresh(item)
        assert item.is_archived is False

    def test_request_action_on_other_profiles_item(self, client, db_session, paid_user, other_user, auth_headers):
        item = _mail_for(db_session, profile_id=other_user.id)
        response = client.post(
            f"{API}/mail-items/{item.id}/actions",
            json={"action_type": "SHRED"},
            headers=auth_headers(paid_user),
        )
        assert response.status_code == 404

    def test_tag_listing_is_scoped(self, client, db_session, paid_user, other_user, auth_headers):
        item = _mail_for(db_session, profile_id=other_user.id)
        item.tags = ["secret-project"]
        db_session.commit()

        response = client.get(f"{API}/mail-items/tags", headers=auth_headers(paid_user))
        assert "secret-project" not in response.json()["tags"]


class TestBusinessMail:

    def test_member_cannot_read_other_business(self, client, db_session, business_member, other_business_member, auth_headers):
        _mail_for(db_session, business_account_id=other_business_member.business_account_id, sender="Rival")
        _mail_for(db_session, business_account_id=business_member.business_account_id, sender="Acme")

        response = client.get(f"{API}/business/mail-items", headers=auth_headers(business_member))
        assert [item["sender"] for item in response.json()["items"]] == ["Acme"]

    def test_personal_inbox_excludes_business_mail(self, client, db_session, business_member, auth_headers):
        _mail_for(db_session, business_account_id=business_member.business_account_id)

        response = client.get(f"{API}/mail-items", headers=auth_headers(business_member))
        assert response.status_code == 200
        assert response.json()["total"] == 0

    def test_end_user_has_no_business_inbox(self, client, db_session, paid_user, business_account, auth_headers):
        _mail_for(db_session, business_account_id=business_account.id)

        response = client.get(f"{API}/business/mail-items", headers=auth_headers(paid_user))
        assert response.status_code == 404
