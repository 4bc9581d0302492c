"""Integration tests for the mail item API

Tests cover:
- The inbox surface behind the access policy (login, plan, KYC)
- Operator logging, queue and fulfillment endpoints
- Owner edits, tag listing and action requests
"""

from uuid import UUID

import pytest

from auth.principal import principal_from_profile
from domain.mail import ActionType
from mail_items.service import MailItemService
from models import MailItem


pytestmark = pytest.mark.integration

API = "/api/v1"


def receive_via_api(client, operator_headers, owner, **body):
    body.setdefault("sender", "Meralco")
    body["profile_id"] = str(owner.id)
    response = client.post(f"{API}/operator/mail-items", json=body, headers=operator_headers)
    assert response.status_code == 201, response.text
    return response.json()


class TestInboxAccess:

    def test_signed_out_redirects_to_login(self, client):
        response = client.get(f"{API}/mail-items")
        assert response.status_code == 303
        assert response.headers["location"] == "/login"

    def test_free_plan_gets_plain_not_found(self, client, free_user, auth_headers):
        response = client.get(f"{API}/mail-items", headers=auth_headers(free_user))
        assert response.status_code == 404
        assert response.json() == {"error": "NOT_FOUND", "message": "Not found"}

    def test_pending_kyc_redirects_to_kyc(self, client, kyc_pending_user, auth_headers):
        response = client.get(f"{API}/mail-items", headers=auth_headers(kyc_pending_user))
        assert response.status_code == 303
        assert response.headers["location"] == "/app/kyc"

    def test_paid_user_sees_empty_inbox(self, client, paid_user, auth_headers):
        response = client.get(f"{API}/mail-items", headers=auth_headers(paid_user))
        assert response.status_code == 200
        assert response.json() == {"items": [], "total": 0, "total_pages": 0, "page": 1, "page_size": 12}

    def test_invalid_token_is_401(self, client):
        response = client.get(f"{API}/mail-items", headers={"Authorization": "Bearer junk"})
        assert response.status_code == 401


class TestOwnerFlow:

    def test_scan_request_end_to_end(self, client, paid_user, operator_user, auth_headers, fake_storage):
        owner_headers = auth_headers(paid_user)
        operator_headers = auth_headers(operator_user)
        fake_storage.store_file("env/1.jpg", b"jpeg", "image/jpeg")
        item = receive_via_api(client, operator_headers, paid_user, envelope_scan_ref="env/1.jpg")
        assert item["status"] == "RECEIVED"
        assert item["envelope_scan_url"].startswith("https://storage.test/env/1.jpg")

        listing = client.get(f"{API}/mail-items", headers=owner_headers).json()
        assert [i["id"] for i in listing["items"]] == [item["id"]]

        request = client.post(
            f"{API}/mail-items/{item['id']}/actions",
            json={"action_type": "SCAN", "priority": "HIGH"},
            headers=owner_headers,
        )
        assert request.status_code == 201
        assert request.json()["status"] == "PENDING"

        queue = client.get(f"{API}/operator/queue", headers=operator_headers).json()
        assert [r["id"] for r in queue["open_requests"]] == [request.json()["id"]]

        fake_storage.store_file("scans/1.pdf", b"%PDF", "application/pdf")
        fulfilled = client.post(
            f"{API}/operator/actions/{request.json()['id']}/fulfill",
            json={"scan_ref": "scans/1.pdf"},
            headers=operator_headers,
        )
        assert fulfilled.status_code == 200
        body = fulfilled.json()
        assert body["status"] == "COMPLETED"
        assert body["mail_item"]["status"] == "SCANNED"
        assert body["mail_item"]["full_scan_url"].startswith("https://storage.test/scans/1.pdf")

    def test_held_shred_reported_not_raised(self, client, kyc_pending_user, operator_user, auth_headers, db_session):
        operator_headers = auth_headers(operator_user)
        item = receive_via_api(client, operator_headers, kyc_pending_user)
        db_item = db_session.get(MailItem, UUID(item["id"]))
        db_item.status = "SCANNED"
        db_session.commit()

        request = MailItemService(db_session).request_action(
            principal_from_profile(kyc_pending_user), db_item.id, ActionType.SHRED
        )

        response = client.post(
            f"{API}/operator/actions/{request.id}/fulfill", json={}, headers=operator_headers
        )
        assert response.status_code == 200
        assert response.json()["status"] == "REQUIRES_APPROVAL"
        assert response.json()["mail_item"]["status"] == "SCANNED"

        review = client.post(
            f"{API}/operator/verifications",
            json={"profile_id": str(kyc_pending_user.id), "status": "APPROVED"},
            headers=operator_headers,
        )
        assert review.json() == {"status": "APPROVED", "released_requests": 1}

    def test_patch_archive_and_tags(self, client, paid_user, operator_user, auth_headers):
        owner_headers = auth_headers(paid_user)
        item = receive_via_api(client, auth_headers(operator_user), paid_user)

        patched = client.patch(
            f"{API}/mail-items/{item['id']}",
            json={"is_archived": True, "tags": ["bills", "urgent"]},
            headers=owner_headers,
        )
        assert patched.status_code == 200
        assert patched.json()["display_status"] == "archived"
        assert patched.json()["status"] == "RECEIVED"

        inbox = client.get(f"{API}/mail-items", headers=owner_headers).json()
        archived = client.get(f"{API}/mail-items", params={"view_mode": "archived"}, headers=owner_headers).json()
        assert inbox["total"] == 0
        assert archived["total"] == 1

        tags = client.get(f"{API}/mail-items/tags", headers=owner_headers).json()
        assert tags == {"tags": ["bills", "urgent"]}

    def test_terminal_item_rejects_request(self, client, paid_user, operator_user, auth_headers, db_session):
        item = receive_via_api(client, auth_headers(operator_user), paid_user)
        db_session.get(MailItem, UUID(item["id"])).status = "FORWARDED"
        db_session.commit()

        response = client.post(
            f"{API}/mail-items/{item['id']}/actions",
            json={"action_type": "SCAN"},
            headers=auth_headers(paid_user),
        )
        assert response.status_code == 422
        assert response.json()["error"] == "VALIDATION"

    def test_someone_elses_item_is_not_found(self, client, paid_user, business_member, operator_user, auth_headers):
        item = receive_via_api(client, auth_headers(operator_user), paid_user)
        response = client.get(f"{API}/mail-items/{item['id']}", headers=auth_headers(business_member))
        assert response.status_code == 404

    def test_bad_status_filter(self, client, paid_user, auth_headers):
        response = client.get(f"{API}/mail-items", params={"status": "lost"}, headers=auth_headers(paid_user))
        assert response.status_code == 422


class TestBusinessInbox:

    def test_member_lists_business_mail(self, client, business_member, business_account, operator_user, auth_headers):
        client.post(
            f"{API}/operator/mail-items",
            json={"sender": "SEC", "business_account_id": str(business_account.id)},
            headers=auth_headers(operator_user),
        )
        response = client.get(f"{API}/business/mail-items", headers=auth_headers(business_member))
        assert response.status_code == 200
        assert [i["sender"] for i in response.json()["items"]] == ["SEC"]

    def test_receive_requires_one_owner(self, client, paid_user, business_account, operator_user, auth_headers):
        response = client.post(
            f"{API}/operator/mail-items",
            json={"sender": "SEC", "business_account_id": str(business_account.id), "profile_id": str(paid_user.id)},
            headers=auth_headers(operator_user),
        )
        assert response.status_code == 422


def test_verification_review_needs_one_subject(client, operator_user, auth_headers):
    response = client.post(
        f"{API}/operator/verifications", json={"status": "APPROVED"}, headers=auth_headers(operator_user)
    )
    assert response.status_code == 422
