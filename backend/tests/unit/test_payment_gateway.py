"""Unit tests for the HTTP payment gateway adapter using httpx.MockTransport"""

import base64
import json
from decimal import Decimal

import httpx
import pytest

from domain.billing.ports import InvoiceLineItem, InvoiceRequest, PaymentGatewayError
from infrastructure.payments.http_payment_gateway import HttpPaymentGateway


def make_request() -> InvoiceRequest:
    return InvoiceRequest(
        external_id="subscription-123",
        amount=Decimal("1497.00"),
        currency="PHP",
        payer_email="payer@example.com",
        description="Basic plan (quarterly)",
        items=[InvoiceLineItem(name="Basic plan", quantity=1, price=Decimal("1497.00"))],
        success_redirect_url="https://mailroom.test/app/billing",
    )


def gateway_with(handler) -> HttpPaymentGateway:
    return HttpPaymentGateway(
        base_url="https://gateway.test/",
        api_key="secret-key",
        timeout_seconds=2.0,
        transport=httpx.MockTransport(handler),
    )


class TestCreateInvoice:

    def test_success(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["url"] = str(request.url)
            seen["auth"] = request.headers["Authorization"]
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json={
                "id": "inv_1",
                "invoice_url": "https://gateway.test/pay/inv_1",
                "status": "PENDING",
            })

        invoice = gateway_with(handler).create_invoice(make_request())

        assert invoice.invoice_id == "inv_1"
        assert invoice.invoice_url == "https://gateway.test/pay/inv_1"
        assert seen["url"] == "https://gateway.test/v2/invoices"
        expected_auth = base64.b64encode(b"secret-key:").decode()
        assert seen["auth"] == f"Basic {expected_auth}"
        assert seen["body"]["external_id"] == "subscription-123"
        assert seen["body"]["amount"] == 1497.0
        assert seen["body"]["items"][0]["name"] == "Basic plan"
        assert seen["body"]["success_redirect_url"] == "https://mailroom.test/app/billing"

    def test_rejection_carries_status(self):
        gateway = gateway_with(lambda request: httpx.Response(400, json={"error_code": "API_VALIDATION_ERROR"}))
        with pytest.raises(PaymentGatewayError) as exc:
            gateway.create_invoice(make_request())
        assert exc.value.status_code == 400

    def test_missing_invoice_url(self):
        gateway = gateway_with(lambda request: httpx.Response(200, json={"id": "inv_2"}))
        with pytest.raises(PaymentGatewayError, match="Malformed"):
            gateway.create_invoice(make_request())

    def test_invalid_json(self):
        gateway = gateway_with(lambda request: httpx.Response(200, content=b"<html>oops</html>"))
        with pytest.raises(PaymentGatewayError, match="invalid JSON"):
            gateway.create_invoice(make_request())

    def test_timeout(self):
        def handler(request):
            raise httpx.ReadTimeout("slow", request=request)

        with pytest.raises(PaymentGatewayError, match="timed out"):
            gateway_with(handler).create_invoice(make_request())

    def test_connection_error(self):
        def handler(request):
            raise httpx.ConnectError("refused", request=request)

        with pytest.raises(PaymentGatewayError, match="unreachable"):
            gateway_with(handler).create_invoice(make_request())
