"""HTTP Payment Gateway - PaymentGatewayPort implementation using httpx.

Talks to a Xendit-style invoice API: POST {base_url}/v2/invoices with HTTP
basic auth (API key as username, empty password).

Architecture: Hexagonal - Adapter implementation in infrastructure layer
"""

import logging
import time
from typing import Any, Dict, Optional

import httpx

from domain.billing.ports.payment_gateway_port import (
    CreatedInvoice,
    InvoiceRequest,
    PaymentGatewayError,
    PaymentGatewayPort,
)
from observability.metrics import payment_gateway_latency_seconds

logger = logging.getLogger(__name__)

INVOICES_PATH = "/v2/invoices"


class HttpPaymentGateway(PaymentGatewayPort):
    """Invoice API client.

    Example:
        gateway = HttpPaymentGateway.from_settings(get_settings())
        invoice = gateway.create_invoice(request)
    """

    def __init__(
        self,
        base_url: str,
        api_key: str,
        timeout_seconds: float = 15.0,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.timeout_seconds = timeout_seconds
        self._transport = transport

    @classmethod
    def from_settings(cls, settings) -> "HttpPaymentGateway":
        return cls(
            base_url=settings.PAYMENT_GATEWAY_URL,
            api_key=settings.PAYMENT_GATEWAY_API_KEY,
            timeout_seconds=settings.PAYMENT_GATEWAY_TIMEOUT_SECONDS,
        )

    def _client(self) -> httpx.Client:
        return httpx.Client(
            base_url=self.base_url,
            auth=(self.api_key, ""),
            timeout=self.timeout_seconds,
            transport=self._transport,
        )

    @staticmethod
    def _payload(request: InvoiceRequest) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "external_id": request.external_id,
            "amount": float(request.amount),
            "currency": request.currency,
            "payer_email": request.payer_email,
            "description": request.description,
            "items": [
                {"name": item.name, "quantity": item.quantity, "price": float(item.price)}
                for item in request.items
            ],
        }
        if request.success_redirect_url:
            payload["success_redirect_url"] = request.success_redirect_url
        return payload

    def create_invoice(self, request: InvoiceRequest) -> CreatedInvoice:
        start = time.time()
        outcome = "error"
        try:
            with self._client() as client:
                response = client.post(INVOICES_PATH, json=self._payload(request))

            if response.status_code >= 400:
                logger.error(
                    f"Invoice creation rejected: status={response.status_code}, "
                    f"external_id={request.external_id}"
                )
                raise PaymentGatewayError(
                    f"Payment gateway returned {response.status_code}",
                    status_code=response.status_code,
                )

            body = response.json()
            try:
                invoice = CreatedInvoice(
                    invoice_id=str(body["id"]),
                    invoice_url=body["invoice_url"],
                    status=body.get("status", "PENDING"),
                )
            except (KeyError, TypeError) as e:
                raise PaymentGatewayError(f"Malformed gateway response: missing {e}")

            outcome = "success"
            logger.info(f"Created invoice {invoice.invoice_id} for {request.external_id}")
            return invoice

        except httpx.TimeoutException:
            logger.warning(f"Payment gateway timeout for {request.external_id}")
            raise PaymentGatewayError("Payment gateway timed out")
        except httpx.HTTPError as e:
            logger.warning(f"Payment gateway transport error for {request.external_id}: {e}")
            raise PaymentGatewayError(f"Payment gateway unreachable: {e}")
        except ValueError as e:
            raise PaymentGatewayError(f"Payment gateway returned invalid JSON: {e}")
        finally:
            payment_gateway_latency_seconds.labels(
                operation="create_invoice", status=outcome
            ).observe(time.time() - start)
