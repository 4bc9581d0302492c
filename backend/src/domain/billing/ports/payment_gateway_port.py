"""Payment Gateway Port - domain interface for hosted invoices.

The gateway turns an invoice request into a hosted payment page. Payment
confirmation reaches the system separately and activates the subscription.

Architecture: Hexagonal - Port interface in domain layer
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from decimal import Decimal
from typing import List, Optional


class PaymentGatewayError(Exception):
    """Raised when the gateway is unreachable, times out or rejects a call."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


@dataclass(frozen=True)
class InvoiceLineItem:
    name: str
    quantity: int
    price: Decimal


@dataclass(frozen=True)
class InvoiceRequest:
    """Attributes:
        external_id: Our reference, echoed back on payment callbacks
        amount: Total to charge
        currency: ISO currency code
        payer_email: Email the gateway sends the invoice to
        description: Human-readable purpose
        items: Line items shown on the hosted page
        success_redirect_url: Where the payer lands after paying
    """
    external_id: str
    amount: Decimal
    currency: str
    payer_email: str
    description: str
    items: List[InvoiceLineItem] = field(default_factory=list)
    success_redirect_url: Optional[str] = None


@dataclass(frozen=True)
class CreatedInvoice:
    invoice_id: str
    invoice_url: str
    status: str


class PaymentGatewayPort(ABC):
    """Port interface for invoice creation."""

    @abstractmethod
    def create_invoice(self, request: InvoiceRequest) -> CreatedInvoice:
        """Create a hosted invoice.

        Raises:
            PaymentGatewayError: On timeout, transport failure or non-2xx reply
        """
        pass
