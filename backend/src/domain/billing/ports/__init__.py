from .payment_gateway_port import (
    CreatedInvoice,
    InvoiceLineItem,
    InvoiceRequest,
    PaymentGatewayError,
    PaymentGatewayPort,
)

__all__ = [
    "CreatedInvoice",
    "InvoiceLineItem",
    "InvoiceRequest",
    "PaymentGatewayError",
    "PaymentGatewayPort",
]
