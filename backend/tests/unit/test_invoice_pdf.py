"""Unit tests for invoice PDF rendering"""

from datetime import datetime
from decimal import Decimal

from infrastructure.pdf.invoice_pdf import InvoiceDocument, render_invoice_pdf


def make_invoice(**overrides) -> InvoiceDocument:
    fields = dict(
        invoice_number="INV-0001ABCD",
        issued_at=datetime(2025, 5, 1),
        customer_email="payer@example.com",
        currency="PHP",
        lines=[("Basic plan, monthly", 1, Decimal("499.00")), ("Extra scans", 3, Decimal("20.00"))],
        status="PAID",
        period_end=datetime(2025, 6, 1),
    )
    fields.update(overrides)
    return InvoiceDocument(**fields)


def test_total_sums_lines():
    assert make_invoice().total == Decimal("559.00")


def test_renders_pdf_bytes():
    pdf = render_invoice_pdf(make_invoice())
    assert pdf.startswith(b"%PDF")
    assert len(pdf) > 500


def test_renders_without_period_end():
    pdf = render_invoice_pdf(make_invoice(period_end=None, status="INACTIVE"))
    assert pdf.startswith(b"%PDF")
