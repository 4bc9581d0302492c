"""Invoice PDF rendering with reportlab."""

import io
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import List, Optional, Tuple

from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import getSampleStyleSheet
from reportlab.lib.units import mm
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle


@dataclass
class InvoiceDocument:
    """Everything printed on an invoice."""
    invoice_number: str
    issued_at: datetime
    customer_email: str
    currency: str
    lines: List[Tuple[str, int, Decimal]]  # (description, quantity, unit price)
    status: str
    period_end: Optional[datetime] = None

    @property
    def total(self) -> Decimal:
        return sum((price * qty for _, qty, price in self.lines), Decimal("0"))


def _money(amount: Decimal, currency: str) -> str:
    return f"{currency} {amount:,.2f}"


def render_invoice_pdf(invoice: InvoiceDocument) -> bytes:
    """Render a one-page A4 invoice and return the PDF bytes."""
    buffer = io.BytesIO()
    doc = SimpleDocTemplate(
        buffer,
        pagesize=A4,
        leftMargin=20 * mm,
        rightMargin=20 * mm,
        topMargin=20 * mm,
        bottomMargin=20 * mm,
        title=f"Invoice {invoice.invoice_number}",
    )
    styles = getSampleStyleSheet()

    story = [
        Paragraph("INVOICE", styles["Title"]),
        Spacer(1, 6 * mm),
        Paragraph(f"Invoice number: {invoice.invoice_number}", styles["Normal"]),
        Paragraph(f"Issued: {invoice.issued_at:%Y-%m-%d}", styles["Normal"]),
        Paragraph(f"Billed to: {invoice.customer_email}", styles["Normal"]),
        Paragraph(f"Status: {invoice.status}", styles["Normal"]),
    ]
    if invoice.period_end:
        story.append(Paragraph(f"Paid through: {invoice.period_end:%Y-%m-%d}", styles["Normal"]))
    story.append(Spacer(1, 8 * mm))

    rows = [["Description", "Qty", "Unit price", "Amount"]]
    for description, quantity, price in invoice.lines:
        rows.append([
            description,
            str(quantity),
            _money(price, invoice.currency),
            _money(price * quantity, invoice.currency),
        ])
    rows.append(["", "", "Total", _money(invoice.total, invoice.currency)])

    table = Table(rows, colWidths=[80 * mm, 15 * mm, 35 * mm, 35 * mm])
    table.setStyle(TableStyle([
        ("BACKGROUND", (0, 0), (-1, 0), colors.HexColor("#1f2937")),
        ("TEXTCOLOR", (0, 0), (-1, 0), colors.white),
        ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
        ("ALIGN", (1, 0), (-1, -1), "RIGHT"),
        ("LINEBELOW", (0, -2), (-1, -2), 0.5, colors.grey),
        ("FONTNAME", (2, -1), (-1, -1), "Helvetica-Bold"),
        ("BOTTOMPADDING", (0, 0), (-1, -1), 6),
    ]))
    story.append(table)

    doc.build(story)
    return buffer.getvalue()
