"""Referrer commission on paid invoices."""

from decimal import Decimal, ROUND_HALF_UP
from typing import Optional, Union

# Applied when the plan has no catalog package
DEFAULT_CASHBACK_PERCENTAGE = Decimal("5")


def commission_amount(
    invoice_amount: Union[Decimal, int, float],
    percentage: Optional[Union[Decimal, int, float]] = None,
) -> Decimal:
    """Commission earned on an invoice, rounded to cents.

    Example:
        >>> commission_amount(Decimal("1500.00"), Decimal("10"))
        Decimal('150.00')
    """
    rate = DEFAULT_CASHBACK_PERCENTAGE if percentage is None else Decimal(str(percentage))
    earned = Decimal(str(invoice_amount)) * rate / Decimal("100")
    return earned.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
