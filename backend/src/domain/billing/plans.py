"""Billing cycles and subscription statuses.

Prices are configured per month; a cycle is billed as monthly price times
the number of months it covers.
"""

import calendar
from datetime import datetime
from decimal import Decimal, ROUND_HALF_UP
from enum import Enum
from typing import Dict, Optional


class BillingCycle(str, Enum):
    MONTHLY = "MONTHLY"
    QUARTERLY = "QUARTERLY"
    YEARLY = "YEARLY"


class SubscriptionStatus(str, Enum):
    ACTIVE = "ACTIVE"
    INACTIVE = "INACTIVE"
    CANCELLED = "CANCELLED"


CYCLE_MONTHS: Dict[BillingCycle, int] = {
    BillingCycle.MONTHLY: 1,
    BillingCycle.QUARTERLY: 3,
    BillingCycle.YEARLY: 12,
}


def add_months(moment: datetime, months: int) -> datetime:
    """Add calendar months, clamping the day to the target month's length.

    Example:
        >>> add_months(datetime(2025, 1, 31), 1)
        datetime.datetime(2025, 2, 28, 0, 0)
    """
    month_index = moment.month - 1 + months
    year = moment.year + month_index // 12
    month = month_index % 12 + 1
    day = min(moment.day, calendar.monthrange(year, month)[1])
    return moment.replace(year=year, month=month, day=day)


def next_billing_date(started_at: datetime, cycle: BillingCycle) -> datetime:
    return add_months(started_at, CYCLE_MONTHS[cycle])


def cycle_amount(monthly_price: Decimal, cycle: BillingCycle) -> Decimal:
    total = Decimal(str(monthly_price)) * CYCLE_MONTHS[cycle]
    return total.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)


def package_cycle_price(
    price_monthly: Decimal,
    cycle: BillingCycle,
    price_quarterly: Optional[Decimal] = None,
    price_yearly: Optional[Decimal] = None,
) -> Decimal:
    """Price of one billing cycle from a catalog package.

    An explicit quarterly or yearly price wins over the monthly multiple.
    """
    explicit = {
        BillingCycle.QUARTERLY: price_quarterly,
        BillingCycle.YEARLY: price_yearly,
    }.get(cycle)
    if explicit is not None:
        return Decimal(str(explicit)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
    return cycle_amount(price_monthly, cycle)
