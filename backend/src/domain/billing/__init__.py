"""Billing domain module - plans, cycles and the payment gateway port"""

from .plans import (
    BillingCycle,
    SubscriptionStatus,
    CYCLE_MONTHS,
    add_months,
    cycle_amount,
    next_billing_date,
    package_cycle_price,
)

__all__ = [
    "BillingCycle",
    "SubscriptionStatus",
    "CYCLE_MONTHS",
    "add_months",
    "cycle_amount",
    "next_billing_date",
    "package_cycle_price",
]
