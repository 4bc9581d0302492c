"""Unit tests for billing cycle arithmetic"""

from datetime import datetime, timezone
from decimal import Decimal

from domain.billing import BillingCycle, add_months, cycle_amount, next_billing_date, package_cycle_price


class TestAddMonths:

    def test_simple(self):
        assert add_months(datetime(2025, 3, 15), 1) == datetime(2025, 4, 15)

    def test_clamps_to_month_end(self):
        assert add_months(datetime(2025, 1, 31), 1) == datetime(2025, 2, 28)
        assert add_months(datetime(2024, 1, 31), 1) == datetime(2024, 2, 29)

    def test_rolls_over_year(self):
        assert add_months(datetime(2025, 11, 30), 3) == datetime(2026, 2, 28)

    def test_keeps_timezone(self):
        start = datetime(2025, 6, 1, 12, 0, tzinfo=timezone.utc)
        assert add_months(start, 12).tzinfo is timezone.utc


def test_next_billing_date_per_cycle():
    start = datetime(2025, 1, 10)
    assert next_billing_date(start, BillingCycle.MONTHLY) == datetime(2025, 2, 10)
    assert next_billing_date(start, BillingCycle.QUARTERLY) == datetime(2025, 4, 10)
    assert next_billing_date(start, BillingCycle.YEARLY) == datetime(2026, 1, 10)


def test_cycle_amount_multiplies_monthly_price():
    assert cycle_amount(Decimal("499.00"), BillingCycle.MONTHLY) == Decimal("499.00")
    assert cycle_amount(Decimal("499.00"), BillingCycle.QUARTERLY) == Decimal("1497.00")
    assert cycle_amount(Decimal("33.333"), BillingCycle.YEARLY) == Decimal("400.00")


def test_package_price_prefers_explicit_cycle_price():
    assert package_cycle_price(Decimal("450"), BillingCycle.QUARTERLY, Decimal("1200")) == Decimal("1200.00")
    assert package_cycle_price(Decimal("450"), BillingCycle.YEARLY, Decimal("1200")) == Decimal("5400.00")
    assert package_cycle_price(
        Decimal("450"), BillingCycle.MONTHLY, Decimal("1200"), Decimal("4800")
    ) == Decimal("450.00")
