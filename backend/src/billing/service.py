"""Billing service - checkout, activation, cancellation and invoice PDFs.

Mailbox assignment on activation uses a conditional update:

    UPDATE mailbox SET is_occupied = true WHERE id = :id AND is_occupied = false

A zero row count means another activation took the box first; the next
free box is tried. Gateway failures never roll back committed state.
"""

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Dict, Optional
from uuid import UUID

from sqlalchemy import update
from sqlalchemy.orm import Session

from audit.service import log_audit_event
from auth.roles import PlanType
from catalog.service import PackageService
from domain.billing import (
    BillingCycle,
    SubscriptionStatus,
    cycle_amount,
    next_billing_date,
    package_cycle_price,
)
from domain.billing.ports import (
    InvoiceLineItem,
    InvoiceRequest,
    PaymentGatewayError,
    PaymentGatewayPort,
)
from domain.errors import ConflictError, NotFoundError, UpstreamError, ValidationFailed
from domain.identity import Principal
from infrastructure.pdf.invoice_pdf import InvoiceDocument, render_invoice_pdf
from models.base import utcnow
from models.locker import Mailbox, MailboxCluster
from models.profile import Profile
from models.subscription import Subscription
from observability.metrics import mailbox_assignments_total, subscriptions_total
from referrals.service import ReferralService

logger = logging.getLogger(__name__)


def invoice_external_id(subscription: Subscription) -> str:
    return f"subscription-{subscription.id}"


@dataclass
class BillingConfig:
    currency: str
    monthly_prices: Dict[PlanType, Decimal]
    app_base_url: str = ""

    @classmethod
    def from_settings(cls, settings) -> "BillingConfig":
        return cls(
            currency=settings.BILLING_CURRENCY,
            monthly_prices={
                PlanType.BASIC: settings.PLAN_PRICE_BASIC,
                PlanType.PREMIUM: settings.PLAN_PRICE_PREMIUM,
                PlanType.BUSINESS: settings.PLAN_PRICE_BUSINESS,
            },
            app_base_url=settings.APP_BASE_URL.rstrip("/"),
        )


class BillingService:
    """Service for subscription billing."""

    def __init__(self, db: Session, gateway: PaymentGatewayPort, config: BillingConfig):
        self.db = db
        self.gateway = gateway
        self.config = config

    def _get_subscription(self, subscription_id: UUID) -> Subscription:
        subscription = self.db.get(Subscription, subscription_id)
        if subscription is None:
            raise NotFoundError("Subscription")
        return subscription

    def _get_visible_subscription(self, principal: Principal, subscription_id: UUID) -> Subscription:
        """Owner or staff only; anyone else gets NOT_FOUND."""
        subscription = self._get_subscription(subscription_id)
        if subscription.profile_id != principal.id and not principal.is_staff:
            raise NotFoundError("Subscription")
        return subscription

    def _cycle_price(self, plan_type: PlanType, billing_cycle: BillingCycle) -> Decimal:
        package = PackageService(self.db).active_for_plan(plan_type)
        if package is not None:
            return package_cycle_price(
                package.price_monthly, billing_cycle, package.price_quarterly, package.price_yearly
            )
        monthly_price = self.config.monthly_prices.get(plan_type)
        if monthly_price is None:
            raise ValidationFailed(f"{plan_type.value} is not a purchasable plan")
        return cycle_amount(monthly_price, billing_cycle)

    def create_checkout(
        self,
        principal: Principal,
        plan_type: PlanType,
        billing_cycle: BillingCycle,
    ) -> Subscription:
        """Create an INACTIVE subscription and a hosted invoice for it.

        The active catalog package for the plan sets the price; without one
        the configured monthly price is used.

        Raises:
            ValidationFailed: If the plan is not a paid plan
            UpstreamError: If the gateway fails (the subscription stays INACTIVE)
        """
        amount = self._cycle_price(plan_type, billing_cycle)
        subscription = Subscription(
            profile_id=principal.id,
            plan_type=plan_type.value,
            billing_cycle=billing_cycle.value,
            status=SubscriptionStatus.INACTIVE.value,
            amount=amount,
        )
        self.db.add(subscription)
        self.db.commit()
        subscriptions_total.labels(plan_type=plan_type.value, event="checkout").inc()

        request = InvoiceRequest(
            external_id=invoice_external_id(subscription),
            amount=amount,
            currency=self.config.currency,
            payer_email=principal.email,
            description=f"{plan_type.value.title()} plan ({billing_cycle.value.lower()})",
            items=[InvoiceLineItem(
                name=f"{plan_type.value.title()} plan",
                quantity=1,
                price=amount,
            )],
            success_redirect_url=f"{self.config.app_base_url}/app/billing",
        )
        try:
            invoice = self.gateway.create_invoice(request)
        except PaymentGatewayError as e:
            logger.error(
                f"Checkout invoice failed: {e}",
                extra={"subscription_id": subscription.id, "user_id": principal.id},
            )
            raise UpstreamError("Payment gateway is unavailable, please retry", {"subscription_id": str(subscription.id)})

        subscription.invoice_url = invoice.invoice_url
        self.db.commit()
        return subscription

    def _free_mailbox_ids(self, location_id: Optional[UUID]):
        query = self.db.query(Mailbox.id).filter(Mailbox.is_occupied.is_(False))
        if location_id is not None:
            query = query.join(MailboxCluster, Mailbox.cluster_id == MailboxCluster.id).filter(
                MailboxCluster.mailing_location_id == location_id
            )
        return [row[0] for row in query.order_by(Mailbox.cluster_id, Mailbox.box_number).all()]

    def _claim_mailbox(self, location_id: Optional[UUID]) -> UUID:
        for mailbox_id in self._free_mailbox_ids(location_id):
            result = self.db.execute(
                update(Mailbox)
                .where(Mailbox.id == mailbox_id, Mailbox.is_occupied.is_(False))
                .values(is_occupied=True)
                .execution_options(synchronize_session=False)
            )
            if result.rowcount == 1:
                mailbox_assignments_total.labels(outcome="assigned").inc()
                return mailbox_id
            mailbox_assignments_total.labels(outcome="contended").inc()
            logger.info(f"Mailbox {mailbox_id} taken concurrently, trying next")
        mailbox_assignments_total.labels(outcome="exhausted").inc()
        raise ConflictError("No free mailbox available")

    def activate_subscription(
        self,
        actor: Principal,
        subscription_id: UUID,
        location_id: Optional[UUID] = None,
    ) -> Subscription:
        """Mark a subscription paid, assign a mailbox and upgrade the plan.

        Activating an ACTIVE subscription again is a no-op.

        Raises:
            ValidationFailed: If the subscription was cancelled
            ConflictError: If no mailbox is free
        """
        subscription = self._get_subscription(subscription_id)
        if subscription.status == SubscriptionStatus.ACTIVE.value:
            return subscription
        if subscription.status == SubscriptionStatus.CANCELLED.value:
            raise ValidationFailed("Cancelled subscriptions cannot be activated")

        try:
            mailbox_id = subscription.mailbox_id or self._claim_mailbox(location_id)
        except ConflictError:
            self.db.rollback()
            raise

        started_at = utcnow()
        subscription.mailbox_id = mailbox_id
        subscription.status = SubscriptionStatus.ACTIVE.value
        subscription.started_at = started_at
        subscription.next_billing_date = next_billing_date(
            started_at, BillingCycle(subscription.billing_cycle)
        )

        profile = self.db.get(Profile, subscription.profile_id)
        profile.plan_type = subscription.plan_type

        package = PackageService(self.db).active_for_plan(PlanType(subscription.plan_type))
        ReferralService(self.db, self.config.app_base_url).on_subscription_activated(
            profile.id,
            subscription.plan_type,
            invoice_ref=invoice_external_id(subscription),
            invoice_amount=subscription.amount,
            cashback_percentage=package.cashback_percentage if package else None,
        )

        log_audit_event(
            self.db,
            action="SUBSCRIPTION_ACTIVATED",
            actor_id=actor.id,
            entity_type="subscription",
            entity_id=subscription.id,
            metadata={"mailbox_id": str(mailbox_id), "plan_type": subscription.plan_type},
        )
        self.db.commit()

        subscriptions_total.labels(plan_type=subscription.plan_type, event="activated").inc()
        logger.info(
            "Subscription activated",
            extra={"subscription_id": subscription.id, "mailbox_id": mailbox_id},
        )
        return subscription

    def cancel_subscription(self, principal: Principal, subscription_id: UUID) -> Subscription:
        """Cancel a subscription and release its mailbox. Idempotent."""
        subscription = self._get_visible_subscription(principal, subscription_id)
        if subscription.status == SubscriptionStatus.CANCELLED.value:
            return subscription

        was_active = subscription.status == SubscriptionStatus.ACTIVE.value
        subscription.status = SubscriptionStatus.CANCELLED.value

        if subscription.mailbox_id is not None:
            self.db.execute(
                update(Mailbox)
                .where(Mailbox.id == subscription.mailbox_id)
                .values(is_occupied=False)
                .execution_options(synchronize_session=False)
            )

        if was_active:
            still_paying = (
                self.db.query(Subscription.id)
                .filter(
                    Subscription.profile_id == subscription.profile_id,
                    Subscription.status == SubscriptionStatus.ACTIVE.value,
                    Subscription.id != subscription.id,
                )
                .first()
            )
            if still_paying is None:
                profile = self.db.get(Profile, subscription.profile_id)
                profile.plan_type = PlanType.FREE.value

        log_audit_event(
            self.db,
            action="SUBSCRIPTION_CANCELLED",
            actor_id=principal.id,
            entity_type="subscription",
            entity_id=subscription.id,
            metadata={"released_mailbox_id": str(subscription.mailbox_id) if subscription.mailbox_id else None},
        )
        self.db.commit()
        subscriptions_total.labels(plan_type=subscription.plan_type, event="cancelled").inc()
        return subscription

    def render_invoice_pdf(self, principal: Principal, subscription_id: UUID) -> bytes:
        """One-page PDF invoice for a subscription."""
        subscription = self._get_visible_subscription(principal, subscription_id)
        profile = self.db.get(Profile, subscription.profile_id)
        amount = Decimal(str(subscription.amount or 0))

        document = InvoiceDocument(
            invoice_number=f"INV-{str(subscription.id)[:8].upper()}",
            issued_at=subscription.created_at or utcnow(),
            customer_email=profile.email,
            currency=self.config.currency,
            lines=[(
                f"{subscription.plan_type.title()} plan, {subscription.billing_cycle.lower()}",
                1,
                amount,
            )],
            status="PAID" if subscription.status == SubscriptionStatus.ACTIVE.value else subscription.status,
            period_end=subscription.next_billing_date,
        )
        return render_invoice_pdf(document)
