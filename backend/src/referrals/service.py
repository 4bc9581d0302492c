"""Referral service - codes, attribution and the cashback ledger.

Attribution is deferred: a signup only records referred_by. The Referral
row is created later (on first paid activation) and only if the referrer
has generated a code by then. A referrer who never claims a code loses the
attribution; it is not retried.
"""

import logging
from dataclasses import dataclass, field
from decimal import Decimal
from typing import List, Optional
from uuid import UUID

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from audit.service import log_audit_event
from domain.errors import ConflictError, NotFoundError, UnauthorizedError, ValidationFailed
from domain.identity import Principal
from domain.referrals import (
    DEFAULT_CASHBACK_PERCENTAGE,
    ReferralStats,
    ReferralStatus,
    TransactionStatus,
    commission_amount,
    compute_stats,
    generate_unique_code,
)
from models.base import utcnow
from models.profile import Profile
from models.referral import Referral, ReferralTransaction
from models.subscription import Subscription

logger = logging.getLogger(__name__)

# Unique-constraint races are retried this many times before giving up
MAX_WRITE_ATTEMPTS = 3


def _require_system_admin(actor: Principal) -> None:
    if not actor.is_system_admin:
        raise UnauthorizedError("Only system admins can manage cashback")


@dataclass
class ReferredAccount:
    """Referral row flattened for stats and display."""
    referral: Referral
    has_active_subscription: bool


@dataclass
class ReferralOverview:
    code: Optional[str]
    share_link: Optional[str]
    stats: ReferralStats
    referrals: List[ReferredAccount] = field(default_factory=list)
    transactions: List[ReferralTransaction] = field(default_factory=list)


class ReferralService:
    """Service for referral codes and cashback.

    Args:
        db: Database session
        app_base_url: Public URL used to build share links
    """

    def __init__(self, db: Session, app_base_url: str = ""):
        self.db = db
        self.app_base_url = app_base_url.rstrip("/")

    def _get_profile(self, profile_id: UUID) -> Profile:
        profile = self.db.get(Profile, profile_id)
        if profile is None:
            raise NotFoundError("Profile")
        return profile

    def _code_exists(self, code: str) -> bool:
        return (
            self.db.query(Profile.id).filter(Profile.referral_code == code).first()
            is not None
        )

    def generate_referral_code(self, principal_id: UUID) -> str:
        """Return the principal's referral code, creating it on first call.

        An existing code is returned without any write.

        Raises:
            NotFoundError: If the profile doesn't exist
            ConflictError: If every attempt lost a uniqueness race
        """
        profile = self._get_profile(principal_id)
        if profile.referral_code:
            return profile.referral_code

        for attempt in range(1, MAX_WRITE_ATTEMPTS + 1):
            code = generate_unique_code(str(profile.id), self._code_exists)
            profile.referral_code = code
            try:
                self.db.flush()
            except IntegrityError:
                self.db.rollback()
                logger.warning(f"Referral code {code} taken concurrently (attempt {attempt})")
                profile = self._get_profile(principal_id)
                if profile.referral_code:
                    return profile.referral_code
                continue

            log_audit_event(
                self.db,
                action="REFERRAL_CODE_GENERATED",
                actor_id=profile.id,
                entity_type="profile",
                entity_id=profile.id,
                metadata={"code": code},
            )
            self.db.commit()
            logger.info("Referral code generated", extra={"user_id": profile.id})
            return code

        raise ConflictError("Could not allocate a unique referral code")

    def attach_referrer(self, profile_id: UUID, code: str) -> bool:
        """Record who referred a new profile (signup ?ref= parameter).

        Returns:
            True if referred_by was set; False for unknown codes, self
            referral, or a profile that already has a referrer
        """
        profile = self._get_profile(profile_id)
        if profile.referred_by is not None:
            return False

        referrer = (
            self.db.query(Profile)
            .filter(Profile.referral_code == code.strip().upper())
            .first()
        )
        if referrer is None or referrer.id == profile.id:
            logger.info(f"Ignoring referral code {code!r} for new profile", extra={"user_id": profile.id})
            return False

        profile.referred_by = referrer.id
        self.db.commit()
        return True

    def create_referral_record(self, referred_id: UUID) -> Optional[Referral]:
        """Create the Referral row for a referred profile, at most once.

        Returns:
            The new Referral, or None when there is no referrer, the referrer
            has no code yet, or a referral already exists
        """
        referred = self._get_profile(referred_id)
        if referred.referred_by is None:
            return None

        referrer = self.db.get(Profile, referred.referred_by)
        if referrer is None or not referrer.referral_code:
            return None

        existing = self.db.query(Referral).filter(Referral.referred_id == referred_id).first()
        if existing is not None:
            return None

        referral = Referral(
            referrer_id=referrer.id,
            referred_id=referred.id,
            referral_code=referrer.referral_code,
            status=ReferralStatus.PENDING.value,
        )
        self.db.add(referral)
        try:
            self.db.flush()
        except IntegrityError:
            # Concurrent creation for the same referred profile
            self.db.rollback()
            return None
        return referral

    def on_subscription_activated(
        self,
        profile_id: UUID,
        plan_type: str,
        invoice_ref: Optional[str] = None,
        invoice_amount: Optional[Decimal] = None,
        cashback_percentage: Optional[Decimal] = None,
    ) -> Optional[Referral]:
        """Attribute and activate the referral of a newly paying profile.

        When the paid invoice is given, the referrer also earns a commission
        on it. The caller commits.
        """
        referral = self.create_referral_record(profile_id)
        if referral is None:
            referral = self.db.query(Referral).filter(Referral.referred_id == profile_id).first()
        if referral is None:
            return None
        referral.status = ReferralStatus.ACTIVE.value
        referral.subscription_plan = plan_type

        if invoice_ref and invoice_amount:
            self.record_commission(referral, invoice_ref, invoice_amount, cashback_percentage, plan_type)
        return referral

    def record_commission(
        self,
        referral: Referral,
        invoice_ref: str,
        invoice_amount: Decimal,
        cashback_percentage: Optional[Decimal] = None,
        plan_label: Optional[str] = None,
    ) -> ReferralTransaction:
        """Append the referrer's commission for a paid invoice, once per invoice.

        A second call for the same invoice returns the existing entry. The
        commission is pending until an admin pays it out. The caller commits.
        """
        existing = (
            self.db.query(ReferralTransaction)
            .filter(
                ReferralTransaction.referral_id == referral.id,
                ReferralTransaction.invoice_ref == invoice_ref,
            )
            .first()
        )
        if existing is not None:
            logger.info(f"Commission for invoice {invoice_ref} already recorded")
            return existing

        rate = DEFAULT_CASHBACK_PERCENTAGE if cashback_percentage is None else Decimal(str(cashback_percentage))
        transaction = ReferralTransaction(
            referral_id=referral.id,
            amount=commission_amount(invoice_amount, rate),
            status=TransactionStatus.PENDING.value,
            invoice_ref=invoice_ref,
            description=f"Commission for {(plan_label or 'subscription').title()} plan ({format(rate.normalize(), 'f')}%)",
        )
        self.db.add(transaction)
        self.db.flush()
        log_audit_event(
            self.db,
            action="REFERRAL_COMMISSION_RECORDED",
            entity_type="referral_transaction",
            entity_id=transaction.id,
            metadata={
                "referral_id": str(referral.id),
                "invoice_ref": invoice_ref,
                "amount": str(transaction.amount),
            },
        )
        logger.info(
            f"Commission of {transaction.amount} recorded for referrer {referral.referrer_id}",
            extra={"user_id": referral.referrer_id},
        )
        return transaction

    def _has_active_subscription(self, profile_id: UUID) -> bool:
        return (
            self.db.query(Subscription.id)
            .filter(Subscription.profile_id == profile_id, Subscription.status == "ACTIVE")
            .first()
            is not None
        )

    def get_referral_overview(self, principal: Principal) -> ReferralOverview:
        """Code, share link, recomputed stats and history for a referrer."""
        profile = self._get_profile(principal.id)

        referrals = (
            self.db.query(Referral)
            .filter(Referral.referrer_id == profile.id)
            .order_by(Referral.created_at.desc())
            .all()
        )
        accounts = [
            ReferredAccount(r, self._has_active_subscription(r.referred_id)) for r in referrals
        ]

        transactions = (
            self.db.query(ReferralTransaction)
            .join(Referral, ReferralTransaction.referral_id == Referral.id)
            .filter(Referral.referrer_id == profile.id)
            .order_by(ReferralTransaction.created_at.desc(), ReferralTransaction.id)
            .all()
        )

        code = profile.referral_code
        return ReferralOverview(
            code=code,
            share_link=f"{self.app_base_url}/signup?ref={code}" if code else None,
            stats=compute_stats(accounts, transactions),
            referrals=accounts,
            transactions=transactions,
        )

    def record_cashback(
        self,
        actor: Principal,
        referral_id: UUID,
        amount: Decimal,
        description: Optional[str] = None,
    ) -> ReferralTransaction:
        """Append a pending cashback transaction to a referral."""
        _require_system_admin(actor)
        if amount is None or Decimal(str(amount)) <= 0:
            raise ValidationFailed("Cashback amount must be greater than zero")
        referral = self.db.get(Referral, referral_id)
        if referral is None:
            raise NotFoundError("Referral")

        transaction = ReferralTransaction(
            referral_id=referral.id,
            amount=Decimal(str(amount)),
            status=TransactionStatus.PENDING.value,
            description=description,
        )
        self.db.add(transaction)
        self.db.flush()
        log_audit_event(
            self.db,
            action="REFERRAL_CASHBACK_RECORDED",
            actor_id=actor.id,
            entity_type="referral_transaction",
            entity_id=transaction.id,
            metadata={"referral_id": str(referral.id), "amount": str(transaction.amount)},
        )
        self.db.commit()
        return transaction

    def mark_transaction_paid(self, actor: Principal, transaction_id: UUID) -> ReferralTransaction:
        """Flip a pending cashback to paid. Already paid is a no-op."""
        _require_system_admin(actor)
        transaction = self.db.get(ReferralTransaction, transaction_id)
        if transaction is None:
            raise NotFoundError("Referral transaction")
        if transaction.status == TransactionStatus.PAID.value:
            return transaction

        transaction.status = TransactionStatus.PAID.value
        transaction.paid_at = utcnow()
        log_audit_event(
            self.db,
            action="REFERRAL_CASHBACK_PAID",
            actor_id=actor.id,
            entity_type="referral_transaction",
            entity_id=transaction.id,
            metadata={"amount": str(transaction.amount)},
        )
        self.db.commit()
        return transaction
