"""Referral and ReferralTransaction SQLAlchemy models"""

from uuid import uuid4

from sqlalchemy import Column, Text, ForeignKey, CheckConstraint, Numeric, DateTime, UniqueConstraint, Uuid
from sqlalchemy.orm import relationship

from .base import Base, utcnow


class Referral(Base):
    """Attribution of a referred profile to its referrer.

    At most one row per referred profile (unique referred_id).
    """
    __tablename__ = "referral"
    __table_args__ = (
        CheckConstraint("status IN ('pending', 'active')", name="ck_referral_status"),
    )

    id = Column(Uuid, primary_key=True, default=uuid4)
    referrer_id = Column(Uuid, ForeignKey("profile.id", ondelete="CASCADE"), nullable=False)
    referred_id = Column(Uuid, ForeignKey("profile.id", ondelete="CASCADE"), nullable=False, unique=True)
    referral_code = Column(Text, nullable=False)
    status = Column(Text, nullable=False, default="pending")
    subscription_plan = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    referrer = relationship("Profile", foreign_keys=[referrer_id])
    referred = relationship("Profile", foreign_keys=[referred_id])
    transactions = relationship("ReferralTransaction", back_populates="referral")


class ReferralTransaction(Base):
    """Append-only cashback ledger entry. Totals are always summed, never stored.

    invoice_ref is set on commissions earned from a paid invoice; a referral
    earns at most one commission per invoice.
    """
    __tablename__ = "referral_transaction"
    __table_args__ = (
        CheckConstraint("status IN ('pending', 'paid')", name="ck_referral_transaction_status"),
        CheckConstraint("amount >= 0", name="ck_referral_transaction_amount"),
        UniqueConstraint("referral_id", "invoice_ref", name="uq_referral_transaction_invoice"),
    )

    id = Column(Uuid, primary_key=True, default=uuid4)
    referral_id = Column(Uuid, ForeignKey("referral.id", ondelete="CASCADE"), nullable=False)
    amount = Column(Numeric(12, 2), nullable=False)
    status = Column(Text, nullable=False, default="pending")
    description = Column(Text, nullable=True)
    invoice_ref = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    paid_at = Column(DateTime(timezone=True), nullable=True)

    referral = relationship("Referral", back_populates="transactions")

    def to_dict(self):
        return {
            "id": str(self.id),
            "referral_id": str(self.referral_id),
            "amount": float(self.amount),
            "status": self.status,
            "description": self.description,
            "invoice_ref": self.invoice_ref,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
