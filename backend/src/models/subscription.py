"""Subscription SQLAlchemy model"""

from uuid import uuid4

from sqlalchemy import Column, Text, ForeignKey, CheckConstraint, Index, DateTime, Numeric, Uuid
from sqlalchemy.orm import relationship

from .base import Base, utcnow


class Subscription(Base):
    """Paid plan held by a profile.

    Created INACTIVE at checkout; becomes ACTIVE once the payment is
    confirmed, at which point a mailbox is assigned.
    """
    __tablename__ = "subscription"
    __table_args__ = (
        CheckConstraint(
            "plan_type IN ('FREE', 'BASIC', 'PREMIUM', 'BUSINESS')",
            name="ck_subscription_plan_type"
        ),
        CheckConstraint(
            "billing_cycle IN ('MONTHLY', 'QUARTERLY', 'YEARLY')",
            name="ck_subscription_billing_cycle"
        ),
        CheckConstraint(
            "status IN ('ACTIVE', 'INACTIVE', 'CANCELLED')",
            name="ck_subscription_status"
        ),
        Index("ix_subscription_profile_status", "profile_id", "status"),
        Index("ix_subscription_mailbox_status", "mailbox_id", "status"),
    )

    id = Column(Uuid, primary_key=True, default=uuid4)
    profile_id = Column(Uuid, ForeignKey("profile.id", ondelete="RESTRICT"), nullable=False)
    mailbox_id = Column(Uuid, ForeignKey("mailbox.id", ondelete="SET NULL"), nullable=True)
    plan_type = Column(Text, nullable=False)
    billing_cycle = Column(Text, nullable=False, default="MONTHLY")
    status = Column(Text, nullable=False, default="INACTIVE")
    amount = Column(Numeric(12, 2), nullable=True)
    invoice_url = Column(Text, nullable=True)
    started_at = Column(DateTime(timezone=True), nullable=True)
    next_billing_date = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    profile = relationship("Profile", back_populates="subscriptions")
    mailbox = relationship("Mailbox", back_populates="subscriptions")

    def to_dict(self):
        return {
            "id": str(self.id),
            "profile_id": str(self.profile_id),
            "mailbox_id": str(self.mailbox_id) if self.mailbox_id else None,
            "plan_type": self.plan_type,
            "billing_cycle": self.billing_cycle,
            "status": self.status,
            "amount": float(self.amount) if self.amount is not None else None,
            "invoice_url": self.invoice_url,
            "started_at": self.started_at.isoformat() if self.started_at else None,
            "next_billing_date": self.next_billing_date.isoformat() if self.next_billing_date else None,
        }
