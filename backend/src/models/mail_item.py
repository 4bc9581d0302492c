"""MailItem SQLAlchemy model

A physical piece of mail logged by an operator on an owner's behalf.
Status follows the MailStatus state machine (domain/mail/mail_status.py).
"""

from typing import Any, Dict
from uuid import uuid4

from sqlalchemy import Column, Text, Boolean, ForeignKey, CheckConstraint, Index, DateTime, Uuid
from sqlalchemy.orm import relationship

from domain.mail.mail_status import MailStatus, display_status
from .base import Base, PortableJSONB, utcnow


class MailItem(Base):
    """Mail item owned by exactly one of: a personal profile, a business account.

    Lifecycle:
    1. Logged by an operator with an envelope photo (status=RECEIVED)
    2. Opened and scanned on request (status=SCANNED, full_scan_ref set)
    3. Reviewed (status=PROCESSED), or forwarded/shredded (terminal)

    Items are never deleted. Archival hides an item from the inbox without
    touching its status.
    """
    __tablename__ = "mail_item"
    __table_args__ = (
        CheckConstraint(
            "(profile_id IS NULL) <> (business_account_id IS NULL)",
            name="ck_mail_item_single_owner"
        ),
        CheckConstraint(
            "status IN ('RECEIVED', 'SCANNED', 'PROCESSED', 'FORWARDED', 'SHREDDED')",
            name="ck_mail_item_status"
        ),
        Index("ix_mail_item_profile_received", "profile_id", "received_at"),
        Index("ix_mail_item_business_received", "business_account_id", "received_at"),
    )

    id = Column(Uuid, primary_key=True, default=uuid4)
    profile_id = Column(Uuid, ForeignKey("profile.id", ondelete="RESTRICT"), nullable=True)
    business_account_id = Column(
        Uuid,
        ForeignKey("business_account.id", ondelete="RESTRICT"),
        nullable=True
    )
    sender = Column(Text, nullable=False)
    subject = Column(Text, nullable=True)
    received_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    status = Column(Text, nullable=False, default=MailStatus.RECEIVED.value)
    is_archived = Column(Boolean, nullable=False, default=False)
    envelope_scan_ref = Column(Text, nullable=True)  # Object storage key
    full_scan_ref = Column(Text, nullable=True)  # Set once a scan request is fulfilled
    tags = Column(PortableJSONB, nullable=False, default=list)
    category = Column(Text, nullable=True)
    notes = Column(Text, nullable=True)
    forward_address = Column(Text, nullable=True)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    action_requests = relationship(
        "ActionRequest",
        back_populates="mail_item",
        order_by="ActionRequest.requested_at"
    )

    @property
    def mail_status(self) -> MailStatus:
        return MailStatus(self.status)

    @property
    def is_business_item(self) -> bool:
        return self.business_account_id is not None

    @property
    def display_status(self) -> str:
        return display_status(self.mail_status, bool(self.is_archived))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": str(self.id),
            "profile_id": str(self.profile_id) if self.profile_id else None,
            "business_account_id": str(self.business_account_id) if self.business_account_id else None,
            "sender": self.sender,
            "subject": self.subject,
            "received_at": self.received_at.isoformat() if self.received_at else None,
            "status": self.status,
            "display_status": self.display_status,
            "is_archived": bool(self.is_archived),
            "tags": list(self.tags or []),
            "category": self.category,
            "notes": self.notes,
        }
