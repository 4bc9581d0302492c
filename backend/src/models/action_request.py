"""ActionRequest SQLAlchemy model

A physical operation (scan/forward/shred) requested by a mail owner and
worked through the operator queue.
"""

from uuid import uuid4

from sqlalchemy import Column, Text, ForeignKey, CheckConstraint, Index, DateTime, Uuid
from sqlalchemy.orm import relationship

from domain.mail.action_requests import ActionPriority, ActionStatus, ActionType
from .base import Base, utcnow


class ActionRequest(Base):
    """Owner request for a physical action on a mail item.

    SHRED requests are two-phase: confirmed_at must be set by an operator
    confirmation before fulfillment destroys the item.
    """
    __tablename__ = "action_request"
    __table_args__ = (
        CheckConstraint(
            "action_type IN ('SCAN', 'FORWARD', 'SHRED')",
            name="ck_action_request_type"
        ),
        CheckConstraint(
            "status IN ('PENDING', 'IN_PROGRESS', 'REQUIRES_APPROVAL', 'COMPLETED')",
            name="ck_action_request_status"
        ),
        CheckConstraint(
            "priority IN ('LOW', 'MEDIUM', 'HIGH')",
            name="ck_action_request_priority"
        ),
        Index("ix_action_request_status_requested", "status", "requested_at"),
        Index("ix_action_request_mail_item", "mail_item_id"),
    )

    id = Column(Uuid, primary_key=True, default=uuid4)
    mail_item_id = Column(Uuid, ForeignKey("mail_item.id", ondelete="CASCADE"), nullable=False)
    requested_by = Column(Uuid, ForeignKey("profile.id", ondelete="RESTRICT"), nullable=False)
    action_type = Column(Text, nullable=False)
    status = Column(Text, nullable=False, default=ActionStatus.PENDING.value)
    priority = Column(Text, nullable=False, default=ActionPriority.MEDIUM.value)
    forward_address = Column(Text, nullable=True)
    notes = Column(Text, nullable=True)
    confirmed_at = Column(DateTime(timezone=True), nullable=True)
    confirmed_by = Column(Uuid, ForeignKey("profile.id", ondelete="SET NULL"), nullable=True)
    requested_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    completed_at = Column(DateTime(timezone=True), nullable=True)
    completed_by = Column(Uuid, ForeignKey("profile.id", ondelete="SET NULL"), nullable=True)

    mail_item = relationship("MailItem", back_populates="action_requests")

    @property
    def type(self) -> ActionType:
        return ActionType(self.action_type)

    @property
    def request_status(self) -> ActionStatus:
        return ActionStatus(self.status)

    def to_dict(self):
        return {
            "id": str(self.id),
            "mail_item_id": str(self.mail_item_id),
            "requested_by": str(self.requested_by),
            "action_type": self.action_type,
            "status": self.status,
            "priority": self.priority,
            "forward_address": self.forward_address,
            "confirmed_at": self.confirmed_at.isoformat() if self.confirmed_at else None,
            "requested_at": self.requested_at.isoformat() if self.requested_at else None,
            "completed_at": self.completed_at.isoformat() if self.completed_at else None,
        }
