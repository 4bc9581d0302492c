"""AuditLog SQLAlchemy model"""

from uuid import uuid4

from sqlalchemy import Column, Text, ForeignKey, Index, DateTime, Uuid

from .base import Base, PortableJSONB, utcnow


class AuditLog(Base):
    """AuditLog model for immutable activity logging.

    Records access decisions at back-office boundaries and every mail,
    locker and billing mutation. Entries are append-only and should never
    be updated or deleted.
    """
    __tablename__ = "audit_log"
    __table_args__ = (
        Index("ix_audit_log_created_at", "created_at"),
        Index("ix_audit_log_actor_id_created_at", "actor_id", "created_at"),
    )

    id = Column(Uuid, primary_key=True, default=uuid4)
    actor_id = Column(Uuid, ForeignKey("profile.id", ondelete="SET NULL"), nullable=True)
    action = Column(Text, nullable=False)
    entity_type = Column(Text, nullable=True)
    entity_id = Column(Text, nullable=True)
    metadata_json = Column(PortableJSONB, nullable=True)
    ip_address = Column(Text, nullable=True)
    user_agent = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    def to_dict(self):
        """Convert audit log entry to dictionary representation"""
        return {
            "id": str(self.id),
            "actor_id": str(self.actor_id) if self.actor_id else None,
            "action": self.action,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "metadata": self.metadata_json,
            "ip_address": self.ip_address,
            "user_agent": self.user_agent,
            "created_at": self.created_at.isoformat() if self.created_at else None
        }
