"""Locker hierarchy models: MailingLocation → MailboxCluster → Mailbox

Strict containment. Every active location keeps at least one cluster; the
rule is enforced by the locker service inside the deleting transaction.
"""

from decimal import Decimal
from uuid import uuid4

from sqlalchemy import (
    Column, Text, Boolean, Numeric, ForeignKey, CheckConstraint,
    UniqueConstraint, DateTime, Uuid
)
from sqlalchemy.orm import relationship

from domain.lockers.parcel_fit import Dimensions, DimensionUnit
from .base import Base, utcnow


class MailingLocation(Base):
    """Physical site where mail is received and stored."""
    __tablename__ = "mailing_location"

    id = Column(Uuid, primary_key=True, default=uuid4)
    name = Column(Text, nullable=False)
    address = Column(Text, nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    clusters = relationship(
        "MailboxCluster",
        back_populates="location",
        order_by="MailboxCluster.name"
    )

    def to_dict(self):
        return {
            "id": str(self.id),
            "name": self.name,
            "address": self.address,
            "is_active": bool(self.is_active),
            "cluster_count": len(self.clusters),
        }


class MailboxCluster(Base):
    """Named group of mailboxes within one location."""
    __tablename__ = "mailbox_cluster"

    id = Column(Uuid, primary_key=True, default=uuid4)
    mailing_location_id = Column(
        Uuid,
        ForeignKey("mailing_location.id", ondelete="RESTRICT"),
        nullable=False
    )
    name = Column(Text, nullable=False)
    description = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    location = relationship("MailingLocation", back_populates="clusters")
    mailboxes = relationship(
        "Mailbox",
        back_populates="cluster",
        order_by="Mailbox.box_number"
    )

    def to_dict(self):
        return {
            "id": str(self.id),
            "mailing_location_id": str(self.mailing_location_id),
            "name": self.name,
            "description": self.description,
            "mailbox_count": len(self.mailboxes),
        }


class Mailbox(Base):
    """Individually addressable box or parcel locker.

    is_occupied mirrors whether an ACTIVE subscription references the box.
    It is only written by the billing and locker services, never from
    client input.
    """
    __tablename__ = "mailbox"
    __table_args__ = (
        UniqueConstraint("cluster_id", "box_number", name="uq_mailbox_cluster_box_number"),
        CheckConstraint("type IN ('STANDARD', 'LARGE', 'PARCEL_LOCKER')", name="ck_mailbox_type"),
        CheckConstraint("dimension_unit IN ('CM', 'INCH')", name="ck_mailbox_dimension_unit"),
        CheckConstraint("width > 0 AND height > 0 AND depth > 0", name="ck_mailbox_dimensions_positive"),
    )

    id = Column(Uuid, primary_key=True, default=uuid4)
    cluster_id = Column(Uuid, ForeignKey("mailbox_cluster.id", ondelete="RESTRICT"), nullable=False)
    box_number = Column(Text, nullable=False)
    type = Column(Text, nullable=False, default="STANDARD")
    width = Column(Numeric(10, 2), nullable=False)
    height = Column(Numeric(10, 2), nullable=False)
    depth = Column(Numeric(10, 2), nullable=False)
    dimension_unit = Column(Text, nullable=False, default="CM")
    is_occupied = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    cluster = relationship("MailboxCluster", back_populates="mailboxes")
    subscriptions = relationship("Subscription", back_populates="mailbox")

    @property
    def dimensions(self) -> Dimensions:
        return Dimensions.of(
            Decimal(str(self.width)),
            Decimal(str(self.height)),
            Decimal(str(self.depth)),
            DimensionUnit(self.dimension_unit),
        )

    def to_dict(self):
        return {
            "id": str(self.id),
            "cluster_id": str(self.cluster_id),
            "box_number": self.box_number,
            "type": self.type,
            "width": float(self.width),
            "height": float(self.height),
            "depth": float(self.depth),
            "dimension_unit": self.dimension_unit,
            "is_occupied": bool(self.is_occupied),
        }
