"""Package SQLAlchemy model"""

from uuid import uuid4

from sqlalchemy import (
    Column, Text, Boolean, Integer, Numeric, ForeignKey, CheckConstraint, DateTime, Uuid,
)

from .base import Base, utcnow


class Package(Base):
    """Catalog entry for a purchasable plan.

    One package per plan type. Quarterly and yearly prices are optional;
    when absent the cycle is billed as the monthly price times its months.
    cashback_percentage is the referrer's commission on each paid invoice.
    """
    __tablename__ = "package"
    __table_args__ = (
        CheckConstraint(
            "plan_type IN ('BASIC', 'PREMIUM', 'BUSINESS')",
            name="ck_package_plan_type"
        ),
        CheckConstraint("price_monthly >= 0", name="ck_package_price_monthly"),
        CheckConstraint(
            "cashback_percentage >= 0 AND cashback_percentage <= 100",
            name="ck_package_cashback_percentage"
        ),
    )

    id = Column(Uuid, primary_key=True, default=uuid4)
    plan_type = Column(Text, nullable=False, unique=True)
    name = Column(Text, nullable=False)
    description = Column(Text, nullable=True)
    price_monthly = Column(Numeric(12, 2), nullable=False)
    price_quarterly = Column(Numeric(12, 2), nullable=True)
    price_yearly = Column(Numeric(12, 2), nullable=True)
    cashback_percentage = Column(Numeric(5, 2), nullable=False, default=5)
    is_active = Column(Boolean, nullable=False, default=True)
    display_order = Column(Integer, nullable=False, default=0)
    created_by = Column(Uuid, ForeignKey("profile.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)
