"""Profile and BusinessAccount SQLAlchemy models"""

from uuid import uuid4

from sqlalchemy import Column, Text, ForeignKey, CheckConstraint, DateTime, Uuid
from sqlalchemy.orm import relationship, validates
import re

from .base import Base, utcnow


class BusinessAccount(Base):
    """A business customer whose mail is shared by its members.

    Business mail is gated on the account's KYB status rather than on the
    individual member's KYC.
    """
    __tablename__ = "business_account"
    __table_args__ = (
        CheckConstraint(
            "kyb_status IN ('NOT_STARTED', 'PENDING', 'APPROVED', 'REJECTED')",
            name='ck_business_account_kyb_status'
        ),
    )

    id = Column(Uuid, primary_key=True, default=uuid4)
    business_name = Column(Text, nullable=False)
    kyb_status = Column(Text, nullable=False, default="NOT_STARTED")
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    members = relationship("Profile", back_populates="business_account")

    def __repr__(self):
        return f"<BusinessAccount(id={self.id}, name='{self.business_name}')>"


class Profile(Base):
    """Profile of a principal known to the auth provider.

    The auth provider owns sign-in; this row owns everything access decisions
    need: role, plan tier and KYC status. The profile id equals the provider's
    user id (token subject).
    """
    __tablename__ = "profile"
    __table_args__ = (
        CheckConstraint(
            "role IN ('END_USER', 'BUSINESS_MEMBER', 'OPERATOR', 'SYSTEM_ADMIN')",
            name='ck_profile_role'
        ),
        CheckConstraint(
            "plan_type IN ('FREE', 'BASIC', 'PREMIUM', 'BUSINESS')",
            name='ck_profile_plan_type'
        ),
        CheckConstraint(
            "kyc_status IN ('NOT_STARTED', 'PENDING', 'APPROVED', 'REJECTED')",
            name='ck_profile_kyc_status'
        ),
    )

    id = Column(Uuid, primary_key=True, default=uuid4)
    email = Column(Text, nullable=False, unique=True)
    role = Column(Text, nullable=False, default="END_USER")
    plan_type = Column(Text, nullable=False, default="FREE")
    kyc_status = Column(Text, nullable=False, default="NOT_STARTED")
    business_account_id = Column(
        Uuid,
        ForeignKey("business_account.id", ondelete="SET NULL"),
        nullable=True
    )
    referral_code = Column(Text, nullable=True, unique=True)
    referred_by = Column(Uuid, ForeignKey("profile.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    business_account = relationship("BusinessAccount", back_populates="members")
    subscriptions = relationship("Subscription", back_populates="profile")

    @validates('email')
    def validate_email(self, key, value):
        """Basic email format validation"""
        if not re.match(r'^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$', value):
            raise ValueError("Invalid email format")
        return value.lower()

    def to_dict(self):
        return {
            "id": str(self.id),
            "email": self.email,
            "role": self.role,
            "plan_type": self.plan_type,
            "kyc_status": self.kyc_status,
            "business_account_id": str(self.business_account_id) if self.business_account_id else None,
            "referral_code": self.referral_code,
        }
