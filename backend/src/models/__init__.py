"""SQLAlchemy Models for the mailroom backend"""

from .base import Base
from .profile import Profile, BusinessAccount
from .audit_log import AuditLog
from .mail_item import MailItem
from .action_request import ActionRequest
from .locker import MailingLocation, MailboxCluster, Mailbox
from .subscription import Subscription
from .referral import Referral, ReferralTransaction
from .package import Package

__all__ = [
    "Base",
    "Profile",
    "BusinessAccount",
    "AuditLog",
    "MailItem",
    "ActionRequest",
    "MailingLocation",
    "MailboxCluster",
    "Mailbox",
    "Subscription",
    "Referral",
    "ReferralTransaction",
    "Package",
]
