"""Referral statistics recomputed from the ledger on every read."""

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Iterable, Protocol, Union


class ReferralStatus(str, Enum):
    PENDING = "pending"
    ACTIVE = "active"


class TransactionStatus(str, Enum):
    PENDING = "pending"
    PAID = "paid"


class ReferralLike(Protocol):
    has_active_subscription: bool


class TransactionLike(Protocol):
    amount: Union[Decimal, int, float]
    status: str


@dataclass(frozen=True)
class ReferralStats:
    total_referrals: int
    active_referrals: int
    total_earnings: Decimal
    pending_earnings: Decimal


def _sum_by_status(transactions: Iterable[TransactionLike], status: TransactionStatus) -> Decimal:
    total = Decimal("0")
    for txn in transactions:
        if TransactionStatus(txn.status) == status:
            total += Decimal(str(txn.amount))
    return total


def compute_stats(
    referrals: Iterable[ReferralLike],
    transactions: Iterable[TransactionLike],
) -> ReferralStats:
    """Aggregate referral counts and earnings.

    No counter is ever stored: calling this twice over the same ledger gives
    the same answer, whatever order the rows come in.
    """
    referrals = list(referrals)
    transactions = list(transactions)
    return ReferralStats(
        total_referrals=len(referrals),
        active_referrals=sum(1 for r in referrals if r.has_active_subscription),
        total_earnings=_sum_by_status(transactions, TransactionStatus.PAID),
        pending_earnings=_sum_by_status(transactions, TransactionStatus.PENDING),
    )
