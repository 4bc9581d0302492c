"""Referrals domain module - code generation and ledger statistics"""

from .codes import derive_base_code, generate_unique_code, hash_code, MAX_ATTEMPTS
from .commission import DEFAULT_CASHBACK_PERCENTAGE, commission_amount
from .stats import ReferralStats, ReferralStatus, TransactionStatus, compute_stats

__all__ = [
    "derive_base_code",
    "generate_unique_code",
    "hash_code",
    "MAX_ATTEMPTS",
    "ReferralStats",
    "ReferralStatus",
    "TransactionStatus",
    "compute_stats",
    "DEFAULT_CASHBACK_PERCENTAGE",
    "commission_amount",
]
