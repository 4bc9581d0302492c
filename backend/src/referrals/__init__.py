"""Referrals: codes, deferred attribution and the cashback ledger"""
