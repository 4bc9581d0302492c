"""Billing: checkout, subscription activation with mailbox assignment, invoices"""
