"""Lockers: mailing locations, mailbox clusters, mailboxes and parcel fit checks"""
