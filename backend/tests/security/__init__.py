"""Security tests for the mailroom API

This module contains security-focused tests including:
- Authentication bypass attempts
- Owner escape (reading another profile's or business's mail)
- SQL injection prevention
"""
