"""Authentication: provider token validation, principal resolution and route guards"""
