#!/usr/bin/env python
"""Seed script to create the first back-office profile.

Profiles are normally provisioned by the auth provider on sign-up with the
END_USER role. Staff have no self-service path, so the first operator or
system admin is created here; further role changes go through the database.

Usage:
    python backend/scripts/seed_staff.py

Environment Variables:
    DATABASE_URL: PostgreSQL connection string (read through Settings)
    STAFF_EMAIL: Email of the staff profile (default: admin@example.com)
    STAFF_ROLE: OPERATOR or SYSTEM_ADMIN (default: SYSTEM_ADMIN)
"""

import os
import sys
from pathlib import Path

backend_src = Path(__file__).parent.parent / "src"
sys.path.insert(0, str(backend_src))

from sqlalchemy.exc import SQLAlchemyError

from auth.roles import UserRole
from database import get_db_session
from models.profile import Profile


STAFF_ROLES = {UserRole.OPERATOR.value, UserRole.SYSTEM_ADMIN.value}


def main():
    email = os.getenv("STAFF_EMAIL", "admin@example.com").strip().lower()
    role = os.getenv("STAFF_ROLE", UserRole.SYSTEM_ADMIN.value).upper()

    if role not in STAFF_ROLES:
        print(f"ERROR: STAFF_ROLE must be one of {sorted(STAFF_ROLES)}, got {role}")
        sys.exit(1)

    try:
        with get_db_session() as session:
            profile = session.query(Profile).filter(Profile.email == email).first()

            if profile is None:
                profile = Profile(email=email, role=role)
                session.add(profile)
                verb = "created"
            elif profile.role == role:
                print(f"Profile {email} already has role {role}; nothing to do")
                return
            else:
                profile.role = role
                verb = "promoted"

            session.flush()
            print("SUCCESS: Staff profile " + verb)
            print(f"  ID:    {profile.id}")
            print(f"  Email: {profile.email}")
            print(f"  Role:  {profile.role}")

    except SQLAlchemyError as e:
        print(f"ERROR: Failed to seed staff profile: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
