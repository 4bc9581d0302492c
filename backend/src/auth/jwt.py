"""Session token validation for tokens issued by the auth provider.

The auth provider signs session tokens with a shared HS256 secret. This
module only needs the subject claim: everything else an access decision
depends on (role, plan, KYC status) is read from the profile table, because
those attributes change independently of the session.

Token Claims:
- sub (Subject): Profile ID as UUID string
- email: Principal's email address (informational)
- iat / exp: Issue and expiry timestamps (validated)
"""

from datetime import datetime, timedelta, timezone
from typing import Dict, Any, Optional
from uuid import UUID

import jwt

from config import get_settings


def _get_jwt_secret() -> str:
    """Get JWT_SECRET from settings.

    Raises:
        ValueError: If JWT_SECRET is empty
    """
    secret = get_settings().JWT_SECRET
    if not secret:
        raise ValueError("JWT_SECRET is not configured")
    return secret


def create_access_token(
    profile_id: UUID,
    email: str,
    expires_in_minutes: int = 60,
    secret: Optional[str] = None,
) -> str:
    """Mint a session token the way the auth provider does.

    Used by development seed scripts and tests; production tokens come from
    the provider.
    """
    now = datetime.now(timezone.utc)
    payload = {
        'sub': str(profile_id),
        'email': email,
        'iat': int(now.timestamp()),
        'exp': int((now + timedelta(minutes=expires_in_minutes)).timestamp()),
    }
    return jwt.encode(payload, secret or _get_jwt_secret(), algorithm=get_settings().JWT_ALGORITHM)


def decode_token(token: str) -> Dict[str, Any]:
    """Decode and validate a session token.

    Raises:
        jwt.ExpiredSignatureError: If token has expired
        jwt.InvalidTokenError: If token is invalid or tampered
    """
    return jwt.decode(token, _get_jwt_secret(), algorithms=[get_settings().JWT_ALGORITHM])
