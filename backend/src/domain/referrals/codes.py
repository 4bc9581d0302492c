"""Referral code generation.

A code is derived from the principal id so most principals get a stable,
recognisable code on the first try. Collisions fall back to a short random
suffix and, as a last resort, to a hash of the full id.

The unique constraint on profile.referral_code is what actually guarantees
uniqueness; the existence check here only avoids most constraint violations.
"""

import hashlib
import random
import re
import string
from typing import Callable, Optional

BASE_CODE_LENGTH = 8
SUFFIX_KEEP = 6
SUFFIX_LENGTH = 2
MAX_ATTEMPTS = 10

_NON_ALNUM = re.compile(r"[^A-Z0-9]")
_ALPHABET = string.ascii_uppercase + string.digits


def derive_base_code(principal_id: str) -> str:
    """First 8 characters of the id, uppercased, non-alphanumerics stripped.

    Example:
        >>> derive_base_code("3f2a9c1e-77aa-4b1b-9d1e-000000000000")
        '3F2A9C1E'
        >>> derive_base_code("ab-cd-ef-gh")
        'ABCDEF'
    """
    return _NON_ALNUM.sub("", str(principal_id)[:BASE_CODE_LENGTH].upper())


def hash_code(principal_id: str) -> str:
    """Deterministic fallback code from a SHA-256 of the full id."""
    digest = hashlib.sha256(str(principal_id).encode("utf-8")).hexdigest()
    return digest[:BASE_CODE_LENGTH].upper()


def random_suffix(rng: random.Random, length: int = SUFFIX_LENGTH) -> str:
    return "".join(rng.choice(_ALPHABET) for _ in range(length))


def generate_unique_code(
    principal_id: str,
    code_exists: Callable[[str], bool],
    rng: Optional[random.Random] = None,
) -> str:
    """Generate a referral code not yet taken according to code_exists.

    Args:
        principal_id: Profile id the code is derived from
        code_exists: Lookup returning True when a code is already assigned
        rng: Random source for suffixes (injectable for tests)

    Returns:
        A candidate code. The hash fallback is returned unchecked after
        MAX_ATTEMPTS collisions; the storage constraint has the final say.
    """
    rng = rng or random.SystemRandom()
    base = derive_base_code(principal_id)
    candidate = base

    for _ in range(MAX_ATTEMPTS):
        if not code_exists(candidate):
            return candidate
        candidate = base[:SUFFIX_KEEP] + random_suffix(rng)

    return hash_code(principal_id)
