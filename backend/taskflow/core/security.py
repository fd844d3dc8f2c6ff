"""
security.py — Authentication Utilities (PIN Hashing & Session Tokens)

Purpose:
- Hash & verify PINs (never store raw PINs).
- Generate per-user salts and opaque session tokens.
- Compute session expiry timestamps.

Key Constraints:
- PINs are hashed with PBKDF2-HMAC-SHA256 and an explicit per-user salt, so the
  same PIN under two salts yields two different stored hashes.
- Verification reads salt and rounds back from the stored hash and compares
  in constant time.
- Session tokens are opaque random strings stored server-side; there is no
  JWT and nothing is encoded in the token itself.

This module does NOT:
- Query the database (see taskflow.services.credentials / sessions).
- Define API routes (see taskflow.api.v1.auth).
"""

import re
import secrets
from datetime import datetime, timedelta, timezone

from passlib.hash import pbkdf2_sha256

# -----------------------------------------------------------------------------
# PIN policy
# -----------------------------------------------------------------------------

PIN_PATTERN = re.compile(r"^\d{4,8}$")

SALT_BYTES = 16
TOKEN_BYTES = 32

# Used to burn one hash computation when the username is unknown.
_DUMMY_SALT = "00" * SALT_BYTES


def is_valid_pin(pin) -> bool:
    return pin is not None and bool(PIN_PATTERN.match(str(pin)))


# -----------------------------------------------------------------------------
# PIN Hashing
# -----------------------------------------------------------------------------

def generate_salt() -> str:
    """Random salt, hex encoded."""
    return secrets.token_hex(SALT_BYTES)


def hash_pin(pin: str, salt: str, rounds: int) -> str:
    """
    Hash a PIN with the given hex salt.

    Deterministic for a fixed (pin, salt, rounds) triple.
    """
    hasher = pbkdf2_sha256.using(salt=bytes.fromhex(salt), rounds=rounds)
    return hasher.hash(str(pin))


def verify_pin(pin: str, stored_hash: str) -> bool:
    """
    Check a PIN against a stored hash.

    Salt and round count are read from the stored hash itself, so hashes
    written under an older PIN_HASH_ROUNDS keep verifying. passlib compares
    the digests in constant time.
    """
    if not stored_hash:
        return False
    try:
        return pbkdf2_sha256.verify(str(pin), stored_hash)
    except ValueError:
        # Malformed or foreign hash format in the row.
        return False


def burn_pin_hash(pin: str, rounds: int) -> None:
    """Spend the same hashing time as a real verification."""
    hash_pin(pin, _DUMMY_SALT, rounds)


# -----------------------------------------------------------------------------
# Session Tokens
# -----------------------------------------------------------------------------

def generate_token() -> str:
    """Cryptographically random session token (64 hex chars)."""
    return secrets.token_hex(TOKEN_BYTES)


def token_expiry(ttl_days: int, now: datetime | None = None) -> datetime:
    now = now or datetime.now(timezone.utc)
    return now + timedelta(days=ttl_days)
