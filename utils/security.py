"""
security helpers:
- Argon2 password hashing via argon2-cffi
- Random identifiers for credentials (JTI) and opaque refresh tokens
"""
from __future__ import annotations

import secrets
import uuid

from argon2 import PasswordHasher
from argon2.exceptions import InvalidHashError, VerificationError

ph = PasswordHasher()

# 40 random bytes, hex encoded: 320 bits of entropy
REFRESH_TOKEN_BYTES = 40


def hash_password(password: str) -> str:
    """Hash a plaintext password using Argon2
    """
    return ph.hash(password)


def verify_password(password: str, password_hash: str | None) -> bool:
    """ Verify a plaintext password using argon2; accounts without a hash never match
    """
    if not password_hash:
        return False
    try:
        return ph.verify(password_hash, password)
    except (VerificationError, InvalidHashError):
        return False


def generate_jti() -> str:
    """Generate a unique JTI (JWT ID).
    """
    return str(uuid.uuid4())


def generate_refresh_token() -> str:
    return secrets.token_hex(REFRESH_TOKEN_BYTES)


def mask(token: str | None, keep: int = 6) -> str:
    """Shorten a secret for log output."""
    if not token:
        return ""
    return token[:keep] + "..."
