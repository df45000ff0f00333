"""
Credential verifier: Argon2 password hashing via argon2-cffi.

looks_hashed() is a format sniff for the "$argon2" encoded-hash prefix
family. It keeps update paths from hashing an already hashed value twice.
It is a heuristic: a plaintext password that happens to be a well-formed
Argon2 string would be stored as-is.
"""
from __future__ import annotations

import logging
import re

from argon2 import PasswordHasher
from argon2.exceptions import InvalidHashError, VerificationError

logger = logging.getLogger(__name__)

ph = PasswordHasher()

_ARGON2_PREFIX = re.compile(r"^\$argon2(id|i|d)\$v=\d+\$")


def hash_password(password: str) -> str:
    """Hash a plaintext password using Argon2 (fresh salt per call)."""
    logger.debug("Hashing password")
    return ph.hash(password)


def verify_password(password: str, password_hash: str | None) -> bool:
    """Verify a plaintext password against a stored hash.

    Returns False without hashing anything when there is no stored hash.
    """
    if not password_hash:
        return False
    try:
        return ph.verify(password_hash, password)
    except (VerificationError, InvalidHashError):
        return False


def looks_hashed(value: str | None) -> bool:
    return bool(value and _ARGON2_PREFIX.match(value))
