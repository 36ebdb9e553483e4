"""One-way password hashing (bcrypt).

We never store the raw password, only the salted bcrypt hash.
"""

import secrets
from typing import Optional

import bcrypt

BCRYPT_ROUNDS = 10
MIN_PASSWORD_LENGTH = 6
# bcrypt only reads the first 72 bytes of its input.
BCRYPT_MAX_BYTES = 72


def _password_bytes(password: str) -> bytes:
    """UTF-8 encode and cut to the bytes bcrypt actually uses."""
    return password.encode("utf-8")[:BCRYPT_MAX_BYTES]


def hash_password(password: str) -> str:
    """Hash a plaintext password with a fresh salt.

    Args:
        password: Plaintext password; only its first 72 UTF-8 bytes count

    Returns:
        bcrypt hash as a UTF-8 string
    """
    salt = bcrypt.gensalt(rounds=BCRYPT_ROUNDS)
    return bcrypt.hashpw(_password_bytes(password), salt).decode("utf-8")


def verify_password(password: str, hashed: Optional[str]) -> bool:
    """Check a plaintext password against a stored hash.

    Returns False (never raises) when there is no stored hash or it is malformed.
    """
    if not hashed or password is None:
        return False
    try:
        return bcrypt.checkpw(_password_bytes(password), hashed.encode("utf-8"))
    except ValueError:
        return False


def generate_throwaway_password() -> str:
    """Random password for accounts created without one (e.g. Google sign-in)."""
    return secrets.token_urlsafe(16)
