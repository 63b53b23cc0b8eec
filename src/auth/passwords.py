"""Password hashing."""

import secrets

from passlib.context import CryptContext
from passlib.exc import UnknownHashError

pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")


def hash_password(plain: str) -> str:
    return pwd_context.hash(plain)


def verify_password(plain: str, hashed: str) -> bool:
    """Check a password; malformed stored hashes never match."""
    try:
        return pwd_context.verify(plain, hashed)
    except (UnknownHashError, ValueError):
        return False


def unusable_password_hash() -> str:
    """Hash of a random secret, for accounts restored without credentials."""
    return hash_password(secrets.token_urlsafe(32))
