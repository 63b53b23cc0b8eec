"""Authentication module."""

from src.auth.dependencies import get_current_user, get_optional_user, is_admin, require_admin
from src.auth.passwords import hash_password, unusable_password_hash, verify_password

__all__ = [
    "get_current_user",
    "get_optional_user",
    "hash_password",
    "is_admin",
    "require_admin",
    "unusable_password_hash",
    "verify_password",
]
