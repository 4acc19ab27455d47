"""
Path Hero Auth: user authentication.

Provides MongoDB-backed user storage with bcrypt password hashing and
signed session tokens.

Usage:
    from pathhero.auth.store import UserStore

    store = UserStore(db)
    await store.find_or_create_user("owl", "password123")
    await store.validate_user("owl", "password123")  # AuthResult(id="owl", ...)
"""

from .hasher import CredentialHasher, DECOY_HASH
from .store import AuthResult, UserStore

__all__ = ["AuthResult", "CredentialHasher", "DECOY_HASH", "UserStore"]
