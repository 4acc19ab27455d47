"""bcrypt password hashing with a fixed decoy hash.

``DECOY_HASH`` is computed once at import and reused for every lookup that
has no real secret to compare against, so a request for an unknown user
costs the same bcrypt work as a request for a known one.
"""

from __future__ import annotations

from typing import Union

import bcrypt

from ..adapter import resolve_hash

DEFAULT_ROUNDS = 10

# bcrypt only reads this many bytes of a password; newer releases raise on more.
MAX_PASSWORD_BYTES = 72

DECOY_HASH = bcrypt.hashpw(b"decoy", bcrypt.gensalt(DEFAULT_ROUNDS)).decode("utf-8")

Password = Union[str, bytes]


def _encode(value: Password) -> bytes:
    if isinstance(value, bytes):
        return value
    if isinstance(value, str):
        return value.encode("utf-8")
    raise TypeError(f"expected str or bytes, got {type(value).__name__}")


def _password_bytes(value: Password) -> bytes:
    return _encode(value)[:MAX_PASSWORD_BYTES]


class CredentialHasher:
    """Salted one-way hashing for stored user secrets.

    Args:
        rounds: bcrypt cost factor. Hashers with a non-default cost compute
                their own decoy once, at construction, with that cost.
    """

    def __init__(self, rounds: int = DEFAULT_ROUNDS) -> None:
        self.rounds = rounds
        if rounds == DEFAULT_ROUNDS:
            self.decoy_hash = DECOY_HASH
        else:
            self.decoy_hash = bcrypt.hashpw(
                b"decoy", bcrypt.gensalt(rounds)
            ).decode("utf-8")

    def _hash(self, password: Password) -> str:
        return bcrypt.hashpw(
            _password_bytes(password), bcrypt.gensalt(self.rounds)
        ).decode("utf-8")

    def _verify(self, password: Password, stored_hash: Password) -> bool:
        return bcrypt.checkpw(_password_bytes(password), _encode(stored_hash))

    async def hash(self, password: Password) -> str:
        """Hash ``password`` with a fresh random salt.

        Raises:
            HashError: if the password is not text or bcrypt rejects it.
        """
        return await resolve_hash(self._hash, password)

    async def verify(self, password: Password, stored_hash: Password) -> bool:
        """Check ``password`` against ``stored_hash``.

        A mismatch is ``False``; only a malformed hash or input raises.

        Raises:
            HashError: if bcrypt cannot process the inputs.
        """
        return await resolve_hash(self._verify, password, stored_hash)
