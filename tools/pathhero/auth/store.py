"""MongoDB-backed user store with bcrypt secrets.

Users collection layout:

    _id:    ObjectId generated by MongoDB
    userid: username or external-auth token (unique lookup key)
    secret: bcrypt hash, or the hash of a random throwaway password when the
            user came in through external authentication
"""

from __future__ import annotations

import secrets
from dataclasses import asdict, dataclass
from typing import Any, Optional

from pymongo import ReturnDocument
from pymongo.errors import DuplicateKeyError

from ..adapter import resolve
from ..database import Database
from ..errors import StoreError
from .hasher import CredentialHasher

SUCCESS = "success"
INCORRECT_CREDENTIALS = "Incorrect user name or password"


@dataclass(frozen=True)
class AuthResult:
    """Outcome of a credential check. ``id`` is ``None`` on failure."""

    id: Optional[str]
    message: str

    @property
    def ok(self) -> bool:
        return self.id is not None

    def as_dict(self) -> dict[str, Any]:
        return asdict(self)


class UserStore:
    """Find-or-create and credential validation over the Users collection.

    Args:
        db: Shared database handle.
        hasher: Password hasher. Defaults to bcrypt at the default cost.
    """

    def __init__(self, db: Database, hasher: Optional[CredentialHasher] = None) -> None:
        self._db = db
        self.hasher = hasher or CredentialHasher()
        self._indexed = False

    async def ensure_indexes(self) -> None:
        """Create the unique ``userid`` index the find-or-create upsert relies on.

        Runs once per store; later calls return immediately.
        """
        if self._indexed:
            return
        await resolve(self._db.users.create_index, "userid", unique=True)
        self._indexed = True

    async def find_or_create_user(self, userid: str, password: Optional[str] = None) -> str:
        """Ensure a user record exists for ``userid``.

        Without a password a random one is generated and only its hash is
        kept. An existing record is left untouched, so the first password
        registered for a userid stays the valid one.

        Returns the ``userid`` whether or not a record was inserted.
        """
        password = password or secrets.token_urlsafe()
        secret = await self.hasher.hash(password)
        await self.ensure_indexes()

        try:
            await resolve(
                self._db.users.find_one_and_update,
                {"userid": userid},
                {"$setOnInsert": {"userid": userid, "secret": secret}},
                upsert=True,
                return_document=ReturnDocument.BEFORE,
            )
        except StoreError as exc:
            # A concurrent upsert for the same userid won the insert.
            if not isinstance(exc.__cause__, DuplicateKeyError):
                raise
        return userid

    async def validate_user(self, userid: str, password: str) -> AuthResult:
        """Check a userid/password pair without touching storage.

        Unknown users are verified against the decoy hash so the bcrypt cost
        does not reveal whether the userid exists.
        """
        doc = await resolve(self._db.users.find_one, {"userid": userid})
        secret = doc.get("secret") if doc else None

        is_match = await self.hasher.verify(password, secret or self.hasher.decoy_hash)

        if not secret or not is_match:
            return AuthResult(id=None, message=INCORRECT_CREDENTIALS)
        return AuthResult(id=doc["userid"], message=SUCCESS)
