"""MongoDB handle shared by the user and hunt stores.

The handle is built once at startup and passed to each store, so tests can
hand in any object that maps collection names to collection-like objects:

    db = Database.connect("127.0.0.1:27017/pathhero")
    users = UserStore(db)
    hunts = HuntStore(db, domain="example.com", play_subdomain="play")
"""

from __future__ import annotations

from typing import Any, Optional

from bson import ObjectId
from pymongo import MongoClient

DEFAULT_URI = "127.0.0.1:27017/pathhero"
DEFAULT_DB_NAME = "pathhero"

# Matches nothing; stands in for ids that are not well formed.
NULL_ID = ObjectId("0" * 24)


class Collections:
    """Collection names."""

    USERS = "Users"
    HUNTS = "Hunts"


def normalize_uri(uri: str) -> str:
    """Prefix a bare ``host:port/db`` address with the mongodb scheme."""
    uri = uri.strip()
    if "://" not in uri:
        return f"mongodb://{uri}"
    return uri


def new_id() -> ObjectId:
    return ObjectId()


def coerce_id(value: Any) -> ObjectId:
    """Turn a caller-supplied hunt id into an ObjectId.

    Accepts an ObjectId, 12 raw bytes, a 12 character string (read as raw
    bytes) or 24 hex characters. Anything else maps to ``NULL_ID``.
    """
    if isinstance(value, ObjectId):
        return value
    if isinstance(value, str) and len(value) == 12:
        try:
            value = value.encode("latin-1")
        except UnicodeEncodeError:
            return NULL_ID
    if isinstance(value, bytes):
        return ObjectId(value) if len(value) == 12 else NULL_ID
    if isinstance(value, str) and len(value) == 24 and ObjectId.is_valid(value):
        return ObjectId(value)
    return NULL_ID


class Database:
    """Owns the process-wide storage connection.

    Args:
        db: A pymongo ``Database`` (or anything indexable by collection name).
        client: The ``MongoClient`` that produced ``db``, closed by ``close()``.
    """

    def __init__(self, db: Any, client: Optional[MongoClient] = None) -> None:
        self._db = db
        self._client = client

    @classmethod
    def connect(cls, uri: str = DEFAULT_URI) -> "Database":
        """Create a client for ``uri``. The driver connects lazily."""
        client = MongoClient(normalize_uri(uri))
        return cls(client.get_default_database(DEFAULT_DB_NAME), client)

    @property
    def name(self) -> str:
        return getattr(self._db, "name", DEFAULT_DB_NAME)

    def collection(self, name: str) -> Any:
        return self._db[name]

    @property
    def users(self) -> Any:
        return self.collection(Collections.USERS)

    @property
    def hunts(self) -> Any:
        return self.collection(Collections.HUNTS)

    def close(self) -> None:
        """Close the client connection, if this handle owns one."""
        if self._client is not None:
            self._client.close()
