"""MongoDB-backed hunt store.

Hunts collection layout:

    {
       _id: ObjectId (generated on add)
       creatorId: userid of the owner
       url: player URL (generated on add, never regenerated)
       huntName: str
       huntDesc: str
       huntInfo: {numOfLocations: int, huntTimeEst: float, huntDistance: float}
       pins: [
         {
           answer: str
           geo: {lat: float, lng: float}
           clues: [str]
           answerField: str
         },
         ...
       ]
    }
"""

from __future__ import annotations

from typing import Any, Mapping, Optional

import jsonschema
from pymongo import ReturnDocument

from .adapter import resolve
from .database import Database, coerce_id, new_id
from .errors import InvalidHuntError

_NUMBER = {"type": "number"}
_STRING = {"type": "string"}

HUNT_SCHEMA = {
    "type": "object",
    "properties": {
        "creatorId": _STRING,
        "huntName": _STRING,
        "huntDesc": _STRING,
        "huntInfo": {
            "type": "object",
            "properties": {
                "numOfLocations": {"type": "integer"},
                "huntTimeEst": _NUMBER,
                "huntDistance": _NUMBER,
            },
        },
        "pins": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {
                    "answer": _STRING,
                    "geo": {
                        "type": "object",
                        "properties": {"lat": _NUMBER, "lng": _NUMBER},
                    },
                    "clues": {"type": "array", "items": _STRING},
                    "answerField": _STRING,
                },
            },
        },
    },
}


def build_hunt_url(domain: str, play_subdomain: str, hunt_id: Any) -> str:
    return f"http://{play_subdomain}.{domain}/{hunt_id}"


def validate_hunt(hunt: Mapping[str, Any]) -> None:
    """Raise InvalidHuntError if ``hunt`` has a field of the wrong shape."""
    try:
        jsonschema.validate(dict(hunt), HUNT_SCHEMA)
    except jsonschema.ValidationError as exc:
        raise InvalidHuntError(exc.message) from exc


class HuntStore:
    """CRUD over the Hunts collection.

    Args:
        db: Shared database handle.
        domain: Public domain the player site is served from.
        play_subdomain: Subdomain prefixed to ``domain`` in player URLs.
    """

    def __init__(self, db: Database, domain: str, play_subdomain: str) -> None:
        self._db = db
        self.domain = domain
        self.play_subdomain = play_subdomain

    def hunt_url(self, hunt_id: Any) -> str:
        return build_hunt_url(self.domain, self.play_subdomain, hunt_id)

    async def add_hunt(self, hunt: Mapping[str, Any]) -> str:
        """Store a new hunt under a generated id and return its player URL."""
        validate_hunt(hunt)
        doc = dict(hunt)
        doc["_id"] = new_id()
        doc["url"] = self.hunt_url(doc["_id"])

        await resolve(self._db.hunts.insert_one, doc)
        return doc["url"]

    async def update_hunt(self, hunt: Mapping[str, Any]) -> Optional[dict]:
        """Replace the hunt whose ``_id`` matches ``hunt["_id"]``.

        Every field is overwritten except ``_id`` and ``url``, which keep their
        stored values. Returns the updated document, or ``None`` if no hunt
        with that id exists.
        """
        validate_hunt(hunt)
        hunt_id = coerce_id(hunt.get("_id"))

        stored = await resolve(self._db.hunts.find_one, {"_id": hunt_id})
        if stored is None:
            return None

        replacement = {k: v for k, v in hunt.items() if k not in ("_id", "url")}
        if "url" in stored:
            replacement["url"] = stored["url"]

        return await resolve(
            self._db.hunts.find_one_and_replace,
            {"_id": hunt_id},
            replacement,
            return_document=ReturnDocument.AFTER,
        )

    async def get_user_hunts(self, userid: str) -> list[dict]:
        """All hunts created by ``userid``; empty if there are none."""
        return await resolve(self._find_all, {"creatorId": userid})

    async def remove_hunt_by_id(self, hunt_id: Any) -> Optional[dict]:
        """Delete a hunt and return it. Malformed ids behave as not found."""
        return await resolve(
            self._db.hunts.find_one_and_delete, {"_id": coerce_id(hunt_id)}
        )

    async def get_hunt_by_id(self, hunt_id: Any) -> Optional[dict]:
        """Return a hunt, or ``None``. Malformed ids behave as not found."""
        return await resolve(self._db.hunts.find_one, {"_id": coerce_id(hunt_id)})

    async def get_all_hunts(self) -> list[dict]:
        return await resolve(self._find_all, {})

    def _find_all(self, query: dict) -> list[dict]:
        # Drain the cursor inside the worker thread; iteration does I/O.
        return list(self._db.hunts.find(query))
