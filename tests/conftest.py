"""Shared fixtures: an in-memory stand-in for the Mongo driver."""

import copy
import sys
import threading
from pathlib import Path

import pytest
from bson import ObjectId
from pymongo import ReturnDocument
from pymongo.errors import DuplicateKeyError
from pymongo.results import InsertOneResult

sys.path.insert(0, str(Path(__file__).parent.parent / "tools"))

from pathhero.auth.hasher import CredentialHasher
from pathhero.auth.store import UserStore
from pathhero.database import Database
from pathhero.hunts import HuntStore

TEST_DOMAIN = "pathhero.test"
TEST_SUBDOMAIN = "play"


class FakeCollection:
    """Implements the subset of pymongo.Collection the stores call.

    Queries are plain equality matches. Set ``fail_with`` to an exception to
    make every call raise it.
    """

    def __init__(self, name):
        self.name = name
        self.docs = []
        self.fail_with = None
        self.indexes = []
        self._lock = threading.Lock()

    def _check(self):
        if self.fail_with is not None:
            raise self.fail_with

    @staticmethod
    def _match(doc, query):
        return all(doc.get(k) == v for k, v in (query or {}).items())

    def _index(self, query):
        for i, doc in enumerate(self.docs):
            if self._match(doc, query):
                return i
        return None

    def create_index(self, keys, **kwargs):
        self._check()
        self.indexes.append((keys, kwargs))
        return f"{keys}_1"

    def count_documents(self, query):
        return sum(1 for doc in self.docs if self._match(doc, query))

    def find_one(self, query=None):
        self._check()
        i = self._index(query)
        return None if i is None else copy.deepcopy(self.docs[i])

    def find(self, query=None):
        self._check()
        return iter([copy.deepcopy(d) for d in self.docs if self._match(d, query)])

    def insert_one(self, doc):
        self._check()
        with self._lock:
            doc.setdefault("_id", ObjectId())
            if self._index({"_id": doc["_id"]}) is not None:
                raise DuplicateKeyError("E11000 duplicate key error")
            self.docs.append(copy.deepcopy(doc))
        return InsertOneResult(doc["_id"], True)

    def find_one_and_update(
        self, query, update, upsert=False, return_document=ReturnDocument.BEFORE
    ):
        self._check()
        with self._lock:
            i = self._index(query)
            if i is None:
                if not upsert:
                    return None
                doc = {"_id": ObjectId(), **query}
                doc.update(copy.deepcopy(update.get("$setOnInsert", {})))
                doc.update(copy.deepcopy(update.get("$set", {})))
                self.docs.append(doc)
                return copy.deepcopy(doc) if return_document else None
            before = copy.deepcopy(self.docs[i])
            self.docs[i].update(copy.deepcopy(update.get("$set", {})))
            return copy.deepcopy(self.docs[i]) if return_document else before

    def find_one_and_replace(
        self, query, replacement, return_document=ReturnDocument.BEFORE
    ):
        self._check()
        with self._lock:
            i = self._index(query)
            if i is None:
                return None
            before = self.docs[i]
            self.docs[i] = {"_id": before["_id"], **copy.deepcopy(replacement)}
            return copy.deepcopy(self.docs[i] if return_document else before)

    def find_one_and_delete(self, query):
        self._check()
        with self._lock:
            i = self._index(query)
            return None if i is None else self.docs.pop(i)


class FakeDatabase:
    """Maps collection names to FakeCollections, like pymongo.Database."""

    name = "pathhero_test"

    def __init__(self):
        self.collections = {}

    def __getitem__(self, name):
        if name not in self.collections:
            self.collections[name] = FakeCollection(name)
        return self.collections[name]


@pytest.fixture
def fake_db():
    return FakeDatabase()


@pytest.fixture
def db(fake_db):
    return Database(fake_db)


@pytest.fixture
def hasher():
    # Lowest bcrypt cost keeps the suite fast.
    return CredentialHasher(rounds=4)


@pytest.fixture
def user_store(db, hasher):
    return UserStore(db, hasher)


@pytest.fixture
def hunt_store(db):
    return HuntStore(db, domain=TEST_DOMAIN, play_subdomain=TEST_SUBDOMAIN)


@pytest.fixture
def park_quest():
    return {
        "creatorId": "alice",
        "huntName": "Park Quest",
        "huntDesc": "A walk around the park",
        "huntInfo": {"numOfLocations": 2, "huntTimeEst": 1.5, "huntDistance": 2.25},
        "pins": [
            {
                "answer": "fountain",
                "geo": {"lat": 37.7694, "lng": -122.4862},
                "clues": ["Water rises here", "Look for the coins"],
                "answerField": "What is it?",
            },
            {
                "answer": "bench",
                "geo": {"lat": 37.7701, "lng": -122.4835},
                "clues": ["Sit down"],
                "answerField": "Where do you rest?",
            },
        ],
    }
