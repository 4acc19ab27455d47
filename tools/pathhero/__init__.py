"""
Path Hero - backend for a scavenger-hunt application.

Authenticates users and keeps hunt definitions in MongoDB.

Architecture:
    HTTP (WebServer) → UserStore / HuntStore → adapter.resolve() → pymongo

Components:
    - CredentialHasher: bcrypt hashing with a fixed decoy hash
    - UserStore: find-or-create and credential validation (Users collection)
    - HuntStore: hunt CRUD with generated ids and player URLs (Hunts collection)
    - adapter: runs blocking driver/bcrypt calls off the event loop and maps
      their failures to StoreError / HashError
    - Database: the one storage handle, built at startup and passed to stores

Usage:
    from pathhero.database import Database
    from pathhero.auth.store import UserStore
    from pathhero.hunts import HuntStore

    db = Database.connect("127.0.0.1:27017/pathhero")
    users = UserStore(db)
    hunts = HuntStore(db, domain="example.com", play_subdomain="play")
    url = await hunts.add_hunt({"huntName": "Park Quest", "pins": []})
"""

__version__ = "0.1.0"
__author__ = "Path Hero Team"

from .auth import AuthResult, CredentialHasher, UserStore
from .database import Database
from .errors import HashError, InvalidHuntError, PathHeroError, StoreError
from .hunts import HuntStore

__all__ = [
    "AuthResult",
    "CredentialHasher",
    "Database",
    "HashError",
    "HuntStore",
    "InvalidHuntError",
    "PathHeroError",
    "StoreError",
    "UserStore",
]
