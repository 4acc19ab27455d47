#!/usr/bin/env python3
"""CLI management tool for users and hunts.

Provides commands to:
- Add users with bcrypt-hashed passwords
- Check a user's credentials
- List hunts, optionally for one creator
- Show or remove a hunt by id
"""

import argparse
import asyncio
import getpass
import json
import sys

from .auth.store import UserStore
from .config import load_config
from .database import Database
from .hunts import HuntStore
from .server import build_stores


def _password(args) -> str:
    if args.password:
        return args.password
    return getpass.getpass(f"Password for {args.username}: ")


async def add_user(args, users: UserStore, hunts: HuntStore) -> int:
    """Add a user, leaving an existing record untouched."""
    password = _password(args)
    if not password:
        print("Error: Password cannot be empty", file=sys.stderr)
        return 1

    await users.find_or_create_user(args.username, password)
    result = await users.validate_user(args.username, password)
    if not result.ok:
        print(f"Error: User '{args.username}' already exists", file=sys.stderr)
        return 1

    print(f"✓ User ready: {args.username}")
    return 0


async def check_user(args, users: UserStore, hunts: HuntStore) -> int:
    result = await users.validate_user(args.username, _password(args))
    print(result.message)
    return 0 if result.ok else 1


async def list_hunts(args, users: UserStore, hunts: HuntStore) -> int:
    """List hunts by id, creator and name."""
    if args.userid:
        items = await hunts.get_user_hunts(args.userid)
    else:
        items = await hunts.get_all_hunts()

    if not items:
        print("No hunts found")
        return 0

    print(f"{'ID':<26} {'Creator':<20} {'Name':<30}")
    print("-" * 76)
    for hunt in items:
        print(
            f"{str(hunt['_id']):<26} {hunt.get('creatorId', ''):<20} "
            f"{hunt.get('huntName', ''):<30}"
        )
    return 0


async def show_hunt(args, users: UserStore, hunts: HuntStore) -> int:
    hunt = await hunts.get_hunt_by_id(args.id)
    if hunt is None:
        print(f"Error: Hunt '{args.id}' not found", file=sys.stderr)
        return 1
    print(json.dumps(hunt, indent=2, default=str))
    return 0


async def remove_hunt(args, users: UserStore, hunts: HuntStore) -> int:
    removed = await hunts.remove_hunt_by_id(args.id)
    if removed is None:
        print(f"Error: Hunt '{args.id}' not found", file=sys.stderr)
        return 1
    print(f"✓ Removed hunt {removed['_id']} ({removed.get('huntName', '')})")
    return 0


COMMANDS = {
    "add-user": add_user,
    "check-user": check_user,
    "list-hunts": list_hunts,
    "show-hunt": show_hunt,
    "remove-hunt": remove_hunt,
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="pathhero-manage",
        description="Manage Path Hero users and hunts",
    )
    parser.add_argument(
        "--db-uri",
        default=None,
        help="MongoDB address (default: $DBURI or the configured db_uri)",
    )

    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    add_parser = subparsers.add_parser("add-user", help="Add a new user")
    add_parser.add_argument("--username", required=True, help="Username")
    add_parser.add_argument("--password", help="Password (prompted if omitted)")

    check_parser = subparsers.add_parser("check-user", help="Check credentials")
    check_parser.add_argument("--username", required=True, help="Username")
    check_parser.add_argument("--password", help="Password (prompted if omitted)")

    list_parser = subparsers.add_parser("list-hunts", help="List hunts")
    list_parser.add_argument("--userid", help="Only hunts created by this user")

    show_parser = subparsers.add_parser("show-hunt", help="Print one hunt")
    show_parser.add_argument("--id", required=True, help="Hunt id")

    remove_parser = subparsers.add_parser("remove-hunt", help="Remove a hunt")
    remove_parser.add_argument("--id", required=True, help="Hunt id")

    return parser


async def run(args, config: dict, db: Database) -> int:
    users, hunts = build_stores(config, db)
    return await COMMANDS[args.command](args, users, hunts)


def main(argv=None) -> int:
    """Main entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    config = load_config()
    db = Database.connect(args.db_uri or config["db_uri"])
    try:
        return asyncio.run(run(args, config, db))
    finally:
        db.close()


if __name__ == "__main__":
    sys.exit(main())
