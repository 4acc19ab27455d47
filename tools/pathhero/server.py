#!/usr/bin/env python3
"""Path Hero server: process entry point.

Builds the database handle and stores once, then serves the HTTP API until
SIGINT/SIGTERM.

Usage:
    python3 -m pathhero.server --config config.json
    python3 -m pathhero.server --config config.json --log-level DEBUG
    python3 -m pathhero.server --test-mode
"""

import argparse
import asyncio
import logging
import signal
from typing import Any

from .auth.hasher import CredentialHasher
from .auth.store import UserStore
from .config import load_config
from .database import Database
from .hunts import HuntStore
from .web import WebServer

logger = logging.getLogger("pathhero.server")


def build_stores(config: dict[str, Any], db: Database) -> tuple[UserStore, HuntStore]:
    """Instantiate the stores over one shared database handle."""
    auth_config = config.get("auth", {})
    hasher = CredentialHasher(rounds=auth_config.get("bcrypt_rounds", 10))
    user_store = UserStore(db, hasher)
    hunt_store = HuntStore(
        db,
        domain=config["domain"],
        play_subdomain=config["play_subdomain"],
    )
    return user_store, hunt_store


async def run_server(config: dict[str, Any], test_mode: bool = False) -> None:
    """Main server coroutine.

    Args:
        config: Configuration dictionary
        test_mode: If True, validate config and exit without starting
    """
    if not config.get("auth", {}).get("jwt_secret"):
        logger.warning("auth.jwt_secret not configured, sessions will be insecure")

    db = Database.connect(config["db_uri"])
    logger.info(f"Database configured: {db.name}")

    try:
        user_store, hunt_store = build_stores(config, db)
        server = WebServer(config, user_store, hunt_store)

        if test_mode:
            print("Path hero server: test mode")
            print(f"  Database: {config['db_uri']}")
            print(f"  Listen: http://{server.host}:{server.port}")
            print(f"  Hunt URLs: http://{config['play_subdomain']}.{config['domain']}/<id>")
            print("Config valid. Exiting test mode.")
            return

        shutdown_event = asyncio.Event()

        def signal_handler():
            logger.info("Shutdown signal received")
            shutdown_event.set()

        loop = asyncio.get_running_loop()
        for sig in (signal.SIGINT, signal.SIGTERM):
            loop.add_signal_handler(sig, signal_handler)

        await user_store.ensure_indexes()
        await server.start()
        try:
            await shutdown_event.wait()
        finally:
            logger.info("Shutting down...")
            await server.stop()
    finally:
        db.close()


def main():
    parser = argparse.ArgumentParser(
        prog="pathhero-server",
        description="Path Hero: scavenger hunt API server",
        usage="%(prog)s [options]",
    )
    parser.add_argument(
        "--config",
        "-c",
        default=None,
        help="Path to config.json (defaults plus environment if omitted)",
    )
    parser.add_argument(
        "--test-mode",
        "-t",
        action="store_true",
        help="Validate config and exit without starting",
    )
    parser.add_argument(
        "--log-level",
        "-l",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: INFO)",
    )

    args = parser.parse_args()

    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    config = load_config(args.config)

    try:
        asyncio.run(run_server(config, test_mode=args.test_mode))
    except KeyboardInterrupt:
        pass


if __name__ == "__main__":
    main()
