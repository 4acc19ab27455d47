"""Server configuration.

Settings come from three layers, later ones winning:

    1. ``DEFAULTS`` below
    2. an optional JSON file (see ``tools/config.json.example``)
    3. environment variables listed in ``ENV_OVERRIDES``

The result is read once at startup and treated as read-only.
"""

from __future__ import annotations

import copy
import json
import os
import sys
from pathlib import Path
from typing import Any, Mapping, Optional

DEFAULTS: dict[str, Any] = {
    "db_uri": "127.0.0.1:27017/pathhero",
    "host": "localhost",
    "port": 3000,
    "domain": "localhost:3000",
    "play_subdomain": "play",
    "secure_cookies": False,
    "auth": {
        "jwt_secret": "",
        "token_expiry_hours": 24,
        "bcrypt_rounds": 10,
    },
}

# env var -> (section or None, key, type)
ENV_OVERRIDES = {
    "DBURI": (None, "db_uri", str),
    "PORT": (None, "port", int),
    "SERVERURL": (None, "host", str),
    "DOMAIN": (None, "domain", str),
    "PLAY_SUBDOMAIN": (None, "play_subdomain", str),
    "JWT_SECRET": ("auth", "jwt_secret", str),
}


def _merge(base: dict[str, Any], extra: Mapping[str, Any]) -> dict[str, Any]:
    for key, value in extra.items():
        if isinstance(value, Mapping) and isinstance(base.get(key), dict):
            _merge(base[key], value)
        else:
            base[key] = value
    return base


def apply_env(config: dict[str, Any], environ: Optional[Mapping[str, str]] = None) -> dict[str, Any]:
    """Overlay environment variables onto ``config`` in place."""
    environ = os.environ if environ is None else environ
    for var, (section, key, cast) in ENV_OVERRIDES.items():
        value = environ.get(var)
        if not value:
            continue
        target = config.setdefault(section, {}) if section else config
        target[key] = cast(value)
    return config


def load_config(
    config_path: Optional[str] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> dict[str, Any]:
    """Load configuration from defaults, a JSON file and the environment."""
    config = copy.deepcopy(DEFAULTS)

    if config_path:
        path = Path(config_path)
        if not path.exists():
            print(f"Error: Config not found at {path}")
            print("Copy tools/config.json.example to config.json")
            sys.exit(1)
        with open(path) as f:
            _merge(config, json.load(f))

    return apply_env(config, environ)
