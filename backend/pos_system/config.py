# backend/pos_system/config.py
from __future__ import annotations

import json
import os


def _env_bool(name: str, default: bool) -> bool:
    raw = os.environ.get(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


def read_option(key: str, fallback, options_file: str | None = None):
    """
    Resolve a deployment option.

    Lookup order: environment variable (upper-cased key), then the JSON
    options file, then the fallback. A missing or unreadable options file
    is treated as empty.
    """
    env_value = os.environ.get(key.upper())
    if env_value:
        return env_value

    path = options_file or os.environ.get("POS_OPTIONS_FILE", Config.POS_OPTIONS_FILE)
    try:
        with open(path, "r", encoding="utf-8") as fh:
            options = json.loads(fh.read() or "{}")
    except (OSError, ValueError):
        options = {}

    if isinstance(options, dict) and options.get(key) is not None:
        return options[key]
    return fallback


class Config:
    # Optional "SECRET_KEY", with default dev key
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    # SQLite DB stored in backend/instance/pos.sqlite3
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL", #optional alternative location
        "sqlite:///pos.sqlite3", #default local location
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # IANA timezone that defines "today" for dashboard rollups
    POS_TIMEZONE = os.environ.get("POS_TIMEZONE", "UTC")

    SESSION_TTL_DAYS = int(os.environ.get("SESSION_TTL_DAYS", "7"))

    # Run migrations and admin reconciliation inside create_app()
    AUTO_BOOTSTRAP = _env_bool("AUTO_BOOTSTRAP", True)

    POS_OPTIONS_FILE = os.environ.get("POS_OPTIONS_FILE", "/data/options.json")

    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")

    # Browser origins allowed to call the API (comma separated)
    CORS_ORIGINS = tuple(
        o.strip() for o in os.environ.get("CORS_ORIGINS", "").split(",") if o.strip()
    )
