"""
Shared configuration for ContactGraph core.
"""

from __future__ import annotations

import logging
import os

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger("contactgraph")


def _get_bool(env_name: str, default: bool) -> bool:
    value = os.environ.get(env_name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _get_int(env_name: str, default: int) -> int:
    value = os.environ.get(env_name)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        return default


def _get_float(env_name: str, default: float) -> float:
    value = os.environ.get(env_name)
    if value is None:
        return default
    try:
        return float(value)
    except ValueError:
        return default


def _get_mapping(env_name: str, default: dict[str, str]) -> dict[str, str]:
    """Parse 'key=value,key2=value2' into a dict."""
    value = os.environ.get(env_name)
    if not value or not value.strip():
        return dict(default)
    parsed: dict[str, str] = {}
    for item in value.split(","):
        if "=" not in item:
            continue
        key, raw = item.split("=", 1)
        key = key.strip()
        if key:
            parsed[key] = raw.strip()
    return parsed or dict(default)


# Database settings
DB_BACKEND = os.environ.get("DB_BACKEND", "postgres").strip().lower()
SQLITE_PATH = os.environ.get("SQLITE_PATH", "/data/contactgraph.db")
DATABASE_URL = os.environ.get("DATABASE_URL")

# Database initialization controls
AUTO_MIGRATE_ON_STARTUP = _get_bool("AUTO_MIGRATE_ON_STARTUP", True)

# Request/input limits
MAX_RESULT_LIMIT = _get_int("CONTACTGRAPH_MAX_RESULT_LIMIT", 100)
MAX_NAME_LENGTH = _get_int("CONTACTGRAPH_MAX_NAME_LENGTH", 255)
MAX_SHORT_TEXT_LENGTH = _get_int("CONTACTGRAPH_MAX_SHORT_TEXT_LENGTH", 255)
MAX_TEXT_LENGTH = _get_int("CONTACTGRAPH_MAX_TEXT_LENGTH", 8000)
MAX_AGE_YEARS = _get_int("CONTACTGRAPH_MAX_AGE_YEARS", 150)

# Audit events on contacts
EVENTS_ENABLED = _get_bool("EVENTS_ENABLED", True)

# Avatars
AVATAR_STORAGE_URLS = _get_mapping(
    "AVATAR_STORAGE_URLS",
    {"public": "/storage", "s3": "https://s3.amazonaws.com/contactgraph"},
)
DEFAULT_AVATAR_LOCATION = os.environ.get("DEFAULT_AVATAR_LOCATION", "public").strip()
AVATAR_DEFAULT_SIZE = _get_int("AVATAR_DEFAULT_SIZE", 110)
AVATAR_COLORS = (
    "#fdb660",
    "#93521e",
    "#bd5067",
    "#b3d5fe",
    "#ff9807",
    "#709512",
    "#5f479a",
    "#e5e5cd",
)

# Gravatar probe
GRAVATAR_ENABLED = _get_bool("GRAVATAR_ENABLED", False)
GRAVATAR_BASE_URL = os.environ.get("GRAVATAR_BASE_URL", "https://www.gravatar.com/avatar/")
GRAVATAR_TIMEOUT_SECONDS = _get_float("GRAVATAR_TIMEOUT_SECONDS", 5.0)

# Maps
MAPS_PLACE_URL = os.environ.get("MAPS_PLACE_URL", "https://www.google.ca/maps/place/")

# MCP
REQUIRE_ACCOUNT_HEADER = _get_bool("REQUIRE_ACCOUNT_HEADER", True)
TOOL_INVENTORY_RETRY_SECONDS = _get_int("TOOL_INVENTORY_RETRY_SECONDS", 5)

# HTTP server
HOST = os.environ.get("HOST", "0.0.0.0")
PORT = _get_int("PORT", 8080)


def validate_and_prepare_config() -> None:
    """Validate configuration and apply derived settings at startup."""
    global DATABASE_URL, GRAVATAR_ENABLED

    errors = []
    if DB_BACKEND not in {"postgres", "sqlite"}:
        errors.append("DB_BACKEND must be 'postgres' or 'sqlite'")

    if not DATABASE_URL:
        if DB_BACKEND == "sqlite":
            if not SQLITE_PATH:
                errors.append("SQLITE_PATH environment variable is required for sqlite")
            else:
                DATABASE_URL = f"sqlite:///{SQLITE_PATH}"
        else:
            errors.append("DATABASE_URL environment variable is required")
    else:
        # Hosted Postgres often hands out postgres:// but SQLAlchemy needs postgresql://
        if DATABASE_URL.startswith("postgres://"):
            DATABASE_URL = DATABASE_URL.replace("postgres://", "postgresql://", 1)
        url_lower = DATABASE_URL.lower()
        is_sqlite_url = url_lower.startswith("sqlite")
        if DB_BACKEND == "sqlite" and not is_sqlite_url:
            errors.append("DATABASE_URL must be a sqlite URL when DB_BACKEND=sqlite")
        if DB_BACKEND == "postgres" and is_sqlite_url:
            errors.append("DATABASE_URL must be a postgres URL when DB_BACKEND=postgres")

    if DEFAULT_AVATAR_LOCATION not in AVATAR_STORAGE_URLS:
        errors.append("DEFAULT_AVATAR_LOCATION must be one of AVATAR_STORAGE_URLS")

    if GRAVATAR_ENABLED and GRAVATAR_TIMEOUT_SECONDS <= 0:
        logger.warning("GRAVATAR_TIMEOUT_SECONDS must be positive; disabling gravatar probe.")
        GRAVATAR_ENABLED = False

    if errors:
        raise RuntimeError("Configuration invalid: " + "; ".join(errors))
