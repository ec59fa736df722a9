"""
Engine/session setup for the contact store and the Alembic schema gate.
"""

from __future__ import annotations

import os
from typing import Optional

from alembic import command
from alembic.config import Config
from alembic.runtime.migration import MigrationContext
from alembic.script import ScriptDirectory
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

import core.config as config

PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))


class DB:
    """Process-wide engine and session factory; tests swap both."""

    engine = None
    SessionLocal = None


def _alembic_config(database_url: str) -> Config:
    alembic_cfg = Config(os.path.join(PROJECT_ROOT, "alembic.ini"))
    alembic_cfg.set_main_option("script_location", os.path.join(PROJECT_ROOT, "alembic"))
    alembic_cfg.set_main_option("sqlalchemy.url", database_url)
    return alembic_cfg


def schema_status(engine) -> dict:
    """Applied vs. expected Alembic revision for `engine`."""
    head: Optional[str] = ScriptDirectory.from_config(_alembic_config(str(engine.url))).get_current_head()
    with engine.connect() as conn:
        current: Optional[str] = MigrationContext.configure(conn).get_current_revision()
    return {
        "schema_revision": current,
        "schema_expected": head,
        "schema_up_to_date": head is None or current == head,
    }


def _migrate_to_head(engine) -> None:
    status = schema_status(engine)
    if status["schema_up_to_date"]:
        config.logger.info("schema_current", extra={"revision": status["schema_revision"]})
        return

    if not config.AUTO_MIGRATE_ON_STARTUP:
        raise RuntimeError(
            f"Database schema out of date (current={status['schema_revision']}, "
            f"expected={status['schema_expected']}). "
            "Run 'alembic upgrade head' or set AUTO_MIGRATE_ON_STARTUP=true."
        )

    command.upgrade(_alembic_config(config.DATABASE_URL), "head")
    migrated = schema_status(engine)
    if not migrated["schema_up_to_date"]:
        raise RuntimeError("Database migration did not reach expected revision")
    config.logger.info(
        "schema_migrated",
        extra={"from_revision": status["schema_revision"], "revision": migrated["schema_revision"]},
    )


def init_db() -> None:
    """Build the engine from config and bring the contact schema to head."""
    config.validate_and_prepare_config()

    engine_kwargs = {"pool_pre_ping": True}
    if config.DB_BACKEND == "sqlite":
        engine_kwargs["connect_args"] = {"check_same_thread": False}
    DB.engine = create_engine(config.DATABASE_URL, **engine_kwargs)
    DB.SessionLocal = sessionmaker(bind=DB.engine)

    _migrate_to_head(DB.engine)
    config.logger.info("db_initialized", extra={"backend": config.DB_BACKEND})
