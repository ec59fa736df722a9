import os

os.environ.setdefault("DB_BACKEND", "sqlite")
os.environ.setdefault("REQUIRE_ACCOUNT_HEADER", "true")
os.environ.setdefault("GRAVATAR_ENABLED", "false")

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from core.context import for_account, reset_current_request_context, set_current_request_context
from core.db import DB
from core.models import Account, Base


@pytest.fixture
def server_db(tmp_path):
    """Fresh SQLite database swapped into core.db.DB for the test."""
    db_path = tmp_path / "contactgraph.sqlite"
    engine = create_engine(
        f"sqlite:///{db_path}",
        connect_args={"check_same_thread": False},
    )
    Base.metadata.create_all(engine)
    SessionLocal = sessionmaker(bind=engine)
    previous_engine = DB.engine
    previous_session = DB.SessionLocal
    DB.engine = engine
    DB.SessionLocal = SessionLocal
    try:
        yield engine
    finally:
        DB.engine = previous_engine
        DB.SessionLocal = previous_session
        engine.dispose()


@pytest.fixture
def db_session(server_db):
    db = DB.SessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def account(db_session):
    account = Account(name="Primary")
    db_session.add(account)
    db_session.commit()
    return account


@pytest.fixture
def other_account(db_session):
    account = Account(name="Other")
    db_session.add(account)
    db_session.commit()
    return account


@pytest.fixture
def account_context(account):
    """Bind the request context to `account` for service tool calls."""
    token = set_current_request_context(for_account(account.id, actor="pytest"))
    try:
        yield for_account(account.id, actor="pytest")
    finally:
        reset_current_request_context(token)
