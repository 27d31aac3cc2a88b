"""Shared fixtures for the notification service tests."""

from __future__ import annotations

import os
import sys
import tempfile
from pathlib import Path

import pytest

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

_TEST_DB_DIR = Path(tempfile.mkdtemp(prefix="ticket-notifications-"))
os.environ["DATABASE_URL"] = f"sqlite:///{_TEST_DB_DIR / 'app.db'}"
os.environ["SECRET_KEY"] = "test-secret"
os.environ.pop("SENDGRID_API_KEY", None)
os.environ.pop("SENDGRID_SENDER", None)
os.environ.pop("CHAT_WEBHOOK_URL", None)

from sqlalchemy.orm import sessionmaker  # noqa: E402

from ticket_notifications.infrastructure.database import (  # noqa: E402
    build_engine,
    initialize_database,
)
from ticket_notifications.infrastructure.models import UserModel  # noqa: E402


@pytest.fixture()
def session_factory(tmp_path):
    """Return a session factory bound to a fresh SQLite database."""

    engine = build_engine(f"sqlite:///{tmp_path / 'notifications.db'}")
    initialize_database(bind=engine)
    factory = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    yield factory
    engine.dispose()


@pytest.fixture()
def session(session_factory):
    db = session_factory()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture()
def add_user(session_factory):
    """Insert a profile row the way the ticket layer would."""

    def _add_user(user_id: str, *, email: str | None = None, role: str = "user", name=None):
        db = session_factory()
        try:
            db.add(UserModel(id=user_id, email=email, role=role, name=name or user_id))
            db.commit()
        finally:
            db.close()

    return _add_user
