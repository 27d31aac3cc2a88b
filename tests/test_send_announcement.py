"""Tests for the announcement command line script."""

from __future__ import annotations

import importlib.util
import sys
from pathlib import Path

import pytest

from ticket_notifications.infrastructure.repositories import NotificationRepository

SCRIPT_PATH = Path(__file__).resolve().parents[1] / "scripts" / "send_announcement.py"


@pytest.fixture()
def script(monkeypatch, session_factory):
    spec = importlib.util.spec_from_file_location("send_announcement", SCRIPT_PATH)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    monkeypatch.setattr(module, "SessionLocal", session_factory)
    monkeypatch.setattr(module, "initialize_database", lambda: None)
    return module


def _messages(session_factory, user_id):
    session = session_factory()
    try:
        return [n.message for n in NotificationRepository(session).list_for_recipient(user_id)]
    finally:
        session.close()


def test_announcement_reaches_every_profile(script, session_factory, add_user, monkeypatch, capsys):
    add_user("U")
    add_user("V")
    monkeypatch.setattr(sys, "argv", ["send_announcement.py", "Maintenance tonight"])

    script.main()

    assert _messages(session_factory, "U") == ["Maintenance tonight"]
    assert _messages(session_factory, "V") == ["Maintenance tonight"]
    assert "Stored: 2 of 2" in capsys.readouterr().out


def test_announcement_to_selected_users(script, session_factory, add_user, monkeypatch):
    add_user("U")
    add_user("V")
    monkeypatch.setattr(sys, "argv", ["send_announcement.py", "Hi", "--user", "V"])

    script.main()

    assert _messages(session_factory, "U") == []
    assert _messages(session_factory, "V") == ["Hi"]


def test_blank_announcement_exits_with_error(script, add_user, monkeypatch):
    add_user("U")
    monkeypatch.setattr(sys, "argv", ["send_announcement.py", "   "])

    with pytest.raises(SystemExit):
        script.main()
