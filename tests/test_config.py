"""Tests for settings and timezone helpers."""

from __future__ import annotations

from datetime import datetime, timedelta

import pytest
from pydantic import ValidationError

from ticket_notifications.config import Settings
from ticket_notifications.utils import datetime as datetime_utils


def test_sendgrid_credentials_come_in_pairs():
    with pytest.raises(ValidationError):
        Settings(sendgrid_api_key="SG.key")
    with pytest.raises(ValidationError):
        Settings(sendgrid_api_key="SG.key", sendgrid_sender="not-an-address")

    settings = Settings(sendgrid_api_key="SG.key", sendgrid_sender="helpdesk@example.com")
    assert settings.sendgrid_sender == "helpdesk@example.com"


def test_defaults():
    settings = Settings()

    assert settings.notification_page_size == 20
    assert settings.dispatch_max_workers == 8
    assert settings.chat_webhook_url is None


@pytest.mark.parametrize(
    ("name", "offset"),
    [
        ("UTC", timedelta(0)),
        ("UTC-05:00", timedelta(hours=-5)),
        ("GMT+0530", timedelta(hours=5, minutes=30)),
        ("Not/AZone", timedelta(0)),
    ],
)
def test_timezone_resolution(name, offset):
    tz = datetime_utils._resolve_timezone(name)

    assert datetime(2024, 1, 1, tzinfo=tz).utcoffset() == offset


def test_naive_storage_round_trip():
    aware = datetime_utils.now_in_app_timezone()
    naive = datetime_utils.ensure_app_naive_datetime(aware)

    assert naive.tzinfo is None
    assert datetime_utils.ensure_app_timezone(naive) == aware
