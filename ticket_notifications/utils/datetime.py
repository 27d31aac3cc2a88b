"""Timestamp helpers shared by the notification store and its payloads.

Rows are stamped in the configured ``APP_TIMEZONE`` and persisted without
``tzinfo``; everything above the repositories works with aware values.
"""

from __future__ import annotations

import re
from datetime import datetime, timedelta, timezone, tzinfo
from functools import lru_cache

from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from ticket_notifications.config import get_settings

_FIXED_OFFSET = re.compile(
    r"^(?:UTC|GMT)(?P<sign>[+-])(?P<hours>\d{1,2})(?::?(?P<minutes>\d{2}))?$",
    re.IGNORECASE,
)


@lru_cache(maxsize=1)
def get_app_timezone() -> tzinfo:
    """Return the timezone notifications are stamped in (UTC unless configured)."""

    return _resolve_timezone(get_settings().app_timezone.strip() or "UTC")


def now_in_app_timezone() -> datetime:
    return datetime.now(tz=get_app_timezone())


def ensure_app_timezone(value: datetime | None) -> datetime | None:
    """Attach or convert ``value`` to the app timezone; naive values are assumed local."""

    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=get_app_timezone())
    return value.astimezone(get_app_timezone())


def ensure_app_naive_datetime(value: datetime | None) -> datetime | None:
    """Return the storage form of ``value``: app-local wall time without ``tzinfo``."""

    if value is None:
        return None
    return ensure_app_timezone(value).replace(tzinfo=None)


def _resolve_timezone(name: str) -> tzinfo:
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        pass

    match = _FIXED_OFFSET.match(name)
    if match is None:
        return timezone.utc
    offset = timedelta(
        hours=int(match["hours"]), minutes=int(match["minutes"] or 0)
    )
    return timezone(-offset if match["sign"] == "-" else offset)
