"""Timezone helpers.

All instants are stored in UTC. SQLite hands ``DateTime(timezone=True)``
columns back as naive values, so anything read from the database goes through
``as_utc`` before it is compared or rendered.
"""
from datetime import datetime, timezone
from typing import Optional

import pytz

from labx.config import settings


def local_tz(tz_name: Optional[str] = None):
    return pytz.timezone(tz_name or settings.CALENDAR_TIMEZONE)


def as_utc(value: datetime) -> datetime:
    """Treat naive values as UTC (database round-trip) and normalise aware ones."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def to_utc(value: datetime, tz_name: Optional[str] = None) -> datetime:
    """Interpret user input: naive values are wall-clock time in the school's zone."""
    if value.tzinfo is None:
        value = local_tz(tz_name).localize(value)
    return value.astimezone(timezone.utc)


def isoformat_in(value: datetime, tz_name: Optional[str] = None) -> str:
    """ISO-8601 with an explicit offset, rendered in ``tz_name``."""
    return as_utc(value).astimezone(local_tz(tz_name)).isoformat()
