"""Server clock helpers.

"Today" is the calendar date in the municipality's time zone, not the host's.
"""
from datetime import date, datetime, timezone
from typing import Optional

import pytz

from eventify.config import settings


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def local_today(tz_name: Optional[str] = None) -> date:
    """Return the current calendar date in the configured time zone."""
    tz = pytz.timezone(tz_name or settings.TIMEZONE)
    return utc_now().astimezone(tz).date()
