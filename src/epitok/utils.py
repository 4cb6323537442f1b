"""Shared helpers for intranet timestamps, dates and log-safe URLs."""

import re
from datetime import date, datetime

from epitok.errors import InvalidDateError

INTRA_DATETIME_FORMAT = "%Y-%m-%d %H:%M:%S"
DATE_FORMAT = "%Y-%m-%d"

# Autologin links embed a 40 character secret: never let it reach the logs.
_AUTOLOGIN_SECRET = re.compile(r"/auth-[a-z0-9]+")
_LISTING_DATE = re.compile(r"[0-9]{4}-[0-9]{2}-[0-9]{2}")


def parse_intra_datetime(raw: object) -> datetime | None:
    """Parse an intranet 'YYYY-MM-DD HH:MM:SS' timestamp.

    Returns None when the value is absent or not a valid timestamp.
    """
    if not isinstance(raw, str):
        return None
    try:
        return datetime.strptime(raw.strip(), INTRA_DATETIME_FORMAT)
    except ValueError:
        return None


def parse_listing_date(value: date | str) -> date:
    """Validate a calendar date given as a date or a 'YYYY-MM-DD' string.

    Raises:
        InvalidDateError: If the string is not a real calendar date.
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    raw = str(value).strip()
    if not _LISTING_DATE.fullmatch(raw):
        raise InvalidDateError(f"Invalid date {value!r}: expected YYYY-MM-DD")
    try:
        return datetime.strptime(raw, DATE_FORMAT).date()
    except ValueError as e:
        raise InvalidDateError(f"Invalid date {value!r}: expected YYYY-MM-DD") from e


def redact_url(url: str) -> str:
    """Replace the autologin secret in a URL with a placeholder."""
    return _AUTOLOGIN_SECRET.sub("/auth-***", url)
