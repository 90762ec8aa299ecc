"""
UTC-normalised millisecond-precision datetime helpers + SQLAlchemy type.

• DB format:  YYYY-MM-DD HH:MM:SS.fff   (23 characters)
• All values stored naive/UTC; all values returned aware/UTC.
• Fixed width, so string comparison in the DB is chronological.
"""

from __future__ import annotations

from datetime import date, datetime, time, timedelta, timezone, tzinfo
from typing import Any, Optional

from sqlalchemy.types import String, TypeDecorator

DB_DATETIME_FORMAT = "%Y-%m-%d %H:%M:%S.%f"
_DB_STR_LEN = 23  # 'YYYY-MM-DD HH:MM:SS.fff'

_ONE_MS = timedelta(milliseconds=1)


# ─────────────────────────────────────────────────────────────────────────────
# Public helpers
# ─────────────────────────────────────────────────────────────────────────────
def format_db_datetime(dt: datetime) -> str:
    """
    Convert *dt* to a UTC, millisecond-precision string suitable for DB storage.
    Sub-millisecond digits are truncated (not rounded). Naive values are
    taken to be UTC already.
    """
    if dt.tzinfo is not None:
        dt = dt.astimezone(timezone.utc).replace(tzinfo=None)
    return dt.strftime(DB_DATETIME_FORMAT)[:_DB_STR_LEN]


def parse_db_datetime(text: str) -> datetime:
    """
    Parse a DB datetime string **or** any ISO-8601 string and return an
    *aware* UTC datetime truncated to milliseconds.
    """
    dt = datetime.fromisoformat(text.strip())
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    dt = dt.astimezone(timezone.utc)
    return dt.replace(microsecond=(dt.microsecond // 1000) * 1000)


def parse_calendar_day(value: str, tz: Optional[tzinfo] = None) -> date:
    """Return the calendar day named by an ISO date or datetime string.

    A datetime carrying an offset names an instant; its day is taken in *tz*
    (the server's zone) when given. Naive datetimes are already local.

    Raises ``ValueError`` when *value* is not ISO-8601.
    """
    text = value.strip()
    try:
        return date.fromisoformat(text)
    except ValueError:
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        dt = datetime.fromisoformat(text)
    if dt.tzinfo is not None and tz is not None:
        dt = dt.astimezone(tz)
    return dt.date()


def day_bounds(day: date, tz: tzinfo) -> tuple[datetime, datetime]:
    """Return the first and last millisecond of *day* in *tz*, as aware UTC."""
    start = datetime.combine(day, time.min, tzinfo=tz)
    end = datetime.combine(day + timedelta(days=1), time.min, tzinfo=tz) - _ONE_MS
    return start.astimezone(timezone.utc), end.astimezone(timezone.utc)


def to_epoch_ms(dt: datetime) -> int:
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return int(dt.timestamp() * 1000)


# ─────────────────────────────────────────────────────────────────────────────
# SQLAlchemy integration
# ─────────────────────────────────────────────────────────────────────────────
class FormattedDateTime(TypeDecorator):
    """
    SQLAlchemy column type that stores millisecond-precision UTC strings
    (CHAR-23) and returns *aware* UTC `datetime` objects.
    """

    impl = String(_DB_STR_LEN)
    cache_ok = True

    # ────────────── outbound (Python → DB) ────────────────────────────────
    def process_bind_param(self, value: Any, dialect):  # type: ignore[override]
        if value is None:
            return None
        if isinstance(value, datetime):
            return format_db_datetime(value)
        if isinstance(value, str):
            return format_db_datetime(parse_db_datetime(value))
        raise TypeError(f"Unsupported type for FormattedDateTime: {type(value)}")

    # ────────────── inbound (DB → Python) ─────────────────────────────────
    def process_result_value(self, value: Any, dialect):  # type: ignore[override]
        if value is None:
            return None
        if isinstance(value, datetime):
            if value.tzinfo is None:
                value = value.replace(tzinfo=timezone.utc)
            return parse_db_datetime(value.isoformat())
        if isinstance(value, date):
            return datetime.combine(value, time.min, tzinfo=timezone.utc)
        if isinstance(value, str):
            return parse_db_datetime(value)
        raise TypeError(f"Unexpected DB value type: {type(value)}")
