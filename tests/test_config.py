import pytest
from pydantic import ValidationError

from config import Settings

DB = "sqlite+aiosqlite:///:memory:"


@pytest.mark.parametrize("tz", ["UTC", "GMT", "utc"])
def test_known_timezones_are_accepted(tz):
    assert Settings(DB_CONN_STRING=DB, DEFAULT_TIMEZONE=tz).DEFAULT_TIMEZONE == tz


@pytest.mark.parametrize("tz", ["Mars/Olympus", "not a zone"])
def test_unknown_timezone_is_rejected(tz):
    with pytest.raises(ValidationError, match="Unknown timezone"):
        Settings(DB_CONN_STRING=DB, DEFAULT_TIMEZONE=tz)


def test_sync_mssql_driver_is_rejected():
    with pytest.raises(ValidationError):
        Settings(DB_CONN_STRING="mssql+pyodbc://host/db")


def test_elevated_profiles_are_normalised():
    s = Settings(DB_CONN_STRING=DB, ELEVATED_PROFILES=" Admin, superadmin ,,")
    assert s.elevated_profiles == frozenset({"admin", "superadmin"})
