"""
Timestamp policy for the whole sales domain.

Orders carry ISO-8601 `created_at` strings. Aware timestamps are converted
into the store timezone (STORE_TIMEZONE); naive ones are taken to be store
local already. Date-range filters, hourly buckets and archive dates all go
through these helpers so they can never disagree about which day an order
belongs to.
"""
from datetime import date, datetime, time, timedelta, tzinfo
from zoneinfo import ZoneInfo

from shared.config.settings import STORE_TIMEZONE


def store_tz() -> tzinfo:
    return ZoneInfo(STORE_TIMEZONE)


def now(tz: tzinfo | None = None) -> datetime:
    return datetime.now(tz or store_tz())


def parse_timestamp(value, tz: tzinfo | None = None) -> datetime | None:
    """Parse to an aware datetime in the store timezone, or None if unusable."""
    tz = tz or store_tz()
    if isinstance(value, datetime):
        ts = value
    elif isinstance(value, str) and value.strip():
        try:
            ts = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
        except ValueError:
            return None
    else:
        return None
    if ts.tzinfo is None:
        return ts.replace(tzinfo=tz)
    return ts.astimezone(tz)


def parse_day(value: str | date) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(value)


def day_window(start: date, end: date | None = None, tz: tzinfo | None = None) -> tuple[datetime, datetime]:
    """Inclusive [start-of-day(start), end-of-day(end)] in the store timezone."""
    tz = tz or store_tz()
    end = end or start
    return (
        datetime.combine(start, time.min, tzinfo=tz),
        datetime.combine(end, time.max, tzinfo=tz),
    )


def local_date_of(value, tz: tzinfo | None = None) -> str | None:
    ts = parse_timestamp(value, tz)
    return ts.date().isoformat() if ts else None


def yesterday(reference: datetime | None = None) -> date:
    return (reference or now()).date() - timedelta(days=1)
