"""Local day and week bucketing.

Every "today" / "this week" / "overdue" comparison in questlist goes through
these helpers so that all bucketing happens in the same local timezone.
Weeks start on Monday 00:00 and include the following Sunday.
"""

from datetime import date, datetime, timedelta, tzinfo

from questlist.core.config import settings


def local_zone() -> tzinfo | None:
    """Return the configured local zone (None means the host's zone)."""
    return settings.local_zone()


def to_local(timestamp: datetime) -> datetime:
    """Convert a timestamp to local wall-clock time.

    Naive datetimes are assumed to already be local.
    """
    if timestamp.tzinfo is None:
        return timestamp
    return timestamp.astimezone(local_zone())


def local_date(value: datetime | date) -> date:
    """Return the local calendar date containing ``value``."""
    if isinstance(value, datetime):
        return to_local(value).date()
    return value


def day_key_for_date(day: date) -> str:
    """Format a calendar date as a day bucket key (YYYY-MM-DD)."""
    return f"{day.year:04d}-{day.month:02d}-{day.day:02d}"


def local_day_key(timestamp: datetime | date) -> str:
    """Return the YYYY-MM-DD key of the local day containing ``timestamp``."""
    return day_key_for_date(local_date(timestamp))


def start_of_day(value: datetime | date) -> datetime:
    """Truncate to 00:00:00 local time."""
    if isinstance(value, datetime):
        local = to_local(value)
        return local.replace(hour=0, minute=0, second=0, microsecond=0)
    return datetime(value.year, value.month, value.day)


def start_of_week(value: datetime | date) -> datetime:
    """Return Monday 00:00:00 local time of the week containing ``value``."""
    day_start = start_of_day(value)
    return day_start - timedelta(days=day_start.weekday())


def local_week_key(timestamp: datetime | date) -> str:
    """Return the day key of the Monday starting the local week of ``timestamp``."""
    return day_key_for_date(start_of_week(timestamp).date())


def previous_day(day: date) -> date:
    """Return the calendar day before ``day``."""
    return day - timedelta(days=1)
