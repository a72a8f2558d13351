from datetime import UTC, date, datetime, time, timedelta
from zoneinfo import ZoneInfo

from clinic_scheduler.core.config import settings


def clinic_tz() -> ZoneInfo:
    return ZoneInfo(settings.timezone)


def now_local() -> datetime:
    return datetime.now(clinic_tz())


def to_clinic_time(dt: datetime) -> datetime:
    """Naive datetimes are wall-clock time at the clinic; aware ones are converted."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=clinic_tz())
    return dt.astimezone(clinic_tz())


def day_bounds(d: date) -> tuple[datetime, datetime]:
    start = datetime.combine(d, time(0, 0), tzinfo=clinic_tz())
    return start, datetime.combine(d + timedelta(days=1), time(0, 0), tzinfo=clinic_tz())


def at_clinic(d: date, hhmm: str) -> datetime:
    hours, minutes = hhmm.split(":")
    return datetime.combine(d, time(int(hours), int(minutes)), tzinfo=clinic_tz())


def hhmm(dt: datetime) -> str:
    return to_clinic_time(dt).strftime("%H:%M")


def to_naive_utc(dt: datetime) -> datetime:
    """Convert to naive UTC for TIMESTAMP WITHOUT TIME ZONE columns."""
    return to_clinic_time(dt).astimezone(UTC).replace(tzinfo=None)


def from_naive_utc(dt: datetime) -> datetime:
    return dt.replace(tzinfo=UTC).astimezone(clinic_tz())
