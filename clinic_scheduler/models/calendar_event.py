from datetime import UTC, date, datetime
from uuid import uuid4

from pydantic import NaiveDatetime
from sqlalchemy import DateTime
from sqlmodel import Field, SQLModel


def _utc_naive_now() -> datetime:
    """Naive UTC for TIMESTAMP WITHOUT TIME ZONE columns."""
    return datetime.now(UTC).replace(tzinfo=None)


class CalendarEventRecord(SQLModel, table=True):
    """Row layout of the SQL-backed event store."""

    __tablename__ = "calendar_events"
    id: str = Field(default_factory=lambda: uuid4().hex, primary_key=True)
    summary: str = ""
    description: str = ""
    start_utc: NaiveDatetime | None = Field(default=None, index=True, sa_type=DateTime(timezone=False))
    end_utc: NaiveDatetime | None = Field(default=None, sa_type=DateTime(timezone=False))
    all_day_date: date | None = Field(default=None, index=True)
    color_id: str | None = None
    created_at: NaiveDatetime = Field(default_factory=_utc_naive_now, sa_type=DateTime(timezone=False))


class CalendarEvent(SQLModel):
    """An event as the engine reads it. Only timed events carry start/end."""

    id: str
    summary: str = ""
    description: str = ""
    start: datetime | None = None
    end: datetime | None = None
    all_day_date: date | None = None

    @property
    def is_timed(self) -> bool:
        return self.start is not None


class NewCalendarEvent(SQLModel):
    summary: str
    description: str
    start: datetime
    end: datetime
    color_id: str | None = None
