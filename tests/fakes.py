"""In-memory collaborators for deterministic tests."""

from datetime import date, datetime, timedelta

from clinic_scheduler.core.clock import at_clinic, to_clinic_time
from clinic_scheduler.core.errors import NotFound, UpstreamFailure
from clinic_scheduler.models.calendar_event import CalendarEvent, NewCalendarEvent


class FakeEventStore:
    """Keeps events in a dict; same contract as the real stores."""

    def __init__(self) -> None:
        self.events: dict[str, CalendarEvent] = {}
        self.fail_create = False
        self.list_calls = 0
        self._next_id = 1

    def _new_id(self) -> str:
        event_id = f"evt{self._next_id}"
        self._next_id += 1
        return event_id

    def add(
        self,
        summary: str,
        start: datetime,
        description: str = "",
        duration_minutes: int = 30,
    ) -> CalendarEvent:
        event = CalendarEvent(
            id=self._new_id(),
            summary=summary,
            description=description,
            start=to_clinic_time(start),
            end=to_clinic_time(start) + timedelta(minutes=duration_minutes),
        )
        self.events[event.id] = event
        return event

    def add_at(self, summary: str, d: date, hhmm: str, description: str = "") -> CalendarEvent:
        return self.add(summary, at_clinic(d, hhmm), description)

    def add_all_day(self, d: date, summary: str) -> CalendarEvent:
        event = CalendarEvent(id=self._new_id(), summary=summary, all_day_date=d)
        self.events[event.id] = event
        return event

    async def list_events(self, start: date, end: date) -> list[CalendarEvent]:
        self.list_calls += 1
        found = []
        for event in self.events.values():
            if event.start is not None:
                day = to_clinic_time(event.start).date()
            else:
                day = event.all_day_date
            if day is not None and start <= day <= end:
                found.append(event)
        return sorted(found, key=lambda e: (e.start is not None, e.start or datetime.min))

    async def create_event(self, data: NewCalendarEvent) -> CalendarEvent:
        if self.fail_create:
            raise UpstreamFailure("Calendar create failed, try again later")
        event = CalendarEvent(
            id=self._new_id(),
            summary=data.summary,
            description=data.description,
            start=to_clinic_time(data.start),
            end=to_clinic_time(data.end),
        )
        self.events[event.id] = event
        return event

    async def delete_event(self, event_id: str) -> None:
        if event_id not in self.events:
            raise NotFound(f"Calendar event {event_id} no longer exists")
        del self.events[event_id]


class FakeHolidayOracle:
    def __init__(self, holidays: set[date] | None = None, work_days: list[int] | None = None) -> None:
        self.holidays = holidays or set()
        self.work_days = work_days if work_days is not None else [0, 1, 2, 3, 4]

    async def is_holiday(self, d: date) -> bool:
        return d in self.holidays

    async def is_working_day(self, d: date) -> bool:
        return d.weekday() in self.work_days and d not in self.holidays


class RecordingSmsGateway:
    def __init__(self) -> None:
        self.sent: list[tuple[str, str]] = []

    async def send(self, phone: str, message: str) -> None:
        self.sent.append((phone, message))
