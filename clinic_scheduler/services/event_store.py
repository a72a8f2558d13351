from datetime import date
from typing import Protocol

from clinic_scheduler.models.calendar_event import CalendarEvent, NewCalendarEvent


class EventStore(Protocol):
    """The shared calendar: the only durable record of what is booked."""

    async def list_events(self, start: date, end: date) -> list[CalendarEvent]:
        """Events from the start of `start` to the end of `end` (clinic time), by start time."""
        ...

    async def create_event(self, data: NewCalendarEvent) -> CalendarEvent: ...

    async def delete_event(self, event_id: str) -> None:
        """Raises NotFound when the event no longer exists."""
        ...


async def get_events_for_day(store: EventStore, d: date) -> list[CalendarEvent]:
    return await store.list_events(d, d)
