from datetime import datetime

from clinic_scheduler.core.clock import to_clinic_time
from clinic_scheduler.core.config import AppointmentType
from clinic_scheduler.models.calendar_event import CalendarEvent
from clinic_scheduler.services.event_format import appointment_type_for_event
from clinic_scheduler.services.event_store import EventStore, get_events_for_day


def compute_order_number(
    appointment_type: AppointmentType,
    start: datetime,
    events: list[CalendarEvent],
) -> int | None:
    """Queue position of `start` among the day's order-numbered appointments.

    Position follows start time, not booking order. Events sharing a start
    time keep the order they were retrieved in.
    """
    if not appointment_type.order_numbers:
        return None
    numbered = []
    for event in events:
        if event.start is None:
            continue
        event_type = appointment_type_for_event(event)
        if event_type is not None and event_type.order_numbers:
            numbered.append(event)
    numbered.sort(key=lambda e: e.start)
    start = to_clinic_time(start)
    return 1 + sum(1 for e in numbered if e.start < start)


async def get_order_number(
    store: EventStore,
    appointment_type: AppointmentType,
    start: datetime,
) -> int | None:
    if not appointment_type.order_numbers:
        return None
    events = await get_events_for_day(store, to_clinic_time(start).date())
    return compute_order_number(appointment_type, start, events)
