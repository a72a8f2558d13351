import logging
from datetime import date, datetime, timedelta

from clinic_scheduler.core.clock import at_clinic, hhmm, now_local
from clinic_scheduler.core.config import AppointmentType, get_appointment_types, settings
from clinic_scheduler.core.errors import InvalidInput
from clinic_scheduler.models.appointment import DayAlternatives, Slot, SoonestSlot
from clinic_scheduler.models.calendar_event import CalendarEvent
from clinic_scheduler.services.event_format import count_type_events, is_vacation_marker
from clinic_scheduler.services.event_store import EventStore, get_events_for_day
from clinic_scheduler.services.holiday_service import HolidayOracle

logger = logging.getLogger(__name__)

# Callers ask for round times ("at eight") that may not sit on a window's interval
TOLERANCE_STEP_MINUTES = 10


def _format_minutes(minutes: int) -> str:
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def generate_slot_times(appointment_type: AppointmentType) -> list[str]:
    """All theoretical HH:MM start times for a type, ascending.

    Each window contributes its interval steps plus every 10-minute boundary,
    from start (inclusive) to end (exclusive).
    """
    minutes: set[int] = set()
    for window in appointment_type.schedule:
        for step in (window.interval, TOLERANCE_STEP_MINUTES):
            current = window.start_minutes
            while current < window.end_minutes:
                minutes.add(current)
                current += step
    return [_format_minutes(m) for m in sorted(minutes)]


def get_appointment_type(type_key: str) -> AppointmentType:
    types = get_appointment_types()
    if type_key not in types:
        raise InvalidInput(f"Invalid appointment type: {type_key}", available_types=list(types))
    return types[type_key]


def is_vacation_day(events: list[CalendarEvent]) -> bool:
    return any(is_vacation_marker(e, settings.vacation_keyword) for e in events)


def compute_available_slots(
    appointment_type: AppointmentType,
    d: date,
    events: list[CalendarEvent],
    exclude_event_id: str | None = None,
) -> list[Slot]:
    """Generated slots minus the start times of every timed event that day.

    `exclude_event_id` leaves one event out, so an appointment being moved
    does not block its own replacement.
    """
    events = [e for e in events if e.id != exclude_event_id]
    if is_vacation_day(events):
        return []
    type_count = count_type_events(events, appointment_type)
    if type_count >= appointment_type.daily_limit:
        logger.info(
            "Daily limit reached for %s on %s (%d/%d)",
            appointment_type.key,
            d,
            type_count,
            appointment_type.daily_limit,
        )
        return []
    occupied = {hhmm(e.start) for e in events if e.start is not None}
    return [
        Slot(date=d, time=t, start=at_clinic(d, t))
        for t in generate_slot_times(appointment_type)
        if t not in occupied
    ]


async def get_available_slots(
    store: EventStore,
    oracle: HolidayOracle,
    d: date,
    type_key: str,
    exclude_event_id: str | None = None,
) -> list[Slot]:
    appointment_type = get_appointment_type(type_key)
    if not await oracle.is_working_day(d):
        return []
    events = await get_events_for_day(store, d)
    return compute_available_slots(appointment_type, d, events, exclude_event_id=exclude_event_id)


async def find_soonest_slot(
    store: EventStore,
    oracle: HolidayOracle,
    type_key: str,
    from_date: date,
    max_days_to_search: int | None = None,
    now: datetime | None = None,
) -> SoonestSlot | None:
    """First free slot on or after `from_date` that can still be booked.

    Slots closer to `now` than the minimum lead time are skipped.
    """
    if max_days_to_search is None:
        max_days_to_search = settings.soonest_days_to_search
    earliest = (now or now_local()) + timedelta(hours=settings.min_advance_hours)
    for offset in range(max_days_to_search):
        d = from_date + timedelta(days=offset)
        if not await oracle.is_working_day(d):
            continue
        slots = [s for s in await get_available_slots(store, oracle, d, type_key) if s.start >= earliest]
        if slots:
            first = slots[0]
            return SoonestSlot(date=first.date, time=first.time, start=first.start, days_from_preferred=offset)
    logger.info("No %s slot within %d days from %s", type_key, max_days_to_search, from_date)
    return None


async def find_alternative_slots(
    store: EventStore,
    oracle: HolidayOracle,
    type_key: str,
    preferred_date: date,
    days_to_search: int | None = None,
) -> list[DayAlternatives]:
    """Substitute offers after a rejected booking: a few slots on each of the next working days."""
    if days_to_search is None:
        days_to_search = settings.alternative_days_to_search
    alternatives: list[DayAlternatives] = []
    for offset in range(days_to_search):
        d = preferred_date + timedelta(days=offset)
        if not await oracle.is_working_day(d):
            continue
        slots = await get_available_slots(store, oracle, d, type_key)
        if slots:
            alternatives.append(
                DayAlternatives(
                    date=d,
                    day_name=d.strftime("%A"),
                    slots=slots[: settings.alternative_slots_per_day],
                )
            )
        if len(alternatives) >= settings.max_alternative_days:
            break
    return alternatives
