"""Find the one existing appointment a cancel/reschedule caller means.

Mutating the wrong patient's record is the main risk here, so matching is
strict: exact phone, then the last six phone digits, then a gated name match.
Any ambiguity resolves to no match.
"""

import logging
import math
from datetime import date

from clinic_scheduler.models.calendar_event import CalendarEvent
from clinic_scheduler.services.event_format import event_phone
from clinic_scheduler.services.event_store import EventStore, get_events_for_day
from clinic_scheduler.services.phone import clean_phone, last_digits, phones_equal
from clinic_scheduler.services.text import strip_accents

logger = logging.getLogger(__name__)

PARTIAL_PHONE_DIGITS = 6
MULTI_PART_MATCH_RATE = 0.8
SINGLE_PART_MIN_LENGTH = 5


def _match_exact_phone(events: list[CalendarEvent], phone: str) -> CalendarEvent | None:
    for event in events:
        if phones_equal(event_phone(event), phone):
            return event
    return None


def _match_partial_phone(events: list[CalendarEvent], phone: str) -> list[CalendarEvent]:
    tail = last_digits(phone, PARTIAL_PHONE_DIGITS)
    if tail is None:
        return []
    return [e for e in events if last_digits(event_phone(e), PARTIAL_PHONE_DIGITS) == tail]


def name_is_specific(name_parts: list[str]) -> bool:
    """Bare short first names ("Ján") match too many patients to be trusted."""
    if len(name_parts) >= 2:
        return True
    return len(name_parts) == 1 and len(name_parts[0]) >= SINGLE_PART_MIN_LENGTH


def _match_name(events: list[CalendarEvent], patient_name: str) -> list[CalendarEvent]:
    parts = strip_accents(patient_name).split()
    if not name_is_specific(parts):
        return []
    rate = MULTI_PART_MATCH_RATE if len(parts) >= 2 else 1.0
    required = math.ceil(len(parts) * rate)
    matches = []
    for event in events:
        text = strip_accents(f"{event.summary} {event.description}")
        found = sum(1 for part in parts if len(part) > 1 and part in text)
        if found >= required:
            matches.append(event)
    return matches


def resolve_patient_event(
    events: list[CalendarEvent],
    patient_name: str,
    phone: str,
) -> CalendarEvent | None:
    events = [e for e in events if e.is_timed]

    if clean_phone(phone):
        exact = _match_exact_phone(events, phone)
        if exact is not None:
            logger.info("Identity resolved by exact phone: event %s", exact.id)
            return exact

        partial = _match_partial_phone(events, phone)
        if len(partial) == 1:
            logger.info("Identity resolved by partial phone: event %s", partial[0].id)
            return partial[0]
        if len(partial) > 1:
            logger.info("Partial phone matched %d events, refusing to pick one", len(partial))
            return None

    by_name = _match_name(events, patient_name)
    if len(by_name) == 1:
        logger.info("Identity resolved by name: event %s", by_name[0].id)
        return by_name[0]
    if len(by_name) > 1:
        logger.info("Name matched %d events, refusing to pick one", len(by_name))
    return None


async def find_patient_event(
    store: EventStore,
    patient_name: str,
    phone: str,
    appointment_date: date,
) -> CalendarEvent | None:
    events = await get_events_for_day(store, appointment_date)
    return resolve_patient_event(events, patient_name, phone)
