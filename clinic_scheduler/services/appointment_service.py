import logging
from datetime import date, datetime, timedelta

from clinic_scheduler.core.clock import now_local, to_clinic_time
from clinic_scheduler.core.config import AppointmentType
from clinic_scheduler.core.errors import BookingRejected, InvalidInput, NotFound, PartialFailure
from clinic_scheduler.models.appointment import (
    BookingResult,
    CancellationResult,
    PatientData,
    RescheduleResult,
    Slot,
    SoonestSlot,
)
from clinic_scheduler.models.calendar_event import CalendarEvent, NewCalendarEvent
from clinic_scheduler.services.booking_validator import (
    confirm_slot_still_free,
    normalize_patient_data,
    validate_booking,
    validate_slot,
)
from clinic_scheduler.services.event_format import (
    appointment_type_for_event,
    event_insurance,
    event_patient_name,
    event_phone,
    format_description,
    format_summary,
)
from clinic_scheduler.services.event_store import EventStore
from clinic_scheduler.services.holiday_service import HolidayOracle
from clinic_scheduler.services.identity_resolver import find_patient_event
from clinic_scheduler.services.order_numbers import get_order_number
from clinic_scheduler.services.slot_service import (
    find_alternative_slots,
    find_soonest_slot,
    get_appointment_type,
)
from clinic_scheduler.services.slot_service import get_available_slots as _available_slots
from clinic_scheduler.services.time_parser import matches_time_preference, parse_time_preference
from clinic_scheduler.services.type_normalizer import resolve_appointment_type

logger = logging.getLogger(__name__)

NOT_FOUND_MESSAGE = "Appointment not found. Please check the name, phone number and date."


def resolve_type_or_raise(text: str | None) -> AppointmentType:
    resolution = resolve_appointment_type(text)
    if not resolution.valid:
        raise InvalidInput(resolution.error or "Invalid appointment type", resolution.available_types)
    return get_appointment_type(resolution.key)


async def get_available_slots(
    store: EventStore,
    oracle: HolidayOracle,
    d: date,
    appointment_type: str,
    time_preference: str | None = None,
) -> list[Slot]:
    type_config = resolve_type_or_raise(appointment_type)
    slots = await _available_slots(store, oracle, d, type_config.key)
    preference = parse_time_preference(time_preference)
    return [s for s in slots if matches_time_preference(s.time, preference)]


async def find_closest_slot(
    store: EventStore,
    oracle: HolidayOracle,
    appointment_type: str,
    from_date: date | None = None,
    days_to_search: int | None = None,
    now: datetime | None = None,
) -> SoonestSlot | None:
    type_config = resolve_type_or_raise(appointment_type)
    now = to_clinic_time(now) if now else now_local()
    return await find_soonest_slot(
        store, oracle, type_config.key, from_date or now.date(), days_to_search, now=now
    )


async def _write_appointment(
    store: EventStore,
    type_config: AppointmentType,
    patient_name: str,
    phone: str,
    insurance: str | None,
    start: datetime,
) -> tuple[CalendarEvent, int | None]:
    order_number = await get_order_number(store, type_config, start)
    event = await store.create_event(
        NewCalendarEvent(
            summary=format_summary(type_config, patient_name),
            description=format_description(type_config, patient_name, phone, insurance, order_number),
            start=start,
            end=start + timedelta(minutes=type_config.duration),
            color_id=type_config.color,
        )
    )
    return event, order_number


async def book_appointment(
    store: EventStore,
    oracle: HolidayOracle,
    patient: PatientData,
    appointment_type: str,
    date_time: datetime,
    now: datetime | None = None,
) -> BookingResult:
    start = to_clinic_time(date_time)
    validation = await validate_booking(store, oracle, patient, appointment_type, start, now=now)
    if not validation.valid:
        alternatives = []
        if validation.appointment_type:
            alternatives = await find_alternative_slots(
                store, oracle, validation.appointment_type, start.date()
            )
        raise BookingRejected(validation.errors, alternatives)

    type_config = get_appointment_type(validation.appointment_type)
    # Second race window: the slot may have gone while validation ran
    late_issues = await confirm_slot_still_free(store, oracle, type_config, start)
    if late_issues:
        logger.warning("Slot %s for %s taken before write", start.isoformat(), type_config.key)
        alternatives = await find_alternative_slots(store, oracle, type_config.key, start.date())
        raise BookingRejected(late_issues, alternatives)

    patient = normalize_patient_data(patient)
    event, order_number = await _write_appointment(
        store, type_config, patient.full_name, patient.phone, patient.insurance, start
    )
    logger.info(
        "Booked %s at %s (event %s, order number %s)",
        type_config.key,
        start.isoformat(),
        event.id,
        order_number,
    )
    return BookingResult(event=event, appointment_type=type_config.key, order_number=order_number)


async def cancel_appointment(
    store: EventStore,
    patient_name: str,
    phone: str,
    appointment_date: date,
) -> CancellationResult:
    event = await find_patient_event(store, patient_name, phone, appointment_date)
    if event is None:
        raise NotFound(NOT_FOUND_MESSAGE)
    await store.delete_event(event.id)
    logger.info("Cancelled event %s on %s", event.id, appointment_date)
    return CancellationResult(event=event, patient_name=event_patient_name(event) or patient_name)


async def reschedule_appointment(
    store: EventStore,
    oracle: HolidayOracle,
    patient_name: str,
    phone: str,
    old_date: date,
    new_date_time: datetime,
    now: datetime | None = None,
) -> RescheduleResult:
    existing = await find_patient_event(store, patient_name, phone, old_date)
    if existing is None:
        raise NotFound(NOT_FOUND_MESSAGE)

    type_config = appointment_type_for_event(existing)
    if type_config is None:
        raise InvalidInput("Could not determine the appointment type of the existing appointment")

    new_start = to_clinic_time(new_date_time)
    issues, _ = await validate_slot(
        store, oracle, type_config, new_start, now=now, exclude_event_id=existing.id
    )
    if issues:
        alternatives = await find_alternative_slots(store, oracle, type_config.key, new_start.date())
        raise BookingRejected(issues, alternatives)

    late_issues = await confirm_slot_still_free(
        store, oracle, type_config, new_start, exclude_event_id=existing.id
    )
    if late_issues:
        raise BookingRejected(late_issues)

    # The record's own data wins over what the caller said
    name = event_patient_name(existing) or patient_name
    recorded_phone = event_phone(existing) or phone
    insurance = event_insurance(existing)

    await store.delete_event(existing.id)
    try:
        new_event, order_number = await _write_appointment(
            store, type_config, name, recorded_phone, insurance, new_start
        )
    except Exception as e:
        # Any failure past the delete leaves the patient without an appointment
        logger.error(
            "Reschedule partial failure: event %s deleted, replacement at %s not created: %s",
            existing.id,
            new_start.isoformat(),
            e,
        )
        raise PartialFailure(
            "The original appointment was cancelled but the new one could not be created. "
            "Manual follow-up is required.",
            deleted_event_id=existing.id,
        ) from e

    logger.info("Rescheduled event %s to %s (new event %s)", existing.id, new_start.isoformat(), new_event.id)
    return RescheduleResult(
        old_event=existing,
        new_event=new_event,
        appointment_type=type_config.key,
        order_number=order_number,
    )
