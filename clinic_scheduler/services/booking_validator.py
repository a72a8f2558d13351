"""Multi-stage booking validation.

Stages run in order and accumulate issues: patient data, appointment type,
date/time legality, daily cap, live slot availability. Only an unknown type
stops the pipeline, since nothing after it can be checked without one.
"""

import logging
from datetime import datetime, timedelta

from clinic_scheduler.core.clock import hhmm, now_local, to_clinic_time
from clinic_scheduler.core.config import AppointmentType, settings
from clinic_scheduler.core.errors import ErrorKind
from clinic_scheduler.models.appointment import PatientData, Slot, ValidationIssue, ValidationResult
from clinic_scheduler.services.event_format import count_type_events
from clinic_scheduler.services.event_store import EventStore, get_events_for_day
from clinic_scheduler.services.holiday_service import HolidayOracle
from clinic_scheduler.services.insurance import normalize_insurance
from clinic_scheduler.services.phone import is_canonical_phone, normalize_phone
from clinic_scheduler.services.slot_service import get_appointment_type, get_available_slots, is_vacation_day
from clinic_scheduler.services.type_normalizer import resolve_appointment_type

logger = logging.getLogger(__name__)

REQUIRED_PATIENT_FIELDS = ("name", "surname", "phone", "insurance")
MIN_NAME_LENGTH = 2


def _invalid(message: str) -> ValidationIssue:
    return ValidationIssue(kind=ErrorKind.INVALID_INPUT, message=message)


def _conflict(message: str) -> ValidationIssue:
    return ValidationIssue(kind=ErrorKind.SCHEDULING_CONFLICT, message=message)


def normalize_patient_data(patient: PatientData) -> PatientData:
    """Canonical phone and carrier name; unrecognized values are kept for validation to reject."""
    insurance = normalize_insurance(patient.insurance)
    return patient.model_copy(
        update={
            "name": patient.name.strip(),
            "surname": patient.surname.strip(),
            "phone": normalize_phone(patient.phone),
            "insurance": insurance.normalized or patient.insurance.strip(),
        }
    )


def validate_patient_data(patient: PatientData) -> list[ValidationIssue]:
    issues = []
    for field in REQUIRED_PATIENT_FIELDS:
        if not (getattr(patient, field) or "").strip():
            issues.append(_invalid(f"{field} is required"))

    if patient.phone and not is_canonical_phone(normalize_phone(patient.phone)):
        issues.append(_invalid("Phone number must be in format +421XXXXXXXXX"))

    if patient.name.strip() and len(patient.name.strip()) < MIN_NAME_LENGTH:
        issues.append(_invalid(f"Name must be at least {MIN_NAME_LENGTH} characters long"))
    if patient.surname.strip() and len(patient.surname.strip()) < MIN_NAME_LENGTH:
        issues.append(_invalid(f"Surname must be at least {MIN_NAME_LENGTH} characters long"))

    if patient.insurance.strip():
        insurance = normalize_insurance(patient.insurance)
        if not insurance.valid:
            issues.append(_invalid(insurance.error or "Unknown insurance carrier"))
    return issues


def _window_summary(appointment_type: AppointmentType) -> str:
    return ", ".join(f"{w.start}-{w.end}" for w in appointment_type.schedule)


def check_time_of_day(appointment_type: AppointmentType, when: datetime) -> ValidationIssue | None:
    local = to_clinic_time(when)
    minutes = local.hour * 60 + local.minute
    windows = [w for w in appointment_type.schedule if w.contains(minutes)]
    if not windows:
        return _invalid(
            f"Invalid time slot for {appointment_type.name}. "
            f"Time {hhmm(local)} not in range {_window_summary(appointment_type)}"
        )
    if local.second or local.microsecond or not any(
        (minutes - w.start_minutes) % w.interval == 0 for w in windows
    ):
        intervals = ", ".join(f"{w.start} every {w.interval}min" for w in appointment_type.schedule)
        return _invalid(
            f"Time slot {hhmm(local)} does not align with intervals. Available intervals: {intervals}"
        )
    return None


async def validate_date_time(
    store: EventStore,
    oracle: HolidayOracle,
    appointment_type: AppointmentType,
    when: datetime,
    now: datetime | None = None,
) -> ValidationIssue | None:
    """First date/time rule the request breaks, if any."""
    when = to_clinic_time(when)
    now = to_clinic_time(now) if now else now_local()

    if when < now.replace(second=0, microsecond=0):
        return _invalid("Cannot book appointments in the past")
    if when < now + timedelta(hours=settings.min_advance_hours):
        return _invalid(
            f"Appointments must be booked at least {settings.min_advance_hours} hour(s) in advance"
        )
    if when > now + timedelta(days=settings.max_advance_days):
        return _invalid(
            f"Appointments can only be booked up to {settings.max_advance_days} days in advance"
        )
    if when.weekday() not in settings.work_days:
        return _invalid("Appointments are only available on working days")
    if await oracle.is_holiday(when.date()):
        return _invalid("No appointments available on public holidays")
    if is_vacation_day(await get_events_for_day(store, when.date())):
        return _invalid("No appointments available on vacation days")
    return check_time_of_day(appointment_type, when)


async def validate_daily_limit(
    store: EventStore,
    appointment_type: AppointmentType,
    when: datetime,
    exclude_event_id: str | None = None,
) -> ValidationIssue | None:
    d = to_clinic_time(when).date()
    events = [e for e in await get_events_for_day(store, d) if e.id != exclude_event_id]
    count = count_type_events(events, appointment_type)
    logger.debug(
        "Daily limit check for %s on %s: %d/%d", appointment_type.key, d, count, appointment_type.daily_limit
    )
    if count >= appointment_type.daily_limit:
        return _conflict(
            f"Daily limit reached for {appointment_type.name} "
            f"({appointment_type.daily_limit} appointments per day). Try another day."
        )
    return None


async def validate_slot_availability(
    store: EventStore,
    oracle: HolidayOracle,
    appointment_type: AppointmentType,
    when: datetime,
    exclude_event_id: str | None = None,
) -> tuple[ValidationIssue | None, list[Slot]]:
    """Re-reads the calendar: catches slots taken since the caller last looked."""
    local = to_clinic_time(when)
    slots = await get_available_slots(
        store, oracle, local.date(), appointment_type.key, exclude_event_id=exclude_event_id
    )
    if any(slot.time == hhmm(local) for slot in slots):
        return None, []
    return _conflict("Time slot is not available"), slots[: settings.suggestion_slot_count]


async def validate_slot(
    store: EventStore,
    oracle: HolidayOracle,
    appointment_type: AppointmentType,
    when: datetime,
    now: datetime | None = None,
    exclude_event_id: str | None = None,
) -> tuple[list[ValidationIssue], list[Slot]]:
    """Date/time legality, daily cap and live availability for one slot."""
    issues = []
    date_issue = await validate_date_time(store, oracle, appointment_type, when, now=now)
    if date_issue:
        issues.append(date_issue)
    limit_issue = await validate_daily_limit(store, appointment_type, when, exclude_event_id=exclude_event_id)
    if limit_issue:
        issues.append(limit_issue)
    slot_issue, suggestions = await validate_slot_availability(
        store, oracle, appointment_type, when, exclude_event_id=exclude_event_id
    )
    if slot_issue:
        issues.append(slot_issue)
    return issues, suggestions


async def confirm_slot_still_free(
    store: EventStore,
    oracle: HolidayOracle,
    appointment_type: AppointmentType,
    when: datetime,
    exclude_event_id: str | None = None,
) -> list[ValidationIssue]:
    """Last re-check right before the write. Narrows the race window; cannot close it."""
    issues = []
    limit_issue = await validate_daily_limit(store, appointment_type, when, exclude_event_id=exclude_event_id)
    if limit_issue:
        issues.append(limit_issue)
    slot_issue, _ = await validate_slot_availability(
        store, oracle, appointment_type, when, exclude_event_id=exclude_event_id
    )
    if slot_issue:
        issues.append(slot_issue)
    return issues


async def validate_booking(
    store: EventStore,
    oracle: HolidayOracle,
    patient: PatientData,
    appointment_type: str | None,
    when: datetime,
    now: datetime | None = None,
) -> ValidationResult:
    issues = validate_patient_data(patient)

    resolution = resolve_appointment_type(appointment_type)
    if not resolution.valid:
        issues.append(_invalid(resolution.error or "Invalid appointment type"))
        return ValidationResult(valid=False, errors=issues)
    type_config = get_appointment_type(resolution.key)

    slot_issues, suggestions = await validate_slot(store, oracle, type_config, when, now=now)
    issues.extend(slot_issues)

    if issues:
        logger.info(
            "Booking rejected for %s at %s: %s",
            type_config.key,
            to_clinic_time(when).isoformat(),
            [i.message for i in issues],
        )
    return ValidationResult(
        valid=not issues,
        errors=issues,
        appointment_type=type_config.key,
        suggestions=suggestions,
    )
