"""Summary/description text layout of appointment events.

The calendar offers no structured fields, so the appointment type and the
patient are encoded in free text that clinic staff also read. Labels stay in
the clinic's language.
"""

import re
from datetime import datetime

from clinic_scheduler.core.clock import now_local
from clinic_scheduler.core.config import AppointmentType, get_appointment_types
from clinic_scheduler.models.calendar_event import CalendarEvent

ORDER_LABEL = "🔢 PORADOVÉ ČÍSLO"
PHONE_LABEL = "Telefón"
INSURANCE_LABEL = "Poisťovňa"
PATIENT_LABEL = "Pacient"

_PHONE_RE = re.compile(rf"{PHONE_LABEL}:\s*([^\n]+)")
_INSURANCE_RE = re.compile(rf"{INSURANCE_LABEL}:\s*([^\n]+)")
_PATIENT_RE = re.compile(rf"{PATIENT_LABEL}:\s*([^\n]+)")
_ORDER_RE = re.compile(r"PORADOVÉ ČÍSLO:\s*(\d+)")


def format_summary(appointment_type: AppointmentType, patient_name: str) -> str:
    return f"{appointment_type.name} - {patient_name}"


def format_description(
    appointment_type: AppointmentType,
    patient_name: str,
    phone: str,
    insurance: str | None,
    order_number: int | None = None,
    created_at: datetime | None = None,
) -> str:
    created_at = created_at or now_local()
    order = f"{ORDER_LABEL}: {order_number}\n\n" if order_number else ""
    price = "hradí poisťovňa" if appointment_type.price == 0 else appointment_type.price_display
    return (
        f"{order}Typ vyšetrenia: {appointment_type.key}\n"
        f"{PATIENT_LABEL}: {patient_name}\n"
        f"{PHONE_LABEL}: {phone}\n"
        f"{INSURANCE_LABEL}: {insurance or 'N/A'}\n"
        f"Trvanie: {appointment_type.duration} minút\n"
        f"Cena: {price}\n"
        f"Vytvorené: {created_at.strftime('%d.%m.%Y %H:%M:%S')}"
    )


def _field(pattern: re.Pattern, text: str) -> str | None:
    match = pattern.search(text or "")
    return match.group(1).strip() if match else None


def event_phone(event: CalendarEvent) -> str | None:
    return _field(_PHONE_RE, event.description)


def event_insurance(event: CalendarEvent) -> str | None:
    insurance = _field(_INSURANCE_RE, event.description)
    return None if insurance == "N/A" else insurance


def event_patient_name(event: CalendarEvent) -> str | None:
    name = _field(_PATIENT_RE, event.description)
    if name:
        return name
    if " - " in event.summary:
        return event.summary.split(" - ", 1)[1].strip() or None
    return None


def event_order_number(event: CalendarEvent) -> int | None:
    value = _field(_ORDER_RE, event.description)
    return int(value) if value else None


def summary_matches_type(summary: str | None, appointment_type: AppointmentType) -> bool:
    if not summary:
        return False
    return summary.startswith(appointment_type.name + " -") or appointment_type.name in summary


def appointment_type_for_event(event: CalendarEvent) -> AppointmentType | None:
    for appointment_type in get_appointment_types().values():
        if summary_matches_type(event.summary, appointment_type):
            return appointment_type
    return None


def count_type_events(events: list[CalendarEvent], appointment_type: AppointmentType) -> int:
    return sum(1 for e in events if summary_matches_type(e.summary, appointment_type))


def is_vacation_marker(event: CalendarEvent, keyword: str) -> bool:
    return bool(keyword) and keyword in (event.summary or "")
