import logging
from datetime import datetime
from typing import Protocol

from pydantic import BaseModel

from clinic_scheduler.core.clock import to_clinic_time
from clinic_scheduler.core.config import settings
from clinic_scheduler.models.appointment import BookingResult, CancellationResult, RescheduleResult
from clinic_scheduler.services.event_format import event_patient_name, event_phone

logger = logging.getLogger(__name__)

SINGLE_SEGMENT_LENGTH = 160

# Per-type confirmation templates. Placeholders: {patient_name} {date_short} {time} {order_number}
SMS_TEMPLATES: dict[str, str] = {
    "sportova_prehliadka": (
        "Dobrý deň {patient_name}, potvrdzujeme Vám termín športovej prehliadky {date_short} o {time}. "
        "Cena 130€ v hotovosti. Príďte nalačno (8 hodín), prineste si jedlo, vodu a oblečenie na prezlečenie. "
        "{sender}"
    ),
    "vstupne_vysetrenie": (
        "Dobrý deň {patient_name}, potvrdzujeme Vám termín vstupného vyšetrenia {date_short} o {time}. "
        "Poradové číslo: {order_number}. Hradí poisťovňa. Prineste si poukaz a zdravotnú kartičku. {sender}"
    ),
    "kontrolne_vysetrenie": (
        "Dobrý deň {patient_name}, potvrdzujeme Vám termín kontrolného vyšetrenia {date_short} o {time}. "
        "Poradové číslo: {order_number}. Hradí poisťovňa. Prineste si zdravotnú kartičku a výsledky testov. "
        "{sender}"
    ),
    "zdravotnicke_pomocky": (
        "Dobrý deň {patient_name}, potvrdzujeme Vám termín na zdravotnícke pomôcky {date_short} o {time}. "
        "Poradové číslo: {order_number}. Hradí poisťovňa. Prineste si zdravotnú kartičku a lekárske správy. "
        "{sender}"
    ),
    "konzultacia": (
        "Dobrý deň {patient_name}, potvrdzujeme Vám termín konzultácie {date_short} o {time}. "
        "Poradové číslo: {order_number}. Cena 30€ v hotovosti. {sender}"
    ),
}
FALLBACK_TEMPLATE = "Dobrý deň {patient_name}, potvrdzujeme Vám termín {date_short} o {time}. {sender}"
CANCELLATION_TEMPLATE = (
    "Dobrý deň {patient_name}, Váš termín na {date_short} o {time} bol zrušený. "
    "Pre ďalšie informácie nás kontaktujte. {sender}"
)
RESCHEDULE_TEMPLATE = (
    "Dobrý deň {patient_name}, Váš termín bol presunutý z {old_date} {old_time} na {date_short} o {time}. "
    "Poradové číslo: {order_number}. {sender}"
)


class SmsPayload(BaseModel):
    """Flat data handed to the SMS collaborator."""

    patient_name: str
    date_short: str
    time: str
    order_number: int | None = None
    appointment_type: str


class SmsGateway(Protocol):
    async def send(self, phone: str, message: str) -> None: ...


class LoggingSmsGateway:
    """Default gateway: records the hand-off; delivery belongs to the SMS provider integration."""

    async def send(self, phone: str, message: str) -> None:
        logger.info("SMS queued for %s (%d chars)", phone[:-4] + "****", len(message))


def date_short(when: datetime) -> str:
    local = to_clinic_time(when)
    return f"{local.day}.{local.month}."


def build_sms_payload(
    patient_name: str,
    appointment_type: str,
    start: datetime,
    order_number: int | None = None,
) -> SmsPayload:
    return SmsPayload(
        patient_name=patient_name,
        date_short=date_short(start),
        time=to_clinic_time(start).strftime("%H:%M"),
        order_number=order_number,
        appointment_type=appointment_type,
    )


def _fields(payload: SmsPayload) -> dict[str, str]:
    return {
        "patient_name": payload.patient_name or "Pacient",
        "date_short": payload.date_short,
        "time": payload.time,
        "order_number": str(payload.order_number) if payload.order_number else "N/A",
        "sender": settings.sms_sender_name,
    }


def format_confirmation_message(payload: SmsPayload) -> str:
    template = SMS_TEMPLATES.get(payload.appointment_type, FALLBACK_TEMPLATE)
    return template.format_map(_fields(payload))


def format_cancellation_message(payload: SmsPayload) -> str:
    return CANCELLATION_TEMPLATE.format_map(_fields(payload))


def format_reschedule_message(payload: SmsPayload, old_start: datetime) -> str:
    fields = _fields(payload)
    fields["old_date"] = date_short(old_start)
    fields["old_time"] = to_clinic_time(old_start).strftime("%H:%M")
    return RESCHEDULE_TEMPLATE.format_map(fields)


def segment_count(message: str) -> int:
    return max(1, -(-len(message) // SINGLE_SEGMENT_LENGTH))


async def dispatch_sms(gateway: SmsGateway, phone: str, message: str) -> bool:
    """Hand a message to the gateway (call from a background task). Never raises."""
    if not settings.sms_enabled:
        logger.debug("SMS disabled, skipping send")
        return False
    if not phone:
        logger.warning("No phone number on record, SMS not sent")
        return False
    if segment_count(message) > 1:
        logger.debug("SMS spans %d segments", segment_count(message))
    try:
        await gateway.send(phone, message)
        return True
    except Exception as e:
        logger.exception("Failed to send SMS: %s", e)
        return False


class SmsNotification(BaseModel):
    phone: str
    message: str


def confirmation_notification(result: BookingResult) -> SmsNotification:
    event = result.event
    payload = build_sms_payload(
        event_patient_name(event) or "", result.appointment_type, event.start, result.order_number
    )
    return SmsNotification(phone=event_phone(event) or "", message=format_confirmation_message(payload))


def cancellation_notification(result: CancellationResult) -> SmsNotification:
    event = result.event
    payload = build_sms_payload(result.patient_name, "", event.start)
    return SmsNotification(phone=event_phone(event) or "", message=format_cancellation_message(payload))


def reschedule_notification(result: RescheduleResult) -> SmsNotification:
    new_event = result.new_event
    payload = build_sms_payload(
        event_patient_name(new_event) or "", result.appointment_type, new_event.start, result.order_number
    )
    return SmsNotification(
        phone=event_phone(new_event) or "",
        message=format_reschedule_message(payload, result.old_event.start),
    )
