from datetime import date, datetime
from typing import Any

from pydantic import BaseModel, EmailStr, Field, field_validator

from clinic_scheduler.core.clock import to_clinic_time
from clinic_scheduler.core.config import AppointmentType, ScheduleWindow, get_appointment_types
from clinic_scheduler.models.appointment import BookingResult, DayAlternatives, PatientData, Slot, SoonestSlot
from clinic_scheduler.services.event_format import event_patient_name


class AppointmentTypeInfo(BaseModel):
    key: str
    name: str
    schedule: list[ScheduleWindow]
    duration: int
    daily_limit: int
    price: str  # e.g. "130€"
    currency: str
    insurance_covered: bool
    requirements: list[str]


class RequirementsResponse(BaseModel):
    appointment_type: str
    name: str
    requirements: list[str]
    price: str
    insurance_covered: bool


class SlotInfo(BaseModel):
    time: str  # HH:MM, clinic local time
    datetime: datetime


class AvailableSlotsResponse(BaseModel):
    date: str  # YYYY-MM-DD
    appointment_type: str
    total_slots: int
    slots: list[SlotInfo]


class SoonestSlotRequest(BaseModel):
    appointment_type: str
    preferred_date: date | None = None
    days_to_search: int | None = Field(default=None, ge=1, le=60)


class SoonestSlotInfo(SlotInfo):
    date: str
    day_name: str
    days_from_preferred: int
    appointment_type: str
    price: str
    insurance_covered: bool


class SoonestSlotResponse(BaseModel):
    found: bool
    closest_slot: SoonestSlotInfo | None = None
    message: str | None = None


class BookAppointmentRequest(BaseModel):
    """Flat booking payload, the same shape the voice webhook sends."""

    appointment_type: str
    date_time: datetime
    patient_name: str
    patient_surname: str
    phone: str
    insurance: str
    email: EmailStr | None = None
    birth_id: str | None = None

    @field_validator("email", mode="before")
    @classmethod
    def _blank_email(cls, value: Any) -> Any:
        # Voice agents send "" when the caller gave no e-mail
        return value or None

    def to_patient(self) -> PatientData:
        return PatientData(
            name=self.patient_name,
            surname=self.patient_surname,
            phone=self.phone,
            insurance=self.insurance,
            email=self.email,
            birth_id=self.birth_id,
        )


class CancelAppointmentRequest(BaseModel):
    patient_name: str
    phone: str = ""
    appointment_date: date


class RescheduleAppointmentRequest(BaseModel):
    patient_name: str
    phone: str = ""
    old_date: date
    new_date_time: datetime


class AppointmentPublic(BaseModel):
    id: str
    patient_name: str
    appointment_type: str
    date: str  # DD.MM.YYYY
    time: str  # HH:MM
    start: datetime
    order_number: int | None = None
    price: str
    insurance_covered: bool
    requirements: list[str] = []


class BookingResponse(BaseModel):
    message: str
    appointment: AppointmentPublic
    sms_queued: bool = False


class AppointmentTime(BaseModel):
    date: str
    time: str
    order_number: int | None = None


class CancellationResponse(BaseModel):
    message: str
    patient_name: str
    cancelled_appointment: AppointmentTime
    sms_queued: bool = False


class RescheduleResponse(BaseModel):
    message: str
    old_appointment: AppointmentTime
    new_appointment: AppointmentTime
    sms_queued: bool = False


class HolidayInfo(BaseModel):
    date: str
    name: str
    day_name: str


class UpcomingHolidaysResponse(BaseModel):
    days: int
    holidays: list[HolidayInfo]


class WebhookRequest(BaseModel):
    action: str | None = None
    parameters: dict[str, Any] = {}


def slot_info(slot: Slot) -> SlotInfo:
    return SlotInfo(time=slot.time, datetime=slot.start)


def alternatives_payload(alternatives: list[DayAlternatives]) -> list[dict[str, Any]]:
    return [
        {
            "date": alt.date.isoformat(),
            "day_name": alt.day_name,
            "available_slots": [slot_info(s).model_dump(mode="json") for s in alt.slots],
        }
        for alt in alternatives
    ]


def type_info(appointment_type: AppointmentType) -> AppointmentTypeInfo:
    return AppointmentTypeInfo(
        key=appointment_type.key,
        name=appointment_type.name,
        schedule=appointment_type.schedule,
        duration=appointment_type.duration,
        daily_limit=appointment_type.daily_limit,
        price=appointment_type.price_display,
        currency=appointment_type.currency,
        insurance_covered=appointment_type.insurance,
        requirements=appointment_type.requirements,
    )


def soonest_slot_info(slot: SoonestSlot, appointment_type: AppointmentType) -> SoonestSlotInfo:
    return SoonestSlotInfo(
        date=slot.date.isoformat(),
        day_name=slot.date.strftime("%A"),
        time=slot.time,
        datetime=slot.start,
        days_from_preferred=slot.days_from_preferred,
        appointment_type=appointment_type.name,
        price=appointment_type.price_display,
        insurance_covered=appointment_type.insurance,
    )


def appointment_time(start: datetime | None, order_number: int | None = None) -> AppointmentTime:
    local = to_clinic_time(start) if start else None
    return AppointmentTime(
        date=local.strftime("%d.%m.%Y") if local else "",
        time=local.strftime("%H:%M") if local else "",
        order_number=order_number,
    )


def appointment_public(result: BookingResult) -> AppointmentPublic:
    appointment_type = get_appointment_types()[result.appointment_type]
    when = appointment_time(result.event.start)
    return AppointmentPublic(
        id=result.event.id,
        patient_name=event_patient_name(result.event) or "",
        appointment_type=appointment_type.name,
        date=when.date,
        time=when.time,
        start=result.event.start,
        order_number=result.order_number,
        price=appointment_type.price_display,
        insurance_covered=appointment_type.insurance,
        requirements=appointment_type.requirements,
    )
