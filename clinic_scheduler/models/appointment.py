from datetime import date, datetime

from sqlmodel import SQLModel

from clinic_scheduler.core.errors import ErrorKind
from clinic_scheduler.models.calendar_event import CalendarEvent


class PatientData(SQLModel):
    name: str = ""
    surname: str = ""
    phone: str = ""
    insurance: str = ""
    email: str | None = None
    birth_id: str | None = None

    @property
    def full_name(self) -> str:
        return f"{self.name.strip()} {self.surname.strip()}".strip()


class Slot(SQLModel):
    date: date
    time: str  # HH:MM, clinic local time
    start: datetime


class SoonestSlot(Slot):
    days_from_preferred: int


class DayAlternatives(SQLModel):
    date: date
    day_name: str
    slots: list[Slot]


class ValidationIssue(SQLModel):
    kind: ErrorKind
    message: str


class ValidationResult(SQLModel):
    valid: bool
    errors: list[ValidationIssue] = []
    appointment_type: str | None = None
    suggestions: list[Slot] = []


class BookingResult(SQLModel):
    event: CalendarEvent
    appointment_type: str
    order_number: int | None = None


class CancellationResult(SQLModel):
    event: CalendarEvent
    patient_name: str


class RescheduleResult(SQLModel):
    old_event: CalendarEvent
    new_event: CalendarEvent
    appointment_type: str
    order_number: int | None = None
