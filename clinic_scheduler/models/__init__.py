from clinic_scheduler.models.calendar_event import CalendarEvent, CalendarEventRecord, NewCalendarEvent
from clinic_scheduler.models.appointment import (
    BookingResult,
    CancellationResult,
    DayAlternatives,
    PatientData,
    RescheduleResult,
    Slot,
    SoonestSlot,
    ValidationIssue,
    ValidationResult,
)

__all__ = [
    "CalendarEvent",
    "CalendarEventRecord",
    "NewCalendarEvent",
    "BookingResult",
    "CancellationResult",
    "DayAlternatives",
    "PatientData",
    "RescheduleResult",
    "Slot",
    "SoonestSlot",
    "ValidationIssue",
    "ValidationResult",
]
