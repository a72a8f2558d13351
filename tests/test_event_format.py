from datetime import datetime

from clinic_scheduler.models.calendar_event import CalendarEvent
from clinic_scheduler.services.event_format import (
    appointment_type_for_event,
    count_type_events,
    event_insurance,
    event_order_number,
    event_patient_name,
    event_phone,
    format_description,
    format_summary,
    is_vacation_marker,
)
from clinic_scheduler.services.slot_service import get_appointment_type

VSTUPNE = get_appointment_type("vstupne_vysetrenie")
SPORTOVA = get_appointment_type("sportova_prehliadka")


def _event(summary: str, description: str = "") -> CalendarEvent:
    return CalendarEvent(id="e", summary=summary, description=description)


class TestEventText:
    def test_description_fields_read_back(self):
        description = format_description(
            VSTUPNE, "Jana Nováková", "+421905123456", None, 3, created_at=datetime(2026, 10, 19, 8, 0)
        )
        event = _event(format_summary(VSTUPNE, "Jana Nováková"), description)
        assert description.startswith("🔢 PORADOVÉ ČÍSLO: 3\n\n")
        assert "Cena: hradí poisťovňa" in description
        assert "Vytvorené: 19.10.2026 08:00:00" in description
        assert event_phone(event) == "+421905123456"
        assert event_insurance(event) is None
        assert event_order_number(event) == 3
        assert event_patient_name(event) == "Jana Nováková"

    def test_paid_type_shows_price(self):
        assert "Cena: 130€" in format_description(SPORTOVA, "A B", "+421905123456", "Union")

    def test_name_falls_back_to_summary(self):
        assert event_patient_name(_event("Konzultácia - Peter Malý")) == "Peter Malý"
        assert event_patient_name(_event("Porada")) is None


class TestTypeRecognition:
    def test_type_from_summary(self):
        assert appointment_type_for_event(_event("Kontrolné vyšetrenie - A B")).key == "kontrolne_vysetrenie"
        assert appointment_type_for_event(_event("Obed")) is None

    def test_count_type_events(self):
        events = [_event("Vstupné vyšetrenie - A"), _event("Vstupné vyšetrenie - B"), _event("Konzultácia - C")]
        assert count_type_events(events, VSTUPNE) == 2

    def test_vacation_marker(self):
        assert is_vacation_marker(_event("DOVOLENKA MUDr. Nový"), "DOVOLENKA")
        assert not is_vacation_marker(_event("Dovolenka"), "DOVOLENKA")
        assert not is_vacation_marker(_event("DOVOLENKA"), "")
