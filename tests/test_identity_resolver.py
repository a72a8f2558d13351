from clinic_scheduler.services.event_format import format_description, format_summary
from clinic_scheduler.services.identity_resolver import (
    find_patient_event,
    name_is_specific,
    resolve_patient_event,
)
from clinic_scheduler.services.slot_service import get_appointment_type
from tests.conftest import TUESDAY

KONTROLNE = get_appointment_type("kontrolne_vysetrenie")


def _book(store, name, phone, hhmm):
    return store.add_at(
        format_summary(KONTROLNE, name),
        TUESDAY,
        hhmm,
        description=format_description(KONTROLNE, name, phone, "VšZP", 1),
    )


class TestResolvePatientEvent:
    async def test_exact_phone_wins(self, store):
        _book(store, "Ján Novák", "+421905111111", "09:00")
        target = _book(store, "Mária Kováčová", "+421905222222", "09:10")
        found = await find_patient_event(store, "Ján Novák", "0905 222 222", TUESDAY)
        assert found.id == target.id

    async def test_partial_phone_match(self, store):
        target = _book(store, "Peter Horváth", "+421905333444", "09:00")
        found = await find_patient_event(store, "Peter", "+421915333444", TUESDAY)
        assert found.id == target.id

    async def test_ambiguous_partial_phone_is_no_match(self, store):
        _book(store, "Peter Horváth", "+421905333444", "09:00")
        _book(store, "Pavol Horváth", "+421915333444", "09:10")
        assert await find_patient_event(store, "Peter Horváth", "+421944333444", TUESDAY) is None

    async def test_name_match_ignores_accents(self, store):
        target = _book(store, "Mária Kováčová", "+421905222222", "09:10")
        found = await find_patient_event(store, "maria kovacova", "", TUESDAY)
        assert found.id == target.id

    async def test_short_single_name_never_matches(self, store):
        _book(store, "Ján Novák", "+421905111111", "09:00")
        assert await find_patient_event(store, "Ján", "", TUESDAY) is None

    async def test_several_name_matches_is_no_match(self, store):
        _book(store, "Ján Novák", "+421905111111", "09:00")
        _book(store, "Ján Novák", "+421905999999", "10:00")
        assert await find_patient_event(store, "Jan Novak", "", TUESDAY) is None

    async def test_other_day_is_not_searched(self, store):
        _book(store, "Ján Novák", "+421905111111", "09:00")
        assert await find_patient_event(store, "Ján Novák", "+421905111111", TUESDAY.replace(day=21)) is None

    def test_all_day_events_are_ignored(self, store):
        marker = store.add_all_day(TUESDAY, "DOVOLENKA Ján Novák")
        assert resolve_patient_event([marker], "Ján Novák", "") is None


class TestNameIsSpecific:
    def test_gate(self):
        assert not name_is_specific(["jan"])
        assert not name_is_specific([])
        assert name_is_specific(["kovacova"])
        assert name_is_specific(["jan", "novak"])
