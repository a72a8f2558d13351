from clinic_scheduler.core.clock import at_clinic
from clinic_scheduler.services.order_numbers import compute_order_number, get_order_number
from clinic_scheduler.services.slot_service import get_appointment_type
from tests.conftest import TUESDAY

VSTUPNE = get_appointment_type("vstupne_vysetrenie")
SPORTOVA = get_appointment_type("sportova_prehliadka")


class TestOrderNumbers:
    async def test_first_of_the_day(self, store):
        assert await get_order_number(store, VSTUPNE, at_clinic(TUESDAY, "09:00")) == 1

    async def test_position_follows_start_time_not_booking_order(self, store):
        store.add_at("Vstupné vyšetrenie - A B", TUESDAY, "13:00")
        store.add_at("Konzultácia - C D", TUESDAY, "07:30")
        assert await get_order_number(store, VSTUPNE, at_clinic(TUESDAY, "09:00")) == 2
        assert await get_order_number(store, VSTUPNE, at_clinic(TUESDAY, "14:00")) == 3

    async def test_unnumbered_types_are_not_counted(self, store):
        store.add_at("Športová prehliadka - E F", TUESDAY, "07:00")
        store.add_at("Porada", TUESDAY, "08:00")
        assert await get_order_number(store, VSTUPNE, at_clinic(TUESDAY, "09:00")) == 1

    async def test_unnumbered_type_gets_none(self, store):
        assert await get_order_number(store, SPORTOVA, at_clinic(TUESDAY, "07:00")) is None

    def test_monotonic_in_start_time(self, store):
        store.add_at("Vstupné vyšetrenie - A B", TUESDAY, "09:30")
        store.add_at("Kontrolné vyšetrenie - G H", TUESDAY, "10:00")
        events = list(store.events.values())
        numbers = [
            compute_order_number(VSTUPNE, at_clinic(TUESDAY, t), events)
            for t in ("09:00", "09:40", "10:10", "13:00")
        ]
        assert numbers == [1, 2, 3, 3]
