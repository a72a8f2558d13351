from datetime import date

import pytest

from clinic_scheduler.core.clock import at_clinic
from clinic_scheduler.models.appointment import PatientData
from tests.fakes import FakeEventStore, FakeHolidayOracle

MONDAY = date(2026, 10, 19)
TUESDAY = date(2026, 10, 20)
WEDNESDAY = date(2026, 10, 21)
SATURDAY = date(2026, 10, 24)

# Well before the reference week, so no slot in it is too close to book
LAST_WEEK = at_clinic(date(2026, 10, 12), "08:00")


@pytest.fixture
def store() -> FakeEventStore:
    return FakeEventStore()


@pytest.fixture
def oracle() -> FakeHolidayOracle:
    return FakeHolidayOracle()


@pytest.fixture
def now():
    """Monday morning before the reference week's bookings."""
    return at_clinic(MONDAY, "08:00")


@pytest.fixture
def patient() -> PatientData:
    return PatientData(name="Jana", surname="Nováková", phone="0905 123 456", insurance="Dôvera")
