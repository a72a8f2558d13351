import pytest

from clinic_scheduler.services.time_parser import matches_time_preference, parse_time_preference


class TestParseTimePreference:
    @pytest.mark.parametrize(
        "text, start, end",
        [
            ("ráno", "07:00", "09:00"),
            ("skoro ráno prosím", "07:00", "08:00"),
            ("niekedy poobede", "13:00", "15:00"),
            ("dopoludnia", "09:00", "12:00"),
            ("afternoon", "13:00", "17:00"),
        ],
    )
    def test_part_of_day(self, text, start, end):
        preference = parse_time_preference(text)
        assert (preference.start, preference.end) == (start, end)

    def test_clock_time(self):
        preference = parse_time_preference("o 14:30")
        assert preference.start == preference.end == "14:30"
        assert preference.part_of_day == "afternoon"

    def test_hour_word(self):
        assert parse_time_preference("o deviatej").start == "09:00"
        assert parse_time_preference("o druhej").start == "14:00"

    def test_urgent(self):
        assert parse_time_preference("čím skôr").urgent

    def test_nothing_recognised(self):
        assert parse_time_preference("kedykoľvek") is None
        assert parse_time_preference(None) is None


class TestMatchesTimePreference:
    def test_range_is_inclusive(self):
        preference = parse_time_preference("poobede")
        assert matches_time_preference("13:00", preference)
        assert matches_time_preference("15:00", preference)
        assert not matches_time_preference("15:10", preference)

    def test_no_preference_matches_everything(self):
        assert matches_time_preference("07:00", None)
