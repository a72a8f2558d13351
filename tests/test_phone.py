import pytest

from clinic_scheduler.services.phone import (
    is_canonical_phone,
    last_digits,
    normalize_phone,
    phones_equal,
)


class TestNormalizePhone:
    @pytest.mark.parametrize(
        "raw",
        ["+421905123456", "421905123456", "0905123456", "905123456", "0905 123 456", "+421 (905) 123-456"],
    )
    def test_slovak_shapes_become_canonical(self, raw):
        assert normalize_phone(raw) == "+421905123456"

    def test_unknown_shape_is_cleaned_only(self):
        assert normalize_phone("12 34") == "1234"
        assert not is_canonical_phone(normalize_phone("12 34"))

    def test_empty(self):
        assert normalize_phone(None) == ""
        assert not is_canonical_phone("")


class TestPhoneMatching:
    def test_phones_equal_across_formats(self):
        assert phones_equal("0905 123 456", "+421905123456")
        assert not phones_equal("", "")

    def test_last_digits(self):
        assert last_digits("+421 905 123 456") == "123456"
        assert last_digits("12345") is None
