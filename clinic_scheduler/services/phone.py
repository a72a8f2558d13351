import re

COUNTRY_CODE = "421"
CANONICAL_PHONE = re.compile(r"^\+421\d{9}$")
_SEPARATORS = re.compile(r"[\s\-().]")


def clean_phone(phone: str | None) -> str:
    return _SEPARATORS.sub("", phone or "")


def normalize_phone(phone: str | None) -> str:
    """Bring a Slovak number to +421XXXXXXXXX.

    Accepted shapes: +421XXXXXXXXX, 421XXXXXXXXX, 0XXXXXXXXX and a bare
    9-digit 9XXXXXXXX. Anything else is returned cleaned but unchanged so
    that format validation rejects it.
    """
    cleaned = clean_phone(phone)
    if cleaned.startswith("+"):
        return cleaned
    if cleaned.startswith(COUNTRY_CODE) and len(cleaned) == 12:
        return "+" + cleaned
    if cleaned.startswith("0") and len(cleaned) == 10:
        return f"+{COUNTRY_CODE}{cleaned[1:]}"
    if len(cleaned) == 9 and cleaned.startswith("9") and cleaned.isdigit():
        return f"+{COUNTRY_CODE}{cleaned}"
    return cleaned


def is_canonical_phone(phone: str | None) -> bool:
    return bool(CANONICAL_PHONE.match(phone or ""))


def phones_equal(first: str | None, second: str | None) -> bool:
    a, b = normalize_phone(first), normalize_phone(second)
    return bool(a) and a == b


def last_digits(phone: str | None, count: int = 6) -> str | None:
    digits = "".join(ch for ch in clean_phone(phone) if ch.isdigit())
    if len(digits) < count:
        return None
    return digits[-count:]
