import re

from pydantic import BaseModel

from clinic_scheduler.services.text import strip_accents


class TimePreference(BaseModel):
    start: str  # HH:MM, inclusive
    end: str  # HH:MM, inclusive
    part_of_day: str
    urgent: bool = False


# Accent-free phrases; longer phrases first so "skoro rano" wins over "rano"
_PHRASES: list[tuple[str, str, str, str]] = [
    ("skoro rano", "07:00", "08:00", "morning"),
    ("vcas rano", "07:00", "08:00", "morning"),
    ("po ranajkach", "08:00", "10:00", "morning"),
    ("pred obedom", "11:00", "12:00", "morning"),
    ("po obede", "13:00", "15:00", "afternoon"),
    ("rano", "07:00", "09:00", "morning"),
    ("dopoludnia", "09:00", "12:00", "morning"),
    ("predpoludnim", "09:00", "12:00", "morning"),
    ("doobeda", "09:00", "12:00", "morning"),
    ("poobede", "13:00", "15:00", "afternoon"),
    ("popoludni", "13:00", "17:00", "afternoon"),
    ("vecer", "17:00", "20:00", "afternoon"),
    ("morning", "07:00", "12:00", "morning"),
    ("afternoon", "13:00", "17:00", "afternoon"),
    ("evening", "17:00", "20:00", "afternoon"),
]

# "o deviatej" style hours; the clinic opens at seven, so one..five mean afternoon
_HOUR_WORDS = {
    "prvej": 13,
    "druhej": 14,
    "tretej": 15,
    "stvrtej": 16,
    "piatej": 17,
    "siestej": 6,
    "siedmej": 7,
    "osmej": 8,
    "deviatej": 9,
    "desiatej": 10,
    "jedenastej": 11,
    "dvanastej": 12,
}

_CLOCK_RE = re.compile(r"\bo\s+(\d{1,2})(?::(\d{2}))?")
_WORD_RE = re.compile(r"\bo\s+(" + "|".join(_HOUR_WORDS) + r")\b")
_URGENT = ("hned", "cim skor", "urgent", "asap")


def _exact(hour: int, minute: int) -> TimePreference | None:
    if not (0 <= hour < 24 and 0 <= minute < 60):
        return None
    value = f"{hour:02d}:{minute:02d}"
    return TimePreference(start=value, end=value, part_of_day="morning" if hour < 12 else "afternoon")


def parse_time_preference(text: str | None) -> TimePreference | None:
    normalized = strip_accents(text)
    if not normalized:
        return None

    for phrase, start, end, part in _PHRASES:
        if phrase in normalized:
            return TimePreference(start=start, end=end, part_of_day=part)

    match = _CLOCK_RE.search(normalized)
    if match:
        return _exact(int(match.group(1)), int(match.group(2) or 0))
    match = _WORD_RE.search(normalized)
    if match:
        return _exact(_HOUR_WORDS[match.group(1)], 0)

    if any(word in normalized for word in _URGENT):
        return TimePreference(start="07:00", end="17:00", part_of_day="morning", urgent=True)
    return None


def matches_time_preference(slot_time: str, preference: TimePreference | None) -> bool:
    if preference is None:
        return True
    return preference.start <= slot_time <= preference.end
