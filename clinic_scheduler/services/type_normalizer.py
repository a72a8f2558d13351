"""Map spoken or typed appointment-type phrases to canonical type keys.

Matching is exact on the accent-free, lowercased phrase. Unknown phrases are
returned unchanged so that validation rejects them loudly instead of booking
a guessed type.
"""

import logging

from pydantic import BaseModel

from clinic_scheduler.core.config import AppointmentType, get_appointment_types
from clinic_scheduler.services.text import strip_accents

logger = logging.getLogger(__name__)

# Accent-free phrases heard from callers, per canonical key
_KNOWN_PHRASES: dict[str, tuple[str, ...]] = {
    "vstupne_vysetrenie": (
        "vstupne vysetrenie",
        "vstupne",
        "vstup",
        "vstupna prehliadka",
        "prve vysetrenie",
    ),
    "kontrolne_vysetrenie": (
        "kontrolne vysetrenie",
        "kontrolne",
        "kontrola",
        "kontrolna prehliadka",
    ),
    "sportova_prehliadka": (
        "sportova prehliadka",
        "sportova",
        "sport",
        "sportove",
        "sportove vysetrenie",
    ),
    "zdravotnicke_pomocky": (
        "zdravotnicke pomocky",
        "pomocky",
        "zdravotna pomocka",
    ),
    "konzultacia": (
        "konzultacia",
        "konzultacie",
        "konzultaciu",
    ),
}


class TypeResolution(BaseModel):
    valid: bool
    key: str | None = None
    error: str | None = None
    available_types: list[str] = []


def _phrase_table(types: dict[str, AppointmentType]) -> dict[str, str]:
    table: dict[str, str] = {}
    for key, phrases in _KNOWN_PHRASES.items():
        if key in types:
            for phrase in phrases:
                table[phrase] = key
    for key, appointment_type in types.items():
        table[strip_accents(key)] = key
        table[strip_accents(key.replace("_", " "))] = key
        table[strip_accents(appointment_type.name)] = key
    return table


def normalize_appointment_type(text: str | None) -> str | None:
    if text is None:
        return None
    types = get_appointment_types()
    if text in types:
        return text
    key = _phrase_table(types).get(strip_accents(text))
    if key is None:
        return text
    return key


def resolve_appointment_type(text: str | None) -> TypeResolution:
    types = get_appointment_types()
    if not text or not text.strip():
        return TypeResolution(
            valid=False,
            error="Appointment type is required",
            available_types=list(types),
        )
    key = normalize_appointment_type(text)
    if key not in types:
        logger.info("Unrecognized appointment type %r", text)
        return TypeResolution(
            valid=False,
            error=f"Invalid appointment type: {text}",
            available_types=list(types),
        )
    return TypeResolution(valid=True, key=key)
