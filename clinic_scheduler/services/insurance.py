import logging
import re

from pydantic import BaseModel

from clinic_scheduler.services.text import strip_accents

logger = logging.getLogger(__name__)

# Official carrier name -> spoken forms and frequent speech-recognition variants.
# Variants are compared accent-free.
_CARRIER_VARIANTS: dict[str, list[str]] = {
    "VšZP": [
        "všzp",
        "všeobecná zdravotná poisťovňa",
        "všeobecná",
        "všeobecka",
        "všeobecná poisťovňa",
        "verejná",
        "štátna",
        "vašzépé",
        "vašezépé",
        "všzépé",
        "vešzépé",
        "všezp",
        "vzp",
    ],
    "Dôvera": [
        "dôvera",
        "dôviera",
        "dôvera zdravotná poisťovňa",
        "dôvera zdravotná",
        "do overa",
        "doovera",
        "do vera",
        "dvojra",
        "dvojera",
        "dójera",
        "dóvera",
        "dvojira",
        "douera",
        "dováera",
        "dvera",
        "dojera",
        "döera",
        "dovara",
    ],
    "Union": [
        "union",
        "únia",
        "union zdravotná poisťovňa",
        "únia zdravotná poisťovňa",
        "junion",
        "unión",
        "julion",
        "yulion",
        "yunion",
        "julon",
        "uwion",
    ],
}

_PUNCTUATION = re.compile(r"[.,!?]")


class InsuranceResolution(BaseModel):
    valid: bool
    normalized: str | None = None
    suggestions: list[str] = []
    error: str | None = None


def supported_carriers() -> list[str]:
    return list(_CARRIER_VARIANTS)


def _clean(text: str) -> str:
    return strip_accents(_PUNCTUATION.sub("", text or ""))


def normalize_insurance(value: str | None) -> InsuranceResolution:
    cleaned = _clean(value or "")
    if not cleaned:
        return InsuranceResolution(
            valid=False,
            suggestions=supported_carriers(),
            error="Insurance carrier is required",
        )

    for official, variants in _CARRIER_VARIANTS.items():
        candidates = {_clean(official), *(_clean(v) for v in variants)}
        if cleaned in candidates:
            return InsuranceResolution(valid=True, normalized=official)

    # Transcripts often wrap the carrier in a longer phrase ("mám dôveru")
    suggestions = []
    for official, variants in _CARRIER_VARIANTS.items():
        for variant in (_clean(official), *(_clean(v) for v in variants)):
            if (len(variant) >= 4 and variant in cleaned) or (len(cleaned) >= 4 and cleaned in variant):
                suggestions.append(official)
                break
    if len(suggestions) == 1:
        return InsuranceResolution(valid=True, normalized=suggestions[0])

    logger.info("Unrecognized insurance carrier %r (suggestions: %s)", value, suggestions)
    if suggestions:
        return InsuranceResolution(
            valid=False,
            suggestions=suggestions,
            error=f"Ambiguous insurance carrier, did you mean: {', '.join(suggestions)}?",
        )
    return InsuranceResolution(
        valid=False,
        suggestions=supported_carriers(),
        error=f"Unknown insurance carrier {value!r}. Supported: {', '.join(supported_carriers())}",
    )
