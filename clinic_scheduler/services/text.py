import unicodedata


def strip_accents(text: str | None) -> str:
    """Lowercase, drop diacritics and collapse whitespace."""
    lowered = (text or "").strip().lower()
    if not lowered:
        return ""
    no_accents = "".join(
        ch for ch in unicodedata.normalize("NFKD", lowered) if not unicodedata.combining(ch)
    )
    return " ".join(no_accents.split())
