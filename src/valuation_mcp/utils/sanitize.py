"""Text sanitization utilities."""

import re
import unicodedata


def sanitize_text(text: str | None, max_length: int = 200) -> str | None:
    """
    Sanitize untrusted text fields.

    Removes control characters, collapses whitespace and truncates to
    max_length. Apply to: sector, segment, recommendation, any free-text
    field scraped from a provider page.

    Args:
        text: Text to sanitize (may be None)
        max_length: Maximum length before truncation

    Returns:
        Sanitized text or None if input was None or blank
    """
    if text is None:
        return None

    # Line breaks and tabs separate words in page text
    text = re.sub(r"[\t\n\r]", " ", text)
    # Remove remaining control characters (\x00-\x1f, \x7f-\x9f)
    text = re.sub(r"[\x00-\x1f\x7f-\x9f]", "", text)
    text = " ".join(text.split())

    # Truncate if needed
    if len(text) > max_length:
        text = text[:max_length] + "..."

    return text or None


def fold_label(text: str) -> str:
    """Lowercase, strip accents and collapse whitespace for label matching.

    "Dívida Líquida / EBITDA" -> "divida liquida / ebitda"
    """
    decomposed = unicodedata.normalize("NFKD", text)
    without_marks = "".join(c for c in decomposed if not unicodedata.combining(c))
    return " ".join(without_marks.lower().split())
