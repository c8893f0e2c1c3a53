"""Input normalization helpers."""

import re
from typing import Any, Optional


NON_DIGIT_RE = re.compile(r"\D")


def normalize_phone(value: Optional[str]) -> str:
    """Keep only the digits of a phone number.

    ``"+20 100 111 2222"`` becomes ``"201001112222"``. Missing input gives an
    empty string.
    """
    if not value:
        return ""
    return NON_DIGIT_RE.sub("", str(value))


def clean_text(value: Any) -> str:
    """Form value as a stripped string; ``None`` becomes empty."""
    if value is None:
        return ""
    return str(value).strip()


def optional_text(value: Any) -> Optional[str]:
    text = clean_text(value)
    return text or None


def missing_fields(**values: Any) -> list[str]:
    """Names of the given fields that are empty after stripping."""
    return [name for name, value in values.items() if not clean_text(value)]


def clip_html(text: str, limit: int, suffix: str = "...") -> str:
    """Cut escaped HTML text to ``limit`` characters without splitting an entity or tag."""
    if len(text) <= limit:
        return text
    cut = text[:limit - len(suffix)]
    amp = cut.rfind("&")
    if amp != -1 and ";" not in cut[amp:]:
        cut = cut[:amp]
    lt = cut.rfind("<")
    if lt != -1 and ">" not in cut[lt:]:
        cut = cut[:lt]
    return cut + suffix
