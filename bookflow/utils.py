"""Client identity normalization shared by the guard and the workflow."""

import re
from typing import Optional


def normalize_phone(value: Optional[str]) -> str:
    """Normalize a phone number by removing all whitespace.

    Punctuation is kept, so two numbers only match when they are the same
    once spaces, tabs and newlines are gone.

    Examples:
        >>> normalize_phone("0412 345 678")
        '0412345678'
        >>> normalize_phone(" +61 412\\t345 678 ")
        '+61412345678'
    """
    if not value:
        return ""
    return re.sub(r"\s+", "", value)


def normalize_email(value: Optional[str]) -> str:
    """Lower-case and trim an email address."""
    return (value or "").strip().lower()


def normalize_name(value: Optional[str]) -> str:
    """Lower-case and trim a personal name."""
    return (value or "").strip().lower()


def short_id(value: str, length: int = 8) -> str:
    """Return the leading characters of an opaque id for display."""
    return value[:length]
