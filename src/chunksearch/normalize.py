from __future__ import annotations
from typing import Any, Optional


def normalize_key(text: str) -> str:
    """Case-insensitive form used for marks and range bounds (no trimming)."""
    return text.casefold()


def normalize_query(text: str) -> str:
    """Query form: trimmed, then casefolded."""
    return normalize_key(text.strip())


def searchable_text(row: Any, field: str) -> Optional[str]:
    """
    Normalized search field of a row, or None when the row is unsearchable
    (not a mapping, field missing, null or empty).
    Non-string values (e.g. numeric marks) are matched on their str() form.
    """
    if not isinstance(row, dict):
        return None
    value = row.get(field)
    if value is None:
        return None
    if not isinstance(value, str):
        value = str(value)
    if not value:
        return None
    return normalize_key(value)
