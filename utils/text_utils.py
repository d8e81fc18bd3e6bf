"""
Text utilities for cleaning subject fields from the database and requests.
"""

import json
from typing import Any, Optional


def clean_text(value: Optional[str], max_length: Optional[int] = None) -> Optional[str]:
    """
    Clean a free-text field for storage.

    - Strips whitespace
    - Truncates to max length
    - Returns None for empty/whitespace-only strings

    Args:
        value: Raw text from the request
        max_length: Maximum characters to store

    Returns:
        Cleaned string, or None if empty
    """
    if value is None:
        return None

    value = value.strip()

    if not value:
        return None

    if max_length is not None:
        value = value[:max_length]

    return value


def coerce_list(value: Any) -> list:
    """
    Coerce a list column stored as an array or as JSON text.

    Older hsc_subjects rows hold JSON strings; newer ones hold arrays.

    - ["a", "b"] → ["a", "b"]
    - '["a", "b"]' → ["a", "b"]
    - "" / None / malformed → []
    """
    if isinstance(value, list):
        return value

    if isinstance(value, str):
        try:
            parsed = json.loads(value or "[]")
        except json.JSONDecodeError:
            return []
        return parsed if isinstance(parsed, list) else []

    return []
