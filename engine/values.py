"""Typed access to the schemaless item data mapping.

Item data is whatever the user stored, so every read goes through one of these
helpers; a value of the wrong type is treated as absent.
"""

import json
import math
from typing import Any, Optional


def as_number(value: Any) -> Optional[float]:
    """The value as a number, or None. Booleans and NaN are not numbers."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    if isinstance(value, float) and math.isnan(value):
        return None
    return value


def as_string(value: Any) -> Optional[str]:
    return value if isinstance(value, str) else None


def as_text(value: Any) -> str:
    """Lowercase-able text form of a value, used for substring matching."""
    if isinstance(value, str):
        return value
    if value is None:
        return ''
    if isinstance(value, bool):
        return 'true' if value else 'false'
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, (int, float)):
        return str(value)
    return json.dumps(value, ensure_ascii=False, default=str)


def searchable_blob(data: Any) -> str:
    """The whole data mapping serialized to lowercase JSON text (keys included)."""
    return json.dumps(data, ensure_ascii=False, default=str).lower()
