from __future__ import annotations

import math
from typing import Any, Optional

from stockbook.errors import ValidationError


def clean_text(value: Any) -> Optional[str]:
    # Empty after trim counts as absent.
    if value is None:
        return None
    s = str(value).strip()
    return s if s else None


def to_number(value: Any, default: float = 0.0) -> float:
    if value is None or isinstance(value, bool):
        return default
    try:
        n = float(value)
    except (TypeError, ValueError):
        return default
    return n if math.isfinite(n) else default


def to_int_id(value: Any, label: str = "id") -> int:
    """Coerce an identifier to int, rejecting anything that isn't a whole number."""
    if value is None or isinstance(value, bool):
        raise ValidationError(f"Invalid {label}.")
    try:
        n = float(value)
    except (TypeError, ValueError):
        raise ValidationError(f"Invalid {label}.")
    if not n.is_integer():
        raise ValidationError(f"Invalid {label}.")
    return int(n)


def clamp_limit(limit: Any, default: int = 200, maximum: int = 1000) -> int:
    n = to_number(limit, 0.0)
    if not n:
        n = default
    return max(1, min(maximum, int(n)))
