import math
from datetime import date
from typing import Optional

from runclub.errors import ValidationError

def parse_id(raw, label: str = "id") -> int:
    """Positive integer path/query ids ("Invalid event ID" etc. otherwise)."""
    try:
        value = int(str(raw).strip())
    except (TypeError, ValueError):
        raise ValidationError(f"Invalid {label}")
    if value <= 0:
        raise ValidationError(f"Invalid {label}")
    return value

def parse_iso_date(raw, missing_message: str = "Missing date") -> date:
    raw = (raw or "").strip() if isinstance(raw, str) else raw
    if not raw:
        raise ValidationError(missing_message)
    try:
        return date.fromisoformat(raw)
    except (TypeError, ValueError):
        raise ValidationError("Invalid date format. Use YYYY-MM-DD")

def parse_non_negative(raw, label: str, default: Optional[float] = 0.0) -> Optional[float]:
    """
    Blank -> default. Anything else must be a finite number >= 0.
    """
    if raw is None or (isinstance(raw, str) and not raw.strip()):
        return default
    try:
        value = float(raw)
    except (TypeError, ValueError):
        raise ValidationError(f"Invalid {label}")
    if not math.isfinite(value):
        raise ValidationError(f"Invalid {label}")
    if value < 0:
        raise ValidationError(f"{label.capitalize()} must be a positive number")
    return value

def parse_bool(raw) -> bool:
    if isinstance(raw, bool):
        return raw
    return str(raw or "").strip().lower() in ("1", "true", "yes", "on")
