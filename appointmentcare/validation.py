"""Field validators for appointment payloads.

Every validator reports failure through its return value (``None`` or
``False``) instead of raising, so callers can check several fields in a row
and report the first one that fails with its own message.
"""

import math
import re
from datetime import date, datetime, timezone
from typing import Any

from appointmentcare.models.appointment import APPOINTMENT_STATUSES

_INTEGER_PATTERN = re.compile(r'[+-]?\d+')
_DECIMAL_PATTERN = re.compile(r'[+-]?(\d+\.\d*|\.\d+|\d+)([eE][+-]?\d+)?')

# YYYY-MM-DDTHH:MM:SS..., YYYY-MM-DD HH:MM:SS... or a bare YYYY-MM-DD
_DATETIME_SHAPE = re.compile(r'\d{4}-\d{2}-\d{2}(?:[T ]\d{2}:\d{2}:\d{2}.*)?', re.DOTALL)
_DATE_ONLY_SHAPE = re.compile(r'\d{4}-\d{2}-\d{2}')

# Upper bound of the 32-bit Integer id columns
MAX_ID = 2**31 - 1


def validate_id(raw: Any) -> int | None:
    """Return ``raw`` as a positive integer, or ``None`` when it is not one.

    Numeric strings are accepted and fractional values are truncated toward
    zero, so ``"7"`` and ``7.9`` both give ``7`` while ``"0"``, ``"-1"``,
    ``0.5``, ``"abc"`` and anything above ``MAX_ID`` are rejected.
    """
    if raw is None or isinstance(raw, bool):
        return None

    if isinstance(raw, int):
        value = raw
    elif isinstance(raw, float):
        if not math.isfinite(raw):
            return None
        value = int(raw)
    elif isinstance(raw, str):
        text = raw.strip()
        if _INTEGER_PATTERN.fullmatch(text):
            value = int(text)
        elif _DECIMAL_PATTERN.fullmatch(text):
            number = float(text)
            if not math.isfinite(number):
                return None
            value = int(number)
        else:
            return None
    else:
        return None

    return value if 0 < value <= MAX_ID else None


def _parse_datetime_text(text: str) -> datetime:
    if _DATE_ONLY_SHAPE.fullmatch(text):
        return datetime.combine(date.fromisoformat(text), datetime.min.time())

    if text.endswith('Z'):
        text = text[:-1] + '+00:00'

    parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


def validate_datetime(raw: Any) -> bool:
    """Check both the textual shape and the calendar validity of ``raw``.

    ``01/02/2024`` is a real date but has the wrong shape, and ``2024-02-30``
    has the right shape but is not a real date; both are rejected.
    """
    if not isinstance(raw, str) or not _DATETIME_SHAPE.fullmatch(raw):
        return False

    try:
        _parse_datetime_text(raw)
    except (ValueError, OverflowError):
        return False
    return True


def parse_datetime(raw: str) -> datetime:
    """Convert a value accepted by :func:`validate_datetime` to a naive UTC-normalised datetime."""
    if not validate_datetime(raw):
        raise ValueError(f'Unsupported date/time value: {raw!r}')
    return _parse_datetime_text(raw)


def validate_status(raw: Any) -> bool:
    return isinstance(raw, str) and raw in APPOINTMENT_STATUSES


def validate_sms_flag(raw: Any) -> bool:
    if isinstance(raw, bool):
        return True
    return type(raw) is int and raw in (0, 1)
