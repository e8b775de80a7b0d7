"""
Calendar parsing rules shared by every clinical context.

Dates are strict `YYYY-MM-DD`; times are `HH:MM` or `HH:MM:SS` on a 24h clock.
"today" is the service's local calendar day; time-of-day never matters.
"""
from __future__ import annotations

import re
from datetime import date, datetime, time, timedelta
from typing import Any, Optional

from src.shared.exceptions import InvalidInputError

DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")
TIME_RE = re.compile(r"^([01]\d|2[0-3]):([0-5]\d)(:[0-5]\d)?$")


def today() -> date:
    return date.today()


def parse_date(value: Any, field: str = "date") -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str) or not DATE_RE.match(value):
        raise InvalidInputError(f"{field} must use the YYYY-MM-DD format", details={"field": field})
    try:
        return date.fromisoformat(value)
    except ValueError:
        raise InvalidInputError(f"{field} is not a valid calendar date", details={"field": field})


def parse_time(value: Any, field: str = "time") -> time:
    if isinstance(value, time):
        return value
    if not isinstance(value, str):
        raise InvalidInputError(f"{field} must use the HH:MM or HH:MM:SS format", details={"field": field})
    match = TIME_RE.match(value)
    if not match:
        raise InvalidInputError(f"{field} must use the HH:MM or HH:MM:SS format", details={"field": field})
    seconds = int(match.group(3)[1:]) if match.group(3) else 0
    return time(int(match.group(1)), int(match.group(2)), seconds)


def normalize_optional_date(value: Any) -> Optional[date]:
    """
    Lenient parse for optional dates such as the suggested next consultation.
    Blank, unparseable and sentinel values ("Invalid date", "null") become None.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    text = str(value).strip()
    if not text or not DATE_RE.match(text[:10]):
        return None
    try:
        return date.fromisoformat(text[:10])
    except ValueError:
        return None


def ensure_not_past(value: date, field: str = "date") -> date:
    if value < today():
        raise InvalidInputError(f"{field} cannot be in the past", details={"field": field})
    return value


def window(days: int) -> tuple[date, date]:
    """Inclusive [today, today + days] range used by the upcoming-dose queries."""
    start = today()
    return start, start + timedelta(days=days)
