"""Next-contact-due date calculation."""

import calendar
import logging
import re
from datetime import date

logger = logging.getLogger(__name__)

DEFAULT_MONTHS = 4

_DIGITS = re.compile(r"\d+")
_ISO_DATE = re.compile(r"^(\d{4})-(\d{2})-(\d{2})$")


def months_for_frequency(frequency: str) -> int:
    """
    Month increment described by a frequency phrase.

    The first run of digits wins ("Every 3 months" -> 3). Otherwise
    "month" means 1, "year" means 12, and anything else falls back to 4.
    """
    frequency = frequency or ""
    match = _DIGITS.search(frequency)
    if match:
        return int(match.group())

    lower = frequency.lower()
    if "month" in lower:
        return 1
    if "year" in lower:
        return 12
    return DEFAULT_MONTHS


def parse_iso_date(value: str) -> date | None:
    """Parse a strict ``YYYY-MM-DD`` string, None if it is not a real date."""
    match = _ISO_DATE.match((value or "").strip())
    if not match:
        return None
    try:
        return date(*(int(part) for part in match.groups()))
    except ValueError:
        return None


def add_months(start: date, months: int) -> date:
    """Add calendar months, clamping the day to the target month's length."""
    month_index = start.month - 1 + months
    year = start.year + month_index // 12
    month = month_index % 12 + 1
    day = min(start.day, calendar.monthrange(year, month)[1])
    return date(year, month, day)


def compute_next_due(last_contact: str, frequency: str) -> str:
    """
    Next contact due date as ``YYYY-MM-DD``.

    Returns an empty string when ``last_contact`` is empty or not a valid
    date, or when the result cannot be represented. Never raises.
    """
    try:
        start = parse_iso_date(last_contact)
        if start is None:
            return ""
        return add_months(start, months_for_frequency(frequency)).isoformat()
    except (AttributeError, TypeError, ValueError, OverflowError) as e:
        logger.debug(f"Could not compute next due date from {last_contact!r}, {frequency!r}: {e}")
        return ""
