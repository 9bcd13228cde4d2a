"""Time-of-day extraction from free text."""

import re

NOON_RE = re.compile(r"\b(?:12\s*)?noon\b", re.IGNORECASE)
MIDNIGHT_RE = re.compile(r"\b(?:12\s*)?midnight\b", re.IGNORECASE)
# 1pm, 2:30 PM, 7.15pm, 7 p.m.
MERIDIEM_RE = re.compile(
    r"(?<![\d:.])(\d{1,2})(?:[:.](\d{2}))?\s*([ap])\.?\s*m\b\.?",
    re.IGNORECASE,
)
# 19:30 (24-hour)
CLOCK_RE = re.compile(r"(?<![\d:.])(\d{1,2}):(\d{2})(?![\d:])")


def _format(hour: int, minute: int) -> str | None:
    if not (0 <= hour <= 23 and 0 <= minute <= 59):
        return None
    return f"{hour:02d}:{minute:02d}"


def to_24_hour(hour: int, minute: int, meridiem: str) -> str | None:
    """Convert a 12-hour clock reading to HH:MM (12am is 00, 12pm is 12)."""
    if not (1 <= hour <= 12):
        return None
    meridiem = meridiem.lower()
    if meridiem == "a":
        hour = 0 if hour == 12 else hour
    else:
        hour = 12 if hour == 12 else hour + 12
    return _format(hour, minute)


def resolve_time(text: str | None) -> str | None:
    """Find a time of day in text and return it as 24-hour HH:MM.

    Args:
        text: Text possibly containing a time ("12 Noon", "2:30 PM", "19:30")

    Returns:
        "HH:MM" or None if no valid time was found
    """
    if not text:
        return None

    if NOON_RE.search(text):
        return "12:00"
    if MIDNIGHT_RE.search(text):
        return "00:00"

    match = MERIDIEM_RE.search(text)
    if match:
        minute = int(match.group(2)) if match.group(2) else 0
        return to_24_hour(int(match.group(1)), minute, match.group(3))

    match = CLOCK_RE.search(text)
    if match:
        return _format(int(match.group(1)), int(match.group(2)))

    return None
