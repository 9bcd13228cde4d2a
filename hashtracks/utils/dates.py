"""Flexible date resolution for hash run listings.

Sources write dates in many dialects: "19/02/2026", "2.19.26",
"Wednesday 19th February 2026", "21st of February", "February 19, 2026",
or just "19/02". ``resolve_date`` tries each form in a fixed priority order
and always returns a canonical ``YYYY-MM-DD`` string or None.

When a source omits the year it is inferred relative to a reference date:
listings only announce upcoming runs, so a candidate date that falls well
in the past must belong to next year.
"""

import re
from datetime import date, datetime, timedelta
from typing import Literal

from dateutil import parser as dateutil_parser
from dateutil.parser import isoparse

Locale = Literal["uk", "us"]

YEAR_ROLLOVER_DAY_THRESHOLD = 45

MONTHS = {
    "jan": 1, "january": 1,
    "feb": 2, "february": 2,
    "mar": 3, "march": 3,
    "apr": 4, "april": 4,
    "may": 5,
    "jun": 6, "june": 6,
    "jul": 7, "july": 7,
    "aug": 8, "august": 8,
    "sep": 9, "sept": 9, "september": 9,
    "oct": 10, "october": 10,
    "nov": 11, "november": 11,
    "dec": 12, "december": 12,
}

ISO_RE = re.compile(r"(?<!\d)(\d{4})-(\d{2})-(\d{2})(?!\d)")
# 19/02/2026, 19-02-26
NUMERIC_RE = re.compile(r"(?<![\d/.-])(\d{1,2})[/-](\d{1,2})[/-](\d{4}|\d{2})(?![\d/-])")
# 2.19.26
DOTTED_RE = re.compile(r"(?<![\d.])(\d{1,2})\.(\d{1,2})\.(\d{4}|\d{2})(?![\d.])")
# 19th February 2026, Wed 19 Feb, 21st of February
DAY_MONTH_RE = re.compile(
    r"(?<!\d)(\d{1,2})(?:st|nd|rd|th)?\s+(?:of\s+)?([A-Za-z]+)\.?(?:,?\s+(\d{4})(?!\d))?",
    re.IGNORECASE,
)
# February 19, 2026, January 29th 2026, Feb 19
MONTH_DAY_RE = re.compile(
    r"\b([A-Za-z]+)\.?\s+(\d{1,2})(?:st|nd|rd|th)?(?!\d)(?:,?\s+(\d{4})(?!\d))?",
    re.IGNORECASE,
)
# 19/02 with no year
NO_YEAR_RE = re.compile(r"(?<![\d/])(\d{1,2})/(\d{1,2})(?![\d/])")


def month_from_name(name: str) -> int | None:
    """Parse an English month name or abbreviation to its number.

    Args:
        name: Month word, e.g. "February", "feb", "Sept."

    Returns:
        Month number (1-12) or None if not recognized
    """
    return MONTHS.get(name.lower().strip().rstrip("."))


def expand_year(year: int) -> int:
    """Expand a two-digit year: below 50 is the 2000s, otherwise the 1900s."""
    if year >= 100:
        return year
    return 2000 + year if year < 50 else 1900 + year


def to_iso(year: int, month: int, day: int) -> str | None:
    """Format a date as YYYY-MM-DD, or None if it is not a real calendar day."""
    try:
        return date(year, month, day).isoformat()
    except ValueError:
        return None


def infer_year(
    month: int,
    day: int,
    reference_date: date | None = None,
    threshold_days: int = YEAR_ROLLOVER_DAY_THRESHOLD,
) -> int:
    """Infer the year of a month/day that was published without one.

    The candidate is placed in the reference year; if it is more than
    ``threshold_days`` before the reference date it is taken to mean next year.

    Args:
        month: Month number
        day: Day of month
        reference_date: "Today" for the purposes of inference
        threshold_days: How far in the past a date may be before rolling over

    Returns:
        The inferred year
    """
    ref = reference_date or date.today()
    try:
        candidate = date(ref.year, month, day)
    except ValueError:
        # 29 February in a non-leap reference year; caller validates the result
        return ref.year
    if (candidate - ref).days < -threshold_days:
        return ref.year + 1
    return ref.year


def _numeric(first: int, second: int, year: int, locale: Locale) -> str | None:
    """Resolve an ambiguous numeric pair, preferring the locale's order."""
    day_first = (second, first)  # (month, day)
    month_first = (first, second)
    orders = [day_first, month_first] if locale == "uk" else [month_first, day_first]
    for month, day in orders:
        result = to_iso(year, month, day)
        if result:
            return result
    return None


def _parse_iso(text: str) -> str | None:
    match = ISO_RE.search(text)
    if not match:
        return None
    return to_iso(int(match.group(1)), int(match.group(2)), int(match.group(3)))


def _parse_numeric(text: str, locale: Locale) -> str | None:
    match = NUMERIC_RE.search(text)
    if not match:
        return None
    year = expand_year(int(match.group(3)))
    return _numeric(int(match.group(1)), int(match.group(2)), year, locale)


def _parse_dotted(text: str) -> str | None:
    # M.DD.YY is a US convention regardless of the source locale preference
    match = DOTTED_RE.search(text)
    if not match:
        return None
    year = expand_year(int(match.group(3)))
    return _numeric(int(match.group(1)), int(match.group(2)), year, "us")


def _parse_day_month(text: str, reference_date: date | None) -> str | None:
    for match in DAY_MONTH_RE.finditer(text):
        month = month_from_name(match.group(2))
        if not month:
            continue
        day = int(match.group(1))
        year = int(match.group(3)) if match.group(3) else infer_year(month, day, reference_date)
        return to_iso(year, month, day)
    return None


def _parse_month_day(text: str, reference_date: date | None) -> str | None:
    for match in MONTH_DAY_RE.finditer(text):
        month = month_from_name(match.group(1))
        if not month:
            continue
        day = int(match.group(2))
        year = int(match.group(3)) if match.group(3) else infer_year(month, day, reference_date)
        return to_iso(year, month, day)
    return None


def _parse_no_year(text: str, reference_date: date | None, locale: Locale) -> str | None:
    match = NO_YEAR_RE.search(text)
    if not match:
        return None
    first, second = int(match.group(1)), int(match.group(2))
    month, day = (second, first) if locale == "uk" else (first, second)
    if not (1 <= month <= 12 and 1 <= day <= 31):
        return None
    return to_iso(infer_year(month, day, reference_date), month, day)


def resolve_date(
    text: str | None,
    reference_date: date | None = None,
    locale: Locale = "uk",
) -> str | None:
    """Find a date anywhere in free text and return it as YYYY-MM-DD.

    Handles, in priority order:
    - numeric "19/02/2026", "19-02-26" (two-digit years: <50 is 2000s)
    - dotted "2.19.26" (month first)
    - ordinal text "Wednesday 19th February 2026", "21st of February"
    - month-first text "February 19, 2026"
    - numeric without year "19/02"
    - ISO "2026-02-19" (the canonical output form re-parses to itself)

    Ambiguous numeric dates follow the locale ("uk" day-first, "us"
    month-first) and fall back to the other order only when the preferred
    one is not a valid date.

    Args:
        text: Text possibly containing a date
        reference_date: Reference for year inference (defaults to today)
        locale: "uk" or "us" ambiguity preference

    Returns:
        "YYYY-MM-DD" or None if no date was found
    """
    if not text:
        return None
    text = text.strip()
    if not text:
        return None

    return (
        _parse_numeric(text, locale)
        or _parse_dotted(text)
        or _parse_day_month(text, reference_date)
        or _parse_month_day(text, reference_date)
        or _parse_no_year(text, reference_date, locale)
        or _parse_iso(text)
    )


def parse_iso_date(value: str | None) -> str | None:
    """Return the local calendar day of an ISO date or timestamp.

    The offset is kept rather than normalized to UTC, so
    "2026-02-15T23:00:00-06:00" is still the 15th.
    """
    if not value:
        return None
    try:
        return isoparse(value.strip()).date().isoformat()
    except (ValueError, OverflowError):
        return None


def parse_local_timestamp(value: str | None) -> tuple[str | None, str | None]:
    """Split a timezone-qualified timestamp into its local date and HH:MM.

    "2026-02-15T14:00:00-06:00" -> ("2026-02-15", "14:00"). The wall-clock
    fields are read as written, never converted through UTC, so the calendar
    day cannot shift. A bare "2026-02-15" gives ("2026-02-15", None).
    """
    iso = parse_iso_date(value)
    if not iso:
        return None, None
    match = re.match(r"^\d{4}-\d{2}-\d{2}[T ](\d{2}):(\d{2})", value.strip())
    start_time = f"{match.group(1)}:{match.group(2)}" if match else None
    return iso, start_time


def parse_timestamp(value: str | None) -> datetime | None:
    """Parse an RFC 822 / ISO 8601 timestamp keeping its own UTC offset.

    Used for feed dates like "Wed, 18 Feb 2026 19:30:00 -0500".
    """
    if not value:
        return None
    try:
        return dateutil_parser.parse(value)
    except (ValueError, OverflowError):
        return None


def date_window(days: int, today: date | None = None) -> tuple[date, date]:
    """Return the inclusive (start, end) window ``days`` either side of today."""
    today = today or date.today()
    return today - timedelta(days=days), today + timedelta(days=days)


def in_window(iso_date: str, window: tuple[date, date]) -> bool:
    """True if a YYYY-MM-DD string falls inside an inclusive window."""
    start, end = window
    return start.isoformat() <= iso_date <= end.isoformat()
