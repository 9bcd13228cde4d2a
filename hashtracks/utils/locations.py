"""Location extraction utilities.

Provides postcode extraction, venue selection from table cells and map
deep links.
"""

import re
from typing import NamedTuple
from urllib.parse import quote


class VenueMatch(NamedTuple):
    """Venue chosen from a row of cells."""

    location: str | None
    postcode: str | None


# UK postcodes: "SE11 5JA", "SW18 2SS", "N1 9AA", "EC1A 1BB"
POSTCODE_RE = re.compile(r"\b[A-Z]{1,2}\d[A-Z\d]?\s?\d[A-Z]{2}\b", re.IGNORECASE)

# Words that usually mean a cell names a pub or similar venue
VENUE_NOUN_RE = re.compile(
    r"\b(?:pub|inn|hotel|arms|tavern|head|swan|lion|bell|crown|anchor|horse|plough"
    r"|red|white|black|star|king|queen|prince|rose|fox)\b",
    re.IGNORECASE,
)

MAPS_SEARCH_URL = "https://www.google.com/maps/search/?api=1&query="


def extract_postcode(text: str | None) -> str | None:
    """Extract a UK postcode from text.

    Args:
        text: Text that may contain a postcode

    Returns:
        Uppercased postcode or None
    """
    if not text:
        return None
    match = POSTCODE_RE.search(text)
    return match.group(0).upper() if match else None


def looks_like_venue(text: str | None) -> bool:
    """True if the text contains a typical venue noun ("The Red Lion")."""
    return bool(text and VENUE_NOUN_RE.search(text))


def select_venue(cells: list[str], skip_first: bool = True) -> VenueMatch:
    """Pick the cell most likely to hold the venue.

    A cell containing a postcode wins outright. Otherwise the first cell with
    a venue noun is used. The first cell is usually the date and is skipped
    unless ``skip_first`` is False.

    Args:
        cells: Cell texts in document order
        skip_first: Ignore the first cell

    Returns:
        VenueMatch (both fields None if nothing qualified)
    """
    candidates = [c.strip() for c in (cells[1:] if skip_first else cells) if c and c.strip()]

    for cell in candidates:
        postcode = extract_postcode(cell)
        if postcode:
            return VenueMatch(location=cell, postcode=postcode)

    for cell in candidates:
        if looks_like_venue(cell):
            return VenueMatch(location=cell, postcode=None)

    return VenueMatch(location=None, postcode=None)


def google_maps_url(query: str) -> str:
    """Build a Google Maps search deep link for a place or address."""
    return MAPS_SEARCH_URL + quote(query, safe="")
