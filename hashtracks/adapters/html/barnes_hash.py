"""Barnes Hash House Harriers (BarnesH3) hareline adapter.

Source: http://www.barnesh3.com/HareLine.htm
Type: HTML_SCRAPER (URL routed)

A static table of the next ~8 runs: run number and date, hares, then the
pub with its postcode. Weekly Wednesday runs at 19:30.
"""

import re

from bs4 import Tag

from hashtracks.adapters import register_html_scraper
from hashtracks.adapters.html.base import HtmlScraperAdapter
from hashtracks.core.base_adapter import FetchContext
from hashtracks.core.event_model import RawEventData
from hashtracks.core.scrape_result import ItemOutcome, ParseErrorDetail
from hashtracks.utils.dates import resolve_date
from hashtracks.utils.kennels import extract_run_number, is_placeholder
from hashtracks.utils.locations import extract_postcode, google_maps_url, select_venue

KENNEL_TAG = "BarnesH3"
START_TIME = "19:30"

HEADER_CELL_RE = re.compile(r"^(?:run|date|hares?|location|venue|#)\s*$", re.IGNORECASE)
LEADING_RUN_RE = re.compile(r"^\s*(?:run\s*)?#?(\d{3,5})\b", re.IGNORECASE)
NOT_HARES_RE = re.compile(r"^(?:on[- ]inn|directions)", re.IGNORECASE)
MIN_ERROR_CONTENT = 5


def row_cells(row: Tag) -> list[str]:
    return [cell.get_text(" ", strip=True) for cell in row.find_all(["td", "th"])]


def is_header_row(cells: list[str]) -> bool:
    return any(HEADER_CELL_RE.match(cell) for cell in cells)


def parse_run_number(cell: str) -> int | None:
    """Run number from "#2104", "Run 2104" or a leading "2104"."""
    number = extract_run_number(cell)
    if number:
        return number
    match = LEADING_RUN_RE.match(cell)
    return int(match.group(1)) if match else None


def find_hares(cells: list[str]) -> str | None:
    """First cell after the first that is not a date, postcode or directions.

    Placeholder hares ("TBA", "Hare needed") are dropped.
    """
    for cell in cells[1:]:
        cell = cell.strip()
        if not cell:
            continue
        if extract_postcode(cell) or resolve_date(cell) or NOT_HARES_RE.match(cell):
            continue
        return None if is_placeholder(cell) else cell
    return None


@register_html_scraper(r"barnesh3\.com")
class BarnesHashAdapter(HtmlScraperAdapter):
    """Adapter for the Barnes Hash hareline table."""

    type_id = "barnes_hash"
    default_url = "http://www.barnesh3.com/HareLine.htm"
    section = "table"
    selector_strategies = ("table tr", "tr")

    def parse_candidate(self, el: Tag, index: int, ctx: FetchContext) -> ItemOutcome:
        cells = row_cells(el)
        if len(cells) < 2 or is_header_row(cells):
            return None

        joined = " | ".join(cells)
        event_date = resolve_date(" ".join(cells), reference_date=ctx.today)
        if not event_date:
            # Spacer and note rows carry next to no text
            if len(joined.strip(" |")) <= MIN_ERROR_CONTENT:
                return None
            return ParseErrorDetail(
                row=index,
                field="date",
                error=f"Could not parse row: {joined[:80]}",
                raw_text=joined,
            )

        run_number = parse_run_number(cells[0])
        venue = select_venue(cells)

        return RawEventData(
            date=event_date,
            kennel_tag=KENNEL_TAG,
            run_number=run_number,
            title=f"Barnes Hash Run #{run_number}" if run_number else None,
            hares=find_hares(cells),
            location=venue.location,
            location_url=google_maps_url(venue.postcode) if venue.postcode else None,
            start_time=START_TIME,
            source_url=self.page_url(ctx),
        )
