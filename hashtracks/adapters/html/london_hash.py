"""London Hash House Harriers (LH3) run list adapter.

Source: https://www.londonhash.org/runlist.php
Type: HTML_SCRAPER (URL routed)

The run list is loosely marked up: each run is a text block anchored by a
``nextrun.php?run=NNNN`` link whose text is the run number, followed by the
date, hares, start time and a "P trail from STATION to PUB" line. Newer
markup wraps each block in ``.runListDetails``; older markup is flat text.
"""

import re

from bs4 import NavigableString, Tag

from hashtracks.adapters import register_html_scraper
from hashtracks.adapters.html.base import HtmlScraperAdapter
from hashtracks.core.base_adapter import FetchContext
from hashtracks.core.event_model import RawEventData
from hashtracks.core.scrape_result import ItemOutcome, ParseErrorDetail
from hashtracks.utils.dates import resolve_date
from hashtracks.utils.kennels import extract_hares, is_placeholder
from hashtracks.utils.text import labeled_field
from hashtracks.utils.times import resolve_time
from hashtracks.utils.urls import make_absolute_url

KENNEL_TAG = "LH3"
DEFAULT_START_TIME = "12:00"

RUN_LINK_SELECTOR = 'a[href*="nextrun.php"]'
RUN_ID_RE = re.compile(r"run=(\d+)")
HARED_BY_RE = re.compile(r"Hared?\s+by\s+(.+?)(?:\n|\*|$)", re.IGNORECASE)
P_TRAIL_RE = re.compile(
    r"(?:Follow|P\s*trail)\s+(?:the\s+P\s+trail\s+)?from\s+(.+?)\s+(?:station\s+)?to\s+(.+?)(?:\n|\*|$)",
    re.IGNORECASE,
)


def block_text(el: Tag) -> str:
    """Text of a run block with ``<br>`` kept as line breaks.

    For a bare run link (flat layout) the block runs from the link to the
    next run link among its siblings.
    """
    if el.name != "a":
        for br in el.find_all("br"):
            br.replace_with("\n")
        return el.get_text().strip()

    parts = [el.get_text()]
    for sibling in el.next_siblings:
        if isinstance(sibling, NavigableString):
            parts.append(str(sibling))
            continue
        if sibling.name == "a" and "nextrun.php" in sibling.get("href", ""):
            break
        if sibling.select_one(RUN_LINK_SELECTOR):
            break
        parts.append("\n" if sibling.name == "br" else sibling.get_text())
    return "".join(parts).strip()


def parse_hares(text: str) -> str | None:
    """Hares from "Hared by X and Y" or "Hare: X"; placeholders give None."""
    match = HARED_BY_RE.search(text)
    if match:
        hares = match.group(1).strip()
        return None if is_placeholder(hares) else hares or None
    return extract_hares(text)


def parse_location(text: str) -> tuple[str | None, str | None]:
    """Return (location, station) from the P trail line or a "Start:" label."""
    match = P_TRAIL_RE.search(text)
    if match:
        return match.group(2).strip(), match.group(1).strip()
    return labeled_field(text, "Start"), None


@register_html_scraper(r"londonhash\.org")
class LondonHashAdapter(HtmlScraperAdapter):
    """Adapter for the London Hash run list."""

    type_id = "london_hash"
    default_url = "https://www.londonhash.org/runlist.php"
    section = "runlist"
    selector_strategies = (".runListDetails", RUN_LINK_SELECTOR)

    def parse_candidate(self, el: Tag, index: int, ctx: FetchContext) -> ItemOutcome:
        link = el if el.name == "a" else el.select_one(RUN_LINK_SELECTOR)
        if link is None:
            return None

        href = link.get("href", "")
        run_id = RUN_ID_RE.search(href)
        run_text = link.get_text(strip=True)
        if not run_id or not run_text.isdigit():
            return None
        run_number = int(run_text)

        text = block_text(el)
        event_date = resolve_date(text, reference_date=ctx.today)
        if not event_date:
            return ParseErrorDetail(
                row=index,
                field="date",
                error=f"No date in block for run #{run_number}",
                raw_text=text,
                partial_data={"kennelTag": KENNEL_TAG, "runNumber": run_number},
            )

        location, station = parse_location(text)

        return RawEventData(
            date=event_date,
            kennel_tag=KENNEL_TAG,
            run_number=run_number,
            title=f"London Hash Run #{run_number}",
            hares=parse_hares(text),
            location=location,
            start_time=resolve_time(text) or DEFAULT_START_TIME,
            source_url=make_absolute_url(href, self.page_url(ctx)),
            description=f"Nearest station: {station}" if station else None,
        )
