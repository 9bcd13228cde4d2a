"""NYC Hash House Harriers (hashnyc.com) adapter.

Source: https://hashnyc.com
Type: HTML_SCRAPER (default for sources without a URL, and routed for hashnyc.com)

hashnyc.com lists the runs of every New York kennel in two tables: past runs
(``?days=N&backwards=true``, ``table.past_hashes``) and upcoming runs
(``?days=N``, ``table.future_hashes``). A row is a date cell, a details cell
(kennel, run number, event name in bold, "Start:" location, "Transit:" and
notes) and hare cells. The two pages are fetched independently: when one
fails its fetch error is reported and the other's rows are kept.
"""

import re
from dataclasses import dataclass
from datetime import date
from urllib.parse import urlencode

from bs4 import BeautifulSoup, Tag

from hashtracks.adapters import register_adapter, register_html_scraper
from hashtracks.adapters.html.base import HtmlScraperAdapter
from hashtracks.core.base_adapter import FetchContext
from hashtracks.core.event_model import RawEventData, SourceType
from hashtracks.core.exceptions import FetchError, InvalidDateError
from hashtracks.core.scrape_result import FetchErrorDetail, ItemOutcome, PageResult, ParseErrorDetail, ScrapeResult
from hashtracks.core.structure_hash import generate_structure_hash
from hashtracks.utils.dates import MONTH_DAY_RE, month_from_name, to_iso
from hashtracks.utils.kennels import builtin_patterns, is_placeholder, match_kennel
from hashtracks.utils.text import clip, strip_html
from hashtracks.utils.times import resolve_time
from hashtracks.utils.urls import make_absolute_url

DEFAULT_KENNEL_TAG = "NYCH3"
PAST_TABLE = "past_hashes"
FUTURE_TABLE = "future_hashes"
# Older rows use a layout this parser does not read
FIRST_YEAR = 2016
MAX_HARES_LENGTH = 100
SHORT_HARES_LENGTH = 50

# Longer, more specific names first
KENNEL_NAMES = [
    (r"Knickerbocker", "Knick"),
    (r"Queens Black Knights", "QBK"),
    (r"New Amsterdam", "NAH3"),
    (r"Long Island(?:\s+Lunatics)?", "LIL"),
    (r"Staten Island", "SI"),
    (r"Drinking Practice", "Drinking Practice (NYC)"),
    (r"Brooklyn", "BrH3"),
    (r"Harriettes", "Harriettes"),
    (r"Columbia", "Columbia"),
    (r"NAWW(?:H3)?", "NAWWH3"),
    (r"NASS", "NAH3"),
    (r"GGFM", "GGFM"),
    (r"BrH3", "BrH3"),
    (r"NAH3", "NAH3"),
    (r"Knick", "Knick"),
    (r"QBK", "QBK"),
    (r"LIL", "LIL"),
    (r"SI\b", "SI"),
    (r"NYC(?:H3)?", "NYCH3"),
    (r"Queens", "QBK"),
    (r"Special", "Special (NYC)"),
]
# A name at the start of the details cell wins over one next to a run number
LEADING_KENNEL_PATTERNS = builtin_patterns((rf"^\s*(?:{name})", tag) for name, tag in KENNEL_NAMES)
RUN_KENNEL_PATTERNS = builtin_patterns(
    (rf"(?:{name})\s*(?:Run|Trail|#)\s*\d+", tag) for name, tag in KENNEL_NAMES
)

RUN_RE = re.compile(r"(?:Run|Trail|#)\s*(\d+)", re.IGNORECASE)
RUN_PREFIX_RE = re.compile(r"^.*?(?:Run|Trail|#)\s*\d+\s*[:\-–—]?\s*", re.IGNORECASE | re.DOTALL)
RUN_LABEL_RE = re.compile(r"^(?:Run|Trail|#)\s*\d+$", re.IGNORECASE)
LEADING_YEAR_RE = re.compile(r"^(\d{4})")
YEAR_RE = re.compile(r"\b(\d{4})\b")
START_BLOCK_RE = re.compile(r"Start:\s*(.*?)(?=Transit:|$)", re.IGNORECASE | re.DOTALL)
AFTER_TRANSIT_RE = re.compile(
    r"Transit:[^<]*(?:<span[^>]*>[^<]*</span>[^<]*)*<br\s*/?>(.*)", re.IGNORECASE | re.DOTALL
)
START_TO_END_RE = re.compile(r"Start:.*", re.IGNORECASE | re.DOTALL)
DESIGNATION_RE = re.compile(r"^[\w\s]+#\d+\s*")
MAPS_LINK_RE = re.compile(r"maps\.|google\.\w+/maps", re.IGNORECASE)
SIGN_UP_RE = re.compile(r"sign up to hare", re.IGNORECASE)


@dataclass
class RunDetails:
    """Fields read from the details cell of one row."""

    kennel_tag: str
    run_number: int | None = None
    event_name: str | None = None
    title: str | None = None
    location: str | None = None
    location_url: str | None = None
    description: str | None = None


def extract_kennel_tag(text: str) -> str:
    return (
        match_kennel(text, LEADING_KENNEL_PATTERNS)
        or match_kennel(text, RUN_KENNEL_PATTERNS)
        or DEFAULT_KENNEL_TAG
    )


def extract_nyc_run_number(text: str) -> int | None:
    """Run number from "Run 2034", "Trail 12" or "#2034"."""
    match = RUN_RE.search(text)
    if not match:
        return None
    number = int(match.group(1))
    return number if number > 0 else None


def extract_title(text: str) -> str | None:
    """Everything after the kennel and run number, else after the first colon."""
    title = RUN_PREFIX_RE.sub("", text, count=1).strip() if RUN_RE.search(text) else ""
    if not title and ":" in text:
        title = text.split(":", 1)[1].strip()
    return title or None


def extract_month_day(text: str) -> tuple[int, int] | None:
    """Month and day from "October 30", "Jan 5th"."""
    for match in MONTH_DAY_RE.finditer(text):
        month = month_from_name(match.group(1))
        if month:
            return month, int(match.group(2))
    return None


def extract_year(row_id: str | None, date_text: str) -> int | None:
    """Year of a past row: from the row id ("2024oct30"), else the date cell."""
    match = (LEADING_YEAR_RE.match(row_id) if row_id else None) or YEAR_RE.search(date_text)
    return int(match.group(1)) if match else None


def upcoming_year(month: int, today: date) -> int:
    """Upcoming rows carry no year: a month before this one is next year."""
    return today.year + 1 if month < today.month else today.year


def is_maps_link(href: str) -> bool:
    return bool(MAPS_LINK_RE.search(href))


def single_line(text: str) -> str:
    return re.sub(r"\s+,", ",", " ".join(text.split()))


def extract_location(cell: Tag, cell_html: str) -> tuple[str | None, str | None]:
    """Location text and map link from the "Start:" block (up to "Transit:")."""
    location = None
    location_url = None

    match = START_BLOCK_RE.search(cell_html)
    if match:
        block = BeautifulSoup(match.group(1), "html.parser")
        link = next((a["href"] for a in block.find_all("a", href=True) if is_maps_link(a["href"])), None)
        location_url = link
        text = single_line(block.get_text(" ", strip=True))
        if text:
            location = "TBD" if text.upper().startswith("TBD") else text

    if not location_url:
        location_url = next((a["href"] for a in cell.find_all("a", href=True) if is_maps_link(a["href"])), None)

    return location, location_url


def extract_description(cell: Tag, cell_html: str, cell_text: str) -> str | None:
    """Paragraphs of the cell, else what follows the "Transit:" line."""
    paragraphs = [p.get_text(" ", strip=True) for p in cell.find_all("p")]
    paragraphs = [p for p in paragraphs if p]
    if paragraphs:
        return "\n\n".join(paragraphs)

    match = AFTER_TRANSIT_RE.search(cell_html)
    if match:
        rest = strip_html(match.group(1))
        if rest:
            return rest

    if "start:" not in cell_text.lower() and "transit:" not in cell_text.lower():
        rest = RUN_PREFIX_RE.sub("", cell_text, count=1).strip()
        if len(rest) > 5:
            return rest
    return None


def clean_description(description: str | None, event_name: str | None) -> str | None:
    """Drop a repeated event name and a bare "Kennel #N" designation."""
    if description and event_name and description.startswith(event_name):
        description = description[len(event_name):].strip().lstrip("-–").strip()
    if description and not DESIGNATION_RE.sub("", description).strip():
        return None
    return clip(description) if description else None


def parse_details_cell(cell: Tag) -> RunDetails:
    cell_html = cell.decode_contents()
    cell_text = cell.get_text(" ", strip=True)

    kennel_tag = extract_kennel_tag(cell_text)
    run_number = extract_nyc_run_number(cell_text)

    event_name = None
    bold = cell.find("b")
    if bold:
        bold_text = bold.get_text(" ", strip=True)
        if len(bold_text) > 1 and not RUN_LABEL_RE.match(bold_text):
            event_name = bold_text

    if event_name:
        designation = f"{kennel_tag} #{run_number}" if run_number else kennel_tag
        title = f"{event_name} - {designation}"
    else:
        title = extract_title(START_TO_END_RE.sub("", cell_text).strip())

    location, location_url = extract_location(cell, cell_html)
    description = extract_description(cell, cell_html, cell_text)

    return RunDetails(
        kennel_tag=kennel_tag,
        run_number=run_number,
        event_name=event_name,
        title=title,
        location=location,
        location_url=location_url,
        description=clean_description(description, event_name),
    )


def past_hares(cells: list[Tag]) -> str | None:
    """Hares of a past row: the cell before ``td.onin``, else a name-list cell."""
    onin = next((i for i, cell in enumerate(cells) if "onin" in (cell.get("class") or [])), -1)
    if onin > 1:
        text = cells[onin - 1].get_text(" ", strip=True)
        if text and len(text) < MAX_HARES_LENGTH:
            return text

    for i, cell in enumerate(cells[2:], start=2):
        if "onin" in (cell.get("class") or []):
            continue
        text = cell.get_text(" ", strip=True)
        if not text:
            continue
        if len(text) < MAX_HARES_LENGTH and ("," in text or "&" in text or " and " in text):
            return text
        if i == 2 and len(text) < SHORT_HARES_LENGTH:
            return text
    return None


def clean_hares(hares: str | None) -> str | None:
    if not hares or SIGN_UP_RE.search(hares) or is_placeholder(hares) or hares.upper() == "N/A":
        return None
    return hares


def row_source_url(row: Tag, base_url: str) -> str | None:
    """Deep link to the row (``a.deeplink[id]``), else its first non-map link."""
    deeplink = row.select_one("a.deeplink[id]")
    if deeplink:
        return f"{base_url}/#{deeplink['id']}"
    for link in row.find_all("a", href=True):
        href = link["href"]
        if is_maps_link(href) or href.lower().startswith("mailto:"):
            continue
        return make_absolute_url(href, f"{base_url}/")
    return None


@register_adapter(SourceType.HTML_SCRAPER)
@register_html_scraper(r"hashnyc\.com")
class HashNYCAdapter(HtmlScraperAdapter):
    """Adapter for the hashnyc.com past and upcoming run tables."""

    type_id = "hashnyc"
    default_url = "https://hashnyc.com"

    def base_url(self, ctx: FetchContext) -> str:
        return self.page_url(ctx).rstrip("/")

    def parse_candidate(self, el: Tag, index: int, ctx: FetchContext) -> ItemOutcome:
        cells = el.find_all("td")
        if len(cells) < 2:
            return None

        table = el.find_parent("table")
        upcoming = table is not None and FUTURE_TABLE in (table.get("class") or [])
        date_text = cells[0].get_text(" ", strip=True)

        month_day = extract_month_day(date_text)
        if not month_day:
            return None
        month, day = month_day
        if upcoming:
            year = upcoming_year(month, ctx.today)
        else:
            year = extract_year(el.get("id"), date_text)
            if not year or year < FIRST_YEAR:
                return None

        event_date = to_iso(year, month, day)
        if not event_date:
            return ParseErrorDetail.from_error(
                InvalidDateError(date_text, expected_format="Month D"),
                row=index,
                raw_text=" | ".join(cell.get_text(" ", strip=True) for cell in cells),
            )

        details = parse_details_cell(cells[1])
        if upcoming and len(cells) >= 3:
            hares = cells[2].get_text(" ", strip=True)
        else:
            hares = past_hares(cells)

        return RawEventData(
            date=event_date,
            kennel_tag=details.kennel_tag,
            run_number=details.run_number,
            title=details.title,
            description=details.description,
            hares=clean_hares(hares),
            location=details.location,
            location_url=details.location_url,
            start_time=resolve_time(date_text),
            source_url=row_source_url(el, self.base_url(ctx)),
        )

    async def _fetch(self, ctx: FetchContext) -> ScrapeResult:
        base_url = self.base_url(ctx)
        days = max((ctx.window[1] - ctx.today).days, 1)

        result = PageResult()
        structure_hash = None
        row_counts = {PAST_TABLE: 0, FUTURE_TABLE: 0}

        for table, query in (
            (PAST_TABLE, {"days": days, "backwards": "true"}),
            (FUTURE_TABLE, {"days": days}),
        ):
            url = f"{base_url}/?{urlencode(query)}"
            try:
                html = await self.fetch_page(url, ctx.deadline)
            except FetchError as e:
                self.logger.warning("table_fetch_failed", table=table, url=url, error=str(e))
                result = result.with_fetch_error(FetchErrorDetail(url=url, status=e.status_code, message=str(e)))
                continue

            structure_hash = structure_hash or generate_structure_hash(html)
            rows = BeautifulSoup(html, "html.parser").select(f"table.{table} tr")
            row_counts[table] = len(rows)
            result = result.merge(self.parse_candidates(rows, ctx, section=table))

        return self.finish(
            ctx,
            result,
            structure_hash=structure_hash,
            diagnostics={
                "tables": [PAST_TABLE, FUTURE_TABLE],
                "pastRowCount": row_counts[PAST_TABLE],
                "futureRowCount": row_counts[FUTURE_TABLE],
            },
        )
