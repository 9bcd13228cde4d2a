"""Hash Rego (hashrego.com) event registration adapter.

Type: HASHREGO
Source URL: the events index (defaults to https://hashrego.com/events)

Hash Rego lists the registered events of every kennel on one index table.
The index is filtered to the configured kennel slugs and the detail page of
each matching event is fetched for hares, location and notes, which Hash
Rego keeps as markdown-ish text in the page's ``og:description``. A
multi-day event ("3/6 6:00 PM to 3/8 11:00 AM") becomes one event per day.

A detail page that cannot be fetched or parsed is reported and replaced by
what the index row says (date, start time, title, kennel slug).

Config:
    kennelSlugs: Hash Rego kennel slugs to keep, e.g. ["EWH3", "BFMH3"]
"""

import re
from dataclasses import dataclass, field
from datetime import date, timedelta

from bs4 import BeautifulSoup
from pydantic import field_validator

from hashtracks.adapters import register_adapter
from hashtracks.core.base_adapter import AdapterConfig, BaseAdapter, FetchContext
from hashtracks.core.event_model import RawEventData, SourceType
from hashtracks.core.exceptions import FetchError, InvalidDateError
from hashtracks.core.scrape_result import (
    FetchErrorDetail,
    ItemOutcome,
    PageResult,
    ParseErrorDetail,
    ScrapeResult,
)
from hashtracks.core.structure_hash import generate_structure_hash
from hashtracks.utils.dates import expand_year, to_iso
from hashtracks.utils.locations import google_maps_url
from hashtracks.utils.text import clip, normalize_whitespace
from hashtracks.utils.times import to_24_hour

HASHREGO_BASE = "https://hashrego.com"
HASHREGO_INDEX_URL = f"{HASHREGO_BASE}/events"
HTML_ACCEPT = "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8"
INDEX_SECTION = "events_index"

MIN_INDEX_CELLS = 6
MIN_DESCRIPTION_LENGTH = 10
# Longest weekend/campout split into per-day events
MAX_EVENT_DAYS = 14

EVENT_HREF_RE = re.compile(r"^/events/([^/?#]+)")
KENNEL_HREF_RE = re.compile(r"/kennels/([^/?#]+)")
DATE_RE = re.compile(r"^(\d{1,2})/(\d{1,2})(?:/(\d{2,4}))?$")
TIME_RE = re.compile(r"(\d{1,2}):(\d{2})\s*([ap])\.?m\b", re.IGNORECASE)
OG_TITLE_DATE_RE = re.compile(r"^\d{2}/\d{2}\s+")
RANGE_RE = re.compile(
    r"(\d{1,2})/(\d{1,2})\s+\d{1,2}:\d{2}\s*[AP]M\s+to\s+(\d{1,2})/(\d{1,2})\s+\d{1,2}:\d{2}\s*[AP]M",
    re.IGNORECASE,
)
# "6:00 show", "2:00 go": afternoon unless written 10, 11 or 12
DAY_TIME_RE = re.compile(r"(\d{1,2}):(\d{2})\s+(?:show|go|start)\b", re.IGNORECASE)
ADDRESS_RE = re.compile(
    r"(\d+\s+[\w\s]+(?:St|Ave|Rd|Blvd|Dr|Ln|Way|Pl|Ct|Pkwy|Hwy|Cir)[^,\n]*,\s*\w[\w\s]*,?\s*[A-Z]{2}\s*\d{5})",
    re.IGNORECASE,
)
MAPS_QUERY_RE = re.compile(r"maps\.google\.com/maps\?q=([^)\s\"]+)")
EXTRACTED_FIELD_RE = re.compile(
    r"\*\*(?:Hare\(s\)|Hares|Where|When):?\*\*:?[^\n]*|^[ \t]*(?:Hare\(s\)|Hares|Where|When):?[ \t]+[^\n]*",
    re.IGNORECASE | re.MULTILINE,
)
MAPS_URL_RE = re.compile(r"(?:https?:)?//maps\.google\.com\S*")


class HashRegoConfig(AdapterConfig):
    kennel_slugs: list[str]

    @field_validator("kennel_slugs")
    @classmethod
    def check_slugs(cls, v: list[str]) -> list[str]:
        slugs = [slug.strip() for slug in v if slug.strip()]
        if not slugs:
            raise ValueError("No kennelSlugs configured")
        return slugs


@dataclass(frozen=True)
class IndexEntry:
    """One row of the events index."""

    slug: str
    kennel_slug: str
    title: str
    start_date: str
    start_time: str = ""
    event_type: str = ""
    cost: str = ""

    @property
    def url(self) -> str:
        return f"{HASHREGO_BASE}/events/{self.slug}"

    def describe(self) -> str:
        return " | ".join(part for part in (self.title, self.kennel_slug, self.start_date, self.start_time) if part)


@dataclass
class EventDetail:
    """Fields read from an event detail page."""

    title: str
    kennel_slug: str
    dates: list[str] = field(default_factory=list)
    start_times: list[str | None] = field(default_factory=list)
    location: str | None = None
    location_url: str | None = None
    hares: str | None = None
    description: str | None = None


def parse_hashrego_date(text: str, reference_year: int | None = None) -> str | None:
    """Parse "MM/DD/YY", "MM/DD/YYYY" or (with a reference year) "MM/DD"."""
    match = DATE_RE.match(text.strip())
    if not match:
        return None
    month, day = int(match.group(1)), int(match.group(2))
    if match.group(3):
        year = expand_year(int(match.group(3)))
    elif reference_year:
        year = reference_year
    else:
        return None
    return to_iso(year, month, day)


def parse_hashrego_time(text: str) -> str | None:
    """Parse "7:00 PM" to "19:00"; 11:59 PM means no time was set."""
    match = TIME_RE.search(text or "")
    if not match:
        return None
    start_time = to_24_hour(int(match.group(1)), int(match.group(2)), match.group(3))
    return None if start_time == "23:59" else start_time


def parse_events_index(html: str) -> list[IndexEntry]:
    """Rows of ``#eventListTable``: name, type, host kennel, start, cost, count."""
    soup = BeautifulSoup(html, "html.parser")
    entries: list[IndexEntry] = []

    for row in soup.select("#eventListTable tbody tr"):
        cells = row.find_all("td")
        if len(cells) < MIN_INDEX_CELLS:
            continue

        event_link = cells[0].find("a", href=EVENT_HREF_RE)
        kennel_link = cells[2].find("a", href=KENNEL_HREF_RE)
        if not event_link or not kennel_link:
            continue

        # Start cell is "MM/DD/YY<br>HH:MM AM"
        date_parts = cells[3].get_text("\n", strip=True).split("\n")
        entries.append(IndexEntry(
            slug=EVENT_HREF_RE.match(event_link["href"]).group(1),
            kennel_slug=KENNEL_HREF_RE.search(kennel_link["href"]).group(1),
            title=event_link.get_text(" ", strip=True),
            start_date=date_parts[0],
            start_time=date_parts[1] if len(date_parts) > 1 else "",
            event_type=cells[1].get_text(" ", strip=True),
            cost=cells[4].get_text(" ", strip=True),
        ))

    return entries


def detail_field(text: str, *names: str) -> str | None:
    """Value of a ``**Name:** value`` or plain ``Name: value`` line."""
    for name in names:
        escaped = re.escape(name)
        match = re.search(rf"\*\*{escaped}:?\*\*:?\s*(.+?)(?:\n|$)", text, re.IGNORECASE) or re.search(
            rf"(?:^|\n)[ \t]*{escaped}:?[ \t]+(.+?)(?:\n|$)", text, re.IGNORECASE
        )
        if match:
            return match.group(1).strip()
    return None


def day_start_times(text: str, day_count: int) -> list[str | None]:
    """Per-day start times ("6:00 show"), padded with the first one."""
    times: list[str | None] = []
    for match in DAY_TIME_RE.finditer(text):
        hour, minute = int(match.group(1)), int(match.group(2))
        if 1 <= hour <= 9:
            hour += 12
        if hour <= 23 and minute <= 59:
            times.append(f"{hour:02d}:{minute:02d}")
    first = times[0] if times else None
    return (times + [first] * day_count)[:day_count]


def date_range(text: str, year: int) -> list[str]:
    """Every day of a "M/D H:MM AM to M/D H:MM PM" range, or [] if there is none."""
    match = RANGE_RE.search(text)
    if not match:
        return []
    try:
        start = date(year, int(match.group(1)), int(match.group(2)))
        end = date(year, int(match.group(3)), int(match.group(4)))
    except ValueError:
        return []
    if end < start:
        # New Year's weekend
        end = end.replace(year=year + 1)
    days = (end - start).days + 1
    if days > MAX_EVENT_DAYS:
        return []
    return [(start + timedelta(days=offset)).isoformat() for offset in range(days)]


def clean_description(text: str) -> str | None:
    """Drop the lines already extracted (hares, where, when) and map URLs."""
    cleaned = EXTRACTED_FIELD_RE.sub("", text)
    cleaned = MAPS_URL_RE.sub("", cleaned)
    cleaned = normalize_whitespace(cleaned)
    if len(cleaned) < MIN_DESCRIPTION_LENGTH:
        return None
    return clip(cleaned)


def parse_event_detail(html: str, entry: IndexEntry) -> EventDetail:
    """Read an event detail page, using the index row for the dates."""
    soup = BeautifulSoup(html, "html.parser")

    og_title = soup.find("meta", attrs={"property": "og:title"})
    title = OG_TITLE_DATE_RE.sub("", og_title.get("content", "")).strip() if og_title else ""
    if not title and soup.title:
        title = soup.title.get_text(strip=True)

    kennel_link = soup.find("a", href=re.compile(r"^/kennels/"))
    kennel_match = KENNEL_HREF_RE.search(kennel_link["href"]) if kennel_link else None

    og_description = soup.find("meta", attrs={"property": "og:description"})
    text = og_description.get("content", "") if og_description else ""

    dates: list[str] = []
    start_times: list[str | None] = []
    year_match = re.search(r"/(\d{2,4})$", entry.start_date.strip())
    if year_match:
        dates = date_range(text, expand_year(int(year_match.group(1))))
        start_times = day_start_times(text, len(dates))
    if len(dates) < 2:
        single = parse_hashrego_date(entry.start_date)
        dates = [single] if single else []
        start_times = [parse_hashrego_time(entry.start_time)]

    address_match = ADDRESS_RE.search(text)
    address = address_match.group(1).strip() if address_match else None
    maps_match = MAPS_QUERY_RE.search(text)
    if maps_match:
        location_url = f"https://maps.google.com/maps?q={maps_match.group(1)}"
    else:
        location_url = google_maps_url(address) if address else None

    return EventDetail(
        title=title or entry.title,
        kennel_slug=kennel_match.group(1) if kennel_match else entry.kennel_slug,
        dates=dates,
        start_times=start_times,
        location=detail_field(text, "Where") or address,
        location_url=location_url,
        hares=detail_field(text, "Hare(s)", "Hares"),
        description=clean_description(text),
    )


def split_events(detail: EventDetail, url: str) -> list[RawEventData]:
    """One event for a single-day detail, one per day (titled "(Day N)") otherwise."""
    multi_day = len(detail.dates) > 1
    return [
        RawEventData(
            date=event_date,
            kennel_tag=detail.kennel_slug,
            title=f"{detail.title} (Day {day})" if multi_day else detail.title,
            description=detail.description,
            hares=detail.hares,
            location=detail.location,
            location_url=detail.location_url,
            start_time=detail.start_times[day - 1] if day <= len(detail.start_times) else None,
            source_url=url,
        )
        for day, event_date in enumerate(detail.dates, start=1)
    ]


def index_event(entry: IndexEntry, index: int) -> ItemOutcome:
    """Event built from the index row alone."""
    event_date = parse_hashrego_date(entry.start_date)
    if not event_date:
        return ParseErrorDetail.from_error(
            InvalidDateError(entry.start_date, expected_format="MM/DD/YY"),
            row=index,
            section=INDEX_SECTION,
            raw_text=entry.describe(),
            partial_data={"title": entry.title, "kennelTag": entry.kennel_slug},
        )
    return RawEventData(
        date=event_date,
        kennel_tag=entry.kennel_slug,
        title=entry.title or None,
        start_time=parse_hashrego_time(entry.start_time),
        source_url=entry.url,
    )


@register_adapter(SourceType.HASHREGO)
class HashRegoAdapter(BaseAdapter):
    """Adapter for kennels that register their events on Hash Rego."""

    type_id = "hashrego"
    config_model = HashRegoConfig

    async def fetch_html(self, url: str, ctx: FetchContext) -> str:
        response = await self.fetch_url(url, headers={"Accept": HTML_ACCEPT}, deadline=ctx.deadline)
        return response.text

    def index_fallback(self, entry: IndexEntry, index: int) -> ItemOutcome:
        return self.guarded(lambda: index_event(entry, index), index, INDEX_SECTION, raw_text=entry.describe())

    def detail_outcomes(self, html: str, entry: IndexEntry, index: int) -> list[ItemOutcome]:
        try:
            events = split_events(parse_event_detail(html, entry), entry.url)
        except Exception as e:
            self.logger.warning("parse_error", row=index, section=entry.slug, error=str(e))
            return [
                ParseErrorDetail.from_error(e, row=index, section=entry.slug, raw_text=entry.describe()),
                self.index_fallback(entry, index),
            ]
        return events or [self.index_fallback(entry, index)]

    async def fetch_entry(self, entry: IndexEntry, index: int, ctx: FetchContext) -> PageResult:
        """Events of one index entry from its detail page, else from the index row."""
        try:
            html = await self.fetch_html(entry.url, ctx)
        except FetchError as e:
            self.logger.warning("detail_fetch_failed", slug=entry.slug, error=str(e))
            return PageResult.collect([self.index_fallback(entry, index)]).with_fetch_error(
                FetchErrorDetail(url=entry.url, status=e.status_code, message=f"Detail fetch failed: {e}")
            )
        return PageResult.collect(self.detail_outcomes(html, entry, index))

    async def _fetch(self, ctx: FetchContext) -> ScrapeResult:
        config: HashRegoConfig = ctx.config
        index_url = ctx.source.url or HASHREGO_INDEX_URL
        html = await self.fetch_html(index_url, ctx)

        entries = parse_events_index(html)
        wanted = {slug.lower() for slug in config.kennel_slugs}
        matching = [entry for entry in entries if entry.kennel_slug.lower() in wanted]
        self.logger.info("index_parsed", entries=len(entries), matching=len(matching))

        result = PageResult()
        for index, entry in enumerate(matching):
            result = result.merge(await self.fetch_entry(entry, index, ctx))

        return self.finish(
            ctx,
            result,
            structure_hash=generate_structure_hash(html),
            diagnostics={
                "totalIndexEntries": len(entries),
                "matchingEntries": len(matching),
                "kennelSlugsConfigured": list(config.kennel_slugs),
            },
        )
