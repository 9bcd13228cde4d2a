"""Google Calendar API v3 adapter.

Type: GOOGLE_CALENDAR
Source URL: the public calendar ID (e.g. ``xyz@group.calendar.google.com``)

Lists the calendar's single (expanded) events inside the window, following
``nextPageToken``. One calendar often carries several kennels, so the kennel
tag is resolved from the summary: source config patterns first, then the
built-in Boston Hash patterns.

Requires GOOGLE_CALENDAR_API_KEY.
"""

import re
from typing import Any
from urllib.parse import quote

from hashtracks.adapters import register_adapter
from hashtracks.core.base_adapter import BaseAdapter, FetchContext, KennelPatternConfig
from hashtracks.core.event_model import RawEventData, SourceType
from hashtracks.core.exceptions import FetchError, HTTPError, InvalidDateError, JSONParseError
from hashtracks.core.scrape_result import (
    FetchErrorDetail,
    ItemOutcome,
    PageResult,
    ParseErrorDetail,
    ScrapeResult,
)
from hashtracks.utils.dates import parse_local_timestamp
from hashtracks.utils.kennels import (
    KennelPattern,
    builtin_patterns,
    extract_hares,
    extract_run_number,
    resolve_kennel_tag,
    strip_kennel_prefix,
)
from hashtracks.utils.locations import google_maps_url
from hashtracks.utils.text import clip, strip_html

CALENDAR_API_BASE = "https://www.googleapis.com/calendar/v3"
MAX_RESULTS = 250
SECTION = "calendar_events"

DEFAULT_KENNEL_TAG = "BoH3"

# Longer, more specific patterns first
BOSTON_KENNEL_PATTERNS = builtin_patterns([
    (r"Boston Ball\s*Buster", "BoBBH3"),
    (r"Ball\s*Buster", "BoBBH3"),
    (r"BoBBH3", "BoBBH3"),
    (r"B3H4", "BoBBH3"),
    (r"BBH3", "BoBBH3"),
    (r"Beantown", "Beantown"),
    (r"Pink Taco", "Pink Taco"),
    (r"PT2H3", "Pink Taco"),
    (r"Boston Moon", "Bos Moon"),
    (r"Bos Moo[mn]", "Bos Moon"),
    (r"Full Moon", "Bos Moon"),
    (r"\bMoon\b", "Bos Moon"),
    (r"Boston H3", "BoH3"),
    (r"Boston Hash", "BoH3"),
    (r"BoH3", "BoH3"),
    (r"BH3", "BoH3"),
])

DESCRIPTION_RUN_RE = re.compile(r"BH3\s*#\s*(\d+)", re.IGNORECASE)
STANDALONE_RUN_RE = re.compile(r"^\s*#(\d{3,})\s*$", re.MULTILINE)


def extract_calendar_run_number(summary: str, description: str | None) -> int | None:
    """Run number from the summary ("#2781"), else from the description."""
    number = extract_run_number(summary)
    if number or not description:
        return number
    match = DESCRIPTION_RUN_RE.search(description) or STANDALONE_RUN_RE.search(description)
    return int(match.group(1)) if match else None


def describe_item(item: dict[str, Any]) -> str:
    """Raw text for a parse error on a calendar item."""
    start = item.get("start") or {}
    parts = [f"Summary: {item.get('summary') or 'unknown'}"]
    if item.get("description"):
        parts.append(f"Description: {item['description']}")
    if item.get("location"):
        parts.append(f"Location: {item['location']}")
    if start:
        parts.append(f"Start: {start.get('dateTime') or start.get('date') or ''}")
    return "\n".join(parts)


@register_adapter(SourceType.GOOGLE_CALENDAR)
class GoogleCalendarAdapter(BaseAdapter):
    """Adapter for public Google Calendars."""

    type_id = "google_calendar"
    config_model = KennelPatternConfig

    def parse_item(
        self,
        item: dict[str, Any],
        index: int,
        config: KennelPatternConfig,
        patterns: list[KennelPattern],
    ) -> ItemOutcome:
        """Build an event from one calendar item; cancelled or untitled items are skipped."""
        if item.get("status") == "cancelled":
            return None
        summary = (item.get("summary") or "").strip()
        start = item.get("start") or {}
        raw_start = start.get("dateTime") or start.get("date")
        if not summary or not raw_start:
            return None

        event_date, start_time = parse_local_timestamp(raw_start)
        if not event_date:
            return ParseErrorDetail.from_error(
                InvalidDateError(raw_start, expected_format="RFC 3339"),
                row=index,
                section=SECTION,
                raw_text=describe_item(item),
                partial_data={"title": summary},
            )

        raw_description = strip_html(item.get("description"))
        location = (item.get("location") or "").strip() or None

        # Configured calendars keep the full summary; Boston titles drop the "Kennel #N:" prefix
        use_full_title = bool(config.kennel_patterns or config.default_kennel_tag)

        return RawEventData(
            date=event_date,
            kennel_tag=resolve_kennel_tag(
                summary,
                config_patterns=patterns,
                config_default=config.default_kennel_tag,
                builtin=BOSTON_KENNEL_PATTERNS,
                default=DEFAULT_KENNEL_TAG,
            ),
            run_number=extract_calendar_run_number(summary, raw_description),
            title=summary if use_full_title else strip_kennel_prefix(summary),
            description=clip(raw_description),
            hares=extract_hares(raw_description),
            location=location,
            location_url=google_maps_url(location) if location else None,
            start_time=start_time,
            source_url=item.get("htmlLink"),
        )

    async def fetch_events_page(
        self,
        url: str,
        params: dict[str, Any],
        api_key: str,
        ctx: FetchContext,
    ) -> dict[str, Any]:
        data = await self.fetch_json(url, params=params, headers={"X-Goog-Api-Key": api_key}, deadline=ctx.deadline)
        if not isinstance(data, dict):
            raise JSONParseError("Google Calendar API returned a non-object response", raw_data=str(data))
        error = data.get("error")
        if isinstance(error, dict):
            code = error.get("code")
            raise HTTPError(
                f"Google Calendar API error {code}: {error.get('message')}",
                status_code=code if isinstance(code, int) else None,
                url=url,
            )
        if error:
            raise JSONParseError(f"Google Calendar API error: {error}", raw_data=str(data))
        return data

    async def _fetch(self, ctx: FetchContext) -> ScrapeResult:
        api_key = self.require_api_key(ctx.source)
        config: KennelPatternConfig = ctx.config
        patterns = config.compiled_patterns()

        calendar_id = ctx.source.url
        url = f"{CALENDAR_API_BASE}/calendars/{quote(calendar_id, safe='')}/events"
        window_start, window_end = ctx.window
        params: dict[str, Any] = {
            "timeMin": f"{window_start.isoformat()}T00:00:00Z",
            "timeMax": f"{window_end.isoformat()}T23:59:59Z",
            "singleEvents": "true",
            "orderBy": "startTime",
            "maxResults": MAX_RESULTS,
        }

        result = PageResult()
        pages = 0
        items_returned = 0
        page_token = None

        while True:
            page_params = {**params, "pageToken": page_token} if page_token else params
            try:
                data = await self.fetch_events_page(url, page_params, api_key, ctx)
            except (FetchError, JSONParseError) as e:
                if pages == 0:
                    raise
                self.logger.warning("pagination_stopped", reason="fetch_failed", pages=pages, error=str(e))
                result = result.with_fetch_error(
                    FetchErrorDetail(url=url, status=getattr(e, "status_code", None), message=str(e))
                )
                break

            pages += 1
            items = data.get("items") or []
            items_returned += len(items)
            result = result.merge(PageResult.collect(
                self.guarded(
                    lambda item=item, index=index: self.parse_item(item, index, config, patterns),
                    index,
                    SECTION,
                    raw_text=describe_item(item),
                )
                for index, item in enumerate(items)
            ))

            page_token = data.get("nextPageToken")
            if not page_token:
                break

        return self.finish(
            ctx,
            result,
            diagnostics={
                "calendarId": calendar_id,
                "pagesProcessed": pages,
                "itemsReturned": items_returned,
            },
        )
