"""iCalendar (ICS) feed adapter.

Type: ICAL_FEED
Source URL: the .ics feed URL

Summaries follow "KENNEL #N: Title" closely enough that the run number and
title can be split out; the kennel tag comes from config patterns.

Config:
    kennelPatterns: [[regex, tag], ...] matched against SUMMARY
    defaultKennelTag: Tag when no pattern matches
    skipPatterns: SUMMARY regexes to drop (e.g. "Hand Pump Workday")
"""

import re
from datetime import date, datetime

from icalendar import Calendar
from pydantic import field_validator

from hashtracks.adapters import register_adapter
from hashtracks.core.base_adapter import BaseAdapter, FetchContext, KennelPatternConfig
from hashtracks.core.event_model import RawEventData, SourceType
from hashtracks.core.exceptions import InvalidConfigError
from hashtracks.core.scrape_result import ItemOutcome, PageResult, ParseErrorDetail, ScrapeResult
from hashtracks.utils.kennels import KennelPattern, extract_hares, extract_run_number, resolve_kennel_tag
from hashtracks.utils.locations import google_maps_url
from hashtracks.utils.text import clip

UNKNOWN_KENNEL_TAG = "UNKNOWN"
SECTION = "vevent"

# "SFH3 #2285: A Very Heated Rivalry", "FHAC-U: BAWC 5"
SUMMARY_TITLE_RE = re.compile(r"^[A-Za-z0-9 .'-]+(?:\s*#[\d.A-Za-z]+)?:\s*(.+)$")


class ICalConfig(KennelPatternConfig):
    skip_patterns: list[str] | None = None

    @field_validator("skip_patterns")
    @classmethod
    def check_skip_patterns_compile(cls, v: list[str] | None) -> list[str] | None:
        for index, regex in enumerate(v or []):
            try:
                re.compile(regex)
            except re.error as e:
                raise InvalidConfigError(
                    f"skipPatterns[{index}] has an invalid regex {regex!r}: {e}", field="skipPatterns"
                ) from e
        return v

    def compiled_skip_patterns(self) -> list[re.Pattern]:
        return [re.compile(regex, re.IGNORECASE) for regex in self.skip_patterns or []]


def summary_title(summary: str) -> str | None:
    """Title after a "KENNEL #N:" or "KENNEL:" prefix, if there is one."""
    match = SUMMARY_TITLE_RE.match(summary)
    if not match:
        return None
    return match.group(1).strip() or None


def local_start(value: date | datetime) -> tuple[str, str | None]:
    """Date and HH:MM of DTSTART in the event's own timezone."""
    if isinstance(value, datetime):
        return value.date().isoformat(), value.strftime("%H:%M")
    return value.isoformat(), None


def geo_maps_url(component) -> str | None:
    geo = component.get("GEO")
    if geo is None:
        return None
    return google_maps_url(f"{geo.latitude},{geo.longitude}")


@register_adapter(SourceType.ICAL_FEED)
class ICalAdapter(BaseAdapter):
    """Adapter for ICS calendar feeds."""

    type_id = "ical"
    config_model = ICalConfig

    def parse_vevent(
        self,
        component,
        index: int,
        config: ICalConfig,
        patterns: list[KennelPattern],
    ) -> ItemOutcome:
        """Build an event from one VEVENT; cancelled and undated ones are skipped."""
        if str(component.get("STATUS") or "").upper() == "CANCELLED":
            return None
        summary = str(component.get("SUMMARY") or "").strip()
        if not summary or component.get("DTSTART") is None:
            return None

        event_date, start_time = local_start(component.decoded("DTSTART"))
        description = str(component.get("DESCRIPTION") or "").strip() or None
        location = str(component.get("LOCATION") or "").strip() or None
        url = component.get("URL")

        return RawEventData(
            date=event_date,
            kennel_tag=resolve_kennel_tag(
                summary,
                config_patterns=patterns,
                config_default=config.default_kennel_tag,
                default=UNKNOWN_KENNEL_TAG,
            ),
            run_number=extract_run_number(summary),
            title=summary_title(summary) or summary,
            description=clip(description),
            hares=extract_hares(description),
            location=location,
            location_url=geo_maps_url(component) or (google_maps_url(location) if location else None),
            start_time=start_time,
            source_url=str(url) if url else None,
        )

    async def _fetch(self, ctx: FetchContext) -> ScrapeResult:
        config: ICalConfig = ctx.config
        response = await self.fetch_url(
            ctx.source.url,
            headers={"Accept": "text/calendar, text/plain;q=0.9, */*;q=0.8"},
            deadline=ctx.deadline,
        )
        ics_text = response.text

        try:
            calendar = Calendar.from_ical(ics_text)
        except ValueError as e:
            self.logger.warning("ics_parse_failed", error=str(e))
            page = PageResult.collect([
                ParseErrorDetail(row=0, section="calendar", error=f"iCal parse error: {e}", raw_text=ics_text)
            ])
            return self.finish(ctx, page, diagnostics={"icsBytes": len(ics_text)})

        patterns = config.compiled_patterns()
        skip_patterns = config.compiled_skip_patterns()
        vevents = calendar.walk("VEVENT")

        outcomes: list[ItemOutcome] = []
        skipped_pattern = 0
        for index, component in enumerate(vevents):
            summary = str(component.get("SUMMARY") or "")
            if any(pattern.search(summary) for pattern in skip_patterns):
                skipped_pattern += 1
                continue
            outcomes.append(self.guarded(
                lambda component=component, index=index: self.parse_vevent(component, index, config, patterns),
                index,
                SECTION,
                raw_text=summary,
            ))

        return self.finish(
            ctx,
            PageResult.collect(outcomes),
            diagnostics={
                "totalVEvents": len(vevents),
                "skippedPattern": skipped_pattern,
                "icsBytes": len(ics_text),
            },
        )
