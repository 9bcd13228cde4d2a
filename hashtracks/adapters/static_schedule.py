"""Static schedule adapter.

Type: STATIC_SCHEDULE

For kennels that run on a fixed schedule but have nothing to scrape (a
Facebook group, word of mouth). Occurrences are generated from an RFC 5545
RRULE over the window; there is no network I/O.

Config:
    kennelTag: Kennel tag for every occurrence
    rrule: e.g. "FREQ=WEEKLY;BYDAY=SA" or "FREQ=MONTHLY;BYDAY=2SA"
    startTime: "10:17 AM" or "10:17"
    defaultTitle, defaultLocation, defaultDescription
"""

from datetime import date, datetime, time

from dateutil.rrule import rrule, rrulestr
from pydantic import field_validator

from hashtracks.adapters import register_adapter
from hashtracks.core.base_adapter import AdapterConfig, BaseAdapter, FetchContext
from hashtracks.core.event_model import RawEventData, SourceType
from hashtracks.core.scrape_result import PageResult, ScrapeResult
from hashtracks.utils.times import resolve_time

# Occurrences are anchored at noon so no date can slip across midnight
ANCHOR_TIME = time(12, 0)


class StaticScheduleConfig(AdapterConfig):
    kennel_tag: str
    rrule: str
    start_time: str | None = None
    default_title: str | None = None
    default_location: str | None = None
    default_description: str | None = None

    @field_validator("rrule")
    @classmethod
    def check_rrule(cls, v: str) -> str:
        v = v.strip()
        if v.upper().startswith("RRULE:"):
            v = v[len("RRULE:"):]
        if "FREQ=" not in v.upper():
            raise ValueError("RRULE missing FREQ")
        # Raises ValueError for unknown or malformed parts
        rrulestr(v, dtstart=datetime.combine(date.today(), ANCHOR_TIME))
        return v

    @field_validator("start_time")
    @classmethod
    def normalize_start_time(cls, v: str | None) -> str | None:
        if v is None or not v.strip():
            return None
        normalized = resolve_time(v)
        if normalized is None:
            raise ValueError(f"Unrecognized start time: {v!r}")
        return normalized


def clamp_month_day(rule_text: str) -> str:
    """Make a monthly BYMONTHDAY of 29-31 fall on the last day of shorter months.

    ``FREQ=MONTHLY;BYMONTHDAY=31`` becomes ``BYMONTHDAY=31,-1;BYSETPOS=1``:
    the earlier of the 31st and the month's last day, which is the last day
    whenever the month has no 31st.
    """
    parts = [part.strip() for part in rule_text.split(";") if part.strip()]
    keys = {part.split("=", 1)[0].upper(): part.split("=", 1)[-1].upper() for part in parts}
    day = keys.get("BYMONTHDAY", "")
    if keys.get("FREQ") != "MONTHLY" or "BYDAY" in keys or "BYSETPOS" in keys or not day.isdigit():
        return rule_text
    if not 29 <= int(day) <= 31:
        return rule_text
    rewritten = [f"BYMONTHDAY={day},-1" if part.upper().startswith("BYMONTHDAY=") else part for part in parts]
    return ";".join([*rewritten, "BYSETPOS=1"])


def occurrences(rule_text: str, window: tuple[date, date]) -> list[str]:
    """Dates (YYYY-MM-DD) of every occurrence inside an inclusive window.

    The rule is anchored at the window start, so INTERVAL counts from there.
    """
    start, end = window
    rule: rrule = rrulestr(clamp_month_day(rule_text), dtstart=datetime.combine(start, ANCHOR_TIME))
    return [
        occurrence.date().isoformat()
        for occurrence in rule.between(
            datetime.combine(start, time.min),
            datetime.combine(end, time.max),
            inc=True,
        )
    ]


@register_adapter(SourceType.STATIC_SCHEDULE)
class StaticScheduleAdapter(BaseAdapter):
    """Adapter that generates events from a recurrence rule."""

    type_id = "static_schedule"
    config_model = StaticScheduleConfig

    async def _fetch(self, ctx: FetchContext) -> ScrapeResult:
        config: StaticScheduleConfig = ctx.config
        dates = occurrences(config.rrule, ctx.window)

        events = [
            RawEventData(
                date=event_date,
                kennel_tag=config.kennel_tag,
                title=config.default_title,
                description=config.default_description,
                location=config.default_location,
                start_time=config.start_time,
                source_url=ctx.source.url or None,
            )
            for event_date in dates
        ]

        window_start, window_end = ctx.window
        return self.finish(
            ctx,
            PageResult(events=events),
            diagnostics={
                "rrule": config.rrule,
                "occurrencesGenerated": len(events),
                "windowStart": window_start.isoformat(),
                "windowEnd": window_end.isoformat(),
            },
        )
