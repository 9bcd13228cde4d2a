"""Meetup.com group events adapter.

Type: MEETUP

Uses the public Meetup API (``GET /{group}/events``), which needs no key for
public groups. Every event of the group gets the configured kennel tag.

Config:
    groupUrlname: Group URL name, e.g. "brooklyn-hash-house-harriers"
    kennelTag: Kennel tag for every event
"""

from typing import Any
from urllib.parse import quote

from hashtracks.adapters import register_adapter
from hashtracks.core.base_adapter import AdapterConfig, BaseAdapter, FetchContext
from hashtracks.core.event_model import RawEventData, SourceType
from hashtracks.core.exceptions import JSONParseError, MissingFieldError
from hashtracks.core.scrape_result import ItemOutcome, PageResult, ParseErrorDetail, ScrapeResult
from hashtracks.utils.text import clip, strip_html

MEETUP_API_BASE = "https://api.meetup.com"
PAGE_SIZE = 100
EVENT_FIELDS = "id,name,status,time,local_date,local_time,duration,description,venue,link"
SECTION = "events"


class MeetupConfig(AdapterConfig):
    group_urlname: str
    kennel_tag: str


def venue_location(venue: dict[str, Any] | None) -> str | None:
    """Join venue name, address, city and state."""
    if not venue:
        return None
    parts = [venue.get(key) for key in ("name", "address_1", "city", "state")]
    return ", ".join(part.strip() for part in parts if part and part.strip()) or None


@register_adapter(SourceType.MEETUP)
class MeetupAdapter(BaseAdapter):
    """Adapter for public Meetup groups."""

    type_id = "meetup"
    config_model = MeetupConfig

    def parse_event(self, item: dict[str, Any], index: int, kennel_tag: str) -> ItemOutcome:
        if (item.get("status") or "").lower() == "cancelled":
            return None

        local_date = item.get("local_date")
        if not local_date:
            return ParseErrorDetail.from_error(
                MissingFieldError("local_date", item=str(item.get("id") or index)),
                row=index,
                partial_data={"kennelTag": kennel_tag, "title": item.get("name")},
            )

        return RawEventData(
            date=local_date,
            kennel_tag=kennel_tag,
            title=item.get("name") or None,
            description=clip(strip_html(item.get("description"))),
            location=venue_location(item.get("venue")),
            start_time=item.get("local_time") or None,
            source_url=item.get("link") or None,
        )

    async def _fetch(self, ctx: FetchContext) -> ScrapeResult:
        config: MeetupConfig = ctx.config
        url = f"{MEETUP_API_BASE}/{quote(config.group_urlname, safe='')}/events"

        data = await self.fetch_json(
            url,
            params={"status": "upcoming,past", "page": PAGE_SIZE, "only": EVENT_FIELDS},
            deadline=ctx.deadline,
        )
        if not isinstance(data, list):
            raise JSONParseError("Meetup API returned a non-list response", raw_data=str(data))

        page = PageResult.collect(
            self.guarded(
                lambda item=item, index=index: self.parse_event(item, index, config.kennel_tag),
                index,
                SECTION,
                raw_text=str(item),
            )
            for index, item in enumerate(data)
            if isinstance(item, dict)
        )

        return self.finish(
            ctx,
            page,
            diagnostics={"groupUrlname": config.group_urlname, "eventsFound": len(data)},
        )
