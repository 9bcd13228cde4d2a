"""RSS 2.0 / Atom feed adapter.

Type: RSS_FEED
Source URL: the feed URL

Suits WordPress and Blogger sites and anything else publishing a standard
feed. Each item becomes an event on its publication date.

Config:
    kennelTag: Kennel tag for every item
"""

from typing import Any

import feedparser

from hashtracks.adapters import register_adapter
from hashtracks.core.base_adapter import AdapterConfig, BaseAdapter, FetchContext
from hashtracks.core.event_model import RawEventData, SourceType
from hashtracks.core.scrape_result import ItemOutcome, PageResult, ParseErrorDetail, ScrapeResult
from hashtracks.utils.dates import parse_timestamp
from hashtracks.utils.text import clip, strip_html

SECTION = "items"


class RssConfig(AdapterConfig):
    kennel_tag: str


def entry_content(entry: Any) -> str | None:
    """Full content if the feed has it, else the summary."""
    content = entry.get("content")
    if content:
        return content[0].get("value")
    return entry.get("summary")


@register_adapter(SourceType.RSS_FEED)
class RssAdapter(BaseAdapter):
    """Adapter for RSS and Atom feeds."""

    type_id = "rss"
    config_model = RssConfig

    def parse_entry(self, entry: Any, kennel_tag: str) -> ItemOutcome:
        """Build an event from one feed item; undated items are skipped."""
        published = parse_timestamp(entry.get("published") or entry.get("updated"))
        if published is None:
            return None

        return RawEventData(
            date=published.date().isoformat(),
            kennel_tag=kennel_tag,
            title=(entry.get("title") or "").strip() or None,
            description=clip(strip_html(entry_content(entry))),
            source_url=(entry.get("link") or "").strip() or None,
        )

    async def _fetch(self, ctx: FetchContext) -> ScrapeResult:
        config: RssConfig = ctx.config
        response = await self.fetch_url(
            ctx.source.url,
            headers={"Accept": "application/rss+xml, application/atom+xml, application/xml;q=0.9, */*;q=0.8"},
            deadline=ctx.deadline,
        )
        feed = feedparser.parse(response.text)

        if feed.bozo and not feed.entries:
            error = feed.get("bozo_exception")
            self.logger.warning("feed_parse_failed", error=str(error))
            page = PageResult.collect([
                ParseErrorDetail(row=0, section="feed", error=f"Feed parse error: {error}", raw_text=response.text)
            ])
            return self.finish(ctx, page)

        page = PageResult.collect(
            self.guarded(
                lambda entry=entry: self.parse_entry(entry, config.kennel_tag),
                index,
                SECTION,
                raw_text=entry.get("title"),
            )
            for index, entry in enumerate(feed.entries)
        )

        return self.finish(
            ctx,
            page,
            diagnostics={
                "feedTitle": feed.feed.get("title"),
                "itemCount": len(feed.entries),
            },
        )
