"""Generic paginated WordPress blog adapter.

Type: HTML_SCRAPER (used for source URLs that no site-specific route matches)

For kennels that announce each run as a blog post (Chicago style). Each
``<article>`` is one run: the title carries the run number, the
``<time datetime>`` element the date, and the body uses labelled fields
("Venue:", "Hare:", "Hash Cash:", "When:") that WordPress renders run
together. Older pages are followed through the "Older posts" / "Next"
link.

Config:
    kennelTag: Tag for every event (unless a pattern matches)
    kennelPatterns: [[regex, tag], ...] matched against the post title
    defaultKennelTag: Tag when patterns are given and none matches
"""

import re

from bs4 import Tag
from pydantic import model_validator

from hashtracks.adapters import register_html_fallback
from hashtracks.adapters.html.base import PaginatedHtmlAdapter
from hashtracks.core.base_adapter import FetchContext, KennelPatternConfig
from hashtracks.core.event_model import RawEventData
from hashtracks.core.scrape_result import ItemOutcome, ParseErrorDetail
from hashtracks.utils.dates import parse_iso_date, resolve_date
from hashtracks.utils.kennels import extract_run_number, resolve_kennel_tag
from hashtracks.utils.locations import google_maps_url
from hashtracks.utils.text import labeled_field
from hashtracks.utils.times import resolve_time
from hashtracks.utils.urls import make_absolute_url

BODY_LABELS = "Venue|Hares?|Event|Hash Cash|Transit|Shag Wagon|When|Where|Time"
MAPS_LINK_RE = re.compile(r"maps\.|google\.\w+/maps", re.IGNORECASE)


class WordPressBlogConfig(KennelPatternConfig):
    kennel_tag: str | None = None

    @model_validator(mode="after")
    def check_has_tag(self) -> "WordPressBlogConfig":
        if not (self.kennel_tag or self.default_kennel_tag):
            raise ValueError("kennelTag or defaultKennelTag is required")
        return self


def parse_body_fields(text: str) -> dict[str, str | None]:
    """Labelled fields from a post body."""

    def field(labels: str) -> str | None:
        return labeled_field(text, labels, BODY_LABELS, multiline=True)

    when = field("When|Time")
    return {
        "location": field("Venue|Where"),
        "hares": field("Hares?"),
        "hashCash": field("Hash Cash"),
        "eventName": field("Event"),
        "startTime": resolve_time(when) if when else None,
    }


def find_maps_link(article: Tag) -> str | None:
    for link in article.select("a[href]"):
        if MAPS_LINK_RE.search(link["href"]):
            return link["href"]
    return None


@register_html_fallback
class WordPressBlogAdapter(PaginatedHtmlAdapter):
    """Adapter for WordPress blogs with one post per run."""

    type_id = "wordpress_blog"
    config_model = WordPressBlogConfig
    selector_strategies = ("article",)

    def article_date(self, article: Tag, ctx: FetchContext) -> str | None:
        """Prefer ``<time datetime>``, else parse the visible date text."""
        time_el = article.select_one("time[datetime]")
        if time_el is not None:
            event_date = parse_iso_date(time_el.get("datetime"))
            if event_date:
                return event_date
        date_el = article.select_one(".entry-date, time, .posted-on")
        if date_el is None:
            return None
        return resolve_date(date_el.get_text(" ", strip=True), reference_date=ctx.today, locale="us")

    def parse_candidate(self, el: Tag, index: int, ctx: FetchContext) -> ItemOutcome:
        config: WordPressBlogConfig = ctx.config
        page_url = self.page_url(ctx)

        title_el = el.select_one(".entry-title a, .entry-title, h2 a, h2")
        title = title_el.get_text(" ", strip=True) if title_el else ""
        if not title:
            return None

        event_date = self.article_date(el, ctx)
        if not event_date:
            return ParseErrorDetail(
                row=index,
                field="date",
                error=f"Could not parse: {title[:80]}",
                raw_text=el.get_text(" ", strip=True),
            )

        href = title_el.get("href") if title_el.name == "a" else None
        if not href:
            inner = title_el.find("a", href=True)
            href = inner["href"] if inner else None

        content = el.select_one(".entry-content, .post-content, .entry-summary")
        fields = parse_body_fields(content.get_text("\n", strip=True) if content else "")

        location_url = find_maps_link(el)
        if not location_url and fields["location"]:
            location_url = google_maps_url(fields["location"])

        description_parts = []
        if fields["eventName"]:
            description_parts.append(fields["eventName"])
        if fields["hashCash"]:
            description_parts.append(f"Hash Cash: {fields['hashCash']}")

        return RawEventData(
            date=event_date,
            kennel_tag=resolve_kennel_tag(
                title,
                config_patterns=config.compiled_patterns(),
                config_default=config.default_kennel_tag,
                default=config.kennel_tag or config.default_kennel_tag,
            ),
            run_number=extract_run_number(title),
            title=title,
            hares=fields["hares"],
            location=fields["location"],
            location_url=location_url,
            start_time=fields["startTime"],
            source_url=make_absolute_url(href, page_url) if href else page_url,
            description=". ".join(description_parts) or None,
        )
