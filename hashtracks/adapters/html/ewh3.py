"""Everyday Is Wednesday Hash House Harriers (EWH3) adapter.

Source: https://www.ewh3.com/
Type: HTML_SCRAPER (URL routed)

Trail announcements are WordPress posts whose titles carry most of the
data::

    EWH3 #1506: Huaynaputina's Revenge, February 19, 2026, NoMa/Gallaudet U (Red Line)

The body adds hares, the on-after and the end metro. Posts are read from
the WordPress REST API first, falling back to the ``article`` elements of
the home page. Weekly, 18:45.
"""

import re

from bs4 import BeautifulSoup, Tag

from hashtracks.adapters import register_html_scraper
from hashtracks.adapters.html.base import HtmlScraperAdapter
from hashtracks.adapters.wordpress_api import WordPressPost, fetch_wordpress_posts
from hashtracks.core.base_adapter import FetchContext
from hashtracks.core.event_model import RawEventData
from hashtracks.core.exceptions import HashTracksError, InvalidDateError
from hashtracks.core.scrape_result import ItemOutcome, PageResult, ParseErrorDetail, ScrapeResult
from hashtracks.core.structure_hash import generate_structure_hash
from hashtracks.utils.dates import resolve_date
from hashtracks.utils.http import is_endpoint_unavailable
from hashtracks.utils.text import labeled_field, strip_html
from hashtracks.utils.urls import make_absolute_url

KENNEL_TAG = "EWH3"
START_TIME = "18:45"

TITLE_DATE = r"[A-Za-z]+\.?\s+\d{1,2}(?:st|nd|rd|th)?,?\s+\d{4}"
NUMBERED_TITLE_RE = re.compile(
    rf"^EWH3\s*#([\d.]+)\s*:\s*(.+?),\s*({TITLE_DATE}),\s*(.+?)(?:\s*[–—-]\s*EWH3)?$",
    re.IGNORECASE,
)
UNNUMBERED_TITLE_RE = re.compile(
    rf"^EWH3\s+(.+?),\s*({TITLE_DATE}),\s*(.+?)(?:\s*[–—-]\s*EWH3)?$",
    re.IGNORECASE,
)
METRO_RE = re.compile(r"^(.+?)\s*\(([^)]+)\)$")

BODY_STOP_LABELS = (
    r"When|Where|Bring|Nearest|Trail Details|Miscellaneous|End Metro|On[- ]?After\*?|Last Trains|Give Back"
)


def parse_title(title: str) -> dict | None:
    """Split a post title into run number, trail name, date and metro.

    Returns:
        Dict with runNumber (floored; "1499.5" gives 1499), trailName,
        dateText, metro and metroLines, or None if the title is not a trail
    """
    title = title.strip()
    run_number = None

    match = NUMBERED_TITLE_RE.match(title)
    if match:
        number_text, trail_name, date_text, metro_raw = match.groups()
        try:
            run_number = int(float(number_text))
        except ValueError:
            run_number = None
    else:
        match = UNNUMBERED_TITLE_RE.match(title)
        if not match:
            return None
        trail_name, date_text, metro_raw = match.groups()

    metro_raw = metro_raw.strip()
    metro_match = METRO_RE.match(metro_raw)

    return {
        "runNumber": run_number or None,
        "trailName": trail_name.strip(),
        "dateText": date_text,
        "metro": metro_match.group(1).strip() if metro_match else metro_raw,
        "metroLines": metro_match.group(2).strip() if metro_match else None,
    }


def parse_body(text: str) -> dict[str, str | None]:
    """Hares, on-after and end metro from a post body."""
    return {
        "hares": labeled_field(text, "Hares?", BODY_STOP_LABELS),
        "onAfter": labeled_field(text, r"On[- ]?After\*?"),
        "endMetro": labeled_field(text, "End Metro"),
    }


@register_html_scraper(r"ewh3\.com")
class EWH3Adapter(HtmlScraperAdapter):
    """Adapter for EWH3 trail posts (WordPress REST API, then HTML)."""

    type_id = "ewh3"
    default_url = "https://www.ewh3.com/"
    section = "post"
    selector_strategies = ("article.post, article.type-post, article[class*='post-'], .hentry",)

    def process_post(self, title: str, body: str, post_url: str, index: int) -> ItemOutcome:
        """Turn one trail post into an event; non-trail posts are skipped."""
        parsed = parse_title(title)
        if parsed is None:
            return None

        event_date = resolve_date(parsed["dateText"])
        if not event_date:
            return ParseErrorDetail.from_error(
                InvalidDateError(parsed["dateText"], expected_format="Month D, YYYY"),
                row=index,
                raw_text=title,
                partial_data={"kennelTag": KENNEL_TAG, "runNumber": parsed["runNumber"]},
            )

        location = parsed["metro"]
        if location and parsed["metroLines"]:
            location = f"{location} ({parsed['metroLines']})"

        fields = parse_body(body)
        description_parts = [parsed["trailName"]]
        if fields["endMetro"]:
            description_parts.append(f"End Metro: {fields['endMetro']}")
        if fields["onAfter"]:
            description_parts.append(f"On After: {fields['onAfter']}")

        return RawEventData(
            date=event_date,
            kennel_tag=KENNEL_TAG,
            run_number=parsed["runNumber"],
            title=parsed["trailName"],
            hares=fields["hares"],
            location=location or None,
            start_time=START_TIME,
            source_url=post_url,
            description=" | ".join(description_parts) if len(description_parts) > 1 else None,
        )

    def parse_candidate(self, el: Tag, index: int, ctx: FetchContext) -> ItemOutcome:
        page_url = self.page_url(ctx)
        link = el.select_one(".entry-title a, h2.entry-title a, h2 a, h1.entry-title a")
        if link is not None and link.get_text(strip=True):
            title = link.get_text(strip=True)
            post_url = make_absolute_url(link.get("href"), page_url) or page_url
        else:
            heading = el.select_one(".entry-title, h2")
            title = heading.get_text(strip=True) if heading else ""
            post_url = page_url

        if not title:
            return None

        content = el.select_one(".entry-content, .post-content")
        body = content.get_text("\n", strip=True) if content else ""
        return self.process_post(title, body, post_url, index)

    def _process_api_post(self, post: WordPressPost, index: int, ctx: FetchContext) -> ItemOutcome:
        body = strip_html(post.content) or ""
        return self.guarded(
            lambda: self.process_post(post.title, body, post.url or self.page_url(ctx), index),
            index,
            self.section,
            raw_text=post.title,
        )

    async def _fetch_from_api(self, ctx: FetchContext) -> ScrapeResult:
        posts = await fetch_wordpress_posts(self, self.page_url(ctx), deadline=ctx.deadline)
        page = PageResult.collect(
            self._process_api_post(post, index, ctx) for index, post in enumerate(posts)
        )
        return self.finish(
            ctx,
            page,
            structure_hash=None,
            diagnostics={"fetchMethod": "wordpress-api", "postsFound": len(posts)},
        )

    async def _fetch(self, ctx: FetchContext) -> ScrapeResult:
        try:
            return await self._fetch_from_api(ctx)
        except HashTracksError as e:
            if not is_endpoint_unavailable(e):
                raise
            api_error = str(e)

        self.logger.info("api_fallback", api="wordpress", error=api_error)

        html = await self.fetch_page(self.page_url(ctx), ctx.deadline)
        soup = BeautifulSoup(html, "html.parser")
        candidates = self.select_candidates(soup)
        page = self.parse_candidates(candidates, ctx)

        return self.finish(
            ctx,
            page,
            structure_hash=generate_structure_hash(html),
            diagnostics={
                "fetchMethod": "html-scrape",
                "articlesFound": len(candidates),
                "apiError": api_error,
            },
        )
