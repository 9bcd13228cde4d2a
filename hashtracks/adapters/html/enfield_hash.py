"""Enfield Hash House Harriers (EH3) adapter.

Source: https://www.enfieldhash.org/
Type: HTML_SCRAPER (URL routed)

The site is a Blogger blog, so posts are read through the Blogger API v3
first. When the API is unavailable (no key, endpoint disabled, transport
failure) the public page is scraped instead, trying www/non-www and
http/https variants. Page markup is ``.paragraph-box`` blocks with an
``<h1>`` title and ``<p>`` details; older Blogger templates use
``.post-outer`` or ``.post``.

Monthly kennel: 3rd Wednesday, 19:30.
"""

import re
from datetime import date

from bs4 import BeautifulSoup, Tag

from hashtracks.adapters import register_html_scraper
from hashtracks.adapters.blogger_api import BloggerPost, fetch_blogger_posts
from hashtracks.adapters.html.base import HtmlScraperAdapter
from hashtracks.core.base_adapter import FetchContext
from hashtracks.core.deadline import Deadline
from hashtracks.core.event_model import RawEventData
from hashtracks.core.exceptions import (
    FetchError,
    HashTracksError,
    MissingCredentialError,
)
from hashtracks.core.scrape_result import ItemOutcome, PageResult, ParseErrorDetail, ScrapeResult
from hashtracks.core.structure_hash import generate_structure_hash
from hashtracks.utils.dates import resolve_date
from hashtracks.utils.http import is_endpoint_unavailable
from hashtracks.utils.kennels import is_placeholder
from hashtracks.utils.text import decode_entities, labeled_field, normalize_whitespace, strip_html
from hashtracks.utils.urls import make_absolute_url, url_variants

KENNEL_TAG = "EH3"
START_TIME = "19:30"

BODY_LABELS = "Date|When|Pub|Where|Location|Venue|Station|Hares?|Start|Time|Meet"
TITLE_RUN_RE = re.compile(r"Run\s+(\d+)", re.IGNORECASE)
PROSE_STATION_RE = re.compile(r"trail from\s+(.+?)\s+station", re.IGNORECASE)
PROSE_LOCATION_RE = re.compile(r"running from\s+(.+?)(?:[,.]|$)", re.IGNORECASE | re.MULTILINE)
ON_ON_RE = re.compile(r"^on\s*on$", re.IGNORECASE)
UNKNOWN_RE = re.compile(r"^(?:tba|tbd|tbc)", re.IGNORECASE)


def _known(value: str | None) -> str | None:
    return None if not value or UNKNOWN_RE.match(value) else value


def parse_body(text: str, today: date | None = None) -> dict[str, str | None]:
    """Pull date, hares, location and station out of a post body.

    Structured posts use "Label: value" lines; newer posts are prose such as
    "Rose and Crown pub, Clay Hill. P trail from Gordon Hill station."
    """
    date_text = labeled_field(text, "Date|When", BODY_LABELS)
    event_date = resolve_date(date_text or text, reference_date=today)

    hares = labeled_field(text, "Hares?", BODY_LABELS)
    if is_placeholder(hares):
        hares = None

    location = labeled_field(text, "Pub|Where|Location|Venue", BODY_LABELS)
    if not location:
        match = PROSE_LOCATION_RE.search(text)
        location = match.group(1).strip() if match else None

    station = labeled_field(text, "Station", BODY_LABELS)
    if not station:
        match = PROSE_STATION_RE.search(text)
        station = match.group(1).strip() if match else None

    return {
        "date": event_date,
        "hares": hares,
        "location": _known(location),
        "station": _known(station),
    }


def paragraph_text(post: Tag) -> str:
    """Body text of a scraped post, one paragraph per line."""
    paragraphs = [p.get_text(" ", strip=True) for p in post.find_all("p")]
    lines = [line for line in paragraphs if line and not ON_ON_RE.match(line)]
    if lines:
        return "\n".join(lines)
    body = post.select_one(".post-body, .entry-content")
    return body.get_text("\n", strip=True) if body else ""


@register_html_scraper(r"enfieldhash")
class EnfieldHashAdapter(HtmlScraperAdapter):
    """Adapter for the Enfield Hash blog (Blogger API, then HTML)."""

    type_id = "enfield_hash"
    default_url = "https://www.enfieldhash.org/"
    section = "post"
    selector_strategies = (".paragraph-box", ".post-outer", ".post, .blog-post")

    def process_post(
        self,
        title: str,
        body: str,
        post_url: str,
        index: int,
        ctx: FetchContext,
    ) -> ItemOutcome:
        """Turn one post (from either path) into an event."""
        fields = parse_body(body, ctx.today)
        event_date = fields["date"] or resolve_date(title, reference_date=ctx.today)

        if not event_date:
            if not body.strip():
                return None
            return ParseErrorDetail(
                row=index,
                section="post",
                field="date",
                error=f"No date found in post: {title or '(untitled)'}",
                raw_text=f"Title: {title}\n\n{body}",
                partial_data={"kennelTag": KENNEL_TAG, "title": title or None},
            )

        run_match = TITLE_RUN_RE.search(title)
        run_number = int(run_match.group(1)) if run_match else None

        description_parts = []
        if run_number:
            description_parts.append(f"Run #{run_number}")
        if fields["station"]:
            description_parts.append(f"Nearest station: {fields['station']}")

        return RawEventData(
            date=event_date,
            kennel_tag=KENNEL_TAG,
            run_number=run_number,
            title=title or None,
            hares=fields["hares"],
            location=fields["location"],
            start_time=START_TIME,
            source_url=post_url,
            description=". ".join(description_parts) or None,
        )

    def parse_candidate(self, el: Tag, index: int, ctx: FetchContext) -> ItemOutcome:
        page_url = self.page_url(ctx)
        heading = el.find("h1")
        title = decode_entities(heading.get_text(strip=True)) if heading else ""
        post_url = page_url

        if not title:
            link = el.select_one(".post-title a, .entry-title a, h3.post-title a")
            if link is not None:
                title = link.get_text(strip=True)
                post_url = make_absolute_url(link.get("href"), page_url) or page_url
            else:
                fallback = el.select_one(".post-title, .entry-title, h3")
                title = fallback.get_text(strip=True) if fallback else ""

        return self.process_post(title, paragraph_text(el), post_url, index, ctx)

    async def fetch_page_variants(self, url: str, deadline: Deadline | None = None) -> tuple[str, str]:
        """Fetch the first URL variant that serves the page.

        Returns:
            (html, url that served it)
        """
        last_error: FetchError | None = None
        for candidate in url_variants(url):
            try:
                return await self.fetch_page(candidate, deadline), candidate
            except FetchError as e:
                if not is_endpoint_unavailable(e):
                    raise
                self.logger.info("url_variant_failed", url=candidate, error=str(e))
                last_error = e
        raise last_error or FetchError(f"No URL variant served {url}")

    def _process_api_post(self, post: BloggerPost, index: int, ctx: FetchContext) -> ItemOutcome:
        title = normalize_whitespace(decode_entities(post.title), preserve_newlines=False)
        body = strip_html(post.content) or ""
        return self.guarded(
            lambda: self.process_post(title, body, post.url or self.page_url(ctx), index, ctx),
            index,
            self.section,
            raw_text=f"Title: {title}\n\n{body}",
        )

    async def _fetch_from_api(self, ctx: FetchContext) -> ScrapeResult:
        api_key = self.require_api_key(ctx.source)
        posts = await fetch_blogger_posts(self, self.page_url(ctx), api_key, deadline=ctx.deadline)

        page = PageResult.collect(
            self._process_api_post(post, index, ctx) for index, post in enumerate(posts)
        )
        return self.finish(
            ctx,
            page,
            structure_hash=None,
            diagnostics={"fetchMethod": "blogger-api", "postsFound": len(posts)},
        )

    async def _fetch(self, ctx: FetchContext) -> ScrapeResult:
        try:
            return await self._fetch_from_api(ctx)
        except HashTracksError as e:
            if not isinstance(e, MissingCredentialError) and not is_endpoint_unavailable(e):
                raise
            api_error = str(e)

        self.logger.info("api_fallback", api="blogger", error=api_error)

        html, fetch_url = await self.fetch_page_variants(self.page_url(ctx), ctx.deadline)
        soup = BeautifulSoup(html, "html.parser")
        candidates = self.select_candidates(soup)
        page = self.parse_candidates(candidates, ctx)

        return self.finish(
            ctx,
            page,
            structure_hash=generate_structure_hash(html),
            diagnostics={
                "fetchMethod": "html-scrape",
                "fetchUrl": fetch_url,
                "postsFound": len(candidates),
                "apiError": api_error,
            },
        )
