"""Shared shape of the document-scraping (HTML) adapters.

Fetch the page, fingerprint its structure, pick candidate elements with an
ordered list of CSS selector strategies, and turn each candidate into an
event, a parse error, or nothing (skipped). One bad candidate never stops
the rest of the page.
"""

import re
from abc import abstractmethod
from collections.abc import Iterable
from typing import ClassVar

from bs4 import BeautifulSoup, Tag

from hashtracks.core.base_adapter import BaseAdapter, FetchContext
from hashtracks.core.deadline import Deadline
from hashtracks.core.exceptions import FetchError
from hashtracks.core.scrape_result import FetchErrorDetail, ItemOutcome, PageResult, ScrapeResult
from hashtracks.core.structure_hash import generate_structure_hash
from hashtracks.utils.urls import make_absolute_url

NEXT_LINK_TEXT_RE = re.compile(r"^\W*(?:next(?: page)?|older (?:posts|entries))\W*$", re.IGNORECASE)
NEXT_LINK_CLASSES = {"next", "nextpostslink"}


class HtmlScraperAdapter(BaseAdapter):
    """Single-page HTML scraper.

    Subclasses set ``selector_strategies`` (tried in order; a later selector
    only runs when the earlier ones match nothing) and implement
    ``parse_candidate``.
    """

    default_url: ClassVar[str] = ""
    section: ClassVar[str] = "page"
    selector_strategies: ClassVar[tuple[str, ...]] = ()

    def page_url(self, ctx: FetchContext) -> str:
        return ctx.source.url or self.default_url

    async def fetch_page(self, url: str, deadline: Deadline | None = None) -> str:
        """Fetch one page of HTML through the SSRF guard."""
        response = await self.fetch_url(
            url,
            headers={"Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8"},
            deadline=deadline,
        )
        return response.text

    def select_candidates(self, soup: BeautifulSoup) -> list[Tag]:
        """Return elements from the first selector strategy that matches."""
        for selector in self.selector_strategies:
            found = soup.select(selector)
            if found:
                return found
        return []

    @abstractmethod
    def parse_candidate(self, el: Tag, index: int, ctx: FetchContext) -> ItemOutcome:
        """Parse one candidate element.

        Returns:
            RawEventData, a ParseErrorDetail, or None to skip the element
        """

    def parse_candidates(
        self,
        candidates: Iterable[Tag],
        ctx: FetchContext,
        section: str | None = None,
    ) -> PageResult:
        section = section or self.section
        return PageResult.collect(
            self._parse_one(el, index, ctx, section) for index, el in enumerate(candidates)
        )

    def _parse_one(self, el: Tag, index: int, ctx: FetchContext, section: str) -> ItemOutcome:
        return self.guarded(
            lambda: self.parse_candidate(el, index, ctx),
            index,
            section,
            raw_text=el.get_text(" ", strip=True),
        )

    async def _fetch(self, ctx: FetchContext) -> ScrapeResult:
        url = self.page_url(ctx)
        html = await self.fetch_page(url, ctx.deadline)
        soup = BeautifulSoup(html, "html.parser")

        candidates = self.select_candidates(soup)
        page = self.parse_candidates(candidates, ctx)

        return self.finish(
            ctx,
            page,
            structure_hash=generate_structure_hash(html),
            diagnostics={"candidatesFound": len(candidates)},
        )


class PaginatedHtmlAdapter(HtmlScraperAdapter):
    """HTML scraper that follows "next page" links up to ``max_pages``.

    A fetch error on the first page short-circuits. A fetch error on a later
    page (including an unsafe next link or an expired deadline) keeps the
    events gathered so far and is appended to the fetch errors.
    """

    max_pages: ClassVar[int | None] = None

    def page_limit(self) -> int:
        return self.max_pages or self.settings.scraper_max_pages

    def next_page_url(self, soup: BeautifulSoup, current_url: str) -> str | None:
        """Find a WordPress-style "Older posts" / "Next" / ``.next`` link."""
        links = soup.select("a[href]")
        for link in links:
            rel = {token.lower() for token in link.get("rel") or []}
            classes = {token.lower() for token in link.get("class") or []}
            if "next" in rel or classes & NEXT_LINK_CLASSES:
                return make_absolute_url(link["href"], current_url)
        for link in links:
            if NEXT_LINK_TEXT_RE.match(link.get_text(" ", strip=True)):
                return make_absolute_url(link["href"], current_url)
        return None

    async def _fetch(self, ctx: FetchContext) -> ScrapeResult:
        url = self.page_url(ctx)
        html = await self.fetch_page(url, ctx.deadline)
        structure_hash = generate_structure_hash(html)

        result = PageResult()
        visited = {url}
        candidates_found = 0
        pages = 0
        limit = self.page_limit()

        while True:
            pages += 1
            soup = BeautifulSoup(html, "html.parser")
            candidates = self.select_candidates(soup)
            candidates_found += len(candidates)
            result = result.merge(self.parse_candidates(candidates, ctx, section=f"page-{pages}"))

            next_url = self.next_page_url(soup, url)
            if not next_url or next_url in visited:
                break
            if pages >= limit:
                self.logger.info("pagination_stopped", reason="max_pages", pages=pages)
                break

            try:
                html = await self.fetch_page(next_url, ctx.deadline)
            except FetchError as e:
                self.logger.warning("pagination_stopped", reason="fetch_failed", url=next_url, error=str(e))
                result = result.with_fetch_error(
                    FetchErrorDetail(url=next_url, status=e.status_code, message=str(e))
                )
                break

            visited.add(next_url)
            url = next_url

        return self.finish(
            ctx,
            result,
            structure_hash=structure_hash,
            diagnostics={"pagesFetched": pages, "candidatesFound": candidates_found},
        )
