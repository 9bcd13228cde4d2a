"""Base adapter class for all event sources."""

import time
from abc import ABC, abstractmethod
from collections.abc import Callable
from dataclasses import dataclass
from datetime import date
from typing import Any, ClassVar

import httpx
from pydantic import BaseModel, ConfigDict, ValidationError, field_validator
from pydantic.alias_generators import to_camel

from hashtracks.config.settings import Settings, get_settings
from hashtracks.core.deadline import Deadline
from hashtracks.core.event_model import Source
from hashtracks.core.exceptions import (
    FetchError,
    InvalidConfigError,
    JSONParseError,
    MissingCredentialError,
)
from hashtracks.core.scrape_result import ItemOutcome, PageResult, ParseErrorDetail, ScrapeResult
from hashtracks.logging import get_logger, log_source_run
from hashtracks.utils.dates import date_window, in_window
from hashtracks.utils.http import raise_for_status, safe_fetch
from hashtracks.utils.kennels import KennelPattern, compile_patterns

# ============================================================
# SOURCE CONFIG MODELS
# Source.config is a loose JSON blob; each adapter narrows it once
# ============================================================


class AdapterConfig(BaseModel):
    """Base for per-adapter ``Source.config`` schemas (camelCase keys)."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
        frozen=True,
    )


class KennelPatternConfig(AdapterConfig):
    """Config shared by sources that carry several kennels in one feed."""

    kennel_patterns: list[tuple[str, str]] | None = None
    default_kennel_tag: str | None = None

    @field_validator("kennel_patterns")
    @classmethod
    def check_patterns_compile(cls, v: list[tuple[str, str]] | None) -> list[tuple[str, str]] | None:
        # InvalidConfigError is not a ValueError, so it escapes pydantic unwrapped
        compile_patterns(v)
        return v

    def compiled_patterns(self) -> list[KennelPattern]:
        return compile_patterns(self.kennel_patterns)


@dataclass(frozen=True)
class FetchContext:
    """Everything one adapter invocation needs besides the network."""

    source: Source
    config: AdapterConfig
    window: tuple[date, date]
    today: date
    deadline: Deadline | None = None


class BaseAdapter(ABC):
    """Abstract base class for all source adapters.

    Subclasses implement ``_fetch``. The public ``fetch`` validates the
    source config, binds logging context, turns raised ``FetchError``s into
    a fetch-tier ``ScrapeResult`` and records timing diagnostics.
    Configuration errors (missing credentials) propagate.
    """

    # Class-level attributes to be overridden by subclasses
    type_id: ClassVar[str] = ""
    config_model: ClassVar[type[AdapterConfig]] = AdapterConfig

    def __init__(
        self,
        client: httpx.AsyncClient | None = None,
        settings: Settings | None = None,
        today: date | None = None,
    ):
        """Initialize adapter.

        Args:
            client: HTTP client to use instead of creating one (tests inject a
                client backed by ``httpx.MockTransport``)
            settings: Settings override
            today: Fixed "today" for window and year inference
        """
        self.settings = settings or get_settings()
        self._http_client = client
        self._owns_client = client is None
        self._today = today
        self.logger = get_logger(f"adapter.{self.type_id}")

    @property
    def today(self) -> date:
        return self._today or date.today()

    # ==========================================
    # HTTP Client Management
    # ==========================================

    @property
    def default_headers(self) -> dict[str, str]:
        return {"User-Agent": self.settings.scraper_user_agent}

    async def get_http_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._http_client is None or self._http_client.is_closed:
            self._http_client = httpx.AsyncClient(
                timeout=httpx.Timeout(self.settings.scraper_request_timeout),
                headers=self.default_headers,
            )
            self._owns_client = True
        return self._http_client

    async def close_http_client(self) -> None:
        """Close the HTTP client if this adapter created it."""
        if self._owns_client and self._http_client and not self._http_client.is_closed:
            await self._http_client.aclose()
            self._http_client = None

    async def fetch_url(
        self,
        url: str,
        *,
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
        deadline: Deadline | None = None,
    ) -> httpx.Response:
        """GET a URL through the SSRF guard and require a 2xx response.

        Raises:
            FetchError: Any transport, status, SSRF or deadline failure
        """
        client = await self.get_http_client()
        response = await safe_fetch(
            client,
            url,
            headers={**self.default_headers, **(headers or {})},
            params=params,
            timeout=self.settings.scraper_request_timeout,
            deadline=deadline,
            max_redirects=self.settings.scraper_max_redirects,
        )
        return raise_for_status(response)

    async def fetch_json(
        self,
        url: str,
        *,
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
        deadline: Deadline | None = None,
    ) -> Any:
        """GET a URL and decode its JSON body."""
        response = await self.fetch_url(
            url,
            params=params,
            headers={"Accept": "application/json", **(headers or {})},
            deadline=deadline,
        )
        try:
            return response.json()
        except ValueError as e:
            raise JSONParseError(f"Invalid JSON from {url}: {e}", raw_data=response.text) from e

    def require_api_key(self, source: Source) -> str:
        """Return the Google API key or raise MissingCredentialError."""
        key = self.settings.google_calendar_api_key
        if not key:
            raise MissingCredentialError("GOOGLE_CALENDAR_API_KEY", source=source.id)
        return key

    # ==========================================
    # Config
    # ==========================================

    def parse_config(self, source: Source) -> AdapterConfig:
        """Validate ``source.config`` against this adapter's schema.

        Raises:
            InvalidConfigError: If the blob does not match
        """
        try:
            return self.config_model.model_validate(source.config or {})
        except ValidationError as e:
            errors = "; ".join(
                f"{'.'.join(str(p) for p in err['loc']) or 'config'}: {err['msg']}"
                for err in e.errors()
            )
            raise InvalidConfigError(errors, source=source.id) from e

    # ==========================================
    # Result Helpers
    # ==========================================

    def guarded(
        self,
        parse: Callable[[], ItemOutcome],
        index: int,
        section: str,
        raw_text: str | None = None,
    ) -> ItemOutcome:
        """Run one item parse, turning an unexpected exception into a parse error."""
        try:
            outcome = parse()
        except Exception as e:
            outcome = ParseErrorDetail.from_error(e, row=index, section=section, raw_text=raw_text)

        if isinstance(outcome, ParseErrorDetail):
            if outcome.section is None:
                outcome = outcome.model_copy(update={"section": section})
            self.logger.warning("parse_error", row=index, section=section, error=outcome.error)
        return outcome

    def finish(
        self,
        ctx: FetchContext,
        page: PageResult,
        structure_hash: str | None = None,
        diagnostics: dict[str, Any] | None = None,
    ) -> ScrapeResult:
        """Apply the date window and assemble the result."""
        parsed = len(page.events)
        page = page.filter_events(lambda event: in_window(event.date, ctx.window))
        return ScrapeResult.build(
            page,
            structure_hash=structure_hash,
            diagnostic_context={
                **(diagnostics or {}),
                "eventsParsed": parsed,
                "eventsOutsideWindow": parsed - len(page.events),
            },
        )

    # ==========================================
    # Abstract Methods (to implement per source type)
    # ==========================================

    @abstractmethod
    async def _fetch(self, ctx: FetchContext) -> ScrapeResult:
        """Fetch and parse events for one source.

        Recoverable per-item problems are returned as parse errors. A failure
        that stops the whole fetch may be raised as ``FetchError``.
        """

    # ==========================================
    # Main Fetch Method
    # ==========================================

    async def fetch(
        self,
        source: Source,
        days: int | None = None,
        deadline: Deadline | None = None,
    ) -> ScrapeResult:
        """Fetch events for a source within ``[today - days, today + days]``.

        Args:
            source: Source to fetch
            days: Window half-width in days (settings default if None)
            deadline: Optional overall deadline

        Returns:
            ScrapeResult; never raises for recoverable conditions

        Raises:
            MissingCredentialError: If a credentialed source has no API key
        """
        days = days if days is not None else self.settings.scraper_default_days
        today = self.today

        with log_source_run(source.id, source.type.value):
            self.logger.info("scrape_started", url=source.url, days=days)
            started = time.monotonic()

            try:
                config = self.parse_config(source)
            except InvalidConfigError as e:
                self.logger.warning("invalid_config", error=str(e))
                result = ScrapeResult.fetch_failure(f"Invalid source config: {e}", url=source.url or None)
            else:
                ctx = FetchContext(
                    source=source,
                    config=config,
                    window=date_window(days, today),
                    today=today,
                    deadline=deadline,
                )
                try:
                    result = await self._fetch(ctx)
                except (FetchError, JSONParseError) as e:
                    url = getattr(e, "url", None) or source.url or None
                    self.logger.warning("fetch_failed", url=url, error=str(e))
                    result = ScrapeResult.fetch_failure(
                        str(e),
                        url=url,
                        status=getattr(e, "status_code", None),
                    )
                except (AttributeError, KeyError, TypeError) as e:
                    # Payload did not have the shape the adapter expected
                    self.logger.warning("unexpected_payload", url=source.url, error=repr(e))
                    result = ScrapeResult.fetch_failure(
                        f"Unexpected response shape: {e!r}",
                        url=source.url or None,
                    )

            elapsed = time.monotonic() - started
            result.diagnostic_context["fetchDurationMs"] = round(elapsed * 1000)

            self.logger.info(
                "scrape_completed",
                events=len(result.events),
                fetch_errors=len(result.fetch_errors),
                parse_errors=len(result.parse_errors),
                elapsed_seconds=round(elapsed, 3),
            )
            return result

    # ==========================================
    # Utility Methods
    # ==========================================

    async def __aenter__(self) -> "BaseAdapter":
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        """Async context manager exit - cleanup resources."""
        await self.close_http_client()
