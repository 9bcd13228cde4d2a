"""Scrape results and the two-tier (fetch/parse) error model.

Parse loops never mutate shared lists: each candidate yields an outcome
(``RawEventData``, ``ParseErrorDetail`` or ``None`` when skipped), the
outcomes are reduced into a ``PageResult`` and page results are merged.
"""

from collections.abc import Iterable
from typing import Any

from pydantic import Field, field_validator

from hashtracks.core.event_model import RawEventData, WireModel

RAW_TEXT_LIMIT = 2000


class FetchErrorDetail(WireModel):
    """Transport-level failure: network error or non-success status."""

    url: str | None = None
    status: int | None = None
    message: str

    def summary(self) -> str:
        return self.message


class ParseErrorDetail(WireModel):
    """Failure to extract one record from one candidate item."""

    row: int
    section: str | None = None
    field: str | None = None
    error: str
    raw_text: str | None = None
    partial_data: dict[str, Any] | None = None

    @field_validator("raw_text")
    @classmethod
    def truncate_raw_text(cls, v: str | None) -> str | None:
        if v is None:
            return None
        return v[:RAW_TEXT_LIMIT]

    @classmethod
    def from_error(
        cls,
        error: Exception,
        row: int,
        section: str | None = None,
        raw_text: str | None = None,
        partial_data: dict[str, Any] | None = None,
    ) -> "ParseErrorDetail":
        """Build a parse error from an exception, keeping its ``field`` when it has one."""
        return cls(
            row=row,
            section=section,
            field=getattr(error, "field", None),
            error=str(error),
            raw_text=raw_text,
            partial_data=partial_data,
        )

    def summary(self) -> str:
        where = f"{self.section} row {self.row}" if self.section else f"row {self.row}"
        return f"Parse error ({where}): {self.error}"


class ErrorDetails(WireModel):
    """Structured error breakdown by tier."""

    fetch: list[FetchErrorDetail] = Field(default_factory=list)
    parse: list[ParseErrorDetail] = Field(default_factory=list)

    @property
    def has_errors(self) -> bool:
        return bool(self.fetch or self.parse)

    def merge(self, other: "ErrorDetails") -> "ErrorDetails":
        return ErrorDetails(
            fetch=[*self.fetch, *other.fetch],
            parse=[*self.parse, *other.parse],
        )

    def messages(self) -> list[str]:
        """Flat human-readable messages, fetch errors first."""
        return [d.summary() for d in self.fetch] + [d.summary() for d in self.parse]


ItemOutcome = RawEventData | ParseErrorDetail | None


class PageResult(WireModel):
    """Events and errors gathered from one page (or one batch of items)."""

    events: list[RawEventData] = Field(default_factory=list)
    details: ErrorDetails = Field(default_factory=ErrorDetails)

    @classmethod
    def collect(cls, outcomes: Iterable[ItemOutcome]) -> "PageResult":
        """Reduce per-item outcomes into a page result, preserving order."""
        events: list[RawEventData] = []
        parse_errors: list[ParseErrorDetail] = []
        for outcome in outcomes:
            if isinstance(outcome, RawEventData):
                events.append(outcome)
            elif isinstance(outcome, ParseErrorDetail):
                parse_errors.append(outcome)
        return cls(events=events, details=ErrorDetails(parse=parse_errors))

    @classmethod
    def failed(cls, error: FetchErrorDetail) -> "PageResult":
        return cls(details=ErrorDetails(fetch=[error]))

    def merge(self, other: "PageResult") -> "PageResult":
        return PageResult(
            events=[*self.events, *other.events],
            details=self.details.merge(other.details),
        )

    def with_fetch_error(self, error: FetchErrorDetail) -> "PageResult":
        return self.merge(PageResult.failed(error))

    def filter_events(self, keep) -> "PageResult":
        """Drop events for which ``keep(event)`` is false (e.g. window filtering)."""
        return PageResult(events=[e for e in self.events if keep(e)], details=self.details)


class ScrapeResult(WireModel):
    """Output of one adapter invocation."""

    events: list[RawEventData] = Field(default_factory=list)
    errors: list[str] = Field(default_factory=list)
    error_details: ErrorDetails | None = None
    structure_hash: str | None = None
    diagnostic_context: dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def build(
        cls,
        page: PageResult,
        structure_hash: str | None = None,
        diagnostic_context: dict[str, Any] | None = None,
    ) -> "ScrapeResult":
        """Assemble a result; ``errorDetails`` is only present when something failed."""
        details = page.details
        return cls(
            events=page.events,
            errors=details.messages(),
            error_details=details if details.has_errors else None,
            structure_hash=structure_hash,
            diagnostic_context=diagnostic_context or {},
        )

    @classmethod
    def fetch_failure(
        cls,
        message: str,
        url: str | None = None,
        status: int | None = None,
        diagnostic_context: dict[str, Any] | None = None,
    ) -> "ScrapeResult":
        """Short-circuit result: no events and exactly one fetch error."""
        error = FetchErrorDetail(url=url, status=status, message=message)
        return cls.build(PageResult.failed(error), diagnostic_context=diagnostic_context)

    @property
    def fetch_errors(self) -> list[FetchErrorDetail]:
        return self.error_details.fetch if self.error_details else []

    @property
    def parse_errors(self) -> list[ParseErrorDetail]:
        return self.error_details.parse if self.error_details else []
