"""Unified exception hierarchy for the HashTracks ingestion pipeline.

Exception categories:
- Configuration errors (unknown source type, invalid source config, missing credentials)
- Fetch errors (HTTP status, timeout, unsafe URL, redirects, deadline)
- Parse errors (invalid data, missing fields)

Only configuration errors are meant to escape ``BaseAdapter.fetch``; fetch
errors are folded into the ``ScrapeResult`` at the adapter boundary.
"""


class HashTracksError(Exception):
    """Base exception for all HashTracks errors."""

    def __init__(self, message: str, source: str | None = None, details: dict | None = None):
        self.source = source
        self.details = details or {}
        super().__init__(message)

    def __str__(self) -> str:
        msg = super().__str__()
        if self.source:
            msg = f"[{self.source}] {msg}"
        return msg


# ============================================================
# CONFIGURATION ERRORS
# ============================================================


class ConfigurationError(HashTracksError):
    """Base class for configuration-related errors."""
    pass


class SourceNotFoundError(ConfigurationError):
    """Raised when a source slug is not found in the registry."""

    def __init__(self, slug: str, available: list[str] | None = None):
        self.slug = slug
        self.available = available
        msg = f"Unknown source: {slug}"
        if available:
            msg += f". Available: {', '.join(available[:5])}..."
        super().__init__(msg, source=slug)


class AdapterNotFoundError(ConfigurationError):
    """Raised when no adapter is registered for a source type."""

    def __init__(self, source_type: str, source: str | None = None):
        self.source_type = source_type
        super().__init__(f"No adapter registered for source type {source_type}", source=source)


class InvalidConfigError(ConfigurationError):
    """Raised when a source config blob does not match the adapter's schema."""

    def __init__(self, message: str, field: str | None = None, source: str | None = None):
        self.field = field
        details = {"field": field} if field else {}
        super().__init__(message, source=source, details=details)


class MissingCredentialError(ConfigurationError):
    """Raised when a credentialed adapter runs without its API key."""

    def __init__(self, env_var: str, source: str | None = None):
        self.env_var = env_var
        super().__init__(
            f"{env_var} environment variable is not set",
            source=source,
            details={"env_var": env_var},
        )


# ============================================================
# FETCH ERRORS
# ============================================================


class FetchError(HashTracksError):
    """Base class for data fetching errors."""

    url: str | None = None
    status_code: int | None = None


class HTTPError(FetchError):
    """Raised for non-success HTTP responses."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        url: str | None = None,
        source: str | None = None,
    ):
        self.status_code = status_code
        self.url = url
        details = {}
        if status_code:
            details["status_code"] = status_code
        if url:
            details["url"] = url
        super().__init__(message, source=source, details=details)


class RequestTimeoutError(FetchError):
    """Raised when a request times out."""

    def __init__(self, url: str, timeout: float | None, source: str | None = None):
        self.url = url
        self.timeout = timeout
        super().__init__(
            f"Request timed out after {timeout}s",
            source=source,
            details={"url": url, "timeout": timeout},
        )


class UnsafeURLError(FetchError):
    """Raised when a URL fails SSRF validation."""

    def __init__(self, url: str, reason: str, source: str | None = None):
        self.url = url
        self.reason = reason
        super().__init__(
            f"Blocked unsafe URL {url}: {reason}",
            source=source,
            details={"url": url, "reason": reason},
        )


class TooManyRedirectsError(FetchError):
    """Raised when a redirect chain exceeds the configured limit."""

    def __init__(self, url: str, limit: int, source: str | None = None):
        self.url = url
        self.limit = limit
        super().__init__(
            f"Too many redirects (>{limit})",
            source=source,
            details={"url": url, "limit": limit},
        )


class DeadlineExceededError(FetchError):
    """Raised when the caller's deadline expires before a request can start."""

    def __init__(self, url: str | None = None, source: str | None = None):
        self.url = url
        super().__init__("Deadline exceeded", source=source, details={"url": url})


# ============================================================
# PARSE ERRORS
# ============================================================


class ParseError(HashTracksError):
    """Base class for data parsing errors."""

    field: str | None = None


class MissingFieldError(ParseError):
    """Raised when a required field is missing."""

    def __init__(self, field: str, item: str | None = None, source: str | None = None):
        self.field = field
        self.item = item
        msg = f"Missing required field: {field}"
        if item:
            msg += f" ({item})"
        super().__init__(msg, source=source, details={"field": field, "item": item})


class InvalidDateError(ParseError):
    """Raised when a date cannot be parsed."""

    def __init__(self, value: str, expected_format: str | None = None, source: str | None = None):
        self.value = value
        self.field = "date"
        self.expected_format = expected_format
        msg = f"Invalid date: {value}"
        if expected_format:
            msg += f" (expected format: {expected_format})"
        super().__init__(msg, source=source, details={"value": value, "format": expected_format})


class JSONParseError(ParseError):
    """Raised when JSON parsing fails."""

    def __init__(self, message: str, raw_data: str | None = None, source: str | None = None):
        self.raw_data = raw_data[:200] if raw_data else None
        super().__init__(message, source=source, details={"raw_data_preview": self.raw_data})
