"""Adapters for the different source types (one module per type or site)."""

import re
from typing import TYPE_CHECKING, Any, Callable

from hashtracks.core.event_model import Source, SourceType
from hashtracks.core.exceptions import AdapterNotFoundError

if TYPE_CHECKING:
    from hashtracks.core.base_adapter import BaseAdapter

# Registry of adapters by source type
ADAPTER_REGISTRY: dict[SourceType, type["BaseAdapter"]] = {}

# URL-routed HTML scrapers, checked in registration order
HTML_SCRAPER_ROUTES: list[tuple[re.Pattern, type["BaseAdapter"]]] = []

# HTML scraper for source URLs that match no route
HTML_SCRAPER_FALLBACK: type["BaseAdapter"] | None = None

# Flag to prevent circular imports during loading
_adapters_loaded = False


def register_adapter(source_type: SourceType) -> Callable[[type["BaseAdapter"]], type["BaseAdapter"]]:
    """Decorator to register the adapter for a source type.

    Usage:
        @register_adapter(SourceType.GOOGLE_CALENDAR)
        class GoogleCalendarAdapter(BaseAdapter):
            ...
    """

    def decorator(adapter_class: type["BaseAdapter"]) -> type["BaseAdapter"]:
        ADAPTER_REGISTRY[source_type] = adapter_class
        return adapter_class

    return decorator


def register_html_scraper(url_pattern: str) -> Callable[[type["BaseAdapter"]], type["BaseAdapter"]]:
    """Decorator to route HTML_SCRAPER sources whose URL matches a regex.

    Usage:
        @register_html_scraper(r"londonhash\\.org")
        class LondonHashAdapter(HtmlScraperAdapter):
            ...
    """

    def decorator(adapter_class: type["BaseAdapter"]) -> type["BaseAdapter"]:
        HTML_SCRAPER_ROUTES.append((re.compile(url_pattern, re.IGNORECASE), adapter_class))
        return adapter_class

    return decorator


def register_html_fallback(adapter_class: type["BaseAdapter"]) -> type["BaseAdapter"]:
    """Class decorator for the HTML scraper used when a source URL matches no route.

    Sources without a URL still resolve to the HTML_SCRAPER registry entry.
    """
    global HTML_SCRAPER_FALLBACK
    HTML_SCRAPER_FALLBACK = adapter_class
    return adapter_class


def get_adapter(source_type: SourceType | str, url: str | None = None) -> type["BaseAdapter"]:
    """Get the adapter class for a source type (and URL, for HTML scrapers).

    Raises:
        AdapterNotFoundError: If nothing is registered for the type
    """
    _ensure_adapters_loaded()
    try:
        source_type = SourceType(source_type)
    except ValueError as e:
        raise AdapterNotFoundError(str(source_type)) from e

    if source_type == SourceType.HTML_SCRAPER and url:
        for pattern, adapter_class in HTML_SCRAPER_ROUTES:
            if pattern.search(url):
                return adapter_class
        if HTML_SCRAPER_FALLBACK is not None:
            return HTML_SCRAPER_FALLBACK

    adapter_class = ADAPTER_REGISTRY.get(source_type)
    if adapter_class is None:
        raise AdapterNotFoundError(source_type.value)
    return adapter_class


def create_adapter(source: Source, **kwargs: Any) -> "BaseAdapter":
    """Instantiate the adapter that handles a source.

    Keyword arguments (client, settings, today) are passed to the adapter.
    """
    try:
        adapter_class = get_adapter(source.type, source.url)
    except AdapterNotFoundError as e:
        raise AdapterNotFoundError(e.source_type, source=source.id) from e
    return adapter_class(**kwargs)


def list_adapters() -> list[str]:
    """List the type ids of all registered adapters."""
    _ensure_adapters_loaded()
    type_ids = [cls.type_id for cls in ADAPTER_REGISTRY.values()]
    type_ids.extend(cls.type_id for _, cls in HTML_SCRAPER_ROUTES)
    if HTML_SCRAPER_FALLBACK is not None:
        type_ids.append(HTML_SCRAPER_FALLBACK.type_id)
    return sorted(set(type_ids))


def _ensure_adapters_loaded() -> None:
    """Ensure all adapter modules are loaded."""
    global _adapters_loaded
    if _adapters_loaded:
        return
    _adapters_loaded = True

    # Import adapter modules to trigger registration
    # API and feed adapters
    from hashtracks.adapters import google_calendar  # noqa: F401
    from hashtracks.adapters import google_sheets  # noqa: F401
    from hashtracks.adapters import hashrego  # noqa: F401
    from hashtracks.adapters import ical  # noqa: F401
    from hashtracks.adapters import meetup  # noqa: F401
    from hashtracks.adapters import rss  # noqa: F401
    from hashtracks.adapters import static_schedule  # noqa: F401
    # Site-specific HTML scrapers (URL routed)
    from hashtracks.adapters.html import barnes_hash  # noqa: F401
    from hashtracks.adapters.html import enfield_hash  # noqa: F401
    from hashtracks.adapters.html import ewh3  # noqa: F401
    from hashtracks.adapters.html import london_hash  # noqa: F401
    # Default HTML scrapers: hashnyc for URL-less sources, wordpress_blog for unrouted URLs
    from hashtracks.adapters.html import hashnyc  # noqa: F401
    from hashtracks.adapters.html import wordpress_blog  # noqa: F401
