"""Source catalogue.

Each source is a ``Source`` (id slug, display name, URL, type and a loose
config blob that its adapter validates). The built-in catalogue in
``kennel_sources`` is loaded on first lookup.
"""

from hashtracks.core.event_model import Source, SourceType
from hashtracks.core.exceptions import SourceNotFoundError

# ============================================================
# SOURCE REGISTRY
# ============================================================


class SourceRegistry:
    """Central registry for all source configurations.

    Provides lookup by slug and filtering by source type. Sources are
    registered by importing the source modules.
    """

    _sources: dict[str, Source] = {}
    _initialized: bool = False

    @classmethod
    def register(cls, source: Source) -> None:
        """Register a source configuration.

        Args:
            source: Source to register

        Raises:
            ValueError: If a source with the same slug is already registered
        """
        if source.id in cls._sources:
            raise ValueError(f"Source '{source.id}' is already registered")
        cls._sources[source.id] = source

    @classmethod
    def register_many(cls, sources: list[Source]) -> None:
        """Register multiple source configurations."""
        for source in sources:
            cls.register(source)

    @classmethod
    def get(cls, slug: str, *, required: bool = True) -> Source | None:
        """Get a source by slug.

        Args:
            slug: Source identifier
            required: Raise instead of returning None when missing

        Returns:
            Source, or None if not found and not required

        Raises:
            SourceNotFoundError: If required and not registered
        """
        cls._ensure_initialized()
        source = cls._sources.get(slug)
        if source is None and required:
            raise SourceNotFoundError(slug, available=sorted(cls._sources))
        return source

    @classmethod
    def all(cls, include_inactive: bool = False) -> list[Source]:
        """Get all registered sources (active ones unless asked otherwise)."""
        cls._ensure_initialized()
        return [s for s in cls._sources.values() if include_inactive or s.is_active]

    @classmethod
    def by_type(cls, source_type: SourceType | str) -> list[Source]:
        """Get active sources of one type.

        Args:
            source_type: SourceType or its string value

        Returns:
            List of matching sources
        """
        source_type = SourceType(source_type)
        return [s for s in cls.all() if s.type == source_type]

    @classmethod
    def slugs(cls) -> list[str]:
        """Get all registered source slugs."""
        cls._ensure_initialized()
        return list(cls._sources.keys())

    @classmethod
    def count_by_type(cls) -> dict[SourceType, int]:
        """Get active source counts by type.

        Returns:
            Dict mapping every SourceType to its count
        """
        counts = {source_type: 0 for source_type in SourceType}
        for source in cls.all():
            counts[source.type] += 1
        return counts

    @classmethod
    def _ensure_initialized(cls) -> None:
        """Load the built-in kennel sources on first use."""
        if cls._initialized:
            return
        cls._initialized = True

        from hashtracks.config.sources.kennel_sources import SOURCES

        cls.register_many([s for s in SOURCES if s.id not in cls._sources])

    @classmethod
    def clear(cls) -> None:
        """Clear all registered sources (for testing)."""
        cls._sources.clear()
        cls._initialized = False


__all__ = ["SourceRegistry"]
