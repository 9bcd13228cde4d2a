"""Pydantic models for raw events and the sources that produce them.

Field names on the wire are camelCase (``kennelTag``, ``startTime``...) because
that is the contract consumed by the resolution/merge step. Python code uses
the snake_case attributes.
"""

import hashlib
import re
from datetime import date as date_type
from datetime import datetime
from enum import Enum
from typing import Annotated, Any

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

ISO_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")
HHMM_RE = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")


class SourceType(str, Enum):
    """Adapter family a source is fetched with (maps to Source.type)."""

    HTML_SCRAPER = "HTML_SCRAPER"
    GOOGLE_CALENDAR = "GOOGLE_CALENDAR"
    GOOGLE_SHEETS = "GOOGLE_SHEETS"
    HASHREGO = "HASHREGO"
    ICAL_FEED = "ICAL_FEED"
    MEETUP = "MEETUP"
    RSS_FEED = "RSS_FEED"
    STATIC_SCHEDULE = "STATIC_SCHEDULE"


class WireModel(BaseModel):
    """Base for models serialized with camelCase aliases."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        str_strip_whitespace=True,
    )

    def to_wire(self) -> dict[str, Any]:
        """Dump to the JSON-ready camelCase shape, omitting unset fields."""
        return self.model_dump(by_alias=True, exclude_none=True, mode="json")


class RawEventData(WireModel):
    """One event as extracted from a source, before kennel resolution or dedup."""

    # Required fields
    date: str
    kennel_tag: Annotated[str, Field(min_length=1)]

    # Optional enrichment
    run_number: int | None = Field(default=None, gt=0)
    title: str | None = None
    description: str | None = None
    hares: str | None = None
    location: str | None = None
    location_url: str | None = None
    start_time: str | None = None
    source_url: str | None = None

    @field_validator("date", mode="before")
    @classmethod
    def validate_date(cls, v: Any) -> str:
        """Accept date objects or YYYY-MM-DD strings naming a real calendar day."""
        if isinstance(v, datetime):
            v = v.date()
        if isinstance(v, date_type):
            return v.isoformat()
        if not isinstance(v, str):
            raise ValueError("date must be a YYYY-MM-DD string")
        v = v.strip()
        if not ISO_DATE_RE.match(v):
            raise ValueError(f"date must be YYYY-MM-DD, got {v!r}")
        # Rejects 2026-02-30 and friends
        datetime.strptime(v, "%Y-%m-%d")
        return v

    @field_validator("start_time")
    @classmethod
    def validate_start_time(cls, v: str | None) -> str | None:
        if v is None:
            return None
        if not HHMM_RE.match(v):
            raise ValueError(f"startTime must be HH:MM, got {v!r}")
        return v

    @field_validator(
        "title", "description", "hares", "location", "location_url", "source_url",
        mode="before",
    )
    @classmethod
    def empty_to_none(cls, v: Any) -> Any:
        if isinstance(v, str) and not v.strip():
            return None
        return v

    def fingerprint(self) -> str:
        """Stable content hash used downstream as a change/dedup key."""
        parts = [
            self.date,
            self.kennel_tag,
            str(self.run_number or ""),
            self.title or "",
            self.start_time or "",
        ]
        return hashlib.sha256("|".join(parts).encode("utf-8")).hexdigest()


class Source(BaseModel):
    """A configured external origin polled by one adapter."""

    model_config = ConfigDict(str_strip_whitespace=True)

    id: str
    name: str
    url: str = ""
    type: SourceType
    config: dict[str, Any] = Field(default_factory=dict)
    is_active: bool = True

    def __hash__(self) -> int:
        return hash(self.id)
