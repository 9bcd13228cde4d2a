"""Core models, results and errors shared by every adapter.

``BaseAdapter`` lives in ``hashtracks.core.base_adapter`` and is imported
from there; it depends on ``hashtracks.utils``, which in turn depends on the
modules exported here.
"""

from hashtracks.core.deadline import Deadline
from hashtracks.core.event_model import RawEventData, Source, SourceType
from hashtracks.core.exceptions import (
    AdapterNotFoundError,
    ConfigurationError,
    DeadlineExceededError,
    FetchError,
    HashTracksError,
    HTTPError,
    InvalidConfigError,
    MissingCredentialError,
    ParseError,
    RequestTimeoutError,
    SourceNotFoundError,
    TooManyRedirectsError,
    UnsafeURLError,
)
from hashtracks.core.scrape_result import (
    ErrorDetails,
    FetchErrorDetail,
    PageResult,
    ParseErrorDetail,
    ScrapeResult,
)
from hashtracks.core.structure_hash import generate_structure_hash

__all__ = [
    # Models
    "RawEventData",
    "Source",
    "SourceType",
    # Results
    "ErrorDetails",
    "FetchErrorDetail",
    "PageResult",
    "ParseErrorDetail",
    "ScrapeResult",
    # Exceptions
    "HashTracksError",
    "ConfigurationError",
    "AdapterNotFoundError",
    "SourceNotFoundError",
    "InvalidConfigError",
    "MissingCredentialError",
    "FetchError",
    "HTTPError",
    "RequestTimeoutError",
    "UnsafeURLError",
    "TooManyRedirectsError",
    "DeadlineExceededError",
    "ParseError",
    # Misc
    "Deadline",
    "generate_structure_hash",
]
