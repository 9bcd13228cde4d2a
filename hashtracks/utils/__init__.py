"""Utility modules for the HashTracks adapters.

Provides shared utilities for:
- Text cleaning and normalization
- Date and time-of-day parsing (UK and US formats)
- Postcode and venue extraction
- Kennel tag, run number and hare heuristics
- URL validation (SSRF guard) and safe fetching
"""

# Text utilities
from hashtracks.utils.text import (
    clip,
    decode_entities,
    fix_encoding_artifacts,
    labeled_field,
    normalize_whitespace,
    strip_html,
)

# Date and time utilities
from hashtracks.utils.dates import (
    date_window,
    in_window,
    infer_year,
    month_from_name,
    parse_iso_date,
    parse_local_timestamp,
    resolve_date,
)
from hashtracks.utils.times import resolve_time

# Location utilities
from hashtracks.utils.locations import (
    VenueMatch,
    extract_postcode,
    google_maps_url,
    select_venue,
)

# Kennel heuristics
from hashtracks.utils.kennels import (
    KennelPattern,
    compile_patterns,
    extract_hares,
    extract_run_number,
    is_placeholder,
    match_kennel,
    resolve_kennel_tag,
)

# URL utilities
from hashtracks.utils.urls import (
    extract_domain,
    is_safe_url,
    make_absolute_url,
    url_variants,
    validate_url,
)
from hashtracks.utils.http import safe_fetch

__all__ = [
    # Text
    "clip",
    "decode_entities",
    "fix_encoding_artifacts",
    "labeled_field",
    "normalize_whitespace",
    "strip_html",
    # Dates
    "date_window",
    "in_window",
    "infer_year",
    "month_from_name",
    "parse_iso_date",
    "parse_local_timestamp",
    "resolve_date",
    "resolve_time",
    # Locations
    "VenueMatch",
    "extract_postcode",
    "google_maps_url",
    "select_venue",
    # Kennels
    "KennelPattern",
    "compile_patterns",
    "extract_hares",
    "extract_run_number",
    "is_placeholder",
    "match_kennel",
    "resolve_kennel_tag",
    # URLs
    "extract_domain",
    "is_safe_url",
    "make_absolute_url",
    "url_variants",
    "validate_url",
    "safe_fetch",
]
