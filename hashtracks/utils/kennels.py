"""Kennel tag resolution and run-detail heuristics shared by adapters.

Kennel tags are resolved from an event title or summary by regex patterns.
Patterns come from three places, tried in order: the source config, the
adapter's built-in list, and finally the adapter's default tag.
"""

import re
from collections.abc import Iterable, Sequence
from typing import NamedTuple

from hashtracks.core.exceptions import InvalidConfigError


class KennelPattern(NamedTuple):
    """Compiled pattern and the kennel tag it maps to."""

    pattern: re.Pattern
    tag: str


RUN_NUMBER_RE = re.compile(r"#\s*(\d+)")
HARES_RES = (
    re.compile(r"(?:^|\n)\s*Hares?(?:\s*\(s\))?\s*:\s*(.+)", re.IGNORECASE),
    re.compile(r"(?:^|\n)\s*Who\s*:\s*(.+)", re.IGNORECASE),
)
# "Who: that be you" and friends
GENERIC_HARES_RE = re.compile(r"^(?:that be you|you|your|all|everyone)\b", re.IGNORECASE)
PLACEHOLDER_RE = re.compile(r"\b(?:tba|tbd|tbc|required|volunteer|needed)\b", re.IGNORECASE)
KENNEL_PREFIX_RE = re.compile(r"^[^:]+:\s*")

MAX_HARES_LENGTH = 200


def compile_patterns(
    pairs: Iterable[Sequence[str]] | None,
    field: str = "kennelPatterns",
) -> list[KennelPattern]:
    """Compile ``[regex, tag]`` pairs from source config.

    Args:
        pairs: Iterable of (regex, tag) pairs
        field: Config field name for error reporting

    Returns:
        Compiled patterns, case-insensitive, in the given order

    Raises:
        InvalidConfigError: If a pair is malformed or a regex does not compile
    """
    compiled: list[KennelPattern] = []
    for index, pair in enumerate(pairs or []):
        if len(pair) != 2:
            raise InvalidConfigError(
                f"{field}[{index}] must be a [regex, tag] pair", field=field
            )
        regex, tag = pair
        try:
            compiled.append(KennelPattern(re.compile(regex, re.IGNORECASE), tag))
        except re.error as e:
            raise InvalidConfigError(
                f"{field}[{index}] has an invalid regex {regex!r}: {e}", field=field
            ) from e
    return compiled


def builtin_patterns(pairs: Iterable[tuple[str, str]]) -> tuple[KennelPattern, ...]:
    """Compile an adapter's hard-coded pattern table at import time."""
    return tuple(KennelPattern(re.compile(regex, re.IGNORECASE), tag) for regex, tag in pairs)


def match_kennel(text: str | None, patterns: Iterable[KennelPattern]) -> str | None:
    """Return the tag of the first pattern found in text, or None."""
    if not text:
        return None
    for kennel in patterns:
        if kennel.pattern.search(text):
            return kennel.tag
    return None


def resolve_kennel_tag(
    text: str | None,
    *,
    config_patterns: Sequence[KennelPattern] | None = None,
    config_default: str | None = None,
    builtin: Iterable[KennelPattern] = (),
    default: str,
) -> str:
    """Resolve the kennel tag for one event.

    Order: config patterns, then the config default (only consulted after
    config patterns fail, or on its own when there are no config patterns),
    then built-in patterns, then the adapter default.
    """
    if config_patterns:
        tag = match_kennel(text, config_patterns)
        if tag:
            return tag
    if config_default:
        return config_default
    return match_kennel(text, builtin) or default


def extract_run_number(text: str | None) -> int | None:
    """Extract a run number written as "#1234"."""
    if not text:
        return None
    match = RUN_NUMBER_RE.search(text)
    if not match:
        return None
    number = int(match.group(1))
    return number if number > 0 else None


def is_placeholder(text: str | None) -> bool:
    """True for "TBA", "Hare needed", "volunteer required" style values."""
    return bool(text and PLACEHOLDER_RE.search(text))


def extract_hares(text: str | None) -> str | None:
    """Extract hare names from "Hare:", "Hares:", "Hare(s):" or "Who:" lines.

    Generic answers ("Who: that be you") and placeholders are skipped.
    """
    if not text:
        return None
    for pattern in HARES_RES:
        match = pattern.search(text)
        if not match:
            continue
        hares = match.group(1).split("\n")[0].strip()
        if not hares or GENERIC_HARES_RE.match(hares) or is_placeholder(hares):
            continue
        if len(hares) < MAX_HARES_LENGTH:
            return hares
    return None


def strip_kennel_prefix(summary: str) -> str:
    """Drop a leading "Kennel:" or "Kennel #12:" label from a summary."""
    stripped = KENNEL_PREFIX_RE.sub("", summary, count=1).strip()
    return stripped or summary
