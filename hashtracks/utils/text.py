"""Text cleaning and normalization utilities.

Provides functions for stripping HTML from descriptions, decoding entities,
normalizing whitespace and bounding text length.
"""

import html
import re

DESCRIPTION_LIMIT = 2000


def fix_encoding_artifacts(text: str) -> str:
    """Replace smart quotes, dashes and non-breaking spaces with ASCII equivalents.

    Args:
        text: Input text with possible encoding artifacts

    Returns:
        Cleaned text
    """
    if not text:
        return text

    replacements = {
        # Unicode smart quotes
        "\u201c": '"',
        "\u201d": '"',
        "\u2018": "'",
        "\u2019": "'",
        # Dashes
        "\u2013": "-",  # En dash
        "\u2014": "-",  # Em dash
        # Other
        "\u2026": "...",  # Ellipsis
        "\u00a0": " ",  # Non-breaking space
    }

    for old, new in replacements.items():
        text = text.replace(old, new)

    return text


def normalize_whitespace(text: str, preserve_newlines: bool = True) -> str:
    """Normalize whitespace in text.

    Args:
        text: Input text
        preserve_newlines: If True, preserve newlines (normalized to max 2)

    Returns:
        Text with normalized whitespace
    """
    if not text:
        return text

    if preserve_newlines:
        text = re.sub(r"[ \t]+", " ", text)
        text = re.sub(r" ?\n ?", "\n", text)
        text = re.sub(r"\n{3,}", "\n\n", text)
    else:
        text = re.sub(r"\s+", " ", text)

    return text.strip()


def decode_entities(text: str) -> str:
    """Decode HTML entities (``&amp;``, ``&#39;``...)."""
    return html.unescape(text) if text else text


def strip_html(text: str | None) -> str | None:
    """Convert HTML to plain text preserving line structure.

    Paragraphs and headers become blank-line separated blocks, ``<br>`` and
    ``</div>`` become newlines, list items become bullet lines.

    Args:
        text: HTML text

    Returns:
        Plain text or None if input was None/empty
    """
    if not text:
        return None

    result = text

    # Convert block elements to line breaks BEFORE removing tags
    result = re.sub(r"</p>\s*", "\n\n", result, flags=re.IGNORECASE)
    result = re.sub(r"<p[^>]*>", "", result, flags=re.IGNORECASE)
    result = re.sub(r"</div>\s*", "\n", result, flags=re.IGNORECASE)
    result = re.sub(r"<div[^>]*>", "", result, flags=re.IGNORECASE)
    result = re.sub(r"<br\s*/?>", "\n", result, flags=re.IGNORECASE)
    result = re.sub(r"<li[^>]*>", "\n• ", result, flags=re.IGNORECASE)
    result = re.sub(r"</li>", "", result, flags=re.IGNORECASE)
    result = re.sub(r"</?[ou]l[^>]*>", "\n", result, flags=re.IGNORECASE)
    result = re.sub(r"<h[1-6][^>]*>", "\n\n", result, flags=re.IGNORECASE)
    result = re.sub(r"</h[1-6]>", "\n", result, flags=re.IGNORECASE)

    # Remove remaining HTML tags
    result = re.sub(r"<[^>]+>", "", result)

    result = decode_entities(result)
    result = fix_encoding_artifacts(result)
    result = normalize_whitespace(result)

    return result if result else None


def clip(text: str | None, limit: int = DESCRIPTION_LIMIT) -> str | None:
    """Hard-cut text at ``limit`` characters (no suffix)."""
    if not text:
        return None
    return text[:limit]


def labeled_field(
    text: str | None,
    labels: str,
    stop_labels: str = "",
    multiline: bool = False,
) -> str | None:
    """Extract the value following a "Label:" marker.

    Blog bodies often run fields together ("Hares: Foo Venue: The Bull"), so
    the value ends at the next known label, at a newline (unless
    ``multiline``) or at the end of the text.

    Args:
        text: Body text
        labels: Regex alternation of label words, e.g. "Hares?|Who"
        stop_labels: Regex alternation of labels that end the value
        multiline: Let the value continue across newlines

    Returns:
        The value with whitespace collapsed, or None
    """
    if not text:
        return None

    terminators = [r"$"]
    if stop_labels:
        terminators.insert(0, rf"\b(?:{stop_labels})\s*:")
    if not multiline:
        terminators.insert(0, r"\n")

    pattern = rf"\b(?:{labels})\s*:\s*(.+?)(?={'|'.join(terminators)})"
    flags = re.IGNORECASE | (re.DOTALL if multiline else 0)
    match = re.search(pattern, text, flags)
    if not match:
        return None
    value = normalize_whitespace(match.group(1), preserve_newlines=False)
    return value or None
