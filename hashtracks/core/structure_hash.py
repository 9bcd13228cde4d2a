"""Structural fingerprint of a fetched HTML document.

The fingerprint only looks at markup shape (tags, class names, nesting of
tables and containers), never at text or attribute values, so it is stable
while a site publishes new runs and changes when the site template changes.
"""

import hashlib

from bs4 import BeautifulSoup, Tag

CONTAINER_TAGS = ("div", "section", "article", "ul", "main")
MAX_CONTAINER_DEPTH = 4
SAMPLE_ROWS = 3


def _classes(el: Tag) -> str:
    return " ".join(el.get("class") or [])


def _table_skeleton(table: Tag) -> list[str]:
    lines = [f"TABLE:{_classes(table)}"]
    # First rows only: content rows vary in number between fetches
    for row in table.find_all("tr")[:SAMPLE_ROWS]:
        cells = []
        for cell in row.find_all(["td", "th"], recursive=False):
            child_tags = ",".join(child.name for child in cell.find_all(True, recursive=False))
            cells.append(f"{cell.name.upper()}[{_classes(cell)}]{{{child_tags}}}")
        lines.append("TR:" + "|".join(cells))
    return lines


def _container_skeleton(root: Tag, depth: int = 0) -> list[str]:
    if depth >= MAX_CONTAINER_DEPTH:
        return []
    lines: list[str] = []
    for child in root.find_all(True, recursive=False):
        if child.name in CONTAINER_TAGS and (child.get("class") or child.get("id")):
            classes = ".".join(child.get("class") or [])
            lines.append(f"{'  ' * depth}{child.name}.{classes}" if classes else f"{'  ' * depth}{child.name}#")
        lines.extend(_container_skeleton(child, depth + 1))
    return lines


def structure_skeleton(html: str) -> list[str]:
    """Text lines describing the document shape (exposed for debugging)."""
    soup = BeautifulSoup(html, "html.parser")
    skeleton: list[str] = []

    tables = soup.find_all("table")
    if not tables:
        skeleton.append("NO_TABLES")
    for table in tables:
        skeleton.extend(_table_skeleton(table))

    root = soup.body or soup
    skeleton.extend(_container_skeleton(root))
    return skeleton


def generate_structure_hash(html: str) -> str:
    """Return the sha256 hex digest of the document skeleton."""
    skeleton = structure_skeleton(html)
    return hashlib.sha256("\n".join(skeleton).encode("utf-8")).hexdigest()
