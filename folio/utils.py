"""Utility functions for Folio.

This module contains the small string and path helpers shared by the
extractors, the permalink deriver and the CLI.

Key functions:
    slugify: Convert filenames to URL slugs.
    titleize: Convert filenames to human-readable titles.
    extract_date_from_name: Extract date from filename prefix.
    strip_date_prefix: Drop a YYYY-MM-DD- prefix from a filename stem.
    normalize_permalink: Apply the leading/trailing slash rules to a path.
    split_terms: Turn a front-matter list or string into a set of names.
    first_paragraph: Extract the first prose paragraph of a body.
    has_extension: Check a path against the configured source extensions.
"""

from __future__ import annotations

import re
from collections.abc import Iterable
from datetime import datetime
from pathlib import PurePosixPath

_MULTI_SLASH_RE = re.compile(r"/{2,}")


def _date_prefix_parts(name: str) -> list[str] | None:
    parts = name.split("-")
    if len(parts) >= 4 and all(p.isdigit() for p in parts[:3]):
        return parts
    return None


def strip_date_prefix(name: str) -> str:
    """Remove a leading YYYY-MM-DD- prefix from a filename stem.

    Args:
        name: Filename stem.

    Returns:
        The stem without its date prefix, or the stem unchanged.
    """
    parts = _date_prefix_parts(name)
    if parts is None:
        return name
    return "-".join(parts[3:])


def slugify(name: str) -> str:
    """Convert filename (without extension) to slug, dropping date prefix.

    Args:
        name: Filename stem.

    Returns:
        URL-friendly slug.
    """
    cleaned = strip_date_prefix(name)
    cleaned = re.sub(r"[^a-zA-Z0-9]+", "-", cleaned)
    cleaned = cleaned.strip("-").lower()
    return cleaned or "index"


def titleize(filename: str) -> str:
    """Convert a filename to a human-readable title.

    Removes date prefixes (YYYY-MM-DD), replaces hyphens and underscores
    with spaces, and capitalizes each word.

    Args:
        filename: Filename with or without extension.

    Returns:
        Human-readable title string.

    Examples:
        >>> titleize("2022-11-14-kotlin-coroutines.md")
        'Kotlin Coroutines'

        >>> titleize("about.md")
        'About'
    """
    base = strip_date_prefix(PurePosixPath(filename).stem)
    words = re.split(r"[\s\-_]+", base)
    return " ".join(word.capitalize() for word in words if word) or "Untitled"


def extract_date_from_name(name: str) -> datetime | None:
    """Extract a date from a filename with YYYY-MM-DD prefix.

    Args:
        name: Filename stem (without extension).

    Returns:
        Naive datetime at midnight if a valid date prefix is found, None otherwise.

    Examples:
        >>> extract_date_from_name("2022-11-14-hello-world")
        datetime.datetime(2022, 11, 14, 0, 0)

        >>> extract_date_from_name("hello-world") is None
        True
    """
    parts = name.split("-")
    if len(parts) >= 3 and all(p.isdigit() for p in parts[:3]):
        try:
            return datetime(int(parts[0]), int(parts[1]), int(parts[2]))
        except ValueError:
            return None
    return None


def normalize_permalink(path: str) -> str:
    """Normalize a permalink so equal URLs compare equal.

    Rules: surrounding whitespace is stripped, backslashes become slashes,
    there is always exactly one leading slash, runs of slashes collapse,
    and a trailing slash is added unless the last segment carries a file
    extension. Case is preserved.

    Args:
        path: Raw permalink or lookup path.

    Returns:
        Normalized permalink.

    Examples:
        >>> normalize_permalink("about")
        '/about/'

        >>> normalize_permalink("//feed.xml")
        '/feed.xml'
    """
    cleaned = str(path).strip().replace("\\", "/")
    cleaned = _MULTI_SLASH_RE.sub("/", f"/{cleaned}")
    if cleaned == "/":
        return cleaned
    last = cleaned.rstrip("/").rsplit("/", 1)[-1]
    if "." in last.lstrip(".") and not cleaned.endswith("/"):
        return cleaned
    return cleaned.rstrip("/") + "/"


def split_terms(value: object) -> frozenset[str]:
    """Turn a categories/tags front-matter value into a set of names.

    Accepts a list of names or a single string of whitespace-separated
    names (both forms are common in static-site front matter). Scalars such
    as numbers are converted to strings; empty names are dropped.

    Args:
        value: Raw front-matter value (None, str, list, tuple, set or scalar).

    Returns:
        Frozen set of category or tag names.
    """
    if value is None:
        return frozenset()
    if isinstance(value, str):
        items: Iterable[object] = value.split()
    elif isinstance(value, (list, tuple, set, frozenset)):
        items = value
    else:
        items = [value]
    return frozenset(str(item).strip() for item in items if str(item).strip())


def first_paragraph(text: str, separator: str = "\n\n") -> str:
    """Extract the first prose paragraph from a markup body.

    Skips headings, images, fenced code and horizontal rules, then
    collapses whitespace. The text is not rendered.

    Args:
        text: Markup body.
        separator: String separating paragraphs.

    Returns:
        The first paragraph as a single line, or an empty string.
    """
    paragraphs = [p.strip() for p in text.split(separator) if p.strip()]
    for para in paragraphs:
        if para.startswith("#"):
            continue
        if para.startswith(("![", "```", "---")):
            continue
        return " ".join(para.split())
    return ""


def first_heading(text: str) -> str | None:
    """Return the text of the first level-1 markdown heading, if any."""
    for line in text.splitlines():
        stripped = line.strip()
        if stripped.startswith("# "):
            return stripped.lstrip("# ").strip() or None
    return None


def has_extension(path: PurePosixPath, extensions: Iterable[str]) -> bool:
    """Check if a path ends with one of the given extensions (case-insensitive).

    Args:
        path: Path to check.
        extensions: Extensions including the leading dot.

    Returns:
        True if the path's suffix is one of the extensions.
    """
    suffix = path.suffix.lower()
    return any(suffix == ext.lower() for ext in extensions)
