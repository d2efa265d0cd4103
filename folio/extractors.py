"""Front-matter parsing and metadata extractors for Folio.

Parsing a source happens in two steps. :func:`split_front_matter` separates
the YAML block from the body and refuses anything that is not a mapping.
A :class:`CompositeMetadataExtractor` then runs small extractors over the
parsed source; each one owns a single field (or a closely related pair) and
returns a dictionary that is merged into the item's metadata.

Extractors never decide whether a field is required. They leave a field
out when it is absent and raise :class:`FieldValueError` when a value is
present but unusable; the item builder turns both into load problems.

Key classes:
- ParsedSource: A source after its front matter has been split off.
- TitleExtractor: Title from front matter, heading or filename.
- DateExtractor: Date from front matter or filename prefix.
- TaxonomyExtractor: Categories and tags.
- LayoutExtractor: Layout from front matter or the configured default.
- SlugExtractor: Slug from front matter or filename.
- ExcerptExtractor: Raw first paragraph of the body.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, tzinfo
from pathlib import PurePosixPath
from typing import Any

import yaml

from .config import SiteConfig
from .errors import FrontMatterError
from .models import ContentKind
from .protocols import MetadataExtractor
from .utils import (
    extract_date_from_name,
    first_heading,
    first_paragraph,
    slugify,
    split_terms,
    titleize,
)

# Keys consumed by the extractors; everything else is passed through.
MODELED_KEYS = frozenset(
    {
        "title",
        "date",
        "layout",
        "permalink",
        "categories",
        "category",
        "tags",
        "tag",
        "slug",
        "excerpt",
    }
)


class FieldValueError(ValueError):
    """A front-matter field is present but its value cannot be used.

    Attributes:
        field: Name of the offending field.
    """

    def __init__(self, field: str, message: str):
        self.field = field
        super().__init__(message)


def split_front_matter(text: str, delimiter: str = "---") -> tuple[dict[str, Any], str]:
    """Split a YAML front-matter block from the body.

    A source with no front matter yields an empty mapping and the full text
    as body. A source that opens a block must close it, and the block must
    hold a YAML mapping (an empty block counts as an empty mapping).

    Args:
        text: Raw source text.
        delimiter: Fence line opening and closing the block.

    Returns:
        Tuple of (front matter dict, body).

    Raises:
        FrontMatterError: If the block is unclosed, is not valid YAML, or is
            not a mapping.
    """
    if text.startswith("\ufeff"):
        text = text[1:]
    lines = text.splitlines(keepends=True)
    if not lines or lines[0].strip() != delimiter:
        return {}, text
    for index, line in enumerate(lines[1:], start=1):
        if line.strip() == delimiter:
            block = "".join(lines[1:index])
            body = "".join(lines[index + 1 :])
            break
    else:
        raise FrontMatterError(f"front matter opened with '{delimiter}' is never closed")
    try:
        data = yaml.safe_load(block)
    except yaml.YAMLError as exc:
        raise FrontMatterError(f"front matter is not valid YAML: {_yaml_reason(exc)}") from exc
    if data is None:
        return {}, body
    if not isinstance(data, dict):
        raise FrontMatterError(
            f"front matter must be a mapping, got {type(data).__name__}"
        )
    return {str(k): v for k, v in data.items()}, body


def _yaml_reason(exc: yaml.YAMLError) -> str:
    problem = getattr(exc, "problem", None)
    mark = getattr(exc, "problem_mark", None)
    if problem and mark is not None:
        # Mark lines are relative to the block; +2 accounts for the fence.
        return f"{problem} (line {mark.line + 2})"
    return str(exc).splitlines()[0] if str(exc) else type(exc).__name__


def coerce_date(value: Any, tz: tzinfo, formats: tuple[str, ...] = ()) -> datetime:
    """Convert a front-matter date value to a timezone-aware datetime.

    YAML already turns ISO dates and timestamps into ``date``/``datetime``
    objects; strings are tried against ISO format and then ``formats``.
    Date-only and naive values are placed in ``tz``; values with an offset
    keep it.

    Args:
        value: Raw value from front matter or filename.
        tz: Zone for date-only and naive values.
        formats: Extra strptime formats for string values.

    Returns:
        Timezone-aware datetime.

    Raises:
        ValueError: If the value cannot be read as a date.
    """
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        parsed = datetime(value.year, value.month, value.day)
    elif isinstance(value, str) and value.strip():
        parsed = _parse_date_string(value.strip(), formats)
    else:
        raise ValueError(f"unsupported date value {value!r}")
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=tz)
    return parsed


def _parse_date_string(value: str, formats: tuple[str, ...]) -> datetime:
    try:
        return datetime.fromisoformat(value)
    except ValueError:
        pass
    for fmt in formats:
        try:
            return datetime.strptime(value, fmt)
        except ValueError:
            continue
    raise ValueError(f"unrecognized date {value!r}")


@dataclass(frozen=True)
class ParsedSource:
    """A source whose front matter has been split from its body.

    Attributes:
        identifier: Source identifier.
        path: Identifier as a path, for filename-derived fields.
        kind: Page or post, decided by the source location.
        front_matter: Parsed front-matter mapping.
        body: Body text after the front matter.
        config: Active site configuration.
    """

    identifier: str
    path: PurePosixPath
    kind: ContentKind
    front_matter: dict[str, Any]
    body: str
    config: SiteConfig


class TitleExtractor:
    """Extracts the title.

    Posts must declare a title in front matter. Pages fall back to the
    first level-1 heading and then to the titleized filename.
    """

    def extract(self, source: ParsedSource) -> dict[str, Any]:
        title = source.front_matter.get("title")
        if title is not None and str(title).strip():
            return {"title": str(title).strip()}
        if source.kind is ContentKind.POST:
            return {}
        heading = first_heading(source.body)
        return {"title": heading or titleize(source.path.name)}


class DateExtractor:
    """Extracts the publication date.

    Looks for ``date`` in front matter and, for posts when enabled, falls
    back to a YYYY-MM-DD- filename prefix.
    """

    def extract(self, source: ParsedSource) -> dict[str, Any]:
        config = source.config
        raw = source.front_matter.get("date")
        if raw is not None:
            try:
                return {"date": coerce_date(raw, config.zone(), config.date_formats)}
            except ValueError as exc:
                raise FieldValueError("date", f"invalid date: {exc}") from exc
        if source.kind is ContentKind.POST and config.date_from_filename:
            from_name = extract_date_from_name(source.path.stem)
            if from_name is not None:
                return {"date": coerce_date(from_name, config.zone())}
        return {}


class TaxonomyExtractor:
    """Extracts categories and tags.

    Accepts the plural and singular keys, as lists or whitespace-separated
    strings.
    """

    def extract(self, source: ParsedSource) -> dict[str, Any]:
        fm = source.front_matter
        categories = split_terms(fm.get("categories")) | split_terms(fm.get("category"))
        tags = split_terms(fm.get("tags")) | split_terms(fm.get("tag"))
        return {"categories": categories, "tags": tags}


class LayoutExtractor:
    def extract(self, source: ParsedSource) -> dict[str, Any]:
        layout = source.front_matter.get("layout")
        if layout is None or not str(layout).strip():
            layout = source.config.layout_for(source.kind.value)
        return {"layout": str(layout).strip()}


class SlugExtractor:
    def extract(self, source: ParsedSource) -> dict[str, Any]:
        slug = source.front_matter.get("slug")
        if slug is not None and str(slug).strip():
            return {"slug": slugify(str(slug))}
        return {"slug": slugify(source.path.stem)}


class ExcerptExtractor:
    """Extracts the excerpt as raw text.

    Front matter ``excerpt`` wins; otherwise the first paragraph of the
    body up to the configured separator.
    """

    def extract(self, source: ParsedSource) -> dict[str, Any]:
        explicit = source.front_matter.get("excerpt")
        if explicit is not None:
            return {"excerpt": " ".join(str(explicit).split())}
        return {"excerpt": first_paragraph(source.body, source.config.excerpt_separator)}


class CompositeMetadataExtractor:
    """Combines multiple metadata extractors.

    Runs every registered extractor on the parsed source and merges their
    results; later extractors override earlier ones. Field errors are
    collected rather than stopping at the first one.
    """

    def __init__(self, extractors: list[MetadataExtractor] | None = None):
        """Initialize with a list of extractors.

        Args:
            extractors: List of MetadataExtractor implementations.
                       If None, uses default extractors.
        """
        if extractors is None:
            self._extractors = [
                TitleExtractor(),
                DateExtractor(),
                TaxonomyExtractor(),
                LayoutExtractor(),
                SlugExtractor(),
                ExcerptExtractor(),
            ]
        else:
            self._extractors = list(extractors)

    def add_extractor(self, extractor) -> None:
        self._extractors.append(extractor)

    def extract(self, source: ParsedSource) -> tuple[dict[str, Any], list[FieldValueError]]:
        """Extract all metadata from a parsed source.

        Args:
            source: Parsed source.

        Returns:
            Tuple of (merged metadata, field errors raised by extractors).
        """
        result: dict[str, Any] = {}
        errors: list[FieldValueError] = []
        for extractor in self._extractors:
            try:
                result.update(extractor.extract(source))
            except FieldValueError as exc:
                errors.append(exc)
        return result, errors


def extra_front_matter(front_matter: dict[str, Any]) -> dict[str, Any]:
    """Return the front-matter keys not consumed by the extractors."""
    return {k: v for k, v in front_matter.items() if k not in MODELED_KEYS}


# Default composite extractor instance
default_metadata_extractor = CompositeMetadataExtractor()

