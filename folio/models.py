"""Content item model for Folio.

Key classes:
- ContentKind: Tag distinguishing pages from posts.
- ContentItem: Immutable content item with its metadata and raw body.
- SourceText: An (identifier, text) pair fed into ``load``.
- FrontMatter: Read-only mapping for front-matter keys passed through as-is.
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, NamedTuple


class ContentKind(str, Enum):
    """Which variant a content item is."""

    PAGE = "page"
    POST = "post"


class SourceText(NamedTuple):
    """Raw source handed to the loader.

    Attributes:
        identifier: Stable name of the source, usually its path relative to
            the content directory using forward slashes.
        text: Full text including any front-matter block.
    """

    identifier: str
    text: str


def _freeze(value: Any) -> Any:
    """Return a read-only copy of a parsed YAML value."""
    if isinstance(value, Mapping):
        return FrontMatter(value)
    if isinstance(value, (list, tuple)):
        return tuple(_freeze(item) for item in value)
    if isinstance(value, (set, frozenset)):
        return frozenset(_freeze(item) for item in value)
    return value


class FrontMatter(Mapping[str, Any]):
    """Read-only mapping of pass-through front-matter keys.

    Nested mappings become FrontMatter and lists become tuples, so values
    cannot be changed through the mapping either.
    """

    def __init__(self, values: Mapping[str, Any] | None = None):
        self._data = {key: _freeze(value) for key, value in (values or {}).items()}

    def __getitem__(self, key: str) -> Any:
        return self._data[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._data)

    def __len__(self) -> int:
        return len(self._data)

    def __repr__(self) -> str:
        return f"FrontMatter({self._data!r})"


@dataclass(frozen=True)
class ContentItem:
    """A page or post with its metadata and untouched body.

    Items are values: they are built once at load time, never mutated, and
    two loads of the same text produce equal items.

    Attributes:
        kind: Page or post.
        permalink: Normalized public path, unique in a collection.
        title: Human-readable title.
        layout: Name of the external template to apply.
        body: Raw markup body, never parsed here.
        source: Identifier of the source the item was built from.
        date: Publication date; always set for posts.
        categories: Category names.
        tags: Tag names.
        slug: URL-friendly name used when deriving permalinks.
        excerpt: Raw first paragraph of the body.
        extra_front_matter: Front-matter keys not modeled by the fields above.
    """

    kind: ContentKind
    permalink: str
    title: str
    layout: str
    body: str
    source: str
    date: datetime | None = None
    categories: frozenset[str] = frozenset()
    tags: frozenset[str] = frozenset()
    slug: str = ""
    excerpt: str = ""
    extra_front_matter: Mapping[str, Any] = field(default_factory=FrontMatter, hash=False)

    def __post_init__(self) -> None:
        # Callers may pass plain dicts/lists; store read-only copies.
        object.__setattr__(self, "categories", frozenset(self.categories))
        object.__setattr__(self, "tags", frozenset(self.tags))
        object.__setattr__(
            self, "extra_front_matter", FrontMatter(self.extra_front_matter)
        )

    @property
    def is_post(self) -> bool:
        return self.kind is ContentKind.POST

    @property
    def is_page(self) -> bool:
        return self.kind is ContentKind.PAGE

    def display_date(self, fmt: str = "%b %d, %Y") -> str:
        """Format the item's date for display; empty for undated items."""
        if self.date is None:
            return ""
        return self.date.strftime(fmt)
