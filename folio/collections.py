from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping, Sequence

from .models import ContentItem
from .utils import normalize_permalink


def _newest_first(items: Iterable[ContentItem]) -> tuple[ContentItem, ...]:
    # Ascending source first, then a stable sort on date descending, so
    # equal dates keep source order.
    by_source = sorted(items, key=lambda item: item.source)
    return tuple(
        sorted(
            by_source,
            key=lambda item: (item.date is not None, item.date),
            reverse=True,
        )
    )


class TaxonomyView(Iterable[ContentItem]):
    """Lazy, restartable view of the posts carrying one category or tag.

    Nothing is filtered until the view is iterated, and every iteration
    starts over from the same newest-first post list, so the order is the
    same each time.
    """

    def __init__(self, posts: Sequence[ContentItem], attribute: str, name: str):
        self._posts = posts
        self._attribute = attribute
        self.name = name

    def __iter__(self) -> Iterator[ContentItem]:
        return (p for p in self._posts if self.name in getattr(p, self._attribute))

    def __len__(self) -> int:
        return sum(1 for _ in self)

    def __bool__(self) -> bool:
        return any(True for _ in self)

    def __repr__(self) -> str:  # pragma: no cover - for debugging
        return f"TaxonomyView({self._attribute}={self.name!r})"


class ContentCollection(Sequence[ContentItem]):
    """Immutable, ordered collection of content items.

    Items keep the order they were loaded in. Permalinks must be unique;
    ``load`` reports duplicates as problems before a collection is ever
    built, and constructing one directly with duplicates raises ValueError.
    """

    def __init__(self, items: Iterable[ContentItem]):
        self._items = tuple(items)
        by_permalink: dict[str, ContentItem] = {}
        for item in self._items:
            if item.permalink in by_permalink:
                raise ValueError(
                    f"Duplicate permalink {item.permalink}: "
                    f"{by_permalink[item.permalink].source} and {item.source}"
                )
            by_permalink[item.permalink] = item
        self._by_permalink = by_permalink
        self._posts = _newest_first(i for i in self._items if i.is_post)
        self._pages = tuple(i for i in self._items if i.is_page)

    def __iter__(self) -> Iterator[ContentItem]:
        return iter(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def __getitem__(self, item):
        return self._items[item]

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ContentCollection):
            return NotImplemented
        return self._items == other._items

    __hash__ = None  # type: ignore[assignment]

    def posts(self) -> tuple[ContentItem, ...]:
        """Return posts, most recent first; equal dates ordered by source."""
        return self._posts

    def pages(self) -> tuple[ContentItem, ...]:
        """Return pages in load order."""
        return self._pages

    def find(self, path: str) -> ContentItem | None:
        """Return the item at a permalink, or None.

        The path is normalized first, so ``about`` finds ``/about/``.
        """
        return self._by_permalink.get(normalize_permalink(path))

    def permalinks(self) -> list[str]:
        return list(self._by_permalink)

    def with_category(self, category: str) -> TaxonomyView:
        return TaxonomyView(self._posts, "categories", category)

    def with_tag(self, tag: str) -> TaxonomyView:
        return TaxonomyView(self._posts, "tags", tag)

    def categories(self) -> CategoryIndex:
        """Return an index of category name to posts, names sorted."""
        mapping: dict[str, list[ContentItem]] = {}
        for post in self._posts:
            for name in post.categories:
                mapping.setdefault(name, []).append(post)
        return CategoryIndex({name: mapping[name] for name in sorted(mapping)})

    def __repr__(self) -> str:  # pragma: no cover - for debugging
        return f"ContentCollection({len(self._posts)} posts, {len(self._pages)} pages)"


class CategoryIndex(Mapping[str, tuple[ContentItem, ...]]):
    """Mapping of category name to its posts (newest first)."""

    def __init__(self, mapping: dict[str, Iterable[ContentItem]]):
        self._mapping = {k: tuple(v) for k, v in mapping.items()}

    def __getitem__(self, key: str) -> tuple[ContentItem, ...]:
        return self._mapping[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._mapping)

    def __len__(self) -> int:
        return len(self._mapping)

    def counts(self) -> dict[str, int]:
        return {name: len(posts) for name, posts in self._mapping.items()}

    def __repr__(self) -> str:  # pragma: no cover - for debugging
        return f"CategoryIndex({len(self._mapping)} categories)"
