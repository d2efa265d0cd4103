"""Content item store operations.

These functions are the public surface a renderer or build script uses:

- load: Parse (identifier, text) pairs into a validated ContentCollection.
- load_project: Read ``folio.yaml`` and the content directory of a project.
- list_posts: Posts, most recent first.
- list_pages: Pages in load order.
- find_by_permalink: Item at a path, or None.
- filter_by_category: Lazy, restartable view of the posts in a category.

Every call to ``load`` builds a brand-new collection; collections are never
updated in place.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from pathlib import Path
from typing import Any

from .collections import ContentCollection, TaxonomyView
from .config import SiteConfig, load_config
from .content import ContentProcessor
from .models import ContentItem


def load(
    raw_sources: Iterable[tuple[str, str]],
    config: SiteConfig | Mapping[str, Any] | None = None,
) -> ContentCollection:
    """Parse and validate a batch of sources.

    Args:
        raw_sources: (identifier, text) pairs. Identifiers are paths relative
            to the content directory; sources under the posts folder
            (``_posts/`` by default) are posts, the rest are pages.
        config: SiteConfig, a mapping of settings, or None for defaults.

    Returns:
        ContentCollection with items in source order.

    Raises:
        ContentLoadError: With every problem found in the batch.
    """
    if not isinstance(config, SiteConfig):
        config = SiteConfig.from_mapping(config)
    return ContentProcessor(config).load_sources(list(raw_sources))


def load_project(project_root: Path) -> ContentCollection:
    """Load the content of a project using its folio.yaml.

    Args:
        project_root: Directory holding folio.yaml and the content directory.

    Returns:
        ContentCollection.

    Raises:
        ContentLoadError: With every problem found, unreadable files included.
        FileNotFoundError: If the content directory is missing.
    """
    config = load_config(project_root)
    return ContentProcessor(config).load_directory(project_root / config.content_dir)


def list_posts(collection: ContentCollection) -> list[ContentItem]:
    return list(collection.posts())


def list_pages(collection: ContentCollection) -> list[ContentItem]:
    return list(collection.pages())


def find_by_permalink(collection: ContentCollection, path: str) -> ContentItem | None:
    return collection.find(path)


def filter_by_category(collection: ContentCollection, category: str) -> TaxonomyView:
    return collection.with_category(category)
