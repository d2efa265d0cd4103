"""Content loading for Folio.

This module turns raw sources into :class:`~folio.models.ContentItem`
values. It parses front matter, runs the metadata extractors, derives
permalinks, validates each item, and finally checks permalink uniqueness
across the whole batch.

Key classes:
- FileSourceLoader: Implementation of SourceLoader for a content directory.
- PermalinkDeriver: Derives permalinks for items that do not declare one.
- DefaultItemBuilder: Implementation of ItemBuilder.
- ContentProcessor: Facade that loads a batch and raises every problem at once.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from pathlib import Path, PurePosixPath
from typing import Any

from .collections import ContentCollection
from .config import SiteConfig
from .errors import ContentLoadError, FrontMatterError, LoadProblem, ProblemKind
from .extractors import (
    CompositeMetadataExtractor,
    ParsedSource,
    default_metadata_extractor,
    extra_front_matter,
    split_front_matter,
)
from .models import ContentItem, ContentKind, SourceText
from .protocols import ItemBuilder
from .utils import has_extension, normalize_permalink, slugify

REQUIRED_POST_FIELDS = ("title", "date")


class FileSourceLoader:
    """Reads sources from a content directory.

    Walks the directory in sorted order and reads every file with a source
    extension. Folders starting with ``_`` (layouts, includes, drafts) are
    skipped except the configured posts folder, as are files whose name
    starts with ``_`` or ``.``. Identifiers are paths relative to the
    content directory with forward slashes.

    Attributes:
        content_dir: Directory containing sources.
        config: Active site configuration.
    """

    def __init__(self, content_dir: Path, config: SiteConfig | None = None):
        self.content_dir = content_dir
        self.config = config or SiteConfig()

    def iter_files(self) -> list[Path]:
        """List source files in deterministic order.

        Returns:
            Sorted list of paths to source files.
        """
        files: list[Path] = []
        for path in sorted(self.content_dir.rglob("*")):
            if path.is_dir():
                continue
            rel = path.relative_to(self.content_dir)
            if not self._is_visible(rel):
                continue
            if has_extension(PurePosixPath(rel.as_posix()), self.config.extensions):
                files.append(path)
        return files

    def _is_visible(self, rel: Path) -> bool:
        folders = rel.parts[:-1]
        for index, part in enumerate(folders):
            if part.startswith("."):
                return False
            if part.startswith("_") and not (index == 0 and part == self.config.posts_dir):
                return False
        return not rel.name.startswith(("_", "."))

    def read_sources(self) -> tuple[list[SourceText], list[LoadProblem]]:
        """Read every source file.

        Returns:
            Tuple of (sources read, UNREADABLE_SOURCE problems).
        """
        sources: list[SourceText] = []
        problems: list[LoadProblem] = []
        for path in self.iter_files():
            identifier = path.relative_to(self.content_dir).as_posix()
            try:
                text = path.read_text(encoding="utf-8")
            except (OSError, UnicodeDecodeError) as exc:
                problems.append(
                    LoadProblem(
                        ProblemKind.UNREADABLE_SOURCE,
                        identifier,
                        f"cannot read source: {exc}",
                    )
                )
                continue
            sources.append(SourceText(identifier, text))
        return sources, problems


class PermalinkDeriver:
    """Derives permalinks for items without an explicit one.

    Pages map their location to a path (``about.md`` becomes ``/about/``,
    ``index.md`` becomes ``/``). Posts expand the configured pattern, where
    ``:categories`` is the sorted, slugified category list joined by ``/``,
    ``:year``/``:month``/``:day`` come from the date and ``:title``/``:slug``
    are the item slug.
    """

    def derive(
        self,
        path: PurePosixPath,
        kind: ContentKind,
        metadata: dict[str, Any],
        config: SiteConfig,
    ) -> str:
        slug = metadata.get("slug") or slugify(path.stem)
        if kind is ContentKind.POST:
            return self._derive_post(slug, metadata, config.post_permalink)
        return self._derive_page(path, slug)

    def _derive_page(self, path: PurePosixPath, slug: str) -> str:
        segments = [p for p in path.parent.parts if p not in ("", ".")]
        url_parts = segments if slug == "index" else segments + [slug]
        return normalize_permalink("/".join(url_parts))

    def _derive_post(self, slug: str, metadata: dict[str, Any], pattern: str) -> str:
        date = metadata["date"]
        categories = "/".join(sorted(slugify(c) for c in metadata.get("categories", ())))
        replacements = {
            ":categories": categories,
            ":year": f"{date.year:04d}",
            ":month": f"{date.month:02d}",
            ":day": f"{date.day:02d}",
            ":title": slug,
            ":slug": slug,
        }
        expanded = pattern
        # Longest placeholders first so ":title" never eats part of another name.
        for key in sorted(replacements, key=len, reverse=True):
            expanded = expanded.replace(key, replacements[key])
        return normalize_permalink(expanded)


class DefaultItemBuilder:
    """Builds ContentItem values from sources.

    Coordinates front-matter parsing, metadata extraction, validation and
    permalink derivation for a single source. Problems are returned rather
    than raised so that the caller can report every source in one go.

    Attributes:
        config: Active site configuration.
        metadata_extractor: Composite metadata extractor.
        permalink_deriver: Permalink deriver instance.
    """

    def __init__(
        self,
        config: SiteConfig | None = None,
        metadata_extractor: CompositeMetadataExtractor | None = None,
        permalink_deriver: PermalinkDeriver | None = None,
    ):
        self.config = config or SiteConfig()
        self.metadata_extractor = metadata_extractor or default_metadata_extractor
        self.permalink_deriver = permalink_deriver or PermalinkDeriver()

    def kind_for(self, path: PurePosixPath) -> ContentKind:
        """Posts are the sources under the posts folder; everything else is a page."""
        if len(path.parts) > 1 and path.parts[0] == self.config.posts_dir:
            return ContentKind.POST
        return ContentKind.PAGE

    def build(self, source: SourceText) -> tuple[ContentItem | None, list[LoadProblem]]:
        """Build an item from one source.

        Args:
            source: Identifier and text of the source.

        Returns:
            Tuple of (item, problems). The item is None whenever problems
            were found.
        """
        identifier = source.identifier
        path = PurePosixPath(identifier.replace("\\", "/"))
        kind = self.kind_for(path)
        try:
            front_matter, body = split_front_matter(
                source.text, self.config.front_matter_delimiter
            )
        except FrontMatterError as exc:
            return None, [
                LoadProblem(ProblemKind.MALFORMED_FRONT_MATTER, identifier, str(exc))
            ]

        parsed = ParsedSource(
            identifier=identifier,
            path=path,
            kind=kind,
            front_matter=front_matter,
            body=body,
            config=self.config,
        )
        metadata, field_errors = self.metadata_extractor.extract(parsed)
        problems = [
            LoadProblem(
                ProblemKind.MALFORMED_FRONT_MATTER, identifier, str(err), field=err.field
            )
            for err in field_errors
        ]
        invalid = {err.field for err in field_errors}

        permalink = front_matter.get("permalink")
        if permalink is not None and (
            isinstance(permalink, bool) or not isinstance(permalink, (str, int))
        ):
            problems.append(
                LoadProblem(
                    ProblemKind.MALFORMED_FRONT_MATTER,
                    identifier,
                    "permalink must be a string",
                    field="permalink",
                )
            )

        if kind is ContentKind.POST:
            for name in REQUIRED_POST_FIELDS:
                if name not in metadata and name not in invalid:
                    problems.append(
                        LoadProblem(
                            ProblemKind.MISSING_REQUIRED_FIELD,
                            identifier,
                            f"post is missing required field '{name}'",
                            field=name,
                        )
                    )

        if not body.strip():
            problems.append(
                LoadProblem(ProblemKind.EMPTY_BODY, identifier, "body is empty")
            )

        if problems:
            return None, problems

        if permalink is not None and str(permalink).strip():
            resolved = normalize_permalink(str(permalink))
        else:
            resolved = self.permalink_deriver.derive(path, kind, metadata, self.config)

        item = ContentItem(
            kind=kind,
            permalink=resolved,
            title=metadata["title"],
            layout=metadata["layout"],
            body=body,
            source=identifier,
            date=metadata.get("date"),
            categories=metadata.get("categories", frozenset()),
            tags=metadata.get("tags", frozenset()),
            slug=metadata.get("slug", ""),
            excerpt=metadata.get("excerpt", ""),
            extra_front_matter=extra_front_matter(front_matter),
        )
        return item, []


def find_duplicate_permalinks(items: Iterable[ContentItem]) -> list[LoadProblem]:
    """Report every item whose permalink was already claimed.

    Each problem names the later source and the first source that resolved
    to the same permalink.

    Args:
        items: Items in load order.

    Returns:
        DUPLICATE_PERMALINK problems, in load order.
    """
    owners: dict[str, str] = {}
    problems: list[LoadProblem] = []
    for item in items:
        first = owners.get(item.permalink)
        if first is None:
            owners[item.permalink] = item.source
            continue
        problems.append(
            LoadProblem(
                ProblemKind.DUPLICATE_PERMALINK,
                item.source,
                f"permalink {item.permalink} is also used by {first}",
                field="permalink",
                other_source=first,
            )
        )
    return problems


class ContentProcessor:
    """Facade for loading a batch of sources into a ContentCollection.

    Every source is built independently; the duplicate permalink check then
    runs over the items that built cleanly. Any problem, including
    unreadable sources reported by the loader, aborts the load with a single
    ContentLoadError carrying all of them.

    Attributes:
        config: Active site configuration.
    """

    def __init__(
        self,
        config: SiteConfig | None = None,
        item_builder: ItemBuilder | None = None,
    ):
        self.config = config or SiteConfig()
        self._item_builder = item_builder or DefaultItemBuilder(self.config)

    def load_sources(
        self,
        sources: Sequence[SourceText] | Iterable[tuple[str, str]],
        problems: Iterable[LoadProblem] = (),
    ) -> ContentCollection:
        """Build and validate a collection from raw sources.

        Args:
            sources: (identifier, text) pairs.
            problems: Problems already found while reading the sources.

        Returns:
            ContentCollection with items in source order.

        Raises:
            ContentLoadError: If any problem was found.
        """
        found = list(problems)
        items: list[ContentItem] = []
        for raw in sources:
            source = SourceText(*raw)
            item, item_problems = self._item_builder.build(source)
            found.extend(item_problems)
            if item is not None:
                items.append(item)
        found.extend(find_duplicate_permalinks(items))
        if found:
            raise ContentLoadError(found)
        return ContentCollection(items)

    def load_directory(self, content_dir: Path) -> ContentCollection:
        """Read sources from a content directory and load them.

        Args:
            content_dir: Directory containing sources.

        Returns:
            ContentCollection.

        Raises:
            ContentLoadError: If any source is unreadable or invalid.
            FileNotFoundError: If the content directory does not exist.
        """
        if not content_dir.is_dir():
            raise FileNotFoundError(f"Expected content directory at {content_dir}")
        sources, problems = FileSourceLoader(content_dir, self.config).read_sources()
        return self.load_sources(sources, problems)
