"""Protocol definitions for Folio.

This module defines the interfaces (protocols) the loader depends on, so
that sources can come from somewhere other than the filesystem and
metadata extraction can be extended without touching the builder.
"""

from __future__ import annotations

from abc import abstractmethod
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    from .errors import LoadProblem
    from .extractors import ParsedSource
    from .models import ContentItem, SourceText


@runtime_checkable
class MetadataExtractor(Protocol):
    """Protocol for extracting metadata from a parsed source.

    Implementations extract one field or a closely related group of fields.
    """

    @abstractmethod
    def extract(self, source: ParsedSource) -> dict[str, Any]:
        """Extract metadata from a parsed source.

        Args:
            source: Source with its front matter split from the body.

        Returns:
            Dictionary of extracted metadata.

        Raises:
            FieldValueError: If a present value cannot be used.
        """
        ...


@runtime_checkable
class SourceLoader(Protocol):
    """Protocol for reading raw sources.

    This separates source discovery and I/O from parsing.
    """

    @abstractmethod
    def read_sources(self) -> tuple[list[SourceText], list[LoadProblem]]:
        """Read every source.

        Returns:
            Tuple of (sources read, problems for sources that could not be read).
        """
        ...


@runtime_checkable
class ItemBuilder(Protocol):
    """Protocol for building a ContentItem from one source."""

    @abstractmethod
    def build(self, source: SourceText) -> tuple[ContentItem | None, list[LoadProblem]]:
        """Build an item from a source.

        Args:
            source: Identifier and text of the source.

        Returns:
            Tuple of (item or None when it cannot be built, problems found).
        """
        ...
