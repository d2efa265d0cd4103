"""Error types for Folio.

Loading never stops at the first bad source. Each problem found while
reading, parsing or validating sources is recorded as a :class:`LoadProblem`
and all of them are raised together in a single :class:`ContentLoadError`,
so one ``folio check`` run shows everything that needs fixing.

Key classes:
- ProblemKind: The kinds of problem a load can report.
- LoadProblem: One problem tied to the source identifier that caused it.
- ContentLoadError: Raised by ``load`` with every problem in the batch.
- FrontMatterError: Raised by the front-matter parser for a single source.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from enum import Enum


class ProblemKind(str, Enum):
    """Kinds of problem reported by a load."""

    MALFORMED_FRONT_MATTER = "malformed-front-matter"
    MISSING_REQUIRED_FIELD = "missing-required-field"
    DUPLICATE_PERMALINK = "duplicate-permalink"
    UNREADABLE_SOURCE = "unreadable-source"
    EMPTY_BODY = "empty-body"


@dataclass(frozen=True)
class LoadProblem:
    """A single problem found while loading one source.

    Attributes:
        kind: What went wrong.
        source: Identifier of the offending source.
        message: Human-readable reason.
        field: Front-matter field involved, when there is one.
        other_source: The conflicting source for duplicate permalinks.
    """

    kind: ProblemKind
    source: str
    message: str
    field: str | None = None
    other_source: str | None = None

    def __str__(self) -> str:
        return f"{self.source}: {self.message}"


class ContentLoadError(Exception):
    """Raised when a load finds one or more problems.

    Attributes:
        problems: Every problem found, in source order.
    """

    def __init__(self, problems: Iterable[LoadProblem]):
        self.problems = list(problems)
        count = len(self.problems)
        noun = "problem" if count == 1 else "problems"
        lines = [f"{count} {noun} found while loading content:"]
        lines.extend(f"  - {problem}" for problem in self.problems)
        super().__init__("\n".join(lines))

    def of_kind(self, kind: ProblemKind) -> list[LoadProblem]:
        """Return the problems of one kind."""
        return [p for p in self.problems if p.kind is kind]


class FrontMatterError(ValueError):
    """Front matter present in a source could not be parsed as a mapping."""
