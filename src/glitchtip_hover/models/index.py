"""Immutable (file, line) -> issues index."""

from __future__ import annotations

import os
from collections.abc import Iterator, Mapping, Sequence
from types import MappingProxyType

from .issue import Issue

_NO_LINES: Mapping[int, tuple[Issue, ...]] = MappingProxyType({})


class IssueIndex:
    """Point-in-time snapshot mapping local files and lines to issues.

    The index copies its input into read-only mappings of tuples and exposes
    no mutating methods, so a published instance can be shared with any
    number of readers without locking. A new sync cycle builds a new index
    rather than editing this one.

    Example:
        draft = IndexDraft()
        draft.add("/work/app/models/user.rb", 12, issue)
        index = draft.freeze()
        index.lookup("/work/app/models/user.rb", 12)  # (issue,)
    """

    __slots__ = ("_files", "_issue_count")

    def __init__(
        self,
        files: Mapping[str, Mapping[int, Sequence[Issue]]] | None = None,
    ) -> None:
        frozen: dict[str, Mapping[int, tuple[Issue, ...]]] = {}
        issue_count = 0
        for path, lines in (files or {}).items():
            frozen_lines = {line: tuple(issues) for line, issues in lines.items() if issues}
            if frozen_lines:
                frozen[path] = MappingProxyType(frozen_lines)
                issue_count += sum(len(issues) for issues in frozen_lines.values())
        self._files: Mapping[str, Mapping[int, tuple[Issue, ...]]] = MappingProxyType(frozen)
        self._issue_count = issue_count

    @classmethod
    def empty(cls) -> IssueIndex:
        """Return an index with no entries."""
        return cls()

    def lookup(self, path: str | os.PathLike[str], line: int) -> tuple[Issue, ...]:
        """Return the issues attributed to ``path`` at ``line``.

        Args:
            path: Absolute local file path.
            line: 1-based line number.

        Returns:
            Issues in attribution order; an empty tuple if there are none.
        """
        return self._files.get(os.fspath(path), _NO_LINES).get(line, ())

    def lines_for(self, path: str | os.PathLike[str]) -> Mapping[int, tuple[Issue, ...]]:
        """Return the read-only line -> issues mapping for one file."""
        return self._files.get(os.fspath(path), _NO_LINES)

    @property
    def files(self) -> tuple[str, ...]:
        """Local files that have at least one issue."""
        return tuple(self._files)

    @property
    def issue_count(self) -> int:
        """Total number of (location, issue) entries."""
        return self._issue_count

    def items(self) -> Iterator[tuple[str, int, tuple[Issue, ...]]]:
        """Iterate over ``(path, line, issues)`` in insertion order."""
        for path, lines in self._files.items():
            for line, issues in lines.items():
                yield path, line, issues

    def __contains__(self, path: object) -> bool:
        if isinstance(path, (str, os.PathLike)):
            return os.fspath(path) in self._files
        return False

    def __len__(self) -> int:
        return len(self._files)

    def __repr__(self) -> str:
        return f"IssueIndex(files={len(self._files)}, issues={self._issue_count})"


class IndexDraft:
    """Mutable accumulator used while a cycle is in flight.

    Only the builder that owns a draft writes to it; readers see the result
    of ``freeze()``.
    """

    def __init__(self) -> None:
        self._files: dict[str, dict[int, list[Issue]]] = {}

    def add(self, path: str, line: int, issue: Issue) -> bool:
        """Append ``issue`` under ``(path, line)``.

        Returns:
            False if an issue with the same id is already at that location.
        """
        issues = self._files.setdefault(path, {}).setdefault(line, [])
        if any(existing.id == issue.id for existing in issues):
            return False
        issues.append(issue)
        return True

    def freeze(self) -> IssueIndex:
        """Return an immutable snapshot of everything added so far."""
        return IssueIndex(self._files)
