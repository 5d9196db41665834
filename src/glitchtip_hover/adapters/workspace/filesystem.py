"""Filesystem-backed workspace search.

Implements the WorkspaceSearch protocol over a directory on disk, for use
outside an editor (the command-line interface, scripts and tests). Glob
patterns follow editor conventions: ``**`` spans directories, ``*`` and ``?``
stay within one path segment and every other character is literal, so file
names such as ``[id].tsx`` match themselves.
"""

from __future__ import annotations

import asyncio
import os
import re
import time
from functools import lru_cache
from pathlib import Path

import structlog

from glitchtip_hover.utils.async_helpers import TimeoutError

log = structlog.get_logger()

# Version-control metadata is never part of the searchable tree
DEFAULT_IGNORED_DIRS = frozenset({".git", ".hg", ".svn"})


@lru_cache(maxsize=256)
def compile_glob(pattern: str) -> re.Pattern[str]:
    """Translate a workspace glob into a regex over ``/``-separated relative paths.

    Args:
        pattern: Glob such as ``**/app/models/user.rb`` or ``**/node_modules/**``.

    Returns:
        Compiled pattern meant for ``fullmatch``.
    """
    parts: list[str] = []
    i = 0
    while i < len(pattern):
        if pattern.startswith("**/", i):
            parts.append("(?:.*/)?")
            i += 3
        elif pattern.startswith("**", i):
            parts.append(".*")
            i += 2
        elif pattern[i] == "*":
            parts.append("[^/]*")
            i += 1
        elif pattern[i] == "?":
            parts.append("[^/]")
            i += 1
        else:
            parts.append(re.escape(pattern[i]))
            i += 1
    return re.compile("".join(parts))


class FilesystemWorkspaceSearch:
    """Search files below a root directory.

    Traversal is depth-first with directory and file names sorted, so the
    same tree always yields results in the same order.

    Example:
        search = FilesystemWorkspaceSearch(Path("~/code/shop").expanduser())
        paths = await search.search("**/app/models/user.rb", "**/node_modules/**", 1)
    """

    def __init__(
        self,
        root: Path,
        ignored_dirs: frozenset[str] = DEFAULT_IGNORED_DIRS,
        timeout: float | None = None,
    ) -> None:
        """Initialize the search.

        Args:
            root: Workspace root directory.
            ignored_dirs: Directory names that are never descended into.
            timeout: Seconds a single search may walk before giving up. The
                walk runs in a worker thread, which cancelling the awaiting
                task does not stop, so the walk checks this deadline itself.
        """
        self._root = root.expanduser().resolve()
        self._ignored_dirs = ignored_dirs
        self._timeout = timeout

    @property
    def root(self) -> Path:
        """Return the resolved workspace root."""
        return self._root

    async def search(
        self,
        glob_pattern: str,
        exclude_pattern: str | None,
        max_results: int,
    ) -> list[str]:
        """Find files under the root matching ``glob_pattern``.

        Args:
            glob_pattern: Glob relative to the root.
            exclude_pattern: Glob of paths to leave out, or None.
            max_results: Maximum number of paths to return.

        Returns:
            Absolute paths, in traversal order.

        Raises:
            TimeoutError: If the walk runs past the configured timeout.
        """
        if max_results < 1:
            return []
        deadline = time.monotonic() + self._timeout if self._timeout is not None else None
        return await asyncio.to_thread(
            self._search_sync, glob_pattern, exclude_pattern, max_results, deadline
        )

    def _search_sync(
        self,
        glob_pattern: str,
        exclude_pattern: str | None,
        max_results: int,
        deadline: float | None = None,
    ) -> list[str]:
        include = compile_glob(glob_pattern)
        exclude = compile_glob(exclude_pattern) if exclude_pattern else None
        matches: list[str] = []

        for dirpath, dirnames, filenames in os.walk(self._root):
            if deadline is not None and time.monotonic() > deadline:
                raise TimeoutError(f"Workspace search for {glob_pattern} timed out")
            rel_dir = Path(dirpath).relative_to(self._root).as_posix()
            prefix = "" if rel_dir == "." else f"{rel_dir}/"

            # Prune in place so os.walk skips excluded subtrees
            dirnames[:] = sorted(
                d
                for d in dirnames
                if d not in self._ignored_dirs
                and not (exclude and exclude.fullmatch(f"{prefix}{d}/"))
            )

            for filename in sorted(filenames):
                rel_path = f"{prefix}{filename}"
                if exclude and exclude.fullmatch(rel_path):
                    continue
                if include.fullmatch(rel_path):
                    matches.append(str(Path(dirpath, filename)))
                    if len(matches) >= max_results:
                        return matches

        return matches
