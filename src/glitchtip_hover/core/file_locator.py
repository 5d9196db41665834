"""Mapping of normalized frame paths to files in the local workspace.

A frame path such as ``app/models/user.rb`` is looked up as the glob
``**/app/models/user.rb``; the first match wins. Several files can share a
suffix (monorepos, copied fixtures) and no attempt is made to pick between
them.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog
from cachetools import LRUCache

from glitchtip_hover.config.schema import WorkspaceConfig
from glitchtip_hover.utils.async_helpers import HoverError, with_timeout
from glitchtip_hover.utils.logging import LogEventNames

if TYPE_CHECKING:
    from glitchtip_hover.interfaces.workspace import WorkspaceSearch

log = structlog.get_logger()

_MISSING = object()


class LocalFileLocator:
    """Resolves normalized relative paths to absolute workspace paths.

    Lookups are memoized until ``reset()`` is called. The sync service resets
    the locator at the start of every cycle, so a file added or removed
    between cycles is picked up by the next one.

    Example:
        locator = LocalFileLocator(FilesystemWorkspaceSearch(root), WorkspaceConfig())
        path = await locator.locate("app/models/user.rb")
    """

    def __init__(
        self,
        search: WorkspaceSearch,
        config: WorkspaceConfig | None = None,
    ) -> None:
        """Initialize the locator.

        Args:
            search: Workspace file-search collaborator.
            config: Exclusion pattern, result limit, cache size and timeout.
        """
        self._search = search
        self._config = config or WorkspaceConfig()
        self._cache: LRUCache[str, str | None] | None = (
            LRUCache(maxsize=self._config.cache_size) if self._config.cache_size else None
        )

    @staticmethod
    def search_pattern(normalized_path: str) -> str:
        """Return the glob used to find ``normalized_path`` at any depth."""
        return f"**/{normalized_path.lstrip('/')}"

    def reset(self) -> None:
        """Forget memoized lookups."""
        if self._cache is not None:
            self._cache.clear()

    async def locate(self, normalized_path: str) -> str | None:
        """Find the local file for a normalized frame path.

        Args:
            normalized_path: Output of ``normalize_path``.

        Returns:
            Absolute path of the first match, or None if nothing matches or the
            search fails.
        """
        if not normalized_path or not normalized_path.strip("/"):
            return None

        if self._cache is not None:
            cached = self._cache.get(normalized_path, _MISSING)
            if cached is not _MISSING:
                return cached  # type: ignore[return-value]

        pattern = self.search_pattern(normalized_path)
        try:
            found = await with_timeout(
                self._search.search(
                    pattern,
                    self._config.exclude_pattern or None,
                    self._config.max_results,
                ),
                self._config.search_timeout,
                error_message=f"Workspace search for {pattern} timed out",
            )
        except (HoverError, OSError) as e:
            log.warning(LogEventNames.LOCAL_FILE_SEARCH_FAILED, pattern=pattern, error=str(e))
            return None

        result = found[0] if found else None
        log.debug(
            LogEventNames.LOCAL_FILE_SEARCH,
            pattern=pattern,
            matches=len(found),
            selected=result,
        )

        if self._cache is not None:
            self._cache[normalized_path] = result
        return result
