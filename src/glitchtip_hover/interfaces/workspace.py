"""Abstract interface for searching files in the local workspace."""

from typing import Protocol


class WorkspaceSearch(Protocol):
    """File search over the user's source tree.

    Editors provide their own implementation; a filesystem-backed one ships
    in ``glitchtip_hover.adapters.workspace``.
    """

    async def search(
        self,
        glob_pattern: str,
        exclude_pattern: str | None,
        max_results: int,
    ) -> list[str]:
        """
        Find files matching a glob pattern.

        Args:
            glob_pattern: Pattern such as ``**/app/models/user.rb``
            exclude_pattern: Pattern of paths to leave out, e.g. ``**/node_modules/**``
            max_results: Maximum number of paths to return

        Returns:
            Absolute paths of matching files, best match first
        """
        ...
