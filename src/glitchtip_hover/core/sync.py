"""Sync service: runs build cycles and serves lookups from the latest index.

The published IssueIndex is the only state shared between the sync pipeline
and readers. It is replaced by a single attribute assignment once a cycle
has fully built its replacement; it is never edited in place. A failed cycle
leaves the previous index published.
"""

from __future__ import annotations

import asyncio
import os
from typing import TYPE_CHECKING

import structlog

from glitchtip_hover.adapters.glitchtip import GlitchTipClient
from glitchtip_hover.adapters.workspace.filesystem import FilesystemWorkspaceSearch
from glitchtip_hover.config.schema import HoverConfig
from glitchtip_hover.core.file_locator import LocalFileLocator
from glitchtip_hover.core.index_builder import IssueIndexBuilder
from glitchtip_hover.core.stack_resolver import StackResolver
from glitchtip_hover.models.index import IssueIndex
from glitchtip_hover.models.issue import Issue
from glitchtip_hover.models.outcome import SyncResult
from glitchtip_hover.utils.async_helpers import MalformedResponseError, TransportError
from glitchtip_hover.utils.logging import LogEventNames, bind_context, clear_context

if TYPE_CHECKING:
    from glitchtip_hover.interfaces.issues import IssueSource
    from glitchtip_hover.interfaces.workspace import WorkspaceSearch

log = structlog.get_logger()


class IssueSync:
    """Owns the published index and the sync cycle that replaces it.

    Responsibilities:
    - Skip cycles while the GlitchTip configuration is incomplete
    - Build a new index per cycle and publish it in one assignment
    - Keep the previous index when the issue list cannot be fetched
    - Coalesce overlapping ``run_cycle()`` calls into one build

    Example:
        sync = IssueSync.from_config(config)
        await sync.run_cycle()
        issues = sync.lookup("/work/app/models/user.rb", 12)
        await sync.aclose()
    """

    def __init__(
        self,
        config: HoverConfig,
        search: WorkspaceSearch,
        source: IssueSource | None = None,
        resolver: StackResolver | None = None,
    ) -> None:
        """Initialize the sync service.

        Args:
            config: Application configuration.
            search: Workspace file-search collaborator.
            source: Issue source. If None, a GlitchTipClient is created from
                the configuration when the first cycle runs.
            resolver: Stack resolver (a default one is created if None).
        """
        self._config = config
        self._source = source
        self._owned_client: GlitchTipClient | None = None
        self._resolver = resolver or StackResolver()
        self._locator = LocalFileLocator(search, config.workspace)

        self._index = IssueIndex.empty()
        self._last_result: SyncResult | None = None
        self._last_error: str | None = None
        self._inflight: asyncio.Task[SyncResult | None] | None = None
        self._cycles = 0

    @classmethod
    def from_config(cls, config: HoverConfig) -> IssueSync:
        """Create a sync service that searches ``config.workspace.root`` on disk."""
        workspace = config.workspace
        return cls(
            config,
            FilesystemWorkspaceSearch(workspace.root, timeout=workspace.search_timeout),
        )

    @property
    def index(self) -> IssueIndex:
        """Return the currently published index."""
        return self._index

    @property
    def last_result(self) -> SyncResult | None:
        """Return the summary of the last successful cycle, if any."""
        return self._last_result

    @property
    def last_error(self) -> str | None:
        """Return the error of the last failed cycle, cleared on success."""
        return self._last_error

    @property
    def is_syncing(self) -> bool:
        """Return True while a cycle is in flight."""
        return self._inflight is not None and not self._inflight.done()

    def lookup(self, path: str | os.PathLike[str], line: int) -> tuple[Issue, ...]:
        """Return the issues attributed to a local file and 1-based line.

        Reads the published index only; never waits for a running cycle.
        """
        return self._index.lookup(path, line)

    async def update_config(self, config: HoverConfig) -> None:
        """Apply new settings; they take effect from the next cycle."""
        self._config = config
        if self._owned_client is not None:
            await self._owned_client.aclose()
            self._owned_client = None

    async def run_cycle(self) -> SyncResult | None:
        """Run one sync cycle, or join the one already running.

        Returns:
            The cycle summary, or None if the configuration is incomplete or
            the issue list could not be fetched.
        """
        task = self._inflight
        if task is None or task.done():
            task = asyncio.create_task(self._run_cycle())
            self._inflight = task
        else:
            log.info(LogEventNames.SYNC_CYCLE_JOINED)
        # A cancelled caller must not cancel the shared cycle
        return await asyncio.shield(task)

    async def aclose(self) -> None:
        """Cancel any running cycle and close the owned HTTP client."""
        if self._inflight is not None and not self._inflight.done():
            self._inflight.cancel()
            await asyncio.gather(self._inflight, return_exceptions=True)
        if self._owned_client is not None:
            await self._owned_client.aclose()
            self._owned_client = None

    def _get_source(self) -> IssueSource:
        if self._source is not None:
            return self._source
        if self._owned_client is None:
            self._owned_client = GlitchTipClient(self._config.glitchtip, self._config.retry)
        return self._owned_client

    async def _run_cycle(self) -> SyncResult | None:
        glitchtip = self._config.glitchtip
        if not glitchtip.is_complete:
            log.info(LogEventNames.SYNC_CONFIG_INCOMPLETE, missing=list(glitchtip.missing_fields))
            return None

        self._cycles += 1
        bind_context(cycle=self._cycles)
        try:
            log.info(LogEventNames.SYNC_CYCLE_START, limit=glitchtip.issue_limit)

            self._locator.reset()
            builder = IssueIndexBuilder(
                self._get_source(),
                self._locator,
                self._resolver,
                limit=glitchtip.issue_limit,
                max_concurrent_events=self._config.sync.max_concurrent_events,
            )

            try:
                build = await builder.build_index()
            except (TransportError, MalformedResponseError) as e:
                self._last_error = str(e)
                log.error(
                    LogEventNames.SYNC_CYCLE_FAILED,
                    error=str(e),
                    error_type=type(e).__name__,
                    kept_files=len(self._index),
                )
                return None

            self._index = build.index
            self._last_result = build.result
            self._last_error = None
            log.debug(
                LogEventNames.INDEX_PUBLISHED,
                files=len(build.index),
                issues=build.index.issue_count,
            )

            log.info(
                LogEventNames.SYNC_CYCLE_COMPLETE,
                issues=build.result.issues_fetched,
                attributed=build.result.attributed,
                skipped=build.result.skipped,
                skip_counts=build.result.skip_counts,
                files=len(build.index),
                duration_seconds=round(build.result.duration_seconds, 3),
            )
            return build.result
        finally:
            clear_context()
