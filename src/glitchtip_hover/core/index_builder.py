"""Builds a fresh IssueIndex from the GlitchTip API and the local workspace.

One build is one pass over the unresolved issues:

1. Fetch the issue list (failure here aborts the build).
2. For each issue, fetch its latest event, resolve the innermost application
   frame and locate that file in the workspace.
3. Insert attributed issues into a draft index, in server order.
4. Freeze the draft.

Every issue ends with an explicit IssueOutcome. Per-issue problems become
skip outcomes and never abort the build.
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

import structlog

from glitchtip_hover.core.stack_resolver import StackResolver
from glitchtip_hover.models.index import IndexDraft, IssueIndex
from glitchtip_hover.models.issue import Issue
from glitchtip_hover.models.outcome import IssueOutcome, SkipReason, SyncResult
from glitchtip_hover.utils.async_helpers import MalformedResponseError, TransportError
from glitchtip_hover.utils.logging import LogEventNames

if TYPE_CHECKING:
    from glitchtip_hover.core.file_locator import LocalFileLocator
    from glitchtip_hover.interfaces.issues import IssueSource

log = structlog.get_logger()


@dataclass(frozen=True)
class IndexBuild:
    """A finished build: the new index and what happened to each issue."""

    index: IssueIndex
    result: SyncResult


@dataclass(frozen=True)
class _Attribution:
    issue: Issue
    path: str
    line: int


class IssueIndexBuilder:
    """Orchestrates fetch, resolve and locate for one sync cycle.

    Example:
        builder = IssueIndexBuilder(client, locator)
        build = await builder.build_index()
        build.index.lookup("/work/app/models/user.rb", 12)
    """

    DEFAULT_LIMIT = 100

    def __init__(
        self,
        source: IssueSource,
        locator: LocalFileLocator,
        resolver: StackResolver | None = None,
        limit: int = DEFAULT_LIMIT,
        max_concurrent_events: int = 1,
    ) -> None:
        """Initialize the builder.

        Args:
            source: Issue list and latest-event provider.
            locator: Workspace file locator.
            resolver: Stack resolver (a default one is created if None).
            limit: Maximum number of unresolved issues to fetch.
            max_concurrent_events: Issues processed concurrently. Results are
                still inserted in server order.
        """
        self._source = source
        self._locator = locator
        self._resolver = resolver or StackResolver()
        self._limit = limit
        self._max_concurrent = max(1, max_concurrent_events)

    async def build_index(self) -> IndexBuild:
        """Run one full build.

        Returns:
            IndexBuild with the frozen index and per-issue outcomes.

        Raises:
            TransportError: If the issue list cannot be fetched.
            MalformedResponseError: If the issue list is not a JSON array.
        """
        started_at = datetime.now(UTC)
        start = time.monotonic()

        raw_issues = await self._source.list_unresolved_issues(self._limit)

        if self._max_concurrent == 1:
            results = [await self._attribute(raw) for raw in raw_issues]
        else:
            semaphore = asyncio.Semaphore(self._max_concurrent)

            async def bounded(raw: Any) -> _Attribution | IssueOutcome:
                async with semaphore:
                    return await self._attribute(raw)

            # gather keeps input order, so insertion below stays deterministic
            results = await asyncio.gather(*(bounded(raw) for raw in raw_issues))

        draft = IndexDraft()
        outcomes: list[IssueOutcome] = []
        for result in results:
            if isinstance(result, IssueOutcome):
                outcomes.append(result)
                continue
            if draft.add(result.path, result.line, result.issue):
                log.debug(
                    LogEventNames.ISSUE_ATTRIBUTED,
                    short_id=result.issue.short_id,
                    path=result.path,
                    line=result.line,
                )
            outcomes.append(IssueOutcome.attributed_to(result.issue, result.path, result.line))

        return IndexBuild(
            index=draft.freeze(),
            result=SyncResult(
                issues_fetched=len(raw_issues),
                outcomes=tuple(outcomes),
                started_at=started_at,
                duration_seconds=time.monotonic() - start,
            ),
        )

    async def _attribute(self, raw: Any) -> _Attribution | IssueOutcome:
        """Resolve one issue summary to a local location or a skip outcome."""
        try:
            issue = Issue.from_api(raw)
        except MalformedResponseError as e:
            raw_id = raw.get("id") if isinstance(raw, Mapping) else None
            return self._skip(str(raw_id or "?"), "", SkipReason.MALFORMED_ISSUE, str(e))

        try:
            return await self._attribute_issue(issue)
        except Exception as e:
            log.exception(LogEventNames.ISSUE_PROCESSING_ERROR, issue_id=issue.id, error=str(e))
            return self._skip(issue.id, issue.short_id, SkipReason.UNEXPECTED_ERROR, str(e))

    async def _attribute_issue(self, issue: Issue) -> _Attribution | IssueOutcome:
        try:
            event = await self._source.get_latest_event(issue.id)
        except TransportError as e:
            return self._skip(issue.id, issue.short_id, SkipReason.EVENT_FETCH_FAILED, str(e))
        except MalformedResponseError as e:
            return self._skip(issue.id, issue.short_id, SkipReason.MALFORMED_EVENT, str(e))

        frames = self._resolver.extract_frames(event)
        if frames is None:
            return self._skip(issue.id, issue.short_id, SkipReason.NO_STACKTRACE)

        frame = self._resolver.select_frame(frames)
        if frame is None:
            return self._skip(
                issue.id,
                issue.short_id,
                SkipReason.NO_APPLICATION_FRAME,
                f"{len(frames)} frames, none in application code",
            )
        log.debug(LogEventNames.FRAME_RESOLVED, short_id=issue.short_id, frame=frame.location)

        local_path = await self._locator.locate(frame.normalized_path)
        if local_path is None:
            return self._skip(
                issue.id, issue.short_id, SkipReason.NO_LOCAL_FILE, frame.normalized_path
            )

        return _Attribution(issue=issue, path=local_path, line=frame.line_number)

    @staticmethod
    def _skip(issue_id: str, short_id: str, reason: SkipReason, detail: str = "") -> IssueOutcome:
        log.info(
            LogEventNames.ISSUE_SKIPPED,
            issue_id=issue_id,
            short_id=short_id,
            reason=reason.value,
            detail=detail,
        )
        return IssueOutcome.skipped(issue_id, reason, detail=detail, short_id=short_id)
