"""Per-issue results of a sync cycle."""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime
from enum import StrEnum

from .issue import Issue


class SkipReason(StrEnum):
    """Why an issue was left out of the index."""

    MALFORMED_ISSUE = "malformed_issue"
    EVENT_FETCH_FAILED = "event_fetch_failed"
    MALFORMED_EVENT = "malformed_event"
    NO_STACKTRACE = "no_stacktrace"
    NO_APPLICATION_FRAME = "no_application_frame"
    NO_LOCAL_FILE = "no_local_file"
    UNEXPECTED_ERROR = "unexpected_error"


@dataclass(frozen=True)
class IssueOutcome:
    """What happened to one issue during a cycle.

    Exactly one of ``reason`` or ``path``/``line`` is set.
    """

    issue_id: str
    short_id: str = ""
    path: str | None = None
    line: int | None = None
    reason: SkipReason | None = None
    detail: str = ""

    @classmethod
    def attributed_to(cls, issue: Issue, path: str, line: int) -> IssueOutcome:
        return cls(issue_id=issue.id, short_id=issue.short_id, path=path, line=line)

    @classmethod
    def skipped(
        cls,
        issue_id: str,
        reason: SkipReason,
        detail: str = "",
        short_id: str = "",
    ) -> IssueOutcome:
        return cls(issue_id=issue_id, short_id=short_id, reason=reason, detail=detail)

    @property
    def is_attributed(self) -> bool:
        return self.reason is None


@dataclass(frozen=True)
class SyncResult:
    """Summary of one completed sync cycle."""

    issues_fetched: int
    outcomes: tuple[IssueOutcome, ...]
    started_at: datetime
    duration_seconds: float = 0.0
    skip_counts: dict[str, int] = field(init=False, compare=False)

    def __post_init__(self) -> None:
        counts = Counter(o.reason.value for o in self.outcomes if o.reason is not None)
        object.__setattr__(self, "skip_counts", dict(counts))

    @property
    def attributed(self) -> int:
        """Number of issues placed in the index."""
        return sum(1 for o in self.outcomes if o.is_attributed)

    @property
    def skipped(self) -> int:
        """Number of issues left out of the index."""
        return len(self.outcomes) - self.attributed
