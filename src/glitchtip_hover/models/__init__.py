"""Data models and transfer objects."""

from .index import IndexDraft, IssueIndex
from .issue import Issue
from .outcome import IssueOutcome, SkipReason, SyncResult
from .stacktrace import StackFrame

__all__ = [
    # Issue models
    "Issue",
    # Stack trace models
    "StackFrame",
    # Index
    "IssueIndex",
    "IndexDraft",
    # Cycle results
    "SkipReason",
    "IssueOutcome",
    "SyncResult",
]
