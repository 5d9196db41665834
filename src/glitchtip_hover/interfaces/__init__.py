"""Protocol definitions for pluggable collaborators."""

from .issues import IssueSource
from .workspace import WorkspaceSearch

__all__ = ["IssueSource", "WorkspaceSearch"]
