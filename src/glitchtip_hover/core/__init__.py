"""Core frame resolution, indexing and sync components."""

from .file_locator import LocalFileLocator
from .formatting import format_issue_line, render_hover_markdown
from .frame_classifier import is_application_frame, is_dependency_path
from .index_builder import IndexBuild, IssueIndexBuilder
from .path_normalizer import normalize_path
from .scheduler import SyncScheduler
from .stack_resolver import StackResolver
from .sync import IssueSync

__all__ = [
    "IndexBuild",
    "IssueIndexBuilder",
    "IssueSync",
    "LocalFileLocator",
    "StackResolver",
    "SyncScheduler",
    "format_issue_line",
    "is_application_frame",
    "is_dependency_path",
    "normalize_path",
    "render_hover_markdown",
]
