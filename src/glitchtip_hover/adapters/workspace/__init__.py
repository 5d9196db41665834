"""Workspace search adapters."""

from .filesystem import FilesystemWorkspaceSearch, compile_glob

__all__ = ["FilesystemWorkspaceSearch", "compile_glob"]
