"""Adapters for the GlitchTip API and workspace file search."""

from .glitchtip import GlitchTipClient
from .workspace.filesystem import FilesystemWorkspaceSearch

__all__ = ["FilesystemWorkspaceSearch", "GlitchTipClient"]
