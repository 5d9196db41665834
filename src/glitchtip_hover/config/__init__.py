"""Configuration loading and validation."""

from .loader import load_config
from .schema import (
    GlitchTipConfig,
    HoverConfig,
    LoggingConfig,
    RetryConfig,
    SyncConfig,
    WorkspaceConfig,
)

__all__ = [
    # Loader
    "load_config",
    # Root config
    "HoverConfig",
    # Sections
    "GlitchTipConfig",
    "WorkspaceConfig",
    "SyncConfig",
    "RetryConfig",
    "LoggingConfig",
]
