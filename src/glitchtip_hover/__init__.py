"""Map unresolved GlitchTip issues to the lines of a local source tree."""

from glitchtip_hover._version import __version__

__all__ = ["__version__"]
