"""Application-code classification for stack frames.

Error-tracker stack traces mix runtime internals, third-party dependencies and
first-party code. Only first-party frames can be mapped to a line worth
annotating, so classification is a deny-list of dependency markers followed by
a conservative allow-list of conventional source directories.
"""

import re

# A descriptor on the reported filename marks a runtime-internal frame
RUNTIME_FRAME_PATTERN = re.compile(r"^\w+ \([^)]*\)\s")

DEPENDENCY_MARKERS: tuple[str, ...] = (
    "gems/",
    "node_modules",
    "site-packages",
    "dist-packages",
)

# Vendored trees only count as a directory segment, not as a name suffix
VENDOR_DIR_PATTERN = re.compile(r"(?:^|/)vendor/")

APPLICATION_DIRS: tuple[str, ...] = ("app/", "lib/", "src/")


def is_dependency_path(path: str) -> bool:
    """Return True if ``path`` points into a dependency or vendored tree."""
    return any(marker in path for marker in DEPENDENCY_MARKERS) or bool(
        VENDOR_DIR_PATTERN.search(path)
    )


def is_application_frame(filename: str | None, raw_filename: str | None = None) -> bool:
    """Decide whether a frame filename belongs to application code.

    Args:
        filename: Normalized frame path. Separators are unified here as well
            so raw names work too.
        raw_filename: Filename as reported before normalization. A runtime
            descriptor such as ``ruby (3.2.1) `` on it marks a runtime-internal
            frame even though normalization strips it. Defaults to
            ``filename``.

    Returns:
        True only for paths under ``app/``, ``lib/`` or ``src/`` (at the start
        or after a ``/``) that are not runtime-internal or dependency frames.
    """
    if not filename:
        return False

    path = filename.replace("\\", "/")
    raw = raw_filename.replace("\\", "/").strip() if raw_filename else path

    if RUNTIME_FRAME_PATTERN.match(raw) or RUNTIME_FRAME_PATTERN.match(path):
        return False

    if is_dependency_path(path):
        return False

    return any(path.startswith(d) or f"/{d}" in path for d in APPLICATION_DIRS)
