"""Normalization of stack frame filenames.

Runtimes report frame filenames in different shapes: Windows separators,
interpreter descriptors such as ``ruby (3.2.0) app/models/user.rb`` and stray
whitespace. ``normalize_path`` reduces them to a relative, forward-slash path
that can be compared with workspace-relative paths. It does no I/O and does
not resolve ``.``/``..`` segments or drive letters.
"""

import re

# "<word> (<anything but ')'>) " at the very start, e.g. "ruby (3.2.0) "
RUNTIME_PREFIX_PATTERN = re.compile(r"^\w+ \([^)]*\)\s+")


def normalize_path(raw_path: str) -> str:
    """Return the canonical relative form of a frame filename.

    Args:
        raw_path: Filename as reported in the event payload.

    Returns:
        Path with ``/`` separators, one leading runtime descriptor removed and
        surrounding whitespace trimmed.

    Example:
        >>> normalize_path("ruby (3.2.1) app/models/user.rb")
        'app/models/user.rb'
        >>> normalize_path("lib\\\\foo\\\\bar.py")
        'lib/foo/bar.py'
    """
    path = raw_path.replace("\\", "/").strip()
    path = RUNTIME_PREFIX_PATTERN.sub("", path, count=1)
    return path.strip()
