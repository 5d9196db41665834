"""Resolution of an event's stack trace to a single application frame.

The latest-event payload of a GlitchTip issue carries a list of ``entries``.
The first entry of type ``exception`` holds ``data.values[0].stacktrace.frames``,
ordered outermost to innermost. Every frame is normalized and classified, and
the innermost application frame is chosen as the place to attribute the
issue to.

Malformed payloads never raise: missing or mistyped fields simply mean there
is nothing to attribute.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any

import structlog

from glitchtip_hover.core.frame_classifier import is_application_frame
from glitchtip_hover.core.path_normalizer import normalize_path
from glitchtip_hover.models.stacktrace import StackFrame
from glitchtip_hover.utils.logging import LogEventNames

log = structlog.get_logger()


def _get(container: Any, key: str) -> Any:
    """Return ``container[key]`` if container is a mapping, else None."""
    if isinstance(container, Mapping):
        return container.get(key)
    return None


def _first(items: Any) -> Any:
    """Return the first element of a non-empty list, else None."""
    if isinstance(items, Sequence) and not isinstance(items, str) and items:
        return items[0]
    return None


class StackResolver:
    """Picks the frame an issue should be attributed to.

    Example:
        resolver = StackResolver()
        frame = resolver.resolve(event_payload)
        if frame is not None:
            print(frame.normalized_path, frame.line_number)
    """

    EXCEPTION_ENTRY_TYPE = "exception"
    LINE_NUMBER_KEYS = ("lineNo", "lineno")
    FILENAME_KEYS = ("filename", "abs_path")

    def resolve(self, event: Any) -> StackFrame | None:
        """Return the innermost application frame of an event.

        Args:
            event: Decoded latest-event JSON.

        Returns:
            The last application frame in call order, or None if the event has
            no exception stack trace or no application frames.
        """
        frames = self.extract_frames(event)
        if frames is None:
            return None
        return self.select_frame(frames)

    def extract_frames(self, event: Any) -> list[StackFrame] | None:
        """Normalize and classify every frame of the event's exception.

        Args:
            event: Decoded latest-event JSON.

        Returns:
            Classified frames in the original order, or None if no exception
            entry with a non-empty frame list exists.
        """
        raw_frames = self._find_raw_frames(event)
        if raw_frames is None:
            return None

        frames: list[StackFrame] = []
        for raw in raw_frames:
            frame = self._build_frame(raw)
            if frame is not None:
                frames.append(frame)
        return frames

    @staticmethod
    def select_frame(frames: Sequence[StackFrame]) -> StackFrame | None:
        """Return the last application frame, or None if there is none."""
        for frame in reversed(frames):
            if frame.is_application_frame:
                return frame
        return None

    def _find_raw_frames(self, event: Any) -> list[Any] | None:
        entries = _get(event, "entries")
        if not isinstance(entries, list):
            log.debug(LogEventNames.STACKTRACE_MISSING, reason="no_entries")
            return None

        exception_entry = next(
            (e for e in entries if _get(e, "type") == self.EXCEPTION_ENTRY_TYPE),
            None,
        )
        if exception_entry is None:
            log.debug(LogEventNames.STACKTRACE_MISSING, reason="no_exception_entry")
            return None

        first_value = _first(_get(_get(exception_entry, "data"), "values"))
        frames = _get(_get(first_value, "stacktrace"), "frames")
        if not isinstance(frames, list) or not frames:
            log.debug(LogEventNames.STACKTRACE_MISSING, reason="no_frames")
            return None

        return frames

    def _build_frame(self, raw: Any) -> StackFrame | None:
        if not isinstance(raw, Mapping):
            return None

        raw_filename = next(
            (raw[k] for k in self.FILENAME_KEYS if isinstance(raw.get(k), str) and raw[k]),
            "",
        )
        line_number = self._line_number(raw)
        normalized = normalize_path(raw_filename)
        function = raw.get("function")

        return StackFrame(
            raw_filename=raw_filename,
            normalized_path=normalized,
            line_number=line_number or 0,
            # A frame without a usable line cannot be annotated
            is_application_frame=(
                line_number is not None and is_application_frame(normalized, raw_filename)
            ),
            function_name=function if isinstance(function, str) else None,
        )

    def _line_number(self, raw: Mapping[str, Any]) -> int | None:
        for key in self.LINE_NUMBER_KEYS:
            value = raw.get(key)
            if isinstance(value, bool):
                continue
            if isinstance(value, int) and value > 0:
                return value
            if isinstance(value, str) and value.isdigit() and int(value) > 0:
                return int(value)
        return None
