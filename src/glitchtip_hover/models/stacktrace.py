"""Data models for event stack traces."""

from dataclasses import dataclass


@dataclass(frozen=True)
class StackFrame:
    """A single classified frame from an event's exception stack trace."""

    raw_filename: str  # As reported by the server
    normalized_path: str
    line_number: int
    is_application_frame: bool
    function_name: str | None = None

    @property
    def location(self) -> str:
        """``path:line`` form, for log output."""
        return f"{self.normalized_path}:{self.line_number}"
