"""Data models for GlitchTip issues."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from ..utils.async_helpers import MalformedResponseError


@dataclass(frozen=True)
class Issue:
    """An unresolved issue as listed by the GlitchTip API."""

    id: str
    short_id: str
    title: str
    count: str  # Event count as reported upstream, display only
    permalink: str

    @classmethod
    def from_api(cls, data: Mapping[str, Any]) -> Issue:
        """Build an Issue from one entry of the issues-list response.

        Args:
            data: Issue summary object (``id``, ``shortId``, ``title``, ``count``,
                ``permalink``).

        Returns:
            Issue instance.

        Raises:
            MalformedResponseError: If the entry is not an object or has no id.
        """
        if not isinstance(data, Mapping):
            raise MalformedResponseError(f"Issue entry is not an object: {type(data).__name__}")

        issue_id = data.get("id")
        if issue_id is None or issue_id == "":
            raise MalformedResponseError("Issue entry has no id")

        count = data.get("count")
        return cls(
            id=str(issue_id),
            short_id=str(data.get("shortId") or issue_id),
            title=str(data.get("title") or ""),
            count="" if count is None else str(count),
            permalink=str(data.get("permalink") or ""),
        )
