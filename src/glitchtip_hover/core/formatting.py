"""Markdown rendering of issues for hover tooltips and terminal output."""

from __future__ import annotations

from collections.abc import Sequence

from glitchtip_hover.models.issue import Issue


def render_hover_markdown(issues: Sequence[Issue]) -> str:
    """Render the issues at one location as a hover tooltip.

    Args:
        issues: Issues attributed to a single file and line.

    Returns:
        Markdown with a heading and one block per issue, or an empty string
        when there are no issues.
    """
    if not issues:
        return ""

    parts = [f"### 🐞 GlitchTip: {len(issues)} Issue(s) Here\n"]
    for issue in issues:
        parts.append(f"\n**[{issue.short_id}] {issue.title}**\n")
        parts.append(f"Events: {issue.count} | [Open]({issue.permalink})\n")
        parts.append("---\n")
    return "".join(parts)


def format_issue_line(issue: Issue) -> str:
    """One-line summary, e.g. ``[SHOP-1A] NoMethodError (events: 12)``."""
    return f"[{issue.short_id}] {issue.title} (events: {issue.count})"
