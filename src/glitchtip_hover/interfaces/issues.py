"""Abstract interface for error-tracking service integrations."""

from typing import Any, Protocol


class IssueSource(Protocol):
    """Read-only access to an error-tracking project.

    This protocol defines the contract the sync pipeline needs from a
    GlitchTip (or Sentry-compatible) client.
    """

    async def list_unresolved_issues(self, limit: int) -> list[dict[str, Any]]:
        """
        Fetch unresolved issue summaries for the configured project.

        Args:
            limit: Maximum number of issues to return

        Returns:
            Issue summaries in the order the server returns them

        Raises:
            TransportError: If the request fails or returns a non-success status
            MalformedResponseError: If the body is not a JSON array
        """
        ...

    async def get_latest_event(self, issue_id: str) -> dict[str, Any]:
        """
        Fetch the most recent event of an issue.

        Args:
            issue_id: Issue identifier from the issue summary

        Returns:
            Decoded event object

        Raises:
            TransportError: If the request fails or returns a non-success status
            MalformedResponseError: If the body is not a JSON object
        """
        ...

    async def check_connection(self) -> list[dict[str, Any]]:
        """
        Fetch a single unresolved issue to verify access to the project.

        Returns:
            Zero or one issue summaries

        Raises:
            TransportError: If the request fails or returns a non-success status
            MalformedResponseError: If the body is not a JSON array
        """
        ...
