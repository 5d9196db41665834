"""GlitchTip API adapter using httpx.

This module implements the IssueSource protocol for GlitchTip and other
servers that speak the Sentry ``/api/0/`` REST dialect. The client is
read-only and authenticates with a bearer token.

Failures are reported as two exception types so callers can apply their
own abort-or-skip policy:
- TransportError: connection problems, timeouts, non-success statuses
- MalformedResponseError: a body that is not JSON of the expected shape
"""

from __future__ import annotations

from typing import Any
from urllib.parse import quote

import httpx
import structlog

from glitchtip_hover._version import __version__
from glitchtip_hover.config.schema import GlitchTipConfig, RetryConfig
from glitchtip_hover.utils.async_helpers import (
    MalformedResponseError,
    TransportError,
    create_retry,
)
from glitchtip_hover.utils.logging import LogEventNames

log = structlog.get_logger()

# Bodies quoted in errors and logs are cut to this many characters
BODY_PREVIEW_CHARS = 200


class GlitchTipClient:
    """GlitchTip client implementing the IssueSource protocol.

    Example:
        config = GlitchTipConfig(
            url="https://app.glitchtip.com",
            auth_token="...",
            organization_slug="acme",
            project_slug="shop",
        )
        async with GlitchTipClient(config) as client:
            issues = await client.list_unresolved_issues(limit=100)
            event = await client.get_latest_event(issues[0]["id"])
    """

    ISSUES_PATH = "/api/0/projects/{org}/{project}/issues/"
    LATEST_EVENT_PATH = "/api/0/issues/{issue_id}/events/latest/"
    UNRESOLVED_QUERY = "is:unresolved"

    def __init__(
        self,
        config: GlitchTipConfig,
        retry_config: RetryConfig | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            config: GlitchTip connection settings. Must be complete.
            retry_config: Retry policy for timeouts and network errors.
                Defaults to a single attempt.
            transport: Optional httpx transport, e.g. ``httpx.MockTransport``.

        Raises:
            ConfigIncompleteError: If any required setting is missing.
        """
        config.require_complete()
        self._config = config
        retry_config = retry_config or RetryConfig()

        self._client = httpx.AsyncClient(
            base_url=config.url,
            headers={
                "Authorization": f"Bearer {config.auth_token}",
                "Accept": "application/json",
                "User-Agent": f"glitchtip-hover/{__version__}",
            },
            timeout=httpx.Timeout(config.timeout),
            transport=transport,
        )
        self._send = create_retry(
            max_attempts=retry_config.max_attempts,
            min_wait=retry_config.min_wait,
            max_wait=retry_config.max_wait,
        )(self._send_once)

    async def __aenter__(self) -> GlitchTipClient:
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Close the underlying HTTP connection pool."""
        await self._client.aclose()

    async def list_unresolved_issues(self, limit: int | None = None) -> list[dict[str, Any]]:
        """Fetch unresolved issue summaries for the configured project.

        Args:
            limit: Maximum number of issues. Defaults to ``config.issue_limit``.

        Returns:
            Issue summaries in server order.

        Raises:
            TransportError: If the request fails or returns a non-success status.
            MalformedResponseError: If the body is not a JSON array.
        """
        path = self.ISSUES_PATH.format(
            org=quote(self._config.organization_slug or "", safe=""),
            project=quote(self._config.project_slug or "", safe=""),
        )
        params = {
            "query": self.UNRESOLVED_QUERY,
            "limit": limit if limit is not None else self._config.issue_limit,
        }

        data = await self._get_json(path, params=params)
        if not isinstance(data, list):
            raise MalformedResponseError(
                f"Expected a JSON array of issues, got {type(data).__name__}"
            )

        log.info(LogEventNames.ISSUES_FETCHED, count=len(data))
        return data

    async def get_latest_event(self, issue_id: str) -> dict[str, Any]:
        """Fetch the most recent event of an issue.

        Args:
            issue_id: Issue identifier.

        Returns:
            Decoded event object.

        Raises:
            TransportError: If the request fails or returns a non-success status.
            MalformedResponseError: If the body is not a JSON object.
        """
        path = self.LATEST_EVENT_PATH.format(issue_id=quote(str(issue_id), safe=""))

        data = await self._get_json(path)
        if not isinstance(data, dict):
            raise MalformedResponseError(
                f"Expected a JSON object for event, got {type(data).__name__}"
            )
        return data

    async def check_connection(self) -> list[dict[str, Any]]:
        """Fetch a single unresolved issue to verify URL, token and slugs.

        Returns:
            Zero or one issue summaries.

        Raises:
            TransportError: If the request fails or returns a non-success status.
            MalformedResponseError: If the body is not a JSON array.
        """
        return await self.list_unresolved_issues(limit=1)

    async def _send_once(self, path: str, params: dict[str, Any] | None) -> httpx.Response:
        return await self._client.get(path, params=params)

    async def _get_json(self, path: str, params: dict[str, Any] | None = None) -> Any:
        """GET ``path`` and decode the JSON body.

        Raises:
            TransportError: On network errors, timeouts and non-2xx statuses.
            MalformedResponseError: If the body is not valid JSON.
        """
        try:
            response = await self._send(path, params)
        except httpx.TimeoutException as e:
            log.debug(LogEventNames.API_REQUEST_FAILED, path=path, error="timeout")
            raise TransportError(f"GET {path} timed out after {self._config.timeout}s") from e
        except httpx.HTTPError as e:
            log.debug(LogEventNames.API_REQUEST_FAILED, path=path, error=str(e))
            raise TransportError(f"GET {path} failed: {e}") from e

        if not response.is_success:
            preview = response.text[:BODY_PREVIEW_CHARS]
            log.debug(
                LogEventNames.API_REQUEST_FAILED,
                path=path,
                status_code=response.status_code,
                body=preview,
            )
            raise TransportError(
                f"GET {path} returned {response.status_code} {response.reason_phrase}: {preview}",
                status_code=response.status_code,
            )

        try:
            return response.json()
        except ValueError as e:
            preview = response.text[:BODY_PREVIEW_CHARS]
            log.debug(LogEventNames.API_MALFORMED_RESPONSE, path=path, body=preview)
            raise MalformedResponseError(f"GET {path} returned non-JSON body: {preview}") from e
