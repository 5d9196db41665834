"""Health check utilities for verifying a glitchtip-hover setup.

This module checks that:
- The GlitchTip configuration is complete
- The workspace root exists
- The GlitchTip API is reachable with the configured token and slugs
"""

from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import StrEnum
from typing import TYPE_CHECKING, Any

import structlog

from glitchtip_hover.utils.logging import LogEventNames
from glitchtip_hover.utils.security import mask_config_value

if TYPE_CHECKING:
    from glitchtip_hover.config.schema import HoverConfig
    from glitchtip_hover.interfaces.issues import IssueSource

log = structlog.get_logger()


class HealthStatus(StrEnum):
    """Health check status values."""

    HEALTHY = "healthy"
    DEGRADED = "degraded"
    UNHEALTHY = "unhealthy"


@dataclass
class CheckResult:
    """Result of a single health check."""

    name: str
    status: HealthStatus
    message: str
    latency_ms: float | None = None
    details: dict[str, Any] = field(default_factory=dict)


@dataclass
class HealthReport:
    """Overall health report."""

    healthy: bool
    status: HealthStatus
    timestamp: datetime
    checks: list[CheckResult]

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "healthy": self.healthy,
            "status": self.status.value,
            "timestamp": self.timestamp.isoformat(),
            "checks": [
                {
                    "name": c.name,
                    "status": c.status.value,
                    "message": c.message,
                    "latency_ms": c.latency_ms,
                    "details": c.details,
                }
                for c in self.checks
            ],
        }


class HealthChecker:
    """Runs setup checks concurrently and summarizes them.

    Example:
        checker = HealthChecker(config)
        report = await checker.run_all_checks()
        if not report.healthy:
            for check in report.checks:
                print(check.name, check.message)
    """

    def __init__(self, config: HoverConfig, source: IssueSource | None = None) -> None:
        """Initialize the health checker.

        Args:
            config: Application configuration
            source: Issue source to check. If None, a GlitchTipClient is
                created from the configuration for the API check.
        """
        self._config = config
        self._source = source

    async def run_all_checks(self) -> HealthReport:
        """Run all health checks and return a report."""
        log.info(LogEventNames.HEALTH_CHECK_START)
        start_time = datetime.now(UTC)

        results = await asyncio.gather(
            self._check_config(),
            self._check_workspace(),
            self._check_api(),
            return_exceptions=True,
        )

        checks: list[CheckResult] = []
        for result in results:
            if isinstance(result, BaseException):
                checks.append(
                    CheckResult(
                        name="unknown",
                        status=HealthStatus.UNHEALTHY,
                        message=f"Check failed with exception: {result}",
                    )
                )
            else:
                checks.append(result)

        if all(c.status == HealthStatus.HEALTHY for c in checks):
            overall_status = HealthStatus.HEALTHY
        elif any(c.status == HealthStatus.UNHEALTHY for c in checks):
            overall_status = HealthStatus.UNHEALTHY
        else:
            overall_status = HealthStatus.DEGRADED

        report = HealthReport(
            healthy=overall_status != HealthStatus.UNHEALTHY,
            status=overall_status,
            timestamp=start_time,
            checks=checks,
        )

        log.info(
            LogEventNames.HEALTH_CHECK_COMPLETE,
            healthy=report.healthy,
            status=overall_status.value,
            checks_run=len(checks),
        )
        return report

    async def _check_config(self) -> CheckResult:
        """Check that every setting needed for a sync is present."""
        glitchtip = self._config.glitchtip
        if not glitchtip.is_complete:
            return CheckResult(
                name="config",
                status=HealthStatus.UNHEALTHY,
                message=f"Missing settings: {', '.join(glitchtip.missing_fields)}",
                details={"missing": list(glitchtip.missing_fields)},
            )

        return CheckResult(
            name="config",
            status=HealthStatus.HEALTHY,
            message="Configuration complete",
            details={
                "url": glitchtip.url,
                "organization_slug": glitchtip.organization_slug,
                "project_slug": glitchtip.project_slug,
                "auth_token": mask_config_value("auth_token", glitchtip.auth_token or ""),
            },
        )

    async def _check_workspace(self) -> CheckResult:
        """Check that the workspace root is an existing directory."""
        root = self._config.workspace.root.expanduser()
        if not root.is_dir():
            return CheckResult(
                name="workspace",
                status=HealthStatus.DEGRADED,
                message=f"Workspace root is not a directory: {root}",
            )
        return CheckResult(
            name="workspace",
            status=HealthStatus.HEALTHY,
            message="Workspace root found",
            details={"root": str(root.resolve())},
        )

    async def _check_api(self) -> CheckResult:
        """Fetch one unresolved issue to verify URL, token and slugs."""
        from glitchtip_hover.adapters.glitchtip import GlitchTipClient
        from glitchtip_hover.utils.async_helpers import HoverError

        glitchtip = self._config.glitchtip
        if self._source is None and not glitchtip.is_complete:
            return CheckResult(
                name="glitchtip_api",
                status=HealthStatus.UNHEALTHY,
                message="Skipped: configuration incomplete",
            )

        client: GlitchTipClient | None = None
        source = self._source
        if source is None:
            client = GlitchTipClient(glitchtip, self._config.retry)
            source = client

        start = time.monotonic()
        try:
            issues = await source.check_connection()
        except HoverError as e:
            return CheckResult(
                name="glitchtip_api",
                status=HealthStatus.UNHEALTHY,
                message=f"API request failed: {e}",
                latency_ms=(time.monotonic() - start) * 1000,
            )
        finally:
            if client is not None:
                await client.aclose()

        details: dict[str, Any] = {"issues_found": len(issues)}
        if issues and isinstance(issues[0], dict):
            sample = issues[0]
            details["sample"] = f"[{sample.get('shortId')}] {sample.get('title')}"

        return CheckResult(
            name="glitchtip_api",
            status=HealthStatus.HEALTHY,
            message=f"Connected, found {len(issues)} issue(s)",
            latency_ms=(time.monotonic() - start) * 1000,
            details=details,
        )
