"""Shared test fixtures for glitchtip-hover."""

from __future__ import annotations

import asyncio
import json
from pathlib import Path
from typing import Any

import pytest

from glitchtip_hover.adapters.workspace.filesystem import compile_glob
from glitchtip_hover.config.schema import GlitchTipConfig, HoverConfig, WorkspaceConfig
from glitchtip_hover.utils.async_helpers import TransportError

# Get the fixtures directory
FIXTURES_DIR = Path(__file__).parent / "fixtures"
EVENTS_DIR = FIXTURES_DIR / "events"
ISSUES_DIR = FIXTURES_DIR / "issues"

WORKSPACE_ROOT = "/work"


def load_json(path: Path) -> Any:
    """Load a JSON fixture file."""
    return json.loads(path.read_text())


def make_issue(issue_id: str, short_id: str | None = None, **extra: Any) -> dict[str, Any]:
    """Build an issue summary as returned by the issues-list endpoint."""
    data: dict[str, Any] = {
        "id": issue_id,
        "shortId": short_id or f"SHOP-{issue_id}",
        "title": f"Error {issue_id}",
        "count": "1",
        "permalink": f"https://app.glitchtip.com/acme/issues/{issue_id}",
    }
    data.update(extra)
    return data


def make_event(*frames: tuple[str, int]) -> dict[str, Any]:
    """Build a latest-event payload with one exception and the given frames."""
    return {
        "entries": [
            {
                "type": "exception",
                "data": {
                    "values": [
                        {
                            "stacktrace": {
                                "frames": [
                                    {"filename": filename, "lineNo": line}
                                    for filename, line in frames
                                ]
                            }
                        }
                    ]
                },
            }
        ]
    }


class FakeIssueSource:
    """In-memory IssueSource.

    ``events`` maps issue ids to event payloads or to exceptions to raise.
    Unknown ids raise a 404 TransportError. Setting ``gate`` holds
    ``list_unresolved_issues`` until the event is set.
    """

    def __init__(
        self,
        issues: list[Any] | None = None,
        events: dict[str, Any] | None = None,
        list_error: Exception | None = None,
    ) -> None:
        self.issues = list(issues or [])
        self.events = dict(events or {})
        self.list_error = list_error
        self.gate: asyncio.Event | None = None
        self.list_calls = 0
        self.limits: list[int] = []
        self.event_calls: list[str] = []
        self.check_calls = 0

    async def list_unresolved_issues(self, limit: int) -> list[Any]:
        self.list_calls += 1
        self.limits.append(limit)
        if self.gate is not None:
            await self.gate.wait()
        if self.list_error is not None:
            raise self.list_error
        return list(self.issues[:limit])

    async def check_connection(self) -> list[Any]:
        self.check_calls += 1
        return await self.list_unresolved_issues(1)

    async def get_latest_event(self, issue_id: str) -> dict[str, Any]:
        self.event_calls.append(issue_id)
        event = self.events.get(issue_id)
        if isinstance(event, Exception):
            raise event
        if event is None:
            raise TransportError(f"issue {issue_id} not found", status_code=404)
        return event


class FakeWorkspaceSearch:
    """In-memory WorkspaceSearch over relative paths below ``/work``."""

    def __init__(self, files: list[str] | None = None, error: Exception | None = None) -> None:
        self.files = list(files or [])
        self.error = error
        self.calls: list[str] = []

    async def search(
        self,
        glob_pattern: str,
        exclude_pattern: str | None,
        max_results: int,
    ) -> list[str]:
        self.calls.append(glob_pattern)
        if self.error is not None:
            raise self.error
        include = compile_glob(glob_pattern)
        exclude = compile_glob(exclude_pattern) if exclude_pattern else None
        matches = [
            f"{WORKSPACE_ROOT}/{rel}"
            for rel in self.files
            if include.fullmatch(rel) and not (exclude and exclude.fullmatch(rel))
        ]
        return matches[:max_results]


@pytest.fixture
def fixtures_dir() -> Path:
    """Return the path to the fixtures directory."""
    return FIXTURES_DIR


@pytest.fixture
def unresolved_issues() -> list[dict[str, Any]]:
    """Load a sample issues-list response."""
    return load_json(ISSUES_DIR / "unresolved.json")


@pytest.fixture
def ruby_event() -> dict[str, Any]:
    """Load a Rails event with runtime, gem and app frames."""
    return load_json(EVENTS_DIR / "ruby.json")


@pytest.fixture
def node_event() -> dict[str, Any]:
    """Load a Node event with Windows separators and node_modules frames."""
    return load_json(EVENTS_DIR / "node.json")


@pytest.fixture
def message_only_event() -> dict[str, Any]:
    """Load an event without an exception entry."""
    return load_json(EVENTS_DIR / "message_only.json")


@pytest.fixture
def dependencies_only_event() -> dict[str, Any]:
    """Load an event whose frames are all in dependencies."""
    return load_json(EVENTS_DIR / "dependencies_only.json")


@pytest.fixture
def glitchtip_config() -> GlitchTipConfig:
    """Return a complete GlitchTip configuration."""
    return GlitchTipConfig(
        url="https://glitchtip.example.com",
        auth_token="test-token-not-real",
        organization_slug="acme",
        project_slug="shop",
    )


@pytest.fixture
def hover_config(glitchtip_config: GlitchTipConfig) -> HoverConfig:
    """Return a complete application configuration rooted at /work."""
    return HoverConfig(
        glitchtip=glitchtip_config,
        workspace=WorkspaceConfig(root=Path(WORKSPACE_ROOT)),
    )


@pytest.fixture
def workspace_files() -> list[str]:
    """Relative paths present in the fake workspace."""
    return [
        "app/models/user.rb",
        "app/controllers/users_controller.rb",
        "src/handlers/index.ts",
        "node_modules/express/lib/router/layer.js",
    ]


@pytest.fixture
def fake_search(workspace_files: list[str]) -> FakeWorkspaceSearch:
    """Return a fake workspace search over ``workspace_files``."""
    return FakeWorkspaceSearch(workspace_files)
