"""Tests for the IssueSync service."""

import asyncio
from pathlib import Path

from conftest import FakeIssueSource, FakeWorkspaceSearch, make_event, make_issue

from glitchtip_hover.config.schema import GlitchTipConfig, HoverConfig, WorkspaceConfig
from glitchtip_hover.core.sync import IssueSync
from glitchtip_hover.models.index import IssueIndex
from glitchtip_hover.utils.async_helpers import MalformedResponseError, TransportError


def make_sync(
    config: HoverConfig,
    source: FakeIssueSource,
    files: list[str] | None = None,
) -> IssueSync:
    """Create a sync service over fake collaborators."""
    return IssueSync(config, FakeWorkspaceSearch(files or ["app/a.rb", "app/b.rb"]), source)


class TestRunCycle:
    """Tests for run_cycle."""

    async def test_publishes_index(self, hover_config: HoverConfig) -> None:
        """Test that a successful cycle replaces the empty index."""
        source = FakeIssueSource([make_issue("A")], {"A": make_event(("app/a.rb", 7))})
        sync = make_sync(hover_config, source)

        assert sync.lookup("/work/app/a.rb", 7) == ()

        result = await sync.run_cycle()

        assert result is not None
        assert result.attributed == 1
        assert [i.id for i in sync.lookup("/work/app/a.rb", 7)] == ["A"]
        assert sync.last_result is result
        assert sync.last_error is None

    async def test_issue_limit_from_config(self, hover_config: HoverConfig) -> None:
        """Test that the configured limit reaches the issue source."""
        config = hover_config.model_copy(
            update={"glitchtip": hover_config.glitchtip.model_copy(update={"issue_limit": 20})}
        )
        source = FakeIssueSource()

        await make_sync(config, source).run_cycle()

        assert source.limits == [20]

    async def test_incomplete_config_is_noop(self) -> None:
        """Test that no request is made while settings are missing."""
        config = HoverConfig(
            glitchtip=GlitchTipConfig(auth_token="t", organization_slug="acme"),
            workspace=WorkspaceConfig(root=Path("/work")),
        )
        source = FakeIssueSource([make_issue("A")])
        sync = make_sync(config, source)

        assert await sync.run_cycle() is None
        assert source.list_calls == 0
        assert len(sync.index) == 0

    async def test_list_failure_keeps_previous_index(self, hover_config: HoverConfig) -> None:
        """Test that a failed fetch leaves the published index untouched."""
        source = FakeIssueSource([make_issue("A")], {"A": make_event(("app/a.rb", 7))})
        sync = make_sync(hover_config, source)
        await sync.run_cycle()
        published = sync.index

        source.list_error = TransportError("401 Unauthorized", status_code=401)
        assert await sync.run_cycle() is None

        assert sync.index is published
        assert [i.id for i in sync.lookup("/work/app/a.rb", 7)] == ["A"]
        assert sync.last_error == "401 Unauthorized"

    async def test_malformed_list_keeps_previous_index(self, hover_config: HoverConfig) -> None:
        """Test that a non-array issue list is treated like a failed fetch."""
        source = FakeIssueSource([make_issue("A")], {"A": make_event(("app/a.rb", 7))})
        sync = make_sync(hover_config, source)
        await sync.run_cycle()

        source.list_error = MalformedResponseError("Expected a JSON array")
        assert await sync.run_cycle() is None

        assert sync.lookup("/work/app/a.rb", 7)

    async def test_resolved_issues_disappear(self, hover_config: HoverConfig) -> None:
        """Test that each cycle builds from scratch."""
        source = FakeIssueSource(
            [make_issue("A"), make_issue("B")],
            {"A": make_event(("app/a.rb", 1)), "B": make_event(("app/b.rb", 2))},
        )
        sync = make_sync(hover_config, source)
        await sync.run_cycle()
        first = sync.index

        source.issues = [make_issue("B")]
        await sync.run_cycle()

        assert sync.lookup("/work/app/a.rb", 1) == ()
        assert [i.id for i in sync.lookup("/work/app/b.rb", 2)] == ["B"]
        assert first.lookup("/work/app/a.rb", 1)[0].id == "A"

    async def test_new_files_found_next_cycle(self, hover_config: HoverConfig) -> None:
        """Test that the file lookup cache does not outlive a cycle."""
        search = FakeWorkspaceSearch([])
        source = FakeIssueSource([make_issue("A")], {"A": make_event(("app/new.rb", 3))})
        sync = IssueSync(hover_config, search, source)

        await sync.run_cycle()
        assert sync.lookup("/work/app/new.rb", 3) == ()

        search.files.append("app/new.rb")
        await sync.run_cycle()
        assert [i.id for i in sync.lookup("/work/app/new.rb", 3)] == ["A"]

    async def test_readers_see_old_index_during_cycle(self, hover_config: HoverConfig) -> None:
        """Test that a cycle in flight never exposes a partial index."""
        source = FakeIssueSource([make_issue("A")], {"A": make_event(("app/a.rb", 7))})
        sync = make_sync(hover_config, source)
        await sync.run_cycle()
        published = sync.index

        source.gate = asyncio.Event()
        source.issues = [make_issue("B")]
        source.events["B"] = make_event(("app/a.rb", 7))
        task = asyncio.create_task(sync.run_cycle())
        await asyncio.sleep(0)

        assert sync.is_syncing
        assert sync.index is published
        assert [i.id for i in sync.lookup("/work/app/a.rb", 7)] == ["A"]

        source.gate.set()
        await task

        assert not sync.is_syncing
        assert [i.id for i in sync.lookup("/work/app/a.rb", 7)] == ["B"]

    async def test_overlapping_calls_coalesce(self, hover_config: HoverConfig) -> None:
        """Test that a trigger during a running cycle joins it."""
        source = FakeIssueSource([make_issue("A")], {"A": make_event(("app/a.rb", 7))})
        source.gate = asyncio.Event()
        sync = make_sync(hover_config, source)

        first = asyncio.create_task(sync.run_cycle())
        second = asyncio.create_task(sync.run_cycle())
        await asyncio.sleep(0)
        source.gate.set()

        results = await asyncio.gather(first, second)

        assert source.list_calls == 1
        assert results[0] is results[1]

    async def test_cancelled_caller_does_not_cancel_cycle(
        self, hover_config: HoverConfig
    ) -> None:
        """Test that cancelling one waiter leaves the shared cycle running."""
        source = FakeIssueSource([make_issue("A")], {"A": make_event(("app/a.rb", 7))})
        source.gate = asyncio.Event()
        sync = make_sync(hover_config, source)

        waiter = asyncio.create_task(sync.run_cycle())
        await asyncio.sleep(0)
        waiter.cancel()
        await asyncio.gather(waiter, return_exceptions=True)

        source.gate.set()
        result = await sync.run_cycle()

        assert result is not None
        assert source.list_calls == 1


class TestLifecycle:
    """Tests for configuration updates and shutdown."""

    async def test_update_config(self, hover_config: HoverConfig) -> None:
        """Test that new settings apply to the next cycle."""
        source = FakeIssueSource([make_issue("A")], {"A": make_event(("app/a.rb", 7))})
        sync = make_sync(hover_config, source)

        incomplete = hover_config.model_copy(update={"glitchtip": GlitchTipConfig()})
        await sync.update_config(incomplete)

        assert await sync.run_cycle() is None
        assert source.list_calls == 0

    async def test_aclose_without_cycles(self, hover_config: HoverConfig) -> None:
        """Test that closing an idle service is safe."""
        sync = make_sync(hover_config, FakeIssueSource())
        await sync.aclose()

    async def test_aclose_cancels_running_cycle(self, hover_config: HoverConfig) -> None:
        """Test that shutdown does not wait for a stuck fetch."""
        source = FakeIssueSource([make_issue("A")])
        source.gate = asyncio.Event()
        sync = make_sync(hover_config, source)

        task = asyncio.create_task(sync.run_cycle())
        await asyncio.sleep(0)
        await sync.aclose()

        assert not sync.is_syncing
        assert isinstance(sync.index, IssueIndex)
        await asyncio.gather(task, return_exceptions=True)

    def test_from_config(self, hover_config: HoverConfig) -> None:
        """Test construction from configuration alone."""
        sync = IssueSync.from_config(hover_config)

        assert len(sync.index) == 0
        assert sync.last_result is None
        assert not sync.is_syncing
