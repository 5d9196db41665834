"""Tests for LocalFileLocator."""

import asyncio

import pytest
from conftest import FakeWorkspaceSearch

from glitchtip_hover.config.schema import WorkspaceConfig
from glitchtip_hover.core.file_locator import LocalFileLocator


class SlowSearch:
    """Workspace search that never finishes in time."""

    async def search(self, glob_pattern: str, exclude_pattern: str | None, max_results: int):
        await asyncio.sleep(10)
        return []


class TestSearchPattern:
    """Tests for search_pattern."""

    def test_prefixes_recursive_glob(self) -> None:
        """Test that the path is matched at any depth."""
        assert LocalFileLocator.search_pattern("app/models/user.rb") == "**/app/models/user.rb"

    def test_leading_slash_dropped(self) -> None:
        """Test that absolute frame paths still form a relative glob."""
        assert LocalFileLocator.search_pattern("/srv/app/a.rb") == "**/srv/app/a.rb"


class TestLocate:
    """Tests for locate."""

    async def test_found(self, fake_search: FakeWorkspaceSearch) -> None:
        """Test that a matching file resolves to its absolute path."""
        locator = LocalFileLocator(fake_search)

        assert await locator.locate("app/models/user.rb") == "/work/app/models/user.rb"
        assert fake_search.calls == ["**/app/models/user.rb"]

    async def test_found_in_subdirectory(self) -> None:
        """Test that the frame path may sit below the workspace root."""
        search = FakeWorkspaceSearch(["services/api/src/handlers/index.ts"])
        locator = LocalFileLocator(search)

        assert await locator.locate("src/handlers/index.ts") == (
            "/work/services/api/src/handlers/index.ts"
        )

    async def test_not_found(self, fake_search: FakeWorkspaceSearch) -> None:
        """Test that no match resolves to None."""
        locator = LocalFileLocator(fake_search)
        assert await locator.locate("app/models/order.rb") is None

    async def test_first_match_wins(self) -> None:
        """Test that the first of several candidates is chosen."""
        search = FakeWorkspaceSearch(["a/app/x.rb", "b/app/x.rb"])
        locator = LocalFileLocator(search, WorkspaceConfig(max_results=5))

        assert await locator.locate("app/x.rb") == "/work/a/app/x.rb"

    async def test_excluded_directories(self) -> None:
        """Test that the default exclusion hides node_modules copies."""
        search = FakeWorkspaceSearch(["node_modules/pkg/src/index.ts"])
        locator = LocalFileLocator(search)

        assert await locator.locate("src/index.ts") is None

    @pytest.mark.parametrize("path", ["", "/", "//"])
    async def test_empty_path(self, fake_search: FakeWorkspaceSearch, path: str) -> None:
        """Test that empty paths are not searched."""
        locator = LocalFileLocator(fake_search)

        assert await locator.locate(path) is None
        assert fake_search.calls == []

    async def test_results_cached(self, fake_search: FakeWorkspaceSearch) -> None:
        """Test that hits and misses are memoized."""
        locator = LocalFileLocator(fake_search)

        await locator.locate("app/models/user.rb")
        await locator.locate("app/models/user.rb")
        await locator.locate("app/missing.rb")
        await locator.locate("app/missing.rb")

        assert len(fake_search.calls) == 2

    async def test_reset_clears_cache(self, fake_search: FakeWorkspaceSearch) -> None:
        """Test that a reset picks up files added since the last lookup."""
        locator = LocalFileLocator(fake_search)

        assert await locator.locate("app/new.rb") is None
        fake_search.files.append("app/new.rb")
        assert await locator.locate("app/new.rb") is None

        locator.reset()
        assert await locator.locate("app/new.rb") == "/work/app/new.rb"

    async def test_cache_disabled(self, fake_search: FakeWorkspaceSearch) -> None:
        """Test that a cache size of zero searches every time."""
        locator = LocalFileLocator(fake_search, WorkspaceConfig(cache_size=0))

        await locator.locate("app/models/user.rb")
        await locator.locate("app/models/user.rb")

        assert len(fake_search.calls) == 2

    async def test_search_error(self) -> None:
        """Test that a failing search yields None and is not cached."""
        search = FakeWorkspaceSearch(["app/a.rb"], error=OSError("permission denied"))
        locator = LocalFileLocator(search)

        assert await locator.locate("app/a.rb") is None

        search.error = None
        assert await locator.locate("app/a.rb") == "/work/app/a.rb"

    async def test_search_timeout(self) -> None:
        """Test that a search exceeding the timeout yields None."""
        locator = LocalFileLocator(SlowSearch(), WorkspaceConfig(search_timeout=0.01))

        assert await locator.locate("app/a.rb") is None
