"""Tests for async utility functions."""

from __future__ import annotations

import asyncio

import httpx
import pytest

from glitchtip_hover.utils.async_helpers import (
    ConfigIncompleteError,
    HoverError,
    MalformedResponseError,
    TimeoutError,
    TransportError,
    create_retry,
    with_timeout,
)


class TestCustomExceptions:
    """Test custom exception classes."""

    def test_hover_error_base(self) -> None:
        """Test HoverError is the base exception."""
        error = HoverError("base error")
        assert str(error) == "base error"
        assert isinstance(error, Exception)

    def test_config_incomplete_error(self) -> None:
        """Test ConfigIncompleteError lists the missing settings."""
        error = ConfigIncompleteError(("auth_token", "project_slug"))
        assert isinstance(error, HoverError)
        assert error.missing == ("auth_token", "project_slug")
        assert "auth_token, project_slug" in str(error)

    def test_transport_error_with_status(self) -> None:
        """Test TransportError with a status code."""
        error = TransportError("unauthorized", status_code=401)
        assert isinstance(error, HoverError)
        assert error.status_code == 401

    def test_transport_error_without_status(self) -> None:
        """Test TransportError for failures without a response."""
        assert TransportError("connection refused").status_code is None

    def test_malformed_response_error(self) -> None:
        """Test MalformedResponseError inherits from HoverError."""
        assert isinstance(MalformedResponseError("bad body"), HoverError)

    def test_timeout_error(self) -> None:
        """Test TimeoutError inherits from HoverError."""
        assert isinstance(TimeoutError("timed out"), HoverError)


class TestRetryDecorator:
    """Test retry decorator functionality."""

    async def test_single_attempt_by_default(self) -> None:
        """Test that the default policy does not retry."""
        call_count = 0

        @create_retry()
        async def failing_func() -> str:
            nonlocal call_count
            call_count += 1
            raise httpx.ConnectError("Connection failed")

        with pytest.raises(httpx.ConnectError):
            await failing_func()

        assert call_count == 1

    async def test_retries_on_timeout(self) -> None:
        """Test that timeouts are retried."""
        call_count = 0

        @create_retry(max_attempts=3, min_wait=0.01, max_wait=0.02)
        async def flaky_func() -> str:
            nonlocal call_count
            call_count += 1
            if call_count < 2:
                raise httpx.ReadTimeout("Timeout")
            return "success"

        assert await flaky_func() == "success"
        assert call_count == 2

    async def test_gives_up_after_max_attempts(self) -> None:
        """Test that the last exception is re-raised after max attempts."""
        call_count = 0

        @create_retry(max_attempts=3, min_wait=0.01, max_wait=0.02)
        async def always_fails() -> str:
            nonlocal call_count
            call_count += 1
            raise httpx.ConnectError("Connection failed")

        with pytest.raises(httpx.ConnectError):
            await always_fails()

        assert call_count == 3

    async def test_does_not_retry_other_exceptions(self) -> None:
        """Test that non-network errors are raised immediately."""
        call_count = 0

        @create_retry(max_attempts=3, min_wait=0.01, max_wait=0.02)
        async def raises_value_error() -> str:
            nonlocal call_count
            call_count += 1
            raise ValueError("Not a network error")

        with pytest.raises(ValueError):
            await raises_value_error()

        assert call_count == 1

    async def test_custom_retry_on(self) -> None:
        """Test retrying on a custom exception type."""
        call_count = 0

        @create_retry(max_attempts=2, min_wait=0.01, max_wait=0.02, retry_on=(KeyError,))
        async def custom_error() -> str:
            nonlocal call_count
            call_count += 1
            if call_count == 1:
                raise KeyError("missing")
            return "success"

        assert await custom_error() == "success"
        assert call_count == 2


class TestTimeoutUtilities:
    """Test timeout utility functions."""

    async def test_with_timeout_succeeds(self) -> None:
        """Test with_timeout when operation completes in time."""

        async def fast_operation() -> str:
            await asyncio.sleep(0.01)
            return "done"

        result = await with_timeout(fast_operation(), timeout=1.0)
        assert result == "done"

    async def test_with_timeout_times_out(self) -> None:
        """Test with_timeout when operation exceeds timeout."""

        async def slow_operation() -> str:
            await asyncio.sleep(10)
            return "done"

        with pytest.raises(TimeoutError):
            await with_timeout(slow_operation(), timeout=0.01)

    async def test_with_timeout_custom_message(self) -> None:
        """Test with_timeout with custom error message."""

        async def slow_operation() -> str:
            await asyncio.sleep(10)
            return "done"

        with pytest.raises(TimeoutError, match="Workspace search"):
            await with_timeout(
                slow_operation(),
                timeout=0.01,
                error_message="Workspace search for **/app/a.rb timed out",
            )
