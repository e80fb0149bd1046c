"""Tests for the bounded immediate retry helper."""

import asyncio

import pytest

from asset_uploader.utils.retry import retry_async


def flaky(failures: int, error: Exception = ConnectionError("reset")):
    """Operation that fails ``failures`` times and then returns its call count."""
    calls = []

    async def operation():
        calls.append(1)
        if len(calls) <= failures:
            raise error
        return len(calls)

    return operation, calls


class TestRetryAsync:
    """Test retry_async."""

    def test_success_on_first_attempt(self):
        """Test a healthy operation runs once."""
        operation, calls = flaky(0)
        attempts = []

        result = asyncio.run(retry_async(operation, max_attempts=3, on_attempt=attempts.append))

        assert result == 1
        assert attempts == [1]

    def test_success_after_failures(self):
        """Test failures are retried back to back until success."""
        operation, calls = flaky(2)
        failures = []

        result = asyncio.run(
            retry_async(
                operation,
                max_attempts=3,
                on_failure=lambda attempt, error: failures.append(attempt),
            )
        )

        assert result == 3
        assert failures == [1, 2]

    def test_exhaustion_raises_last_error(self):
        """Test the last error surfaces after max_attempts."""
        operation, calls = flaky(10)

        with pytest.raises(ConnectionError, match="reset"):
            asyncio.run(retry_async(operation, max_attempts=4))

        assert len(calls) == 4

    def test_unlisted_exception_is_not_retried(self):
        """Test exceptions outside ``exceptions`` propagate immediately."""
        operation, calls = flaky(5, error=KeyError("bad"))

        with pytest.raises(KeyError):
            asyncio.run(retry_async(operation, max_attempts=5, exceptions=(ConnectionError,)))

        assert len(calls) == 1

    @pytest.mark.parametrize("max_attempts", [0, -3])
    def test_at_least_one_attempt(self, max_attempts):
        """Test a non-positive budget still makes one attempt."""
        operation, calls = flaky(0)

        assert asyncio.run(retry_async(operation, max_attempts=max_attempts)) == 1
        assert len(calls) == 1

    def test_long_budget(self):
        """Test a large budget completes without growing the stack."""
        operation, calls = flaky(2000)

        result = asyncio.run(retry_async(operation, max_attempts=2001))

        assert result == 2001
