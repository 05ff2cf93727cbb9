"""
test_retry.py - 지수 백오프 재시도 테스트
"""

from unittest.mock import AsyncMock, patch

import pytest

from src.utils.retry import RetryableError, retry_with_exponential_backoff


@pytest.fixture
def no_sleep():
    with patch("src.utils.retry.asyncio.sleep", new_callable=AsyncMock) as mock_sleep:
        yield mock_sleep


class TestRetryWithExponentialBackoff:
    """retry_with_exponential_backoff 함수 테스트."""

    @pytest.mark.asyncio
    async def test_first_attempt_success(self, no_sleep):
        """첫 시도 성공 → 대기 없음."""
        func = AsyncMock(return_value="ok")

        assert await retry_with_exponential_backoff(func, "op") == "ok"
        assert func.await_count == 1
        no_sleep.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_backoff_delays(self, no_sleep):
        """대기 시간 지수 증가 (max_delay 상한)."""
        func = AsyncMock(side_effect=[RetryableError("a"), RetryableError("b"), RetryableError("c"), "ok"])

        result = await retry_with_exponential_backoff(
            func, "op", max_retries=3, initial_delay=1.0, max_delay=3.0
        )

        assert result == "ok"
        assert [c.args[0] for c in no_sleep.await_args_list] == [1.0, 2.0, 3.0]

    @pytest.mark.asyncio
    async def test_exhausted(self, no_sleep):
        """재시도 소진 → 마지막 RetryableError."""
        func = AsyncMock(side_effect=RetryableError("down"))

        with pytest.raises(RetryableError, match="down"):
            await retry_with_exponential_backoff(func, "op", max_retries=2)

        assert func.await_count == 3

    @pytest.mark.asyncio
    async def test_other_errors_not_retried(self, no_sleep):
        """RetryableError 외 예외는 즉시 전파."""
        func = AsyncMock(side_effect=ValueError("bad input"))

        with pytest.raises(ValueError):
            await retry_with_exponential_backoff(func, "op")

        assert func.await_count == 1
