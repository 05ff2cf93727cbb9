"""
재시도 로직 유틸리티.

스토리지 업로드/메일 발송처럼 일시적으로 실패할 수 있는 외부 호출에 사용.
RetryableError만 재시도하고, 그 외 예외는 즉시 전파.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class RetryableError(Exception):
    """재시도 가능한 에러 (네트워크 단절, 5xx, 429 등)."""


async def retry_with_exponential_backoff(
    func: Callable[[], Awaitable[T]],
    operation: str,
    max_retries: int = 2,
    initial_delay: float = 0.5,
    max_delay: float = 8.0,
    exponential_base: float = 2.0,
) -> T:
    """
    지수 백오프를 사용한 재시도.

    Args:
        func: 재시도할 비동기 함수 (인자 없음)
        operation: 로그용 작업 이름 (예: "storage upload")
        max_retries: 최대 재시도 횟수 (총 시도 = max_retries + 1)
        initial_delay: 초기 대기 시간(초)
        max_delay: 최대 대기 시간(초)
        exponential_base: 지수 백오프 기수

    Returns:
        func의 반환값

    Raises:
        RetryableError: 마지막 시도도 실패
        그 외 예외: 즉시 전파
    """
    delay = initial_delay
    attempts = max_retries + 1

    for attempt in range(attempts):
        try:
            result = await func()
            if attempt > 0:
                logger.info(f"{operation} succeeded on attempt {attempt + 1}/{attempts}")
            return result

        except RetryableError as e:
            if attempt == max_retries:
                logger.error(f"{operation}: all {attempts} attempts failed. Last error: {e}")
                raise

            logger.warning(
                f"{operation}: attempt {attempt + 1}/{attempts} failed: {e}. "
                f"Retrying in {delay:.1f}s..."
            )
            await asyncio.sleep(delay)
            delay = min(delay * exponential_base, max_delay)

    # Should never reach here
    msg = "Unexpected retry logic error"
    raise RuntimeError(msg)
