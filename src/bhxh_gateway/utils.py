from collections.abc import Awaitable, Callable
from datetime import UTC, datetime

import structlog

logger = structlog.get_logger(__name__)


def now() -> datetime:
    return datetime.now(UTC)


def elapsed_ms(started: float, finished: float) -> int:
    return int((finished - started) * 1000)


async def retry[T](
    action: Callable[[int], Awaitable[T]],
    attempts: int,
    retry_on: type[Exception] | tuple[type[Exception], ...],
) -> T:
    """Run ``action`` until it succeeds or ``attempts`` are used up.

    The action receives the 1-based attempt number. Only exceptions matching
    ``retry_on`` trigger another attempt; the final attempt's error propagates.
    """
    if attempts < 1:
        raise ValueError("attempts must be at least 1")

    for attempt in range(1, attempts):
        try:
            return await action(attempt)
        except retry_on as e:
            logger.info("retrying", attempt=attempt, max_attempts=attempts, error=str(e))
    return await action(attempts)
