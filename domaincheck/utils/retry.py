"""Retransmission utilities for DNS queries."""

import logging
import time
from functools import wraps
from typing import Any, Callable, TypeVar

import dns.exception


logger = logging.getLogger(__name__)

# Type variable for generic function signatures
F = TypeVar("F", bound=Callable[..., Any])


def retransmit(
    max_retries: int = 1,
    delays: list[float] | None = None,
) -> Callable[[F], F]:
    """Decorator retrying a DNS send round when every server timed out.

    Only ``dns.exception.Timeout`` is retried; any other error, and the final
    timeout once retries are exhausted, propagates to the caller.

    Args:
        max_retries: Number of retransmissions after the first attempt (default: 1).
        delays: Seconds to wait before each retransmission (default: [1.0]).

    Returns:
        Callable: Decorated function with retransmission logic.

    Examples:
        >>> @retransmit(max_retries=2, delays=[1.0, 1.0])
        ... def send_round():
        ...     pass
    """
    if delays is None:
        delays = [1.0] * max_retries

    def decorator(func: F) -> F:
        @wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            for attempt in range(max_retries + 1):
                try:
                    return func(*args, **kwargs)
                except dns.exception.Timeout:
                    if attempt < max_retries:
                        delay = delays[min(attempt, len(delays) - 1)] if delays else 0
                        logger.debug(
                            f"All servers timed out, retransmitting in {delay}s "
                            f"(attempt {attempt + 2} of {max_retries + 1})"
                        )
                        time.sleep(delay)
                        continue
                    raise
            raise dns.exception.Timeout()

        return wrapper  # type: ignore

    return decorator
