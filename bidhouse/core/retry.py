"""Retry utilities with exponential backoff.

Bid transactions that lose a race against a concurrent writer are restarted
from scratch. The delay between attempts grows exponentially and carries
jitter so that bidders who collided once do not collide again in lockstep.
"""
import logging
import random
import time
from typing import Any, Callable, Optional, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class RetryConfig:
    """Configuration for retry behavior.

    Attributes:
        max_attempts: Total number of attempts, including the first one
        initial_delay: Delay in seconds before the second attempt
        max_delay: Maximum delay between attempts in seconds
        exponential_base: Base for exponential backoff (default: 2)
        jitter: Add randomness to the delay (default: True)
    """

    def __init__(
        self,
        max_attempts: int = 5,
        initial_delay: float = 0.01,
        max_delay: float = 0.5,
        exponential_base: float = 2.0,
        jitter: bool = True,
    ):
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self.max_attempts = max_attempts
        self.initial_delay = initial_delay
        self.max_delay = max_delay
        self.exponential_base = exponential_base
        self.jitter = jitter

    @classmethod
    def from_settings(cls, settings) -> "RetryConfig":
        return cls(
            max_attempts=settings.BID_MAX_ATTEMPTS,
            initial_delay=settings.BID_RETRY_INITIAL_DELAY,
            max_delay=settings.BID_RETRY_MAX_DELAY,
        )

    def get_delay(self, attempt: int) -> float:
        """Calculate delay after a failed attempt.

        Args:
            attempt: Failed attempt number (0-indexed)

        Returns:
            Delay in seconds before the next attempt

        Example:
            With initial_delay=0.01, exponential_base=2.0:
            - attempt 0: 0.01s
            - attempt 1: 0.02s
            - attempt 2: 0.04s
        """
        delay = min(self.initial_delay * (self.exponential_base ** attempt), self.max_delay)

        if self.jitter:
            delay += random.uniform(0, 0.3 * delay)

        return delay


def retry_sync(
    func: Callable[..., T],
    *args: Any,
    config: Optional[RetryConfig] = None,
    retry_on_exceptions: tuple = (Exception,),
    on_retry: Optional[Callable[[int, BaseException], None]] = None,
    **kwargs: Any,
) -> T:
    """Retry a synchronous function with exponential backoff.

    Args:
        func: Function to retry
        *args: Positional arguments for func
        config: Retry configuration (uses defaults if None)
        retry_on_exceptions: Tuple of exception types to retry on
        on_retry: Called with (attempt, exception) before each retry
        **kwargs: Keyword arguments for func

    Returns:
        Result from the first successful call

    Raises:
        The last exception if all attempts fail
    """
    if config is None:
        config = RetryConfig()

    for attempt in range(config.max_attempts):
        try:
            result = func(*args, **kwargs)

            if attempt > 0:
                logger.info(
                    "Retry succeeded",
                    extra={"attempt": attempt + 1},
                )

            return result

        except retry_on_exceptions as e:
            if attempt >= config.max_attempts - 1:
                logger.warning(
                    f"All {config.max_attempts} attempts of {func.__name__} exhausted: {e}",
                    extra={"attempt": attempt + 1},
                )
                raise

            delay = config.get_delay(attempt)

            logger.info(
                f"{func.__name__} failed, retrying in {delay:.3f}s: {e}",
                extra={"attempt": attempt + 1},
            )

            if on_retry is not None:
                on_retry(attempt + 1, e)

            time.sleep(delay)

    raise RuntimeError("Retry logic error")
