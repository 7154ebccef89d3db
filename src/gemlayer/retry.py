"""Bounded exponential-backoff retry executor.

Thin wrapper around tenacity's :class:`AsyncRetrying`.  The caller supplies
one attempt of the operation and a retry-eligibility predicate (normally
:func:`gemlayer.classify.is_retryable`); the :class:`RetryPolicy` owns the
timing and attempt count.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Awaitable, Callable, TypeVar

from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

from gemlayer.classify import is_retryable
from gemlayer.constants import (
    DEFAULT_INITIAL_DELAY_SECONDS,
    DEFAULT_MAX_DELAY_SECONDS,
    DEFAULT_MAX_RETRIES,
)

if TYPE_CHECKING:
    from gemlayer.models import ClientConfig

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class RetryPolicy:
    """Retry timing and attempt budget.

    Attributes:
        max_retries: Retries after the first attempt (total attempts is
            ``max_retries + 1``).
        initial_delay: Seconds before the first retry; doubles per retry.
        max_delay: Upper bound on any single delay.
    """

    max_retries: int = DEFAULT_MAX_RETRIES
    initial_delay: float = DEFAULT_INITIAL_DELAY_SECONDS
    max_delay: float = DEFAULT_MAX_DELAY_SECONDS

    @property
    def attempts(self) -> int:
        return max(self.max_retries, 0) + 1

    @classmethod
    def from_config(cls, config: ClientConfig) -> RetryPolicy:
        """Build a policy from a client config, falling back to defaults."""
        return cls(
            max_retries=config.max_retries if config.max_retries > 0 else DEFAULT_MAX_RETRIES,
            initial_delay=(
                config.initial_delay if config.initial_delay > 0 else DEFAULT_INITIAL_DELAY_SECONDS
            ),
            max_delay=config.max_delay if config.max_delay > 0 else DEFAULT_MAX_DELAY_SECONDS,
        )


def _log_retry(label: str) -> Callable[[RetryCallState], None]:
    def before_sleep(retry_state: RetryCallState) -> None:
        exc = retry_state.outcome.exception() if retry_state.outcome else None
        delay = retry_state.next_action.sleep if retry_state.next_action else 0.0
        logger.warning(
            "%s attempt %d failed (%s: %s); retrying in %.1fs",
            label,
            retry_state.attempt_number,
            type(exc).__name__,
            exc,
            delay,
        )

    return before_sleep


async def execute_with_retry(
    operation: Callable[[], Awaitable[T]],
    *,
    policy: RetryPolicy,
    label: str,
    should_retry: Callable[[BaseException], bool] = is_retryable,
) -> T:
    """Run *operation* until it succeeds or the policy gives up.

    Args:
        operation: Zero-argument async callable performing one attempt.
        policy: Attempt budget and backoff timing.
        label: Human-readable operation name used in log lines.
        should_retry: Predicate deciding whether a failure is worth retrying.

    Returns:
        Whatever *operation* returns on its first successful attempt.

    Raises:
        BaseException: The last failure, unchanged, once the predicate says
            stop or the attempt budget is spent.
    """
    async for attempt in AsyncRetrying(
        stop=stop_after_attempt(policy.attempts),
        wait=wait_exponential(multiplier=policy.initial_delay, max=policy.max_delay),
        retry=retry_if_exception(should_retry),
        before_sleep=_log_retry(label),
        reraise=True,
    ):
        with attempt:
            logger.debug("%s attempt %d", label, attempt.retry_state.attempt_number)
            return await operation()

    raise AssertionError("unreachable: tenacity either returns or reraises")
