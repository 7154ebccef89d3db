"""Retry eligibility classification for Gemini API failures.

Decides, per exception, whether sending the same request again can help.
The checks run in a fixed order and the first match wins:

1. :class:`LogicalAPIError` -- the service answered correctly with an
   unusable result (safety block, empty response).  Never retried.
2. Caller cancellation or caller deadline -- retrying would ignore the
   caller's intent to stop.  Never retried.  A caller's ``wait_for`` or
   ``asyncio.timeout`` reaches the attempt as :class:`asyncio.CancelledError`,
   so a bare :class:`TimeoutError` seen here is a transport read timeout.
3. API errors with a status -- retried only for DEADLINE_EXCEEDED,
   UNAVAILABLE, RESOURCE_EXHAUSTED and INTERNAL.
4. Transport errors without a status (connection resets, premature stream
   end, network read timeouts) -- retried.
5. Anything else -- not retried.

Check 1 must run before status inspection and check 2 before check 3 so
that cancellation overrides any status classification.
"""

from __future__ import annotations

import asyncio
from enum import Enum

import httpx
from google.genai import errors as genai_errors

from gemlayer.errors import (
    FilePollTimeoutError,
    LogicalAPIError,
    UploadCancelledError,
)

__all__ = [
    "RETRYABLE_STATUSES",
    "RetryEligibility",
    "classify_error",
    "is_retryable",
    "status_of",
]


class RetryEligibility(str, Enum):
    """Outcome of classifying a single failure."""

    RETRY = "retry"
    STOP = "stop"


RETRYABLE_STATUSES: frozenset[str] = frozenset(
    {
        "DEADLINE_EXCEEDED",  # server-side timeout
        "UNAVAILABLE",
        "RESOURCE_EXHAUSTED",  # rate limiting
        "INTERNAL",
    }
)

# HTTP codes as Google APIs map them onto canonical status names
_HTTP_STATUS_NAMES: dict[int, str] = {
    400: "INVALID_ARGUMENT",
    401: "UNAUTHENTICATED",
    403: "PERMISSION_DENIED",
    404: "NOT_FOUND",
    409: "ABORTED",
    412: "FAILED_PRECONDITION",
    429: "RESOURCE_EXHAUSTED",
    499: "CANCELLED",
    500: "INTERNAL",
    501: "UNIMPLEMENTED",
    502: "UNAVAILABLE",
    503: "UNAVAILABLE",
    504: "DEADLINE_EXCEEDED",
}

_CALLER_STOP_ERRORS: tuple[type[BaseException], ...] = (
    asyncio.CancelledError,
    UploadCancelledError,
    FilePollTimeoutError,
)

_TRANSPORT_ERRORS: tuple[type[BaseException], ...] = (
    httpx.TransportError,
    TimeoutError,
    asyncio.TimeoutError,
    ConnectionError,
    EOFError,
)


def status_of(exc: genai_errors.APIError) -> str | None:
    """Return the canonical status name of an API error, if any.

    Prefers the ``status`` field of the error payload and falls back to
    mapping the HTTP code.
    """
    status = getattr(exc, "status", None)
    if status:
        return str(status).upper()
    code = getattr(exc, "code", None)
    if isinstance(code, int):
        return _HTTP_STATUS_NAMES.get(code)
    return None


def classify_error(exc: BaseException | None) -> RetryEligibility:
    """Classify *exc* as :attr:`RetryEligibility.RETRY` or ``STOP``."""
    if exc is None:
        return RetryEligibility.STOP

    if isinstance(exc, LogicalAPIError):
        return RetryEligibility.STOP

    if isinstance(exc, _CALLER_STOP_ERRORS):
        return RetryEligibility.STOP

    if isinstance(exc, genai_errors.APIError):
        status = status_of(exc)
        if status is not None:
            if status in RETRYABLE_STATUSES:
                return RetryEligibility.RETRY
            return RetryEligibility.STOP
        # no status and no code: same as a raw transport failure
        return RetryEligibility.RETRY

    if isinstance(exc, _TRANSPORT_ERRORS):
        return RetryEligibility.RETRY

    return RetryEligibility.STOP


def is_retryable(exc: BaseException | None) -> bool:
    """Return ``True`` if retrying the failed request might succeed."""
    return classify_error(exc) is RetryEligibility.RETRY
