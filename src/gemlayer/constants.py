"""Project-wide named constants.

Defaults for generation parameters, the retry policy and the File API
lifecycle.  Every value can be overridden through :class:`ClientConfig`
or per-call :class:`GenerateOptions`.
"""

DEFAULT_MODEL: str = "gemini-2.5-flash"

# Generation defaults
DEFAULT_TEMPERATURE: float = 0.7
DEFAULT_TOP_P: float = 0.95
DEFAULT_CANDIDATE_COUNT: int = 1
MIN_TEMPERATURE: float = 0.0
MAX_TEMPERATURE: float = 2.0

# Retry policy: one retry, 30s first backoff, capped at 120s.
DEFAULT_MAX_RETRIES: int = 1
DEFAULT_INITIAL_DELAY_SECONDS: float = 30.0
DEFAULT_MAX_DELAY_SECONDS: float = 120.0

# File API lifecycle
POLL_INTERVAL_SECONDS: float = 2.0
POLL_TIMEOUT_SECONDS: float = 60.0
CLEANUP_TIMEOUT_SECONDS: float = 15.0

# Seeds are sent as signed 32-bit integers
INT32_MIN: int = -(2**31)
INT32_MAX: int = 2**31 - 1
