"""Exception hierarchy for the gemlayer client.

Transport failures are left as the SDK raises them
(:class:`google.genai.errors.APIError`, :mod:`httpx` transport errors) so the
retry classifier can inspect them.  Everything raised by gemlayer itself
derives from :class:`GemlayerError`.
"""

from __future__ import annotations


class GemlayerError(Exception):
    """Base class for all errors raised by gemlayer."""


class ConfigError(GemlayerError, ValueError):
    """Raised when a :class:`ClientConfig` is invalid."""


class ValidationError(GemlayerError, ValueError):
    """Raised on malformed local input, before any remote call is made."""


class LogicalAPIError(GemlayerError):
    """The API call succeeded but the response is unusable.

    Covers safety-filtered generations and empty candidate lists.  Retrying
    the identical request yields the identical refusal, so the retry
    classifier always stops on this error.
    """


class GenerationError(GemlayerError):
    """Raised when a generation call fails for good (after any retries)."""

    def __init__(self, model: str, cause: BaseException) -> None:
        self.model = model
        super().__init__(f"Gemini API call to {model} failed: {cause}")


class FileUploadError(GemlayerError):
    """Raised when the upload call itself is rejected.

    No remote resource exists yet, so nothing needs cleaning up.
    """


class FileLifecycleError(GemlayerError):
    """Base class for failures tied to an uploaded File API resource."""

    def __init__(self, resource_name: str, message: str) -> None:
        self.resource_name = resource_name
        super().__init__(message)


class FileProcessingError(FileLifecycleError):
    """The server reported the uploaded file as FAILED."""

    def __init__(self, resource_name: str) -> None:
        super().__init__(
            resource_name,
            f"File API processing failed on server side for {resource_name!r}",
        )


class FileStatusError(FileLifecycleError):
    """Fetching the status of an uploaded file failed."""

    def __init__(self, resource_name: str, cause: BaseException) -> None:
        super().__init__(
            resource_name, f"failed to get status for {resource_name!r}: {cause}"
        )


class FilePollTimeoutError(FileLifecycleError, TimeoutError):
    """The file did not become ACTIVE within the polling bound."""

    def __init__(self, resource_name: str, timeout: float) -> None:
        self.timeout = timeout
        super().__init__(
            resource_name,
            f"file processing for {resource_name!r} timed out after {timeout:g}s",
        )


class UploadCancelledError(FileLifecycleError):
    """The caller signalled cancellation while the file was being polled."""

    def __init__(self, resource_name: str) -> None:
        super().__init__(
            resource_name, f"upload of {resource_name!r} cancelled by caller"
        )


class FileDeleteError(FileLifecycleError):
    """The remote delete call failed."""

    def __init__(self, resource_name: str, cause: BaseException) -> None:
        super().__init__(
            resource_name, f"failed to delete file {resource_name!r}: {cause}"
        )
