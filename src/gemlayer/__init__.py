"""Resilient Gemini client: classified retries and leak-free File API uploads."""

__version__ = "0.1.0"

from gemlayer.classify import RetryEligibility, classify_error, is_retryable
from gemlayer.client import GeminiClient, seed_to_int32
from gemlayer.errors import (
    ConfigError,
    FileDeleteError,
    FileLifecycleError,
    FilePollTimeoutError,
    FileProcessingError,
    FileStatusError,
    FileUploadError,
    GemlayerError,
    GenerationError,
    LogicalAPIError,
    UploadCancelledError,
    ValidationError,
)
from gemlayer.extract import extract_images, extract_text
from gemlayer.files import FileLifecycleManager
from gemlayer.models import (
    ClientConfig,
    FileState,
    GenerateOptions,
    GenerationResult,
    UploadedFile,
)

__all__ = [
    "ClientConfig",
    "ConfigError",
    "FileDeleteError",
    "FileLifecycleError",
    "FileLifecycleManager",
    "FilePollTimeoutError",
    "FileProcessingError",
    "FileState",
    "FileStatusError",
    "FileUploadError",
    "GeminiClient",
    "GemlayerError",
    "GenerateOptions",
    "GenerationError",
    "GenerationResult",
    "LogicalAPIError",
    "RetryEligibility",
    "UploadCancelledError",
    "UploadedFile",
    "ValidationError",
    "__version__",
    "classify_error",
    "extract_images",
    "extract_text",
    "is_retryable",
    "seed_to_int32",
]
