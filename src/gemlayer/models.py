"""Data models and enums for the gemlayer client."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any

from gemlayer.constants import (
    CLEANUP_TIMEOUT_SECONDS,
    DEFAULT_INITIAL_DELAY_SECONDS,
    DEFAULT_MAX_DELAY_SECONDS,
    DEFAULT_MAX_RETRIES,
    DEFAULT_TEMPERATURE,
    POLL_INTERVAL_SECONDS,
    POLL_TIMEOUT_SECONDS,
)

if TYPE_CHECKING:
    from gemlayer.fsm import FileLifecycleSM


class FileState(str, Enum):
    """Remote processing state of an uploaded File API resource.

    ``UNKNOWN`` stands in for any state the server reports that this client
    does not recognise; the poll loop tolerates it.
    """

    PENDING = "pending"
    PROCESSING = "processing"
    ACTIVE = "active"
    FAILED = "failed"
    UNKNOWN = "unknown"

    @classmethod
    def from_remote(cls, state: Any) -> FileState:
        """Map an SDK ``FileState`` (or raw string) onto this enum."""
        if state is None:
            return cls.UNKNOWN
        name = getattr(state, "name", None) or str(state)
        name = name.rsplit(".", 1)[-1].upper()
        try:
            return cls[name]
        except KeyError:
            return cls.UNKNOWN


@dataclass
class UploadedFile:
    """A blob uploaded to the Gemini File API.

    ``name`` is assigned by the server and identifies the resource for
    status polling and deletion.  ``uri`` is only set once the file is
    ACTIVE.
    """

    name: str
    display_name: str
    mime_type: str
    uri: str | None = None
    state: FileState = FileState.PENDING
    lifecycle: FileLifecycleSM | None = field(default=None, repr=False, compare=False)

    @property
    def deleted(self) -> bool:
        return self.lifecycle is not None and self.lifecycle.current_state_value == "deleted"


@dataclass
class GenerationResult:
    """Outcome of a generation call.

    ``text`` is empty for image-only responses; that is a valid result.
    """

    text: str = ""
    images: list[bytes] = field(default_factory=list)
    raw_response: Any = None


@dataclass
class GenerateOptions:
    """Per-request generation options.

    ``None`` means "use the client default".  ``seed`` is truncated to the
    signed 32-bit range the API accepts; out-of-range seeds are dropped.
    """

    system_prompt: str = ""
    temperature: float | None = None
    top_p: float | None = None
    candidate_count: int | None = None
    aspect_ratio: str = ""
    seed: int | None = None
    safety_settings: list[Any] | None = None


@dataclass
class ClientConfig:
    """Configuration for :class:`~gemlayer.client.GeminiClient`.

    Set ``api_key`` for the Gemini API (Google AI Studio), or both
    ``project_id`` and ``location_id`` for Vertex AI.  The two backends are
    mutually exclusive; see :func:`gemlayer.config.validate_config`.
    """

    api_key: str | None = None
    project_id: str | None = None
    location_id: str | None = None
    temperature: float | None = None
    max_retries: int = DEFAULT_MAX_RETRIES
    initial_delay: float = DEFAULT_INITIAL_DELAY_SECONDS
    max_delay: float = DEFAULT_MAX_DELAY_SECONDS
    poll_interval_seconds: float = POLL_INTERVAL_SECONDS
    poll_timeout_seconds: float = POLL_TIMEOUT_SECONDS
    cleanup_timeout_seconds: float = CLEANUP_TIMEOUT_SECONDS

    @property
    def is_vertex_ai(self) -> bool:
        return bool(self.project_id) and bool(self.location_id)

    @property
    def is_gemini_api(self) -> bool:
        return bool(self.api_key)

    @property
    def is_incomplete_vertex(self) -> bool:
        """True when only one of project/location is set."""
        has_any = bool(self.project_id) or bool(self.location_id)
        return has_any and not self.is_vertex_ai

    @property
    def resolved_temperature(self) -> float:
        if self.temperature is None:
            return DEFAULT_TEMPERATURE
        return self.temperature
