"""Builders for google-genai objects used across the test suite."""

from __future__ import annotations

from google.genai import types

FILE_NAME = "files/abc123"

# Fast lifecycle timings for tests (seconds)
TICK = 0.01
POLL_TIMEOUT = 1.0
CLEANUP_TIMEOUT = 0.5


def make_file(state: str, uri: str | None = None, name: str = FILE_NAME) -> types.File:
    """Build a File as returned by ``files.get`` in the given state."""
    return types.File(name=name, state=types.FileState[state], uri=uri)


def make_response(
    parts: list[types.Part] | None = None,
    finish_reason: types.FinishReason | None = types.FinishReason.STOP,
    candidates: bool = True,
) -> types.GenerateContentResponse:
    """Build a GenerateContentResponse with a single candidate."""
    if not candidates:
        return types.GenerateContentResponse(candidates=[])
    content = types.Content(role="model", parts=parts) if parts is not None else None
    return types.GenerateContentResponse(
        candidates=[types.Candidate(content=content, finish_reason=finish_reason)]
    )


def text_part(text: str) -> types.Part:
    return types.Part(text=text)


def image_part(data: bytes, mime_type: str = "image/png") -> types.Part:
    return types.Part(inline_data=types.Blob(data=data, mime_type=mime_type))
