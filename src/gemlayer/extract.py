"""Turn ``GenerateContentResponse`` objects into text and image payloads.

A response can arrive over a perfectly healthy connection and still be
useless: no candidates at all, or a candidate stopped by the safety filter.
Those cases raise :class:`LogicalAPIError`, which the retry classifier never
retries.
"""

from __future__ import annotations

import logging
from typing import Any

from gemlayer.errors import LogicalAPIError

logger = logging.getLogger(__name__)

# Finish reasons that mean "the model finished normally"
_NORMAL_FINISH_REASONS = frozenset({"FINISH_REASON_UNSPECIFIED", "STOP"})


def _finish_reason_name(reason: Any) -> str:
    if reason is None:
        return "FINISH_REASON_UNSPECIFIED"
    name = getattr(reason, "name", None) or str(reason)
    return name.rsplit(".", 1)[-1].upper()


def _first_candidate_parts(response: Any) -> list[Any]:
    candidates = getattr(response, "candidates", None) or []
    if not candidates:
        return []
    content = getattr(candidates[0], "content", None)
    if content is None:
        return []
    return list(getattr(content, "parts", None) or [])


def extract_text(response: Any) -> str:
    """Return the first non-empty text part of the first candidate.

    Args:
        response: A ``GenerateContentResponse`` from google-genai.

    Returns:
        The text, or ``""`` when the candidate carries no text (for example
        a pure image generation).

    Raises:
        LogicalAPIError: If there are no candidates, or the first candidate
            finished for any reason other than a normal stop.
    """
    candidates = getattr(response, "candidates", None) if response is not None else None
    if not candidates:
        raise LogicalAPIError("empty response returned from Gemini API")

    candidate = candidates[0]
    reason = _finish_reason_name(getattr(candidate, "finish_reason", None))
    if reason not in _NORMAL_FINISH_REASONS:
        raise LogicalAPIError(f"generation blocked (reason: {reason})")

    for part in _first_candidate_parts(response):
        text = getattr(part, "text", None)
        if text:
            return text
    return ""


def extract_images(response: Any) -> list[bytes]:
    """Collect every inline binary payload of the first candidate, in order."""
    images: list[bytes] = []
    if response is None:
        return images
    for part in _first_candidate_parts(response):
        inline = getattr(part, "inline_data", None)
        data = getattr(inline, "data", None) if inline is not None else None
        if data:
            images.append(data)
    if images:
        logger.debug("Extracted %d inline image(s) from response", len(images))
    return images
