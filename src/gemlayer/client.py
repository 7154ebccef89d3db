"""Gemini generation client with classified retries and File API support.

Every generation call runs through :func:`gemlayer.retry.execute_with_retry`
with :func:`gemlayer.classify.is_retryable` as the predicate.  One attempt
is "call the API, then extract the text"; a safety block or an empty
response raises :class:`LogicalAPIError` inside the attempt and stops the
retries immediately.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any

from google import genai
from google.genai import types

from gemlayer.classify import is_retryable
from gemlayer.config import to_client_kwargs, validate_config
from gemlayer.constants import (
    DEFAULT_CANDIDATE_COUNT,
    DEFAULT_TOP_P,
    INT32_MAX,
    INT32_MIN,
)
from gemlayer.errors import GenerationError, ValidationError
from gemlayer.extract import extract_images, extract_text
from gemlayer.files import FileLifecycleManager
from gemlayer.models import ClientConfig, GenerateOptions, GenerationResult, UploadedFile
from gemlayer.retry import RetryPolicy, execute_with_retry

logger = logging.getLogger(__name__)


def seed_to_int32(seed: int | None) -> int | None:
    """Return *seed* if it fits a signed 32-bit integer, else ``None``.

    Out-of-range seeds are logged and dropped so generation proceeds
    without a seed instead of failing.
    """
    if seed is None:
        return None
    if seed < INT32_MIN or seed > INT32_MAX:
        logger.warning(
            "Seed %d is outside the int32 range [%d, %d]; continuing without a seed",
            seed,
            INT32_MIN,
            INT32_MAX,
        )
        return None
    return seed


class GeminiClient:
    """Resilient wrapper around ``google.genai.Client``.

    Usage::

        client = GeminiClient(ClientConfig(api_key="..."))
        result = await client.generate_content("gemini-2.5-flash", "Hello")
        print(result.text)

        uploaded = await client.upload_file(video_bytes, "video/mp4", "clip")
        try:
            part = types.Part.from_uri(file_uri=uploaded.uri, mime_type="video/mp4")
            result = await client.generate_with_parts(
                "gemini-2.5-flash", [part, types.Part.from_text(text="Summarise")]
            )
        finally:
            await client.delete_file(uploaded)
    """

    def __init__(
        self,
        config: ClientConfig,
        genai_client: genai.Client | None = None,
    ) -> None:
        validate_config(config)
        self._config = config
        self._client = genai_client or genai.Client(**to_client_kwargs(config))
        self._temperature = config.resolved_temperature
        self._retry_policy = RetryPolicy.from_config(config)
        self.files = FileLifecycleManager(
            self._client,
            poll_interval=config.poll_interval_seconds,
            poll_timeout=config.poll_timeout_seconds,
            cleanup_timeout=config.cleanup_timeout_seconds,
        )

    @property
    def retry_policy(self) -> RetryPolicy:
        return self._retry_policy

    @property
    def temperature(self) -> float:
        return self._temperature

    # ------------------------------------------------------------------
    # Generation
    # ------------------------------------------------------------------

    async def generate_content(self, model: str, prompt: str) -> GenerationResult:
        """Generate content from a plain text prompt.

        Raises:
            ValidationError: If *prompt* is empty.
            GenerationError: If the call fails for good.
        """
        if not prompt or not prompt.strip():
            raise ValidationError("prompt is empty")

        config = types.GenerateContentConfig(temperature=self._temperature)
        return await self._generate(model, prompt, config)

    async def generate_with_parts(
        self,
        model: str,
        parts: list[types.Part],
        options: GenerateOptions | None = None,
    ) -> GenerationResult:
        """Generate content from multimodal parts (text, images, file URIs).

        Raises:
            ValidationError: If *parts* is empty.
            GenerationError: If the call fails for good.
        """
        if not parts:
            raise ValidationError("parts must not be empty")

        contents = [types.Content(role="user", parts=list(parts))]
        config = self.build_generation_config(options or GenerateOptions())
        return await self._generate(model, contents, config)

    def build_generation_config(self, options: GenerateOptions) -> types.GenerateContentConfig:
        """Map per-request options onto a ``GenerateContentConfig``."""
        kwargs: dict[str, Any] = {
            "temperature": (
                options.temperature if options.temperature is not None else self._temperature
            ),
            "top_p": options.top_p if options.top_p is not None else DEFAULT_TOP_P,
            "candidate_count": (
                options.candidate_count
                if options.candidate_count is not None
                else DEFAULT_CANDIDATE_COUNT
            ),
        }
        if options.safety_settings:
            kwargs["safety_settings"] = options.safety_settings

        seed = seed_to_int32(options.seed)
        if seed is not None:
            kwargs["seed"] = seed

        if options.system_prompt:
            kwargs["system_instruction"] = types.Content(
                parts=[types.Part(text=options.system_prompt)]
            )

        if options.aspect_ratio:
            kwargs["image_config"] = types.ImageConfig(aspect_ratio=options.aspect_ratio)

        return types.GenerateContentConfig(**kwargs)

    async def _generate(
        self, model: str, contents: Any, config: types.GenerateContentConfig
    ) -> GenerationResult:
        async def attempt() -> GenerationResult:
            response = await self._client.aio.models.generate_content(
                model=model, contents=contents, config=config
            )
            text = extract_text(response)
            return GenerationResult(
                text=text,
                images=extract_images(response),
                raw_response=response,
            )

        try:
            return await execute_with_retry(
                attempt,
                policy=self._retry_policy,
                label=f"Gemini API call to {model}",
                should_retry=is_retryable,
            )
        except Exception as exc:
            raise GenerationError(model, exc) from exc

    # ------------------------------------------------------------------
    # File API
    # ------------------------------------------------------------------

    async def upload_file(
        self,
        data: bytes,
        mime_type: str,
        display_name: str = "",
        cancel_event: asyncio.Event | None = None,
    ) -> UploadedFile:
        """Upload *data* and wait for it to become ACTIVE.

        See :meth:`FileLifecycleManager.upload`.
        """
        return await self.files.upload(data, mime_type, display_name, cancel_event=cancel_event)

    async def delete_file(self, target: str | UploadedFile | None) -> None:
        """Delete an uploaded file; empty names are a no-op."""
        await self.files.delete(target)

    async def wait_for_cleanups(self) -> None:
        await self.files.wait_for_cleanups()

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def close(self) -> None:
        """Wait for background cleanups, then close the genai client."""
        await self.files.wait_for_cleanups()
        aio = getattr(self._client, "aio", None)
        aclose = getattr(aio, "aclose", None)
        if callable(aclose):
            result = aclose()
            if result is not None and hasattr(result, "__await__"):
                await result
