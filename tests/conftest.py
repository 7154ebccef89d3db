"""Shared pytest fixtures for gemlayer tests.

Provides a mocked google-genai client (async surface only), a file
lifecycle manager with millisecond-scale polling so lifecycle tests run
fast, and a GeminiClient wired to the mock.
"""

from __future__ import annotations

from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest
from google.genai import types

from gemlayer.client import GeminiClient
from gemlayer.files import FileLifecycleManager
from gemlayer.models import ClientConfig
from tests.helpers import (
    CLEANUP_TIMEOUT,
    FILE_NAME,
    POLL_TIMEOUT,
    TICK,
    make_file,
    make_response,
    text_part,
)


@pytest.fixture
def mock_genai_client():
    """Mock Google GenAI client with deterministic async responses.

    ``aio.files.upload`` accepts the upload and assigns ``files/abc123``;
    ``aio.files.get`` defaults to ACTIVE; ``aio.files.delete`` succeeds;
    ``aio.models.generate_content`` returns a "hello" response.
    """
    mock = MagicMock()
    mock.aio.files.upload = AsyncMock(
        return_value=SimpleNamespace(name=FILE_NAME, state=types.FileState.PROCESSING, uri=None)
    )
    mock.aio.files.get = AsyncMock(return_value=make_file("ACTIVE", uri="https://files/abc123"))
    mock.aio.files.delete = AsyncMock(return_value=None)
    mock.aio.models.generate_content = AsyncMock(
        return_value=make_response([text_part("hello")])
    )
    return mock


@pytest.fixture
def manager(mock_genai_client) -> FileLifecycleManager:
    """File lifecycle manager with fast polling against the mock client."""
    return FileLifecycleManager(
        mock_genai_client,
        poll_interval=TICK,
        poll_timeout=POLL_TIMEOUT,
        cleanup_timeout=CLEANUP_TIMEOUT,
    )


@pytest.fixture
def client_config() -> ClientConfig:
    """API-key config with near-zero retry delays."""
    return ClientConfig(
        api_key="test-key",
        initial_delay=0.001,
        max_delay=0.001,
        poll_interval_seconds=TICK,
        poll_timeout_seconds=POLL_TIMEOUT,
        cleanup_timeout_seconds=CLEANUP_TIMEOUT,
    )


@pytest.fixture
def gemini_client(client_config, mock_genai_client) -> GeminiClient:
    return GeminiClient(client_config, genai_client=mock_genai_client)
