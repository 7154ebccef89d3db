"""Configuration loading and validation for the Gemini client."""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Any

import keyring

from gemlayer.constants import MAX_TEMPERATURE, MIN_TEMPERATURE
from gemlayer.errors import ConfigError
from gemlayer.models import ClientConfig

logger = logging.getLogger(__name__)

SERVICE_NAME = "gemlayer-gemini"
KEY_NAME = "api_key"
ENV_VAR = "GEMINI_API_KEY"
DEFAULT_CONFIG_PATH = Path("config/client_config.json")

# ------------------------------------------------------------------
# API key storage
# ------------------------------------------------------------------


def find_api_key() -> tuple[str, str] | None:
    """Locate a Gemini API key.

    Returns:
        ``(source, key)`` where *source* is ``"keyring"`` or ``"env"``, or
        ``None`` when neither holds a key.  The keyring wins over the
        environment.
    """
    lookups = (
        ("keyring", lambda: keyring.get_password(SERVICE_NAME, KEY_NAME)),
        ("env", lambda: os.environ.get(ENV_VAR)),
    )
    for source, lookup in lookups:
        key = lookup()
        if key:
            return source, key
    return None


def get_api_key() -> str:
    """Return the Gemini API key from the keyring or ``GEMINI_API_KEY``.

    Raises:
        ConfigError: No key is stored anywhere.
    """
    found = find_api_key()
    if found is None:
        raise ConfigError(
            f"no Gemini API key in keyring service {SERVICE_NAME!r} or ${ENV_VAR}; "
            "store one with `gemlayer config set-api-key`"
        )
    source, key = found
    logger.debug("Using Gemini API key from %s", source)
    return key


def store_api_key(key: str) -> None:
    """Save *key* to the system keyring, rejecting blank keys."""
    key = key.strip()
    if not key:
        raise ConfigError("API key cannot be empty")
    keyring.set_password(SERVICE_NAME, KEY_NAME, key)


def forget_api_key() -> bool:
    """Remove the stored key; return False if there was none."""
    if not keyring.get_password(SERVICE_NAME, KEY_NAME):
        return False
    keyring.delete_password(SERVICE_NAME, KEY_NAME)
    return True


def mask_api_key(key: str) -> str:
    """Show only the first and last four characters of *key*."""
    if len(key) <= 8:
        return "*" * len(key)
    return f"{key[:4]}{'*' * 4}{key[-4:]}"


# ------------------------------------------------------------------
# Validation
# ------------------------------------------------------------------


def require_positive(name: str, value: float) -> None:
    """Raise :class:`ConfigError` unless *value* is greater than zero."""
    if value <= 0:
        raise ConfigError(f"{name} must be positive (got {value})")


def validate_config(config: ClientConfig) -> None:
    """Check backend selection and numeric ranges.

    Order: exclusivity, completeness, presence, temperature, then the File
    API lifecycle timings.

    Raises:
        ConfigError: On the first violated rule.
    """
    if (config.is_vertex_ai or config.is_incomplete_vertex) and config.is_gemini_api:
        raise ConfigError("set either project_id/location_id or api_key, not both")

    if config.is_incomplete_vertex:
        raise ConfigError("Vertex AI requires both project_id and location_id")

    if not config.is_vertex_ai and not config.is_gemini_api:
        raise ConfigError("either api_key or project_id/location_id is required")

    if config.temperature is not None:
        if not MIN_TEMPERATURE <= config.temperature <= MAX_TEMPERATURE:
            raise ConfigError(
                f"temperature must be between {MIN_TEMPERATURE} and "
                f"{MAX_TEMPERATURE} (got {config.temperature})"
            )

    require_positive("poll_interval_seconds", config.poll_interval_seconds)
    require_positive("poll_timeout_seconds", config.poll_timeout_seconds)
    require_positive("cleanup_timeout_seconds", config.cleanup_timeout_seconds)


def to_client_kwargs(config: ClientConfig) -> dict[str, Any]:
    """Translate a config into ``genai.Client`` keyword arguments."""
    if config.is_vertex_ai:
        return {
            "vertexai": True,
            "project": config.project_id,
            "location": config.location_id,
        }
    return {"api_key": config.api_key}


def load_client_config(config_path: Path | None = None) -> ClientConfig:
    """Load client configuration from JSON, falling back to defaults.

    Reads from ``config/client_config.json`` when *config_path* is ``None``.
    If the file does not exist, returns a ``ClientConfig`` with defaults.
    When neither an API key nor a Vertex project is configured, the key is
    looked up via :func:`get_api_key` (keyring, then environment).

    Args:
        config_path: Optional explicit path to client_config.json.

    Returns:
        ClientConfig populated from file + key lookup.
    """
    if config_path is None:
        config_path = DEFAULT_CONFIG_PATH

    data: dict = {}
    if config_path.exists():
        with open(config_path) as f:
            data = json.load(f)

    field_names = {f.name for f in ClientConfig.__dataclass_fields__.values()}
    unknown = sorted(set(data) - field_names)
    if unknown:
        logger.warning("Ignoring unknown config keys in %s: %s", config_path, ", ".join(unknown))
    kwargs = {k: v for k, v in data.items() if k in field_names}

    config = ClientConfig(**kwargs)

    if not config.api_key and not (config.project_id or config.location_id):
        try:
            config.api_key = get_api_key()
        except ConfigError:
            logger.debug("No API key in keyring or environment")

    return config
