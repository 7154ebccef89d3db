"""Tests for config validation, API key lookup and config file loading."""

from __future__ import annotations

import json

import pytest

from gemlayer import config as config_module
from gemlayer.config import (
    ENV_VAR,
    KEY_NAME,
    SERVICE_NAME,
    find_api_key,
    forget_api_key,
    get_api_key,
    load_client_config,
    mask_api_key,
    store_api_key,
    to_client_kwargs,
    validate_config,
)
from gemlayer.errors import ConfigError
from gemlayer.models import ClientConfig


@pytest.fixture
def no_keyring(monkeypatch):
    """Keyring that holds no password."""
    monkeypatch.setattr(config_module.keyring, "get_password", lambda service, key: None)


class TestValidateConfig:
    def test_api_key_only(self):
        validate_config(ClientConfig(api_key="k"))

    def test_vertex_only(self):
        validate_config(ClientConfig(project_id="p", location_id="us-central1"))

    def test_both_backends_rejected(self):
        config = ClientConfig(api_key="k", project_id="p", location_id="l")
        with pytest.raises(ConfigError, match="not both"):
            validate_config(config)

    def test_api_key_with_partial_vertex_is_exclusivity_error(self):
        """Exclusivity is checked before completeness."""
        with pytest.raises(ConfigError, match="not both"):
            validate_config(ClientConfig(api_key="k", project_id="p"))

    @pytest.mark.parametrize(
        "config",
        [ClientConfig(project_id="p"), ClientConfig(location_id="l")],
        ids=["project-only", "location-only"],
    )
    def test_incomplete_vertex(self, config):
        with pytest.raises(ConfigError, match="requires both"):
            validate_config(config)

    def test_nothing_set(self):
        with pytest.raises(ConfigError, match="required"):
            validate_config(ClientConfig())

    @pytest.mark.parametrize("temperature", [0.0, 1.0, 2.0])
    def test_temperature_bounds_inclusive(self, temperature):
        validate_config(ClientConfig(api_key="k", temperature=temperature))

    @pytest.mark.parametrize("temperature", [-0.1, 2.5])
    def test_temperature_out_of_range(self, temperature):
        with pytest.raises(ConfigError, match="temperature"):
            validate_config(ClientConfig(api_key="k", temperature=temperature))

    @pytest.mark.parametrize(
        "field", ["poll_interval_seconds", "poll_timeout_seconds", "cleanup_timeout_seconds"]
    )
    @pytest.mark.parametrize("value", [0, -0.5])
    def test_lifecycle_timings_must_be_positive(self, field, value):
        config = ClientConfig(api_key="k", **{field: value})
        with pytest.raises(ConfigError, match=field):
            validate_config(config)

    def test_config_error_is_value_error(self):
        with pytest.raises(ValueError):
            validate_config(ClientConfig())


class TestClientKwargs:
    def test_api_key(self):
        assert to_client_kwargs(ClientConfig(api_key="k")) == {"api_key": "k"}

    def test_vertex(self):
        config = ClientConfig(project_id="p", location_id="europe-west4")
        assert to_client_kwargs(config) == {
            "vertexai": True,
            "project": "p",
            "location": "europe-west4",
        }

    def test_resolved_temperature(self):
        assert ClientConfig().resolved_temperature == 0.7
        assert ClientConfig(temperature=0.0).resolved_temperature == 0.0


class TestGetApiKey:
    def test_keyring_first(self, monkeypatch):
        monkeypatch.setattr(
            config_module.keyring, "get_password", lambda service, key: "from-keyring"
        )
        monkeypatch.setenv(ENV_VAR, "from-env")
        assert get_api_key() == "from-keyring"

    def test_env_fallback(self, monkeypatch, no_keyring):
        monkeypatch.setenv(ENV_VAR, "from-env")
        assert get_api_key() == "from-env"

    def test_missing_everywhere(self, monkeypatch, no_keyring):
        monkeypatch.delenv(ENV_VAR, raising=False)
        with pytest.raises(ConfigError, match="set-api-key"):
            get_api_key()

    def test_find_reports_source(self, monkeypatch, no_keyring):
        monkeypatch.setenv(ENV_VAR, "from-env")
        assert find_api_key() == ("env", "from-env")


@pytest.fixture
def store(monkeypatch):
    """In-memory keyring."""
    passwords: dict[tuple[str, str], str] = {}
    keyring = config_module.keyring
    monkeypatch.setattr(keyring, "set_password", lambda s, k, v: passwords.__setitem__((s, k), v))
    monkeypatch.setattr(keyring, "get_password", lambda s, k: passwords.get((s, k)))
    monkeypatch.setattr(keyring, "delete_password", lambda s, k: passwords.pop((s, k)))
    return passwords


class TestKeyStorage:
    def test_store_strips_key(self, store):
        store_api_key("  AIzaKey  ")
        assert store[(SERVICE_NAME, KEY_NAME)] == "AIzaKey"

    def test_store_rejects_blank(self, store):
        with pytest.raises(ConfigError, match="empty"):
            store_api_key("   ")
        assert not store

    def test_forget(self, store):
        assert forget_api_key() is False
        store[(SERVICE_NAME, KEY_NAME)] = "secret"
        assert forget_api_key() is True
        assert not store

    @pytest.mark.parametrize(
        "key,masked",
        [("AIzaSyExampleKey123", "AIza****y123"), ("short", "*****"), ("", "")],
    )
    def test_mask(self, key, masked):
        assert mask_api_key(key) == masked


class TestLoadClientConfig:
    def test_reads_json(self, tmp_path, no_keyring):
        path = tmp_path / "client_config.json"
        path.write_text(
            json.dumps({"project_id": "p", "location_id": "l", "temperature": 0.3, "max_retries": 3})
        )
        config = load_client_config(path)

        assert config.is_vertex_ai
        assert config.temperature == 0.3
        assert config.max_retries == 3
        assert config.api_key is None

    def test_unknown_keys_ignored(self, tmp_path, no_keyring, caplog):
        path = tmp_path / "client_config.json"
        path.write_text(json.dumps({"api_key": "k", "colour": "blue"}))

        config = load_client_config(path)

        assert config.api_key == "k"
        assert "colour" in caplog.text

    def test_missing_file_uses_key_lookup(self, tmp_path, monkeypatch, no_keyring):
        monkeypatch.setenv(ENV_VAR, "env-key")
        config = load_client_config(tmp_path / "absent.json")
        assert config.api_key == "env-key"

    def test_no_key_anywhere_leaves_config_unset(self, tmp_path, monkeypatch, no_keyring):
        monkeypatch.delenv(ENV_VAR, raising=False)
        config = load_client_config(tmp_path / "absent.json")
        assert config.api_key is None
        with pytest.raises(ConfigError):
            validate_config(config)
