"""
Tests for connection profile resolution (config.py).

Tests cover:
- Settings home resolution order
- Provider, wire protocol and endpoint defaults
- Credential lookup from environment and auth.json
- Header assembly from static and environment-sourced values
- Model resolution
"""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from codexcfg.config import (
    CodexProviderOptions,
    ConnectionProfile,
    load_codex_config,
    resolve_codex_home,
    resolve_model,
)
from codexcfg.exceptions import ConfigurationError

CUSTOM_PROVIDER_TOML = """
model = "qwen2.5-coder"
model_provider = "ollama"

[model_providers.ollama]
base_url = "http://localhost:11434/v1"
env_key = "OLLAMA_TOKEN"
http_headers = { "X-Static" = "static-value" }
env_http_headers = { "X-Org" = "ORG_HEADER", "X-Blank" = "BLANK_HEADER", "X-Unset" = "UNSET_HEADER" }
query_params = { "api-version" = "2025-04-01", preview = true }
"""


def _load(home: Path, environ=None) -> ConnectionProfile:
    return load_codex_config(CodexProviderOptions(codex_home=home), environ=environ or {})


# =============================================================================
# Settings home
# =============================================================================


class TestResolveCodexHome:
    """Explicit option, then CODEX_HOME, then ~/.codex."""

    def test_explicit_option_wins(self, tmp_path: Path) -> None:
        """Test that an explicit codex_home beats the environment."""
        assert resolve_codex_home(tmp_path, {"CODEX_HOME": "/elsewhere"}) == tmp_path

    def test_environment_variable(self) -> None:
        """Test that $CODEX_HOME is used when no option is given."""
        assert resolve_codex_home(None, {"CODEX_HOME": "/srv/codex"}) == Path("/srv/codex")

    def test_default_user_home(self) -> None:
        """Test falling back to ~/.codex."""
        assert resolve_codex_home(None, {}) == Path.home() / ".codex"


# =============================================================================
# Defaults
# =============================================================================


class TestDefaults:
    """Behaviour with an empty settings home."""

    def test_sentinel_provider_defaults(self, codex_home: Path) -> None:
        """Test the defaults for an empty settings home."""
        profile = _load(codex_home)
        assert profile.codex_home == codex_home
        assert profile.provider_id == "openai"
        assert profile.model == "gpt-5-codex"
        assert profile.wire_api == "responses"
        assert profile.base_url == "https://api.openai.com/v1"
        assert profile.api_key is None
        assert profile.headers == {}
        assert profile.query_params is None

    def test_non_sentinel_provider_defaults_to_chat(self, write_home) -> None:
        """Test that other providers default to the chat wire API."""
        home = write_home(**{"config.toml": 'model_provider = "local"\n'})
        profile = _load(home)
        assert profile.wire_api == "chat"
        assert profile.base_url is None
        assert profile.api_key is None

    def test_repeated_loads_are_identical(self, write_home) -> None:
        """Test that loading twice gives equal profiles."""
        home = write_home(**{"config.toml": CUSTOM_PROVIDER_TOML})
        environ = {"OLLAMA_TOKEN": "tok", "ORG_HEADER": "org"}
        assert _load(home, environ) == _load(home, environ)


# =============================================================================
# Provider tables
# =============================================================================


class TestProviderTable:
    """Per-provider settings from [model_providers.<id>]."""

    def test_custom_provider(self, write_home) -> None:
        """Test a custom provider table with headers and query params."""
        home = write_home(**{"config.toml": CUSTOM_PROVIDER_TOML})
        profile = _load(home, {"ORG_HEADER": "acme", "BLANK_HEADER": "   "})

        assert profile.provider_id == "ollama"
        assert profile.model == "qwen2.5-coder"
        assert profile.wire_api == "chat"
        assert profile.base_url == "http://localhost:11434/v1"
        assert profile.headers == {"X-Static": "static-value", "X-Org": "acme"}
        assert profile.query_params == {"api-version": "2025-04-01", "preview": True}
        assert profile.default_query() == {"api-version": "2025-04-01", "preview": "true"}

    def test_explicit_wire_api(self, write_home) -> None:
        """Test that a declared wire_api is honored."""
        home = write_home(
            **{
                "config.toml": 'model_provider = "azure"\n\n'
                '[model_providers.azure]\nbase_url = "https://x.openai.azure.com/openai"\n'
                'wire_api = "responses"\n'
            }
        )
        assert _load(home).wire_api == "responses"

    def test_unknown_wire_api_is_fatal(self, write_home) -> None:
        """Test that an unknown wire_api raises ConfigurationError."""
        home = write_home(
            **{"config.toml": '[model_providers.openai]\nwire_api = "grpc"\n'}
        )
        with pytest.raises(ConfigurationError) as exc_info:
            _load(home)
        assert "Unsupported wire_api" in str(exc_info.value)
        assert exc_info.value.provider_name == "openai"

    def test_malformed_settings_file_is_fatal(self, write_home) -> None:
        """Test that invalid TOML raises ConfigurationError."""
        home = write_home(**{"config.toml": "model = \n[broken"})
        with pytest.raises(ConfigurationError):
            _load(home)

    @pytest.mark.parametrize(
        "toml, key",
        [
            ('model_providers = "openai"\n', "model_providers"),
            ('model_providers = { openai = 3 }\n', "model_providers.openai"),
            ('[model_providers.openai]\nhttp_headers = ["x"]\n', "http_headers"),
            ('[model_providers.openai]\nenv_http_headers = { X-Org = 1 }\n', "env_http_headers.X-Org"),
            ('[model_providers.openai]\nquery_params = "a=1"\n', "query_params"),
            ('[model_providers.openai]\nbase_url = 8080\n', "base_url"),
            ("model = 5\n", "model"),
            ("model_provider = true\n", "model_provider"),
        ],
    )
    def test_wrongly_shaped_values_are_fatal(self, write_home, toml: str, key: str) -> None:
        """Test that values of the wrong type raise ConfigurationError."""
        home = write_home(**{"config.toml": toml})
        with pytest.raises(ConfigurationError) as exc_info:
            _load(home)
        assert key in str(exc_info.value)


# =============================================================================
# Credentials
# =============================================================================


class TestCredentials:
    """Credential lookup order."""

    def test_declared_env_key_from_environment(self, write_home) -> None:
        """Test reading the declared env_key from the environment."""
        home = write_home(
            **{
                "config.toml": CUSTOM_PROVIDER_TOML,
                "auth.json": json.dumps({"OLLAMA_TOKEN": "from-auth"}),
            }
        )
        assert _load(home, {"OLLAMA_TOKEN": "from-env"}).api_key == "from-env"

    def test_declared_env_key_falls_back_to_auth_store(self, write_home) -> None:
        """Test reading the declared env_key from auth.json."""
        home = write_home(
            **{
                "config.toml": CUSTOM_PROVIDER_TOML,
                "auth.json": json.dumps({"OLLAMA_TOKEN": "from-auth"}),
            }
        )
        assert _load(home).api_key == "from-auth"

    def test_sentinel_provider_reads_openai_key(self, write_home) -> None:
        """Test that the openai provider reads OPENAI_API_KEY."""
        home = write_home(**{"auth.json": json.dumps({"OPENAI_API_KEY": "sk-auth"})})
        assert _load(home).api_key == "sk-auth"
        assert _load(home, {"OPENAI_API_KEY": "sk-env"}).api_key == "sk-env"

    def test_legacy_underscored_auth_key(self, write_home) -> None:
        """Test the _OPENAI_API_KEY fallback in auth.json."""
        home = write_home(**{"auth.json": json.dumps({"_OPENAI_API_KEY": "sk-legacy"})})
        assert _load(home).api_key == "sk-legacy"

    def test_no_declared_key_means_no_credential(self, write_home) -> None:
        """Test that a provider without env_key has no credential."""
        home = write_home(
            **{
                "config.toml": 'model_provider = "local"\n[model_providers.local]\nbase_url = "http://x"\n',
                "auth.json": json.dumps({"OPENAI_API_KEY": "sk-auth"}),
            }
        )
        assert _load(home, {"OPENAI_API_KEY": "sk-env"}).api_key is None

    def test_requires_openai_auth_opt_in(self, write_home) -> None:
        """Test that requires_openai_auth enables the OpenAI key lookup."""
        home = write_home(
            **{
                "config.toml": 'model_provider = "proxy"\n[model_providers.proxy]\n'
                'base_url = "http://proxy/v1"\nrequires_openai_auth = true\n',
            }
        )
        assert _load(home, {"OPENAI_API_KEY": "sk-env"}).api_key == "sk-env"

    def test_unparsable_auth_store_is_ignored(self, write_home) -> None:
        """Test that invalid JSON in auth.json is treated as empty."""
        home = write_home(**{"auth.json": "{not json"})
        assert _load(home).api_key is None

    def test_non_string_auth_values_are_ignored(self, write_home) -> None:
        """Test that non-string auth values are skipped."""
        home = write_home(**{"auth.json": json.dumps({"OPENAI_API_KEY": None, "tokens": {"a": 1}})})
        assert _load(home).api_key is None

    def test_masked_profile(self, write_home) -> None:
        """Test that to_dict masks the API key."""
        home = write_home(**{"auth.json": json.dumps({"OPENAI_API_KEY": "sk-0123456789"})})
        data = _load(home).to_dict()
        assert data["api_key"] == "sk-0…"
        assert "0123456789" not in json.dumps(data)


# =============================================================================
# Injected file reader
# =============================================================================


class TestInjectedReader:
    """Resolution works against any reader, not just the file system."""

    def test_reader_supplies_files(self) -> None:
        """Test loading through an injected file reader."""
        home = Path("/virtual/home")
        files = {home / "config.toml": 'model = "gpt-4o"\n'}
        profile = load_codex_config(
            CodexProviderOptions(codex_home=home), environ={}, reader=files.get
        )
        assert profile.model == "gpt-4o"


# =============================================================================
# Model resolution
# =============================================================================


class TestResolveModel:
    """Stored model versus caller-supplied model id."""

    def test_prefers_stored_model_by_default(self) -> None:
        """Test that the stored model wins by default."""
        assert resolve_model("gpt-5-codex", "gpt-4o", True) == "gpt-5-codex"

    def test_caller_model_when_not_preferring_stored(self) -> None:
        """Test using the caller model when asked to."""
        assert resolve_model("gpt-5-codex", "gpt-4o", False) == "gpt-4o"

    def test_default_sentinel_falls_back_to_stored(self) -> None:
        """Test that "default" falls back to the stored model."""
        assert resolve_model("gpt-5-codex", "default", False) == "gpt-5-codex"
        assert resolve_model("gpt-5-codex", None, False) == "gpt-5-codex"
