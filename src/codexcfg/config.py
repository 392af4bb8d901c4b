"""
Connection profile resolution from a Codex settings home.

The settings home holds `config.toml` (model, provider selection and
per-provider tables) and `auth.json` (flat credential store). Everything is
re-read on every call; nothing is cached.
"""

from __future__ import annotations

import json
import logging
import os
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, Mapping, Optional, Union

from .exceptions import ConfigurationError
from .pricing import PricingLike

logger = logging.getLogger(__name__)

CODEX_HOME_ENV = "CODEX_HOME"
CONFIG_FILENAME = "config.toml"
AUTH_FILENAME = "auth.json"

DEFAULT_PROVIDER_ID = "openai"
DEFAULT_MODEL = "gpt-5-codex"
DEFAULT_OPENAI_BASE_URL = "https://api.openai.com/v1"
OPENAI_API_KEY_ENV = "OPENAI_API_KEY"

WIRE_APIS = ("chat", "responses")

QueryValue = Union[str, int, float, bool]
FileReader = Callable[[Path], Optional[str]]


def read_text_if_exists(path: Path) -> Optional[str]:
    """Return the file's text, or None when it is missing or unreadable."""
    try:
        return path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError):
        return None


@dataclass
class CodexProviderOptions:
    """
    Options accepted by `create_codex_provider`.

    Attributes:
        name: Provider name reported by model handles. Default: "codex-config".
        codex_home: Settings home override. Default: $CODEX_HOME, then ~/.codex.
        use_codex_config_model: Prefer the model stored in config.toml over the
            caller-supplied model id. Default: True.
        instructions: Inline base instructions for responses-style calls.
        instructions_file: Base instructions file, absolute or relative to the settings home.
            Wins over `instructions` when both are given.
        user_instructions_file: User instructions file, absolute or relative to the settings home.
            Default: AGENTS.md in the settings home.
        include_user_instructions: Inject user instructions at all. Default: True.
        validate_instructions: Drop instructions that are too long or contain control
            characters. Default: True.
        pricing: Per-million-token rates used to attach a cost to aggregated results.
    """

    name: str = "codex-config"
    codex_home: Optional[Union[str, Path]] = None
    use_codex_config_model: bool = True
    instructions: Optional[str] = None
    instructions_file: Optional[Union[str, Path]] = None
    user_instructions_file: Optional[Union[str, Path]] = None
    include_user_instructions: bool = True
    validate_instructions: bool = True
    pricing: Optional[PricingLike] = None


@dataclass(frozen=True)
class ConnectionProfile:
    """Fully resolved connection settings for one model resolution call."""

    codex_home: Path
    provider_id: str
    model: str
    wire_api: str
    base_url: Optional[str] = None
    api_key: Optional[str] = None
    headers: Dict[str, str] = field(default_factory=dict)
    query_params: Optional[Dict[str, QueryValue]] = None

    def default_query(self) -> Dict[str, str]:
        """Query parameters rendered as strings, booleans as `true`/`false`."""
        rendered: Dict[str, str] = {}
        for key, value in (self.query_params or {}).items():
            if value is None:
                continue
            rendered[key] = str(value).lower() if isinstance(value, bool) else str(value)
        return rendered

    def to_dict(self, mask_api_key: bool = True) -> Dict[str, Any]:
        api_key = self.api_key
        if api_key and mask_api_key:
            api_key = f"{api_key[:4]}…" if len(api_key) > 8 else "***"
        return {
            "codex_home": str(self.codex_home),
            "provider_id": self.provider_id,
            "model": self.model,
            "wire_api": self.wire_api,
            "base_url": self.base_url,
            "api_key": api_key,
            "headers": dict(self.headers),
            "query_params": self.query_params,
        }


def resolve_codex_home(
    codex_home: Optional[Union[str, Path]] = None, environ: Optional[Mapping[str, str]] = None
) -> Path:
    """Explicit option, then $CODEX_HOME, then ~/.codex."""
    environ = os.environ if environ is None else environ
    if codex_home:
        return Path(codex_home).expanduser()
    if environ.get(CODEX_HOME_ENV):
        return Path(environ[CODEX_HOME_ENV]).expanduser()
    return Path.home() / ".codex"


def _load_settings(path: Path, reader: FileReader) -> Dict[str, Any]:
    raw = reader(path)
    if raw is None:
        return {}
    try:
        return tomllib.loads(raw)
    except tomllib.TOMLDecodeError as exc:
        raise ConfigurationError(
            DEFAULT_PROVIDER_ID,
            f"Could not parse {path}: {exc}",
            f"Fix the TOML syntax in {path}.",
        ) from exc


def _load_auth(path: Path, reader: FileReader) -> Dict[str, str]:
    raw = reader(path)
    if raw is None:
        return {}
    try:
        data = json.loads(raw)
    except json.JSONDecodeError:
        logger.debug("Ignoring unparsable auth store at %s", path)
        return {}
    if not isinstance(data, dict):
        return {}
    return {key: value for key, value in data.items() if isinstance(value, str)}


def _table(value: Any, provider_id: str, key: str) -> Dict[str, Any]:
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ConfigurationError(
            provider_id,
            f"Expected a table for {key}, got {type(value).__name__}",
            f"Declare {key} as a TOML table in {CONFIG_FILENAME}.",
        )
    return value


def _string(value: Any, provider_id: str, key: str) -> Optional[str]:
    if value is None or isinstance(value, str):
        return value
    raise ConfigurationError(
        provider_id,
        f"Expected a string for {key}, got {type(value).__name__}",
        f"Quote the value of {key} in {CONFIG_FILENAME}.",
    )


def _resolve_api_key(
    requires_openai_auth: bool,
    env_key: Optional[str],
    auth: Mapping[str, str],
    environ: Mapping[str, str],
) -> Optional[str]:
    api_key = None
    if env_key:
        api_key = environ.get(env_key) or auth.get(env_key) or None
    if not api_key and requires_openai_auth:
        api_key = (
            environ.get(OPENAI_API_KEY_ENV)
            or auth.get(OPENAI_API_KEY_ENV)
            or auth.get(f"_{OPENAI_API_KEY_ENV}")
            or None
        )
    return api_key


def _resolve_headers(
    provider_id: str, provider_config: Mapping[str, Any], environ: Mapping[str, str]
) -> Dict[str, str]:
    http_headers = _table(provider_config.get("http_headers"), provider_id, "http_headers")
    headers = {str(k): str(v) for k, v in http_headers.items()}
    env_headers = _table(provider_config.get("env_http_headers"), provider_id, "env_http_headers")
    for header, env_var in env_headers.items():
        value = environ.get(_string(env_var, provider_id, f"env_http_headers.{header}"))
        if value and value.strip():
            headers[header] = value
    return headers


def load_codex_config(
    options: Optional[CodexProviderOptions] = None,
    environ: Optional[Mapping[str, str]] = None,
    reader: FileReader = read_text_if_exists,
) -> ConnectionProfile:
    """
    Resolve a `ConnectionProfile` from the settings home.

    Args:
        options: Caller options; only `codex_home` is consulted here.
        environ: Environment mapping. Default: `os.environ`.
        reader: File reader returning None for missing files.

    Raises:
        ConfigurationError: If `config.toml` is malformed, holds a value of the wrong
            type, or selects an unknown wire_api.
    """
    options = options or CodexProviderOptions()
    environ = os.environ if environ is None else environ

    codex_home = resolve_codex_home(options.codex_home, environ)
    settings = _load_settings(codex_home / CONFIG_FILENAME, reader)
    auth = _load_auth(codex_home / AUTH_FILENAME, reader)

    provider_id = _string(settings.get("model_provider"), DEFAULT_PROVIDER_ID, "model_provider")
    provider_id = provider_id or DEFAULT_PROVIDER_ID
    model = _string(settings.get("model", DEFAULT_MODEL), provider_id, "model")
    providers = _table(settings.get("model_providers"), provider_id, "model_providers")
    provider_config = _table(
        providers.get(provider_id), provider_id, f"model_providers.{provider_id}"
    )

    wire_api = provider_config.get("wire_api") or (
        "responses" if provider_id == DEFAULT_PROVIDER_ID else "chat"
    )
    if wire_api not in WIRE_APIS:
        raise ConfigurationError(
            provider_id,
            f"Unsupported wire_api: {wire_api!r}",
            f'Set wire_api to "chat" or "responses" under [model_providers.{provider_id}].',
        )

    base_url = _string(provider_config.get("base_url"), provider_id, "base_url") or (
        DEFAULT_OPENAI_BASE_URL if provider_id == DEFAULT_PROVIDER_ID else None
    )

    requires_openai_auth = provider_config.get("requires_openai_auth")
    if not isinstance(requires_openai_auth, bool):
        requires_openai_auth = provider_id == DEFAULT_PROVIDER_ID
    env_key = _string(provider_config.get("env_key"), provider_id, "env_key") or (
        OPENAI_API_KEY_ENV if requires_openai_auth else None
    )

    profile = ConnectionProfile(
        codex_home=codex_home,
        provider_id=provider_id,
        model=model,
        wire_api=wire_api,
        base_url=base_url,
        api_key=_resolve_api_key(requires_openai_auth, env_key, auth, environ),
        headers=_resolve_headers(provider_id, provider_config, environ),
        query_params=(
            _table(provider_config.get("query_params"), provider_id, "query_params") or None
        ),
    )
    logger.debug("Resolved connection profile: %s", profile.to_dict())
    return profile


def resolve_model(
    config_model: Optional[str], model_id: Optional[str], use_codex_config_model: bool = True
) -> Optional[str]:
    """Stored model by default; a caller model id only when the stored model is not preferred."""
    if use_codex_config_model is not False:
        return config_model
    if model_id and model_id != "default":
        return model_id
    return config_model


__all__ = [
    "CodexProviderOptions",
    "ConnectionProfile",
    "load_codex_config",
    "read_text_if_exists",
    "resolve_codex_home",
    "resolve_model",
]
