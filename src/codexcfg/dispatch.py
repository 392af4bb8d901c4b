"""
Model dispatch: pick the wire protocol and build the model handle.

Responses handles are wrapped in `CodexResponsesModel`, which runs every call
through instruction injection and request normalization, and answers
`generate` by collecting the stream.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Callable, Mapping, Optional

from .collector import collect_stream
from .config import (
    WIRE_APIS,
    CodexProviderOptions,
    ConnectionProfile,
    FileReader,
    load_codex_config,
    read_text_if_exists,
    resolve_model,
)
from .exceptions import ConfigurationError
from .instructions import InstructionContext
from .normalize import normalize_responses_options
from .pricing import coerce_pricing
from .providers.base import LanguageModel, TransportClient
from .providers.openai_provider import OpenAITransport
from .types import CallOptions, GenerateResult, StreamResult

logger = logging.getLogger(__name__)

TransportFactory = Callable[[ConnectionProfile, str], TransportClient]


def openai_transport_factory(profile: ConnectionProfile, provider: str) -> TransportClient:
    return OpenAITransport(
        api_key=profile.api_key,
        base_url=profile.base_url,
        headers=profile.headers,
        default_query=profile.default_query(),
        provider=provider,
    )


def select_model(client: TransportClient, wire_api: str, model_id: str) -> LanguageModel:
    return client.chat(model_id) if wire_api == "chat" else client.responses(model_id)


def build_instruction_context(
    options: CodexProviderOptions, codex_home: Path, model_id: str, call: CallOptions
) -> InstructionContext:
    return InstructionContext(
        codex_home=codex_home,
        model_id=model_id,
        instructions=options.instructions,
        instructions_file=options.instructions_file,
        user_instructions_file=options.user_instructions_file,
        include_user_instructions=options.include_user_instructions,
        validate_instructions=options.validate_instructions,
        pricing=coerce_pricing(options.pricing),
        tool_names=frozenset(tool.name for tool in call.tools),
    )


class CodexResponsesModel:
    """Responses handle decorated with the instruction and normalization pipeline."""

    def __init__(
        self,
        inner: LanguageModel,
        options: CodexProviderOptions,
        codex_home: Path,
        reader: FileReader = read_text_if_exists,
    ):
        self._inner = inner
        self._options = options
        self._codex_home = codex_home
        self._reader = reader
        self.provider = inner.provider
        self.model_id = inner.model_id

    def _context(self, options: CallOptions) -> InstructionContext:
        return build_instruction_context(self._options, self._codex_home, self.model_id, options)

    def prepare(self, options: CallOptions) -> CallOptions:
        """Return the call options exactly as they are sent to the transport."""
        return normalize_responses_options(options, self._context(options), self._reader)

    async def stream(self, options: CallOptions) -> StreamResult:
        return await self._inner.stream(self.prepare(options))

    async def generate(self, options: CallOptions) -> GenerateResult:
        context = self._context(options)
        normalized = normalize_responses_options(options, context, self._reader)
        streamed = await self._inner.stream(normalized)
        return await collect_stream(
            streamed.events,
            pricing=context.pricing,
            response_headers=streamed.response_headers,
            request=streamed.request,
        )


def create_language_model(
    provider: str,
    model_id: Optional[str],
    options: CodexProviderOptions,
    override_wire_api: Optional[str] = None,
    transport_factory: TransportFactory = openai_transport_factory,
    environ: Optional[Mapping[str, str]] = None,
    reader: FileReader = read_text_if_exists,
) -> LanguageModel:
    """
    Resolve the settings home and return a model handle.

    Raises:
        ConfigurationError: If the wire protocol is unknown, or no model id or
            base_url can be resolved.
    """
    profile = load_codex_config(options, environ=environ, reader=reader)
    resolved_model = resolve_model(profile.model, model_id, options.use_codex_config_model)

    if not resolved_model:
        raise ConfigurationError(
            provider,
            "No model configured",
            f"Set model in {profile.codex_home / 'config.toml'} or pass a model id "
            "with use_codex_config_model=False.",
        )
    if not profile.base_url:
        raise ConfigurationError(
            provider,
            f"No base_url configured for model provider '{profile.provider_id}'",
            f"Set base_url under [model_providers.{profile.provider_id}].",
        )

    wire_api = override_wire_api or profile.wire_api
    if wire_api not in WIRE_APIS:
        raise ConfigurationError(
            provider, f"Unsupported wire_api: {wire_api!r}", 'Use "chat" or "responses".'
        )

    client = transport_factory(profile, provider)
    model = select_model(client, wire_api, resolved_model)
    logger.debug("Dispatched %s via %s to %s", resolved_model, wire_api, profile.base_url)
    if wire_api == "responses":
        return CodexResponsesModel(model, options, profile.codex_home, reader)
    return model


__all__ = [
    "CodexResponsesModel",
    "TransportFactory",
    "build_instruction_context",
    "create_language_model",
    "openai_transport_factory",
    "select_model",
]
