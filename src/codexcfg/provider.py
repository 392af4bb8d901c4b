"""
Public factory: a provider object backed by the Codex settings home.
"""

from __future__ import annotations

from typing import Mapping, NoReturn, Optional

from .config import CodexProviderOptions, FileReader, read_text_if_exists
from .dispatch import TransportFactory, create_language_model, openai_transport_factory
from .exceptions import UnsupportedModelTypeError
from .providers.base import LanguageModel


class CodexProvider:
    """
    Callable provider. `provider(model_id)` is `provider.language_model(model_id)`.

    Every model request re-reads the settings home, so edits to config.toml,
    auth.json or instruction files apply to the next handle.
    """

    def __init__(
        self,
        options: Optional[CodexProviderOptions] = None,
        transport_factory: TransportFactory = openai_transport_factory,
        environ: Optional[Mapping[str, str]] = None,
        reader: FileReader = read_text_if_exists,
    ):
        self.options = options or CodexProviderOptions()
        self._transport_factory = transport_factory
        self._environ = environ
        self._reader = reader

    @property
    def name(self) -> str:
        return self.options.name

    def _create(self, model_id: Optional[str], wire_api: Optional[str] = None) -> LanguageModel:
        return create_language_model(
            self.name,
            model_id,
            self.options,
            override_wire_api=wire_api,
            transport_factory=self._transport_factory,
            environ=self._environ,
            reader=self._reader,
        )

    def __call__(self, model_id: Optional[str] = None) -> LanguageModel:
        return self.language_model(model_id)

    def language_model(self, model_id: Optional[str] = None) -> LanguageModel:
        return self._create(model_id)

    def chat(self, model_id: Optional[str] = None) -> LanguageModel:
        return self._create(model_id, "chat")

    def responses(self, model_id: Optional[str] = None) -> LanguageModel:
        return self._create(model_id, "responses")

    def embedding_model(self, model_id: Optional[str] = None) -> NoReturn:
        raise UnsupportedModelTypeError(self.name, "embeddings")

    def image_model(self, model_id: Optional[str] = None) -> NoReturn:
        raise UnsupportedModelTypeError(self.name, "images")


def create_codex_provider(
    options: Optional[CodexProviderOptions] = None,
    transport_factory: TransportFactory = openai_transport_factory,
    environ: Optional[Mapping[str, str]] = None,
    reader: FileReader = read_text_if_exists,
) -> CodexProvider:
    return CodexProvider(options, transport_factory, environ, reader)


__all__ = ["CodexProvider", "create_codex_provider"]
