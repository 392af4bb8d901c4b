"""Transport implementations the provider can dispatch to."""

from .base import LanguageModel, ProviderError, StreamEventError, TransportClient
from .openai_provider import OpenAITransport
from .stubs import LocalTransport

__all__ = [
    "LanguageModel",
    "LocalTransport",
    "OpenAITransport",
    "ProviderError",
    "StreamEventError",
    "TransportClient",
]
