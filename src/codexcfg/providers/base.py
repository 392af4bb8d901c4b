"""
Transport abstraction the provider dispatches to.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    from ..types import CallOptions, GenerateResult, StreamResult


class ProviderError(RuntimeError):
    """Raised when a transport cannot complete a request."""


class StreamEventError(ProviderError):
    """Raised for an error stream event whose payload is not an exception."""

    def __init__(self, payload: Any):
        self.payload = payload
        super().__init__(f"Stream reported an error: {payload!r}")


@runtime_checkable
class LanguageModel(Protocol):
    """
    A model handle bound to one model id and one wire protocol.

    `generate` returns the aggregated result of a call; `stream` returns the
    raw event stream plus the request/response envelope.
    """

    provider: str
    model_id: str

    async def generate(self, options: "CallOptions") -> "GenerateResult":
        ...

    async def stream(self, options: "CallOptions") -> "StreamResult":
        ...


@runtime_checkable
class TransportClient(Protocol):
    """Client exposing one handle factory per wire protocol."""

    def chat(self, model_id: str) -> LanguageModel:
        ...

    def responses(self, model_id: str) -> LanguageModel:
        ...


__all__ = ["LanguageModel", "ProviderError", "StreamEventError", "TransportClient"]
