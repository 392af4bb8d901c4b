"""
Local transport for offline testing and development.

This transport doesn't call any external API and simply echoes user messages.
"""

from __future__ import annotations

from typing import AsyncIterator, List

from ..events import (
    Finish,
    ResponseInfo,
    ResponseMetadata,
    StreamEvent,
    StreamStart,
    Text,
    TextDelta,
    TextEnd,
    TextStart,
)
from ..types import CallOptions, GenerateResult, Role, StreamResult
from ..usage import Usage


class LocalModel:
    """
    Echo model. Every call is recorded in `calls` so callers can inspect
    exactly what the pipeline sent.
    """

    def __init__(self, model_id: str, wire_api: str, provider: str = "local"):
        self.model_id = model_id
        self.wire_api = wire_api
        self.provider = provider
        self.calls: List[CallOptions] = []

    def _reply(self, options: CallOptions) -> str:
        last_user = next((m for m in reversed(options.prompt) if m.role == Role.USER), None)
        user_text = last_user.text() if last_user else ""
        return f"[local {self.wire_api}: {self.model_id}] {user_text or 'No user message provided.'}"

    def _usage(self, options: CallOptions, reply: str) -> Usage:
        input_tokens = sum(len(message.text().split()) for message in options.prompt)
        output_tokens = len(reply.split())
        return Usage(input_tokens, output_tokens, input_tokens + output_tokens)

    async def generate(self, options: CallOptions) -> GenerateResult:
        self.calls.append(options)
        reply = self._reply(options)
        return GenerateResult(
            content=[Text(reply)],
            finish_reason="stop",
            usage=self._usage(options, reply),
            response=ResponseInfo(id="local", model_id=self.model_id),
        )

    async def stream(self, options: CallOptions) -> StreamResult:
        self.calls.append(options)
        return StreamResult(events=self._events(options))

    async def _events(self, options: CallOptions) -> AsyncIterator[StreamEvent]:
        reply = self._reply(options)
        yield StreamStart()
        yield ResponseMetadata(id="local", model_id=self.model_id)
        yield TextStart("txt-0")
        for index, token in enumerate(reply.split(" ")):
            yield TextDelta("txt-0", token if index == 0 else f" {token}")
        yield TextEnd("txt-0")
        yield Finish(finish_reason="stop", usage=self._usage(options, reply))


class LocalTransport:
    """Transport client that hands out `LocalModel` handles and remembers them."""

    name = "local"

    def __init__(self, provider: str = "local"):
        self.provider = provider
        self.models: List[LocalModel] = []

    def chat(self, model_id: str) -> LocalModel:
        model = LocalModel(model_id, "chat", self.provider)
        self.models.append(model)
        return model

    def responses(self, model_id: str) -> LocalModel:
        model = LocalModel(model_id, "responses", self.provider)
        self.models.append(model)
        return model


__all__ = ["LocalModel", "LocalTransport"]
