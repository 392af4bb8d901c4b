"""
OpenAI SDK transport: Chat Completions and Responses handles.
"""

from __future__ import annotations

import base64
import json
from typing import Any, AsyncIterator, Dict, List, Optional, Tuple

from ..events import (
    CallWarning,
    ContentBlock,
    ErrorEvent,
    Finish,
    Reasoning,
    ReasoningDelta,
    ReasoningEnd,
    ReasoningStart,
    ResponseInfo,
    ResponseMetadata,
    Source,
    StreamEvent,
    StreamStart,
    Text,
    TextDelta,
    TextEnd,
    TextStart,
    ToolCall,
)
from ..types import CallOptions, ContentPart, GenerateResult, Message, Role, StreamResult
from ..usage import Usage
from .base import ProviderError

CHAT_FINISH_REASONS = {
    "stop": "stop",
    "length": "length",
    "content_filter": "content-filter",
    "tool_calls": "tool-calls",
    "function_call": "tool-calls",
}

RESPONSES_PASSTHROUGH_OPTIONS = (
    "instructions",
    "store",
    "previous_response_id",
    "conversation",
    "include",
    "parallel_tool_calls",
    "metadata",
    "user",
    "service_tier",
    "prompt_cache_key",
)


def _get(obj: Any, name: str, default: Any = None) -> Any:
    """Read a field from an SDK model or a plain dict."""
    if obj is None:
        return default
    if isinstance(obj, dict):
        return obj.get(name, default)
    return getattr(obj, name, default)


def _image_url(part: ContentPart) -> str:
    image = part.get("image")
    if isinstance(image, bytes):
        media_type = part.get("media_type") or "image/jpeg"
        return f"data:{media_type};base64,{base64.b64encode(image).decode('utf-8')}"
    return str(image)


def _arguments(value: Any) -> str:
    return value if isinstance(value, str) else json.dumps(value)


def _tool_output(value: Any) -> str:
    return value if isinstance(value, str) else json.dumps(value)


def _parts(message: Message) -> List[ContentPart]:
    if isinstance(message.content, str):
        return [{"type": "text", "text": message.content}]
    return message.content


def _item_id(options: Optional[Dict[str, Dict[str, Any]]]) -> Optional[str]:
    return ((options or {}).get("openai") or {}).get("item_id")


def _unsupported(options: CallOptions, *settings: str) -> List[CallWarning]:
    return [
        CallWarning("unsupported-setting", setting)
        for setting in settings
        if getattr(options, setting) is not None
    ]


# =============================================================================
# Chat Completions
# =============================================================================


def convert_to_chat_messages(prompt: List[Message]) -> List[Dict[str, Any]]:
    messages: List[Dict[str, Any]] = []
    for message in prompt:
        if message.role == Role.SYSTEM:
            messages.append({"role": "system", "content": message.text()})
        elif message.role == Role.USER:
            if isinstance(message.content, str):
                messages.append({"role": "user", "content": message.content})
                continue
            content = []
            for part in message.content:
                if part.get("type") == "text":
                    content.append({"type": "text", "text": part.get("text", "")})
                elif part.get("type") == "image":
                    content.append({"type": "image_url", "image_url": {"url": _image_url(part)}})
            messages.append({"role": "user", "content": content})
        elif message.role == Role.ASSISTANT:
            tool_calls = [
                {
                    "id": part["tool_call_id"],
                    "type": "function",
                    "function": {"name": part["tool_name"], "arguments": _arguments(part.get("input"))},
                }
                for part in _parts(message)
                if part.get("type") == "tool-call"
            ]
            entry: Dict[str, Any] = {"role": "assistant", "content": message.text()}
            if tool_calls:
                entry["tool_calls"] = tool_calls
            messages.append(entry)
        else:
            for part in _parts(message):
                if part.get("type") == "tool-result":
                    messages.append(
                        {
                            "role": "tool",
                            "tool_call_id": part["tool_call_id"],
                            "content": _tool_output(part.get("output")),
                        }
                    )
    return messages


def _chat_usage(usage: Any) -> Usage:
    if usage is None:
        return Usage()
    return Usage(
        input_tokens=_get(usage, "prompt_tokens"),
        output_tokens=_get(usage, "completion_tokens"),
        total_tokens=_get(usage, "total_tokens"),
        reasoning_tokens=_get(_get(usage, "completion_tokens_details"), "reasoning_tokens"),
        cached_input_tokens=_get(_get(usage, "prompt_tokens_details"), "cached_tokens"),
    )


class OpenAIChatModel:
    """Handle that speaks to OpenAI's Chat Completions API."""

    def __init__(self, client: Any, model_id: str, provider: str):
        self._client = client
        self.model_id = model_id
        self.provider = provider

    def _prepare(self, options: CallOptions) -> Tuple[Dict[str, Any], List[CallWarning]]:
        warnings = _unsupported(options, "top_k")
        body: Dict[str, Any] = {
            "model": self.model_id,
            "messages": convert_to_chat_messages(options.prompt),
        }
        if options.max_output_tokens is not None:
            body["max_tokens"] = options.max_output_tokens
        if options.temperature is not None:
            body["temperature"] = options.temperature
        if options.top_p is not None:
            body["top_p"] = options.top_p
        if options.stop_sequences:
            body["stop"] = options.stop_sequences
        if options.tools:
            body["tools"] = [
                {
                    "type": "function",
                    "function": {
                        "name": tool.name,
                        "description": tool.description,
                        "parameters": tool.parameters,
                    },
                }
                for tool in options.tools
            ]
        if options.tool_choice:
            body["tool_choice"] = options.tool_choice
        return body, warnings

    async def generate(self, options: CallOptions) -> GenerateResult:
        body, warnings = self._prepare(options)
        raw = await self._client.chat.completions.with_raw_response.create(
            **body, extra_headers=options.headers or None
        )
        completion = raw.parse()
        choice = completion.choices[0]

        content: List[ContentBlock] = []
        if choice.message.content:
            content.append(Text(choice.message.content))
        for tool_call in choice.message.tool_calls or []:
            content.append(
                ToolCall(tool_call.id, tool_call.function.name, tool_call.function.arguments)
            )

        return GenerateResult(
            content=content,
            finish_reason=CHAT_FINISH_REASONS.get(choice.finish_reason, "unknown"),
            usage=_chat_usage(completion.usage),
            warnings=warnings,
            response=ResponseInfo(completion.id, completion.created, completion.model),
            response_headers=dict(raw.headers),
            request=body,
        )

    async def stream(self, options: CallOptions) -> StreamResult:
        body, warnings = self._prepare(options)
        body["stream"] = True
        body["stream_options"] = {"include_usage": True}
        raw = await self._client.chat.completions.with_raw_response.create(
            **body, extra_headers=options.headers or None
        )
        return StreamResult(
            events=self._events(raw.parse(), warnings),
            response_headers=dict(raw.headers),
            request=body,
        )

    async def _events(self, chunks: Any, warnings: List[CallWarning]) -> AsyncIterator[StreamEvent]:
        yield StreamStart(warnings)
        text_id = "txt-0"
        text_open = False
        first_chunk = True
        finish_reason = "unknown"
        usage = Usage()
        tool_calls: Dict[int, Dict[str, str]] = {}

        async for chunk in chunks:
            if first_chunk:
                first_chunk = False
                yield ResponseMetadata(chunk.id, chunk.created, chunk.model)
            if chunk.usage is not None:
                usage = _chat_usage(chunk.usage)
            if not chunk.choices:
                continue

            choice = chunk.choices[0]
            if choice.finish_reason:
                finish_reason = CHAT_FINISH_REASONS.get(choice.finish_reason, "unknown")
            delta = choice.delta
            if delta is None:
                continue
            if delta.content:
                if not text_open:
                    text_open = True
                    yield TextStart(text_id)
                yield TextDelta(text_id, delta.content)
            for tool_delta in delta.tool_calls or []:
                entry = tool_calls.setdefault(tool_delta.index, {"id": "", "name": "", "arguments": ""})
                if tool_delta.id:
                    entry["id"] = tool_delta.id
                if tool_delta.function is not None:
                    entry["name"] += tool_delta.function.name or ""
                    entry["arguments"] += tool_delta.function.arguments or ""

        if text_open:
            yield TextEnd(text_id)
        for index in sorted(tool_calls):
            entry = tool_calls[index]
            yield ToolCall(entry["id"], entry["name"], entry["arguments"])
        yield Finish(finish_reason=finish_reason, usage=usage)


# =============================================================================
# Responses
# =============================================================================


def convert_to_responses_input(prompt: List[Message]) -> List[Dict[str, Any]]:
    items: List[Dict[str, Any]] = []
    for message in prompt:
        if message.role == Role.SYSTEM:
            items.append({"role": "system", "content": message.text()})
        elif message.role == Role.USER:
            content = []
            for part in _parts(message):
                if part.get("type") == "text":
                    content.append({"type": "input_text", "text": part.get("text", "")})
                elif part.get("type") == "image":
                    image = {"type": "input_image", "image_url": _image_url(part)}
                    if part.get("detail"):
                        image["detail"] = part["detail"]
                    content.append(image)
            items.append({"role": "user", "content": content})
        elif message.role == Role.ASSISTANT:
            for part in _parts(message):
                if part.get("type") == "text":
                    item: Dict[str, Any] = {
                        "role": "assistant",
                        "content": [{"type": "output_text", "text": part.get("text", "")}],
                    }
                    item_id = _item_id(part.get("provider_options")) or _item_id(
                        message.provider_options
                    )
                    if item_id:
                        item["id"] = item_id
                    items.append(item)
                elif part.get("type") == "tool-call":
                    items.append(
                        {
                            "type": "function_call",
                            "call_id": part["tool_call_id"],
                            "name": part["tool_name"],
                            "arguments": _arguments(part.get("input")),
                        }
                    )
        else:
            for part in _parts(message):
                if part.get("type") == "tool-result":
                    items.append(
                        {
                            "type": "function_call_output",
                            "call_id": part["tool_call_id"],
                            "output": _tool_output(part.get("output")),
                        }
                    )
    return items


def _responses_usage(usage: Any) -> Usage:
    if usage is None:
        return Usage()
    return Usage(
        input_tokens=_get(usage, "input_tokens"),
        output_tokens=_get(usage, "output_tokens"),
        total_tokens=_get(usage, "total_tokens"),
        reasoning_tokens=_get(_get(usage, "output_tokens_details"), "reasoning_tokens"),
        cached_input_tokens=_get(_get(usage, "input_tokens_details"), "cached_tokens"),
    )


def _responses_finish_reason(response: Any, has_tool_calls: bool) -> str:
    reason = _get(_get(response, "incomplete_details"), "reason")
    if reason is None:
        return "tool-calls" if has_tool_calls else "stop"
    if reason == "max_output_tokens":
        return "length"
    if reason == "content_filter":
        return "content-filter"
    return "other"


def _item_metadata(item: Any) -> Dict[str, Dict[str, Any]]:
    return {"openai": {"item_id": _get(item, "id")}}


def _response_metadata(response: Any) -> Dict[str, Dict[str, Any]]:
    return {"openai": {"response_id": _get(response, "id")}}


class OpenAIResponsesModel:
    """Handle that speaks to OpenAI's Responses API."""

    def __init__(self, client: Any, model_id: str, provider: str):
        self._client = client
        self.model_id = model_id
        self.provider = provider

    def _prepare(self, options: CallOptions) -> Tuple[Dict[str, Any], List[CallWarning]]:
        warnings = _unsupported(options, "top_k", "stop_sequences")
        openai = options.openai_options()
        body: Dict[str, Any] = {
            "model": self.model_id,
            "input": convert_to_responses_input(options.prompt),
        }
        for key in RESPONSES_PASSTHROUGH_OPTIONS:
            if openai.get(key) is not None:
                body[key] = openai[key]

        reasoning = {}
        if openai.get("reasoning_effort"):
            reasoning["effort"] = openai["reasoning_effort"]
        if openai.get("reasoning_summary"):
            reasoning["summary"] = openai["reasoning_summary"]
        if reasoning:
            body["reasoning"] = reasoning

        if options.max_output_tokens is not None:
            body["max_output_tokens"] = options.max_output_tokens
        if options.temperature is not None:
            body["temperature"] = options.temperature
        if options.top_p is not None:
            body["top_p"] = options.top_p
        if options.tools:
            body["tools"] = [
                {
                    "type": "function",
                    "name": tool.name,
                    "description": tool.description,
                    "parameters": tool.parameters,
                }
                for tool in options.tools
            ]
        if options.tool_choice:
            body["tool_choice"] = options.tool_choice
        return body, warnings

    async def generate(self, options: CallOptions) -> GenerateResult:
        body, warnings = self._prepare(options)
        raw = await self._client.responses.with_raw_response.create(
            **body, extra_headers=options.headers or None
        )
        response = raw.parse()

        content: List[ContentBlock] = []
        has_tool_calls = False
        for item in response.output or []:
            if item.type == "message":
                text = "".join(
                    _get(part, "text", "")
                    for part in item.content
                    if _get(part, "type") == "output_text"
                )
                content.append(Text(text, _item_metadata(item)))
            elif item.type == "reasoning":
                summary = "".join(_get(part, "text", "") for part in item.summary or [])
                content.append(Reasoning(summary, _item_metadata(item)))
            elif item.type == "function_call":
                has_tool_calls = True
                content.append(
                    ToolCall(item.call_id, item.name, item.arguments, provider_metadata=_item_metadata(item))
                )

        return GenerateResult(
            content=content,
            finish_reason=_responses_finish_reason(response, has_tool_calls),
            usage=_responses_usage(response.usage),
            provider_metadata=_response_metadata(response),
            warnings=warnings,
            response=ResponseInfo(response.id, response.created_at, response.model),
            response_headers=dict(raw.headers),
            request=body,
        )

    async def stream(self, options: CallOptions) -> StreamResult:
        body, warnings = self._prepare(options)
        body["stream"] = True
        raw = await self._client.responses.with_raw_response.create(
            **body, extra_headers=options.headers or None
        )
        return StreamResult(
            events=self._events(raw.parse(), warnings),
            response_headers=dict(raw.headers),
            request=body,
        )

    async def _events(self, stream: Any, warnings: List[CallWarning]) -> AsyncIterator[StreamEvent]:
        yield StreamStart(warnings)
        has_tool_calls = False

        async for event in stream:
            kind = event.type
            if kind == "response.created":
                response = event.response
                yield ResponseMetadata(response.id, response.created_at, response.model)
            elif kind == "response.output_item.added":
                if event.item.type == "message":
                    yield TextStart(event.item.id)
                elif event.item.type == "reasoning":
                    yield ReasoningStart(event.item.id)
            elif kind == "response.output_text.delta":
                yield TextDelta(event.item_id, event.delta)
            elif kind == "response.reasoning_summary_text.delta":
                yield ReasoningDelta(event.item_id, event.delta)
            elif kind == "response.output_text.annotation.added":
                annotation = event.annotation
                if _get(annotation, "type") == "url_citation":
                    yield Source(
                        id=f"{event.item_id}:{event.annotation_index}",
                        url=_get(annotation, "url"),
                        title=_get(annotation, "title"),
                    )
            elif kind == "response.output_item.done":
                item = event.item
                if item.type == "message":
                    yield TextEnd(item.id, _item_metadata(item))
                elif item.type == "reasoning":
                    yield ReasoningEnd(item.id, _item_metadata(item))
                elif item.type == "function_call":
                    has_tool_calls = True
                    yield ToolCall(
                        item.call_id, item.name, item.arguments, provider_metadata=_item_metadata(item)
                    )
            elif kind in ("response.completed", "response.incomplete"):
                response = event.response
                yield Finish(
                    finish_reason=_responses_finish_reason(response, has_tool_calls),
                    usage=_responses_usage(response.usage),
                    provider_metadata=_response_metadata(response),
                )
            elif kind == "response.failed":
                error = _get(event.response, "error")
                yield ErrorEvent(
                    ProviderError(f"OpenAI response failed: {_get(error, 'message', 'unknown error')}")
                )
            elif kind == "error":
                yield ErrorEvent(ProviderError(f"OpenAI stream error {event.code}: {event.message}"))


# =============================================================================
# Transport
# =============================================================================


class OpenAITransport:
    """
    Transport client backed by `openai.AsyncOpenAI`.

    Missing credentials are not an error here: the SDK client is built with an
    empty key and the server decides whether authentication was required.
    """

    name = "openai"

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        headers: Optional[Dict[str, str]] = None,
        default_query: Optional[Dict[str, str]] = None,
        provider: str = "codex-config",
        client: Any = None,
    ):
        if client is None:
            try:
                from openai import AsyncOpenAI
            except ImportError as exc:
                raise ProviderError(
                    "openai package not installed. Install with `pip install openai`."
                ) from exc

            client = AsyncOpenAI(
                api_key=api_key or "",
                base_url=base_url,
                default_headers=headers or None,
                default_query=default_query or None,
            )
        self._client = client
        self.provider = provider

    def chat(self, model_id: str) -> OpenAIChatModel:
        return OpenAIChatModel(self._client, model_id, self.provider)

    def responses(self, model_id: str) -> OpenAIResponsesModel:
        return OpenAIResponsesModel(self._client, model_id, self.provider)


__all__ = [
    "OpenAIChatModel",
    "OpenAIResponsesModel",
    "OpenAITransport",
    "convert_to_chat_messages",
    "convert_to_responses_input",
]
