"""
Reduce a stream of events into one `GenerateResult`.

Text and reasoning blocks are accumulated per id and emitted when their end
event arrives; blocks that never end are dropped. An error event aborts
collection and raises.
"""

from __future__ import annotations

from typing import Any, AsyncIterable, Dict, List, Optional

from .events import (
    ErrorEvent,
    File,
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
    ToolResult,
)
from .pricing import Pricing, apply_cost
from .providers.base import StreamEventError
from .types import GenerateResult


def raise_stream_error(error: Any) -> None:
    """Re-raise a transport error unchanged; wrap payloads that are not exceptions."""
    if isinstance(error, BaseException):
        raise error
    raise StreamEventError(error)


async def collect_stream(
    events: AsyncIterable[StreamEvent],
    pricing: Optional[Pricing] = None,
    response_headers: Optional[Dict[str, str]] = None,
    request: Optional[Dict[str, Any]] = None,
) -> GenerateResult:
    """
    Consume `events` in order and aggregate them.

    Args:
        events: Event stream from a transport handle.
        pricing: Optional rates; when configured the cost is attached to
            `provider_metadata["codex"]["cost"]`.
        response_headers: Raw transport headers to carry on the result.
        request: Request body to carry on the result.

    Raises:
        Whatever an error event carries, unchanged.
    """
    result = GenerateResult(response_headers=dict(response_headers or {}), request=request)
    texts: Dict[str, List[str]] = {}
    reasoning: Dict[str, List[str]] = {}

    async for event in events:
        if isinstance(event, StreamStart):
            result.warnings = list(event.warnings)
        elif isinstance(event, TextStart):
            texts[event.id] = []
        elif isinstance(event, TextDelta):
            if event.id in texts:
                texts[event.id].append(event.delta)
        elif isinstance(event, TextEnd):
            if event.id in texts:
                chunks = texts.pop(event.id)
                result.content.append(Text("".join(chunks), event.provider_metadata))
        elif isinstance(event, ReasoningStart):
            reasoning[event.id] = []
        elif isinstance(event, ReasoningDelta):
            if event.id in reasoning:
                reasoning[event.id].append(event.delta)
        elif isinstance(event, ReasoningEnd):
            if event.id in reasoning:
                chunks = reasoning.pop(event.id)
                result.content.append(Reasoning("".join(chunks), event.provider_metadata))
        elif isinstance(event, (ToolCall, ToolResult, File, Source)):
            result.content.append(event)
        elif isinstance(event, ResponseMetadata):
            result.response = ResponseInfo(
                id=event.id, timestamp=event.timestamp, model_id=event.model_id
            )
        elif isinstance(event, Finish):
            if event.finish_reason is not None:
                result.finish_reason = event.finish_reason
            if event.usage is not None:
                result.usage = event.usage
            if event.provider_metadata is not None:
                result.provider_metadata = event.provider_metadata
        elif isinstance(event, ErrorEvent):
            raise_stream_error(event.error)
        else:
            raise TypeError(f"Unknown stream event: {event!r}")

    result.provider_metadata = apply_cost(result.provider_metadata, result.usage, pricing)
    return result


__all__ = ["collect_stream", "raise_stream_error"]
