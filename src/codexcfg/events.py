"""
Stream events and the content blocks they reduce to.

Each event kind is its own dataclass; `StreamEvent` is the closed union of all
of them. The `type` class attribute carries the wire discriminator and is not
a dataclass field, so it never shows up in `asdict()` copies.

Tool calls, tool results, files and sources are both events and finished
content blocks: the collector passes them through unchanged.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, ClassVar, Dict, List, Optional, Union

from .usage import Usage

ProviderMetadata = Dict[str, Dict[str, Any]]


@dataclass(frozen=True)
class CallWarning:
    """A setting the transport ignored or could not honour."""

    kind: str
    setting: Optional[str] = None
    details: Optional[str] = None


# =============================================================================
# Content blocks
# =============================================================================


@dataclass
class Text:
    text: str
    provider_metadata: Optional[ProviderMetadata] = None
    type: ClassVar[str] = "text"


@dataclass
class Reasoning:
    text: str
    provider_metadata: Optional[ProviderMetadata] = None
    type: ClassVar[str] = "reasoning"


@dataclass
class ToolCall:
    """A tool invocation requested by the model. `input` is the raw JSON argument string."""

    tool_call_id: str
    tool_name: str
    input: str
    provider_executed: bool = False
    provider_metadata: Optional[ProviderMetadata] = None
    type: ClassVar[str] = "tool-call"


@dataclass
class ToolResult:
    tool_call_id: str
    tool_name: str
    result: Any
    is_error: bool = False
    provider_metadata: Optional[ProviderMetadata] = None
    type: ClassVar[str] = "tool-result"


@dataclass
class File:
    media_type: str
    data: Union[str, bytes]
    type: ClassVar[str] = "file"


@dataclass
class Source:
    id: str
    source_type: str = "url"
    url: Optional[str] = None
    title: Optional[str] = None
    provider_metadata: Optional[ProviderMetadata] = None
    type: ClassVar[str] = "source"


ContentBlock = Union[Text, Reasoning, ToolCall, ToolResult, File, Source]


# =============================================================================
# Stream events
# =============================================================================


@dataclass
class StreamStart:
    warnings: List[CallWarning] = field(default_factory=list)
    type: ClassVar[str] = "stream-start"


@dataclass
class TextStart:
    id: str
    provider_metadata: Optional[ProviderMetadata] = None
    type: ClassVar[str] = "text-start"


@dataclass
class TextDelta:
    id: str
    delta: str
    type: ClassVar[str] = "text-delta"


@dataclass
class TextEnd:
    id: str
    provider_metadata: Optional[ProviderMetadata] = None
    type: ClassVar[str] = "text-end"


@dataclass
class ReasoningStart:
    id: str
    provider_metadata: Optional[ProviderMetadata] = None
    type: ClassVar[str] = "reasoning-start"


@dataclass
class ReasoningDelta:
    id: str
    delta: str
    type: ClassVar[str] = "reasoning-delta"


@dataclass
class ReasoningEnd:
    id: str
    provider_metadata: Optional[ProviderMetadata] = None
    type: ClassVar[str] = "reasoning-end"


@dataclass
class ResponseMetadata:
    id: Optional[str] = None
    timestamp: Optional[float] = None
    model_id: Optional[str] = None
    type: ClassVar[str] = "response-metadata"


@dataclass
class Finish:
    """End of the response. Absent fields keep the collector's running values."""

    finish_reason: Optional[str] = None
    usage: Optional[Usage] = None
    provider_metadata: Optional[ProviderMetadata] = None
    type: ClassVar[str] = "finish"


@dataclass
class ErrorEvent:
    error: Any
    type: ClassVar[str] = "error"


StreamEvent = Union[
    StreamStart,
    TextStart,
    TextDelta,
    TextEnd,
    ReasoningStart,
    ReasoningDelta,
    ReasoningEnd,
    ToolCall,
    ToolResult,
    File,
    Source,
    ResponseMetadata,
    Finish,
    ErrorEvent,
]


@dataclass
class ResponseInfo:
    """Snapshot of the latest response-metadata event."""

    id: Optional[str] = None
    timestamp: Optional[float] = None
    model_id: Optional[str] = None


__all__ = [
    "CallWarning",
    "ContentBlock",
    "ErrorEvent",
    "File",
    "Finish",
    "ProviderMetadata",
    "Reasoning",
    "ReasoningDelta",
    "ReasoningEnd",
    "ReasoningStart",
    "ResponseInfo",
    "ResponseMetadata",
    "Source",
    "StreamEvent",
    "StreamStart",
    "Text",
    "TextDelta",
    "TextEnd",
    "TextStart",
    "ToolCall",
    "ToolResult",
]
