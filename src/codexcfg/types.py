"""
Core message, request and result types.

These primitives are transport-agnostic and are reused across the
instruction pipeline, the transports, and tests.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, AsyncIterator, Dict, List, Optional, Union

from .events import CallWarning, ContentBlock, ProviderMetadata, ResponseInfo, StreamEvent
from .usage import Usage

ContentPart = Dict[str, Any]


class Role(str, Enum):
    """Conversation role."""

    USER = "user"
    ASSISTANT = "assistant"
    SYSTEM = "system"
    TOOL = "tool"


@dataclass
class Message:
    """
    Conversation message.

    `content` is either a plain string or an ordered list of typed parts,
    each a dict with a `type` key (`text`, `image`, `file`, `reasoning`,
    `tool-call`, `tool-result`). Parts and the message itself may carry
    `provider_options`, keyed by provider name.
    """

    role: Role
    content: Union[str, List[ContentPart]]
    provider_options: Optional[Dict[str, Dict[str, Any]]] = None

    def __post_init__(self) -> None:
        self.role = Role(self.role)

    def text(self) -> str:
        """Concatenated text of the message, whatever its content shape."""
        if isinstance(self.content, str):
            return self.content
        return "".join(
            part["text"]
            for part in self.content
            if part.get("type") == "text" and isinstance(part.get("text"), str)
        )

    def to_dict(self) -> Dict[str, Any]:
        """Return a plain-JSON-safe representation for logging or debugging."""
        return {
            "role": self.role.value,
            "content": self.content,
            "provider_options": self.provider_options,
        }


@dataclass
class ToolDefinition:
    """A function tool declared for a call."""

    name: str
    description: str = ""
    parameters: Dict[str, Any] = field(
        default_factory=lambda: {"type": "object", "properties": {}}
    )


@dataclass
class CallOptions:
    """
    Everything a single generate/stream call carries.

    `provider_options["openai"]` is the side channel for responses-style
    settings: `instructions`, `store`, `previous_response_id`,
    `conversation`, `reasoning_effort`, `reasoning_summary`, `include`.
    """

    prompt: List[Message] = field(default_factory=list)
    max_output_tokens: Optional[int] = None
    temperature: Optional[float] = None
    top_p: Optional[float] = None
    top_k: Optional[int] = None
    stop_sequences: Optional[List[str]] = None
    tools: List[ToolDefinition] = field(default_factory=list)
    tool_choice: Optional[str] = None
    provider_options: Dict[str, Dict[str, Any]] = field(default_factory=dict)
    headers: Dict[str, str] = field(default_factory=dict)

    def openai_options(self) -> Dict[str, Any]:
        return self.provider_options.get("openai") or {}


@dataclass
class GenerateResult:
    """
    Aggregated, non-streaming result of one call.

    `provider_metadata` carries the computed cost under
    `provider_metadata["codex"]["cost"]` when pricing is configured.
    """

    content: List[ContentBlock] = field(default_factory=list)
    finish_reason: str = "unknown"
    usage: Usage = field(default_factory=Usage)
    provider_metadata: ProviderMetadata = field(default_factory=dict)
    warnings: List[CallWarning] = field(default_factory=list)
    response: ResponseInfo = field(default_factory=ResponseInfo)
    response_headers: Dict[str, str] = field(default_factory=dict)
    request: Optional[Dict[str, Any]] = None

    @property
    def text(self) -> str:
        """Joined text of all text blocks."""
        return "".join(block.text for block in self.content if block.type == "text")


@dataclass
class StreamResult:
    """Event stream plus the request/response envelope it came with."""

    events: AsyncIterator[StreamEvent]
    response_headers: Dict[str, str] = field(default_factory=dict)
    request: Optional[Dict[str, Any]] = None


__all__ = [
    "CallOptions",
    "ContentPart",
    "GenerateResult",
    "Message",
    "Role",
    "StreamResult",
    "ToolDefinition",
]
