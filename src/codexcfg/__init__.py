"""Public exports for the codexcfg package."""

from .collector import collect_stream
from .config import CodexProviderOptions, ConnectionProfile, load_codex_config, resolve_model
from .dispatch import CodexResponsesModel, create_language_model, select_model
from .events import (
    CallWarning,
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
from .exceptions import CodexConfigError, ConfigurationError, UnsupportedModelTypeError
from .instructions import InstructionContext, ResolvedInstructions, resolve_instructions
from .normalize import normalize_request, normalize_responses_options
from .pricing import Pricing, calculate_cost
from .prompt import sanitize_prompt, with_responses_instructions
from .provider import CodexProvider, create_codex_provider
from .providers import LocalTransport, OpenAITransport, ProviderError
from .types import CallOptions, GenerateResult, Message, Role, StreamResult, ToolDefinition
from .usage import Usage

__all__ = [
    # Factory
    "create_codex_provider",
    "CodexProvider",
    "CodexProviderOptions",
    "create_language_model",
    "select_model",
    "CodexResponsesModel",
    # Configuration
    "ConnectionProfile",
    "load_codex_config",
    "resolve_model",
    # Instructions pipeline
    "InstructionContext",
    "ResolvedInstructions",
    "resolve_instructions",
    "with_responses_instructions",
    "sanitize_prompt",
    "normalize_request",
    "normalize_responses_options",
    # Streaming
    "collect_stream",
    "StreamEvent",
    "StreamStart",
    "TextStart",
    "TextDelta",
    "TextEnd",
    "ReasoningStart",
    "ReasoningDelta",
    "ReasoningEnd",
    "ToolCall",
    "ToolResult",
    "File",
    "Source",
    "ResponseMetadata",
    "Finish",
    "ErrorEvent",
    "Text",
    "Reasoning",
    "CallWarning",
    "ResponseInfo",
    # Types
    "CallOptions",
    "GenerateResult",
    "Message",
    "Role",
    "StreamResult",
    "ToolDefinition",
    "Usage",
    # Pricing
    "Pricing",
    "calculate_cost",
    # Transports
    "OpenAITransport",
    "LocalTransport",
    # Exceptions
    "CodexConfigError",
    "ConfigurationError",
    "UnsupportedModelTypeError",
    "ProviderError",
]
