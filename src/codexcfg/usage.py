"""
Token usage reported by the transport for a single call.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional


@dataclass
class Usage:
    """
    Token counts for one call. Every count is optional because transports
    report them independently (or not at all).

    Attributes:
        input_tokens: Number of tokens in the prompt/input.
        output_tokens: Number of tokens in the completion/output.
        total_tokens: Total tokens as reported by the transport. Never derived locally.
        reasoning_tokens: Output tokens spent on reasoning, when reported.
        cached_input_tokens: Input tokens served from the prompt cache, when reported.
    """

    input_tokens: Optional[int] = None
    output_tokens: Optional[int] = None
    total_tokens: Optional[int] = None
    reasoning_tokens: Optional[int] = None
    cached_input_tokens: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        """Serialize the counts that are present."""
        result = {
            "input_tokens": self.input_tokens,
            "output_tokens": self.output_tokens,
            "total_tokens": self.total_tokens,
            "reasoning_tokens": self.reasoning_tokens,
            "cached_input_tokens": self.cached_input_tokens,
        }
        return {key: value for key, value in result.items() if value is not None}


__all__ = ["Usage"]
