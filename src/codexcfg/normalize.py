"""
Request normalization for the responses transport.

Every outgoing responses call is stateless: the exchange is stored, but no
previous response or conversation is referenced, and the token limit is
left to the server.
"""

from __future__ import annotations

from dataclasses import replace

from .config import FileReader, read_text_if_exists
from .instructions import InstructionContext, resolve_instructions
from .prompt import existing_instructions, sanitize_prompt, with_responses_instructions
from .types import CallOptions

SESSION_CONTINUATION_KEYS = ("previous_response_id", "conversation")


def normalize_request(options: CallOptions) -> CallOptions:
    openai = {
        key: value
        for key, value in options.openai_options().items()
        if key not in SESSION_CONTINUATION_KEYS
    }
    openai["store"] = True
    provider_options = {**options.provider_options, "openai": openai}
    return replace(
        options,
        prompt=sanitize_prompt(options.prompt),
        max_output_tokens=None,
        provider_options=provider_options,
    )


def normalize_responses_options(
    options: CallOptions,
    context: InstructionContext,
    reader: FileReader = read_text_if_exists,
) -> CallOptions:
    """Inject instructions (unless the call brings its own), then normalize."""
    if not existing_instructions(options):
        options = with_responses_instructions(options, resolve_instructions(context, reader))
    return normalize_request(options)


__all__ = ["normalize_request", "normalize_responses_options"]
