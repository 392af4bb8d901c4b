"""
Prompt rewriting for responses-style calls.

Base instructions travel in `provider_options["openai"]["instructions"]` and
replace any in-prompt system messages; user instructions are prepended as a
user message wrapped in <user_instructions> tags, at most once per conversation.
"""

from __future__ import annotations

from dataclasses import replace
from typing import Any, Dict, List, Optional

from .instructions import ResolvedInstructions
from .types import CallOptions, ContentPart, Message, Role

USER_INSTRUCTIONS_OPEN_TAG = "<user_instructions>"
USER_INSTRUCTIONS_CLOSE_TAG = "</user_instructions>"

ITEM_ID_KEY = "item_id"


def existing_instructions(options: CallOptions) -> Optional[str]:
    instructions = options.openai_options().get("instructions")
    if isinstance(instructions, str) and instructions:
        return instructions
    return None


def wrap_user_instructions(text: str) -> str:
    return f"{USER_INSTRUCTIONS_OPEN_TAG}\n\n{text}\n\n{USER_INSTRUCTIONS_CLOSE_TAG}"


def _mentions(content: Any, needle: str) -> bool:
    if isinstance(content, str):
        return needle in content
    if isinstance(content, list):
        return any(
            isinstance(part, dict) and isinstance(part.get("text"), str) and needle in part["text"]
            for part in content
        )
    return False


def has_user_instructions(prompt: List[Message]) -> bool:
    """True when a user message already carries a wrapped instructions block."""
    return any(
        message.role == Role.USER and _mentions(message.content, USER_INSTRUCTIONS_OPEN_TAG)
        for message in prompt
    )


def with_responses_instructions(
    options: CallOptions, instructions: ResolvedInstructions
) -> CallOptions:
    """
    Attach resolved instructions to a call.

    Calls that already carry non-empty side-channel instructions are returned
    unchanged. Otherwise the base instructions are attached, system messages
    are dropped from the prompt, and the user instructions are prepended unless
    a previous turn already injected them.
    """
    if existing_instructions(options):
        return options

    prompt = [message for message in options.prompt if message.role != Role.SYSTEM]
    if instructions.user and not has_user_instructions(prompt):
        prompt.insert(
            0,
            Message(
                role=Role.USER,
                content=[{"type": "text", "text": wrap_user_instructions(instructions.user)}],
            ),
        )

    provider_options = dict(options.provider_options)
    provider_options["openai"] = {**options.openai_options(), "instructions": instructions.base}
    return replace(options, prompt=prompt, provider_options=provider_options)


def _without_item_id(
    provider_options: Optional[Dict[str, Dict[str, Any]]],
) -> Optional[Dict[str, Dict[str, Any]]]:
    if not provider_options or ITEM_ID_KEY not in (provider_options.get("openai") or {}):
        return provider_options
    cleaned = dict(provider_options)
    openai = {k: v for k, v in provider_options["openai"].items() if k != ITEM_ID_KEY}
    if openai:
        cleaned["openai"] = openai
    else:
        del cleaned["openai"]
    return cleaned or None


def _image_reference(part: ContentPart) -> Any:
    reference = part.get("image_url")
    if reference is None:
        reference = part.get("file_id")
    if isinstance(reference, dict):
        reference = reference.get("url")
    return reference


def sanitize_part(part: ContentPart) -> ContentPart:
    """Drop item ids and retarget legacy `input_text`/`input_image` parts."""
    kind = part.get("type")
    if kind == "input_text":
        cleaned: ContentPart = {"type": "text", "text": part.get("text", "")}
    elif kind == "input_image":
        cleaned = {"type": "image", "image": _image_reference(part)}
        if part.get("detail"):
            cleaned["detail"] = part["detail"]
    else:
        cleaned = {k: v for k, v in part.items() if k != "provider_options"}

    provider_options = _without_item_id(part.get("provider_options"))
    if provider_options:
        cleaned["provider_options"] = provider_options
    return cleaned


def sanitize_prompt(prompt: List[Message]) -> List[Message]:
    """Return a copy of the prompt with transport-incompatible fields removed."""
    sanitized = []
    for message in prompt:
        content = message.content
        if isinstance(content, list):
            content = [sanitize_part(part) if isinstance(part, dict) else part for part in content]
        sanitized.append(
            Message(
                role=message.role,
                content=content,
                provider_options=_without_item_id(message.provider_options),
            )
        )
    return sanitized


__all__ = [
    "USER_INSTRUCTIONS_CLOSE_TAG",
    "USER_INSTRUCTIONS_OPEN_TAG",
    "existing_instructions",
    "has_user_instructions",
    "sanitize_part",
    "sanitize_prompt",
    "with_responses_instructions",
    "wrap_user_instructions",
]
