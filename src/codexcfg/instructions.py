"""
Instruction resolution for responses-style calls.

Base instructions, first match wins:
1. `instructions_file` (absolute, or relative to the settings home)
2. inline `instructions`
3. the bundled Codex prompt, for model ids containing "codex"
4. the bundled general prompt, plus the apply_patch addendum for models that
   need it when the call does not already declare an `apply_patch` tool

User instructions come from `user_instructions_file`, else AGENTS.md in the
settings home. Files are read on every call.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import FrozenSet, Optional, Union

from .config import FileReader, read_text_if_exists
from .pricing import Pricing

logger = logging.getLogger(__name__)

MAX_INSTRUCTION_CHARS = 64_000
_FORBIDDEN_CONTROL_CHARS = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f\x7f-\x9f]")

AGENTS_FILENAME = "AGENTS.md"
FLAGSHIP_MODEL_MARKER = "codex"
APPLY_PATCH_TOOL_NAME = "apply_patch"
APPLY_PATCH_MODEL_PREFIXES = ("o3", "o4-mini", "gpt-4.1", "gpt-4o", "gpt-5", "gpt-oss")

PROMPTS_DIR = Path(__file__).resolve().parent / "prompts"
GENERAL_PROMPT_PATH = PROMPTS_DIR / "prompt.md"
CODEX_PROMPT_PATH = PROMPTS_DIR / "gpt_5_codex_prompt.md"
APPLY_PATCH_PROMPT_PATH = PROMPTS_DIR / "apply_patch_tool_instructions.md"

DEFAULT_CODEX_INSTRUCTIONS = (
    "You are Codex, based on GPT-5. You are running as a coding agent in the Codex CLI "
    "on a user's computer."
)
DEFAULT_GENERAL_INSTRUCTIONS = (
    "You are a coding agent running in the Codex CLI, a terminal-based coding assistant. "
    "You are expected to be precise, safe, and helpful."
)


@dataclass(frozen=True)
class InstructionContext:
    """Per-call inputs to instruction resolution."""

    codex_home: Path
    model_id: str
    instructions: Optional[str] = None
    instructions_file: Optional[Union[str, Path]] = None
    user_instructions_file: Optional[Union[str, Path]] = None
    include_user_instructions: bool = True
    validate_instructions: bool = True
    pricing: Optional[Pricing] = None
    tool_names: FrozenSet[str] = frozenset()


@dataclass(frozen=True)
class ResolvedInstructions:
    base: str
    user: Optional[str] = None


def is_safe_instruction(text: str) -> bool:
    """Reject oversized text and control characters other than tab, LF and CR."""
    if len(text) > MAX_INSTRUCTION_CHARS:
        return False
    return _FORBIDDEN_CONTROL_CHARS.search(text) is None


def _resolve_path(codex_home: Path, reference: Union[str, Path]) -> Path:
    path = Path(reference).expanduser()
    return path if path.is_absolute() else codex_home / path


def _accept(text: Optional[str], context: InstructionContext, source: str) -> Optional[str]:
    if text is None:
        return None
    text = text.strip()
    if not text:
        return None
    if context.validate_instructions and not is_safe_instruction(text):
        logger.warning("Ignoring %s instructions: failed content validation", source)
        return None
    logger.debug("Using %s instructions", source)
    return text


def _read_reference(
    context: InstructionContext, reference: Optional[Union[str, Path]], reader: FileReader
) -> Optional[str]:
    if not reference:
        return None
    return reader(_resolve_path(context.codex_home, reference))


def _bundled(path: Path, reader: FileReader) -> Optional[str]:
    text = reader(path)
    if text is None:
        logger.warning("Bundled prompt %s is unreadable; using built-in default", path.name)
    return text


def needs_apply_patch_instructions(model_id: str, tool_names: FrozenSet[str]) -> bool:
    return model_id.startswith(APPLY_PATCH_MODEL_PREFIXES) and APPLY_PATCH_TOOL_NAME not in tool_names


def resolve_base_instructions(
    context: InstructionContext, reader: FileReader = read_text_if_exists
) -> str:
    """Return the base instruction string. Always non-empty."""
    resolved = _accept(
        _read_reference(context, context.instructions_file, reader), context, "file"
    ) or _accept(context.instructions, context, "inline")
    if resolved:
        return resolved

    if FLAGSHIP_MODEL_MARKER in context.model_id:
        return (
            _accept(_bundled(CODEX_PROMPT_PATH, reader), context, "bundled codex")
            or DEFAULT_CODEX_INSTRUCTIONS
        )

    base = (
        _accept(_bundled(GENERAL_PROMPT_PATH, reader), context, "bundled general")
        or DEFAULT_GENERAL_INSTRUCTIONS
    )
    if needs_apply_patch_instructions(context.model_id, context.tool_names):
        addendum = _accept(_bundled(APPLY_PATCH_PROMPT_PATH, reader), context, "apply_patch")
        if addendum:
            base = f"{base}\n{addendum}"
    return base


def resolve_user_instructions(
    context: InstructionContext, reader: FileReader = read_text_if_exists
) -> Optional[str]:
    """Return user instructions, or None when disabled or nothing usable exists."""
    if not context.include_user_instructions:
        return None
    return _accept(
        _read_reference(context, context.user_instructions_file, reader), context, "user file"
    ) or _accept(reader(context.codex_home / AGENTS_FILENAME), context, AGENTS_FILENAME)


def resolve_instructions(
    context: InstructionContext, reader: FileReader = read_text_if_exists
) -> ResolvedInstructions:
    return ResolvedInstructions(
        base=resolve_base_instructions(context, reader),
        user=resolve_user_instructions(context, reader),
    )


__all__ = [
    "APPLY_PATCH_TOOL_NAME",
    "DEFAULT_CODEX_INSTRUCTIONS",
    "DEFAULT_GENERAL_INSTRUCTIONS",
    "InstructionContext",
    "MAX_INSTRUCTION_CHARS",
    "ResolvedInstructions",
    "is_safe_instruction",
    "needs_apply_patch_instructions",
    "resolve_base_instructions",
    "resolve_instructions",
    "resolve_user_instructions",
]
