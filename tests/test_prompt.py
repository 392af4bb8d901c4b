"""
Tests for prompt transformation and request normalization.

Tests cover:
- Side-channel instruction passthrough and idempotence
- User-instruction injection without double injection
- Item-id stripping and legacy part retargeting
- Stateless request normalization
"""

from __future__ import annotations

import copy
from pathlib import Path

from codexcfg.instructions import InstructionContext, ResolvedInstructions
from codexcfg.normalize import normalize_request, normalize_responses_options
from codexcfg.prompt import (
    USER_INSTRUCTIONS_CLOSE_TAG,
    USER_INSTRUCTIONS_OPEN_TAG,
    has_user_instructions,
    sanitize_prompt,
    with_responses_instructions,
    wrap_user_instructions,
)
from codexcfg.types import CallOptions, Message, Role


def _user(content) -> Message:
    return Message(role=Role.USER, content=content)


# =============================================================================
# Instruction injection
# =============================================================================


class TestWithResponsesInstructions:
    """Attaching resolved instructions to a call."""

    def test_existing_instructions_are_kept(self) -> None:
        """Test that existing instructions make the call a passthrough."""
        options = CallOptions(provider_options={"openai": {"instructions": "Keep this."}})
        result = with_responses_instructions(options, ResolvedInstructions("Other.", "User."))
        assert result is options
        assert result.provider_options["openai"]["instructions"] == "Keep this."

    def test_idempotent_on_stable_input(self) -> None:
        """Test that applying twice changes nothing."""
        options = CallOptions(
            prompt=[_user("hi")], provider_options={"openai": {"instructions": "Keep this."}}
        )
        resolved = ResolvedInstructions("Other.", "User.")
        once = with_responses_instructions(options, resolved)
        twice = with_responses_instructions(once, resolved)
        assert once == twice == options

    def test_empty_existing_instructions_are_replaced(self) -> None:
        """Test that empty instructions are replaced."""
        options = CallOptions(provider_options={"openai": {"instructions": ""}})
        result = with_responses_instructions(options, ResolvedInstructions("Base."))
        assert result.provider_options["openai"]["instructions"] == "Base."

    def test_base_attached_and_other_options_preserved(self) -> None:
        """Test attaching base instructions without losing other options."""
        options = CallOptions(
            prompt=[_user("hi")],
            provider_options={"openai": {"reasoning_effort": "high"}, "other": {"x": 1}},
        )
        result = with_responses_instructions(options, ResolvedInstructions("Follow X."))
        assert result.provider_options == {
            "openai": {"reasoning_effort": "high", "instructions": "Follow X."},
            "other": {"x": 1},
        }
        assert result.prompt == [_user("hi")]
        assert "instructions" not in options.provider_options["openai"]

    def test_user_instructions_prepended(self) -> None:
        """Test prepending wrapped user instructions."""
        options = CallOptions(prompt=[_user("hi")])
        result = with_responses_instructions(options, ResolvedInstructions("Base.", "Use these rules."))

        assert len(result.prompt) == 2
        first = result.prompt[0]
        assert first.role == Role.USER
        text = first.content[0]["text"]
        assert USER_INSTRUCTIONS_OPEN_TAG in text
        assert USER_INSTRUCTIONS_CLOSE_TAG in text
        assert "Use these rules." in text
        assert result.prompt[1] == _user("hi")
        assert len(options.prompt) == 1

    def test_no_double_injection_with_structured_history(self) -> None:
        """Test no second injection when history has a wrapped part."""
        history = [
            _user([{"type": "text", "text": wrap_user_instructions("Use these rules.")}]),
            _user("hi"),
        ]
        result = with_responses_instructions(
            CallOptions(prompt=history), ResolvedInstructions("Base.", "Use these rules.")
        )
        assert len(result.prompt) == 2

    def test_no_double_injection_with_string_history(self) -> None:
        """Test no second injection when history has a wrapped string."""
        history = [_user(wrap_user_instructions("Old rules.")), _user("hi")]
        result = with_responses_instructions(
            CallOptions(prompt=history), ResolvedInstructions("Base.", "New rules.")
        )
        assert len(result.prompt) == 2

    def test_delimiter_in_assistant_message_does_not_count(self) -> None:
        """Test that only user messages count as injected."""
        prompt = [Message(role=Role.ASSISTANT, content=USER_INSTRUCTIONS_OPEN_TAG)]
        assert not has_user_instructions(prompt)

    def test_system_messages_dropped_when_instructions_attached(self) -> None:
        """Test that system messages are removed when instructions are attached."""
        options = CallOptions(
            prompt=[Message(role=Role.SYSTEM, content="You are OpenCode."), _user("hi")]
        )
        result = with_responses_instructions(options, ResolvedInstructions("Base.", "Rules."))
        assert [message.role for message in result.prompt] == [Role.USER, Role.USER]
        assert result.prompt[1] == _user("hi")
        assert result.provider_options["openai"]["instructions"] == "Base."
        assert len(options.prompt) == 2

    def test_system_messages_kept_on_passthrough(self) -> None:
        """Test that system messages stay when the call has instructions."""
        prompt = [Message(role=Role.SYSTEM, content="You are OpenCode."), _user("hi")]
        options = CallOptions(prompt=prompt, provider_options={"openai": {"instructions": "Mine."}})
        assert with_responses_instructions(options, ResolvedInstructions("Base.")).prompt == prompt


# =============================================================================
# Prompt sanitizing
# =============================================================================


class TestSanitizePrompt:
    """Compatibility rewrites applied to every message."""

    def test_item_ids_removed_everywhere(self) -> None:
        """Test removing item ids from messages and parts."""
        prompt = [
            Message(
                role=Role.ASSISTANT,
                content=[
                    {
                        "type": "text",
                        "text": "Done.",
                        "provider_options": {"openai": {"item_id": "msg_1", "keep": True}},
                    }
                ],
                provider_options={"openai": {"item_id": "msg_1"}, "other": {"a": 1}},
            )
        ]
        sanitized = sanitize_prompt(prompt)

        assert sanitized[0].provider_options == {"other": {"a": 1}}
        assert sanitized[0].content == [
            {"type": "text", "text": "Done.", "provider_options": {"openai": {"keep": True}}}
        ]
        assert prompt[0].provider_options["openai"]["item_id"] == "msg_1"

    def test_legacy_parts_retargeted(self) -> None:
        """Test rewriting input_text and input_image parts."""
        prompt = [
            _user(
                [
                    {"type": "input_text", "text": "look"},
                    {"type": "input_image", "image_url": "https://img/1.png"},
                    {"type": "input_image", "file_id": "file-123"},
                ]
            )
        ]
        assert sanitize_prompt(prompt)[0].content == [
            {"type": "text", "text": "look"},
            {"type": "image", "image": "https://img/1.png"},
            {"type": "image", "image": "file-123"},
        ]

    def test_plain_messages_unchanged(self) -> None:
        """Test that plain messages pass through unchanged."""
        prompt = [_user("hi"), Message(role=Role.SYSTEM, content="sys")]
        assert sanitize_prompt(prompt) == prompt


# =============================================================================
# Normalization
# =============================================================================


class TestNormalizeRequest:
    """Stateless responses requests."""

    def test_fixups(self) -> None:
        """Test the stateless request fixups."""
        options = CallOptions(
            prompt=[_user("hi")],
            max_output_tokens=123,
            temperature=0.2,
            provider_options={
                "openai": {
                    "store": False,
                    "previous_response_id": "resp_1",
                    "conversation": "conv_1",
                    "instructions": "Base.",
                }
            },
        )
        normalized = normalize_request(options)

        assert normalized.max_output_tokens is None
        assert normalized.temperature == 0.2
        assert normalized.provider_options["openai"] == {"store": True, "instructions": "Base."}
        assert options.max_output_tokens == 123

    def test_full_pipeline_with_override(self, codex_home: Path) -> None:
        """Test the full pipeline with inline instructions."""
        context = InstructionContext(
            codex_home=codex_home, model_id="gpt-5.2-codex", instructions="Follow X."
        )
        normalized = normalize_responses_options(
            CallOptions(prompt=[], max_output_tokens=50), context
        )
        assert normalized.provider_options["openai"]["instructions"] == "Follow X."
        assert normalized.provider_options["openai"]["store"] is True
        assert normalized.max_output_tokens is None
        assert normalized.prompt == []

    def test_pipeline_does_not_resolve_when_instructions_present(self, codex_home: Path) -> None:
        """Test that no files are read when instructions are present."""
        reads = []

        def reader(path: Path):
            reads.append(path)
            return None

        context = InstructionContext(codex_home=codex_home, model_id="gpt-5.2-codex")
        options = CallOptions(provider_options={"openai": {"instructions": "Keep this."}})
        normalized = normalize_responses_options(options, context, reader)

        assert reads == []
        assert normalized.provider_options["openai"]["instructions"] == "Keep this."

    def test_pipeline_is_stable_across_calls(self, write_home) -> None:
        """Test that normalizing twice gives the same result."""
        home = write_home(**{"AGENTS.md": "Use these rules."})
        context = InstructionContext(codex_home=home, model_id="gpt-5.2-codex")
        first = normalize_responses_options(CallOptions(prompt=[_user("hi")]), context)
        second = normalize_responses_options(copy.deepcopy(first), context)
        assert second == first
        assert len(second.prompt) == 2

    def test_pipeline_leaves_no_system_message(self, codex_home: Path) -> None:
        """Test that no system message reaches the normalized prompt."""
        context = InstructionContext(codex_home=codex_home, model_id="gpt-5.2-codex")
        options = CallOptions(
            prompt=[Message(role=Role.SYSTEM, content="You are OpenCode."), _user("hi")]
        )
        normalized = normalize_responses_options(options, context)

        assert normalized.provider_options["openai"]["instructions"].startswith("You are Codex")
        assert all(message.role != Role.SYSTEM for message in normalized.prompt)
        assert normalized.prompt[-1] == _user("hi")
