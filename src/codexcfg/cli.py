"""
CLI entrypoint for codexcfg.

Examples:
    python -m codexcfg.cli profile
    python -m codexcfg.cli instructions --model gpt-5.2-codex
    python -m codexcfg.cli run --prompt "Hello" --local
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
from typing import List

from .config import CodexProviderOptions, load_codex_config, resolve_model
from .dispatch import build_instruction_context, openai_transport_factory
from .events import TextDelta
from .instructions import resolve_instructions
from .provider import create_codex_provider
from .providers.stubs import LocalTransport
from .types import CallOptions, Message, Role, ToolDefinition


def _options(args: argparse.Namespace) -> CodexProviderOptions:
    return CodexProviderOptions(
        codex_home=args.codex_home,
        use_codex_config_model=not getattr(args, "model", None),
        instructions=getattr(args, "instructions", None),
        instructions_file=getattr(args, "instructions_file", None),
        include_user_instructions=not getattr(args, "no_user_instructions", False),
    )


def show_profile(args: argparse.Namespace) -> None:
    profile = load_codex_config(_options(args))
    print(json.dumps(profile.to_dict(), indent=2))


def show_instructions(args: argparse.Namespace) -> None:
    options = _options(args)
    profile = load_codex_config(options)
    model_id = resolve_model(profile.model, args.model, options.use_codex_config_model) or ""
    call = CallOptions(tools=[ToolDefinition(name=name) for name in args.tool or []])
    resolved = resolve_instructions(
        build_instruction_context(options, profile.codex_home, model_id, call)
    )
    print(resolved.base)
    if resolved.user:
        print("\n--- user instructions ---\n")
        print(resolved.user)


async def _run(args: argparse.Namespace) -> None:
    factory = (lambda profile, name: LocalTransport(name)) if args.local else openai_transport_factory
    provider = create_codex_provider(_options(args), transport_factory=factory)
    if args.wire_api == "chat":
        model = provider.chat(args.model)
    elif args.wire_api == "responses":
        model = provider.responses(args.model)
    else:
        model = provider.language_model(args.model)

    options = CallOptions(prompt=[Message(role=Role.USER, content=args.prompt)])
    if args.stream:
        streamed = await model.stream(options)
        async for event in streamed.events:
            if isinstance(event, TextDelta):
                _stream_printer(event.delta)
        print()
        return

    result = await model.generate(options)
    print(result.text)
    if args.verbose:
        print(json.dumps({"finish_reason": result.finish_reason, "usage": result.usage.to_dict()}))


def run_model(args: argparse.Namespace) -> None:
    asyncio.run(_run(args))


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Inspect and use a Codex settings home")
    parser.add_argument("--codex-home", help="Settings home (default: $CODEX_HOME or ~/.codex)")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    subparsers = parser.add_subparsers(dest="command", required=True)

    profile_parser = subparsers.add_parser("profile", help="Print the resolved connection profile")
    profile_parser.set_defaults(func="profile")

    instructions_parser = subparsers.add_parser(
        "instructions", help="Print the instructions a responses call would carry"
    )
    instructions_parser.add_argument("--model", help="Model id (default: model from config.toml)")
    instructions_parser.add_argument(
        "--tool", action="append", help="Declare a tool for the call (repeatable)"
    )
    instructions_parser.add_argument("--instructions", help="Inline base instructions")
    instructions_parser.add_argument("--instructions-file", help="Base instructions file")
    instructions_parser.add_argument(
        "--no-user-instructions", action="store_true", help="Skip AGENTS.md / user instructions"
    )
    instructions_parser.set_defaults(func="instructions")

    run_parser = subparsers.add_parser("run", help="Send one prompt through the provider")
    run_parser.add_argument("--prompt", required=True, help="User prompt")
    run_parser.add_argument("--model", help="Model id (default: model from config.toml)")
    run_parser.add_argument(
        "--wire-api", choices=["chat", "responses"], help="Force a wire protocol"
    )
    run_parser.add_argument("--instructions", help="Inline base instructions")
    run_parser.add_argument("--instructions-file", help="Base instructions file")
    run_parser.add_argument(
        "--local", action="store_true", help="Use the offline echo transport"
    )
    run_parser.add_argument("--stream", action="store_true", help="Stream text to stdout")
    run_parser.set_defaults(func="run")

    return parser


def _stream_printer(text: str) -> None:
    print(text, end="", flush=True)


def main(argv: List[str] | None = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")

    if args.func == "profile":
        show_profile(args)
    elif args.func == "instructions":
        show_instructions(args)
    elif args.func == "run":
        run_model(args)
    else:
        parser.print_help()


if __name__ == "__main__":
    main()
