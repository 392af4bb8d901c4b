"""
Hello Codex home: resolve a model from a throwaway settings home.

No API key needed. Runs entirely offline with the built-in LocalTransport.

Prerequisites: None
    pip install codexcfg

Run:
    python examples/01_hello_codex_home.py
"""

import asyncio
import tempfile
from pathlib import Path

from codexcfg import CallOptions, CodexProviderOptions, LocalTransport, Message, Role, create_codex_provider


async def main() -> None:
    with tempfile.TemporaryDirectory() as tmp:
        home = Path(tmp)
        (home / "config.toml").write_text('model = "gpt-5.2-codex"\n')
        (home / "AGENTS.md").write_text("Always answer in English.\n")

        transport = LocalTransport()
        provider = create_codex_provider(
            CodexProviderOptions(codex_home=home, pricing={"input_per_mtoken": 1.25, "output_per_mtoken": 10}),
            transport_factory=lambda profile, name: transport,
        )
        model = provider("default")

        result = await model.generate(
            CallOptions(prompt=[Message(role=Role.USER, content="What does this repo do?")])
        )
        sent = transport.models[0].calls[0]

        print(f"Model: {model.model_id}")
        print(f"Instructions: {sent.provider_options['openai']['instructions'][:60]}...")
        print(f"Messages sent: {len(sent.prompt)} (user instructions prepended)")
        print(f"Response: {result.text}")
        print(f"Cost: ${result.provider_metadata['codex']['cost']:.6f}")


if __name__ == "__main__":
    asyncio.run(main())
