"""
Stream collection: reduce a hand-written event stream to one result.

Prerequisites: None
    pip install codexcfg

Run:
    python examples/02_stream_collection.py
"""

import asyncio

from codexcfg import (
    Finish,
    ReasoningDelta,
    ReasoningEnd,
    ReasoningStart,
    StreamStart,
    TextDelta,
    TextEnd,
    TextStart,
    ToolCall,
    Usage,
    collect_stream,
)


async def events():
    yield StreamStart()
    yield ReasoningStart("r1")
    yield TextStart("t1")
    yield ReasoningDelta("r1", "The user wants a listing. ")
    yield TextDelta("t1", "Listing files")
    yield ReasoningEnd("r1")
    yield ToolCall("call_1", "shell", '{"command": ["ls"]}')
    yield TextDelta("t1", " now.")
    yield TextEnd("t1")
    yield Finish(finish_reason="tool-calls", usage=Usage(input_tokens=42, output_tokens=12))


async def main() -> None:
    result = await collect_stream(events())
    for block in result.content:
        print(f"{block.type}: {block}")
    print(f"Finish reason: {result.finish_reason}")
    print(f"Usage: {result.usage.to_dict()}")


if __name__ == "__main__":
    asyncio.run(main())
