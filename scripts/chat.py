#!/usr/bin/env python
"""Interactive chat over local documents.

Usage:
    python -m scripts.chat --file docs/guide.md --file notes.txt

Type 'exit' to end the conversation. Failed turns are reported and the
prompt is shown again.
"""

import argparse
import asyncio
import sys
from pathlib import Path

from ragent.config import get_settings
from ragent.exceptions import RagentError
from ragent.logging_config import get_logger, setup_logging
from ragent.session import SessionConfig, SessionManager

logger = get_logger(__name__)

EXIT_COMMAND = "exit"


async def run_chat(files: list[Path], max_iterations: int | None = None) -> None:
    """Load files into a fresh session and chat until 'exit'.

    Args:
        files: Text files to index before the first turn.
        max_iterations: Override for the per-turn tool limit.
    """
    settings = get_settings()
    setup_logging(level=settings.log_level)

    manager = SessionManager(settings)
    session = manager.create(SessionConfig(max_iterations=max_iterations))

    try:
        for path in files:
            try:
                added = await session.ingest_file(path)
            except RagentError as e:
                print(f"Could not load {path}: {e.message}")
                continue
            print(f"Loaded {path} ({added} chunks)")

        print(f"Chat started! (Type '{EXIT_COMMAND}' to end the conversation)")

        while True:
            try:
                user_input = await asyncio.to_thread(input, "You: ")
            except EOFError:
                break

            if user_input.strip().lower() == EXIT_COMMAND:
                break
            if not user_input.strip():
                continue

            try:
                result = await session.chat(user_input)
            except RagentError as e:
                logger.error(
                    "Chat turn failed",
                    extra={"error_code": e.code.value, "details": e.details},
                )
                print(f"\nError: {e.message}\n")
                continue

            print(f"\nBot: {result.output}\n")
    finally:
        await manager.close()


def main() -> int:
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="Chat with an agent over your documents",
    )
    parser.add_argument(
        "--file",
        type=Path,
        action="append",
        default=[],
        help="Text file to load (repeatable)",
    )
    parser.add_argument(
        "--max-iterations",
        type=int,
        default=None,
        help="Maximum tool calls per turn",
    )

    args = parser.parse_args()

    try:
        asyncio.run(run_chat(args.file, args.max_iterations))
    except KeyboardInterrupt:
        pass
    return 0


if __name__ == "__main__":
    sys.exit(main())
