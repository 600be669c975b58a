"""Tests for the interactive chat shell."""

from pathlib import Path
from unittest.mock import patch

import pytest

from ragent.exceptions import GenerationServiceError
from ragent.session import SessionManager
from scripts.chat import run_chat


@pytest.fixture
def shell(sessions: SessionManager):
    """Route the shell to the test session manager."""
    with patch("scripts.chat.SessionManager", return_value=sessions):
        yield sessions


async def _chat(lines: list[str], files: list[Path] | None = None) -> None:
    with patch("builtins.input", side_effect=[*lines, EOFError()]):
        await run_chat(files or [])


class TestRunChat:
    @pytest.mark.asyncio
    async def test_answers_until_exit(self, shell, llm, capsys) -> None:
        llm.script("Bonjour!")

        await _chat(["hello", "  ", "EXIT", "never read"])

        out = capsys.readouterr().out
        assert "Chat started! (Type 'exit' to end the conversation)" in out
        assert "Bot: Bonjour!" in out
        assert len(llm.calls) == 1

    @pytest.mark.asyncio
    async def test_failed_turn_keeps_prompting(self, shell, llm, capsys) -> None:
        llm.script(GenerationServiceError("model offline"), "back again")

        await _chat(["first", "second", "exit"])

        out = capsys.readouterr().out
        assert "Error: model offline" in out
        assert "Bot: back again" in out

    @pytest.mark.asyncio
    async def test_end_of_input_ends_session(self, shell, capsys) -> None:
        await _chat([])
        assert "Chat started!" in capsys.readouterr().out

    @pytest.mark.asyncio
    async def test_files_loaded_before_first_turn(self, shell, tmp_path, capsys) -> None:
        notes = tmp_path / "notes.txt"
        notes.write_text("Paris is the capital of France.")
        missing = tmp_path / "missing.txt"

        await _chat(["exit"], files=[notes, missing])

        out = capsys.readouterr().out
        assert f"Loaded {notes} (1 chunks)" in out
        assert f"Could not load {missing}" in out
