"""Tests for confirmation and prompt helpers."""

from io import StringIO
from unittest.mock import AsyncMock, patch

import pytest
from rich.console import Console

from devsetup.utils import prompt
from devsetup.utils.prompt import confirm, is_affirmative


class TestIsAffirmative:
    """Tests for is_affirmative."""

    @pytest.mark.parametrize("answer", ["y", "Y", "yes", "Yes", "yep"])
    def test_yes(self, answer):
        assert is_affirmative(answer) is True

    @pytest.mark.parametrize("answer", ["", "n", "no", "N", "sure", " y", None])
    def test_no(self, answer):
        assert is_affirmative(answer) is False


class TestConfirm:
    """Tests for confirm."""

    @pytest.mark.asyncio
    async def test_assume_yes_skips_prompt(self):
        with patch.object(prompt, "ask", new=AsyncMock()) as mock_ask:
            assert await confirm(Console(file=StringIO()), "Continue?", assume_yes=True) is True
        mock_ask.assert_not_called()

    @pytest.mark.asyncio
    async def test_appends_hint(self):
        with patch.object(prompt, "ask", new=AsyncMock(return_value="y")) as mock_ask:
            assert await confirm(Console(file=StringIO()), "Continue?") is True
        assert mock_ask.call_args.args[1] == "Continue? [y/N]"

    @pytest.mark.asyncio
    async def test_empty_is_no(self):
        with patch.object(prompt, "ask", new=AsyncMock(return_value="")):
            assert await confirm(Console(file=StringIO()), "Continue?") is False


class TestAsk:
    """Tests for ask."""

    @pytest.mark.asyncio
    async def test_reads_and_strips(self):
        with patch("rich.prompt.Prompt.ask", return_value="  mike  "):
            assert await prompt.ask(Console(file=StringIO()), "Enter username") == "mike"

    @pytest.mark.asyncio
    async def test_default_used(self):
        with patch("rich.prompt.Prompt.ask", side_effect=lambda *a, **kw: kw["default"]):
            assert await prompt.ask(Console(file=StringIO()), "Folder", default="repo") == "repo"

    @pytest.mark.asyncio
    async def test_eof_propagates(self):
        with patch("rich.prompt.Prompt.ask", side_effect=EOFError):
            with pytest.raises(EOFError):
                await prompt.ask(Console(file=StringIO()), "Enter username")
