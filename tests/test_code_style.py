"""Tests for scaffold_wizard.code_style module."""

import asyncio

import pytest
from rich.console import Console

from scaffold_wizard import code_style
from scaffold_wizard.code_style import (
    STYLE_PRESETS,
    build_code_style_config,
    disabled_code_style,
    prompt_code_style_config,
    resolve_formatter_conflict,
)


@pytest.fixture
def script(monkeypatch):
    """Answer every prompt in the code_style module from one ordered queue."""
    queue: list = []
    asked: list[str] = []

    async def prompt(message, choices=None, default=None, **kwargs):
        asked.append(message)
        answer = queue.pop(0)
        if callable(answer):
            return answer(choices, default)
        return answer

    for kind in ("select", "checkbox", "confirm", "text"):
        monkeypatch.setattr(code_style, kind, prompt)
    return queue, asked


def _quiet() -> Console:
    return Console(file=None, quiet=True)


class TestBuildConfig:
    def test_no_tools_is_disabled(self):
        assert build_code_style_config([], STYLE_PRESETS["standard"], "standard") == {
            "enabled": False,
            "tools": [],
            "preset": None,
        }

    def test_each_tool_rendered(self):
        config = build_code_style_config(
            ["editorconfig", "biome", "prettier", "commitlint"],
            STYLE_PRESETS["minimal"],
            "minimal",
            husky=False,
        )
        assert config["enabled"] is True
        assert config["preset"] == "minimal"
        assert config["editorconfig"]["max_line_length"] == 100
        assert config["biome"]["formatter"]["quoteStyle"] == "double"
        assert config["biome"]["formatter"]["semicolons"] == "asNeeded"
        assert config["prettier"]["semi"] is False
        assert config["commitlint"]["husky"] is False
        assert "feat" in config["commitlint"]["types"]

    def test_unselected_tools_absent(self):
        config = build_code_style_config(["editorconfig"], STYLE_PRESETS["google"], "google")
        assert config["editorconfig"]["max_line_length"] == 80
        assert "biome" not in config
        assert "commitlint" not in config

    def test_presets(self):
        assert STYLE_PRESETS["airbnb"].trailing_commas == "all"
        assert STYLE_PRESETS["standard"].indent_size == 2


class TestFormatterConflict:
    def test_single_formatter_untouched(self, script):
        _, asked = script
        tools = ["editorconfig", "biome"]
        assert asyncio.run(resolve_formatter_conflict(tools, _quiet())) == tools
        assert asked == []

    def test_keep_both(self, script):
        answers, _ = script
        answers.append(True)
        tools = ["biome", "prettier"]
        assert asyncio.run(resolve_formatter_conflict(tools, _quiet())) == tools

    def test_prefer_prettier(self, script):
        answers, _ = script
        answers.extend([False, "prettier"])
        result = asyncio.run(
            resolve_formatter_conflict(["editorconfig", "biome", "prettier"], _quiet())
        )
        assert result == ["editorconfig", "prettier"]


class TestPrompts:
    def test_declined(self, script):
        answers, _ = script
        answers.append(False)
        assert asyncio.run(prompt_code_style_config(console=_quiet())) == disabled_code_style()

    def test_default_tools_checked(self, script):
        answers, _ = script
        seen = {}

        def answer(choices, default):
            seen["checked"] = [c.value for c in choices if c.checked]
            return seen["checked"]

        answers.extend([True, answer, False])
        config = asyncio.run(prompt_code_style_config(console=_quiet()))

        assert seen["checked"] == ["editorconfig", "commitlint"]
        assert config["preset"] == "standard"
        assert config["commitlint"]["husky"] is True

    def test_previous_tools_checked(self, script):
        answers, _ = script
        seen = {}

        def answer(choices, default):
            seen["checked"] = [c.value for c in choices if c.checked]
            return seen["checked"]

        answers.extend([True, answer, False])
        asyncio.run(prompt_code_style_config({"tools": ["biome"]}, console=_quiet()))

        assert seen["checked"] == ["biome"]

    def test_nothing_selected_is_disabled(self, script):
        answers, _ = script
        answers.extend([True, []])
        assert asyncio.run(prompt_code_style_config(console=_quiet())) == disabled_code_style()

    def test_preset_chosen(self, script):
        answers, _ = script
        answers.extend([True, ["biome", "commitlint"], True, "airbnb", False])

        config = asyncio.run(prompt_code_style_config(console=_quiet()))

        assert config["preset"] == "airbnb"
        assert config["biome"]["formatter"]["trailingCommas"] == "all"
        assert config["commitlint"]["husky"] is False

    def test_commitlint_only_skips_preset(self, script):
        answers, asked = script
        answers.extend([True, ["commitlint"], True, True])

        config = asyncio.run(prompt_code_style_config(console=_quiet()))

        assert "Style preset:" not in asked
        assert config["preset"] == "standard"

    def test_custom_style(self, script):
        answers, _ = script
        answers.extend([True, ["prettier"], True, "custom", "tab", "4", "120", False, True])

        config = asyncio.run(prompt_code_style_config(console=_quiet()))

        assert config["preset"] == "custom"
        assert config["prettier"]["useTabs"] is True
        assert config["prettier"]["tabWidth"] == 4
        assert config["prettier"]["printWidth"] == 120
        assert config["prettier"]["singleQuote"] is False

    def test_number_validation(self):
        validate = code_style._int_between(1, 8)
        assert validate("4") is True
        assert validate("9") == "Enter a number between 1 and 8"
        assert validate("x") == "Enter a number between 1 and 8"
