"""Code style tool selection: EditorConfig, Commitlint, Biome and Prettier.

Biome and Prettier both format code, so picking both asks the user to
keep one unless they explicitly want both. Formatting settings come
from a shared style preset and are rendered per tool.
"""

from dataclasses import dataclass, replace
from typing import Any

from rich.console import Console

from .prompts import checkbox, confirm, select, text
from .types import WizardChoice

# (id, name, description, checked by default)
CODE_STYLE_TOOLS = (
    ("editorconfig", "EditorConfig", "Consistent coding styles across editors", True),
    ("commitlint", "Commitlint", "Lint commit messages (conventional commits)", True),
    ("biome", "Biome", "Fast linter and formatter", False),
    ("prettier", "Prettier", "Code formatter (use if not using Biome)", False),
)

FORMATTERS = ("biome", "prettier")

DEFAULT_COMMIT_TYPES = (
    "feat",
    "fix",
    "docs",
    "style",
    "refactor",
    "perf",
    "test",
    "build",
    "ci",
    "chore",
    "revert",
)

BIOME_IGNORE_PATTERNS = ("node_modules", "dist", "build", ".next", ".nuxt", "coverage")


@dataclass(frozen=True)
class StylePreset:
    """Formatting settings shared by EditorConfig, Biome and Prettier."""

    name: str
    description: str
    indent_style: str = "space"
    indent_size: int = 2
    line_width: int = 100
    single_quote: bool = True
    semicolons: bool = True
    trailing_commas: str = "es5"
    end_of_line: str = "lf"


STYLE_PRESETS = {
    "standard": StylePreset("Standard", "2 spaces, single quotes, semicolons, LF line endings"),
    "airbnb": StylePreset(
        "Airbnb", "2 spaces, single quotes, semicolons, trailing commas", trailing_commas="all"
    ),
    "google": StylePreset(
        "Google", "2 spaces, single quotes, semicolons, 80 char lines", line_width=80
    ),
    "minimal": StylePreset(
        "Minimal", "2 spaces, double quotes, no semicolons", single_quote=False, semicolons=False
    ),
}


def editorconfig_options(style: StylePreset) -> dict[str, Any]:
    return {
        "indent_style": style.indent_style,
        "indent_size": style.indent_size,
        "end_of_line": style.end_of_line,
        "insert_final_newline": True,
        "trim_trailing_whitespace": True,
        "charset": "utf-8",
        "max_line_length": style.line_width,
    }


def biome_options(style: StylePreset) -> dict[str, Any]:
    return {
        "formatter": {
            "indentStyle": style.indent_style,
            "indentWidth": style.indent_size,
            "lineWidth": style.line_width,
            "quoteStyle": "single" if style.single_quote else "double",
            "semicolons": "always" if style.semicolons else "asNeeded",
            "trailingCommas": style.trailing_commas,
        },
        "linter": {"recommended": True},
        "organizeImports": True,
        "ignore": list(BIOME_IGNORE_PATTERNS),
    }


def prettier_options(style: StylePreset) -> dict[str, Any]:
    return {
        "printWidth": style.line_width,
        "tabWidth": style.indent_size,
        "useTabs": style.indent_style == "tab",
        "semi": style.semicolons,
        "singleQuote": style.single_quote,
        "trailingComma": style.trailing_commas,
        "bracketSpacing": True,
        "arrowParens": "always",
        "endOfLine": style.end_of_line,
    }


def commitlint_options(husky: bool = True) -> dict[str, Any]:
    return {
        "extends": ["@commitlint/config-conventional"],
        "types": list(DEFAULT_COMMIT_TYPES),
        "scopes": [],
        "header_max_length": 100,
        "husky": husky,
    }


def disabled_code_style() -> dict[str, Any]:
    return {"enabled": False, "tools": [], "preset": None}


def build_code_style_config(
    tools: list[str], style: StylePreset, preset_id: str, husky: bool = True
) -> dict[str, Any]:
    """Config for the selected tools, rendered from one style preset."""
    if not tools:
        return disabled_code_style()

    renderers = {
        "editorconfig": lambda: editorconfig_options(style),
        "biome": lambda: biome_options(style),
        "prettier": lambda: prettier_options(style),
        "commitlint": lambda: commitlint_options(husky),
    }
    config: dict[str, Any] = {"enabled": True, "tools": list(tools), "preset": preset_id}
    for tool in tools:
        config[tool] = renderers[tool]()
    return config


async def resolve_formatter_conflict(tools: list[str], console: Console | None = None) -> list[str]:
    """When both Biome and Prettier are selected, ask whether to keep both."""
    if not all(f in tools for f in FORMATTERS):
        return tools

    (console or Console()).print(
        "[yellow]Both Biome and Prettier selected. Biome can replace Prettier.[/]"
    )
    if await confirm("Keep both? (Prettier may conflict with Biome)", default=False):
        return tools

    preferred = await select(
        "Which formatter would you prefer?",
        choices=[
            WizardChoice(name="Biome (faster, all-in-one)", value="biome"),
            WizardChoice(name="Prettier (more plugins)", value="prettier"),
        ],
        default="biome",
    )
    dropped = "prettier" if preferred == "biome" else "biome"
    return [tool for tool in tools if tool != dropped]


def _int_between(low: int, high: int):
    def validate(answer: str) -> bool | str:
        if answer.isdigit() and low <= int(answer) <= high:
            return True
        return f"Enter a number between {low} and {high}"

    return validate


async def prompt_custom_style(base: StylePreset) -> StylePreset:
    indent_style = await select(
        "Indent style:",
        choices=[
            WizardChoice(name="Spaces", value="space"),
            WizardChoice(name="Tabs", value="tab"),
        ],
        default=base.indent_style,
    )
    indent_size = await text("Indent size:", str(base.indent_size), _int_between(1, 8))
    line_width = await text("Line width:", str(base.line_width), _int_between(40, 200))
    single_quote = await confirm("Use single quotes?", default=base.single_quote)
    semicolons = await confirm("Use semicolons?", default=base.semicolons)
    return replace(
        base,
        name="Custom",
        description="Configured manually",
        indent_style=indent_style,
        indent_size=int(indent_size),
        line_width=int(line_width),
        single_quote=single_quote,
        semicolons=semicolons,
    )


async def prompt_code_style_config(
    defaults: dict[str, Any] | None = None, console: Console | None = None
) -> dict[str, Any]:
    """Ask which code style tools to configure and with which settings.

    Without customization every tool gets the standard preset and
    Commitlint uses the conventional commit types with Husky.
    """
    defaults = defaults or {}
    if not await confirm("Install code style configuration files?", default=True):
        return disabled_code_style()

    previous = set(defaults.get("tools") or [])
    tools = await checkbox(
        "Tools to configure:",
        choices=[
            WizardChoice(
                name=name,
                value=tool_id,
                description=description,
                checked=tool_id in previous if previous else checked,
            )
            for tool_id, name, description, checked in CODE_STYLE_TOOLS
        ],
    )
    tools = await resolve_formatter_conflict(tools, console)
    if not tools:
        return disabled_code_style()

    if not await confirm("Customize code style settings? (No = standard defaults)", default=False):
        return build_code_style_config(tools, STYLE_PRESETS["standard"], "standard")

    preset_id = "standard"
    style = STYLE_PRESETS[preset_id]
    if any(tool != "commitlint" for tool in tools):
        preset_id = await select(
            "Style preset:",
            choices=[
                *(
                    WizardChoice(name=p.name, value=key, description=p.description)
                    for key, p in STYLE_PRESETS.items()
                ),
                WizardChoice(name="Custom", value="custom", description="Configure each option"),
            ],
            default=defaults.get("preset") or "standard",
        )
        if preset_id == "custom":
            style = await prompt_custom_style(STYLE_PRESETS["standard"])
        else:
            style = STYLE_PRESETS[preset_id]

    husky = True
    if "commitlint" in tools:
        husky = await confirm("Enable Husky integration (git hooks)?", default=True)

    return build_code_style_config(tools, style, preset_id, husky)
