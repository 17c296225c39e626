"""Tests for scaffold_wizard.init_steps module."""

import asyncio
from pathlib import Path

import pytest
from rich.console import Console

from scaffold_wizard import code_style, engine, init_steps, permissions
from scaffold_wizard.bundles import load_bundles
from scaffold_wizard.detector import ProjectDetection
from scaffold_wizard.engine import create_wizard_state, run_wizard
from scaffold_wizard.init_steps import (
    MCP_SERVERS,
    create_bundle_selection_step,
    create_cicd_step,
    create_code_style_step,
    create_hook_config_step,
    create_init_wizard_config,
    create_mcp_config_step,
    create_permissions_step,
    create_project_info_step,
    get_mcp_server,
    prompt_back_option,
)
from scaffold_wizard.navigator import BACK_OPTION_VALUE
from scaffold_wizard.registry import load_registry
from scaffold_wizard.selection import CategorySelectionResult
from scaffold_wizard.step import validate_step
from scaffold_wizard.types import NavigationDirection, RevisitAction


@pytest.fixture
def script(monkeypatch):
    """Answer every prompt of the init steps from one ordered queue."""
    answers: list = []
    asked: list[tuple[str, str]] = []

    def make(kind):
        async def prompt(message, choices=None, default=None, **kwargs):
            asked.append((kind, message))
            answer = answers.pop(0)
            if callable(answer):
                return answer(choices, default)
            return answer

        return prompt

    for module in (init_steps, permissions, code_style):
        for kind in ("select", "checkbox", "confirm", "text"):
            monkeypatch.setattr(module, kind, make(kind))

    async def fake_category(category, items, preselected=None):
        asked.append(("category", category))
        return CategorySelectionResult(category, list(preselected or []), [])

    monkeypatch.setattr(init_steps, "select_items_from_category", fake_category)
    return answers, asked


def _context(tmp_path: Path, has_git: bool = True, suggested=None) -> dict:
    return {
        "project_root": str(tmp_path / "my-app"),
        "detection": ProjectDetection(
            detected=True,
            project_type="node",
            package_manager="pnpm",
            language="typescript",
            has_git=has_git,
            suggested_bundles=list(suggested or []),
        ),
        "registry": load_registry(),
        "bundles": load_bundles(),
    }


def _execute(definition, context, defaults=None):
    if defaults is None:
        defaults = definition.compute_defaults(context)
    return asyncio.run(definition.execute(context, defaults))


class TestWizardConfig:
    def test_step_order(self):
        config = create_init_wizard_config()
        assert [s.id for s in config.steps] == [
            "projectInfo",
            "preferences",
            "bundleSelection",
            "hookConfig",
            "mcpConfig",
            "permissionsConfig",
            "codeStyleConfig",
            "cicdConfig",
            "review",
        ]
        assert [s.definition.metadata.index for s in config.steps] == list(range(9))

    def test_config_is_valid(self):
        state = create_wizard_state(create_init_wizard_config(show_progress=False))
        assert state.metadata.total_steps == 9
        assert state.metadata.show_progress is False

    def test_no_step_is_skipped(self):
        config = create_init_wizard_config()
        assert all(s.definition.skip_condition is None for s in config.steps)


class TestBackGate:
    def test_first_step_has_no_gate(self, script):
        _, asked = script
        assert asyncio.run(prompt_back_option(0, "Go back?")) is False
        assert asked == []

    def test_back_selected(self, script):
        answers, _ = script
        answers.append(BACK_OPTION_VALUE)
        assert asyncio.run(prompt_back_option(1, "Go back?")) is True

    def test_continue_selected(self, script):
        answers, _ = script
        answers.append("continue")
        assert asyncio.run(prompt_back_option(1, "Go back?")) is False


class TestProjectInfoStep:
    def test_defaults_from_directory_name(self, tmp_path):
        defaults = create_project_info_step().compute_defaults(_context(tmp_path))
        assert defaults == {"name": "my-app", "description": ""}

    def test_collects_name_and_description(self, script, tmp_path):
        answers, _ = script
        answers.extend([" demo ", "A demo app", True])

        result = _execute(create_project_info_step(), _context(tmp_path))
        assert result.value == {"name": "demo", "description": "A demo app"}
        assert result.navigation == NavigationDirection.NEXT

    def test_rejected_confirmation_goes_back(self, script, tmp_path):
        answers, _ = script
        answers.extend(["demo", "", False])
        result = _execute(create_project_info_step(), _context(tmp_path))
        assert result.navigation == NavigationDirection.BACK

    def test_name_required(self):
        step = create_project_info_step()
        assert validate_step(step, {"name": "  "}).error == "Project name is required"
        assert validate_step(step, {"name": "demo"}).valid


class TestBundleSelectionStep:
    def test_defaults(self, tmp_path):
        context = _context(tmp_path, suggested=["hono-drizzle-stack", "unknown-bundle"])
        defaults = create_bundle_selection_step().compute_defaults(context)
        assert defaults["mode"] == "bundles"
        assert defaults["bundles"] == ["hono-drizzle-stack"]
        assert defaults["modules"]["agents"] == ["code-reviewer"]
        assert defaults["modules"]["skills"] == []

    def test_individual_mode_without_bundles(self, tmp_path):
        context = {**_context(tmp_path), "bundles": []}
        defaults = create_bundle_selection_step().compute_defaults(context)
        assert defaults["mode"] == "individual"

    def test_bundles_mode(self, script, tmp_path):
        answers, asked = script
        answers.extend(["continue", "bundles", ["hono-drizzle-stack"]])

        result = _execute(create_bundle_selection_step(), _context(tmp_path))

        assert not any(kind == "category" for kind, _ in asked)
        assert result.value["mode"] == "bundles"
        assert result.value["bundles"] == ["hono-drizzle-stack"]
        assert result.value["modules"]["agents"] == [
            "code-reviewer",
            "api-engineer",
            "database-engineer",
        ]
        assert result.value["modules"]["skills"] == ["hono-api", "drizzle-patterns"]
        assert result.value["additional_modules"]["skills"] == []

    def test_bundle_checkbox_uses_previous_bundles(self, script, tmp_path):
        answers, _ = script
        seen = {}

        def answer(choices, default):
            seen["checked"] = [c.value for c in choices if c.checked]
            return ["testing-complete"]

        answers.extend(["continue", "bundles", answer])
        context = _context(tmp_path, suggested=["quality-complete"])
        _execute(create_bundle_selection_step(), context)

        assert seen["checked"] == ["quality-complete"]

    def test_conflicting_bundles_fall_back_to_categories(self, script, tmp_path):
        answers, asked = script
        answers.extend(["continue", "bundles", ["hono-drizzle-stack", "prisma-database"]])

        result = _execute(create_bundle_selection_step(), _context(tmp_path))

        assert [message for kind, message in asked if kind == "category"] == [
            "agents",
            "skills",
            "commands",
            "docs",
        ]
        # The fake category prompt keeps the bundle preselection as is
        assert "prisma-patterns" in result.value["modules"]["skills"]
        assert "drizzle-patterns" in result.value["modules"]["skills"]

    def test_individual_mode_adds_modules(self, script, monkeypatch, tmp_path):
        answers, asked = script

        async def fake_category(category, items, preselected=None):
            asked.append(("category", category))
            extra = ["prisma-patterns"] if category == "skills" else []
            return CategorySelectionResult(category, list(preselected or []) + extra, [])

        monkeypatch.setattr(init_steps, "select_items_from_category", fake_category)
        answers.extend(["continue", "individual"])

        result = _execute(create_bundle_selection_step(), _context(tmp_path))

        assert not any(message == "Bundles:" for _, message in asked)
        assert result.value["bundles"] == []
        assert result.value["additional_modules"]["skills"] == ["prisma-patterns"]
        assert result.value["modules"]["skills"] == ["prisma-patterns"]

    def test_both_mode_records_additions(self, script, monkeypatch, tmp_path):
        answers, _ = script

        async def fake_category(category, items, preselected=None):
            extra = ["architecture"] if category == "docs" else []
            return CategorySelectionResult(category, list(preselected or []) + extra, [])

        monkeypatch.setattr(init_steps, "select_items_from_category", fake_category)
        answers.extend(["continue", "both", ["testing-complete"]])

        result = _execute(create_bundle_selection_step(), _context(tmp_path))

        assert result.value["modules"]["agents"] == ["code-reviewer", "test-engineer"]
        assert result.value["additional_modules"]["docs"] == ["architecture"]
        assert result.value["additional_modules"]["agents"] == []

    def test_back(self, script, tmp_path):
        answers, asked = script
        answers.append(BACK_OPTION_VALUE)
        result = _execute(create_bundle_selection_step(), _context(tmp_path))
        assert result.navigation == NavigationDirection.BACK
        assert [kind for kind, _ in asked] == ["select"]

    def test_conflicting_modules_are_invalid(self, tmp_path):
        step = create_bundle_selection_step()
        value = {"modules": {"skills": ["hono-api", "express-api"]}}
        validation = validate_step(step, value, _context(tmp_path))
        assert validation.error == "Mutually exclusive modules selected: hono-api / express-api"

    def test_compatible_modules_are_valid(self, tmp_path):
        step = create_bundle_selection_step()
        value = {"modules": {"skills": ["hono-api", "drizzle-patterns"]}}
        assert validate_step(step, value, _context(tmp_path)).valid


class TestCheckboxSteps:
    def test_hook_choices_include_back(self, script, tmp_path):
        answers, _ = script
        seen = {}

        def answer(choices, default):
            seen["values"] = [c.value for c in choices]
            return ["notification"]

        answers.append(answer)
        result = _execute(create_hook_config_step(), _context(tmp_path))

        assert seen["values"][0] == BACK_OPTION_VALUE
        assert result.value == {"enabled": True, "hooks": ["notification"]}

    def test_hook_defaults_follow_testing_bundle(self, tmp_path):
        step = create_hook_config_step()
        context = {**_context(tmp_path), "bundleSelection": {"bundles": ["testing-complete"]}}
        assert step.compute_defaults(context) == {"enabled": True, "hooks": ["lint-on-edit"]}
        assert step.compute_defaults(_context(tmp_path)) == {"enabled": False, "hooks": []}

    def test_hook_back(self, script, tmp_path):
        answers, _ = script
        answers.append([BACK_OPTION_VALUE, "sound"])
        result = _execute(create_hook_config_step(), _context(tmp_path))
        assert result.navigation == NavigationDirection.BACK

    def test_mcp_env_vars(self, script, tmp_path):
        answers, _ = script
        answers.append(["github", "context7", "postgres"])
        result = _execute(create_mcp_config_step(), _context(tmp_path))
        assert result.value == {
            "servers": ["github", "context7", "postgres"],
            "env_vars": ["DATABASE_URL", "GITHUB_TOKEN"],
        }

    def test_mcp_catalog(self):
        assert len({s.id for s in MCP_SERVERS}) == len(MCP_SERVERS)
        assert get_mcp_server("github").env_var == "GITHUB_TOKEN"
        assert get_mcp_server("nope") is None

    def test_cicd_disabled(self, script, tmp_path):
        answers, _ = script
        answers.append("none")
        result = _execute(create_cicd_step(), _context(tmp_path))
        assert result.value == {"enabled": False, "workflows": []}

    def test_cicd_workflows(self, script, tmp_path):
        answers, _ = script
        answers.extend(["github-actions", ["lint", "build"]])
        result = _execute(create_cicd_step(), _context(tmp_path))
        assert result.value == {"enabled": True, "workflows": ["lint", "build"]}

    def test_cicd_defaults_follow_git(self, tmp_path):
        step = create_cicd_step()
        assert step.compute_defaults(_context(tmp_path))["enabled"] is True
        assert step.compute_defaults(_context(tmp_path, has_git=False))["enabled"] is False

    def test_cicd_provider_default_without_git(self, script, tmp_path):
        answers, _ = script
        seen = {}

        def answer(choices, default):
            seen["default"] = default
            return default

        answers.append(answer)
        result = _execute(create_cicd_step(), _context(tmp_path, has_git=False))

        assert seen["default"] == "none"
        assert result.value == {"enabled": False, "workflows": []}


class TestPermissionsStep:
    def test_defaults_are_the_default_preset(self, tmp_path):
        defaults = create_permissions_step().compute_defaults(_context(tmp_path))
        assert defaults["preset"] == "default"
        assert "WebFetch" in defaults["rules"]["allow"]

    def test_preset_chosen(self, script, tmp_path):
        answers, _ = script
        answers.extend(["continue", True, "trust", False])

        result = _execute(create_permissions_step(), _context(tmp_path))

        assert result.value["preset"] == "trust"
        assert result.value["git"]["commit"] is True
        assert "Bash(*)" in result.value["rules"]["allow"]

    def test_previous_preset_is_the_default(self, script, tmp_path):
        answers, _ = script
        seen = {}

        def answer(choices, default):
            seen["default"] = default
            return default

        answers.extend(["continue", True, answer, False])
        previous = {"preset": "restrictive", "files": {"write_code": False}}
        _execute(create_permissions_step(), _context(tmp_path), defaults=previous)

        assert seen["default"] == "restrictive"

    def test_back(self, script, tmp_path):
        answers, asked = script
        answers.append(BACK_OPTION_VALUE)
        result = _execute(create_permissions_step(), _context(tmp_path))
        assert result.navigation == NavigationDirection.BACK
        assert len(asked) == 1


class TestCodeStyleStep:
    def test_declined(self, script, tmp_path):
        answers, _ = script
        answers.extend(["continue", False])
        result = _execute(create_code_style_step(), _context(tmp_path))
        assert result.value == {"enabled": False, "tools": [], "preset": None}

    def test_standard_tools(self, script, tmp_path):
        answers, _ = script
        answers.extend(["continue", True, ["editorconfig", "commitlint"], False])

        result = _execute(create_code_style_step(), _context(tmp_path))

        assert result.value["tools"] == ["editorconfig", "commitlint"]
        assert result.value["preset"] == "standard"
        assert result.value["editorconfig"]["indent_size"] == 2

    def test_back(self, script, tmp_path):
        answers, _ = script
        answers.append(BACK_OPTION_VALUE)
        result = _execute(create_code_style_step(), _context(tmp_path))
        assert result.navigation == NavigationDirection.BACK


class TestInitWizardRun:
    def _run(self, tmp_path, has_git=True):
        config = create_init_wizard_config(show_progress=False)
        return asyncio.run(
            run_wizard(
                config,
                _context(tmp_path, has_git=has_git),
                console=Console(file=None, quiet=True),
            )
        )

    def test_full_run(self, script, tmp_path):
        answers, _ = script
        answers.extend(
            [
                "demo", "", True,                                   # projectInfo
                "continue", "typescript", "pnpm",                   # preferences
                "continue", "bundles", ["quality-complete"],        # bundleSelection
                ["notification"],                                   # hookConfig
                ["context7"],                                       # mcpConfig
                "continue", True, "default", False,                 # permissionsConfig
                "continue", True, ["editorconfig", "commitlint"], False,  # codeStyleConfig
                "github-actions", ["lint", "test"],                 # cicdConfig
                True,                                               # review
            ]
        )  # fmt: skip

        result = self._run(tmp_path)

        assert result.cancelled is False
        assert list(result.values) == [
            "projectInfo",
            "preferences",
            "bundleSelection",
            "hookConfig",
            "mcpConfig",
            "permissionsConfig",
            "codeStyleConfig",
            "cicdConfig",
            "review",
        ]
        assert result.values["preferences"] == {"language": "typescript", "package_manager": "pnpm"}
        assert result.values["bundleSelection"]["modules"]["commands"] == [
            "review-code",
            "quality-check",
        ]
        assert result.values["permissionsConfig"]["preset"] == "default"
        assert result.values["cicdConfig"] == {"enabled": True, "workflows": ["lint", "test"]}
        assert answers == []

    def test_without_git_asks_for_cicd(self, script, tmp_path):
        answers, asked = script
        answers.extend(
            [
                "demo", "", True,
                "continue", "python", "uv",
                "continue", "bundles", [],
                [], [],
                "continue", False,
                "continue", False,
                "none",
                True,
            ]
        )  # fmt: skip

        result = self._run(tmp_path, has_git=False)

        assert result.values["cicdConfig"] == {"enabled": False, "workflows": []}
        assert ("select", "CI/CD provider:") in asked
        assert answers == []

    def test_declined_review_without_git_returns_to_cicd(self, script, tmp_path):
        answers, asked = script
        answers.extend(
            [
                "demo", "", True,
                "continue", "python", "uv",
                "continue", "bundles", [],
                [], [],
                "continue", False,
                "continue", False,
                "none",                          # cicdConfig
                False,                           # review -> back
                "github-actions", ["lint"],      # cicdConfig again
                True,                            # review
            ]
        )  # fmt: skip

        result = self._run(tmp_path, has_git=False)

        assert result.cancelled is False
        assert [message for _, message in asked].count("CI/CD provider:") == 2
        assert [message for _, message in asked].count("Write this configuration?") == 2
        assert result.values["cicdConfig"] == {"enabled": True, "workflows": ["lint"]}
        assert answers == []

    def test_back_from_preferences_and_keep(self, script, monkeypatch, tmp_path):
        answers, _ = script
        kept = []

        async def fake_keep(step_name, console=None):
            kept.append(step_name)
            return RevisitAction.KEEP

        monkeypatch.setattr(engine, "prompt_keep_or_reconfigure", fake_keep)
        answers.extend(
            [
                "demo", "", True,                     # projectInfo
                "continue", "typescript", "npm",      # preferences
                BACK_OPTION_VALUE,                    # bundleSelection -> back
                BACK_OPTION_VALUE,                    # preferences -> back
                "demo2", "", True,                    # projectInfo again
                # preferences was completed before: kept
                "continue", "bundles", [],            # bundleSelection
                [], [],                               # hooks, mcp
                "continue", False,                    # permissions
                "continue", False,                    # code style
                "none",                               # cicd
                True,                                 # review
            ]
        )  # fmt: skip

        result = self._run(tmp_path)

        assert kept == ["Preferences"]
        assert result.values["projectInfo"]["name"] == "demo2"
        assert result.values["preferences"] == {"language": "typescript", "package_manager": "npm"}
        assert answers == []
