"""Step definitions for the ``init`` wizard.

Each step wraps a group of prompts and adds wizard behavior: defaults
from the previous pass, a way back to the previous step, and
navigation results for the engine.

The wizard expects this initial context:

    project_root  directory being configured (str)
    detection     ProjectDetection for that directory
    registry      ModuleRegistry offered in module selection
    bundles       BundleDefinition list offered in module selection
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Any

from rich.console import Console

from .bundles import empty_selection, format_bundle_for_display, resolve_bundles
from .code_style import prompt_code_style_config
from .detector import ProjectDetection
from .engine import WizardConfig, WizardStepConfig
from .exclusivity import validate_no_conflicts
from .navigator import BACK_OPTION_VALUE, create_back_option, inject_back_option
from .permissions import PermissionsConfig, prompt_permissions_config
from .prompts import checkbox, confirm, select, text
from .registry import MODULE_CATEGORIES, ModuleRegistry, all_modules
from .selection import select_items_from_category
from .step import Context, StepExecutionResult, WizardStepDefinition
from .types import NavigationDirection, StepMetadata, WizardChoice

INIT_WIZARD_ID = "init-wizard"

LANGUAGES = ("typescript", "javascript", "python")
PACKAGE_MANAGERS = ("npm", "pnpm", "yarn", "bun", "pip", "uv", "poetry")

HOOKS = (
    ("notification", "Desktop notification when Claude finishes a task"),
    ("sound", "Play a sound when Claude needs input"),
    ("lint-on-edit", "Run the linter after every file edit"),
)

CI_WORKFLOWS = (
    ("lint", "Lint and format check"),
    ("test", "Run the test suite"),
    ("build", "Build the project"),
)


@dataclass(frozen=True)
class McpServer:
    """An MCP server that can be enabled for the project."""

    id: str
    name: str
    description: str
    package: str
    category: str
    env_var: str | None = None


MCP_SERVERS = (
    McpServer(
        "context7",
        "Context7",
        "Documentation lookup for libraries and frameworks",
        "@anthropic/context7-mcp",
        "documentation",
    ),
    McpServer(
        "github",
        "GitHub",
        "GitHub API integration (issues, PRs, repos)",
        "@modelcontextprotocol/server-github",
        "version-control",
        env_var="GITHUB_TOKEN",
    ),
    McpServer(
        "postgres",
        "PostgreSQL",
        "Direct PostgreSQL database access",
        "@modelcontextprotocol/server-postgres",
        "database",
        env_var="DATABASE_URL",
    ),
    McpServer(
        "neon",
        "Neon",
        "Neon serverless PostgreSQL",
        "@neondatabase/mcp-server-neon",
        "database",
        env_var="NEON_API_KEY",
    ),
    McpServer(
        "vercel",
        "Vercel",
        "Vercel deployment and project management",
        "@vercel/mcp",
        "deployment",
        env_var="VERCEL_TOKEN",
    ),
    McpServer(
        "docker",
        "Docker",
        "Docker container management",
        "@anthropic/docker-mcp",
        "infrastructure",
    ),
    McpServer(
        "linear",
        "Linear",
        "Linear project management integration",
        "@anthropic/linear-mcp",
        "project-mgmt",
        env_var="LINEAR_API_KEY",
    ),
    McpServer(
        "sentry",
        "Sentry",
        "Error monitoring and tracking",
        "@sentry/mcp-server",
        "monitoring",
        env_var="SENTRY_AUTH_TOKEN",
    ),
)


def get_mcp_server(server_id: str) -> McpServer | None:
    return next((s for s in MCP_SERVERS if s.id == server_id), None)


def _result(value: Any, navigation: NavigationDirection = NavigationDirection.NEXT):
    return StepExecutionResult(value=value, navigation=navigation, was_modified=True)


def _detection(context: Context) -> ProjectDetection:
    return context.get("detection") or ProjectDetection()


async def prompt_back_option(step_index: int, message: str) -> bool:
    """Back/continue gate for steps whose prompts cannot carry a back choice.

    Returns True if the user wants to go back. The first step has no gate.
    """
    if step_index == 0:
        return False

    answer = await select(
        message,
        choices=[
            create_back_option(),
            WizardChoice(
                name="Continue with this step",
                value="continue",
                description="Proceed to configure this section",
            ),
        ],
        default="continue",
    )
    return answer == BACK_OPTION_VALUE


# Step: project information


def _project_info_defaults(context: Context) -> dict:
    return {
        "name": Path(context.get("project_root") or ".").resolve().name,
        "description": "",
    }


def _validate_project_info(value: Any, context: Context) -> bool | str:
    if not isinstance(value, dict) or not str(value.get("name", "")).strip():
        return "Project name is required"
    return True


def create_project_info_step(index: int = 0) -> WizardStepDefinition:
    async def execute(context: Context, defaults: Any) -> StepExecutionResult:
        defaults = defaults or {}
        name = await text("Project name:", default=defaults.get("name", ""))
        description = await text("Description:", default=defaults.get("description", ""))
        value = {"name": name.strip(), "description": description.strip()}

        if not await confirm(f"Use '{value['name']}' as the project name?", default=True):
            # Back on the first step stays here and prompts again
            return _result(value, NavigationDirection.BACK)
        return _result(value)

    return WizardStepDefinition(
        metadata=StepMetadata(
            id="projectInfo",
            name="Project Information",
            description="Basic project identification and metadata",
            index=index,
        ),
        compute_defaults=_project_info_defaults,
        execute=execute,
        validate=_validate_project_info,
    )


# Step: preferences


def _preferences_defaults(context: Context) -> dict:
    detection = _detection(context)
    return {
        "language": detection.language or "typescript",
        "package_manager": detection.package_manager or "npm",
    }


def create_preferences_step(index: int = 1) -> WizardStepDefinition:
    async def execute(context: Context, defaults: Any) -> StepExecutionResult:
        if await prompt_back_option(index, "Configure preferences or go back?"):
            return _result(defaults, NavigationDirection.BACK)

        language = await select(
            "Primary language:",
            choices=[WizardChoice(name=lang.capitalize(), value=lang) for lang in LANGUAGES],
            default=defaults.get("language"),
        )
        package_manager = await select(
            "Package manager:",
            choices=[WizardChoice(name=pm, value=pm) for pm in PACKAGE_MANAGERS],
            default=defaults.get("package_manager"),
        )
        return _result({"language": language, "package_manager": package_manager})

    return WizardStepDefinition(
        metadata=StepMetadata(
            id="preferences",
            name="Preferences",
            description="Language and package manager settings",
            index=index,
        ),
        compute_defaults=_preferences_defaults,
        execute=execute,
    )


# Step: bundle selection

BUNDLE_MODES = (
    ("bundles", "Bundles", "Pick pre-configured groups of modules"),
    ("individual", "Individual modules", "Pick modules category by category"),
    ("both", "Bundles, then adjust", "Start from bundles and refine each category"),
)


def _with_core(registry: ModuleRegistry, selected: dict[str, list[str]]) -> dict[str, list[str]]:
    """Core modules first, then the selection, per category."""
    modules = {}
    for category in MODULE_CATEGORIES:
        chosen = selected.get(category, [])
        core = [m.id for m in registry.get(category, []) if m.is_core and m.id not in chosen]
        modules[category] = core + list(chosen)
    return modules


def _bundle_selection_defaults(context: Context) -> dict:
    bundles = context.get("bundles") or []
    known = {b.id for b in bundles}
    return {
        "mode": "bundles" if bundles else "individual",
        "bundles": [b for b in _detection(context).suggested_bundles if b in known],
        "additional_modules": empty_selection(),
        "modules": _with_core(context.get("registry") or {}, {}),
    }


def _validate_bundle_selection(value: Any, context: Context) -> bool | str:
    registry = context.get("registry") or {}
    selected = [m for ids in (value or {}).get("modules", {}).values() for m in ids]
    conflicts = validate_no_conflicts(selected, all_modules(registry))
    if conflicts:
        pairs = ", ".join(f"{c.selected} / {c.conflicts_with}" for c in conflicts)
        return f"Mutually exclusive modules selected: {pairs}"
    return True


async def _select_per_category(
    registry: ModuleRegistry, preselected: dict[str, list[str]]
) -> dict[str, list[str]]:
    selected: dict[str, list[str]] = {}
    for category in MODULE_CATEGORIES:
        items = registry.get(category, [])
        if not items:
            selected[category] = []
            continue
        result = await select_items_from_category(
            category, items, preselected=preselected.get(category, [])
        )
        selected[category] = result.selected_items
    return selected


def create_bundle_selection_step(index: int = 2) -> WizardStepDefinition:
    async def execute(context: Context, defaults: Any) -> StepExecutionResult:
        if await prompt_back_option(index, "Select modules or go back?"):
            return _result(defaults, NavigationDirection.BACK)

        console = Console()
        registry = context.get("registry") or {}
        bundles = context.get("bundles") or []

        mode = "individual"
        if bundles:
            suggested = _detection(context).suggested_bundles
            if suggested:
                console.print(f"[dim]Suggested for this project: {', '.join(suggested)}[/]")
            mode = await select(
                "How would you like to choose modules?",
                choices=[
                    WizardChoice(name=name, value=mode_id, description=description)
                    for mode_id, name, description in BUNDLE_MODES
                ],
                default=defaults.get("mode") or "bundles",
            )

        chosen: list[str] = []
        if mode != "individual":
            previous = set(defaults.get("bundles") or [])
            chosen = await checkbox(
                "Bundles:",
                choices=[
                    WizardChoice(
                        name=format_bundle_for_display(bundle),
                        value=bundle.id,
                        description=bundle.description,
                        checked=bundle.id in previous,
                    )
                    for bundle in bundles
                ],
            )
        from_bundles = resolve_bundles(chosen, bundles)

        per_category = mode != "bundles"
        if not per_category:
            ids = [m for category_ids in from_bundles.values() for m in category_ids]
            if validate_no_conflicts(ids, all_modules(registry)):
                console.print(
                    "[yellow]⚠ The selected bundles include mutually exclusive modules. "
                    "Choose per category.[/]"
                )
                per_category = True

        if per_category:
            preselected = (defaults.get("modules") or {}) if mode == "individual" else from_bundles
            selected = await _select_per_category(registry, preselected)
            additional = {
                category: [m for m in selected[category] if m not in from_bundles[category]]
                for category in MODULE_CATEGORIES
            }
        else:
            selected = from_bundles
            additional = empty_selection()

        return _result(
            {
                "mode": mode,
                "bundles": chosen,
                "additional_modules": additional,
                "modules": _with_core(registry, selected),
            }
        )

    return WizardStepDefinition(
        metadata=StepMetadata(
            id="bundleSelection",
            name="Module Bundles",
            description="Select bundles and individual modules to install",
            index=index,
        ),
        compute_defaults=_bundle_selection_defaults,
        execute=execute,
        validate=_validate_bundle_selection,
    )


# Step: hooks


def _hook_defaults(context: Context) -> dict:
    chosen = (context.get("bundleSelection") or {}).get("bundles") or []
    if any("testing" in bundle_id for bundle_id in chosen):
        return {"enabled": True, "hooks": ["lint-on-edit"]}
    return {"enabled": False, "hooks": []}


def create_hook_config_step(index: int = 3) -> WizardStepDefinition:
    async def execute(context: Context, defaults: Any) -> StepExecutionResult:
        enabled = set((defaults or {}).get("hooks", []))
        choices = [
            WizardChoice(
                name=hook_id,
                value=hook_id,
                description=description,
                checked=hook_id in enabled,
            )
            for hook_id, description in HOOKS
        ]
        answer = await checkbox("Hooks to enable:", choices=inject_back_option(choices, index))

        if BACK_OPTION_VALUE in answer:
            return _result(defaults, NavigationDirection.BACK)
        return _result({"enabled": bool(answer), "hooks": answer})

    return WizardStepDefinition(
        metadata=StepMetadata(
            id="hookConfig",
            name="Notification Hooks",
            description="Configure notification and sound hooks",
            index=index,
            required=False,
        ),
        compute_defaults=_hook_defaults,
        execute=execute,
    )


# Step: MCP servers


def _mcp_defaults(context: Context) -> dict:
    return {"servers": ["context7"], "env_vars": []}


def create_mcp_config_step(index: int = 4) -> WizardStepDefinition:
    async def execute(context: Context, defaults: Any) -> StepExecutionResult:
        enabled = set((defaults or {}).get("servers", []))
        choices = [
            WizardChoice(
                name=server.name,
                value=server.id,
                description=server.description,
                checked=server.id in enabled,
            )
            for server in MCP_SERVERS
        ]
        answer = await checkbox("MCP servers:", choices=inject_back_option(choices, index))

        if BACK_OPTION_VALUE in answer:
            return _result(defaults, NavigationDirection.BACK)

        env_vars = sorted(
            {s.env_var for s in map(get_mcp_server, answer) if s is not None and s.env_var}
        )
        return _result({"servers": answer, "env_vars": env_vars})

    return WizardStepDefinition(
        metadata=StepMetadata(
            id="mcpConfig",
            name="MCP Servers",
            description="Configure Model Context Protocol servers",
            index=index,
            required=False,
        ),
        compute_defaults=_mcp_defaults,
        execute=execute,
    )


# Step: permissions


def create_permissions_step(index: int = 5) -> WizardStepDefinition:
    async def execute(context: Context, defaults: Any) -> StepExecutionResult:
        if await prompt_back_option(index, "Configure permissions or go back?"):
            return _result(defaults, NavigationDirection.BACK)

        config = await prompt_permissions_config(PermissionsConfig.from_dict(defaults))
        return _result(config.to_dict())

    return WizardStepDefinition(
        metadata=StepMetadata(
            id="permissionsConfig",
            name="Permissions",
            description="Configure file, git, and bash permissions",
            index=index,
        ),
        compute_defaults=lambda context: PermissionsConfig().to_dict(),
        execute=execute,
    )


# Step: code style


def create_code_style_step(index: int = 6) -> WizardStepDefinition:
    async def execute(context: Context, defaults: Any) -> StepExecutionResult:
        if await prompt_back_option(index, "Configure code style or go back?"):
            return _result(defaults, NavigationDirection.BACK)
        return _result(await prompt_code_style_config(defaults))

    return WizardStepDefinition(
        metadata=StepMetadata(
            id="codeStyleConfig",
            name="Code Style",
            description="Configure EditorConfig, Biome, Prettier, Commitlint",
            index=index,
            required=False,
        ),
        compute_defaults=lambda context: None,
        execute=execute,
    )


# Step: CI/CD


def _cicd_defaults(context: Context) -> dict:
    # Without a git checkout there is nothing for CI to run on yet
    return {"enabled": _detection(context).has_git, "workflows": ["lint", "test"]}


def create_cicd_step(index: int = 7) -> WizardStepDefinition:
    async def execute(context: Context, defaults: Any) -> StepExecutionResult:
        defaults = defaults or {}
        choices = [
            WizardChoice(name="GitHub Actions", value="github-actions"),
            WizardChoice(name="No CI/CD", value="none"),
        ]
        provider = await select(
            "CI/CD provider:",
            choices=inject_back_option(choices, index),
            default="github-actions" if defaults.get("enabled") else "none",
        )
        if provider == BACK_OPTION_VALUE:
            return _result(defaults, NavigationDirection.BACK)
        if provider == "none":
            return _result({"enabled": False, "workflows": []})

        selected = set(defaults.get("workflows", []))
        workflows = await checkbox(
            "Workflows:",
            choices=[
                WizardChoice(name=wf, value=wf, description=description, checked=wf in selected)
                for wf, description in CI_WORKFLOWS
            ],
        )
        return _result({"enabled": True, "workflows": workflows})

    return WizardStepDefinition(
        metadata=StepMetadata(
            id="cicdConfig",
            name="CI/CD",
            description="Configure GitHub Actions workflows",
            index=index,
            required=False,
        ),
        compute_defaults=_cicd_defaults,
        execute=execute,
    )


# Step: review


def _show_review(context: Context, console: Console) -> None:
    info = context.get("projectInfo") or {}
    prefs = context.get("preferences") or {}
    selection = context.get("bundleSelection") or {}
    modules = selection.get("modules") or {}
    hooks = context.get("hookConfig") or {}
    mcp = context.get("mcpConfig") or {}
    permissions = context.get("permissionsConfig") or {}
    code_style = context.get("codeStyleConfig") or {}
    cicd = context.get("cicdConfig") or {}

    console.print()
    console.print("[bold]Configuration summary[/]")
    console.print(f"  Project:   {info.get('name', '')}")
    console.print(
        f"  Language:  {prefs.get('language', '-')} ({prefs.get('package_manager', '-')})"
    )
    console.print(f"  Bundles:   {', '.join(selection.get('bundles') or []) or '-'}")
    for category in MODULE_CATEGORIES:
        selected = modules.get(category) or []
        console.print(f"  {category.capitalize():<10} {', '.join(selected) or '-'}")
    console.print(f"  Hooks:     {', '.join(hooks.get('hooks', [])) or '-'}")
    console.print(f"  MCP:       {', '.join(mcp.get('servers', [])) or '-'}")
    console.print(f"  Perms:     {permissions.get('preset', '-')}")
    console.print(f"  Style:     {', '.join(code_style.get('tools') or []) or '-'}")
    console.print(f"  CI/CD:     {', '.join(cicd.get('workflows') or []) or 'disabled'}")
    if mcp.get("env_vars"):
        console.print(f"  [yellow]Set before use:[/] {', '.join(mcp['env_vars'])}")


def create_review_step(index: int = 8) -> WizardStepDefinition:
    async def execute(context: Context, defaults: Any) -> StepExecutionResult:
        _show_review(context, Console())
        if await confirm("Write this configuration?", default=True):
            return _result(True)
        return _result(defaults, NavigationDirection.BACK)

    return WizardStepDefinition(
        metadata=StepMetadata(
            id="review",
            name="Review",
            description="Confirm the collected configuration",
            index=index,
        ),
        compute_defaults=lambda context: None,
        execute=execute,
    )


STEP_FACTORIES = (
    ("projectInfo", create_project_info_step),
    ("preferences", create_preferences_step),
    ("bundleSelection", create_bundle_selection_step),
    ("hookConfig", create_hook_config_step),
    ("mcpConfig", create_mcp_config_step),
    ("permissionsConfig", create_permissions_step),
    ("codeStyleConfig", create_code_style_step),
    ("cicdConfig", create_cicd_step),
    ("review", create_review_step),
)


def create_init_wizard_config(allow_skip: bool = True, show_progress: bool = True) -> WizardConfig:
    """Assemble the init wizard from its step factories."""
    return WizardConfig(
        id=INIT_WIZARD_ID,
        title="Claude Code Configuration",
        steps=[
            WizardStepConfig(id=step_id, definition=factory(index))
            for index, (step_id, factory) in enumerate(STEP_FACTORIES)
        ],
        allow_skip=allow_skip,
        show_progress=show_progress,
    )
