"""Claude Code permission presets and rule generation.

Permissions are chosen as a preset (default, trust, restrictive) or
flag by flag, then turned into the ``allow``/``deny`` rule lists Claude
Code reads from its settings. A fixed set of deny rules is always added.
"""

from dataclasses import asdict, dataclass, field, fields, replace
from enum import Enum
from typing import Any

from rich.console import Console

from .prompts import checkbox, confirm, select, text
from .types import WizardChoice


class PermissionPreset(str, Enum):
    DEFAULT = "default"
    TRUST = "trust"
    RESTRICTIVE = "restrictive"
    CUSTOM = "custom"


@dataclass(frozen=True)
class FilePermissions:
    read_all: bool = True
    write_code: bool = True
    write_config: bool = True
    write_markdown: bool = True
    write_other: bool = False
    edit_tool: bool = True


@dataclass(frozen=True)
class GitPermissions:
    read_only: bool = True
    staging: bool = False
    commit: bool = False
    push: bool = False  # only honoured together with commit
    branching: bool = False


@dataclass(frozen=True)
class BashPermissions:
    package_manager: bool = True
    testing: bool = True
    building: bool = True
    docker: bool = False
    arbitrary: bool = False


@dataclass(frozen=True)
class WebPermissions:
    fetch: bool = True
    search: bool = True


@dataclass(frozen=True)
class CustomRules:
    allow: tuple[str, ...] = ()
    deny: tuple[str, ...] = ()


@dataclass(frozen=True)
class PermissionsConfig:
    """Full permissions selection."""

    preset: PermissionPreset = PermissionPreset.DEFAULT
    files: FilePermissions = field(default_factory=FilePermissions)
    git: GitPermissions = field(default_factory=GitPermissions)
    bash: BashPermissions = field(default_factory=BashPermissions)
    web: WebPermissions = field(default_factory=WebPermissions)
    custom: CustomRules = field(default_factory=CustomRules)

    def to_dict(self) -> dict[str, Any]:
        """Plain mapping with the generated rules, as written to the output file."""
        data = asdict(self)
        data["preset"] = self.preset.value
        data["custom"] = {"allow": list(self.custom.allow), "deny": list(self.custom.deny)}
        data["rules"] = {"allow": generate_allow_rules(self), "deny": generate_deny_rules(self)}
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> "PermissionsConfig":
        """Rebuild from ``to_dict`` output; unknown keys are ignored."""
        if not data:
            return cls()

        def section(section_cls, raw):
            names = {f.name for f in fields(section_cls)}
            return section_cls(**{k: bool(v) for k, v in (raw or {}).items() if k in names})

        custom = data.get("custom") or {}
        try:
            preset = PermissionPreset(data.get("preset", "default"))
        except ValueError:
            preset = PermissionPreset.CUSTOM
        return cls(
            preset=preset,
            files=section(FilePermissions, data.get("files")),
            git=section(GitPermissions, data.get("git")),
            bash=section(BashPermissions, data.get("bash")),
            web=section(WebPermissions, data.get("web")),
            custom=CustomRules(
                allow=tuple(custom.get("allow") or ()), deny=tuple(custom.get("deny") or ())
            ),
        )


PERMISSION_PRESETS: dict[PermissionPreset, PermissionsConfig] = {
    PermissionPreset.DEFAULT: PermissionsConfig(),
    PermissionPreset.TRUST: PermissionsConfig(
        preset=PermissionPreset.TRUST,
        files=FilePermissions(write_other=True),
        git=GitPermissions(staging=True, commit=True, branching=True),
        bash=BashPermissions(docker=True, arbitrary=True),
    ),
    PermissionPreset.RESTRICTIVE: PermissionsConfig(
        preset=PermissionPreset.RESTRICTIVE,
        files=FilePermissions(write_code=False, write_config=False, edit_tool=False),
        bash=BashPermissions(package_manager=False, testing=False, building=False),
    ),
}

PRESET_DESCRIPTIONS = {
    PermissionPreset.DEFAULT: (
        "Default",
        "Read all, write code/config/docs, git read-only, package manager and tests",
    ),
    PermissionPreset.TRUST: (
        "Trust",
        "Full file access, git staging/commit/branching, docker, arbitrary bash",
    ),
    PermissionPreset.RESTRICTIVE: (
        "Restrictive",
        "Read only plus markdown writing, no git changes, no bash commands",
    ),
    PermissionPreset.CUSTOM: ("Custom", "Configure each permission individually"),
}

DEFAULT_DENY_RULES = (
    # Generated and vendored directories
    "Write(node_modules/**)",
    "Write(.git/**)",
    "Write(dist/**)",
    "Write(build/**)",
    "Write(.next/**)",
    "Write(.nuxt/**)",
    "Write(.output/**)",
    # System paths
    "Write(/etc/**)",
    "Write(/usr/**)",
    "Write(/bin/**)",
    "Write(/sbin/**)",
    "Write(/var/**)",
    "Write(/tmp/**)",
    # Destructive commands
    "Bash(rm -rf /)",
    "Bash(sudo *)",
    "Bash(chmod 777 *)",
    "Bash(curl * | bash)",
    "Bash(wget * | bash)",
    # Secrets
    "Write(.env)",
    "Write(.env.*)",
    "Write(**/secrets/**)",
    "Write(**/credentials/**)",
    "Read(.env)",
    "Read(.env.*)",
)

_FILE_RULES = {
    "read_all": ("Read(**/*)", "Glob(**/*)", "Grep(**/*)", "LS(**/*)", "TodoRead"),
    "write_code": (
        "Write(**/*.ts)",
        "Write(**/*.tsx)",
        "Write(**/*.js)",
        "Write(**/*.jsx)",
        "Write(**/*.mts)",
        "Write(**/*.mjs)",
        "Write(**/*.py)",
        "Write(**/*.vue)",
        "Write(**/*.svelte)",
    ),
    "write_config": (
        "Write(**/*.json)",
        "Write(**/*.yaml)",
        "Write(**/*.yml)",
        "Write(**/*.toml)",
        "Write(**/.env.example)",
        "Write(**/.gitignore)",
        "Write(**/.npmrc)",
        "Write(**/.nvmrc)",
    ),
    "write_markdown": ("Write(**/*.md)", "Write(**/*.mdx)"),
    "write_other": (
        "Write(**/*.css)",
        "Write(**/*.scss)",
        "Write(**/*.html)",
        "Write(**/*.sql)",
        "Write(**/*.graphql)",
        "Write(**/*.prisma)",
    ),
    "edit_tool": ("Edit(**/*)", "MultiEdit(**/*)", "NotebookEdit(**/*)", "TodoWrite"),
}

_GIT_RULES = {
    "read_only": (
        "Bash(git status*)",
        "Bash(git diff*)",
        "Bash(git log*)",
        "Bash(git show*)",
        "Bash(git branch*)",
    ),
    "staging": ("Bash(git add*)",),
    "commit": ("Bash(git commit*)",),
    "push": ("Bash(git push*)",),
    "branching": (
        "Bash(git checkout*)",
        "Bash(git branch*)",
        "Bash(git merge*)",
        "Bash(git rebase*)",
    ),
}

_BASH_RULES = {
    "package_manager": (
        "Bash(pnpm *)",
        "Bash(npm *)",
        "Bash(yarn *)",
        "Bash(bun *)",
        "Bash(npx *)",
        "Bash(uv *)",
        "Bash(pip *)",
    ),
    "testing": (
        "Bash(vitest*)",
        "Bash(jest*)",
        "Bash(playwright*)",
        "Bash(pytest*)",
        "Bash(npm test*)",
        "Bash(pnpm test*)",
    ),
    "building": (
        "Bash(npm run build*)",
        "Bash(pnpm build*)",
        "Bash(tsc*)",
        "Bash(vite build*)",
        "Bash(next build*)",
    ),
    "docker": ("Bash(docker *)", "Bash(docker-compose *)"),
    "arbitrary": ("Bash(*)",),
}

_WEB_RULES = {"fetch": ("WebFetch",), "search": ("WebSearch",)}

_FLAG_LABELS = {
    "files": {
        "read_all": "Read all files",
        "write_code": "Write code files (*.ts, *.js, *.py, ...)",
        "write_config": "Write config files (*.json, *.yaml, *.toml)",
        "write_markdown": "Write markdown (*.md)",
        "write_other": "Write other files (*.css, *.html, *.sql, ...)",
        "edit_tool": "Edit tool (inline editing)",
    },
    "git": {
        "read_only": "git status / diff / log",
        "staging": "git add",
        "commit": "git commit",
        "push": "git push (requires commit)",
        "branching": "git checkout / merge / rebase",
    },
    "bash": {
        "package_manager": "Package manager commands",
        "testing": "Test commands",
        "building": "Build commands",
        "docker": "Docker commands",
        "arbitrary": "Arbitrary commands (dangerous)",
    },
    "web": {"fetch": "WebFetch", "search": "WebSearch"},
}


def _rules_for(section: Any, table: dict[str, tuple[str, ...]]) -> list[str]:
    return [rule for flag, rules in table.items() if getattr(section, flag) for rule in rules]


def generate_allow_rules(config: PermissionsConfig) -> list[str]:
    """Allow rules for every enabled flag plus custom ones, first occurrence kept."""
    git = config.git if config.git.commit else replace(config.git, push=False)
    rules = [
        *_rules_for(config.files, _FILE_RULES),
        *_rules_for(git, _GIT_RULES),
        *_rules_for(config.bash, _BASH_RULES),
        *_rules_for(config.web, _WEB_RULES),
        *config.custom.allow,
    ]
    return list(dict.fromkeys(rules))


def generate_deny_rules(config: PermissionsConfig) -> list[str]:
    return list(dict.fromkeys([*DEFAULT_DENY_RULES, *config.custom.deny]))


def _split_rules(answer: str) -> tuple[str, ...]:
    return tuple(rule.strip() for rule in answer.split(",") if rule.strip())


async def _prompt_flags(section_name: str, current: Any, title: str) -> Any:
    labels = _FLAG_LABELS[section_name]
    answer = await checkbox(
        f"{title}:",
        choices=[
            WizardChoice(name=label, value=flag, checked=getattr(current, flag))
            for flag, label in labels.items()
        ],
    )
    return type(current)(**{flag: flag in answer for flag in labels})


async def prompt_custom_permissions(
    defaults: PermissionsConfig, console: Console | None = None
) -> PermissionsConfig:
    """Ask for every permission group and custom rules, starting from ``defaults``."""
    console = console or Console()
    files = await _prompt_flags("files", defaults.files, "File operations")
    git = await _prompt_flags("git", defaults.git, "Git operations")
    if git.push and not git.commit:
        console.print("[yellow]git push needs git commit; push disabled[/]")
        git = replace(git, push=False)
    bash = await _prompt_flags("bash", defaults.bash, "Terminal commands")
    web = await _prompt_flags("web", defaults.web, "Web access")

    custom = defaults.custom
    if await confirm("Add custom allow/deny rules?", default=bool(custom.allow or custom.deny)):
        allow = await text(
            'Allow rules, comma-separated (e.g. "Bash(make *)"):',
            default=", ".join(custom.allow),
        )
        deny = await text(
            'Deny rules, comma-separated (e.g. "Write(secrets/*)"):',
            default=", ".join(custom.deny),
        )
        custom = CustomRules(allow=_split_rules(allow), deny=_split_rules(deny))

    return PermissionsConfig(
        preset=PermissionPreset.CUSTOM, files=files, git=git, bash=bash, web=web, custom=custom
    )


async def prompt_permissions_config(
    defaults: PermissionsConfig | None = None, console: Console | None = None
) -> PermissionsConfig:
    """Choose a preset, optionally refine it flag by flag.

    Declining to configure keeps the default preset.
    """
    defaults = defaults or PermissionsConfig()
    if not await confirm("Configure Claude Code permissions?", default=True):
        return PERMISSION_PRESETS[PermissionPreset.DEFAULT]

    preset = PermissionPreset(
        await select(
            "Permission preset:",
            choices=[
                WizardChoice(name=name, value=preset.value, description=description)
                for preset, (name, description) in PRESET_DESCRIPTIONS.items()
            ],
            default=defaults.preset.value,
        )
    )

    if preset == PermissionPreset.CUSTOM:
        return await prompt_custom_permissions(defaults, console)

    chosen = PERMISSION_PRESETS[preset]
    if await confirm("Customize these permissions?", default=False):
        return await prompt_custom_permissions(chosen, console)
    return chosen
