"""Module registry.

Loads agent/skill/command/doc module definitions from a YAML (or JSON)
registry file. A registry looks like::

    agents:
      - id: database-engineer
        name: Database Engineer
        description: Schema design and migrations
        file: engineering/database-engineer.md
    skills:
      - id: drizzle-patterns
        alternativeTo: [prisma-patterns]
"""

from dataclasses import dataclass, field
from pathlib import Path

import yaml

from .logging import get_logger

log = get_logger("registry")

MODULE_CATEGORIES = ("agents", "skills", "commands", "docs")

DEFAULT_REGISTRY = Path(__file__).parent / "templates" / "registry.yaml"


def format_name(module_id: str) -> str:
    """'react-state-zustand' -> 'React State Zustand'"""
    return " ".join(part.capitalize() for part in module_id.replace("_", "-").split("-") if part)


@dataclass
class ModuleDefinition:
    """A module that can be installed into a project.

    Attributes:
        id: Unique identifier within its category.
        name: Display name (defaults to a title-cased id).
        description: Short description.
        category: One of MODULE_CATEGORIES.
        file: Template path relative to the category directory.
        dependencies: IDs of modules this one needs.
        tags: Free-form tags.
        alternative_to: IDs of modules this one is mutually exclusive with.
        is_core: Core modules are always installed.
    """

    id: str
    name: str = ""
    description: str = ""
    category: str = ""
    file: str = ""
    dependencies: list[str] = field(default_factory=list)
    tags: list[str] = field(default_factory=list)
    alternative_to: list[str] = field(default_factory=list)
    is_core: bool = False

    def __post_init__(self):
        if not self.name:
            self.name = format_name(self.id)


ModuleRegistry = dict[str, list[ModuleDefinition]]


def _as_str_list(raw: object) -> list[str]:
    if isinstance(raw, str):
        return [raw]
    if isinstance(raw, list):
        return [str(item) for item in raw]
    return []


def _parse_module(raw: object, category: str) -> ModuleDefinition | None:
    if not isinstance(raw, dict) or not raw.get("id"):
        log.warning("skipping module without id", category=category, entry=repr(raw)[:80])
        return None

    return ModuleDefinition(
        id=str(raw["id"]),
        name=str(raw.get("name") or ""),
        description=str(raw.get("description") or ""),
        category=category,
        file=str(raw.get("file") or f"{raw['id']}.md"),
        dependencies=_as_str_list(raw.get("dependencies")),
        tags=_as_str_list(raw.get("tags")),
        alternative_to=_as_str_list(raw.get("alternativeTo", raw.get("alternative_to"))),
        is_core=bool(raw.get("isCore", raw.get("is_core", False))),
    )


def empty_registry() -> ModuleRegistry:
    return {category: [] for category in MODULE_CATEGORIES}


def load_registry(registry_path: Path = DEFAULT_REGISTRY) -> ModuleRegistry:
    """Load module definitions grouped by category.

    Missing files, unreadable YAML and unknown categories are logged and
    yield empty categories; entries without an id are skipped.

    Args:
        registry_path: Path to the registry YAML/JSON file.

    Returns:
        Mapping of category name to its module definitions.
    """
    registry = empty_registry()

    if not registry_path.exists():
        log.warning("registry not found", path=str(registry_path))
        return registry

    try:
        with open(registry_path) as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as exc:
        log.warning("failed to parse registry", path=str(registry_path), error=str(exc))
        return registry

    if not isinstance(data, dict):
        log.warning("registry root is not a mapping", path=str(registry_path))
        return registry

    for category, entries in data.items():
        if category not in registry:
            log.warning("unknown module category", category=category)
            continue
        if not isinstance(entries, list):
            continue
        for raw in entries:
            module = _parse_module(raw, category)
            if module is not None:
                registry[category].append(module)

    log.debug(
        "registry_loaded",
        path=str(registry_path),
        **{category: len(modules) for category, modules in registry.items()},
    )
    return registry


def all_modules(registry: ModuleRegistry) -> list[ModuleDefinition]:
    return [module for category in MODULE_CATEGORIES for module in registry.get(category, [])]


def find_module(registry: ModuleRegistry, module_id: str) -> ModuleDefinition | None:
    for module in all_modules(registry):
        if module.id == module_id:
            return module
    return None
