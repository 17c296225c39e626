"""Module bundles.

A bundle is a named set of registry modules that are usually installed
together ("Hono + Drizzle stack", "Testing"). Bundles only reference
modules by id; choosing a bundle preselects its modules, and mutual
exclusivity is still decided by the modules themselves. A bundles file
looks like::

    bundles:
      - id: hono-drizzle-stack
        name: Hono + Drizzle
        category: stack
        modules:
          agents: [api-engineer, database-engineer]
          skills: [hono-api, drizzle-patterns]
"""

from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from pathlib import Path

import yaml

from .logging import get_logger
from .registry import MODULE_CATEGORIES, format_name

log = get_logger("bundles")

BUNDLE_CATEGORIES = ("stack", "testing", "quality", "database", "api", "frontend", "workflow")

DEFAULT_BUNDLES = Path(__file__).parent / "templates" / "bundles.yaml"

# Share of a bundle that must already be selected before it is suggested
SUGGESTION_THRESHOLD = 0.3


@dataclass
class BundleDefinition:
    """A named group of modules.

    Attributes:
        id: Unique bundle identifier.
        name: Display name (defaults to a title-cased id).
        description: Short description.
        category: One of BUNDLE_CATEGORIES.
        modules: Module ids per module category.
        tech_stack: Technologies the bundle is meant for.
        tags: Free-form tags.
    """

    id: str
    name: str = ""
    description: str = ""
    category: str = ""
    modules: dict[str, list[str]] = field(default_factory=dict)
    tech_stack: list[str] = field(default_factory=list)
    tags: list[str] = field(default_factory=list)

    def __post_init__(self):
        if not self.name:
            self.name = format_name(self.id)

    @property
    def module_count(self) -> int:
        return sum(len(ids) for ids in self.modules.values())


def empty_selection() -> dict[str, list[str]]:
    return {category: [] for category in MODULE_CATEGORIES}


def _parse_bundle(raw: object) -> BundleDefinition | None:
    if not isinstance(raw, dict) or not raw.get("id"):
        log.warning("skipping bundle without id", entry=repr(raw)[:80])
        return None

    modules: dict[str, list[str]] = {}
    raw_modules = raw.get("modules") or {}
    if isinstance(raw_modules, dict):
        for category, ids in raw_modules.items():
            if isinstance(ids, list):
                modules[str(category)] = [str(module_id) for module_id in ids]

    return BundleDefinition(
        id=str(raw["id"]),
        name=str(raw.get("name") or ""),
        description=str(raw.get("description") or ""),
        category=str(raw.get("category") or ""),
        modules=modules,
        tech_stack=[str(t) for t in raw.get("techStack", raw.get("tech_stack")) or []],
        tags=[str(t) for t in raw.get("tags") or []],
    )


def load_bundles(bundles_path: Path = DEFAULT_BUNDLES) -> list[BundleDefinition]:
    """Load bundle definitions in file order.

    A missing or unreadable file yields no bundles; the wizard then
    falls back to picking modules one category at a time.
    """
    if not bundles_path.exists():
        log.warning("bundles file not found", path=str(bundles_path))
        return []

    try:
        with open(bundles_path) as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as exc:
        log.warning("failed to parse bundles", path=str(bundles_path), error=str(exc))
        return []

    entries = data.get("bundles") if isinstance(data, dict) else None
    if not isinstance(entries, list):
        log.warning("bundles file has no bundles list", path=str(bundles_path))
        return []

    bundles = [b for b in map(_parse_bundle, entries) if b is not None]
    log.debug("bundles_loaded", path=str(bundles_path), bundles=len(bundles))
    return bundles


def find_bundle(bundles: Sequence[BundleDefinition], bundle_id: str) -> BundleDefinition | None:
    return next((b for b in bundles if b.id == bundle_id), None)


def resolve_bundles(
    bundle_ids: Iterable[str], bundles: Sequence[BundleDefinition]
) -> dict[str, list[str]]:
    """Combined module ids of the given bundles, per category.

    Order follows the bundles and then their modules; ids shared by
    several bundles appear once. Unknown bundle ids are ignored.
    """
    result = empty_selection()
    for bundle_id in bundle_ids:
        bundle = find_bundle(bundles, bundle_id)
        if bundle is None:
            log.debug("unknown bundle ignored", bundle_id=bundle_id)
            continue
        for category, ids in bundle.modules.items():
            if category not in result:
                continue
            result[category].extend(i for i in ids if i not in result[category])
    return result


def merge_bundle_selection(
    bundle_ids: Iterable[str],
    additional_modules: dict[str, list[str]],
    bundles: Sequence[BundleDefinition],
) -> dict[str, list[str]]:
    """Bundle modules followed by individually picked ones, without duplicates."""
    result = resolve_bundles(bundle_ids, bundles)
    for category in MODULE_CATEGORIES:
        for module_id in additional_modules.get(category, []):
            if module_id not in result[category]:
                result[category].append(module_id)
    return result


def find_bundles_containing_module(
    module_id: str, category: str, bundles: Sequence[BundleDefinition]
) -> list[BundleDefinition]:
    return [b for b in bundles if module_id in b.modules.get(category, [])]


def get_suggested_bundles(
    selected_modules: dict[str, list[str]], bundles: Sequence[BundleDefinition]
) -> list[BundleDefinition]:
    """Bundles partly covered by the selection.

    A bundle is suggested when at least SUGGESTION_THRESHOLD of its
    modules are selected but not all of them.
    """
    suggestions = []
    for bundle in bundles:
        total = bundle.module_count
        if total == 0:
            continue
        matched = sum(
            1
            for category, ids in bundle.modules.items()
            for module_id in ids
            if module_id in selected_modules.get(category, [])
        )
        if SUGGESTION_THRESHOLD <= matched / total < 1.0:
            suggestions.append(bundle)
    return suggestions


def format_bundle_for_display(bundle: BundleDefinition) -> str:
    """'Hono + Drizzle (2 agents, 2 skills, 1 commands)'"""
    parts = [
        f"{len(bundle.modules[category])} {category}"
        for category in MODULE_CATEGORIES
        if bundle.modules.get(category)
    ]
    return f"{bundle.name} ({', '.join(parts)})" if parts else bundle.name


def group_bundles_by_category(
    bundles: Sequence[BundleDefinition],
) -> dict[str, list[BundleDefinition]]:
    """Bundles per category, known categories first in their usual order."""
    grouped: dict[str, list[BundleDefinition]] = {}
    for category in BUNDLE_CATEGORIES:
        members = [b for b in bundles if b.category == category]
        if members:
            grouped[category] = members
    for bundle in bundles:
        if bundle.category not in BUNDLE_CATEGORIES:
            grouped.setdefault(bundle.category or "other", []).append(bundle)
    return grouped
