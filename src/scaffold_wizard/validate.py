"""Validation for module registries, bundles and the scaffold config file."""

from collections import Counter
from collections.abc import Sequence
from dataclasses import dataclass, field
from pathlib import Path

import yaml

from .bundles import BUNDLE_CATEGORIES, BundleDefinition, load_bundles
from .exclusivity import validate_no_conflicts
from .logging import get_logger
from .registry import MODULE_CATEGORIES, ModuleRegistry, all_modules, load_registry

log = get_logger("validate")

# Known keys allowed under the scaffold: section in config YAML.
KNOWN_SCAFFOLD_KEYS: set[str] = {"log_level", "paths", "wizard"}
KNOWN_SECTION_KEYS: dict[str, set[str]] = {
    "paths": {"registry", "bundles", "output"},
    "wizard": {"show_progress", "allow_skip"},
}


@dataclass
class ValidationResult:
    """Collects errors and warnings from validation checks."""

    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        """True when no errors were found."""
        return len(self.errors) == 0

    def merge(self, other: "ValidationResult") -> None:
        """Merge another result into this one."""
        self.errors.extend(other.errors)
        self.warnings.extend(other.warnings)


def validate_registry(registry: ModuleRegistry) -> ValidationResult:
    """Check module ids, alternative edges and dependency references.

    Errors: duplicate ids within a category, ids used in more than one
    category, dependency cycles. Warnings: alternatives or dependencies
    naming unknown modules, modules listing themselves as alternatives,
    and alternative edges declared in one direction only.

    Args:
        registry: Loaded module registry.

    Returns:
        ValidationResult with errors and warnings found.
    """
    result = ValidationResult()
    modules = all_modules(registry)
    by_id = {m.id: m for m in modules}

    # --- Errors ---
    for category in MODULE_CATEGORIES:
        counts = Counter(m.id for m in registry.get(category, []))
        for module_id, count in sorted(counts.items()):
            if count > 1:
                result.errors.append(f"{category}: duplicate module id '{module_id}'")

    categories_by_id: dict[str, set[str]] = {}
    for module in modules:
        categories_by_id.setdefault(module.id, set()).add(module.category)
    for module_id, categories in sorted(categories_by_id.items()):
        if len(categories) > 1:
            result.errors.append(
                f"{module_id}: id used in several categories ({', '.join(sorted(categories))})"
            )

    # --- Warnings ---
    for module in modules:
        for alt_id in module.alternative_to:
            if alt_id == module.id:
                result.warnings.append(f"{module.id}: lists itself as an alternative")
            elif alt_id not in by_id:
                result.warnings.append(f"{module.id}: alternative '{alt_id}' not found in registry")
            elif module.id not in by_id[alt_id].alternative_to:
                result.warnings.append(
                    f"{module.id}: alternative '{alt_id}' does not list '{module.id}' back"
                )

        for dep in module.dependencies:
            if dep not in by_id:
                result.warnings.append(f"{module.id}: dependency '{dep}' not found in registry")

    result.merge(_detect_cycle(registry))
    return result


def validate_bundles(
    bundles: Sequence[BundleDefinition], registry: ModuleRegistry
) -> ValidationResult:
    """Check bundle ids and the modules they reference.

    Errors: duplicate bundle ids, unknown module categories, module ids
    missing from the registry. Warnings: bundles without modules,
    unknown bundle categories, bundles that include mutually exclusive
    modules.

    Args:
        bundles: Loaded bundle definitions.
        registry: Registry the bundles refer to.

    Returns:
        ValidationResult with errors and warnings found.
    """
    result = ValidationResult()

    counts = Counter(b.id for b in bundles)
    for bundle_id, count in sorted(counts.items()):
        if count > 1:
            result.errors.append(f"bundles: duplicate bundle id '{bundle_id}'")

    for bundle in bundles:
        for category, ids in bundle.modules.items():
            if category not in MODULE_CATEGORIES:
                result.errors.append(f"{bundle.id}: unknown module category '{category}'")
                continue
            known = {m.id for m in registry.get(category, [])}
            for module_id in ids:
                if module_id not in known:
                    result.errors.append(
                        f"{bundle.id}: {category} module '{module_id}' not found in registry"
                    )

        if bundle.module_count == 0:
            result.warnings.append(f"{bundle.id}: bundle has no modules")
        if bundle.category and bundle.category not in BUNDLE_CATEGORIES:
            result.warnings.append(f"{bundle.id}: unknown bundle category '{bundle.category}'")

        selected = [m for ids in bundle.modules.values() for m in ids]
        for pair in validate_no_conflicts(selected, all_modules(registry)):
            result.warnings.append(
                f"{bundle.id}: includes mutually exclusive modules "
                f"'{pair.selected}' and '{pair.conflicts_with}'"
            )

    return result


def _detect_cycle(registry: ModuleRegistry) -> ValidationResult:
    """DFS cycle detection on the module dependency graph.

    Args:
        registry: Loaded module registry.

    Returns:
        ValidationResult with an error per cycle found.
    """
    result = ValidationResult()

    # Build adjacency: module -> modules it depends on
    adj: dict[str, list[str]] = {m.id: list(m.dependencies) for m in all_modules(registry)}
    all_ids = set(adj.keys())

    WHITE, GRAY, BLACK = 0, 1, 2
    color: dict[str, int] = dict.fromkeys(all_ids, WHITE)

    def dfs(node: str, path: list[str]) -> None:
        color[node] = GRAY
        path.append(node)
        for neighbour in adj.get(node, []):
            if neighbour not in all_ids:
                continue  # dangling ref reported as a warning
            if color[neighbour] == GRAY:
                cycle_start = path.index(neighbour)
                cycle = path[cycle_start:] + [neighbour]
                result.errors.append(f"Dependency cycle detected: {' -> '.join(cycle)}")
                continue
            elif color[neighbour] == WHITE:
                dfs(neighbour, path)
        path.pop()
        color[node] = BLACK

    for module_id in sorted(all_ids):
        if color[module_id] == WHITE:
            dfs(module_id, [])

    return result


def _levenshtein(s1: str, s2: str) -> int:
    """Compute the Levenshtein (edit) distance between two strings."""
    if len(s1) < len(s2):
        return _levenshtein(s2, s1)

    if not s2:
        return len(s1)

    prev_row = list(range(len(s2) + 1))
    for i, c1 in enumerate(s1):
        curr_row = [i + 1]
        for j, c2 in enumerate(s2):
            cost = 0 if c1 == c2 else 1
            curr_row.append(min(curr_row[j] + 1, prev_row[j + 1] + 1, prev_row[j] + cost))
        prev_row = curr_row

    return prev_row[-1]


def _suggest_key(unknown: str, known: set[str]) -> str | None:
    """Suggest the closest known key if Levenshtein distance <= 2."""
    best: str | None = None
    best_dist = 3
    for k in sorted(known):  # sorted for deterministic results
        d = _levenshtein(unknown, k)
        if d < best_dist:
            best = k
            best_dist = d
    return best


def _unknown_key_error(prefix: str, key: str, known: set[str]) -> str:
    msg = f"Unknown config key '{prefix}.{key}'"
    suggestion = _suggest_key(key, known)
    if suggestion:
        msg += f" (did you mean '{suggestion}'?)"
    return msg


def validate_config(config_path: Path) -> ValidationResult:
    """Validate a scaffold config YAML file.

    Checks:
    - File exists (missing = ok, use defaults)
    - YAML is parseable
    - Keys under ``scaffold:`` and its sections are recognised

    Args:
        config_path: Path to the YAML config file.

    Returns:
        ValidationResult with any errors found.
    """
    result = ValidationResult()

    if not config_path.exists():
        return result  # defaults apply

    try:
        data = yaml.safe_load(config_path.read_text())
    except yaml.YAMLError as exc:
        result.errors.append(f"Failed to parse YAML in {config_path}: {exc}")
        return result

    if not isinstance(data, dict):
        return result

    scaffold_section = data.get("scaffold")
    if not isinstance(scaffold_section, dict):
        return result

    for key, value in scaffold_section.items():
        if key not in KNOWN_SCAFFOLD_KEYS:
            result.errors.append(_unknown_key_error("scaffold", key, KNOWN_SCAFFOLD_KEYS))
            continue
        known = KNOWN_SECTION_KEYS.get(key)
        if known is None or not isinstance(value, dict):
            continue
        for sub_key in value:
            if sub_key not in known:
                result.errors.append(_unknown_key_error(f"scaffold.{key}", sub_key, known))

    return result


def validate_registry_file(registry_file: Path) -> ValidationResult:
    """Load a registry file and validate its contents."""
    result = ValidationResult()

    if not registry_file.exists():
        result.errors.append(f"Registry file does not exist: {registry_file}")
        return result

    registry = load_registry(registry_file)
    if not all_modules(registry):
        result.errors.append(f"No modules found in {registry_file}")
        return result

    result.merge(validate_registry(registry))

    log.info(
        "validation_complete",
        file=str(registry_file),
        errors=len(result.errors),
        warnings=len(result.warnings),
    )
    return result


def validate_bundles_file(bundles_file: Path, registry_file: Path) -> ValidationResult:
    """Load a bundles file and validate it against the registry."""
    result = ValidationResult()

    if not bundles_file.exists():
        result.errors.append(f"Bundles file does not exist: {bundles_file}")
        return result

    bundles = load_bundles(bundles_file)
    if not bundles:
        result.warnings.append(f"No bundles found in {bundles_file}")
        return result

    result.merge(validate_bundles(bundles, load_registry(registry_file)))
    return result


def validate_all(
    registry_file: Path | None = None,
    config_file: Path | None = None,
    bundles_file: Path | None = None,
) -> ValidationResult:
    """Run all validation checks.

    Args:
        registry_file: Path to the module registry (optional).
        config_file: Path to the scaffold config YAML (optional).
        bundles_file: Path to the bundles file, checked against
            ``registry_file`` (optional).

    Returns:
        Merged ValidationResult from all checks.
    """
    result = ValidationResult()
    if registry_file:
        result.merge(validate_registry_file(registry_file))
        if bundles_file:
            result.merge(validate_bundles_file(bundles_file, registry_file))
    if config_file:
        result.merge(validate_config(config_file))
    return result


def format_results(result: ValidationResult) -> str:
    """Format validation results for terminal output.

    Args:
        result: ValidationResult to format.

    Returns:
        Human-readable string with errors, warnings, and summary.
    """
    lines: list[str] = []
    if result.errors:
        for e in result.errors:
            lines.append(f"  x {e}")
    if result.warnings:
        if lines:
            lines.append("")
        for w in result.warnings:
            lines.append(f"  ! {w}")
    n_err = len(result.errors)
    n_warn = len(result.warnings)
    err_word = "error" if n_err == 1 else "errors"
    warn_word = "warning" if n_warn == 1 else "warnings"
    lines.append(f"\n{n_err} {err_word}, {n_warn} {warn_word}")
    return "\n".join(lines)
