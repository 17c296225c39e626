"""Mutual exclusivity between modules.

Modules declare ``alternative_to``: other modules they cannot be
installed together with. The relation is meant to be symmetric but the
data may only record one direction, so conflict checks look at both.
References to unknown module ids are ignored.
"""

from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field

from .registry import ModuleDefinition
from .types import WizardChoice

GROUP_ID_PREFIX = "exclusivity-group-"


@dataclass
class DisabledModule:
    """A module that cannot be selected, with the selections blocking it."""

    module: ModuleDefinition
    conflicts_with: list[str]


@dataclass
class MutualExclusivityResult:
    """Modules split into selectable and blocked ones."""

    available_modules: list[ModuleDefinition] = field(default_factory=list)
    disabled_modules: list[DisabledModule] = field(default_factory=list)


@dataclass(frozen=True)
class ConflictPair:
    selected: str
    conflicts_with: str


def get_alternatives_for(
    module_id: str, all_modules: Sequence[ModuleDefinition]
) -> list[ModuleDefinition]:
    """Modules listed in ``module_id``'s alternative_to that actually exist."""
    module = next((m for m in all_modules if m.id == module_id), None)
    if module is None or not module.alternative_to:
        return []
    return [m for m in all_modules if m.id in module.alternative_to]


def get_conflicting_selections(
    module: ModuleDefinition,
    selected_ids: Iterable[str],
    all_modules: Sequence[ModuleDefinition] | None = None,
) -> list[str]:
    """Selected ids that are alternatives to ``module``.

    Args:
        module: The module to check.
        selected_ids: Currently selected module ids.
        all_modules: When given, selected modules that list ``module`` as
            their alternative are reported too.

    Returns:
        Conflicting ids: declared alternatives first, then reverse ones.
    """
    selected = list(selected_ids)
    conflicts = [alt_id for alt_id in module.alternative_to or [] if alt_id in selected]

    if all_modules is not None:
        for other in all_modules:
            if (
                other.id in selected
                and other.id != module.id
                and other.id not in conflicts
                and module.id in (other.alternative_to or [])
            ):
                conflicts.append(other.id)

    return conflicts


def filter_by_mutual_exclusivity(
    modules: Sequence[ModuleDefinition], selected_ids: Iterable[str]
) -> MutualExclusivityResult:
    """Split ``modules`` into available ones and ones blocked by the selection."""
    selected = list(selected_ids)
    result = MutualExclusivityResult()

    for module in modules:
        conflicts = get_conflicting_selections(module, selected, modules)
        if conflicts:
            result.disabled_modules.append(DisabledModule(module=module, conflicts_with=conflicts))
        else:
            result.available_modules.append(module)

    return result


def create_choices_with_exclusivity(
    modules: Sequence[ModuleDefinition],
    selected_ids: Iterable[str],
    preselected: Iterable[str] | None = None,
    show_conflict_reason: bool = False,
) -> list[WizardChoice]:
    """Build checkbox choices, disabling modules that conflict with the selection.

    A choice is checked when the module is selected, or preselected and
    not in conflict. Selected modules are never disabled: a disabled
    choice cannot be unchecked, so two selected alternatives stay
    enabled and carry the conflict in their description instead.
    """
    selected = list(selected_ids)
    preselected_ids = set(preselected or [])
    choices: list[WizardChoice] = []

    for module in modules:
        conflicts = get_conflicting_selections(module, selected, modules)
        is_selected = module.id in selected

        if conflicts and is_selected:
            choices.append(
                WizardChoice(
                    name=module.name,
                    value=module.id,
                    description=f"⚠ Conflicts with: {', '.join(conflicts)} (uncheck one)",
                    checked=True,
                )
            )
            continue

        if conflicts:
            conflict_names = ", ".join(conflicts)
            reason = (
                f"Conflicts with: {conflict_names}"
                if show_conflict_reason
                else f"Alternative to {conflict_names} (already selected)"
            )
            choices.append(
                WizardChoice(
                    name=f"{module.name} (incompatible)",
                    value=module.id,
                    description=f"⚠ {reason}",
                    disabled=reason,
                )
            )
            continue

        choices.append(
            WizardChoice(
                name=module.name,
                value=module.id,
                description=module.description or None,
                checked=is_selected or module.id in preselected_ids,
            )
        )

    return choices


def validate_no_conflicts(
    selected_ids: Sequence[str], all_modules: Sequence[ModuleDefinition]
) -> list[ConflictPair]:
    """Every unordered pair of mutually exclusive selected ids, reported once."""
    by_id = {m.id: m for m in all_modules}
    selected = set(selected_ids)
    seen: set[frozenset[str]] = set()
    conflicts: list[ConflictPair] = []

    for module_id in selected_ids:
        module = by_id.get(module_id)
        if module is None:
            continue
        for alt_id in module.alternative_to or []:
            if alt_id not in selected or alt_id == module_id:
                continue
            pair = frozenset((module_id, alt_id))
            if pair in seen:
                continue
            seen.add(pair)
            conflicts.append(ConflictPair(selected=module_id, conflicts_with=alt_id))

    return conflicts


def group_by_exclusivity(modules: Sequence[ModuleDefinition]) -> dict[str, list[str]]:
    """Group modules into transitive alternative clusters.

    Edges are followed in both directions, so each module belongs to at
    most one group. Only groups with two or more members are returned,
    keyed by ``exclusivity-group-<alphabetically first member>`` with
    members sorted.
    """
    known = {m.id for m in modules}
    neighbours: dict[str, set[str]] = {m.id: set() for m in modules}
    for module in modules:
        for alt_id in module.alternative_to or []:
            if alt_id in known and alt_id != module.id:
                neighbours[module.id].add(alt_id)
                neighbours[alt_id].add(module.id)

    groups: dict[str, list[str]] = {}
    processed: set[str] = set()

    for module in modules:
        if module.id in processed:
            continue

        members = {module.id}
        to_process = list(neighbours[module.id])
        while to_process:
            alt_id = to_process.pop()
            if alt_id in members:
                continue
            members.add(alt_id)
            to_process.extend(n for n in neighbours[alt_id] if n not in members)

        processed.update(members)

        if len(members) > 1:
            sorted_members = sorted(members)
            groups[f"{GROUP_ID_PREFIX}{sorted_members[0]}"] = sorted_members

    return groups


def get_exclusivity_group_description(
    group_members: Sequence[str], all_modules: Sequence[ModuleDefinition]
) -> str:
    """Human-readable description of an exclusivity group."""
    by_id = {m.id: m for m in all_modules}
    names = sorted(by_id[m].name if m in by_id else m for m in group_members)

    if len(names) == 2:
        return f"{names[0]} and {names[1]} are alternatives (choose one)"
    return f"Choose one from: {', '.join(names)}"
