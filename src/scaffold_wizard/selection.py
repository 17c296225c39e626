"""Conflict-aware selection of modules within one category.

The user first picks a batch action (install all, smart selection,
preset, one by one, skip all). Whenever the outcome would contain
mutually exclusive modules, selection falls back to the smart mode: a
checkbox where conflicting modules are disabled.
"""

from collections.abc import Sequence
from dataclasses import dataclass, field
from enum import Enum

from rich.console import Console

from .exclusivity import (
    create_choices_with_exclusivity,
    get_conflicting_selections,
    group_by_exclusivity,
    validate_no_conflicts,
)
from .logging import get_logger
from .prompts import checkbox, confirm, select
from .registry import ModuleDefinition
from .types import WizardChoice

log = get_logger("selection")


class BatchAction(str, Enum):
    ALL = "all"
    SMART = "smart"
    PRESET = "preset"
    CONTINUE = "continue"
    NONE = "none"


class ItemAction(str, Enum):
    INSTALL = "install"
    SKIP = "skip"
    INSTALL_REST = "install-rest"
    SKIP_REST = "skip-rest"


@dataclass
class CategorySelectionResult:
    category: str
    selected_items: list[str] = field(default_factory=list)
    skipped_items: list[str] = field(default_factory=list)


def _result(category: str, items: Sequence[ModuleDefinition], selected: Sequence[str]):
    chosen = set(selected)
    return CategorySelectionResult(
        category=category,
        selected_items=[i.id for i in items if i.id in chosen],
        skipped_items=[i.id for i in items if i.id not in chosen],
    )


def _name_of(module_id: str, items: Sequence[ModuleDefinition]) -> str:
    return next((i.name for i in items if i.id == module_id), module_id)


async def prompt_batch_action(
    category: str,
    total_items: int,
    has_preset: bool = False,
    exclusivity_group_count: int = 0,
) -> BatchAction:
    """Ask how to handle a whole category before looking at single items."""
    choices = [
        WizardChoice(
            name="Install all (recommended)",
            value=BatchAction.ALL.value,
            description=f"Install all {total_items} {category}",
        ),
        WizardChoice(
            name="Select one by one",
            value=BatchAction.CONTINUE.value,
            description=f"Review each of the {total_items} items",
        ),
        WizardChoice(
            name="Skip all",
            value=BatchAction.NONE.value,
            description=f"Skip all {category}",
        ),
    ]

    if exclusivity_group_count:
        choices.insert(
            1,
            WizardChoice(
                name="Smart selection (handles conflicts)",
                value=BatchAction.SMART.value,
                description=(
                    f"Intelligent selection with {exclusivity_group_count} "
                    "mutually exclusive group(s)"
                ),
            ),
        )

    if has_preset:
        choices.insert(
            1,
            WizardChoice(
                name="Use preset for this category",
                value=BatchAction.PRESET.value,
                description="Use the preset selection for this category",
            ),
        )

    answer = await select(
        f"{category.capitalize()} selection ({total_items} available):",
        choices=choices,
        default=BatchAction.SMART.value if exclusivity_group_count else BatchAction.ALL.value,
    )
    return BatchAction(answer)


async def select_items_from_category(
    category: str,
    items: Sequence[ModuleDefinition],
    preselected: Sequence[str] | None = None,
    console: Console | None = None,
) -> CategorySelectionResult:
    """Let the user choose modules of ``category`` without conflicting pairs.

    Args:
        category: Category name, used in messages.
        items: Modules of the category.
        preselected: Module ids suggested up front (e.g. from a preset).
        console: Console for informational output.

    Returns:
        CategorySelectionResult; selected items never contain a conflict.
    """
    console = console or Console()
    groups = group_by_exclusivity(items)

    console.print()
    console.print(f"[bold]{category.capitalize()} Selection[/]")
    console.print(f"{len(items)} {category} available")
    if groups:
        console.print(
            f"[yellow]{len(groups)} group(s) of mutually exclusive {category} detected[/]"
        )

    action = await prompt_batch_action(
        category,
        len(items),
        has_preset=bool(preselected),
        exclusivity_group_count=len(groups),
    )
    log.debug("batch_action", category=category, action=action.value)

    if action == BatchAction.ALL:
        if not validate_no_conflicts([i.id for i in items], items):
            return _result(category, items, [i.id for i in items])
        console.print("[yellow]Cannot install all: some modules are mutually exclusive.[/]")
        console.print("Switching to smart selection mode...")
        return await select_items_with_exclusivity(category, items, preselected, console)

    if action == BatchAction.NONE:
        return _result(category, items, [])

    if action == BatchAction.PRESET:
        preset_ids = [i.id for i in items if i.id in set(preselected or [])]
        if not validate_no_conflicts(preset_ids, items):
            return _result(category, items, preset_ids)
        console.print(
            "[yellow]Preset contains conflicting modules. Switching to smart selection...[/]"
        )
        return await select_items_with_exclusivity(category, items, preselected, console)

    if action == BatchAction.SMART:
        return await select_items_with_exclusivity(category, items, preselected, console)

    return await select_items_one_by_one(category, items, preselected, console)


async def select_items_with_exclusivity(
    category: str,
    items: Sequence[ModuleDefinition],
    preselected: Sequence[str] | None = None,
    console: Console | None = None,
) -> CategorySelectionResult:
    """Checkbox selection with conflicting modules disabled.

    Re-prompts while the submitted selection still contains conflicts and
    until the user confirms the summary.
    """
    console = console or Console()
    item_ids = {i.id for i in items}
    selected_ids = [module_id for module_id in preselected or [] if module_id in item_ids]

    while True:
        choices = create_choices_with_exclusivity(
            items, selected_ids, preselected=preselected, show_conflict_reason=True
        )
        console.print()
        console.print("[dim]Items marked as incompatible are disabled based on your selections.[/]")
        console.print("[dim]Uncheck items to enable their alternatives.[/]")

        selected_ids = await checkbox(
            f"Select {category} (Space to toggle, Enter to confirm):", choices=choices
        )

        conflicts = validate_no_conflicts(selected_ids, items)
        if conflicts:
            console.print("[yellow]Your selection contains conflicts:[/]")
            for conflict in conflicts:
                console.print(
                    f"  [red]•[/] {_name_of(conflict.selected, items)} and "
                    f"{_name_of(conflict.conflicts_with, items)} are mutually exclusive"
                )
            console.print("Please adjust your selection.")
            continue

        result = _result(category, items, selected_ids)
        show_category_selection_summary(result, console)
        if await confirm("Is this selection correct?", default=True):
            return result


async def select_items_one_by_one(
    category: str,
    items: Sequence[ModuleDefinition],
    preselected: Sequence[str] | None = None,
    console: Console | None = None,
) -> CategorySelectionResult:
    """Ask about each module in turn, skipping ones that conflict with earlier picks."""
    console = console or Console()
    preselected_ids = set(preselected or [])
    selected: list[str] = []
    skipped: list[str] = []

    index = 0
    while index < len(items):
        item = items[index]
        remaining = len(items) - index - 1

        conflicts = get_conflicting_selections(item, selected, items)
        if conflicts:
            names = ", ".join(_name_of(c, items) for c in conflicts)
            console.print(f"[dim]Skipping {item.name} (conflicts with selected: {names})[/]")
            skipped.append(item.id)
            index += 1
            continue

        console.print(f"\n[dim]\\[{index + 1}/{len(items)}][/] [bold]{item.name}[/]")
        if item.description:
            console.print(f"  [dim]{item.description}[/]")
        if item.alternative_to:
            alt_names = ", ".join(_name_of(a, items) for a in item.alternative_to)
            console.print(f"[yellow]⚠ Selecting this will disable: {alt_names}[/]")

        action = await prompt_item_action(item, item.id in preselected_ids, remaining)

        if action == ItemAction.INSTALL:
            selected.append(item.id)
        elif action == ItemAction.SKIP:
            skipped.append(item.id)
        elif action == ItemAction.INSTALL_REST:
            selected.append(item.id)
            for later in items[index + 1 :]:
                if get_conflicting_selections(later, selected, items):
                    skipped.append(later.id)
                else:
                    selected.append(later.id)
            break
        else:
            skipped.extend(i.id for i in items[index:])
            break
        index += 1

    return CategorySelectionResult(
        category=category, selected_items=selected, skipped_items=skipped
    )


async def prompt_item_action(
    item: ModuleDefinition, default_install: bool, remaining_count: int
) -> ItemAction:
    choices = [
        WizardChoice(name="Yes, install", value=ItemAction.INSTALL.value),
        WizardChoice(name="No, skip", value=ItemAction.SKIP.value),
    ]
    if remaining_count > 0:
        choices.extend(
            [
                WizardChoice(
                    name=f"Install all remaining ({remaining_count + 1} items)",
                    value=ItemAction.INSTALL_REST.value,
                ),
                WizardChoice(
                    name=f"Skip all remaining ({remaining_count + 1} items)",
                    value=ItemAction.SKIP_REST.value,
                ),
            ]
        )

    answer = await select(
        f"Install {item.name}?",
        choices=choices,
        default=ItemAction.INSTALL.value if default_install else ItemAction.SKIP.value,
    )
    return ItemAction(answer)


def show_category_selection_summary(
    result: CategorySelectionResult, console: Console | None = None
) -> None:
    console = console or Console()
    console.print()
    console.print(
        f"[bold]{result.category.capitalize()}[/]: {len(result.selected_items)} selected, "
        f"{len(result.skipped_items)} skipped"
    )
    for module_id in result.selected_items:
        console.print(f"  [green]✓[/] {module_id}")
