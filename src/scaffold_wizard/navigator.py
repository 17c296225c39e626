"""Wizard navigation.

Computes step transitions for each navigation direction, injects a
"Back" choice into prompt choice lists, and asks whether to keep or
reconfigure a step that was already completed in an earlier pass.
"""

from collections.abc import Sequence
from dataclasses import dataclass, replace
from typing import Any

from rich.console import Console

from . import prompts
from .types import (
    NavigationDirection,
    RevisitAction,
    StepStatus,
    WizardChoice,
    WizardState,
)

# Reserved prompt value meaning "go back"; never a real step value
BACK_OPTION_VALUE = "__wizard_back__"

_SEPARATOR_LINE = "─" * 30


def create_back_option() -> WizardChoice:
    return WizardChoice(
        name="← Back to previous step",
        value=BACK_OPTION_VALUE,
        description="Return to the previous step",
    )


def create_back_separator() -> WizardChoice:
    return WizardChoice(name=_SEPARATOR_LINE, separator=True)


def inject_back_option(choices: Sequence[WizardChoice], step_index: int) -> list[WizardChoice]:
    """Prepend the back option and a separator, except on the first step."""
    if step_index == 0:
        return list(choices)
    return [create_back_option(), create_back_separator(), *choices]


def is_back_selected(value: Any) -> bool:
    return isinstance(value, str) and value == BACK_OPTION_VALUE


@dataclass(frozen=True)
class NextStepResult:
    """Where to go next and what the step being left becomes.

    ``next_step_id`` is None when the wizard ends.
    """

    next_step_id: str | None
    current_step_new_status: StepStatus


def calculate_next_step(state: WizardState, direction: NavigationDirection) -> NextStepResult:
    """Compute the transition for ``direction`` from the current step."""
    current_index = state.current_index
    is_last = current_index >= len(state.step_order) - 1

    if direction == NavigationDirection.NEXT:
        return NextStepResult(
            next_step_id=None if is_last else state.step_order[current_index + 1],
            current_step_new_status=StepStatus.COMPLETED,
        )

    if direction == NavigationDirection.SKIP:
        return NextStepResult(
            next_step_id=None if is_last else state.step_order[current_index + 1],
            current_step_new_status=StepStatus.SKIPPED,
        )

    if direction == NavigationDirection.BACK:
        if current_index <= 0:
            # Nowhere to go back to
            return NextStepResult(
                next_step_id=state.current_step_id,
                current_step_new_status=StepStatus.CURRENT,
            )
        # The step was left unfinished, so it is not completed
        return NextStepResult(
            next_step_id=state.step_order[current_index - 1],
            current_step_new_status=StepStatus.PENDING,
        )

    if direction == NavigationDirection.CANCEL:
        return NextStepResult(next_step_id=None, current_step_new_status=StepStatus.PENDING)

    raise ValueError(f"Unknown navigation direction: {direction!r}")


def apply_navigation(
    state: WizardState, direction: NavigationDirection, current_value: Any
) -> WizardState:
    """Return the wizard state after leaving the current step via ``direction``."""
    result = calculate_next_step(state, direction)

    steps = dict(state.steps)
    steps[state.current_step_id] = replace(
        state.steps[state.current_step_id],
        status=result.current_step_new_status,
        value=current_value,
    )

    if result.next_step_id is None:
        return replace(
            state,
            steps=steps,
            is_complete=direction in (NavigationDirection.NEXT, NavigationDirection.SKIP),
            is_cancelled=direction == NavigationDirection.CANCEL,
        )

    steps[result.next_step_id] = replace(steps[result.next_step_id], status=StepStatus.CURRENT)
    return replace(state, steps=steps, current_step_id=result.next_step_id)


async def prompt_keep_or_reconfigure(
    step_name: str, console: Console | None = None
) -> RevisitAction:
    """Ask whether to keep a previously configured step or redo it."""
    (console or Console()).print()

    answer = await prompts.select(
        f'"{step_name}" was already configured. What would you like to do?',
        choices=[
            WizardChoice(
                name="Keep current values and continue",
                value=RevisitAction.KEEP.value,
                description="Skip this step and proceed to the next one",
            ),
            WizardChoice(
                name="Re-configure this step",
                value=RevisitAction.RECONFIGURE.value,
                description="Show the prompts again with your previous values as defaults",
            ),
        ],
        default=RevisitAction.KEEP.value,
    )
    return RevisitAction(answer)


def show_step_progress(
    state: WizardState, is_revisit: bool, console: Console | None = None
) -> None:
    """Print ``[i/N] ● ◉ ○`` progress, the step name and its description."""
    if not state.metadata.show_progress:
        return

    console = console or Console()
    current_index = state.current_index
    current_step = state.current_step

    glyphs = []
    for idx in range(len(state.step_order)):
        if idx < current_index:
            glyphs.append("[green]●[/]")
        elif idx == current_index:
            glyphs.append("[bold cyan]◉[/]")
        else:
            glyphs.append("[dim]○[/]")

    indicator = f"[dim]\\[{current_index + 1}/{state.metadata.total_steps}][/]"
    badge = " [yellow](revisiting)[/]" if is_revisit else ""

    console.print()
    console.print(f"{indicator} {' '.join(glyphs)}{badge}")
    console.print(f"[bold]{current_step.metadata.name}[/]")
    if current_step.metadata.description:
        console.print(f"[dim]{current_step.metadata.description}[/]")
