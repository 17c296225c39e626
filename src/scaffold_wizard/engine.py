"""Wizard engine.

Runs a multi-step wizard to completion: skips steps whose predicate says
so, offers keep-or-reconfigure when moving forward into a step finished
in an earlier pass, executes each step's prompts, records history and
applies navigation. Each transition produces a new ``WizardState``.
"""

from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Any

from rich.console import Console

from .history import (
    format_duration,
    get_last_value,
    get_wizard_duration,
    was_step_completed,
)
from .logging import get_logger, step_context, wizard_context
from .navigator import apply_navigation, prompt_keep_or_reconfigure, show_step_progress
from .prompts import UserCancelledError
from .step import (
    WizardStepDefinition,
    create_step_state,
    record_step_history,
    should_skip_step,
    validate_step,
)
from .types import (
    NavigationDirection,
    RevisitAction,
    StepStatus,
    WizardMetadata,
    WizardResult,
    WizardState,
)

logger = get_logger("wizard")


class WizardConfigError(Exception):
    """The wizard was assembled incorrectly (a programming error)."""

    def __init__(self, message: str, step_id: str | None = None):
        super().__init__(message)
        self.step_id = step_id


@dataclass(frozen=True)
class WizardStepConfig:
    """A step id paired with its definition."""

    id: str
    definition: WizardStepDefinition


@dataclass(frozen=True)
class WizardConfig:
    """Configuration for one wizard.

    Attributes:
        id: Wizard identifier.
        title: Title displayed to the user.
        steps: Ordered step definitions.
        allow_skip: Allow skipping optional steps.
        show_progress: Print the progress line before each step.
    """

    id: str
    title: str
    steps: list[WizardStepConfig] = field(default_factory=list)
    allow_skip: bool = True
    show_progress: bool = True


def create_wizard_state(config: WizardConfig) -> WizardState:
    """Build the initial state: step 0 current, every other step pending.

    Raises:
        WizardConfigError: If there are no steps, a step id is duplicated,
            or a step id does not match its definition's metadata id.
    """
    if not config.steps:
        raise WizardConfigError(f"Wizard '{config.id}' has no steps")

    steps = {}
    for index, step in enumerate(config.steps):
        if step.id in steps:
            raise WizardConfigError(f"Duplicate step id: {step.id}", step_id=step.id)
        if step.definition.metadata.id != step.id:
            raise WizardConfigError(
                f"Step id '{step.id}' does not match its definition "
                f"('{step.definition.metadata.id}')",
                step_id=step.id,
            )
        steps[step.id] = create_step_state(step.definition, index)

    step_order = tuple(step.id for step in config.steps)
    first = step_order[0]
    steps[first] = replace(steps[first], status=StepStatus.CURRENT)

    return WizardState(
        steps=steps,
        current_step_id=first,
        step_order=step_order,
        metadata=WizardMetadata(
            id=config.id,
            title=config.title,
            total_steps=len(config.steps),
            start_time=datetime.now(),
            allow_skip=config.allow_skip,
            show_progress=config.show_progress,
        ),
    )


async def run_wizard(
    config: WizardConfig,
    initial_context: dict[str, Any] | None = None,
    *,
    console: Console | None = None,
) -> WizardResult:
    """Run a wizard to completion or cancellation.

    Args:
        config: Wizard configuration.
        initial_context: Values seeding the context passed to every step.
        console: Console used for progress output.

    Returns:
        WizardResult with the accepted value of every step that has one.

    Raises:
        WizardConfigError: If the current step has no definition.
    """
    state = create_wizard_state(config)
    step_map = {step.id: step.definition for step in config.steps}
    context: dict[str, Any] = dict(initial_context or {})
    console = console or Console()

    # True once a revisited step is finished going forward; cleared by going back
    moving_forward_after_back = False

    with wizard_context(config.id):
        logger.info("wizard_started", steps=len(step_map))

        while not state.is_complete and not state.is_cancelled:
            step_id = state.current_step_id
            step_def = step_map.get(step_id)
            if step_def is None:
                raise WizardConfigError(
                    f"Step definition not found for: {step_id}", step_id=step_id
                )
            step_state = state.steps[step_id]

            with step_context(step_id):
                if should_skip_step(step_def, context):
                    logger.debug("step_skipped")
                    state = apply_navigation(state, NavigationDirection.SKIP, None)
                    continue

                try:
                    if moving_forward_after_back and was_step_completed(step_state):
                        action = await prompt_keep_or_reconfigure(
                            step_state.metadata.name, console
                        )
                        if action == RevisitAction.KEEP:
                            logger.debug("step_kept")
                            state = apply_navigation(
                                state, NavigationDirection.NEXT, get_last_value(step_state)
                            )
                            continue

                    is_revisit = len(step_state.history) > 0
                    show_step_progress(state, is_revisit, console)

                    previous_value = get_last_value(step_state)
                    defaults = (
                        previous_value
                        if previous_value is not None
                        else step_def.compute_defaults(context)
                    )

                    # Invalid answers re-run the step's prompts, nothing else
                    while True:
                        result = await step_def.execute(context, defaults)
                        navigation = NavigationDirection(result.navigation)
                        if navigation != NavigationDirection.NEXT:
                            break
                        validation = validate_step(step_def, result.value, context)
                        if validation.valid:
                            break
                        logger.warning("step_invalid", error=validation.error)
                        console.print(f"[red]✗ {validation.error}[/]")
                except UserCancelledError:
                    logger.info("wizard_cancelled")
                    state = apply_navigation(
                        state, NavigationDirection.CANCEL, get_last_value(step_state)
                    )
                    continue

                # Going back means the step was not finished
                if navigation != NavigationDirection.BACK:
                    context = {**context, step_id: result.value}
                    state = replace(
                        state,
                        steps={
                            **state.steps,
                            step_id: record_step_history(step_state, result.value, navigation),
                        },
                    )

                if navigation == NavigationDirection.BACK:
                    moving_forward_after_back = False
                elif navigation == NavigationDirection.NEXT:
                    moving_forward_after_back = is_revisit or moving_forward_after_back

                logger.debug("step_left", navigation=navigation.value)
                state = apply_navigation(state, navigation, result.value)

        values = {
            step_id: state.steps[step_id].value
            for step_id in state.step_order
            if state.steps[step_id].value is not None
        }

        logger.info(
            "wizard_finished",
            cancelled=state.is_cancelled,
            values=len(values),
            duration_ms=get_wizard_duration(state),
        )
    return WizardResult(values=values, state=state, cancelled=state.is_cancelled)


def show_wizard_summary(state: WizardState, console: Console | None = None) -> None:
    """Print completed, skipped and reconfigured step counts."""
    console = console or Console()
    steps = [state.steps[step_id] for step_id in state.step_order]
    completed = sum(1 for s in steps if s.status == StepStatus.COMPLETED)
    skipped = sum(1 for s in steps if s.status == StepStatus.SKIPPED)
    revisited = sum(1 for s in steps if len(s.history) > 1)

    console.print()
    console.print(
        f"[green]✓[/] Wizard completed: {completed} steps configured "
        f"in {format_duration(get_wizard_duration(state))}"
    )
    if skipped > 0:
        console.print(f"  {skipped} steps skipped")
    if revisited > 0:
        console.print(f"  {revisited} steps were reconfigured")
