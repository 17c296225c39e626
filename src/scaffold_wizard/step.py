"""Wizard step definitions and step-level state transitions.

A step definition bundles the step's metadata with the callables the
engine needs: default computation, prompt execution, optional validation
and an optional skip predicate. The functions below produce new
``StepState`` values and never touch their input.
"""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass, replace
from datetime import datetime
from typing import Any

from .types import (
    NavigationDirection,
    StepHistoryEntry,
    StepMetadata,
    StepState,
    StepStatus,
)

Context = dict[str, Any]


@dataclass(frozen=True)
class StepExecutionResult:
    """Outcome of running a step's prompts.

    Attributes:
        value: The value collected from the user.
        navigation: How the user wants to proceed.
        was_modified: Whether the value differs from the defaults shown.
    """

    value: Any
    navigation: NavigationDirection = NavigationDirection.NEXT
    was_modified: bool = True


@dataclass(frozen=True)
class StepValidation:
    """Pass/fail of a step value plus the message to show on failure."""

    valid: bool
    error: str | None = None


DefaultsComputer = Callable[[Context], Any]
StepExecutor = Callable[[Context, Any], Awaitable[StepExecutionResult]]
StepValidator = Callable[[Any, Context], bool | str]
SkipCondition = Callable[[Context], bool]


@dataclass(frozen=True)
class WizardStepDefinition:
    """Complete definition of a wizard step.

    Attributes:
        metadata: Step metadata; ``index`` is reassigned by the wizard.
        compute_defaults: Builds defaults from the accumulated context.
        execute: Async callable ``(context, defaults) -> StepExecutionResult``.
        validate: Optional ``(value, context) -> True | False | error message``.
        skip_condition: Optional predicate; when true the step is skipped.
    """

    metadata: StepMetadata
    compute_defaults: DefaultsComputer
    execute: StepExecutor
    validate: StepValidator | None = None
    skip_condition: SkipCondition | None = None


def create_step_state(definition: WizardStepDefinition, index: int) -> StepState:
    """Build the initial state for a step: pending, no value, no history."""
    return StepState(
        metadata=replace(definition.metadata, index=index),
        status=StepStatus.PENDING,
    )


def update_step_status(state: StepState, status: StepStatus) -> StepState:
    return replace(state, status=status)


def record_step_history(
    state: StepState, value: Any, exit_direction: NavigationDirection
) -> StepState:
    """Append a history entry and make ``value`` the step's current value.

    ``is_modified`` turns on once a recorded value differs from the first
    value the step ever held, and stays on afterwards.
    """
    initial = state.history[0].value if state.history else state.value
    entry = StepHistoryEntry(
        timestamp=datetime.now(),
        value=value,
        exit_direction=NavigationDirection(exit_direction),
        visit_count=len(state.history) + 1,
    )
    return replace(
        state,
        value=value,
        history=(*state.history, entry),
        is_modified=state.is_modified or value != initial,
    )


def has_been_visited(state: StepState) -> bool:
    return len(state.history) > 0 or state.status == StepStatus.COMPLETED


def get_visit_count(state: StepState) -> int:
    return len(state.history)


def validate_step(
    definition: WizardStepDefinition, value: Any, context: Context | None = None
) -> StepValidation:
    """Run the definition's validator, if any, against ``value``."""
    if definition.validate is None:
        return StepValidation(valid=True)

    outcome = definition.validate(value, context or {})
    if outcome is True:
        return StepValidation(valid=True)
    if outcome is False or not outcome:
        return StepValidation(valid=False, error="Validation failed")
    return StepValidation(valid=False, error=str(outcome))


def should_skip_step(definition: WizardStepDefinition, context: Context) -> bool:
    if definition.skip_condition is None:
        return False
    return bool(definition.skip_condition(context))
