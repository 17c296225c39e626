"""Read-side queries over wizard and step history.

Nothing here mutates state or performs I/O.
"""

from datetime import datetime
from typing import Any

from .types import StepHistoryEntry, StepState, StepStatus, WizardState


def get_last_value(step_state: StepState) -> Any:
    """Most recent recorded value, or the bare ``value`` without history."""
    if not step_state.history:
        return step_state.value
    return step_state.history[-1].value


def get_initial_value(step_state: StepState) -> Any:
    """First recorded value, or the bare ``value`` without history."""
    if not step_state.history:
        return step_state.value
    return step_state.history[0].value


def get_modified_steps(state: WizardState) -> list[tuple[str, StepState]]:
    return [
        (step_id, state.steps[step_id])
        for step_id in state.step_order
        if state.steps[step_id].is_modified
    ]


def get_revisited_steps(state: WizardState) -> list[tuple[str, StepState]]:
    """Steps recorded more than once, i.e. reconfigured after going back."""
    return [
        (step_id, state.steps[step_id])
        for step_id in state.step_order
        if len(state.steps[step_id].history) > 1
    ]


def get_total_visits(state: WizardState) -> int:
    """Sum of visits, counting a step with a value but no history once."""
    total = 0
    for step_id in state.step_order:
        step = state.steps[step_id]
        total += max(len(step.history), 1 if step.value is not None else 0)
    return total


def get_completed_steps_count(state: WizardState) -> int:
    return sum(
        1
        for step_id in state.step_order
        if state.steps[step_id].status in (StepStatus.COMPLETED, StepStatus.SKIPPED)
    )


def get_history_summary(state: WizardState) -> list[str]:
    """Lines describing which steps were reconfigured, empty if none."""
    revisited = get_revisited_steps(state)
    if not revisited:
        return []

    summary = ["Steps that were reconfigured:"]
    for _step_id, step in revisited:
        summary.append(f"  • {step.metadata.name}: modified {len(step.history)} times")
    return summary


def get_step_history(step_state: StepState) -> list[StepHistoryEntry]:
    return list(step_state.history)


def was_step_completed(step_state: StepState) -> bool:
    """True if the step was completed in an earlier pass through the wizard."""
    return step_state.status == StepStatus.COMPLETED or len(step_state.history) > 0


def get_time_on_step(step_state: StepState) -> int:
    """Milliseconds between the first and last history entries.

    Returns 0 when fewer than two entries were recorded.
    """
    if len(step_state.history) < 2:
        return 0
    delta = step_state.history[-1].timestamp - step_state.history[0].timestamp
    return int(delta.total_seconds() * 1000)


def get_wizard_duration(state: WizardState) -> int:
    """Milliseconds elapsed since the wizard started."""
    delta = datetime.now() - state.metadata.start_time
    return int(delta.total_seconds() * 1000)


def format_duration(ms: int) -> str:
    """Format milliseconds as ``"42s"`` or, from one minute on, ``"2m 5s"``."""
    seconds = int(ms // 1000)
    minutes = seconds // 60
    remaining_seconds = seconds % 60

    if minutes == 0:
        return f"{seconds}s"
    return f"{minutes}m {remaining_seconds}s"
