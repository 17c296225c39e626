"""Wizard state machine types.

Value types for the wizard navigation system. Every record here is a
frozen dataclass: transitions build new instances with
``dataclasses.replace`` instead of mutating the old ones.
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any


class StepStatus(str, Enum):
    """Lifecycle status of a wizard step."""

    PENDING = "pending"
    CURRENT = "current"
    COMPLETED = "completed"
    SKIPPED = "skipped"


class NavigationDirection(str, Enum):
    """How the user leaves a step."""

    NEXT = "next"
    BACK = "back"
    SKIP = "skip"
    CANCEL = "cancel"


class RevisitAction(str, Enum):
    """Answer to the keep-or-reconfigure question."""

    KEEP = "keep"
    RECONFIGURE = "reconfigure"


@dataclass(frozen=True)
class StepMetadata:
    """Identity of a step.

    Attributes:
        id: Unique step key.
        name: Human-readable name shown to the user.
        description: What this step configures.
        index: Position in the wizard (0-based), assigned by the wizard.
        required: Whether the step must be completed.
        depends_on: IDs of steps whose values feed this step's defaults.
    """

    id: str
    name: str
    description: str = ""
    index: int = 0
    required: bool = True
    depends_on: tuple[str, ...] = ()


@dataclass(frozen=True)
class StepHistoryEntry:
    """One recorded visit to a step."""

    timestamp: datetime
    value: Any
    exit_direction: NavigationDirection
    visit_count: int  # 1-based


@dataclass(frozen=True)
class StepState:
    """Per-step record: status, accepted value and visit history."""

    metadata: StepMetadata
    status: StepStatus = StepStatus.PENDING
    value: Any = None
    history: tuple[StepHistoryEntry, ...] = ()
    is_modified: bool = False


@dataclass(frozen=True)
class WizardMetadata:
    """Global wizard settings captured at start."""

    id: str
    title: str
    total_steps: int
    start_time: datetime
    allow_skip: bool = True
    show_progress: bool = True


@dataclass(frozen=True)
class WizardState:
    """Aggregate state of one wizard run.

    ``step_order`` is authoritative for next/previous; ``steps`` is keyed
    by step id and holds exactly one entry per configured step.
    """

    steps: dict[str, StepState]
    current_step_id: str
    step_order: tuple[str, ...]
    metadata: WizardMetadata
    is_complete: bool = False
    is_cancelled: bool = False

    @property
    def current_step(self) -> StepState:
        return self.steps[self.current_step_id]

    @property
    def current_index(self) -> int:
        return self.step_order.index(self.current_step_id)


@dataclass(frozen=True)
class WizardResult:
    """Terminal output of a wizard run."""

    values: dict[str, Any]
    state: WizardState
    cancelled: bool = False


@dataclass(frozen=True)
class WizardChoice:
    """A choice for select/checkbox prompts.

    ``disabled`` is either a flag or the reason shown next to the choice.
    Separators only use ``name`` as the line to draw.
    """

    name: str
    value: Any = None
    description: str | None = None
    disabled: bool | str = False
    checked: bool = False
    separator: bool = False
