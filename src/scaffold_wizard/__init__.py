"""
scaffold-wizard — interactive Claude Code configuration for a project.

Usage as library:
    from scaffold_wizard import WizardConfig, WizardStepConfig, run_wizard
    from scaffold_wizard import load_registry, group_by_exclusivity
    from scaffold_wizard import load_bundles, resolve_bundles

Usage as CLI:
    scaffold-wizard init        # Run the configuration wizard
    scaffold-wizard list        # List modules, bundles and exclusivity groups
    scaffold-wizard validate    # Validate registry and config
"""

from importlib.metadata import PackageNotFoundError, version

from .bundles import BundleDefinition, load_bundles, resolve_bundles
from .code_style import prompt_code_style_config
from .config import ScaffoldConfig, build_config, load_config_from_yaml, write_wizard_output
from .detector import ProjectDetection, detect_project
from .engine import (
    WizardConfig,
    WizardConfigError,
    WizardStepConfig,
    create_wizard_state,
    run_wizard,
    show_wizard_summary,
)
from .exclusivity import (
    ConflictPair,
    MutualExclusivityResult,
    create_choices_with_exclusivity,
    filter_by_mutual_exclusivity,
    get_alternatives_for,
    get_conflicting_selections,
    get_exclusivity_group_description,
    group_by_exclusivity,
    validate_no_conflicts,
)
from .history import (
    format_duration,
    get_history_summary,
    get_last_value,
    get_modified_steps,
    get_revisited_steps,
)
from .init_steps import MCP_SERVERS, create_init_wizard_config
from .logging import get_logger, setup_logging, step_context, wizard_context
from .permissions import PermissionPreset, PermissionsConfig, prompt_permissions_config
from .navigator import (
    BACK_OPTION_VALUE,
    apply_navigation,
    calculate_next_step,
    inject_back_option,
    is_back_selected,
)
from .prompts import UserCancelledError, is_cancellation_error
from .registry import ModuleDefinition, load_registry
from .selection import CategorySelectionResult, select_items_from_category
from .step import (
    StepExecutionResult,
    StepValidation,
    WizardStepDefinition,
    create_step_state,
    record_step_history,
    validate_step,
)
from .types import (
    NavigationDirection,
    RevisitAction,
    StepMetadata,
    StepState,
    StepStatus,
    WizardChoice,
    WizardResult,
    WizardState,
)
from .validate import (
    ValidationResult,
    format_results,
    validate_all,
    validate_bundles,
    validate_registry,
)

try:
    __version__ = version("scaffold-wizard")
except PackageNotFoundError:
    __version__ = "0.0.0.dev"  # Fallback for development without install
__all__ = [
    # Types
    "NavigationDirection",
    "RevisitAction",
    "StepMetadata",
    "StepState",
    "StepStatus",
    "WizardChoice",
    "WizardResult",
    "WizardState",
    # Steps
    "StepExecutionResult",
    "StepValidation",
    "WizardStepDefinition",
    "create_step_state",
    "record_step_history",
    "validate_step",
    # History
    "format_duration",
    "get_history_summary",
    "get_last_value",
    "get_modified_steps",
    "get_revisited_steps",
    # Navigation
    "BACK_OPTION_VALUE",
    "apply_navigation",
    "calculate_next_step",
    "inject_back_option",
    "is_back_selected",
    # Engine
    "WizardConfig",
    "WizardConfigError",
    "WizardStepConfig",
    "create_wizard_state",
    "run_wizard",
    "show_wizard_summary",
    # Prompts
    "UserCancelledError",
    "is_cancellation_error",
    # Modules
    "ModuleDefinition",
    "load_registry",
    "CategorySelectionResult",
    "select_items_from_category",
    "ConflictPair",
    "MutualExclusivityResult",
    "create_choices_with_exclusivity",
    "filter_by_mutual_exclusivity",
    "get_alternatives_for",
    "get_conflicting_selections",
    "get_exclusivity_group_description",
    "group_by_exclusivity",
    "validate_no_conflicts",
    "BundleDefinition",
    "load_bundles",
    "resolve_bundles",
    # Init wizard
    "MCP_SERVERS",
    "ProjectDetection",
    "create_init_wizard_config",
    "detect_project",
    "PermissionPreset",
    "PermissionsConfig",
    "prompt_permissions_config",
    "prompt_code_style_config",
    # Config
    "ScaffoldConfig",
    "build_config",
    "load_config_from_yaml",
    "write_wizard_output",
    # Validation
    "ValidationResult",
    "format_results",
    "validate_all",
    "validate_bundles",
    "validate_registry",
    # Logging
    "get_logger",
    "setup_logging",
    "step_context",
    "wizard_context",
]
