"""Configuration module for scaffold-wizard.

Contains the ScaffoldConfig dataclass, config loading from YAML,
config building from CLI arguments, and writing the wizard's answers.
"""

import argparse
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any

import yaml

from .bundles import DEFAULT_BUNDLES
from .logging import get_logger
from .registry import DEFAULT_REGISTRY

log = get_logger("config")

# === Constants ===

# Configuration file path, relative to the project root
CONFIG_FILE = Path(".claude/scaffold.config.yaml")
OUTPUT_FILE = Path(".claude/scaffold.yaml")


# === ScaffoldConfig ===


@dataclass
class ScaffoldConfig:
    """Wizard configuration"""

    # Paths
    project_root: Path = Path(".")
    registry_file: Path = DEFAULT_REGISTRY  # Module registry (bundled by default)
    bundles_file: Path = DEFAULT_BUNDLES  # Module bundles (bundled by default)
    output_file: Path = OUTPUT_FILE  # Where accepted answers are written

    # Wizard
    show_progress: bool = True  # Print [i/N] progress before each step
    allow_skip: bool = True  # Allow skipping optional steps

    log_level: str = "warning"

    def __post_init__(self):
        """Resolve project_root and make relative paths project-relative."""
        self.project_root = Path(self.project_root).resolve()

        self.registry_file = Path(self.registry_file)
        self.bundles_file = Path(self.bundles_file)
        self.output_file = Path(self.output_file)
        if not self.registry_file.is_absolute():
            self.registry_file = self.project_root / self.registry_file
        if not self.bundles_file.is_absolute():
            self.bundles_file = self.project_root / self.bundles_file
        if not self.output_file.is_absolute():
            self.output_file = self.project_root / self.output_file

    @property
    def config_file(self) -> Path:
        return self.project_root / CONFIG_FILE


# === Config Loading ===


def load_config_from_yaml(config_path: Path = CONFIG_FILE) -> dict:
    """Load configuration from YAML file.

    Args:
        config_path: Path to the configuration file.

    Returns:
        Flat dictionary with configuration values (None where unset).
    """
    if not config_path.exists():
        return {}

    try:
        with open(config_path) as f:
            data = yaml.safe_load(f) or {}

        scaffold_config = data.get("scaffold", {}) or {}
        paths = scaffold_config.get("paths", {}) or {}
        wizard = scaffold_config.get("wizard", {}) or {}

        return {
            "log_level": scaffold_config.get("log_level"),
            "registry_file": Path(paths["registry"]) if paths.get("registry") else None,
            "bundles_file": Path(paths["bundles"]) if paths.get("bundles") else None,
            "output_file": Path(paths["output"]) if paths.get("output") else None,
            "show_progress": wizard.get("show_progress"),
            "allow_skip": wizard.get("allow_skip"),
        }
    except (OSError, yaml.YAMLError, AttributeError) as e:
        log.warning("failed to load config", path=str(config_path), error=str(e))
        return {}


def build_config(yaml_config: dict, args: argparse.Namespace) -> ScaffoldConfig:
    """Build ScaffoldConfig from YAML and CLI arguments.

    CLI arguments override YAML config.

    Args:
        yaml_config: Configuration loaded from YAML file.
        args: Parsed CLI arguments.

    Returns:
        ScaffoldConfig instance.
    """
    config_kwargs: dict[str, Any] = {}

    # Apply YAML config (only non-None values)
    for key, value in yaml_config.items():
        if value is not None:
            config_kwargs[key] = value

    # Override with CLI arguments
    if getattr(args, "project_root", None):
        config_kwargs["project_root"] = Path(args.project_root)
    if getattr(args, "registry", None):
        config_kwargs["registry_file"] = Path(args.registry)
    if getattr(args, "bundles", None):
        config_kwargs["bundles_file"] = Path(args.bundles)
    if getattr(args, "output", None):
        config_kwargs["output_file"] = Path(args.output)
    if getattr(args, "no_progress", False):
        config_kwargs["show_progress"] = False
    if getattr(args, "log_level", None):
        config_kwargs["log_level"] = args.log_level

    return ScaffoldConfig(**config_kwargs)


# === Output ===


def _plain(value: Any) -> Any:
    """Convert enums, paths and tuples into YAML-safe builtins."""
    if isinstance(value, dict):
        return {str(k): _plain(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_plain(v) for v in value]
    if isinstance(value, Path):
        return str(value)
    if isinstance(value, Enum):
        return value.value
    return value


def write_wizard_output(values: dict[str, Any], path: Path) -> Path:
    """Write the wizard's accepted values as YAML, creating parent dirs."""
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w") as f:
        yaml.safe_dump(_plain(values), f, sort_keys=False, allow_unicode=True)
    log.info("wizard_output_written", path=str(path), steps=len(values))
    return path
