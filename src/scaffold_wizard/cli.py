"""CLI commands and argument parsing for scaffold-wizard."""

import argparse
import asyncio
import sys
from uuid import uuid4

import structlog

from .bundles import format_bundle_for_display, group_bundles_by_category, load_bundles
from .config import ScaffoldConfig, build_config, load_config_from_yaml, write_wizard_output
from .detector import detect_project
from .engine import run_wizard, show_wizard_summary
from .exclusivity import get_exclusivity_group_description, group_by_exclusivity
from .history import get_history_summary
from .init_steps import create_init_wizard_config
from .logging import get_logger, setup_logging
from .prompts import with_cancellation
from .registry import MODULE_CATEGORIES, load_registry
from .validate import format_results, validate_all

logger = get_logger("cli")

LOG_FILE = ".claude/logs/scaffold-wizard.log"


# === CLI Commands ===


def cmd_init(args: argparse.Namespace, config: ScaffoldConfig) -> None:
    """Run the init wizard and write the collected answers."""
    detection = detect_project(config.project_root)
    registry = load_registry(config.registry_file)
    bundles = load_bundles(config.bundles_file)
    wizard_config = create_init_wizard_config(
        allow_skip=config.allow_skip, show_progress=config.show_progress
    )

    if detection.detected:
        print(f"Detected {detection.project_type} project ({detection.package_manager})")

    initial_context = {
        "project_root": str(config.project_root),
        "detection": detection,
        "registry": registry,
        "bundles": bundles,
    }
    result = asyncio.run(with_cancellation(lambda: run_wizard(wizard_config, initial_context)))

    if result is None or result.cancelled:
        print("\n  Cancelled. Nothing was written.\n")
        return

    show_wizard_summary(result.state)
    for line in get_history_summary(result.state):
        print(line)

    output_file = write_wizard_output(result.values, config.output_file)
    print(f"\nConfiguration written to {output_file}")


def cmd_list(args: argparse.Namespace, config: ScaffoldConfig) -> None:
    """List registry modules per category, their exclusivity groups and bundles."""
    registry = load_registry(config.registry_file)

    for category in MODULE_CATEGORIES:
        modules = registry.get(category, [])
        print(f"\n{category.capitalize()} ({len(modules)})")
        for module in modules:
            core = " [core]" if module.is_core else ""
            print(f"  {module.id:<24} {module.name}{core}")

        groups = group_by_exclusivity(modules)
        if groups:
            print("  Mutually exclusive:")
            for members in groups.values():
                print(f"    - {get_exclusivity_group_description(members, modules)}")

    bundles = load_bundles(config.bundles_file)
    if bundles:
        print(f"\nBundles ({len(bundles)})")
        for category, members in group_bundles_by_category(bundles).items():
            print(f"  {category}:")
            for bundle in members:
                print(f"    {bundle.id:<24} {format_bundle_for_display(bundle)}")


def cmd_validate(args: argparse.Namespace, config: ScaffoldConfig) -> None:
    """Validate registry, bundles and config, print results."""
    result = validate_all(
        registry_file=config.registry_file,
        config_file=config.config_file,
        bundles_file=config.bundles_file,
    )
    print(format_results(result))
    if not result.ok:
        sys.exit(1)


def build_parser() -> argparse.ArgumentParser:
    # Shared options available to every subcommand
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument(
        "--project-root",
        type=str,
        default="",
        help="Project root directory (default: current directory)",
    )
    common.add_argument(
        "--registry", type=str, default="", help="Module registry file (default: bundled)"
    )
    common.add_argument(
        "--bundles", type=str, default="", help="Module bundles file (default: bundled)"
    )
    common.add_argument(
        "--output",
        type=str,
        default="",
        help="Where to write the wizard answers (default: .claude/scaffold.yaml)",
    )
    common.add_argument(
        "--no-progress", action="store_true", help="Do not print step progress"
    )
    common.add_argument(
        "--log-level",
        type=str,
        default=None,
        choices=["debug", "info", "warning", "error"],
        help="Log level (default: warning)",
    )
    common.add_argument(
        "--log-json",
        action="store_true",
        help="Output logs as JSON lines",
    )

    parser = argparse.ArgumentParser(
        prog="scaffold-wizard",
        description="scaffold-wizard: interactive Claude Code configuration for a project",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        parents=[common],
    )

    subparsers = parser.add_subparsers(dest="command", help="Commands")

    subparsers.add_parser("init", parents=[common], help="Run the configuration wizard")
    subparsers.add_parser("list", parents=[common], help="List available modules")
    subparsers.add_parser(
        "validate", parents=[common], help="Validate registry, bundles and config"
    )

    return parser


def main(argv: list[str] | None = None):
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return

    # Load config from YAML file, then override with CLI args
    defaults = ScaffoldConfig(project_root=args.project_root or ".")
    yaml_config = load_config_from_yaml(defaults.config_file)
    config = build_config(yaml_config, args)

    # Prompts own the terminal during init
    interactive = args.command == "init"
    setup_logging(
        level=config.log_level,
        json_output=getattr(args, "log_json", False),
        log_file=config.project_root / LOG_FILE if interactive else None,
        interactive=interactive,
    )
    structlog.contextvars.bind_contextvars(run_id=uuid4().hex[:8])
    logger.debug("command_started", command=args.command, project_root=str(config.project_root))

    # Dispatch
    commands = {
        "init": cmd_init,
        "list": cmd_list,
        "validate": cmd_validate,
    }

    cmd_func = commands.get(args.command)
    if cmd_func:
        cmd_func(args, config)


if __name__ == "__main__":
    main()
