"""Structured logging for scaffold-wizard.

Log records carry the wizard and step they were emitted from: the engine
binds ``wizard_id`` for the whole run and ``step_id`` while a step is
active, and every record picks them up from structlog's contextvars.

While the wizard is prompting, the terminal belongs to the prompts, so
interactive runs send log records to a file instead of stderr.
"""

import logging
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

import structlog

_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warning": logging.WARNING,
    "error": logging.ERROR,
}


def _handlers(log_file: Path | None, interactive: bool) -> list[logging.Handler]:
    handlers: list[logging.Handler] = []
    if not (interactive and log_file):
        handlers.append(logging.StreamHandler(sys.stderr))
    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(str(log_file)))
    return handlers


def setup_logging(
    level: str = "warning",
    json_output: bool = False,
    log_file: Path | None = None,
    interactive: bool = False,
) -> None:
    """Configure structlog and the root logger.

    Args:
        level: Log level (debug, info, warning, error). Unknown names
            fall back to warning.
        json_output: If True, render JSON lines instead of console output.
        log_file: Optional file that receives log records.
        interactive: If True and ``log_file`` is set, log to the file only
            so nothing is printed between prompts.
    """
    log_level = _LEVELS.get(level.lower(), logging.WARNING)

    if json_output:
        renderer: structlog.types.Processor = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=not interactive and sys.stderr.isatty())

    formatter = structlog.stdlib.ProcessorFormatter(
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            renderer,
        ],
        foreign_pre_chain=[structlog.processors.add_log_level],
    )

    root = logging.getLogger()
    for handler in root.handlers:
        handler.close()
    root.handlers = _handlers(log_file, interactive)
    for handler in root.handlers:
        handler.setFormatter(formatter)
    root.setLevel(log_level)

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


@contextmanager
def wizard_context(wizard_id: str) -> Iterator[None]:
    """Bind ``wizard_id`` to every record logged inside the block."""
    with structlog.contextvars.bound_contextvars(wizard_id=wizard_id):
        yield


@contextmanager
def step_context(step_id: str) -> Iterator[None]:
    """Bind ``step_id`` to every record logged inside the block."""
    with structlog.contextvars.bound_contextvars(step_id=step_id):
        yield


def get_logger(module: str) -> structlog.stdlib.BoundLogger:
    """Get a structlog logger bound to a module name.

    Args:
        module: Module name (e.g., "wizard", "registry").

    Returns:
        Bound structlog logger.
    """
    return structlog.get_logger(module=module)
