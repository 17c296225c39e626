"""Interactive prompt primitives built on questionary.

The wizard core only needs "ask the user something and give me the
answer". These coroutines provide that for select, checkbox, confirm and
free-text questions. Ctrl+C during a prompt surfaces as
``UserCancelledError`` so callers can turn it into a cancel navigation.
"""

import sys
from collections.abc import Awaitable, Callable, Sequence
from typing import Any, TypeVar

import questionary

from .logging import get_logger
from .types import WizardChoice

log = get_logger("prompts")

T = TypeVar("T")


class UserCancelledError(Exception):
    """Raised when the user aborts a prompt."""

    def __init__(self, message: str = "Operation cancelled by user"):
        super().__init__(message)


def is_cancellation_error(error: BaseException) -> bool:
    return isinstance(error, (UserCancelledError, KeyboardInterrupt))


def _to_questionary_choices(choices: Sequence[Any]) -> list[Any]:
    """Convert WizardChoice records to questionary choices.

    Anything that is not a WizardChoice (plain strings, questionary
    objects) is passed through unchanged.
    """
    converted: list[Any] = []
    for choice in choices:
        if not isinstance(choice, WizardChoice):
            converted.append(choice)
            continue
        if choice.separator:
            converted.append(questionary.Separator(choice.name))
            continue
        disabled = choice.disabled
        if disabled is True:
            disabled = "unavailable"
        converted.append(
            questionary.Choice(
                title=choice.name,
                value=choice.value,
                disabled=disabled or None,
                checked=choice.checked,
                description=choice.description,
            )
        )
    return converted


async def _ask(question: questionary.Question) -> Any:
    try:
        return await question.unsafe_ask_async()
    except KeyboardInterrupt as exc:
        log.info("prompt_cancelled")
        raise UserCancelledError() from exc


async def select(message: str, choices: Sequence[Any], default: Any = None) -> Any:
    """Ask for exactly one of ``choices`` and return its value."""
    question = questionary.select(
        message,
        choices=_to_questionary_choices(choices),
        default=default,
    )
    return await _ask(question)


async def checkbox(message: str, choices: Sequence[Any]) -> list[Any]:
    """Ask for any number of ``choices`` and return the checked values."""
    question = questionary.checkbox(message, choices=_to_questionary_choices(choices))
    answer = await _ask(question)
    return list(answer or [])


async def confirm(message: str, default: bool = True) -> bool:
    answer = await _ask(questionary.confirm(message, default=default))
    return bool(answer)


async def text(
    message: str,
    default: str = "",
    validate: Callable[[str], bool | str] | None = None,
) -> str:
    """Ask for free text. ``validate`` follows questionary's contract."""
    kwargs: dict[str, Any] = {"default": default or ""}
    if validate is not None:
        kwargs["validate"] = validate
    answer = await _ask(questionary.text(message, **kwargs))
    return answer or ""


PROMPT_KINDS: dict[str, Callable[..., Awaitable[Any]]] = {
    "select": select,
    "checkbox": checkbox,
    "confirm": confirm,
    "input": text,
}


async def ask(kind: str, message: str, **kwargs: Any) -> Any:
    """Dispatch to the prompt for ``kind`` (select, checkbox, confirm, input).

    Raises:
        ValueError: If ``kind`` is not a known prompt kind.
        UserCancelledError: If the user aborts the prompt.
    """
    prompt = PROMPT_KINDS.get(kind)
    if prompt is None:
        raise ValueError(f"Unknown prompt kind '{kind}' (expected one of {sorted(PROMPT_KINDS)})")
    return await prompt(message, **kwargs)


async def with_cancellation(
    fn: Callable[[], Awaitable[T]],
    on_cancel: Callable[[], None] | None = None,
    exit_on_cancel: bool = True,
) -> T | None:
    """Run ``fn`` and handle a user cancellation gracefully.

    Args:
        fn: Coroutine function to run.
        on_cancel: Called before exiting/returning when the user cancels.
        exit_on_cancel: Exit the process with status 0 on cancellation;
            otherwise return None.

    Returns:
        The result of ``fn``, or None if cancelled.
    """
    try:
        return await fn()
    except (UserCancelledError, KeyboardInterrupt):
        if on_cancel is not None:
            on_cancel()
        if exit_on_cancel:
            print("\n  Cancelled.\n")
            sys.exit(0)
        return None
