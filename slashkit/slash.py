"""Declaring functions as slash commands."""

from __future__ import annotations

import copy
import functools
import inspect
from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass
from typing import Any

from .core import Context, HandlerResult, SlashCommandDecl, empty_callback
from .models import (
    CallbackData,
    CallbackResponse,
    CommandDataOption,
    CommandOption,
    InteractionResponseType,
    Resolved,
)
from .options import describe_option, from_option, into_callback_data

_NAME_CHARS = frozenset("abcdefghijklmnopqrstuvwxyz-")
_EXTRA_ARGUMENTS = inspect.CO_VARARGS | inspect.CO_VARKEYWORDS


class SlashCommandDefinitionError(Exception):
    """Raised when a function cannot be declared as a slash command."""


def validate_option_name(name: str) -> str:
    """Check that an option name is kebab-case and return it."""
    if any(char not in _NAME_CHARS for char in name):
        raise SlashCommandDefinitionError(
            f"Argument names must be kebab-case (or snake_case, when written as an identifier): {name!r}"
        )
    return name


@dataclass(frozen=True)
class _Parameter:
    ident: str
    name: str
    annotation: Any
    description: str


async def _deliver(awaitable: Awaitable[Any]) -> CallbackData:
    return into_callback_data(await awaitable)


class SlashCommand:
    """A function usable as a slash command; calling it calls the function."""

    def __init__(
        self,
        func: Callable[..., Any],
        summary: str,
        parameters: list[_Parameter],
    ) -> None:
        self._func = func
        self._summary = summary
        self._parameters = parameters
        self._is_async = inspect.iscoroutinefunction(func)
        self._known = {parameter.name for parameter in parameters}
        try:
            self._options: list[CommandOption] = [
                describe_option(p.annotation, p.name, p.description) for p in parameters
            ]
        except TypeError as exc:
            raise SlashCommandDefinitionError(str(exc)) from exc
        functools.update_wrapper(self, func)

    def describe(self) -> SlashCommandDecl:
        """Build the declaration to register with a handler."""
        return SlashCommandDecl(
            summary=self._summary,
            handler=self._handle,
            options=copy.deepcopy(self._options),
        )

    def __call__(self, *args: Any, **kwargs: Any) -> Any:
        return self._func(*args, **kwargs)

    def _handle(
        self,
        context: Context,
        options: list[CommandDataOption],
        resolved: Resolved | None,
    ) -> HandlerResult:
        given: dict[str, CommandDataOption] = {}
        for option in options:
            if option.name not in self._known:
                raise ValueError(option.name)
            given[option.name] = option

        values = []
        for parameter in self._parameters:
            try:
                values.append(
                    from_option(parameter.annotation, given.get(parameter.name), resolved)
                )
            except ValueError as exc:
                raise ValueError(parameter.name) from exc

        result = self._func(context, *values)
        if self._is_async:
            return (
                CallbackResponse(
                    InteractionResponseType.DEFERRED_CHANNEL_MESSAGE_WITH_SOURCE,
                    empty_callback(),
                ),
                _deliver(result),
            )
        return (
            CallbackResponse(
                InteractionResponseType.CHANNEL_MESSAGE_WITH_SOURCE,
                into_callback_data(result),
            ),
            None,
        )


def _collect_parameters(
    func: Callable[..., Any],
    descriptions: Mapping[str, str],
    renames: Mapping[str, str],
) -> list[_Parameter]:
    code = getattr(func, "__code__", None)
    if code is None:
        raise SlashCommandDefinitionError("Slash commands must be plain functions")

    annotations = dict(getattr(func, "__annotations__", None) or {})
    unresolved = [name for name, value in annotations.items() if isinstance(value, str)]
    if unresolved:
        raise SlashCommandDefinitionError(
            f"cannot resolve annotations: {', '.join(unresolved)}"
        )

    if "return" in annotations and annotations["return"] in (None, type(None)):
        raise SlashCommandDefinitionError(
            "Slash commands cannot return nothing.\n"
            "They must either return a `str` or a `CallbackData`."
        )

    if code.co_kwonlyargcount or code.co_flags & _EXTRA_ARGUMENTS:
        raise SlashCommandDefinitionError(
            "Only plain parameters are supported in slash commands"
        )

    names = code.co_varnames[: code.co_argcount]
    if not names:
        raise SlashCommandDefinitionError("Slash commands must take a context as first argument")

    descriptions = dict(descriptions)
    renames = dict(renames)
    collected = []
    for ident in names[1:]:
        if ident not in annotations:
            raise SlashCommandDefinitionError(f"Missing type annotation for `{ident}`")
        description = descriptions.pop(ident, None)
        if description is None:
            raise SlashCommandDefinitionError(f"Missing description for `{ident}`")
        name = renames.pop(ident, None)
        if name is None:
            name = ident.replace("_", "-")
        collected.append(
            _Parameter(
                ident=ident,
                name=validate_option_name(name),
                annotation=annotations[ident],
                description=description,
            )
        )
    return collected


def slash_command(
    description: str,
    options: Mapping[str, str] | None = None,
    rename: Mapping[str, str] | None = None,
) -> Callable[[Callable[..., Any]], SlashCommand]:
    """Declare a function as a slash command.

    `options` maps each parameter after the context to its description,
    `rename` maps parameters to option names other than their kebab-case form.
    """
    if description is None:
        raise SlashCommandDefinitionError("Missing description")

    def decorate(func: Callable[..., Any]) -> SlashCommand:
        parameters = _collect_parameters(func, options or {}, rename or {})
        return SlashCommand(func, description, parameters)

    return decorate