"""Conversion between Python types and command options."""

from __future__ import annotations

import enum
import inspect
import re
import types
import typing
from collections.abc import Awaitable
from dataclasses import dataclass, replace
from typing import Any

from .models import (
    CallbackData,
    CommandDataOption,
    CommandOption,
    InteractionChannel,
    OptionChoice,
    OptionType,
    Resolved,
    Role,
    User,
)

_I64_MIN = -(2**63)
_I64_MAX = 2**63 - 1
_ID_PATTERN = re.compile(r"\+?[0-9]+")


@dataclass(frozen=True)
class Mentionable:
    """Anything which can be mentioned: a user or a role."""

    target: User | Role


class _DisplayName:
    __slots__ = ("name",)

    def __init__(self, name: str) -> None:
        self.name = name


_AUTO = object()


def _following(value: int) -> int:
    """The discriminant after `value`, wrapping around like a 64-bit integer."""
    return _I64_MIN if value == _I64_MAX else value + 1


def choice_name(name: str) -> _DisplayName:
    """Give a `Choices` member a display name; its value follows the previous member."""
    return _DisplayName(name)


class Choices(int, enum.Enum):
    """Base for enums whose members are offered to users as choices.

    Members are plain integers, ``enum.auto()``, or ``choice_name("...")``.
    Values that are not given count up from the previous member, starting at 0.
    """

    @staticmethod
    def _generate_next_value_(name, start, count, last_values):
        value = None
        for raw in last_values:
            if isinstance(raw, int) and not isinstance(raw, bool):
                value = raw
            else:
                value = 0 if value is None else _following(value)
        return 0 if value is None else _following(value)

    def __new__(cls, raw: Any = _AUTO):
        display = None
        if isinstance(raw, _DisplayName):
            display = raw.name
            value = cls._next_discriminant()
        elif raw is _AUTO:
            value = cls._next_discriminant()
        elif isinstance(raw, int) and not isinstance(raw, bool):
            value = raw
        else:
            raise TypeError(f"invalid choice value {raw!r}")
        member = int.__new__(cls, value)
        member._value_ = value
        member._choice_display = display
        return member

    @classmethod
    def _next_discriminant(cls) -> int:
        members = list(cls.__members__.values())
        if not members:
            return 0
        return _following(members[-1]._value_)

    @classmethod
    def choices(cls) -> list[tuple[str, int]]:
        """The (display name, value) pairs of all members, in order."""
        return [
            (name if member._choice_display is None else member._choice_display, member._value_)
            for name, member in cls.__members__.items()
        ]

    @classmethod
    def from_discriminant(cls, discriminant: int) -> Choices | None:
        try:
            return cls(discriminant)
        except ValueError:
            return None


_BASIC_KINDS: dict[Any, OptionType] = {
    str: OptionType.STRING,
    int: OptionType.INTEGER,
    bool: OptionType.BOOLEAN,
    User: OptionType.USER,
    InteractionChannel: OptionType.CHANNEL,
    Role: OptionType.ROLE,
    Mentionable: OptionType.MENTIONABLE,
}


def _optional_inner(annotation: Any) -> Any | None:
    """Return T for Optional[T], or None if the annotation is not optional."""
    if typing.get_origin(annotation) not in (typing.Union, types.UnionType):
        return None
    args = typing.get_args(annotation)
    rest = [arg for arg in args if arg is not type(None)]
    if len(rest) == len(args):
        raise TypeError(f"unsupported option type {annotation!r}")
    if len(rest) != 1:
        raise TypeError(f"unsupported option type {annotation!r}")
    return rest[0]


def _is_choices(annotation: Any) -> bool:
    return isinstance(annotation, type) and issubclass(annotation, Choices)


def describe_option(annotation: Any, name: str, description: str) -> CommandOption:
    """Describe an option of type `annotation` with the given name and description."""
    inner = _optional_inner(annotation)
    if inner is not None:
        return replace(describe_option(inner, name, description), required=False)
    if _is_choices(annotation):
        return CommandOption(
            OptionType.INTEGER,
            name,
            description,
            choices=[OptionChoice(label, value) for label, value in annotation.choices()],
        )
    kind = _BASIC_KINDS.get(annotation)
    if kind is None:
        raise TypeError(f"unsupported option type {annotation!r}")
    return CommandOption(kind, name, description)


def _expect(data: CommandDataOption, kind: OptionType, python_type: type) -> Any:
    value = data.value
    wrong_type = not isinstance(value, python_type) or (
        python_type is int and isinstance(value, bool)
    )
    if data.kind != kind or wrong_type:
        raise ValueError(f"option {data.name!r} is not of type {kind.name}")
    return value


def _parse_id(data: CommandDataOption) -> int:
    value = data.value
    if not isinstance(value, str) or not _ID_PATTERN.fullmatch(value):
        raise ValueError(f"option {data.name!r} is not an id")
    ident = int(value)
    if ident >= 2**64:
        raise ValueError(f"option {data.name!r} is out of range")
    return ident


def _find(items, ident: int):
    return next((item for item in items if item.id == ident), None)


def from_option(
    annotation: Any, data: CommandDataOption | None, resolved: Resolved | None
) -> Any:
    """Parse a value of type `annotation` from an option; raise ValueError if it is invalid."""
    inner = _optional_inner(annotation)
    if inner is not None:
        return None if data is None else from_option(inner, data, resolved)
    if data is None:
        raise ValueError("required option is missing")

    if _is_choices(annotation):
        member = annotation.from_discriminant(_expect(data, OptionType.INTEGER, int))
        if member is None:
            raise ValueError(f"option {data.name!r} is not a valid choice")
        return member
    if annotation is str:
        return _expect(data, OptionType.STRING, str)
    if annotation is int:
        return _expect(data, OptionType.INTEGER, int)
    if annotation is bool:
        return _expect(data, OptionType.BOOLEAN, bool)

    if annotation in (User, InteractionChannel, Role, Mentionable):
        ident = _parse_id(data)
        found = None
        if resolved is not None:
            if annotation is User:
                found = _find(resolved.users, ident)
            elif annotation is InteractionChannel:
                found = _find(resolved.channels, ident)
            elif annotation is Role:
                found = _find(resolved.roles, ident)
            else:
                target = _find(resolved.users, ident) or _find(resolved.roles, ident)
                found = None if target is None else Mentionable(target)
        if found is None:
            raise ValueError(f"option {data.name!r} does not refer to a known entity")
        return found

    raise TypeError(f"unsupported option type {annotation!r}")


def into_callback_data(value: CallbackData | str) -> CallbackData:
    """Turn a command's return value into message contents."""
    match value:
        case CallbackData():
            return value
        case str():
            return CallbackData(content=value)
    raise TypeError(f"cannot respond with a value of type {type(value).__name__}")


async def _converted(awaitable: Awaitable[Any]) -> CallbackData:
    return into_callback_data(await awaitable)


@dataclass
class Reply:
    """A reply to an interaction: either immediate data or a deferred future."""

    data: CallbackData | None = None
    future: Awaitable[CallbackData] | None = None
    ephemeral: bool = False

    @classmethod
    def immediate(cls, value: CallbackData | str) -> Reply:
        return cls(data=into_callback_data(value))

    @classmethod
    def deferred(cls, awaitable: Awaitable[Any], ephemeral: bool = False) -> Reply:
        return cls(future=_converted(awaitable), ephemeral=ephemeral)

    @classmethod
    def from_value(cls, value: Any) -> Reply:
        if isinstance(value, cls):
            return value
        if inspect.isawaitable(value):
            return cls.deferred(value)
        return cls.immediate(value)