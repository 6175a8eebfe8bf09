"""Command declarations, responses and the context handed to handlers."""

from __future__ import annotations

import copy
import enum
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Any

from .models import (
    CallbackData,
    CallbackResponse,
    Command,
    CommandDataOption,
    CommandOption,
    CommandType,
    InteractionResponseType,
    Message,
    MessageFlags,
    Resolved,
    User,
)
from .options import Reply

DeferredFuture = Awaitable[CallbackData]
HandlerResult = tuple[CallbackResponse, DeferredFuture | None]


@dataclass(frozen=True)
class Context:
    """What a command handler gets besides its arguments."""

    http: Any


class InteractionError(Exception):
    """Raised when an interaction cannot be registered, answered or followed up."""


class ComponentResponseKind(enum.Enum):
    MESSAGE = "message"
    DEFERRED_MESSAGE = "deferred_message"
    UPDATE = "update"
    DEFERRED_UPDATE = "deferred_update"


@dataclass
class ComponentResponse:
    """The reply of a message component handler."""

    kind: ComponentResponseKind
    data: CallbackData | None = None
    future: DeferredFuture | None = None

    @classmethod
    def message(cls, data: CallbackData) -> ComponentResponse:
        return cls(ComponentResponseKind.MESSAGE, data=data)

    @classmethod
    def deferred_message(cls, future: DeferredFuture) -> ComponentResponse:
        return cls(ComponentResponseKind.DEFERRED_MESSAGE, future=future)

    @classmethod
    def update(cls, data: CallbackData) -> ComponentResponse:
        return cls(ComponentResponseKind.UPDATE, data=data)

    @classmethod
    def deferred_update(cls, future: DeferredFuture) -> ComponentResponse:
        return cls(ComponentResponseKind.DEFERRED_UPDATE, future=future)


@dataclass
class Response:
    """The answer to one interaction."""

    response: CallbackResponse
    future: DeferredFuture | None
    id: int
    token: str


def empty_callback() -> CallbackData:
    return CallbackData()


SlashHandler = Callable[[Context, list[CommandDataOption], Resolved | None], HandlerResult]
MessageHandler = Callable[[Context, Message], HandlerResult]
UserHandler = Callable[[Context, User], HandlerResult]


@dataclass
class SlashCommandDecl:
    """A chat-input command.

    The handler raises ValueError, with the option name as its message,
    when an option is unknown or invalid.
    """

    summary: str
    handler: SlashHandler
    options: list[CommandOption] = field(default_factory=list)

    def description(self, name: str) -> Command:
        return Command(
            name=name,
            description=self.summary,
            kind=CommandType.CHAT_INPUT,
            options=copy.deepcopy(self.options),
        )


@dataclass
class MessageCommandDecl:
    """A command run from a message's context menu."""

    handler: MessageHandler

    def description(self, name: str) -> Command:
        return Command(name=name, description="", kind=CommandType.MESSAGE)


@dataclass
class UserCommandDecl:
    """A command run from a user's context menu."""

    handler: UserHandler

    def description(self, name: str) -> Command:
        return Command(name=name, description="", kind=CommandType.USER)


CommandDecl = SlashCommandDecl | MessageCommandDecl | UserCommandDecl


def _reply_handler(func: Callable[[Context, Any], Any]) -> Callable[[Context, Any], HandlerResult]:
    def handler(context: Context, target: Any) -> HandlerResult:
        reply = Reply.from_value(func(context, target))
        if reply.future is None:
            return (
                CallbackResponse(InteractionResponseType.CHANNEL_MESSAGE_WITH_SOURCE, reply.data),
                None,
            )
        flags = MessageFlags.EPHEMERAL if reply.ephemeral else MessageFlags(0)
        return (
            CallbackResponse(
                InteractionResponseType.DEFERRED_CHANNEL_MESSAGE_WITH_SOURCE,
                CallbackData(flags=flags),
            ),
            reply.future,
        )

    return handler


def message_command(func: Callable[[Context, Message], Any]) -> MessageCommandDecl:
    """Declare a message command from a function returning a string, data, Reply or awaitable."""
    return MessageCommandDecl(handler=_reply_handler(func))


def user_command(func: Callable[[Context, User], Any]) -> UserCommandDecl:
    """Declare a user command from a function returning a string, data, Reply or awaitable."""
    return UserCommandDecl(handler=_reply_handler(func))