"""Dispatching interactions to registered commands and answering them."""

from __future__ import annotations

import json
import re
from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass, field
from http import HTTPStatus
from typing import Any

from nacl.exceptions import BadSignatureError
from nacl.signing import VerifyKey

from .core import (
    CommandDecl,
    ComponentResponse,
    ComponentResponseKind,
    Context,
    DeferredFuture,
    HandlerResult,
    InteractionError,
    MessageCommandDecl,
    Response,
    SlashCommandDecl,
    UserCommandDecl,
    empty_callback,
)
from .models import (
    ApplicationCommand,
    CallbackData,
    CallbackResponse,
    Command,
    CommandData,
    ComponentData,
    Interaction,
    InteractionResponseType,
    Message,
    MessageComponent,
    MessageFlags,
    Ping,
    parse_interaction,
)
from .slash import SlashCommand

ComponentHandler = Callable[[Context, Message, ComponentData], ComponentResponse]

_SIGNATURE_PATTERN = re.compile(r"[0-9a-fA-F]{128}")


@dataclass
class HttpResponse:
    """An HTTP response to send back for a webhook request."""

    status: int
    headers: dict[str, str] = field(default_factory=dict)
    body: bytes = b""


class RequestRejected(Exception):
    """Raised when a webhook request is invalid; carries the status to answer with."""

    def __init__(self, status: HTTPStatus) -> None:
        super().__init__(f"request rejected: {int(status)} {status.phrase}")
        self.status = status


def _header(headers: Mapping[str, Any], name: str) -> Any:
    return next((value for key, value in headers.items() if key.lower() == name), None)


def _as_bytes(value: str | bytes) -> bytes:
    return value.encode("utf-8") if isinstance(value, str) else bytes(value)


def process_request(
    method: str,
    headers: Mapping[str, Any],
    body: bytes,
    verify_key: VerifyKey,
) -> Interaction:
    """Check a webhook request's method and signature and return its interaction.

    Raises RequestRejected with the status to answer with if the request is invalid.
    """
    if method != "POST":
        raise RequestRejected(HTTPStatus.METHOD_NOT_ALLOWED)

    timestamp = _header(headers, "x-signature-timestamp")
    if timestamp is None:
        raise RequestRejected(HTTPStatus.BAD_REQUEST)
    signature_hex = _header(headers, "x-signature-ed25519")
    if signature_hex is None:
        raise RequestRejected(HTTPStatus.BAD_REQUEST)
    try:
        signature_text = _as_bytes(signature_hex).decode("ascii")
    except UnicodeDecodeError as exc:
        raise RequestRejected(HTTPStatus.BAD_REQUEST) from exc
    if not _SIGNATURE_PATTERN.fullmatch(signature_text):
        raise RequestRejected(HTTPStatus.BAD_REQUEST)
    signature = bytes.fromhex(signature_text)

    body = bytes(body)
    try:
        verify_key.verify(_as_bytes(timestamp) + body, signature)
    except BadSignatureError as exc:
        raise RequestRejected(HTTPStatus.UNAUTHORIZED) from exc

    try:
        return parse_interaction(json.loads(body))
    except ValueError as exc:
        raise RequestRejected(HTTPStatus.BAD_REQUEST) from exc


def _ephemeral_message(content: str) -> HandlerResult:
    return (
        CallbackResponse(
            InteractionResponseType.CHANNEL_MESSAGE_WITH_SOURCE,
            CallbackData(content=content, flags=MessageFlags.EPHEMERAL),
        ),
        None,
    )


def _run_command(decl: CommandDecl, context: Context, data: CommandData) -> HandlerResult:
    resolved = data.resolved
    match decl:
        case SlashCommandDecl():
            try:
                return decl.handler(context, data.options, resolved)
            except ValueError as err:
                return _ephemeral_message(f"Invalid option '{err}'")
        case MessageCommandDecl():
            # The targeted message is the only one in the resolved data.
            if resolved is not None and len(resolved.messages) == 1:
                return decl.handler(context, resolved.messages[0])
            return _ephemeral_message("Invalid message command recieved")
        case UserCommandDecl():
            if resolved is not None and len(resolved.users) == 1:
                return decl.handler(context, resolved.users[0])
            return _ephemeral_message("Invalid user command recieved")
    raise TypeError(f"unknown command declaration {decl!r}")


def _component_result(reply: ComponentResponse) -> HandlerResult:
    match reply.kind:
        case ComponentResponseKind.MESSAGE:
            return (
                CallbackResponse(InteractionResponseType.CHANNEL_MESSAGE_WITH_SOURCE, reply.data),
                None,
            )
        case ComponentResponseKind.DEFERRED_MESSAGE:
            return (
                CallbackResponse(
                    InteractionResponseType.DEFERRED_CHANNEL_MESSAGE_WITH_SOURCE,
                    empty_callback(),
                ),
                reply.future,
            )
        case ComponentResponseKind.UPDATE:
            return CallbackResponse(InteractionResponseType.UPDATE_MESSAGE, reply.data), None
        case ComponentResponseKind.DEFERRED_UPDATE:
            return CallbackResponse(InteractionResponseType.DEFERRED_UPDATE_MESSAGE), reply.future
    raise TypeError(f"unknown component response {reply!r}")


class Handler:
    """Answers interactions using the commands it was built with."""

    def __init__(
        self,
        http: Any,
        command_handlers: list[tuple[int, CommandDecl]],
        component_handler: ComponentHandler | None = None,
    ) -> None:
        self.http = http
        self._command_handlers = list(command_handlers)
        self._component_handler = component_handler

    @staticmethod
    def builder(http: Any) -> HandlerBuilder:
        return HandlerBuilder(http)

    def _context(self) -> Context:
        return Context(http=self.http)

    def handle(self, interaction: Interaction) -> Response:
        """Work out the response to an interaction, with any deferred follow-up."""
        match interaction:
            case Ping():
                return Response(
                    CallbackResponse(InteractionResponseType.PONG),
                    None,
                    interaction.id,
                    interaction.token,
                )
            case ApplicationCommand():
                data = interaction.data
                decl = next(
                    (decl for ident, decl in self._command_handlers if ident == data.id), None
                )
                if decl is None:
                    response, future = _ephemeral_message(f"Unknown command '/{data.name}'")
                else:
                    response, future = _run_command(decl, self._context(), data)
                return Response(response, future, interaction.id, interaction.token)
            case MessageComponent():
                if self._component_handler is None:
                    response, future = _ephemeral_message(
                        "Error: no message component handler registered"
                    )
                else:
                    reply = self._component_handler(
                        self._context(), interaction.message, interaction.data
                    )
                    response, future = _component_result(reply)
                return Response(response, future, interaction.id, interaction.token)
        raise TypeError(f"unsupported interaction {interaction!r}")

    async def run_deferred(self, future: DeferredFuture, token: str) -> None:
        """Wait for a deferred reply and replace the original response with it."""
        callback = await future
        await self.http.update_interaction_original(token, callback)

    async def handle_event(self, event: Interaction | Mapping[str, Any]) -> None:
        """Answer an interaction received from the gateway, sending the response over HTTP."""
        interaction = parse_interaction(event) if isinstance(event, Mapping) else event
        response = self.handle(interaction)
        await self.http.interaction_callback(response.id, response.token, response.response)
        if response.future is not None:
            await self.run_deferred(response.future, response.token)

    def handle_request(
        self,
        method: str,
        headers: Mapping[str, Any],
        body: bytes,
        verify_key: VerifyKey,
    ) -> tuple[HttpResponse, Awaitable[None] | None]:
        """Answer a webhook request; also return the deferred follow-up to run, if any."""
        try:
            interaction = process_request(method, headers, body, verify_key)
        except RequestRejected as rejected:
            return HttpResponse(int(rejected.status)), None

        response = self.handle(interaction)
        try:
            payload = json.dumps(response.response.to_dict()).encode("utf-8")
        except (TypeError, ValueError) as exc:
            raise InteractionError(f"cannot serialise the response: {exc}") from exc

        follow_up = (
            None
            if response.future is None
            else self.run_deferred(response.future, response.token)
        )
        return (
            HttpResponse(
                int(HTTPStatus.OK),
                {"Content-Type": "application/json"},
                payload,
            ),
            follow_up,
        )


def _as_decl(command: Any) -> CommandDecl:
    if isinstance(command, SlashCommand):
        return command.describe()
    if isinstance(command, (SlashCommandDecl, MessageCommandDecl, UserCommandDecl)):
        return command
    raise TypeError(f"not a command declaration: {command!r}")


def _pair(
    commands: list[tuple[str, CommandDecl]], registered: list[Command]
) -> list[tuple[int, CommandDecl]]:
    pairs = []
    for (name, decl), command in zip(commands, registered):
        if command.id is None:
            raise InteractionError(f"registered command '{name}' has no id")
        pairs.append((command.id, decl))
    return pairs


class HandlerBuilder:
    """Collects commands, then registers them and builds a Handler."""

    def __init__(self, http: Any) -> None:
        self._http = http
        self._global_commands: list[tuple[str, CommandDecl]] = []
        self._guild_commands: dict[int, list[tuple[str, CommandDecl]]] = {}
        self._component_handler: ComponentHandler | None = None

    def global_command(self, name: str, command: Any) -> HandlerBuilder:
        self._global_commands.append((name, _as_decl(command)))
        return self

    def guild_command(self, guild_id: int, name: str, command: Any) -> HandlerBuilder:
        self._guild_commands.setdefault(guild_id, []).append((name, _as_decl(command)))
        return self

    def component_handler(self, handler: ComponentHandler) -> HandlerBuilder:
        self._component_handler = handler
        return self

    async def build(self) -> Handler:
        """Register the commands with the service and return the Handler for them."""
        registered = await self._http.set_global_commands(
            [decl.description(name) for name, decl in self._global_commands]
        )
        command_handlers = _pair(self._global_commands, registered)

        for guild_id, commands in self._guild_commands.items():
            registered = await self._http.set_guild_commands(
                guild_id, [decl.description(name) for name, decl in commands]
            )
            command_handlers.extend(_pair(commands, registered))

        return Handler(self._http, command_handlers, self._component_handler)