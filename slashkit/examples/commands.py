"""Example commands covering every kind of option, reply and command."""

from __future__ import annotations

import asyncio
import enum
import os
import random
import re
import tomllib
from typing import Any

import aiohttp

from ..core import ComponentResponse, Context, InteractionError, message_command
from ..handler import Handler
from ..models import CallbackData, ComponentData, InteractionChannel, Message, Role, User
from ..options import Choices, Mentionable, choice_name, into_callback_data
from ..slash import slash_command

MANIFEST_URL_VARIABLE = "RUST_MANIFEST_URL"

_U64_MASK = 2**64 - 1
_I32_PATTERN = re.compile(r"[+-]?[0-9]+")
_ESCAPES = {"\t": "\\t", "\r": "\\r", "\n": "\\n", "\\": "\\\\", '"': '\\"', "\0": "\\0"}


def _debug_string(text: str) -> str:
    """Quote a string, escaping quotes, backslashes and unprintable characters."""
    parts = []
    for char in text:
        if char in _ESCAPES:
            parts.append(_ESCAPES[char])
        elif char.isprintable():
            parts.append(char)
        else:
            parts.append(f"\\u{{{ord(char):x}}}")
    return '"' + "".join(parts) + '"'


@slash_command("Frobs some bits", options={"bits": "The bits to frob"})
def frob(context: Context, bits: int) -> str:
    reversed_bits = int(f"{bits & _U64_MASK:064b}"[::-1], 2)
    if reversed_bits >= 2**63:
        reversed_bits -= 2**64
    return str(reversed_bits)


@slash_command("Generate a random number from 1 to 10")
def random_number(context: Context) -> str:
    return str(random.randint(1, 10))


@slash_command(
    "Takes all the args",
    options={
        "string": "A string",
        "int": "An int",
        "bool": "A bool",
        "user": "A user",
        "channel": "A channel",
        "role": "A role",
        "mentionable": "Something mentionable",
    },
)
def all_the_args(
    context: Context,
    string: str,
    int: int,
    bool: bool,
    user: User,
    channel: InteractionChannel,
    role: Role,
    mentionable: Mentionable,
) -> str:
    return (
        f"string: {_debug_string(string)}\n"
        f"int: {int},\n"
        f"bool: {'true' if bool else 'false'},\n"
        f"user: {user.mention()},\n"
        f"channel: {channel.mention()},\n"
        f"role: {role.mention()},\n"
        f"mentionable: {mentionable.target.mention()}"
    )


@slash_command("Prints 'Hello!' after 1 second.")
async def greet(context: Context) -> str:
    await asyncio.sleep(1)
    return "Hello!"


@slash_command("Gets the current Rust version")
async def rust_version(context: Context) -> str:
    url = os.environ.get(MANIFEST_URL_VARIABLE)
    if not url:
        return f"Network error: {MANIFEST_URL_VARIABLE} is not set"
    try:
        async with aiohttp.ClientSession() as session:
            async with session.get(url) as response:
                text = await response.text()
    except (aiohttp.ClientError, asyncio.TimeoutError) as exc:
        return f"Network error: {exc}"

    try:
        version: Any = tomllib.loads(text)["pkg"]["rust"]["version"]
    except tomllib.TOMLDecodeError as exc:
        return f"Error parsing TOML: {exc}"
    except KeyError as exc:
        return f"Error parsing TOML: missing field {exc}"
    except TypeError as exc:
        return f"Error parsing TOML: {exc}"
    if not isinstance(version, str):
        return "Error parsing TOML: invalid type for field `version`, expected a string"
    return version


class TypeName(Choices):
    """Types whose default value can be asked for."""

    Bool = choice_name("bool")
    Char = choice_name("char")
    Duration = enum.auto()
    I32 = choice_name("i32")
    Option = enum.auto()
    String = enum.auto()
    Vec = enum.auto()


_DEFAULTS = {
    TypeName.Bool: "false",
    TypeName.Char: "'\\0'",
    TypeName.Duration: "0ns",
    TypeName.I32: "0",
    TypeName.Option: "None",
    TypeName.String: '""',
    TypeName.Vec: "[]",
}


@slash_command(
    "Gets the default value for a type",
    options={"type_option": "The type to get the default value of"},
    rename={"type_option": "type"},
)
def default_value(context: Context, type_option: TypeName) -> str:
    return f"`{_DEFAULTS[type_option]}`"


@slash_command("Create a counter")
def counter(context: Context) -> CallbackData:
    button = {
        "type": 2,
        "custom_id": "inc_count",
        "disabled": False,
        "label": "+1",
        "style": 1,
    }
    return CallbackData(content="0", components=[{"type": 1, "components": [button]}])


def echo(context: Context, message: Message) -> str:
    """Reply with the content of the targeted message."""
    return message.content


async def add_smiley(context: Context, message: Message) -> CallbackData:
    """React to the targeted message with a smiley."""
    try:
        await context.http.create_reaction(message.channel_id, message.id, "😃")
        response = "Smiley added"
    except InteractionError as exc:
        response = f"Network error: {exc}"
    return CallbackData(content=response)


def _parse_count(text: str) -> int:
    if _I32_PATTERN.fullmatch(text):
        value = int(text)
        if -(2**31) <= value < 2**31:
            return value
    return 0


def handle_component(
    context: Context, message: Message, data: ComponentData
) -> ComponentResponse:
    """Increment the counter on its button, or complain about unknown components."""
    if data.custom_id == "inc_count":
        count = _parse_count(message.content) + 1
        return ComponentResponse.update(into_callback_data(str(count)))
    return ComponentResponse.message(
        into_callback_data(f"Unknown message component {data.custom_id}")
    )


async def build_handler(guild_id: int, http: Any) -> Handler:
    """Register the example commands in one guild and return their handler."""
    return await (
        Handler.builder(http)
        .guild_command(guild_id, "all-the-args", all_the_args)
        .guild_command(guild_id, "counter", counter)
        .guild_command(guild_id, "default", default_value)
        .guild_command(guild_id, "frob", frob)
        .guild_command(guild_id, "greet", greet)
        .guild_command(guild_id, "random", random_number)
        .guild_command(guild_id, "rust-version", rust_version)
        .guild_command(guild_id, "Echo", message_command(echo))
        .guild_command(guild_id, "Add Smiley", message_command(add_smiley))
        .component_handler(handle_component)
        .build()
    )