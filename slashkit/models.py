"""Data types exchanged with the chat service's interaction API."""

from __future__ import annotations

import enum
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any


def _optional_id(value: Any) -> int | None:
    return None if value is None else int(value)


def _entries(collection: Any) -> list[Any]:
    """Return the items of a resolved collection, given as a mapping or a list."""
    if collection is None:
        return []
    if isinstance(collection, Mapping):
        return list(collection.values())
    if isinstance(collection, Iterable):
        return list(collection)
    raise TypeError(f"expected a mapping or a list, got {type(collection).__name__}")


class MessageFlags(enum.IntFlag):
    """Flags that can be set on a message."""

    CROSSPOSTED = 1 << 0
    IS_CROSSPOST = 1 << 1
    SUPPRESS_EMBEDS = 1 << 2
    SOURCE_MESSAGE_DELETED = 1 << 3
    URGENT = 1 << 4
    HAS_THREAD = 1 << 5
    EPHEMERAL = 1 << 6
    LOADING = 1 << 7


@dataclass
class CallbackData:
    """The contents of a message sent in response to an interaction."""

    content: str | None = None
    embeds: list[dict[str, Any]] = field(default_factory=list)
    flags: MessageFlags | None = None
    tts: bool | None = None
    allowed_mentions: dict[str, Any] | None = None
    components: list[dict[str, Any]] | None = None

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"embeds": list(self.embeds)}
        if self.content is not None:
            payload["content"] = self.content
        if self.flags is not None:
            payload["flags"] = int(self.flags)
        if self.tts is not None:
            payload["tts"] = self.tts
        if self.allowed_mentions is not None:
            payload["allowed_mentions"] = self.allowed_mentions
        if self.components is not None:
            payload["components"] = list(self.components)
        return payload


class InteractionResponseType(enum.IntEnum):
    PONG = 1
    CHANNEL_MESSAGE_WITH_SOURCE = 4
    DEFERRED_CHANNEL_MESSAGE_WITH_SOURCE = 5
    DEFERRED_UPDATE_MESSAGE = 6
    UPDATE_MESSAGE = 7


@dataclass
class CallbackResponse:
    """A response to an interaction, as sent back to the service."""

    kind: InteractionResponseType
    data: CallbackData | None = None

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"type": int(self.kind)}
        if self.data is not None:
            payload["data"] = self.data.to_dict()
        return payload


@dataclass(frozen=True)
class User:
    id: int
    name: str
    discriminator: str = "0000"
    bot: bool = False

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> User:
        return cls(
            id=int(data["id"]),
            name=data.get("username", ""),
            discriminator=str(data.get("discriminator", "0000")),
            bot=bool(data.get("bot", False)),
        )

    def mention(self) -> str:
        return f"<@{self.id}>"


@dataclass(frozen=True)
class Role:
    id: int
    name: str
    color: int = 0
    position: int = 0
    permissions: int = 0

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Role:
        return cls(
            id=int(data["id"]),
            name=data.get("name", ""),
            color=int(data.get("color", 0)),
            position=int(data.get("position", 0)),
            permissions=int(data.get("permissions", 0)),
        )

    def mention(self) -> str:
        return f"<@&{self.id}>"


@dataclass(frozen=True)
class InteractionChannel:
    id: int
    name: str
    kind: int = 0
    permissions: int = 0

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> InteractionChannel:
        return cls(
            id=int(data["id"]),
            name=data.get("name", ""),
            kind=int(data.get("type", 0)),
            permissions=int(data.get("permissions", 0)),
        )

    def mention(self) -> str:
        return f"<#{self.id}>"


@dataclass
class Message:
    id: int
    channel_id: int
    content: str = ""
    author: User | None = None
    guild_id: int | None = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Message:
        author = data.get("author")
        return cls(
            id=int(data["id"]),
            channel_id=int(data["channel_id"]),
            content=data.get("content", ""),
            author=None if author is None else User.from_dict(author),
            guild_id=_optional_id(data.get("guild_id")),
        )


@dataclass
class Resolved:
    """Entities referenced by the options of a command."""

    users: list[User] = field(default_factory=list)
    roles: list[Role] = field(default_factory=list)
    channels: list[InteractionChannel] = field(default_factory=list)
    messages: list[Message] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Resolved:
        return cls(
            users=[User.from_dict(item) for item in _entries(data.get("users"))],
            roles=[Role.from_dict(item) for item in _entries(data.get("roles"))],
            channels=[InteractionChannel.from_dict(item) for item in _entries(data.get("channels"))],
            messages=[Message.from_dict(item) for item in _entries(data.get("messages"))],
        )


class OptionType(enum.IntEnum):
    SUB_COMMAND = 1
    SUB_COMMAND_GROUP = 2
    STRING = 3
    INTEGER = 4
    BOOLEAN = 5
    USER = 6
    CHANNEL = 7
    ROLE = 8
    MENTIONABLE = 9


@dataclass
class CommandDataOption:
    """An option value given by a user when invoking a command."""

    name: str
    kind: OptionType
    value: Any = None
    options: list[CommandDataOption] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> CommandDataOption:
        return cls(
            name=data["name"],
            kind=OptionType(data["type"]),
            value=data.get("value"),
            options=[cls.from_dict(item) for item in data.get("options") or []],
        )


class CommandType(enum.IntEnum):
    CHAT_INPUT = 1
    USER = 2
    MESSAGE = 3


@dataclass
class OptionChoice:
    name: str
    value: int

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name, "value": self.value}


_CHOICE_KINDS = frozenset({OptionType.STRING, OptionType.INTEGER})


@dataclass
class CommandOption:
    """The declaration of one option of a command."""

    kind: OptionType
    name: str
    description: str
    required: bool = True
    choices: list[OptionChoice] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "type": int(self.kind),
            "name": self.name,
            "description": self.description,
            "required": self.required,
        }
        if self.kind in _CHOICE_KINDS:
            payload["choices"] = [choice.to_dict() for choice in self.choices]
        return payload


def _command_option_from_dict(data: Mapping[str, Any]) -> CommandOption:
    return CommandOption(
        kind=OptionType(data["type"]),
        name=data["name"],
        description=data.get("description", ""),
        required=bool(data.get("required", False)),
        choices=[
            OptionChoice(name=item["name"], value=item["value"])
            for item in data.get("choices") or []
        ],
    )


@dataclass
class Command:
    """A command as registered with the service."""

    name: str
    description: str
    kind: CommandType = CommandType.CHAT_INPUT
    options: list[CommandOption] = field(default_factory=list)
    id: int | None = None
    application_id: int | None = None
    guild_id: int | None = None
    default_permission: bool | None = None

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "name": self.name,
            "description": self.description,
            "type": int(self.kind),
            "options": [option.to_dict() for option in self.options],
        }
        for key in ("id", "application_id", "guild_id"):
            value = getattr(self, key)
            if value is not None:
                payload[key] = str(value)
        if self.default_permission is not None:
            payload["default_permission"] = self.default_permission
        return payload

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Command:
        return cls(
            name=data["name"],
            description=data.get("description", ""),
            kind=CommandType(data.get("type", CommandType.CHAT_INPUT)),
            options=[_command_option_from_dict(item) for item in data.get("options") or []],
            id=_optional_id(data.get("id")),
            application_id=_optional_id(data.get("application_id")),
            guild_id=_optional_id(data.get("guild_id")),
            default_permission=data.get("default_permission"),
        )


@dataclass
class CommandData:
    """The payload of an application command interaction."""

    id: int
    name: str
    options: list[CommandDataOption] = field(default_factory=list)
    resolved: Resolved | None = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> CommandData:
        resolved = data.get("resolved")
        return cls(
            id=int(data["id"]),
            name=data["name"],
            options=[CommandDataOption.from_dict(item) for item in data.get("options") or []],
            resolved=None if resolved is None else Resolved.from_dict(resolved),
        )


@dataclass
class ComponentData:
    """The payload of a message component interaction."""

    custom_id: str
    component_type: int
    values: list[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> ComponentData:
        return cls(
            custom_id=data["custom_id"],
            component_type=int(data["component_type"]),
            values=list(data.get("values") or []),
        )


@dataclass
class Ping:
    id: int
    token: str


@dataclass
class ApplicationCommand:
    id: int
    token: str
    data: CommandData


@dataclass
class MessageComponent:
    id: int
    token: str
    message: Message
    data: ComponentData


Interaction = Ping | ApplicationCommand | MessageComponent


def parse_interaction(data: Mapping[str, Any]) -> Interaction:
    """Build an interaction from its JSON form; raise ValueError if it is malformed."""
    try:
        match data["type"]:
            case 1:
                return Ping(id=int(data["id"]), token=data["token"])
            case 2:
                return ApplicationCommand(
                    id=int(data["id"]),
                    token=data["token"],
                    data=CommandData.from_dict(data["data"]),
                )
            case 3:
                return MessageComponent(
                    id=int(data["id"]),
                    token=data["token"],
                    message=Message.from_dict(data["message"]),
                    data=ComponentData.from_dict(data["data"]),
                )
            case other:
                raise ValueError(f"unsupported interaction type {other!r}")
    except (KeyError, TypeError, AttributeError) as exc:
        raise ValueError(f"malformed interaction: {exc}") from exc