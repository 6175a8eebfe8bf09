import pytest

from slashkit.core import Context, SlashCommandDecl
from slashkit.models import (
    CallbackData,
    CommandDataOption,
    CommandType,
    InteractionResponseType,
    OptionChoice,
    OptionType,
    Resolved,
    User,
)
from slashkit.options import Choices, choice_name
from slashkit.slash import (
    SlashCommand,
    SlashCommandDefinitionError,
    slash_command,
    validate_option_name,
)


class Colour(Choices):
    RED = 0
    GREEN = choice_name("light green")


def _echo_text(context: Context, some_text: str) -> str:
    return some_text


def _pick(context: Context, type_option: Colour, count: int | None) -> str:
    return f"{type_option.name}:{count}"


ECHO_ARGS = ("Echo text",)
ECHO_OPTIONS = {"some_text": "The text"}
PICK_OPTIONS = {"type_option": "A colour", "count": "How many"}
PICK_RENAME = {"type_option": "type"}

echo_text = slash_command("Echo text", options=ECHO_OPTIONS)(_echo_text)
pick = slash_command("Pick", options=PICK_OPTIONS, rename=PICK_RENAME)(_pick)


@slash_command("Who", options={"user": "A user"})
def who(context: Context, user: User) -> str:
    return user.mention()


@slash_command("Later", options={"text": "Text"})
async def later(context: Context, text: str) -> str:
    return text


@slash_command("Rich")
def rich(context: Context) -> CallbackData:
    return CallbackData(content="rich", tts=True)


CTX = Context(http=None)


def test_decorated_function_still_callable():
    assert isinstance(echo_text, SlashCommand)
    assert echo_text(CTX, "hello") == "hello"


def test_describe_declaration():
    decl = slash_command("Echo text", options=ECHO_OPTIONS)(_echo_text).describe()
    assert isinstance(decl, SlashCommandDecl)
    command = decl.description("echo")
    assert command.name == "echo"
    assert command.description == "Echo text"
    assert command.kind == CommandType.CHAT_INPUT
    assert [(o.name, o.kind, o.description, o.required) for o in command.options] == [
        ("some-text", OptionType.STRING, "The text", True)
    ]


def test_rename_and_optional_and_choices():
    options = pick.describe().options
    assert [o.name for o in options] == ["type", "count"]
    assert options[0].kind == OptionType.INTEGER
    assert options[0].choices == [OptionChoice("RED", 0), OptionChoice("light green", 1)]
    assert options[1].required is False


def test_handler_immediate_response():
    handler = echo_text.describe().handler
    option = CommandDataOption(name="some-text", kind=OptionType.STRING, value="hi")
    response, future = handler(CTX, [option], None)
    assert future is None
    assert response.kind == InteractionResponseType.CHANNEL_MESSAGE_WITH_SOURCE
    assert response.data == CallbackData(content="hi")


def test_handler_with_choices_and_missing_optional():
    handler = pick.describe().handler
    option = CommandDataOption(name="type", kind=OptionType.INTEGER, value=1)
    response, _ = handler(CTX, [option], None)
    assert response.data.content == "GREEN:None"


def test_handler_resolves_user():
    handler = who.describe().handler
    user = User(id=5, name="ann")
    option = CommandDataOption(name="user", kind=OptionType.USER, value="5")
    response, _ = handler(CTX, [option], Resolved(users=[user]))
    assert response.data.content == user.mention()


def test_handler_returns_callback_data_unchanged():
    response, future = rich.describe().handler(CTX, [], None)
    assert future is None
    assert response.data == CallbackData(content="rich", tts=True)


def test_unknown_option_raises_with_name():
    handler = slash_command("Echo text", options=ECHO_OPTIONS)(_echo_text).describe().handler
    option = CommandDataOption(name="bogus", kind=OptionType.STRING, value="x")
    with pytest.raises(ValueError) as excinfo:
        handler(CTX, [option], None)
    assert str(excinfo.value) == "bogus"


def test_wrong_type_raises_with_name():
    handler = slash_command("Echo text", options=ECHO_OPTIONS)(_echo_text).describe().handler
    option = CommandDataOption(name="some-text", kind=OptionType.INTEGER, value=3)
    with pytest.raises(ValueError) as excinfo:
        handler(CTX, [option], None)
    assert str(excinfo.value) == "some-text"


def test_missing_required_raises_with_name():
    handler = slash_command("Echo text", options=ECHO_OPTIONS)(_echo_text).describe().handler
    with pytest.raises(ValueError) as excinfo:
        handler(CTX, [], None)
    assert str(excinfo.value) == "some-text"


def test_unresolved_user_raises():
    handler = who.describe().handler
    option = CommandDataOption(name="user", kind=OptionType.USER, value="5")
    with pytest.raises(ValueError, match="^user$"):
        handler(CTX, [option], Resolved())


@pytest.mark.asyncio
async def test_async_command_is_deferred():
    handler = later.describe().handler
    option = CommandDataOption(name="text", kind=OptionType.STRING, value="soon")
    response, future = handler(CTX, [option], None)
    assert response.kind == InteractionResponseType.DEFERRED_CHANNEL_MESSAGE_WITH_SOURCE
    assert response.data == CallbackData()
    assert await future == CallbackData(content="soon")


def test_describe_returns_independent_options():
    command = slash_command("Pick", options=PICK_OPTIONS, rename=PICK_RENAME)(_pick)
    first = command.describe()
    first.options[0].name = "changed"
    assert command.describe().options[0].name == "type"


@pytest.mark.parametrize("name", ["abc", "kebab-case", "-"])
def test_validate_option_name_accepts(name):
    assert validate_option_name(name) == name


@pytest.mark.parametrize("name", ["Upper", "snake_case", "digit1", "sp ace"])
def test_validate_option_name_rejects(name):
    with pytest.raises(SlashCommandDefinitionError):
        validate_option_name(name)


def test_missing_option_description():
    def func(context: Context, value: int) -> str:
        return str(value)

    with pytest.raises(SlashCommandDefinitionError, match="Missing description for `value`"):
        slash_command("Desc")(func)


def test_missing_command_description():
    with pytest.raises(SlashCommandDefinitionError, match="Missing description"):
        slash_command(None)


def test_invalid_renamed_name():
    def func(context: Context, value: int) -> str:
        return str(value)

    with pytest.raises(SlashCommandDefinitionError):
        slash_command("Desc", options={"value": "v"}, rename={"value": "Bad"})(func)


def test_returning_nothing_rejected():
    def func(context: Context) -> None:
        return None

    with pytest.raises(SlashCommandDefinitionError, match="cannot return nothing"):
        slash_command("Desc")(func)


def test_var_args_rejected():
    def func(context: Context, *rest: str) -> str:
        return ""

    with pytest.raises(SlashCommandDefinitionError):
        slash_command("Desc", options={"rest": "r"})(func)


def test_unsupported_type_rejected():
    def func(context: Context, value: float) -> str:
        return str(value)

    with pytest.raises(SlashCommandDefinitionError):
        slash_command("Desc", options={"value": "v"})(func)


def test_missing_context_rejected():
    def func() -> str:
        return ""

    with pytest.raises(SlashCommandDefinitionError):
        slash_command("Desc")(func)