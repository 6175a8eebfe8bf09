import pytest

from slashkit.models import (
    ApplicationCommand,
    CallbackData,
    CallbackResponse,
    Command,
    CommandDataOption,
    CommandOption,
    CommandType,
    InteractionChannel,
    InteractionResponseType,
    Message,
    MessageComponent,
    MessageFlags,
    OptionChoice,
    OptionType,
    Ping,
    Resolved,
    Role,
    User,
    parse_interaction,
)


def test_empty_callback_data_serializes_only_embeds():
    assert CallbackData().to_dict() == {"embeds": []}


def test_callback_data_flags_are_integers():
    payload = CallbackData(content="hi", flags=MessageFlags.EPHEMERAL).to_dict()
    assert payload["content"] == "hi"
    assert payload["flags"] == int(MessageFlags.EPHEMERAL)
    assert "tts" not in payload


def test_callback_response_without_data():
    response = CallbackResponse(InteractionResponseType.PONG)
    assert response.to_dict() == {"type": int(InteractionResponseType.PONG)}


def test_callback_response_with_data():
    response = CallbackResponse(
        InteractionResponseType.UPDATE_MESSAGE, CallbackData(content="1")
    )
    payload = response.to_dict()
    assert payload["type"] == int(InteractionResponseType.UPDATE_MESSAGE)
    assert payload["data"]["content"] == "1"


def test_user_from_dict_and_mention():
    user = User.from_dict({"id": "42", "username": "bob", "discriminator": "0001"})
    assert user.id == 42
    assert user.name == "bob"
    assert user.mention() == "<@42>"


def test_role_mention():
    role = Role.from_dict({"id": "7", "name": "mods"})
    assert role.mention() == "<@&7>"


def test_channel_mention_contains_id():
    channel = InteractionChannel.from_dict({"id": "99", "name": "general", "type": 0})
    mention = channel.mention()
    assert mention.startswith("<#")
    assert mention.endswith("99>")


def test_resolved_from_mapping():
    resolved = Resolved.from_dict(
        {
            "users": {"1": {"id": "1", "username": "a"}, "2": {"id": "2", "username": "b"}},
            "roles": {"3": {"id": "3", "name": "r"}},
        }
    )
    assert [user.id for user in resolved.users] == [1, 2]
    assert [role.id for role in resolved.roles] == [3]
    assert resolved.channels == []


def test_message_from_dict_with_author():
    message = Message.from_dict(
        {
            "id": "10",
            "channel_id": "11",
            "content": "hello",
            "author": {"id": "12", "username": "carol"},
        }
    )
    assert message.channel_id == 11
    assert message.content == "hello"
    assert message.author == User(id=12, name="carol")


def test_command_data_option_from_dict():
    option = CommandDataOption.from_dict({"name": "bits", "type": 4, "value": 5})
    assert option.kind is OptionType.INTEGER
    assert option.value == 5


def test_command_option_choices_only_for_choice_kinds():
    string_option = CommandOption(OptionType.STRING, "s", "a string", required=False)
    bool_option = CommandOption(OptionType.BOOLEAN, "b", "a bool")
    assert string_option.to_dict()["choices"] == []
    assert string_option.to_dict()["required"] is False
    assert "choices" not in bool_option.to_dict()


def test_command_round_trip():
    command = Command(
        name="default",
        description="Gets the default value for a type",
        kind=CommandType.CHAT_INPUT,
        options=[
            CommandOption(
                OptionType.INTEGER,
                "type",
                "The type",
                choices=[OptionChoice("bool", 0), OptionChoice("char", 1)],
            )
        ],
        id=123,
        application_id=456,
    )
    assert Command.from_dict(command.to_dict()) == command


def test_command_to_dict_omits_missing_ids():
    payload = Command(name="Echo", description="", kind=CommandType.MESSAGE).to_dict()
    assert "id" not in payload
    assert payload["type"] == int(CommandType.MESSAGE)


def test_parse_ping():
    interaction = parse_interaction({"type": 1, "id": "5", "token": "token"})
    assert interaction == Ping(id=5, token="token")


def test_parse_application_command():
    interaction = parse_interaction(
        {
            "type": 2,
            "id": "5",
            "token": "token",
            "data": {
                "id": "6",
                "name": "frob",
                "options": [{"name": "bits", "type": 4, "value": 3}],
            },
        }
    )
    assert isinstance(interaction, ApplicationCommand)
    assert interaction.data.name == "frob"
    assert interaction.data.options[0].value == 3
    assert interaction.data.resolved is None


def test_parse_message_component():
    interaction = parse_interaction(
        {
            "type": 3,
            "id": "5",
            "token": "token",
            "message": {"id": "8", "channel_id": "9", "content": "0"},
            "data": {"custom_id": "inc_count", "component_type": 2},
        }
    )
    assert isinstance(interaction, MessageComponent)
    assert interaction.data.custom_id == "inc_count"
    assert interaction.message.content == "0"


@pytest.mark.parametrize(
    "payload",
    [
        {"type": 9, "id": "1", "token": "token"},
        {"type": 2, "id": "1", "token": "token"},
        {"id": "1"},
    ],
)
def test_parse_invalid_interaction(payload):
    with pytest.raises(ValueError):
        parse_interaction(payload)