import contextlib
import json
from dataclasses import dataclass
from typing import Any

import pytest
from aiohttp import web
from aiohttp.test_utils import TestServer

from slashkit.core import InteractionError
from slashkit.models import (
    CallbackData,
    CallbackResponse,
    Command,
    CommandOption,
    InteractionResponseType,
    OptionType,
)
from slashkit.rest import Client, HttpError

APP_ID = 7


@dataclass
class Recorded:
    method: str
    path: str
    headers: dict[str, str]
    body: Any


class FakeApi:
    def __init__(self, status: int = 204, payload: Any = None) -> None:
        self.status = status
        self.payload = payload
        self.requests: list[Recorded] = []

    async def handle(self, request: web.Request) -> web.Response:
        raw = await request.read()
        self.requests.append(
            Recorded(
                request.method,
                request.path,
                {key.lower(): value for key, value in request.headers.items()},
                json.loads(raw) if raw else None,
            )
        )
        if self.payload is None:
            return web.Response(status=self.status)
        return web.json_response(self.payload, status=self.status)


@contextlib.asynccontextmanager
async def running(api: FakeApi):
    app = web.Application()
    app.router.add_route("*", "/{tail:.*}", api.handle)
    server = TestServer(app)
    await server.start_server()
    client = Client("token", base_url=str(server.make_url("/api")))
    client.set_application_id(APP_ID)
    try:
        yield client
    finally:
        await client.close()
        await server.close()


def sample_commands() -> list[Command]:
    return [
        Command(
            name="say",
            description="Repeats text",
            options=[CommandOption(OptionType.STRING, "text", "The text")],
        ),
        Command(name="Echo", description=""),
    ]


@pytest.mark.asyncio
async def test_commands_need_application_id():
    client = Client("token", base_url="http://localhost/api")
    with pytest.raises(InteractionError):
        await client.set_global_commands(sample_commands())
    with pytest.raises(InteractionError):
        await client.update_interaction_original("token", CallbackData(content="x"))


@pytest.mark.asyncio
async def test_set_global_commands_round_trip():
    commands = sample_commands()
    registered = [
        dict(command.to_dict(), id=str(index + 1)) for index, command in enumerate(commands)
    ]
    api = FakeApi(status=200, payload=registered)
    async with running(api) as client:
        result = await client.set_global_commands(commands)

    (request,) = api.requests
    assert request.method == "PUT"
    assert request.path == f"/api/applications/{APP_ID}/commands"
    assert request.headers["authorization"] == "Bot token"
    assert request.body == [command.to_dict() for command in commands]
    assert [command.name for command in result] == ["say", "Echo"]
    assert [command.id for command in result] == [1, 2]
    assert result[0].options == commands[0].options


@pytest.mark.asyncio
async def test_set_guild_commands_uses_guild_path():
    api = FakeApi(status=200, payload=[])
    async with running(api) as client:
        result = await client.set_guild_commands(42, sample_commands())

    assert result == []
    assert api.requests[0].path == f"/api/applications/{APP_ID}/guilds/42/commands"


@pytest.mark.asyncio
async def test_interaction_callback_sends_response():
    api = FakeApi()
    response = CallbackResponse(
        InteractionResponseType.CHANNEL_MESSAGE_WITH_SOURCE, CallbackData(content="hi")
    )
    async with running(api) as client:
        await client.interaction_callback(5, "token", response)

    (request,) = api.requests
    assert request.method == "POST"
    assert request.path == "/api/interactions/5/token/callback"
    assert request.body == response.to_dict()
    assert "authorization" not in request.headers


@pytest.mark.asyncio
async def test_update_original_sends_content_and_embeds():
    api = FakeApi()
    data = CallbackData(content="done", allowed_mentions={"parse": []})
    async with running(api) as client:
        result = await client.update_interaction_original("token", data)

    (request,) = api.requests
    assert result is None
    assert request.method == "PATCH"
    assert request.path.endswith("/token/messages/@original")
    assert request.body == {
        "content": "done",
        "embeds": [],
        "allowed_mentions": {"parse": []},
    }


@pytest.mark.asyncio
async def test_create_reaction_encodes_emoji():
    api = FakeApi()
    async with running(api) as client:
        await client.create_reaction(1, 2, "😃")

    (request,) = api.requests
    assert request.method == "PUT"
    assert request.path == "/api/channels/1/messages/2/reactions/😃/@me"


@pytest.mark.asyncio
async def test_error_status_raises_http_error():
    api = FakeApi(status=500, payload={"message": "broken"})
    async with running(api) as client:
        with pytest.raises(HttpError) as info:
            await client.set_global_commands([])

    assert info.value.status == 500
    assert "broken" in info.value.body
    assert isinstance(info.value, InteractionError)