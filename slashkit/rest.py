"""A small asynchronous client for the chat service's REST API."""

from __future__ import annotations

import json
from collections.abc import Iterable
from typing import Any
from urllib.parse import quote

import aiohttp

from .core import InteractionError
from .models import CallbackData, CallbackResponse, Command, Message


class HttpError(InteractionError):
    """Raised when a request fails or the service answers with an error status."""

    def __init__(self, status: int | None, body: str) -> None:
        if status is None:
            message = f"request failed: {body}"
        else:
            message = f"request failed with status {status}: {body}"
        super().__init__(message)
        self.status = status
        self.body = body


class Client:
    """Sends requests to the REST API, authorised with a bot token."""

    def __init__(
        self,
        token: str,
        *,
        base_url: str,
        session: aiohttp.ClientSession | None = None,
    ) -> None:
        self._token = token
        self._base_url = base_url.rstrip("/")
        self._session = session
        self._owns_session = session is None
        self._application_id: int | None = None

    @property
    def application_id(self) -> int | None:
        return self._application_id

    def set_application_id(self, application_id: int) -> None:
        self._application_id = int(application_id)

    def _require_application_id(self) -> int:
        if self._application_id is None:
            raise InteractionError("the application id has not been set")
        return self._application_id

    async def _request(
        self,
        method: str,
        path: str,
        payload: Any = None,
        *,
        authorize: bool = True,
    ) -> Any:
        if self._session is None:
            self._session = aiohttp.ClientSession()
        headers = {"Authorization": f"Bot {self._token}"} if authorize else {}
        try:
            async with self._session.request(
                method, self._base_url + path, json=payload, headers=headers
            ) as response:
                text = await response.text()
                status = response.status
        except aiohttp.ClientError as exc:
            raise HttpError(None, str(exc)) from exc
        if status >= 400:
            raise HttpError(status, text)
        if not text:
            return None
        try:
            return json.loads(text)
        except ValueError as exc:
            raise HttpError(status, text) from exc

    async def set_global_commands(self, commands: Iterable[Command]) -> list[Command]:
        """Replace all global commands; return them as registered."""
        application_id = self._require_application_id()
        payload = await self._request(
            "PUT",
            f"/applications/{application_id}/commands",
            [command.to_dict() for command in commands],
        )
        return [Command.from_dict(item) for item in payload or []]

    async def set_guild_commands(
        self, guild_id: int, commands: Iterable[Command]
    ) -> list[Command]:
        """Replace all commands of one guild; return them as registered."""
        application_id = self._require_application_id()
        payload = await self._request(
            "PUT",
            f"/applications/{application_id}/guilds/{guild_id}/commands",
            [command.to_dict() for command in commands],
        )
        return [Command.from_dict(item) for item in payload or []]

    async def interaction_callback(
        self, interaction_id: int, token: str, response: CallbackResponse
    ) -> None:
        """Send the initial response to an interaction."""
        await self._request(
            "POST",
            f"/interactions/{interaction_id}/{token}/callback",
            response.to_dict(),
            authorize=False,
        )

    async def update_interaction_original(
        self, token: str, data: CallbackData
    ) -> Message | None:
        """Replace the original response of an interaction with new contents."""
        application_id = self._require_application_id()
        body: dict[str, Any] = {"content": data.content, "embeds": list(data.embeds)}
        if data.allowed_mentions is not None:
            body["allowed_mentions"] = data.allowed_mentions
        payload = await self._request(
            "PATCH",
            f"/webhooks/{application_id}/{token}/messages/@original",
            body,
            authorize=False,
        )
        return None if payload is None else Message.from_dict(payload)

    async def create_reaction(self, channel_id: int, message_id: int, emoji: str) -> None:
        """React to a message with a unicode emoji or a custom one given as name:id."""
        encoded = quote(emoji, safe=":")
        await self._request(
            "PUT",
            f"/channels/{channel_id}/messages/{message_id}/reactions/{encoded}/@me",
        )

    async def close(self) -> None:
        """Close the underlying session if this client opened it."""
        if self._session is not None and self._owns_session:
            await self._session.close()
        self._session = None

    async def __aenter__(self) -> Client:
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()