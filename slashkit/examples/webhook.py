"""Serve the example commands over signed webhook requests."""

from __future__ import annotations

import argparse
import asyncio
import logging
import os
import re
from collections.abc import Mapping, Sequence
from dataclasses import dataclass

from aiohttp import web
from nacl.exceptions import CryptoError
from nacl.signing import VerifyKey

from ..handler import Handler
from ..rest import Client
from .commands import build_handler

_log = logging.getLogger(__name__)

_PUBLIC_KEY_PATTERN = re.compile(r"[0-9a-fA-F]{64}")
_ID_PATTERN = re.compile(r"\+?[0-9]+")
_BOT_VARIABLE = ("TOKEN", "Missing discord bot token")


def create_app(handler: Handler, verify_key: VerifyKey) -> web.Application:
    """Build a web application answering every request with `handler`."""
    follow_ups: set[asyncio.Task[None]] = set()

    def finished(task: asyncio.Task[None]) -> None:
        follow_ups.discard(task)
        if not task.cancelled() and task.exception() is not None:
            _log.error("deferred response failed: %s", task.exception())

    async def serve(request: web.Request) -> web.Response:
        body = await request.read()
        response, follow_up = handler.handle_request(
            request.method, request.headers, body, verify_key
        )
        if follow_up is not None:
            task = asyncio.get_running_loop().create_task(follow_up)
            follow_ups.add(task)
            task.add_done_callback(finished)
        return web.Response(status=response.status, headers=response.headers, body=response.body)

    async def cancel_follow_ups(app: web.Application) -> None:
        pending = list(follow_ups)
        for task in pending:
            task.cancel()
        await asyncio.gather(*pending, return_exceptions=True)

    app = web.Application()
    app.router.add_route("*", "/{tail:.*}", serve)
    app.on_cleanup.append(cancel_follow_ups)
    return app


@dataclass(frozen=True)
class _Settings:
    token: str
    application_id: int
    guild_id: int
    verify_key: VerifyKey
    base_url: str


def _require(environ: Mapping[str, str], name: str, message: str) -> str:
    value = environ.get(name)
    if value is None:
        raise SystemExit(message)
    return value


def _parse_id(text: str, message: str) -> int:
    if not _ID_PATTERN.fullmatch(text) or int(text) >= 2**64:
        raise SystemExit(message)
    return int(text)


def _read_settings(environ: Mapping[str, str]) -> _Settings:
    bot = _require(environ, *_BOT_VARIABLE)
    application_id = _parse_id(
        _require(environ, "APP_ID", "Missing application ID"), "Invalid application ID"
    )
    guild_id = _parse_id(_require(environ, "GUILD_ID", "Missing guild ID"), "Invalid guild ID")
    public_key = _require(environ, "PUBLIC_KEY", "Missing discord public key")
    if not _PUBLIC_KEY_PATTERN.fullmatch(public_key):
        raise SystemExit("Public key was invalid hex")
    try:
        verify_key = VerifyKey(bytes.fromhex(public_key))
    except (CryptoError, ValueError, TypeError) as exc:
        raise SystemExit("Public key was invalid") from exc
    base_url = _require(environ, "API_BASE_URL", "Missing API base URL")
    return _Settings(bot, application_id, guild_id, verify_key, base_url)


async def _serve(settings: _Settings, host: str, port: int) -> None:
    http = Client(settings.token, base_url=settings.base_url)
    http.set_application_id(settings.application_id)
    try:
        handler = await build_handler(settings.guild_id, http)
        runner = web.AppRunner(create_app(handler, settings.verify_key))
        await runner.setup()
        try:
            await web.TCPSite(runner, host, port).start()
            await asyncio.Event().wait()
        finally:
            await runner.cleanup()
    finally:
        await http.close()


def main(argv: Sequence[str] | None = None) -> int:
    """Register the example commands and serve interactions until interrupted."""
    parser = argparse.ArgumentParser(description="Serve the example commands over webhooks.")
    parser.add_argument("--host", default="0.0.0.0", help="address to bind to")
    parser.add_argument("--port", type=int, default=8080, help="port to listen on")
    args = parser.parse_args(argv)

    settings = _read_settings(os.environ)
    try:
        asyncio.run(_serve(settings, args.host, args.port))
    except KeyboardInterrupt:
        pass
    return 0