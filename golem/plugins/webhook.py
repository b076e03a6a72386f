"""Webhook plugin: relays HTTP POSTs to IRC channels.

``POST /webhook/{channel}`` with a text body queues the body, and the
plugin's background task posts it to the channel (``#`` is added when the
path omits it). When a token is configured, requests must carry it in the
``X-Golem-Token`` header.
"""

from __future__ import annotations

import asyncio
import hmac

from aiohttp import web
from loguru import logger

from golem.bus.queue import PluginOutbox
from golem.config.schema import GolemConfig, WebhookPluginConfig
from golem.irc.message import CHANNEL_PREFIXES, Message, privmsg
from golem.plugins.base import Initialised, Plugin

TOKEN_HEADER = "X-Golem-Token"
MAX_PENDING = 100
MAX_LINE_LENGTH = 400


def normalize_channel(raw: str) -> str:
    return raw if raw.startswith(CHANNEL_PREFIXES) else f"#{raw}"


def is_valid_channel(raw: str) -> bool:
    """A channel name must be one IRC parameter: no spaces, commas or control chars."""
    if not raw or raw.startswith(":"):
        return False
    return not any(c.isspace() or c == "," or ord(c) < 32 or ord(c) == 127 for c in raw)


class WebhookPlugin(Plugin):
    name = "webhook"

    def __init__(self, config: WebhookPluginConfig):
        self.config = config
        self.pending: asyncio.Queue[tuple[str, str]] = asyncio.Queue(maxsize=MAX_PENDING)

    @classmethod
    async def init(cls, config: GolemConfig) -> Initialised:
        plugin = cls(config.plugin_config.webhook)
        if plugin.config.token is None:
            logger.warning("Webhook plugin has no token, anyone can post to it.")
        return Initialised(plugin=plugin, routes=plugin.routes())

    def routes(self) -> web.RouteTableDef:
        routes = web.RouteTableDef()
        routes.post("/webhook/{channel}")(self.handle_webhook)
        return routes

    def _authorized(self, request: web.Request) -> bool:
        if self.config.token is None:
            return True
        given = request.headers.get(TOKEN_HEADER, "")
        return hmac.compare_digest(given.encode(), self.config.token.encode())

    async def handle_webhook(self, request: web.Request) -> web.Response:
        if not self._authorized(request):
            return web.Response(status=401, text="Bad token")

        raw_channel = request.match_info["channel"]
        if not is_valid_channel(raw_channel):
            logger.warning("Webhook rejected invalid channel {!r}", raw_channel)
            return web.Response(status=400, text="Invalid channel")

        text = (await request.text()).strip()
        if not text:
            return web.Response(status=400, text="Empty body")

        channel = normalize_channel(raw_channel)
        try:
            self.pending.put_nowait((channel, text))
        except asyncio.QueueFull:
            return web.Response(status=503, text="Too many pending messages")

        logger.debug("Webhook message queued for {}", channel)
        return web.Response(status=202, text="Queued")

    async def in_message(self, msg: Message) -> Message | None:
        return None

    async def run(self, outbox: PluginOutbox) -> None:
        while True:
            channel, text = await self.pending.get()
            for line in text.splitlines():
                line = line.strip()
                if line:
                    await outbox.emit(privmsg(channel, line[:MAX_LINE_LENGTH]))
