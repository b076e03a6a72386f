"""Joke plugin: ``λjoke [> nick]`` fetches a random joke."""

import httpx
from loguru import logger

from golem.config.schema import GolemConfig, JokePluginConfig
from golem.errors import PluginError
from golem.irc.message import Message, privmsg
from golem.plugins.base import Initialised, Plugin
from golem.plugins.parsing import parse_command


class JokePlugin(Plugin):
    name = "joke"

    def __init__(
        self,
        config: JokePluginConfig,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.config = config
        self._transport = transport

    @classmethod
    async def init(cls, config: GolemConfig) -> Initialised:
        return Initialised(plugin=cls(config.plugin_config.joke))

    async def in_message(self, msg: Message) -> Message | None:
        cmd = parse_command(msg.text)
        if cmd is None or cmd.name != "joke":
            return None
        target = msg.response_target
        if target is None:
            return None
        return privmsg(target, cmd.address(await self.fetch_joke()))

    async def fetch_joke(self) -> str:
        try:
            async with httpx.AsyncClient(
                timeout=httpx.Timeout(self.config.timeout),
                transport=self._transport,
            ) as client:
                resp = await client.get(
                    self.config.api_url,
                    headers={"Accept": "application/json", "User-Agent": "golem"},
                )
        except httpx.HTTPError as e:
            raise PluginError(f"Cannot GET {self.config.api_url}: {e}") from e

        if resp.status_code != 200:
            return f"Oops, wrong status code, got {resp.status_code}"

        try:
            data = resp.json()
        except ValueError as e:
            raise PluginError(f"Malformed joke response from {self.config.api_url}") from e
        joke = data.get("joke") if isinstance(data, dict) else None

        if not joke:
            logger.debug("Joke API answered without a joke: {}", resp.text[:200])
            return "No joke found, the joke is on you"
        return " ".join(joke.split())
