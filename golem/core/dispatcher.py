"""The dispatcher: routes IRC traffic through the plugin pool."""

from __future__ import annotations

import asyncio
from collections.abc import Coroutine, Iterable
from enum import Enum
from typing import Any

from loguru import logger

from golem.bus.events import OutboundMessage
from golem.bus.queue import MessageBus, PluginOutbox
from golem.config.schema import GolemConfig
from golem.core.auth import authenticate
from golem.core.sender import ConnectionOwner
from golem.errors import (
    DispatchError,
    PluginDispatchError,
    PluginExitedError,
    PluginObservationError,
    PluginRunError,
    StreamEndedError,
)
from golem.irc.client import Connection, IrcClient
from golem.irc.message import Message
from golem.plugins.base import Plugin
from golem.plugins.registry import init_plugins
from golem.server import RouteSet, serve

DISPATCH_CONCURRENCY = 5
OBSERVE_CONCURRENCY = 5


class GolemState(str, Enum):
    constructed = "constructed"
    authenticated = "authenticated"
    running = "running"
    exited = "exited"
    fatal = "fatal"


async def _try_join(*coros: Coroutine[Any, Any, Any]) -> list[Any]:
    """Run coroutines concurrently. The first failure cancels the rest and is raised."""
    tasks = [asyncio.create_task(c) for c in coros]
    try:
        pending = set(tasks)
        while pending:
            done, pending = await asyncio.wait(pending, return_when=asyncio.FIRST_EXCEPTION)
            for task in done:
                if not task.cancelled() and task.exception() is not None:
                    raise task.exception()
        return [task.result() for task in tasks]
    finally:
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)


class Golem:
    """
    Owns the plugin list, the blacklist and the connection.

    Inbound messages are handled strictly one at a time: every plugin sees
    the message concurrently, and all their replies are sent before the next
    message is read. Every outbound message, whether a reply or something a
    plugin's background task emitted, is first shown to the other plugins and
    then written once through the single connection owner.
    """

    def __init__(
        self,
        connection: Connection,
        plugins: Iterable[Plugin],
        blacklisted_users: Iterable[str] = (),
        sasl_password: str | None = None,
        routes: RouteSet | None = None,
        bind_address: str = "127.0.0.1",
        bind_port: int = 8080,
        dispatch_concurrency: int = DISPATCH_CONCURRENCY,
        observe_concurrency: int = OBSERVE_CONCURRENCY,
    ):
        self.connection = connection
        self.sender = ConnectionOwner(connection)
        self.plugins: list[Plugin] = list(plugins)
        self.blacklisted_users = frozenset(blacklisted_users)
        self.sasl_password = sasl_password
        self.routes = routes
        self.bind_address = bind_address
        self.bind_port = bind_port
        self.dispatch_concurrency = dispatch_concurrency
        self.observe_concurrency = observe_concurrency
        self.bus = MessageBus()
        self.state = GolemState.constructed

    @classmethod
    async def from_config(
        cls,
        config: GolemConfig,
        connection: Connection | None = None,
    ) -> Golem:
        """Initialize the configured plugins, then connect to the IRC server."""
        plugins, routes = await init_plugins(config)
        logger.info("Loaded plugins: {}", ", ".join(p.name for p in plugins) or "none")

        if connection is None:
            client = IrcClient(config.irc)
            await client.connect()
            connection = client

        return cls(
            connection,
            plugins,
            blacklisted_users=config.blacklisted_users,
            sasl_password=config.sasl_password,
            routes=routes,
            bind_address=config.server_bind_address,
            bind_port=config.server_bind_port,
        )

    # ------------------------------------------------------------------
    # Run loop
    # ------------------------------------------------------------------

    async def run(self) -> None:
        """Authenticate, then run until something fatal happens.

        Never returns normally while the bot is healthy: the inbound stream
        ending, a plugin background task exiting, or an observation failure
        all propagate from here.
        """
        try:
            await authenticate(self.sender, self.sasl_password)
            self.state = GolemState.authenticated

            routes, self.routes = self.routes, None
            self.state = GolemState.running
            await _try_join(
                self.run_plugins(),
                self.recv_irc_messages(),
                self.run_server(routes),
            )
        except BaseException:
            self.state = GolemState.fatal
            raise
        finally:
            await self.sender.stop()

        self.state = GolemState.exited
        logger.error("golem exited")

    async def run_server(self, routes: RouteSet | None) -> None:
        await serve(routes, self.bind_address, self.bind_port)

    async def recv_irc_messages(self) -> None:
        async for message in self.connection.stream():
            try:
                await self.handle_inbound(message)
            except DispatchError as e:
                for failure in e.failures:
                    logger.opt(exception=failure.cause).error(
                        "in_message error from plugin {} for: {}", failure.name, message
                    )
        raise StreamEndedError("IRC receiving stream exited")

    # ------------------------------------------------------------------
    # Inbound
    # ------------------------------------------------------------------

    async def handle_inbound(self, message: Message) -> list[OutboundMessage]:
        """Dispatch one inbound message and send every reply. Returns the replies."""
        replies = [r for r in await self.plugins_in_messages(message) if r is not None]
        for reply in replies:
            await self.outbound_message(reply)
        return replies

    def is_blacklisted(self, plugin: Plugin, message: Message) -> bool:
        source = message.source_nickname
        return (
            source is not None
            and plugin.ignore_blacklisted_users
            and source in self.blacklisted_users
        )

    async def plugins_in_messages(self, message: Message) -> list[OutboundMessage | None]:
        """
        Show ``message`` to every plugin and collect their replies.

        Returns one slot per plugin, in plugin order. Only PRIVMSG reaches the
        plugins; any other command yields all-None without calling them.

        Raises:
            DispatchError: once every plugin is done, if any of them failed.
        """
        if not message.is_privmsg:
            return [None] * len(self.plugins)

        semaphore = asyncio.Semaphore(self.dispatch_concurrency)

        async def _dispatch(plugin: Plugin) -> OutboundMessage | None:
            if self.is_blacklisted(plugin, message):
                logger.debug(
                    "Message from blacklisted user: {}, discarding for {}",
                    message.source_nickname,
                    plugin.name,
                )
                return None
            async with semaphore:
                try:
                    reply = await plugin.in_message(message)
                except Exception as e:
                    raise PluginDispatchError(plugin.name, e) from e
            if reply is None:
                return None
            return OutboundMessage(plugin.name, reply)

        # One task per plugin: each result is isolated in its own future
        results = await asyncio.gather(
            *(_dispatch(p) for p in self.plugins), return_exceptions=True
        )

        replies: list[OutboundMessage | None] = []
        failures: list[PluginDispatchError] = []
        for result in results:
            if isinstance(result, PluginDispatchError):
                failures.append(result)
                replies.append(None)
            elif isinstance(result, BaseException):
                raise result
            else:
                replies.append(result)

        if failures:
            raise DispatchError(failures, replies)
        return replies

    # ------------------------------------------------------------------
    # Outbound
    # ------------------------------------------------------------------

    async def outbound_message(self, outbound: OutboundMessage) -> None:
        """Let every other plugin observe ``outbound``, then send it once.

        An observation failure aborts the step before anything is sent.
        """
        semaphore = asyncio.Semaphore(self.observe_concurrency)

        async def _observe(plugin: Plugin) -> None:
            async with semaphore:
                try:
                    await plugin.out_message(outbound.message)
                except Exception as e:
                    raise PluginObservationError(plugin.name) from e

        # TODO: isolate observation failures instead of tearing down the run
        await _try_join(*(_observe(p) for p in self.plugins if p.name != outbound.origin))
        await self.sender.send(outbound.message)

    # ------------------------------------------------------------------
    # Background tasks
    # ------------------------------------------------------------------

    async def _run_plugin(self, plugin: Plugin) -> None:
        outbox = PluginOutbox(plugin.name)

        async def _background() -> None:
            try:
                await plugin.run(outbox)
            except Exception as e:
                raise PluginRunError(plugin.name) from e
            raise PluginExitedError(plugin.name)

        await _try_join(_background(), self.bus.forward(outbox))

    async def _process_outbound(self) -> None:
        while True:
            outbound = await self.bus.consume_outbound()
            await self.outbound_message(outbound)

    async def run_plugins(self) -> None:
        """Run every plugin's background task and send what they emit.

        Only returns by raising: any background task ending is fatal.
        """
        await _try_join(
            *(self._run_plugin(p) for p in self.plugins),
            self._process_outbound(),
        )
