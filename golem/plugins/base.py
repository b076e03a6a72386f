"""Base class for golem plugins."""

from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import TYPE_CHECKING

from aiohttp import web

from golem.irc.message import Message

if TYPE_CHECKING:
    from golem.bus.queue import PluginOutbox
    from golem.config.schema import GolemConfig


@dataclass
class Initialised:
    """Result of a plugin's init: the live plugin and its optional HTTP routes."""

    plugin: Plugin
    routes: web.RouteTableDef | None = None


class Plugin(ABC):
    """
    Abstract base class for plugins.

    A plugin reacts to inbound IRC messages, may run a background task that
    emits messages on its own, and can observe what the other plugins send.
    Plugins own their state; the dispatcher never looks inside.
    """

    name: str = "base"
    # Withhold messages from blacklisted users from in_message
    ignore_blacklisted_users: bool = True

    @classmethod
    @abstractmethod
    async def init(cls, config: GolemConfig) -> Initialised:
        """Build the plugin. May do I/O (read its config section, open clients)."""
        pass

    @abstractmethod
    async def in_message(self, msg: Message) -> Message | None:
        """Handle one inbound PRIVMSG. Return at most one reply."""
        pass

    async def run(self, outbox: PluginOutbox) -> None:
        """Background task. Must run for the whole process lifetime."""
        await asyncio.Event().wait()

    async def out_message(self, msg: Message) -> None:
        """Observe a message another plugin is about to send."""
        return None

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.name}>"
