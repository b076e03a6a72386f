"""Async queues connecting plugin background tasks to the send pipeline."""

import asyncio

from golem.bus.events import OutboundMessage
from golem.irc.message import Message

OUTBOUND_CAPACITY = 10
OUTBOX_CAPACITY = 1


class PluginOutbox:
    """
    Single-item channel handed to a plugin's background task.

    The plugin only ever sees raw messages. The dispatcher tags them with the
    plugin name when forwarding them onto the shared bus.
    """

    def __init__(self, plugin_name: str):
        self.plugin_name = plugin_name
        self._queue: asyncio.Queue[Message] = asyncio.Queue(maxsize=OUTBOX_CAPACITY)

    async def emit(self, message: Message) -> None:
        """Queue a message for sending. Blocks while the previous one is pending."""
        await self._queue.put(message)

    async def receive(self) -> Message:
        return await self._queue.get()

    @property
    def pending(self) -> int:
        return self._queue.qsize()


class MessageBus:
    """Multi-producer queue of tagged outbound messages, one consumer."""

    def __init__(self, maxsize: int = OUTBOUND_CAPACITY):
        self.outbound: asyncio.Queue[OutboundMessage] = asyncio.Queue(maxsize=maxsize)

    async def publish_outbound(self, msg: OutboundMessage) -> None:
        await self.outbound.put(msg)

    async def consume_outbound(self) -> OutboundMessage:
        return await self.outbound.get()

    async def forward(self, outbox: PluginOutbox) -> None:
        """Tag everything emitted into ``outbox`` and publish it. Never returns."""
        while True:
            message = await outbox.receive()
            await self.publish_outbound(OutboundMessage(outbox.plugin_name, message))

    @property
    def outbound_size(self) -> int:
        return self.outbound.qsize()
