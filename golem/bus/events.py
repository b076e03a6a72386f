"""Event types for the message bus."""

from dataclasses import dataclass

from golem.irc.message import Message


@dataclass(frozen=True)
class OutboundMessage:
    """A message on its way to the wire.

    ``origin`` is the name of the plugin that produced it. It is only used to
    keep the message out of that same plugin's observation callback.
    """

    origin: str
    message: Message
