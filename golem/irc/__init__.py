"""IRC protocol layer: message model and a minimal asyncio connection."""

from golem.irc.client import Connection, IrcClient, IrcConnectionError
from golem.irc.message import Message, MessageParseError, notice, privmsg

__all__ = [
    "Connection",
    "IrcClient",
    "IrcConnectionError",
    "Message",
    "MessageParseError",
    "notice",
    "privmsg",
]
