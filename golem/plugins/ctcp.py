"""CTCP plugin: answers VERSION, PING, TIME and SOURCE queries."""

from datetime import datetime, timezone

from golem import __version__
from golem.config.schema import GolemConfig
from golem.irc.message import Message, ctcp_reply
from golem.plugins.base import Initialised, Plugin

SOURCE_URL = "https://github.com/golem-irc/golem"


class CtcpPlugin(Plugin):
    """CTCP is client plumbing, blacklisted users still get answers."""

    name = "ctcp"
    ignore_blacklisted_users = False

    @classmethod
    async def init(cls, config: GolemConfig) -> Initialised:
        return Initialised(plugin=cls())

    async def in_message(self, msg: Message) -> Message | None:
        query = msg.ctcp
        nick = msg.source_nickname
        if query is None or nick is None:
            return None

        command, arg = query
        if command == "VERSION":
            return ctcp_reply(nick, "VERSION", f"golem {__version__}")
        if command == "PING":
            return ctcp_reply(nick, "PING", arg)
        if command == "TIME":
            now = datetime.now(timezone.utc).strftime("%a, %d %b %Y %H:%M:%S %z")
            return ctcp_reply(nick, "TIME", now)
        if command == "SOURCE":
            return ctcp_reply(nick, "SOURCE", SOURCE_URL)
        return None
