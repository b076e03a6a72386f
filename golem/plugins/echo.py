"""Echo plugin: ``λecho <text>`` repeats the text back."""

from golem.config.schema import GolemConfig
from golem.irc.message import Message, privmsg
from golem.plugins.base import Initialised, Plugin
from golem.plugins.parsing import parse_command


class EchoPlugin(Plugin):
    name = "echo"

    @classmethod
    async def init(cls, config: GolemConfig) -> Initialised:
        return Initialised(plugin=cls())

    async def in_message(self, msg: Message) -> Message | None:
        cmd = parse_command(msg.text)
        if cmd is None or cmd.name != "echo" or not cmd.args:
            return None
        target = msg.response_target
        if target is None:
            return None
        return privmsg(target, cmd.address(cmd.args))
