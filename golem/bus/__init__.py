"""Message bus module for decoupled plugin-to-wire communication."""

from golem.bus.events import OutboundMessage
from golem.bus.queue import MessageBus, PluginOutbox

__all__ = ["MessageBus", "OutboundMessage", "PluginOutbox"]
