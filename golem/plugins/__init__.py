"""Plugins: the contract, the built-in plugins and the registry."""

from golem.plugins.base import Initialised, Plugin
from golem.plugins.registry import PLUGIN_FACTORIES, init_plugin, init_plugins

__all__ = ["Initialised", "Plugin", "PLUGIN_FACTORIES", "init_plugin", "init_plugins"]
