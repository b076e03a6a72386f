"""Plugin registry: resolves configured names and initializes plugins."""

from __future__ import annotations

import asyncio

from loguru import logger

from golem.config.schema import GolemConfig
from golem.errors import PluginInitError, UnknownPluginError
from golem.plugins.base import Initialised, Plugin
from golem.plugins.ctcp import CtcpPlugin
from golem.plugins.echo import EchoPlugin
from golem.plugins.joke import JokePlugin
from golem.plugins.url import UrlPlugin
from golem.plugins.webhook import WebhookPlugin
from golem.server import RouteSet, merge_routes

INIT_CONCURRENCY = 10

PLUGIN_FACTORIES: dict[str, type[Plugin]] = {
    cls.name: cls
    for cls in (CtcpPlugin, EchoPlugin, JokePlugin, UrlPlugin, WebhookPlugin)
}


def check_plugin_names(
    names: list[str],
    factories: dict[str, type[Plugin]] | None = None,
) -> None:
    """Fail fast on unknown or duplicated names, before anything is built."""
    factories = PLUGIN_FACTORIES if factories is None else factories
    seen: set[str] = set()
    for name in names:
        if name not in factories:
            raise UnknownPluginError(name)
        if name in seen:
            raise PluginInitError(name, f"Plugin {name} is configured more than once")
        seen.add(name)


async def init_plugin(
    config: GolemConfig,
    name: str,
    factories: dict[str, type[Plugin]] | None = None,
) -> Initialised:
    factories = PLUGIN_FACTORIES if factories is None else factories
    factory = factories.get(name)
    if factory is None:
        raise UnknownPluginError(name)

    try:
        init = await factory.init(config)
    except Exception as e:
        raise PluginInitError(name) from e

    if init.plugin.name != name:
        raise PluginInitError(
            name, f"Plugin registered as {name} reports name {init.plugin.name}"
        )
    logger.info("Plugin initialized: {}", name)
    return init


async def init_plugins(
    config: GolemConfig,
    names: list[str] | None = None,
    factories: dict[str, type[Plugin]] | None = None,
    concurrency: int = INIT_CONCURRENCY,
) -> tuple[list[Plugin], RouteSet | None]:
    """
    Initialize every configured plugin.

    Constructors run concurrently, at most ``concurrency`` at a time. The
    returned plugins keep the configured order regardless of completion
    order. Any failure cancels the remaining constructions and propagates.

    Returns:
        (plugins, merged routes or None when no plugin contributed any).
    """
    names = list(config.plugins if names is None else names)
    check_plugin_names(names, factories)

    semaphore = asyncio.Semaphore(concurrency)

    async def _init(name: str) -> Initialised:
        async with semaphore:
            return await init_plugin(config, name, factories)

    tasks = [asyncio.create_task(_init(name), name=f"init:{name}") for name in names]
    try:
        inits = await asyncio.gather(*tasks)
    except BaseException:
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        raise

    plugins = [init.plugin for init in inits]
    routes = merge_routes(
        (init.plugin.name, init.routes) for init in inits if init.routes is not None
    )
    return plugins, routes
