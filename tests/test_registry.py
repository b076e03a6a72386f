"""Tests for plugin registration and initialization."""

import asyncio

import pytest
from aiohttp import web

from golem.config.schema import GolemConfig
from golem.errors import PluginInitError, UnknownPluginError
from golem.plugins.base import Initialised, Plugin
from golem.plugins.registry import PLUGIN_FACTORIES, check_plugin_names, init_plugins


def make_factory(name, delay=0.0, error=None, routes=None, log=None):
    class Factory(Plugin):
        @classmethod
        async def init(cls, config):
            if log is not None:
                log.append(name)
            await asyncio.sleep(delay)
            if error is not None:
                raise error
            return Initialised(plugin=cls(), routes=routes)

        async def in_message(self, msg):
            return None

    Factory.name = name
    return Factory


def test_builtin_plugins_are_registered():
    assert set(PLUGIN_FACTORIES) == {"ctcp", "echo", "joke", "url", "webhook"}
    for name, cls in PLUGIN_FACTORIES.items():
        assert cls.name == name


def test_unknown_name_is_rejected():
    with pytest.raises(UnknownPluginError) as exc_info:
        check_plugin_names(["echo", "bogus"])
    assert exc_info.value.name == "bogus"


def test_duplicate_name_is_rejected():
    with pytest.raises(PluginInitError):
        check_plugin_names(["echo", "echo"])


@pytest.mark.asyncio
async def test_unknown_name_fails_before_any_construction():
    built = []
    factories = {"echo": make_factory("echo", log=built)}
    config = GolemConfig(plugins=["echo", "bogus"])

    with pytest.raises(UnknownPluginError):
        await init_plugins(config, factories=factories)

    assert built == []


@pytest.mark.asyncio
async def test_plugins_keep_configured_order():
    # Later plugins finish first
    names = [f"p{i}" for i in range(6)]
    factories = {
        name: make_factory(name, delay=0.01 * (len(names) - i))
        for i, name in enumerate(names)
    }
    config = GolemConfig(plugins=names)

    plugins, routes = await init_plugins(config, factories=factories)

    assert [p.name for p in plugins] == names
    assert routes is None


@pytest.mark.asyncio
async def test_construction_concurrency_is_capped():
    in_flight = 0
    peak = 0

    def counting(name):
        class Counting(Plugin):
            @classmethod
            async def init(cls, config):
                nonlocal in_flight, peak
                in_flight += 1
                peak = max(peak, in_flight)
                await asyncio.sleep(0.01)
                in_flight -= 1
                return Initialised(plugin=cls())

            async def in_message(self, msg):
                return None

        Counting.name = name
        return Counting

    names = [f"p{i}" for i in range(25)]
    factories = {name: counting(name) for name in names}

    await init_plugins(GolemConfig(plugins=names), factories=factories)

    assert peak == 10


@pytest.mark.asyncio
async def test_one_failure_aborts_startup():
    factories = {
        "good": make_factory("good", delay=0.05),
        "bad": make_factory("bad", error=OSError("no sub-config")),
    }
    config = GolemConfig(plugins=["good", "bad"])

    with pytest.raises(PluginInitError) as exc_info:
        await init_plugins(config, factories=factories)

    assert exc_info.value.name == "bad"
    assert "bad" in str(exc_info.value)
    assert isinstance(exc_info.value.__cause__, OSError)


@pytest.mark.asyncio
async def test_routes_are_merged():
    async def handler_a(request):
        return web.Response(text="a")

    async def handler_b(request):
        return web.Response(text="b")

    routes_a = web.RouteTableDef()
    routes_a.get("/a")(handler_a)
    routes_b = web.RouteTableDef()
    routes_b.get("/b")(handler_b)

    factories = {
        "a": make_factory("a", routes=routes_a),
        "b": make_factory("b", routes=routes_b),
        "c": make_factory("c"),
    }
    plugins, routes = await init_plugins(GolemConfig(plugins=["a", "b", "c"]), factories=factories)

    assert len(plugins) == 3
    assert sorted(r.path for r in routes) == ["/a", "/b"]


@pytest.mark.asyncio
async def test_builtin_plugins_initialize():
    config = GolemConfig(plugins=["echo", "ctcp", "url", "joke", "webhook"])

    plugins, routes = await init_plugins(config)

    assert [p.name for p in plugins] == config.plugins
    assert [r.path for r in routes] == ["/webhook/{channel}"]
