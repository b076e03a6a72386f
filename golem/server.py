"""HTTP surface: routes contributed by plugins, merged and served together."""

from __future__ import annotations

import asyncio
from collections.abc import Iterable

from aiohttp import web
from loguru import logger

from golem.errors import WebServerError

RouteSet = list[web.AbstractRouteDef]


def _route_key(route: web.AbstractRouteDef) -> tuple[str, str]:
    if isinstance(route, web.RouteDef):
        return route.method.upper(), route.path
    if isinstance(route, web.StaticDef):
        return "STATIC", route.prefix
    return type(route).__name__, repr(route)


def merge_routes(
    tables: Iterable[tuple[str, web.RouteTableDef | RouteSet]],
) -> RouteSet | None:
    """
    Merge per-plugin route tables into one route set.

    Tables are applied in order; a later (method, path) replaces an earlier
    one. Returns None if there is nothing to serve.
    """
    merged: dict[tuple[str, str], web.AbstractRouteDef] = {}
    mounted = False
    for plugin_name, table in tables:
        logger.info("Mounting a router from plugin {}", plugin_name)
        mounted = True
        for route in table:
            key = _route_key(route)
            if key in merged:
                logger.info("Route {} {} overridden by plugin {}", key[0], key[1], plugin_name)
                del merged[key]
            merged[key] = route

    if not mounted:
        return None
    return list(merged.values())


def build_app(routes: RouteSet) -> web.Application:
    app = web.Application()
    app.add_routes(routes)
    return app


async def serve(routes: RouteSet | None, host: str, port: int) -> None:
    """Serve ``routes`` on host:port until cancelled. No-op without routes."""
    if routes is None:
        logger.debug("No plugin contributed HTTP routes, not starting web server")
        return

    runner = web.AppRunner(build_app(routes))
    await runner.setup()
    try:
        site = web.TCPSite(runner, host, port)
        try:
            await site.start()
        except OSError as e:
            raise WebServerError(f"Cannot listen on {host}:{port}: {e}") from e
        logger.info("Starting web server, listening on http://{}:{}", host, port)
        await asyncio.Event().wait()
    finally:
        await runner.cleanup()
        logger.info("Web server stopped")
