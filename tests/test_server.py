"""Tests for the merged HTTP surface."""

import socket

import pytest
from aiohttp import web
from aiohttp.test_utils import TestClient, TestServer

from golem.errors import WebServerError
from golem.server import build_app, merge_routes, serve


def _routes(path, text, method="GET"):
    async def handler(request):
        return web.Response(text=text)

    table = web.RouteTableDef()
    table.route(method, path)(handler)
    return table


def test_no_tables_means_no_server():
    assert merge_routes([]) is None


def test_overlapping_route_last_merge_wins():
    merged = merge_routes([
        ("first", _routes("/hook", "first")),
        ("second", _routes("/hook", "second")),
    ])
    assert len(merged) == 1


def test_same_path_different_method_is_kept():
    merged = merge_routes([
        ("first", _routes("/hook", "get")),
        ("second", _routes("/hook", "post", method="POST")),
    ])
    assert sorted(r.method for r in merged) == ["GET", "POST"]


@pytest.mark.asyncio
async def test_merged_app_serves_the_last_handler():
    merged = merge_routes([
        ("first", _routes("/hook", "first")),
        ("other", _routes("/other", "other")),
        ("second", _routes("/hook", "second")),
    ])

    async with TestClient(TestServer(build_app(merged))) as client:
        resp = await client.get("/hook")
        assert await resp.text() == "second"
        resp = await client.get("/other")
        assert await resp.text() == "other"


@pytest.mark.asyncio
async def test_serve_without_routes_returns_immediately():
    await serve(None, "127.0.0.1", 0)


@pytest.mark.asyncio
async def test_port_in_use_is_a_golem_error():
    with socket.socket() as busy:
        busy.bind(("127.0.0.1", 0))
        busy.listen()
        port = busy.getsockname()[1]
        with pytest.raises(WebServerError):
            await serve(merge_routes([("a", _routes("/a", "a"))]), "127.0.0.1", port)
