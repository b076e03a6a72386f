"""Serialized owner of the connection's write side."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from functools import partial
from typing import Any

from loguru import logger

from golem.errors import GolemError
from golem.irc.client import Connection
from golem.irc.message import Message

_Request = tuple[Callable[[], Awaitable[Any]], asyncio.Future]


class ConnectionOwner:
    """
    Single task that owns the connection.

    Every write (send, identify, the SASL steps) is queued as a request and
    executed one at a time, in submission order, by the owner task. Callers
    await the request's future, which carries the result or the exception
    raised by the connection. Exposes the same write methods as the
    connection so it can be used in its place.
    """

    def __init__(self, connection: Connection):
        self._connection = connection
        self._requests: asyncio.Queue[_Request] = asyncio.Queue()
        self._task: asyncio.Task[None] | None = None
        self._current: asyncio.Future | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.create_task(self._serve(), name="connection-owner")

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None

        pending = [self._current] if self._current is not None else []
        while not self._requests.empty():
            pending.append(self._requests.get_nowait()[1])
        for future in pending:
            if not future.done():
                future.set_exception(GolemError("Connection owner stopped"))
        self._current = None

    async def _serve(self) -> None:
        while True:
            call, future = await self._requests.get()
            if future.done():
                # Caller gave up (cancelled) before its turn
                continue
            self._current = future
            try:
                result = await call()
            except Exception as e:
                if not future.done():
                    future.set_exception(e)
            else:
                if not future.done():
                    future.set_result(result)

    async def _submit(self, call: Callable[[], Awaitable[Any]]) -> Any:
        self.start()
        future = asyncio.get_running_loop().create_future()
        await self._requests.put((call, future))
        return await future

    # ------------------------------------------------------------------
    # Connection interface
    # ------------------------------------------------------------------

    def current_nickname(self) -> str:
        return self._connection.current_nickname()

    async def send(self, message: Message) -> None:
        logger.debug("Sending {}", message)
        await self._submit(partial(self._connection.send, message))

    async def identify(self) -> None:
        await self._submit(self._connection.identify)

    async def request_capability(self, name: str) -> None:
        await self._submit(partial(self._connection.request_capability, name))

    async def begin_sasl(self) -> None:
        await self._submit(self._connection.begin_sasl)

    async def send_authenticate_payload(self, payload: str) -> None:
        await self._submit(partial(self._connection.send_authenticate_payload, payload))
