"""Minimal asyncio IRC connection."""

from __future__ import annotations

import asyncio
import ssl
from collections.abc import AsyncIterator
from typing import Protocol

from loguru import logger

from golem.config.schema import IrcConfig
from golem.errors import GolemError
from golem.irc.message import Message, MessageParseError

RPL_WELCOME = "001"
ERR_NICKNAMEINUSE = "433"
AUTHENTICATE_CHUNK = 400


class IrcConnectionError(GolemError):
    """Raised on socket-level failures or misuse of the connection."""


class Connection(Protocol):
    """What the dispatcher needs from a protocol connection."""

    def current_nickname(self) -> str: ...

    async def identify(self) -> None: ...

    async def request_capability(self, name: str) -> None: ...

    async def begin_sasl(self) -> None: ...

    async def send_authenticate_payload(self, payload: str) -> None: ...

    async def send(self, message: Message) -> None: ...

    def stream(self) -> AsyncIterator[Message]: ...

    async def close(self) -> None: ...

class IrcClient:
    """
    One session to one IRC server.

    Only does what a bot needs: line framing, registration, PING/PONG,
    joining the configured channels once welcomed. ``stream()`` can be
    taken once; it ends when the server closes the socket.
    """

    def __init__(self, config: IrcConfig):
        self.config = config
        self._nickname = config.nickname
        self._reader: asyncio.StreamReader | None = None
        self._writer: asyncio.StreamWriter | None = None
        self._cap_negotiating = False
        self._stream_taken = False

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def connect(self) -> None:
        ssl_ctx = ssl.create_default_context() if self.config.use_tls else None
        logger.info(
            "Connecting to {}:{} (tls={})",
            self.config.server,
            self.config.port,
            self.config.use_tls,
        )
        try:
            self._reader, self._writer = await asyncio.open_connection(
                self.config.server, self.config.port, ssl=ssl_ctx
            )
        except OSError as e:
            raise IrcConnectionError(
                f"Cannot connect to {self.config.server}:{self.config.port}: {e}"
            ) from e

    async def close(self) -> None:
        if self._writer is None:
            return
        self._writer.close()
        try:
            await self._writer.wait_closed()
        except OSError:
            pass
        self._writer = None

    # ------------------------------------------------------------------
    # Outbound
    # ------------------------------------------------------------------

    def current_nickname(self) -> str:
        return self._nickname

    async def _write_line(self, line: str) -> None:
        if self._writer is None:
            raise IrcConnectionError("Not connected")
        if "\r" in line or "\n" in line:
            raise IrcConnectionError(f"Refusing to send line with CR/LF: {line!r}")
        self._writer.write(line.encode("utf-8") + b"\r\n")
        await self._writer.drain()

    async def send(self, message: Message) -> None:
        logger.debug(">> {}", message)
        await self._write_line(message.serialize())

    async def identify(self) -> None:
        if self._cap_negotiating:
            await self.send(Message("CAP", ("END",)))
            self._cap_negotiating = False
        if self.config.password:
            await self.send(Message("PASS", (self.config.password,)))
        await self.send(Message("NICK", (self._nickname,)))
        await self.send(Message("USER", (
            self.config.username or self._nickname,
            "0",
            "*",
            self.config.realname or self._nickname,
        )))

    async def request_capability(self, name: str) -> None:
        self._cap_negotiating = True
        await self.send(Message("CAP", ("REQ", name)))

    async def begin_sasl(self) -> None:
        await self.send(Message("AUTHENTICATE", ("PLAIN",)))

    async def send_authenticate_payload(self, payload: str) -> None:
        # Payloads are sent in 400 byte chunks, a full last chunk is closed by "+"
        chunks = [
            payload[i:i + AUTHENTICATE_CHUNK]
            for i in range(0, len(payload), AUTHENTICATE_CHUNK)
        ] or ["+"]
        if len(chunks[-1]) == AUTHENTICATE_CHUNK:
            chunks.append("+")
        for chunk in chunks:
            # Raw line so the payload is never logged
            await self._write_line(f"AUTHENTICATE {chunk}")

    # ------------------------------------------------------------------
    # Inbound
    # ------------------------------------------------------------------

    def stream(self) -> AsyncIterator[Message]:
        if self._stream_taken:
            raise IrcConnectionError("The inbound stream can only be taken once")
        if self._reader is None:
            raise IrcConnectionError("Not connected")
        self._stream_taken = True
        return self._read_messages(self._reader)

    async def _read_messages(self, reader: asyncio.StreamReader) -> AsyncIterator[Message]:
        while True:
            try:
                raw = await reader.readline()
            except OSError as e:
                raise IrcConnectionError(f"Lost connection to {self.config.server}: {e}") from e
            if not raw:
                logger.warning("Server closed the connection")
                return
            line = raw.decode("utf-8", errors="replace")
            try:
                message = Message.parse(line)
            except MessageParseError as e:
                logger.debug("Skipping unparseable line: {}", e)
                continue

            logger.debug("<< {}", message)
            await self._handle_connection_message(message)
            yield message

    async def _handle_connection_message(self, message: Message) -> None:
        """Connection-level bookkeeping that plugins never need to do."""
        if message.command == "PING":
            await self.send(Message("PONG", message.params))
        elif message.command == RPL_WELCOME:
            if message.params:
                self._nickname = message.params[0]
            for channel in self.config.channels:
                await self.send(Message("JOIN", (channel,)))
        elif message.command == ERR_NICKNAMEINUSE:
            self._nickname = f"{self._nickname}_"
            logger.warning("Nickname in use, trying {}", self._nickname)
            await self.send(Message("NICK", (self._nickname,)))
        elif message.command == "NICK" and message.source_nickname == self._nickname:
            if message.params:
                self._nickname = message.params[0]
