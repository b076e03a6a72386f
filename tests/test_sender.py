"""Tests for the serialized connection owner."""

import asyncio

import pytest

from golem.core.sender import ConnectionOwner
from golem.errors import GolemError
from golem.irc.message import privmsg
from tests.fakes import FakeConnection


class SlowConnection(FakeConnection):
    """Tracks how many sends overlap."""

    def __init__(self):
        super().__init__()
        self.in_flight = 0
        self.peak = 0

    async def send(self, message):
        self.in_flight += 1
        self.peak = max(self.peak, self.in_flight)
        await asyncio.sleep(0.005)
        self.in_flight -= 1
        await super().send(message)


@pytest.mark.asyncio
async def test_sends_never_overlap_and_keep_order():
    conn = SlowConnection()
    owner = ConnectionOwner(conn)
    msgs = [privmsg("#chan", str(i)) for i in range(10)]

    await asyncio.gather(*(owner.send(m) for m in msgs))
    await owner.stop()

    assert conn.peak == 1
    assert conn.sent == msgs


@pytest.mark.asyncio
async def test_errors_reach_the_caller():
    owner = ConnectionOwner(FakeConnection(fail_on="send"))

    with pytest.raises(ConnectionResetError):
        await owner.send(privmsg("#chan", "hi"))
    # The owner survives the failure
    assert owner.running
    await owner.stop()


@pytest.mark.asyncio
async def test_proxies_auth_calls():
    conn = FakeConnection(nickname="bot")
    owner = ConnectionOwner(conn)

    await owner.request_capability("sasl")
    await owner.begin_sasl()
    await owner.send_authenticate_payload("abc")
    await owner.identify()
    await owner.stop()

    assert owner.current_nickname() == "bot"
    assert conn.calls == [
        ("request_capability", "sasl"),
        ("begin_sasl",),
        ("send_authenticate_payload", "abc"),
        ("identify",),
    ]


@pytest.mark.asyncio
async def test_stop_fails_pending_requests():
    gate = asyncio.Event()

    class Blocking(FakeConnection):
        async def send(self, message):
            await gate.wait()

    owner = ConnectionOwner(Blocking())
    first = asyncio.create_task(owner.send(privmsg("#chan", "1")))
    second = asyncio.create_task(owner.send(privmsg("#chan", "2")))
    await asyncio.sleep(0.01)

    await owner.stop()

    for task in (first, second):
        with pytest.raises(GolemError):
            await task
    assert not owner.running
