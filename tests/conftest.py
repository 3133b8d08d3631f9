"""
Shared fakes for the connection tests.

The connector/connection pair stands in for `websockets`, and the scheduler
records reconnect timers instead of sleeping, so backoff can be driven by hand.
"""

from __future__ import annotations

import asyncio
from collections import deque
from typing import Callable

import pytest


class FakeTimer:
    def __init__(self, delay: float, callback: Callable[[], None]) -> None:
        self.delay = delay
        self.callback = callback
        self.cancelled = False
        self.fired = False

    def cancel(self) -> None:
        self.cancelled = True


class FakeScheduler:
    def __init__(self) -> None:
        self.timers: list[FakeTimer] = []

    def call_later(self, delay: float, callback: Callable[[], None]) -> FakeTimer:
        timer = FakeTimer(delay, callback)
        self.timers.append(timer)
        return timer

    @property
    def pending(self) -> list[FakeTimer]:
        return [t for t in self.timers if not t.cancelled and not t.fired]

    @property
    def delays(self) -> list[float]:
        return [t.delay for t in self.timers]

    def fire_next(self) -> None:
        timer = self.pending[0]
        timer.fired = True
        timer.callback()


class FakeConnection:
    def __init__(self) -> None:
        self.sent: list[str] = []
        self.close_code: int | None = None
        self.close_reason: str | None = None
        self.closed_by_client = False
        self.broken = False
        self._closed = asyncio.Event()

    async def send(self, message: str) -> None:
        if self.broken:
            # a write error and the close event for the same failure
            self.drop()
            raise BrokenPipeError("broken pipe")
        self.sent.append(message)

    async def wait_closed(self) -> None:
        await self._closed.wait()

    async def close(self) -> None:
        self.closed_by_client = True
        self.close_code = 1000
        self._closed.set()

    def drop(self, code: int = 1006, reason: str = "") -> None:
        """Simulate the peer/network closing the connection."""
        self.close_code = code
        self.close_reason = reason
        self._closed.set()


class FakeConnector:
    """Each call pops the next outcome: an exception to raise, or None for success."""

    def __init__(self, *outcomes: BaseException | None) -> None:
        self.outcomes: deque[BaseException | None] = deque(outcomes)
        self.urls: list[str] = []
        self.connections: list[FakeConnection] = []
        self.always_fail: BaseException | None = None

    @property
    def calls(self) -> int:
        return len(self.urls)

    @property
    def last(self) -> FakeConnection:
        return self.connections[-1]

    async def __call__(self, url: str) -> FakeConnection:
        self.urls.append(url)
        outcome = self.outcomes.popleft() if self.outcomes else self.always_fail
        if outcome is not None:
            raise outcome
        conn = FakeConnection()
        self.connections.append(conn)
        return conn


async def settle(rounds: int = 10) -> None:
    """Let pending tasks run until they block again."""
    for _ in range(rounds):
        await asyncio.sleep(0)


async def wait_for_condition(cond: Callable[[], bool], timeout: float = 2.0) -> None:
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not cond():
        if loop.time() > deadline:
            raise AssertionError("condition not met in time")
        await asyncio.sleep(0.01)


@pytest.fixture
def scheduler() -> FakeScheduler:
    return FakeScheduler()


@pytest.fixture
def connector() -> FakeConnector:
    return FakeConnector()
