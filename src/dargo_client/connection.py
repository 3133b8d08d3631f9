from __future__ import annotations

import asyncio
import contextlib
import logging
from typing import Awaitable, Callable, Protocol

from websockets.asyncio.client import connect as ws_connect
from websockets.exceptions import ConnectionClosed

from .config import Settings
from .errors import NotReadyError, RetriesExhaustedError, TransportClosedError
from .protocol.messages import Dimensions, PointerEnd, PointerUpdate, encode
from .scheduler import Cancellable, LoopScheduler, Scheduler
from .state import ConnectionState, StateListener, StateMachine

logger = logging.getLogger(__name__)

BASE_DELAY_S = 0.5


class Connection(Protocol):
    """The slice of `websockets.asyncio.client.ClientConnection` the manager relies on."""

    close_code: int | None
    close_reason: str | None

    async def send(self, message: str) -> None: ...

    async def wait_closed(self) -> None: ...

    async def close(self) -> None: ...


Connector = Callable[[str], Awaitable[Connection]]


def websocket_connector(
    *,
    ping_interval: float | None = 20.0,
    ping_timeout: float | None = 20.0,
) -> Connector:
    async def _connect(url: str) -> Connection:
        return await ws_connect(url, ping_interval=ping_interval, ping_timeout=ping_timeout)

    return _connect


class ConnectionManager:
    """
    Owns one WebSocket connection at a time and keeps it alive.

    - Starts connecting as soon as it is constructed (needs a running loop).
    - On close/error: reconnect after `2**retries * base_delay` seconds while
      `retries < max_retries`; the budget is lifetime-total and never resets.
    - Budget exhausted: state goes to DISCONNECTED for good and
      `wait_closed()` raises `RetriesExhaustedError`.

    Every attempt gets a generation number. Signals from an older generation,
    or a second signal for the same failure, are ignored, so one failure
    schedules at most one reconnect.
    """

    def __init__(
        self,
        url: str,
        max_retries: int = 0,
        *,
        base_delay: float = BASE_DELAY_S,
        connector: Connector | None = None,
        scheduler: Scheduler | None = None,
        on_fatal: Callable[[RetriesExhaustedError], None] | None = None,
        debug_log_msgs: bool = False,
    ) -> None:
        if max_retries < 0:
            raise ValueError("max_retries must be >= 0")
        self._url = url
        self._max_retries = max_retries
        self._retries = 0
        self._base_delay = base_delay
        self._connector = connector or websocket_connector()
        self._scheduler = scheduler or LoopScheduler()
        self._on_fatal = on_fatal
        self._debug_log_msgs = debug_log_msgs

        self._machine = StateMachine(ConnectionState.CONNECTING)
        self._ws: Connection | None = None
        self._generation = 0
        self._attempt_task: asyncio.Task | None = None
        self._timer: Cancellable | None = None
        self._closing = False
        self._done: asyncio.Future[None] = asyncio.get_running_loop().create_future()

        self._connect()

    @classmethod
    def from_settings(cls, settings: Settings, **kwargs) -> ConnectionManager:
        kwargs.setdefault(
            "connector",
            websocket_connector(ping_interval=settings.ping_interval_s, ping_timeout=settings.ping_timeout_s),
        )
        kwargs.setdefault("base_delay", settings.base_delay_s)
        kwargs.setdefault("debug_log_msgs", settings.debug_log_msgs)
        return cls(settings.endpoint_url, settings.max_retries, **kwargs)

    @property
    def url(self) -> str:
        return self._url

    @property
    def max_retries(self) -> int:
        return self._max_retries

    @property
    def retries(self) -> int:
        return self._retries

    @property
    def state(self) -> ConnectionState:
        return self._machine.state

    def subscribe(self, listener: StateListener) -> None:
        self._machine.subscribe(listener)

    def unsubscribe(self, listener: StateListener) -> None:
        self._machine.unsubscribe(listener)

    def backoff_delay(self, attempt: int) -> float:
        """Delay (seconds) before reconnect number `attempt` (1-based)."""
        return (2**attempt) * self._base_delay

    async def send(self, message: Dimensions | PointerUpdate | PointerEnd) -> None:
        """Encode and write one text frame. Raises `NotReadyError` unless connected."""
        ws = self._ws
        if self.state != ConnectionState.CONNECTED or ws is None:
            raise NotReadyError()
        text = encode(message)
        if self._debug_log_msgs:
            logger.debug("out %s", text)
        generation = self._generation
        try:
            await ws.send(text)
        except (ConnectionClosed, OSError) as e:
            # Counts as the failure; the close the attempt task sees afterwards is then stale.
            logger.warning("dropped %s frame, connection lost: %s", message.t, e)
            self._handle_failure(generation, e)

    async def wait_closed(self) -> None:
        """
        Wait until the manager stops.

        Returns after `close()`; raises `RetriesExhaustedError` once the retry
        budget is used up.
        """
        await asyncio.shield(self._done)

    async def close(self) -> None:
        """Stop reconnecting and close the current connection (not counted as a failure)."""
        self._closing = True
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
        task = self._attempt_task
        if task is not None and not task.done():
            task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await task
        ws, self._ws = self._ws, None
        if ws is not None:
            await ws.close()
        if not self._done.done():
            self._done.set_result(None)

    # -- attempt lifecycle -------------------------------------------------

    def _connect(self) -> None:
        self._timer = None
        if self._closing:
            return
        self._generation += 1
        self._ws = None
        logger.debug("connecting to %s (attempt generation %d)", self._url, self._generation)
        self._attempt_task = asyncio.get_running_loop().create_task(self._attempt(self._generation))

    async def _attempt(self, generation: int) -> None:
        try:
            ws = await self._connector(self._url)
        except Exception as e:
            self._handle_failure(generation, e)
            return

        if generation != self._generation or self._closing:
            await ws.close()
            return

        self._handle_open(generation, ws)
        try:
            await ws.wait_closed()
        except Exception as e:
            self._handle_failure(generation, e)
            return
        self._handle_failure(generation, TransportClosedError(ws.close_code, ws.close_reason or ""))

    def _handle_open(self, generation: int, ws: Connection) -> None:
        if generation != self._generation:
            return
        self._ws = ws
        self._machine.transition(ConnectionState.CONNECTED)

    def _handle_failure(self, generation: int, error: BaseException) -> None:
        if generation != self._generation or self._closing or self._done.done():
            logger.debug("ignoring stale failure signal: %r", error)
            return
        # Consume this generation so a duplicate close/error for it is ignored.
        self._generation += 1
        self._ws = None

        if self._retries < self._max_retries:
            self._retries += 1
            delay = self.backoff_delay(self._retries)
            self._machine.transition(ConnectionState.CONNECTING)
            logger.warning(
                "connection to %s failed (%s); retry %d/%d in %.1fs",
                self._url,
                error,
                self._retries,
                self._max_retries,
                delay,
            )
            if self._timer is not None:
                self._timer.cancel()
            self._timer = self._scheduler.call_later(delay, self._connect)
            return

        self._machine.transition(ConnectionState.DISCONNECTED)
        fatal = RetriesExhaustedError(self._url, self._retries)
        fatal.__cause__ = error
        logger.error("%s: %s", fatal, error)
        self._done.set_exception(fatal)
        if self._on_fatal is None:
            return
        # Reported through the callback; keep asyncio from reporting it again at GC.
        self._done.exception()
        try:
            self._on_fatal(fatal)
        except Exception:
            logger.exception("on_fatal handler %r failed", self._on_fatal)
