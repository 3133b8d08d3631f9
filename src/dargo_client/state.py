from __future__ import annotations

import asyncio
import inspect
import logging
from enum import Enum
from typing import Any, Callable

from .errors import InvalidTransitionError

logger = logging.getLogger(__name__)


class ConnectionState(str, Enum):
    # Values double as the status indicator CSS class.
    CONNECTING = "connecting"
    CONNECTED = "connected"
    DISCONNECTED = "disconnected"


# A listener may return an awaitable (e.g. to send on connect); it is scheduled as a task.
StateListener = Callable[[ConnectionState], Any]

TERMINAL_STATES = frozenset({ConnectionState.DISCONNECTED})


class StateMachine:
    """
    Holds the current connection state and notifies listeners on change.

    `transition()` is the only writer: re-entering the current state is a no-op
    (no notification), and nothing leaves a terminal state.
    """

    def __init__(self, initial: ConnectionState = ConnectionState.CONNECTING) -> None:
        self._state = initial
        self._listeners: list[StateListener] = []
        self._tasks: set[asyncio.Task] = set()

    @property
    def state(self) -> ConnectionState:
        return self._state

    def subscribe(self, listener: StateListener) -> None:
        if listener not in self._listeners:
            self._listeners.append(listener)

    def unsubscribe(self, listener: StateListener) -> None:
        try:
            self._listeners.remove(listener)
        except ValueError:
            pass

    def transition(self, new: ConnectionState) -> bool:
        """Set the state; returns True (and notifies) only if it changed."""
        if new == self._state:
            return False
        if self._state in TERMINAL_STATES:
            raise InvalidTransitionError(f"{self._state.value} is terminal; refusing {new.value}")
        old, self._state = self._state, new
        logger.info("state %s -> %s", old.value, new.value)
        self._notify(new)
        return True

    def _notify(self, state: ConnectionState) -> None:
        for listener in list(self._listeners):
            try:
                result = listener(state)
            except Exception:
                logger.exception("state listener %r failed", listener)
                continue
            if inspect.isawaitable(result):
                task = asyncio.ensure_future(result)
                self._tasks.add(task)
                task.add_done_callback(self._task_done)

    def _task_done(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if not task.cancelled() and task.exception() is not None:
            logger.error("state listener task failed", exc_info=task.exception())
