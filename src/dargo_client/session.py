from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Protocol

from .connection import ConnectionManager
from .errors import NotReadyError
from .events import PointerEvent, Surface, TouchEvent
from .protocol.messages import Dimensions, PointerEnd, PointerUpdate
from .state import ConnectionState

logger = logging.getLogger(__name__)

STATUS_TITLES: dict[ConnectionState, str] = {
    ConnectionState.CONNECTED: "Connected",
    ConnectionState.CONNECTING: "Connecting",
    ConnectionState.DISCONNECTED: "Failed to connect, reload to retry",
}


class InputStrategy(Protocol):
    """Turns raw capture events into outbound messages (None = nothing to send)."""

    name: str

    def update(self, event: PointerEvent | TouchEvent) -> PointerUpdate | None: ...

    def end(self, event: PointerEvent | TouchEvent) -> PointerEnd | None: ...


class PointerInput:
    name = "pointer"

    def update(self, event: PointerEvent) -> PointerUpdate | None:
        # pressure 0 means hover (no contact)
        if event.pressure == 0:
            return None
        return PointerUpdate.from_pointer_event(event)

    def end(self, event: PointerEvent) -> PointerEnd | None:
        return PointerEnd.from_pointer_event(event)


class TouchInput:
    name = "touch"

    def update(self, event: TouchEvent) -> PointerUpdate | None:
        if not event.changed_touches:
            return None
        return PointerUpdate.from_touch_event(event)

    def end(self, event: TouchEvent) -> PointerEnd | None:
        if not event.changed_touches:
            return None
        return PointerEnd.from_touch_event(event)


def select_input_strategy(use_touch_events: bool) -> InputStrategy:
    return TouchInput() if use_touch_events else PointerInput()


@dataclass
class StatusIndicator:
    css_class: str = ConnectionState.CONNECTING.value
    title: str = STATUS_TITLES[ConnectionState.CONNECTING]

    def show(self, state: ConnectionState) -> None:
        self.css_class = state.value
        self.title = STATUS_TITLES[state]


class TrackpadSession:
    """
    Glue between the capture surface and the connection.

    Sends the surface dimensions on every (re)connect and on resize, and
    forwards pointer/touch events while connected.
    """

    def __init__(
        self,
        manager: ConnectionManager,
        surface: Surface,
        strategy: InputStrategy | None = None,
        indicator: StatusIndicator | None = None,
    ) -> None:
        self.manager = manager
        self.surface = surface
        self.strategy = strategy or PointerInput()
        self.indicator = indicator or StatusIndicator()
        self.indicator.show(manager.state)
        manager.subscribe(self._on_state_change)
        logger.info("using %s events", self.strategy.name)

    async def send_dimensions(self) -> None:
        msg = Dimensions.from_surface(self.surface)
        await self.manager.send(msg)
        logger.info(
            "sent dimensions: width %s height %s resolution %s",
            msg.d.width,
            msg.d.height,
            msg.d.resolution,
        )

    async def resize(self, surface: Surface) -> None:
        self.surface = surface
        if self.manager.state == ConnectionState.CONNECTED:
            await self.send_dimensions()

    async def updated(self, event: PointerEvent | TouchEvent) -> bool:
        """Forward a down/move event. Returns True if a frame was sent."""
        if self.manager.state != ConnectionState.CONNECTED:
            return False
        msg = self.strategy.update(event)
        if msg is None:
            return False
        await self.manager.send(msg)
        return True

    async def ended(self, event: PointerEvent | TouchEvent) -> bool:
        """Forward an up/cancel event. Returns True if a frame was sent."""
        if self.manager.state != ConnectionState.CONNECTED:
            return False
        msg = self.strategy.end(event)
        if msg is None:
            return False
        await self.manager.send(msg)
        return True

    def _on_state_change(self, state: ConnectionState):
        logger.info("ws state change (new: %s)", state.value)
        self.indicator.show(state)
        if state == ConnectionState.CONNECTED:
            return self._send_initial_dimensions()
        return None

    async def _send_initial_dimensions(self) -> None:
        try:
            await self.send_dimensions()
        except NotReadyError:
            # Dropped again before the task ran; the next connect resends.
            logger.debug("connection lost before initial dimensions were sent")
