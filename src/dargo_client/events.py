from __future__ import annotations

from dataclasses import dataclass, field

# Raw input shapes handed over by the capture layer. Field names follow the
# DOM event attributes they are read from (offsetX -> offset_x, ...).


@dataclass(frozen=True)
class PointerEvent:
    pointer_id: int
    offset_x: float
    offset_y: float
    width: float = 1.0
    height: float = 1.0
    pressure: float = 0.0


@dataclass(frozen=True)
class Touch:
    identifier: int
    client_x: float
    client_y: float
    radius_x: float = 1.0
    radius_y: float = 1.0
    rotation_angle: float = 0.0
    force: float = 0.0


@dataclass(frozen=True)
class TouchEvent:
    # Only the touches that changed in this event, in the order the platform reported them.
    changed_touches: tuple[Touch, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class Surface:
    """Size of the capture surface in CSS pixels."""

    width: int
    height: int
    device_pixel_ratio: float = 1.0

    @property
    def resolution(self) -> int:
        # Units per mm: assumes 1px = 1/96 in at devicePixelRatio 1 (1in = 25.4mm).
        return round(96 * self.device_pixel_ratio / 25.4)
