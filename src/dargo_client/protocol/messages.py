from __future__ import annotations

import json
from typing import Annotated, Literal, TypeAlias, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter

from dargo_client.events import PointerEvent, Surface, TouchEvent

# ints stay ints on the wire (800, not 800.0); smart-mode unions keep the input type.
Number: TypeAlias = Union[int, float]


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)


class DimensionsData(_Frozen):
    width: Number
    height: Number
    resolution: Number


class Contact(_Frozen):
    id: int
    x: Number
    y: Number
    radius_x: Number = Field(alias="rx")
    radius_y: Number = Field(alias="ry")
    rotation_angle: Number = Field(alias="ra")
    pressure: Number = Field(alias="p")


class Dimensions(_Frozen):
    t: Literal["d"] = "d"
    d: DimensionsData

    @classmethod
    def of(cls, width: Number, height: Number, resolution: Number) -> Dimensions:
        return cls(d=DimensionsData(width=width, height=height, resolution=resolution))

    @classmethod
    def from_surface(cls, surface: Surface) -> Dimensions:
        return cls.of(surface.width, surface.height, surface.resolution)


class PointerUpdate(_Frozen):
    t: Literal["tu"] = "tu"
    d: list[Contact]

    @classmethod
    def from_pointer_event(cls, ev: PointerEvent) -> PointerUpdate:
        return cls(
            d=[
                Contact(
                    id=ev.pointer_id,
                    x=ev.offset_x,
                    y=ev.offset_y,
                    radius_x=ev.width,
                    radius_y=ev.height,
                    rotation_angle=0,
                    pressure=ev.pressure,
                )
            ]
        )

    @classmethod
    def from_touch_event(cls, ev: TouchEvent) -> PointerUpdate:
        return cls(
            d=[
                Contact(
                    id=t.identifier,
                    x=t.client_x,
                    y=t.client_y,
                    radius_x=t.radius_x,
                    radius_y=t.radius_y,
                    rotation_angle=t.rotation_angle,
                    pressure=t.force,
                )
                for t in ev.changed_touches
            ]
        )


class PointerEnd(_Frozen):
    t: Literal["te"] = "te"
    d: list[int]

    @classmethod
    def from_pointer_event(cls, ev: PointerEvent) -> PointerEnd:
        return cls(d=[ev.pointer_id])

    @classmethod
    def from_touch_event(cls, ev: TouchEvent) -> PointerEnd:
        return cls(d=[t.identifier for t in ev.changed_touches])


OutboundMessage: TypeAlias = Annotated[
    Union[Dimensions, PointerUpdate, PointerEnd],
    Field(discriminator="t"),
]

_VARIANTS = (Dimensions, PointerUpdate, PointerEnd)
_ADAPTER: TypeAdapter[OutboundMessage] = TypeAdapter(OutboundMessage)


def encode(message: Dimensions | PointerUpdate | PointerEnd) -> str:
    """Render a message as its wire text: `{"t":<tag>,"d":<payload>}`."""
    if not isinstance(message, _VARIANTS):
        raise TypeError(f"not an outbound message: {type(message).__name__}")
    return json.dumps(
        message.model_dump(mode="json", by_alias=True),
        separators=(",", ":"),
        ensure_ascii=False,
    )


def decode(raw: str | bytes) -> Dimensions | PointerUpdate | PointerEnd:
    """
    Parse wire text back into a message.

    The tag alone selects the payload shape; unknown tags raise `pydantic.ValidationError`.
    """
    return _ADAPTER.validate_json(raw)
