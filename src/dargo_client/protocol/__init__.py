from .constants import ALL_TAGS, T_DIMENSIONS, T_TOUCH_END, T_TOUCH_UPDATE
from .messages import (
    Contact,
    Dimensions,
    DimensionsData,
    OutboundMessage,
    PointerEnd,
    PointerUpdate,
    decode,
    encode,
)

__all__ = [
    "ALL_TAGS",
    "T_DIMENSIONS",
    "T_TOUCH_UPDATE",
    "T_TOUCH_END",
    "Contact",
    "Dimensions",
    "DimensionsData",
    "OutboundMessage",
    "PointerEnd",
    "PointerUpdate",
    "decode",
    "encode",
]
