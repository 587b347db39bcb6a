from .engine import (
    LxmlWireEngine,
    SerializeOptions,
    WireFormatEngine,
    WireFormatError,
)

__all__ = [
    "LxmlWireEngine",
    "SerializeOptions",
    "WireFormatEngine",
    "WireFormatError",
]
