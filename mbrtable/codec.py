"""Little-endian encoding of 32-bit unsigned integers within fixed-size windows."""

from __future__ import annotations

import struct
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .typing_ import ReadableBuffer, WriteableBuffer

__all__ = ["FORMAT_U32", "SIZE_U32", "MAX_U32", "decode32", "encode32"]


FORMAT_U32 = "<I"
SIZE_U32 = struct.calcsize(FORMAT_U32)
MAX_U32 = (1 << 32) - 1


def _check_window(window: ReadableBuffer) -> None:
    size = memoryview(window).nbytes
    if size != SIZE_U32:
        raise ValueError(f"Window must be {SIZE_U32} bytes long, got {size} bytes")


def decode32(window: ReadableBuffer) -> int:
    """Read the unsigned 32-bit integer stored little-endian in ``window``."""
    _check_window(window)
    return struct.unpack(FORMAT_U32, window)[0]


def encode32(value: int, window: WriteableBuffer) -> None:
    """Store ``value`` little-endian in the writable 4-byte ``window``.

    ``value`` must be in the range of an unsigned 32-bit integer.
    """
    _check_window(window)
    if not 0 <= value <= MAX_U32:
        raise OverflowError(f"Value {value} does not fit into 32 unsigned bits")
    struct.pack_into(FORMAT_U32, window, 0, value)
