"""Certain types used across the package."""

from __future__ import annotations

from os import PathLike
from typing import TYPE_CHECKING, Union

from typing_extensions import Buffer, Protocol, TypeAlias

__all__ = [
    "StrPath",
    "ReadOnlyBuffer",
    "WriteableBuffer",
    "ReadableBuffer",
    "ByteSource",
    "ByteSink",
]


# `PathLike` cannot be subscripted at runtime.
if TYPE_CHECKING:
    StrPath: TypeAlias = Union[str, PathLike[str]]

# Unfortunately PEP 688 does not allow us to distinguish read-only and writable buffers.
ReadOnlyBuffer: TypeAlias = Buffer
WriteableBuffer: TypeAlias = Buffer
ReadableBuffer: TypeAlias = Union[ReadOnlyBuffer, WriteableBuffer]


class ByteSource(Protocol):
    """Object from which a bounded amount of bytes can be read, e.g. a binary file."""

    def read(self, size: int = ..., /) -> bytes:
        ...


class ByteSink(Protocol):
    """Object to which bytes can be written, e.g. a binary file.

    ``write()`` returns the amount of bytes actually written.
    """

    def write(self, b: ReadableBuffer, /) -> int | None:
        ...
