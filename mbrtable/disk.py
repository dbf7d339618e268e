"""Disk access.

A disk represents either a file or block device whose first sector holds an MBR.
"""

from __future__ import annotations

import io
import logging
import os
from stat import S_ISBLK, S_ISREG
from types import TracebackType
from typing import TYPE_CHECKING, Any

from .base import MbrError
from .constants import MIN_LSS
from .mbr import Table
from .protective import ProtectiveType

if TYPE_CHECKING:
    from .typing_ import ReadableBuffer, StrPath

__all__ = ["Disk"]


log = logging.getLogger(__name__)


if hasattr(os, "pread") and hasattr(os, "pwrite"):
    _read = os.pread
    _write = os.pwrite
else:

    def _read(fd: int, size: int, pos: int) -> bytes:
        """Read `size` bytes from file descriptor `fd` starting at byte `pos`."""
        os.lseek(fd, pos, os.SEEK_SET)
        return os.read(fd, size)

    def _write(fd: int, b: ReadableBuffer, pos: int) -> int:
        """Write raw bytes `b` to file descriptor `fd` starting at byte `pos`."""
        os.lseek(fd, pos, os.SEEK_SET)
        return os.write(fd, b)


class Disk:
    """File or block device that one can access and manipulate.

    Also serves as an accessor to the underlying file or block device.

    Do not use `__init__` directly, use `Disk.open()` or `Disk.new()` instead.
    """

    def __init__(
        self,
        fd: int,
        path: StrPath,
        size: int,
        sector_size: int,
        device: bool,
        writable: bool,
    ):
        self._fd = fd
        self._path = str(path)
        self._size = size
        self._sector_size = sector_size
        self._device = device
        self._writable = writable
        self._closed = False

        log.info(f"Opened disk {self}")
        log.info(f"{self} - Size: {size} bytes, sector size: {sector_size} bytes")

    @classmethod
    def new(cls, path: StrPath, size: int, *, sector_size: int = MIN_LSS) -> Disk:
        """Create a new, zero-filled disk image at `path`."""
        if size <= 0:
            raise ValueError("Disk size must be greater than 0")
        if sector_size < MIN_LSS:
            raise ValueError(f"Sector size must be at least {MIN_LSS} bytes")

        flags = os.O_CREAT | os.O_EXCL | os.O_RDWR | getattr(os, "O_BINARY", 0)
        fd = os.open(path, flags, 0o666)
        try:
            os.truncate(fd, size)
            return cls(fd, path, size, sector_size, False, True)
        except BaseException:
            os.close(fd)
            raise

    @classmethod
    def open(
        cls, path: StrPath, *, sector_size: int = MIN_LSS, readonly: bool = True
    ) -> Disk:
        """Open block device or disk image at `path`.

        The logical sector size of the disk cannot be detected and must be passed
        as `sector_size` if it differs from 512 bytes.
        """
        if sector_size < MIN_LSS:
            raise ValueError(f"Sector size must be at least {MIN_LSS} bytes")

        read_write_flag = os.O_RDONLY if readonly else os.O_RDWR
        flags = read_write_flag | getattr(os, "O_BINARY", 0)
        fd = os.open(path, flags)

        try:
            stat = os.fstat(fd)
            if S_ISBLK(stat.st_mode):
                size = os.lseek(fd, 0, os.SEEK_END)
                device = True
            elif S_ISREG(stat.st_mode):
                size = stat.st_size
                device = False
            else:
                raise ValueError("File is neither a block device nor a regular file")

            return cls(fd, path, size, sector_size, device, not readonly)

        except BaseException:
            os.close(fd)
            raise

    def read_at(self, pos: int, size: int) -> bytes:
        """Read `size` sectors from the disk starting at sector `pos`.

        Uses the logical sector size of the disk.
        """
        self.check_closed()

        if pos < 0:
            raise ValueError("Position to read from must be zero or positive")
        if size < 0:
            raise ValueError("Amount of sectors to read must be zero or positive")
        if size == 0:
            return b""

        pos_bytes = pos * self._sector_size
        size_bytes = size * self._sector_size

        if pos_bytes + size_bytes > self._size:
            raise ValueError("Sector range out of disk bounds")

        b = _read(self._fd, size_bytes, pos_bytes)

        if len(b) != size_bytes:
            raise ValueError(
                f"Did not read the expected amount of bytes (expected {size_bytes} "
                f"bytes, got {len(b)} bytes)"
            )
        return b

    def write_at(
        self, pos: int, b: ReadableBuffer, *, fill_zeroes: bool = False
    ) -> None:
        """Write raw bytes `b` to the disk starting at sector `pos`.

        Uses the logical sector size of the disk.

        :param pos: LBA to write at.
        :param b: Bytes to write.
        :param fill_zeroes: Whether to fill up the last sector to write at with zeroes
            if b doesn't cover the whole sector.
        """
        self.check_closed()
        self.check_writable()

        if pos < 0:
            raise ValueError("Position to write at must be zero or positive")
        if not isinstance(b, memoryview):
            b = memoryview(b).cast("B")
        size = b.nbytes
        if size == 0:
            return

        lss = self._sector_size
        remainder = size % lss

        if remainder != 0:
            if not fill_zeroes:
                raise ValueError(
                    f"Can only write in multiples of {lss} bytes (logical sector size)"
                )
            zeroes = b"\x00" * (lss - remainder)
            b = bytes(b) + zeroes
            size = len(b)

        pos_bytes = pos * self._sector_size
        if pos_bytes + size > self._size:
            raise ValueError("Sector range out of disk bounds")

        bytes_written = _write(self._fd, b, pos_bytes)

        if bytes_written != size:
            raise ValueError(
                f"Did not write the expected amount of bytes (expected {size} "
                f"bytes, wrote {bytes_written} bytes)"
            )

    def flush(self) -> None:
        """Flush write buffers of the underlying file or block device, if applicable."""
        self.check_closed()
        os.fsync(self._fd)

    def read_table(self) -> Table:
        """Read and validate the MBR in the first sector of the disk.

        Raises the same exceptions as `Table.read()`.
        """
        first_sector = self.read_at(0, 1)
        try:
            table = Table.read(io.BytesIO(first_sector[: Table.SIZE]))
        except MbrError as e:
            log.debug(f"{self} - Invalid MBR: {e}")
            raise
        log.info(f"{self} - Found partition table {table}")
        return table

    def write_table(self, table: Table) -> None:
        """Write `table` to the first sector of the disk.

        The remainder of the first sector is overwritten with zeroes if the logical
        sector size of the disk exceeds the size of an MBR.

        **Caution:** This replaces the disk's partition table. Always create a
        backup of your data before (re-)partitioning a disk.
        """
        log.info(f"{self} - Writing partition table {table}")
        sink = io.BytesIO()
        table.write(sink)
        self.write_at(0, sink.getbuffer(), fill_zeroes=True)
        self.flush()

    def protect(
        self, protective_type: ProtectiveType | int = ProtectiveType.DEFAULT
    ) -> Table:
        """Replace the MBR of the disk with a protective MBR spanning the disk.

        The boot code found in the first sector of the disk is kept, even if the
        MBR found there is invalid.

        Returns the written partition table.
        """
        table = Table.from_bytes(self.read_at(0, 1)[: Table.SIZE])
        table.make_protective(self._sector_size, self._size, protective_type)
        self.write_table(table)
        return table

    def close(self) -> None:
        """Close the underlying IO object.

        This method has no effect if the IO object is already closed.
        """
        if self._closed:
            return
        os.close(self._fd)
        self._closed = True
        log.info(f"Closed disk {self}")

    def __enter__(self) -> Disk:
        """Context management protocol."""
        self.check_closed()
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType,
    ) -> None:
        """Context management protocol."""
        self.close()

    @property
    def device(self) -> bool:
        """Whether the disk's data resides on a block device instead of a file."""
        return self._device

    @property
    def size(self) -> int:
        """Size of the disk in bytes."""
        return self._size

    @property
    def sector_size(self) -> int:
        """Logical sector size of the disk in bytes."""
        return self._sector_size

    @property
    def closed(self) -> bool:
        """Whether the underlying file or block device is closed."""
        return self._closed

    @property
    def writable(self) -> bool:
        """Whether the underlying file or block device supports writing."""
        self.check_closed()
        return self._writable

    def check_closed(self) -> None:
        """Raise `ValueError` if the underlying file or block device is closed."""
        if self._closed:
            raise ValueError("I/O operation on closed disk")

    def check_writable(self) -> None:
        """Raise `ValueError` if the underlying file or block device is read-only."""
        if not self._writable:
            raise ValueError("Disk is not writable")

    def __eq__(self, other: Any) -> bool:
        if isinstance(other, Disk):
            return self._path == other._path
        return NotImplemented

    def __hash__(self) -> int:
        return hash(self._path)

    def __str__(self) -> str:
        return self._path

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self._path}, size={self._size})"
