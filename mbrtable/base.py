"""Exception classes, data structures and helper functions used across ``mbrtable``."""

from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from .mbr import Table

__all__ = [
    "ErrorKind",
    "MbrError",
    "ValidationError",
    "BadSignatureError",
    "BadBootFlagError",
    "BoundsError",
    "LastSectorTooHighError",
    "PartitionsIntersectError",
    "SectorAddressOverflowError",
    "DiskSizeNotEvenSectorsError",
    "InvalidProtectiveTypeError",
    "ShortReadError",
    "ShortWriteError",
    "BoundsWarning",
    "is_power_of_two",
]


class ErrorKind(Enum):
    """Kind of failure reported by an ``MbrError``."""

    BAD_SIGNATURE = "bad signature"
    PARTITIONS_INTERSECT = "partitions intersect"
    LAST_SECTOR_TOO_HIGH = "last sector too high"
    BAD_BOOT_FLAG = "bad boot flag"
    DISK_SIZE_NOT_EVEN_SECTORS = "disk size not even sectors"
    INVALID_PROTECTIVE_TYPE = "invalid protective type"
    SHORT_READ = "short read"
    SHORT_WRITE = "short write"
    SECTOR_ADDRESS_OVERFLOW = "sector address overflow"


class MbrError(Exception):
    """Base class of all exceptions raised by ``mbrtable``.

    ``table`` is the partition table the failure relates to, if one was
    constructed before the failure occurred. ``Table.read()`` sets it so that
    callers can repair a table which failed validation instead of discarding it.
    """

    kind: ErrorKind

    def __init__(self, message: str, *, table: Table | None = None):
        super().__init__(message)
        self.table = table


class ValidationError(MbrError, ValueError):
    """Exception raised if the contents of an MBR do not conform to the standard of
    the structure.
    """


class BadSignatureError(ValidationError):
    """The two signature bytes at the end of the MBR are not ``55 AA``."""

    kind = ErrorKind.BAD_SIGNATURE

    def __init__(self, signature: bytes, **kwargs: Any):
        super().__init__(f"Invalid MBR signature {signature!r}", **kwargs)
        self.signature = signature


class BadBootFlagError(ValidationError):
    """The status byte of a partition entry is neither ``0x00`` nor ``0x80``."""

    kind = ErrorKind.BAD_BOOT_FLAG

    def __init__(self, number: int, flag: int, **kwargs: Any):
        super().__init__(
            f"Invalid boot flag {flag:#04x} in partition entry {number}", **kwargs
        )
        self.number = number
        self.flag = flag


class BoundsError(ValidationError):
    """Exception raised if a partition's bounds are considered illegal."""


class LastSectorTooHighError(BoundsError):
    """The last sector of a partition cannot be addressed using 32 bits."""

    kind = ErrorKind.LAST_SECTOR_TOO_HIGH

    def __init__(self, number: int, end: int, **kwargs: Any):
        super().__init__(
            f"Partition {number} ends at sector {end}, which exceeds the 32-bit "
            f"sector address range",
            **kwargs,
        )
        self.number = number
        self.end = end


class PartitionsIntersectError(BoundsError):
    """The starting sector of partition ``number`` lies inside partition ``other``."""

    kind = ErrorKind.PARTITIONS_INTERSECT

    def __init__(self, number: int, other: int, **kwargs: Any):
        super().__init__(
            f"Partition {number} starts inside partition {other}", **kwargs
        )
        self.number = number
        self.other = other


class SectorAddressOverflowError(MbrError, OverflowError):
    """The last sector of a partition cannot be represented as a sector address."""

    kind = ErrorKind.SECTOR_ADDRESS_OVERFLOW


class DiskSizeNotEvenSectorsError(MbrError, ValueError):
    """The disk size is not a multiple of the sector size."""

    kind = ErrorKind.DISK_SIZE_NOT_EVEN_SECTORS

    def __init__(self, disk_size: int, sector_size: int, **kwargs: Any):
        super().__init__(
            f"Disk size of {disk_size} bytes is not evenly divisible by sector size "
            f"of {sector_size} bytes",
            **kwargs,
        )
        self.disk_size = disk_size
        self.sector_size = sector_size


class InvalidProtectiveTypeError(MbrError, ValueError):
    """Unknown way of sizing the partition of a protective MBR."""

    kind = ErrorKind.INVALID_PROTECTIVE_TYPE


class _TransferError(MbrError, OSError):
    """Fewer bytes than expected were transferred."""

    verb: str

    def __init__(self, expected: int, actual: int, **kwargs: Any):
        super().__init__(
            f"Did not {self.verb} the expected amount of bytes (expected {expected} "
            f"bytes, got {actual} bytes)",
            **kwargs,
        )
        self.expected = expected
        self.actual = actual


class ShortReadError(_TransferError):
    """The byte source provided fewer bytes than an MBR spans."""

    kind = ErrorKind.SHORT_READ
    verb = "read"


class ShortWriteError(_TransferError):
    """The byte sink accepted fewer bytes than an MBR spans."""

    kind = ErrorKind.SHORT_WRITE
    verb = "write"


class BoundsWarning(UserWarning):
    """Warning emitted if the bounds of a partition look suspicious but are not
    rejected.
    """


def is_power_of_two(value: int) -> bool:
    """Check if ``value`` is a power of two.

    ``value`` must be an ``int`` greater than zero.

    Returns whether ``value`` can be expressed as 2 to the power of x, with x being
    an integer greater than or equal to zero.
    """
    if value <= 0:
        raise ValueError("Value must be greater than 0")
    return value & (value - 1) == 0
