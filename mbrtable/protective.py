"""Protective MBRs for GPT partitioned disks.

See https://en.wikipedia.org/wiki/GUID_Partition_Table#Protective_MBR_(LBA_0).
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import TYPE_CHECKING

from .base import (
    DiskSizeNotEvenSectorsError,
    InvalidProtectiveTypeError,
    is_power_of_two,
)
from .constants import MAX_LBA, MIN_LSS, PARTITION_NUMBERS, PartitionType

if TYPE_CHECKING:
    from .mbr import Table

__all__ = [
    "ProtectiveType",
    "PROTECTIVE_START_LBA",
    "protective_length",
    "make_protective",
]


log = logging.getLogger(__name__)


PROTECTIVE_START_LBA = 1


class ProtectiveType(Enum):
    """How the length of the partition of a protective MBR is determined.

    - ``DEFAULT``: Same as ``MAX_SIZE``.
    - ``MAX_SIZE``: The partition is ``0xFFFFFFFF`` sectors long, regardless of the
      size of the disk. While this is strictly outside the UEFI specification, it
      is what Linux and Windows partitioning tools write.
    - ``DISK_SIZE``: The partition spans the rest of the disk, but at most
      ``0xFFFFFFFF`` sectors.
    """

    DEFAULT = 0
    DISK_SIZE = 1
    MAX_SIZE = 2


def _protective_type(value: ProtectiveType | int) -> ProtectiveType:
    try:
        return ProtectiveType(value)
    except ValueError:
        raise InvalidProtectiveTypeError(
            f"Invalid protective type {value!r}, must be one of "
            f"{[t.name for t in ProtectiveType]}"
        ) from None


def _check_sector_size(sector_size: int) -> None:
    if sector_size < MIN_LSS or not is_power_of_two(sector_size):
        raise ValueError(
            f"Sector size must be a power of two of at least {MIN_LSS} bytes, got "
            f"{sector_size} bytes"
        )


def protective_length(
    sector_size: int, disk_size: int, protective_type: ProtectiveType | int
) -> int:
    """Return the length in sectors of the partition of a protective MBR for a disk
    of ``disk_size`` bytes.

    Raises ``DiskSizeNotEvenSectorsError`` if ``disk_size`` is not a multiple of
    ``sector_size`` and ``InvalidProtectiveTypeError`` if ``protective_type`` is
    unknown. ``ValueError`` is raised if ``sector_size`` is not a power of two of
    at least 512 bytes, if ``disk_size`` is negative, or if the disk is smaller
    than one sector while sizing by ``ProtectiveType.DISK_SIZE``.
    """
    _check_sector_size(sector_size)
    if disk_size < 0:
        raise ValueError("Disk size must be zero or positive")
    if disk_size % sector_size != 0:
        raise DiskSizeNotEvenSectorsError(disk_size, sector_size)

    protective_type = _protective_type(protective_type)
    if protective_type is not ProtectiveType.DISK_SIZE:
        return MAX_LBA

    actual = disk_size // sector_size - PROTECTIVE_START_LBA
    if actual < 0:
        raise ValueError(
            f"Disk of {disk_size} bytes is too small to hold a protective MBR"
        )
    return min(actual, MAX_LBA)


def make_protective(
    table: Table,
    sector_size: int,
    disk_size: int,
    protective_type: ProtectiveType | int = ProtectiveType.DEFAULT,
) -> None:
    """Turn ``table`` into a protective MBR for a GPT partitioned disk.

    The boot code of ``table`` is kept. The first partition entry is overwritten
    with a non-bootable partition of type ``PartitionType.GPT`` starting at sector
    1, the other entries are cleared.

    ``sector_size`` must be a power of two of at least 512 bytes, so 512 and 4096
    byte sectors are accepted while e.g. 520 or 1000 byte sectors raise
    ``ValueError``. See ``protective_length()`` for the other errors.

    ``table`` is left untouched if any argument is invalid.
    """
    length_lba = protective_length(sector_size, disk_size, protective_type)
    log.debug(
        f"Making protective MBR for disk of {disk_size} bytes "
        f"({sector_size} bytes per sector), partition length {length_lba} sectors"
    )

    table.fix_signature()
    for number in PARTITION_NUMBERS:
        partition = table.partition(number)
        if number == 1:
            partition.type = PartitionType.GPT
            partition.start_lba = PROTECTIVE_START_LBA
            partition.length_lba = length_lba
        else:
            partition.type = PartitionType.EMPTY
            partition.start_lba = 0
            partition.length_lba = 0
        partition.bootable = False
