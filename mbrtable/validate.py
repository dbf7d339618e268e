"""Consistency checks of an MBR partition table.

``check_table()`` runs all checks in a fixed order and raises on the first
failure:

1. The signature must be ``55 AA``.
2. For each non-empty partition entry, in order of partition number:

   a. its last sector must be addressable using 32 bits,
   b. its status byte must be ``0x00`` or ``0x80``,
   c. its starting sector must not lie inside another non-empty partition.

Partition entries sharing the same starting sector are not considered to be
intersecting. ``BoundsWarning`` is emitted for them instead, which is raised
like an exception if warnings are turned into errors (e.g. ``-W error``).
"""

from __future__ import annotations

import warnings
from itertools import combinations
from typing import TYPE_CHECKING, Iterable

from .base import (
    BadBootFlagError,
    BadSignatureError,
    BoundsWarning,
    LastSectorTooHighError,
    PartitionsIntersectError,
)
from .constants import (
    MAX_LBA,
    SIGNATURE,
    STATUS_ACTIVE,
    STATUS_INACTIVE,
    PartitionType,
)

if TYPE_CHECKING:
    from .mbr import PartitionEntry, Table

__all__ = [
    "check_signature",
    "check_last_sector",
    "check_boot_flag",
    "check_intersections",
    "check_shared_start",
    "check_table",
]


def check_signature(signature: bytes) -> None:
    """Raise ``BadSignatureError`` if ``signature`` is not the MBR signature."""
    if signature != SIGNATURE:
        raise BadSignatureError(signature)


def check_last_sector(partition: PartitionEntry) -> None:
    """Check if the last sector of a non-empty partition is addressable.

    GPT partitioning tools write a length of ``0xFFFFFFFF`` sectors for the
    partition of a protective MBR, which makes it end one sector beyond the
    addressable range. This is accepted for the first partition entry if it is
    of type ``PartitionType.GPT``.
    """
    end = partition.start_lba + partition.length_lba  # exclusive
    if end <= MAX_LBA:
        return
    if (
        partition.number == 1
        and partition.type == PartitionType.GPT
        and end == MAX_LBA + 1
    ):
        return
    raise LastSectorTooHighError(partition.number, end - 1)


def check_boot_flag(partition: PartitionEntry) -> None:
    """Check if the status byte of a partition entry holds a known value."""
    flag = partition.boot_flag
    if flag not in (STATUS_ACTIVE, STATUS_INACTIVE):
        raise BadBootFlagError(partition.number, flag)


def check_intersections(
    partition: PartitionEntry, others: Iterable[PartitionEntry]
) -> None:
    """Check that the starting sector of ``partition`` does not lie strictly inside
    any of the non-empty partitions in ``others``.

    Entries of ``others`` with the same partition number as ``partition`` are
    skipped.
    """
    start = partition.start_lba
    for other in others:
        if other.number == partition.number or other.empty:
            continue
        if other.start_lba < start < other.start_lba + other.length_lba:
            raise PartitionsIntersectError(partition.number, other.number)


def check_shared_start(partitions: Iterable[PartitionEntry]) -> None:
    """Emit ``BoundsWarning`` for each pair of non-empty partitions starting at the
    same sector.

    Such partitions are not rejected by ``check_intersections()``.
    """
    used = [p for p in partitions if not p.empty]
    for left, right in combinations(used, 2):
        if left.start_lba == right.start_lba:
            warnings.warn(
                f"Partitions {left.number} and {right.number} both start at sector "
                f"{left.start_lba}",
                BoundsWarning,
            )


def check_table(table: Table) -> None:
    """Run all consistency checks on ``table``.

    Never modifies ``table``. Raises a subclass of ``ValidationError`` on the first
    check that fails.
    """
    check_signature(table.signature)

    partitions = table.partitions
    for partition in partitions:
        if partition.empty:
            continue
        check_last_sector(partition)
        check_boot_flag(partition)
        check_intersections(partition, partitions)

    check_shared_start(partitions)
