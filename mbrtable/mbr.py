"""MBR partitioning.

A ``Table`` owns the 512 bytes of a master boot record. Its partition entries are
not copies but views into these bytes: changing a ``PartitionEntry`` changes the
``Table`` it was obtained from, and vice versa.

Bytes which are not interpreted -- the boot code and the CHS addresses of the
partition entries -- are preserved as they are.

See https://en.wikipedia.org/wiki/Master_boot_record.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from .base import (
    BoundsWarning,
    MbrError,
    SectorAddressOverflowError,
    ShortReadError,
    ShortWriteError,
)
from .codec import MAX_U32, decode32, encode32
from .constants import (
    BOOT_CODE_SIZE,
    LENGTH_LBA_OFFSET,
    MAX_LBA,
    PARTITION_ENTRIES_START,
    PARTITION_ENTRY_SIZE,
    PARTITION_NUMBERS,
    SIGNATURE,
    SIGNATURE_START,
    SIZE,
    START_LBA_OFFSET,
    STATUS_ACTIVE,
    STATUS_INACTIVE,
    STATUS_OFFSET,
    TYPE_OFFSET,
    PartitionType,
)
from .protective import ProtectiveType, make_protective
from .validate import check_table

if TYPE_CHECKING:
    from .typing_ import ByteSink, ByteSource, ReadableBuffer

__all__ = ["Table", "PartitionEntry", "PartitionType", "ProtectiveType"]


log = logging.getLogger(__name__)


def _partition_type(value: int) -> PartitionType | int:
    try:
        return PartitionType(value)
    except ValueError:
        return value


class PartitionEntry:
    """Partition entry of an MBR partition table.

    Holds no data of its own. All reads and writes go to the bytes of the owning
    ``Table``, so multiple ``PartitionEntry`` objects of the same partition number
    always agree with each other.

    Do not use ``__init__`` directly, use ``Table.partition()`` or
    ``Table.partitions`` instead.
    """

    SIZE = PARTITION_ENTRY_SIZE

    def __init__(self, table: Table, number: int):
        self._table = table
        self._number = number
        self._offset = PARTITION_ENTRIES_START + (number - 1) * PARTITION_ENTRY_SIZE

    def _field(self, offset: int, size: int) -> memoryview:
        start = self._offset + offset
        return self._table._view[start : start + size]

    @property
    def table(self) -> Table:
        """Partition table this entry belongs to."""
        return self._table

    @property
    def number(self) -> int:
        """Partition number, from 1 to 4."""
        return self._number

    @property
    def type(self) -> PartitionType | int:
        """Partition type.

        Returned as ``PartitionType`` if known, as ``int`` otherwise.
        """
        return _partition_type(self._table._buffer[self._offset + TYPE_OFFSET])

    @type.setter
    def type(self, value: PartitionType | int) -> None:
        if not 0 <= value <= 0xFF:
            raise ValueError(
                f"Invalid partition type {value:#x}, must be a 1-byte value"
            )
        self._table._buffer[self._offset + TYPE_OFFSET] = value

    @property
    def empty(self) -> bool:
        """Whether the partition entry is considered empty / unused."""
        return self.type == PartitionType.EMPTY

    @property
    def start_lba(self) -> int:
        """Starting sector of the partition. Inclusive.

        Sector 0 holds the MBR itself, so 0 is only valid for empty entries.
        """
        return decode32(self._field(START_LBA_OFFSET, 4))

    @start_lba.setter
    def start_lba(self, value: int) -> None:
        self._set_u32(START_LBA_OFFSET, value, "starting sector")

    @property
    def length_lba(self) -> int:
        """Length of the partition in logical sectors."""
        return decode32(self._field(LENGTH_LBA_OFFSET, 4))

    @length_lba.setter
    def length_lba(self, value: int) -> None:
        self._set_u32(LENGTH_LBA_OFFSET, value, "length")

    def _set_u32(self, offset: int, value: int, name: str) -> None:
        if not 0 <= value <= MAX_U32:
            raise ValueError(
                f"Invalid partition {name} {value}, must be a 4-byte value"
            )
        encode32(value, self._field(offset, 4))

    @property
    def end_lba(self) -> int:
        """Ending sector of the partition. Inclusive.

        Raises ``SectorAddressOverflowError`` if the ending sector cannot be
        represented as a 32-bit sector address. Only use on entries which passed
        ``Table.check()``.
        """
        end = self.start_lba + self.length_lba - 1
        if not 0 <= end <= MAX_LBA:
            raise SectorAddressOverflowError(
                f"Overflow while calculating last sector of partition {self._number}: "
                f"sector {end} is not in range (0, {MAX_LBA})"
            )
        return end

    @property
    def boot_flag(self) -> int:
        """Raw status byte of the partition entry."""
        return self._table._buffer[self._offset + STATUS_OFFSET]

    @property
    def bootable(self) -> bool:
        """Whether the partition is marked as active."""
        return self.boot_flag == STATUS_ACTIVE

    @bootable.setter
    def bootable(self, value: bool) -> None:
        status = STATUS_ACTIVE if value else STATUS_INACTIVE
        self._table._buffer[self._offset + STATUS_OFFSET] = status

    def __bytes__(self) -> bytes:
        """Get ``bytes`` representation of partition entry."""
        return bytes(self._field(0, self.SIZE))

    def __eq__(self, other: Any) -> bool:
        if isinstance(other, PartitionEntry):
            return self._table is other._table and self._number == other._number
        return NotImplemented

    def __hash__(self) -> int:
        return hash((id(self._table), self._number))

    def __repr__(self) -> str:
        return (
            f"mbr.{self.__class__.__name__}(number={self._number}, "
            f"start_lba={self.start_lba}, length_lba={self.length_lba}, "
            f"type={self.type:#04x}, bootable={self.bootable})"
        )


class Table:
    """MBR partition table.

    Do not use ``__init__`` directly, use ``Table.new()``, ``Table.from_bytes()``
    or ``Table.read()`` instead.
    """

    SIZE = SIZE

    def __init__(self, buffer: bytearray):
        if len(buffer) != self.SIZE:
            raise ValueError(
                f"MBR must be {self.SIZE} bytes long, got {len(buffer)} bytes"
            )
        self._buffer = buffer
        self._view = memoryview(buffer)

    @classmethod
    def new(cls, *, boot_code: bytes = b"") -> Table:
        """New partition table without any partitions.

        ``boot_code`` is padded with zeroes.
        """
        if len(boot_code) > BOOT_CODE_SIZE:
            raise ValueError(
                f"MBR boot code can be at most {BOOT_CODE_SIZE} bytes long, got "
                f"{len(boot_code)} bytes"
            )
        table = cls(bytearray(cls.SIZE))
        table._buffer[: len(boot_code)] = boot_code
        table.fix_signature()
        return table

    @classmethod
    def from_bytes(cls, b: ReadableBuffer) -> Table:
        """Create partition table from a copy of ``b``.

        The contents are not validated, use ``check()`` to do so.
        """
        return cls(bytearray(b))

    @classmethod
    def read(cls, source: ByteSource) -> Table:
        """Read an MBR from ``source`` and validate it.

        Raises ``ShortReadError`` if ``source`` provides less than 512 bytes, or a
        subclass of ``ValidationError`` if the MBR is inconsistent. In both cases,
        the ``table`` attribute of the exception holds the partition table read so
        far, padded with zeroes, so that it can be inspected or repaired.
        The same holds for ``BoundsWarning`` if warnings are turned into errors::

            try:
                table = Table.read(f)
            except BadSignatureError as e:
                table = e.table
                table.fix_signature()
                table.check()
        """
        b = source.read(cls.SIZE)[: cls.SIZE]
        table = cls(bytearray(b) + bytearray(cls.SIZE - len(b)))

        try:
            if len(b) != cls.SIZE:
                raise ShortReadError(cls.SIZE, len(b))
            table.check()
        except (MbrError, BoundsWarning) as e:
            # BoundsWarning is only raised if warnings are turned into errors
            log.debug(f"Failed to read MBR: {e}")
            e.table = table  # type: ignore[union-attr]
            raise

        return table

    def write(self, sink: ByteSink) -> None:
        """Write all 512 bytes of the MBR to ``sink``.

        Raises ``ShortWriteError`` if ``sink`` did not accept all of them.
        """
        written = sink.write(bytes(self._buffer))
        if written != self.SIZE:
            raise ShortWriteError(self.SIZE, written or 0, table=self)

    def fix_signature(self) -> None:
        """Overwrite the signature bytes with ``55 AA``."""
        self._buffer[SIGNATURE_START:] = SIGNATURE

    def check(self) -> None:
        """Check the consistency of the partition table.

        Never modifies the table. See ``mbrtable.validate`` for the rules applied.

        Partitions sharing a starting sector pass, but ``BoundsWarning`` is emitted
        for them. With warnings turned into errors (e.g. ``-W error``), this
        warning is raised like an exception.
        """
        check_table(self)

    def partition(self, number: int) -> PartitionEntry:
        """Return the partition entry with number ``number``, from 1 to 4."""
        if number not in PARTITION_NUMBERS:
            raise IndexError(
                f"Partition number must be in range ({PARTITION_NUMBERS[0]}, "
                f"{PARTITION_NUMBERS[-1]}), got {number}"
            )
        return PartitionEntry(self, number)

    @property
    def partitions(self) -> tuple[PartitionEntry, ...]:
        """All four partition entries, ordered by partition number.

        Includes empty entries.
        """
        return tuple(PartitionEntry(self, number) for number in PARTITION_NUMBERS)

    def is_gpt(self) -> bool:
        """Whether any partition entry marks the disk as GPT partitioned."""
        return any(
            p.type in (PartitionType.GPT, PartitionType.HYBRID_GPT)
            for p in self.partitions
        )

    def make_protective(
        self,
        sector_size: int,
        disk_size: int,
        protective_type: ProtectiveType | int = ProtectiveType.DEFAULT,
    ) -> None:
        """Turn this table into a protective MBR for a GPT partitioned disk of
        ``disk_size`` bytes.

        See ``mbrtable.protective.make_protective()``.
        """
        make_protective(self, sector_size, disk_size, protective_type)

    @property
    def boot_code(self) -> bytes:
        return bytes(self._buffer[:BOOT_CODE_SIZE])

    @property
    def signature(self) -> bytes:
        return bytes(self._buffer[SIGNATURE_START:])

    def __bytes__(self) -> bytes:
        """Get ``bytes`` representation of MBR partition table."""
        return bytes(self._buffer)

    def __eq__(self, other: Any) -> bool:
        if isinstance(other, Table):
            return self._buffer == other._buffer
        return NotImplemented

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        used = sum(1 for p in self.partitions if not p.empty)
        return f"mbr.{self.__class__.__name__}({used})"
