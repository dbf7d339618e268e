"""Layout of the master boot record and well-known values found within it.

See https://en.wikipedia.org/wiki/Master_boot_record.
See https://wiki.osdev.org/Partition_Table.
"""

from enum import IntEnum

__all__ = [
    "SIZE",
    "BOOT_CODE_SIZE",
    "PARTITION_ENTRIES_START",
    "PARTITION_ENTRY_SIZE",
    "PARTITION_ENTRIES_COUNT",
    "PARTITION_NUMBERS",
    "SIGNATURE_START",
    "SIGNATURE",
    "STATUS_OFFSET",
    "TYPE_OFFSET",
    "START_LBA_OFFSET",
    "LENGTH_LBA_OFFSET",
    "STATUS_ACTIVE",
    "STATUS_INACTIVE",
    "MAX_LBA",
    "MIN_LSS",
    "PartitionType",
]


SIZE = 512  # regardless of the logical sector size of the disk
BOOT_CODE_SIZE = 446

PARTITION_ENTRIES_START = BOOT_CODE_SIZE
PARTITION_ENTRY_SIZE = 16
PARTITION_ENTRIES_COUNT = 4
PARTITION_NUMBERS = range(1, PARTITION_ENTRIES_COUNT + 1)

SIGNATURE_START = 510
SIGNATURE = b"\x55\xaa"

# offsets within a partition entry
# bytes 1-3 and 5-7 hold CHS addresses, which are neither read nor written
STATUS_OFFSET = 0
TYPE_OFFSET = 4
START_LBA_OFFSET = 8
LENGTH_LBA_OFFSET = 12

STATUS_ACTIVE = 0x80
STATUS_INACTIVE = 0x00

MAX_LBA = 0xFFFFFFFF

MIN_LSS = 512  # minimum logical sector size required for MBR partitioning


class PartitionType(IntEnum):
    """Common MBR partition type."""

    EMPTY = 0x00
    FAT12 = 0x01
    FAT16 = 0x04
    EXTENDED_CHS = 0x05
    FAT16B = 0x06
    NTFS = 0x07
    FAT32_CHS = 0x0B
    FAT32_LBA = 0x0C
    FAT16B_LBA = 0x0E
    EXTENDED_LBA = 0x0F
    LINUX_SWAP_SOLARIS = 0x82
    LINUX = 0x83
    LINUX_EXTENDED = 0x85
    LINUX_LVM = 0x8E
    HYBRID_GPT = 0xED
    GPT = 0xEE
    EFI_SYSTEM = 0xEF
