"""Reading, validating and rewriting MBR partition tables.

Includes creation of protective MBRs for GPT partitioned disks.
"""

from .disk import Disk
from .mbr import PartitionEntry, PartitionType, ProtectiveType, Table

__all__ = ["Disk", "PartitionEntry", "PartitionType", "ProtectiveType", "Table"]
