"""Tests for the ``disk`` module."""

import pytest

from mbrtable.base import BadSignatureError, DiskSizeNotEvenSectorsError
from mbrtable.constants import PartitionType
from mbrtable.disk import Disk
from mbrtable.mbr import Table
from mbrtable.protective import ProtectiveType


def test_new(tempfile):
    """Test creating a new zero-filled disk image."""
    tempfile.unlink()
    with Disk.new(tempfile, 1 << 20) as disk:
        assert disk.size == 1 << 20
        assert disk.sector_size == 512
        assert not disk.device
        assert disk.writable
        assert disk.read_at(0, 1) == bytes(512)
    assert disk.closed
    assert tempfile.stat().st_size == 1 << 20


def test_read_table(image):
    with Disk.open(image) as disk:
        table = disk.read_table()
    assert table == Table.new()


@pytest.mark.parametrize("image", [(1 << 20, b"\x00" * 512)], indirect=True)
def test_read_table_invalid(image):
    """Test that an invalid MBR on disk is reported along with the table."""
    with Disk.open(image) as disk:
        with pytest.raises(BadSignatureError) as excinfo:
            disk.read_table()
    assert bytes(excinfo.value.table) == bytes(512)


def test_write_table(image):
    table = Table.new(boot_code=b"\xfa")
    p = table.partition(1)
    p.type = PartitionType.LINUX
    p.start_lba = 2048
    p.length_lba = 0x400
    p.bootable = True

    with Disk.open(image, readonly=False) as disk:
        disk.write_table(table)
    with Disk.open(image) as disk:
        assert disk.read_table() == table

    assert image.read_bytes()[:512] == bytes(table)


@pytest.mark.parametrize("image", [(4096 * 256, b"\xff" * 4096)], indirect=True)
def test_write_table_large_sector(image):
    """Test that the rest of the first sector is zeroed if sectors exceed 512
    bytes.
    """
    table = Table.new()
    with Disk.open(image, sector_size=4096, readonly=False) as disk:
        disk.write_table(table)
    b = image.read_bytes()
    assert b[:512] == bytes(table)
    assert b[512:4096] == bytes(3584)
    assert b[4096:8192] == bytes(4096)


def test_write_readonly(image):
    with Disk.open(image) as disk:
        with pytest.raises(ValueError, match="not writable"):
            disk.write_table(Table.new())


@pytest.mark.parametrize(
    "image", [(512 * 2048, b"\xeb\x63" + bytes(510))], indirect=True
)
def test_protect(image):
    """Test replacing an invalid MBR with a protective MBR sized to the disk."""
    with Disk.open(image, readonly=False) as disk:
        table = disk.protect(ProtectiveType.DISK_SIZE)
    assert table.partition(1).length_lba == 2047
    assert table.boot_code[:2] == b"\xeb\x63"

    with Disk.open(image) as disk:
        on_disk = disk.read_table()
    assert on_disk == table
    assert on_disk.is_gpt()


@pytest.mark.parametrize(
    "image", [(512 * 2048 + 100, bytes(Table.new()))], indirect=True
)
def test_protect_uneven(image):
    with Disk.open(image, readonly=False) as disk:
        with pytest.raises(DiskSizeNotEvenSectorsError):
            disk.protect(ProtectiveType.DISK_SIZE)
    assert image.read_bytes()[:512] == bytes(Table.new())


def test_read_at_bounds(image):
    with Disk.open(image) as disk:
        with pytest.raises(ValueError):
            disk.read_at(2048, 1)
        with pytest.raises(ValueError):
            disk.read_at(-1, 1)
        assert disk.read_at(0, 0) == b""


def test_closed(image):
    disk = Disk.open(image)
    disk.close()
    disk.close()  # no effect
    with pytest.raises(ValueError, match="closed"):
        disk.read_table()


@pytest.mark.parametrize("sector_size", [0, 256, 511])
def test_open_sector_size(image, sector_size):
    with pytest.raises(ValueError):
        Disk.open(image, sector_size=sector_size)
