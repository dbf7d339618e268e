"""Tests for the ``validate`` module."""

import warnings

import pytest

from mbrtable.base import (
    BadBootFlagError,
    BadSignatureError,
    BoundsWarning,
    LastSectorTooHighError,
    PartitionsIntersectError,
)
from mbrtable.constants import PartitionType
from mbrtable.validate import check_intersections, check_table


def set_partitions(table, *layout):
    """Fill partition entries of ``table`` with tuples of
    (start, length[, type[, boot flag]]).
    """
    for p, fields in zip(table.partitions, layout):
        if fields is None:
            continue
        start, length, *rest = fields
        type_ = rest[0] if rest else PartitionType.LINUX
        p.type = type_
        p.start_lba = start
        p.length_lba = length
        if len(rest) > 1:
            p.table._buffer[446 + 16 * (p.number - 1)] = rest[1]


@pytest.mark.parametrize(
    "layout",
    [
        [(100, 50), (150, 50)],  # adjacent
        [(150, 50), (100, 50)],  # adjacent, unordered
        [(1, 99), (200, 10), (100, 100), (210, 1)],
        [(2048, 0xFFFFF7FF)],  # highest end sector accepted
        [None, (63, 1000), None, (1063, 1000)],
    ],
)
def test_valid(table, layout):
    """Test partition layouts passing validation."""
    set_partitions(table, *layout)
    with warnings.catch_warnings():
        warnings.simplefilter("error")
        check_table(table)


@pytest.mark.parametrize(
    ["layout", "number", "other"],
    [
        ([(100, 50), (120, 10)], 2, 1),  # nested
        ([(120, 10), (100, 50)], 1, 2),  # nested, unordered
        ([(100, 50), (149, 10)], 2, 1),  # last sector shared
        ([(100, 50), (90, 20)], 1, 2),  # partial overlap, reported for 1
        ([(1, 10), (20, 10), (25, 1)], 3, 2),
    ],
)
def test_intersecting(table, layout, number, other):
    """Test that a partition starting inside another partition is detected."""
    set_partitions(table, *layout)
    with pytest.raises(PartitionsIntersectError) as excinfo:
        check_table(table)
    assert (excinfo.value.number, excinfo.value.other) == (number, other)


def test_intersecting_empty_ignored(table):
    """Test that empty entries do not take part in the intersection check."""
    set_partitions(table, (100, 50), (120, 10, PartitionType.EMPTY))
    check_table(table)
    check_intersections(table.partition(1), table.partitions)


def test_shared_start_not_intersecting(table):
    """Test that partitions with the same starting sector pass validation, with
    ``BoundsWarning`` being emitted.
    """
    set_partitions(table, (100, 50), (100, 10))
    with pytest.warns(BoundsWarning, match="Partitions 1 and 2"):
        check_table(table)


@pytest.mark.parametrize(
    "signature", [b"\x00\x00", b"\xaa\x55", b"\x55\xab", b"\xff\xff"]
)
def test_bad_signature(table, signature):
    table._buffer[510:] = signature
    set_partitions(table, (100, 50))
    with pytest.raises(BadSignatureError):
        check_table(table)


def test_bad_signature_first(table):
    """Test that the signature is checked before anything else."""
    table._buffer[510:] = b"\x00\x00"
    set_partitions(table, (100, 50, 0x83, 0x12), (120, 10))
    with pytest.raises(BadSignatureError):
        check_table(table)


@pytest.mark.parametrize("flag", [0x01, 0x7F, 0x81, 0xFF])
def test_bad_boot_flag(table, flag):
    set_partitions(table, (100, 50), (200, 50, 0x83, flag))
    with pytest.raises(BadBootFlagError) as excinfo:
        check_table(table)
    assert excinfo.value.number == 2
    assert excinfo.value.flag == flag


def test_bad_boot_flag_empty_ignored(table):
    """Test that the status byte of empty entries is not examined."""
    set_partitions(table, (100, 50), (0, 0, PartitionType.EMPTY, 0x42))
    check_table(table)


@pytest.mark.parametrize(
    ["layout", "number"],
    [
        ([(2, 0xFFFFFFFF)], 1),
        ([(1, 0xFFFFFFFF, PartitionType.LINUX)], 1),
        ([(1, 10), (1, 0xFFFFFFFF, PartitionType.GPT)], 2),
        ([(0xFFFFFFFF, 2)], 1),
        ([(2, 0xFFFFFFFF, PartitionType.GPT)], 1),
    ],
)
def test_last_sector_too_high(table, layout, number):
    set_partitions(table, *layout)
    with pytest.raises(LastSectorTooHighError) as excinfo:
        check_table(table)
    assert excinfo.value.number == number


def test_protective_exception(table):
    """Test that a protective partition of 0xFFFFFFFF sectors in the first entry is
    accepted although it ends beyond the addressable range.
    """
    set_partitions(table, (1, 0xFFFFFFFF, PartitionType.GPT))
    check_table(table)


def test_check_does_not_modify(table):
    set_partitions(table, (100, 50), (120, 10))
    before = bytes(table)
    for _ in range(3):
        with pytest.raises(PartitionsIntersectError):
            table.check()
    assert bytes(table) == before
