"""Command line interface for inspecting and rewriting the MBR of a disk."""

from __future__ import annotations

import argparse
import logging
import sys
from typing import Sequence

from .base import MbrError
from .constants import MIN_LSS, SIZE
from .disk import Disk
from .mbr import Table
from .protective import ProtectiveType

__all__ = ["main"]


log = logging.getLogger(__name__)


BYTES_PER_LINE = 16

PROTECTIVE_TYPES = {
    "default": ProtectiveType.DEFAULT,
    "max-size": ProtectiveType.MAX_SIZE,
    "disk-size": ProtectiveType.DISK_SIZE,
}


def hexdump(b: bytes) -> str:
    """Format ``b`` as lines of offset, hex bytes and printable characters."""
    lines = []
    for offset in range(0, len(b), BYTES_PER_LINE):
        chunk = b[offset : offset + BYTES_PER_LINE]
        hex_ = " ".join(f"{byte:02x}" for byte in chunk)
        text = "".join(chr(byte) if 0x20 <= byte < 0x7F else "." for byte in chunk)
        lines.append(f"{offset:08x}  {hex_:<{BYTES_PER_LINE * 3 - 1}}  |{text}|")
    return "\n".join(lines)


def describe(table: Table) -> str:
    """One line per partition entry of ``table``."""
    lines = []
    for p in table.partitions:
        if p.empty:
            lines.append(f"{p.number}: empty")
            continue
        type_ = getattr(p.type, "name", None) or f"{p.type:#04x}"
        boot = " bootable" if p.bootable else ""
        lines.append(
            f"{p.number}: {type_} start={p.start_lba} length={p.length_lba}{boot}"
        )
    return "\n".join(lines)


def _read_sector(args: argparse.Namespace) -> Table:
    with Disk.open(args.disk, sector_size=args.sector_size) as disk:
        return Table.from_bytes(disk.read_at(0, 1)[:SIZE])


def cmd_dump(args: argparse.Namespace) -> int:
    print(hexdump(bytes(_read_sector(args))))
    return 0


def cmd_show(args: argparse.Namespace) -> int:
    table = _read_sector(args)
    print(describe(table))
    print(f"GPT: {'yes' if table.is_gpt() else 'no'}")
    table.check()
    print("MBR is valid")
    return 0


def cmd_fix_signature(args: argparse.Namespace) -> int:
    with Disk.open(args.disk, sector_size=args.sector_size, readonly=False) as disk:
        table = Table.from_bytes(disk.read_at(0, 1)[:SIZE])
        table.fix_signature()
        disk.write_table(table)
    return 0


def cmd_protect(args: argparse.Namespace) -> int:
    with Disk.open(args.disk, sector_size=args.sector_size, readonly=False) as disk:
        table = disk.protect(PROTECTIVE_TYPES[args.mode])
    print(describe(table))
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="mbrtable", description="Inspect and rewrite the MBR of a disk."
    )
    parser.add_argument(
        "-v", "--verbose", action="count", default=0, help="more log output"
    )
    sub = parser.add_subparsers(dest="cmd", required=True)

    commands = [
        ("dump", cmd_dump, "print the raw bytes of the MBR"),
        ("show", cmd_show, "list partition entries and validate the MBR"),
        ("fix-signature", cmd_fix_signature, "write a valid MBR signature"),
        ("protect", cmd_protect, "replace the MBR with a protective MBR"),
    ]
    for name, func, help_ in commands:
        p = sub.add_parser(name, help=help_)
        p.add_argument("disk", help="disk image or block device")
        p.add_argument(
            "--sector-size",
            type=int,
            default=MIN_LSS,
            help="logical sector size in bytes (default: %(default)s)",
        )
        p.set_defaults(func=func)
        if name == "protect":
            p.add_argument(
                "--mode",
                choices=list(PROTECTIVE_TYPES),
                default="default",
                help="how the protective partition is sized (default: %(default)s)",
            )

    return parser


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    level = logging.WARNING - 10 * min(args.verbose, 2)
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")

    try:
        return args.func(args)
    except (MbrError, OSError, ValueError) as e:
        log.debug("Command failed", exc_info=True)
        print(f"error: {e}", file=sys.stderr)
        return 1
