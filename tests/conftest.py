"""Fixtures used across the test suite."""

import os
from pathlib import Path
from tempfile import mkstemp

import pytest

from mbrtable.mbr import Table


@pytest.fixture
def tempfile():
    """Fixture providing a new temporary file for testing purposes.

    Returns a ``pathlib.Path`` object representing the path of the temporary file.
    """
    fd, path_str = mkstemp()
    os.close(fd)  # we are going to use a Path object instead
    path = Path(path_str)
    yield path
    path.unlink(missing_ok=True)  # clean up


@pytest.fixture
def table():
    """Fixture providing a zero-filled MBR with a valid signature."""
    t = Table.from_bytes(bytes(512))
    t.fix_signature()
    return t


@pytest.fixture
def image(request, tempfile):
    """Fixture providing a disk image for testing purposes.

    Parametrized using a ``tuple`` of (desired size of the image in bytes, bytes to
    place at the start of the image). Defaults to a 1 MiB image starting with an
    empty MBR.

    Returns a ``pathlib.Path`` object representing the path of the image.
    """
    size, head = getattr(request, "param", (1 << 20, bytes(Table.new())))
    with tempfile.open("wb") as f:
        f.truncate(size)
        f.write(head)
    return tempfile
