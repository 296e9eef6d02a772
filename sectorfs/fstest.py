"""Simple tools and a stress test for the file system.

``copy`` brings a host file into the file system, ``print_file`` writes
a file's contents out, and ``performance_test`` writes and reads a large
file in tiny chunks and then deletes it.
"""

from __future__ import annotations

import argparse
import sys
from functools import partial
from typing import TYPE_CHECKING, TextIO

from .disk import DiskError
from .filesys import FileSystem, FileSystemError
from .synchdisk import SynchDisk

if TYPE_CHECKING:
    import os

TRANSFER_SIZE = 10

FILE_NAME = "TestFile"
CONTENTS = b"1234567890"
CONTENT_SIZE = len(CONTENTS)
FILE_SIZE = CONTENT_SIZE * 5000


def copy(fs: FileSystem, source: "str | os.PathLike[str]", name: str) -> None:
    """Copy the host file ``source`` into a new file ``name``."""
    with open(source, "rb") as fp:
        fp.seek(0, 2)
        length = fp.tell()
        fp.seek(0)
        fs.create(name, length)
        target = fs.open(name)
        for chunk in iter(partial(fp.read, TRANSFER_SIZE), b""):
            target.write(chunk)


def print_file(fs: FileSystem, name: str, out: TextIO | None = None) -> None:
    """Write the contents of file ``name`` to ``out``, byte for character."""
    out = sys.stdout if out is None else out
    f = fs.open(name)
    for chunk in iter(partial(f.read, TRANSFER_SIZE), b""):
        out.write(chunk.decode("latin-1"))


def _stats(fs: FileSystem) -> str:
    disk = fs._disk
    return (
        f"Ticks: total {disk.ticks}\n"
        f"Disk I/O: reads {disk.disk.num_reads}, writes {disk.disk.num_writes}\n"
    )


def _file_write(fs: FileSystem, out: TextIO) -> bool:
    out.write(
        f"Sequential write of {FILE_SIZE} byte file, in {CONTENT_SIZE} byte chunks\n"
    )
    try:
        fs.create(FILE_NAME, 0)
    except FileSystemError:
        out.write(f"Perf test: can't create {FILE_NAME}\n")
        return False
    try:
        f = fs.open(FILE_NAME)
    except FileSystemError:
        out.write(f"Perf test: unable to open {FILE_NAME}\n")
        return False
    for _ in range(0, FILE_SIZE, CONTENT_SIZE):
        if f.write(CONTENTS) < CONTENT_SIZE:
            out.write(f"Perf test: unable to write {FILE_NAME}\n")
            return False
    return True


def _file_read(fs: FileSystem, out: TextIO) -> bool:
    out.write(
        f"Sequential read of {FILE_SIZE} byte file, in {CONTENT_SIZE} byte chunks\n"
    )
    try:
        f = fs.open(FILE_NAME)
    except FileSystemError:
        out.write(f"Perf test: unable to open file {FILE_NAME}\n")
        return False
    for _ in range(0, FILE_SIZE, CONTENT_SIZE):
        if f.read(CONTENT_SIZE) != CONTENTS:
            out.write(f"Perf test: unable to read {FILE_NAME}\n")
            return False
    return True


def performance_test(fs: FileSystem, out: TextIO | None = None) -> bool:
    """Write, read back and remove a large file, reporting to ``out``.

    Returns True when both the write and the read pass and the file is
    removed afterwards.
    """
    out = sys.stdout if out is None else out
    out.write("Starting file system performance test:\n")
    out.write(_stats(fs))
    wrote = _file_write(fs, out)
    read = _file_read(fs, out)
    try:
        fs.remove(FILE_NAME)
    except FileSystemError:
        out.write(f"Perf test: unable to remove {FILE_NAME}\n")
        return False
    out.write(_stats(fs))
    return wrote and read


def main(argv: list[str] | None = None) -> int:
    """Run file system commands against a disk image."""
    parser = argparse.ArgumentParser(prog="sectorfs")
    parser.add_argument("--disk", default="DISK", help="disk image file")
    parser.add_argument("-f", "--format", action="store_true", help="format the disk")
    parser.add_argument("--copy", nargs=2, metavar=("FROM", "TO"), help="copy a host file in")
    parser.add_argument("-p", "--print", dest="print_name", metavar="NAME", help="print a file")
    parser.add_argument("-r", "--remove", metavar="NAME", help="remove a file")
    parser.add_argument("-l", "--list", action="store_true", help="list files")
    parser.add_argument("-D", "--describe", action="store_true", help="dump the file system")
    parser.add_argument("-t", "--perf", action="store_true", help="run the performance test")
    args = parser.parse_args(argv)

    try:
        disk = SynchDisk(args.disk)
    except (DiskError, OSError) as exc:
        print(f"cannot open disk: {exc}", file=sys.stderr)
        return 1

    with disk:
        try:
            fs = FileSystem(disk, args.format)
        except (FileSystemError, ValueError) as exc:
            print(f"cannot mount file system: {exc}", file=sys.stderr)
            return 1

        if args.copy:
            source, name = args.copy
            try:
                copy(fs, source, name)
            except OSError:
                print(f"Copy: couldn't open input file {source}", file=sys.stderr)
                return 1
            except (FileSystemError, ValueError):
                print(f"Copy: couldn't create output file {name}", file=sys.stderr)
                return 1
        if args.print_name:
            try:
                print_file(fs, args.print_name)
            except FileSystemError:
                print(f"Print: unable to open file {args.print_name}", file=sys.stderr)
                return 1
        if args.remove:
            try:
                fs.remove(args.remove)
            except FileSystemError as exc:
                print(f"Remove: {exc}", file=sys.stderr)
                return 1
        if args.list:
            for name in fs.list():
                print(name)
        if args.describe:
            sys.stdout.write(fs.describe())
        if args.perf and not performance_test(fs):
            return 1
    return 0