"""A flat directory of file names and file-header sectors.

The directory is a fixed table of entries stored as an ordinary file.
File names are limited to ``FILE_NAME_MAX_LEN`` bytes; longer names are
truncated, and lookups compare only that many bytes. The table never
grows: once every entry is in use no more files can be added.
"""

from __future__ import annotations

import struct
from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol

from .filehdr import FileHeader

if TYPE_CHECKING:
    from .synchdisk import SynchDisk

FILE_NAME_MAX_LEN = 9

# bool in_use, 3 padding bytes, int sector, char name[10], 2 padding bytes
_ENTRY = struct.Struct(f"<?3xi{FILE_NAME_MAX_LEN + 1}s2x")
ENTRY_SIZE = _ENTRY.size


class _RandomAccessFile(Protocol):
    def read_at(self, num_bytes: int, position: int) -> bytes: ...

    def write_at(self, data: bytes, position: int) -> int: ...


def _key(name: str) -> bytes:
    return name.encode("utf-8")[:FILE_NAME_MAX_LEN]


@dataclass
class DirectoryEntry:
    """One slot of the directory: a file name and its header sector."""

    in_use: bool = False
    sector: int = 0
    name: str = ""

    @property
    def key(self) -> bytes:
        return _key(self.name)


class Directory:
    """A fixed-size table mapping file names to header sectors."""

    def __init__(self, size: int) -> None:
        self.entries = [DirectoryEntry() for _ in range(size)]

    def __len__(self) -> int:
        return len(self.entries)

    def fetch_from(self, file: _RandomAccessFile) -> None:
        """Load the table from the start of ``file``."""
        self.load_bytes(file.read_at(len(self.entries) * ENTRY_SIZE, 0))

    def write_back(self, file: _RandomAccessFile) -> None:
        """Store the table at the start of ``file``."""
        file.write_at(self.to_bytes(), 0)

    def _find_entry(self, name: str) -> DirectoryEntry | None:
        key = _key(name)
        return next((e for e in self.entries if e.in_use and e.key == key), None)

    def find(self, name: str) -> int | None:
        """Return the header sector of ``name``, or None if absent."""
        entry = self._find_entry(name)
        return entry.sector if entry is not None else None

    def add(self, name: str, sector: int) -> bool:
        """Add ``name``; False if it already exists or the table is full."""
        if self._find_entry(name) is not None:
            return False
        free = next((e for e in self.entries if not e.in_use), None)
        if free is None:
            return False
        free.in_use = True
        free.name = _key(name).decode("utf-8", errors="ignore")
        free.sector = sector
        return True

    def remove(self, name: str) -> bool:
        """Remove ``name``; False if it is not in the directory."""
        entry = self._find_entry(name)
        if entry is None:
            return False
        entry.in_use = False
        return True

    def names(self) -> list[str]:
        """Return the names of all files, in table order."""
        return [e.name for e in self.entries if e.in_use]

    def to_bytes(self) -> bytes:
        """Serialize the whole table."""
        return b"".join(
            _ENTRY.pack(e.in_use, e.sector, e.key) for e in self.entries
        )

    def load_bytes(self, data: bytes) -> None:
        """Replace the table contents with serialized entries."""
        raw = bytes(data).ljust(len(self.entries) * ENTRY_SIZE, b"\0")
        for index, entry in enumerate(self.entries):
            in_use, sector, name = _ENTRY.unpack_from(raw, index * ENTRY_SIZE)
            entry.in_use = in_use
            entry.sector = sector
            entry.name = name.split(b"\0", 1)[0].decode("utf-8", errors="ignore")

    def describe(self, disk: "SynchDisk") -> str:
        """Return every file's name, header sector, header and contents."""
        parts = ["Directory contents:\n"]
        for entry in self.entries:
            if entry.in_use:
                parts.append(f"Name: {entry.name}, Sector: {entry.sector}\n")
                hdr = FileHeader()
                hdr.fetch_from(disk, entry.sector)
                parts.append(hdr.describe(disk))
        parts.append("\n")
        return "".join(parts)