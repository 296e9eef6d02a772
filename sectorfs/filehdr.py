"""On-disk file headers and the free-sector map.

A file header records where a file's data lives on disk: the file length
and a fixed table of direct sector numbers. It is sized to fit in exactly
one disk sector, so there are no indirect blocks and files are limited to
``MAX_FILE_SIZE`` bytes.
"""

from __future__ import annotations

import struct
from typing import TYPE_CHECKING

from .disk import SECTOR_SIZE

if TYPE_CHECKING:
    from .synchdisk import SynchDisk

_INT_SIZE = 4
NUM_DIRECT = (SECTOR_SIZE - 2 * _INT_SIZE) // _INT_SIZE
MAX_FILE_SIZE = NUM_DIRECT * SECTOR_SIZE

_HEADER = struct.Struct(f"<ii{NUM_DIRECT}i")


def _div_round_up(n: int, s: int) -> int:
    return -(-n // s)


class SectorMap:
    """A fixed-size bitmap recording which disk sectors are in use.

    Bit ``i`` is stored in byte ``i // 8`` at bit position ``i % 8``.
    """

    def __init__(self, size: int) -> None:
        if size < 0:
            raise ValueError("bitmap size must not be negative")
        self.size = size
        self._bits = bytearray(_div_round_up(size, 8))

    def __len__(self) -> int:
        return self.size

    def _check(self, index: int) -> None:
        if not 0 <= index < self.size:
            raise IndexError(f"bit {index} out of range 0..{self.size - 1}")

    def mark(self, index: int) -> None:
        """Set bit ``index``."""
        self._check(index)
        self._bits[index // 8] |= 1 << (index % 8)

    def clear(self, index: int) -> None:
        """Clear bit ``index``."""
        self._check(index)
        self._bits[index // 8] &= ~(1 << (index % 8)) & 0xFF

    def test(self, index: int) -> bool:
        """Return whether bit ``index`` is set."""
        self._check(index)
        return bool(self._bits[index // 8] & (1 << (index % 8)))

    def find(self) -> int | None:
        """Mark and return the lowest clear bit, or None when all are set."""
        index = next((i for i in range(self.size) if not self.test(i)), None)
        if index is not None:
            self.mark(index)
        return index

    def num_clear(self) -> int:
        """Return the number of clear bits."""
        return sum(not self.test(i) for i in range(self.size))

    def to_bytes(self) -> bytes:
        """Serialize the bitmap."""
        return bytes(self._bits)

    @classmethod
    def from_bytes(cls, data: bytes, size: int) -> "SectorMap":
        """Build a bitmap of ``size`` bits from serialized bytes."""
        bitmap = cls(size)
        raw = bytes(data[: len(bitmap._bits)]).ljust(len(bitmap._bits), b"\0")
        bitmap._bits[:] = raw
        spare = len(raw) * 8 - size
        if spare and raw:
            bitmap._bits[-1] &= 0xFF >> spare
        return bitmap


class FileHeader:
    """The i-node of a file: its length and the sectors holding its data."""

    def __init__(self) -> None:
        self.num_bytes = 0
        self.num_sectors = 0
        self.data_sectors: list[int] = []

    def allocate(self, free_map: SectorMap, file_size: int) -> bool:
        """Take data sectors for a new file from ``free_map``.

        Returns False when there are not enough free sectors.
        """
        if file_size < 0:
            raise ValueError("file size must not be negative")
        if file_size > MAX_FILE_SIZE:
            raise ValueError(f"file size {file_size} exceeds maximum {MAX_FILE_SIZE}")
        self.num_bytes = file_size
        self.num_sectors = _div_round_up(file_size, SECTOR_SIZE)
        if free_map.num_clear() < self.num_sectors:
            return False
        self.data_sectors = [free_map.find() for _ in range(self.num_sectors)]
        return True

    def deallocate(self, free_map: SectorMap) -> None:
        """Return this file's data sectors to ``free_map``."""
        for sector in self.data_sectors[: self.num_sectors]:
            if not free_map.test(sector):
                raise ValueError(f"sector {sector} is not marked as in use")
            free_map.clear(sector)

    def fetch_from(self, disk: "SynchDisk", sector: int) -> None:
        """Load this header from ``sector`` on ``disk``."""
        loaded = self.from_bytes(disk.read_sector(sector))
        self.num_bytes = loaded.num_bytes
        self.num_sectors = loaded.num_sectors
        self.data_sectors = loaded.data_sectors

    def write_back(self, disk: "SynchDisk", sector: int) -> None:
        """Store this header in ``sector`` on ``disk``."""
        disk.write_sector(sector, self.to_bytes())

    def byte_to_sector(self, offset: int) -> int:
        """Return the disk sector holding byte ``offset`` of the file."""
        return self.data_sectors[offset // SECTOR_SIZE]

    def file_length(self) -> int:
        """Return the file length in bytes."""
        return self.num_bytes

    def to_bytes(self) -> bytes:
        """Serialize the header into exactly one sector."""
        table = list(self.data_sectors[:NUM_DIRECT])
        table += [0] * (NUM_DIRECT - len(table))
        packed = _HEADER.pack(self.num_bytes, self.num_sectors, *table)
        return packed.ljust(SECTOR_SIZE, b"\0")

    @classmethod
    def from_bytes(cls, data: bytes) -> "FileHeader":
        """Parse a header from sector contents."""
        if len(data) < _HEADER.size:
            raise ValueError(f"header needs {_HEADER.size} bytes, got {len(data)}")
        num_bytes, num_sectors, *table = _HEADER.unpack_from(data)
        if not 0 <= num_sectors <= NUM_DIRECT:
            raise ValueError(f"corrupt header: {num_sectors} sectors")
        header = cls()
        header.num_bytes = num_bytes
        header.num_sectors = num_sectors
        header.data_sectors = table[:num_sectors]
        return header

    def describe(self, disk: "SynchDisk") -> str:
        """Return the header and the file's contents as readable text."""
        parts = [f"FileHeader contents.  File size: {self.num_bytes}.  File blocks:\n"]
        parts.extend(f"{sector} " for sector in self.data_sectors[: self.num_sectors])
        parts.append("\nFile contents:\n")
        remaining = self.num_bytes
        for sector in self.data_sectors[: self.num_sectors]:
            data = disk.read_sector(sector)[: max(remaining, 0)]
            remaining -= len(data)
            parts.extend(chr(b) if 0x20 <= b <= 0x7E else f"\\{b:x}" for b in data)
            parts.append("\n")
        return "".join(parts)