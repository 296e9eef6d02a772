"""Reading and writing an open file on the simulated disk.

The file header is kept in memory while the file is open. The disk only
transfers whole sectors. Reads fetch every sector the request touches
and keep the wanted bytes. Writes first read any sector that is only
partly overwritten, so the bytes around the request are preserved.

Files have a fixed length set when they are created. Requests are
clipped at the end of the file, and nothing is transferred past it.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from .disk import SECTOR_SIZE
from .filehdr import FileHeader

if TYPE_CHECKING:
    from .synchdisk import SynchDisk


class OpenFile:
    """An open file with a current position for sequential access.

    ``kind`` is an optional tag for the caller's use, such as marking
    console streams apart from ordinary files.
    """

    def __init__(self, disk: "SynchDisk", sector: int, kind: int | None = None) -> None:
        self._disk = disk
        self.header_sector = sector
        self.kind = kind
        self._hdr = FileHeader()
        self._hdr.fetch_from(disk, sector)
        self._position = 0

    def seek(self, position: int) -> None:
        """Set where the next read or write starts."""
        self._position = position

    def tell(self) -> int:
        """Return the current position in the file."""
        return self._position

    def read(self, num_bytes: int) -> bytes:
        """Read from the current position and advance past what was read."""
        data = self.read_at(num_bytes, self._position)
        self._position += len(data)
        return data

    def write(self, data: bytes) -> int:
        """Write at the current position and advance past what was written."""
        written = self.write_at(data, self._position)
        self._position += written
        return written

    def _clip(self, num_bytes: int, position: int) -> int:
        if position < 0:
            raise ValueError(f"position {position} is negative")
        length = self._hdr.file_length()
        if num_bytes <= 0 or position >= length:
            return 0
        return min(num_bytes, length - position)

    def read_at(self, num_bytes: int, position: int) -> bytes:
        """Return up to ``num_bytes`` starting at ``position``.

        The current position is not changed. Fewer bytes come back when
        the request runs past the end of the file.
        """
        num_bytes = self._clip(num_bytes, position)
        if num_bytes == 0:
            return b""
        first = position // SECTOR_SIZE
        last = (position + num_bytes - 1) // SECTOR_SIZE
        buf = b"".join(
            self._disk.read_sector(self._hdr.byte_to_sector(i * SECTOR_SIZE))
            for i in range(first, last + 1)
        )
        start = position - first * SECTOR_SIZE
        return buf[start : start + num_bytes]

    def write_at(self, data: bytes, position: int) -> int:
        """Write ``data`` starting at ``position`` and return how many bytes were written.

        The current position is not changed. Bytes that would fall past the
        end of the file are dropped.
        """
        num_bytes = self._clip(len(data), position)
        if num_bytes == 0:
            return 0
        first = position // SECTOR_SIZE
        last = (position + num_bytes - 1) // SECTOR_SIZE
        buf = bytearray((last - first + 1) * SECTOR_SIZE)

        first_aligned = position == first * SECTOR_SIZE
        last_aligned = position + num_bytes == (last + 1) * SECTOR_SIZE

        if not first_aligned:
            buf[:SECTOR_SIZE] = self._disk.read_sector(
                self._hdr.byte_to_sector(first * SECTOR_SIZE)
            )
        if not last_aligned and (first != last or first_aligned):
            offset = (last - first) * SECTOR_SIZE
            buf[offset : offset + SECTOR_SIZE] = self._disk.read_sector(
                self._hdr.byte_to_sector(last * SECTOR_SIZE)
            )

        start = position - first * SECTOR_SIZE
        buf[start : start + num_bytes] = bytes(data[:num_bytes])

        for i in range(first, last + 1):
            offset = (i - first) * SECTOR_SIZE
            self._disk.write_sector(
                self._hdr.byte_to_sector(i * SECTOR_SIZE),
                bytes(buf[offset : offset + SECTOR_SIZE]),
            )
        return num_bytes

    def length(self) -> int:
        """Return the file length in bytes."""
        return self._hdr.file_length()