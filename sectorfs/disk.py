"""Simulated physical disk stored in a host file.

The disk has a single surface split into tracks, each split into sectors.
Every request reads or writes a whole sector. Requests are asynchronous:
after a request the disk is busy until :meth:`Disk.handle_interrupt` is
called, which signals completion to the owner through ``on_done``.
"""

from __future__ import annotations

import logging
import os
import struct
from typing import BinaryIO, Callable

SECTOR_SIZE = 512
SECTORS_PER_TRACK = 32
NUM_TRACKS = 32
NUM_SECTORS = SECTORS_PER_TRACK * NUM_TRACKS

SEEK_TIME = 500
ROTATION_TIME = 500

MAGIC_NUMBER = 0x456789AB
_MAGIC = struct.Struct("<I")
MAGIC_SIZE = _MAGIC.size
DISK_SIZE = MAGIC_SIZE + NUM_SECTORS * SECTOR_SIZE

log = logging.getLogger(__name__)


class DiskError(Exception):
    """Raised for invalid disk images or invalid disk requests."""


def _dump_sector(writing: bool, sector: int, data: bytes) -> None:
    words = struct.unpack(f"<{SECTOR_SIZE // 4}I", data)
    action = "Writing" if writing else "Reading"
    log.debug("%s sector: %d\n%s", action, sector, " ".join(f"{w:x}" for w in words))


class Disk:
    """A sector-addressed disk backed by a host file.

    ``clock`` is a callable returning the current simulated time in ticks.
    After each request, ``pending_latency`` holds the number of ticks the
    request takes; the owner is expected to call :meth:`handle_interrupt`
    once that time has passed.
    """

    def __init__(
        self,
        path: str | os.PathLike[str],
        on_done: Callable[[], None],
        clock: Callable[[], int],
    ) -> None:
        self._on_done = on_done
        self._clock = clock
        self.last_sector = 0
        self.buffer_init = 0
        self.active = False
        self.pending_latency = 0
        self.num_reads = 0
        self.num_writes = 0

        self._file: BinaryIO
        if os.path.exists(path):
            self._file = open(path, "r+b")
            header = self._file.read(MAGIC_SIZE)
            if len(header) != MAGIC_SIZE or _MAGIC.unpack(header)[0] != MAGIC_NUMBER:
                self._file.close()
                raise DiskError(f"{os.fspath(path)!r} is not a disk image")
        else:
            self._file = open(path, "w+b")
            self._file.write(_MAGIC.pack(MAGIC_NUMBER))
            # Write at the very end so every sector can be read back.
            self._file.seek(DISK_SIZE - 4)
            self._file.write(bytes(4))
            self._file.flush()

    def _check_request(self, sector: int) -> None:
        if self.active:
            raise DiskError("a disk request is already in progress")
        if not 0 <= sector < NUM_SECTORS:
            raise DiskError(f"sector {sector} out of range")

    def read_request(self, sector: int) -> bytes:
        """Read one whole sector and start the busy period."""
        ticks = self.compute_latency(sector, False)
        self._check_request(sector)
        log.debug("Reading from sector %d", sector)
        self._file.seek(SECTOR_SIZE * sector + MAGIC_SIZE)
        data = self._file.read(SECTOR_SIZE)
        data = data.ljust(SECTOR_SIZE, b"\0")
        if log.isEnabledFor(logging.DEBUG):
            _dump_sector(False, sector, data)
        self._start(sector, ticks)
        self.num_reads += 1
        return data

    def write_request(self, sector: int, data: bytes) -> None:
        """Write one whole sector and start the busy period."""
        ticks = self.compute_latency(sector, True)
        self._check_request(sector)
        if len(data) != SECTOR_SIZE:
            raise ValueError(f"sector data must be {SECTOR_SIZE} bytes, got {len(data)}")
        log.debug("Writing to sector %d", sector)
        self._file.seek(SECTOR_SIZE * sector + MAGIC_SIZE)
        self._file.write(bytes(data))
        self._file.flush()
        if log.isEnabledFor(logging.DEBUG):
            _dump_sector(True, sector, bytes(data))
        self._start(sector, ticks)
        self.num_writes += 1

    def _start(self, sector: int, ticks: int) -> None:
        self.active = True
        self._update_last(sector)
        self.pending_latency = ticks

    def handle_interrupt(self) -> None:
        """Finish the current request and notify the owner."""
        self.active = False
        self._on_done()

    def _time_to_seek(self, new_sector: int) -> tuple[int, int]:
        new_track = new_sector // SECTORS_PER_TRACK
        old_track = self.last_sector // SECTORS_PER_TRACK
        seek = abs(new_track - old_track) * SEEK_TIME
        over = (self._clock() + seek) % ROTATION_TIME
        rotation = ROTATION_TIME - over if over > 0 else 0
        return seek, rotation

    @staticmethod
    def _modulo_diff(to: int, frm: int) -> int:
        return ((to % SECTORS_PER_TRACK) - (frm % SECTORS_PER_TRACK)) % SECTORS_PER_TRACK

    def compute_latency(self, new_sector: int, writing: bool) -> int:
        """Ticks a request to ``new_sector`` takes: seek, rotation and transfer."""
        seek, rotation = self._time_to_seek(new_sector)
        time_after = self._clock() + seek + rotation

        if (
            not writing
            and seek == 0
            and (time_after - self.buffer_init) // ROTATION_TIME
            > self._modulo_diff(new_sector, self.buffer_init // ROTATION_TIME)
        ):
            log.debug("Request latency = %d", ROTATION_TIME)
            return ROTATION_TIME

        rotation += self._modulo_diff(new_sector, time_after // ROTATION_TIME) * ROTATION_TIME
        latency = seek + rotation + ROTATION_TIME
        log.debug("Request latency = %d", latency)
        return latency

    def _update_last(self, new_sector: int) -> None:
        seek, rotation = self._time_to_seek(new_sector)
        if seek != 0:
            self.buffer_init = self._clock() + seek + rotation
        self.last_sector = new_sector
        log.debug("Updating last sector = %d, %d", self.last_sector, self.buffer_init)

    def close(self) -> None:
        """Close the backing file."""
        if not self._file.closed:
            self._file.close()

    def __enter__(self) -> "Disk":
        return self

    def __exit__(self, *args: object) -> None:
        self.close()