"""Synchronous access to the simulated disk.

Each request waits until the disk signals completion. A lock allows only
one request to reach the disk at a time.
"""

from __future__ import annotations

import os
import threading

from .disk import Disk


class SynchDisk:
    """Blocking sector reads and writes on top of :class:`Disk`.

    Simulated time is kept in ``ticks`` and advances by each request's
    latency before the completion interrupt is delivered.
    """

    def __init__(self, path: str | os.PathLike[str]) -> None:
        self.ticks = 0
        self._semaphore = threading.Semaphore(0)
        self._lock = threading.Lock()
        self.disk = Disk(path, self.request_done, lambda: self.ticks)

    def _wait(self) -> None:
        self.ticks += self.disk.pending_latency
        self.disk.handle_interrupt()
        self._semaphore.acquire()

    def read_sector(self, sector: int) -> bytes:
        """Return the contents of ``sector`` once it has been read."""
        with self._lock:
            data = self.disk.read_request(sector)
            self._wait()
        return data

    def write_sector(self, sector: int, data: bytes) -> None:
        """Write ``data`` to ``sector`` and return once it is written."""
        with self._lock:
            self.disk.write_request(sector, data)
            self._wait()

    def request_done(self) -> None:
        """Wake the request waiting for the disk."""
        self._semaphore.release()

    def close(self) -> None:
        """Close the underlying disk."""
        self.disk.close()

    def __enter__(self) -> "SynchDisk":
        return self

    def __exit__(self, *args: object) -> None:
        self.close()