"""A flat file system on the simulated disk.

Every file has a header in its own sector, some data sectors and an
entry in the single root directory. The map of free sectors and the
directory are themselves files. Their headers live in fixed sectors
(0 and 1) so they can be found when the disk is mounted, and both stay
open while the file system is in use.

Operations that change the directory or the free map write the changes
back only when they succeed. A failed operation drops its in-memory
changes and leaves the disk untouched.

Restrictions: no concurrent access, file sizes are fixed at creation,
files are at most ``MAX_FILE_SIZE`` bytes, and the directory holds at
most ``NUM_DIR_ENTRIES`` files.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from .directory import ENTRY_SIZE, Directory
from .disk import NUM_SECTORS
from .filehdr import FileHeader, SectorMap
from .openfile import OpenFile

if TYPE_CHECKING:
    from .synchdisk import SynchDisk

FREE_MAP_SECTOR = 0
DIRECTORY_SECTOR = 1

BITS_IN_BYTE = 8
FREE_MAP_FILE_SIZE = NUM_SECTORS // BITS_IN_BYTE
NUM_DIR_ENTRIES = 10
DIRECTORY_FILE_SIZE = ENTRY_SIZE * NUM_DIR_ENTRIES

MAX_OPEN_FILES = 15
FIRST_USER_SLOT = 2

log = logging.getLogger(__name__)


class FileSystemError(Exception):
    """Raised when a file system operation cannot be carried out."""


class FileSystem:
    """Names, creates, opens and removes files on a :class:`SynchDisk`.

    ``open_files`` is a table of open files for callers that hand out
    file descriptors. Slots 0 and 1 are reserved for the console streams;
    :meth:`find_free_slot` looks for a free slot among the rest.
    """

    def __init__(self, disk: "SynchDisk", format: bool = False) -> None:
        self._disk = disk
        self.open_files: list[OpenFile | None] = [None] * MAX_OPEN_FILES
        log.debug("Initializing the file system.")
        if format:
            self._format()
        self._free_map_file = OpenFile(disk, FREE_MAP_SECTOR)
        self._directory_file = OpenFile(disk, DIRECTORY_SECTOR)
        if format:
            log.debug("Writing bitmap and directory back to disk.")
            self._save_free_map(self._initial_map)
            Directory(NUM_DIR_ENTRIES).write_back(self._directory_file)
            del self._initial_map
            if log.isEnabledFor(logging.DEBUG):
                log.debug("%s", self._describe_free_map(self._load_free_map()))
                log.debug("%s", self._load_directory().describe(self._disk))

    def _format(self) -> None:
        log.debug("Formatting the file system.")
        free_map = SectorMap(NUM_SECTORS)
        map_hdr = FileHeader()
        dir_hdr = FileHeader()

        # Reserve the header sectors before anything else can take them.
        free_map.mark(FREE_MAP_SECTOR)
        free_map.mark(DIRECTORY_SECTOR)

        if not map_hdr.allocate(free_map, FREE_MAP_FILE_SIZE):
            raise FileSystemError("no space for the free map")
        if not dir_hdr.allocate(free_map, DIRECTORY_FILE_SIZE):
            raise FileSystemError("no space for the directory")

        # The headers must be on disk before the files can be opened.
        log.debug("Writing headers back to disk.")
        map_hdr.write_back(self._disk, FREE_MAP_SECTOR)
        dir_hdr.write_back(self._disk, DIRECTORY_SECTOR)
        self._initial_map = free_map

    def _load_directory(self) -> Directory:
        directory = Directory(NUM_DIR_ENTRIES)
        directory.fetch_from(self._directory_file)
        return directory

    def _load_free_map(self) -> SectorMap:
        data = self._free_map_file.read_at(FREE_MAP_FILE_SIZE, 0)
        return SectorMap.from_bytes(data, NUM_SECTORS)

    def _save_free_map(self, free_map: SectorMap) -> None:
        self._free_map_file.write_at(free_map.to_bytes(), 0)

    def create(self, name: str, initial_size: int) -> None:
        """Create a file of fixed size ``initial_size``.

        Raises FileSystemError if the name exists, there is no free
        sector for the header, the directory is full, or there is not
        enough space for the data.
        """
        log.debug("Creating file %s, size %d", name, initial_size)
        directory = self._load_directory()
        if directory.find(name) is not None:
            raise FileSystemError(f"file {name!r} already exists")

        free_map = self._load_free_map()
        sector = free_map.find()
        if sector is None:
            raise FileSystemError("no free sector for the file header")
        if not directory.add(name, sector):
            raise FileSystemError("directory is full")

        hdr = FileHeader()
        if not hdr.allocate(free_map, initial_size):
            raise FileSystemError(f"no space on disk for {initial_size} bytes")

        hdr.write_back(self._disk, sector)
        directory.write_back(self._directory_file)
        self._save_free_map(free_map)

    def open(self, name: str, kind: int | None = None) -> OpenFile:
        """Open ``name`` for reading and writing.

        Raises FileSystemError if there is no such file.
        """
        log.debug("Opening file %s", name)
        sector = self._load_directory().find(name)
        if sector is None:
            raise FileSystemError(f"no such file {name!r}")
        return OpenFile(self._disk, sector, kind)

    def remove(self, name: str) -> None:
        """Delete ``name`` and free its header and data sectors.

        Raises FileSystemError if there is no such file.
        """
        directory = self._load_directory()
        sector = directory.find(name)
        if sector is None:
            raise FileSystemError(f"no such file {name!r}")

        hdr = FileHeader()
        hdr.fetch_from(self._disk, sector)
        free_map = self._load_free_map()

        hdr.deallocate(free_map)
        free_map.clear(sector)
        directory.remove(name)

        self._save_free_map(free_map)
        directory.write_back(self._directory_file)

    def list(self) -> list[str]:
        """Return the names of all files in the directory."""
        return self._load_directory().names()

    @staticmethod
    def _describe_free_map(free_map: SectorMap) -> str:
        used = " ".join(str(i) for i in range(len(free_map)) if free_map.test(i))
        return f"Free map, sectors in use:\n{used}\n"

    def describe(self) -> str:
        """Return the free map, the directory and every file as text."""
        bit_hdr = FileHeader()
        dir_hdr = FileHeader()
        bit_hdr.fetch_from(self._disk, FREE_MAP_SECTOR)
        dir_hdr.fetch_from(self._disk, DIRECTORY_SECTOR)
        return "".join(
            [
                "Bit map file header:\n",
                bit_hdr.describe(self._disk),
                "Directory file header:\n",
                dir_hdr.describe(self._disk),
                self._describe_free_map(self._load_free_map()),
                self._load_directory().describe(self._disk),
            ]
        )

    def find_free_slot(self) -> int | None:
        """Return the lowest free user slot in ``open_files``, or None."""
        return next(
            (
                i
                for i in range(FIRST_USER_SLOT, MAX_OPEN_FILES)
                if self.open_files[i] is None
            ),
            None,
        )