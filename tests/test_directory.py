import pytest

from sectorfs.directory import ENTRY_SIZE, FILE_NAME_MAX_LEN, Directory, DirectoryEntry
from sectorfs.disk import NUM_SECTORS, SECTOR_SIZE
from sectorfs.filehdr import FileHeader, SectorMap
from sectorfs.synchdisk import SynchDisk


class _MemoryFile:
    def __init__(self, size):
        self.data = bytearray(size)

    def read_at(self, num_bytes, position):
        return bytes(self.data[position : position + num_bytes])

    def write_at(self, data, position):
        self.data[position : position + len(data)] = data
        return len(data)


@pytest.fixture
def disk(tmp_path):
    with SynchDisk(tmp_path / "DISK") as d:
        yield d


def test_new_directory_is_empty():
    directory = Directory(10)
    assert directory.names() == []
    assert directory.find("a") is None


def test_add_and_find():
    directory = Directory(10)
    assert directory.add("alpha", 5)
    assert directory.add("beta", 7)
    assert directory.find("alpha") == 5
    assert directory.find("beta") == 7
    assert directory.names() == ["alpha", "beta"]


def test_add_duplicate_fails():
    directory = Directory(10)
    assert directory.add("alpha", 5)
    assert not directory.add("alpha", 6)
    assert directory.find("alpha") == 5


def test_add_to_full_directory_fails():
    directory = Directory(2)
    assert directory.add("a", 2)
    assert directory.add("b", 3)
    assert not directory.add("c", 4)
    assert directory.find("c") is None


def test_remove():
    directory = Directory(3)
    directory.add("a", 2)
    assert directory.remove("a")
    assert directory.find("a") is None
    assert not directory.remove("a")
    assert directory.add("b", 9)
    assert directory.names() == ["b"]


def test_long_names_are_truncated():
    directory = Directory(3)
    directory.add("abcdefghijkl", 4)
    assert directory.names() == ["abcdefghi"]
    assert directory.find("abcdefghi") == 4
    assert directory.find("abcdefghiXYZ") == 4
    assert len(directory.names()[0]) == FILE_NAME_MAX_LEN


def test_entry_layout():
    directory = Directory(1)
    directory.add("a", 5)
    expected = b"\x01\0\0\0" + (5).to_bytes(4, "little") + b"a" + b"\0" * 9 + b"\0\0"
    assert directory.to_bytes() == expected
    assert ENTRY_SIZE == len(expected)


def test_bytes_round_trip():
    directory = Directory(4)
    directory.add("one", 10)
    directory.add("two", 11)
    directory.remove("one")
    restored = Directory(4)
    restored.load_bytes(directory.to_bytes())
    assert restored.names() == ["two"]
    assert restored.find("two") == 11
    assert restored.entries == directory.entries


def test_write_back_and_fetch_from_file():
    directory = Directory(10)
    directory.add("hello", 3)
    file = _MemoryFile(10 * ENTRY_SIZE)
    directory.write_back(file)
    loaded = Directory(10)
    loaded.fetch_from(file)
    assert loaded.names() == ["hello"]
    assert loaded.find("hello") == 3


def test_default_entry_is_unused():
    entry = DirectoryEntry()
    assert not entry.in_use
    assert entry.name == ""


def test_describe_lists_files(disk):
    bitmap = SectorMap(NUM_SECTORS)
    bitmap.mark(0)
    hdr = FileHeader()
    hdr.allocate(bitmap, 2)
    disk.write_sector(hdr.data_sectors[0], b"hi".ljust(SECTOR_SIZE, b"\0"))
    header_sector = bitmap.find()
    hdr.write_back(disk, header_sector)

    directory = Directory(5)
    directory.add("greet", header_sector)
    text = directory.describe(disk)
    assert text == (
        "Directory contents:\n"
        f"Name: greet, Sector: {header_sector}\n"
        + hdr.describe(disk)
        + "\n"
    )
    assert "hi\n" in text