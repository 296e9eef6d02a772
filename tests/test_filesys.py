import pytest

from sectorfs.filehdr import MAX_FILE_SIZE
from sectorfs.filesys import (
    MAX_OPEN_FILES,
    NUM_DIR_ENTRIES,
    FileSystem,
    FileSystemError,
)
from sectorfs.synchdisk import SynchDisk


@pytest.fixture
def disk(tmp_path):
    with SynchDisk(tmp_path / "DISK") as d:
        yield d


@pytest.fixture
def fs(disk):
    return FileSystem(disk, True)


def test_fresh_file_system_is_empty(fs):
    assert fs.list() == []


def test_create_lists_file_with_its_size(fs):
    fs.create("alpha", 700)
    assert fs.list() == ["alpha"]
    assert fs.open("alpha").length() == 700


def test_write_then_read_round_trip(fs):
    payload = bytes(range(256)) * 3
    fs.create("data", len(payload))
    f = fs.open("data")
    assert f.write(payload) == len(payload)
    assert fs.open("data").read(len(payload)) == payload


def test_create_duplicate_raises(fs):
    fs.create("dup", 10)
    with pytest.raises(FileSystemError):
        fs.create("dup", 20)
    assert fs.list() == ["dup"]


def test_open_missing_raises(fs):
    with pytest.raises(FileSystemError):
        fs.open("nothing")


def test_remove_missing_raises(fs):
    with pytest.raises(FileSystemError):
        fs.remove("nothing")


def test_remove_deletes_file(fs):
    fs.create("gone", 100)
    fs.remove("gone")
    assert fs.list() == []
    with pytest.raises(FileSystemError):
        fs.open("gone")


def test_remove_frees_sectors_for_reuse(fs):
    fs.create("first", 2000)
    sector = fs.open("first").header_sector
    fs.remove("first")
    fs.create("second", 2000)
    assert fs.open("second").header_sector == sector


def test_directory_full(fs):
    for i in range(NUM_DIR_ENTRIES):
        fs.create(f"f{i}", 1)
    with pytest.raises(FileSystemError):
        fs.create("extra", 1)
    assert len(fs.list()) == NUM_DIR_ENTRIES


def test_disk_full_leaves_directory_unchanged(fs):
    created = []
    with pytest.raises(FileSystemError):
        for i in range(NUM_DIR_ENTRIES):
            fs.create(f"big{i}", MAX_FILE_SIZE)
            created.append(f"big{i}")
    assert 0 < len(created) < NUM_DIR_ENTRIES
    assert fs.list() == created


def test_negative_size_rejected(fs):
    with pytest.raises(ValueError):
        fs.create("neg", -1)
    assert fs.list() == []


def test_contents_persist_across_mounts(tmp_path):
    path = tmp_path / "DISK"
    with SynchDisk(path) as disk:
        fs = FileSystem(disk, True)
        fs.create("keep", 5)
        fs.open("keep").write(b"hello")
    with SynchDisk(path) as disk:
        fs = FileSystem(disk, False)
        assert fs.list() == ["keep"]
        assert fs.open("keep").read(5) == b"hello"


def test_open_passes_kind(fs):
    fs.create("typed", 1)
    assert fs.open("typed", 3).kind == 3
    assert fs.open("typed").kind is None


def test_find_free_slot(fs):
    assert fs.find_free_slot() == 2
    fs.create("x", 1)
    handle = fs.open("x")
    for i in range(2, MAX_OPEN_FILES):
        fs.open_files[i] = handle
    assert fs.find_free_slot() is None
    fs.open_files[7] = None
    assert fs.find_free_slot() == 7


def test_describe_shows_files(fs):
    fs.create("note", 3)
    fs.open("note").write(b"abc")
    text = fs.describe()
    assert "Bit map file header:" in text
    assert "Directory file header:" in text
    assert "Name: note" in text
    assert "abc" in text