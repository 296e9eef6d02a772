import io

import pytest

from sectorfs.filesys import FileSystem, FileSystemError
from sectorfs.fstest import copy, main, performance_test, print_file
from sectorfs.synchdisk import SynchDisk


@pytest.fixture
def fs(tmp_path):
    with SynchDisk(tmp_path / "DISK") as disk:
        yield FileSystem(disk, True)


def test_copy_then_print_round_trip(fs, tmp_path):
    src = tmp_path / "input.txt"
    text = "The quick brown fox jumps over the lazy dog.\n" * 20
    src.write_text(text)
    copy(fs, src, "fox")
    assert fs.open("fox").length() == len(text)
    out = io.StringIO()
    print_file(fs, "fox", out)
    assert out.getvalue() == text


def test_copy_empty_file(fs, tmp_path):
    src = tmp_path / "empty"
    src.write_bytes(b"")
    copy(fs, src, "empty")
    out = io.StringIO()
    print_file(fs, "empty", out)
    assert out.getvalue() == ""
    assert fs.list() == ["empty"]


def test_copy_missing_source_raises(fs, tmp_path):
    with pytest.raises(FileNotFoundError):
        copy(fs, tmp_path / "absent", "x")
    assert fs.list() == []


def test_copy_onto_existing_name_raises(fs, tmp_path):
    src = tmp_path / "a"
    src.write_bytes(b"abc")
    copy(fs, src, "a")
    with pytest.raises(FileSystemError):
        copy(fs, src, "a")


def test_print_missing_file_raises(fs):
    with pytest.raises(FileSystemError):
        print_file(fs, "absent", io.StringIO())


def test_performance_test_fails_on_fixed_size_files(fs):
    out = io.StringIO()
    assert performance_test(fs, out) is False
    report = out.getvalue()
    assert "Starting file system performance test:" in report
    assert "Perf test: unable to write TestFile" in report
    assert "Perf test: unable to read TestFile" in report
    assert fs.list() == []


def test_main_copy_print_and_list(tmp_path, capsys):
    disk_path = tmp_path / "DISK"
    src = tmp_path / "hello.txt"
    src.write_text("hello world\n")
    assert main(["--disk", str(disk_path), "--format", "--copy", str(src), "hello",
                 "--print", "hello"]) == 0
    assert capsys.readouterr().out == "hello world\n"
    assert main(["--disk", str(disk_path), "--list"]) == 0
    assert capsys.readouterr().out == "hello\n"


def test_main_remove_missing_fails(tmp_path, capsys):
    disk_path = tmp_path / "DISK"
    assert main(["--disk", str(disk_path), "--format", "--remove", "nope"]) == 1
    assert "nope" in capsys.readouterr().err


def test_main_print_missing_fails(tmp_path, capsys):
    disk_path = tmp_path / "DISK"
    assert main(["--disk", str(disk_path), "--format", "-p", "ghost"]) == 1
    assert "Print: unable to open file ghost" in capsys.readouterr().err