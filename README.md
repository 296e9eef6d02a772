# sectorfs

A small, flat file system that lives on a simulated disk. The disk is an
ordinary host file holding a 4-byte magic number followed by 1024 sectors of
512 bytes (32 tracks of 32 sectors). Each request is charged a simulated
latency made up of seek time, rotational delay and transfer time, and reads
from the current track can be served from a modelled track buffer.

The file system has:

- a free-sector map and a single root directory, both stored as files whose
  headers sit in sectors 0 and 1;
- file headers that fit in one sector and point straight at their data
  sectors, with no indirect blocks, so files are limited to
  `sectorfs.filehdr.MAX_FILE_SIZE` bytes (a little under 64 KB);
- a directory of 10 entries; file names longer than 9 bytes are truncated,
  and lookups compare only the first 9 bytes;
- files whose size is fixed when they are created. Reads and writes stop at
  the end of the file.

## Installing

```
pip install .
```

For the tests:

```
pip install .[test]
pytest
```

## Using it from Python

```python
from sectorfs.synchdisk import SynchDisk
from sectorfs.filesys import FileSystem

with SynchDisk("DISK") as disk:
    fs = FileSystem(disk, format=True)
    fs.create("notes", 64)
    f = fs.open("notes")
    f.write(b"hello, sectors")
    f.seek(0)
    print(f.read(14))     # b'hello, sectors'
    print(fs.list())      # ['notes']
```

`SynchDisk` creates the image file if it does not exist. An existing file that
does not start with the disk's magic number raises `sectorfs.disk.DiskError`.
Passing `format=True` writes an empty free map and directory, discarding
whatever the disk held.

`FileSystem.create` raises `sectorfs.filesys.FileSystemError` when the name is
already taken, when the directory is full, or when there are not enough free
sectors for the header and the data; a size above `MAX_FILE_SIZE` raises
`ValueError`. `open` and `remove` raise `FileSystemError` for a name that is
not in the directory. `describe()` returns a text dump of the free map, the
directory and every file's header and contents.

`FileSystem.open_files` is a table of 15 slots for callers that hand out file
descriptors; `find_free_slot()` returns the lowest empty slot from 2 upwards,
or `None`. The file system itself never fills the table.

The lower layers can also be used on their own:

- `sectorfs.disk.Disk` is the asynchronous sector device; it counts reads and
  writes and reports each request's latency in `pending_latency`.
- `sectorfs.synchdisk.SynchDisk` is the blocking sector interface and keeps
  the simulated time in `ticks`.
- `sectorfs.filehdr.FileHeader` and `sectorfs.filehdr.SectorMap` handle file
  headers and the free-sector map.
- `sectorfs.directory.Directory` is the name-to-header table.
- `sectorfs.openfile.OpenFile` gives byte-level reads and writes at a seek
  position (`seek`, `tell`, `read`, `write`, `read_at`, `write_at`, `length`).

The module `sectorfs.fstest` has `copy(fs, source, name)` to bring a host file
in, `print_file(fs, name, out)` to write a file out, and
`performance_test(fs, out)`, which writes a 50,000-byte file in 10-byte chunks,
reads it back, removes it and reports disk statistics. With the fixed file
sizes of this file system that test creates a zero-length file, so its write
step reports a failure and it returns `False`.

## Command line

```
sectorfs --disk DISK -f                 # format a new disk image
sectorfs --disk DISK --copy notes.txt notes
sectorfs --disk DISK -l                 # list files
sectorfs --disk DISK -p notes           # print a file
sectorfs --disk DISK -r notes           # remove a file
sectorfs --disk DISK -D                 # dump the whole file system
sectorfs --disk DISK -t                 # run the performance test
```

`--disk` defaults to `DISK` in the current directory. The command exits with
status 1 when an operation fails.

## What it does not do

There is no hierarchical directory tree, no growing of files after creation,
no indirect blocks, no permissions or timestamps, and no protection against
concurrent access or crashes in the middle of an operation. Simulated time
only advances with disk requests; there is no scheduler, console device or
user-program support.