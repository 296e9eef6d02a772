"""A flat file system stored on a simulated sector disk kept in a host file."""

__version__ = "0.1.0"

__all__ = ["disk", "synchdisk", "filehdr", "directory", "openfile", "filesys", "fstest"]