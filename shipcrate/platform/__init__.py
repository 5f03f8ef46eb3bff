"""Process and filesystem primitives."""

from .files import FileSnapshot, atomic_write_text, snapshot_files
from .process import ProcessError, run

__all__ = [
    "FileSnapshot",
    "ProcessError",
    "atomic_write_text",
    "run",
    "snapshot_files",
]
