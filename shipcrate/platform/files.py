"""Filesystem helpers."""

from __future__ import annotations

import os
import tempfile
from dataclasses import dataclass
from pathlib import Path

__all__ = ["FileSnapshot", "atomic_write_text", "snapshot_files"]


def atomic_write_text(path: Path, content: str, *, encoding: str = "utf-8") -> None:
    """Write text to path atomically using temp file + replace."""
    path.parent.mkdir(parents=True, exist_ok=True)

    fd, tmp_name = tempfile.mkstemp(
        prefix=f".{path.name}.",
        suffix=".tmp",
        dir=str(path.parent),
    )
    tmp_path = Path(tmp_name)

    try:
        with os.fdopen(fd, "w", encoding=encoding, newline="") as handle:
            handle.write(content)
            handle.flush()
            os.fsync(handle.fileno())
        os.replace(tmp_path, path)
    finally:
        if tmp_path.exists():
            tmp_path.unlink(missing_ok=True)


@dataclass(frozen=True, slots=True)
class FileSnapshot:
    """Exact bytes of a set of files, taken before a multi-file edit.

    A path mapped to None did not exist when the snapshot was taken.
    """

    contents: tuple[tuple[Path, bytes | None], ...]

    def restore(self) -> list[Path]:
        """Put every file back as it was; returns paths that could not be restored."""
        failed: list[Path] = []
        for path, data in self.contents:
            try:
                if data is None:
                    path.unlink(missing_ok=True)
                elif not path.exists() or path.read_bytes() != data:
                    path.write_bytes(data)
            except OSError:
                failed.append(path)
        return failed


def snapshot_files(*paths: Path) -> FileSnapshot:
    """Capture the current bytes of each path.

    Raises:
        OSError: If an existing file cannot be read.
    """
    contents: list[tuple[Path, bytes | None]] = []
    for path in paths:
        contents.append((path, path.read_bytes() if path.exists() else None))
    return FileSnapshot(contents=tuple(contents))
