"""Cargo.toml / Cargo.lock version editing.

Edits are textual: only the version string of the crate's own entry changes,
so comments, ordering and formatting elsewhere in the file survive byte for
byte. tomllib is used for reading only.
"""

from __future__ import annotations

import re
import tomllib
from pathlib import Path

from shipcrate.core.result import Err, Ok, Result
from shipcrate.core.structured import get_str, get_table
from shipcrate.platform.files import atomic_write_text, snapshot_files
from shipcrate.release.domain.errors import (
    InvalidVersion,
    LocalMutationError,
    ManifestNotFound,
    ManifestWriteFailed,
    VersionFieldMissing,
)
from shipcrate.release.domain.version import Version, parse_version
from shipcrate.release.flow.ports import PackageManifest

_SECTION_RE = re.compile(r"(?m)^[ \t]*\[\[?([^\[\]\r\n]+)\]\]?[ \t]*(?:#[^\r\n]*)?\r?$")
_VERSION_LINE_RE = re.compile(r"""(?m)^([ \t]*version[ \t]*=[ \t]*)(["'])([^"'\r\n]*)\2""")
_LOCK_BLOCK_RE = re.compile(r"(?ms)^\[\[package\]\]\r?\n(.*?)(?=^\[|\Z)")


class CargoManifestEditor:
    def __init__(
        self,
        root: Path,
        *,
        manifest: str = "Cargo.toml",
        lockfile: str = "Cargo.lock",
    ) -> None:
        self._root = root
        self._manifest_rel = manifest
        self._lockfile_rel = lockfile

    @property
    def manifest_path(self) -> Path:
        return self._root / self._manifest_rel

    @property
    def lockfile_path(self) -> Path:
        return self._root / self._lockfile_rel

    def paths(self) -> tuple[str, ...]:
        if self.lockfile_path.exists():
            return (self._manifest_rel, self._lockfile_rel)
        return (self._manifest_rel,)

    def read(self) -> Result[PackageManifest, LocalMutationError | InvalidVersion]:
        path = self.manifest_path
        try:
            data = tomllib.loads(path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return Err(ManifestNotFound(path=path))
        except (OSError, UnicodeDecodeError) as e:
            return Err(VersionFieldMissing(path=path, detail=f"cannot read: {e}"))
        except tomllib.TOMLDecodeError as e:
            return Err(VersionFieldMissing(path=path, detail=f"invalid TOML: {e}"))

        package = get_table(data, "package")
        if package is None:
            return Err(VersionFieldMissing(path=path, detail="no [package] section"))

        name = get_str(package, "name")
        if not name:
            return Err(VersionFieldMissing(path=path, detail="no name in [package]"))

        if get_table(package, "version") is not None:
            return Err(
                VersionFieldMissing(
                    path=path,
                    detail="version is inherited from the workspace; bump the workspace instead",
                )
            )
        raw = get_str(package, "version")
        if raw is None:
            return Err(VersionFieldMissing(path=path))

        version = parse_version(raw)
        if isinstance(version, Err):
            return version
        return Ok(PackageManifest(name=name, version=version.value))

    def write_version(self, version: Version) -> Result[tuple[str, ...], LocalMutationError]:
        manifest = self.manifest_path
        lockfile = self.lockfile_path

        try:
            snapshot = snapshot_files(manifest, lockfile)
            text = _read_exact(manifest)
        except FileNotFoundError:
            return Err(ManifestNotFound(path=manifest))
        except (OSError, UnicodeDecodeError) as e:
            return Err(ManifestWriteFailed(path=manifest, reason=str(e)))

        updated = _replace_package_version(text, str(version))
        if updated is None:
            return Err(VersionFieldMissing(path=manifest))
        name = _package_name(text)

        changed = [self._manifest_rel]
        try:
            atomic_write_text(manifest, updated)
            if lockfile.exists() and name is not None:
                lock_text = _read_exact(lockfile)
                lock_updated = _replace_lock_version(lock_text, name, str(version))
                if lock_updated is not None and lock_updated != lock_text:
                    atomic_write_text(lockfile, lock_updated)
                    changed.append(self._lockfile_rel)
        except (OSError, UnicodeDecodeError) as e:
            failed = snapshot.restore()
            reason = str(e)
            if failed:
                reason += f" (could not restore {', '.join(p.name for p in failed)})"
            return Err(ManifestWriteFailed(path=manifest, reason=reason))

        return Ok(tuple(changed))


def _read_exact(path: Path) -> str:
    # No newline translation: CRLF files must be written back as CRLF.
    return path.read_bytes().decode("utf-8")


def _package_span(text: str) -> tuple[int, int] | None:
    """Character range of the [package] table body."""
    start: int | None = None
    for m in _SECTION_RE.finditer(text):
        header = m.group(1).strip()
        if start is not None:
            return (start, m.start())
        if header == "package":
            start = m.end()
    if start is None:
        return None
    return (start, len(text))


def _replace_package_version(text: str, version: str) -> str | None:
    span = _package_span(text)
    if span is None:
        return None
    start, end = span
    body = text[start:end]
    m = _VERSION_LINE_RE.search(body)
    if m is None:
        return None
    replaced = body[: m.start(3)] + version + body[m.end(3) :]
    return text[:start] + replaced + text[end:]


def _package_name(text: str) -> str | None:
    span = _package_span(text)
    if span is None:
        return None
    m = re.search(r"""(?m)^[ \t]*name[ \t]*=[ \t]*(["'])([^"'\n]+)\1""", text[span[0] : span[1]])
    return m.group(2) if m else None


def _replace_lock_version(text: str, name: str, version: str) -> str | None:
    """Rewrite the version of the workspace-local lock entry for name.

    Registry and git dependencies carry a `source` line; the crate being
    released does not, which tells it apart from a dependency of the same name.
    """
    name_line = f'name = "{name}"'
    for block in _LOCK_BLOCK_RE.finditer(text):
        body = block.group(1)
        lines = body.splitlines()
        if name_line not in lines:
            continue
        if any(line.startswith("source = ") for line in lines):
            continue
        m = re.search(r'(?m)^version = "([^"\n]*)"', body)
        if m is None:
            return None
        offset = block.start(1)
        return text[: offset + m.start(1)] + version + text[offset + m.end(1) :]
    return None
