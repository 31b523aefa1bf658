"""Zip archives mounted as a writable entry namespace.

A `MountedArchive` reads entries lazily from the backing zip and keeps every
write in memory until the mount is released. Releasing after a clean exit
rewrites the archive to a sibling temp file and renames it over the original,
so concurrent readers never observe a partially written archive. Releasing
after an exception discards pending writes.
"""

from __future__ import annotations

import json
import logging
import os
import posixpath
import threading
import zipfile
from pathlib import Path
from typing import Any, Dict, List, Optional, Set

from ..core.files import atomic_write_bytes, temp_sibling
from ..errors import ArchiveIntegrityFault

logger = logging.getLogger(__name__)

# Fixed timestamp for entries created here; keeps rewritten archives reproducible.
_ENTRY_DATE_TIME = (1980, 1, 1, 0, 0, 0)


def normalize_entry_name(name: str) -> str:
    raw = str(name).replace("\\", "/").lstrip("/")
    if not raw:
        return ""
    norm = posixpath.normpath(raw)
    if norm == ".":
        return ""
    if norm == ".." or norm.startswith("../"):
        raise ValueError(f"Entry escapes archive root: {name!r}")
    return norm


def entry_file_name(name: str) -> str:
    return posixpath.basename(name)


def _parent_dirs(name: str) -> List[str]:
    parents: List[str] = []
    parent = posixpath.dirname(name)
    while parent:
        parents.append(parent)
        parent = posixpath.dirname(parent)
    return parents


class MountedArchive:
    """Scoped, thread-safe view over one zip archive.

    Use as a context manager::

        with MountedArchive(path) as archive:
            archive.write("a/B.class", archive.read("a/B.class"))
    """

    def __init__(self, path: Path, *, writable: bool = True, create: bool = False):
        self.path = Path(path)
        self.writable = writable
        self.create = create
        self._lock = threading.Lock()
        self._zip: Optional[zipfile.ZipFile] = None
        self._infos: Dict[str, zipfile.ZipInfo] = {}
        self._dirs: Set[str] = set()
        self._written: Dict[str, bytes] = {}
        self._created = False
        self._opened = False

    def __enter__(self) -> "MountedArchive":
        return self.open()

    def __exit__(self, exc_type, exc, tb) -> bool:
        self.close(commit=exc_type is None)
        return False

    def open(self) -> "MountedArchive":
        if self._opened:
            return self
        if self.path.exists():
            try:
                self._zip = zipfile.ZipFile(self.path, "r")
            except (zipfile.BadZipFile, OSError) as exc:
                raise ArchiveIntegrityFault(f"Unable to open archive: {self.path} ({exc})") from exc
            for info in self._zip.infolist():
                name = normalize_entry_name(info.filename)
                if not name:
                    continue
                if info.is_dir():
                    self._dirs.add(name)
                else:
                    self._infos[name] = info
        elif not self.create:
            raise ArchiveIntegrityFault(f"Archive not found: {self.path}")
        else:
            self._created = True
        self._opened = True
        return self

    @property
    def modified(self) -> bool:
        return bool(self._written)

    def names(self) -> List[str]:
        with self._lock:
            return sorted(set(self._infos) | set(self._written))

    def walk(self, root: str = "") -> List[str]:
        """Regular-file entries below `root` (the whole archive for "")."""
        prefix = normalize_entry_name(root)
        if prefix:
            prefix += "/"
        return [n for n in self.names() if n.startswith(prefix)]

    def exists(self, name: str) -> bool:
        name = normalize_entry_name(name)
        with self._lock:
            return name in self._written or name in self._infos

    def read(self, name: str) -> bytes:
        name = normalize_entry_name(name)
        with self._lock:
            if name in self._written:
                return self._written[name]
            info = self._infos.get(name)
            if info is None or self._zip is None:
                raise KeyError(name)
            return self._zip.read(info)

    def write(self, name: str, data: bytes) -> None:
        if not self.writable:
            raise PermissionError(f"Archive mounted read-only: {self.path}")
        name = normalize_entry_name(name)
        if not name:
            raise ValueError("Cannot write the archive root")
        with self._lock:
            self._written[name] = bytes(data)
            self._dirs.update(_parent_dirs(name))

    def close(self, *, commit: bool = True) -> None:
        if not self._opened:
            return
        try:
            # A created archive is written even when empty.
            if commit and (self.modified or self._created):
                self._commit()
        finally:
            self._release()

    def _release(self) -> None:
        if self._zip is not None:
            self._zip.close()
        self._zip = None
        self._infos.clear()
        self._dirs.clear()
        self._written.clear()
        self._created = False
        self._opened = False

    def _entry_info(self, name: str) -> zipfile.ZipInfo:
        original = self._infos.get(name)
        if original is not None:
            info = zipfile.ZipInfo(name, date_time=original.date_time)
            info.compress_type = original.compress_type
            info.external_attr = original.external_attr
            return info
        info = zipfile.ZipInfo(name, date_time=_ENTRY_DATE_TIME)
        info.compress_type = zipfile.ZIP_DEFLATED
        info.external_attr = 0o644 << 16
        return info

    def _commit(self) -> None:
        tmp = temp_sibling(self.path)
        try:
            names = sorted(set(self._infos) | set(self._written))
            with zipfile.ZipFile(tmp, "w") as out:
                for d in sorted(self._dirs):
                    info = zipfile.ZipInfo(d + "/", date_time=_ENTRY_DATE_TIME)
                    info.external_attr = (0o40755 << 16) | 0x10
                    out.writestr(info, b"")
                for name in names:
                    out.writestr(self._entry_info(name), self.read(name))
            if self._zip is not None:
                self._zip.close()
                self._zip = None
            os.replace(tmp, self.path)
            logger.debug("committed %d written entries to %s", len(self._written), self.path)
        finally:
            tmp.unlink(missing_ok=True)


def read_entry(archive_path: Path, name: str) -> bytes:
    with MountedArchive(archive_path, writable=False) as archive:
        try:
            return archive.read(name)
        except KeyError:
            raise ArchiveIntegrityFault(f"Failed to find '{name}' in {Path(archive_path).resolve()}!") from None


def read_json_entry(archive_path: Path, name: str) -> Any:
    raw = read_entry(archive_path, name)
    try:
        return json.loads(raw.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise ArchiveIntegrityFault(f"Malformed JSON entry '{name}' in {archive_path} ({exc})") from exc


def extract_entry(archive_path: Path, name: str, dest: Path) -> Path:
    atomic_write_bytes(Path(dest), read_entry(archive_path, name))
    return Path(dest)
