from __future__ import annotations

import zipfile
from pathlib import Path
from typing import Dict

import pytest

from PatchedProvider.archive.mount import MountedArchive, extract_entry, normalize_entry_name, read_entry, read_json_entry
from PatchedProvider.errors import ArchiveIntegrityFault


def _make_zip(path: Path, entries: Dict[str, bytes]) -> Path:
    with zipfile.ZipFile(path, "w") as zf:
        for name, data in sorted(entries.items()):
            zf.writestr(zipfile.ZipInfo(name, date_time=(1980, 1, 1, 0, 0, 0)), data)
    return path


def _read_zip(path: Path) -> Dict[str, bytes]:
    with zipfile.ZipFile(path) as zf:
        return {i.filename: zf.read(i) for i in zf.infolist() if not i.is_dir()}


def test_writes_are_committed_on_clean_exit(tmp_path: Path):
    path = _make_zip(tmp_path / "a.jar", {"a/A.class": b"a"})

    with MountedArchive(path) as archive:
        archive.write("b/c/C.class", b"c")
        assert archive.read("b/c/C.class") == b"c"
        assert archive.walk("b") == ["b/c/C.class"]

    assert _read_zip(path) == {"a/A.class": b"a", "b/c/C.class": b"c"}
    with zipfile.ZipFile(path) as zf:
        assert {"b/", "b/c/"} <= set(zf.namelist())


def test_writes_are_discarded_on_exception(tmp_path: Path):
    path = _make_zip(tmp_path / "a.jar", {"a/A.class": b"a"})
    before = path.read_bytes()

    with pytest.raises(RuntimeError):
        with MountedArchive(path) as archive:
            archive.write("a/A.class", b"changed")
            raise RuntimeError("abort")

    assert path.read_bytes() == before


def test_missing_archive_without_create_is_an_integrity_fault(tmp_path: Path):
    with pytest.raises(ArchiveIntegrityFault):
        MountedArchive(tmp_path / "missing.jar").open()


def test_corrupt_archive_is_an_integrity_fault(tmp_path: Path):
    bad = tmp_path / "bad.jar"
    bad.write_bytes(b"not a zip")

    with pytest.raises(ArchiveIntegrityFault):
        MountedArchive(bad).open()


def test_entry_names_cannot_escape_the_root():
    assert normalize_entry_name("\\a\\b/../C.class") == "a/C.class"
    with pytest.raises(ValueError):
        normalize_entry_name("../evil.class")


def test_read_helpers(tmp_path: Path):
    path = _make_zip(tmp_path / "cfg.zip", {"config.json": b'{"data": {"mappings": "m.tsrg"}}', "m.tsrg": b"x"})

    assert read_json_entry(path, "config.json")["data"]["mappings"] == "m.tsrg"
    assert extract_entry(path, "m.tsrg", tmp_path / "out" / "m.tsrg").read_bytes() == b"x"

    with pytest.raises(ArchiveIntegrityFault, match="Failed to find 'nope.txt'"):
        read_entry(path, "nope.txt")
