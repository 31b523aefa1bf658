from __future__ import annotations

import zipfile
from pathlib import Path
from typing import Dict

import pytest

from PatchedProvider.archive.rewrite import rewrite_entries
from PatchedProvider.errors import EntryRewriteFault


def _make_zip(path: Path, entries: Dict[str, bytes]) -> Path:
    with zipfile.ZipFile(path, "w") as zf:
        for name, data in sorted(entries.items()):
            zf.writestr(zipfile.ZipInfo(name, date_time=(1980, 1, 1, 0, 0, 0)), data)
    return path


def _read_zip(path: Path) -> Dict[str, bytes]:
    with zipfile.ZipFile(path) as zf:
        return {i.filename: zf.read(i) for i in zf.infolist() if not i.is_dir()}


def _entries(n: int) -> Dict[str, bytes]:
    entries = {f"pkg/C{i:03d}.class": (b"fix" if i % 3 == 0 else b"ok") + bytes([i]) for i in range(n)}
    entries["META-INF/MANIFEST.MF"] = b"fix-but-not-a-class"
    return entries


def _fix(data: bytes) -> bytes:
    if data.startswith(b"fix") and not data.startswith(b"fixed"):
        return b"fixed" + data[3:]
    return data


@pytest.mark.parametrize("workers", [1, 8])
def test_only_changed_class_entries_are_rewritten(tmp_path: Path, workers: int):
    archive = _make_zip(tmp_path / "a.jar", _entries(30))

    summary = rewrite_entries(archive, _fix, max_workers=workers)

    result = _read_zip(archive)
    assert summary.scanned == 30
    assert summary.changed == tuple(f"pkg/C{i:03d}.class" for i in range(0, 30, 3))
    assert result["pkg/C003.class"] == b"fixed" + bytes([3])
    assert result["pkg/C001.class"] == b"ok" + bytes([1])
    assert result["META-INF/MANIFEST.MF"] == b"fix-but-not-a-class"


def test_worker_count_does_not_change_result(tmp_path: Path):
    one = _make_zip(tmp_path / "one.jar", _entries(50))
    many = _make_zip(tmp_path / "many.jar", _entries(50))

    s1 = rewrite_entries(one, _fix, max_workers=1)
    s2 = rewrite_entries(many, _fix, max_workers=16)

    assert s1.changed == s2.changed
    assert _read_zip(one) == _read_zip(many)
    assert one.read_bytes() == many.read_bytes()


def test_no_changes_means_no_write(tmp_path: Path):
    archive = _make_zip(tmp_path / "a.jar", {"a/A.class": b"ok"})
    before = archive.stat().st_mtime_ns

    summary = rewrite_entries(archive, lambda data: data)

    assert summary.changed == ()
    assert archive.stat().st_mtime_ns == before


def test_rewrite_is_idempotent(tmp_path: Path):
    archive = _make_zip(tmp_path / "a.jar", _entries(10))
    rewrite_entries(archive, _fix)
    first = archive.read_bytes()

    summary = rewrite_entries(archive, _fix)

    assert summary.changed == ()
    assert archive.read_bytes() == first


def test_failures_are_raised_and_archive_is_not_committed(tmp_path: Path):
    archive = _make_zip(tmp_path / "a.jar", _entries(20))
    before = archive.read_bytes()

    def _broken(data: bytes) -> bytes:
        if data == b"ok" + bytes([7]):
            raise ValueError("bad class")
        return _fix(data)

    with pytest.raises(EntryRewriteFault) as excinfo:
        rewrite_entries(archive, _broken, max_workers=4)

    fault = excinfo.value
    assert fault.first[0] == "pkg/C007.class"
    assert isinstance(fault.__cause__, ValueError)
    assert archive.read_bytes() == before
