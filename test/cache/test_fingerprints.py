from __future__ import annotations

import hashlib
from pathlib import Path

import pytest

from PatchedProvider.cache.fingerprints import evaluate_fingerprint, fingerprint_path, overlay_fingerprint
from PatchedProvider.errors import ConfigurationFault


def test_first_evaluation_is_dirty_and_persists(tmp_path: Path):
    hash_file = fingerprint_path(tmp_path / "project")
    overlay = tmp_path / "accesstransformer.cfg"
    overlay.write_text("public net.minecraft.A\n", encoding="utf-8")

    result = evaluate_fingerprint(hash_file, overlay)

    assert result.dirty is True
    assert hash_file.read_bytes() == hashlib.sha256(overlay.read_bytes()).digest()
    assert result.hexdigest == hashlib.sha256(overlay.read_bytes()).hexdigest()


def test_unchanged_overlay_is_clean_and_not_rewritten(tmp_path: Path):
    hash_file = fingerprint_path(tmp_path)
    overlay = tmp_path / "at.cfg"
    overlay.write_text("public a.B\n", encoding="utf-8")
    evaluate_fingerprint(hash_file, overlay)
    before = hash_file.stat().st_mtime_ns

    result = evaluate_fingerprint(hash_file, overlay)

    assert result.dirty is False
    assert hash_file.stat().st_mtime_ns == before


def test_changed_overlay_is_dirty(tmp_path: Path):
    hash_file = fingerprint_path(tmp_path)
    overlay = tmp_path / "at.cfg"
    overlay.write_text("public a.B\n", encoding="utf-8")
    evaluate_fingerprint(hash_file, overlay)

    overlay.write_text("public a.C\n", encoding="utf-8")
    result = evaluate_fingerprint(hash_file, overlay)

    assert result.dirty is True
    assert hash_file.read_bytes() == hashlib.sha256(b"public a.C\n").digest()


def test_force_refresh_is_always_dirty(tmp_path: Path):
    hash_file = fingerprint_path(tmp_path)
    evaluate_fingerprint(hash_file, None)

    assert evaluate_fingerprint(hash_file, None).dirty is False
    assert evaluate_fingerprint(hash_file, None, force_refresh=True).dirty is True


def test_missing_overlay_hashes_like_empty_overlay(tmp_path: Path):
    empty = tmp_path / "empty.cfg"
    empty.write_bytes(b"")

    assert overlay_fingerprint(None) == overlay_fingerprint(empty)

    hash_file = fingerprint_path(tmp_path / "p")
    evaluate_fingerprint(hash_file, None)
    assert evaluate_fingerprint(hash_file, empty).dirty is False


def test_unreadable_overlay_is_a_configuration_fault(tmp_path: Path):
    with pytest.raises(ConfigurationFault):
        evaluate_fingerprint(fingerprint_path(tmp_path), tmp_path / "does-not-exist.cfg")


def test_unreadable_fingerprint_file_is_a_configuration_fault(tmp_path: Path):
    hash_file = fingerprint_path(tmp_path)
    hash_file.mkdir(parents=True)  # a directory cannot be read as bytes

    with pytest.raises(ConfigurationFault):
        evaluate_fingerprint(hash_file, None)
