from __future__ import annotations

import hashlib
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from ..core.files import atomic_write_bytes
from ..errors import ConfigurationFault

logger = logging.getLogger(__name__)

FINGERPRINT_FILE_NAME = "at.sha256"


@dataclass(frozen=True)
class FingerprintResult:
    fingerprint: bytes
    dirty: bool

    @property
    def hexdigest(self) -> str:
        return self.fingerprint.hex()


def sha256_bytes(data: bytes) -> bytes:
    return hashlib.sha256(data).digest()


def sha256_file(path: Path) -> bytes:
    h = hashlib.sha256()
    with path.open("rb") as f:
        for chunk in iter(lambda: f.read(1024 * 1024), b""):
            h.update(chunk)
    return h.digest()


def fingerprint_path(project_cache: Path) -> Path:
    return Path(project_cache) / FINGERPRINT_FILE_NAME


def overlay_fingerprint(overlay: Optional[Path]) -> bytes:
    """Digest of the overlay's bytes; a missing overlay hashes as empty content."""
    if overlay is None:
        return sha256_bytes(b"")
    try:
        return sha256_file(overlay)
    except OSError as exc:
        raise ConfigurationFault(f"Unable to read configuration overlay: {overlay} ({exc})") from exc


def read_persisted_fingerprint(hash_file: Path) -> Optional[bytes]:
    try:
        return hash_file.read_bytes()
    except FileNotFoundError:
        return None
    except OSError as exc:
        raise ConfigurationFault(f"Unable to read fingerprint file: {hash_file} ({exc})") from exc


def write_fingerprint(hash_file: Path, fingerprint: bytes) -> None:
    try:
        atomic_write_bytes(hash_file, fingerprint)
    except OSError as exc:
        raise ConfigurationFault(f"Unable to write fingerprint file: {hash_file} ({exc})") from exc


def evaluate_fingerprint(
    hash_file: Path,
    overlay: Optional[Path],
    *,
    force_refresh: bool = False,
) -> FingerprintResult:
    """Compare the overlay's digest against the persisted one.

    Dirty when nothing is persisted yet, when `force_refresh` is set, or when the
    two digests differ byte-for-byte. The persisted file is only rewritten when
    dirty.
    """

    current = overlay_fingerprint(overlay)
    expected = None if force_refresh else read_persisted_fingerprint(hash_file)
    dirty = expected is None or expected != current

    if dirty:
        write_fingerprint(hash_file, current)
        logger.debug("fingerprint %s rewritten (%s)", hash_file, current.hex())

    return FingerprintResult(fingerprint=current, dirty=dirty)
