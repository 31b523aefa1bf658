"""Two-tier cache: overlay fingerprints and artifact path planning."""

from .fingerprints import (
    FingerprintResult,
    evaluate_fingerprint,
    fingerprint_path,
    overlay_fingerprint,
    sha256_bytes,
    sha256_file,
)
from .paths import ArtifactPlan, StageArtifact, VersionIdentifier, missing, plan_artifacts

__all__ = [
	"ArtifactPlan",
	"FingerprintResult",
	"StageArtifact",
	"VersionIdentifier",
	"evaluate_fingerprint",
	"fingerprint_path",
	"missing",
	"overlay_fingerprint",
	"plan_artifacts",
	"sha256_bytes",
	"sha256_file",
]
