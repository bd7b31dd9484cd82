"""sigupdate data models — all Pydantic v2, all frozen (immutable)."""

from sigupdate.models.reports import (
    FetchOutcome,
    FetchResult,
    ReconcileReport,
    SyncReport,
)
from sigupdate.models.signatures import (
    TRACKED_SIGNATURES,
    LocalFileState,
    Signature,
    SignatureVersions,
    cdiff_filename,
    cvd_filename,
    parse_version_number,
)

__all__ = [
    # signatures
    "TRACKED_SIGNATURES",
    "Signature",
    "SignatureVersions",
    "LocalFileState",
    "cvd_filename",
    "cdiff_filename",
    "parse_version_number",
    # reports
    "FetchOutcome",
    "FetchResult",
    "ReconcileReport",
    "SyncReport",
]
