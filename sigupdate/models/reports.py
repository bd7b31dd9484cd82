"""Result models for fetches, reconciliations and whole runs."""

from __future__ import annotations

from enum import Enum
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field

from sigupdate.models.signatures import SignatureVersions


class FetchOutcome(str, Enum):
    """What a conditional fetch did with the local file."""

    DOWNLOADED = "downloaded"
    SKIPPED = "skipped"


class FetchResult(BaseModel):
    """Outcome of a single conditional fetch."""

    model_config = ConfigDict(frozen=True)

    url: str
    path: Path
    outcome: FetchOutcome
    status_code: int | None = None
    bytes_written: int = 0

    @property
    def skipped(self) -> bool:
        return self.outcome is FetchOutcome.SKIPPED


class ReconcileReport(BaseModel):
    """Record of the decisions taken while reconciling one signature."""

    model_config = ConfigDict(frozen=True)

    name: str
    target_version: int
    local_version: int | None = None
    fetched: list[FetchResult] = Field(default_factory=list)
    diffs_present: list[int] = Field(default_factory=list)
    fallback_reason: str | None = None
    threshold_refresh: bool = False

    @property
    def downloaded(self) -> list[str]:
        """Filenames actually transferred (skipped fetches excluded)."""
        return [r.path.name for r in self.fetched if not r.skipped]


class SyncReport(BaseModel):
    """Aggregate outcome of a full signature update run."""

    model_config = ConfigDict(frozen=True)

    versions: SignatureVersions
    signatures: list[ReconcileReport] = Field(default_factory=list)

    @property
    def download_count(self) -> int:
        return sum(len(report.downloaded) for report in self.signatures)
