"""Signature and version models (immutable for the duration of a run)."""

from __future__ import annotations

import re
from datetime import datetime
from pathlib import Path

from pydantic import BaseModel, ConfigDict

# Fixed reconciliation order. Safe browsing is published but not mirrored.
TRACKED_SIGNATURES: tuple[str, ...] = ("main", "daily", "bytecode")

CVD_SUFFIX = ".cvd"
CDIFF_SUFFIX = ".cdiff"

_DECIMAL = re.compile(r"[+-]?[0-9]+")
_INT64_MIN = -(2**63)
_INT64_MAX = 2**63 - 1


def parse_version_number(token: str) -> int:
    """Parse a signed base-10 64-bit integer.

    Only ASCII digits with an optional sign are accepted. Raises
    ``ValueError`` for anything else or for a value outside the int64 range.
    """
    if not _DECIMAL.fullmatch(token):
        raise ValueError(f"invalid base-10 integer: {token!r}")
    value = int(token)
    if not _INT64_MIN <= value <= _INT64_MAX:
        raise ValueError(f"value out of 64-bit range: {token!r}")
    return value


def cvd_filename(name: str) -> str:
    """Return the base database filename for a signature, e.g. ``main.cvd``."""
    return f"{name}{CVD_SUFFIX}"


def cdiff_filename(name: str, version: int) -> str:
    """Return the patch filename for one version step, e.g. ``daily-25567.cdiff``."""
    return f"{name}-{version}{CDIFF_SUFFIX}"


class Signature(BaseModel):
    """One tracked signature family and the version the mirror publishes."""

    model_config = ConfigDict(frozen=True)

    name: str
    version: int

    @property
    def filename(self) -> str:
        return cvd_filename(self.name)

    def diff_filename(self, version: int) -> str:
        return cdiff_filename(self.name, version)


class SignatureVersions(BaseModel):
    """Current versions parsed from the mirror's version record."""

    model_config = ConfigDict(frozen=True)

    main: int
    daily: int
    safebrowsing: int
    bytecode: int

    def tracked(self) -> list[Signature]:
        """Return the signatures to reconcile, in fixed order."""
        return [
            Signature(name=name, version=getattr(self, name))
            for name in TRACKED_SIGNATURES
        ]


class LocalFileState(BaseModel):
    """Snapshot of a local database file, derived from disk and sigtool.

    Never persisted; recomputed on every run.
    """

    model_config = ConfigDict(frozen=True)

    path: Path
    exists: bool
    version: int | None = None
    validated: bool = False
    mod_time: datetime | None = None
    error: str | None = None
