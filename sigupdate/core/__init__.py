"""Core update engine: version source, probe, fetcher, reconciler, sync run."""

from sigupdate.core.errors import (
    FetchError,
    ReconcileError,
    SignatureUpdateError,
    SigtoolNotFoundError,
    VersionProbeError,
    VersionRecordError,
)
from sigupdate.core.fetcher import Fetcher, build_http_client
from sigupdate.core.reconciler import Reconciler
from sigupdate.core.sync_run import run_sync, update_signatures
from sigupdate.core.version_probe import SigtoolProbe, find_sigtool_path
from sigupdate.core.version_source import parse_txt_record

__all__ = [
    "SignatureUpdateError",
    "VersionRecordError",
    "SigtoolNotFoundError",
    "VersionProbeError",
    "FetchError",
    "ReconcileError",
    "Fetcher",
    "build_http_client",
    "Reconciler",
    "run_sync",
    "update_signatures",
    "SigtoolProbe",
    "find_sigtool_path",
    "parse_txt_record",
]
