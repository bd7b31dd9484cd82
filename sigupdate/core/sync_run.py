"""Sync run — reconciles every tracked signature, in order, failing fast.

``run_sync`` is the core loop and takes its collaborators as arguments.
``update_signatures`` is the functional entry point used by the CLI: it
locates sigtool, resolves the version record, opens the HTTP client and
then calls ``run_sync``.
"""

from __future__ import annotations

import logging
from pathlib import Path

from sigupdate.config import UpdateConfig
from sigupdate.core.fetcher import Fetcher, build_http_client
from sigupdate.core.reconciler import Reconciler, SignatureFetcher
from sigupdate.core.version_probe import SigtoolProbe, VersionProbe, find_sigtool_path
from sigupdate.core.version_source import (
    DnsTxtVersionSource,
    StaticVersionSource,
    VersionSource,
    resolve_versions,
)
from sigupdate.models.reports import ReconcileReport, SyncReport
from sigupdate.models.signatures import SignatureVersions

logger = logging.getLogger(__name__)


def run_sync(
    versions: SignatureVersions,
    data_dir: Path,
    download_mirror_url: str,
    diff_count_threshold: int,
    *,
    fetcher: SignatureFetcher,
    probe: VersionProbe,
) -> SyncReport:
    """Reconcile main, daily and bytecode in that order.

    The first signature that raises stops the run; later signatures are
    not attempted.
    """
    reconciler = Reconciler(
        fetcher=fetcher,
        probe=probe,
        data_dir=data_dir,
        download_mirror_url=download_mirror_url,
        diff_count_threshold=diff_count_threshold,
    )

    reports: list[ReconcileReport] = []
    for signature in versions.tracked():
        reports.append(reconciler.reconcile(signature))

    return SyncReport(versions=versions, signatures=reports)


def version_source_for(config: UpdateConfig) -> VersionSource:
    """Pick the version source implied by the configuration."""
    if config.txt_record:
        return StaticVersionSource(config.txt_record)
    return DnsTxtVersionSource(
        config.mirror_domain, timeout_seconds=config.dns_timeout_seconds
    )


def update_signatures(
    config: UpdateConfig,
    *,
    version_source: VersionSource | None = None,
    probe: VersionProbe | None = None,
    fetcher: SignatureFetcher | None = None,
) -> SyncReport:
    """Run a full signature update as described by ``config``.

    Collaborators not passed in are built from the configuration.
    """
    logger.info("Updating ClamAV signatures")
    logger.debug("Data file directory: %s", config.data_file_path)

    if probe is None:
        sigtool_path = find_sigtool_path(config.sigtool_path)
        logger.debug("ClamAV executable sigtool found at path: %s", sigtool_path)
        probe = SigtoolProbe(sigtool_path, timeout_seconds=config.probe_timeout_seconds)

    versions = resolve_versions(version_source or version_source_for(config))

    if fetcher is not None:
        return run_sync(
            versions,
            config.data_file_path,
            config.download_mirror_url,
            config.diff_count_threshold,
            fetcher=fetcher,
            probe=probe,
        )

    with build_http_client(config.http_timeout_seconds) as client:
        return run_sync(
            versions,
            config.data_file_path,
            config.download_mirror_url,
            config.diff_count_threshold,
            fetcher=Fetcher(client, scratch_dir=config.scratch_dir),
            probe=probe,
        )
