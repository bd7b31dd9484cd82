"""Reconciler — brings one signature database up to the mirror's version.

Decision sequence for a signature ``X`` with target version ``T``:

1. ``X.cvd`` missing locally: download it in full and stop.
2. Probe ``X.cvd`` with sigtool. If the probe fails or reports a negative
   version, the local file is untrusted: download it in full and stop.
3. Diff walk: for each version ``v`` from ``local + 1`` to ``T``, download
   ``X-v.cdiff`` unless it is already present. The first diff that cannot
   be fetched ends the walk and triggers a single full download of
   ``X.cvd`` instead.
4. Threshold check: if ``T - local`` exceeds the diff threshold, download
   ``X.cvd`` again regardless of how the walk went. This keeps the base
   file recent and bounds the patch chain a consumer must apply.

A full download that fails is not absorbed; it is raised as
``ReconcileError`` for this signature.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Protocol

from sigupdate.core.errors import FetchError, ReconcileError, VersionProbeError
from sigupdate.core.version_probe import VersionProbe
from sigupdate.models.reports import FetchResult, ReconcileReport
from sigupdate.models.signatures import Signature

logger = logging.getLogger(__name__)


class SignatureFetcher(Protocol):
    """Transfers one remote file to a local path (see ``Fetcher``)."""

    def fetch(self, url: str, local_path: Path) -> FetchResult:
        ...


def mirror_url(base_url: str, filename: str) -> str:
    """Join the mirror base URL and a filename."""
    return f"{base_url.rstrip('/')}/{filename}"


class Reconciler:
    """Per-signature update decision engine.

    Parameters
    ----------
    fetcher:
        Performs the conditional downloads.
    probe:
        Reports the version of an existing local database file.
    data_dir:
        Directory holding the ``.cvd`` and ``.cdiff`` files.
    download_mirror_url:
        Base URL of the mirror.
    diff_count_threshold:
        Maximum version gap served by diffs alone before the base file is
        refreshed as well.
    """

    def __init__(
        self,
        fetcher: SignatureFetcher,
        probe: VersionProbe,
        data_dir: Path,
        download_mirror_url: str,
        diff_count_threshold: int,
    ) -> None:
        self.fetcher = fetcher
        self.probe = probe
        self.data_dir = data_dir
        self.download_mirror_url = download_mirror_url
        self.diff_count_threshold = diff_count_threshold

    def reconcile(self, signature: Signature) -> ReconcileReport:
        """Update one signature and report what was done."""
        local_path = self.data_dir / signature.filename
        fetched: list[FetchResult] = []

        if not local_path.exists():
            logger.info(
                "Local copy of [%s] does not exist - initiating download.", local_path
            )
            fetched.append(self._download_full(signature))
            return ReconcileReport(
                name=signature.name,
                target_version=signature.version,
                fetched=fetched,
            )

        logger.debug(
            "Local copy of [%s] already exists - initiating diff based update", local_path
        )

        try:
            local_version = self.probe.probe(local_path)
            if local_version < 0:
                raise VersionProbeError(f"Invalid version reported: {local_version}")
        except VersionProbeError as exc:
            logger.warning(
                "There was a problem with the version of file [%s]. "
                "The file will be downloaded again. Original Error: %s",
                local_path,
                exc,
            )
            fetched.append(self._download_full(signature))
            return ReconcileReport(
                name=signature.name,
                target_version=signature.version,
                fetched=fetched,
                fallback_reason=str(exc),
            )

        logger.debug("%s current version: %d", signature.filename, local_version)

        diffs_present: list[int] = []
        fallback_reason: str | None = None

        for version in range(local_version + 1, signature.version + 1):
            diff_path = self.data_dir / signature.diff_filename(version)

            if diff_path.exists():
                logger.debug("Local copy of [%s] already exists, not downloading", diff_path)
                diffs_present.append(version)
                continue

            try:
                fetched.append(
                    self.fetcher.fetch(
                        mirror_url(self.download_mirror_url, diff_path.name), diff_path
                    )
                )
            except FetchError as exc:
                logger.warning(
                    "There was a problem downloading diff [%d] of file [%s]. "
                    "The original file [%s] will be downloaded again. Original Error: %s",
                    version,
                    diff_path.name,
                    signature.filename,
                    exc,
                )
                fallback_reason = str(exc)
                fetched.append(self._download_full(signature))
                break

        threshold_refresh = signature.version - local_version > self.diff_count_threshold
        if threshold_refresh:
            logger.info(
                "Original signature has deviated beyond threshold from diffs, "
                "so we are downloading the file [%s] again",
                signature.filename,
            )
            fetched.append(self._download_full(signature))

        return ReconcileReport(
            name=signature.name,
            target_version=signature.version,
            local_version=local_version,
            fetched=fetched,
            diffs_present=diffs_present,
            fallback_reason=fallback_reason,
            threshold_refresh=threshold_refresh,
        )

    def _download_full(self, signature: Signature) -> FetchResult:
        local_path = self.data_dir / signature.filename
        url = mirror_url(self.download_mirror_url, signature.filename)
        try:
            return self.fetcher.fetch(url, local_path)
        except FetchError as exc:
            raise ReconcileError(
                f"Unable to download [{signature.filename}] for signature "
                f"[{signature.name}]: {exc}",
                signature=signature.name,
            ) from exc
