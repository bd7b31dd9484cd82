"""Conditional HTTP fetcher — copies one mirror file into the data directory.

Transfer protocol
-----------------
1. If the destination already exists, a HEAD request asks the mirror for
   ``Last-Modified``. A local copy strictly newer than the remote one is
   left alone and the fetch reports ``skipped``. A missing or unparsable
   remote timestamp does not block the download.
2. A GET streams the body into a temporary file. Only once the whole body
   has been written is the temporary file renamed over the destination, so
   readers never observe a partial file.
3. The destination's mtime is set to the response's ``Last-Modified``, or
   to the current time if the header is missing or unparsable. The next
   run's HEAD comparison relies on this.

No retries. A failure is raised as ``FetchError`` and the caller decides
what to do about it.
"""

from __future__ import annotations

import logging
import os
import tempfile
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from pathlib import Path

import httpx

from sigupdate import __version__
from sigupdate.core.errors import FetchError
from sigupdate.models.reports import FetchOutcome, FetchResult

logger = logging.getLogger(__name__)


def build_http_client(timeout_seconds: float = 60.0) -> httpx.Client:
    """Return an HTTP client configured for mirror downloads."""
    return httpx.Client(
        timeout=timeout_seconds,
        follow_redirects=True,
        headers={"User-Agent": f"sigupdate/{__version__}"},
    )


def parse_http_date(value: str | None) -> datetime | None:
    """Parse an HTTP date header; ``None`` if missing or malformed."""
    if not value:
        return None
    try:
        parsed = parsedate_to_datetime(value)
    except (TypeError, ValueError, IndexError):
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


class Fetcher:
    """Downloads mirror files with HEAD-based freshness checks.

    Parameters
    ----------
    client:
        The HTTP client used for all requests. The fetcher does not close
        it; the owner does.
    scratch_dir:
        Where temporary download files are written. Defaults to the
        destination's own directory, which keeps the final rename on a
        single filesystem.
    """

    def __init__(self, client: httpx.Client, *, scratch_dir: Path | None = None) -> None:
        self._client = client
        self._scratch_dir = scratch_dir

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def fetch(self, url: str, local_path: Path) -> FetchResult:
        """Bring ``local_path`` up to date with ``url``.

        Returns a ``FetchResult`` whose outcome is ``skipped`` when the
        local copy is newer than the remote one. Raises ``FetchError`` on
        any transfer failure.
        """
        if local_path.exists():
            newer, status_code = self._remote_is_newer(url, local_path)
            if not newer:
                return FetchResult(
                    url=url,
                    path=local_path,
                    outcome=FetchOutcome.SKIPPED,
                    status_code=status_code,
                )
        return self._download(url, local_path)

    # ------------------------------------------------------------------
    # Freshness check
    # ------------------------------------------------------------------

    def _remote_is_newer(self, url: str, local_path: Path) -> tuple[bool, int]:
        local_mtime = datetime.fromtimestamp(local_path.stat().st_mtime, tz=timezone.utc)

        try:
            response = self._client.head(url)
        except httpx.HTTPError as exc:
            raise FetchError(
                f"Unable to complete HEAD request: [{url}]", url=url
            ) from exc

        header = response.headers.get("Last-Modified")
        remote_mtime = parse_http_date(header)

        logger.debug("Local file [%s] last-modified: %s", url, local_mtime)
        logger.debug("Remote file [%s] last-modified: %s", url, remote_mtime)

        if remote_mtime is None:
            logger.debug(
                "Error parsing last-modified header [%s] for file [%s]; downloading",
                header,
                url,
            )
            return True, response.status_code

        if local_mtime > remote_mtime:
            logger.info("Skipping download of [%s] because local copy is newer", url)
            return False, response.status_code

        return True, response.status_code

    # ------------------------------------------------------------------
    # Transfer
    # ------------------------------------------------------------------

    def _download(self, url: str, local_path: Path) -> FetchResult:
        scratch_dir = self._scratch_dir or local_path.parent
        try:
            fd, tmp_name = tempfile.mkstemp(
                prefix=f".{local_path.name}-", suffix=".part", dir=scratch_dir
            )
        except OSError as exc:
            raise FetchError(
                f"Unable to create temporary file in [{scratch_dir}]", url=url
            ) from exc
        tmp_path = Path(tmp_name)
        logger.debug("Downloading to temporary file: [%s]", tmp_path)

        status_code: int | None = None
        written = 0
        try:
            with os.fdopen(fd, "wb") as output:
                with self._client.stream("GET", url) as response:
                    status_code = response.status_code
                    if status_code != httpx.codes.OK:
                        raise FetchError(
                            f"Unable to download file [{url}]: "
                            f"{status_code} {response.reason_phrase}",
                            url=url,
                            status_code=status_code,
                        )

                    header = response.headers.get("Last-Modified")
                    last_modified = parse_http_date(header)
                    if last_modified is None:
                        logger.info(
                            "Error parsing last-modified header [%s] for file: %s",
                            header,
                            url,
                        )
                        last_modified = datetime.now(timezone.utc)

                    for chunk in response.iter_bytes():
                        output.write(chunk)
                        written += len(chunk)

            os.replace(tmp_path, local_path)
            timestamp = last_modified.timestamp()
            os.utime(local_path, (timestamp, timestamp))
        except httpx.HTTPError as exc:
            if status_code is None:
                message = f"Unable to retrieve file from: [{url}]"
            else:
                message = (
                    f"Error copying data from URL [{url}] to local file [{local_path}]"
                )
            raise FetchError(message, url=url, status_code=status_code) from exc
        except OSError as exc:
            raise FetchError(
                f"Unable to write [{url}] to local file [{local_path}]",
                url=url,
                status_code=status_code,
            ) from exc
        finally:
            tmp_path.unlink(missing_ok=True)

        logger.info("Download complete: %s --> %s [%d bytes]", url, local_path, written)
        return FetchResult(
            url=url,
            path=local_path,
            outcome=FetchOutcome.DOWNLOADED,
            status_code=status_code,
            bytes_written=written,
        )
