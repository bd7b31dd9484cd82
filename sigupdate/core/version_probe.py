"""Version probe — asks ClamAV's ``sigtool`` which version a database file is.

``sigtool -i <file>`` prints a block of ``Key: value`` lines describing a
signature database. Two of them matter here::

    Version: 62
    Verification OK.

A file only counts as trusted when both lines are present. Every failure
is reported as ``VersionProbeError``; callers treat that as "local version
unknown" rather than as a fatal condition.
"""

from __future__ import annotations

import logging
import os
import shutil
import subprocess
from collections.abc import Iterable
from datetime import datetime, timezone
from pathlib import Path
from typing import Protocol

from sigupdate.core.errors import SigtoolNotFoundError, VersionProbeError
from sigupdate.models.signatures import LocalFileState, parse_version_number

logger = logging.getLogger(__name__)

VERSION_PREFIX = "Version:"
VERIFIED_MARKER = "Verification OK"
SIGTOOL_EXECUTABLE = "sigtool"


class VersionProbe(Protocol):
    """Reports the trusted version of a local signature database file."""

    def probe(self, path: Path) -> int:
        ...


def parse_sigtool_output(lines: Iterable[str]) -> int:
    """Extract the verified version from ``sigtool -i`` output.

    The last ``Version:`` line wins. Raises ``VersionProbeError`` if a
    version token is not an integer, if the verification marker is
    missing, or if no version line was seen.
    """
    version: int | None = None
    validated = False

    for line in lines:
        if line.startswith(VERSION_PREFIX):
            token = line[len(VERSION_PREFIX):].strip()
            try:
                version = parse_version_number(token)
            except ValueError as exc:
                raise VersionProbeError(
                    f"Error converting [{token}] to 64-bit integer"
                ) from exc

        if line.startswith(VERIFIED_MARKER):
            validated = True

    if not validated:
        raise VersionProbeError("The file was not reported as validated")
    if version is None:
        raise VersionProbeError("No version information was available for file")
    return version


def find_sigtool_path(explicit: Path | None = None, *, cwd: Path | None = None) -> Path:
    """Locate the sigtool executable.

    Resolution order: an explicit path, ``./sigtool`` in the working
    directory, then the system PATH.
    """
    if explicit is not None:
        candidate = explicit.expanduser()
        if not candidate.is_file():
            raise SigtoolNotFoundError(f"Configured sigtool path does not exist: {candidate}")
        return candidate.resolve()

    local = (cwd or Path.cwd()) / SIGTOOL_EXECUTABLE
    if local.is_file():
        return local.resolve()

    found = shutil.which(SIGTOOL_EXECUTABLE)
    if found is not None:
        return Path(found)

    raise SigtoolNotFoundError(
        "The ClamAV executable sigtool was not found in the "
        "current directory nor in the system path."
    )


class SigtoolProbe:
    """Runs ``sigtool -i`` against a file and parses the reported version.

    Parameters
    ----------
    sigtool_path:
        Path to the sigtool executable.
    timeout_seconds:
        Upper bound on a single sigtool invocation.
    """

    def __init__(self, sigtool_path: Path, *, timeout_seconds: float = 30.0) -> None:
        self.sigtool_path = sigtool_path
        self.timeout_seconds = timeout_seconds

    def probe(self, path: Path) -> int:
        command = [str(self.sigtool_path), "-i", str(path)]
        logger.debug("Running sigtool: %s", " ".join(command))
        try:
            proc = subprocess.Popen(
                command,
                stdout=subprocess.PIPE,
                stderr=subprocess.DEVNULL,
                text=True,
            )
        except OSError as exc:
            raise VersionProbeError(f"Error running sigtool for [{path}]") from exc

        # Closes stdout and reaps the child, including after a timeout.
        with proc:
            try:
                stdout, _ = proc.communicate(timeout=self.timeout_seconds)
            except subprocess.TimeoutExpired as exc:
                proc.kill()
                raise VersionProbeError(
                    f"sigtool timed out after {self.timeout_seconds}s for [{path}]"
                ) from exc

        version = parse_sigtool_output(stdout.splitlines())

        if proc.returncode != 0:
            raise VersionProbeError(
                f"sigtool exited with status {proc.returncode} for [{path}]"
            )
        return version


def inspect_local_file(path: Path, probe: VersionProbe) -> LocalFileState:
    """Build a ``LocalFileState`` snapshot for a database file."""
    if not path.exists():
        return LocalFileState(path=path, exists=False)

    mod_time = datetime.fromtimestamp(os.stat(path).st_mtime, tz=timezone.utc)
    try:
        version = probe.probe(path)
    except VersionProbeError as exc:
        return LocalFileState(path=path, exists=True, mod_time=mod_time, error=str(exc))

    return LocalFileState(
        path=path,
        exists=True,
        version=version,
        validated=True,
        mod_time=mod_time,
    )
