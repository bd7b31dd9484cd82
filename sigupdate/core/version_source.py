"""Version source — where the mirror's current signature versions come from.

ClamAV publishes the current database versions as a DNS TXT record on
``current.cvd.clamav.net``. The record is a colon-delimited string::

    0.103.8:62:26700:1666352940:1:63:49191:333
    |       |  |     |          | |  |     +-- [7] bytecode version
    |       |  |     |          | |  +-------- [6] safe browsing version
    |       |  |     |          | +----------- [5] flevel
    |       |  |     |          +------------- [4] recommended version flag
    |       |  |     +------------------------ [3] daily build timestamp
    |       |  +------------------------------ [2] daily version
    |       +--------------------------------- [1] main version
    +----------------------------------------- [0] engine version

Only fields 1, 2, 6 and 7 are consumed. Any of them missing or
non-numeric rejects the whole record.
"""

from __future__ import annotations

import logging
import shutil
import subprocess
from typing import Protocol

from sigupdate.core.errors import VersionRecordError
from sigupdate.models.signatures import SignatureVersions, parse_version_number

logger = logging.getLogger(__name__)

_FIELD_COUNT = 8
_VERSION_FIELDS: tuple[tuple[str, int], ...] = (
    ("main", 1),
    ("daily", 2),
    ("safebrowsing", 6),
    ("bytecode", 7),
)


def parse_txt_record(record: str) -> SignatureVersions:
    """Parse a ClamAV TXT record into ``SignatureVersions``.

    Raises ``VersionRecordError`` if the record has too few fields or any
    consumed field is not a base-10 integer.
    """
    fields = record.strip().strip('"').split(":", _FIELD_COUNT - 1)
    if len(fields) < _FIELD_COUNT:
        raise VersionRecordError(
            f"Version record has {len(fields)} fields, expected {_FIELD_COUNT}: {record!r}"
        )

    parsed: dict[str, int] = {}
    for name, index in _VERSION_FIELDS:
        raw = fields[index].strip()
        try:
            parsed[name] = parse_version_number(raw)
        except ValueError as exc:
            raise VersionRecordError(
                f"Error parsing {name} version from field {index}: {raw!r}"
            ) from exc

    return SignatureVersions(**parsed)


class VersionSource(Protocol):
    """Anything that can produce the mirror's current version record."""

    def fetch_record(self) -> str:
        ...


class StaticVersionSource:
    """A version source that returns a record supplied up front."""

    def __init__(self, record: str) -> None:
        self._record = record

    def fetch_record(self) -> str:
        return self._record


class DnsTxtVersionSource:
    """Resolve the version record from DNS using the ``dig`` utility.

    Parameters
    ----------
    domain:
        The domain publishing the TXT record.
    timeout_seconds:
        Upper bound on the lookup.
    dig_path:
        Explicit path to ``dig``. Looked up on PATH when omitted.
    """

    def __init__(
        self,
        domain: str = "current.cvd.clamav.net",
        *,
        timeout_seconds: float = 10.0,
        dig_path: str | None = None,
    ) -> None:
        self.domain = domain
        self.timeout_seconds = timeout_seconds
        self._dig_path = dig_path

    def fetch_record(self) -> str:
        """Return the first TXT record published for the domain."""
        dig = self._dig_path or shutil.which("dig")
        if dig is None:
            raise VersionRecordError(
                f"Unable to resolve TXT record for {self.domain}: dig not found on PATH"
            )

        try:
            result = subprocess.run(
                [dig, "+short", "TXT", self.domain],
                capture_output=True,
                text=True,
                timeout=self.timeout_seconds,
            )
        except (subprocess.SubprocessError, OSError) as exc:
            raise VersionRecordError(
                f"Unable to resolve TXT record for {self.domain}: {exc}"
            ) from exc

        if result.returncode != 0:
            raise VersionRecordError(
                f"Unable to resolve TXT record for {self.domain}: "
                f"dig exited with status {result.returncode}: {result.stderr.strip()}"
            )

        records = parse_dig_output(result.stdout)
        if not records:
            raise VersionRecordError(f"No TXT records returned for {self.domain}")

        logger.debug("TXT record for [%s]: %s", self.domain, records[0])
        return records[0]


def parse_dig_output(output: str) -> list[str]:
    """Extract TXT record values from ``dig +short`` output.

    Each line is one record made of one or more quoted character strings,
    which are concatenated.
    """
    records: list[str] = []
    for line in output.splitlines():
        line = line.strip()
        if not line or line.startswith(";"):
            continue
        if '"' in line:
            parts = line.split('"')[1::2]
            records.append("".join(parts))
        else:
            records.append(line)
    return records


def resolve_versions(source: VersionSource) -> SignatureVersions:
    """Fetch and parse the current versions from a source."""
    record = source.fetch_record()
    versions = parse_txt_record(record)
    logger.debug("TXT record values parsed: %s", versions)
    return versions
