"""Shared test fixtures for sigupdate."""

from __future__ import annotations

from collections.abc import Callable, Iterator
from email.utils import format_datetime
from datetime import datetime, timezone
from pathlib import Path

import httpx
import pytest

from sigupdate.core.errors import FetchError, VersionProbeError
from sigupdate.core.fetcher import Fetcher
from sigupdate.core.reconciler import Reconciler
from sigupdate.models.reports import FetchOutcome, FetchResult

MIRROR_URL = "http://mirror.test/clamav"
MIRROR_MTIME = datetime(2024, 3, 1, 12, 0, 0, tzinfo=timezone.utc)


# ---------------------------------------------------------------------------
# In-memory collaborators
# ---------------------------------------------------------------------------


class FakeProbe:
    """VersionProbe double keyed by filename.

    A value that is an exception instance is raised instead of returned.
    """

    def __init__(self, versions: dict[str, int | Exception] | None = None) -> None:
        self.versions = dict(versions or {})
        self.calls: list[Path] = []

    def probe(self, path: Path) -> int:
        self.calls.append(path)
        value = self.versions.get(path.name)
        if value is None:
            raise VersionProbeError(f"No version information was available for {path}")
        if isinstance(value, Exception):
            raise value
        return value


class FakeFetcher:
    """Fetcher double that writes a small file for each successful fetch.

    Filenames in ``failing`` raise ``FetchError`` with a 404 status.
    """

    def __init__(self, failing: set[str] | None = None) -> None:
        self.failing = set(failing or ())
        self.calls: list[tuple[str, Path]] = []

    def fetch(self, url: str, local_path: Path) -> FetchResult:
        self.calls.append((url, local_path))
        if local_path.name in self.failing:
            raise FetchError(f"Unable to download file [{url}]: 404 Not Found", url=url, status_code=404)
        local_path.write_bytes(f"payload for {local_path.name}".encode())
        return FetchResult(
            url=url,
            path=local_path,
            outcome=FetchOutcome.DOWNLOADED,
            status_code=200,
            bytes_written=local_path.stat().st_size,
        )

    @property
    def fetched_names(self) -> list[str]:
        return [path.name for _, path in self.calls]


class FakeMirror:
    """An httpx MockTransport handler serving files from a dict.

    ``files`` maps a filename to its body. Every file reports
    ``last_modified`` unless overridden in ``headers``. Requests are
    recorded as ``(method, filename)`` tuples.
    """

    def __init__(
        self,
        files: dict[str, bytes] | None = None,
        *,
        last_modified: datetime = MIRROR_MTIME,
    ) -> None:
        self.files = dict(files or {})
        self.last_modified = last_modified
        self.headers: dict[str, dict[str, str]] = {}
        self.requests: list[tuple[str, str]] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        filename = request.url.path.rsplit("/", 1)[-1]
        self.requests.append((request.method, filename))
        if filename not in self.files:
            return httpx.Response(404)
        headers = {"Last-Modified": format_datetime(self.last_modified, usegmt=True)}
        headers.update(self.headers.get(filename, {}))
        if request.method == "HEAD":
            return httpx.Response(200, headers=headers)
        return httpx.Response(200, headers=headers, content=self.files[filename])

    def client(self) -> httpx.Client:
        return httpx.Client(transport=httpx.MockTransport(self))

    def requests_for(self, method: str) -> list[str]:
        return [name for m, name in self.requests if m == method]


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def data_dir(tmp_path: Path) -> Path:
    """Provide an empty signature data directory."""
    directory = tmp_path / "clamav"
    directory.mkdir()
    return directory


@pytest.fixture
def fake_fetcher() -> FakeFetcher:
    return FakeFetcher()


@pytest.fixture
def make_probe() -> Callable[..., FakeProbe]:
    """Factory fixture: build a FakeProbe from filename -> version pairs."""

    def _factory(**versions: int | Exception) -> FakeProbe:
        return FakeProbe({f"{name}.cvd": value for name, value in versions.items()})

    return _factory


@pytest.fixture
def make_reconciler(data_dir: Path) -> Callable[..., Reconciler]:
    """Factory fixture: build a Reconciler over ``data_dir``."""

    def _factory(
        fetcher: FakeFetcher,
        probe: FakeProbe,
        diff_count_threshold: int = 100,
    ) -> Reconciler:
        return Reconciler(
            fetcher=fetcher,
            probe=probe,
            data_dir=data_dir,
            download_mirror_url=MIRROR_URL,
            diff_count_threshold=diff_count_threshold,
        )

    return _factory


@pytest.fixture
def mirror() -> FakeMirror:
    return FakeMirror()


@pytest.fixture
def fetcher(mirror: FakeMirror) -> Iterator[Fetcher]:
    """A real Fetcher wired to the in-memory mirror."""
    client = mirror.client()
    yield Fetcher(client)
    client.close()


@pytest.fixture
def write_cvd(data_dir: Path) -> Callable[..., Path]:
    """Factory fixture: create a local database or diff file."""

    def _factory(filename: str, content: bytes = b"local") -> Path:
        path = data_dir / filename
        path.write_bytes(content)
        return path

    return _factory
