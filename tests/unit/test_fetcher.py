"""Tests for Fetcher — conditional HEAD + GET, atomic replace, mtime handling."""

from __future__ import annotations

import os
import time
from datetime import datetime, timezone
from pathlib import Path

import httpx
import pytest

from sigupdate.core.errors import FetchError
from sigupdate.core.fetcher import Fetcher, build_http_client, parse_http_date
from sigupdate.models.reports import FetchOutcome

URL = "http://mirror.test/clamav/main.cvd"
MIRROR_TS = datetime(2024, 3, 1, 12, 0, 0, tzinfo=timezone.utc).timestamp()


def _set_mtime(path: Path, when: datetime) -> None:
    ts = when.timestamp()
    os.utime(path, (ts, ts))


def _leftover_temp_files(directory: Path) -> list[Path]:
    return [p for p in directory.iterdir() if p.name.endswith(".part")]


class TestParseHttpDate:
    def test_rfc1123(self):
        parsed = parse_http_date("Fri, 01 Mar 2024 12:00:00 GMT")
        assert parsed == datetime(2024, 3, 1, 12, 0, 0, tzinfo=timezone.utc)

    def test_missing(self):
        assert parse_http_date(None) is None
        assert parse_http_date("") is None

    def test_garbage(self):
        assert parse_http_date("not a date") is None


class TestBuildHttpClient:
    def test_follows_redirects_and_sets_user_agent(self):
        with build_http_client(5.0) as client:
            assert client.follow_redirects is True
            assert client.headers["User-Agent"].startswith("sigupdate/")


class TestFreshDownload:
    def test_downloads_when_absent(self, fetcher, mirror, data_dir):
        mirror.files["main.cvd"] = b"signature-bytes"
        target = data_dir / "main.cvd"

        result = fetcher.fetch(URL, target)

        assert result.outcome is FetchOutcome.DOWNLOADED
        assert result.status_code == 200
        assert result.bytes_written == len(b"signature-bytes")
        assert target.read_bytes() == b"signature-bytes"
        assert mirror.requests == [("GET", "main.cvd")]

    def test_sets_mtime_from_last_modified(self, fetcher, mirror, data_dir):
        mirror.files["main.cvd"] = b"x"
        target = data_dir / "main.cvd"
        fetcher.fetch(URL, target)
        assert target.stat().st_mtime == pytest.approx(MIRROR_TS)

    def test_unparsable_last_modified_uses_now(self, fetcher, mirror, data_dir):
        mirror.files["main.cvd"] = b"x"
        mirror.headers["main.cvd"] = {"Last-Modified": "yesterday-ish"}
        target = data_dir / "main.cvd"
        fetcher.fetch(URL, target)
        assert abs(target.stat().st_mtime - time.time()) < 60

    def test_uses_scratch_dir(self, mirror, data_dir, tmp_path):
        scratch = tmp_path / "scratch"
        scratch.mkdir()
        mirror.files["main.cvd"] = b"payload"
        with mirror.client() as client:
            Fetcher(client, scratch_dir=scratch).fetch(URL, data_dir / "main.cvd")
        assert (data_dir / "main.cvd").read_bytes() == b"payload"
        assert list(scratch.iterdir()) == []


class TestConditionalSkip:
    def test_skips_when_local_is_newer(self, fetcher, mirror, write_cvd):
        mirror.files["main.cvd"] = b"remote"
        target = write_cvd("main.cvd", b"local")
        _set_mtime(target, datetime(2025, 1, 1, tzinfo=timezone.utc))

        result = fetcher.fetch(URL, target)

        assert result.outcome is FetchOutcome.SKIPPED
        assert result.skipped is True
        assert target.read_bytes() == b"local"
        assert mirror.requests == [("HEAD", "main.cvd")]

    def test_downloads_when_remote_is_newer(self, fetcher, mirror, write_cvd):
        mirror.files["main.cvd"] = b"remote"
        target = write_cvd("main.cvd", b"local")
        _set_mtime(target, datetime(2020, 1, 1, tzinfo=timezone.utc))

        result = fetcher.fetch(URL, target)

        assert result.outcome is FetchOutcome.DOWNLOADED
        assert target.read_bytes() == b"remote"
        assert mirror.requests == [("HEAD", "main.cvd"), ("GET", "main.cvd")]

    def test_equal_timestamps_download(self, fetcher, mirror, write_cvd):
        mirror.files["main.cvd"] = b"remote"
        target = write_cvd("main.cvd", b"local")
        _set_mtime(target, datetime(2024, 3, 1, 12, 0, 0, tzinfo=timezone.utc))

        assert fetcher.fetch(URL, target).outcome is FetchOutcome.DOWNLOADED

    def test_unparsable_remote_timestamp_downloads(self, fetcher, mirror, write_cvd):
        mirror.files["main.cvd"] = b"remote"
        mirror.headers["main.cvd"] = {"Last-Modified": "garbage"}
        target = write_cvd("main.cvd", b"local")
        _set_mtime(target, datetime(2025, 1, 1, tzinfo=timezone.utc))

        result = fetcher.fetch(URL, target)

        assert result.outcome is FetchOutcome.DOWNLOADED
        assert target.read_bytes() == b"remote"

    def test_head_transport_failure_raises(self, write_cvd):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("unreachable", request=request)

        target = write_cvd("main.cvd", b"local")
        with httpx.Client(transport=httpx.MockTransport(handler)) as client:
            with pytest.raises(FetchError, match="HEAD"):
                Fetcher(client).fetch(URL, target)
        assert target.read_bytes() == b"local"


class TestFailedDownload:
    def test_not_found_raises_with_status(self, fetcher, data_dir):
        target = data_dir / "main-61.cdiff"
        with pytest.raises(FetchError) as excinfo:
            fetcher.fetch("http://mirror.test/clamav/main-61.cdiff", target)

        assert excinfo.value.status_code == 404
        assert not target.exists()
        assert _leftover_temp_files(data_dir) == []

    def test_not_found_keeps_existing_file(self, fetcher, write_cvd, data_dir):
        target = write_cvd("main.cvd", b"local")
        _set_mtime(target, datetime(2020, 1, 1, tzinfo=timezone.utc))
        with pytest.raises(FetchError):
            fetcher.fetch(URL, target)
        assert target.read_bytes() == b"local"
        assert _leftover_temp_files(data_dir) == []

    def test_connection_failure_has_no_status(self, data_dir):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("unreachable", request=request)

        with httpx.Client(transport=httpx.MockTransport(handler)) as client:
            with pytest.raises(FetchError, match="Unable to retrieve") as excinfo:
                Fetcher(client).fetch(URL, data_dir / "main.cvd")
        assert excinfo.value.status_code is None
        assert not (data_dir / "main.cvd").exists()
