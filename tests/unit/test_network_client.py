# tests/unit/test_network_client.py
from __future__ import annotations

import os
from datetime import datetime, timezone
from pathlib import Path

import pytest
import requests

from imgcache.core.fetch.errors import NetworkError
from imgcache.core.fetch.network import RequestsNetworkClient, parse_last_modified

URL = "https://www.geocaching.com/images/a.png"


class _FakeResp:
    def __init__(
        self,
        status: int,
        chunks: list[bytes] | None = None,
        headers: dict[str, str] | None = None,
        fail_midway: bool = False,
    ):
        self.status_code = status
        self._chunks = chunks or []
        self.headers = headers or {}
        self.fail_midway = fail_midway
        self.closed = False

    def iter_content(self, chunk_size: int = 1):
        for c in self._chunks:
            yield c
        if self.fail_midway:
            raise requests.ConnectionError("connection dropped")

    def close(self) -> None:  # requests API compat
        self.closed = True


@pytest.fixture
def client() -> RequestsNetworkClient:
    return RequestsNetworkClient(user_agent="test-agent/1.0", timeout_s=3.0)


def _patch_get(monkeypatch, resp: _FakeResp | None = None, exc: Exception | None = None) -> list[dict]:
    seen: list[dict] = []

    def fake_get(url, headers=None, timeout=None, stream=False):
        seen.append({"url": url, "headers": dict(headers or {}), "timeout": timeout, "stream": stream})
        if exc is not None:
            raise exc
        return resp

    monkeypatch.setattr("imgcache.core.fetch.network.requests.get", fake_get)
    return seen


def test_200_streams_body_to_dest(client, monkeypatch, tmp_path: Path) -> None:
    resp = _FakeResp(200, [b"abc", b"", b"def"], {"Last-Modified": "Sun, 17 May 2020 12:00:00 GMT"})
    seen = _patch_get(monkeypatch, resp)
    dest = tmp_path / "c" / "a.png"

    out = client.fetch(URL, dest)

    assert out.status == 200 and out.wrote_bytes and out.bytes_written == 6
    assert out.last_modified == datetime(2020, 5, 17, 12, 0, tzinfo=timezone.utc)
    assert dest.read_bytes() == b"abcdef"
    assert sorted(p.name for p in dest.parent.iterdir()) == ["a.png"]
    assert seen[0]["stream"] is True and seen[0]["timeout"] == 3.0
    assert seen[0]["headers"]["User-Agent"] == "test-agent/1.0"
    assert "If-Modified-Since" not in seen[0]["headers"]
    assert resp.closed


def test_existing_file_sends_if_modified_since(client, monkeypatch, tmp_path: Path) -> None:
    dest = tmp_path / "a.png"
    dest.write_bytes(b"old")
    ts = datetime(2021, 1, 2, 3, 4, 5, tzinfo=timezone.utc).timestamp()
    os.utime(dest, (ts, ts))
    seen = _patch_get(monkeypatch, _FakeResp(304))

    out = client.fetch(URL, dest)

    assert out.status == 304 and not out.wrote_bytes
    assert seen[0]["headers"]["If-Modified-Since"] == "Sat, 02 Jan 2021 03:04:05 GMT"
    assert dest.read_bytes() == b"old"


def test_error_status_does_not_touch_dest(client, monkeypatch, tmp_path: Path) -> None:
    dest = tmp_path / "a.png"
    dest.write_bytes(b"old")
    _patch_get(monkeypatch, _FakeResp(404, [b"not found page"]))

    out = client.fetch(URL, dest)

    assert out.status == 404 and not out.wrote_bytes
    assert dest.read_bytes() == b"old"


def test_transport_error_raises_network_error(client, monkeypatch, tmp_path: Path) -> None:
    _patch_get(monkeypatch, exc=requests.Timeout("read timed out"))
    with pytest.raises(NetworkError, match="Timeout"):
        client.fetch(URL, tmp_path / "a.png")


def test_interrupted_transfer_keeps_old_file(client, monkeypatch, tmp_path: Path) -> None:
    dest = tmp_path / "a.png"
    dest.write_bytes(b"old")
    _patch_get(monkeypatch, _FakeResp(200, [b"partial"], fail_midway=True))

    with pytest.raises(NetworkError):
        client.fetch(URL, dest)

    assert dest.read_bytes() == b"old"
    assert sorted(p.name for p in tmp_path.iterdir()) == ["a.png"]


@pytest.mark.parametrize("value", [None, "", "yesterday-ish"])
def test_parse_last_modified_tolerates_garbage(value) -> None:
    assert parse_last_modified(value) is None
