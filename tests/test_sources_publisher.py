from pathlib import Path

import pytest
import requests

import videoprocessor.sources as sources
from videoprocessor.errors import FetchFailed, PublishFailed
from videoprocessor.publisher import LocalPublisher
from videoprocessor.sources import copy_local_source, fetch_source


class _FakeResponse:
    def __init__(self, chunks, status_error=None):
        self._chunks = chunks
        self._status_error = status_error

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False

    def raise_for_status(self):
        if self._status_error is not None:
            raise self._status_error

    def iter_content(self, chunk_size=1):
        yield from self._chunks


def test_fetch_source_streams_to_dest(tmp_path: Path, monkeypatch) -> None:
    seen = {}

    def fake_get(url, **kwargs):
        seen.update(kwargs, url=url)
        return _FakeResponse([b"abc", b"", b"def"])

    monkeypatch.setattr(sources.requests, "get", fake_get)
    dest = tmp_path / "input.mp4"
    assert fetch_source("https://cdn.test/v.mp4", dest, timeout=5, chunk_bytes=3) == dest
    assert dest.read_bytes() == b"abcdef"
    assert seen["stream"] is True
    assert seen["timeout"] == 5


def test_fetch_source_http_error(tmp_path: Path, monkeypatch) -> None:
    err = requests.HTTPError("404 Client Error: Not Found")
    monkeypatch.setattr(sources.requests, "get", lambda url, **kw: _FakeResponse([], status_error=err))
    with pytest.raises(FetchFailed, match="404"):
        fetch_source("https://cdn.test/missing.mp4", tmp_path / "x.mp4")


def test_fetch_source_connection_error(tmp_path: Path, monkeypatch) -> None:
    def boom(url, **kw):
        raise requests.ConnectionError("refused")

    monkeypatch.setattr(sources.requests, "get", boom)
    with pytest.raises(FetchFailed, match="refused"):
        fetch_source("http://cdn.test/v.mp4", tmp_path / "x.mp4")


@pytest.mark.parametrize("url", ["", "file:///etc/passwd", "ftp://host/v.mp4", "not a url"])
def test_fetch_source_rejects_non_http(tmp_path: Path, url: str) -> None:
    with pytest.raises(FetchFailed):
        fetch_source(url, tmp_path / "x.mp4")


def test_copy_local_source(tmp_path: Path) -> None:
    src = tmp_path / "clip.mp4"
    src.write_bytes(b"local")
    dest = copy_local_source(src, tmp_path / "input.mp4")
    assert dest.read_bytes() == b"local"
    with pytest.raises(FetchFailed):
        copy_local_source(tmp_path / "nope.mp4", tmp_path / "other.mp4")


def test_local_publisher_copies_with_unique_name(tmp_path: Path) -> None:
    out = tmp_path / "output_abc.mp4"
    out.write_bytes(b"video")
    pub = LocalPublisher(tmp_path / "public", "http://localhost:3001/public/")

    url1 = pub.publish(out)
    url2 = pub.publish(out)
    assert url1 != url2
    assert url1.startswith("http://localhost:3001/public/processed/")
    assert url1.endswith("_output_abc.mp4")

    name = url1.rsplit("/", 1)[1]
    assert (tmp_path / "public" / "processed" / name).read_bytes() == b"video"
    assert out.exists()


def test_local_publisher_missing_file(tmp_path: Path) -> None:
    pub = LocalPublisher(tmp_path / "public", "http://x/public")
    with pytest.raises(PublishFailed):
        pub.publish(tmp_path / "gone.mp4")
