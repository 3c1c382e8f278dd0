import base64

import pytest
import requests

from barangay_certs.services import images
from barangay_certs.services.images import ImageFetchError, fetch_image_bytes, load_image


class _Resp:
    def __init__(self, content, status=200, headers=None, chunk=64 * 1024):
        self.content = content
        self.status = status
        self.headers = headers or {}
        self.chunk = chunk
        self.closed = False

    def raise_for_status(self):
        if self.status >= 400:
            raise requests.HTTPError(f"{self.status} error")

    def iter_content(self, chunk_size=1):
        for start in range(0, len(self.content), self.chunk):
            yield self.content[start:start + self.chunk]

    def close(self):
        self.closed = True


def test_fetch_data_uri(png_bytes):
    uri = "data:image/png;base64," + base64.b64encode(png_bytes).decode()
    assert fetch_image_bytes(uri) == png_bytes


def test_fetch_rejects_non_base64_data_uri():
    with pytest.raises(ImageFetchError):
        fetch_image_bytes("data:image/svg+xml,<svg/>")


def test_fetch_local_file(tmp_path, png_bytes):
    path = tmp_path / "seal.png"
    path.write_bytes(png_bytes)
    assert fetch_image_bytes(str(path)) == png_bytes


def test_fetch_missing_file():
    with pytest.raises(ImageFetchError):
        fetch_image_bytes("/nonexistent/seal.png")


def test_fetch_blank_source():
    with pytest.raises(ImageFetchError):
        fetch_image_bytes("  ")


def test_fetch_http_passes_timeout(monkeypatch, png_bytes):
    seen = {}

    def fake_get(url, timeout, stream=False):
        seen["url"] = url
        seen["timeout"] = timeout
        seen["stream"] = stream
        return _Resp(png_bytes)

    monkeypatch.setattr(images.requests, "get", fake_get)
    assert fetch_image_bytes("https://example.test/seal.png", timeout=2.5) == png_bytes
    assert seen == {"url": "https://example.test/seal.png", "timeout": 2.5, "stream": True}


def test_fetch_http_error_status(monkeypatch):
    monkeypatch.setattr(images.requests, "get", lambda url, timeout, stream=False: _Resp(b"", 404))
    with pytest.raises(ImageFetchError):
        fetch_image_bytes("https://example.test/missing.png")


def test_fetch_http_connection_error(monkeypatch):
    def boom(url, timeout, stream=False):
        raise requests.ConnectionError("unreachable")

    monkeypatch.setattr(images.requests, "get", boom)
    with pytest.raises(ImageFetchError):
        fetch_image_bytes("http://example.test/seal.png")


def test_load_image_decodes(png_bytes):
    reader = load_image("seal.png", lambda source: png_bytes)
    assert reader.getSize() == (40, 40)


def test_load_image_rejects_garbage():
    with pytest.raises(ImageFetchError):
        load_image("seal.png", lambda source: b"garbage")


def test_load_image_rejects_empty():
    with pytest.raises(ImageFetchError):
        load_image("seal.png", lambda source: b"")


def test_fetch_local_file_refused_when_remote_only(tmp_path, png_bytes):
    path = tmp_path / "private.png"
    path.write_bytes(png_bytes)
    with pytest.raises(ImageFetchError):
        fetch_image_bytes(str(path), allow_local=False)


def test_remote_only_fetcher_still_takes_data_uri(png_bytes):
    uri = "data:image/png;base64," + base64.b64encode(png_bytes).decode()
    assert images.http_fetcher(allow_local=False)(uri) == png_bytes


def test_fetch_http_rejects_declared_oversize(monkeypatch):
    resp = _Resp(b"x", headers={"Content-Length": str(images.MAX_IMAGE_BYTES + 1)})
    monkeypatch.setattr(images.requests, "get", lambda url, timeout, stream=False: resp)
    with pytest.raises(ImageFetchError, match="exceeds"):
        fetch_image_bytes("https://example.test/huge.png")
    assert resp.closed


def test_fetch_http_stops_reading_past_cap(monkeypatch):
    monkeypatch.setattr(images, "MAX_IMAGE_BYTES", 100)
    resp = _Resp(b"x" * 1000, chunk=30)
    monkeypatch.setattr(images.requests, "get", lambda url, timeout, stream=False: resp)
    with pytest.raises(ImageFetchError, match="exceeds"):
        fetch_image_bytes("https://example.test/huge.png")
    assert resp.closed
