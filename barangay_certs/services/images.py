from __future__ import annotations

import base64
import binascii
import logging
from io import BytesIO
from typing import Callable

import requests
from PIL import Image, UnidentifiedImageError
from reportlab.lib.utils import ImageReader

logger = logging.getLogger("barangay_certs.images")

DEFAULT_FETCH_TIMEOUT = 5.0
MAX_IMAGE_BYTES = 10 * 1024 * 1024

ImageFetcher = Callable[[str], bytes]


class ImageFetchError(RuntimeError):
    """Raised when an image source cannot be fetched or decoded."""


def _decode_data_uri(source: str) -> bytes:
    header, _, payload = source.partition(",")
    if ";base64" not in header:
        raise ImageFetchError("Only base64 data URIs are supported")
    try:
        return base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise ImageFetchError(f"Invalid data URI: {exc}") from exc


def _download(url: str, timeout: float) -> bytes:
    try:
        resp = requests.get(url, timeout=timeout, stream=True)
    except requests.RequestException as exc:
        raise ImageFetchError(f"Fetch failed for {url}: {exc}") from exc
    try:
        resp.raise_for_status()
        declared = resp.headers.get("Content-Length", "")
        if declared.isdigit() and int(declared) > MAX_IMAGE_BYTES:
            raise ImageFetchError(f"Image at {url} exceeds {MAX_IMAGE_BYTES} bytes")
        chunks: list[bytes] = []
        received = 0
        for chunk in resp.iter_content(chunk_size=64 * 1024):
            received += len(chunk)
            if received > MAX_IMAGE_BYTES:
                raise ImageFetchError(f"Image at {url} exceeds {MAX_IMAGE_BYTES} bytes")
            chunks.append(chunk)
        return b"".join(chunks)
    except requests.RequestException as exc:
        raise ImageFetchError(f"Fetch failed for {url}: {exc}") from exc
    finally:
        resp.close()


def fetch_image_bytes(
    source: str, timeout: float = DEFAULT_FETCH_TIMEOUT, *, allow_local: bool = True
) -> bytes:
    """Bytes of a ``data:`` URI, an http(s) URL or, with ``allow_local``, a file."""
    raw = (source or "").strip()
    if not raw:
        raise ImageFetchError("No image source configured")
    if raw.startswith("data:"):
        return _decode_data_uri(raw)
    if raw.lower().startswith(("http://", "https://")):
        return _download(raw, timeout)
    if not allow_local:
        raise ImageFetchError(f"Local image paths are not accepted here: {raw}")
    try:
        with open(raw, "rb") as f:
            data = f.read(MAX_IMAGE_BYTES + 1)
    except OSError as exc:
        raise ImageFetchError(f"Cannot read {raw}: {exc}") from exc
    if len(data) > MAX_IMAGE_BYTES:
        raise ImageFetchError(f"Image at {raw} exceeds {MAX_IMAGE_BYTES} bytes")
    return data


def http_fetcher(timeout: float = DEFAULT_FETCH_TIMEOUT, *, allow_local: bool = True) -> ImageFetcher:
    def fetch(source: str) -> bytes:
        return fetch_image_bytes(source, timeout=timeout, allow_local=allow_local)

    return fetch


def load_image(source: str, fetcher: ImageFetcher) -> ImageReader:
    """Fetch ``source`` and decode it into something reportlab can draw."""
    data = fetcher(source)
    if not data:
        raise ImageFetchError(f"Empty image payload for {source}")
    try:
        with Image.open(BytesIO(data)) as candidate:
            candidate.verify()
        image = Image.open(BytesIO(data))
        image.load()
    except (UnidentifiedImageError, OSError, SyntaxError) as exc:
        raise ImageFetchError(f"Undecodable image at {source}: {exc}") from exc
    mode = "RGBA" if "A" in image.getbands() or image.mode == "P" else "RGB"
    return ImageReader(image.convert(mode))
