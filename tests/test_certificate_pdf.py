from dataclasses import replace
from io import BytesIO

import pytest
from PyPDF2 import PdfReader

from barangay_certs.services.certificate_pdf import (
    certificate_filename,
    generate_document,
    slug_certificate_name,
)
from barangay_certs.services.images import ImageFetchError
from barangay_certs.shared.certificates_layout import CERTIFICATE_LAYOUT


def _failing_fetcher(source):
    raise ImageFetchError(f"offline: {source}")


def _text(pdf_bytes):
    reader = PdfReader(BytesIO(pdf_bytes))
    return " ".join(reader.pages[0].extract_text().split())


@pytest.mark.smoke
def test_generate_single_a4_page(indigency, official):
    result = generate_document(indigency, official, fetcher=_failing_fetcher)
    assert result.success
    assert result.error is None
    reader = PdfReader(BytesIO(result.pdf_bytes))
    assert len(reader.pages) == 1
    media = reader.pages[0].mediabox
    assert round(float(media.width)) == 595
    assert round(float(media.height)) == 842


def test_generated_text_and_metadata(indigency, official):
    result = generate_document(indigency, official, fetcher=_failing_fetcher)
    text = _text(result.pdf_bytes)
    assert "JESUS DE UNA" in text
    assert "Punong Barangay" in text
    assert "15th day of January, 2024." in text
    assert "OFFICE OF THE SANGGUNIANG BARANGAY" in text
    meta = PdfReader(BytesIO(result.pdf_bytes)).metadata
    assert meta.title == "Certificate of Indigency"
    assert meta.subject == "REQ-1"


def test_no_seal_url_draws_placeholder_without_warning(indigency, official):
    calls = []

    def fetcher(source):
        calls.append(source)
        return b""

    result = generate_document(indigency, official, fetcher=fetcher)
    assert result.success
    assert result.warnings == ()
    assert calls == []


def test_seal_fetch_failure_degrades_to_placeholder(indigency, official):
    result = generate_document(
        indigency, official, seal_url="https://seal.invalid/seal.png", fetcher=_failing_fetcher
    )
    assert result.success
    assert result.pdf_bytes
    assert result.warnings == ("Seal image unavailable; drew placeholder.",)


def test_undecodable_seal_is_a_warning(indigency, official):
    result = generate_document(
        indigency, official, seal_url="seal.png", fetcher=lambda source: b"not an image"
    )
    assert result.success
    assert "Seal image unavailable; drew placeholder." in result.warnings


def test_seal_and_signature_images_drawn(indigency, official, png_bytes):
    data = replace(indigency, has_signature=True, signature_url="sig.png")
    fetched = []

    def fetcher(source):
        fetched.append(source)
        return png_bytes

    result = generate_document(data, official, seal_url="seal.png", fetcher=fetcher)
    assert result.success
    assert result.warnings == ()
    assert fetched == ["seal.png", "sig.png"]


def test_signature_ignored_without_flag(indigency, official, png_bytes):
    data = replace(indigency, has_signature=False, signature_url="sig.png")
    fetched = []

    def fetcher(source):
        fetched.append(source)
        return png_bytes

    generate_document(data, official, fetcher=fetcher)
    assert fetched == []


def test_signature_failure_left_blank(indigency, official):
    data = replace(indigency, has_signature=True, signature_url="sig.png")
    result = generate_document(data, official, fetcher=_failing_fetcher)
    assert result.success
    assert result.warnings == ("Signature image unavailable; left blank.",)


def test_peso_sign_is_transliterated(official, indigency):
    data = replace(indigency, type="Certificate of Income", income="50,000")
    result = generate_document(data, official, fetcher=_failing_fetcher)
    assert result.success
    assert "PHP 50,000" in _text(result.pdf_bytes)


def test_overflow_reported_as_warning(indigency, official):
    data = replace(indigency, purpose=" ".join(["lengthy purpose"] * 400))
    result = generate_document(data, official, fetcher=_failing_fetcher)
    assert result.success
    assert "Certificate text runs past the content box." in result.warnings


def test_degenerate_layout_fails_without_raising(indigency, official):
    squeezed = replace(
        CERTIFICATE_LAYOUT,
        content_box=replace(CERTIFICATE_LAYOUT.content_box, padding_left=400),
    )
    result = generate_document(indigency, official, fetcher=_failing_fetcher, layout=squeezed)
    assert not result.success
    assert result.pdf_bytes is None
    assert result.error.startswith("Failed to generate certificate PDF:")


def test_certificate_filename(indigency):
    assert certificate_filename(indigency) == "indigency_juan-dela-cruz_2024-01-15.pdf"


def test_slug_certificate_name():
    assert slug_certificate_name("  Ma. Luisa  Peña ") == "ma-luisa-pea"
    assert slug_certificate_name("") == "name"
