import pathlib
import sys
from html.parser import HTMLParser
from io import BytesIO

import pytest
from PIL import Image

PROJECT_ROOT = pathlib.Path(__file__).resolve().parent.parent
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from barangay_certs.app import create_app
from barangay_certs.models import CertificateContentData, OfficialInfo
from barangay_certs.services import certificates_preview


def pytest_collection_modifyitems(config, items):
    for item in items:
        if "slow" in item.keywords or "quarantine" in item.keywords:
            continue
        item.add_marker("full")
        if "no_smoke" in item.keywords:
            continue
        item.add_marker("smoke")


@pytest.fixture(autouse=True)
def _clear_preview_cache():
    certificates_preview._preview_cache.clear()
    yield
    certificates_preview._preview_cache.clear()


@pytest.fixture
def app(tmp_path):
    application = create_app(
        {
            "TESTING": True,
            "SITE_ROOT": str(tmp_path),
            "SEAL_IMAGE_URL": "",
            "SIGNATURE_URL": "",
            "OFFICIAL_NAME": "Jesus De Una",
            "OFFICIAL_POSITION": "Punong Barangay",
        }
    )
    with application.app_context():
        yield application


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def official():
    return OfficialInfo(name="Jesus De Una", position="Punong Barangay")


@pytest.fixture
def indigency():
    return CertificateContentData(
        id="REQ-1",
        type="Certificate of Indigency",
        requested_by="Juan Dela Cruz",
        purpose="",
        generated_on="2024-01-15",
        address="123 Purok 1",
    )


@pytest.fixture
def png_bytes():
    buf = BytesIO()
    Image.new("RGBA", (40, 40), (200, 30, 30, 255)).save(buf, format="PNG")
    return buf.getvalue()


class _ClassText(HTMLParser):
    """Collects the text of each element, keyed by its first CSS class."""

    def __init__(self):
        super().__init__()
        self.stack = []
        self.found = {}

    def handle_starttag(self, tag, attrs):
        if tag == "img":
            return
        classes = (dict(attrs).get("class") or "").split()
        self.stack.append(classes[0] if classes else None)

    def handle_endtag(self, tag):
        if tag != "img" and self.stack:
            self.stack.pop()

    def handle_data(self, data):
        if self.stack and self.stack[-1]:
            self.found.setdefault(self.stack[-1], []).append(data)


@pytest.fixture
def class_texts():
    def collect(markup, css_class):
        parser = _ClassText()
        parser.feed(markup)
        return parser.found.get(css_class, [])

    return collect
