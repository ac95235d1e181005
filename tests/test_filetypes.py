"""Tests for content-type sniffing and the per-scan type cache."""

import logging

import pytest

from conftest import make_image
from photoview import filetypes
from photoview.filetypes import SUPPORTED_MIMETYPES, WEB_MIMETYPES, TypeDetectionCache

CR2_HEADER = b"II*\x00\x10\x00\x00\x00CR\x02\x00" + b"\x00" * 300


@pytest.mark.parametrize(
    "fmt, filename, mime",
    [
        ("JPEG", "photo.jpg", "image/jpeg"),
        ("PNG", "photo.png", "image/png"),
        ("BMP", "photo.bmp", "image/bmp"),
        ("TIFF", "photo.tif", "image/tiff"),
        ("WEBP", "photo.webp", "image/webp"),
    ],
)
def test_classify_supported_formats(tmp_path, fmt, filename, mime):
    path = make_image(tmp_path / filename, fmt=fmt)
    cache = TypeDetectionCache()

    assert cache.classify(path) is True
    assert cache.lookup(path) == mime


def test_classify_canon_raw(tmp_path):
    path = tmp_path / "IMG_0001.CR2"
    path.write_bytes(CR2_HEADER)
    cache = TypeDetectionCache()

    assert cache.classify(path) is True
    assert cache.lookup(path) == "image/x-canon-cr2"


def test_classification_ignores_extension(tmp_path):
    """A PNG named .jpg is still a PNG; a text file named .jpg is nothing."""
    png = make_image(tmp_path / "actually_png.jpg", fmt="PNG")
    fake = tmp_path / "fake.jpg"
    fake.write_text("definitely not an image")
    cache = TypeDetectionCache()

    assert cache.classify(png) is True
    assert cache.lookup(png) == "image/png"
    assert cache.classify(fake) is False
    assert cache.lookup(fake) is None


def test_unsupported_type_is_rejected_and_logged(tmp_path, caplog):
    pdf = tmp_path / "scan.pdf"
    pdf.write_bytes(b"%PDF-1.7\n%\xe2\xe3\xcf\xd3\n1 0 obj\n<<>>\nendobj\n")
    cache = TypeDetectionCache()

    with caplog.at_level(logging.INFO, logger="photoview.filetypes"):
        assert cache.classify(pdf) is False

    assert cache.lookup(pdf) is None
    assert len(cache) == 0
    assert "application/pdf" in caplog.text


def test_gif_is_not_supported(tmp_path):
    gif = make_image(tmp_path / "anim.gif", fmt="GIF")
    cache = TypeDetectionCache()

    assert cache.classify(gif) is False
    assert cache.lookup(gif) is None


def test_second_classification_does_no_io(tmp_path, monkeypatch):
    path = make_image(tmp_path / "photo.jpg")
    cache = TypeDetectionCache()
    reads = []
    real_read_header = filetypes.read_header

    def counting_read_header(p, *args, **kwargs):
        reads.append(p)
        return real_read_header(p, *args, **kwargs)

    monkeypatch.setattr(filetypes, "read_header", counting_read_header)

    assert cache.classify(path) is True
    path.unlink()
    assert cache.classify(path) is True
    assert reads == [path]


def test_read_failure_is_not_cached(tmp_path):
    path = tmp_path / "later.jpg"
    cache = TypeDetectionCache()

    assert cache.classify(path) is False
    assert cache.lookup(path) is None

    # A later call in the same scan retries the read
    make_image(path)
    assert cache.classify(path) is True


def test_empty_file_is_not_an_image(tmp_path):
    path = tmp_path / "empty.jpg"
    path.touch()
    cache = TypeDetectionCache()

    assert cache.classify(path) is False
    assert cache.lookup(path) is None


def test_web_mimetypes_are_a_supported_subset():
    assert set(WEB_MIMETYPES) < set(SUPPORTED_MIMETYPES)
    assert "image/tiff" not in WEB_MIMETYPES
    assert "image/x-canon-cr2" not in WEB_MIMETYPES
