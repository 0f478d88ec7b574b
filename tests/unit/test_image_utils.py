"""Unit tests for image decoding, downloading and path safety.

Test Coverage:
- Base64 data URI decoding and its size and alphabet checks
- MIME type to extension mapping and filename derivation
- Download wrapper over a mock transport
- Path traversal protection for persisted files
"""

import base64

import httpx
import pytest

from pastedown.exceptions import ImageDecodeError, ImageFetchError, PathTraversalError
from pastedown.utils.images import (
    derive_filename_from_url,
    download_image,
    extension_for_mime,
    parse_base64_image,
)
from pastedown.utils.security import validate_safe_path


@pytest.mark.unit
class TestParseBase64Image:
    """Test data URI decoding."""

    def test_valid_png(self, png_data_uri, png_bytes):
        """A PNG data URI decodes to its bytes."""
        image = parse_base64_image(png_data_uri)
        assert image.data == png_bytes
        assert image.mime == "image/png"
        assert image.filename == "pasted.png"
        assert image.size == len(png_bytes)

    def test_jpeg_extension(self):
        """The filename extension follows the MIME type."""
        image = parse_base64_image("data:image/jpeg;base64," + base64.b64encode(b"jpegdata").decode())
        assert image.filename == "pasted.jpg"

    def test_whitespace_and_missing_padding(self):
        """Embedded whitespace is ignored and padding is restored."""
        image = parse_base64_image("data:image/gif;base64,QU\nJD\n RA")
        assert image.data == b"ABCD"

    def test_non_image_rejected(self):
        """Non-image MIME types are refused."""
        with pytest.raises(ImageDecodeError, match="not an image"):
            parse_base64_image("data:text/plain;base64,QUJD")

    def test_invalid_characters_rejected(self):
        """Characters outside the base64 alphabet are refused."""
        with pytest.raises(ImageDecodeError, match="invalid base64"):
            parse_base64_image("data:image/png;base64,QUJD$$%%")

    def test_invalid_length_rejected(self):
        """A payload one character past a quantum can never be valid."""
        with pytest.raises(ImageDecodeError, match="length"):
            parse_base64_image("data:image/png;base64,QUJDR")

    def test_oversize_rejected_before_decoding(self, png_data_uri):
        """Payloads over the limit are refused."""
        with pytest.raises(ImageDecodeError, match="too large"):
            parse_base64_image(png_data_uri, max_bytes=10)

    def test_not_a_data_uri(self):
        """Ordinary URLs are not data URIs."""
        with pytest.raises(ImageDecodeError):
            parse_base64_image("https://example.com/a.png")


@pytest.mark.unit
class TestFilenames:
    """Test MIME and URL based filename helpers."""

    @pytest.mark.parametrize(
        "mime,ext",
        [("image/png", "png"), ("image/JPEG", "jpg"), ("image/svg+xml", "svg"), ("image/x-unknown", "bin")],
    )
    def test_extension_for_mime(self, mime, ext):
        """Known types map to their usual extension."""
        assert extension_for_mime(mime) == ext

    def test_filename_from_url_path(self):
        """The last path segment is used when it has an extension."""
        assert derive_filename_from_url("https://x.test/a/photo.jpeg?w=1", "image/jpeg") == "photo.jpeg"

    def test_filename_from_encoded_path(self):
        """Percent-encoded names are decoded."""
        assert derive_filename_from_url("https://x.test/my%20cat.png", "image/png") == "my cat.png"

    def test_filename_fallback(self):
        """Extensionless paths fall back to the pasted stem."""
        assert derive_filename_from_url("https://x.test/render", "image/webp") == "pasted.webp"


@pytest.mark.unit
@pytest.mark.network
class TestDownloadImage:
    """Test the download wrapper."""

    def test_download(self):
        """Downloaded images carry their MIME type and URL filename."""
        transport = httpx.MockTransport(
            lambda request: httpx.Response(200, headers={"content-type": "image/gif"}, content=b"GIF89a")
        )
        with httpx.Client(transport=transport) as client:
            image = download_image("https://x.test/anim.gif", client=client)
        assert image.data == b"GIF89a"
        assert image.mime == "image/gif"
        assert image.filename == "anim.gif"
        assert image.size == 6

    def test_download_http_error(self):
        """HTTP failures surface as fetch errors."""
        transport = httpx.MockTransport(lambda request: httpx.Response(403))
        with httpx.Client(transport=transport) as client:
            with pytest.raises(ImageFetchError):
                download_image("https://x.test/a.png", client=client)


@pytest.mark.unit
class TestValidateSafePath:
    """Test path traversal protection."""

    def test_plain_filename(self, tmp_path):
        """A plain name resolves inside the base directory."""
        target = validate_safe_path(tmp_path, "a.png")
        assert target == (tmp_path / "a.png").resolve()

    def test_subdirectory(self, tmp_path):
        """Relative subdirectories are allowed."""
        target = validate_safe_path(tmp_path, "resources/a.png")
        assert target.parent == (tmp_path / "resources").resolve()

    @pytest.mark.parametrize("filename", ["../escape.png", "a/../../b.png", "/etc/passwd", "C:\\evil.png"])
    def test_unsafe_names_rejected(self, tmp_path, filename):
        """Traversal, absolute and drive-qualified names are refused."""
        with pytest.raises(PathTraversalError):
            validate_safe_path(tmp_path, filename)
