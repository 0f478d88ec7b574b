#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/pastedown/utils/images.py
"""Decode and download pasted images.

Both sources produce a :class:`ParsedImageData`: raw bytes, a MIME type and
a filename suitable for a persisted resource.
"""

from __future__ import annotations

import base64
import binascii
import logging
import re
from dataclasses import dataclass
from urllib.parse import unquote, urlsplit

import httpx

from pastedown.constants import IMAGE_MIME_EXTENSIONS, MAX_IMAGE_BYTES, PASTED_FILENAME_STEM
from pastedown.exceptions import ImageDecodeError, ImageFetchError
from pastedown.options import ImageFetchOptions
from pastedown.utils.network_security import fetch_image_bytes
from pastedown.utils.text import has_file_extension

logger = logging.getLogger(__name__)

_DATA_URI_PATTERN = re.compile(r"^data:([^;,]+)(?:;charset=[^;,]+)?;base64,(.+)$", re.IGNORECASE | re.DOTALL)
_BASE64_ALPHABET = re.compile(r"^[A-Za-z0-9+/=]*$")
_WHITESPACE = re.compile(r"\s+")


@dataclass(frozen=True)
class ParsedImageData:
    """Image bytes ready to be persisted.

    Parameters
    ----------
    data : bytes
        Raw image bytes
    mime : str
        MIME type, always ``image/...``
    filename : str
        Suggested filename including extension
    size : int
        Length of ``data`` in bytes

    """

    data: bytes
    mime: str
    filename: str
    size: int


def extension_for_mime(mime: str) -> str:
    """Map an image MIME type to a file extension, ``"bin"`` when unknown.

    Examples
    --------
    >>> extension_for_mime("image/jpeg")
    'jpg'
    >>> extension_for_mime("image/x-unknown")
    'bin'

    """
    return IMAGE_MIME_EXTENSIONS.get(mime.lower().strip(), "bin")


def parse_base64_image(src: str, max_bytes: int = MAX_IMAGE_BYTES) -> ParsedImageData:
    """Decode a base64 ``data:image/...`` URI.

    The size is estimated from the encoded length and checked before any
    decoding, then checked again on the decoded bytes.

    Parameters
    ----------
    src : str
        The data URI
    max_bytes : int
        Maximum decoded size

    Returns
    -------
    ParsedImageData
        Decoded bytes with filename ``pasted.<ext>``

    Raises
    ------
    ImageDecodeError
        If the URI is malformed, not an image, not valid base64, or too large

    """
    match = _DATA_URI_PATTERN.match(src.strip())
    if not match:
        raise ImageDecodeError("Not a base64 data URI")

    mime = match.group(1).strip().lower()
    if not mime.startswith("image/"):
        raise ImageDecodeError(f"Data URI is not an image: {mime}")

    payload = _WHITESPACE.sub("", match.group(2))
    if not payload or not _BASE64_ALPHABET.match(payload):
        raise ImageDecodeError("Data URI payload contains invalid base64 characters")
    if len(payload) % 4 == 1:
        raise ImageDecodeError("Data URI payload has an invalid base64 length")

    estimated = len(payload) * 3 // 4
    if estimated > max_bytes:
        raise ImageDecodeError(f"Image too large: about {estimated} bytes (max: {max_bytes})")

    padded = payload + "=" * (-len(payload) % 4)
    try:
        data = base64.b64decode(padded, validate=True)
    except (binascii.Error, ValueError) as e:
        raise ImageDecodeError(f"Invalid base64 payload: {e}", original_error=e) from e

    if len(data) > max_bytes:
        raise ImageDecodeError(f"Image too large: {len(data)} bytes (max: {max_bytes})")

    return ParsedImageData(
        data=data,
        mime=mime,
        filename=f"{PASTED_FILENAME_STEM}.{extension_for_mime(mime)}",
        size=len(data),
    )


def derive_filename_from_url(url: str, mime: str) -> str:
    """Use the last URL path segment when it has an extension, else ``pasted.<ext>``.

    Examples
    --------
    >>> derive_filename_from_url("https://example.com/a/photo.jpeg?x=1", "image/jpeg")
    'photo.jpeg'
    >>> derive_filename_from_url("https://example.com/render", "image/png")
    'pasted.png'

    """
    try:
        path = urlsplit(url).path
    except ValueError:
        path = ""
    segments = [segment for segment in path.split("/") if segment]
    if segments:
        name = unquote(segments[-1])
        if has_file_extension(name) and "/" not in name and "\\" not in name:
            return name
    return f"{PASTED_FILENAME_STEM}.{extension_for_mime(mime)}"


def download_image(
    url: str,
    options: ImageFetchOptions | None = None,
    client: httpx.Client | None = None,
) -> ParsedImageData:
    """Fetch a remote image.

    Raises
    ------
    ImageFetchError
        On HTTP failures, a non-image content type, or an empty body
    NetworkSecurityError
        If the URL is refused or the body exceeds the size limit

    """
    fetched = fetch_image_bytes(url, options=options, client=client)
    if not fetched.content_type.startswith("image/"):
        raise ImageFetchError(f"Invalid content type for image: {fetched.content_type}")
    return ParsedImageData(
        data=fetched.data,
        mime=fetched.content_type,
        filename=derive_filename_from_url(url, fetched.content_type),
        size=len(fetched.data),
    )
