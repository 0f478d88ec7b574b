#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/pastedown/utils/text.py
"""Text helpers for alt text, filenames and log output."""

from __future__ import annotations

import re
from urllib.parse import urlsplit

from pastedown.constants import DEFAULT_IMAGE_ALT, MAX_ALT_TEXT_LENGTH, PASTED_FILENAME_STEM, RESOURCE_URL_PREFIX

_CONTROL_CHARS = re.compile(r"[\x00-\x1f\x7f]")
_UNICODE_SEPARATORS = re.compile(r"[\u00a0\u1680\u2000-\u200a\u2028\u2029\u202f\u205f\u3000]")
_WHITESPACE_RUN = re.compile(r"\s+")
_FILE_EXTENSION = re.compile(r"\.[a-z0-9]{2,5}$", re.IGNORECASE)


def normalize_alt_text(raw: str | None) -> str:
    """Collapse an ``alt`` value onto one clean line.

    Control characters and Unicode separators become spaces, whitespace
    runs collapse to a single space, and the result is trimmed.

    Examples
    --------
    >>> normalize_alt_text("Line one\\nLine\\ttwo ")
    'Line one Line two'

    """
    if raw is None:
        return ""
    text = _CONTROL_CHARS.sub(" ", str(raw))
    text = _UNICODE_SEPARATORS.sub(" ", text)
    return _WHITESPACE_RUN.sub(" ", text).strip()


def sanitize_alt_text(raw: str) -> str:
    """Build fallback alt text from a filename stem.

    Parameters
    ----------
    raw : str
        Candidate text, typically a filename without extension

    Returns
    -------
    str
        Text without control characters, capped at 120 characters,
        or ``"image"`` when nothing usable remains

    """
    text = _CONTROL_CHARS.sub("", raw)
    text = _WHITESPACE_RUN.sub(" ", text).strip()
    if not text:
        text = DEFAULT_IMAGE_ALT
    if len(text) > MAX_ALT_TEXT_LENGTH:
        text = text[: MAX_ALT_TEXT_LENGTH - 3] + "..."
    return text


def strip_file_extension(filename: str) -> str:
    """Remove a short trailing extension such as ``.png``."""
    return _FILE_EXTENSION.sub("", filename)


def has_file_extension(filename: str) -> bool:
    """Return True if ``filename`` ends in a 2-5 character extension."""
    return bool(_FILE_EXTENSION.search(filename))


def derive_original_filename(src: str) -> str:
    """Infer a pseudo filename from an image ``src`` for alt text fallback.

    Examples
    --------
    >>> derive_original_filename("https://example.com/img/cat.png?size=2")
    'cat.png'
    >>> derive_original_filename("data:image/png;base64,AAAA")
    'pasted'

    """
    if src.startswith("data:"):
        return PASTED_FILENAME_STEM
    if src.startswith(RESOURCE_URL_PREFIX):
        return "resource"
    try:
        path = urlsplit(src).path
    except ValueError:
        return DEFAULT_IMAGE_ALT
    segments = [segment for segment in path.split("/") if segment]
    return segments[-1] if segments else DEFAULT_IMAGE_ALT


def truncate_for_log(value: str, keep: int = 80) -> str:
    """Shorten long strings (data URIs) for log messages.

    Examples
    --------
    >>> truncate_for_log("x" * 300, keep=10)
    'xxxxxxxxxx...[280 chars omitted]...xxxxxxxxxx'

    """
    if len(value) <= keep * 2 + 20:
        return value
    omitted = len(value) - keep * 2
    return f"{value[:keep]}...[{omitted} chars omitted]...{value[-keep:]}"
