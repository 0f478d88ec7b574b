#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/pastedown/passes/post/images.py
"""Image passes that run after sanitizing.

Three steps live here: unwrapping links around images that were converted
into local resources, standardizing ``<img>`` attributes, and normalizing
``alt`` text so the Markdown renderer never emits multi-line image syntax.
"""

from __future__ import annotations

import logging
import re

from bs4 import Tag

from pastedown.constants import CONVERTED_IMAGE_ATTR, IMAGE_ATTRIBUTE_ORDER, RESOURCE_URL_PREFIX
from pastedown.dom import is_detached, meaningful_children, select_all
from pastedown.utils.text import (
    derive_original_filename,
    normalize_alt_text,
    sanitize_alt_text,
    strip_file_extension,
)

logger = logging.getLogger(__name__)

_HTTP_URL = re.compile(r"^https?://", re.IGNORECASE)


def normalize_image_alt_attributes(root: Tag) -> None:
    """Collapse every ``img[alt]`` value onto a single trimmed line."""
    for img in select_all(root, "img[alt]"):
        current = str(img.get("alt", ""))
        normalized = normalize_alt_text(current)
        if normalized != current:
            img["alt"] = normalized


def standardize_image_element(img: Tag, original_filename: str) -> None:
    """Give ``img`` a non-empty alt and strip it to whitelisted attributes.

    Parameters
    ----------
    img : Tag
        Image element, modified in place
    original_filename : str
        Filename used to derive alt text when the image has none

    Notes
    -----
    Surviving attributes are re-inserted in the order ``src, alt, title,
    width, height`` so serialized output is stable.

    """
    alt = str(img.get("alt", "") or "").strip()
    if not alt:
        alt = sanitize_alt_text(strip_file_extension(original_filename))

    kept: dict[str, str] = {}
    for name in IMAGE_ATTRIBUTE_ORDER:
        if name == "alt":
            kept[name] = alt
            continue
        value = img.get(name)
        if value is None:
            continue
        kept[name] = " ".join(value) if isinstance(value, list) else str(value)

    img.attrs = kept


def standardize_remaining_images(root: Tag) -> None:
    """Standardize every ``img[src]`` left in the tree."""
    for img in select_all(root, "img[src]"):
        src = str(img.get("src", ""))
        standardize_image_element(img, derive_original_filename(src) or "image")


def _is_lone_child(parent: Tag, node: Tag) -> bool:
    kids = meaningful_children(parent)
    return len(kids) == 1 and kids[0] is node


def unwrap_converted_image_link(img: Tag) -> bool:
    """Drop the remote link around an image that now points at a local resource.

    The marker attribute is always removed. The anchor is replaced by the
    image only when it links to an ``http(s)`` URL, the image already
    references a resource, and every element between the two holds nothing
    but the next one down.

    Returns
    -------
    bool
        True if an anchor was removed

    """
    if img.has_attr(CONVERTED_IMAGE_ATTR):
        del img[CONVERTED_IMAGE_ATTR]

    anchor = img.find_parent("a")
    if anchor is None:
        return False
    if not _HTTP_URL.match(str(anchor.get("href", ""))):
        return False
    if not str(img.get("src", "")).startswith(RESOURCE_URL_PREFIX):
        return False

    top = img
    while top.parent is not None and top.parent is not anchor:
        if not _is_lone_child(top.parent, top):
            return False
        top = top.parent
    if top.parent is not anchor or not _is_lone_child(anchor, top):
        return False

    anchor.insert_before(img.extract())
    anchor.decompose()
    return True


def unwrap_all_converted_image_links(root: Tag) -> None:
    """Apply :func:`unwrap_converted_image_link` to every converted image."""
    unwrapped = 0
    for img in select_all(root, f'img[{CONVERTED_IMAGE_ATTR}="true"]'):
        if is_detached(img):
            continue
        if unwrap_converted_image_link(img):
            unwrapped += 1
    if unwrapped:
        logger.debug(f"Unwrapped {unwrapped} link(s) around converted images")
