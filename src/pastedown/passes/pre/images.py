#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/pastedown/passes/pre/images.py
"""Image cleanup that must happen before the sanitizer drops ``style``."""

from __future__ import annotations

import re

from bs4 import Tag

from pastedown.constants import IMAGE_FAMILY_TAGS
from pastedown.dom import is_blank_text, is_text, select_all

_WIDTH_PATTERN = re.compile(r"\bwidth\s*:\s*([0-9.]+)\s*px\b", re.IGNORECASE)
_HEIGHT_PATTERN = re.compile(r"\bheight\s*:\s*([0-9.]+)\s*px\b", re.IGNORECASE)


def _parse_pixels(style: str, pattern: re.Pattern[str]) -> int | None:
    match = pattern.search(style)
    if not match:
        return None
    try:
        value = int(float(match.group(1)))
    except ValueError:
        return None
    return value if value > 0 else None


def promote_image_sizing_styles(root: Tag) -> None:
    """Turn inline pixel sizes on ``<img>`` into ``width``/``height`` attributes.

    Promotion only happens when the image has neither attribute, so explicit
    attributes always win. Percentages and other units are ignored. The
    ``style`` attribute is removed from every visited image.
    """
    for img in select_all(root, "img[style]"):
        style = str(img.get("style", ""))
        if not img.has_attr("width") and not img.has_attr("height"):
            width = _parse_pixels(style, _WIDTH_PATTERN)
            height = _parse_pixels(style, _HEIGHT_PATTERN)
            if width is not None:
                img["width"] = str(width)
            if height is not None:
                img["height"] = str(height)
        del img["style"]


def _contains(ancestor: Tag, node: Tag) -> bool:
    return node is ancestor or any(parent is ancestor for parent in node.parents)


def prune_non_image_anchor_children(root: Tag) -> None:
    """Reduce anchors wrapping an image to the image subtree.

    Platforms such as forum software append captions, icons and size
    badges next to a linked image. Removing them lets later passes see the
    anchor as a pure image link.
    """
    anchors: list[Tag] = []
    for img in select_all(root, "a img"):
        anchor = img.find_parent("a")
        if anchor is not None and not any(anchor is seen for seen in anchors):
            anchors.append(anchor)

    for anchor in anchors:
        img = anchor.find("img")
        if img is None:
            continue
        for child in list(anchor.children):
            if isinstance(child, Tag):
                if child.name not in IMAGE_FAMILY_TAGS and not _contains(child, img):
                    child.decompose()
            elif is_text(child) and is_blank_text(child):
                child.extract()
