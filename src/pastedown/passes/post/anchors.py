#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/pastedown/passes/post/anchors.py
"""Anchor cleanup: permalinks, heading links, block-spanning links and empty links.

Documentation generators decorate headings with fragment links in several
incompatible ways (GitHub's ``a.anchor``, Sphinx's ``a.headerlink`` holding a
pilcrow, MkDocs' ``a.headerlink`` titled "Permanent link"). Left in place,
these render as dangling ``[](#...)`` or ``[¶](#...)`` syntax.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from bs4 import Tag

from pastedown.constants import (
    BLOCK_TAGS,
    DECORATIVE_SVG_TAGS,
    HEADING_TAGS,
    IMAGE_FAMILY_TAGS,
    PERMALINK_CLASSES,
    PERMALINK_GLYPHS,
)
from pastedown.dom import (
    class_list,
    find_all,
    is_detached,
    is_text,
    meaningful_children,
    text_content,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AnchorAnalysis:
    """Classification of an anchor relative to headings."""

    is_permalink: bool
    inside_heading: bool
    wraps_heading: bool
    wraps_blocks: bool


def is_permalink_anchor(anchor: Tag) -> bool:
    """Return True for decorative in-page fragment links.

    All three signals are required: a recognized anchor class, a
    fragment target (``href="#x"`` or a ``user-content-`` id), and
    content that is empty, a decorative glyph, or explicitly titled as a
    permalink.
    """
    classes = {cls.lower() for cls in class_list(anchor)}
    if not classes & PERMALINK_CLASSES:
        return False

    href = str(anchor.get("href", "")).strip()
    anchor_id = str(anchor.get("id", "")).strip()
    if not ((href.startswith("#") and len(href) > 1) or anchor_id.startswith("user-content-")):
        return False

    text = text_content(anchor).strip()
    if not text or text in PERMALINK_GLYPHS:
        return True
    return "permalink" in str(anchor.get("title", "")).lower()


def _wrapped_heading(anchor: Tag) -> Tag | None:
    kids = meaningful_children(anchor)
    if len(kids) == 1 and isinstance(kids[0], Tag) and kids[0].name in HEADING_TAGS:
        return kids[0]
    return None


def _wraps_only_blocks(anchor: Tag) -> bool:
    kids = meaningful_children(anchor)
    return bool(kids) and all(isinstance(kid, Tag) and kid.name in BLOCK_TAGS for kid in kids)


def analyze_anchor(anchor: Tag) -> AnchorAnalysis:
    """Classify ``anchor`` for :func:`clean_heading_anchors`."""
    parent = anchor.parent
    return AnchorAnalysis(
        is_permalink=is_permalink_anchor(anchor),
        inside_heading=isinstance(parent, Tag) and parent.name in HEADING_TAGS,
        wraps_heading=_wrapped_heading(anchor) is not None,
        wraps_blocks=_wraps_only_blocks(anchor),
    )


def clean_heading_anchors(root: Tag) -> None:
    """Remove permalinks and unwrap anchors that sit in or around headings.

    - permalink anchors are removed with their content
    - anchors directly inside a heading are unwrapped
    - an anchor wrapping a single heading is replaced by the heading, which
      inherits the anchor's ``id`` when it has none
    - an anchor wrapping only block elements has its content unwrapped so
      link syntax never spans lines
    """
    for anchor in find_all(root, "a"):
        if is_detached(anchor):
            continue
        analysis = analyze_anchor(anchor)
        if analysis.is_permalink:
            anchor.decompose()
        elif analysis.inside_heading:
            anchor.unwrap()
        elif analysis.wraps_heading:
            heading = _wrapped_heading(anchor)
            anchor_id = anchor.get("id")
            if anchor_id and not heading.get("id"):
                heading["id"] = anchor_id
            anchor.replace_with(heading.extract())
        elif analysis.wraps_blocks:
            logger.debug("Unwrapping anchor that spans block elements")
            anchor.unwrap()


def has_meaningful_descendant(element: Tag, include_images: bool) -> bool:
    """Check whether ``element`` holds anything a reader would see.

    Parameters
    ----------
    element : Tag
        Element to inspect
    include_images : bool
        Whether image-family elements count as content

    Returns
    -------
    bool
        True for non-blank text, an image (when images are enabled), or an
        SVG carrying an accessible name; decorative SVG parts never count

    """
    for node in element.children:
        if is_text(node):
            if str(node).strip():
                return True
            continue
        if not isinstance(node, Tag):
            continue

        name = node.name.lower()
        if name in IMAGE_FAMILY_TAGS and include_images:
            return True
        if name == "svg":
            label = node.get("aria-label") or node.get("aria-labelledby")
            if label and str(label).strip():
                return True
            accessible = node.find(["title", "desc"])
            if accessible is not None and accessible.get_text().strip():
                return True
        if name in DECORATIVE_SVG_TAGS:
            continue
        if has_meaningful_descendant(node, include_images):
            return True
    return False


def remove_empty_anchors(root: Tag, include_images: bool = False) -> None:
    """Remove links that have no visible content."""
    for anchor in root.find_all("a", href=True):
        if is_detached(anchor):
            continue
        if text_content(anchor).strip():
            continue
        if not anchor.contents or not has_meaningful_descendant(anchor, include_images):
            anchor.decompose()
