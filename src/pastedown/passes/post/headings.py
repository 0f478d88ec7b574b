#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/pastedown/passes/post/headings.py
"""Heading flattening and outline repair."""

from __future__ import annotations

import re

from bs4 import Tag

from pastedown.constants import HEADING_TAGS
from pastedown.dom import find_all, rename, set_text

_WHITESPACE_RUN = re.compile(r"\s+")


def heading_level(heading: Tag) -> int:
    """Return the numeric level of an ``h1``..``h6`` element."""
    return int(heading.name[1])


def strip_heading_formatting(root: Tag) -> None:
    """Reduce every heading to collapsed plain text.

    When the heading has no ``id``, the first descendant ``id`` is hoisted
    onto it before the markup is discarded, so in-page links keep a target.
    """
    for heading in find_all(root, HEADING_TAGS):
        if not heading.has_attr("id"):
            with_id = heading.find(id=True)
            if with_id is not None and with_id.get("id"):
                heading["id"] = with_id["id"]

        text = _WHITESPACE_RUN.sub(" ", heading.get_text()).strip()
        set_text(heading, text)


def renormalize_levels(levels: list[int]) -> list[int]:
    """Compute repaired heading levels for a document outline.

    The first heading keeps its level. Each following heading may move to
    any shallower level but at most one level deeper than the previous
    (already repaired) heading.

    Parameters
    ----------
    levels : list of int
        Heading levels in document order

    Returns
    -------
    list of int
        Repaired levels

    Examples
    --------
    >>> renormalize_levels([2, 5, 6])
    [2, 3, 4]
    >>> renormalize_levels([2, 5, 2, 6])
    [2, 3, 2, 3]

    """
    result: list[int] = []
    previous: int | None = None
    for level in levels:
        if previous is not None and level > previous + 1:
            level = previous + 1
        result.append(level)
        previous = level
    return result


def normalize_heading_levels(root: Tag) -> None:
    """Rename headings so the outline never skips a level going deeper."""
    headings = find_all(root, HEADING_TAGS)
    repaired = renormalize_levels([heading_level(h) for h in headings])
    for heading, level in zip(headings, repaired):
        if level != heading_level(heading):
            rename(heading, f"h{level}")


def normalize_headings(root: Tag) -> None:
    """Flatten heading markup, then repair heading levels."""
    strip_heading_formatting(root)
    normalize_heading_levels(root)
