#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/pastedown/passes/pre/headings.py
"""Heading structure cleanup before sanitizing."""

from __future__ import annotations

from bs4 import Tag

from pastedown.constants import HEADING_TAGS
from pastedown.dom import child_elements, find_all, only_contains


def _first_element_child(el: Tag) -> Tag | None:
    children = child_elements(el)
    return children[0] if children else None


def normalize_heading_structure(root: Tag) -> None:
    """Unwrap bold markup and sole ``<p>`` wrappers inside headings.

    Headings already render bold, and a paragraph nested directly inside
    a heading turns into an empty Markdown heading followed by text.
    """
    for heading in find_all(root, HEADING_TAGS):
        for bold in heading.find_all(["b", "strong"]):
            bold.unwrap()

        sole_child = _first_element_child(heading)
        while sole_child is not None and sole_child.name == "p" and only_contains(heading, sole_child):
            sole_child.unwrap()
            sole_child = _first_element_child(heading)
