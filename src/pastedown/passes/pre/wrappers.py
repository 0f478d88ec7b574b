#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/pastedown/passes/pre/wrappers.py
"""Google Docs clipboard wrapper removal."""

from __future__ import annotations

import logging

from bs4 import Tag

from pastedown.dom import child_elements

logger = logging.getLogger(__name__)

GOOGLE_DOCS_MARKER_SELECTOR = '[id^="docs-internal-guid-"]'
_WRAPPER_TAGS = frozenset({"b", "strong", "i", "em", "span"})


def _contains(ancestor: Tag, node: Tag) -> bool:
    return node is ancestor or any(parent is ancestor for parent in node.parents)


def remove_google_docs_wrappers(root: Tag) -> None:
    """Unwrap top-level formatting tags that Google Docs puts around a paste.

    Docs wraps the whole clipboard payload in ``<b id="docs-internal-guid-...">``
    (sometimes with a nested span carrying the id), which would otherwise
    render as ``**`` around the entire note. Only direct children of the
    root are considered; when the marker is present, only wrappers
    containing it are unwrapped. Unwrapping repeats until nested wrappers
    that surface at the top level are gone too.
    """
    marker = root.select_one(GOOGLE_DOCS_MARKER_SELECTOR)

    while True:
        candidates = [
            el
            for el in child_elements(root)
            if el.name in _WRAPPER_TAGS and (marker is None or _contains(el, marker))
        ]
        if not candidates:
            break
        for el in candidates:
            logger.debug(f"Unwrapping Google Docs {el.name} wrapper")
            el.unwrap()
