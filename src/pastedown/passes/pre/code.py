#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/pastedown/passes/pre/code.py
"""Flatten code blocks to literal text ahead of sanitizing.

The sanitizer cannot tell a live ``<script>`` from a documented one
inside a code sample. Collapsing every ``<pre>`` (or its ``<code>``) to a
single text node turns any markup inside it into escaped text, which the
sanitizer leaves alone.
"""

from __future__ import annotations

from bs4 import PageElement, Tag

from pastedown.dom import find_all, is_text, set_text


def collect_code_text(node: PageElement) -> str:
    """Concatenate the text under ``node``, mapping ``<br>`` to a newline."""
    if is_text(node):
        return str(node)
    if not isinstance(node, Tag):
        return ""
    if node.name == "br":
        return "\n"
    return "".join(collect_code_text(child) for child in node.children)


def neutralize_code_blocks(root: Tag) -> None:
    """Replace the content of each ``<pre>`` code region with plain text.

    A ``<pre>`` holding a table is skipped; it is unwrapped after
    sanitizing instead.
    """
    for pre in find_all(root, "pre"):
        if pre.find("table") is not None:
            continue
        target = pre.find("code") or pre
        text = collect_code_text(target)
        if not text.strip():
            continue
        set_text(target, text)
