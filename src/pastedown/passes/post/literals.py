#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/pastedown/passes/post/literals.py
"""Protect literal tag mentions in prose."""

from __future__ import annotations

import re

from bs4 import NavigableString, Tag

from pastedown.dom import iter_text_nodes, new_tag

TAG_TOKEN_PATTERN = re.compile(r"</?[A-Za-z][A-Za-z0-9-]*>")


def protect_literal_html_tag_mentions(root: Tag) -> None:
    """Wrap ``<tag>``-like tokens in prose text with ``<code>``.

    Prose such as "use the <table> element" would otherwise come out of
    the renderer as raw HTML. Text inside code is not touched.
    """
    for node in iter_text_nodes(root):
        content = str(node)
        if "<" not in content or not TAG_TOKEN_PATTERN.search(content):
            continue

        pieces: list[NavigableString | Tag] = []
        last = 0
        for match in TAG_TOKEN_PATTERN.finditer(content):
            if match.start() > last:
                pieces.append(NavigableString(content[last : match.start()]))
            code = new_tag(node, "code")
            code.string = match.group(0)
            pieces.append(code)
            last = match.end()
        if last < len(content):
            pieces.append(NavigableString(content[last:]))

        node.replace_with(*pieces)
