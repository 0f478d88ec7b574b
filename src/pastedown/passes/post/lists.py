#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/pastedown/passes/post/lists.py
"""Repair of malformed list structures.

Outlook, OneNote and several web editors emit nested lists as siblings of
``<li>`` elements, or wrap whole lists in another list element. Markdown
renderers read such sibling lists as new top-level lists, which restarts
ordered numbering.
"""

from __future__ import annotations

import logging

from bs4 import Tag

from pastedown.constants import LIST_TAGS
from pastedown.dom import child_elements, find_all, is_detached, meaningful_children, new_tag

logger = logging.getLogger(__name__)

MAX_REPAIR_ROUNDS = 10


def _is_list(node: object) -> bool:
    return isinstance(node, Tag) and node.name in LIST_TAGS


def _preceding_list_item(lst: Tag) -> Tag | None:
    for sibling in lst.previous_siblings:
        if isinstance(sibling, Tag) and sibling.name == "li":
            return sibling
    return None


def unwrap_invalid_list_wrappers(root: Tag) -> bool:
    """Unwrap lists whose direct children include no ``<li>`` at all.

    A list mixing ``<li>`` with stray children is left for
    :func:`fix_orphan_nested_lists`. Returns True if anything changed.
    """
    changed = False
    for lst in find_all(root, LIST_TAGS):
        if is_detached(lst):
            continue
        kids = meaningful_children(lst)
        if kids and not any(isinstance(kid, Tag) and kid.name == "li" for kid in kids):
            logger.debug(f"Unwrapping invalid <{lst.name}> wrapper")
            lst.unwrap()
            changed = True
    return changed


def fix_orphan_nested_lists(root: Tag) -> bool:
    """Move lists that are direct children of a list into the preceding ``<li>``.

    When no ``<li>`` precedes the orphan, a new one is created to hold it.
    Returns True if anything changed.
    """
    changed = False
    for lst in find_all(root, LIST_TAGS):
        parent = lst.parent
        if is_detached(lst) or not _is_list(parent):
            continue

        target = _preceding_list_item(lst)
        if target is not None:
            target.append(lst.extract())
        else:
            wrapper = new_tag(lst, "li")
            lst.insert_before(wrapper)
            wrapper.append(lst.extract())
        changed = True
    return changed


def unwrap_checkbox_paragraphs(root: Tag) -> bool:
    """Unwrap ``<li><p><input type=checkbox> text</p></li>`` paragraphs.

    Task-list detection expects the checkbox as a direct child of the
    list item. Returns True if anything changed.
    """
    changed = False
    for item in find_all(root, "li"):
        kids = meaningful_children(item)
        if len(kids) != 1 or not isinstance(kids[0], Tag) or kids[0].name != "p":
            continue
        paragraph = kids[0]
        first = next(iter(child_elements(paragraph)), None)
        if first is not None and first.name == "input" and str(first.get("type", "")).lower() == "checkbox":
            paragraph.unwrap()
            changed = True
    return changed


def repair_lists(root: Tag) -> None:
    """Apply the list rules until the tree stops changing.

    Invalid wrappers are unwrapped before orphans are re-parented, since a
    pure wrapper would otherwise be re-parented into a synthetic ``<li>``.
    """
    for _ in range(MAX_REPAIR_ROUNDS):
        changed = unwrap_invalid_list_wrappers(root)
        changed = fix_orphan_nested_lists(root) or changed
        changed = unwrap_checkbox_paragraphs(root) or changed
        if not changed:
            return
    logger.debug(f"List repair stopped after {MAX_REPAIR_ROUNDS} rounds")
