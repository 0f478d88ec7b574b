#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/pastedown/dom.py
"""DOM primitives shared by every pipeline pass.

The pipeline operates on BeautifulSoup trees rooted at a ``<body>`` tag.
The helpers here keep the passes free of repeated node-type checks and
make sure new elements are always created by the soup that owns the tree,
so serialization rules (void elements, multi-valued ``class``) stay
consistent across passes.
"""

from __future__ import annotations

import logging
from typing import Iterable, Iterator

from bs4 import BeautifulSoup, NavigableString, PageElement, Tag
from bs4.element import PreformattedString

from pastedown.constants import DEFAULT_PARSER, NBSP

logger = logging.getLogger(__name__)

CODE_TAGS = frozenset({"code", "pre"})


def parse_fragment(html: str, parser: str = DEFAULT_PARSER) -> Tag:
    """Parse an HTML string and return its ``<body>`` element.

    Fragments without a body (the usual clipboard case for ``html.parser``)
    get a synthetic one holding every top-level node.

    Parameters
    ----------
    html : str
        Raw HTML markup
    parser : str, default "html.parser"
        BeautifulSoup tree builder name

    Returns
    -------
    Tag
        The document root

    Raises
    ------
    bs4.FeatureNotFound
        If the requested tree builder is not installed

    """
    soup = BeautifulSoup(html, parser)
    body = soup.body
    if body is not None:
        return body

    body = soup.new_tag("body")
    for node in list(soup.contents):
        body.append(node.extract())
    soup.append(body)
    return body


def serialize(root: Tag) -> str:
    """Serialize the children of ``root`` back to HTML."""
    return root.decode_contents()


def owner_soup(node: PageElement) -> BeautifulSoup:
    """Return the BeautifulSoup object that owns ``node``.

    Detached subtrees fall back to a fresh soup so that callers can
    still create elements.
    """
    if isinstance(node, BeautifulSoup):
        return node
    top = None
    for parent in node.parents:
        top = parent
    if isinstance(top, BeautifulSoup):
        return top
    return BeautifulSoup("", DEFAULT_PARSER)


def new_tag(context: PageElement, name: str, **attrs: str) -> Tag:
    """Create an element owned by the same soup as ``context``."""
    return owner_soup(context).new_tag(name, attrs=attrs)


def is_element(node: PageElement | None) -> bool:
    """Return True for element nodes."""
    return isinstance(node, Tag)


def is_text(node: PageElement | None) -> bool:
    """Return True for plain text nodes (not comments, doctypes or CDATA)."""
    return isinstance(node, NavigableString) and not isinstance(node, PreformattedString)


def is_blank_text(node: PageElement | None) -> bool:
    """Return True for text nodes containing only whitespace (NBSP included)."""
    return is_text(node) and not str(node).replace(NBSP, " ").strip()


def is_ignorable(node: PageElement) -> bool:
    """Return True for nodes that never count as content: blank text and comments."""
    return is_blank_text(node) or isinstance(node, PreformattedString)


def child_elements(el: Tag) -> list[Tag]:
    """Return the element children of ``el`` as a list snapshot."""
    return [child for child in el.children if isinstance(child, Tag)]


def meaningful_children(el: Tag) -> list[PageElement]:
    """Return children of ``el`` ignoring whitespace-only text and comments."""
    return [child for child in el.children if not is_ignorable(child)]


def only_contains(wrapper: Tag, child: PageElement) -> bool:
    """Check whether ``child`` is the single meaningful child of ``wrapper``.

    Parameters
    ----------
    wrapper : Tag
        Candidate wrapper element
    child : PageElement
        Node expected to be the only content

    Returns
    -------
    bool
        True if ``wrapper`` holds nothing but ``child`` and blank text

    """
    kids = meaningful_children(wrapper)
    return len(kids) == 1 and kids[0] is child


def unwrap(el: Tag) -> None:
    """Replace ``el`` with its children in place."""
    el.unwrap()


def is_in_code(node: PageElement) -> bool:
    """Return True if ``node`` is, or sits inside, a ``<code>`` or ``<pre>``."""
    if isinstance(node, Tag) and node.name in CODE_TAGS:
        return True
    return node.find_parent(["code", "pre"]) is not None


def select_all(root: Tag, selector: str) -> list[Tag]:
    """Return a list snapshot of elements matching a CSS selector.

    The snapshot is safe to iterate while the tree is being mutated.
    """
    return list(root.select(selector))


def find_all(root: Tag, names: str | Iterable[str]) -> list[Tag]:
    """Return a list snapshot of descendant elements with the given tag name(s)."""
    if isinstance(names, str):
        return list(root.find_all(names))
    return list(root.find_all(list(names)))


def iter_text_nodes(root: Tag, skip: frozenset[str] = CODE_TAGS) -> Iterator[NavigableString]:
    """Yield text nodes under ``root`` in document order.

    Subtrees rooted at an element in ``skip`` are not entered. The node list
    is collected before yielding, so callers may replace nodes as they go.

    Parameters
    ----------
    root : Tag
        Subtree to walk
    skip : frozenset of str
        Tag names whose subtrees are left untouched

    Yields
    ------
    NavigableString
        Each text node outside the skipped regions

    """
    collected: list[NavigableString] = []
    stack: list[PageElement] = list(reversed(list(root.children)))
    while stack:
        node = stack.pop()
        if isinstance(node, Tag):
            if node.name in skip:
                continue
            stack.extend(reversed(list(node.children)))
        elif is_text(node):
            collected.append(node)
    yield from collected


def text_content(node: PageElement) -> str:
    """Return the concatenated text of ``node`` like DOM ``textContent``."""
    if isinstance(node, Tag):
        return node.get_text()
    if is_text(node):
        return str(node)
    return ""


def has_meaningful_text(node: PageElement) -> bool:
    """Return True when ``node`` carries non-whitespace text."""
    return bool(text_content(node).replace(NBSP, " ").strip())


def set_text(el: Tag, text: str) -> None:
    """Replace all children of ``el`` with a single text node."""
    el.clear()
    el.append(NavigableString(text))


def class_list(el: Tag) -> list[str]:
    """Return the class tokens of ``el`` regardless of how the parser stored them."""
    value = el.get("class")
    if not value:
        return []
    if isinstance(value, str):
        return value.split()
    return [token for item in value for token in str(item).split()]


def set_class_list(el: Tag, classes: list[str]) -> None:
    """Set or remove the ``class`` attribute of ``el``."""
    if classes:
        el["class"] = list(classes)
    elif "class" in el.attrs:
        del el["class"]


def rename(el: Tag, name: str) -> None:
    """Rename ``el`` in place, keeping its attributes and children."""
    el.name = name


def is_detached(el: PageElement) -> bool:
    """Return True once ``el`` has been decomposed or removed from the tree."""
    return bool(getattr(el, "decomposed", False)) or el.parent is None


def previous_element_sibling(el: PageElement) -> Tag | None:
    """Return the closest preceding sibling that is an element."""
    for sibling in el.previous_siblings:
        if isinstance(sibling, Tag):
            return sibling
    return None
