#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/pastedown/passes/post/code_blocks.py
"""Normalization of code blocks copied from code hosts, docs sites and editors.

Every code block that survives this module has the shape
``<pre><code class="language-x">text</code></pre>``:

- line-based editor widgets (CodeMirror 6) are flattened into ``<pre><code>``
- syntax-highlighter wrappers (GitHub, GitLab, Pandoc, Jekyll/Rouge, ...)
  are collapsed onto their ``<pre>``, leaving their classes behind as a
  language hint
- tables that a source wrapped in ``<pre>`` are promoted back out
- copy buttons and toolbars inside or directly above the block are dropped
- empty blocks are removed
- the language comes from class markers first and from a short label
  element just above the block second; code content is never inspected
"""

from __future__ import annotations

import logging
import re

from bs4 import PageElement, Tag

from pastedown.constants import (
    CODE_UI_CLASS_PATTERN,
    CODE_WRAPPER_SELECTORS,
    COPY_CLASS_PATTERN,
    LANGUAGE_CLASS_PATTERNS,
    NBSP,
    NBSP_SENTINEL,
    TOOLBAR_CLASS_PATTERN,
    WRAPPER_CLASSES_ATTR,
)
from pastedown.dom import (
    child_elements,
    class_list,
    find_all,
    has_meaningful_text,
    is_detached,
    is_text,
    new_tag,
    only_contains,
    previous_element_sibling,
    select_all,
    set_class_list,
    set_text,
    text_content,
)
from pastedown.passes.post.languages import resolve_language

logger = logging.getLogger(__name__)

LABEL_SEARCH_DEPTH = 3
EMPTY_ANCESTOR_DEPTH = 3
CLASS_ANCESTOR_DEPTH = 3
MAX_ADJACENT_TOOLBARS = 3

_DOCUMENT_TAGS = frozenset({"body", "html", "[document]"})
_HIGHLIGHT_CLASS = re.compile(r"^highlight(?:-|$)", re.IGNORECASE)
_LANGUAGE_MARKER_CLASS = re.compile(r"^(?:lang(?:uage)?-|highlight-source-)", re.IGNORECASE)
_LABEL_SUFFIX = re.compile(r"[:\uff1a]+$")
_LINE_BREAK = re.compile(r"\r?\n")
_WHITESPACE = re.compile(r"\s+")


def mark_nbsp_only_inline_code(root: Tag) -> None:
    """Replace inline code holding only non-breaking spaces with a sentinel.

    Renderers treat such code spans as blank and drop them; the sentinel
    is turned back into ``&nbsp;`` after rendering.
    """
    for code in find_all(root, "code"):
        if isinstance(code.parent, Tag) and code.parent.name == "pre":
            continue
        text = code.get_text()
        if NBSP in text and not _WHITESPACE.sub("", text):
            set_text(code, NBSP_SENTINEL)


def normalize_code_blocks(root: Tag) -> None:
    """Bring every code block under ``root`` into canonical shape."""
    convert_code_mirror_editors(root)
    for pre in find_and_unwrap_code_blocks(root):
        if is_detached(pre):
            continue
        if unwrap_table_wrapped_pre(pre):
            continue
        ensure_code_element(pre)
        code = remove_ui_elements(pre)
        remove_adjacent_ui_containers(pre)
        if code is None:
            code = pre.find("code")
        trim_code_whitespace(code)
        if is_empty_code_block(code):
            logger.debug("Removing empty code block")
            pre.decompose()
            continue
        normalize_language_class(pre, code)


# =============================================================================
# Editor widgets
# =============================================================================


def _code_mirror_line_text(line: Tag) -> str:
    parts: list[str] = []
    for node in line.children:
        if is_text(node):
            parts.append(str(node))
        elif isinstance(node, Tag) and node.name != "br":
            parts.append(_code_mirror_line_text(node))
    return "".join(parts)


def convert_code_mirror_editors(root: Tag) -> None:
    """Flatten CodeMirror 6 editors (``.cm-editor .cm-content .cm-line``) into ``<pre><code>``.

    Gutters and line numbers live outside ``.cm-content`` and are dropped
    with the editor.
    """
    for editor in select_all(root, ".cm-editor"):
        if is_detached(editor):
            continue
        content = editor.select_one(".cm-content")
        if content is None:
            continue
        lines = [_code_mirror_line_text(line) for line in select_all(content, ".cm-line")]
        if not any(line.strip() for line in lines):
            continue

        pre = new_tag(editor, "pre")
        code = new_tag(editor, "code")
        code.string = "\n".join(lines)
        pre.append(code)

        parent = editor.parent
        if isinstance(parent, Tag) and parent is not root and parent.name not in _DOCUMENT_TAGS and only_contains(
            parent, editor
        ):
            parent.replace_with(pre)
        else:
            editor.replace_with(pre)


# =============================================================================
# Structure
# =============================================================================


def find_and_unwrap_code_blocks(root: Tag) -> list[Tag]:
    """Collapse highlighter wrappers onto their ``<pre>`` and return every block.

    The wrapper's classes are stored on the ``<pre>`` so language inference
    can still read them after the wrapper is gone. A wrapper holding more
    than the ``<pre>`` (a caption, a toolbar) is kept, minus its
    ``highlight`` classes.
    """
    pres: list[Tag] = []
    seen: set[int] = set()

    for wrapper in select_all(root, ", ".join(CODE_WRAPPER_SELECTORS)):
        if is_detached(wrapper):
            continue
        pre = wrapper if wrapper.name == "pre" else wrapper.find("pre")
        if pre is None:
            continue

        if pre is not wrapper:
            wrapper_classes = " ".join(class_list(wrapper))
            if wrapper_classes:
                existing = pre.get(WRAPPER_CLASSES_ATTR)
                pre[WRAPPER_CLASSES_ATTR] = f"{existing} {wrapper_classes}" if existing else wrapper_classes

            if only_contains(wrapper, pre):
                wrapper.replace_with(pre.extract())
            else:
                kept = [cls for cls in class_list(wrapper) if not _HIGHLIGHT_CLASS.match(cls)]
                set_class_list(wrapper, kept)

        if id(pre) not in seen:
            seen.add(id(pre))
            pres.append(pre)
    return pres


def unwrap_table_wrapped_pre(pre: Tag) -> bool:
    """Unwrap a ``<pre>`` whose only content is a ``<table>``."""
    tables = [child for child in child_elements(pre) if child.name == "table"]
    if len(tables) != 1 or not only_contains(pre, tables[0]) or pre.parent is None:
        return False
    logger.debug("Promoting table out of <pre>")
    pre.unwrap()
    return True


def ensure_code_element(pre: Tag) -> None:
    """Give ``pre`` a ``<code>`` holding its content when it has none."""
    if pre.find("code") is not None:
        return
    code = new_tag(pre, "code")
    for child in list(pre.contents):
        code.append(child.extract())
    pre.append(code)


def _is_code_ui_element(element: Tag) -> bool:
    if element.name == "span" and not element.get_text().strip():
        return True
    if CODE_UI_CLASS_PATTERN.search(" ".join(class_list(element))):
        return True
    return element.name in ("div", "button")


def remove_ui_elements(pre: Tag) -> Tag | None:
    """Strip UI chrome that sits next to the ``<code>`` inside ``pre``.

    A ``<code>`` nested inside wrappers is hoisted to be the only child of
    ``pre`` first. Returns the ``<code>`` element.
    """
    code = next((child for child in child_elements(pre) if child.name == "code"), None)
    if code is None:
        descendant = pre.find("code")
        if descendant is None:
            return None
        descendant.extract()
        pre.clear()
        pre.append(descendant)
        code = descendant

    for child in child_elements(pre):
        if child is not code and _is_code_ui_element(child):
            child.decompose()
    return code


def is_ui_toolbar_wrapper(element: Tag) -> bool:
    """Return True for copy-button bars and code headers without code in them."""
    if element.find(["pre", "code"]) is not None:
        return False
    if TOOLBAR_CLASS_PATTERN.search(" ".join(class_list(element))):
        return True

    button = element.find("button") or element.find(attrs={"role": "button"})
    if button is not None:
        if COPY_CLASS_PATTERN.search(" ".join(class_list(button))):
            return True
        label = button.get_text().strip().lower()
        if label == "copy" or label.startswith("copy "):
            return True

    text = element.get_text().strip().lower()
    return text in ("copy", "copy code")


def remove_adjacent_ui_containers(pre: Tag) -> None:
    """Remove toolbar blocks rendered directly above ``pre``."""
    removed = 0
    sibling = previous_element_sibling(pre)
    while sibling is not None and removed < MAX_ADJACENT_TOOLBARS:
        if not is_ui_toolbar_wrapper(sibling):
            break
        sibling.decompose()
        removed += 1
        sibling = previous_element_sibling(pre)


def trim_code_whitespace(code: Tag) -> None:
    """Drop blank lines at the start and end of the code text."""
    text = code.get_text()
    if not text:
        return
    lines = _LINE_BREAK.split(text)
    while lines and not lines[0].strip():
        lines.pop(0)
    while lines and not lines[-1].strip():
        lines.pop()
    trimmed = "\n".join(lines)
    if trimmed != text:
        set_text(code, trimmed)


def is_empty_code_block(code: Tag) -> bool:
    """Return True when ``code`` has no non-whitespace text."""
    return not _WHITESPACE.sub("", code.get_text())


# =============================================================================
# Language inference
# =============================================================================


def normalize_language_class(pre: Tag, code: Tag) -> None:
    """Apply a single ``language-x`` class to ``code``.

    Class-based inference wins over a label. Existing ``lang-*``,
    ``language-*`` and ``highlight-source-*`` classes are dropped first so
    contradictory fence hints never reach the renderer.
    """
    label_language = consume_language_label(pre)
    class_language = infer_language_from_classes(pre, code)
    language = class_language or label_language

    classes = [cls for cls in class_list(code) if not _LANGUAGE_MARKER_CLASS.match(cls)]
    if language and f"language-{language}" not in classes:
        classes.append(f"language-{language}")
    set_class_list(code, classes)


def infer_language_from_classes(pre: Tag, code: Tag) -> str | None:
    """Infer a language from class markers on the block and its ancestors.

    Sources are the classes of ``pre`` and ``code``, the wrapper hint left
    by :func:`find_and_unwrap_code_blocks` (consumed here), and the classes
    of up to three ancestors. Patterns are tried in priority order; the
    first match naming a recognized language wins.
    """
    sources: list[str] = []

    def collect(el: Tag, consume_hint: bool = False) -> None:
        sources.extend(class_list(el))
        hint = el.get(WRAPPER_CLASSES_ATTR)
        if hint:
            sources.append(str(hint))
            if consume_hint:
                del el[WRAPPER_CLASSES_ATTR]

    collect(pre, consume_hint=True)
    collect(code, consume_hint=True)
    parent = pre.parent
    for _ in range(CLASS_ANCESTOR_DEPTH):
        if not isinstance(parent, Tag) or parent.name in _DOCUMENT_TAGS:
            break
        collect(parent)
        parent = parent.parent

    blob = " ".join(sources)
    for pattern in LANGUAGE_CLASS_PATTERNS:
        for match in pattern.finditer(blob):
            language = resolve_language(match.group(1))
            if language:
                return language
    return None


def language_from_label(element: Tag) -> str | None:
    """Read a language name from a short ``<div>``/``<span>`` caption."""
    if element.name not in ("div", "span"):
        return None
    text = text_content(element).strip()
    token = _LABEL_SUFFIX.sub("", text).strip()
    if not token or _WHITESPACE.search(token):
        return None
    return resolve_language(token)


def _label_scan_blocked(sibling: Tag) -> bool:
    """Stop predicate: a sibling with unrelated text owns any label above it."""
    return has_meaningful_text(sibling)


def _can_ascend(parent: PageElement | None, current: Tag) -> bool:
    """Only climb when ``current`` is the sole content of its parent."""
    return isinstance(parent, Tag) and parent.name not in _DOCUMENT_TAGS and only_contains(parent, current)


def _remove_empty_ancestors(start: Tag) -> None:
    current: PageElement | None = start
    for _ in range(EMPTY_ANCESTOR_DEPTH):
        if not isinstance(current, Tag) or current.name in _DOCUMENT_TAGS:
            return
        if child_elements(current) or has_meaningful_text(current):
            return
        parent = current.parent
        current.decompose()
        current = parent


def consume_language_label(pre: Tag) -> str | None:
    """Find, remove and return a language label placed above ``pre``.

    Bounded search: at each of up to three levels, preceding element
    siblings of the current node are scanned nearest-first until a label
    is found or :func:`_label_scan_blocked` stops the scan; the search then
    climbs one level only if :func:`_can_ascend` allows it.
    """
    current = pre
    for _ in range(LABEL_SEARCH_DEPTH):
        sibling = previous_element_sibling(current)
        while sibling is not None:
            language = language_from_label(sibling)
            if language:
                parent = sibling.parent
                sibling.decompose()
                if isinstance(parent, Tag):
                    _remove_empty_ancestors(parent)
                return language
            if _label_scan_blocked(sibling):
                return None
            sibling = previous_element_sibling(sibling)

        parent = current.parent
        if not _can_ascend(parent, current):
            break
        current = parent
    return None
