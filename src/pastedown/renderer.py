#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/pastedown/renderer.py
"""Markdown rendering for normalized HTML.

The renderer is a :class:`markdownify.MarkdownConverter` subclass. Tag
conversions that need pastedown-specific output (code fences, sized images,
highlights, task-list checkboxes) are ``convert_<tag>`` overrides. Element
specific behaviour that cannot be keyed on the tag name alone is expressed
as :class:`RendererRule` objects, which take precedence over the tag
conversion when their filter matches.

After conversion, :func:`cleanup_markdown` tidies the output outside fenced
code blocks.
"""

from __future__ import annotations

import html
import logging
import re
from dataclasses import dataclass
from typing import Callable, Optional, Union

from bs4 import Tag
from markdownify import ATX, MarkdownConverter, chomp

from pastedown.constants import IMAGE_ATTRIBUTE_ORDER, IMAGE_FAMILY_TAGS, NBSP, NBSP_SENTINEL

logger = logging.getLogger(__name__)

RuleFilter = Union[tuple, Callable[[Tag], bool]]
RuleReplacement = Callable[[Tag, str, set], str]

MAX_LINK_TEXT = 120

_ORPHAN_TABLE_START = re.compile(r"^\s*<(col|tr|tbody|thead|th|td)[\s>]", re.IGNORECASE)
_ORPHAN_TABLE_ANY = re.compile(r"<(col|tr|tbody|thead|th|td)[\s>]", re.IGNORECASE)
_TABLE_OPEN = re.compile(r"<table[\s>]", re.IGNORECASE)
_LEADING_BLANK_LINES = re.compile(r"^(?:[ \t]*\n)+")
_FENCE_LINE = re.compile(r"^\s*(`{3,}|~{3,})")
_NBSP_ONLY_LINE = re.compile(r"^(?:\s|&nbsp;|&#160;|\u00a0)+$")
_LIST_ITEM_LINE = re.compile(r"^\s*(?:[-*+]|\d+[.)])\s")
_BACKTICK_RUN = re.compile(r"`+")
_SOCIAL_WIDGET = re.compile(r"twitter-tweet|fb-post|instagram-media|social-embed|widget|ad-banner", re.IGNORECASE)
_WHITESPACE_RUN = re.compile(r"\s+")


@dataclass(frozen=True)
class RendererRule:
    """An element-level conversion override.

    Parameters
    ----------
    name : str
        Unique rule name; registering a rule with an existing name replaces it
    filter : tuple of str or callable
        Tag names the rule applies to, or a predicate over the element
    replacement : callable
        ``replacement(el, text, parent_tags)`` returning the Markdown for the element

    """

    name: str
    filter: RuleFilter
    replacement: RuleReplacement

    def applies_to_name(self, tag_name: str) -> bool:
        return callable(self.filter) or tag_name in self.filter

    def matches(self, el: Tag) -> bool:
        if callable(self.filter):
            return bool(self.filter(el))
        return el.name in self.filter


def _only_images(anchor: Tag) -> bool:
    saw_image = False
    for child in anchor.children:
        if isinstance(child, Tag):
            if child.name not in IMAGE_FAMILY_TAGS:
                return False
            saw_image = True
        elif str(child).strip():
            return False
    return saw_image


def _is_stray_insertion(el: Tag) -> bool:
    """``<ins>``/``<u>`` inside a link, or wrapping nothing but a link."""
    if el.name not in ("ins", "u"):
        return False
    if el.find_parent("a") is not None:
        return True
    elements = [child for child in el.children if isinstance(child, Tag)]
    loose_text = "".join(str(child) for child in el.children if not isinstance(child, Tag)).strip()
    return len(elements) == 1 and elements[0].name == "a" and not loose_text


def _is_social_widget(el: Tag) -> bool:
    classes = el.get("class") or []
    if isinstance(classes, str):
        classes = [classes]
    marker = " ".join(classes) + " " + str(el.get("id", ""))
    return bool(marker.strip()) and bool(_SOCIAL_WIDGET.search(marker))


def _link_title(el: Tag) -> str:
    title = el.get("title")
    if not title:
        return ""
    return ' "{}"'.format(str(title).replace('"', '\\"'))


def _flatten_anchor(el: Tag, text: str, parent_tags: set) -> str:
    href = str(el.get("href", "") or "")
    label = _WHITESPACE_RUN.sub(" ", el.get_text().replace(NBSP, " ")).strip() or href
    if len(label) > MAX_LINK_TEXT:
        label = label[: MAX_LINK_TEXT - 1].rstrip() + "\u2026"
    return f"[{label}]({href}{_link_title(el)})"


def _is_nested_text_anchor(el: Tag) -> bool:
    if el.name != "a" or el.find("img") is not None:
        return False
    has_text = bool(el.get_text().replace(NBSP, " ").strip())
    return has_text and any(isinstance(child, Tag) for child in el.children)


class MarkdownRenderer(MarkdownConverter):
    """Render sanitized, normalized HTML to Markdown.

    Parameters
    ----------
    include_images : bool, default True
        Emit images; when False images and image-only links render as nothing
    suppress_stray_insertions : bool, default True
        Render ``<ins>``/``<u>`` around or inside links as plain content
    **options
        Passed through to :class:`markdownify.MarkdownConverter`

    """

    def __init__(self, include_images: bool = True, suppress_stray_insertions: bool = True, **options):
        options.setdefault("heading_style", ATX)
        options.setdefault("bullets", "-")
        options.setdefault("escape_misc", False)
        super().__init__(**options)
        self.include_images = include_images
        self._rules: dict[str, RendererRule] = {}

        self.add_rule(RendererRule("drop-social-widgets", _is_social_widget, lambda el, text, parent_tags: ""))
        self.add_rule(RendererRule("flatten-anchor-content", _is_nested_text_anchor, _flatten_anchor))
        if not include_images:
            self.add_rule(RendererRule("drop-image-links", lambda el: el.name == "a" and _only_images(el),
                                       lambda el, text, parent_tags: ""))
            self.add_rule(RendererRule("drop-images", tuple(IMAGE_FAMILY_TAGS), lambda el, text, parent_tags: ""))
        if suppress_stray_insertions:
            self.add_rule(RendererRule("suppress-stray-insertions", _is_stray_insertion,
                                       lambda el, text, parent_tags: text))

    @property
    def rules(self) -> tuple[RendererRule, ...]:
        """Registered rules in precedence order."""
        return tuple(self._rules.values())

    def add_rule(self, rule: RendererRule) -> None:
        """Register ``rule``; a rule with the same name is replaced in place."""
        self._rules[rule.name] = rule
        self.convert_fn_cache.clear()

    def get_conv_fn(self, tag_name):
        builtin = super().get_conv_fn(tag_name)
        rules = [rule for rule in self._rules.values() if rule.applies_to_name(tag_name.lower())]
        if not rules:
            return builtin

        def dispatch(el, text, parent_tags):
            for rule in rules:
                if rule.matches(el):
                    return rule.replacement(el, text, parent_tags)
            if builtin is None:
                return text
            return builtin(el, text, parent_tags=parent_tags)

        return dispatch

    def convert_pre(self, el, text, parent_tags):
        code = el.find("code")
        source = code if code is not None else el
        content = source.get_text().strip("\n")
        if not content.strip():
            return ""

        language = ""
        if code is not None:
            for cls in code.get("class") or []:
                if cls.startswith("language-"):
                    language = cls[len("language-"):]
                    break

        longest = max((len(run) for run in _BACKTICK_RUN.findall(content)), default=0)
        fence = "`" * max(3, longest + 1)
        return f"\n\n{fence}{language}\n{content}\n{fence}\n\n"

    def convert_code(self, el, text, parent_tags):
        if "pre" in parent_tags:
            return text
        content = el.get_text()
        if not content:
            return ""
        longest = max((len(run) for run in _BACKTICK_RUN.findall(content)), default=0)
        fence = "`" * (longest + 1)
        padding = " " if content.startswith("`") or content.endswith("`") else ""
        return f"{fence}{padding}{content}{padding}{fence}"

    def convert_img(self, el, text, parent_tags):
        if not self.include_images:
            return ""
        src = str(el.get("src", "") or "")
        if not src:
            return ""
        alt = str(el.get("alt", "") or "")

        if el.get("width") or el.get("height"):
            attrs = [
                f'{name}="{html.escape(str(el.get(name)), quote=True)}"'
                for name in IMAGE_ATTRIBUTE_ORDER
                if el.get(name) is not None
            ]
            return f"<img {' '.join(attrs)}>"

        alt = alt.replace("[", "\\[").replace("]", "\\]")
        return f"![{alt}]({src}{_link_title(el)})"

    def convert_br(self, el, text, parent_tags):
        if "_inline" in parent_tags:
            return " "
        previous = el.find_previous_sibling()
        following = el.find_next_sibling()
        previous_is_br = previous is not None and previous.name == "br" and _only_blank_between(previous, el)
        following_is_br = following is not None and following.name == "br" and _only_blank_between(el, following)
        if previous_is_br:
            return ""
        if following_is_br:
            return "\n\n"
        return "  \n"

    def convert_mark(self, el, text, parent_tags):
        prefix, suffix, text = chomp(text)
        if not text:
            return ""
        return f"{prefix}=={text}=={suffix}"

    def _convert_insertion(self, el, text, parent_tags):
        prefix, suffix, text = chomp(text)
        if not text:
            return ""
        return f"{prefix}++{text}++{suffix}"

    convert_ins = _convert_insertion
    convert_u = _convert_insertion

    def convert_sup(self, el, text, parent_tags):
        return f"<sup>{text}</sup>" if text else ""

    def convert_sub(self, el, text, parent_tags):
        return f"<sub>{text}</sub>" if text else ""

    def convert_input(self, el, text, parent_tags):
        if str(el.get("type", "")).lower() != "checkbox":
            return text
        return "[x] " if el.has_attr("checked") else "[ ] "


def _only_blank_between(first: Tag, second: Tag) -> bool:
    node = first.next_sibling
    while node is not None and node is not second:
        if isinstance(node, Tag) or str(node).strip():
            return False
        node = node.next_sibling
    return node is second


def wrap_orphaned_table_elements(html_text: str) -> str:
    """Wrap table fragments copied without their ``<table>`` in one.

    Examples
    --------
    >>> wrap_orphaned_table_elements("<tr><td>a</td></tr>")
    '<table><tr><td>a</td></tr></table>'

    """
    if _TABLE_OPEN.search(html_text):
        return html_text
    if _ORPHAN_TABLE_START.search(html_text) or _ORPHAN_TABLE_ANY.search(html_text):
        return f"<table>{html_text}</table>"
    return html_text


def _map_outside_fences(markdown: str, transform: Callable[[list[str]], list[str]]) -> str:
    """Apply ``transform`` to each run of lines outside fenced code blocks."""
    output: list[str] = []
    pending: list[str] = []
    fence: Optional[str] = None

    for line in markdown.split("\n"):
        match = _FENCE_LINE.match(line)
        if fence is None:
            if match:
                output.extend(transform(pending))
                pending = []
                fence = match.group(1)
                output.append(line)
            else:
                pending.append(line)
        else:
            output.append(line)
            closing = match.group(1) if match else ""
            if closing and line.strip() == closing and closing[0] == fence[0] and len(closing) >= len(fence):
                fence = None
    output.extend(transform(pending))
    return "\n".join(output)


def _blank_noise_lines(lines: list[str]) -> list[str]:
    cleaned = []
    for line in lines:
        if "`" not in line and _NBSP_ONLY_LINE.match(line):
            cleaned.append("")
        elif not line.strip():
            cleaned.append("")
        else:
            cleaned.append(line)
    return cleaned


def _collapse_blank_runs(lines: list[str]) -> list[str]:
    collapsed: list[str] = []
    for line in lines:
        if line == "" and collapsed and collapsed[-1] == "":
            continue
        collapsed.append(line)
    return collapsed


def _tighten_lists(lines: list[str]) -> list[str]:
    tightened: list[str] = []
    for index, line in enumerate(lines):
        if line == "" and tightened:
            following = next((candidate for candidate in lines[index + 1:] if candidate != ""), None)
            previous = tightened[-1]
            in_list = _LIST_ITEM_LINE.match(previous) or (previous.startswith(" ") and _in_list(tightened))
            if in_list and following is not None and _LIST_ITEM_LINE.match(following):
                continue
        tightened.append(line)
    return tightened


def _in_list(lines: list[str]) -> bool:
    for line in reversed(lines):
        if line == "":
            return False
        if _LIST_ITEM_LINE.match(line):
            return True
        if not line.startswith(" "):
            return False
    return False


def cleanup_markdown(markdown: str, force_tight_lists: bool = False) -> str:
    """Tidy rendered Markdown outside fenced code.

    Leading blank lines are removed, lines holding only whitespace or
    non-breaking spaces are emptied, runs of blank lines are collapsed to
    one, and the NBSP sentinel is restored as ``&nbsp;``.

    Parameters
    ----------
    markdown : str
        Raw renderer output
    force_tight_lists : bool, default False
        Also drop blank lines between consecutive list items

    Returns
    -------
    str
        Cleaned Markdown

    """
    markdown = _LEADING_BLANK_LINES.sub("", markdown)
    markdown = _map_outside_fences(markdown, _blank_noise_lines)
    markdown = _map_outside_fences(markdown, _collapse_blank_runs)
    markdown = markdown.replace(NBSP_SENTINEL, "&nbsp;")
    if force_tight_lists:
        markdown = _map_outside_fences(markdown, _tighten_lists)
    return markdown.strip("\n")


def render_markdown(html_text: str, include_images: bool = True, force_tight_lists: bool = False) -> str:
    """Render normalized HTML to cleaned Markdown.

    A renderer is created per call so rule registration never leaks between
    conversions.
    """
    renderer = MarkdownRenderer(include_images=include_images)
    markdown = renderer.convert(wrap_orphaned_table_elements(html_text))
    return cleanup_markdown(markdown, force_tight_lists=force_tight_lists)
