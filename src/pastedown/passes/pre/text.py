#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/pastedown/passes/pre/text.py
"""Unicode cleanup for text outside code regions.

Rich sources (word processors, chat clients, web pages) leave behind
non-breaking spaces, typographic space variants, zero-width marks and
bidi control characters that show up as stray glyphs in Markdown
editors. Code and preformatted blocks are never touched so literal
character examples survive.
"""

from __future__ import annotations

import re

from bs4 import NavigableString, Tag

from pastedown.dom import iter_text_nodes

_NBSP_PATTERN = re.compile(r"\u00a0|&nbsp;")
_SPACE_VARIANT_PATTERN = re.compile(r"[\u2004-\u200a\u202f]+")
_ZERO_WIDTH_PATTERN = re.compile(r"[\u200b\u200c\u200d\u2060\ufeff]+")
_BIDI_CONTROL_PATTERN = re.compile(r"[\u2066-\u2069\u202a-\u202e\u200e\u200f\u061c]+")

_QUOTE_REPLACEMENTS: tuple[tuple[re.Pattern[str], str], ...] = (
    (re.compile(r"&#822[01];?"), '"'),
    (re.compile(r"&#821[67];?"), "'"),
    (re.compile(r"[\u201c\u201d]"), '"'),
    (re.compile(r"[\u2018\u2019]"), "'"),
)


def normalize_text_value(text: str, normalize_quotes: bool = True) -> str:
    """Apply the character normalization rules to a single string.

    Parameters
    ----------
    text : str
        Text to normalize
    normalize_quotes : bool, default True
        Also fold curly quotes (and their numeric entities) to ASCII

    Returns
    -------
    str
        Normalized text

    Examples
    --------
    >>> normalize_text_value("a\\u00a0b\\u200bc")
    'a bc'
    >>> normalize_text_value("\\u201chi\\u201d")
    '"hi"'

    """
    result = _NBSP_PATTERN.sub(" ", text)
    result = _SPACE_VARIANT_PATTERN.sub(" ", result)
    result = _ZERO_WIDTH_PATTERN.sub("", result)
    result = _BIDI_CONTROL_PATTERN.sub("", result)
    if normalize_quotes:
        for pattern, replacement in _QUOTE_REPLACEMENTS:
            result = pattern.sub(replacement, result)
    return result


def normalize_text_characters(root: Tag, normalize_quotes: bool = True) -> None:
    """Normalize every text node under ``root`` that is not inside code."""
    for node in iter_text_nodes(root):
        original = str(node)
        normalized = normalize_text_value(original, normalize_quotes)
        if normalized != original:
            node.replace_with(NavigableString(normalized))
